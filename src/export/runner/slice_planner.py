"""
Split one query into per-slice variants.
"""

import copy
from typing import List

from ..core.exceptions import ExportConfigError
from ..core.models import Query


SLICE_KEY = "slice"


def plan(query: Query, slices: int) -> List[Query]:
    """
    Produce one query per slice.

    With a single slice the caller's query is returned as-is. Otherwise
    each variant is an independent deep copy carrying a
    {"id": i, "max": slices} descriptor under the "slice" key. The
    caller's query is never modified.

    Args:
        query: Search body to partition
        slices: Number of slices (>= 1)

    Returns:
        List of exactly `slices` queries, in slice id order

    Raises:
        ExportConfigError: if slices < 1
    """
    if slices < 1:
        raise ExportConfigError(f"Slice count must be at least 1, got {slices}")

    if slices == 1:
        return [query]

    variants = []
    for slice_id in range(slices):
        variant = copy.deepcopy(query)
        variant[SLICE_KEY] = {"id": slice_id, "max": slices}
        variants.append(variant)
    return variants
