"""
Load the search query body an export runs with.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO, Union

from .core.exceptions import ExportConfigError
from .core.models import Query


logger = logging.getLogger(__name__)


def load_query(source: Union[str, Path], stdin: Optional[TextIO] = None) -> Query:
    """
    Read a JSON query object from a file, or from stdin when source is "-".

    Raises:
        ExportConfigError: if the file is missing or is not a JSON object
    """
    if str(source) == "-":
        return parse_query((stdin or sys.stdin).read(), origin="<stdin>")

    path = Path(source)
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise ExportConfigError(f"Cannot read query file {path}: {e}")

    logger.debug(f"Loaded query from: {path}")
    return parse_query(text, origin=str(path))


def parse_query(text: str, origin: str = "<query>") -> Query:
    try:
        query = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExportConfigError(f"Invalid JSON in {origin}: {e}")

    if not isinstance(query, dict):
        raise ExportConfigError(f"Query in {origin} must be a JSON object")
    return query
