"""
Progress tracker that reports status transitions through logging.

Used when there is no terminal to draw on.
"""

import logging
import threading
from typing import Dict

from ..core.models import ProgressUpdate, SliceStatus
from .base import ProgressTracker
from .rich_tracker import slice_prefix


logger = logging.getLogger(__name__)


class LoggingProgressTracker(ProgressTracker):
    """Logs one line per status change of each slice."""

    def __init__(self, slice_count: int):
        self.slice_count = slice_count
        self._lock = threading.Lock()
        self._last_status: Dict[int, SliceStatus] = {}

    def update(self, update: ProgressUpdate) -> None:
        with self._lock:
            if self._last_status.get(update.worker_id) == update.status:
                return
            self._last_status[update.worker_id] = update.status

        prefix = slice_prefix(update.worker_id, self.slice_count)
        total = update.total if update.total is not None else "?"
        line = f"{prefix} {update.message} ({update.position}/{total})"

        if update.status == SliceStatus.FAILED:
            logger.warning(line)
        else:
            logger.info(line)
