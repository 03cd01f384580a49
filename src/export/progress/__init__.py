"""
Progress reporting for slice workers.
"""

from .base import NullProgressTracker, ProgressTracker, SliceProgress
from .logging_tracker import LoggingProgressTracker
from .rich_tracker import RichProgressTracker, slice_prefix

__all__ = [
    "ProgressTracker",
    "NullProgressTracker",
    "SliceProgress",
    "LoggingProgressTracker",
    "RichProgressTracker",
    "slice_prefix",
]
