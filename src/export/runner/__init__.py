"""
Runner module for orchestrating a sliced export.
"""

from .channel import FanInChannel
from .export_runner import ExportRunner, RunnerConfig
from .output_writer import OutputWriter
from .scroll_worker import ScrollWorker
from .slice_planner import SLICE_KEY, plan

__all__ = [
    "ExportRunner",
    "RunnerConfig",
    "FanInChannel",
    "OutputWriter",
    "ScrollWorker",
    "SLICE_KEY",
    "plan",
]
