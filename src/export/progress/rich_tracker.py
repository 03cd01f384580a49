"""
Multi-row terminal progress display built on rich.

The display is owned by a single render thread. Workers post updates
into a queue and return immediately; only the render thread ever calls
into rich.
"""

import logging
import queue
import threading
from typing import Dict, Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from ..core.models import ProgressUpdate, SliceStatus
from .base import ProgressTracker


logger = logging.getLogger(__name__)

_STOP = object()

STATUS_STYLES = {
    SliceStatus.STARTING: "yellow bold",
    SliceStatus.RUNNING: "yellow bold",
    SliceStatus.FINISHED: "green bold",
    SliceStatus.FAILED: "red bold",
}


def slice_prefix(worker_id: int, slice_count: int) -> str:
    """Row label such as "[03/16]", zero-padded to the width of the count."""
    width = len(str(slice_count))
    return f"[{worker_id + 1:0{width}d}/{slice_count}]"


class RichProgressTracker(ProgressTracker):
    """
    One progress row per slice, rendered by rich.

    Row layout: prefix, elapsed, bar, percent, position/total, ETA, message.
    """

    def __init__(
        self,
        slice_count: int,
        console: Optional[Console] = None,
        refresh_per_second: float = 10,
    ):
        self.slice_count = slice_count
        self.console = console or Console(stderr=True)
        self._progress = Progress(
            TextColumn("{task.fields[prefix]}", style="bold", markup=False),
            TimeElapsedColumn(),
            BarColumn(bar_width=50),
            TaskProgressColumn(),
            MofNCompleteColumn(),
            TextColumn("ETA"),
            TimeRemainingColumn(),
            TextColumn("{task.fields[message]}"),
            console=self.console,
            refresh_per_second=refresh_per_second,
        )
        self._updates: "queue.Queue" = queue.Queue()
        self._tasks: Dict[int, TaskID] = {}
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        for worker_id in range(self.slice_count):
            self._tasks[worker_id] = self._progress.add_task(
                "",
                total=None,
                prefix=slice_prefix(worker_id, self.slice_count),
                message=self._styled("Starting...", SliceStatus.STARTING),
            )
        self._progress.start()
        self._thread = threading.Thread(
            target=self._render_loop, name="progress-render", daemon=True
        )
        self._thread.start()

    def update(self, update: ProgressUpdate) -> None:
        self._updates.put(update)

    def join(self) -> None:
        if self._thread is None:
            return
        self._updates.put(_STOP)
        self._thread.join()
        self._thread = None
        self._progress.stop()

    def _render_loop(self) -> None:
        while True:
            update = self._updates.get()
            if update is _STOP:
                break
            self._apply(update)

    def _apply(self, update: ProgressUpdate) -> None:
        task_id = self._tasks.get(update.worker_id)
        if task_id is None:
            logger.debug(f"Ignoring progress for unknown worker {update.worker_id}")
            return

        fields = {
            "completed": update.position,
            "message": self._styled(update.message, update.status),
        }
        if update.total is not None:
            fields["total"] = update.total
        self._progress.update(task_id, **fields)

        if update.status in (SliceStatus.FINISHED, SliceStatus.FAILED):
            self._progress.stop_task(task_id)

    @staticmethod
    def _styled(message: str, status: SliceStatus) -> str:
        style = STATUS_STYLES[status]
        return f"[{style}]{escape(message)}[/]"
