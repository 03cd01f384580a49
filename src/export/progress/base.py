"""
Progress tracking interfaces.

Workers never touch a display directly. Each worker holds a SliceProgress
handle that keeps its own counters and posts ProgressUpdate snapshots to
a ProgressTracker, which may render them however it likes.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..core.models import ProgressUpdate, SliceStatus


class ProgressTracker(ABC):
    """
    Abstract base class for progress trackers.

    update() may be called concurrently from every worker thread and
    must never block on rendering.
    """

    def start(self) -> None:
        """Start rendering. Optional."""
        pass

    @abstractmethod
    def update(self, update: ProgressUpdate) -> None:
        """Accept one progress snapshot."""
        pass

    def join(self) -> None:
        """Stop accepting updates and wait for rendering to finish. Optional."""
        pass


class NullProgressTracker(ProgressTracker):
    """Tracker that discards every update."""

    def update(self, update: ProgressUpdate) -> None:
        pass


class SliceProgress:
    """
    Progress state of one worker.

    Owned by exactly one worker, so no locking is needed here; every
    change is forwarded to the tracker as an immutable snapshot.
    """

    def __init__(self, worker_id: int, tracker: ProgressTracker):
        self.worker_id = worker_id
        self.tracker = tracker
        self.total: Optional[int] = None
        self.position = 0
        self.message = "Starting..."
        self.status = SliceStatus.STARTING

    def start(self, total: int) -> None:
        """First page received: set the expected total and mark running."""
        self.total = total
        self.status = SliceStatus.RUNNING
        self.message = "Running..."
        self._publish()

    def advance(self, count: int) -> None:
        if count <= 0:
            return
        self.position += count
        self._publish()

    def finish(self) -> None:
        self.status = SliceStatus.FINISHED
        self.message = "Finished."
        self._publish()

    def fail(self, reason: str) -> None:
        self.status = SliceStatus.FAILED
        self.message = f"Failed: {reason}"
        self._publish()

    def snapshot(self) -> ProgressUpdate:
        return ProgressUpdate(
            worker_id=self.worker_id,
            total=self.total,
            position=self.position,
            message=self.message,
            status=self.status,
        )

    def _publish(self) -> None:
        self.tracker.update(self.snapshot())
