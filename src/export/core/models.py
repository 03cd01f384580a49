"""
Core data models for the sliced scroll export.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


# A search query body. Opaque to the export apart from the slice annotation.
Query = Dict[str, Any]


class SliceStatus(str, Enum):
    """Lifecycle status of a single slice worker."""
    STARTING = "starting"
    RUNNING = "running"
    FINISHED = "finished"
    FAILED = "failed"


@dataclass
class Page:
    """
    One fetched page of a scroll.

    Attributes:
        documents: Serialized document bodies, in server order
        scroll_id: Cursor token for the next fetch
        total: Total number of matches for this slice
    """
    documents: List[str]
    scroll_id: str
    total: int

    @property
    def is_empty(self) -> bool:
        """An empty page marks the end of the slice."""
        return not self.documents


@dataclass
class Batch:
    """One page of documents handed from a worker to the writer."""
    slice_id: int
    documents: List[str]

    def __len__(self) -> int:
        return len(self.documents)


@dataclass
class ProgressUpdate:
    """
    A snapshot of one worker's progress, as sent to a progress tracker.

    Attributes:
        worker_id: Slice id of the reporting worker
        total: Expected number of documents (None until the first page)
        position: Documents delivered so far
        message: Short human-readable status text
        status: Worker lifecycle status
    """
    worker_id: int
    total: Optional[int]
    position: int
    message: str
    status: SliceStatus


@dataclass
class SliceResult:
    """Outcome of one slice worker."""
    slice_id: int
    status: SliceStatus = SliceStatus.STARTING
    pages_fetched: int = 0
    documents_fetched: int = 0
    total: Optional[int] = None
    error_message: Optional[str] = None


@dataclass
class ExportResult:
    """
    Aggregate result of an export run.

    Attributes:
        run_id: Run identifier
        started_at: When the run started (UTC)
        ended_at: When the run ended (UTC)
        slices: Per-slice results keyed by slice id
        documents_written: Lines written to the output
        batches_written: Batches drained by the writer
        status: "running", "completed" or "failed"
        errors: Error messages collected from workers and the writer
    """
    run_id: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    slices: Dict[int, SliceResult] = field(default_factory=dict)
    documents_written: int = 0
    batches_written: int = 0
    status: str = "running"
    errors: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == "completed"

    @property
    def documents_fetched(self) -> int:
        return sum(s.documents_fetched for s in self.slices.values())

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the result for summaries and JSON output."""
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "status": self.status,
            "documents_written": self.documents_written,
            "batches_written": self.batches_written,
            "errors": list(self.errors),
            "slices": [
                {
                    "slice_id": s.slice_id,
                    "status": s.status.value,
                    "pages_fetched": s.pages_fetched,
                    "documents_fetched": s.documents_fetched,
                    "total": s.total,
                    "error_message": s.error_message,
                }
                for s in sorted(self.slices.values(), key=lambda s: s.slice_id)
            ],
        }
