"""
In-memory scroll connector for tests and dry runs.

Serves a fixed set of pages per slice without any network access. The
slice a request belongs to is read from the query's "slice" annotation,
so the same connector can back every worker of a sliced run.
"""

import logging
import threading
import time
from typing import Dict, List, Optional, Set

from ..core.connector import ScrollConnector
from ..core.exceptions import ProtocolError, TransportError
from ..core.models import Page, Query

logger = logging.getLogger(__name__)


class FakeScrollConnector(ScrollConnector):
    """
    Deterministic scroll connector backed by in-memory pages.

    Features:
    - Pages per slice, served in order, followed by an empty page
    - Configurable reported total per slice
    - Error simulation on the initial search or on a given page
    - Simulated latency
    - Request history, safe to share across worker threads
    """

    def __init__(
        self,
        pages: Dict[int, List[List[str]]],
        totals: Optional[Dict[int, int]] = None,
        error_slices: Optional[Set[int]] = None,
        error_status: int = 500,
        fail_on_page: Optional[Dict[int, int]] = None,
        simulate_latency_ms: int = 0,
    ):
        """
        Initialize the fake connector.

        Args:
            pages: Serialized documents per page, keyed by slice id
            totals: Reported hits.total per slice (default: sum of pages)
            error_slices: Slices whose initial search returns error_status
            error_status: Status code used for simulated protocol errors
            fail_on_page: Slice id -> page number whose fetch raises a
                TransportError (page 0 is the initial search)
            simulate_latency_ms: Delay added to every request
        """
        self.pages = pages
        self.totals = totals or {}
        self.error_slices = set(error_slices or [])
        self.error_status = error_status
        self.fail_on_page = fail_on_page or {}
        self.simulate_latency_ms = simulate_latency_ms

        self._lock = threading.Lock()
        # scroll_id -> (slice_id, next page number)
        self._cursors: Dict[str, tuple] = {}
        self.request_history: List[dict] = []
        self.cleared: List[str] = []
        self.closed = False

    def search(
        self,
        index: str,
        query: Query,
        scroll_ttl: str,
        size: Optional[int] = None,
    ) -> Page:
        slice_id = query.get("slice", {}).get("id", 0)
        self._record("search", index=index, query=query, scroll_ttl=scroll_ttl, size=size)
        self._sleep()

        if slice_id in self.error_slices:
            raise ProtocolError(
                f"Error querying search service. status={self.error_status}, "
                f"content=simulated failure",
                status_code=self.error_status,
                body="simulated failure",
            )
        return self._serve(slice_id, 0)

    def scroll(self, scroll_id: str, scroll_ttl: str) -> Page:
        self._record("scroll", scroll_id=scroll_id, scroll_ttl=scroll_ttl)
        self._sleep()

        with self._lock:
            cursor = self._cursors.pop(scroll_id, None)
        if cursor is None:
            raise ProtocolError(
                f"No search context found for id [{scroll_id}]",
                status_code=404,
                body="search_context_missing_exception",
            )
        slice_id, page_no = cursor
        return self._serve(slice_id, page_no)

    def clear_scroll(self, scroll_id: str) -> None:
        with self._lock:
            self.cleared.append(scroll_id)
            self._cursors.pop(scroll_id, None)

    def _serve(self, slice_id: int, page_no: int) -> Page:
        if self.fail_on_page.get(slice_id) == page_no:
            raise TransportError(f"simulated connection reset on slice {slice_id}")

        slice_pages = self.pages.get(slice_id, [])
        documents = list(slice_pages[page_no]) if page_no < len(slice_pages) else []
        total = self.totals.get(slice_id, sum(len(p) for p in slice_pages))

        scroll_id = f"scroll-{slice_id}-{page_no + 1}"
        with self._lock:
            self._cursors[scroll_id] = (slice_id, page_no + 1)

        return Page(documents=documents, scroll_id=scroll_id, total=total)

    def _record(self, kind: str, **fields) -> None:
        with self._lock:
            self.request_history.append({"kind": kind, **fields})

    def _sleep(self) -> None:
        if self.simulate_latency_ms > 0:
            time.sleep(self.simulate_latency_ms / 1000.0)

    def get_name(self) -> str:
        return "fake"

    def close(self) -> None:
        self.closed = True
