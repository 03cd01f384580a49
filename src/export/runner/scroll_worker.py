"""
Scroll worker: drives the cursor pagination loop of one slice.
"""

import logging
from typing import Optional

from ..core.connector import ScrollConnector
from ..core.exceptions import ExportError
from ..core.logging import slice_context
from ..core.models import Batch, Page, Query, SliceResult, SliceStatus
from ..progress.base import SliceProgress
from .channel import FanInChannel


logger = logging.getLogger(__name__)


class ScrollWorker:
    """
    Fetches every page of one slice and forwards it to the channel.

    Protocol:
    - open the scroll with the slice query; the first page's total is
      this slice's expected total
    - push each non-empty page as a batch, advance progress, then ask
      for the next page with the latest scroll id
    - stop at the first empty page; an empty first page is still pushed
      so every worker sends at least one batch
    - any ExportError aborts the slice without retries
    """

    def __init__(
        self,
        slice_id: int,
        query: Query,
        index: str,
        connector: ScrollConnector,
        channel: FanInChannel,
        progress: SliceProgress,
        scroll_ttl: str = "1m",
        page_size: Optional[int] = None,
        clear_scroll: bool = True,
        run_id: Optional[str] = None,
    ):
        self.slice_id = slice_id
        self.query = query
        self.index = index
        self.connector = connector
        self.channel = channel
        self.progress = progress
        self.scroll_ttl = scroll_ttl
        self.page_size = page_size
        self.clear_scroll = clear_scroll
        self.result = SliceResult(slice_id=slice_id)
        self._log_extra = slice_context(slice_id, run_id)
        self._scroll_id: Optional[str] = None

    def run(self) -> SliceResult:
        """
        Run the pagination loop to completion.

        Returns:
            SliceResult of a finished slice

        Raises:
            ExportError: the slice failed; progress and result are marked failed
        """
        logger.debug(f"Slice {self.slice_id} starting", extra=self._log_extra)
        try:
            page = self.connector.search(
                self.index, self.query, self.scroll_ttl, size=self.page_size
            )
            self._accept(page)
            self.result.total = page.total
            self.result.status = SliceStatus.RUNNING
            self.progress.start(page.total)

            # The first page is forwarded even when empty
            self._forward(page)

            while not page.is_empty:
                page = self.connector.scroll(page.scroll_id, self.scroll_ttl)
                self._accept(page)
                if not page.is_empty:
                    self._forward(page)

        except ExportError as e:
            self.result.status = SliceStatus.FAILED
            self.result.error_message = str(e)
            self.progress.fail(str(e))
            logger.error(f"Slice {self.slice_id} failed: {e}", extra=self._log_extra)
            raise
        finally:
            self._release()

        self.result.status = SliceStatus.FINISHED
        self.progress.finish()
        logger.info(
            f"Slice {self.slice_id} finished: {self.result.documents_fetched} documents "
            f"in {self.result.pages_fetched} pages",
            extra=self._log_extra,
        )
        return self.result

    def _accept(self, page: Page) -> None:
        self._scroll_id = page.scroll_id
        self.result.pages_fetched += 1
        self.result.documents_fetched += len(page.documents)

    def _forward(self, page: Page) -> None:
        self.channel.send(Batch(slice_id=self.slice_id, documents=page.documents))
        self.progress.advance(len(page.documents))

    def _release(self) -> None:
        """Best-effort release of the scroll session."""
        if not self.clear_scroll or self._scroll_id is None:
            return
        try:
            self.connector.clear_scroll(self._scroll_id)
        except ExportError as e:
            logger.warning(
                f"Slice {self.slice_id}: could not release scroll: {e}",
                extra=self._log_extra,
            )
