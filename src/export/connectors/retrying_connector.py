"""
Connector wrapper that retries the initial search on transport errors.
"""

import logging
from typing import Optional

from ..core.connector import ScrollConnector
from ..core.exceptions import TransportError
from ..core.models import Page, Query
from ..utils.retry import RetryConfig, retry_with_backoff


logger = logging.getLogger(__name__)


class RetryingConnector(ScrollConnector):
    """
    Retries the opening search request of a slice.

    Only search() is retried, and only on TransportError. Continuation
    calls are passed through untouched: the server may already have
    advanced the cursor for a request whose response was lost, so a
    repeated scroll call could silently skip a page.
    """

    def __init__(self, inner: ScrollConnector, config: RetryConfig):
        self.inner = inner
        self.config = config

    def search(
        self,
        index: str,
        query: Query,
        scroll_ttl: str,
        size: Optional[int] = None,
    ) -> Page:
        outcome = retry_with_backoff(
            lambda: self.inner.search(index, query, scroll_ttl, size=size),
            self.config,
            retry_on=(TransportError,),
            operation_name=f"search {index}",
        )
        if not outcome.success:
            raise outcome.error
        return outcome.result

    def scroll(self, scroll_id: str, scroll_ttl: str) -> Page:
        return self.inner.scroll(scroll_id, scroll_ttl)

    def clear_scroll(self, scroll_id: str) -> None:
        self.inner.clear_scroll(scroll_id)

    def get_name(self) -> str:
        return f"retrying_{self.inner.get_name()}"

    def close(self) -> None:
        self.inner.close()
