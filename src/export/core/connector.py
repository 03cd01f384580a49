"""
Connector interface for talking to a scrollable search service.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .models import Page, Query


class ScrollConnector(ABC):
    """
    Abstract base class for scroll connectors.

    A connector speaks the search service's cursor protocol: an initial
    search opens a scroll session, continuation calls echo the latest
    scroll id back, and an optional release call frees the session.
    Connectors are used by one worker at a time.
    """

    @abstractmethod
    def search(
        self,
        index: str,
        query: Query,
        scroll_ttl: str,
        size: Optional[int] = None,
    ) -> Page:
        """
        Open a scroll session and return its first page.

        Args:
            index: Index (or index pattern) to search
            query: Search body, possibly slice-annotated
            scroll_ttl: Keep-alive for the scroll session (e.g. "1m")
            size: Optional page size hint

        Returns:
            The first Page of the result set

        Raises:
            TransportError: if the request could not be issued
            ProtocolError: if the response is not a usable page
        """
        pass

    @abstractmethod
    def scroll(self, scroll_id: str, scroll_ttl: str) -> Page:
        """
        Fetch the next page of an open scroll session.

        Raises:
            TransportError: if the request could not be issued
            ProtocolError: if the response is not a usable page
        """
        pass

    def clear_scroll(self, scroll_id: str) -> None:
        """Release a scroll session. Optional; the default does nothing."""
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Return the connector name/identifier."""
        pass

    def close(self) -> None:
        """Close any open resources. Optional."""
        pass
