"""
Elasticsearch scroll connector.

Speaks the scroll API over HTTP:
- POST {host}/{index}/_search?scroll={ttl}[&size={n}]  (open)
- POST {host}/_search/scroll                           (continue)
- DELETE {host}/_search/scroll                         (release)
"""

import json
import logging
import time
from typing import Any, Dict, Optional

import requests

from ...core.connector import ScrollConnector
from ...core.exceptions import ProtocolError, TransportError
from ...core.models import Page, Query


logger = logging.getLogger(__name__)

# Basic auth user sent when none is configured
DEFAULT_USER = "estunnel"


def serialize_source(source: Any) -> str:
    """
    Serialize a document body as one compact JSON line.

    Raises:
        ProtocolError: if the body holds text that is not valid UTF-8,
            such as a lone surrogate escape
    """
    text = json.dumps(source, ensure_ascii=False, separators=(",", ":"))
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ProtocolError(f"Document body is not valid UTF-8: {e}")
    return text


def parse_total(total: Any) -> int:
    """
    Read hits.total, which is either an integer or, on newer servers,
    an object of the form {"value": n, "relation": "eq"}.
    """
    if isinstance(total, dict):
        total = total.get("value")
    if isinstance(total, bool) or not isinstance(total, int):
        raise ProtocolError(f"Invalid hits.total in response: {total!r}")
    return total


def parse_page(body: Dict[str, Any]) -> Page:
    """
    Convert a decoded search/scroll response into a Page.

    Raises:
        ProtocolError: if required fields are missing or malformed
    """
    try:
        scroll_id = body["_scroll_id"]
        hits = body["hits"]
        total = parse_total(hits["total"])
        documents = [serialize_source(hit["_source"]) for hit in hits["hits"]]
    except (KeyError, TypeError) as e:
        raise ProtocolError(f"Malformed scroll response, missing field: {e}")

    if not isinstance(scroll_id, str):
        raise ProtocolError(f"Invalid _scroll_id in response: {scroll_id!r}")

    return Page(documents=documents, scroll_id=scroll_id, total=total)


class ElasticsearchScrollConnector(ScrollConnector):
    """
    Scroll connector for Elasticsearch-compatible search services.

    Each instance owns one requests.Session and is meant to be used by
    a single worker. No retries are performed here.
    """

    def __init__(
        self,
        host: str,
        user: Optional[str] = None,
        password: Optional[str] = None,
        timeout: int = 60,
        verify_ssl: bool = True,
        name: str = "elasticsearch",
    ):
        """
        Initialize the connector.

        Args:
            host: Base URL of the service (e.g. 'http://localhost:9200')
            user: Basic auth user (DEFAULT_USER when None)
            password: Basic auth password
            timeout: Request timeout in seconds
            verify_ssl: Whether to verify TLS certificates
            name: Connector name
        """
        self.name = name
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.verify = verify_ssl
        self.session.auth = (user or DEFAULT_USER, password or "")

    def search(
        self,
        index: str,
        query: Query,
        scroll_ttl: str,
        size: Optional[int] = None,
    ) -> Page:
        url = f"{self.host}/{index}/_search"
        params = {"scroll": scroll_ttl}
        if size is not None:
            params["size"] = size

        body = self._post(url, payload=query, params=params)
        return parse_page(body)

    def scroll(self, scroll_id: str, scroll_ttl: str) -> Page:
        url = f"{self.host}/_search/scroll"
        body = self._post(url, payload={"scroll": scroll_ttl, "scroll_id": scroll_id})
        return parse_page(body)

    def clear_scroll(self, scroll_id: str) -> None:
        """
        Release a scroll session.

        A 404 means the session already expired, which is fine.

        Raises:
            TransportError: if the request could not be issued
            ProtocolError: on any other non-success status
        """
        url = f"{self.host}/_search/scroll"
        try:
            response = self.session.delete(
                url,
                json={"scroll_id": [scroll_id]},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Error releasing scroll: {e}", url=url)

        if response.status_code not in (200, 404):
            raise ProtocolError(
                f"Error releasing scroll. status={response.status_code}, "
                f"content={response.text}",
                status_code=response.status_code,
                body=response.text,
            )

    def _post(
        self,
        url: str,
        payload: Dict[str, Any],
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Issue a POST and return the decoded JSON body of a 200 response."""
        start_time = time.time()
        try:
            response = self.session.post(
                url,
                params=params,
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Error sending request to {url}: {e}", url=url)

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"POST {url} -> {response.status_code} ({duration_ms}ms)")

        if response.status_code != 200:
            raise ProtocolError(
                f"Error querying search service. status={response.status_code}, "
                f"content={response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        # Decode from the text rather than streaming; bodies are one page each
        try:
            body = json.loads(response.text)
        except ValueError as e:
            raise ProtocolError(
                f"Invalid JSON in response from {url}: {e}",
                status_code=response.status_code,
                body=response.text,
            )

        if not isinstance(body, dict):
            raise ProtocolError(
                f"Unexpected response body from {url}: expected an object",
                status_code=response.status_code,
                body=response.text,
            )
        return body

    def get_name(self) -> str:
        """Return the connector name."""
        return self.name

    def close(self) -> None:
        """Close the session."""
        if self.session:
            self.session.close()

