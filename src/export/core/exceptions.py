"""
Custom exceptions for the sliced scroll export.
"""


class ExportError(Exception):
    """Base exception for all export errors."""
    pass


class TransportError(ExportError):
    """
    Error issuing a request to the search service.

    Raised when:
    - The host is unreachable or refuses the connection
    - The request times out
    - The connection drops mid-response
    """

    def __init__(self, message: str, url: str = None):
        super().__init__(message)
        self.url = url


class ProtocolError(ExportError):
    """
    The search service answered, but not with a usable page.

    Raised when:
    - The response status code is not 200
    - The response body is not valid JSON
    - Required fields (_scroll_id, hits.total, hits.hits) are missing
    """

    def __init__(self, message: str, status_code: int = None, body: str = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SinkError(ExportError):
    """
    Error creating or writing the output file.

    Fatal for the whole run; whatever was written stays on disk.
    """
    pass


class ChannelClosedError(ExportError):
    """Raised when sending a batch on a closed or aborted channel."""
    pass


class ExportConfigError(ExportError):
    """
    Error in export configuration or query input.

    Raised when:
    - A required option (index, query, output) is missing
    - Slice count or page size is out of range
    - The query file is missing or is not a JSON object
    """
    pass
