"""
Core abstractions for the sliced scroll export.
"""

from .models import (
    Query, Page, Batch, ProgressUpdate, SliceStatus, SliceResult, ExportResult
)
from .connector import ScrollConnector
from .exceptions import (
    ExportError,
    TransportError,
    ProtocolError,
    SinkError,
    ChannelClosedError,
    ExportConfigError,
)

__all__ = [
    "Query",
    "Page",
    "Batch",
    "ProgressUpdate",
    "SliceStatus",
    "SliceResult",
    "ExportResult",
    "ScrollConnector",
    "ExportError",
    "TransportError",
    "ProtocolError",
    "SinkError",
    "ChannelClosedError",
    "ExportConfigError",
]
