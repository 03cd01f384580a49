from .scroll_connector import (
    DEFAULT_USER,
    ElasticsearchScrollConnector,
    parse_page,
    parse_total,
    serialize_source,
)

__all__ = [
    "DEFAULT_USER",
    "ElasticsearchScrollConnector",
    "parse_page",
    "parse_total",
    "serialize_source",
]
