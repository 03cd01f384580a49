"""
Connectors package for scrollable search services.
"""

from .elasticsearch import ElasticsearchScrollConnector
from .fake_connector import FakeScrollConnector
from .retrying_connector import RetryingConnector

__all__ = [
    "ElasticsearchScrollConnector",
    "FakeScrollConnector",
    "RetryingConnector",
]
