"""
Parallel sliced scroll export for Elasticsearch-compatible search services.
"""

__version__ = "0.3.0"
