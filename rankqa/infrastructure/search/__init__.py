# Search infrastructure package
"""
Search backend adapters implementing the QueryExecutor port.

This package contains:
- ElasticsearchQueryExecutor: runs specifications over the _search HTTP API
- RecordedQueryExecutor: replays ranked lists recorded per specification id
"""

from .elasticsearch_query_executor import ElasticsearchQueryExecutor
from .recorded_query_executor import RecordedQueryExecutor

__all__ = [
    "ElasticsearchQueryExecutor",
    "RecordedQueryExecutor",
]
