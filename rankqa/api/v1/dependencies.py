"""
FastAPI dependencies for dependency injection.

This module provides singleton instances of the query executor and the
evaluation service for use with FastAPI's Depends() system.

Note: We use module-level singletons instead of @lru_cache with Depends()
parameters, which is an antipattern that can cause unexpected behavior.
"""

import os
from typing import Optional

from rankqa.domain.ports import QueryExecutor
from rankqa.evaluation.evaluation_service import EvaluationService
from rankqa.infrastructure.search.elasticsearch_query_executor import ElasticsearchQueryExecutor

# Configuration from environment
SEARCH_URL = os.getenv("RANKQA_SEARCH_URL", "http://localhost:9200")
MAX_WORKERS = int(os.getenv("RANKQA_MAX_WORKERS", "4"))
QUERY_TIMEOUT_S = float(os.getenv("RANKQA_QUERY_TIMEOUT_S", "30.0"))

# Module-level singletons (initialized lazily)
_query_executor: Optional[QueryExecutor] = None
_evaluation_service: Optional[EvaluationService] = None


def get_query_executor() -> QueryExecutor:
    """Provide a singleton instance of the search backend adapter."""
    global _query_executor
    if _query_executor is None:
        _query_executor = ElasticsearchQueryExecutor(
            SEARCH_URL, request_timeout_s=QUERY_TIMEOUT_S
        )
    return _query_executor


def get_evaluation_service() -> EvaluationService:
    """Provide a singleton instance of the evaluation service."""
    global _evaluation_service
    if _evaluation_service is None:
        _evaluation_service = EvaluationService(
            get_query_executor(),
            max_workers=MAX_WORKERS,
            query_timeout_s=QUERY_TIMEOUT_S,
        )
    return _evaluation_service
