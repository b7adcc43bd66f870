"""
Elasticsearch-compatible search adapter implementing the QueryExecutor port.

This class is an ADAPTER in Hexagonal Architecture. It:
1. Implements a domain PORT (QueryExecutor)
2. Handles infrastructure concerns (HTTP, JSON parsing)
3. Translates the _search response into an ordered list of document ids

The query template and filter of a specification are sent as they are;
the adapter never interprets the query language. A filter, when present,
is combined with the template query in a bool query.

The constructor accepts an optional `session` parameter:
- In production: uses requests.Session() by default
- In tests: inject a fake session that returns canned responses
"""

import copy
import logging
from typing import Any, Dict, List, Optional

import requests

from rankqa.domain.errors import QueryExecutionError
from rankqa.domain.ports import QueryExecutor
from rankqa.domain.value_objects import QuerySpecification

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT_S = 30.0


class ElasticsearchQueryExecutor(QueryExecutor):
    """
    Runs query specifications against an Elasticsearch/OpenSearch cluster.

    Usage:
        # Production
        executor = ElasticsearchQueryExecutor("http://localhost:9200")
        doc_ids = executor.execute_query(spec)

        # Testing (with fake session)
        executor = ElasticsearchQueryExecutor("http://es", session=fake_session)
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[Any] = None,
        request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S,
        size: Optional[int] = None,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            base_url: Cluster URL, e.g. "http://localhost:9200"
            session: Optional HTTP session for dependency injection.
                    If None, creates a new requests.Session().
            request_timeout_s: Socket timeout passed to every request
            size: Optional number of hits to request when the template does
                  not set "size" itself
        """
        if not base_url or not base_url.strip():
            raise ValueError("base_url cannot be empty")

        self._base_url = base_url.strip().rstrip("/")
        self._session = session if session is not None else requests.Session()
        self._request_timeout_s = request_timeout_s
        self._size = size

    @property
    def base_url(self) -> str:
        return self._base_url

    def execute_query(self, spec: QuerySpecification) -> List[str]:
        """
        Execute a specification via the _search endpoint.

        Args:
            spec: Specification holding target collection, template and filter

        Returns:
            Hit ids in the order returned by the backend

        Raises:
            QueryExecutionError: If the request fails or the response has no hits
        """
        url = f"{self._base_url}/{spec.target_collection.strip()}/_search"
        body = self.build_request_body(spec)

        try:
            response = self._session.post(url, json=body, timeout=self._request_timeout_s)
            response.raise_for_status()
            data = response.json()
        except Exception as e:
            raise QueryExecutionError(
                f"Search request for spec {spec.spec_id} to {url} failed: {e}"
            ) from e

        try:
            hits = data["hits"]["hits"]
            doc_ids = [hit["_id"] for hit in hits]
        except (KeyError, TypeError) as e:
            raise QueryExecutionError(
                f"Search response for spec {spec.spec_id} has no hits: missing {e}"
            ) from e

        logger.debug("Spec %d returned %d hits from %s", spec.spec_id, len(doc_ids), url)
        return doc_ids

    def build_request_body(self, spec: QuerySpecification) -> Dict[str, Any]:
        """
        Build the _search request body for a specification.

        The template is deep-copied so the specification is never mutated.
        """
        body: Dict[str, Any] = copy.deepcopy(dict(spec.query_template))

        if spec.has_filter():
            query = body.get("query", {"match_all": {}})
            body["query"] = {
                "bool": {
                    "must": query,
                    "filter": copy.deepcopy(spec.filter),
                }
            }

        if self._size is not None and "size" not in body:
            body["size"] = self._size

        return body
