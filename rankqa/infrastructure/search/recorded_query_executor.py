"""
QueryExecutor that replays ranked lists recorded earlier.

Useful for offline evaluation (re-scoring a captured run after judgments
changed) and for tests that must not touch a search backend.
"""

import json
from pathlib import Path
from typing import Dict, List, Mapping, Sequence, Union

from rankqa.domain.errors import QueryExecutionError
from rankqa.domain.ports import QueryExecutor
from rankqa.domain.value_objects import QuerySpecification


class RecordedQueryExecutor(QueryExecutor):
    """Returns the ranked list recorded for each specification id."""

    def __init__(self, ranked_lists: Mapping[int, Sequence[str]]) -> None:
        self._ranked_lists: Dict[int, List[str]] = {
            int(spec_id): list(doc_ids) for spec_id, doc_ids in ranked_lists.items()
        }

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RecordedQueryExecutor":
        """
        Load recorded lists from a JSON object {"<spec_id>": ["doc", ...]}.

        Raises:
            ValueError: If the file does not hold such an object
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a JSON object keyed by spec_id")

        try:
            return cls(data)
        except ValueError as e:
            raise ValueError(f"{path}: spec_id keys must be integers ({e})") from e

    def execute_query(self, spec: QuerySpecification) -> List[str]:
        try:
            return list(self._ranked_lists[spec.spec_id])
        except KeyError:
            raise QueryExecutionError(
                f"No ranked list recorded for spec {spec.spec_id}"
            ) from None

    def __len__(self) -> int:
        return len(self._ranked_lists)
