"""
Ranked-list quality metrics.

Each metric implements the Metric port: a pure function scoring one ranked
list of document ids against the judgments of one intent.
"""

from typing import Dict, List, Sequence

import numpy as np

from rankqa.domain.entities import IntentJudgments
from rankqa.domain.errors import InvalidConfiguration
from rankqa.domain.value_objects import MetricResult, UNDEFINED_PRECISION


class PrecisionAtN:
    """
    Precision at N, N being the number of top results to consider.

    Documents of unknown quality are left out of the denominator and
    reported by id instead:

        precision@N = good / (good + bad)

    where good and bad count the judged relevant and irrelevant documents
    among the first N results. If none of the first N results was judged
    the score is UNDEFINED_PRECISION.
    """

    def __init__(self, n: int = 10) -> None:
        """
        Args:
            n: Number of top results to check against the judgments

        Raises:
            InvalidConfiguration: If n is not a positive integer
        """
        if isinstance(n, bool) or not isinstance(n, int):
            raise InvalidConfiguration(f"n must be an integer, got {n!r}")
        if n <= 0:
            raise InvalidConfiguration(f"n must be >= 1, got {n}")
        self._n = n

    @property
    def n(self) -> int:
        return self._n

    @property
    def name(self) -> str:
        return f"precision@{self._n}"

    def evaluate(
        self,
        ranked_list: Sequence[str],
        judgments: IntentJudgments,
    ) -> MetricResult:
        """
        Compute precision@N for one ranked list.

        Args:
            ranked_list: Document ids as returned by the backend
            judgments: Judgments for the list's intent

        Returns:
            MetricResult with the precision (or UNDEFINED_PRECISION) and the
            unjudged ids among the considered results
        """
        relevant = judgments.relevant_ids
        irrelevant = judgments.irrelevant_ids

        good = 0
        bad = 0
        unknown: List[str] = []
        for doc_id in ranked_list[: self._n]:
            if doc_id in relevant:
                good += 1
            elif doc_id in irrelevant:
                bad += 1
            else:
                unknown.append(doc_id)

        judged = good + bad
        score = good / judged if judged else UNDEFINED_PRECISION

        return MetricResult(
            score=score,
            unknown_doc_ids=tuple(unknown),
            good=good,
            bad=bad,
        )

    def __repr__(self) -> str:
        return f"PrecisionAtN(n={self._n})"


def aggregate_statistics(scores: Sequence[float]) -> Dict[str, float]:
    """
    Summarize per-intent scores.

    Args:
        scores: Defined metric values, in report order

    Returns:
        Dictionary with mean, median, std, min, max and count
    """
    if not scores:
        return {
            "mean": 0.0,
            "median": 0.0,
            "std": 0.0,
            "min": 0.0,
            "max": 0.0,
            "count": 0,
        }

    values = np.asarray(scores, dtype=float)

    return {
        "mean": float(np.mean(values)),
        "median": float(np.median(values)),
        "std": float(np.std(values)),
        "min": float(np.min(values)),
        "max": float(np.max(values)),
        "count": int(values.size),
    }
