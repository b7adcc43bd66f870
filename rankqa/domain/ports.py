"""
Port interfaces (protocols) for the domain layer.

Ports define the contracts between the domain and infrastructure layers.
They are implemented by adapters in the infrastructure layer, allowing
the domain to remain independent of technical details.

Following Hexagonal Architecture principles, the evaluation service depends
only on these abstract protocols, never on a concrete search backend or a
concrete metric.
"""

from typing import Protocol, Sequence

from .entities import IntentJudgments
from .value_objects import MetricResult, QuerySpecification


class QueryExecutor(Protocol):
    """
    Port for executing a query specification against a search backend.

    Implementations handle the transport (HTTP, client library, recorded
    fixtures) and translate the backend response into document ids.
    """

    def execute_query(self, spec: QuerySpecification) -> Sequence[str]:
        """
        Execute one query specification.

        Args:
            spec: The specification to execute (template, target, filter)

        Returns:
            Document ids in the exact order returned by the backend.
            Implementations must not re-sort or deduplicate them.

        Raises:
            QueryExecutionError: If the backend cannot execute the query
        """
        ...


class Metric(Protocol):
    """
    Port for scoring one ranked list against one intent's judgments.

    Implementations must be pure functions of their inputs: no side effects
    and no mutable state shared between calls, so that one instance can
    score different intents concurrently.
    """

    name: str
    """Short identifier used in reports (e.g. 'precision@10')"""

    def evaluate(
        self,
        ranked_list: Sequence[str],
        judgments: IntentJudgments,
    ) -> MetricResult:
        """
        Score a ranked list.

        Args:
            ranked_list: Document ids in ranking order
            judgments: Judgments available for the list's intent

        Returns:
            MetricResult with the score and the unjudged document ids
        """
        ...
