"""
Value objects for the domain layer.

Value objects are immutable objects that represent descriptive aspects
of the domain with no conceptual identity.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .errors import MalformedJudgment, MalformedSpecification


class Rating(Enum):
    """
    Label a human assigned to a (query intent, document) pair.

    RELEVANT: documents expected in result sets for the intent.
    IRRELEVANT: documents not expected or unrelated to the intent.
    """

    RELEVANT = "RELEVANT"
    IRRELEVANT = "IRRELEVANT"

    @classmethod
    def parse(cls, label: Union[str, "Rating"]) -> "Rating":
        """Parse a stored label such as 'relevant' or 'IRRELEVANT'."""
        if isinstance(label, Rating):
            return label
        if not isinstance(label, str):
            raise MalformedJudgment(f"rating must be a string label, got {label!r}")
        try:
            return cls[label.strip().upper()]
        except KeyError:
            valid = [r.value for r in cls]
            raise MalformedJudgment(
                f"rating must be one of {valid}, got '{label}'"
            ) from None


class Unknown(Enum):
    """Sentinel returned for a document nobody judged."""

    UNKNOWN = "unknown"

    def __repr__(self) -> str:
        return "UNKNOWN"


UNKNOWN = Unknown.UNKNOWN


class UndefinedPrecision(Enum):
    """Score of a result list that contained no judged documents at all."""

    UNDEFINED = "undefined"

    def __repr__(self) -> str:
        return "UNDEFINED_PRECISION"


UNDEFINED_PRECISION = UndefinedPrecision.UNDEFINED

Score = Union[float, UndefinedPrecision]


def is_defined(score: Score) -> bool:
    """Check whether a score carries a numeric value."""
    return score is not UNDEFINED_PRECISION


@dataclass(frozen=True)
class JudgedDocument:
    """A single relevance judgment for one document."""

    document_id: str
    """Id of the judged document, as returned by the search backend"""

    rating: Rating
    """Judgment label"""

    def __post_init__(self) -> None:
        """Validate judgment constraints."""
        if not isinstance(self.document_id, str) or not self.document_id:
            raise MalformedJudgment(
                f"document_id must be a non-empty string, got {self.document_id!r}"
            )
        object.__setattr__(self, "rating", Rating.parse(self.rating))


@dataclass(frozen=True, eq=False)
class QuerySpecification:
    """
    Binds a query intent to an executable query.

    Every intent mapped to this specification is executed with the query
    template against the target collection. An optional filter restricts
    results further in the target system. Template and filter are opaque
    to the evaluation engine and only interpreted by the search adapter.

    Specifications compare and hash by spec_id only.
    """

    spec_id: int
    """User supplied id for easier referencing"""

    target_collection: str
    """Index or collection the query is sent to"""

    query_template: Mapping[str, Any]
    """Query definition understood by the search backend"""

    filter: Optional[Mapping[str, Any]] = None
    """Extra filter applied on top of the template, None for no filtering"""

    def __post_init__(self) -> None:
        """Validate specification constraints."""
        if isinstance(self.spec_id, bool) or not isinstance(self.spec_id, int):
            raise MalformedSpecification(
                f"spec_id must be an integer, got {self.spec_id!r}"
            )

        if not isinstance(self.target_collection, str) or not self.target_collection.strip():
            raise MalformedSpecification(
                f"Specification {self.spec_id}: target_collection cannot be empty"
            )

        if not self.query_template:
            raise MalformedSpecification(
                f"Specification {self.spec_id}: query_template is required"
            )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QuerySpecification):
            return NotImplemented
        return self.spec_id == other.spec_id

    def __hash__(self) -> int:
        return hash(self.spec_id)

    def has_filter(self) -> bool:
        """Check if a filter is applied beyond the template."""
        return bool(self.filter)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QuerySpecification":
        """Build a specification from a JSON-shaped record."""
        try:
            return cls(
                spec_id=data["spec_id"],
                target_collection=data["target_collection"],
                query_template=data.get("query_template"),
                filter=data.get("filter"),
            )
        except KeyError as e:
            raise MalformedSpecification(f"Specification is missing field {e}") from None


@dataclass(frozen=True)
class MetricResult:
    """
    Outcome of scoring one ranked list against one intent's judgments.
    """

    score: Score
    """Metric value, or UNDEFINED_PRECISION when nothing considered was judged"""

    unknown_doc_ids: Tuple[str, ...] = ()
    """Unjudged ids in order of first occurrence, duplicates preserved"""

    good: int = 0
    """Considered documents judged relevant"""

    bad: int = 0
    """Considered documents judged irrelevant"""

    @property
    def is_defined(self) -> bool:
        return is_defined(self.score)


@dataclass(frozen=True)
class EvalResult:
    """Score for one executed rated request."""

    intent_id: str
    spec_id: int
    score: Score
    unknown_doc_ids: Tuple[str, ...] = ()
    hits_considered: int = 0

    @property
    def is_defined(self) -> bool:
        return is_defined(self.score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent_id": self.intent_id,
            "spec_id": self.spec_id,
            "score": self.score if self.is_defined else None,
            "defined": self.is_defined,
            "unknown_doc_ids": list(self.unknown_doc_ids),
            "hits_considered": self.hits_considered,
        }


@dataclass(frozen=True)
class FailedIntent:
    """A rated request whose query could not be executed."""

    intent_id: str
    spec_id: int
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent_id": self.intent_id,
            "spec_id": self.spec_id,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class QualityReport:
    """
    Result of one evaluation run.

    Results and failures are ordered like the rated requests that produced
    them, independent of the order in which queries completed.
    """

    metric_name: str
    """Name of the metric that produced the scores (e.g. 'precision@10')"""

    results: Tuple[EvalResult, ...]
    """Per-request scores for every request that executed"""

    failures: Tuple[FailedIntent, ...] = ()
    """Requests whose query failed, timed out or was never dispatched"""

    aggregate_score: Score = UNDEFINED_PRECISION
    """Mean of all defined per-request scores"""

    statistics: Mapping[str, float] = field(default_factory=dict)
    """Summary statistics over the defined per-request scores, read-only"""

    cancelled: bool = False
    """True if the run was cancelled before every query was dispatched"""

    def __post_init__(self) -> None:
        object.__setattr__(self, "statistics", MappingProxyType(dict(self.statistics)))

    @property
    def aggregate_defined(self) -> bool:
        return is_defined(self.aggregate_score)

    @property
    def failed_intent_ids(self) -> Tuple[str, ...]:
        return tuple(f.intent_id for f in self.failures)

    def unknown_doc_ids_by_intent(self) -> Dict[str, Tuple[str, ...]]:
        """Collect unjudged ids per intent, merged across its specifications."""
        merged: Dict[str, list] = {}
        for result in self.results:
            seen = merged.setdefault(result.intent_id, [])
            for doc_id in result.unknown_doc_ids:
                if doc_id not in seen:
                    seen.append(doc_id)
        return {intent_id: tuple(ids) for intent_id, ids in merged.items()}

    def to_dict(self) -> Dict[str, Any]:
        """Render the report as a structured record for reporting tools."""
        return {
            "metric": self.metric_name,
            "aggregate_score": self.aggregate_score if self.aggregate_defined else None,
            "aggregate_defined": self.aggregate_defined,
            "cancelled": self.cancelled,
            "statistics": dict(self.statistics),
            "results": [r.to_dict() for r in self.results],
            "failures": [f.to_dict() for f in self.failures],
        }
