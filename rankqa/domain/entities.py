"""
Domain entities for the ranking quality evaluation.

Entities are objects with a unique identity that runs through time and
different representations. A rated request is identified by its intent and
specification; the judgment set is the read-only store of every judgment
supplied for a run.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Sequence, Tuple, Union

from .errors import MalformedJudgment
from .value_objects import (
    JudgedDocument,
    QuerySpecification,
    Rating,
    Unknown,
    UNKNOWN,
)

RatingInput = Union[Mapping[str, Union[Rating, str]], Iterable[JudgedDocument]]


def _collect_ratings(intent_id: str, ratings: RatingInput) -> Dict[str, Rating]:
    if isinstance(ratings, Mapping):
        documents = [JudgedDocument(doc_id, rating) for doc_id, rating in ratings.items()]
    else:
        documents = list(ratings)

    collected: Dict[str, Rating] = {}
    for doc in documents:
        previous = collected.get(doc.document_id)
        if previous is not None and previous is not doc.rating:
            raise MalformedJudgment(
                f"Intent '{intent_id}': document '{doc.document_id}' rated both "
                f"{previous.value} and {doc.rating.value}"
            )
        collected[doc.document_id] = doc.rating
    return collected


@dataclass(frozen=True)
class RatedRequest:
    """
    One query intent: how to execute it and which documents were judged.

    Only judged documents appear in ratings. A document missing from the
    mapping is unknown, never implicitly irrelevant.
    """

    intent_id: str
    """Id of the information need"""

    spec: QuerySpecification
    """How to execute the intent against the search backend"""

    ratings: Mapping[str, Rating] = field(default_factory=dict)
    """document_id -> rating, accepts JudgedDocument sequences or string labels"""

    def __post_init__(self) -> None:
        """Validate request constraints and normalize ratings."""
        if not isinstance(self.intent_id, str) or not self.intent_id.strip():
            raise ValueError("intent_id cannot be empty")

        if not isinstance(self.spec, QuerySpecification):
            raise TypeError(
                f"spec must be a QuerySpecification, got {type(self.spec).__name__}"
            )

        collected = _collect_ratings(self.intent_id, self.ratings)
        object.__setattr__(self, "ratings", MappingProxyType(collected))

    @property
    def spec_id(self) -> int:
        return self.spec.spec_id

    def judged_documents(self) -> Tuple[JudgedDocument, ...]:
        return tuple(JudgedDocument(d, r) for d, r in self.ratings.items())


@dataclass(frozen=True)
class IntentJudgments:
    """
    Judgments for a single intent, as handed to a metric.

    relevant_ids and irrelevant_ids are two precomputed views of the same
    mapping; a document is in exactly one of them or in neither.
    """

    intent_id: str
    ratings: Mapping[str, Rating] = field(default_factory=dict)
    relevant_ids: FrozenSet[str] = field(init=False)
    irrelevant_ids: FrozenSet[str] = field(init=False)

    def __post_init__(self) -> None:
        frozen = MappingProxyType(dict(self.ratings))
        object.__setattr__(self, "ratings", frozen)
        object.__setattr__(
            self,
            "relevant_ids",
            frozenset(d for d, r in frozen.items() if r is Rating.RELEVANT),
        )
        object.__setattr__(
            self,
            "irrelevant_ids",
            frozenset(d for d, r in frozen.items() if r is Rating.IRRELEVANT),
        )

    def lookup(self, document_id: str) -> Union[Rating, Unknown]:
        return self.ratings.get(document_id, UNKNOWN)

    def __len__(self) -> int:
        return len(self.ratings)


class JudgmentSet:
    """
    Read-only store of relevance judgments keyed by (intent_id, document_id).

    Judgments for the same intent may be supplied by several rated requests
    (one per specification). They are merged; conflicting ratings for the
    same pair raise MalformedJudgment.
    """

    def __init__(
        self,
        judgments: Iterable[Tuple[str, str, Union[Rating, str]]] = (),
    ) -> None:
        """
        Build the set from (intent_id, document_id, rating) triples.

        Raises:
            MalformedJudgment: If a pair is rated twice with different labels
        """
        by_intent: Dict[str, Dict[str, Rating]] = {}
        for intent_id, document_id, rating in judgments:
            doc = JudgedDocument(document_id, rating)
            intent = by_intent.setdefault(intent_id, {})
            previous = intent.get(doc.document_id)
            if previous is not None and previous is not doc.rating:
                raise MalformedJudgment(
                    f"Intent '{intent_id}': document '{doc.document_id}' rated both "
                    f"{previous.value} and {doc.rating.value}"
                )
            intent[doc.document_id] = doc.rating

        self._intents: Dict[str, IntentJudgments] = {
            intent_id: IntentJudgments(intent_id, ratings)
            for intent_id, ratings in by_intent.items()
        }

    @classmethod
    def from_requests(cls, requests: Sequence[RatedRequest]) -> "JudgmentSet":
        """Merge the judgments carried by a sequence of rated requests."""
        return cls(
            (request.intent_id, document_id, rating)
            for request in requests
            for document_id, rating in request.ratings.items()
        )

    def for_intent(self, intent_id: str) -> IntentJudgments:
        """Return the judgments of one intent; unknown intents are empty."""
        judgments = self._intents.get(intent_id)
        if judgments is None:
            return IntentJudgments(intent_id)
        return judgments

    def lookup(self, intent_id: str, document_id: str) -> Union[Rating, Unknown]:
        """
        Look up the rating of a document for an intent.

        Returns:
            The rating, or UNKNOWN if the pair was never judged
        """
        judgments = self._intents.get(intent_id)
        if judgments is None:
            return UNKNOWN
        return judgments.lookup(document_id)

    def relevant_ids(self, intent_id: str) -> FrozenSet[str]:
        return self.for_intent(intent_id).relevant_ids

    def irrelevant_ids(self, intent_id: str) -> FrozenSet[str]:
        return self.for_intent(intent_id).irrelevant_ids

    def intent_ids(self) -> Tuple[str, ...]:
        return tuple(self._intents)

    def __contains__(self, intent_id: object) -> bool:
        return intent_id in self._intents

    def __len__(self) -> int:
        return sum(len(j) for j in self._intents.values())
