"""
Request and response bodies of the evaluation API.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class QuerySpecification(BaseModel):
    """
    How a query intent is executed against the search backend.
    """
    spec_id: int = Field(description="User supplied id, unique within one evaluation")
    target_collection: str = Field(min_length=1, description="Index or collection to query")
    query_template: Dict[str, Any] = Field(description="Query body understood by the backend")
    filter: Dict[str, Any] | None = Field(default=None, description="Optional extra filter")


class RatedRequest(BaseModel):
    """
    One query intent with its specification and judged documents.
    """
    intent_id: str = Field(min_length=1, description="Id of the information need")
    spec: QuerySpecification
    ratings: Dict[str, str] = Field(
        default_factory=dict,
        description="document_id -> RELEVANT or IRRELEVANT (any case); unlisted documents are unknown",
    )


# request body of post /evaluations/precision
class PrecisionEvaluationRequest(BaseModel):
    """
    Request body for POST /evaluations/precision.
    """
    n: int = Field(default=10, ge=1, description="Number of top results to evaluate")
    requests: List[RatedRequest] = Field(description="Rated requests to evaluate")


class EvalResult(BaseModel):
    intent_id: str
    spec_id: int
    score: float | None = Field(description="Null when no considered result was judged")
    defined: bool
    unknown_doc_ids: List[str] = Field(default_factory=list)
    hits_considered: int


class FailedIntent(BaseModel):
    intent_id: str
    spec_id: int
    reason: str


class QualityReport(BaseModel):
    """
    API representation of a QualityReport.
    """
    metric: str
    aggregate_score: float | None
    aggregate_defined: bool
    cancelled: bool = False
    statistics: Dict[str, float] = Field(default_factory=dict)
    results: List[EvalResult] = Field(default_factory=list)
    failures: List[FailedIntent] = Field(default_factory=list)
