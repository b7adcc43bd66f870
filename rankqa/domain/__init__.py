"""
Domain layer - Core evaluation model.

This layer contains the entities, value objects and error kinds of the
ranking quality evaluation, and defines the ports (interfaces) that the
infrastructure and evaluation layers implement.

It has NO dependencies on external frameworks, search backends or APIs.
"""

from .entities import IntentJudgments, JudgmentSet, RatedRequest
from .value_objects import (
    EvalResult,
    FailedIntent,
    JudgedDocument,
    MetricResult,
    QualityReport,
    QuerySpecification,
    Rating,
    UNDEFINED_PRECISION,
    UNKNOWN,
)

__all__ = [
    # Entities
    "IntentJudgments",
    "JudgmentSet",
    "RatedRequest",
    # Value Objects
    "EvalResult",
    "FailedIntent",
    "JudgedDocument",
    "MetricResult",
    "QualityReport",
    "QuerySpecification",
    "Rating",
    # Sentinels
    "UNDEFINED_PRECISION",
    "UNKNOWN",
]
