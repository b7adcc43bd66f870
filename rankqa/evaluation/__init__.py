"""
Evaluation module: ranked-list metrics and the evaluation run orchestrator.
"""

from .metrics import PrecisionAtN, aggregate_statistics
from .evaluation_service import EvaluationService, RunState

__all__ = [
    "PrecisionAtN",
    "aggregate_statistics",
    "EvaluationService",
    "RunState",
]
