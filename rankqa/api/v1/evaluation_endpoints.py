"""
API endpoints for ranking quality evaluations.

This module defines the FastAPI routes for running evaluations. It handles
HTTP concerns and delegates to the evaluation service.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from rankqa.domain.errors import AllIntentsFailed
from rankqa.evaluation.evaluation_service import EvaluationService
from rankqa.evaluation.metrics import PrecisionAtN
from rankqa.api.v1 import schemas as api
from rankqa.api.v1.converters import api_requests_to_domain, domain_report_to_api
from rankqa.api.v1.dependencies import SEARCH_URL, get_evaluation_service

router = APIRouter()


@router.post("/evaluations/precision", response_model=api.QualityReport)
def evaluate_precision(
    request: api.PrecisionEvaluationRequest,
    service: EvaluationService = Depends(get_evaluation_service),
) -> api.QualityReport:
    """
    Run a Precision@N evaluation over the given rated requests.

    Every specification is executed against the search backend; intents
    whose query fails are listed under failures instead of aborting the run.

    Raises:
        400: Malformed requests, duplicate spec ids or conflicting judgments
        503: No intent could be executed against the search backend
    """
    try:
        requests = api_requests_to_domain(request.requests)
        report = service.run_evaluation(requests, PrecisionAtN(request.n))
        return domain_report_to_api(report)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except AllIntentsFailed as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "message": str(e),
                "failures": [f.to_dict() for f in e.failures],
            },
        )
    except RuntimeError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )


@router.get("/health")
def health_check() -> dict:
    """
    Report that the API is up and which search backend it evaluates.
    """
    return {
        "status": "ok",
        "search_url": SEARCH_URL,
    }
