"""
Converters between domain objects and API schemas.

This module centralizes all conversion logic between the domain layer
and the API layer, maintaining clean separation of concerns.
"""

from typing import List

from rankqa.domain import entities as domain
from rankqa.domain import value_objects as domain_vo
from rankqa.api.v1 import schemas as api


def api_spec_to_domain(spec: api.QuerySpecification) -> domain_vo.QuerySpecification:
    return domain_vo.QuerySpecification(
        spec_id=spec.spec_id,
        target_collection=spec.target_collection,
        query_template=spec.query_template,
        filter=spec.filter,
    )


def api_requests_to_domain(requests: List[api.RatedRequest]) -> List[domain.RatedRequest]:
    """
    Convert API rated requests to domain RatedRequest entities.

    Raises:
        ValueError: If a specification or judgment is malformed
    """
    return [
        domain.RatedRequest(
            intent_id=request.intent_id,
            spec=api_spec_to_domain(request.spec),
            ratings=dict(request.ratings),
        )
        for request in requests
    ]


def domain_report_to_api(report: domain_vo.QualityReport) -> api.QualityReport:
    """
    Convert a domain QualityReport to its API model.
    """
    return api.QualityReport(**report.to_dict())
