"""Domain schemas. Request/response and validation."""

from incident_audit.domain.schemas.amendment import (
    AmendmentRequest,
    AmendmentResponse,
    EligibilityResponse,
    IncidentLogResponse,
    RevisionHistoryResponse,
    RevisionResponse,
    RevisionSummaryResponse,
)

__all__ = [
    "AmendmentRequest",
    "AmendmentResponse",
    "EligibilityResponse",
    "IncidentLogResponse",
    "RevisionHistoryResponse",
    "RevisionResponse",
    "RevisionSummaryResponse",
]
