"""Incident log amendment API: submit amendments, read revision history, check eligibility."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from incident_audit.api.dependencies import (
    get_amendment_service,
    get_correlation_id,
    require_actor,
)
from incident_audit.application.amendment_service import AmendmentResult, AmendmentService
from incident_audit.domain.history import summarize_revisions
from incident_audit.domain.schemas.amendment import (
    AmendmentRequest,
    AmendmentResponse,
    EligibilityResponse,
    IncidentLogResponse,
    RevisionHistoryResponse,
    RevisionResponse,
    RevisionSummaryResponse,
)
from incident_audit.security.identity import Actor

router = APIRouter()


def _to_response(result: AmendmentResult) -> AmendmentResponse:
    return AmendmentResponse(
        revision=RevisionResponse.model_validate(result.revision),
        record=IncidentLogResponse.model_validate(result.record),
        derived_revisions=[RevisionResponse.model_validate(r) for r in result.derived_revisions],
    )


@router.post("/{record_id}/amendments", response_model=AmendmentResponse, status_code=201)
async def submit_amendment(
    record_id: str,
    body: AmendmentRequest,
    actor: Annotated[Actor, Depends(require_actor)],
    correlation_id: Annotated[str, Depends(get_correlation_id)],
    service: Annotated[AmendmentService, Depends(get_amendment_service)],
):
    """Amend one field of a logged incident. Errors map to 401/403/404/422/500 in main."""
    result = await service.submit_amendment(
        record_id,
        actor=actor,
        field_changed=body.field_changed,
        new_value=body.new_value,
        change_reason=body.change_reason,
        change_type=body.change_type,
        correlation_id=correlation_id or None,
    )
    return _to_response(result)


@router.get("/{record_id}", response_model=IncidentLogResponse)
async def get_incident_log(
    record_id: str,
    actor: Annotated[Actor, Depends(require_actor)],
    service: Annotated[AmendmentService, Depends(get_amendment_service)],
):
    """Current state of the record; what real-time subscribers re-fetch after a change."""
    record = await service.get_record(record_id, actor)
    return IncidentLogResponse.model_validate(record)


@router.get("/{record_id}/revisions", response_model=RevisionHistoryResponse)
async def list_revisions(
    record_id: str,
    actor: Annotated[Actor, Depends(require_actor)],
    service: Annotated[AmendmentService, Depends(get_amendment_service)],
):
    """Revision history, oldest first, with a summary."""
    revisions = await service.list_revisions(record_id, actor)
    return RevisionHistoryResponse(
        record_id=record_id,
        revisions=[RevisionResponse.model_validate(r) for r in revisions],
        summary=RevisionSummaryResponse.model_validate(summarize_revisions(revisions)),
    )


@router.get("/{record_id}/revisions/export", response_class=PlainTextResponse)
async def export_revisions(
    record_id: str,
    actor: Annotated[Actor, Depends(require_actor)],
    service: Annotated[AmendmentService, Depends(get_amendment_service)],
):
    """Plain-text audit report of the record and its revisions."""
    return PlainTextResponse(await service.export_revision_history(record_id, actor))


@router.get("/{record_id}/amendment-eligibility", response_model=EligibilityResponse)
async def amendment_eligibility(
    record_id: str,
    actor: Annotated[Actor, Depends(require_actor)],
    service: Annotated[AmendmentService, Depends(get_amendment_service)],
):
    """Whether the caller may amend this record, and why."""
    eligibility = await service.check_amendment_eligibility(record_id, actor)
    return EligibilityResponse.model_validate(eligibility)
