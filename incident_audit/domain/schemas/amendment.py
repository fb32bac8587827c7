"""Pydantic schemas for the amendment API. Typed request/response contract per operation."""

import json
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from incident_audit.domain.models.fields import ChangeType


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class AmendmentRequest(BaseModel):
    """
    Request schema for amending one field. Field, value shape and reason are
    checked by the domain validator so that every violation is reported together.
    """

    field_changed: str = Field(..., description="Name of the amendable field")
    new_value: Any = Field(None, description="Replacement value (any JSON value)")
    change_reason: Optional[str] = Field(None, description="Human justification for the change")
    change_type: str = Field(ChangeType.AMENDMENT.value, description="amendment, correction, clarification, ...")

    @field_validator("new_value")
    @classmethod
    def new_value_must_be_json_serializable(cls, v: Any) -> Any:
        try:
            json.dumps(v)
        except (TypeError, ValueError) as e:
            raise ValueError("new_value must be JSON-serializable") from e
        return v


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class RevisionResponse(BaseModel):
    id: str
    record_id: str
    revision_number: int
    field_changed: str
    old_value: Any = None
    new_value: Any = None
    reason: str
    change_type: ChangeType
    actor_id: str
    actor_label: str
    created_at: datetime

    model_config = {"from_attributes": True}


class IncidentLogResponse(BaseModel):
    id: str
    event_id: str
    log_number: str
    occurrence: str
    action_taken: str
    callsign_from: str
    callsign_to: str
    incident_type: str
    priority: Optional[str] = None
    location: Optional[str] = None
    time_of_occurrence: Optional[str] = None
    status: Optional[str] = None
    escalation_level: Optional[int] = None
    is_closed: bool = False
    is_locked: bool = False
    is_amended: bool = False
    logged_by_user_id: Optional[str] = None
    logged_by_callsign: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AmendmentResponse(BaseModel):
    """Single coherent result of an accepted amendment."""

    revision: RevisionResponse
    record: IncidentLogResponse
    derived_revisions: List[RevisionResponse] = Field(default_factory=list)


class EligibilityResponse(BaseModel):
    can_amend: bool
    reason: str

    model_config = {"from_attributes": True}


class RevisionSummaryResponse(BaseModel):
    total_revisions: int
    last_amended_at: Optional[datetime] = None
    last_amended_by: Optional[str] = None
    change_types: List[ChangeType] = Field(default_factory=list)
    has_corrections: bool = False
    has_clarifications: bool = False

    model_config = {"from_attributes": True}


class RevisionHistoryResponse(BaseModel):
    record_id: str
    revisions: List[RevisionResponse]
    summary: RevisionSummaryResponse
