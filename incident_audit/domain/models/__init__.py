"""Domain models. Pure business entities."""

from incident_audit.domain.models.fields import (
    AMENDABLE_FIELDS,
    CALLER_CHANGE_TYPES,
    FIELD_LABELS,
    SYSTEM_FIELDS,
    AmendableField,
    ChangeType,
    field_label,
)
from incident_audit.domain.models.incident_log import IncidentLogRecord
from incident_audit.domain.models.revision import AmendmentEligibility, FieldChange, Revision

__all__ = [
    "AMENDABLE_FIELDS",
    "CALLER_CHANGE_TYPES",
    "FIELD_LABELS",
    "SYSTEM_FIELDS",
    "AmendableField",
    "AmendmentEligibility",
    "ChangeType",
    "FieldChange",
    "IncidentLogRecord",
    "Revision",
    "field_label",
]
