"""Domain layer: models, schemas, validators, classification, history. Pure business logic only."""

from incident_audit.domain.classification import (
    Classification,
    ClassificationPolicy,
    KeywordEjectionPolicy,
)
from incident_audit.domain.exceptions import DomainError, InvalidRecordShapeError
from incident_audit.domain.models import (
    AmendableField,
    AmendmentEligibility,
    ChangeType,
    FieldChange,
    IncidentLogRecord,
    Revision,
)
from incident_audit.domain.validators import RequestValidator, ValidationResult

__all__ = [
    "AmendableField",
    "AmendmentEligibility",
    "ChangeType",
    "Classification",
    "ClassificationPolicy",
    "DomainError",
    "FieldChange",
    "IncidentLogRecord",
    "InvalidRecordShapeError",
    "KeywordEjectionPolicy",
    "RequestValidator",
    "Revision",
    "ValidationResult",
]
