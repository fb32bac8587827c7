"""Immutable revision entry and transient eligibility value. Domain-level immutability."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping

from incident_audit.domain.exceptions import InvalidRecordShapeError
from incident_audit.domain.models.fields import AMENDABLE_FIELDS, ChangeType


@dataclass(frozen=True)
class Revision:
    """
    One accepted change to one field of an incident log: who, what, when (UTC), why.
    actor_label is the label that was true at write time and is never re-resolved.
    """

    id: str
    record_id: str
    revision_number: int
    field_changed: str
    old_value: Any
    new_value: Any
    reason: str
    change_type: ChangeType
    actor_id: str
    actor_label: str
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Persisted logical shape, JSON-ready."""
        return {
            "id": self.id,
            "record_id": self.record_id,
            "revision_number": self.revision_number,
            "field_changed": self.field_changed,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "reason": self.reason,
            "change_type": self.change_type.value,
            "actor_id": self.actor_id,
            "actor_label": self.actor_label,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Revision":
        """Build from a storage row; fails loudly on shape mismatch."""
        try:
            field_changed = row["field_changed"]
            revision_number = row["revision_number"]
            created_at = row["created_at"]
            change_type = ChangeType(row["change_type"])
            revision = cls(
                id=str(row["id"]),
                record_id=str(row["record_id"]),
                revision_number=revision_number,
                field_changed=field_changed,
                old_value=row.get("old_value"),
                new_value=row.get("new_value"),
                reason=row["reason"],
                change_type=change_type,
                actor_id=str(row["actor_id"]),
                actor_label=row["actor_label"],
                created_at=created_at,
            )
        except (KeyError, ValueError) as e:
            raise InvalidRecordShapeError(f"Revision row does not match contract: {e}") from e
        if field_changed not in AMENDABLE_FIELDS:
            raise InvalidRecordShapeError(f"Revision row targets non-amendable field '{field_changed}'")
        if isinstance(revision_number, bool) or not isinstance(revision_number, int) or revision_number < 1:
            raise InvalidRecordShapeError("Revision row has an invalid revision_number")
        if not isinstance(created_at, datetime):
            raise InvalidRecordShapeError("Revision row created_at must be a datetime")
        return revision


@dataclass(frozen=True)
class AmendmentEligibility:
    """Whether a caller may amend a record, with a reason fit to show the user. Never persisted."""

    can_amend: bool
    reason: str

    @classmethod
    def allowed(cls, reason: str) -> "AmendmentEligibility":
        return cls(can_amend=True, reason=reason)

    @classmethod
    def denied(cls, reason: str) -> "AmendmentEligibility":
        return cls(can_amend=False, reason=reason)


@dataclass(frozen=True)
class FieldChange:
    """A single field change planned for the projection, with the value it replaces."""

    field_name: str
    old_value: Any
    new_value: Any
    change_type: ChangeType
    reason: str

    @property
    def is_derived(self) -> bool:
        """True for changes the engine makes on its own (reclassification)."""
        return self.change_type is ChangeType.RECLASSIFICATION
