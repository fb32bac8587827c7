"""Current-state projection of a logged incident. Pure business semantics, no ORM."""

from dataclasses import MISSING, asdict, dataclass, fields, replace
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from incident_audit.domain.exceptions import InvalidRecordShapeError
from incident_audit.domain.models.fields import AMENDABLE_FIELDS


@dataclass(frozen=True)
class IncidentLogRecord:
    """
    One logged incident as it currently stands.
    Created outside this engine; afterwards changed only by the projection updater.
    """

    id: str
    event_id: str
    log_number: str
    occurrence: str
    action_taken: str
    callsign_from: str
    callsign_to: str
    incident_type: str
    created_at: datetime
    updated_at: datetime
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

    def value_of(self, field_name: str) -> Any:
        """Current value of an amendable field."""
        if field_name not in AMENDABLE_FIELDS:
            raise KeyError(field_name)
        return getattr(self, field_name)

    def with_changes(self, changes: Mapping[str, Any], updated_at: datetime) -> "IncidentLogRecord":
        """Return a copy with the given amendable fields replaced and the record marked amended."""
        unknown = set(changes) - AMENDABLE_FIELDS
        if unknown:
            raise KeyError(", ".join(sorted(unknown)))
        return replace(self, **dict(changes), updated_at=updated_at, is_amended=True)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "IncidentLogRecord":
        """
        Build a record from an untyped storage row.
        Raises InvalidRecordShapeError instead of trusting a row that does not fit.
        """
        known = {f.name for f in fields(cls)}
        required = {f.name for f in fields(cls) if f.default is MISSING}
        missing = sorted(name for name in required if row.get(name) is None)
        if missing:
            raise InvalidRecordShapeError(
                f"Incident log row is missing required fields: {', '.join(missing)}"
            )
        data = {name: row[name] for name in known if name in row}
        data["id"] = _as_identifier("id", data["id"])
        data["event_id"] = _as_identifier("event_id", data["event_id"])
        for name in ("created_at", "updated_at"):
            if not isinstance(data[name], datetime):
                raise InvalidRecordShapeError(f"Incident log field '{name}' must be a datetime")
        if data.get("escalation_level") is not None and (
            isinstance(data["escalation_level"], bool) or not isinstance(data["escalation_level"], int)
        ):
            raise InvalidRecordShapeError("Incident log field 'escalation_level' must be an integer")
        for name in ("is_closed", "is_locked", "is_amended"):
            if name in data:
                if data[name] is None:
                    data[name] = False
                elif not isinstance(data[name], bool):
                    raise InvalidRecordShapeError(f"Incident log field '{name}' must be a boolean")
        return cls(**data)


def _as_identifier(name: str, value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise InvalidRecordShapeError(f"Incident log field '{name}' must be a string or integer id")
    return str(value)
