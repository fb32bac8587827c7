"""Amendable fields, change types and their display labels. Pure data."""

from enum import Enum
from typing import Dict, FrozenSet


class AmendableField(str, Enum):
    """Fields of an incident log that an amendment may target."""

    OCCURRENCE = "occurrence"
    ACTION_TAKEN = "action_taken"
    CALLSIGN_FROM = "callsign_from"
    CALLSIGN_TO = "callsign_to"
    INCIDENT_TYPE = "incident_type"
    PRIORITY = "priority"
    LOCATION = "location"
    TIME_OF_OCCURRENCE = "time_of_occurrence"
    STATUS = "status"
    ESCALATION_LEVEL = "escalation_level"


class ChangeType(str, Enum):
    AMENDMENT = "amendment"
    CORRECTION = "correction"
    CLARIFICATION = "clarification"
    STATUS_CHANGE = "status_change"
    ESCALATION = "escalation"
    RECLASSIFICATION = "reclassification"  # written by the engine only


AMENDABLE_FIELDS: FrozenSet[str] = frozenset(f.value for f in AmendableField)

# Never amendable, whatever the caller sends.
SYSTEM_FIELDS: FrozenSet[str] = frozenset(
    {
        "id",
        "event_id",
        "log_number",
        "created_at",
        "updated_at",
        "logged_by_user_id",
        "logged_by_callsign",
        "is_locked",
        "is_amended",
    }
)

CALLER_CHANGE_TYPES: FrozenSet[ChangeType] = frozenset(
    set(ChangeType) - {ChangeType.RECLASSIFICATION}
)

FIELD_LABELS: Dict[str, str] = {
    AmendableField.OCCURRENCE.value: "Occurrence Description",
    AmendableField.ACTION_TAKEN.value: "Action Taken",
    AmendableField.CALLSIGN_FROM.value: "Callsign From",
    AmendableField.CALLSIGN_TO.value: "Callsign To",
    AmendableField.INCIDENT_TYPE.value: "Incident Type",
    AmendableField.PRIORITY.value: "Priority",
    AmendableField.LOCATION.value: "Location",
    AmendableField.TIME_OF_OCCURRENCE.value: "Time of Occurrence",
    AmendableField.STATUS.value: "Status",
    AmendableField.ESCALATION_LEVEL.value: "Escalation Level",
}

CHANGE_TYPE_LABELS: Dict[ChangeType, str] = {
    ChangeType.AMENDMENT: "Amendment",
    ChangeType.CORRECTION: "Correction",
    ChangeType.CLARIFICATION: "Clarification",
    ChangeType.STATUS_CHANGE: "Status Change",
    ChangeType.ESCALATION: "Escalation",
    ChangeType.RECLASSIFICATION: "Reclassification",
}

PRIORITIES: FrozenSet[str] = frozenset({"low", "medium", "high", "urgent"})
STATUSES: FrozenSet[str] = frozenset({"open", "in_progress", "resolved", "closed"})
ESCALATION_LEVEL_MIN = 0
ESCALATION_LEVEL_MAX = 5


def field_label(field_name: str) -> str:
    return FIELD_LABELS.get(field_name, field_name)
