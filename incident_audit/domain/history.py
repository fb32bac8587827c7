"""Read models over a record's revision history: summary, display diffs, text export."""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from incident_audit.domain.models.fields import AMENDABLE_FIELDS, CHANGE_TYPE_LABELS, ChangeType, field_label
from incident_audit.domain.models.incident_log import IncidentLogRecord
from incident_audit.domain.models.revision import Revision
from incident_audit.domain.validators.amendment_validator import field_values_equal

DISPLAY_TIME_FORMAT = "%d/%m/%Y, %H:%M:%S"
RULE = "=" * 80
DIVIDER = "-" * 80


@dataclass(frozen=True)
class RevisionSummary:
    total_revisions: int
    last_amended_at: Optional[datetime]
    last_amended_by: Optional[str]
    change_types: Tuple[ChangeType, ...]
    has_corrections: bool
    has_clarifications: bool


@dataclass(frozen=True)
class AmendmentDiff:
    field: str
    old_value: str
    new_value: str
    changed_by: str
    changed_at: str
    reason: str
    change_type: ChangeType


def summarize_revisions(revisions: Sequence[Revision]) -> RevisionSummary:
    if not revisions:
        return RevisionSummary(
            total_revisions=0,
            last_amended_at=None,
            last_amended_by=None,
            change_types=(),
            has_corrections=False,
            has_clarifications=False,
        )
    last = max(revisions, key=lambda r: r.revision_number)
    change_types = tuple(dict.fromkeys(r.change_type for r in revisions))
    return RevisionSummary(
        total_revisions=len(revisions),
        last_amended_at=last.created_at,
        last_amended_by=last.actor_label,
        change_types=change_types,
        has_corrections=ChangeType.CORRECTION in change_types,
        has_clarifications=ChangeType.CLARIFICATION in change_types,
    )


def format_value(value: Any) -> str:
    if value is None:
        return "(empty)"
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, sort_keys=True)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_amendment_diff(revision: Revision) -> AmendmentDiff:
    return AmendmentDiff(
        field=field_label(revision.field_changed),
        old_value=format_value(revision.old_value),
        new_value=format_value(revision.new_value),
        changed_by=revision.actor_label or "Unknown",
        changed_at=revision.created_at.strftime(DISPLAY_TIME_FORMAT),
        reason=revision.reason,
        change_type=revision.change_type,
    )


def latest_values(revisions: Sequence[Revision]) -> Dict[str, Any]:
    """newValue of the most recent revision per field."""
    latest: Dict[str, Any] = {}
    for revision in sorted(revisions, key=lambda r: r.revision_number):
        latest[revision.field_changed] = revision.new_value
    return latest


def projection_drift(record: IncidentLogRecord, revisions: Sequence[Revision]) -> List[str]:
    """Amendable fields whose current value disagrees with the ledger. Empty when consistent."""
    return sorted(
        field_name
        for field_name, value in latest_values(revisions).items()
        if field_name in AMENDABLE_FIELDS
        and not field_values_equal(field_name, record.value_of(field_name), value)
    )


def export_revision_history_text(
    record: IncidentLogRecord,
    revisions: Sequence[Revision],
    generated_at: datetime,
) -> str:
    """Plain-text audit report for one record, revisions oldest first."""
    ordered = sorted(revisions, key=lambda r: r.revision_number)
    lines = [RULE, "INCIDENT LOG REVISION HISTORY", RULE, ""]

    lines.append(f"Log Number: {record.log_number}")
    lines.append(f"Incident Type: {record.incident_type}")
    lines.append(f"Event: {record.event_id}")
    lines.append(f"Time of Occurrence: {format_value(record.time_of_occurrence)}")
    lines.append(f"Logged At: {record.created_at.strftime(DISPLAY_TIME_FORMAT)}")
    lines.append(f"Logged By: {record.logged_by_callsign or record.logged_by_user_id or 'Unknown'}")
    lines.append(f"Locked: {'yes' if record.is_locked else 'no'}")
    lines.extend(["", DIVIDER, ""])

    if not ordered:
        lines.append("No amendments have been made to this log.")
    else:
        lines.append(f"Total Revisions: {len(ordered)}")
        lines.append("")
        for index, revision in enumerate(ordered):
            diff = format_amendment_diff(revision)
            lines.append(f"Revision #{revision.revision_number} - {CHANGE_TYPE_LABELS[revision.change_type]}")
            lines.append(f"Changed At: {diff.changed_at}")
            lines.append(f"Changed By: {diff.changed_by}")
            lines.append(f"Field: {diff.field}")
            lines.append(f"Old Value: {diff.old_value}")
            lines.append(f"New Value: {diff.new_value}")
            lines.append(f"Reason: {diff.reason}")
            if index < len(ordered) - 1:
                lines.extend(["", DIVIDER, ""])

    drift = projection_drift(record, ordered)
    lines.extend(["", RULE])
    lines.append(f"Generated {generated_at.isoformat()}")
    lines.append("Log entries are immutable and auditable")
    if drift:
        lines.append(f"WARNING: current values disagree with history for: {', '.join(drift)}")
    else:
        lines.append("Current values agree with revision history")
    lines.append(RULE)
    return "\n".join(lines)
