"""Domain tests: record and revision shapes, strict row parsing."""

from datetime import datetime, timezone

import pytest

from incident_audit.domain.exceptions import InvalidRecordShapeError
from incident_audit.domain.models.fields import ChangeType
from incident_audit.domain.models.incident_log import IncidentLogRecord
from incident_audit.domain.models.revision import FieldChange, Revision

NOW = datetime(2024, 6, 1, 16, 0, tzinfo=timezone.utc)


def _revision_row(**overrides):
    row = {
        "id": "rev-1",
        "record_id": "log-1",
        "revision_number": 1,
        "field_changed": "location",
        "old_value": "Main stage",
        "new_value": "North gate",
        "reason": "Location confirmed by steward",
        "change_type": "correction",
        "actor_id": "user-1",
        "actor_label": "Control",
        "created_at": NOW,
    }
    row.update(overrides)
    return row


def test_value_of_only_reads_amendable_fields(record):
    assert record.value_of("location") == "Main stage"
    with pytest.raises(KeyError):
        record.value_of("log_number")


def test_with_changes_marks_record_amended(record):
    updated = record.with_changes({"location": "North gate"}, NOW)
    assert updated.location == "North gate"
    assert updated.is_amended is True
    assert updated.updated_at == NOW
    assert record.location == "Main stage"


def test_with_changes_rejects_system_fields(record):
    with pytest.raises(KeyError):
        record.with_changes({"is_locked": True}, NOW)


def test_record_from_row_round_trip(record):
    assert IncidentLogRecord.from_row(record.to_dict()) == record


def test_record_from_row_accepts_integer_ids(record):
    row = {**record.to_dict(), "id": 42, "is_closed": None}
    parsed = IncidentLogRecord.from_row(row)
    assert parsed.id == "42"
    assert parsed.is_closed is False


@pytest.mark.parametrize(
    "overrides",
    [
        {"occurrence": None},
        {"created_at": "2024-06-01"},
        {"escalation_level": "2"},
        {"is_locked": "yes"},
        {"event_id": True},
    ],
)
def test_record_from_row_rejects_bad_shapes(record, overrides):
    with pytest.raises(InvalidRecordShapeError):
        IncidentLogRecord.from_row({**record.to_dict(), **overrides})


def test_revision_from_row():
    revision = Revision.from_row(_revision_row())
    assert revision.change_type is ChangeType.CORRECTION
    assert revision.to_dict()["created_at"] == NOW.isoformat()


@pytest.mark.parametrize(
    "overrides",
    [
        {"change_type": "rewrite"},
        {"field_changed": "log_number"},
        {"revision_number": 0},
        {"created_at": "today"},
    ],
)
def test_revision_from_row_rejects_bad_shapes(overrides):
    with pytest.raises(InvalidRecordShapeError):
        Revision.from_row(_revision_row(**overrides))


def test_revision_from_row_missing_column():
    row = _revision_row()
    del row["reason"]
    with pytest.raises(InvalidRecordShapeError):
        Revision.from_row(row)


def test_only_reclassification_changes_are_derived():
    change = FieldChange("incident_type", "Security", "Ejection", ChangeType.RECLASSIFICATION, "auto")
    assert change.is_derived
    assert not FieldChange("location", "a", "b", ChangeType.AMENDMENT, "because").is_derived
