"""Domain tests: amendment request rules, value shapes and the no-op check."""

import pytest

from incident_audit.domain.validators.amendment_validator import (
    NO_OP_MESSAGE,
    RequestValidator,
    field_values_equal,
    parse_timestamp,
    values_equal,
)

REASON = "Callsign was misheard on the radio"


@pytest.fixture
def validator():
    return RequestValidator()


def test_valid_amendment_passes(validator, record):
    result = validator.validate("location", "North gate", REASON, current_record=record, change_type="correction")
    assert result.is_valid
    assert result.errors == ()


def test_unknown_field_rejected(validator):
    result = validator.validate("colour", "red", REASON)
    assert not result.is_valid
    assert result.errors == ('Field "colour" cannot be amended.',)


def test_system_field_rejected(validator):
    result = validator.validate("log_number", "LOG-9", REASON)
    assert result.errors == ('Field "log_number" is a system field and cannot be amended.',)


@pytest.mark.parametrize("reason", [None, "", "   ", 42])
def test_reason_required(validator, reason):
    result = validator.validate("location", "North gate", reason)
    assert result.errors == ("Change reason is required for all amendments.",)


def test_reason_too_short(validator):
    result = validator.validate("location", "North gate", "  typo  ")
    assert result.errors == ("Change reason must be substantive (at least 10 characters).",)


def test_reason_too_long():
    validator = RequestValidator(reason_min_length=5, reason_max_length=20)
    result = validator.validate("location", "North gate", "x" * 21)
    assert result.errors == ("Change reason must not exceed 20 characters.",)


def test_all_errors_reported_together(validator, record):
    result = validator.validate("priority", "critical", "", current_record=record, change_type="rewrite")
    assert len(result.errors) == 3
    assert "Change reason is required for all amendments." in result.errors
    assert 'Change type "rewrite" is not recognised.' in result.errors
    assert "New value for Priority must be one of: high, low, medium, urgent." in result.errors


def test_reclassification_reserved_for_engine(validator):
    result = validator.validate("incident_type", "Medical", REASON, change_type="reclassification")
    assert result.errors == ('Change type "reclassification" is reserved for automatic changes.',)


@pytest.mark.parametrize(
    "field_name, value, message",
    [
        ("occurrence", "   ", "New value for Occurrence Description cannot be empty."),
        ("action_taken", None, "New value for Action Taken cannot be empty."),
        ("callsign_from", 7, "New value for Callsign From must be text."),
        ("callsign_to", "C" * 65, "New value for Callsign To must not exceed 64 characters."),
        ("status", "pending", "New value for Status must be one of: closed, in_progress, open, resolved."),
        ("escalation_level", 6, "New value for Escalation Level must be between 0 and 5."),
        ("escalation_level", True, "New value for Escalation Level must be a whole number."),
        (
            "time_of_occurrence",
            "2024-06-01T14:25:00",
            "New value for Time of Occurrence must be an ISO 8601 timestamp with a UTC offset.",
        ),
    ],
)
def test_value_shape_errors(validator, field_name, value, message):
    result = validator.validate(field_name, value, REASON)
    assert result.errors == (message,)


def test_no_op_rejected(validator, record):
    result = validator.validate("location", "Main stage", REASON, current_record=record)
    assert result.errors == (NO_OP_MESSAGE,)


def test_no_op_on_timestamp_compares_instants(validator, record):
    result = validator.validate(
        "time_of_occurrence", "2024-06-01T15:25:00+01:00", REASON, current_record=record
    )
    assert result.errors == (NO_OP_MESSAGE,)


def test_no_op_not_checked_without_record(validator):
    assert validator.validate("location", "Main stage", REASON).is_valid


def test_min_length_above_max_is_a_configuration_error():
    with pytest.raises(ValueError):
        RequestValidator(reason_min_length=50, reason_max_length=10)


def test_values_equal_is_structural():
    assert values_equal({"a": [1, {"b": 2}]}, {"a": [1, {"b": 2}]})
    assert not values_equal({"a": [1, 2]}, {"a": [2, 1]})
    assert values_equal(1, 1.0)
    assert not values_equal(True, 1)
    assert not values_equal("1", 1)
    assert values_equal(None, None)


def test_parse_timestamp_accepts_z_suffix():
    assert parse_timestamp("2024-06-01T14:25:00Z") == parse_timestamp("2024-06-01T14:25:00+00:00")
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp(None) is None


def test_field_values_equal_only_normalises_timestamps():
    assert field_values_equal("time_of_occurrence", "2024-06-01T14:25:00Z", "2024-06-01T14:25:00+00:00")
    assert not field_values_equal("location", "Gate A", "gate a")


@pytest.mark.parametrize("field_changed", [["location"], {"location": 1}, None, 7])
def test_non_string_field_name_is_reported_not_raised(validator, field_changed):
    result = validator.validate(field_changed, "x", REASON)
    assert not result.is_valid
    assert result.errors == ("Field name must be a string.",)
