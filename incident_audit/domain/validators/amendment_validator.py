"""Validators for amendment requests. Pure functions, no infrastructure or DB access."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from incident_audit.domain.models.fields import (
    AMENDABLE_FIELDS,
    ESCALATION_LEVEL_MAX,
    ESCALATION_LEVEL_MIN,
    PRIORITIES,
    STATUSES,
    SYSTEM_FIELDS,
    AmendableField,
    ChangeType,
    field_label,
)
from incident_audit.domain.models.incident_log import IncidentLogRecord

# Change reason bounds (domain defaults; overridden from settings)
CHANGE_REASON_MIN_LENGTH = 10
CHANGE_REASON_MAX_LENGTH = 1000

NO_OP_MESSAGE = "New value is the same as the current value (no-op). No amendment needed."

FieldRule = Callable[[str, Any], Optional[str]]


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: Tuple[str, ...] = ()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp carrying a UTC offset. Returns None if not one."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def values_equal(left: Any, right: Any) -> bool:
    """Structural equality across nested dicts and lists. Booleans never equal numbers."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, dict) and isinstance(right, dict):
        if left.keys() != right.keys():
            return False
        return all(values_equal(left[k], right[k]) for k in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right))
    if type(left) is not type(right):
        return False
    return left == right


def field_values_equal(field_name: str, left: Any, right: Any) -> bool:
    """Equality as the no-op rule sees it: timestamps compare as instants."""
    if field_name == AmendableField.TIME_OF_OCCURRENCE.value:
        left_ts, right_ts = parse_timestamp(left), parse_timestamp(right)
        if left_ts is not None and right_ts is not None:
            return left_ts == right_ts
    return values_equal(left, right)


def _text(max_length: int) -> FieldRule:
    def check(label: str, value: Any) -> Optional[str]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return f"New value for {label} cannot be empty."
        if not isinstance(value, str):
            return f"New value for {label} must be text."
        if len(value) > max_length:
            return f"New value for {label} must not exceed {max_length} characters."
        return None

    return check


def _one_of(allowed: frozenset) -> FieldRule:
    def check(label: str, value: Any) -> Optional[str]:
        if not isinstance(value, str) or value not in allowed:
            return f"New value for {label} must be one of: {', '.join(sorted(allowed))}."
        return None

    return check


def _timestamp(label: str, value: Any) -> Optional[str]:
    if parse_timestamp(value) is None:
        return f"New value for {label} must be an ISO 8601 timestamp with a UTC offset."
    return None


def _escalation_level(label: str, value: Any) -> Optional[str]:
    if isinstance(value, bool) or not isinstance(value, int):
        return f"New value for {label} must be a whole number."
    if not ESCALATION_LEVEL_MIN <= value <= ESCALATION_LEVEL_MAX:
        return (
            f"New value for {label} must be between "
            f"{ESCALATION_LEVEL_MIN} and {ESCALATION_LEVEL_MAX}."
        )
    return None


FIELD_RULES: Dict[str, FieldRule] = {
    AmendableField.OCCURRENCE.value: _text(5000),
    AmendableField.ACTION_TAKEN.value: _text(5000),
    AmendableField.CALLSIGN_FROM.value: _text(64),
    AmendableField.CALLSIGN_TO.value: _text(64),
    AmendableField.INCIDENT_TYPE.value: _text(100),
    AmendableField.PRIORITY.value: _one_of(PRIORITIES),
    AmendableField.LOCATION.value: _text(255),
    AmendableField.TIME_OF_OCCURRENCE.value: _timestamp,
    AmendableField.STATUS.value: _one_of(STATUSES),
    AmendableField.ESCALATION_LEVEL.value: _escalation_level,
}


class RequestValidator:
    """
    Checks a proposed amendment against every rule and reports all violations at once.
    Rules: field in allow-list, reason present and bounded, value shape, caller change type,
    and the value must differ structurally from the record's current value.
    """

    def __init__(
        self,
        reason_min_length: int = CHANGE_REASON_MIN_LENGTH,
        reason_max_length: int = CHANGE_REASON_MAX_LENGTH,
    ) -> None:
        if reason_min_length > reason_max_length:
            raise ValueError("reason_min_length must not exceed reason_max_length")
        self._reason_min = reason_min_length
        self._reason_max = reason_max_length

    def validate(
        self,
        field_changed: str,
        new_value: Any,
        change_reason: Any,
        *,
        current_record: Optional[IncidentLogRecord] = None,
        change_type: Any = None,
    ) -> ValidationResult:
        errors = []

        field_known = isinstance(field_changed, str) and field_changed in AMENDABLE_FIELDS
        if not isinstance(field_changed, str):
            errors.append("Field name must be a string.")
        elif not field_known:
            if field_changed in SYSTEM_FIELDS:
                errors.append(f'Field "{field_changed}" is a system field and cannot be amended.')
            else:
                errors.append(f'Field "{field_changed}" cannot be amended.')

        errors.extend(self._reason_errors(change_reason))

        if change_type is not None:
            errors.extend(_change_type_errors(change_type))

        if field_known:
            shape_error = FIELD_RULES[field_changed](field_label(field_changed), new_value)
            if shape_error:
                errors.append(shape_error)
            elif current_record is not None and field_values_equal(
                field_changed, current_record.value_of(field_changed), new_value
            ):
                errors.append(NO_OP_MESSAGE)

        return ValidationResult(is_valid=not errors, errors=tuple(errors))

    def _reason_errors(self, change_reason: Any) -> Tuple[str, ...]:
        if not isinstance(change_reason, str) or not change_reason.strip():
            return ("Change reason is required for all amendments.",)
        length = len(change_reason.strip())
        if length < self._reason_min:
            return (f"Change reason must be substantive (at least {self._reason_min} characters).",)
        if length > self._reason_max:
            return (f"Change reason must not exceed {self._reason_max} characters.",)
        return ()


def _change_type_errors(change_type: Any) -> Tuple[str, ...]:
    try:
        parsed = ChangeType(change_type)
    except ValueError:
        return (f'Change type "{change_type}" is not recognised.',)
    if parsed is ChangeType.RECLASSIFICATION:
        return ('Change type "reclassification" is reserved for automatic changes.',)
    return ()
