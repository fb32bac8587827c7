"""Domain validators. Pure validation functions."""

from incident_audit.domain.validators.amendment_validator import (
    NO_OP_MESSAGE,
    RequestValidator,
    ValidationResult,
    field_values_equal,
    parse_timestamp,
    values_equal,
)

__all__ = [
    "NO_OP_MESSAGE",
    "RequestValidator",
    "ValidationResult",
    "field_values_equal",
    "parse_timestamp",
    "values_equal",
]
