"""Applies accepted changes to the record's current-state row, including deterministic reclassification."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Sequence

from incident_audit.application.exceptions import PersistenceFailureError, StorageError
from incident_audit.application.incident_log_store import AmendmentUnitOfWork
from incident_audit.domain.classification import ClassificationPolicy
from incident_audit.domain.models.fields import AmendableField, ChangeType
from incident_audit.domain.models.incident_log import IncidentLogRecord
from incident_audit.domain.models.revision import FieldChange
from incident_audit.domain.validators.amendment_validator import values_equal

RECLASSIFICATION_SOURCE_FIELD = AmendableField.ACTION_TAKEN.value
CATEGORY_FIELD = AmendableField.INCIDENT_TYPE.value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectionUpdater:
    """
    Per-field updates only, never a whole-row write from a possibly stale read,
    so amendments to different fields of one record cannot clobber each other.
    Failed attempts are retried up to max_attempts before the unit is abandoned.
    """

    def __init__(
        self,
        classification_policy: ClassificationPolicy,
        logger: logging.Logger,
        *,
        max_attempts: int = 3,
        backoff_seconds: float = 0.05,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._policy = classification_policy
        self._logger = logger
        self._max_attempts = max_attempts
        self._backoff = backoff_seconds
        self._clock = clock

    def plan(
        self,
        record: IncidentLogRecord,
        field_changed: str,
        new_value: Any,
        *,
        change_type: ChangeType,
        reason: str,
    ) -> List[FieldChange]:
        """The requested change first, then any reclassification it implies."""
        changes = [
            FieldChange(
                field_name=field_changed,
                old_value=record.value_of(field_changed),
                new_value=new_value,
                change_type=change_type,
                reason=reason,
            )
        ]
        derived = self.reclassification(record, field_changed, new_value)
        if derived is not None:
            changes.append(derived)
        return changes

    def reclassification(
        self,
        record: IncidentLogRecord,
        field_changed: str,
        new_value: Any,
    ) -> Optional[FieldChange]:
        """Depends only on the new text and the current category, so repeats give the same answer."""
        if field_changed != RECLASSIFICATION_SOURCE_FIELD:
            return None
        result = self._policy.classify(new_value)
        if result is None or values_equal(record.incident_type, result.category):
            return None
        return FieldChange(
            field_name=CATEGORY_FIELD,
            old_value=record.incident_type,
            new_value=result.category,
            change_type=ChangeType.RECLASSIFICATION,
            reason=f"Automatic reclassification: action taken mentions '{result.matched_phrase}'",
        )

    async def apply(
        self,
        uow: AmendmentUnitOfWork,
        record_id: str,
        changes: Sequence[FieldChange],
    ) -> IncidentLogRecord:
        """Write the changes and bump updated_at. Raises PersistenceFailureError once retries run out."""
        values = {change.field_name: change.new_value for change in changes}
        updated_at = self._clock()
        last_error = ""
        for attempt in range(1, self._max_attempts + 1):
            try:
                updated = await uow.update_fields(record_id, values, updated_at)
            except StorageError as e:
                last_error = e.message
            else:
                stale = sorted(f for f, v in values.items() if not values_equal(updated.value_of(f), v))
                if not stale:
                    self._logger.info(
                        "projection_updated",
                        extra={"record_id": record_id, "fields": sorted(values), "attempt": attempt},
                    )
                    if CATEGORY_FIELD in values and any(c.is_derived for c in changes):
                        self._logger.info(
                            "record_reclassified",
                            extra={"record_id": record_id, "category": values[CATEGORY_FIELD]},
                        )
                    return updated
                last_error = f"projection still stale for {', '.join(stale)}"

            self._logger.warning(
                "projection_update_retry",
                extra={
                    "record_id": record_id,
                    "attempt": attempt,
                    "max_attempts": self._max_attempts,
                    "error": last_error,
                },
            )
            if attempt < self._max_attempts and self._backoff:
                await asyncio.sleep(self._backoff * attempt)

        raise PersistenceFailureError(
            f"Projection update failed after {self._max_attempts} attempts: {last_error}"
        )
