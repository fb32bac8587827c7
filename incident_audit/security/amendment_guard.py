"""Decides whether a caller may amend a specific incident log. No FastAPI."""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from incident_audit.domain.models.incident_log import IncidentLogRecord
from incident_audit.domain.models.revision import AmendmentEligibility
from incident_audit.security.identity import Actor
from incident_audit.security.rbac import RBACService, Role

LOCKED_REASON = (
    "This log entry is locked (finalised for an official record) and cannot be amended."
)
NOT_PERMITTED_REASON = (
    "You can only amend logs you created. Please contact a controller or admin for amendments."
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _same_callsign(left: Optional[str], right: Optional[str]) -> bool:
    if not left or not right:
        return False
    return " ".join(left.split()).casefold() == " ".join(right.split()).casefold()


class AuthorizationGuard:
    """
    Evaluation order:
    1. locked records deny everyone, admins included;
    2. the original logger (by user id, or by the callsign recorded at logging time) may amend,
       within `amendment_window` when one is configured;
    3. a global admin, or a role with amend_any for the record's event, may amend;
    4. everyone else is denied.
    Always returns a reason the caller can be shown.
    """

    def __init__(
        self,
        rbac: RBACService,
        amendment_window: Optional[timedelta] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._rbac = rbac
        self._window = amendment_window
        self._clock = clock

    def evaluate(self, record: IncidentLogRecord, actor: Actor) -> AmendmentEligibility:
        if record.is_locked:
            return AmendmentEligibility.denied(LOCKED_REASON)

        is_elevated = self._is_elevated(record, actor)
        if self.is_original_logger(record, actor):
            if is_elevated or self._within_window(record):
                return AmendmentEligibility.allowed("You logged this entry.")
            hours = self._window.total_seconds() / 3600 if self._window else 0
            return AmendmentEligibility.denied(
                f"You can only amend logs you created within {hours:g} hours. "
                "Please contact a controller or admin for amendments."
            )

        if is_elevated:
            role = actor.role_for_event(record.event_id)
            return AmendmentEligibility.allowed(
                f"Your {role.value} role permits amendments for this event."
            )
        return AmendmentEligibility.denied(NOT_PERMITTED_REASON)

    def _is_elevated(self, record: IncidentLogRecord, actor: Actor) -> bool:
        if actor.is_admin:
            return True
        role: Optional[Role] = actor.event_roles.get(record.event_id)
        return self._rbac.has_permission(role, "amend_any")

    @staticmethod
    def is_original_logger(record: IncidentLogRecord, actor: Actor) -> bool:
        """Caller logged this record, by user id or by the callsign recorded at logging time."""
        if record.logged_by_user_id and record.logged_by_user_id == actor.user_id:
            return True
        return _same_callsign(record.logged_by_callsign, actor.callsign_for_event(record.event_id))

    def _within_window(self, record: IncidentLogRecord) -> bool:
        if self._window is None:
            return True
        created_at = record.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return self._clock() - created_at <= self._window
