"""Amendment application service: the gateway and transaction boundary for incident log amendments."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from incident_audit.application.change_notifier import ChangeNotifier
from incident_audit.application.exceptions import (
    ForbiddenError,
    InvalidAmendmentError,
    PersistenceFailureError,
    RecordNotFoundError,
    StorageError,
    UnauthenticatedError,
)
from incident_audit.application.incident_log_store import IncidentLogStore
from incident_audit.application.projection_updater import ProjectionUpdater
from incident_audit.application.revision_ledger import RevisionLedger
from incident_audit.domain.history import export_revision_history_text
from incident_audit.domain.models.fields import ChangeType
from incident_audit.domain.models.incident_log import IncidentLogRecord
from incident_audit.domain.models.revision import AmendmentEligibility, Revision
from incident_audit.domain.validators.amendment_validator import RequestValidator
from incident_audit.security.amendment_guard import AuthorizationGuard
from incident_audit.security.identity import Actor
from incident_audit.security.rbac import RBACService

UNAUTHENTICATED_MESSAGE = "Authentication is required to amend incident logs."


class AmendmentState(str, Enum):
    RECEIVED = "received"
    AUTHORIZED = "authorized"
    VALIDATED = "validated"
    PERSISTED = "persisted"
    NOTIFIED = "notified"
    COMPLETE = "complete"
    REJECTED = "rejected"


@dataclass(frozen=True)
class AmendmentResult:
    """The revision for the requested field, the record after the change, and any engine-made revisions."""

    revision: Revision
    record: IncidentLogRecord
    derived_revisions: Tuple[Revision, ...] = ()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AmendmentService:
    """
    Gateway order: authenticate -> load -> guard -> validate -> (ledger + projection) -> notify.
    Any gate failure ends in REJECTED with no side effects. Ledger and projection run in one
    unit of work, re-checking guard and validator under the record lock so concurrent
    amendments serialize per record.
    """

    def __init__(
        self,
        store: IncidentLogStore,
        guard: AuthorizationGuard,
        validator: RequestValidator,
        ledger: RevisionLedger,
        projection: ProjectionUpdater,
        notifier: ChangeNotifier,
        rbac: RBACService,
        logger: logging.Logger,
        record_derived_revisions: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._guard = guard
        self._validator = validator
        self._ledger = ledger
        self._projection = projection
        self._notifier = notifier
        self._rbac = rbac
        self._logger = logger
        self._record_derived = record_derived_revisions
        self._clock = clock

    async def submit_amendment(
        self,
        record_id: str,
        *,
        actor: Optional[Actor],
        field_changed: str,
        new_value: Any,
        change_reason: Any,
        change_type: Any = ChangeType.AMENDMENT,
        correlation_id: Optional[str] = None,
    ) -> AmendmentResult:
        """
        Single entry point for amending one field of a logged incident.
        Exactly one revision for the requested field (plus a reclassification revision where
        the policy applies) and one projection update on success; nothing on failure.
        """
        log_extra = {"record_id": record_id, "field_changed": field_changed, "correlation_id": correlation_id}
        self._stage(AmendmentState.RECEIVED, log_extra)

        if actor is None:
            raise self._reject(UnauthenticatedError(UNAUTHENTICATED_MESSAGE), log_extra)
        log_extra["actor_id"] = actor.user_id

        record = await self._load(record_id, log_extra)
        self._authorize(record, actor, log_extra)
        self._stage(AmendmentState.AUTHORIZED, log_extra)
        self._validate(record, field_changed, new_value, change_reason, change_type, log_extra)
        self._stage(AmendmentState.VALIDATED, log_extra)

        result = await self._persist(
            record_id,
            actor=actor,
            field_changed=field_changed,
            new_value=new_value,
            change_reason=change_reason,
            change_type=ChangeType(change_type),
            log_extra=log_extra,
        )
        self._stage(AmendmentState.PERSISTED, {**log_extra, "revision_id": result.revision.id})

        self._notifier.schedule(
            record_id,
            revision_number=max(r.revision_number for r in (result.revision, *result.derived_revisions)),
            fields=[r.field_changed for r in (result.revision, *result.derived_revisions)],
            correlation_id=correlation_id,
        )
        self._stage(AmendmentState.NOTIFIED, log_extra)
        self._stage(AmendmentState.COMPLETE, log_extra)
        return result

    async def drain_notifications(self) -> None:
        """Wait until scheduled change notifications have been sent or have failed."""
        await self._notifier.drain()

    async def check_amendment_eligibility(
        self,
        record_id: str,
        actor: Optional[Actor],
    ) -> AmendmentEligibility:
        if actor is None:
            raise UnauthenticatedError(UNAUTHENTICATED_MESSAGE)
        record = await self._load(record_id, {"record_id": record_id, "actor_id": actor.user_id})
        return self._guard.evaluate(record, actor)

    async def list_revisions(self, record_id: str, actor: Optional[Actor]) -> List[Revision]:
        """Revision history, oldest first. Requires view_history for the record's event."""
        record = await self._authorized_record(record_id, actor, "view_history")
        return await self._ledger.history(record.id)

    async def get_record(self, record_id: str, actor: Optional[Actor]) -> IncidentLogRecord:
        return await self._authorized_record(record_id, actor, "view_history")

    async def export_revision_history(self, record_id: str, actor: Optional[Actor]) -> str:
        """Plain-text audit report. Requires export_history for the record's event."""
        record = await self._authorized_record(record_id, actor, "export_history")
        revisions = await self._ledger.history(record.id)
        return export_revision_history_text(record, revisions, generated_at=self._clock())

    async def _authorized_record(
        self,
        record_id: str,
        actor: Optional[Actor],
        action: str,
    ) -> IncidentLogRecord:
        if actor is None:
            raise UnauthenticatedError("Authentication is required to read incident log history.")
        record = await self._load(record_id, {"record_id": record_id, "actor_id": actor.user_id})
        # The original logger may always read back the record they logged.
        if action == "view_history" and self._guard.is_original_logger(record, actor):
            return record
        self._rbac.check_permission(actor.role_for_event(record.event_id), action)
        return record

    async def _load(self, record_id: str, log_extra: dict) -> IncidentLogRecord:
        try:
            record = await self._store.get_record(record_id)
        except StorageError as e:
            raise PersistenceFailureError(f"Incident log could not be loaded: {e.message}") from e
        if record is None:
            raise self._reject(RecordNotFoundError(f"Incident log not found: {record_id}"), log_extra)
        return record

    def _authorize(self, record: IncidentLogRecord, actor: Actor, log_extra: dict) -> None:
        eligibility = self._guard.evaluate(record, actor)
        if not eligibility.can_amend:
            raise self._reject(ForbiddenError(eligibility.reason), log_extra)

    def _validate(
        self,
        record: IncidentLogRecord,
        field_changed: str,
        new_value: Any,
        change_reason: Any,
        change_type: Any,
        log_extra: dict,
    ) -> None:
        result = self._validator.validate(
            field_changed,
            new_value,
            change_reason,
            current_record=record,
            change_type=change_type,
        )
        if not result.is_valid:
            raise self._reject(InvalidAmendmentError(result.errors), log_extra)

    async def _persist(
        self,
        record_id: str,
        *,
        actor: Actor,
        field_changed: str,
        new_value: Any,
        change_reason: str,
        change_type: ChangeType,
        log_extra: dict,
    ) -> AmendmentResult:
        try:
            async with self._store.begin() as uow:
                locked = await uow.lock_record(record_id)
                if locked is None:
                    raise self._reject(RecordNotFoundError(f"Incident log not found: {record_id}"), log_extra)
                # Another writer may have locked the record or made the same change meanwhile.
                self._authorize(locked, actor, log_extra)
                self._validate(locked, field_changed, new_value, change_reason, change_type, log_extra)

                changes = self._projection.plan(
                    locked,
                    field_changed,
                    new_value,
                    change_type=change_type,
                    reason=change_reason,
                )
                revisions = [
                    await self._ledger.append(uow, record=locked, change=change, actor=actor)
                    for change in changes
                    if self._record_derived or not change.is_derived
                ]
                updated = await self._projection.apply(uow, record_id, changes)
                await uow.commit()
        except StorageError as e:
            self._logger.error("amendment_persist_failed", extra={**log_extra, "error": e.message})
            raise PersistenceFailureError(f"Amendment could not be committed: {e.message}") from e
        except PersistenceFailureError as e:
            self._logger.error("amendment_persist_failed", extra={**log_extra, "error": e.message})
            raise

        return AmendmentResult(
            revision=revisions[0],
            record=updated,
            derived_revisions=tuple(revisions[1:]),
        )

    def _stage(self, state: AmendmentState, log_extra: dict) -> None:
        self._logger.info(f"amendment_{state.value}", extra={**log_extra, "stage": state.value})

    def _reject(self, error: Exception, log_extra: dict) -> Exception:
        self._logger.info(
            "amendment_rejected",
            extra={
                **log_extra,
                "stage": AmendmentState.REJECTED.value,
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        return error
