"""Append-only revision ledger. Writes revisions inside a unit of work; never updates or deletes."""

import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, List

from incident_audit.application.incident_log_store import AmendmentUnitOfWork, IncidentLogStore
from incident_audit.domain.models.incident_log import IncidentLogRecord
from incident_audit.domain.models.revision import FieldChange, Revision
from incident_audit.security.identity import Actor


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_revision_id() -> str:
    return str(uuid.uuid4())


class RevisionLedger:
    """
    Writes one immutable Revision per field change. The store assigns the per-record
    sequence while the record is locked; the actor label is resolved now and frozen.
    """

    def __init__(
        self,
        store: IncidentLogStore,
        logger: logging.Logger,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_revision_id,
    ) -> None:
        self._store = store
        self._logger = logger
        self._clock = clock
        self._id_factory = id_factory

    async def append(
        self,
        uow: AmendmentUnitOfWork,
        *,
        record: IncidentLogRecord,
        change: FieldChange,
        actor: Actor,
    ) -> Revision:
        revision_number = await uow.next_revision_number(record.id)
        revision = Revision(
            id=self._id_factory(),
            record_id=record.id,
            revision_number=revision_number,
            field_changed=change.field_name,
            old_value=copy.deepcopy(change.old_value),
            new_value=copy.deepcopy(change.new_value),
            reason=change.reason.strip(),
            change_type=change.change_type,
            actor_id=actor.user_id,
            actor_label=actor.label_for_event(record.event_id),
            created_at=self._clock(),
        )
        await uow.add_revision(revision)
        self._logger.info(
            "revision_appended",
            extra={
                "record_id": record.id,
                "revision_id": revision.id,
                "revision_number": revision_number,
                "field_changed": change.field_name,
                "change_type": change.change_type.value,
            },
        )
        return revision

    async def history(self, record_id: str) -> List[Revision]:
        """All revisions for the record, oldest first."""
        revisions = await self._store.list_revisions(record_id)
        return sorted(revisions, key=lambda r: r.revision_number)
