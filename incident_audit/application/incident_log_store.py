"""Storage ports for incident logs and their revisions. Application layer depends on these; infrastructure implements them."""

from datetime import datetime
from typing import Any, List, Mapping, Optional, Protocol

from incident_audit.domain.models.incident_log import IncidentLogRecord
from incident_audit.domain.models.revision import Revision


class AmendmentUnitOfWork(Protocol):
    """
    One consistency unit: revision inserts and projection updates become visible together
    on commit(), or not at all. Leaving the context without commit() rolls back.
    """

    async def __aenter__(self) -> "AmendmentUnitOfWork":
        ...

    async def __aexit__(self, exc_type, exc, tb) -> None:
        ...

    async def lock_record(self, record_id: str) -> Optional[IncidentLogRecord]:
        """Read the record and hold it against concurrent amendments until the unit ends."""
        ...

    async def next_revision_number(self, record_id: str) -> int:
        """Next per-record sequence number, starting at 1."""
        ...

    async def add_revision(self, revision: Revision) -> None:
        """Append a revision. Never updates or deletes an existing one."""
        ...

    async def update_fields(
        self,
        record_id: str,
        changes: Mapping[str, Any],
        updated_at: datetime,
    ) -> IncidentLogRecord:
        """
        Per-field update of the current-state row; also sets is_amended.
        A failed attempt leaves the unit usable so the caller may retry.
        """
        ...

    async def commit(self) -> None:
        ...


class IncidentLogStore(Protocol):
    """Record store plus append-only revision ledger. Storage is the source of truth for ordering."""

    async def get_record(self, record_id: str) -> Optional[IncidentLogRecord]:
        ...

    async def list_revisions(self, record_id: str) -> List[Revision]:
        """Revisions for the record, oldest first (by revision_number)."""
        ...

    def begin(self) -> AmendmentUnitOfWork:
        ...
