"""In-memory incident log store. Same contract as the database store; used for tests and local runs."""

import asyncio
import copy
from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from incident_audit.application.exceptions import StorageError
from incident_audit.domain.models.incident_log import IncidentLogRecord
from incident_audit.domain.models.revision import Revision


class InMemoryUnitOfWork:
    """
    Holds the record's lock for the life of the unit. Revisions and field changes are staged
    and only become visible on commit(), in one step, so readers never see half an amendment.
    """

    def __init__(self, store: "InMemoryIncidentLogStore") -> None:
        self._store = store
        self._held: Dict[str, asyncio.Lock] = {}
        self._staged_revisions: List[Revision] = []
        self._staged_records: Dict[str, IncidentLogRecord] = {}
        self._committed = False

    async def __aenter__(self) -> "InMemoryUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if not self._committed:
            self._staged_revisions.clear()
            self._staged_records.clear()
        for lock in self._held.values():
            lock.release()
        self._held.clear()

    async def lock_record(self, record_id: str) -> Optional[IncidentLogRecord]:
        if record_id not in self._held:
            lock = self._store._lock_for(record_id)
            await lock.acquire()
            self._held[record_id] = lock
        return self._current(record_id)

    async def next_revision_number(self, record_id: str) -> int:
        self._require_lock(record_id)
        committed = len(self._store._revisions.get(record_id, ()))
        staged = sum(1 for r in self._staged_revisions if r.record_id == record_id)
        return committed + staged + 1

    async def add_revision(self, revision: Revision) -> None:
        self._require_lock(revision.record_id)
        numbers = {r.revision_number for r in self._store._revisions.get(revision.record_id, ())}
        numbers.update(r.revision_number for r in self._staged_revisions if r.record_id == revision.record_id)
        if revision.revision_number in numbers:
            raise StorageError(
                f"Revision {revision.revision_number} already exists for record {revision.record_id}"
            )
        self._staged_revisions.append(revision)

    async def update_fields(
        self,
        record_id: str,
        changes: Mapping[str, Any],
        updated_at: datetime,
    ) -> IncidentLogRecord:
        self._require_lock(record_id)
        current = self._current(record_id)
        if current is None:
            raise StorageError(f"Incident log {record_id} no longer exists")
        await self._store._before_update(record_id)
        try:
            updated = current.with_changes(copy.deepcopy(dict(changes)), updated_at)
        except KeyError as e:
            raise StorageError(f"Unknown field for incident log update: {e}") from e
        self._staged_records[record_id] = updated
        return updated

    async def commit(self) -> None:
        if self._committed:
            raise StorageError("Unit of work already committed")
        await self._store._before_commit()
        for revision in self._staged_revisions:
            self._store._revisions[revision.record_id].append(revision)
        self._store._records.update(self._staged_records)
        self._committed = True

    def _current(self, record_id: str) -> Optional[IncidentLogRecord]:
        return self._staged_records.get(record_id) or self._store._records.get(record_id)

    def _require_lock(self, record_id: str) -> None:
        if record_id not in self._held:
            raise StorageError(f"Record {record_id} must be locked before it is written")


class InMemoryIncidentLogStore:
    """Implements IncidentLogStore. Records and revisions live in process memory."""

    def __init__(self) -> None:
        self._records: Dict[str, IncidentLogRecord] = {}
        self._revisions: Dict[str, List[Revision]] = defaultdict(list)
        self._locks: Dict[str, asyncio.Lock] = {}

    async def add_record(self, record: IncidentLogRecord) -> IncidentLogRecord:
        """Seed a record as initial logging would. Creation itself is outside the amendment path."""
        if record.id in self._records:
            raise StorageError(f"Incident log {record.id} already exists")
        self._records[record.id] = record
        return record

    async def mark_locked(self, record_id: str) -> IncidentLogRecord:
        """Finalise a record (e.g. after an official export); later amendments are refused."""
        async with self._lock_for(record_id):
            record = self._records.get(record_id)
            if record is None:
                raise StorageError(f"Incident log {record_id} does not exist")
            locked = replace(record, is_locked=True)
            self._records[record_id] = locked
            return locked

    async def get_record(self, record_id: str) -> Optional[IncidentLogRecord]:
        return self._records.get(record_id)

    async def list_revisions(self, record_id: str) -> List[Revision]:
        return sorted(self._revisions.get(record_id, ()), key=lambda r: r.revision_number)

    def begin(self) -> InMemoryUnitOfWork:
        return InMemoryUnitOfWork(self)

    def _lock_for(self, record_id: str) -> asyncio.Lock:
        """
        One lock per record id ever locked. _locks is never pruned, so it grows with the
        number of distinct records; fine for tests and local runs, not for a long-lived process.
        """
        if record_id not in self._locks:
            self._locks[record_id] = asyncio.Lock()
        return self._locks[record_id]

    async def _before_update(self, record_id: str) -> None:
        """Called before each projection write; subclasses may raise StorageError."""

    async def _before_commit(self) -> None:
        """Called before staged writes are published; subclasses may raise StorageError."""
