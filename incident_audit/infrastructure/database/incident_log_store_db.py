"""DB-backed incident log store. Records in incident_logs, append-only history in incident_log_revisions."""

from datetime import datetime
from typing import Any, List, Mapping, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from incident_audit.application.exceptions import StorageError
from incident_audit.domain.models.fields import AMENDABLE_FIELDS
from incident_audit.domain.models.incident_log import IncidentLogRecord
from incident_audit.domain.models.revision import Revision
from incident_audit.infrastructure.database.models import IncidentLog, IncidentLogRevision

_records = IncidentLog.__table__
_revisions = IncidentLogRevision.__table__


class DbAmendmentUnitOfWork:
    """
    One database transaction. The record row is held with SELECT ... FOR UPDATE, so amendments
    to the same record serialize in the database; each projection write runs in a savepoint
    so a failed attempt can be retried without aborting the transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None
        self._committed = False

    async def __aenter__(self) -> "DbAmendmentUnitOfWork":
        self._session = self._session_factory()
        try:
            await self._session.begin()
        except SQLAlchemyError as e:
            await self._session.close()
            raise StorageError(f"Could not open transaction: {e}") from e
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if not self._committed:
                await self._session.rollback()
        finally:
            await self._session.close()

    async def lock_record(self, record_id: str) -> Optional[IncidentLogRecord]:
        stmt = select(_records).where(_records.c.id == record_id).with_for_update()
        row = await self._fetch_one(stmt)
        return IncidentLogRecord.from_row(row) if row is not None else None

    async def next_revision_number(self, record_id: str) -> int:
        stmt = select(func.coalesce(func.max(_revisions.c.revision_number), 0)).where(
            _revisions.c.record_id == record_id
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not read revision sequence: {e}") from e
        return int(result.scalar_one()) + 1

    async def add_revision(self, revision: Revision) -> None:
        values = revision.to_dict()
        values["created_at"] = revision.created_at
        try:
            await self._session.execute(_revisions.insert().values(**values))
        except SQLAlchemyError as e:
            raise StorageError(f"Could not append revision: {e}") from e

    async def update_fields(
        self,
        record_id: str,
        changes: Mapping[str, Any],
        updated_at: datetime,
    ) -> IncidentLogRecord:
        unknown = set(changes) - AMENDABLE_FIELDS
        if unknown:
            raise StorageError(f"Refusing to update non-amendable columns: {', '.join(sorted(unknown))}")
        stmt = (
            update(_records)
            .where(_records.c.id == record_id)
            .values(**dict(changes), updated_at=updated_at, is_amended=True)
            .returning(*_records.c)
        )
        try:
            async with self._session.begin_nested():
                result = await self._session.execute(stmt)
                row = result.mappings().one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not update incident log {record_id}: {e}") from e
        if row is None:
            raise StorageError(f"Incident log {record_id} no longer exists")
        return IncidentLogRecord.from_row(row)

    async def commit(self) -> None:
        try:
            await self._session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Could not commit amendment: {e}") from e
        self._committed = True

    async def _fetch_one(self, stmt) -> Optional[Mapping[str, Any]]:
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not read incident log: {e}") from e
        return result.mappings().one_or_none()


class DbIncidentLogStore:
    """Implements IncidentLogStore on PostgreSQL via SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_record(self, record_id: str) -> Optional[IncidentLogRecord]:
        stmt = select(_records).where(_records.c.id == record_id)
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
            except SQLAlchemyError as e:
                raise StorageError(f"Could not read incident log: {e}") from e
            row = result.mappings().one_or_none()
        return IncidentLogRecord.from_row(row) if row is not None else None

    async def list_revisions(self, record_id: str) -> List[Revision]:
        stmt = (
            select(_revisions)
            .where(_revisions.c.record_id == record_id)
            .order_by(_revisions.c.revision_number.asc())
        )
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
            except SQLAlchemyError as e:
                raise StorageError(f"Could not read revisions: {e}") from e
            rows = result.mappings().all()
        return [Revision.from_row(row) for row in rows]

    async def mark_locked(self, record_id: str) -> IncidentLogRecord:
        """Finalise a record (e.g. after an official export); later amendments are refused."""
        stmt = (
            update(_records)
            .where(_records.c.id == record_id)
            .values(is_locked=True)
            .returning(*_records.c)
        )
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
                row = result.mappings().one_or_none()
                await session.commit()
            except SQLAlchemyError as e:
                raise StorageError(f"Could not lock incident log {record_id}: {e}") from e
        if row is None:
            raise StorageError(f"Incident log {record_id} does not exist")
        return IncidentLogRecord.from_row(row)

    def begin(self) -> DbAmendmentUnitOfWork:
        return DbAmendmentUnitOfWork(self._session_factory)
