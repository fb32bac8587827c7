# incident_audit/infrastructure/database/models.py

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.sql import func

from incident_audit.infrastructure.database.session import Base

JSONValue = JSON().with_variant(JSONB(), "postgresql")


class IncidentLog(Base):
    """Current-state row of one logged incident. Only amendable columns are ever updated here."""

    __tablename__ = "incident_logs"

    id = Column(String, primary_key=True)
    event_id = Column(String, nullable=False, index=True)
    log_number = Column(String, nullable=False)

    occurrence = Column(Text, nullable=False)
    action_taken = Column(Text, nullable=False)
    callsign_from = Column(String(64), nullable=False)
    callsign_to = Column(String(64), nullable=False)
    incident_type = Column(String(100), nullable=False)
    priority = Column(String, nullable=True)
    location = Column(String(255), nullable=True)
    time_of_occurrence = Column(String, nullable=True)
    status = Column(String, nullable=True)
    escalation_level = Column(Integer, nullable=True)

    is_closed = Column(Boolean, nullable=False, default=False)
    is_locked = Column(Boolean, nullable=False, default=False)
    is_amended = Column(Boolean, nullable=False, default=False)

    logged_by_user_id = Column(String, nullable=True)
    logged_by_callsign = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class IncidentLogRevision(Base):
    """Append-only revision row. Application code only ever inserts."""

    __tablename__ = "incident_log_revisions"
    __table_args__ = (
        UniqueConstraint("record_id", "revision_number", name="uq_incident_log_revision_number"),
    )

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()))
    record_id = Column(String, ForeignKey("incident_logs.id"), nullable=False, index=True)
    revision_number = Column(Integer, nullable=False)
    field_changed = Column(String, nullable=False)
    old_value = Column(JSONValue, nullable=True)
    new_value = Column(JSONValue, nullable=True)
    reason = Column(Text, nullable=False)
    change_type = Column(String, nullable=False)
    actor_id = Column(String, nullable=False)
    actor_label = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
