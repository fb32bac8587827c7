# Application layer: services that orchestrate domain, security and storage ports.

from incident_audit.application.amendment_service import AmendmentResult, AmendmentService
from incident_audit.application.change_notifier import BroadcastChannel, ChangeNotifier
from incident_audit.application.exceptions import (
    ApplicationError,
    ForbiddenError,
    InvalidAmendmentError,
    NotificationFailureError,
    PersistenceFailureError,
    RecordNotFoundError,
    StorageError,
    UnauthenticatedError,
)
from incident_audit.application.incident_log_store import AmendmentUnitOfWork, IncidentLogStore
from incident_audit.application.projection_updater import ProjectionUpdater
from incident_audit.application.revision_ledger import RevisionLedger

__all__ = [
    "AmendmentResult",
    "AmendmentService",
    "AmendmentUnitOfWork",
    "ApplicationError",
    "BroadcastChannel",
    "ChangeNotifier",
    "ForbiddenError",
    "IncidentLogStore",
    "InvalidAmendmentError",
    "NotificationFailureError",
    "PersistenceFailureError",
    "ProjectionUpdater",
    "RecordNotFoundError",
    "RevisionLedger",
    "StorageError",
    "UnauthenticatedError",
]
