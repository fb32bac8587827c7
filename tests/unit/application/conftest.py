"""Fixtures for application tests: a real in-memory store and a fully wired AmendmentService."""

import logging
from unittest.mock import AsyncMock

import pytest

from incident_audit.application.amendment_service import AmendmentService
from incident_audit.application.change_notifier import ChangeNotifier
from incident_audit.application.projection_updater import ProjectionUpdater
from incident_audit.application.revision_ledger import RevisionLedger
from incident_audit.domain.classification import KeywordEjectionPolicy
from incident_audit.domain.validators.amendment_validator import RequestValidator
from incident_audit.infrastructure.memory.incident_log_store_memory import InMemoryIncidentLogStore
from incident_audit.security.amendment_guard import AuthorizationGuard
from incident_audit.security.rbac import RBACService


@pytest.fixture
def logger():
    return logging.getLogger("incident_audit.tests")


@pytest.fixture
def channel():
    c = AsyncMock()
    c.broadcast = AsyncMock(return_value=None)
    return c


@pytest.fixture
async def store(record):
    s = InMemoryIncidentLogStore()
    await s.add_record(record)
    return s


@pytest.fixture
def build_service(channel, logger):
    def _build(store, *, record_derived_revisions=True, max_attempts=3, amendment_window=None):
        rbac = RBACService()
        return AmendmentService(
            store=store,
            guard=AuthorizationGuard(rbac, amendment_window=amendment_window),
            validator=RequestValidator(),
            ledger=RevisionLedger(store, logger),
            projection=ProjectionUpdater(
                KeywordEjectionPolicy(),
                logger,
                max_attempts=max_attempts,
                backoff_seconds=0,
            ),
            notifier=ChangeNotifier(channel, logger, timeout_seconds=0.5),
            rbac=rbac,
            logger=logger,
            record_derived_revisions=record_derived_revisions,
        )

    return _build


@pytest.fixture
def service(store, build_service):
    return build_service(store)
