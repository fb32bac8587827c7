"""FastAPI dependency injection: store, broadcast channel, identity, AmendmentService, correlation_id."""

import logging
from datetime import timedelta
from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from incident_audit.application.amendment_service import AmendmentService
from incident_audit.application.change_notifier import BroadcastChannel, ChangeNotifier
from incident_audit.application.exceptions import UnauthenticatedError
from incident_audit.application.incident_log_store import IncidentLogStore
from incident_audit.application.projection_updater import ProjectionUpdater
from incident_audit.application.revision_ledger import RevisionLedger
from incident_audit.config.settings import AppSettings, get_settings
from incident_audit.core.context import actor_id_ctx
from incident_audit.domain.classification import KeywordEjectionPolicy
from incident_audit.domain.validators.amendment_validator import RequestValidator
from incident_audit.infrastructure.cache.redis_client import RedisBroadcastChannel, RedisClient
from incident_audit.infrastructure.database.incident_log_store_db import DbIncidentLogStore
from incident_audit.infrastructure.database.session import create_engine, create_session_factory
from incident_audit.infrastructure.memory.incident_log_store_memory import InMemoryIncidentLogStore
from incident_audit.infrastructure.messaging.null_channel import LoggingBroadcastChannel
from incident_audit.infrastructure.messaging.rabbitmq_publisher import (
    RabbitMQBroadcastChannel,
    RabbitMQPublisher,
)
from incident_audit.security.amendment_guard import AuthorizationGuard
from incident_audit.security.exceptions import AuthenticationError
from incident_audit.security.identity import Actor, JWTIdentityProvider
from incident_audit.security.rbac import RBACService

_store: IncidentLogStore | None = None
_channel: BroadcastChannel | None = None


def get_store(settings: Annotated[AppSettings, Depends(get_settings)]) -> IncidentLogStore:
    """Return singleton store for the configured backend."""
    global _store
    if _store is None:
        if settings.storage_backend == "memory":
            _store = InMemoryIncidentLogStore()
        else:
            _store = DbIncidentLogStore(create_session_factory(create_engine(settings.database_url)))
    return _store


def get_broadcast_channel(settings: Annotated[AppSettings, Depends(get_settings)]) -> BroadcastChannel:
    """Return singleton real-time broadcast channel."""
    global _channel
    if _channel is None:
        if settings.broadcast_backend == "rabbitmq":
            _channel = RabbitMQBroadcastChannel(
                RabbitMQPublisher(settings.rabbitmq_url),
                settings.broadcast_exchange,
            )
        elif settings.broadcast_backend == "redis":
            _channel = RedisBroadcastChannel(RedisClient(settings.redis_url), settings.broadcast_exchange)
        else:
            _channel = LoggingBroadcastChannel()
    return _channel


def get_identity_provider(settings: Annotated[AppSettings, Depends(get_settings)]) -> JWTIdentityProvider:
    return JWTIdentityProvider(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        audience=settings.jwt_audience,
    )


def get_current_actor(
    request: Request,
    identity: Annotated[JWTIdentityProvider, Depends(get_identity_provider)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> Optional[Actor]:
    """Actor from the bearer token, or None when no Authorization header was sent."""
    if not authorization or not authorization.strip():
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authorization header must be 'Bearer <token>'")
    actor = identity.authenticate(token.strip())
    request.state.actor_id = actor.user_id
    actor_id_ctx.set(actor.user_id)
    return actor


def require_actor(
    actor: Annotated[Optional[Actor], Depends(get_current_actor)],
) -> Actor:
    """Authenticated actor or UnauthenticatedError. Resolved before the request body is validated."""
    if actor is None:
        raise UnauthenticatedError("Authentication is required to access incident logs.")
    return actor


def get_amendment_service(
    settings: Annotated[AppSettings, Depends(get_settings)],
    store: Annotated[IncidentLogStore, Depends(get_store)],
    channel: Annotated[BroadcastChannel, Depends(get_broadcast_channel)],
) -> AmendmentService:
    """Build AmendmentService with injected store, guard, validator, ledger, projection, notifier, logger."""
    logger = logging.getLogger("incident_audit.amendments")
    rbac = RBACService()
    window = (
        timedelta(hours=settings.amendment_window_hours)
        if settings.amendment_window_hours is not None
        else None
    )
    return AmendmentService(
        store=store,
        guard=AuthorizationGuard(rbac, amendment_window=window),
        validator=RequestValidator(
            reason_min_length=settings.change_reason_min_length,
            reason_max_length=settings.change_reason_max_length,
        ),
        ledger=RevisionLedger(store, logger),
        projection=ProjectionUpdater(
            KeywordEjectionPolicy(category=settings.ejection_category),
            logger,
            max_attempts=settings.projection_retry_attempts,
            backoff_seconds=settings.projection_retry_backoff_seconds,
        ),
        notifier=ChangeNotifier(channel, logger, timeout_seconds=settings.notification_timeout_seconds),
        rbac=rbac,
        logger=logger,
        record_derived_revisions=settings.record_reclassification_revisions,
    )


def get_correlation_id(request: Request) -> str:
    """Extract correlation_id from request.state (set by middleware)."""
    return getattr(request.state, "correlation_id", "") or ""
