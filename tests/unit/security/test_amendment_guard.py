"""Security tests: who may amend which incident log, and the reason they are given."""

from datetime import timedelta

import pytest

from incident_audit.security.amendment_guard import (
    LOCKED_REASON,
    NOT_PERMITTED_REASON,
    AuthorizationGuard,
)
from incident_audit.security.identity import Actor
from incident_audit.security.rbac import RBACService, Role


@pytest.fixture
def guard():
    return AuthorizationGuard(RBACService())


def test_original_logger_may_amend(guard, record, logger_actor):
    result = guard.evaluate(record, logger_actor)
    assert result.can_amend is True
    assert result.reason == "You logged this entry."


def test_original_logger_matched_by_callsign(guard, make_record):
    record = make_record(logged_by_user_id=None, logged_by_callsign="alpha  1")
    actor = Actor(user_id="someone-new", callsigns={"event-1": "Alpha 1"})
    assert guard.evaluate(record, actor).can_amend is True


def test_event_controller_may_amend_any_log(guard, record, controller_actor):
    result = guard.evaluate(record, controller_actor)
    assert result.can_amend is True
    assert "controller" in result.reason


def test_global_admin_may_amend(guard, record, admin_actor):
    result = guard.evaluate(record, admin_actor)
    assert result.can_amend is True
    assert "admin" in result.reason


def test_other_operator_denied(guard, record, other_operator):
    result = guard.evaluate(record, other_operator)
    assert result.can_amend is False
    assert result.reason == NOT_PERMITTED_REASON


def test_controller_of_another_event_denied(guard, record):
    actor = Actor(user_id="user-x", event_roles={"event-2": Role.CONTROLLER})
    assert guard.evaluate(record, actor).can_amend is False


def test_global_controller_role_does_not_grant_amend_any(guard, record):
    actor = Actor(user_id="user-x", role=Role.CONTROLLER)
    assert guard.evaluate(record, actor).can_amend is False


@pytest.mark.parametrize("actor_fixture", ["logger_actor", "controller_actor", "admin_actor"])
def test_locked_record_denies_everyone(guard, make_record, request, actor_fixture):
    actor = request.getfixturevalue(actor_fixture)
    result = guard.evaluate(make_record(is_locked=True), actor)
    assert result.can_amend is False
    assert result.reason == LOCKED_REASON


def test_amendment_window_limits_original_logger(record, logger_actor):
    late = record.created_at + timedelta(hours=3)
    guard = AuthorizationGuard(RBACService(), amendment_window=timedelta(hours=2), clock=lambda: late)
    result = guard.evaluate(record, logger_actor)
    assert result.can_amend is False
    assert "within 2 hours" in result.reason


def test_amendment_window_allows_logger_inside_it(record, logger_actor):
    soon = record.created_at + timedelta(minutes=30)
    guard = AuthorizationGuard(RBACService(), amendment_window=timedelta(hours=2), clock=lambda: soon)
    assert guard.evaluate(record, logger_actor).can_amend is True


def test_amendment_window_does_not_bind_controllers(record, controller_actor):
    late = record.created_at + timedelta(days=2)
    guard = AuthorizationGuard(RBACService(), amendment_window=timedelta(hours=2), clock=lambda: late)
    assert guard.evaluate(record, controller_actor).can_amend is True
