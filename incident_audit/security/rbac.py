"""Role-based access control. No FastAPI."""

from enum import Enum
from typing import FrozenSet

from incident_audit.security.exceptions import AuthorizationError


class Role(str, Enum):
    ADMIN = "admin"
    CONTROLLER = "controller"
    SUPERVISOR = "supervisor"
    OPERATOR = "operator"
    VIEWER = "viewer"


# Permission matrix:
# Role        Amend any  View history  Export history
# ADMIN       ✓          ✓             ✓
# CONTROLLER  ✓          ✓             ✓
# SUPERVISOR  ✓          ✓             ✓
# OPERATOR    ✗          ✓             ✗
# VIEWER      ✗          ✓             ✗

ACTIONS: FrozenSet[str] = frozenset({"amend_any", "view_history", "export_history"})

_ACTION_PERMISSIONS: dict[tuple[Role, str], bool] = {
    (Role.ADMIN, "amend_any"): True,
    (Role.ADMIN, "view_history"): True,
    (Role.ADMIN, "export_history"): True,
    (Role.CONTROLLER, "amend_any"): True,
    (Role.CONTROLLER, "view_history"): True,
    (Role.CONTROLLER, "export_history"): True,
    (Role.SUPERVISOR, "amend_any"): True,
    (Role.SUPERVISOR, "view_history"): True,
    (Role.SUPERVISOR, "export_history"): True,
    (Role.OPERATOR, "amend_any"): False,
    (Role.OPERATOR, "view_history"): True,
    (Role.OPERATOR, "export_history"): False,
    (Role.VIEWER, "amend_any"): False,
    (Role.VIEWER, "view_history"): True,
    (Role.VIEWER, "export_history"): False,
}


class RBACService:
    """Check permission for role and action. Raise AuthorizationError if invalid."""

    def has_permission(self, role: Role | None, action: str) -> bool:
        if role is None:
            return False
        return _ACTION_PERMISSIONS.get((role, action), False)

    def check_permission(self, role: Role | None, action: str) -> None:
        """Raises AuthorizationError if role does not have permission for action."""
        if not self.has_permission(role, action):
            role_name = role.value if role is not None else "none"
            raise AuthorizationError(
                f"Role {role_name} does not have permission for action '{action}'"
            )
