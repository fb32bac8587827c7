"""Security: RBAC, caller identity, amendment eligibility. No FastAPI."""

from incident_audit.security.amendment_guard import AuthorizationGuard
from incident_audit.security.identity import Actor, JWTIdentityProvider
from incident_audit.security.rbac import RBACService, Role

__all__ = [
    "Actor",
    "AuthorizationGuard",
    "JWTIdentityProvider",
    "RBACService",
    "Role",
]
