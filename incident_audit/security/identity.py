"""Caller identity: the Actor value and a PyJWT-backed identity provider. No FastAPI."""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import jwt

from incident_audit.security.exceptions import AuthenticationError
from incident_audit.security.rbac import Role

UNKNOWN_ACTOR_LABEL = "Unknown"


@dataclass(frozen=True)
class Actor:
    """
    Authenticated caller. Roles and callsigns are scoped per event;
    `role` is the caller's global role, of which only ADMIN is honoured everywhere.
    """

    user_id: str
    display_name: Optional[str] = None
    role: Optional[Role] = None
    event_roles: Mapping[str, Role] = field(default_factory=dict)
    callsigns: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def role_for_event(self, event_id: str) -> Optional[Role]:
        """Role the caller holds for this event, falling back to the global role."""
        if self.is_admin:
            return Role.ADMIN
        return self.event_roles.get(event_id, self.role)

    def callsign_for_event(self, event_id: str) -> Optional[str]:
        return self.callsigns.get(event_id)

    def label_for_event(self, event_id: str) -> str:
        """Human label for history: event callsign, then display name, then Unknown."""
        callsign = self.callsign_for_event(event_id)
        if callsign and callsign.strip():
            return callsign.strip()
        if self.display_name and self.display_name.strip():
            return self.display_name.strip()
        return UNKNOWN_ACTOR_LABEL


class JWTIdentityProvider:
    """Turns a signed bearer token into an Actor. Claims are trusted once the signature checks out."""

    def __init__(self, secret: str, algorithm: str = "HS256", audience: Optional[str] = None) -> None:
        if not secret:
            raise ValueError("JWT secret is required")
        self._secret = secret
        self._algorithm = algorithm
        self._audience = audience

    def authenticate(self, token: str) -> Actor:
        """Raises AuthenticationError if the token is invalid, expired or malformed."""
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                options={"require": ["sub", "exp"], "verify_aud": self._audience is not None},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(f"Invalid token: {e}") from e
        return actor_from_claims(claims)

    def issue(self, claims: Mapping[str, Any]) -> str:
        """Sign claims with the configured key. Used by tooling and tests."""
        return jwt.encode(dict(claims), self._secret, algorithm=self._algorithm)


def actor_from_claims(claims: Mapping[str, Any]) -> Actor:
    user_id = claims.get("sub")
    if not isinstance(user_id, str) or not user_id.strip():
        raise AuthenticationError("Token subject must be a non-empty string")
    event_roles = claims.get("event_roles") or {}
    callsigns = claims.get("callsigns") or {}
    if not isinstance(event_roles, dict) or not isinstance(callsigns, dict):
        raise AuthenticationError("Token event_roles and callsigns must be objects")
    name = claims.get("name")
    return Actor(
        user_id=user_id.strip(),
        display_name=name if isinstance(name, str) else None,
        role=_parse_role(claims.get("role")),
        event_roles={str(k): _parse_role(v) for k, v in event_roles.items() if v is not None},
        callsigns={str(k): str(v) for k, v in callsigns.items() if v},
    )


def _parse_role(value: Any) -> Optional[Role]:
    if value is None:
        return None
    try:
        return Role(str(value).lower())
    except ValueError as e:
        raise AuthenticationError(f"Token carries unknown role '{value}'") from e
