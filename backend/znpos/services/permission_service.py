# Overview: Authorization gate; the only place role and capability rules live.

"""
Permission Checking with Multi-Tenant Support

WHY: Enforce role-based access control before any repository, ledger or
reporting call runs.

DESIGN PRINCIPLES:
- Fail closed: deny by default, require an explicit capability flag
- One predicate: the admin bypass exists only in has_capability()
- Principals come from the stored User, never from request payloads
- Log denials only: grants are not logged
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import wraps

from ..errors import ForbiddenError, UnauthorizedError
from ..permissions import ROLE_ADMIN, validate_capability

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, rehydrated from the stored User."""
    user_id: int
    business_id: int
    role: str
    permissions: dict = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user) -> "Principal":
        return cls(
            user_id=user.id,
            business_id=user.business_id,
            role=user.role,
            permissions=dict(user.permissions or {}),
        )

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "business_id": self.business_id,
            "role": self.role,
            "permissions": dict(self.permissions),
        }


def has_capability(principal: Principal | None, capability: str) -> bool:
    """
    Core permission predicate. Used by every gated operation.

    Admins satisfy every capability regardless of their flags.
    """
    if principal is None:
        return False
    if principal.is_admin:
        return True
    return principal.permissions.get(capability) is True


def require_authenticated(principal: Principal | None) -> Principal:
    if principal is None:
        raise UnauthorizedError("Unauthorized")
    return principal


def require_permission(principal: Principal | None, capability: str) -> Principal:
    """
    Require the principal to hold a capability, raise ForbiddenError if not.

    Usage:
        require_permission(principal, "inventory")
    """
    if not validate_capability(capability):
        raise ValueError(f"Unknown capability: {capability}")

    require_authenticated(principal)
    if not has_capability(principal, capability):
        logger.warning(
            "Permission denied: user=%s business=%s capability=%s",
            principal.user_id, principal.business_id, capability,
        )
        raise ForbiddenError("Access denied", details={"required_permission": capability})
    return principal


def require_admin(principal: Principal | None) -> Principal:
    require_authenticated(principal)
    if not principal.is_admin:
        logger.warning(
            "Admin access denied: user=%s business=%s",
            principal.user_id, principal.business_id,
        )
        raise ForbiddenError("Admin access required")
    return principal


def gated(capability: str | None = None, *, admin: bool = False):
    """
    Gate a facade method whose first argument after self is the principal.

    gated()              -> authenticated only
    gated("reports")     -> capability (admins always pass)
    gated(admin=True)    -> admin role only
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(self, principal, *args, **kwargs):
            if admin:
                require_admin(principal)
            elif capability is not None:
                require_permission(principal, capability)
            else:
                require_authenticated(principal)
            return f(self, principal, *args, **kwargs)

        decorated_function.required_capability = capability
        decorated_function.requires_admin = admin
        return decorated_function
    return decorator
