"""
Role capability checks.

The role hierarchy (SUPER_ADMIN > ZONE_ADMIN > GROUP_ADMIN > CHURCH_USER)
is owned by the user-management side of the application.  This module only
consumes a resolved role value and answers "may this actor do X", the same
way for the HTTP layer, the CLI and the services.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from church_kernel.exceptions import ForbiddenError, UnauthenticatedError


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ZONE_ADMIN = "ZONE_ADMIN"
    GROUP_ADMIN = "GROUP_ADMIN"
    CHURCH_USER = "CHURCH_USER"


# Roles allowed to change financial-year state and roll back uploads.
ADMIN_ROLES: frozenset[UserRole] = frozenset(
    {UserRole.SUPER_ADMIN, UserRole.ZONE_ADMIN}
)


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of an operation."""

    user_id: UUID
    role: UserRole

    @classmethod
    def from_claims(cls, user_id: str, role: str) -> Actor:
        """Build from session claims. Raises ValueError on malformed claims."""
        return cls(user_id=UUID(str(user_id)), role=UserRole(role))


def require_authenticated(actor: Actor | None) -> Actor:
    if actor is None:
        raise UnauthenticatedError()
    return actor


def require_admin(actor: Actor | None, operation: str) -> Actor:
    """
    Require an authenticated SUPER_ADMIN or ZONE_ADMIN.

    Raises:
        UnauthenticatedError: No actor.
        ForbiddenError: Actor role is not an admin role.
    """
    actor = require_authenticated(actor)
    if actor.role not in ADMIN_ROLES:
        raise ForbiddenError(actor.role.value, operation)
    return actor
