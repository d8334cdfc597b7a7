"""
Authentication User Models

This module defines the closed set of roles and the authorization context
that a validated token resolves to.
"""

import enum
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Union


class Role(enum.Enum):
    """User roles for authorization."""

    ADMIN = "admin"
    PROJECT_MANAGER = "project_manager"
    FOREMAN = "foreman"
    WORKER = "worker"


class UserStatus(enum.Enum):
    """User account statuses."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


# Roles allowed to act on other users' assessments
ELEVATED_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.PROJECT_MANAGER, Role.FOREMAN})


@dataclass(frozen=True)
class AuthContext:
    """
    Identity of an authenticated caller.

    Attributes:
        user_id: Subject of the validated token
        roles: Roles carried by the token
    """
    user_id: str
    roles: FrozenSet[Role] = field(default_factory=frozenset)

    def has_role(self, role: Union[Role, str]) -> bool:
        return Role(role) in self.roles


def has_any_role(context: AuthContext, *allowed: Union[Role, str]) -> bool:
    """Return True when the context holds at least one of the ``allowed`` roles."""
    return any(Role(role) in context.roles for role in allowed)


def parse_roles(values: Iterable[str]) -> FrozenSet[Role]:
    """
    Parse role names into the closed ``Role`` set.

    Raises:
        ValueError: If any name is not a known role
    """
    return frozenset(Role(value) for value in values)
