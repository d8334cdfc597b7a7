"""
Authentication Middleware

This module provides the request-level authorization checks: bearer token
extraction, token resolution and role or ownership gates.
"""

from typing import Optional, Union

from skillgauge.common.auth.exceptions import MissingTokenError, InsufficientPermissionsError
from skillgauge.common.auth.jwt import resolve_token
from skillgauge.common.auth.user import AuthContext, ELEVATED_ROLES, Role, has_any_role


def extract_token_from_header(auth_header: Optional[str]) -> Optional[str]:
    """
    Extract a JWT token from an Authorization header.

    Args:
        auth_header: The Authorization header value

    Returns:
        The JWT token or None if not found
    """
    if not auth_header:
        return None

    parts = auth_header.split()

    if len(parts) != 2 or parts[0].lower() != 'bearer':
        return None

    return parts[1]


def authenticate(auth_header: Optional[str]) -> AuthContext:
    """
    Authenticate a request using the Authorization header.

    Raises:
        MissingTokenError: If no bearer token is provided
        InvalidTokenError: If the token is invalid or expired
    """
    token = extract_token_from_header(auth_header)

    if not token:
        raise MissingTokenError()

    return resolve_token(token)


def require_any_role(context: AuthContext, *roles: Union[Role, str]) -> AuthContext:
    """
    Ensure the caller holds at least one of ``roles``.

    Raises:
        InsufficientPermissionsError: If none of the roles is held
    """
    if not has_any_role(context, *roles):
        raise InsufficientPermissionsError(
            f"Requires one of: {', '.join(Role(role).value for role in roles)}"
        )
    return context


def can_access_user(context: AuthContext, user_id: str) -> bool:
    """Owners may access their own records; elevated roles may access anyone's."""
    return context.user_id == str(user_id) or has_any_role(context, *ELEVATED_ROLES)


def ensure_can_access_user(context: AuthContext, user_id: str) -> None:
    """
    Raises:
        InsufficientPermissionsError: If the caller is neither the owner nor elevated
    """
    if not can_access_user(context, user_id):
        raise InsufficientPermissionsError("Not the owner of this resource")
