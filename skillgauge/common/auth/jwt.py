"""
JWT Authentication Module

This module provides utilities for JWT-based authentication: access token
creation for logged-in accounts and validation of incoming bearer tokens.
Tokens carry the user id as ``sub`` and the user's roles as ``roles``; they
are signed with HS256 and bound to a fixed issuer and audience.
"""

import datetime
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Union

# Using PyJWT for JWT operations
import jwt

from skillgauge.config import settings
from skillgauge.common.auth.exceptions import InvalidTokenError, ExpiredTokenError
from skillgauge.common.auth.user import AuthContext, Role, parse_roles


@dataclass
class JWTConfig:
    """
    Configuration for JWT tokens.

    Attributes:
        secret_key: Secret key used for signing tokens
        algorithm: Algorithm used for signing tokens
        access_token_expires: Access token expiration time in minutes
        token_issuer: Issuer of the tokens
        token_audience: Audience the tokens are issued for
    """
    secret_key: str
    algorithm: str = "HS256"
    access_token_expires: int = 720  # minutes
    token_issuer: str = "skillgauge-api"
    token_audience: str = "skillgauge-spa"


# Global JWT configuration
_jwt_config = JWTConfig(
    secret_key=settings.JWT_SECRET_KEY,
    algorithm=settings.JWT_ALGORITHM,
    access_token_expires=settings.JWT_EXPIRES_MINUTES,
    token_issuer=settings.JWT_ISSUER,
    token_audience=settings.JWT_AUDIENCE,
)


def set_jwt_config(config: JWTConfig) -> None:
    """
    Set the global JWT configuration.

    Args:
        config: The JWT configuration to use
    """
    global _jwt_config
    _jwt_config = config


def get_jwt_config() -> JWTConfig:
    """Get the current JWT configuration."""
    return _jwt_config


def create_access_token(
    subject: Union[str, int],
    roles: Iterable[Union[Role, str]] = (),
    additional_claims: Optional[Dict[str, Any]] = None,
    expires_in: Optional[int] = None
) -> str:
    """
    Create a new JWT access token.

    Args:
        subject: The subject of the token (the user ID)
        roles: Roles to embed in the ``roles`` claim
        additional_claims: Additional claims to include in the token
        expires_in: Token expiration time in minutes (overrides config)

    Returns:
        The JWT access token as a string
    """
    config = get_jwt_config()

    now = datetime.datetime.now(datetime.timezone.utc)
    expires_delta = datetime.timedelta(
        minutes=expires_in if expires_in is not None else config.access_token_expires
    )

    payload: Dict[str, Any] = {
        "sub": str(subject),
        "roles": sorted(Role(role).value for role in roles),
        "exp": now + expires_delta,
        "iat": now,
        "iss": config.token_issuer,
        "aud": config.token_audience,
    }

    if additional_claims:
        payload.update(additional_claims)

    return jwt.encode(payload, config.secret_key, algorithm=config.algorithm)


def validate_token(token: str) -> Dict[str, Any]:
    """
    Validate a JWT token and return its payload.

    Signature, expiry, issuer and audience are all verified.

    Args:
        token: The JWT token to validate

    Returns:
        The decoded and validated token payload

    Raises:
        InvalidTokenError: If the token is invalid
        ExpiredTokenError: If the token has expired
    """
    config = get_jwt_config()

    try:
        return jwt.decode(
            token,
            config.secret_key,
            algorithms=[config.algorithm],
            audience=config.token_audience,
            issuer=config.token_issuer,
            options={
                "verify_signature": True,
                "verify_exp": True,
                "require": ["exp", "iat", "sub", "iss", "aud"]
            }
        )
    except jwt.ExpiredSignatureError:
        raise ExpiredTokenError("Token has expired")
    except jwt.PyJWTError as e:
        raise InvalidTokenError(f"Invalid token: {str(e)}")


def resolve_token(token: str) -> AuthContext:
    """
    Validate a token and resolve it to an ``AuthContext``.

    The ``roles`` claim is parsed once here; an unknown role invalidates the
    whole token.

    Raises:
        InvalidTokenError: If the token or its roles claim is invalid
    """
    payload = validate_token(token)

    raw_roles = payload.get("roles", [])
    if not isinstance(raw_roles, list):
        raise InvalidTokenError("Roles claim must be a list")
    try:
        roles = parse_roles(raw_roles)
    except ValueError as e:
        raise InvalidTokenError(f"Unknown role in token: {e}")

    return AuthContext(user_id=str(payload["sub"]), roles=roles)
