"""
Authentication Framework

This package provides JWT-based authentication and role-based authorization
for the SkillGauge API. Tokens resolve to an ``AuthContext`` carrying the
caller's id and a closed set of ``Role`` values.
"""

from skillgauge.common.auth.jwt import (
    create_access_token,
    validate_token,
    resolve_token,
    JWTConfig,
    get_jwt_config,
    set_jwt_config
)

from skillgauge.common.auth.user import (
    AuthContext,
    Role,
    UserStatus,
    ELEVATED_ROLES,
    has_any_role,
    parse_roles
)

from skillgauge.common.auth.password import (
    hash_password,
    verify_password
)

from skillgauge.common.auth.middleware import (
    extract_token_from_header,
    authenticate,
    require_any_role,
    can_access_user,
    ensure_can_access_user
)

from skillgauge.common.auth.exceptions import (
    AuthError,
    MissingTokenError,
    InvalidTokenError,
    ExpiredTokenError,
    InsufficientPermissionsError,
    InvalidCredentialsError
)

from .dependencies import get_auth_context, require_roles

# Public API
__all__ = [
    # JWT tokens
    'create_access_token',
    'validate_token',
    'resolve_token',
    'JWTConfig',
    'get_jwt_config',
    'set_jwt_config',

    # Roles and context
    'AuthContext',
    'Role',
    'UserStatus',
    'ELEVATED_ROLES',
    'has_any_role',
    'parse_roles',

    # Password utilities
    'hash_password',
    'verify_password',

    # Authorization checks
    'extract_token_from_header',
    'authenticate',
    'require_any_role',
    'can_access_user',
    'ensure_can_access_user',

    # Exceptions
    'AuthError',
    'MissingTokenError',
    'InvalidTokenError',
    'ExpiredTokenError',
    'InsufficientPermissionsError',
    'InvalidCredentialsError',

    # FastAPI dependencies
    'get_auth_context',
    'require_roles',
]
