"""
Authentication dependencies for the SkillGauge API.

This module provides FastAPI dependencies that resolve the Authorization
header to an ``AuthContext`` and gate routes by role.
"""

import logging
from typing import Callable, Optional, Union

from fastapi import Depends, Header

from skillgauge.common.auth.middleware import authenticate, require_any_role
from skillgauge.common.auth.user import AuthContext, Role

logger = logging.getLogger(__name__)


def get_auth_context(authorization: Optional[str] = Header(None)) -> AuthContext:
    """
    Resolve the caller from the ``Authorization: Bearer <token>`` header.

    Raises:
        MissingTokenError: If the header is absent or not a bearer credential
        InvalidTokenError: If the token fails validation
    """
    context = authenticate(authorization)
    logger.debug("Authenticated user %s with roles %s", context.user_id,
                 sorted(role.value for role in context.roles))
    return context


def require_roles(*roles: Union[Role, str]) -> Callable[..., AuthContext]:
    """
    Build a dependency that admits only callers holding one of ``roles``.

    Example:
        @router.get("/admin/questions")
        def list_questions(caller: AuthContext = Depends(require_roles(Role.ADMIN))):
            ...
    """
    def dependency(context: AuthContext = Depends(get_auth_context)) -> AuthContext:
        return require_any_role(context, *roles)

    return dependency
