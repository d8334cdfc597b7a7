"""
Authentication Exceptions

This module defines the exception classes raised by the authorization gate.
They extend the application error taxonomy so the HTTP layer renders them
like every other error.
"""

from typing import Any, Dict

from skillgauge.common.error_handling import AuthenticationError, AuthorizationError


class AuthError(AuthenticationError):
    """Base exception for authentication errors; the body carries the key only."""

    def to_dict(self, include_detail: bool = True) -> Dict[str, Any]:
        return {"message": self.key}


class MissingTokenError(AuthError):
    """Exception raised when a required token is missing."""

    def __init__(self, message: str = "Authentication token is missing"):
        super().__init__(key="missing_token", message=message)


class InvalidTokenError(AuthError):
    """Exception raised when a token is malformed, badly signed or carries unknown claims."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(key="invalid_token", message=message)


class ExpiredTokenError(InvalidTokenError):
    """Exception raised when a token has expired."""

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message)


class InvalidCredentialsError(AuthError):
    """Exception raised when a phone/password pair does not match an active account."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(key="invalid_credentials", message=message)


class InsufficientPermissionsError(AuthorizationError):
    """Exception raised when a caller lacks a required role or does not own the resource."""

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(key="forbidden", message=message)
