"""
Password Utilities

This module provides salted PBKDF2-SHA256 hashing and verification of
account passwords.
"""

import hashlib
import secrets
from typing import Optional, Tuple

from skillgauge.config import settings


def hash_password(password: str, salt: Optional[str] = None) -> Tuple[str, str]:
    """
    Hash a password using a secure algorithm.

    This function uses PBKDF2 with SHA-256, a random salt and the configured
    iteration count.

    Args:
        password: The password to hash
        salt: Optional salt to use (if None, a new salt will be generated)

    Returns:
        A tuple of (hashed_password, salt)
    """
    if salt is None:
        salt = secrets.token_hex(16)

    key = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode(),
        salt.encode(),
        settings.PASSWORD_HASH_ITERATIONS,
        dklen=32
    )

    return key.hex(), salt


def verify_password(password: str, hashed_password: str, salt: str) -> bool:
    """
    Verify that a password matches a stored hash.

    Args:
        password: The password to verify
        hashed_password: The stored password hash
        salt: The salt used for the stored hash

    Returns:
        True if the password matches, False otherwise
    """
    calculated_hash, _ = hash_password(password, salt)
    return secrets.compare_digest(calculated_hash, hashed_password)
