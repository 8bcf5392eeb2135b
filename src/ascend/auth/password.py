"""Password hashing (argon2id) and the registration length policy."""

from __future__ import annotations

from functools import lru_cache

import argon2

from ascend.config import get_settings


class PasswordStrengthError(ValueError):
    """The password falls outside the configured length bounds."""


@lru_cache
def _hasher() -> argon2.PasswordHasher:
    settings = get_settings()
    return argon2.PasswordHasher(
        time_cost=settings.password_hash_time_cost,
        memory_cost=settings.password_hash_memory_kib,
        parallelism=1,
        type=argon2.Type.ID,
    )


def hash_password(password: str) -> str:
    return _hasher().hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """True on match. Mismatches and unreadable hashes both yield False."""
    try:
        return _hasher().verify(password_hash, password)
    except (argon2.exceptions.VerifyMismatchError, argon2.exceptions.InvalidHashError):
        return False


def check_needs_rehash(password_hash: str) -> bool:
    """Stored hash was made with different cost parameters than the current ones."""
    return _hasher().check_needs_rehash(password_hash)


def validate_password_strength(password: str) -> None:
    """
    Enforce the registration policy: not blank, between the configured
    minimum and maximum length.

    Raises:
        PasswordStrengthError: With a message suitable for the client.
    """
    settings = get_settings()
    if not password.strip():
        msg = "Password is required"
        raise PasswordStrengthError(msg)
    if len(password) < settings.password_min_length:
        msg = f"Password must be at least {settings.password_min_length} characters"
        raise PasswordStrengthError(msg)
    if len(password) > settings.password_max_length:
        msg = f"Password must be at most {settings.password_max_length} characters"
        raise PasswordStrengthError(msg)
