"""Password hashing for bank users."""

from __future__ import annotations

from typing import Union

import bcrypt

DEFAULT_COST = 10
MAX_PASSWORD_BYTES = 72


def _password_bytes(password: str) -> bytes:
    data = password.encode("utf-8")
    if len(data) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password length exceeds {MAX_PASSWORD_BYTES} bytes")
    return data


def encrypt_password(password: str) -> bytes:
    """Return a bcrypt hash of the password."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=DEFAULT_COST))


def compare_passwords(hashed: Union[bytes, str], password: str) -> bool:
    """True if the password matches the bcrypt hash."""
    if isinstance(hashed, str):
        hashed = hashed.encode("ascii", errors="replace")
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed)
    except ValueError:
        return False