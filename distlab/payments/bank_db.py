"""SQLite storage of a bank's users and balances."""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Tuple, Union

from distlab.payments.passwords import compare_passwords, encrypt_password

log = logging.getLogger(__name__)

SEED_USERS = (
    ("admin", "password", "ADMIN", 10000),
    ("user1", "password", "CUSTOMER", 5000),
    ("user2", "password", "CUSTOMER", 3000),
)

_CREATE_USERS = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT UNIQUE NOT NULL,
    password_hash TEXT NOT NULL,
    role INTEGER NOT NULL,
    balance INTEGER NOT NULL DEFAULT 0
)
"""

_INSERT_IF_MISSING = """
INSERT INTO users (username, password_hash, role, balance)
SELECT ?, ?, ?, ?
WHERE NOT EXISTS (SELECT 1 FROM users WHERE username = ?)
"""


class UserNotFound(LookupError):
    """Raised when a username is not in the database."""


class BankDatabase:
    """A bank's user table."""

    def __init__(self, path: Union[str, Path] = ":memory:") -> None:
        self.path = str(path)
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._lock = threading.Lock()
        with self._lock, self._conn:
            self._conn.execute(_CREATE_USERS)
        log.info("Database initialized successfully")

    def __enter__(self) -> "BankDatabase":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _fetch_one(self, query: str, username: str) -> tuple:
        with self._lock:
            row = self._conn.execute(query, (username,)).fetchone()
        if row is None:
            raise UserNotFound(username)
        return row

    def verify_client_credentials(self, username: str, password: str) -> Tuple[str, bool]:
        """Return the user's role and whether the password is correct."""
        log.info("Verifying credentials for user: %s", username)
        hashed, role = self._fetch_one(
            "SELECT password_hash, role FROM users WHERE username = ?", username
        )
        if isinstance(hashed, str):
            hashed = hashed.encode("ascii", errors="replace")
        return str(role), compare_passwords(hashed, password)

    def get_balance(self, username: str) -> int:
        """The user's current balance."""
        log.info("Getting balance for user: %s", username)
        (balance,) = self._fetch_one("SELECT balance FROM users WHERE username = ?", username)
        return int(balance)

    def capable_of_deducting(self, username: str, amount: int) -> bool:
        """True if the user's balance covers the amount."""
        log.info("Checking if user: %s can deduct %d", username, amount)
        return self.get_balance(username) >= amount

    def adjust_balance(self, username: str, delta: int) -> bool:
        """Add `delta` to the user's balance; True if a row was changed."""
        with self._lock, self._conn:
            cursor = self._conn.execute(
                "UPDATE users SET balance = balance + ? WHERE username = ?",
                (delta, username),
            )
        return cursor.rowcount > 0

    def seed_users(self) -> None:
        """Insert the default users that are not there yet."""
        for username, password, role, balance in SEED_USERS:
            hashed = encrypt_password(password).decode("ascii")
            try:
                with self._lock, self._conn:
                    self._conn.execute(
                        _INSERT_IF_MISSING, (username, hashed, role, balance, username)
                    )
            except sqlite3.Error as exc:
                log.warning("Skipping user %s: %s", username, exc)
        log.info("Seed users inserted")

    def close(self) -> None:
        with self._lock:
            self._conn.close()