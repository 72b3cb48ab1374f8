"""
Identity store: owns user accounts and their password hashes.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Iterable

from werkzeug.security import check_password_hash, generate_password_hash

from vdi_broker.config.settings import PASSWORD_HASH_METHOD
from vdi_broker.domain.errors import ConflictError
from vdi_broker.domain.types import User

logger = logging.getLogger("vdi-broker")


def hash_password(password: str) -> str:
    """Salted one-way hash of ``password``."""
    return generate_password_hash(password, method=PASSWORD_HASH_METHOD)


def verify_password(user: User, password: str) -> bool:
    """Check ``password`` against the stored hash (constant-time compare)."""
    return check_password_hash(user.password_hash, password)


class IdentityStore:
    """In-memory user registry keyed by id, with a unique username index."""

    def __init__(self, seed_accounts: Iterable[tuple[str, str]] = ()) -> None:
        self._lock = threading.Lock()
        self._users: dict[int, User] = {}
        self._by_username: dict[str, int] = {}
        self._ids = itertools.count(1)

        for username, password in seed_accounts:
            self.create_user(username, password)

    def get_user(self, user_id: int) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> User | None:
        with self._lock:
            user_id = self._by_username.get(username)
            return self._users.get(user_id) if user_id is not None else None

    def list_users(self) -> list[User]:
        with self._lock:
            return list(self._users.values())

    def create_user(self, username: str, password: str) -> User:
        """
        Register a new account.

        Args:
            username: Unique login name
            password: Plaintext password, hashed before storage

        Returns:
            The created user

        Raises:
            ConflictError: If the username is already taken
        """
        # Hash outside the lock
        password_hash = hash_password(password)
        with self._lock:
            if username in self._by_username:
                raise ConflictError("Username already exists")
            user = User(id=next(self._ids), username=username, password_hash=password_hash)
            self._users[user.id] = user
            self._by_username[username] = user.id
        logger.info(f"User created: {username} (id={user.id})")
        return user

    def usernames(self, user_ids: Iterable[int]) -> dict[int, str]:
        """Resolve several user ids to usernames; unknown ids are omitted."""
        with self._lock:
            return {
                uid: self._users[uid].username
                for uid in set(user_ids)
                if uid in self._users
            }
