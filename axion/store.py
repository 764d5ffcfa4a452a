"""
In-memory user store backing the demo ``/api/users`` endpoints.
"""

import logging
import threading
import time
import uuid
from typing import Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class User(BaseModel):
    """A demo user.

    Attributes:
        id: Opaque identifier.
        name: Display name.
        email: Contact address.
        created_at: Creation time in epoch milliseconds.
    """

    id: str
    name: str
    email: str
    created_at: int


def _seed_users(now_ms: int) -> List[User]:
    return [
        User(id="1", name="Alice", email="alice@example.com", created_at=now_ms - 86_400_000),
        User(id="2", name="Bob", email="bob@example.com", created_at=now_ms - 43_200_000),
    ]


class UserStore:
    """Thread-safe in-memory user table.

    Args:
        users: Initial users.  ``None`` seeds the two demo users.
        clock: Callable returning the current time in seconds.
    """

    def __init__(
        self,
        users: Optional[Iterable[User]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        initial = _seed_users(self._now_ms()) if users is None else list(users)
        self._users: Dict[str, User] = {user.id: user for user in initial}

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def create(self, name: Optional[str] = None, email: Optional[str] = None) -> User:
        """Add a user, filling in ``Anonymous`` and a generated email."""
        now_ms = self._now_ms()
        user = User(
            id=uuid.uuid4().hex[:12],
            name=name or "Anonymous",
            email=email or f"user{now_ms}@example.com",
            created_at=now_ms,
        )
        with self._lock:
            self._users[user.id] = user
        logger.info("User created", extra={"user_id": user.id})
        return user

    def get(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def all(self) -> List[User]:
        with self._lock:
            return list(self._users.values())

    def count(self) -> int:
        with self._lock:
            return len(self._users)
