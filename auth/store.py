"""
Credential store contract and its in-memory implementation.

The auth service only talks to a ``CredentialStore``.  The persistent
implementation lives in ``database.user_store``; ``InMemoryCredentialStore``
keeps the same contract in a process-local list and is used by the tests.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from auth.errors import DuplicateKey
from auth.models import HealthProbe, UserRecord


class CredentialStore(Protocol):
    async def find_by_username(self, username: str) -> Optional[UserRecord]:
        """Case-sensitive exact match. ``None`` when absent."""
        ...

    async def insert(self, username: str, password_hash: str, created_at: datetime) -> UserRecord:
        """Store a new record. Raises ``DuplicateKey`` if *username* is taken."""
        ...

    async def list_all(self) -> List[UserRecord]:
        ...

    async def count_all(self) -> int:
        ...

    async def count_since(self, since: datetime) -> int:
        ...

    async def most_recent(self) -> Optional[UserRecord]:
        ...

    async def probe(self) -> HealthProbe:
        """Exercise the read and write paths without persisting anything."""
        ...


class InMemoryCredentialStore:
    """Process-local store with sequential integer ids."""

    def __init__(self) -> None:
        self._users: List[UserRecord] = []
        self._by_username: dict[str, UserRecord] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    async def find_by_username(self, username: str) -> Optional[UserRecord]:
        return self._by_username.get(username)

    async def insert(self, username: str, password_hash: str, created_at: datetime) -> UserRecord:
        with self._lock:
            if username in self._by_username:
                raise DuplicateKey(f"Duplicate username '{username}'")
            record = UserRecord(
                id=self._next_id,
                username=username,
                password_hash=password_hash,
                created_at=created_at,
            )
            self._next_id += 1
            self._users.append(record)
            self._by_username[username] = record
        return record

    async def list_all(self) -> List[UserRecord]:
        return list(self._users)

    async def count_all(self) -> int:
        return len(self._users)

    async def count_since(self, since: datetime) -> int:
        return sum(1 for user in self._users if user.created_at >= since)

    async def most_recent(self) -> Optional[UserRecord]:
        return self._users[-1] if self._users else None

    async def probe(self) -> HealthProbe:
        start = time.perf_counter()
        with self._lock:
            can_read = len(self._users) == len(self._by_username)
            # Write to a scratch copy so the real collection stays untouched.
            scratch = list(self._users)
            scratch.append(
                UserRecord(
                    id=self._next_id,
                    username="__probe__",
                    password_hash="!",
                    created_at=datetime.now(timezone.utc),
                )
            )
            can_write = len(scratch) == len(self._users) + 1 and scratch[-1].id == self._next_id
        return HealthProbe(
            can_read=can_read,
            can_write=can_write,
            response_time_ms=round((time.perf_counter() - start) * 1000, 3),
        )
