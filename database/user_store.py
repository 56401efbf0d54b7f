"""
SQLAlchemy-backed credential store.

Username uniqueness is enforced by the unique index on ``users.username``;
an ``IntegrityError`` on insert is reported as ``DuplicateKey``.  Driver
and connection failures are logged here and surface to callers only as
``StoreUnavailable``.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from auth.errors import DuplicateKey, StoreUnavailable
from auth.models import HealthProbe, UserRecord
from database.models import User
from database.session import uses_shared_connection

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything stored is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_record(row: User) -> UserRecord:
    return UserRecord(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        created_at=_as_utc(row.created_at),
    )


class SqlCredentialStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        bind = session_factory.kw.get("bind")
        # One connection shared by every session: uncommitted writes of one
        # session would be committed by another, so sessions take turns.
        self._serialize = bind is not None and uses_shared_connection(bind)
        self._turn = asyncio.Lock()

    @asynccontextmanager
    async def _exclusive(self) -> AsyncIterator[None]:
        if not self._serialize:
            yield
            return
        async with self._turn:
            yield

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._exclusive():
                async with self._session_factory() as session:
                    yield session
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Credential store failure: %s", exc.__class__.__name__)
            logger.debug("Credential store failure detail", exc_info=True)
            raise StoreUnavailable() from exc

    async def find_by_username(self, username: str) -> Optional[UserRecord]:
        async with self._session() as session:
            result = await session.execute(
                select(User).where(User.username == username)
            )
            row = result.scalar_one_or_none()
            return _to_record(row) if row is not None else None

    async def insert(self, username: str, password_hash: str, created_at: datetime) -> UserRecord:
        async with self._session() as session:
            row = User(
                username=username,
                password_hash=password_hash,
                created_at=_as_utc(created_at),
            )
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateKey(f"Duplicate username '{username}'") from exc
            return _to_record(row)

    async def list_all(self) -> List[UserRecord]:
        async with self._session() as session:
            result = await session.execute(select(User).order_by(User.id.asc()))
            return [_to_record(row) for row in result.scalars().all()]

    async def count_all(self) -> int:
        async with self._session() as session:
            result = await session.execute(select(func.count(User.id)))
            return int(result.scalar_one())

    async def count_since(self, since: datetime) -> int:
        async with self._session() as session:
            result = await session.execute(
                select(func.count(User.id)).where(User.created_at >= _as_utc(since))
            )
            return int(result.scalar_one())

    async def most_recent(self) -> Optional[UserRecord]:
        async with self._session() as session:
            result = await session.execute(
                select(User)
                .order_by(User.created_at.desc(), User.id.desc())
                .limit(1)
            )
            row = result.scalar_one_or_none()
            return _to_record(row) if row is not None else None

    async def probe(self) -> HealthProbe:
        """
        Read the user count, then insert a throwaway row and roll it back.

        The row is only ever flushed, never committed; on a shared
        connection no other session runs until the rollback is done.
        Never raises: failures are reported through the returned probe.
        """
        start = time.perf_counter()
        probe = HealthProbe()
        try:
            async with self._exclusive(), self._session_factory() as session:
                await session.execute(select(func.count(User.id)))
                probe.can_read = True

                session.add(
                    User(
                        username=f"__probe_{uuid.uuid4().hex[:12]}",
                        password_hash="!",
                        created_at=datetime.now(timezone.utc),
                    )
                )
                await session.flush()
                probe.can_write = True
                await session.rollback()
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("Credential store probe failed: %s", exc.__class__.__name__)
            probe.error = StoreUnavailable.message
        probe.response_time_ms = round((time.perf_counter() - start) * 1000, 3)
        return probe
