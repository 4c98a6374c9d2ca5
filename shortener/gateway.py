"""Persistence gateway for the ``urls`` table.

This module owns the pooled async engine and is the only place where raw
store errors are interpreted. Everything above it sees ``ShortenError``.

Flow Diagram — upsert_by_url()
==============================
::
    ┌──────────────────┐
    │ candidate id,url │
    └────────┬─────────┘
             ▼
    ┌──────────────────────────────────────────┐
    │ INSERT ... ON CONFLICT (url)             │
    │ DO UPDATE SET url = excluded.url         │
    │ RETURNING id                             │
    └────────┬─────────────────────────────────┘
     ERROR?  │
    ┌────────┴────────┐
    │ NO              │ YES
    ▼                 ▼
┌──────────┐   ┌─────────────────────┐
│ stored id│   │ classify_storage_   │
│ (new or  │   │ error()             │
│ existing)│   │ urls_pkey → CONFLICT│
└──────────┘   │ else → STORAGE      │
               └─────────────────────┘

How to Use
===========
**Step 1 — Connect on startup**::
    gateway = await UrlGateway.connect(settings)  # creates the table if missing

**Step 2 — Store and read**::
    short_id = await gateway.upsert_by_url("abc123", "https://example.com")
    url = await gateway.lookup_by_id(short_id)

**Step 3 — Dispose on shutdown**::
    await gateway.close()

Key Behaviours
===============
- The upsert is a single statement, so concurrent submissions of one URL
  converge on one id and two submissions of one id cannot both succeed.
- Every store call is bounded by DB_TIMEOUT_SECONDS.
- No caching: every lookup is a store round-trip.
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from sqlalchemy import select, text
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from shortener.config import Settings
from shortener.errors import ShortenError
from shortener.models import PRIMARY_KEY_CONSTRAINT, Base, UrlRecord

__all__ = ["UrlGateway", "classify_storage_error"]

T = TypeVar("T")

# Dialects with INSERT ... ON CONFLICT ... RETURNING support
_UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}

# SQLite names the column rather than the constraint
_SQLITE_PRIMARY_KEY_MESSAGE = f"UNIQUE constraint failed: {UrlRecord.__tablename__}.id"

_STORE_ERRORS = (SQLAlchemyError, OSError)


def _constraint_name(exc: IntegrityError) -> str | None:
    orig = exc.orig
    # asyncpg exposes it on the adapted error's cause, psycopg on diag
    for candidate in (orig, getattr(orig, "__cause__", None), getattr(orig, "diag", None)):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return name

    message = str(orig)
    if _SQLITE_PRIMARY_KEY_MESSAGE in message or PRIMARY_KEY_CONSTRAINT in message:
        return PRIMARY_KEY_CONSTRAINT
    return None


def classify_storage_error(exc: BaseException) -> ShortenError:
    """Convert a raw store error into a domain error.

    An integrity error on the primary key constraint means the candidate id
    already belongs to another URL; anything else is a generic storage failure.
    """
    if isinstance(exc, IntegrityError) and _constraint_name(exc) == PRIMARY_KEY_CONSTRAINT:
        return ShortenError.identifier_conflict(PRIMARY_KEY_CONSTRAINT)
    detail = getattr(exc, "orig", None) or exc
    return ShortenError.storage_failure(detail)


def _engine_options(settings: Settings) -> dict:
    options: dict = {
        "echo": settings.APP_ENV == "development",
        "pool_pre_ping": True,
    }
    if make_url(settings.DATABASE_URL).get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_TIMEOUT_SECONDS,
        )
    return options


class UrlGateway:
    """Pooled access to the ``urls`` table."""

    def __init__(self, engine: AsyncEngine, timeout: float | None = None, logger: logging.Logger | None = None):
        dialect = engine.dialect.name
        if dialect not in _UPSERT_INSERTS:
            raise ShortenError.storage_failure(f"unsupported database backend '{dialect}'")

        self._engine = engine
        self._insert = _UPSERT_INSERTS[dialect]
        self._sessions = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        self._timeout = timeout
        self._logger = logger or logging.getLogger("urlshortener")

    @classmethod
    async def connect(cls, settings: Settings, logger: logging.Logger | None = None) -> "UrlGateway":
        """Create the pooled engine and make sure the table exists.

        Raises:
            ShortenError: STORAGE_FAILURE if the store is unreachable or the
                schema cannot be created.
        """
        try:
            engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings))
        except _STORE_ERRORS as exc:
            raise classify_storage_error(exc) from exc

        try:
            gateway = cls(engine, timeout=settings.DB_TIMEOUT_SECONDS, logger=logger)
            await gateway.init_schema()
        except ShortenError:
            await engine.dispose()
            raise

        gateway._logger.info(f"Connected to {engine.dialect.name} store")
        return gateway

    async def init_schema(self) -> None:
        async def _create() -> None:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        try:
            await self._bounded(_create())
        except _STORE_ERRORS as exc:
            raise classify_storage_error(exc) from exc

    async def upsert_by_url(self, short_id: str, url: str) -> str:
        """Insert ``(short_id, url)`` or return the id already stored for ``url``.

        Raises:
            ShortenError: IDENTIFIER_CONFLICT if ``short_id`` belongs to a
                different URL, STORAGE_FAILURE for any other store error.
        """
        stmt = self._insert(UrlRecord).values(id=short_id, url=url)
        stmt = stmt.on_conflict_do_update(
            index_elements=[UrlRecord.url],
            set_={"url": stmt.excluded.url},
        ).returning(UrlRecord.id)

        async def _execute() -> str:
            async with self._sessions() as session:
                result = await session.execute(stmt)
                stored_id = result.scalar_one()
                await session.commit()
                return stored_id

        try:
            return await self._bounded(_execute())
        except _STORE_ERRORS as exc:
            raise classify_storage_error(exc) from exc

    async def lookup_by_id(self, short_id: str) -> str:
        async def _execute() -> str | None:
            async with self._sessions() as session:
                result = await session.execute(select(UrlRecord.url).where(UrlRecord.id == short_id))
                return result.scalar_one_or_none()

        try:
            url = await self._bounded(_execute())
        except _STORE_ERRORS as exc:
            raise classify_storage_error(exc) from exc

        if url is None:
            raise ShortenError.not_found()
        return url

    async def ping(self) -> None:
        async def _execute() -> None:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

        try:
            await self._bounded(_execute())
        except _STORE_ERRORS as exc:
            raise classify_storage_error(exc) from exc

    async def close(self) -> None:
        await self._engine.dispose()

    async def _bounded(self, operation: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(operation, timeout=self._timeout)
        except TimeoutError as exc:
            raise ShortenError.storage_failure(f"timed out after {self._timeout}s") from exc
