"""
Database helpers shared by the engine services.

Timestamps are stored as naive UTC; SQLite drops tzinfo on the way back
so every datetime the engine writes or compares goes through utcnow().
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone

from loguru import logger
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fluency.core.errors import PersistenceError


def utcnow() -> datetime:
    """Current UTC time without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    """Current UTC calendar day."""
    return utcnow().date()


def dialect_insert(session: AsyncSession, model):
    """
    Build an INSERT that supports ON CONFLICT for the session's backend.

    Both SQLite and PostgreSQL expose on_conflict_do_nothing and
    on_conflict_do_update with the same signature.
    """
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert(model)
    if name == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Upserts are not supported on dialect '{name}'")


@asynccontextmanager
async def store_operation(
    session: AsyncSession, operation: str, commit: bool = True
) -> AsyncIterator[AsyncSession]:
    """
    Run a unit of store work, committing on success.

    SQLAlchemy errors roll the session back and surface as PersistenceError
    tagged with the operation name.
    """
    try:
        yield session
        if commit:
            await session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Store operation '{operation}' failed: {e}")
        await session.rollback()
        raise PersistenceError(operation, e) from e
