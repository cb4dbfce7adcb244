from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from config import get_settings
from fluency.db.models import Base

_async_engine: AsyncEngine | None = None
_AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None


def _get_async_url(url: str) -> str:
    """Convert sync database URLs to their async driver equivalents."""
    if url.startswith("postgresql+asyncpg://"):
        return url
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def configure_engine(url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """
    (Re)create the async engine.

    Called lazily with settings values, or explicitly by the CLI when a
    --database-url override is given.
    """
    global _async_engine, _AsyncSessionLocal
    settings = get_settings()
    async_url = _get_async_url(url or settings.database_url)
    _async_engine = create_async_engine(
        async_url,
        echo=settings.database_echo if echo is None else echo,
        pool_pre_ping=True,
    )
    _AsyncSessionLocal = async_sessionmaker(
        bind=_async_engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )
    logger.debug(f"Async engine configured for {_async_engine.url.render_as_string(hide_password=True)}")
    return _async_engine


def get_async_engine() -> AsyncEngine:
    """Get or create async engine (lazy initialization)."""
    if _async_engine is None:
        return configure_engine()
    return _async_engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create async session factory."""
    if _AsyncSessionLocal is None:
        configure_engine()
    assert _AsyncSessionLocal is not None
    return _AsyncSessionLocal


async def init_db() -> None:
    """Create any missing tables."""
    engine = get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""
    global _async_engine, _AsyncSessionLocal
    if _async_engine is not None:
        await _async_engine.dispose()
    _async_engine = None
    _AsyncSessionLocal = None


@asynccontextmanager
async def async_session_scope() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async transactional scope around a series of operations."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:  # Intentionally broad - rollback on any error before re-raising
            await session.rollback()
            raise
