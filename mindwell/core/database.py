"""
MindWell Database Module
Async SQLAlchemy engine for the key-value table.

The only table is the key-value store that backs analysis histories,
the chat transcript, affirmations and meditation sessions. Every service
reaches it through `get_db_session()`; nothing holds a session open
across requests.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from mindwell.core.config import get_settings


class Base(DeclarativeBase):
    pass


_engine: Optional[AsyncEngine] = None
_sessions: Optional[async_sessionmaker[AsyncSession]] = None


def get_engine() -> AsyncEngine:
    """Engine for `settings.database_url`, created on first use."""
    global _engine
    if _engine is None:
        settings = get_settings()
        options: dict = {"echo": settings.debug}
        if settings.database_url.startswith("sqlite"):
            # aiosqlite opens a connection per session; pooling buys nothing
            options["poolclass"] = NullPool
        else:
            options["pool_pre_ping"] = True
        _engine = create_async_engine(settings.database_url, **options)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _sessions
    if _sessions is None:
        _sessions = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _sessions


async def init_db() -> None:
    """Create the key-value table if missing. Called from the app lifespan."""
    from mindwell.models import models  # noqa: F401  registers tables on Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    global _engine, _sessions
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessions = None


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    One unit of work: commits on normal exit, rolls back and re-raises
    on error.

        async with get_db_session() as db:
            entry = await db.get(KeyValueEntry, key)
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
