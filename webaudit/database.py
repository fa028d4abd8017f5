"""
Database connection and session management for WebAudit.

The engine and session maker are created by `create_app` and kept on
`app.state`; requests get a session through `get_db`.
"""
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from webaudit.models.base import Base


def normalize_database_url(url: str) -> str:
    """Convert a sync driver URL to its async counterpart."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    url = normalize_database_url(database_url)
    options = {"echo": echo, "pool_pre_ping": True}
    if url.startswith("postgresql"):
        options.update(pool_size=10, max_overflow=20)
    return create_async_engine(url, **options)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Initialize database tables."""
    from webaudit.models.audit import AuditRecordRow  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    session_maker = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
