"""Async SQLAlchemy engine and session factory for the eligibility store."""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from eligibility_engine.config import settings


def normalize_database_url(url: str) -> str:
    """
    Point plain PostgreSQL URLs at the asyncpg driver.

    Args:
        url: Database URL from configuration

    Returns:
        URL with an async driver for PostgreSQL; other URLs unchanged
    """
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


def build_engine(url: str, environment: str = "development") -> AsyncEngine:
    """
    Create the async engine for a database URL.

    SQLite connections are shared across threads by the test client, and test
    runs never pool connections.
    """
    url = normalize_database_url(url)
    kwargs: Dict[str, Any] = {
        "echo": environment == "development",
        "pool_pre_ping": True,
    }
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    if environment == "test":
        kwargs["poolclass"] = NullPool
    return create_async_engine(url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Results and rules are read after commit, so keep attributes loaded
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine(settings.DATABASE_URL, settings.ENVIRONMENT)
SessionLocal = build_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions.

    Commits when the request handler returns and rolls back if it raises.

    Yields:
        AsyncSession: Database session
    """
    async with SessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
