"""
Pantry Lookup API — Database Session Management
=================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine with connection pooling, provides a session
       dependency that rolls back on error and always closes the session.
Who:   Used by the backend client factory via FastAPI's dependency injection.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling Strategy:
    pool_size / max_overflow: from settings (defaults 10 + 5)
    pool_pre_ping:            validates connections before use
    pool_recycle=3600:        recycles connections every hour

    SQLite URLs (used by the test suite) get no pool sizing arguments,
    since SQLAlchemy's SQLite pools reject them.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from pantry_api.config import settings


def _engine_options(url: str) -> Dict[str, Any]:
    """Pool configuration for server databases; SQLite keeps its defaults."""
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: rows stay readable after the transaction ends
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All lookup models inherit from this class so they share one metadata
    object (used by the test suite to create the schema in SQLite).
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    What:    Creates an async session, yields it for use, and handles cleanup.
    Who:     Injected into `get_backend_client` via Depends().
    When:    Created at the start of each request, disposed at the end.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the request (the lookup service reads through it)
        3. On success: commits, ending the read transaction
        4. On error: rolls back and re-raises
        5. Always: closes the session (returns connection to pool)

    Raises:
        Any database exceptions are propagated to the endpoint boundary,
        which turns them into a 500 response.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
