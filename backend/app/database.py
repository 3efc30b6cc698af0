"""
Parcel Server - Database Session Management
============================================

What:  Async SQLAlchemy engine wrapper, declarative base and the per-request
       session dependency.
How:   The application lifespan constructs one `Database`, stores it on
       `app.state.database` and disposes it on shutdown. Route handlers get a
       session through `get_db_session`, which commits on success and rolls
       back on error.

Connection Pooling (PostgreSQL only):
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:     Validates connections before use
    pool_recycle=3600: Recycles connections every hour
    SQLite (tests, local runs) keeps SQLAlchemy's default pool.
"""

from typing import Any, AsyncGenerator, Dict

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings
from app.exceptions import ParcelServerError


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object so Alembic and the test suite see every
    table registered by `app.models`.
    """
    pass


class Database:
    """
    Owns the async engine and the session factory for one application.

    Constructed explicitly (never at import time) so tests and scripts can
    point it at any URL, and so shutdown has something concrete to dispose.
    """

    def __init__(self, url: str, echo: bool = False, **engine_options: Any):
        engine_kwargs: Dict[str, Any] = {"echo": echo}
        if not url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_recycle=3600,
            )
        engine_kwargs.update(engine_options)
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        # expire_on_commit=False: ORM objects stay readable after commit,
        # the payment flow reads generated ids after committing
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def ping(self) -> None:
        """Runs SELECT 1; raises whatever the driver raises when unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_all(self) -> None:
        """Create every table known to Base.metadata (local runs and tests)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Gracefully closes all connections in the pool."""
        await self.engine.dispose()


def get_database(request: Request) -> Database:
    """Returns the Database built by the lifespan handler."""
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise ParcelServerError(
            message="The service is not ready to handle requests.",
            context={"reason": "database not initialized"},
        )
    return database


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the application's factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back, then re-raises for the global handlers
        5. Always: closes the session (returns connection to pool)

    Services that need a write to be atomic across several statements commit
    explicitly; the trailing commit here is then a no-op.
    """
    database = get_database(request)
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
