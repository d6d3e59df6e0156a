"""
Blogging API — Database Handle & Session Management
=====================================================

What:  Declarative base, an explicit `Database` handle (engine + session
       factory), and the per-request session dependency.
Why:   The store connection is acquired at startup and released at shutdown
       by the application lifespan, and handed to request handlers through
       FastAPI's dependency injection. Nothing talks to a module-level engine,
       so tests can plug in an in-memory SQLite database.
How:   `Database` wraps `create_async_engine` / `async_sessionmaker`.
       `get_db_session` pulls the handle from `request.app.state.database`,
       commits on success and rolls back on error.

Connection Pooling Strategy (PostgreSQL):
    pool_size / max_overflow come from settings; pool_pre_ping catches
    stale connections after a database restart; pool_recycle=3600 avoids
    long-lived connections being dropped by intermediaries.
    SQLite URLs skip pool sizing (not supported by its pool classes).

SQLite Text Functions:
    SQLite's built-in lower() folds ASCII only. Every SQLite connection gets
    a Python lower() instead, so case-insensitive search over accented text
    behaves as it does on PostgreSQL.
"""

import logging
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import Settings

logger = logging.getLogger(__name__)


def _register_sqlite_functions(dbapi_connection, connection_record) -> None:
    dbapi_connection.create_function("lower", 1, _unicode_lower)


def _unicode_lower(value: Optional[str]) -> Optional[str]:
    return value.lower() if isinstance(value, str) else value


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Registers every model with one shared metadata object, which Alembic
    reads for migrations and `Database.create_all()` uses in development.
    """
    pass


class Database:
    """
    Owns the async engine and the session factory for one store.

    Lifecycle:
        1. Created in the application lifespan (or by a test fixture)
        2. `ping()` verifies connectivity at startup and for /health
        3. `session()` hands out one AsyncSession per request
        4. `dispose()` closes every pooled connection at shutdown
    """

    def __init__(self, url: str, **engine_kwargs: Any) -> None:
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        # expire_on_commit=False: response models read attributes after commit
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        if url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _register_sqlite_functions)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Builds a handle from application settings."""
        kwargs: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
        if not settings.database_url.startswith("sqlite"):
            kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_recycle=3600,
            )
        return cls(settings.database_url, **kwargs)

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def ping(self) -> None:
        """Runs SELECT 1; raises whatever the driver raises when unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_all(self) -> None:
        """Creates missing tables (development and tests; production uses Alembic)."""
        # Models must be imported so their tables are registered on Base.metadata
        from app.models import post  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Gracefully closes all connections in the pool."""
        await self.engine.dispose()
        logger.info("Database connections closed")


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Opens a session from the app's Database handle
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handlers
        5. Always: closes the session (returns connection to pool)
    """
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database handle is not initialised on app.state")

    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
