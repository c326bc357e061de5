"""
SuiviTens Backend — Database Session Management
=================================================

What:  Async SQLAlchemy engine wrapper, declarative base, and FastAPI session dependency.
How:   `Database` owns one async engine and its session factory. `create_app()`
       builds it and stores it on `app.state.database`; `get_db_session`
       opens one session per request from that handle, commits on success and
       rolls back on error.
Who:   Route handlers (via Depends), the application lifespan, and tests.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping come from settings and apply to
    server databases only. SQLite (tests, local runs) uses SQLAlchemy's
    default pool for the aiosqlite driver.
"""

import logging
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from suivitens.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Registers models with a single metadata object, used by
    `Database.create_tables()` and by Alembic autogenerate.
    """
    pass


class Database:
    """
    Explicitly constructed store handle.

    Creating a Database does not open a connection; the engine connects
    lazily on first use. `connect()` is the startup probe.
    """

    def __init__(
        self,
        url: str,
        *,
        pool_size: Optional[int] = None,
        max_overflow: Optional[int] = None,
        pool_pre_ping: bool = True,
        echo: bool = False,
        create_tables: bool = False,
    ):
        self.url = url
        self.create_tables_on_connect = create_tables

        engine_kwargs: Dict[str, Any] = {"echo": echo}
        if not url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size or 10,
                max_overflow=max_overflow if max_overflow is not None else 5,
                pool_pre_ping=pool_pre_ping,
                pool_recycle=3600,
            )

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)

        # expire_on_commit=False: ORM objects stay readable after commit,
        # response serialization happens after the session is gone
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            echo=settings.log_level == "DEBUG",
            create_tables=settings.db_create_tables,
        )

    async def connect(self) -> None:
        """
        Verify connectivity and optionally create missing tables.

        Raises whatever the driver raises; the caller decides whether a
        failure is fatal (the lifespan logs it and keeps serving).
        """
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        if self.create_tables_on_connect:
            await self.create_tables()
        logger.info("Database connected")

    async def create_tables(self) -> None:
        """Creates every table registered on Base.metadata if missing."""
        # Models must be imported for their tables to be registered
        from suivitens.models import measurement  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Closes all pooled connections (application shutdown)."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a session from the app's Database handle
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global handlers
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/measurements")
        async def list_measurements(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
