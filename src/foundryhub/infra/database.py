"""Database connection management.

A Database owns one async engine and its session factory. It is created by
the entrypoint and passed to the repository; there is no module-level engine.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from foundryhub.core.logging_schema import LogEvent

# Registers FoundryInstance with SQLModel.metadata
from foundryhub.core.models import FoundryInstance  # noqa: F401

logger = logging.getLogger(__name__)


def _create_engine(url: str, echo: bool) -> AsyncEngine:
    """Create async engine; pool tuning only applies to server databases."""
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)
    return create_async_engine(
        url,
        echo=echo,
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,
        pool_pre_ping=True,
    )


class Database:
    """Async database handle."""

    def __init__(self, url: str, echo: bool = False) -> None:
        self._url = url
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call connect() first.")
        return self._engine

    async def connect(self, create_tables: bool = True) -> None:
        """Create the engine and optionally create missing tables."""
        self._engine = _create_engine(self._url, self._echo)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        if create_tables:
            async with self._engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)

        logger.info(
            "Database initialized: %s",
            self._url.split("@")[-1],
            extra={"event": LogEvent.DB_CONNECTED},
        )

    async def close(self) -> None:
        """Dispose the engine."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connection closed")

    async def ping(self) -> bool:
        """Run SELECT 1. Never raises."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("Database health check failed: %s", e)
            return False

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """Open a new session."""
        if self._session_factory is None:
            raise RuntimeError("Database not initialized. Call connect() first.")
        async with self._session_factory() as session:
            yield session
