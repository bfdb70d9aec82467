"""Async database access for CodePruner.

One engine per process. Every unit of work (an admission lookup, a writer
batch, one tenant's sweep or aggregation) gets its own session and
transaction from :meth:`DatabaseManager.get_session`.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from codepruner.common.config import PrunerSettings, get_settings
from codepruner.common.models import Base

# Register every table on Base.metadata before create_all().
import codepruner.tenants.models  # noqa: F401
import codepruner.events.models  # noqa: F401
import codepruner.analysis.models  # noqa: F401

logger = logging.getLogger(__name__)


def _sqlite_file(url: str) -> Path | None:
    """Path of an on-disk SQLite database, or None for memory / other backends."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return None
    if not parsed.database or parsed.database == ":memory:":
        return None
    return Path(parsed.database)


def _enable_wal(dbapi_connection, connection_record) -> None:
    # WAL: readers do not block on the event writer.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


class DatabaseManager:
    """Owns the async engine and hands out transactional sessions."""

    def __init__(self, settings: PrunerSettings | None = None):
        self._settings = settings or get_settings()
        self.engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def initialized(self) -> bool:
        return self._session_factory is not None

    async def init(self) -> None:
        url = self._settings.db_url
        db_file = _sqlite_file(url)
        if db_file is not None:
            db_file.parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_async_engine(url, echo=False)
        if db_file is not None:
            event.listen(self.engine.sync_engine, "connect", _enable_wal)

        self._session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False
        )
        logger.info("Database engine ready (%s)", make_url(url).get_backend_name())

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session whose transaction commits on clean exit and rolls back on error."""
        if not self.initialized:
            raise RuntimeError("DatabaseManager not initialized, call init() first")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        if self.engine is None:
            raise RuntimeError("DatabaseManager not initialized, call init() first")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        """True when a trivial query succeeds."""
        if self.engine is None:
            return False
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            logger.exception("Database ping failed")
            return False
        return True

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self._session_factory = None
