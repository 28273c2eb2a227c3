"""Async SQLite access for the component catalog.

The catalog is read far more often than it is written, so connections run in
WAL mode: match requests keep reading while an import or admin edit writes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from vinylmatch.core.metrics import catalog_db_pool_max_overflow, catalog_db_pool_size

logger = structlog.get_logger("vinylmatch.database")

_SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
)


def _apply_sqlite_pragmas(dbapi_conn: Any, connection_record: Any) -> None:
    cursor = dbapi_conn.cursor()
    try:
        for pragma in _SQLITE_PRAGMAS:
            cursor.execute(pragma)
    finally:
        cursor.close()


def create_database_engine(
    database_file: Path | str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 20,
) -> AsyncEngine:
    """Build the async engine for a catalog database file.

    Args:
        database_file: SQLite file; created on first connect.
        echo: Log every SQL statement.
        pool_size: Pooled connections kept open.
        max_overflow: Extra connections allowed under load.
    """
    database_path = Path(database_file).resolve()
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{database_path.as_posix()}",
        echo=echo,
        # Seconds to wait on a locked database before failing
        connect_args={"timeout": 30.0},
        pool_pre_ping=True,
        pool_size=pool_size,
        max_overflow=max_overflow,
    )
    event.listen(engine.sync_engine, "connect", _apply_sqlite_pragmas)

    catalog_db_pool_size.set(pool_size)
    catalog_db_pool_max_overflow.set(max_overflow)

    logger.info(
        "Catalog database engine created",
        database_file=str(database_path),
        pool_size=pool_size,
        max_overflow=max_overflow,
    )
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[SQLModelAsyncSession]:
    # Rows stay readable after commit; async sessions cannot lazy-load them
    return async_sessionmaker(engine, class_=SQLModelAsyncSession, expire_on_commit=False)


async def init_database(engine: AsyncEngine) -> None:
    """Create any catalog tables that do not exist yet."""
    from vinylmatch.db.models import metadata

    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    logger.info("Catalog schema ready", tables=sorted(metadata.tables))
