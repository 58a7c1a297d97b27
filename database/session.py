"""Engines, sessions and connection setup.

The async engine serves requests; the sync engine exists for the Casbin
adapter and offline Alembic runs. SQLite connections get WAL, a busy
timeout and foreign key enforcement so ``ON DELETE`` rules on attachments,
progress entries and solution links apply.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator

from loguru import logger
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config import settings


def _engine_options(dsn: str, *, asyncpg: bool) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.db_echo, "pool_pre_ping": True}
    connect_args: dict[str, Any] = {}

    if dsn.startswith("sqlite"):
        connect_args["timeout"] = settings.sqlite_busy_timeout_seconds
    elif dsn.startswith("postgresql") and settings.db_schema:
        if asyncpg:
            connect_args["server_settings"] = {"search_path": settings.db_schema}
        else:
            connect_args["options"] = f"-csearch_path={settings.db_schema}"

    if connect_args:
        options["connect_args"] = connect_args
    return options


def _install_sqlite_pragmas(engine: Engine) -> None:
    journal_mode = settings.sqlite_journal_mode.upper()
    synchronous = settings.sqlite_synchronous.upper()
    busy_timeout_ms = max(settings.sqlite_busy_timeout_seconds, 1) * 1000

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:  # pragma: no cover - connection setup
        cursor = dbapi_connection.cursor()
        cursor.execute(f"PRAGMA busy_timeout={busy_timeout_ms}")
        cursor.execute(f"PRAGMA journal_mode={journal_mode}")
        cursor.execute(f"PRAGMA synchronous={synchronous}")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async_engine: AsyncEngine = create_async_engine(
    settings.database_dsn_async,
    **_engine_options(settings.database_dsn_async, asyncpg=True),
)
sync_engine: Engine = create_engine(
    settings.database_dsn_sync,
    **_engine_options(settings.database_dsn_sync, asyncpg=False),
)

if settings.database_dsn_async.startswith("sqlite"):
    _install_sqlite_pragmas(async_engine.sync_engine)
if settings.database_dsn_sync.startswith("sqlite"):
    _install_sqlite_pragmas(sync_engine)

async_session_factory = async_sessionmaker(async_engine, expire_on_commit=False)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Request scoped session; routes commit or roll back themselves."""
    async with async_session_factory() as session:
        yield session


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Session for startup and maintenance work, committed on success."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception("Rolled back maintenance session")
            raise


async def check_database_connection() -> None:
    async with async_engine.connect() as connection:
        await connection.execute(text("SELECT 1"))


__all__ = [
    "async_engine",
    "sync_engine",
    "async_session_factory",
    "get_async_session",
    "session_scope",
    "check_database_connection",
]
