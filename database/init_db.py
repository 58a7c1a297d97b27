"""Create the schema and seed the default workflow.

Run as ``python -m database.init_db`` to prepare an empty SQLite file
without starting the API. Deployments on PostgreSQL use Alembic instead.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from database.base import Base
from database.session import async_engine, session_scope
from services.catalog_service import ensure_default_statuses


async def create_tables(engine: Optional[AsyncEngine] = None) -> None:
    engine = engine or async_engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Schema ready ({len(Base.metadata.tables)} tables)")


async def init_database() -> int:
    """Create missing tables and seed statuses, returning how many statuses were added."""
    await create_tables()
    async with session_scope() as session:
        created = await ensure_default_statuses(session)
    if created:
        logger.info(f"Seeded {created} default statuses")
    return created


if __name__ == "__main__":
    asyncio.run(init_database())
