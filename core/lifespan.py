"""
Application lifecycle management module
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from loguru import logger

from config import get_current_model_info, settings
from database.init_db import init_database
from database.session import async_engine, check_database_connection
from security.initialization import ensure_default_policies, ensure_default_superuser


@asynccontextmanager
async def lifespan(app: FastAPI):
    """application lifecycle management"""
    logger.info(f"Starting {settings.app_name} {settings.app_version}...")

    try:
        await initialize_services()

        yield

    except Exception as e:
        logger.error(f"Service initialization failed: {e}")
        raise
    finally:
        logger.info("Shutting down services...")
        await async_engine.dispose()


async def initialize_services():
    """prepare schema, bootstrap account, capability policies and statuses"""

    await check_database_connection()
    logger.info("Database connection ready")

    await init_database()

    await ensure_default_superuser()
    await ensure_default_policies()

    model_info = get_current_model_info()
    logger.info(f"Reports use {model_info['llm_provider']} ({model_info['llm_model']})")
