"""
Application entry point: REST API and uploaded media on a single port.
"""

import uvicorn
from loguru import logger

from config import get_current_model_info, settings
from core.app import create_app
from core.logging import setup_logging

setup_logging()

app = create_app()


def start_server():
    """start server"""
    base_url = f"http://{settings.host}:{settings.port}"
    logger.info(f"{settings.app_name} v{settings.app_version}")
    logger.info(f"REST API: {base_url}/api/v1/")
    if settings.debug:
        logger.info(f"Docs:     {base_url}/docs")
    logger.info(f"Media:    {settings.media_base_url} -> {settings.media_root}")
    logger.info(f"Reports:  {get_current_model_info()}")

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        # loguru owns the handlers, see core.logging
        log_config=None,
        access_log=settings.debug,
    )


if __name__ == "__main__":
    start_server()
