"""
Exception handler module
"""

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from loguru import logger

from config import settings
from security.permissions import UnknownCapabilityError
from services.lifecycle import EntityLockedError, IntegrityGapError, LifecycleError
from services.storage import StorageError, StorageLimitError


def setup_exception_handlers(app: FastAPI) -> None:
    """set exception handlers"""

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """global exception handler"""
        logger.error(f"Global exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": str(exc) if settings.debug else "An unexpected error occurred"
            }
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc):
        """HTTP exception handler"""
        logger.warning(f"HTTP exception: {exc.status_code} - {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": "HTTP error",
                "message": exc.detail
            }
        )

    @app.exception_handler(LifecycleError)
    async def lifecycle_exception_handler(request, exc):
        if isinstance(exc, EntityLockedError):
            status_code = 409
        elif isinstance(exc, IntegrityGapError):
            status_code = 400
        else:
            status_code = 403
        logger.warning(f"Lifecycle rule rejected request {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status_code,
            content={"error": "Lifecycle error", "message": str(exc)},
        )

    @app.exception_handler(UnknownCapabilityError)
    async def unknown_capability_handler(request, exc):
        logger.error(f"Unknown capability on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Unknown capability",
                "message": str(exc) if settings.debug else "An unexpected error occurred",
            },
        )

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request, exc):
        status_code = 413 if isinstance(exc, StorageLimitError) else 500
        logger.error(f"Storage failure on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status_code,
            content={"error": "Storage error", "message": str(exc)},
        )
