"""
FastAPI application factory
"""

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from config import settings
from .exception_handlers import setup_exception_handlers
from .lifespan import lifespan
from .middleware import setup_middleware
from .routes import setup_routes

API_DESCRIPTION = (
    "Support case and test tracking with a solution knowledge base, "
    "shareable resource repository, audit trail and AI generated reports."
)


def create_app() -> FastAPI:
    """create FastAPI application instance"""

    app = FastAPI(
        title=settings.app_name,
        description=API_DESCRIPTION,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    setup_middleware(app)
    setup_exception_handlers(app)
    setup_routes(app)

    # attachments and uploaded resources, addressed by MEDIA_BASE_URL
    app.mount(
        "/media",
        StaticFiles(directory=str(settings.media_root_path), check_dir=False),
        name="media",
    )

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "docs": "/docs" if settings.debug else None,
            "health": "/api/v1/health",
        }

    return app
