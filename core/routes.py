"""
Route configuration module
"""

from fastapi import FastAPI

from api.routes import router
from api.auth import router as auth_router
from api.admin_routes import router as admin_router
from api.case_routes import router as case_router
from api.solution_routes import router as solution_router
from api.resource_routes import router as resource_router
from api.share_routes import router as share_router
from api.report_routes import router as report_router
from api.dashboard import router as dashboard_router


def setup_routes(app: FastAPI) -> None:
    """set application routes"""

    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(router, prefix="/api/v1", tags=["General"])
    app.include_router(admin_router)  # routers below carry their own prefix
    app.include_router(case_router)
    app.include_router(solution_router)
    app.include_router(resource_router)
    app.include_router(share_router)
    app.include_router(report_router)
    app.include_router(dashboard_router)
