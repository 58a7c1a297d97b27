from fastapi import APIRouter, HTTPException
from typing import Dict
from pydantic import BaseModel

from config import get_current_model_info, settings
from database.session import check_database_connection
from loguru import logger

# create router
router = APIRouter()


# response models
class HealthResponse(BaseModel):
    status: str
    services: Dict[str, bool]
    version: str


# health check
@router.get("/health", response_model=HealthResponse)
async def health_check():
    """health check interface"""
    try:
        try:
            await check_database_connection()
            database_ok = True
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            database_ok = False

        services_status = {
            "database": database_ok,
            "report_llm": _report_llm_configured(),
        }

        overall_status = "healthy" if database_ok else "degraded"

        return HealthResponse(
            status=overall_status,
            services=services_status,
            version=settings.app_version
        )
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# system configuration
@router.get("/config")
async def get_system_config():
    """public configuration used by the front-end"""
    return {
        "app_name": settings.app_name,
        "version": settings.app_version,
        "share_base_url": settings.share_base_url,
        "max_upload_size": settings.max_upload_size,
        "reports": get_current_model_info(),
    }


def _report_llm_configured() -> bool:
    provider = settings.llm_provider
    if provider == "ollama":
        return True
    return bool(
        {
            "openai": settings.openai_api_key,
            "gemini": settings.google_api_key,
            "openrouter": settings.openrouter_api_key,
        }.get(provider)
    )
