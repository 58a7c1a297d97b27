"""AI report routes."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from schemas import EntityKind
from security.auth import current_active_user
from services.report_service import (
    ReportConfigurationError,
    ReportNotFoundError,
    ReportService,
    ReportServiceError,
)

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


class ActiveReportRequest(BaseModel):
    additional_instructions: Optional[str] = Field(
        None, max_length=4000, description="Instrucciones adicionales para el informe"
    )


class EntityReportResponse(BaseModel):
    entity_type: str
    entity_id: uuid.UUID
    report: str
    generated_at: dt.datetime


class ActiveReportResponse(BaseModel):
    report: str
    item_count: int
    generated_at: dt.datetime


def get_report_service(
    session: AsyncSession = Depends(get_async_session),
) -> ReportService:
    return ReportService(session)


def _raise_http(exc: ReportServiceError) -> None:
    if isinstance(exc, ReportNotFoundError):
        raise HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ReportConfigurationError):
        raise HTTPException(status_code=503, detail=str(exc))
    raise HTTPException(status_code=502, detail=str(exc))


@router.post("/active", response_model=ActiveReportResponse)
async def generate_active_report(
    payload: ActiveReportRequest,
    service: ReportService = Depends(get_report_service),
    user=Depends(current_active_user),
):
    """Status report over every open case and test."""
    try:
        return await service.generate_active_report(payload.additional_instructions)
    except ReportServiceError as exc:
        _raise_http(exc)
    except Exception as exc:
        logger.error(f"Active report failed: {exc}")
        raise HTTPException(status_code=502, detail="Error al generar el informe")


@router.post("/{entity_type}/{entity_id}", response_model=EntityReportResponse)
async def generate_entity_report(
    entity_type: EntityKind,
    entity_id: uuid.UUID,
    service: ReportService = Depends(get_report_service),
    user=Depends(current_active_user),
):
    try:
        return await service.generate_report(entity_type, entity_id)
    except ReportServiceError as exc:
        _raise_http(exc)
    except Exception as exc:
        logger.error(f"Report for {entity_type.value} {entity_id} failed: {exc}")
        raise HTTPException(status_code=502, detail="Error al generar el informe")
