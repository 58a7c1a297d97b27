"""User dashboard routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.case_routes import present_item
from database import get_async_session
from security.auth import current_active_user
from services.dashboard_service import (
    get_dashboard_summary,
    get_recent_cases,
    get_status_breakdown,
)

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


@router.get("/summary")
async def dashboard_summary(
    user=Depends(current_active_user),
    session: AsyncSession = Depends(get_async_session),
):
    d = await get_dashboard_summary(session)
    # map to camelCase
    return {
        "totalCases": d["cases"]["total"],
        "finalCases": d["cases"]["final"],
        "pendingCases": d["cases"]["pending"],
        "totalTests": d["tests"]["total"],
        "finalTests": d["tests"]["final"],
        "pendingTests": d["tests"]["pending"],
    }


@router.get("/recent-cases")
async def recent_cases(
    limit: int = Query(5, ge=1, le=50),
    user=Depends(current_active_user),
    session: AsyncSession = Depends(get_async_session),
):
    cases = await get_recent_cases(session, limit)
    return {"items": [present_item(case) for case in cases]}


@router.get("/status-breakdown")
async def status_breakdown(
    user=Depends(current_active_user),
    session: AsyncSession = Depends(get_async_session),
):
    return {"items": await get_status_breakdown(session)}
