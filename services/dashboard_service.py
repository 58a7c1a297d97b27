"""Dashboard aggregation service."""
from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy import func, select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Case, Status, Test


async def _split_counts(session: AsyncSession, model) -> Dict[str, int]:
    """Total, final and pending counts; entities without a status count as pending."""
    live = model.deleted_at.is_(None)
    total = await session.scalar(select(func.count(model.id)).where(live))
    final = await session.scalar(
        select(func.count(model.id))
        .join(Status, Status.id == model.status_id)
        .where(and_(live, Status.is_final.is_(True)))
    )
    total = int(total or 0)
    final = int(final or 0)
    return {"total": total, "final": final, "pending": total - final}


async def get_dashboard_summary(session: AsyncSession) -> Dict[str, Dict[str, int]]:
    return {
        "cases": await _split_counts(session, Case),
        "tests": await _split_counts(session, Test),
    }


async def get_recent_cases(session: AsyncSession, limit: int = 5) -> List[Case]:
    result = await session.execute(
        select(Case)
        .where(Case.deleted_at.is_(None))
        .order_by(Case.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_status_breakdown(session: AsyncSession) -> List[Dict[str, Any]]:
    """Live cases and tests per status, in workflow order."""
    rows = []
    statuses = await session.execute(
        select(Status).where(Status.deleted_at.is_(None)).order_by(Status.display_order)
    )
    for status in statuses.scalars().all():
        cases = await session.scalar(
            select(func.count(Case.id)).where(
                Case.status_id == status.id, Case.deleted_at.is_(None)
            )
        )
        tests = await session.scalar(
            select(func.count(Test.id)).where(
                Test.status_id == status.id, Test.deleted_at.is_(None)
            )
        )
        rows.append(
            {
                "status_id": status.id,
                "name": status.name,
                "color": status.color,
                "is_final": status.is_final,
                "cases": int(cases or 0),
                "tests": int(tests or 0),
            }
        )
    return rows
