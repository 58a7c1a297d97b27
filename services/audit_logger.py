"""Audit log writes and queries."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.base import Base
from database.models import AuditAction, AuditLog, User
from services.audit_diff import (
    UNKNOWN_USER_LABEL,
    action_label,
    describe_change,
    history_fields,
    normalize_action,
    table_label,
)

AUDIT_LIST_LIMIT = 1000


SNAPSHOT_EXCLUDED_FIELDS = frozenset({"hashed_password", "share_token"})


def snapshot(instance: Optional[Base]) -> Optional[dict[str, Any]]:
    """JSON friendly column snapshot of a model instance."""
    if instance is None:
        return None
    data = {
        key: value
        for key, value in instance.to_dict().items()
        if key not in SNAPSHOT_EXCLUDED_FIELDS
    }
    return jsonable_encoder(data)


class AuditLogger:
    """Appends ``audit_log`` rows inside the caller's transaction."""

    async def record_change(
        self,
        session: AsyncSession,
        *,
        table_name: str,
        record_id: Any,
        action: str,
        old_record: Optional[dict[str, Any]] = None,
        new_record: Optional[dict[str, Any]] = None,
        changed_by: Optional[uuid.UUID] = None,
        created_at: Optional[dt.datetime] = None,
    ) -> AuditLog:
        canonical = normalize_action(action)
        if canonical is None:
            raise ValueError(f"Unsupported audit action: {action!r}")

        entry = AuditLog(
            table_name=table_name,
            record_id=str(record_id),
            action=canonical,
            old_record=old_record if canonical != AuditAction.CREATED else None,
            new_record=new_record if canonical != AuditAction.DELETED else None,
            changed_by=changed_by,
            created_at=created_at or dt.datetime.now(dt.timezone.utc),
        )
        session.add(entry)
        await session.flush()
        return entry

    async def record_created(
        self, session: AsyncSession, instance: Base, changed_by: Optional[uuid.UUID]
    ) -> AuditLog:
        return await self.record_change(
            session,
            table_name=instance.__tablename__,
            record_id=instance.id,
            action=AuditAction.CREATED,
            new_record=snapshot(instance),
            changed_by=changed_by,
        )

    async def record_updated(
        self,
        session: AsyncSession,
        instance: Base,
        before: Optional[dict[str, Any]],
        changed_by: Optional[uuid.UUID],
    ) -> AuditLog:
        return await self.record_change(
            session,
            table_name=instance.__tablename__,
            record_id=instance.id,
            action=AuditAction.UPDATED,
            old_record=before,
            new_record=snapshot(instance),
            changed_by=changed_by,
        )

    async def record_deleted(
        self,
        session: AsyncSession,
        instance: Base,
        before: Optional[dict[str, Any]],
        changed_by: Optional[uuid.UUID],
    ) -> AuditLog:
        return await self.record_change(
            session,
            table_name=instance.__tablename__,
            record_id=instance.id,
            action=AuditAction.DELETED,
            old_record=before,
            changed_by=changed_by,
        )


audit_logger = AuditLogger()


async def list_audit_logs(
    session: AsyncSession,
    *,
    changed_by: Optional[uuid.UUID] = None,
    table_name: Optional[str] = None,
    action: Optional[str] = None,
    start: Optional[dt.datetime] = None,
    end: Optional[dt.datetime] = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[AuditLog], int]:
    filters = []
    if changed_by:
        filters.append(AuditLog.changed_by == changed_by)
    if table_name:
        filters.append(AuditLog.table_name == table_name)
    if action:
        filters.append(AuditLog.action == (normalize_action(action) or action))
    if start:
        filters.append(AuditLog.created_at >= start)
    if end:
        filters.append(AuditLog.created_at <= end)

    query: Select[tuple[AuditLog]] = (
        select(AuditLog).where(*filters).order_by(AuditLog.created_at.desc())
    )

    count_query = select(func.count(AuditLog.id))
    if filters:
        count_query = count_query.where(*filters)
    total = await session.scalar(count_query)
    limit = min(limit, AUDIT_LIST_LIMIT)
    result = await session.execute(query.limit(limit).offset(offset))
    items = list(result.scalars().all())
    return items, int(total or 0)


async def list_record_history(
    session: AsyncSession,
    table_name: str,
    record_id: Any,
) -> list[AuditLog]:
    result = await session.execute(
        select(AuditLog)
        .where(AuditLog.table_name == table_name, AuditLog.record_id == str(record_id))
        .order_by(AuditLog.created_at.desc())
    )
    return list(result.scalars().all())


async def actor_names(session: AsyncSession, entries: list[AuditLog]) -> dict[uuid.UUID, str]:
    actor_ids = {entry.changed_by for entry in entries if entry.changed_by}
    if not actor_ids:
        return {}
    result = await session.execute(
        select(User.id, User.full_name, User.email).where(User.id.in_(actor_ids))
    )
    return {row.id: row.full_name or row.email for row in result.all()}


def present_entry(
    entry: AuditLog,
    names: dict[uuid.UUID, str],
    *,
    with_fields: bool = False,
) -> dict[str, Any]:
    data = {
        "id": entry.id,
        "table_name": entry.table_name,
        "table_label": table_label(entry.table_name),
        "record_id": entry.record_id,
        "action": entry.action,
        "action_label": action_label(entry.action),
        "changed_by": entry.changed_by,
        "user_name": names.get(entry.changed_by, UNKNOWN_USER_LABEL)
        if entry.changed_by
        else UNKNOWN_USER_LABEL,
        "description": describe_change(entry.action, entry.old_record, entry.new_record),
        "created_at": entry.created_at,
    }
    if with_fields:
        data["fields"] = history_fields(entry.old_record, entry.new_record)
    return data


__all__ = [
    "AuditLogger",
    "audit_logger",
    "snapshot",
    "list_audit_logs",
    "list_record_history",
    "actor_names",
    "present_entry",
]
