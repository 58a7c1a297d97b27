"""Audit log model: one immutable row per tracked mutation."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from database.base import Base
from database.types import UUIDType


class AuditAction:
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class AuditLog(Base):
    """Before/after snapshots of a record change."""

    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_record", "table_name", "record_id", "created_at"),
        Index("ix_audit_log_actor", "changed_by", "created_at"),
        Index("ix_audit_log_action", "action"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType(), primary_key=True, default=uuid.uuid4)
    table_name: Mapped[str] = mapped_column(String(64), nullable=False)
    record_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    old_record: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    new_record: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    changed_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType(), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: dt.datetime.now(dt.timezone.utc),
        nullable=False,
    )
