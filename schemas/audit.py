"""Audit log schemas."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import List, Optional

from pydantic import BaseModel


class AuditFieldChange(BaseModel):
    field: str
    label: str
    old_value: str
    new_value: str


class AuditEntryResponse(BaseModel):
    id: uuid.UUID
    table_name: str
    table_label: str
    record_id: str
    action: str
    action_label: str
    changed_by: Optional[uuid.UUID] = None
    user_name: str
    description: str
    created_at: dt.datetime
    fields: Optional[List[AuditFieldChange]] = None


class AuditListResponse(BaseModel):
    items: List[AuditEntryResponse]
    total: int
    limit: int
    offset: int
