"""Case and test schemas."""

from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .catalog import StatusSummary


class EntityKind(str, Enum):
    CASE = "case"
    TEST = "test"


class TrackedItemBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, description="Título")
    description: Optional[str] = Field(None, description="Descripción")
    application_id: Optional[uuid.UUID] = None
    category_id: Optional[uuid.UUID] = None
    status_id: Optional[uuid.UUID] = Field(
        None, description="Estado inicial, por defecto el primer estado no final"
    )
    responsible_id: Optional[uuid.UUID] = None


class CaseCreate(TrackedItemBase):
    case_type_id: Optional[uuid.UUID] = None


class TestCreate(TrackedItemBase):
    __test__ = False

    test_type_id: Optional[uuid.UUID] = None
    case_id: Optional[uuid.UUID] = None


class TrackedItemUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    application_id: Optional[uuid.UUID] = None
    category_id: Optional[uuid.UUID] = None
    status_id: Optional[uuid.UUID] = None
    responsible_id: Optional[uuid.UUID] = None
    case_type_id: Optional[uuid.UUID] = None
    test_type_id: Optional[uuid.UUID] = None
    case_id: Optional[uuid.UUID] = None


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    full_name: Optional[str] = None
    email: Optional[str] = None


class TrackedItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: Optional[str] = None
    application_id: Optional[uuid.UUID] = None
    category_id: Optional[uuid.UUID] = None
    case_type_id: Optional[uuid.UUID] = None
    test_type_id: Optional[uuid.UUID] = None
    case_id: Optional[uuid.UUID] = None
    status_id: Optional[uuid.UUID] = None
    responsible_id: Optional[uuid.UUID] = None
    created_by: Optional[uuid.UUID] = None
    status: Optional[StatusSummary] = None
    responsible: Optional[UserSummary] = None
    is_locked: bool = False
    created_at: dt.datetime
    updated_at: dt.datetime


class TrackedItemListResponse(BaseModel):
    items: List[TrackedItemResponse]
    total: int
    offset: int
    limit: int


class ProgressCreate(BaseModel):
    description: str = Field(..., min_length=1, description="Descripción del avance")
    committee_notes: Optional[str] = Field(None, description="Notas del comité")


class ProgressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    description: str
    committee_notes: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    creator: Optional[UserSummary] = None
    created_at: dt.datetime


class AttachmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    progress_id: Optional[uuid.UUID] = None
    file_name: str
    file_url: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_by: Optional[uuid.UUID] = None
    created_at: dt.datetime
