"""Resource repository and share link schemas."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from database.models import ResourceType, SharePermission


class ResourceCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    type: ResourceType = ResourceType.LINK
    url: str = Field(..., min_length=1, max_length=1024)
    folder: str = Field("General", min_length=1, max_length=255)
    description: Optional[str] = None
    solution_id: Optional[uuid.UUID] = None


class ResourceUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[ResourceType] = None
    url: Optional[str] = Field(None, min_length=1, max_length=1024)
    folder: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    solution_id: Optional[uuid.UUID] = None


class ResourceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    type: str
    url: str
    folder: str
    description: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    solution_id: Optional[uuid.UUID] = None
    created_by: Optional[uuid.UUID] = None
    share_enabled: bool
    share_permission: str
    share_expires_at: Optional[dt.datetime] = None
    share_url: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class FolderCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    icon: Optional[str] = Field("📁", max_length=16)
    color: Optional[str] = Field("#3B82F6", max_length=32)


class FolderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[uuid.UUID] = None
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None
    resource_count: int = 0
    created_at: Optional[dt.datetime] = None


class ShareSettingsUpdate(BaseModel):
    permission: Optional[SharePermission] = None
    expires_in_days: Optional[int] = Field(None, ge=1, le=3650, description="Días hasta la expiración")
    clear_expiration: bool = False


class SharedResourceView(BaseModel):
    """Public view of a shared resource."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    type: str
    url: str
    folder: str
    description: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    created_at: dt.datetime


class ResourceListResponse(BaseModel):
    items: List[ResourceResponse]
    total: int
