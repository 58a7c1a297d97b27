"""Catalog schemas: applications, categories, types and statuses."""

from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CatalogKind(str, Enum):
    APPLICATIONS = "applications"
    CATEGORIES = "categories"
    CASE_TYPES = "case-types"
    TEST_TYPES = "test-types"
    STATUSES = "statuses"


class CatalogItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Nombre")
    description: Optional[str] = Field(None, description="Descripción")
    color: Optional[str] = Field(None, max_length=32, description="Color (aplicaciones y estados)")
    is_final: Optional[bool] = Field(None, description="Estado final (solo estados)")
    display_order: Optional[int] = Field(None, ge=0, description="Orden de visualización (solo estados)")


class CatalogItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=32)
    is_final: Optional[bool] = None
    display_order: Optional[int] = Field(None, ge=0)


class CatalogItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    is_final: Optional[bool] = None
    display_order: Optional[int] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class StatusSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    color: Optional[str] = None
    is_final: bool
    display_order: int
