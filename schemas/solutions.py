"""Solution report schemas."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SolutionBase(BaseModel):
    case_id: uuid.UUID = Field(..., description="Caso resuelto")
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    findings: Optional[str] = None
    steps_to_reproduce: Optional[str] = None
    steps_to_resolve: str = Field(..., min_length=1)
    final_result: Optional[str] = None
    observations: Optional[str] = None
    spl_app_url: Optional[str] = None
    additional_app_url: Optional[str] = None
    necessary_app: Optional[str] = None
    necessary_firmware: Optional[str] = None
    tests_performed: bool = False


class SolutionCreate(SolutionBase):
    test_ids: List[uuid.UUID] = Field(default_factory=list, description="Pruebas realizadas")


class SolutionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    findings: Optional[str] = None
    steps_to_reproduce: Optional[str] = None
    steps_to_resolve: Optional[str] = None
    final_result: Optional[str] = None
    observations: Optional[str] = None
    spl_app_url: Optional[str] = None
    additional_app_url: Optional[str] = None
    necessary_app: Optional[str] = None
    necessary_firmware: Optional[str] = None
    tests_performed: Optional[bool] = None
    test_ids: Optional[List[uuid.UUID]] = None


class SolutionResponse(SolutionBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_by: Optional[uuid.UUID] = None
    test_ids: List[uuid.UUID] = Field(default_factory=list)
    created_at: dt.datetime
    updated_at: dt.datetime


class SolutionListResponse(BaseModel):
    items: List[SolutionResponse]
    total: int
    offset: int
    limit: int
