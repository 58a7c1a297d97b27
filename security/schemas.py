"""Authentication and administration schemas."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional

from fastapi_users import schemas
from pydantic import BaseModel, Field, field_validator

from security.permissions import Role


def _validate_role(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    role = Role.parse(value)
    if role is None:
        raise ValueError(f"Rol desconocido: {value}")
    return role.value


class UserRead(schemas.BaseUser[uuid.UUID]):
    full_name: Optional[str] = None
    role: str
    avatar_url: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class UserCreate(schemas.BaseUserCreate):
    full_name: Optional[str] = None
    role: str = Role.INQUIRY.value

    @field_validator("role")
    @classmethod
    def check_role(cls, value: str) -> str:
        return _validate_role(value)


class UserUpdate(schemas.BaseUserUpdate):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class AdminUserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6)
    role: str
    full_name: Optional[str] = None

    @field_validator("role")
    @classmethod
    def check_role(cls, value: str) -> str:
        return _validate_role(value)


class RoleUpdateRequest(BaseModel):
    role: str

    @field_validator("role")
    @classmethod
    def check_role(cls, value: str) -> str:
        return _validate_role(value)


class ActiveUpdateRequest(BaseModel):
    is_active: bool


class RoleSchema(BaseModel):
    name: str
    description: str
    permissions: list[str]


class PolicySchema(BaseModel):
    id: int
    subject: str
    domain: str
    resource: str
    action: str


class PolicyDriftSchema(BaseModel):
    missing: list[list[str]]
    unexpected: list[list[str]]
