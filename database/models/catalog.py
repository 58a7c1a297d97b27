"""Configurable catalogs: applications, categories, statuses and types."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from database.base import Base, TimestampMixin
from database.types import UUIDType


class CatalogMixin(TimestampMixin):
    id: Mapped[uuid.UUID] = mapped_column(UUIDType(), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    deleted_at: Mapped[Optional[dt.datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class Application(CatalogMixin, Base):
    __tablename__ = "applications"

    color: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)


class Category(CatalogMixin, Base):
    __tablename__ = "categories"


class CaseType(CatalogMixin, Base):
    __tablename__ = "case_types"


class TestType(CatalogMixin, Base):
    __tablename__ = "test_types"
    __test__ = False


class Status(CatalogMixin, Base):
    """Workflow status; statuses flagged ``is_final`` lock their entities."""

    __tablename__ = "statuses"

    color: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    is_final: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
