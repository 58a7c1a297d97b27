"""Cases, tests and their progress entries and attachments."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database.base import Base, TimestampMixin
from database.models.catalog import Application, Category, Status
from database.models.user import User
from database.types import UUIDType


class Case(Base, TimestampMixin):
    """Support issue."""

    __tablename__ = "cases"
    __table_args__ = (
        Index("ix_cases_status", "status_id"),
        Index("ix_cases_responsible", "responsible_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType(), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    application_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("applications.id", ondelete="SET NULL"), nullable=True
    )
    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    case_type_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("case_types.id", ondelete="SET NULL"), nullable=True
    )
    status_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("statuses.id", ondelete="SET NULL"), nullable=True
    )
    responsible_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    deleted_at: Mapped[Optional[dt.datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    status: Mapped[Optional[Status]] = relationship(lazy="joined")
    application: Mapped[Optional[Application]] = relationship(lazy="joined")
    category: Mapped[Optional[Category]] = relationship(lazy="joined")
    responsible: Mapped[Optional[User]] = relationship(
        foreign_keys=[responsible_id], lazy="joined"
    )


class Test(Base, TimestampMixin):
    """Technical validation, optionally tied to a case."""

    __tablename__ = "tests"
    __test__ = False
    __table_args__ = (
        Index("ix_tests_status", "status_id"),
        Index("ix_tests_case", "case_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUIDType(), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    application_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("applications.id", ondelete="SET NULL"), nullable=True
    )
    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    test_type_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("test_types.id", ondelete="SET NULL"), nullable=True
    )
    status_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("statuses.id", ondelete="SET NULL"), nullable=True
    )
    responsible_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    case_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("cases.id", ondelete="SET NULL"), nullable=True
    )
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    deleted_at: Mapped[Optional[dt.datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    status: Mapped[Optional[Status]] = relationship(lazy="joined")
    application: Mapped[Optional[Application]] = relationship(lazy="joined")
    category: Mapped[Optional[Category]] = relationship(lazy="joined")
    responsible: Mapped[Optional[User]] = relationship(
        foreign_keys=[responsible_id], lazy="joined"
    )


class CaseProgress(Base):
    __tablename__ = "case_progress"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType(), primary_key=True, default=uuid.uuid4)
    case_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    committee_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: dt.datetime.now(dt.timezone.utc),
        nullable=False,
    )

    creator: Mapped[Optional[User]] = relationship(lazy="joined")


class TestProgress(Base):
    __tablename__ = "test_progress"
    __test__ = False

    id: Mapped[uuid.UUID] = mapped_column(UUIDType(), primary_key=True, default=uuid.uuid4)
    test_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    committee_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: dt.datetime.now(dt.timezone.utc),
        nullable=False,
    )

    creator: Mapped[Optional[User]] = relationship(lazy="joined")


class CaseAttachment(Base):
    __tablename__ = "case_attachments"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType(), primary_key=True, default=uuid.uuid4)
    case_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("cases.id", ondelete="CASCADE"), nullable=True, index=True
    )
    progress_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("case_progress.id", ondelete="CASCADE"), nullable=True
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_path: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    file_type: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    uploaded_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: dt.datetime.now(dt.timezone.utc),
        nullable=False,
    )


class TestAttachment(Base):
    __tablename__ = "test_attachments"
    __test__ = False

    id: Mapped[uuid.UUID] = mapped_column(UUIDType(), primary_key=True, default=uuid.uuid4)
    test_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("tests.id", ondelete="CASCADE"), nullable=True, index=True
    )
    progress_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("test_progress.id", ondelete="CASCADE"), nullable=True
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_path: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    file_type: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    uploaded_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: dt.datetime.now(dt.timezone.utc),
        nullable=False,
    )
