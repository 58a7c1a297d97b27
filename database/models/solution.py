"""Solution reports and the tests they reference."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database.base import Base, TimestampMixin
from database.models.tracking import Case
from database.types import UUIDType


class Solution(Base, TimestampMixin):
    """Resolution report for a case."""

    __tablename__ = "solutions"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType(), primary_key=True, default=uuid.uuid4)
    case_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    findings: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    steps_to_reproduce: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    steps_to_resolve: Mapped[str] = mapped_column(Text, nullable=False)
    final_result: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    observations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    spl_app_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    additional_app_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    necessary_app: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    necessary_firmware: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    tests_performed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    deleted_at: Mapped[Optional[dt.datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    case: Mapped[Optional[Case]] = relationship(lazy="joined")
    test_links: Mapped[list["SolutionTest"]] = relationship(
        cascade="all, delete-orphan", lazy="selectin"
    )

    @property
    def test_ids(self) -> list[uuid.UUID]:
        return [link.test_id for link in self.test_links]


class SolutionTest(Base):
    __tablename__ = "solution_tests"
    __test__ = False
    __table_args__ = (UniqueConstraint("solution_id", "test_id", name="uq_solution_tests"),)

    id: Mapped[uuid.UUID] = mapped_column(UUIDType(), primary_key=True, default=uuid.uuid4)
    solution_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(), ForeignKey("solutions.id", ondelete="CASCADE"), nullable=False
    )
    test_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False
    )


class SolutionAttachment(Base):
    __tablename__ = "solution_attachments"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType(), primary_key=True, default=uuid.uuid4)
    solution_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(), ForeignKey("solutions.id", ondelete="CASCADE"), nullable=False, index=True
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
