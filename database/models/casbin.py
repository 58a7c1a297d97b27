"""Capability policies persisted for Casbin.

Rows follow the casbin-sqlalchemy-adapter layout: ``p, role, domain,
capability, action``. The permission table in ``security.permissions`` is
the source they are synchronized from at startup.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from database.base import Base


class CasbinRule(Base):
    __tablename__ = "casbin_rule"
    __table_args__ = (Index("idx_casbin_rule", "ptype", "v0", "v1", "v2", "v3"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ptype: Mapped[str] = mapped_column(String(255), nullable=False)
    v0: Mapped[Optional[str]] = mapped_column(String(255))  # role
    v1: Mapped[Optional[str]] = mapped_column(String(255))  # domain
    v2: Mapped[Optional[str]] = mapped_column(String(255))  # capability
    v3: Mapped[Optional[str]] = mapped_column(String(255))  # action
    v4: Mapped[Optional[str]] = mapped_column(String(255))
    v5: Mapped[Optional[str]] = mapped_column(String(255))

    def __str__(self) -> str:
        values = [self.ptype] + [v for v in (self.v0, self.v1, self.v2, self.v3, self.v4, self.v5) if v]
        return ", ".join(values)
