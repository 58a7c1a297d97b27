"""Persistence layer: declarative base, engines and sessions."""

from .base import Base, TimestampMixin
from .session import (
    async_engine,
    async_session_factory,
    check_database_connection,
    get_async_session,
    session_scope,
    sync_engine,
)

# every model must be imported before create_all or Alembic autogenerate
from . import models  # noqa: F401

__all__ = [
    "Base",
    "TimestampMixin",
    "async_engine",
    "sync_engine",
    "async_session_factory",
    "get_async_session",
    "session_scope",
    "check_database_connection",
]
