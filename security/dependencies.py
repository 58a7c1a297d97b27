"""User database and manager dependencies."""

from __future__ import annotations

import uuid
from typing import AsyncIterator, Optional

from fastapi import Depends
from fastapi_users.db import SQLAlchemyUserDatabase
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from database.models import User
from security.manager import UserManager


class UUIDSQLAlchemyUserDatabase(SQLAlchemyUserDatabase[User, uuid.UUID]):
    """User lookups that accept string ids and skip soft-deleted accounts."""

    async def get(self, id: uuid.UUID) -> Optional[User]:
        if isinstance(id, str):
            id = uuid.UUID(id)
        statement = select(self.user_table).where(
            self.user_table.id == id, self.user_table.deleted_at.is_(None)
        )
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def get_by_email(self, email: str) -> Optional[User]:
        statement = select(self.user_table).where(
            func.lower(self.user_table.email) == func.lower(email),
            self.user_table.deleted_at.is_(None),
        )
        result = await self.session.execute(statement)
        return result.scalars().first()


async def get_user_db(
    session: AsyncSession = Depends(get_async_session),
) -> AsyncIterator[UUIDSQLAlchemyUserDatabase]:
    yield UUIDSQLAlchemyUserDatabase(session, User)


async def get_user_manager(
    user_db: UUIDSQLAlchemyUserDatabase = Depends(get_user_db),
) -> AsyncIterator[UserManager]:
    yield UserManager(user_db)
