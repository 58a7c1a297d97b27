"""User management logic."""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import Request
from fastapi_users import BaseUserManager, UUIDIDMixin, schemas
from fastapi_users.password import PasswordHelper
from loguru import logger

from config import settings
from database.models import User
from security.constants import DEFAULT_ROLE
from security.permissions import Role
from services.audit_logger import audit_logger, snapshot


class UserManager(UUIDIDMixin, BaseUserManager[User, uuid.UUID]):
    reset_password_token_secret = settings.auth_reset_token_secret
    verification_token_secret = settings.auth_verification_token_secret

    def __init__(self, user_db):
        super().__init__(user_db)
        self.password_helper = PasswordHelper()

    async def create(
        self,
        user_create: schemas.UC,
        safe: bool = False,
        request: Optional[Request] = None,
    ) -> User:
        # Self registration never picks its own role.
        if safe:
            user_create.role = DEFAULT_ROLE
        else:
            role = Role.parse(getattr(user_create, "role", None))
            user_create.role = role.value if role else DEFAULT_ROLE
        return await super().create(user_create, safe=safe, request=request)

    async def on_after_register(self, user: User, request=None):  # pragma: no cover - hook
        logger.info(f"User registered: {user.email} ({user.id})")
        session = self.user_db.session
        await audit_logger.record_created(session, user, changed_by=user.id)
        await session.commit()

    async def on_after_forgot_password(self, user: User, token: str, request=None):  # pragma: no cover - hook
        logger.info(f"Password reset requested for user {user.id}")

    async def on_after_request_verify(self, user: User, token: str, request=None):  # pragma: no cover
        logger.info(f"Verification requested for user {user.id}")

    async def on_after_login(self, user: User, request=None, response=None):  # pragma: no cover
        logger.info(f"User logged in: {user.email}")

    async def on_after_update(self, user: User, update_dict: dict, request=None):  # pragma: no cover
        logger.info(f"User {user.id} updated fields: {sorted(update_dict)}")

    async def create_superuser(self, user_create, safe: bool = False):
        """Create a verified superuser holding the administrator role."""
        user_create.role = Role.ADMINISTRATOR.value
        user_create.is_verified = True
        user_create.is_superuser = True

        user = await self.create(user_create, safe=False)
        return user
