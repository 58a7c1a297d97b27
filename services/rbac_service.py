"""Role administration and stored policy inspection."""

from __future__ import annotations

import uuid
from typing import Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import CasbinRule, User
from security.constants import POLICY_DOMAIN
from security.permissions import Role
from services.audit_logger import audit_logger, snapshot

INTERNAL_EMAIL_DOMAIN = "internal.sfl"


class UserAdminError(Exception):
    """Base class for user administration errors."""


class UserNotFoundError(UserAdminError):
    pass


def internal_email(username: str) -> str:
    """Login e-mail derived from a username, e.g. ``Ana Ruiz`` -> ``anaruiz@internal.sfl``."""
    local_part = "".join(username.lower().split())
    return f"{local_part}@{INTERNAL_EMAIL_DOMAIN}"


async def list_policies(session: AsyncSession) -> list[CasbinRule]:
    result = await session.execute(
        select(CasbinRule)
        .where(CasbinRule.ptype == "p", CasbinRule.v1 == POLICY_DOMAIN)
        .order_by(CasbinRule.v0, CasbinRule.v2)
    )
    return list(result.scalars().all())


async def list_users(session: AsyncSession) -> list[User]:
    result = await session.execute(
        select(User).where(User.deleted_at.is_(None)).order_by(User.created_at.desc())
    )
    return list(result.scalars().all())


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await session.get(User, user_id)
    if user is None or user.deleted_at is not None:
        raise UserNotFoundError(f"Usuario {user_id} no existe")
    return user


async def set_user_role(
    session: AsyncSession,
    user_id: uuid.UUID,
    role: str,
    actor_id: Optional[uuid.UUID] = None,
) -> User:
    parsed = Role.parse(role)
    if parsed is None:
        raise UserAdminError(f"Rol desconocido: {role}")

    user = await get_user(session, user_id)
    before = snapshot(user)
    user.role = parsed.value
    await session.flush()
    await audit_logger.record_updated(session, user, before, actor_id)
    logger.info(f"Role of user {user.id} set to {parsed.value} by {actor_id}")
    return user


async def set_user_active(
    session: AsyncSession,
    user_id: uuid.UUID,
    is_active: bool,
    actor_id: Optional[uuid.UUID] = None,
) -> User:
    user = await get_user(session, user_id)
    before = snapshot(user)
    user.is_active = is_active
    await session.flush()
    await audit_logger.record_updated(session, user, before, actor_id)
    logger.info(f"User {user.id} active={is_active} by {actor_id}")
    return user
