"""Security bootstrap executed at startup."""

from __future__ import annotations

from loguru import logger

from config import settings
from database.models import User
from database.session import session_scope
from security.dependencies import UUIDSQLAlchemyUserDatabase
from security.casbin_enforcer import find_policy_drift, get_enforcer, sync_policies
from security.manager import UserManager
from security.permissions import Role
from security.schemas import UserCreate


async def ensure_default_superuser() -> User | None:
    """Make sure the bootstrap administrator account exists."""

    async with session_scope() as session:
        user_db = UUIDSQLAlchemyUserDatabase(session, User)
        manager = UserManager(user_db)

        existing = await user_db.get_by_email(settings.auth_superuser_email)
        if existing:
            if existing.role != Role.ADMINISTRATOR.value:
                logger.warning(f"Bootstrap account {existing.email} restored to {Role.ADMINISTRATOR.value}")
                existing.role = Role.ADMINISTRATOR.value
            return existing

        user_create = UserCreate(
            email=settings.auth_superuser_email,
            password=settings.auth_superuser_password,
            full_name="Administrador del Sistema",
            role=Role.ADMINISTRATOR.value,
        )

        superuser = await manager.create_superuser(user_create, safe=True)
        logger.info(f"Default superuser created: {superuser.id}")
        return superuser


async def ensure_default_policies() -> None:
    """Seed the Casbin store from the permission table and repair drift."""

    enforcer = get_enforcer()
    drift = find_policy_drift(enforcer)
    if drift["missing"] or drift["unexpected"]:
        logger.warning(
            f"Casbin policy drift detected: missing={len(drift['missing'])} "
            f"unexpected={len(drift['unexpected'])}"
        )

    if sync_policies(enforcer):
        enforcer.save_policy()
        logger.info("Capability policies synchronized with the permission table")
