"""Casbin capability enforcement and FastAPI dependencies."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Iterable, Optional, Union

import casbin
from casbin_sqlalchemy_adapter import Adapter
from fastapi import Depends, HTTPException, status
from loguru import logger

from config import settings
from database.models import CasbinRule, User
from database.session import sync_engine
from security.auth import current_active_user
from security.constants import DEFAULT_POLICIES, POLICY_ACTION, POLICY_DOMAIN
from security.permissions import Capability, Role, has_permission, resolve_capability

# Global variables for lazy initialization
_adapter: Optional[Adapter] = None
_enforcer: Optional[casbin.Enforcer] = None
_model_path = Path(__file__).with_name("casbin_model.conf")


def build_enforcer(adapter: Optional[Adapter] = None) -> casbin.Enforcer:
    """Create an enforcer for the capability model, optionally backed by an adapter."""
    if adapter is None:
        return casbin.Enforcer(str(_model_path), enable_log=False)
    return casbin.Enforcer(str(_model_path), adapter, enable_log=False)


def _initialize_enforcer() -> casbin.Enforcer:
    """Initialize the Casbin enforcer with lazy loading."""
    global _adapter, _enforcer

    if _enforcer is None:
        logger.info("Initializing Casbin enforcer...")
        _adapter = Adapter(sync_engine, db_class=CasbinRule, filtered=False)
        _enforcer = build_enforcer(_adapter)
        _enforcer.enable_auto_save(settings.casbin_auto_save)
        _enforcer.load_policy()
        logger.info("Casbin enforcer initialized successfully")

    return _enforcer


async def reload_policies() -> None:
    """Reload policies so the in-memory state matches the database."""
    enforcer = _initialize_enforcer()
    await asyncio.to_thread(enforcer.load_policy)


def get_enforcer() -> casbin.Enforcer:
    return _initialize_enforcer()


def find_policy_drift(enforcer: casbin.Enforcer) -> dict[str, list[tuple[str, ...]]]:
    """Compare stored capability policies with the permission table."""
    expected = set(DEFAULT_POLICIES)
    stored = {
        tuple(policy[:4])
        for policy in enforcer.get_policy()
        if len(policy) >= 4 and policy[1] == POLICY_DOMAIN
    }
    return {
        "missing": sorted(expected - stored),
        "unexpected": sorted(stored - expected),
    }


def sync_policies(enforcer: casbin.Enforcer) -> bool:
    """Bring the enforcer in line with the permission table, return whether it changed."""
    drift = find_policy_drift(enforcer)
    for policy in drift["unexpected"]:
        logger.warning(f"Removing policy not backed by the permission table: {policy}")
        enforcer.remove_policy(*policy)
    for policy in drift["missing"]:
        enforcer.add_policy(*policy)
    return bool(drift["missing"] or drift["unexpected"])


def _subjects(user: User) -> Iterable[str]:
    yield str(user.id)
    role = Role.parse(user.role)
    if role is not None:
        yield role.value


def user_has_capability(
    user: User,
    capability: Union[Capability, str],
    enforcer: Optional[casbin.Enforcer] = None,
) -> bool:
    """Both the permission table and the enforcer must allow the capability."""
    if not has_permission(user.role, capability, strict=settings.capabilities_strict):
        return False

    enforcer = enforcer or _initialize_enforcer()
    resolved = resolve_capability(capability)
    return any(
        enforcer.enforce(subject, POLICY_DOMAIN, resolved.value, POLICY_ACTION)
        for subject in _subjects(user)
    )


def require_capability(capability: Union[Capability, str]):
    """Build a FastAPI dependency that rejects callers lacking ``capability``."""

    resolved = resolve_capability(capability)

    async def dependency(user: User = Depends(current_active_user)) -> User:
        if user_has_capability(user, resolved):
            return user

        logger.warning(
            f"Permission denied: user={user.id} role={user.role} capability={resolved.value}"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="RBAC: insufficient permission",
        )

    return dependency
