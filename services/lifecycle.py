"""Finality rules shared by cases and tests."""

from __future__ import annotations

from typing import Any, Optional, Sequence, Union

from loguru import logger

from database.models import Status, User
from security.permissions import Capability, has_permission


class LifecycleError(Exception):
    """Base class for lifecycle violations."""


class EntityLockedError(LifecycleError):
    """The entity sits in a final status and may not be mutated."""


class IntegrityGapError(LifecycleError):
    """The entity references a status that does not exist."""


class ReopenNotAllowedError(LifecycleError):
    """Moving out of a final status requires ``canEditFinalStatus``."""


def is_locked(entity: Any) -> bool:
    """An entity is locked when its status is final or cannot be resolved."""
    status = getattr(entity, "status", None)
    if status is None:
        if getattr(entity, "status_id", None) is not None:
            logger.warning(
                f"{type(entity).__name__} {getattr(entity, 'id', '?')} references a missing status, treating as locked"
            )
        return True
    return bool(status.is_final)


def ensure_mutable(entity: Any) -> None:
    """Raise ``EntityLockedError`` for edits, progress or uploads on a locked entity."""
    if is_locked(entity):
        raise EntityLockedError(
            f"{type(entity).__name__} {getattr(entity, 'id', '')} está finalizado y no puede modificarse"
        )


def ensure_status_change_allowed(
    entity: Any,
    new_status: Optional[Status],
    user: Union[User, Any],
) -> None:
    """Validate a status transition.

    Locked entities only move when the caller can edit final statuses, which
    is the reopen path. Unlocked entities may move to any existing status.
    """
    if new_status is None:
        raise IntegrityGapError("El estado indicado no existe")

    if not is_locked(entity):
        return

    if has_permission(getattr(user, "role", None), Capability.EDIT_FINAL_STATUS):
        logger.info(
            f"{type(entity).__name__} {getattr(entity, 'id', '')} reopened to status '{new_status.name}' by {getattr(user, 'id', '?')}"
        )
        return

    raise ReopenNotAllowedError(
        "Solo un administrador puede modificar un registro con estado final"
    )


def first_status(statuses: Sequence[Status], *, final: bool) -> Optional[Status]:
    """Lowest ``display_order`` status with the requested finality."""
    candidates = [status for status in statuses if bool(status.is_final) is final]
    if not candidates:
        return None
    return min(candidates, key=lambda status: status.display_order)


__all__ = [
    "LifecycleError",
    "EntityLockedError",
    "IntegrityGapError",
    "ReopenNotAllowedError",
    "is_locked",
    "ensure_mutable",
    "ensure_status_change_allowed",
    "first_status",
]
