"""Share links for repository resources.

The gate itself (``evaluate_share``) is a pure function over the stored share
fields; denials are returned as outcomes rather than raised.
"""

from __future__ import annotations

import datetime as dt
import secrets
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database.models import SharePermission, SolutionResource
from services.audit_logger import audit_logger, snapshot


class ShareOutcome(str, Enum):
    GRANTED = "granted"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    AUTH_REQUIRED = "auth_required"


@dataclass(frozen=True)
class ShareDecision:
    outcome: ShareOutcome
    resource: Optional[SolutionResource] = None

    @property
    def granted(self) -> bool:
        return self.outcome is ShareOutcome.GRANTED


def _as_aware(value: dt.datetime) -> dt.datetime:
    # SQLite returns naive datetimes; stored values are UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


def evaluate_share(
    resource: Optional[Any],
    *,
    caller_is_authenticated: bool,
    now: Optional[dt.datetime] = None,
) -> ShareOutcome:
    """Apply the share checks in order: existence, enabled, expiry, audience."""
    if resource is None or getattr(resource, "deleted_at", None) is not None:
        return ShareOutcome.NOT_FOUND
    if not resource.share_enabled:
        return ShareOutcome.NOT_FOUND

    expires_at = resource.share_expires_at
    if expires_at is not None:
        current = _as_aware(now or dt.datetime.now(dt.timezone.utc))
        if _as_aware(expires_at) < current:
            return ShareOutcome.EXPIRED

    if resource.share_permission == SharePermission.AUTHENTICATED.value and not caller_is_authenticated:
        return ShareOutcome.AUTH_REQUIRED

    return ShareOutcome.GRANTED


def generate_share_token() -> str:
    return secrets.token_urlsafe(settings.share_token_bytes)


def share_url(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    return f"{settings.share_base_url.rstrip('/')}/share/{token}"


class ShareService:
    """Resolve and manage share links on ``solution_resources``."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def resolve_share_access(
        self,
        token: str,
        caller_is_authenticated: bool,
        *,
        now: Optional[dt.datetime] = None,
    ) -> ShareDecision:
        resource = None
        if token:
            result = await self.session.execute(
                select(SolutionResource).where(SolutionResource.share_token == token)
            )
            resource = result.scalar_one_or_none()

        outcome = evaluate_share(
            resource, caller_is_authenticated=caller_is_authenticated, now=now
        )
        if outcome is not ShareOutcome.GRANTED:
            logger.info(f"Share link denied: outcome={outcome.value}")
            return ShareDecision(outcome)

        logger.info(f"Share link resolved for resource {resource.id}")
        return ShareDecision(outcome, resource)

    async def _apply(
        self,
        resource: SolutionResource,
        actor_id: Optional[uuid.UUID],
        *,
        rotated: bool = False,
        **values: Any,
    ) -> None:
        """Write share fields in one UPDATE and audit the change without the token."""
        before = snapshot(resource)
        await self.session.execute(
            update(SolutionResource)
            .where(SolutionResource.id == resource.id)
            .values(**values)
        )
        await self.session.refresh(resource)
        after = snapshot(resource)
        if rotated:
            after["share_token_rotated"] = True
        await audit_logger.record_change(
            self.session,
            table_name=SolutionResource.__tablename__,
            record_id=resource.id,
            action="updated",
            old_record=before,
            new_record=after,
            changed_by=actor_id,
        )

    async def enable(
        self, resource: SolutionResource, *, actor_id: Optional[uuid.UUID] = None
    ) -> SolutionResource:
        """Turn sharing on, minting a token the first time."""
        values: dict[str, Any] = {"share_enabled": True}
        if not resource.share_token:
            values["share_token"] = generate_share_token()
        await self._apply(resource, actor_id, **values)
        logger.info(f"Sharing enabled for resource {resource.id}")
        return resource

    async def disable(
        self, resource: SolutionResource, *, actor_id: Optional[uuid.UUID] = None
    ) -> SolutionResource:
        await self._apply(resource, actor_id, share_enabled=False)
        logger.info(f"Sharing disabled for resource {resource.id}")
        return resource

    async def update_settings(
        self,
        resource: SolutionResource,
        *,
        permission: Optional[str] = None,
        expires_in_days: Optional[int] = None,
        clear_expiration: bool = False,
        now: Optional[dt.datetime] = None,
        actor_id: Optional[uuid.UUID] = None,
    ) -> SolutionResource:
        values: dict[str, Any] = {}
        if permission is not None:
            values["share_permission"] = SharePermission(permission).value
        if clear_expiration:
            values["share_expires_at"] = None
        elif expires_in_days is not None:
            current = now or dt.datetime.now(dt.timezone.utc)
            values["share_expires_at"] = current + dt.timedelta(days=expires_in_days)

        if values:
            await self._apply(resource, actor_id, **values)
            logger.info(f"Share settings updated for resource {resource.id}")
        return resource

    async def rotate(
        self, resource: SolutionResource, *, actor_id: Optional[uuid.UUID] = None
    ) -> SolutionResource:
        """Replace the token in one statement; the previous token stops resolving at once."""
        await self._apply(
            resource,
            actor_id,
            rotated=True,
            share_token=generate_share_token(),
            share_enabled=True,
        )
        logger.info(f"Share token rotated for resource {resource.id}")
        return resource


__all__ = [
    "ShareOutcome",
    "ShareDecision",
    "ShareService",
    "evaluate_share",
    "generate_share_token",
    "share_url",
]
