"""Case and test tracking: CRUD, finalization, progress and attachments.

Cases and tests share the same lifecycle, so every operation takes an
``EntityKind`` and resolves the matching models through ``TRACKED_KINDS``.
"""

from __future__ import annotations

import datetime as dt
import uuid
from dataclasses import dataclass
from typing import Any, BinaryIO, List, Optional, Tuple

from loguru import logger
from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.base import Base
from database.models import (
    Case,
    CaseAttachment,
    CaseProgress,
    Status,
    Test,
    TestAttachment,
    TestProgress,
    User,
)
from schemas import CaseCreate, EntityKind, ProgressCreate, TestCreate, TrackedItemUpdate
from security.permissions import Capability
from services.audit_logger import audit_logger, snapshot
from services.lifecycle import (
    ensure_mutable,
    ensure_status_change_allowed,
    first_status,
    is_locked,
)
from services.storage import MediaStorage


@dataclass(frozen=True)
class TrackedKind:
    model: type[Base]
    progress_model: type[Base]
    attachment_model: type[Base]
    parent_key: str
    specific_fields: tuple[str, ...]
    create_capability: Capability
    edit_capability: Capability
    delete_capability: Capability
    storage_folder: str
    label: str


TRACKED_KINDS: dict[EntityKind, TrackedKind] = {
    EntityKind.CASE: TrackedKind(
        model=Case,
        progress_model=CaseProgress,
        attachment_model=CaseAttachment,
        parent_key="case_id",
        specific_fields=("case_type_id",),
        create_capability=Capability.CREATE_CASE,
        edit_capability=Capability.EDIT_CASE,
        delete_capability=Capability.DELETE_CASE,
        storage_folder="cases",
        label="Caso",
    ),
    EntityKind.TEST: TrackedKind(
        model=Test,
        progress_model=TestProgress,
        attachment_model=TestAttachment,
        parent_key="test_id",
        specific_fields=("test_type_id", "case_id"),
        create_capability=Capability.CREATE_TEST,
        edit_capability=Capability.EDIT_TEST,
        delete_capability=Capability.DELETE_TEST,
        storage_folder="tests",
        label="Prueba",
    ),
}

COMMON_FIELDS = (
    "title",
    "description",
    "application_id",
    "category_id",
    "responsible_id",
)


def tracked_kind(kind: EntityKind) -> TrackedKind:
    return TRACKED_KINDS[EntityKind(kind)]


class TrackingServiceError(Exception):
    """Base class for case/test tracking errors."""


class TrackingNotFoundError(TrackingServiceError):
    """Case, test, progress entry or attachment not found."""


class TrackingValidationError(TrackingServiceError):
    """Invalid input for a tracking operation."""


class TrackingService:
    """Cases and tests share one service keyed by ``EntityKind``."""

    def __init__(self, session: AsyncSession, storage: Optional[MediaStorage] = None) -> None:
        self.session = session
        self.storage = storage

    # Statuses
    async def _live_statuses(self) -> list[Status]:
        result = await self.session.execute(
            select(Status).where(Status.deleted_at.is_(None)).order_by(Status.display_order)
        )
        return list(result.scalars().all())

    async def _get_status(self, status_id: Optional[uuid.UUID]) -> Optional[Status]:
        if status_id is None:
            return None
        status = await self.session.get(Status, status_id)
        if status is None or status.deleted_at is not None:
            return None
        return status

    # Queries
    async def get_item(self, kind: EntityKind, item_id: uuid.UUID):
        meta = tracked_kind(kind)
        item = await self.session.get(meta.model, item_id)
        if item is None or item.deleted_at is not None:
            raise TrackingNotFoundError(f"{meta.label} {item_id} no existe")
        return item

    async def list_items(
        self,
        kind: EntityKind,
        *,
        status_id: Optional[uuid.UUID] = None,
        application_id: Optional[uuid.UUID] = None,
        category_id: Optional[uuid.UUID] = None,
        responsible_id: Optional[uuid.UUID] = None,
        case_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
        created_from: Optional[dt.datetime] = None,
        created_to: Optional[dt.datetime] = None,
        only_open: bool = False,
        offset: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Any], int]:
        meta = tracked_kind(kind)
        model = meta.model
        filters = [model.deleted_at.is_(None)]

        if status_id:
            filters.append(model.status_id == status_id)
        if application_id:
            filters.append(model.application_id == application_id)
        if category_id:
            filters.append(model.category_id == category_id)
        if responsible_id:
            filters.append(model.responsible_id == responsible_id)
        if case_id and kind == EntityKind.TEST:
            filters.append(Test.case_id == case_id)
        if search:
            filters.append(
                or_(
                    model.title.ilike(f"%{search}%"),
                    model.description.ilike(f"%{search}%"),
                )
            )
        if created_from:
            filters.append(model.created_at >= created_from)
        if created_to:
            filters.append(model.created_at <= created_to)
        if only_open:
            filters.append(
                model.status_id.in_(select(Status.id).where(Status.is_final.is_(False)))
            )

        query: Select = select(model).where(and_(*filters)).order_by(model.created_at.desc())
        total = await self.session.scalar(select(func.count(model.id)).where(and_(*filters)))
        result = await self.session.execute(query.limit(limit).offset(offset))
        return list(result.scalars().all()), int(total or 0)

    # Mutations
    async def create_item(
        self,
        kind: EntityKind,
        data: CaseCreate | TestCreate,
        user: User,
    ):
        meta = tracked_kind(kind)
        values = data.model_dump()

        if data.status_id is not None:
            status = await self._get_status(data.status_id)
            if status is None:
                raise TrackingValidationError("El estado indicado no existe")
        else:
            status = first_status(await self._live_statuses(), final=False)
            if status is None:
                raise TrackingValidationError("No hay estados no finales configurados")

        values["status_id"] = status.id
        item = meta.model(**values, created_by=user.id)
        self.session.add(item)
        await self.session.flush()
        await audit_logger.record_created(self.session, item, user.id)
        await self.session.refresh(item)

        logger.info(f"{meta.label} created: {item.id} by {user.id}")
        return item

    async def update_item(
        self,
        kind: EntityKind,
        item_id: uuid.UUID,
        data: TrackedItemUpdate,
        user: User,
    ):
        meta = tracked_kind(kind)
        item = await self.get_item(kind, item_id)
        updates = data.model_dump(exclude_unset=True)

        allowed = set(COMMON_FIELDS) | set(meta.specific_fields) | {"status_id"}
        foreign = sorted(field for field in updates if field not in allowed and updates[field] is not None)
        if foreign:
            raise TrackingValidationError(
                f"Campos no válidos para {meta.label.lower()}: {', '.join(foreign)}"
            )
        if "title" in updates and not updates["title"]:
            raise TrackingValidationError("El título es obligatorio")

        new_status = None
        status_changes = "status_id" in updates and updates["status_id"] != item.status_id
        if status_changes:
            new_status = await self._get_status(updates["status_id"])

        if is_locked(item):
            # Only a privileged move back to an open status touches a locked entity.
            if not status_changes or (new_status is not None and new_status.is_final):
                ensure_mutable(item)
            ensure_status_change_allowed(item, new_status, user)
        elif status_changes:
            ensure_status_change_allowed(item, new_status, user)

        before = snapshot(item)
        for field, value in updates.items():
            if field == "status_id" or field not in allowed:
                continue
            setattr(item, field, value)
        if new_status is not None:
            item.status = new_status

        await self.session.flush()
        await audit_logger.record_updated(self.session, item, before, user.id)
        await self.session.refresh(item)
        return item

    async def finalize_item(self, kind: EntityKind, item_id: uuid.UUID, user: User):
        meta = tracked_kind(kind)
        item = await self.get_item(kind, item_id)
        ensure_mutable(item)

        final_status = first_status(await self._live_statuses(), final=True)
        if final_status is None:
            raise TrackingValidationError("No hay un estado final configurado")

        before = snapshot(item)
        item.status = final_status
        await self.session.flush()
        await audit_logger.record_updated(self.session, item, before, user.id)
        await self.session.refresh(item)

        logger.info(f"{meta.label} {item.id} finalized with status '{final_status.name}'")
        return item

    async def delete_item(self, kind: EntityKind, item_id: uuid.UUID, user: User) -> None:
        meta = tracked_kind(kind)
        item = await self.get_item(kind, item_id)
        before = snapshot(item)
        item.deleted_at = dt.datetime.now(dt.timezone.utc)
        await self.session.flush()
        await audit_logger.record_deleted(self.session, item, before, user.id)
        logger.info(f"{meta.label} soft-deleted: {item.id} by {user.id}")

    # Progress
    async def list_progress(self, kind: EntityKind, item_id: uuid.UUID) -> list:
        meta = tracked_kind(kind)
        await self.get_item(kind, item_id)
        progress_model = meta.progress_model
        result = await self.session.execute(
            select(progress_model)
            .where(getattr(progress_model, meta.parent_key) == item_id)
            .order_by(progress_model.created_at.desc())
        )
        return list(result.scalars().all())

    async def add_progress(
        self,
        kind: EntityKind,
        item_id: uuid.UUID,
        data: ProgressCreate,
        user: User,
    ):
        meta = tracked_kind(kind)
        item = await self.get_item(kind, item_id)
        ensure_mutable(item)

        entry = meta.progress_model(
            **{meta.parent_key: item.id},
            description=data.description,
            committee_notes=data.committee_notes,
            created_by=user.id,
        )
        self.session.add(entry)
        await self.session.flush()
        await audit_logger.record_created(self.session, entry, user.id)
        await self.session.refresh(entry)
        return entry

    # Attachments
    async def list_attachments(self, kind: EntityKind, item_id: uuid.UUID) -> list:
        meta = tracked_kind(kind)
        await self.get_item(kind, item_id)
        attachment_model = meta.attachment_model
        result = await self.session.execute(
            select(attachment_model)
            .where(getattr(attachment_model, meta.parent_key) == item_id)
            .order_by(attachment_model.created_at.desc())
        )
        return list(result.scalars().all())

    async def add_attachment(
        self,
        kind: EntityKind,
        item_id: uuid.UUID,
        *,
        file_name: str,
        content_type: Optional[str],
        stream: BinaryIO,
        user: User,
        progress_id: Optional[uuid.UUID] = None,
    ):
        meta = tracked_kind(kind)
        if self.storage is None:
            raise TrackingServiceError("Almacenamiento no configurado")

        item = await self.get_item(kind, item_id)
        ensure_mutable(item)

        if progress_id is not None:
            progress = await self.session.get(meta.progress_model, progress_id)
            if progress is None or getattr(progress, meta.parent_key) != item.id:
                raise TrackingNotFoundError(f"Avance {progress_id} no existe")

        stored = await self.storage.save(f"{meta.storage_folder}/{item.id}", file_name, stream)
        attachment = meta.attachment_model(
            **{meta.parent_key: item.id},
            progress_id=progress_id,
            file_name=file_name,
            file_url=stored.url,
            file_path=stored.path,
            file_type=content_type,
            file_size=stored.size,
            uploaded_by=user.id,
        )
        self.session.add(attachment)
        await self.session.flush()
        logger.info(f"Attachment {attachment.id} added to {meta.label} {item.id}")
        return attachment

    async def delete_attachment(
        self,
        kind: EntityKind,
        item_id: uuid.UUID,
        attachment_id: uuid.UUID,
        user: User,
    ) -> None:
        meta = tracked_kind(kind)
        item = await self.get_item(kind, item_id)
        ensure_mutable(item)

        attachment = await self.session.get(meta.attachment_model, attachment_id)
        if attachment is None or getattr(attachment, meta.parent_key) != item.id:
            raise TrackingNotFoundError(f"Adjunto {attachment_id} no existe")

        if self.storage is not None:
            await self.storage.delete(attachment.file_path)
        await self.session.delete(attachment)
        await self.session.flush()
        logger.info(f"Attachment {attachment_id} removed from {meta.label} {item.id} by {user.id}")


__all__ = [
    "TrackedKind",
    "TRACKED_KINDS",
    "tracked_kind",
    "TrackingService",
    "TrackingServiceError",
    "TrackingNotFoundError",
    "TrackingValidationError",
]
