"""Catalog management: applications, categories, case/test types and statuses."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional, Type

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.base import Base
from database.models import Application, CaseType, Category, Status, TestType
from schemas import CatalogItemCreate, CatalogItemUpdate, CatalogKind
from services.audit_logger import audit_logger, snapshot

CatalogModel = Type[Base]

CATALOG_MODELS: dict[CatalogKind, CatalogModel] = {
    CatalogKind.APPLICATIONS: Application,
    CatalogKind.CATEGORIES: Category,
    CatalogKind.CASE_TYPES: CaseType,
    CatalogKind.TEST_TYPES: TestType,
    CatalogKind.STATUSES: Status,
}

# Attributes only some catalogs carry.
OPTIONAL_ATTRIBUTES = ("color", "is_final", "display_order")

DEFAULT_STATUSES = (
    {"name": "Abierto", "color": "#3B82F6", "is_final": False, "display_order": 1},
    {"name": "En Progreso", "color": "#F59E0B", "is_final": False, "display_order": 2},
    {"name": "Cerrado", "color": "#10B981", "is_final": True, "display_order": 3},
)


class CatalogServiceError(Exception):
    """Base class for catalog errors."""


class CatalogNotFoundError(CatalogServiceError):
    """Catalog entry not found."""


class CatalogValidationError(CatalogServiceError):
    """Catalog entry failed validation."""


class CatalogService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def model_for(kind: CatalogKind) -> CatalogModel:
        return CATALOG_MODELS[CatalogKind(kind)]

    async def list_items(self, kind: CatalogKind) -> list:
        model = self.model_for(kind)
        query = select(model).where(model.deleted_at.is_(None))
        if model is Status:
            query = query.order_by(Status.display_order, Status.name)
        else:
            query = query.order_by(model.name)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_item(self, kind: CatalogKind, item_id: uuid.UUID):
        model = self.model_for(kind)
        item = await self.session.get(model, item_id)
        if item is None or item.deleted_at is not None:
            raise CatalogNotFoundError(f"{kind.value} {item_id} no existe")
        return item

    async def _ensure_unique_name(self, model: CatalogModel, name: str, exclude_id: Optional[uuid.UUID] = None) -> None:
        query = select(func.count(model.id)).where(
            func.lower(model.name) == name.strip().lower(),
            model.deleted_at.is_(None),
        )
        if exclude_id is not None:
            query = query.where(model.id != exclude_id)
        if await self.session.scalar(query):
            raise CatalogValidationError(f"Ya existe un registro con el nombre '{name}'")

    async def create_item(
        self,
        kind: CatalogKind,
        data: CatalogItemCreate,
        actor_id: Optional[uuid.UUID] = None,
    ):
        model = self.model_for(kind)
        await self._ensure_unique_name(model, data.name)

        values = {"name": data.name.strip(), "description": data.description}
        for attribute in OPTIONAL_ATTRIBUTES:
            value = getattr(data, attribute)
            if value is not None and hasattr(model, attribute):
                values[attribute] = value
        if model is Status and "display_order" not in values:
            current_max = await self.session.scalar(
                select(func.max(Status.display_order)).where(Status.deleted_at.is_(None))
            )
            values["display_order"] = int(current_max or 0) + 1

        item = model(**values)
        self.session.add(item)
        await self.session.flush()
        await audit_logger.record_created(self.session, item, actor_id)
        logger.info(f"Catalog {kind.value} created: {item.name} ({item.id})")
        return item

    async def update_item(
        self,
        kind: CatalogKind,
        item_id: uuid.UUID,
        data: CatalogItemUpdate,
        actor_id: Optional[uuid.UUID] = None,
    ):
        model = self.model_for(kind)
        item = await self.get_item(kind, item_id)
        before = snapshot(item)

        updates = data.model_dump(exclude_unset=True)
        if updates.get("name") and updates["name"] != item.name:
            await self._ensure_unique_name(model, updates["name"], exclude_id=item.id)

        for field, value in updates.items():
            if field in OPTIONAL_ATTRIBUTES and not hasattr(model, field):
                continue
            if field == "name" and value is None:
                continue
            setattr(item, field, value)

        await self.session.flush()
        await audit_logger.record_updated(self.session, item, before, actor_id)
        return item

    async def delete_item(
        self,
        kind: CatalogKind,
        item_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        item = await self.get_item(kind, item_id)
        before = snapshot(item)
        item.deleted_at = dt.datetime.now(dt.timezone.utc)
        await self.session.flush()
        await audit_logger.record_deleted(self.session, item, before, actor_id)
        logger.info(f"Catalog {kind.value} soft-deleted: {item.id}")

    async def list_statuses(self) -> list[Status]:
        return await self.list_items(CatalogKind.STATUSES)


async def ensure_default_statuses(session: AsyncSession) -> int:
    """Seed the default workflow when no status is configured."""
    existing = await session.scalar(select(func.count(Status.id)))
    if existing:
        return 0

    for values in DEFAULT_STATUSES:
        session.add(Status(**values))
    await session.flush()
    return len(DEFAULT_STATUSES)


__all__ = [
    "CatalogService",
    "CatalogServiceError",
    "CatalogNotFoundError",
    "CatalogValidationError",
    "CATALOG_MODELS",
    "DEFAULT_STATUSES",
    "ensure_default_statuses",
]
