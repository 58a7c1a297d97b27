"""
Tests for catalog management
"""

import pytest
from sqlalchemy import select

from database.models import AuditLog, Status
from schemas import CatalogItemCreate, CatalogItemUpdate, CatalogKind
from services.catalog_service import (
    CatalogNotFoundError,
    CatalogService,
    CatalogValidationError,
    ensure_default_statuses,
)


@pytest.mark.asyncio
async def test_default_statuses_are_seeded_once(session):
    assert await ensure_default_statuses(session) == 3
    assert await ensure_default_statuses(session) == 0

    statuses = await CatalogService(session).list_statuses()
    assert [status.name for status in statuses] == ["Abierto", "En Progreso", "Cerrado"]
    assert [status.is_final for status in statuses] == [False, False, True]


@pytest.mark.asyncio
async def test_create_application_is_audited(session, admin_user):
    service = CatalogService(session)
    item = await service.create_item(
        CatalogKind.APPLICATIONS,
        CatalogItemCreate(name="  App Móvil  ", color="#FF0000", is_final=True),
        actor_id=admin_user.id,
    )

    assert item.name == "App Móvil"
    assert item.color == "#FF0000"
    assert not hasattr(item, "is_final")

    entries = (await session.execute(select(AuditLog))).scalars().all()
    assert [(entry.table_name, entry.action) for entry in entries] == [("applications", "created")]
    assert entries[0].changed_by == admin_user.id


@pytest.mark.asyncio
async def test_duplicate_names_are_rejected_case_insensitively(session):
    service = CatalogService(session)
    await service.create_item(CatalogKind.CATEGORIES, CatalogItemCreate(name="Hardware"))

    with pytest.raises(CatalogValidationError):
        await service.create_item(CatalogKind.CATEGORIES, CatalogItemCreate(name="hardware"))


@pytest.mark.asyncio
async def test_deleted_names_can_be_reused(session):
    service = CatalogService(session)
    item = await service.create_item(CatalogKind.CASE_TYPES, CatalogItemCreate(name="Incidencia"))
    await service.delete_item(CatalogKind.CASE_TYPES, item.id)

    again = await service.create_item(CatalogKind.CASE_TYPES, CatalogItemCreate(name="Incidencia"))
    assert again.id != item.id
    assert [i.id for i in await service.list_items(CatalogKind.CASE_TYPES)] == [again.id]

    with pytest.raises(CatalogNotFoundError):
        await service.get_item(CatalogKind.CASE_TYPES, item.id)


@pytest.mark.asyncio
async def test_new_status_goes_last(session, statuses):
    service = CatalogService(session)
    status = await service.create_item(
        CatalogKind.STATUSES, CatalogItemCreate(name="Escalado", color="#000000")
    )
    assert status.display_order == 4
    assert status.is_final is False


@pytest.mark.asyncio
async def test_update_status_flags(session, statuses):
    service = CatalogService(session)
    closed = statuses["Cerrado"]

    updated = await service.update_item(
        CatalogKind.STATUSES,
        closed.id,
        CatalogItemUpdate(name="Resuelto", display_order=10),
    )
    assert updated.name == "Resuelto"
    assert updated.is_final is True
    assert updated.display_order == 10

    with pytest.raises(CatalogValidationError):
        await service.update_item(
            CatalogKind.STATUSES, closed.id, CatalogItemUpdate(name="Abierto")
        )


@pytest.mark.asyncio
async def test_status_listing_skips_deleted(session, statuses):
    service = CatalogService(session)
    await service.delete_item(CatalogKind.STATUSES, statuses["En Progreso"].id)

    names = [status.name for status in await service.list_items(CatalogKind.STATUSES)]
    assert names == ["Abierto", "Cerrado"]
    assert (await session.get(Status, statuses["En Progreso"].id)).deleted_at is not None
