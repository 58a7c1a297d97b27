"""Catalog administration routes: applications, categories, types and statuses."""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from schemas import (
    CatalogItemCreate,
    CatalogItemResponse,
    CatalogItemUpdate,
    CatalogKind,
)
from security.auth import current_active_user
from security.casbin_enforcer import require_capability
from security.permissions import Capability
from services.catalog_service import (
    CatalogNotFoundError,
    CatalogService,
    CatalogServiceError,
    CatalogValidationError,
)

router = APIRouter(prefix="/api/v1/catalog", tags=["catalog"])


def _raise_http(exc: CatalogServiceError) -> None:
    if isinstance(exc, CatalogNotFoundError):
        raise HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, CatalogValidationError):
        raise HTTPException(status_code=409, detail=str(exc))
    raise HTTPException(status_code=400, detail=str(exc))


@router.get(
    "/{kind}",
    response_model=List[CatalogItemResponse],
    summary="Listar catálogo",
    description="Devuelve los registros vigentes de un catálogo. Los estados se ordenan por display_order.",
)
async def list_catalog_items(
    kind: CatalogKind,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    items = await CatalogService(session).list_items(kind)
    return [CatalogItemResponse.model_validate(item) for item in items]


@router.get(
    "/{kind}/{item_id}",
    response_model=CatalogItemResponse,
    summary="Detalle de catálogo",
)
async def get_catalog_item(
    kind: CatalogKind,
    item_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    try:
        item = await CatalogService(session).get_item(kind, item_id)
    except CatalogServiceError as exc:
        _raise_http(exc)
    return CatalogItemResponse.model_validate(item)


@router.post(
    "/{kind}",
    response_model=CatalogItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Crear registro de catálogo",
    responses={
        403: {"description": "Permiso insuficiente"},
        409: {"description": "Nombre duplicado"},
    },
)
async def create_catalog_item(
    kind: CatalogKind,
    payload: CatalogItemCreate,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(require_capability(Capability.MANAGE_CONFIG)),
):
    try:
        item = await CatalogService(session).create_item(kind, payload, actor_id=user.id)
        await session.commit()
    except CatalogServiceError as exc:
        await session.rollback()
        _raise_http(exc)
    except Exception as exc:
        await session.rollback()
        logger.error(f"Failed to create {kind.value} item: {exc}")
        raise HTTPException(status_code=500, detail="No se pudo crear el registro")
    return CatalogItemResponse.model_validate(item)


@router.patch(
    "/{kind}/{item_id}",
    response_model=CatalogItemResponse,
    summary="Actualizar registro de catálogo",
)
async def update_catalog_item(
    kind: CatalogKind,
    item_id: uuid.UUID,
    payload: CatalogItemUpdate,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(require_capability(Capability.MANAGE_CONFIG)),
):
    try:
        item = await CatalogService(session).update_item(kind, item_id, payload, actor_id=user.id)
        await session.commit()
    except CatalogServiceError as exc:
        await session.rollback()
        _raise_http(exc)
    return CatalogItemResponse.model_validate(item)


@router.delete(
    "/{kind}/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Eliminar registro de catálogo",
    description="Borrado lógico; los casos y pruebas existentes conservan la referencia.",
)
async def delete_catalog_item(
    kind: CatalogKind,
    item_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(require_capability(Capability.MANAGE_CONFIG)),
):
    try:
        await CatalogService(session).delete_item(kind, item_id, actor_id=user.id)
        await session.commit()
    except CatalogServiceError as exc:
        await session.rollback()
        _raise_http(exc)
