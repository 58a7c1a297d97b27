"""Resource repository routes: resources, folders and share link management."""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from schemas import (
    FolderCreate,
    FolderResponse,
    ResourceCreate,
    ResourceListResponse,
    ResourceResponse,
    ResourceUpdate,
    ShareSettingsUpdate,
)
from security.auth import current_active_user
from security.casbin_enforcer import require_capability
from security.permissions import Capability
from services.resource_service import (
    ResourceNotFoundError,
    ResourcePermissionError,
    ResourceService,
    ResourceServiceError,
    ResourceValidationError,
)
from services.share_service import ShareService, share_url
from services.storage import MediaStorage, get_storage

router = APIRouter(prefix="/api/v1/resources", tags=["resources"])


def present_resource(resource) -> ResourceResponse:
    response = ResourceResponse.model_validate(resource)
    response.share_url = share_url(resource.share_token) if resource.share_enabled else None
    return response


def _raise_http(exc: ResourceServiceError) -> None:
    if isinstance(exc, ResourceNotFoundError):
        raise HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ResourcePermissionError):
        raise HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, ResourceValidationError):
        raise HTTPException(status_code=400, detail=str(exc))
    raise HTTPException(status_code=500, detail=str(exc))


# Folders
@router.get("/folders", response_model=List[FolderResponse])
async def list_folders(
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    folders = await ResourceService(session).list_folders()
    return [FolderResponse(**folder) for folder in folders]


@router.post("/folders", response_model=FolderResponse, status_code=status.HTTP_201_CREATED)
async def create_folder(
    payload: FolderCreate,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(require_capability(Capability.CREATE_CASE)),
):
    try:
        folder = await ResourceService(session).create_folder(payload, user)
        await session.commit()
    except ResourceServiceError as exc:
        await session.rollback()
        _raise_http(exc)
    return FolderResponse.model_validate(folder)


@router.delete("/folders/{name}")
async def delete_folder(
    name: str,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(require_capability(Capability.MANAGE_CONFIG)),
):
    """Delete a folder together with every resource filed under it."""
    try:
        removed = await ResourceService(session).delete_folder(name, user)
        await session.commit()
    except ResourceServiceError as exc:
        await session.rollback()
        _raise_http(exc)
    return {"folder": name, "deleted_resources": removed}


# Resources
@router.get("", response_model=ResourceListResponse)
async def list_resources(
    folder: Optional[str] = Query(None),
    type: Optional[str] = Query(None, description="document, image, video o link"),
    solution_id: Optional[uuid.UUID] = Query(None),
    search: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    resources = await ResourceService(session).list_resources(
        folder=folder, resource_type=type, solution_id=solution_id, search=search
    )
    return ResourceListResponse(
        items=[present_resource(resource) for resource in resources],
        total=len(resources),
    )


@router.get("/{resource_id}", response_model=ResourceResponse)
async def get_resource(
    resource_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    try:
        resource = await ResourceService(session).get_resource(resource_id)
    except ResourceServiceError as exc:
        _raise_http(exc)
    return present_resource(resource)


@router.post("", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
async def create_resource(
    payload: ResourceCreate,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(require_capability(Capability.CREATE_CASE)),
):
    try:
        resource = await ResourceService(session).create_resource(payload, user)
        await session.commit()
    except ResourceServiceError as exc:
        await session.rollback()
        _raise_http(exc)
    return present_resource(resource)


@router.post("/upload", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
async def upload_resource(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    folder: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    solution_id: Optional[uuid.UUID] = Form(None),
    session: AsyncSession = Depends(get_async_session),
    storage: MediaStorage = Depends(get_storage),
    user=Depends(require_capability(Capability.CREATE_CASE)),
):
    try:
        resource = await ResourceService(session, storage).upload_resource(
            file_name=file.filename or "archivo",
            content_type=file.content_type,
            stream=file.file,
            user=user,
            title=title,
            folder=folder,
            description=description,
            solution_id=solution_id,
        )
        await session.commit()
    except ResourceServiceError as exc:
        await session.rollback()
        _raise_http(exc)
    finally:
        await file.close()
    return present_resource(resource)


@router.patch("/{resource_id}", response_model=ResourceResponse)
async def update_resource(
    resource_id: uuid.UUID,
    payload: ResourceUpdate,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    try:
        resource = await ResourceService(session).update_resource(resource_id, payload, user)
        await session.commit()
    except ResourceServiceError as exc:
        await session.rollback()
        _raise_http(exc)
    return present_resource(resource)


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(
    resource_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    try:
        await ResourceService(session).delete_resource(resource_id, user)
        await session.commit()
    except ResourceServiceError as exc:
        await session.rollback()
        _raise_http(exc)


# Share links
async def _managed_resource(session: AsyncSession, resource_id: uuid.UUID, user):
    service = ResourceService(session)
    try:
        resource = await service.get_resource(resource_id)
        service.ensure_can_manage(resource, user)
    except ResourceServiceError as exc:
        _raise_http(exc)
    return resource


@router.post("/{resource_id}/share", response_model=ResourceResponse)
async def enable_share(
    resource_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    resource = await _managed_resource(session, resource_id, user)
    resource = await ShareService(session).enable(resource, actor_id=user.id)
    await session.commit()
    return present_resource(resource)


@router.delete("/{resource_id}/share", response_model=ResourceResponse)
async def disable_share(
    resource_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    resource = await _managed_resource(session, resource_id, user)
    resource = await ShareService(session).disable(resource, actor_id=user.id)
    await session.commit()
    return present_resource(resource)


@router.patch("/{resource_id}/share", response_model=ResourceResponse)
async def update_share_settings(
    resource_id: uuid.UUID,
    payload: ShareSettingsUpdate,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    resource = await _managed_resource(session, resource_id, user)
    resource = await ShareService(session).update_settings(
        resource,
        permission=payload.permission.value if payload.permission else None,
        expires_in_days=payload.expires_in_days,
        clear_expiration=payload.clear_expiration,
        actor_id=user.id,
    )
    await session.commit()
    return present_resource(resource)


@router.post("/{resource_id}/share/rotate", response_model=ResourceResponse)
async def rotate_share_token(
    resource_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    """Issue a new token; links built on the previous one stop working."""
    resource = await _managed_resource(session, resource_id, user)
    resource = await ShareService(session).rotate(resource, actor_id=user.id)
    await session.commit()
    return present_resource(resource)
