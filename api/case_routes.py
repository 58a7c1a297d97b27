"""Case and test routes.

Cases and tests expose the same endpoints, so both routers are built by
``_build_router`` and differ only in their ``EntityKind``.
"""

import datetime as dt
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from schemas import (
    AttachmentResponse,
    CaseCreate,
    EntityKind,
    ProgressCreate,
    ProgressResponse,
    TestCreate,
    TrackedItemListResponse,
    TrackedItemResponse,
    TrackedItemUpdate,
)
from security.auth import current_active_user
from security.casbin_enforcer import require_capability
from services.lifecycle import is_locked
from services.storage import MediaStorage, get_storage
from services.tracking_service import (
    TrackingNotFoundError,
    TrackingService,
    TrackingServiceError,
    TrackingValidationError,
    tracked_kind,
)


def present_item(item) -> TrackedItemResponse:
    response = TrackedItemResponse.model_validate(item)
    response.is_locked = is_locked(item)
    return response


def _raise_http(exc: TrackingServiceError) -> None:
    if isinstance(exc, TrackingNotFoundError):
        raise HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, TrackingValidationError):
        raise HTTPException(status_code=400, detail=str(exc))
    raise HTTPException(status_code=500, detail=str(exc))


def _build_router(kind: EntityKind, prefix: str, create_schema) -> APIRouter:
    meta = tracked_kind(kind)
    router = APIRouter(prefix=prefix, tags=[f"{kind.value}s"])

    @router.get("", response_model=TrackedItemListResponse)
    async def list_items(
        status_id: Optional[uuid.UUID] = Query(None),
        application_id: Optional[uuid.UUID] = Query(None),
        category_id: Optional[uuid.UUID] = Query(None),
        responsible_id: Optional[uuid.UUID] = Query(None),
        case_id: Optional[uuid.UUID] = Query(None, description="Solo pruebas: caso relacionado"),
        search: Optional[str] = Query(None, description="Busca en título y descripción"),
        created_from: Optional[dt.datetime] = Query(None),
        created_to: Optional[dt.datetime] = Query(None),
        only_open: bool = Query(False),
        offset: int = Query(0, ge=0),
        limit: int = Query(50, ge=1, le=200),
        session: AsyncSession = Depends(get_async_session),
        user=Depends(current_active_user),
    ):
        items, total = await TrackingService(session).list_items(
            kind,
            status_id=status_id,
            application_id=application_id,
            category_id=category_id,
            responsible_id=responsible_id,
            case_id=case_id,
            search=search,
            created_from=created_from,
            created_to=created_to,
            only_open=only_open,
            offset=offset,
            limit=limit,
        )
        return TrackedItemListResponse(
            items=[present_item(item) for item in items],
            total=total,
            offset=offset,
            limit=limit,
        )

    @router.get("/{item_id}", response_model=TrackedItemResponse)
    async def get_item(
        item_id: uuid.UUID,
        session: AsyncSession = Depends(get_async_session),
        user=Depends(current_active_user),
    ):
        try:
            item = await TrackingService(session).get_item(kind, item_id)
        except TrackingServiceError as exc:
            _raise_http(exc)
        return present_item(item)

    @router.post("", response_model=TrackedItemResponse, status_code=status.HTTP_201_CREATED)
    async def create_item(
        payload: create_schema,
        session: AsyncSession = Depends(get_async_session),
        user=Depends(require_capability(meta.create_capability)),
    ):
        try:
            item = await TrackingService(session).create_item(kind, payload, user)
            await session.commit()
        except TrackingServiceError as exc:
            await session.rollback()
            _raise_http(exc)
        logger.info(f"{meta.label} created: {item.id} by {user.id}")
        return present_item(item)

    @router.patch("/{item_id}", response_model=TrackedItemResponse)
    async def update_item(
        item_id: uuid.UUID,
        payload: TrackedItemUpdate,
        session: AsyncSession = Depends(get_async_session),
        user=Depends(require_capability(meta.edit_capability)),
    ):
        try:
            item = await TrackingService(session).update_item(kind, item_id, payload, user)
            await session.commit()
        except TrackingServiceError as exc:
            await session.rollback()
            _raise_http(exc)
        return present_item(item)

    @router.post("/{item_id}/finalize", response_model=TrackedItemResponse)
    async def finalize_item(
        item_id: uuid.UUID,
        session: AsyncSession = Depends(get_async_session),
        user=Depends(require_capability(meta.edit_capability)),
    ):
        """Move the entity to the first final status."""
        try:
            item = await TrackingService(session).finalize_item(kind, item_id, user)
            await session.commit()
        except TrackingServiceError as exc:
            await session.rollback()
            _raise_http(exc)
        return present_item(item)

    @router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_item(
        item_id: uuid.UUID,
        session: AsyncSession = Depends(get_async_session),
        user=Depends(require_capability(meta.delete_capability)),
    ):
        try:
            await TrackingService(session).delete_item(kind, item_id, user)
            await session.commit()
        except TrackingServiceError as exc:
            await session.rollback()
            _raise_http(exc)

    # Progress
    @router.get("/{item_id}/progress", response_model=List[ProgressResponse])
    async def list_progress(
        item_id: uuid.UUID,
        session: AsyncSession = Depends(get_async_session),
        user=Depends(current_active_user),
    ):
        try:
            entries = await TrackingService(session).list_progress(kind, item_id)
        except TrackingServiceError as exc:
            _raise_http(exc)
        return [ProgressResponse.model_validate(entry) for entry in entries]

    @router.post(
        "/{item_id}/progress",
        response_model=ProgressResponse,
        status_code=status.HTTP_201_CREATED,
    )
    async def add_progress(
        item_id: uuid.UUID,
        payload: ProgressCreate,
        session: AsyncSession = Depends(get_async_session),
        user=Depends(require_capability(meta.edit_capability)),
    ):
        try:
            entry = await TrackingService(session).add_progress(kind, item_id, payload, user)
            await session.commit()
        except TrackingServiceError as exc:
            await session.rollback()
            _raise_http(exc)
        return ProgressResponse.model_validate(entry)

    # Attachments
    @router.get("/{item_id}/attachments", response_model=List[AttachmentResponse])
    async def list_attachments(
        item_id: uuid.UUID,
        session: AsyncSession = Depends(get_async_session),
        user=Depends(current_active_user),
    ):
        try:
            attachments = await TrackingService(session).list_attachments(kind, item_id)
        except TrackingServiceError as exc:
            _raise_http(exc)
        return [AttachmentResponse.model_validate(attachment) for attachment in attachments]

    @router.post(
        "/{item_id}/attachments",
        response_model=AttachmentResponse,
        status_code=status.HTTP_201_CREATED,
    )
    async def upload_attachment(
        item_id: uuid.UUID,
        file: UploadFile = File(...),
        progress_id: Optional[uuid.UUID] = Form(None),
        session: AsyncSession = Depends(get_async_session),
        storage: MediaStorage = Depends(get_storage),
        user=Depends(require_capability(meta.edit_capability)),
    ):
        try:
            attachment = await TrackingService(session, storage).add_attachment(
                kind,
                item_id,
                file_name=file.filename or "archivo",
                content_type=file.content_type,
                stream=file.file,
                user=user,
                progress_id=progress_id,
            )
            await session.commit()
        except TrackingServiceError as exc:
            await session.rollback()
            _raise_http(exc)
        finally:
            await file.close()
        return AttachmentResponse.model_validate(attachment)

    @router.delete("/{item_id}/attachments/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_attachment(
        item_id: uuid.UUID,
        attachment_id: uuid.UUID,
        session: AsyncSession = Depends(get_async_session),
        storage: MediaStorage = Depends(get_storage),
        user=Depends(require_capability(meta.edit_capability)),
    ):
        try:
            await TrackingService(session, storage).delete_attachment(
                kind, item_id, attachment_id, user
            )
            await session.commit()
        except TrackingServiceError as exc:
            await session.rollback()
            _raise_http(exc)

    return router


case_router = _build_router(EntityKind.CASE, "/api/v1/cases", CaseCreate)
test_router = _build_router(EntityKind.TEST, "/api/v1/tests", TestCreate)

router = APIRouter()
router.include_router(case_router)
router.include_router(test_router)
