"""Solution report routes."""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from schemas import (
    AttachmentResponse,
    SolutionCreate,
    SolutionListResponse,
    SolutionResponse,
    SolutionUpdate,
)
from security.auth import current_active_user
from security.casbin_enforcer import require_capability
from security.permissions import Capability
from services.solution_service import (
    SolutionNotFoundError,
    SolutionPermissionError,
    SolutionService,
    SolutionServiceError,
    SolutionValidationError,
)
from services.storage import MediaStorage, get_storage

router = APIRouter(prefix="/api/v1/solutions", tags=["solutions"])


def _raise_http(exc: SolutionServiceError) -> None:
    if isinstance(exc, SolutionNotFoundError):
        raise HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, SolutionPermissionError):
        raise HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, SolutionValidationError):
        raise HTTPException(status_code=400, detail=str(exc))
    raise HTTPException(status_code=500, detail=str(exc))


@router.get("", response_model=SolutionListResponse)
async def list_solutions(
    case_id: Optional[uuid.UUID] = Query(None),
    search: Optional[str] = Query(None),
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    items, total = await SolutionService(session).list_solutions(
        case_id=case_id, search=search, offset=offset, limit=limit
    )
    return SolutionListResponse(
        items=[SolutionResponse.model_validate(item) for item in items],
        total=total,
        offset=offset,
        limit=limit,
    )


@router.get("/{solution_id}", response_model=SolutionResponse)
async def get_solution(
    solution_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    try:
        solution = await SolutionService(session).get_solution(solution_id)
    except SolutionServiceError as exc:
        _raise_http(exc)
    return SolutionResponse.model_validate(solution)


@router.post("", response_model=SolutionResponse, status_code=status.HTTP_201_CREATED)
async def create_solution(
    payload: SolutionCreate,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(require_capability(Capability.CREATE_CASE)),
):
    try:
        solution = await SolutionService(session).create_solution(payload, user)
        await session.commit()
    except SolutionServiceError as exc:
        await session.rollback()
        _raise_http(exc)
    return SolutionResponse.model_validate(solution)


@router.patch("/{solution_id}", response_model=SolutionResponse)
async def update_solution(
    solution_id: uuid.UUID,
    payload: SolutionUpdate,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    """Only the author or a configuration manager may edit a solution."""
    try:
        solution = await SolutionService(session).update_solution(solution_id, payload, user)
        await session.commit()
    except SolutionServiceError as exc:
        await session.rollback()
        _raise_http(exc)
    return SolutionResponse.model_validate(solution)


@router.delete("/{solution_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_solution(
    solution_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    try:
        await SolutionService(session).delete_solution(solution_id, user)
        await session.commit()
    except SolutionServiceError as exc:
        await session.rollback()
        _raise_http(exc)


@router.get("/{solution_id}/attachments", response_model=List[AttachmentResponse])
async def list_solution_attachments(
    solution_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_active_user),
):
    try:
        attachments = await SolutionService(session).list_attachments(solution_id)
    except SolutionServiceError as exc:
        _raise_http(exc)
    return [AttachmentResponse.model_validate(attachment) for attachment in attachments]


@router.post(
    "/{solution_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_solution_attachment(
    solution_id: uuid.UUID,
    file: UploadFile = File(...),
    session: AsyncSession = Depends(get_async_session),
    storage: MediaStorage = Depends(get_storage),
    user=Depends(current_active_user),
):
    try:
        attachment = await SolutionService(session, storage).add_attachment(
            solution_id,
            file_name=file.filename or "archivo",
            content_type=file.content_type,
            stream=file.file,
            user=user,
        )
        await session.commit()
    except SolutionServiceError as exc:
        await session.rollback()
        _raise_http(exc)
    finally:
        await file.close()
    return AttachmentResponse.model_validate(attachment)


@router.delete(
    "/{solution_id}/attachments/{attachment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_solution_attachment(
    solution_id: uuid.UUID,
    attachment_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
    storage: MediaStorage = Depends(get_storage),
    user=Depends(current_active_user),
):
    try:
        await SolutionService(session, storage).delete_attachment(solution_id, attachment_id, user)
        await session.commit()
    except SolutionServiceError as exc:
        await session.rollback()
        _raise_http(exc)
