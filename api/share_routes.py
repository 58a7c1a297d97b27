"""Public share link resolution."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from schemas import SharedResourceView
from security.auth import current_optional_user
from services.share_service import ShareOutcome, ShareService

router = APIRouter(prefix="/api/v1/share", tags=["share"])

DENIALS = {
    ShareOutcome.NOT_FOUND: (404, "Recurso no encontrado o no compartido"),
    ShareOutcome.EXPIRED: (410, "El enlace ha expirado"),
    ShareOutcome.AUTH_REQUIRED: (401, "Debes iniciar sesión para ver este recurso"),
}


@router.get(
    "/{token}",
    response_model=SharedResourceView,
    responses={
        401: {"description": "El enlace exige una sesión iniciada"},
        404: {"description": "Token desconocido, enlace desactivado o recurso eliminado"},
        410: {"description": "El enlace ha expirado"},
    },
)
async def resolve_shared_resource(
    token: str,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(current_optional_user),
):
    decision = await ShareService(session).resolve_share_access(
        token, caller_is_authenticated=user is not None
    )
    if not decision.granted:
        status_code, detail = DENIALS[decision.outcome]
        raise HTTPException(status_code=status_code, detail=detail)
    return SharedResourceView.model_validate(decision.resource)
