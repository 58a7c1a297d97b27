"""Authentication, user administration, RBAC and audit routes."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi_users import exceptions as user_exceptions
from fastapi_users.authentication import Strategy
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_session
from schemas import AuditListResponse, EntityKind
from security.auth import auth_backend, current_active_user, fastapi_users
from security.casbin_enforcer import find_policy_drift, get_enforcer, require_capability
from security.constants import DEFAULT_ROLES
from security.dependencies import get_user_manager
from security.manager import UserManager
from security.permissions import Capability, ROLE_CAPABILITIES, Role, capability_matrix
from security.schemas import (
    ActiveUpdateRequest,
    AdminUserCreate,
    PolicyDriftSchema,
    PolicySchema,
    RoleSchema,
    RoleUpdateRequest,
    UserCreate,
    UserRead,
    UserUpdate,
)
from services import rbac_service
from services.audit_logger import (
    actor_names,
    list_audit_logs,
    list_record_history,
    present_entry,
)
from services.tracking_service import tracked_kind

router = APIRouter()

# authentication and self-service routes
router.include_router(
    fastapi_users.get_register_router(UserRead, UserCreate),
    prefix="/auth",
    tags=["Auth"],
)
router.include_router(
    fastapi_users.get_auth_router(auth_backend),
    prefix="/auth",
    tags=["Auth"],
)
router.include_router(
    fastapi_users.get_reset_password_router(),
    prefix="/auth",
    tags=["Auth"],
)
router.include_router(
    fastapi_users.get_users_router(UserRead, UserUpdate),
    prefix="/users",
    tags=["Users"],
)


@router.post("/auth/refresh", tags=["Auth"])
async def refresh_token(
    user=Depends(current_active_user),
    strategy: Strategy = Depends(auth_backend.get_strategy),
):
    """Issue a fresh access token for the signed-in user."""

    response = await auth_backend.login(strategy, user)
    logger.info(f"Access token refreshed for user {user.id}")
    return response


@router.get("/auth/me", response_model=UserRead, tags=["Auth"])
async def get_current_user_profile(
    user=Depends(current_active_user),
):
    """Profile of the signed-in user."""
    return UserRead.model_validate(user)


@router.get("/auth/me/capabilities", tags=["Auth"])
async def get_current_user_capabilities(
    user=Depends(current_active_user),
) -> dict[str, Any]:
    """Capability flags of the signed-in user, used to drive the UI."""
    role = Role.parse(user.role)
    granted = ROLE_CAPABILITIES.get(role, frozenset()) if role else frozenset()
    return {
        "role": role.value if role else user.role,
        "capabilities": {capability.value: capability in granted for capability in Capability},
    }


# user administration
@router.get("/admin/users", tags=["Admin"])
async def list_users(
    session: AsyncSession = Depends(get_async_session),
    user=Depends(require_capability(Capability.MANAGE_USERS)),
) -> dict[str, Any]:
    users = await rbac_service.list_users(session)
    return {
        "users": [UserRead.model_validate(u) for u in users],
        "total": len(users),
    }


@router.post(
    "/admin/users",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    tags=["Admin"],
)
async def create_user(
    payload: AdminUserCreate,
    manager: UserManager = Depends(get_user_manager),
    user=Depends(require_capability(Capability.MANAGE_USERS)),
):
    """Create an internal account from a username, as the admin panel does."""
    try:
        created = await manager.create(
            UserCreate(
                email=rbac_service.internal_email(payload.username),
                password=payload.password,
                full_name=payload.full_name or payload.username,
                role=payload.role,
                is_verified=True,
            ),
            safe=False,
        )
    except user_exceptions.UserAlreadyExists:
        raise HTTPException(status_code=400, detail="El usuario ya existe")
    except user_exceptions.InvalidPasswordException as e:
        raise HTTPException(status_code=400, detail=str(e.reason))
    except Exception as e:
        logger.error(f"Failed to create user {payload.username}: {e}")
        raise HTTPException(status_code=500, detail="Error interno del servidor")

    logger.info(f"User {created.id} created by {user.id} with role {created.role}")
    return UserRead.model_validate(created)


@router.patch("/admin/users/{user_id}/role", response_model=UserRead, tags=["Admin"])
async def update_user_role(
    user_id: uuid.UUID,
    payload: RoleUpdateRequest,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(require_capability(Capability.MANAGE_USERS)),
):
    try:
        updated = await rbac_service.set_user_role(session, user_id, payload.role, actor_id=user.id)
        await session.commit()
        return UserRead.model_validate(updated)
    except rbac_service.UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except rbac_service.UserAdminError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/admin/users/{user_id}/active", response_model=UserRead, tags=["Admin"])
async def update_user_active(
    user_id: uuid.UUID,
    payload: ActiveUpdateRequest,
    session: AsyncSession = Depends(get_async_session),
    user=Depends(require_capability(Capability.MANAGE_USERS)),
):
    if user_id == user.id and not payload.is_active:
        raise HTTPException(status_code=400, detail="No puedes desactivar tu propia cuenta")
    try:
        updated = await rbac_service.set_user_active(
            session, user_id, payload.is_active, actor_id=user.id
        )
        await session.commit()
        return UserRead.model_validate(updated)
    except rbac_service.UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# RBAC inspection
@router.get("/admin/roles", response_model=list[RoleSchema], tags=["RBAC"])
async def list_roles(user=Depends(current_active_user)) -> list[RoleSchema]:
    return [RoleSchema(**role) for role in DEFAULT_ROLES]


@router.get("/rbac/capabilities", tags=["RBAC"])
async def get_capability_matrix(
    user=Depends(require_capability(Capability.ACCESS_ADMIN_PANEL)),
) -> dict[str, dict[str, bool]]:
    return capability_matrix()


@router.get(
    "/admin/policies",
    response_model=list[PolicySchema],
    tags=["RBAC"],
    dependencies=[Depends(require_capability(Capability.ACCESS_ADMIN_PANEL))],
)
async def list_policies(
    session: AsyncSession = Depends(get_async_session),
) -> list[PolicySchema]:
    policies = await rbac_service.list_policies(session)
    return [
        PolicySchema(
            id=policy.id,
            subject=policy.v0 or "",
            domain=policy.v1 or "",
            resource=policy.v2 or "",
            action=policy.v3 or "",
        )
        for policy in policies
    ]


@router.get(
    "/admin/policies/drift",
    response_model=PolicyDriftSchema,
    tags=["RBAC"],
    dependencies=[Depends(require_capability(Capability.ACCESS_ADMIN_PANEL))],
)
async def get_policy_drift() -> PolicyDriftSchema:
    drift = find_policy_drift(get_enforcer())
    return PolicyDriftSchema(
        missing=[list(policy) for policy in drift["missing"]],
        unexpected=[list(policy) for policy in drift["unexpected"]],
    )


# audit log
def _parse_timestamp(value: Optional[str]) -> Optional[dt.datetime]:
    if not value:
        return None
    try:
        return dt.datetime.fromisoformat(value)
    except ValueError as exc:
        raise HTTPException(
            status_code=400, detail="Invalid timestamp format"
        ) from exc


@router.get(
    "/admin/audit",
    response_model=AuditListResponse,
    tags=["Audit"],
    dependencies=[Depends(require_capability(Capability.ACCESS_ADMIN_PANEL))],
)
async def get_audit_logs(
    user_id: Optional[uuid.UUID] = Query(None),
    table: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    session: AsyncSession = Depends(get_async_session),
) -> dict[str, Any]:
    offset = (page - 1) * limit

    items, total = await list_audit_logs(
        session,
        changed_by=user_id,
        table_name=table,
        action=action,
        start=_parse_timestamp(start),
        end=_parse_timestamp(end),
        limit=limit,
        offset=offset,
    )
    names = await actor_names(session, items)

    return {
        "items": [present_entry(item, names) for item in items],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.get(
    "/audit/{entity_type}/{entity_id}",
    response_model=AuditListResponse,
    tags=["Audit"],
    dependencies=[Depends(require_capability(Capability.VIEW_AUDIT))],
)
async def get_record_history(
    entity_type: EntityKind,
    entity_id: uuid.UUID,
    session: AsyncSession = Depends(get_async_session),
) -> dict[str, Any]:
    """Change history of one case or test, newest first."""
    table_name = tracked_kind(entity_type).model.__tablename__
    items = await list_record_history(session, table_name, entity_id)
    names = await actor_names(session, items)
    return {
        "items": [present_entry(item, names, with_fields=True) for item in items],
        "total": len(items),
        "limit": len(items),
        "offset": 0,
    }
