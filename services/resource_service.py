"""Resource repository: documents, media and links grouped in folders."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Any, BinaryIO, Dict, List, Optional

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import ResourceFolder, ResourceType, Solution, SolutionResource, User
from schemas import FolderCreate, ResourceCreate, ResourceUpdate
from security.permissions import Capability, has_permission
from services.audit_logger import audit_logger, snapshot
from services.storage import MediaStorage

DEFAULT_FOLDER = "General"
DEFAULT_FOLDER_ICON = "📁"
DEFAULT_FOLDER_COLOR = "#3B82F6"
IMPLICIT_FOLDER_COLOR = "#6B7280"


class ResourceServiceError(Exception):
    """Base class for resource repository errors."""


class ResourceNotFoundError(ResourceServiceError):
    """Resource or folder not found."""


class ResourceValidationError(ResourceServiceError):
    """Invalid resource input."""


class ResourcePermissionError(ResourceServiceError):
    """Only the owner or a configuration manager may change a resource."""


def detect_resource_type(mime_type: Optional[str]) -> ResourceType:
    mime_type = mime_type or ""
    if mime_type.startswith("image/"):
        return ResourceType.IMAGE
    if mime_type.startswith("video/"):
        return ResourceType.VIDEO
    return ResourceType.DOCUMENT


def clean_folder_name(name: Optional[str]) -> str:
    """Trimmed folder name, ``General`` when blank. Path-like names are rejected."""
    cleaned = (name or "").strip() or DEFAULT_FOLDER
    if cleaned in (".", "..") or any(char in cleaned for char in ("/", "\\", "\x00")):
        raise ResourceValidationError(f"Nombre de carpeta no válido: '{cleaned}'")
    return cleaned


def can_manage_resource(resource: SolutionResource, user: User) -> bool:
    """Managers always; the creator only while still allowed to create content."""
    if has_permission(user.role, Capability.MANAGE_CONFIG):
        return True
    return resource.created_by == user.id and has_permission(user.role, Capability.CREATE_CASE)


class ResourceService:
    def __init__(self, session: AsyncSession, storage: Optional[MediaStorage] = None) -> None:
        self.session = session
        self.storage = storage

    async def get_resource(self, resource_id: uuid.UUID) -> SolutionResource:
        resource = await self.session.get(SolutionResource, resource_id)
        if resource is None or resource.deleted_at is not None:
            raise ResourceNotFoundError(f"Recurso {resource_id} no existe")
        return resource

    def ensure_can_manage(self, resource: SolutionResource, user: User) -> None:
        if not can_manage_resource(resource, user):
            logger.warning(f"User {user.id} tried to manage resource {resource.id} without rights")
            raise ResourcePermissionError("Solo el creador o un administrador puede modificar este recurso")

    async def list_resources(
        self,
        *,
        folder: Optional[str] = None,
        resource_type: Optional[str] = None,
        solution_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
    ) -> List[SolutionResource]:
        query = select(SolutionResource).where(SolutionResource.deleted_at.is_(None))
        if folder:
            query = query.where(SolutionResource.folder == folder)
        if resource_type:
            query = query.where(SolutionResource.type == resource_type)
        if solution_id:
            query = query.where(SolutionResource.solution_id == solution_id)
        if search:
            query = query.where(SolutionResource.title.ilike(f"%{search}%"))
        result = await self.session.execute(query.order_by(SolutionResource.created_at.desc()))
        return list(result.scalars().all())

    async def _check_solution(self, solution_id: Optional[uuid.UUID]) -> None:
        if solution_id is None:
            return
        solution = await self.session.get(Solution, solution_id)
        if solution is None or solution.deleted_at is not None:
            raise ResourceValidationError(f"La solución {solution_id} no existe")

    async def create_resource(self, data: ResourceCreate, user: User) -> SolutionResource:
        await self._check_solution(data.solution_id)
        values = data.model_dump()
        values["type"] = ResourceType(data.type).value
        values["folder"] = clean_folder_name(data.folder)

        resource = SolutionResource(**values, created_by=user.id)
        self.session.add(resource)
        await self.session.flush()
        await audit_logger.record_created(self.session, resource, user.id)
        logger.info(f"Resource created: {resource.id} in folder '{resource.folder}'")
        return resource

    async def upload_resource(
        self,
        *,
        file_name: str,
        content_type: Optional[str],
        stream: BinaryIO,
        user: User,
        title: Optional[str] = None,
        folder: Optional[str] = None,
        description: Optional[str] = None,
        solution_id: Optional[uuid.UUID] = None,
    ) -> SolutionResource:
        if self.storage is None:
            raise ResourceServiceError("Almacenamiento no configurado")
        await self._check_solution(solution_id)

        folder_name = clean_folder_name(folder)
        stored = await self.storage.save(f"resources/{folder_name}", file_name, stream)
        resource = SolutionResource(
            title=title or file_name,
            type=detect_resource_type(content_type).value,
            url=stored.url,
            file_path=stored.path,
            folder=folder_name,
            description=description,
            file_size=stored.size,
            mime_type=content_type,
            solution_id=solution_id,
            created_by=user.id,
        )
        self.session.add(resource)
        await self.session.flush()
        await audit_logger.record_created(self.session, resource, user.id)
        return resource

    async def update_resource(
        self,
        resource_id: uuid.UUID,
        data: ResourceUpdate,
        user: User,
    ) -> SolutionResource:
        resource = await self.get_resource(resource_id)
        self.ensure_can_manage(resource, user)

        updates = data.model_dump(exclude_unset=True)
        if "solution_id" in updates:
            await self._check_solution(updates["solution_id"])

        before = snapshot(resource)
        for field, value in updates.items():
            if value is None and field in ("title", "type", "url", "folder"):
                continue
            if field == "type":
                value = ResourceType(value).value
            elif field == "folder":
                value = clean_folder_name(value)
            setattr(resource, field, value)

        await self.session.flush()
        await audit_logger.record_updated(self.session, resource, before, user.id)
        return resource

    async def delete_resource(self, resource_id: uuid.UUID, user: User) -> None:
        resource = await self.get_resource(resource_id)
        self.ensure_can_manage(resource, user)

        before = snapshot(resource)
        resource.deleted_at = dt.datetime.now(dt.timezone.utc)
        resource.share_enabled = False
        await self.session.flush()
        await audit_logger.record_deleted(self.session, resource, before, user.id)
        logger.info(f"Resource soft-deleted: {resource.id} by {user.id}")

    # Folders
    async def list_folders(self) -> List[Dict[str, Any]]:
        """Folders with live resource counts, including folders only implied by resources."""
        folders_result = await self.session.execute(
            select(ResourceFolder)
            .where(ResourceFolder.deleted_at.is_(None))
            .order_by(ResourceFolder.name)
        )
        folders = list(folders_result.scalars().all())

        counts_result = await self.session.execute(
            select(SolutionResource.folder, func.count(SolutionResource.id))
            .where(SolutionResource.deleted_at.is_(None))
            .group_by(SolutionResource.folder)
        )
        counts = {name: int(count) for name, count in counts_result.all()}

        listing = [
            {
                "id": folder.id,
                "name": folder.name,
                "icon": folder.icon,
                "color": folder.color,
                "resource_count": counts.get(folder.name, 0),
                "created_at": folder.created_at,
            }
            for folder in folders
        ]
        known = {folder.name for folder in folders}
        for name in sorted(set(counts) - known):
            listing.append(
                {
                    "id": None,
                    "name": name,
                    "icon": DEFAULT_FOLDER_ICON,
                    "color": IMPLICIT_FOLDER_COLOR,
                    "resource_count": counts[name],
                    "created_at": None,
                }
            )
        return listing

    async def create_folder(self, data: FolderCreate, user: User) -> ResourceFolder:
        name = data.name.strip()
        if name:
            name = clean_folder_name(name)
        existing = await self.session.scalar(
            select(func.count(ResourceFolder.id)).where(
                ResourceFolder.name == name,
                ResourceFolder.deleted_at.is_(None),
            )
        )
        if existing:
            raise ResourceValidationError(f"La carpeta '{name}' ya existe")

        folder = ResourceFolder(
            name=name,
            icon=data.icon or DEFAULT_FOLDER_ICON,
            color=data.color or DEFAULT_FOLDER_COLOR,
            created_by=user.id,
        )
        self.session.add(folder)
        await self.session.flush()
        await audit_logger.record_created(self.session, folder, user.id)
        return folder

    async def delete_folder(self, name: str, user: User) -> int:
        """Soft-delete a folder and every live resource filed under it."""
        now = dt.datetime.now(dt.timezone.utc)
        result = await self.session.execute(
            update(SolutionResource)
            .where(SolutionResource.folder == name, SolutionResource.deleted_at.is_(None))
            .values(deleted_at=now, share_enabled=False)
        )
        removed = int(result.rowcount or 0)

        folders = await self.session.execute(
            select(ResourceFolder).where(
                ResourceFolder.name == name, ResourceFolder.deleted_at.is_(None)
            )
        )
        folder_rows = list(folders.scalars().all())
        if not folder_rows and removed == 0:
            raise ResourceNotFoundError(f"La carpeta '{name}' no existe")

        for folder in folder_rows:
            before = snapshot(folder)
            folder.deleted_at = now
            await self.session.flush()
            await audit_logger.record_deleted(self.session, folder, before, user.id)

        logger.info(f"Folder '{name}' deleted with {removed} resources by {user.id}")
        return removed


__all__ = [
    "ResourceService",
    "ResourceServiceError",
    "ResourceNotFoundError",
    "ResourceValidationError",
    "ResourcePermissionError",
    "can_manage_resource",
    "clean_folder_name",
    "detect_resource_type",
]
