"""Solution reports attached to cases."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import BinaryIO, List, Optional, Tuple

from loguru import logger
from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Case, Solution, SolutionAttachment, SolutionTest, Test, User
from schemas import SolutionCreate, SolutionUpdate
from security.permissions import Capability, has_permission
from services.audit_logger import audit_logger, snapshot
from services.storage import MediaStorage


class SolutionServiceError(Exception):
    """Base class for solution errors."""


class SolutionNotFoundError(SolutionServiceError):
    """Solution not found."""


class SolutionValidationError(SolutionServiceError):
    """Invalid solution input."""


class SolutionPermissionError(SolutionServiceError):
    """Only the author or a configuration manager may change a solution."""


def can_edit_solution(solution: Solution, user: User) -> bool:
    return solution.created_by == user.id or has_permission(user.role, Capability.MANAGE_CONFIG)


class SolutionService:
    def __init__(self, session: AsyncSession, storage: Optional[MediaStorage] = None) -> None:
        self.session = session
        self.storage = storage

    async def get_solution(self, solution_id: uuid.UUID) -> Solution:
        solution = await self.session.get(Solution, solution_id)
        if solution is None or solution.deleted_at is not None:
            raise SolutionNotFoundError(f"Solución {solution_id} no existe")
        return solution

    async def list_solutions(
        self,
        *,
        case_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Solution], int]:
        filters = [Solution.deleted_at.is_(None)]
        if case_id:
            filters.append(Solution.case_id == case_id)
        if search:
            filters.append(
                or_(
                    Solution.title.ilike(f"%{search}%"),
                    Solution.description.ilike(f"%{search}%"),
                    Solution.findings.ilike(f"%{search}%"),
                )
            )

        total = await self.session.scalar(select(func.count(Solution.id)).where(and_(*filters)))
        result = await self.session.execute(
            select(Solution)
            .where(and_(*filters))
            .order_by(Solution.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().unique().all()), int(total or 0)

    async def _validate_tests(self, test_ids: List[uuid.UUID]) -> List[uuid.UUID]:
        unique_ids = list(dict.fromkeys(test_ids))
        if not unique_ids:
            return []
        found = await self.session.scalar(
            select(func.count(Test.id)).where(Test.id.in_(unique_ids), Test.deleted_at.is_(None))
        )
        if int(found or 0) != len(unique_ids):
            raise SolutionValidationError("Alguna de las pruebas indicadas no existe")
        return unique_ids

    @staticmethod
    def _sync_test_links(solution: Solution, test_ids: List[uuid.UUID]) -> None:
        wanted = set(test_ids)
        kept = [link for link in solution.test_links if link.test_id in wanted]
        present = {link.test_id for link in kept}
        kept.extend(SolutionTest(test_id=test_id) for test_id in test_ids if test_id not in present)
        solution.test_links = kept

    async def create_solution(self, data: SolutionCreate, user: User) -> Solution:
        case = await self.session.get(Case, data.case_id)
        if case is None or case.deleted_at is not None:
            raise SolutionValidationError(f"El caso {data.case_id} no existe")

        test_ids = await self._validate_tests(data.test_ids) if data.tests_performed else []

        solution = Solution(**data.model_dump(exclude={"test_ids"}), created_by=user.id)
        solution.test_links = [SolutionTest(test_id=test_id) for test_id in test_ids]
        self.session.add(solution)
        await self.session.flush()
        await audit_logger.record_created(self.session, solution, user.id)
        await self.session.refresh(solution)

        logger.info(f"Solution created: {solution.id} for case {case.id}")
        return solution

    async def update_solution(
        self,
        solution_id: uuid.UUID,
        data: SolutionUpdate,
        user: User,
    ) -> Solution:
        solution = await self.get_solution(solution_id)
        if not can_edit_solution(solution, user):
            raise SolutionPermissionError("Solo el autor o un administrador puede editar la solución")

        before = snapshot(solution)
        updates = data.model_dump(exclude_unset=True)
        test_ids = updates.pop("test_ids", None)

        for field in ("title", "description", "steps_to_resolve"):
            if field in updates and not updates[field]:
                raise SolutionValidationError(f"El campo {field} es obligatorio")
        for field, value in updates.items():
            setattr(solution, field, value)

        if not solution.tests_performed:
            self._sync_test_links(solution, [])
        elif test_ids is not None:
            self._sync_test_links(solution, await self._validate_tests(test_ids))

        await self.session.flush()
        await audit_logger.record_updated(self.session, solution, before, user.id)
        await self.session.refresh(solution)
        return solution

    async def delete_solution(self, solution_id: uuid.UUID, user: User) -> None:
        solution = await self.get_solution(solution_id)
        if not can_edit_solution(solution, user):
            raise SolutionPermissionError("Solo el autor o un administrador puede eliminar la solución")

        before = snapshot(solution)
        solution.deleted_at = dt.datetime.now(dt.timezone.utc)
        await self.session.flush()
        await audit_logger.record_deleted(self.session, solution, before, user.id)
        logger.info(f"Solution soft-deleted: {solution.id} by {user.id}")

    async def list_attachments(self, solution_id: uuid.UUID) -> List[SolutionAttachment]:
        await self.get_solution(solution_id)
        result = await self.session.execute(
            select(SolutionAttachment)
            .where(SolutionAttachment.solution_id == solution_id)
            .order_by(SolutionAttachment.created_at)
        )
        return list(result.scalars().all())

    async def add_attachment(
        self,
        solution_id: uuid.UUID,
        *,
        file_name: str,
        content_type: Optional[str],
        stream: BinaryIO,
        user: User,
    ) -> SolutionAttachment:
        solution = await self.get_solution(solution_id)
        if not can_edit_solution(solution, user):
            raise SolutionPermissionError("Solo el autor o un administrador puede adjuntar archivos")
        if self.storage is None:
            raise SolutionServiceError("Almacenamiento no configurado")

        stored = await self.storage.save(f"solutions/{solution.id}", file_name, stream)
        attachment = SolutionAttachment(
            solution_id=solution.id,
            file_name=file_name,
            file_url=stored.url,
            file_path=stored.path,
            file_type=content_type,
            file_size=stored.size,
            uploaded_by=user.id,
        )
        self.session.add(attachment)
        await self.session.flush()
        return attachment

    async def delete_attachment(
        self,
        solution_id: uuid.UUID,
        attachment_id: uuid.UUID,
        user: User,
    ) -> None:
        solution = await self.get_solution(solution_id)
        if not can_edit_solution(solution, user):
            raise SolutionPermissionError("Solo el autor o un administrador puede eliminar adjuntos")

        attachment = await self.session.get(SolutionAttachment, attachment_id)
        if attachment is None or attachment.solution_id != solution.id:
            raise SolutionNotFoundError(f"Adjunto {attachment_id} no existe")

        if self.storage is not None:
            await self.storage.delete(attachment.file_path)
        await self.session.delete(attachment)
        await self.session.flush()


__all__ = [
    "SolutionService",
    "SolutionServiceError",
    "SolutionNotFoundError",
    "SolutionValidationError",
    "SolutionPermissionError",
    "can_edit_solution",
]
