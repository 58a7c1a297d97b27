"""
Tests for solution reports
"""

import io
import uuid

import pytest
from pydantic import ValidationError

from schemas import CaseCreate, EntityKind, SolutionCreate, SolutionUpdate, TestCreate
from services.solution_service import (
    SolutionNotFoundError,
    SolutionPermissionError,
    SolutionService,
    SolutionValidationError,
)
from services.tracking_service import TrackingService


@pytest.fixture
async def case(session, statuses, postsales_user):
    return await TrackingService(session).create_item(
        EntityKind.CASE, CaseCreate(title="Sin audio"), postsales_user
    )


@pytest.fixture
async def tests(session, case, postsales_user):
    tracking = TrackingService(session)
    return [
        await tracking.create_item(
            EntityKind.TEST, TestCreate(title=f"Prueba {n}", case_id=case.id), postsales_user
        )
        for n in range(2)
    ]


def _payload(case_id, **overrides):
    values = {
        "case_id": case_id,
        "title": "Reinstalar firmware",
        "description": "El firmware estaba corrupto",
        "steps_to_resolve": "Flashear la versión 2.1",
    }
    values.update(overrides)
    return SolutionCreate(**values)


@pytest.mark.asyncio
async def test_create_requires_existing_case(session, postsales_user):
    with pytest.raises(SolutionValidationError):
        await SolutionService(session).create_solution(_payload(uuid.uuid4()), postsales_user)


@pytest.mark.asyncio
async def test_test_links_only_when_tests_performed(session, case, tests, postsales_user):
    service = SolutionService(session)
    test_ids = [test.id for test in tests]

    without = await service.create_solution(
        _payload(case.id, test_ids=test_ids), postsales_user
    )
    assert without.test_ids == []

    with_tests = await service.create_solution(
        _payload(case.id, tests_performed=True, test_ids=test_ids + [test_ids[0]]),
        postsales_user,
    )
    assert sorted(with_tests.test_ids) == sorted(test_ids)


@pytest.mark.asyncio
async def test_unknown_test_is_rejected(session, case, postsales_user):
    with pytest.raises(SolutionValidationError):
        await SolutionService(session).create_solution(
            _payload(case.id, tests_performed=True, test_ids=[uuid.uuid4()]),
            postsales_user,
        )


@pytest.mark.asyncio
async def test_update_resyncs_test_links(session, case, tests, postsales_user):
    service = SolutionService(session)
    solution = await service.create_solution(
        _payload(case.id, tests_performed=True, test_ids=[tests[0].id]), postsales_user
    )

    solution = await service.update_solution(
        solution.id, SolutionUpdate(test_ids=[tests[1].id]), postsales_user
    )
    assert solution.test_ids == [tests[1].id]

    solution = await service.update_solution(
        solution.id, SolutionUpdate(tests_performed=False), postsales_user
    )
    assert solution.test_ids == []


@pytest.mark.asyncio
async def test_only_author_or_manager_may_edit(session, case, postsales_user, admin_user, inquiry_user):
    service = SolutionService(session)
    solution = await service.create_solution(_payload(case.id), postsales_user)

    with pytest.raises(SolutionPermissionError):
        await service.update_solution(solution.id, SolutionUpdate(title="Otro"), inquiry_user)

    updated = await service.update_solution(
        solution.id, SolutionUpdate(findings="Sector dañado"), admin_user
    )
    assert updated.findings == "Sector dañado"

    with pytest.raises(SolutionValidationError):
        await service.update_solution(solution.id, SolutionUpdate(description=""), postsales_user)
    with pytest.raises(SolutionValidationError):
        await service.update_solution(
            solution.id, SolutionUpdate(steps_to_resolve=""), postsales_user
        )
    with pytest.raises(SolutionValidationError):
        await service.update_solution(
            solution.id, SolutionUpdate.model_construct(title=""), postsales_user
        )

    current = await service.get_solution(solution.id)
    assert current.title == "Reinstalar firmware"


def test_update_schema_rejects_empty_title():
    with pytest.raises(ValidationError):
        SolutionUpdate(title="")


@pytest.mark.asyncio
async def test_delete_and_listing(session, case, postsales_user):
    service = SolutionService(session)
    first = await service.create_solution(_payload(case.id), postsales_user)
    await service.create_solution(_payload(case.id, title="Cambiar cable"), postsales_user)

    found, total = await service.list_solutions(search="cable")
    assert total == 1
    assert found[0].title == "Cambiar cable"

    await service.delete_solution(first.id, postsales_user)
    _, total = await service.list_solutions(case_id=case.id)
    assert total == 1
    with pytest.raises(SolutionNotFoundError):
        await service.get_solution(first.id)


@pytest.mark.asyncio
async def test_attachments(session, case, storage, postsales_user, inquiry_user):
    service = SolutionService(session, storage)
    solution = await service.create_solution(_payload(case.id), postsales_user)

    with pytest.raises(SolutionPermissionError):
        await service.add_attachment(
            solution.id,
            file_name="log.txt",
            content_type="text/plain",
            stream=io.BytesIO(b"log"),
            user=inquiry_user,
        )

    attachment = await service.add_attachment(
        solution.id,
        file_name="log.txt",
        content_type="text/plain",
        stream=io.BytesIO(b"log"),
        user=postsales_user,
    )
    assert attachment.file_path.startswith(f"solutions/{solution.id}/")
    assert [a.id for a in await service.list_attachments(solution.id)] == [attachment.id]

    await service.delete_attachment(solution.id, attachment.id, postsales_user)
    assert await service.list_attachments(solution.id) == []
    assert not storage.path_for(attachment.file_path).exists()
