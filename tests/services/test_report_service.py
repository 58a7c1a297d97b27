"""
Tests for LLM report generation

The LLM is replaced by an async mock, so no provider is contacted.
"""

import datetime as dt
import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from config import settings
from schemas import CaseCreate, EntityKind, ProgressCreate, TestCreate
from services.report_service import (
    NO_ACTIVE_ITEMS_REPORT,
    ReportConfigurationError,
    ReportNotFoundError,
    ReportService,
    build_active_prompt,
)
from services.tracking_service import TrackingService


def _mock_llm(text=" # Informe \n"):
    return SimpleNamespace(acomplete=AsyncMock(return_value=SimpleNamespace(text=text)))


@pytest.fixture
async def case(session, statuses, postsales_user):
    tracking = TrackingService(session)
    case = await tracking.create_item(
        EntityKind.CASE,
        CaseCreate(title="Reinicios aleatorios", description="El equipo se reinicia"),
        postsales_user,
    )
    await tracking.add_progress(
        EntityKind.CASE,
        case.id,
        ProgressCreate(description="Se cambió la fuente", committee_notes="Validar en campo"),
        postsales_user,
    )
    return case


@pytest.mark.asyncio
async def test_entity_report_prompt_and_result(session, case):
    llm = _mock_llm()
    result = await ReportService(session, llm=llm).generate_report(EntityKind.CASE, case.id)

    assert result["report"] == "# Informe"
    assert result["entity_type"] == "case"
    assert result["entity_id"] == case.id

    prompt = llm.acomplete.await_args.args[0]
    assert "CASO:" in prompt
    assert "Reinicios aleatorios" in prompt
    assert "Estado: Abierto" in prompt
    assert "Pedro Postventa: Se cambió la fuente (Notas Comité: Validar en campo)" in prompt


@pytest.mark.asyncio
async def test_entity_report_unknown_entity(session, statuses):
    with pytest.raises(ReportNotFoundError):
        await ReportService(session, llm=_mock_llm()).generate_report(EntityKind.TEST, uuid.uuid4())


@pytest.mark.asyncio
async def test_active_report_without_open_items(session, statuses):
    llm = _mock_llm()
    result = await ReportService(session, llm=llm).generate_active_report()

    assert result == {
        "report": NO_ACTIVE_ITEMS_REPORT,
        "item_count": 0,
        "generated_at": result["generated_at"],
    }
    llm.acomplete.assert_not_awaited()


@pytest.mark.asyncio
async def test_active_report_covers_open_cases_and_tests(session, case, postsales_user):
    tracking = TrackingService(session)
    await tracking.create_item(
        EntityKind.TEST, TestCreate(title="Prueba de estrés", case_id=case.id), postsales_user
    )
    closed = await tracking.create_item(
        EntityKind.CASE, CaseCreate(title="Resuelto"), postsales_user
    )
    await tracking.finalize_item(EntityKind.CASE, closed.id, postsales_user)

    llm = _mock_llm()
    result = await ReportService(session, llm=llm).generate_active_report("Enfocar en hardware")
    assert result["item_count"] == 2

    prompt = llm.acomplete.await_args.args[0]
    assert "[Caso]" in prompt and "[Prueba]" in prompt
    assert "Resuelto" not in prompt
    assert '"Enfocar en hardware"' in prompt


def test_active_prompt_date():
    item = SimpleNamespace(
        title="x",
        status=None,
        application=None,
        responsible=None,
        description=None,
        created_at=None,
        updated_at=None,
    )
    prompt = build_active_prompt([("Caso", item)], today=dt.date(2026, 4, 2))
    assert "FECHA DEL REPORTE: 02/04/2026" in prompt
    assert "[Estado: N/A]" in prompt
    assert "INSTRUCCIONES ADICIONALES" not in prompt


def test_missing_provider_key(monkeypatch):
    monkeypatch.setattr(settings, "llm_provider", "openai")
    monkeypatch.setattr(settings, "openai_api_key", None)
    with pytest.raises(ReportConfigurationError):
        ReportService(None).llm
