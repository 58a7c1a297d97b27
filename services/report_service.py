"""
Executive report generation for cases and tests
uses LlamaIndex LLM clients so any configured provider can write the report
"""

from __future__ import annotations

import asyncio
import datetime as dt
import uuid
from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from llama_index.llms.ollama import Ollama
from llama_index.llms.openai import OpenAI
from llama_index.llms.gemini import Gemini
from llama_index.llms.openrouter import OpenRouter

from config import settings
from database.models import Case, Test, User
from schemas import EntityKind
from services.tracking_service import TrackingNotFoundError, TrackingService, tracked_kind

NO_ACTIVE_ITEMS_REPORT = "No hay casos activos para reportar en este momento."


class ReportServiceError(Exception):
    """Base class for report errors."""


class ReportConfigurationError(ReportServiceError):
    """The configured LLM provider is missing credentials."""


class ReportNotFoundError(ReportServiceError):
    """The entity to report on does not exist."""


def _format_date(value: Optional[dt.datetime]) -> str:
    if value is None:
        return "N/A"
    return value.strftime("%d/%m/%Y")


def _user_name(user: Optional[User]) -> str:
    if user is None:
        return "Sin asignar"
    return user.full_name or user.email


def format_progress_line(entry: Any) -> str:
    line = f"- [{_format_date(entry.created_at)}] {_user_name(entry.creator)}: {entry.description}"
    if entry.committee_notes:
        line += f" (Notas Comité: {entry.committee_notes})"
    return line


def build_entity_prompt(kind: EntityKind, item: Any, progress: List[Any]) -> str:
    """Formal executive report prompt for a single case or test."""
    entity_title = "CASO" if kind == EntityKind.CASE else "PRUEBA"
    progress_text = "\n".join(format_progress_line(entry) for entry in progress) or "Sin avances."
    status_name = item.status.name if item.status else "N/A"
    application = item.application.name if item.application else "N/A"

    return f"""
Actúa como una IA experta corporativa. Genera un informe ejecutivo formal.

{entity_title}:
- Título: {item.title}
- Estado: {status_name}
- Prioridad: Normal
- App: {application}
- Responsable: {_user_name(item.responsible)}
- Descripcion: {item.description or 'Sin descripción'}

HISTORIAL:
{progress_text}

INSTRUCCIONES:
- Estructura: "Resumen Ejecutivo", "Detalles Técnicos", "Cronología", "Conclusión".
- Tono formal y profesional.
- Usa Markdown.
""".strip()


def build_active_prompt(
    items: List[tuple[str, Any]],
    additional_instructions: Optional[str] = None,
    today: Optional[dt.date] = None,
) -> str:
    """Status report prompt over every open case and test."""
    summary = "\n---\n".join(
        f"""- [{label}] [Estado: {item.status.name if item.status else 'N/A'}] "{item.title}"
   App: {item.application.name if item.application else 'N/A'} | Resp: {_user_name(item.responsible)}
   Creado: {_format_date(item.created_at)} | Actualizado: {_format_date(item.updated_at)}
   Desc: {item.description or 'Sin descripción'}"""
        for label, item in items
    )
    report_date = (today or dt.date.today()).strftime("%d/%m/%Y")

    prompt = f"""
Actúa como una IA experta y Senior en Gestión de Proyectos y Soporte Técnico.
Tu objetivo es generar un "Informe de Estado de Casos Activos" de alto nivel y muy detallado.

FECHA DEL REPORTE: {report_date}

LISTADO DE CASOS Y PRUEBAS ACTIVOS (PENDIENTES):
{summary}

INSTRUCCIONES CLAVE:
1. **Clasificación de Áreas**: Clasifica cada registro en "Ingeniería" o "Postventa" según su estado y descripción.
2. **Prioridad**: Infiere la prioridad (Alta/Media/Baja) según título, descripción y antigüedad.
3. **Métricas**: Inicia con el total de registros y los pendientes por Ingeniería y por Postventa.
4. **Detalle**: Lista cada registro con título, prioridad inferida y una breve descripción.

ESTRUCTURA SUGERIDA:
# Reporte General de Casos
## Resumen de Métricas
## Detalle de Casos
## Observaciones Finales
""".strip()

    if additional_instructions:
        prompt += f"""

---
INSTRUCCIONES ADICIONALES DEL USUARIO:
"{additional_instructions}"

IMPORTANTE: Ajusta el informe basándote estrictamente en estas nuevas instrucciones.
---"""
    return prompt


class ReportService:
    """Builds prompts from tracked entities and asks the configured LLM for the report."""

    def __init__(self, session: AsyncSession, llm: Any = None) -> None:
        self.session = session
        self._llm = llm
        self.operation_timeout = settings.operation_timeout

    def _create_llm(self):
        """create LLM instance based on config"""
        provider = settings.llm_provider.lower()

        if provider == "ollama":
            return Ollama(
                model=settings.ollama_model,
                base_url=settings.ollama_base_url,
                temperature=settings.temperature,
                request_timeout=self.operation_timeout
            )
        elif provider == "openai":
            if not settings.openai_api_key:
                raise ReportConfigurationError("OpenAI API key is required for OpenAI provider")
            return OpenAI(
                model=settings.openai_model,
                api_key=settings.openai_api_key,
                api_base=settings.openai_base_url,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
                timeout=self.operation_timeout
            )
        elif provider == "gemini":
            if not settings.google_api_key:
                raise ReportConfigurationError("Gemini API key is not configured")
            return Gemini(
                model=settings.gemini_model,
                api_key=settings.google_api_key,
                temperature=settings.temperature,
                max_tokens=settings.max_tokens
            )
        elif provider == "openrouter":
            if not settings.openrouter_api_key:
                raise ReportConfigurationError("OpenRouter API key is required for OpenRouter provider")
            return OpenRouter(
                model=settings.openrouter_model,
                api_key=settings.openrouter_api_key,
                temperature=settings.temperature,
                max_tokens=settings.openrouter_max_tokens,
                timeout=self.operation_timeout
            )
        else:
            raise ReportConfigurationError(f"Unsupported LLM provider: {provider}")

    @property
    def llm(self):
        if self._llm is None:
            self._llm = self._create_llm()
        return self._llm

    async def _complete(self, prompt: str) -> str:
        llm = self.llm
        try:
            response = await asyncio.wait_for(llm.acomplete(prompt), timeout=self.operation_timeout)
        except asyncio.TimeoutError as exc:
            logger.error(f"Report generation timed out after {self.operation_timeout}s")
            raise ReportServiceError("La generación del informe excedió el tiempo límite") from exc
        return str(getattr(response, "text", response)).strip()

    async def generate_report(self, kind: EntityKind, entity_id: uuid.UUID) -> Dict[str, Any]:
        tracking = TrackingService(self.session)
        try:
            item = await tracking.get_item(kind, entity_id)
        except TrackingNotFoundError as exc:
            raise ReportNotFoundError(str(exc)) from exc

        progress = await tracking.list_progress(kind, entity_id)
        progress.reverse()  # oldest first in the chronology

        prompt = build_entity_prompt(kind, item, progress)
        start_time = asyncio.get_running_loop().time()
        report = await self._complete(prompt)
        elapsed = asyncio.get_running_loop().time() - start_time

        logger.info(
            f"Report generated for {tracked_kind(kind).label} {entity_id} with "
            f"{settings.llm_provider} in {elapsed:.2f}s"
        )
        return {
            "entity_type": EntityKind(kind).value,
            "entity_id": entity_id,
            "report": report,
            "generated_at": dt.datetime.now(dt.timezone.utc),
        }

    async def generate_active_report(
        self,
        additional_instructions: Optional[str] = None,
    ) -> Dict[str, Any]:
        items: List[tuple[str, Any]] = []
        for label, model in (("Caso", Case), ("Prueba", Test)):
            result = await self.session.execute(
                select(model)
                .where(model.deleted_at.is_(None))
                .order_by(model.updated_at.desc())
            )
            items.extend(
                (label, item)
                for item in result.scalars().all()
                if item.status is None or not item.status.is_final
            )

        if not items:
            return {
                "report": NO_ACTIVE_ITEMS_REPORT,
                "item_count": 0,
                "generated_at": dt.datetime.now(dt.timezone.utc),
            }

        report = await self._complete(build_active_prompt(items, additional_instructions))
        logger.info(f"Active report generated over {len(items)} open items")
        return {
            "report": report,
            "item_count": len(items),
            "generated_at": dt.datetime.now(dt.timezone.utc),
        }


__all__ = [
    "ReportService",
    "ReportServiceError",
    "ReportConfigurationError",
    "ReportNotFoundError",
    "build_entity_prompt",
    "build_active_prompt",
    "format_progress_line",
]
