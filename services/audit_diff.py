"""Human readable descriptions of audit log entries.

Everything here is pure: snapshots come straight from ``audit_log`` rows and
malformed input degrades to a generic label instead of raising.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from loguru import logger

CREATED_LABEL = "Registro creado"
UPDATED_LABEL = "Registro actualizado"
DELETED_LABEL = "Registro eliminado"
UNKNOWN_USER_LABEL = "Usuario Desconocido"

# Bookkeeping timestamps never count as a change.
TIMESTAMP_FIELDS = frozenset({"created_at", "updated_at", "deleted_at"})

# Fields hidden from the per-record history view.
HISTORY_IGNORED_FIELDS = TIMESTAMP_FIELDS | {"id", "created_by", "updated_by"}

ACTION_ALIASES = {
    "created": "created",
    "insert": "created",
    "updated": "updated",
    "update": "updated",
    "deleted": "deleted",
    "delete": "deleted",
}

ACTION_LABELS = {
    "created": "Creado",
    "updated": "Modificado",
    "deleted": "Eliminado",
}

FIELD_LABELS = {
    "title": "Título",
    "description": "Descripción",
    "status_id": "Estado",
    "responsible_id": "Responsable",
    "priority": "Prioridad",
    "application_id": "Aplicación",
    "category_id": "Categoría",
    "case_type_id": "Tipo de Caso",
    "test_type_id": "Tipo de Prueba",
    "case_id": "Caso Relacionado",
    "notes": "Notas",
}

TABLE_LABELS = {
    "cases": "Casos",
    "tests": "Pruebas",
    "profiles": "Usuarios",
    "users": "Usuarios",
    "statuses": "Estados",
    "applications": "Aplicaciones",
    "categories": "Categorías",
    "case_types": "Tipos de Caso",
    "test_types": "Tipos de Prueba",
    "solutions": "Soluciones",
    "solution_resources": "Recursos",
    "resource_folders": "Carpetas",
}

MAX_VALUE_LENGTH = 100


def normalize_action(action: Any) -> Optional[str]:
    """Map ``INSERT``/``UPDATE``/``DELETE`` and friends onto the canonical actions."""
    if not isinstance(action, str):
        return None
    return ACTION_ALIASES.get(action.strip().lower())


def action_label(action: Any) -> str:
    canonical = normalize_action(action)
    if canonical is None:
        return str(action)
    return ACTION_LABELS[canonical]


def table_label(table_name: str) -> str:
    return TABLE_LABELS.get(table_name, table_name)


def format_field_name(field: str) -> str:
    return FIELD_LABELS.get(field, field)


def format_value(value: Any) -> str:
    if value is None:
        return "N/A"
    if isinstance(value, bool):
        return "Sí" if value else "No"
    if isinstance(value, str):
        if len(value) > MAX_VALUE_LENGTH:
            return value[:MAX_VALUE_LENGTH] + "..."
        return value
    if isinstance(value, (dict, list)):
        try:
            return json.dumps(value, ensure_ascii=False, sort_keys=True, default=str)
        except (TypeError, ValueError):
            return str(value)
    return str(value)


def _as_mapping(snapshot: Any) -> Optional[Mapping[str, Any]]:
    if isinstance(snapshot, Mapping):
        return snapshot
    if isinstance(snapshot, (str, bytes)):
        try:
            decoded = json.loads(snapshot)
        except (TypeError, ValueError):
            return None
        return decoded if isinstance(decoded, Mapping) else None
    return None


def same_value(left: Any, right: Any) -> bool:
    """Structural JSON equality where booleans never equal numbers."""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        return left.keys() == right.keys() and all(same_value(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(same_value(a, b) for a, b in zip(left, right))
    return left == right


def changed_fields(
    before: Any,
    after: Any,
    *,
    ignored: frozenset[str] = TIMESTAMP_FIELDS,
) -> list[tuple[str, Any, Any]]:
    """Return ``(field, old, new)`` for every field of ``after`` that differs.

    Fields are visited in ``after`` insertion order. Values are compared with
    ``same_value`` on the decoded JSON, so nested key order is irrelevant
    and ``true`` never matches ``1``.
    """
    before_map = _as_mapping(before)
    after_map = _as_mapping(after)
    if before_map is None or after_map is None:
        return []

    changes = []
    for field, new_value in after_map.items():
        if field in ignored:
            continue
        old_value = before_map.get(field)
        if field in before_map and same_value(old_value, new_value):
            continue
        changes.append((field, old_value, new_value))
    return changes


def describe_change(action: Any, before: Any = None, after: Any = None) -> str:
    """Single line description of one audit entry. Never raises."""
    try:
        canonical = normalize_action(action)
        if canonical == "created":
            return CREATED_LABEL
        if canonical == "deleted":
            return DELETED_LABEL
        if canonical == "updated":
            changes = changed_fields(before, after)
            if not changes:
                return UPDATED_LABEL
            parts = ", ".join(f"{field}: {format_value(new)}" for field, _, new in changes)
            return f"Cambios: {parts}"
        return f"Acción desconocida: {action}"
    except Exception as exc:  # pragma: no cover - unexpected snapshot shapes
        logger.warning(f"Failed to describe audit change ({action}): {exc}")
        return UPDATED_LABEL


def history_fields(before: Any, after: Any) -> list[dict[str, Any]]:
    """Detailed field list for the per-record change history view."""
    before_map = _as_mapping(before) or {}
    after_map = _as_mapping(after) or {}
    if not before_map or not after_map:
        return []

    keys = list(before_map.keys()) + [key for key in after_map if key not in before_map]
    fields = []
    for key in keys:
        if key in HISTORY_IGNORED_FIELDS:
            continue
        old_value = before_map.get(key)
        new_value = after_map.get(key)
        if same_value(old_value, new_value):
            continue
        fields.append(
            {
                "field": key,
                "label": format_field_name(key),
                "old_value": format_value(old_value),
                "new_value": format_value(new_value),
            }
        )
    return fields


__all__ = [
    "CREATED_LABEL",
    "UPDATED_LABEL",
    "DELETED_LABEL",
    "UNKNOWN_USER_LABEL",
    "TIMESTAMP_FIELDS",
    "normalize_action",
    "action_label",
    "table_label",
    "format_field_name",
    "format_value",
    "same_value",
    "changed_fields",
    "describe_change",
    "history_fields",
]
