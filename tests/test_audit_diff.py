"""
Tests for audit entry descriptions
"""

import json

import pytest

from services.audit_diff import (
    CREATED_LABEL,
    DELETED_LABEL,
    UPDATED_LABEL,
    action_label,
    changed_fields,
    describe_change,
    format_field_name,
    format_value,
    history_fields,
    normalize_action,
    table_label,
)


class TestDescribeChange:
    def test_created(self):
        assert describe_change("created", None, {"title": "x"}) == CREATED_LABEL

    def test_deleted(self):
        assert describe_change("DELETE", {"title": "x"}, None) == DELETED_LABEL

    def test_update_lists_changed_fields_in_order(self):
        before = {"title": "Viejo", "description": "igual", "status_id": "a"}
        after = {"title": "Nuevo", "description": "igual", "status_id": "b"}
        assert describe_change("UPDATE", before, after) == "Cambios: title: Nuevo, status_id: b"

    def test_update_ignores_timestamps(self):
        before = {"title": "x", "updated_at": "2026-01-01T00:00:00"}
        after = {"title": "x", "updated_at": "2026-02-01T00:00:00"}
        assert describe_change("updated", before, after) == UPDATED_LABEL

    def test_update_without_snapshots_falls_back(self):
        assert describe_change("updated", None, None) == UPDATED_LABEL

    def test_update_accepts_json_strings(self):
        before = json.dumps({"is_final": False})
        after = json.dumps({"is_final": True})
        assert describe_change("updated", before, after) == "Cambios: is_final: Sí"

    def test_malformed_json_degrades(self):
        assert describe_change("updated", "{not json", "{}") == UPDATED_LABEL

    def test_unknown_action(self):
        assert describe_change("TRUNCATE") == "Acción desconocida: TRUNCATE"

    def test_field_missing_before_counts_as_changed(self):
        assert describe_change("updated", {}, {"notes": None}) == "Cambios: notes: N/A"

    def test_boolean_replacing_number_is_a_change(self):
        before = {"is_final": 1, "display_order": 1}
        after = {"is_final": True, "display_order": 1.0}
        assert describe_change("updated", before, after) == "Cambios: is_final: Sí"

    def test_nested_boolean_replacing_number_is_a_change(self):
        before = {"meta": {"flags": [0, 1]}}
        after = {"meta": {"flags": [False, 1]}}
        assert changed_fields(before, after) == [("meta", before["meta"], after["meta"])]


class TestFormatting:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, "N/A"),
            (True, "Sí"),
            (False, "No"),
            (3, "3"),
            ("texto", "texto"),
            ({"b": 1, "a": 2}, '{"a": 2, "b": 1}'),
        ],
    )
    def test_format_value(self, value, expected):
        assert format_value(value) == expected

    def test_long_strings_are_truncated(self):
        formatted = format_value("x" * 150)
        assert formatted == "x" * 100 + "..."

    def test_labels(self):
        assert format_field_name("status_id") == "Estado"
        assert format_field_name("custom") == "custom"
        assert table_label("cases") == "Casos"
        assert table_label("other") == "other"
        assert action_label("INSERT") == "Creado"
        assert action_label("noop") == "noop"

    def test_normalize_action(self):
        assert normalize_action("Insert") == "created"
        assert normalize_action("update") == "updated"
        assert normalize_action("deleted") == "deleted"
        assert normalize_action(None) is None


class TestHistoryFields:
    def test_skips_bookkeeping_fields(self):
        before = {"id": "1", "title": "a", "created_by": "u1", "updated_at": "t1"}
        after = {"id": "1", "title": "b", "created_by": "u2", "updated_at": "t2"}
        fields = history_fields(before, after)
        assert fields == [
            {"field": "title", "label": "Título", "old_value": "a", "new_value": "b"}
        ]

    def test_empty_without_both_snapshots(self):
        assert history_fields(None, {"title": "a"}) == []

    def test_changed_fields_ignores_equal_nested_values(self):
        assert changed_fields({"meta": {"a": 1, "b": 2}}, {"meta": {"b": 2, "a": 1}}) == []

    def test_history_reports_boolean_type_change(self):
        fields = history_fields({"title": "a", "is_final": 0}, {"title": "a", "is_final": False})
        assert [field["field"] for field in fields] == ["is_final"]
        assert fields[0]["new_value"] == "No"
