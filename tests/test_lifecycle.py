"""
Tests for finality locking and reopen rules
"""

from types import SimpleNamespace

import pytest

from services.lifecycle import (
    EntityLockedError,
    IntegrityGapError,
    ReopenNotAllowedError,
    ensure_mutable,
    ensure_status_change_allowed,
    first_status,
    is_locked,
)


def _status(name, is_final, order=1):
    return SimpleNamespace(id=name, name=name, is_final=is_final, display_order=order)


def _entity(status, status_id=None):
    return SimpleNamespace(
        id="case-1",
        status=status,
        status_id=status_id or getattr(status, "id", None),
    )


OPEN = _status("Abierto", False, 1)
IN_PROGRESS = _status("En Progreso", False, 2)
CLOSED = _status("Cerrado", True, 3)
ADMIN = SimpleNamespace(id="u1", role="Administrador")
POSTSALES = SimpleNamespace(id="u2", role="Postventa")


class TestIsLocked:
    def test_open_status_is_unlocked(self):
        assert is_locked(_entity(OPEN)) is False

    def test_final_status_is_locked(self):
        assert is_locked(_entity(CLOSED)) is True

    def test_missing_status_is_locked(self):
        assert is_locked(_entity(None)) is True

    def test_dangling_status_reference_is_locked(self):
        assert is_locked(_entity(None, status_id="gone")) is True


class TestEnsureMutable:
    def test_allows_open_entities(self):
        ensure_mutable(_entity(IN_PROGRESS))

    def test_rejects_final_entities(self):
        with pytest.raises(EntityLockedError):
            ensure_mutable(_entity(CLOSED))


class TestStatusChange:
    def test_open_entity_moves_freely(self):
        ensure_status_change_allowed(_entity(OPEN), CLOSED, POSTSALES)
        ensure_status_change_allowed(_entity(OPEN), IN_PROGRESS, POSTSALES)

    def test_missing_target_is_integrity_gap(self):
        with pytest.raises(IntegrityGapError):
            ensure_status_change_allowed(_entity(OPEN), None, ADMIN)

    def test_reopen_requires_final_status_capability(self):
        with pytest.raises(ReopenNotAllowedError):
            ensure_status_change_allowed(_entity(CLOSED), OPEN, POSTSALES)

    def test_administrator_can_reopen(self):
        ensure_status_change_allowed(_entity(CLOSED), OPEN, ADMIN)


class TestFirstStatus:
    def test_lowest_order_per_finality(self):
        statuses = [IN_PROGRESS, CLOSED, OPEN]
        assert first_status(statuses, final=False) is OPEN
        assert first_status(statuses, final=True) is CLOSED

    def test_none_when_no_candidate(self):
        assert first_status([OPEN, IN_PROGRESS], final=True) is None
