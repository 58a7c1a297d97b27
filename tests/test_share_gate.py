"""
Tests for share link resolution and management
"""

import datetime as dt
from types import SimpleNamespace

import pytest

from database.models import SharePermission, SolutionResource
from services.audit_diff import describe_change
from services.audit_logger import list_record_history
from services.share_service import (
    ShareOutcome,
    ShareService,
    evaluate_share,
    generate_share_token,
    share_url,
)

NOW = dt.datetime(2026, 5, 1, 12, 0, tzinfo=dt.timezone.utc)


def _resource(**overrides):
    values = {
        "share_enabled": True,
        "share_permission": SharePermission.PUBLIC.value,
        "share_expires_at": None,
        "deleted_at": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


# ============================================================================
# Pure gate
# ============================================================================

class TestEvaluateShare:
    def test_public_link_is_granted(self):
        assert evaluate_share(_resource(), caller_is_authenticated=False, now=NOW) is ShareOutcome.GRANTED

    def test_unknown_token_is_not_found(self):
        assert evaluate_share(None, caller_is_authenticated=True, now=NOW) is ShareOutcome.NOT_FOUND

    def test_disabled_link_looks_like_unknown_token(self):
        outcome = evaluate_share(_resource(share_enabled=False), caller_is_authenticated=True, now=NOW)
        assert outcome is ShareOutcome.NOT_FOUND

    def test_deleted_resource_is_not_found(self):
        outcome = evaluate_share(_resource(deleted_at=NOW), caller_is_authenticated=True, now=NOW)
        assert outcome is ShareOutcome.NOT_FOUND

    def test_past_expiry_is_expired(self):
        resource = _resource(share_expires_at=NOW - dt.timedelta(seconds=1))
        assert evaluate_share(resource, caller_is_authenticated=True, now=NOW) is ShareOutcome.EXPIRED

    def test_expiry_equal_to_now_still_resolves(self):
        resource = _resource(share_expires_at=NOW)
        assert evaluate_share(resource, caller_is_authenticated=False, now=NOW) is ShareOutcome.GRANTED

    def test_naive_expiry_is_treated_as_utc(self):
        resource = _resource(share_expires_at=(NOW - dt.timedelta(hours=1)).replace(tzinfo=None))
        assert evaluate_share(resource, caller_is_authenticated=False, now=NOW) is ShareOutcome.EXPIRED

    def test_expired_wins_over_authentication(self):
        resource = _resource(
            share_permission=SharePermission.AUTHENTICATED.value,
            share_expires_at=NOW - dt.timedelta(days=1),
        )
        assert evaluate_share(resource, caller_is_authenticated=False, now=NOW) is ShareOutcome.EXPIRED

    def test_authenticated_link_rejects_anonymous(self):
        resource = _resource(share_permission=SharePermission.AUTHENTICATED.value)
        assert evaluate_share(resource, caller_is_authenticated=False, now=NOW) is ShareOutcome.AUTH_REQUIRED
        assert evaluate_share(resource, caller_is_authenticated=True, now=NOW) is ShareOutcome.GRANTED


def test_tokens_are_unique_and_url_safe():
    tokens = {generate_share_token() for _ in range(50)}
    assert len(tokens) == 50
    assert all("/" not in token and "+" not in token for token in tokens)


def test_share_url():
    assert share_url(None) is None
    assert share_url("abc").endswith("/share/abc")


# ============================================================================
# Service
# ============================================================================

@pytest.fixture
async def resource(session, postsales_user):
    resource = SolutionResource(
        title="Manual de firmware",
        type="document",
        url="http://example.com/manual.pdf",
        folder="General",
        created_by=postsales_user.id,
    )
    session.add(resource)
    await session.flush()
    return resource


@pytest.mark.asyncio
async def test_enable_mints_token_once(session, resource):
    service = ShareService(session)

    await service.enable(resource)
    first_token = resource.share_token
    assert resource.share_enabled is True
    assert first_token

    await service.disable(resource)
    await service.enable(resource)
    assert resource.share_token == first_token


@pytest.mark.asyncio
async def test_resolve_public_link(session, resource):
    service = ShareService(session)
    await service.enable(resource)

    decision = await service.resolve_share_access(resource.share_token, caller_is_authenticated=False)
    assert decision.granted
    assert decision.resource.id == resource.id


@pytest.mark.asyncio
async def test_rotate_invalidates_previous_token(session, resource):
    service = ShareService(session)
    await service.enable(resource)
    old_token = resource.share_token

    await service.rotate(resource)
    assert resource.share_token != old_token
    assert resource.share_enabled is True

    old = await service.resolve_share_access(old_token, caller_is_authenticated=True)
    new = await service.resolve_share_access(resource.share_token, caller_is_authenticated=True)
    assert old.outcome is ShareOutcome.NOT_FOUND
    assert new.granted


@pytest.mark.asyncio
async def test_update_settings_expiry_and_permission(session, resource):
    service = ShareService(session)
    await service.enable(resource)

    await service.update_settings(
        resource,
        permission=SharePermission.AUTHENTICATED.value,
        expires_in_days=7,
        now=NOW,
    )
    assert resource.share_permission == "authenticated"
    expires_at = resource.share_expires_at.replace(tzinfo=dt.timezone.utc)
    assert expires_at == NOW + dt.timedelta(days=7)

    anonymous = await service.resolve_share_access(
        resource.share_token, caller_is_authenticated=False, now=NOW
    )
    assert anonymous.outcome is ShareOutcome.AUTH_REQUIRED

    late = await service.resolve_share_access(
        resource.share_token, caller_is_authenticated=True, now=NOW + dt.timedelta(days=8)
    )
    assert late.outcome is ShareOutcome.EXPIRED

    await service.update_settings(resource, clear_expiration=True)
    assert resource.share_expires_at is None


@pytest.mark.asyncio
async def test_empty_token_is_not_found(session):
    decision = await ShareService(session).resolve_share_access("", caller_is_authenticated=True)
    assert decision.outcome is ShareOutcome.NOT_FOUND
    assert decision.resource is None


@pytest.mark.asyncio
async def test_share_changes_are_audited_without_token(session, resource, postsales_user):
    service = ShareService(session)
    await service.enable(resource, actor_id=postsales_user.id)
    await service.rotate(resource, actor_id=postsales_user.id)
    await service.disable(resource, actor_id=postsales_user.id)

    history = await list_record_history(session, "solution_resources", resource.id)
    assert len(history) == 3
    assert all(entry.action == "updated" for entry in history)
    assert all(entry.changed_by == postsales_user.id for entry in history)
    for entry in history:
        assert "share_token" not in entry.old_record
        assert "share_token" not in entry.new_record

    descriptions = {describe_change(e.action, e.old_record, e.new_record) for e in history}
    assert "Cambios: share_enabled: Sí" in descriptions
    assert "Cambios: share_token_rotated: Sí" in descriptions
    assert "Cambios: share_enabled: No" in descriptions
