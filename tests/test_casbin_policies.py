"""
Tests for Casbin policy drift detection and capability checks
"""

from types import SimpleNamespace
import uuid

import pytest
from fastapi import HTTPException

from security.casbin_enforcer import (
    build_enforcer,
    find_policy_drift,
    require_capability,
    sync_policies,
    user_has_capability,
)
from security.constants import DEFAULT_POLICIES, POLICY_ACTION, POLICY_DOMAIN
from security.permissions import Capability


def _user(role):
    return SimpleNamespace(id=uuid.uuid4(), role=role)


class TestPolicyDrift:
    def test_seeded_enforcer_has_no_drift(self, enforcer):
        assert find_policy_drift(enforcer) == {"missing": [], "unexpected": []}

    def test_empty_enforcer_misses_every_policy(self):
        drift = find_policy_drift(build_enforcer())
        assert drift["missing"] == list(DEFAULT_POLICIES)
        assert drift["unexpected"] == []

    def test_sync_repairs_both_directions(self, enforcer):
        enforcer.add_policy("Consulta", POLICY_DOMAIN, "canDeleteCase", POLICY_ACTION)
        enforcer.remove_policy("Postventa", POLICY_DOMAIN, "canEditCase", POLICY_ACTION)

        drift = find_policy_drift(enforcer)
        assert drift["unexpected"] == [("Consulta", POLICY_DOMAIN, "canDeleteCase", POLICY_ACTION)]
        assert drift["missing"] == [("Postventa", POLICY_DOMAIN, "canEditCase", POLICY_ACTION)]

        assert sync_policies(enforcer) is True
        assert find_policy_drift(enforcer) == {"missing": [], "unexpected": []}
        assert sync_policies(enforcer) is False


class TestCapabilityCheck:
    def test_table_and_enforcer_agree(self, enforcer):
        assert user_has_capability(_user("Postventa"), Capability.EDIT_CASE, enforcer) is True
        assert user_has_capability(_user("Consulta"), Capability.EDIT_CASE, enforcer) is False

    def test_enforcer_alone_cannot_grant(self, enforcer):
        enforcer.add_policy("Consulta", POLICY_DOMAIN, "canDeleteCase", POLICY_ACTION)
        assert user_has_capability(_user("Consulta"), Capability.DELETE_CASE, enforcer) is False

    def test_table_alone_cannot_grant(self, enforcer):
        enforcer.remove_policy("Postventa", POLICY_DOMAIN, "canEditCase", POLICY_ACTION)
        assert user_has_capability(_user("Postventa"), Capability.EDIT_CASE, enforcer) is False

    def test_english_role_alias(self, enforcer):
        assert user_has_capability(_user("administrator"), Capability.MANAGE_USERS, enforcer) is True

    @pytest.mark.asyncio
    async def test_dependency_rejects_with_403(self):
        dependency = require_capability(Capability.MANAGE_CONFIG)
        with pytest.raises(HTTPException) as exc_info:
            await dependency(user=_user("Postventa"))
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_dependency_returns_user(self):
        user = _user("Administrador")
        dependency = require_capability("canManageConfig")
        assert await dependency(user=user) is user
