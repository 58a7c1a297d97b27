"""
Tests for the role to capability table
"""

import pytest

from security.constants import DEFAULT_POLICIES, DEFAULT_ROLES, POLICY_DOMAIN
from security.permissions import (
    Capability,
    Role,
    UnknownCapabilityError,
    can_access_admin_panel,
    capability_matrix,
    has_permission,
    resolve_capability,
)


POSTSALES_GRANTS = {
    "canCreateCase",
    "canEditCase",
    "canCreateTest",
    "canEditTest",
    "canViewAudit",
    "canExport",
}
INQUIRY_GRANTS = {"canViewAudit", "canExport"}


class TestRoleCapabilities:
    """Full matrix of the permission table"""

    @pytest.mark.parametrize("capability", list(Capability))
    def test_administrator_holds_every_capability(self, capability):
        assert has_permission(Role.ADMINISTRATOR, capability) is True

    @pytest.mark.parametrize("capability", list(Capability))
    def test_postsales_grants(self, capability):
        assert has_permission(Role.POSTSALES, capability) is (capability.value in POSTSALES_GRANTS)

    @pytest.mark.parametrize("capability", list(Capability))
    def test_inquiry_grants(self, capability):
        assert has_permission(Role.INQUIRY, capability) is (capability.value in INQUIRY_GRANTS)

    def test_only_administrator_reaches_admin_panel(self):
        assert can_access_admin_panel("Administrador") is True
        assert can_access_admin_panel("Postventa") is False
        assert can_access_admin_panel("Consulta") is False

    def test_postsales_cannot_delete(self):
        assert has_permission("Postventa", "canDeleteCase") is False
        assert has_permission("Postventa", "canDeleteTest") is False


class TestRoleParsing:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("Administrador", Role.ADMINISTRATOR),
            ("administrator", Role.ADMINISTRATOR),
            ("Postventa", Role.POSTSALES),
            ("postsales", Role.POSTSALES),
            (" CONSULTA ", Role.INQUIRY),
            ("inquiry", Role.INQUIRY),
        ],
    )
    def test_localized_and_english_names(self, value, expected):
        assert Role.parse(value) is expected

    @pytest.mark.parametrize("value", [None, "", "Superuser", "viewer"])
    def test_unknown_role_parses_to_none(self, value):
        assert Role.parse(value) is None

    def test_english_alias_grants_same_capabilities(self):
        assert has_permission("postsales", "canEditCase") is True
        assert has_permission("inquiry", "canEditCase") is False

    def test_unknown_role_is_denied(self):
        assert has_permission("Invitado", Capability.EXPORT) is False
        assert has_permission(None, Capability.EXPORT) is False


class TestUnknownCapability:
    def test_non_strict_denies(self):
        assert has_permission("Administrador", "canLaunchRockets") is False

    def test_strict_raises(self):
        with pytest.raises(UnknownCapabilityError):
            has_permission("Administrador", "canLaunchRockets", strict=True)

    def test_resolve_rejects_unknown_names(self):
        with pytest.raises(UnknownCapabilityError):
            resolve_capability("canFly")

    def test_resolve_accepts_names_and_members(self):
        assert resolve_capability("canExport") is Capability.EXPORT
        assert resolve_capability(Capability.EXPORT) is Capability.EXPORT


class TestDerivedTables:
    def test_capability_matrix_covers_every_role(self):
        matrix = capability_matrix()
        assert set(matrix) == {"Administrador", "Postventa", "Consulta"}
        assert all(len(row) == len(Capability) for row in matrix.values())
        assert matrix["Consulta"]["canExport"] is True
        assert matrix["Consulta"]["canCreateCase"] is False

    def test_default_policies_mirror_the_table(self):
        expected = len(Capability) + len(POSTSALES_GRANTS) + len(INQUIRY_GRANTS)
        assert len(DEFAULT_POLICIES) == expected
        assert all(policy[1] == POLICY_DOMAIN for policy in DEFAULT_POLICIES)
        assert ("Consulta", POLICY_DOMAIN, "canExport", "allow") in DEFAULT_POLICIES

    def test_default_roles_list_permissions(self):
        roles = {role["name"]: role for role in DEFAULT_ROLES}
        assert set(roles["Postventa"]["permissions"]) == POSTSALES_GRANTS
