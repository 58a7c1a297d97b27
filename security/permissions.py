"""Role to capability table, the single source of truth for authorization."""

from __future__ import annotations

from enum import Enum
from typing import Mapping, Optional, Union

from loguru import logger


class Role(str, Enum):
    """User roles, stored with their localized labels."""

    ADMINISTRATOR = "Administrador"
    POSTSALES = "Postventa"
    INQUIRY = "Consulta"

    @classmethod
    def parse(cls, value: Union["Role", str, None]) -> Optional["Role"]:
        """Resolve a localized label or an English name, ``None`` when unknown."""
        if isinstance(value, Role):
            return value
        if not value:
            return None
        key = str(value).strip().lower()
        return _ROLE_ALIASES.get(key)


_ROLE_ALIASES: dict[str, Role] = {
    "administrador": Role.ADMINISTRATOR,
    "administrator": Role.ADMINISTRATOR,
    "postventa": Role.POSTSALES,
    "postsales": Role.POSTSALES,
    "consulta": Role.INQUIRY,
    "inquiry": Role.INQUIRY,
}


class Capability(str, Enum):
    """Closed set of named permissions."""

    CREATE_CASE = "canCreateCase"
    EDIT_CASE = "canEditCase"
    DELETE_CASE = "canDeleteCase"
    CREATE_TEST = "canCreateTest"
    EDIT_TEST = "canEditTest"
    DELETE_TEST = "canDeleteTest"
    MANAGE_USERS = "canManageUsers"
    MANAGE_CONFIG = "canManageConfig"
    VIEW_AUDIT = "canViewAudit"
    EXPORT = "canExport"
    EDIT_FINAL_STATUS = "canEditFinalStatus"
    ACCESS_ADMIN_PANEL = "canAccessAdminPanel"


class UnknownCapabilityError(ValueError):
    """Raised for capability names outside the closed set."""


ROLE_CAPABILITIES: Mapping[Role, frozenset[Capability]] = {
    Role.ADMINISTRATOR: frozenset(Capability),
    Role.POSTSALES: frozenset(
        {
            Capability.CREATE_CASE,
            Capability.EDIT_CASE,
            Capability.CREATE_TEST,
            Capability.EDIT_TEST,
            Capability.VIEW_AUDIT,
            Capability.EXPORT,
        }
    ),
    Role.INQUIRY: frozenset(
        {
            Capability.VIEW_AUDIT,
            Capability.EXPORT,
        }
    ),
}


def resolve_capability(capability: Union[Capability, str]) -> Capability:
    """Map a capability name to the enum, raising for unknown names."""
    if isinstance(capability, Capability):
        return capability
    try:
        return Capability(capability)
    except ValueError as exc:
        raise UnknownCapabilityError(f"Unknown capability: {capability!r}") from exc


def has_permission(
    role: Union[Role, str, None],
    capability: Union[Capability, str],
    *,
    strict: bool = False,
) -> bool:
    """Return whether ``role`` holds ``capability``.

    Unknown roles are denied. Unknown capability names raise
    ``UnknownCapabilityError`` when ``strict`` is set and are denied otherwise.
    """
    try:
        resolved = resolve_capability(capability)
    except UnknownCapabilityError:
        if strict:
            raise
        logger.warning(f"Unknown capability '{capability}' requested, denying")
        return False

    parsed_role = Role.parse(role)
    if parsed_role is None:
        logger.warning(f"Unknown role '{role}' requested '{resolved.value}', denying")
        return False

    return resolved in ROLE_CAPABILITIES[parsed_role]


def can_access_admin_panel(role: Union[Role, str, None]) -> bool:
    return has_permission(role, Capability.ACCESS_ADMIN_PANEL)


def capability_matrix() -> dict[str, dict[str, bool]]:
    """Full role x capability table keyed by label and capability name."""
    return {
        role.value: {
            capability.value: capability in ROLE_CAPABILITIES[role]
            for capability in Capability
        }
        for role in Role
    }


__all__ = [
    "Role",
    "Capability",
    "UnknownCapabilityError",
    "ROLE_CAPABILITIES",
    "resolve_capability",
    "has_permission",
    "can_access_admin_panel",
    "capability_matrix",
]
