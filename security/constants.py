"""Security constants derived from the permission table."""

from security.permissions import ROLE_CAPABILITIES, Role

POLICY_DOMAIN = "global"
POLICY_ACTION = "allow"

DEFAULT_ROLE = Role.INQUIRY.value

ROLE_DESCRIPTIONS = {
    Role.ADMINISTRATOR: "Administrador del sistema, acceso completo incluido el panel de administración",
    Role.POSTSALES: "Equipo de postventa, crea y edita casos y pruebas sin poder eliminarlos",
    Role.INQUIRY: "Usuario de consulta, solo lectura, auditoría y exportación",
}

DEFAULT_ROLES = [
    {
        "name": role.value,
        "description": ROLE_DESCRIPTIONS[role],
        "permissions": sorted(capability.value for capability in ROLE_CAPABILITIES[role]),
    }
    for role in Role
]

DEFAULT_POLICIES = sorted(
    (role.value, POLICY_DOMAIN, capability.value, POLICY_ACTION)
    for role, capabilities in ROLE_CAPABILITIES.items()
    for capability in capabilities
)
