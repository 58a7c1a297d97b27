"""Security package: authentication, permission table and enforcement."""

from .auth import (
    auth_backend,
    current_active_user,
    current_optional_user,
    fastapi_users,
)
from .casbin_enforcer import get_enforcer, reload_policies, require_capability
from .permissions import Capability, Role, can_access_admin_panel, has_permission

__all__ = [
    "auth_backend",
    "fastapi_users",
    "current_active_user",
    "current_optional_user",
    "get_enforcer",
    "reload_policies",
    "require_capability",
    "Capability",
    "Role",
    "can_access_admin_panel",
    "has_permission",
]
