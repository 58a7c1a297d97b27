"""JWT bearer authentication and the user dependencies routes share."""

from __future__ import annotations

import uuid

from fastapi_users import FastAPIUsers
from fastapi_users.authentication import (
    AuthenticationBackend,
    BearerTransport,
    JWTStrategy,
)

from config import settings
from database.models import User
from security.dependencies import get_user_manager

TOKEN_AUDIENCE = ["speedissuesflow:auth"]
LOGIN_URL = "/api/v1/auth/login"


def get_jwt_strategy() -> JWTStrategy[User, uuid.UUID]:
    return JWTStrategy(
        secret=settings.auth_jwt_secret,
        lifetime_seconds=settings.auth_access_token_lifetime,
        token_audience=TOKEN_AUDIENCE,
    )


auth_backend = AuthenticationBackend[User, uuid.UUID](
    name="jwt",
    transport=BearerTransport(tokenUrl=LOGIN_URL),
    get_strategy=get_jwt_strategy,
)

fastapi_users = FastAPIUsers[User, uuid.UUID](get_user_manager, [auth_backend])

# Deactivated and soft-deleted accounts are rejected by both dependencies.
current_active_user = fastapi_users.current_user(active=True)
current_optional_user = fastapi_users.current_user(active=True, optional=True)
