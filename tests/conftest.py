"""
Pytest configuration and fixtures for SpeedIssuesFlow tests
"""
import sys
from pathlib import Path

import pytest

# Ensure the project root is importable when pytest runs from elsewhere.
ROOT_DIR = Path(__file__).parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import httpx
from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from database import Base, get_async_session
from database.models import Status, User
from security import casbin_enforcer
from security.auth import current_active_user, current_optional_user
from security.constants import DEFAULT_POLICIES
from security.permissions import Role
from services.catalog_service import ensure_default_statuses
from services.storage import MediaStorage, get_storage


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
async def engine():
    """In-memory SQLite engine shared by every session of one test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


async def _make_user(session: AsyncSession, email: str, role: Role, full_name: str) -> User:
    user = User(
        email=email,
        hashed_password="not-a-real-hash",
        full_name=full_name,
        role=role.value,
        is_active=True,
        is_verified=True,
    )
    session.add(user)
    await session.flush()
    return user


@pytest.fixture
async def admin_user(session) -> User:
    return await _make_user(session, "admin@internal.sfl", Role.ADMINISTRATOR, "Ana Admin")


@pytest.fixture
async def postsales_user(session) -> User:
    return await _make_user(session, "postventa@internal.sfl", Role.POSTSALES, "Pedro Postventa")


@pytest.fixture
async def inquiry_user(session) -> User:
    return await _make_user(session, "consulta@internal.sfl", Role.INQUIRY, "Carla Consulta")


@pytest.fixture
async def statuses(session) -> dict[str, Status]:
    """Default workflow: Abierto, En Progreso, Cerrado (final)"""
    await ensure_default_statuses(session)
    await session.flush()
    result = await session.execute(select(Status))
    return {status.name: status for status in result.scalars().all()}


# ============================================================================
# Security and storage
# ============================================================================

@pytest.fixture(autouse=True)
def enforcer():
    """Adapter-less Casbin enforcer seeded from the permission table"""
    enforcer = casbin_enforcer.build_enforcer()
    for policy in DEFAULT_POLICIES:
        enforcer.add_policy(*policy)
    casbin_enforcer._enforcer = enforcer
    yield enforcer
    casbin_enforcer._enforcer = None


@pytest.fixture
def storage(tmp_path) -> MediaStorage:
    return MediaStorage(base_dir=tmp_path / "media", base_url="http://testserver/media")


# ============================================================================
# API
# ============================================================================

class AuthState:
    """Mutable holder for the user the API fixtures authenticate as"""

    def __init__(self) -> None:
        self.user = None


@pytest.fixture
def auth_state() -> AuthState:
    return AuthState()


@pytest.fixture
async def api_client(session_factory, storage, auth_state):
    """ASGI client with the database, storage and current user overridden"""
    from core.app import create_app

    app = create_app()

    async def _session_override():
        async with session_factory() as session:
            yield session

    def _current_user():
        if auth_state.user is None:
            raise HTTPException(status_code=401, detail="Unauthorized")
        return auth_state.user

    app.dependency_overrides[get_async_session] = _session_override
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[current_active_user] = _current_user
    app.dependency_overrides[current_optional_user] = lambda: auth_state.user

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


# Test configuration
def pytest_configure(config):
    """Configure pytest"""
    config.addinivalue_line(
        "markers", "api: exercises HTTP routes through the ASGI app"
    )
