"""
Shared test fixtures for Cutroom Backend tests.

Provides:
- Settings with an admin email and a temporary storage root
- Memory and SQL (SQLite file per test) data stores
- Access layer over either store (parametrized where requested)
- Session contexts for a client, a second client, two editors and an admin
- Test project factory
- Async HTTP client over the FastAPI app
- Mock Redis for rate limiter tests
"""

import os
import re
import tempfile
from datetime import datetime, timedelta
from typing import AsyncGenerator, Generator
from unittest.mock import MagicMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app modules
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-purposes-only-32chars"
os.environ["DATA_STORE"] = "memory"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_URL"] = "redis://localhost:6379/0"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CREATE_SCHEMA_ON_STARTUP"] = "false"

# Create a temporary directory for test storage
_test_storage_dir = tempfile.mkdtemp(prefix="cutroom_test_")
os.environ["STORAGE_PATH"] = _test_storage_dir

from cutroom.api.deps import get_access_layer
from cutroom.core.config import Settings, get_settings
from cutroom.core.database import build_engine, build_session_factory, create_all_tables
from cutroom.core.security import pwd_context
from cutroom.core.storage import LocalObjectStorage
from cutroom.main import app
from cutroom.schemas.project import ProjectCreate, ProjectView
from cutroom.services import AccessLayer, SessionContext
from cutroom.store import MemoryDataStore, SqlDataStore

# Cheap hashes keep sign-up heavy tests fast
pwd_context.update(bcrypt__rounds=4)

ADMIN_EMAIL = "admin@example.com"
PASSWORD = "SecurePassword123!"


# =============================================================================
# Settings & Stores
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Application settings with a configured admin email."""
    return get_settings().model_copy(update={"admin_emails": ADMIN_EMAIL})


@pytest.fixture
def memory_store() -> MemoryDataStore:
    return MemoryDataStore()


@pytest_asyncio.fixture(scope="function")
async def sql_store(tmp_path) -> AsyncGenerator[SqlDataStore, None]:
    """
    SQL store on a fresh SQLite file.

    A file (rather than :memory:) gives every session its own connection,
    so concurrent transactions behave as they would against a server.
    """
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'cutroom.db'}")
    await create_all_tables(engine)
    store = SqlDataStore(
        session_factory=build_session_factory(engine),
        storage=LocalObjectStorage(tmp_path / "objects"),
        engine=engine,
    )
    yield store
    await store.close()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def access(request, settings: Settings, tmp_path) -> AsyncGenerator[AccessLayer, None]:
    """Access layer over each data store implementation."""
    if request.param == "memory":
        store = MemoryDataStore()
        layer = AccessLayer(store, settings)
        yield layer
        return

    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'cutroom.db'}")
    await create_all_tables(engine)
    store = SqlDataStore(
        session_factory=build_session_factory(engine),
        storage=LocalObjectStorage(tmp_path / "objects"),
        engine=engine,
    )
    layer = AccessLayer(store, settings)
    yield layer
    await layer.close()


@pytest.fixture
def memory_access(settings: Settings) -> AccessLayer:
    """Access layer over the memory store only."""
    return AccessLayer(MemoryDataStore(), settings)


# =============================================================================
# User Fixtures
# =============================================================================


async def sign_up_user(
    access: AccessLayer,
    email: str,
    full_name: str,
    role: str = "client",
) -> SessionContext:
    """Register a user and resolve their session context."""
    result = await access.auth.sign_up(email, PASSWORD, full_name, role)
    return await access.auth.resolve_session(result.access_token)


@pytest_asyncio.fixture
async def users(access: AccessLayer) -> dict:
    """Session contexts keyed by role name."""
    return {
        "client": await sign_up_user(access, "client@example.com", "Alice Client", "client"),
        "client2": await sign_up_user(access, "client2@example.com", "Dave Client", "client"),
        "editor": await sign_up_user(access, "editor@example.com", "Bob Editor", "editor"),
        "editor2": await sign_up_user(access, "editor2@example.com", "Eve Editor", "editor"),
        # Provisioned as admin through ADMIN_EMAILS
        "admin": await sign_up_user(access, ADMIN_EMAIL, "Ken Admin", "client"),
    }


def project_data(**overrides) -> ProjectCreate:
    """Valid project creation payload."""
    data = {
        "title": "Summer Collection Launch",
        "description": "Energetic video showcasing our new summer line.",
        "editing_style": "Cinematic",
        "platforms": ["Instagram", "TikTok"],
        "aspect_ratio": "9:16",
        "desired_duration_seconds": 30,
        "priority": "high",
        "due_date": datetime.utcnow() + timedelta(days=3),
        "reference_links": ["https://youtube.com/example"],
    }
    data.update(overrides)
    return ProjectCreate(**data)


@pytest_asyncio.fixture
async def project(access: AccessLayer, users: dict) -> ProjectView:
    """A new, unassigned project owned by ``users['client']``."""
    return await access.projects.create(users["client"], project_data())


# =============================================================================
# Mock Redis
# =============================================================================


@pytest.fixture
def mock_redis() -> Generator[MagicMock, None, None]:
    """Mock Redis connection for rate limiter tests."""
    mock = MagicMock()
    mock.get.return_value = None
    mock.ttl.return_value = 42
    mock.pipeline.return_value = MagicMock(
        incr=MagicMock(return_value=mock),
        expire=MagicMock(return_value=mock),
        execute=MagicMock(return_value=[1, True]),
    )

    with patch("cutroom.core.rate_limit.get_redis_connection", return_value=mock):
        yield mock


# =============================================================================
# Test Client Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def async_client(memory_access: AccessLayer) -> AsyncGenerator[AsyncClient, None]:
    """
    Provide an async HTTP client for testing the FastAPI application.

    The lifespan hook does not run under ASGITransport; the access layer
    is installed on the app directly and through the dependency override.
    """
    app.state.access = memory_access
    app.dependency_overrides[get_access_layer] = lambda: memory_access

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    # Clean up
    app.dependency_overrides.clear()


async def register(client: AsyncClient, email: str, full_name: str, role: str = "client") -> dict:
    """Sign up through the API and return auth headers plus the profile."""
    response = await client.post(
        "/api/auth/sign-up",
        json={"email": email, "password": PASSWORD, "full_name": full_name, "role": role},
    )
    assert response.status_code == 201, response.text
    data = response.json()
    return {
        "headers": {"Authorization": f"Bearer {data['access_token']}"},
        "user": data["user"],
    }


@pytest_asyncio.fixture
async def api_users(async_client: AsyncClient) -> dict:
    """Registered API users keyed by role name."""
    return {
        "client": await register(async_client, "client@example.com", "Alice Client", "client"),
        "client2": await register(async_client, "client2@example.com", "Dave Client", "client"),
        "editor": await register(async_client, "editor@example.com", "Bob Editor", "editor"),
        "admin": await register(async_client, ADMIN_EMAIL, "Ken Admin", "client"),
    }


def project_payload(**overrides) -> dict:
    """JSON body for project creation."""
    payload = {
        "title": "Testimonial Compilation",
        "description": "Customer interviews stitched together with soft background music.",
        "editing_style": "Corporate",
        "platforms": ["LinkedIn", "YouTube"],
        "aspect_ratio": "16:9",
        "desired_duration_seconds": 120,
        "priority": "normal",
        "due_date": (datetime.utcnow() + timedelta(days=10)).isoformat(),
        "reference_links": [],
    }
    payload.update(overrides)
    return payload


def emailed_token(log_text: str) -> str:
    """Token from the most recent emailed link captured in the log."""
    return re.findall(r"\?token=([\w.-]+)", log_text)[-1]
