"""Integration test fixtures — app on a temporary SQLite file, async client, admin and member auth."""

import os

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

# Force test config BEFORE any app imports
os.environ["DEBUG"] = "true"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-integration-tests"
os.environ["ADMIN_ROLE_THRESHOLD"] = "6"
os.environ["LOG_DIR"] = ""

import apphub.database as db_mod
import apphub.dependencies as dep_mod

USERS = {
    "admin": ("admin-pass", 6),
    "maria": ("maria-pass", 1),
    "joao": ("joao-pass", 2),
}


def _reset_singletons():
    """Reset all module-level singletons so each test session starts clean."""
    db_mod._engine = None
    db_mod._session_factory = None
    dep_mod._config_instance = None
    dep_mod._record_store = None
    dep_mod._session_registry = None


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def test_app(tmp_path_factory):
    """Create test app on a database file so background writes get their own connections."""
    _reset_singletons()

    db_path = tmp_path_factory.mktemp("db") / "apphub.db"
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        echo=False,
        connect_args={"timeout": 30},
    )

    # Inject into database module BEFORE app import
    db_mod._engine = engine
    factory = async_sessionmaker(engine, expire_on_commit=False)
    db_mod._session_factory = factory

    dep_mod.get_app_config()

    from apphub.main import app
    from apphub.models.base import Base
    from apphub.models.user import User
    from apphub.utils.security import hash_password

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with factory() as session:
        for username, (password, role) in USERS.items():
            session.add(User(username=username, password_hash=hash_password(password), role=role))
        await session.commit()

    yield app

    await dep_mod.get_session_registry().shutdown()
    await engine.dispose()
    _reset_singletons()


@pytest_asyncio.fixture(loop_scope="session")
async def client(test_app):
    """Async HTTP client for testing."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _login(client, username):
    password, _ = USERS[username]
    resp = await client.post("/api/v1/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, f"Login failed: {resp.text}"
    # Drop the session cookie so each request authenticates by header only
    client.cookies.clear()
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest_asyncio.fixture(loop_scope="session")
async def admin_headers(client):
    return await _login(client, "admin")


@pytest_asyncio.fixture(loop_scope="session")
async def maria_headers(client):
    return await _login(client, "maria")


@pytest_asyncio.fixture(loop_scope="session")
async def joao_headers(client):
    return await _login(client, "joao")
