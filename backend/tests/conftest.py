"""
Pytest configuration for test suite.

Points the application at an in-memory SQLite database before any
``cryptofolio`` import and provides database and HTTP client fixtures.
"""
import os
import sys
from pathlib import Path

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("PRICE_USE_MOCK_DATA", "false")

# Add the backend directory to sys.path for imports
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cryptofolio.database import Base, get_db
from cryptofolio.main import app
from cryptofolio.services.price_service import price_cache
import cryptofolio.models  # noqa: F401


def pytest_configure(config):
    """Register custom markers dynamically."""
    config.addinivalue_line(
        "markers", "integration: tests driving the HTTP API against a database"
    )
    config.addinivalue_line(
        "markers", "unit: unit tests with mocked dependencies"
    )


@pytest.fixture(autouse=True)
def reset_price_cache():
    """Every test starts with an empty process-wide price cache."""
    price_cache.clear()
    yield
    price_cache.clear()


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database with all tables created."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client for the app with ``get_db`` bound to the test database."""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def user_payload():
    return {
        "email": "alice@example.com",
        "password": "Str0ngPass!",
        "firstName": "Alice",
        "lastName": "Smith",
    }


@pytest_asyncio.fixture
async def auth_headers(client, user_payload):
    """Register and log in a user, returning its bearer header."""
    response = await client.post("/api/auth/register", json=user_payload)
    assert response.status_code == 201

    response = await client.post(
        "/api/auth/login",
        json={"email": user_payload["email"], "password": user_payload["password"]},
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
