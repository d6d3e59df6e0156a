"""
Blogging API — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped, fresh for each test):
    ├── database:          in-memory SQLite Database handle with tables created
    ├── db_session:        AsyncSession on that database (repository tests)
    ├── test_client:       HTTPX AsyncClient talking to an app bound to `database`
    ├── mock_db_session:   AsyncMock session for pure unit tests
    └── sample_post_payload / create_post: test data helpers
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "1000"

from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from app.database import Database


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    """
    In-memory SQLite database shared by every session of one test.

    StaticPool keeps a single connection alive; otherwise each new
    connection would see a new, empty in-memory database.
    """
    db = Database(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A mock async database session, for tests that must not touch a database.

    Usage:
        mock_db_session.execute.side_effect = SQLAlchemyError("boom")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# HTTP Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(database):
    """
    HTTPX AsyncClient routed straight into a fresh app instance.

    ASGITransport does not run the lifespan; the app uses the injected
    `database` fixture instead.
    """
    from app.main import create_app

    app = create_app(database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ══════════════════════════════════════════════════════════════════════════
# Test Data
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sample_post_payload() -> Dict[str, Any]:
    return {
        "title": "Introdução à Geometria",
        "content": "A geometria estuda formas, tamanhos e posições relativas de figuras.",
        "author": "Prof. Carlos Mendes",
        "tags": ["Matemática", " geometria "],
    }


@pytest.fixture
def create_post(test_client):
    """Factory: creates a post through the API and returns its `data` object."""

    async def _create(**overrides: Any) -> Dict[str, Any]:
        payload = {
            "title": "Post de Teste",
            "content": "Conteúdo de teste com mais de dez caracteres.",
            "author": "Prof. Teste",
        }
        payload.update(overrides)
        response = await test_client.post("/api/posts", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
