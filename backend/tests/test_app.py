"""
Blogging API — Application Shell Tests
========================================

What:  Tests for the pieces around the routes: middleware, health, lifespan.
How:   HTTPX AsyncClient for middleware/health; the lifespan context is
       entered directly because ASGITransport does not run it.

What we test:
    ✅ X-Request-ID generated or echoed back
    ✅ Security headers on every response
    ✅ Rate limiting: 429 with Retry-After, health exempt
    ✅ Health: OK with a reachable database, DEGRADED/503 without
    ✅ Lifespan: injected store is used and kept; startup aborts on an
       unreachable store outside ENVIRONMENT=test
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.config import settings
from app.main import create_app


def _broken_database():
    database = MagicMock()
    database.ping = AsyncMock(side_effect=ConnectionRefusedError("no route to host"))
    database.create_all = AsyncMock()
    database.dispose = AsyncMock()
    return database


class TestRequestId:

    @pytest.mark.asyncio
    async def test_generated_when_absent(self, test_client):
        response = await test_client.get("/api/posts")

        rid = response.headers["X-Request-ID"]
        assert len(rid) == 8

    @pytest.mark.asyncio
    async def test_client_value_echoed(self, test_client):
        response = await test_client.get("/api/posts", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"


class TestSecurityHeaders:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/api/posts", "/health", "/api/nada"])
    async def test_headers_present(self, test_client, path):
        response = await test_client.get(path)

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_rejects_after_limit(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_requests", 2)

        statuses = [(await test_client.get("/api/posts")).status_code for _ in range(3)]
        blocked = await test_client.get("/api/posts")

        assert statuses == [200, 200, 429]
        assert blocked.status_code == 429
        assert int(blocked.headers["Retry-After"]) >= 1
        body = blocked.json()
        assert body["success"] is False
        assert "Muitas" in body["message"]

    @pytest.mark.asyncio
    async def test_health_is_exempt(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_requests", 1)

        statuses = [(await test_client.get("/health")).status_code for _ in range(3)]

        assert statuses == [200, 200, 200]


class TestHealth:

    @pytest.mark.asyncio
    async def test_ok(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OK"
        assert body["database"] == "connected"
        assert body["message"] == "API de Blogging funcionando corretamente"

    @pytest.mark.asyncio
    async def test_degraded_when_database_unreachable(self):
        app = create_app(database=_broken_database())

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/health")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "DEGRADED"
        assert body["database"] == "disconnected"


class TestLifespan:

    @pytest.mark.asyncio
    async def test_injected_database_used_and_not_disposed(self, database):
        app = create_app(database=database)

        async with app.router.lifespan_context(app):
            assert app.state.database is database

        # Still usable: the lifespan only disposes handles it created
        await database.ping()

    @pytest.mark.asyncio
    async def test_unreachable_database_aborts_startup(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "production")
        app = create_app(database=_broken_database())

        with pytest.raises(ConnectionRefusedError):
            async with app.router.lifespan_context(app):
                pass

    @pytest.mark.asyncio
    async def test_unreachable_database_tolerated_in_test_environment(self):
        app = create_app(database=_broken_database())

        async with app.router.lifespan_context(app):
            assert app.state.database is not None
