"""
Тесты приложения: проверка здоровья, заголовки, жизненный цикл
"""

import httpx
from httpx import AsyncClient

from hassh.clients.home_assistant import HomeAssistantClientFactory


class TestHealthCheck:
    """Проверка здоровья"""

    async def test_health_with_hub(self, client: AsyncClient):
        """Хаб из окружения доступен"""
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["home_assistant"] == "ok"

    async def test_health_hub_unavailable(self, client: AsyncClient, hub):
        """Хаб недоступен"""
        hub.fail_all = True

        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["home_assistant"] == "unavailable"

    async def test_health_without_hub(self, client: AsyncClient, app):
        """Хаб не настроен"""
        app.state.ha_factory = HomeAssistantClientFactory()

        response = await client.get("/health")

        assert response.json()["home_assistant"] == "not_configured"


class TestResponseHeaders:
    """Заголовки ответов"""

    async def test_security_headers(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "X-Process-Time" in response.headers
        assert "Cache-Control" not in response.headers

    async def test_openapi_available(self, client: AsyncClient):
        response = await client.get("/api/openapi.json")

        assert response.status_code == 200
        paths = response.json()["paths"]
        assert "/api/shares/public/{token}" in paths
        assert "/api/shares/public/{token}/trigger/{entity_id}" in paths


class TestLifespan:
    """Жизненный цикл приложения"""

    async def test_lifespan_starts_refresher(self, app):
        """Фоновое обновление запускается и останавливается вместе с приложением"""
        async with app.router.lifespan_context(app):
            assert app.state.refresher.running is True
            assert app.state.redis is None

            transport = httpx.ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                response = await ac.get("/api/auth/admin-exists")
                assert response.status_code == 200

        assert app.state.refresher.running is False
