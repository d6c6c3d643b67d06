"""
Конфигурация pytest для тестов
"""

import json
import uuid
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from hassh.clients.home_assistant import HomeAssistantClientFactory
from hassh.core.config import settings
from hassh.core.database import Database
from hassh.core.security import create_access_token

HUB_URL = "http://hub.test"
HUB_TOKEN = "good-token"  # nosec B105
USER_PASSWORD = "password123"  # nosec B105


class FakeHub:
    """Хаб Home Assistant в памяти для httpx.MockTransport"""

    def __init__(self) -> None:
        self.states: dict[str, dict[str, Any]] = {
            "light.kitchen": {
                "entity_id": "light.kitchen",
                "state": "off",
                "attributes": {"friendly_name": "Кухня", "brightness": 0},
                "last_changed": "2026-01-01T10:00:00+00:00",
                "last_updated": "2026-01-01T10:00:00+00:00",
            },
            "switch.fan": {
                "entity_id": "switch.fan",
                "state": "on",
                "attributes": {"friendly_name": "Вентилятор"},
                "last_changed": "2026-01-01T10:00:00+00:00",
                "last_updated": "2026-01-01T10:00:00+00:00",
            },
            "sensor.temperature": {
                "entity_id": "sensor.temperature",
                "state": "21.5",
                "attributes": {
                    "unit_of_measurement": "°C",
                    "nested": {"values": [1, 2, 3], "ok": True},
                },
                "last_changed": "2026-01-01T10:00:00+00:00",
                "last_updated": "2026-01-01T10:00:00+00:00",
            },
        }
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.requests: list[httpx.Request] = []
        self.fail_all = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.fail_all:
            raise httpx.ConnectError("hub is down", request=request)

        if request.headers.get("Authorization") != f"Bearer {HUB_TOKEN}":
            return httpx.Response(401, json={"message": "Unauthorized"})

        path = request.url.path
        if path == "/api/":
            return httpx.Response(200, json={"message": "API running."})

        if path == "/api/states" and request.method == "GET":
            return httpx.Response(200, json=list(self.states.values()))

        if path.startswith("/api/states/") and request.method == "GET":
            entity_id = path.removeprefix("/api/states/")
            state = self.states.get(entity_id)
            if state is None:
                return httpx.Response(404, json={"message": "Entity not found."})
            return httpx.Response(200, json=state)

        if path.startswith("/api/services/") and request.method == "POST":
            domain, service = path.removeprefix("/api/services/").split("/", 1)
            payload = json.loads(request.content or b"{}")
            self.calls.append((domain, service, payload))

            entity_id = payload.get("entity_id")
            state = self.states.get(entity_id)
            if state is None:
                return httpx.Response(200, json=[])
            if service == "turn_on":
                state["state"] = "on"
            elif service == "turn_off":
                state["state"] = "off"
            elif service == "toggle":
                state["state"] = "off" if state["state"] == "on" else "on"
            return httpx.Response(200, json=[state])

        return httpx.Response(404, json={"message": "Not found"})


@pytest.fixture
def hub() -> FakeHub:
    """Тестовый хаб"""
    return FakeHub()


@pytest.fixture
def ha_factory(hub: FakeHub) -> HomeAssistantClientFactory:
    """Фабрика клиентов, направленная на тестовый хаб"""
    return HomeAssistantClientFactory(
        timeout=5.0,
        transport=httpx.MockTransport(hub.handler),
        default_url=HUB_URL,
        default_token=HUB_TOKEN,
    )


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[Database]:
    """Отдельная SQLite база на каждый тест"""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession]:
    """Сессия базы данных для подготовки и проверки данных"""
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def app(database: Database, ha_factory: HomeAssistantClientFactory, monkeypatch):
    """Приложение с тестовой базой и хабом (lifespan не запускается)"""
    from hassh.main import create_app

    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", False)
    application = create_app()
    application.state.database = database
    application.state.ha_factory = ha_factory
    application.state.redis = None
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient]:
    """Создание тестового клиента"""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


# Async factory fixtures для работы с базой данных
@pytest_asyncio.fixture
async def async_user_factory(db_session: AsyncSession):
    """Асинхронная фабрика пользователей с сохранением в БД"""
    from tests.factories import UserFactory

    async def create_user(**kwargs):
        user = UserFactory(**kwargs)
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return create_user


@pytest_asyncio.fixture
async def test_user(async_user_factory):
    """Пользователь с настроенным хабом"""
    unique_suffix = uuid.uuid4().hex[:8]
    return await async_user_factory(
        username=f"testuser_{unique_suffix}", ha_url=HUB_URL, ha_token=HUB_TOKEN
    )


@pytest_asyncio.fixture
async def other_user(async_user_factory):
    """Другой пользователь без настроенного хаба"""
    unique_suffix = uuid.uuid4().hex[:8]
    return await async_user_factory(username=f"otheruser_{unique_suffix}")


@pytest_asyncio.fixture
async def admin_user(async_user_factory):
    """Администратор"""
    unique_suffix = uuid.uuid4().hex[:8]
    return await async_user_factory(username=f"admin_{unique_suffix}", is_admin=True)


def _headers_for(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}


@pytest.fixture
def auth_headers(test_user) -> dict[str, str]:
    """Заголовки аутентификации пользователя с хабом"""
    return _headers_for(test_user)


@pytest.fixture
def other_headers(other_user) -> dict[str, str]:
    """Заголовки аутентификации другого пользователя"""
    return _headers_for(other_user)


@pytest.fixture
def admin_headers(admin_user) -> dict[str, str]:
    """Заголовки аутентификации администратора"""
    return _headers_for(admin_user)


@pytest.fixture
def share_link_data() -> dict[str, Any]:
    """Данные ссылки только для чтения без ограничений"""
    return {
        "entity_ids": ["light.kitchen", "sensor.temperature"],
        "link_type": "permanent",
    }
