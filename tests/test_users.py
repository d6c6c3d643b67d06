"""
Тесты управления пользователями
"""

import pytest
from httpx import AsyncClient

from hassh.exceptions import LastAdminError, UserAlreadyExistsError, UserNotFoundError
from hassh.schemas.user import UserCreate
from hassh.services.user_service import UserService
from tests.factories import ShareLinkFactory

USERS_URL = "/api/users"


class TestUsersAPI:
    """Тесты API пользователей"""

    async def test_list_requires_admin(self, client: AsyncClient, auth_headers):
        """Обычный пользователь не видит список"""
        response = await client.get(USERS_URL, headers=auth_headers)
        assert response.status_code == 403

    async def test_list_users(
        self, client: AsyncClient, admin_headers, admin_user, test_user
    ):
        """Администратор видит всех пользователей"""
        response = await client.get(USERS_URL, headers=admin_headers)

        assert response.status_code == 200
        usernames = {user["username"] for user in response.json()}
        assert usernames == {admin_user.username, test_user.username}

    async def test_directory(self, client: AsyncClient, auth_headers, admin_user):
        """Справочник пользователей доступен всем"""
        response = await client.get(f"{USERS_URL}/directory", headers=auth_headers)

        assert response.status_code == 200
        entry = next(u for u in response.json() if u["username"] == admin_user.username)
        assert set(entry) == {"id", "username"}

    async def test_create_user(self, client: AsyncClient, admin_headers):
        """Создание пользователя со сгенерированным паролем"""
        response = await client.post(
            USERS_URL, json={"username": "guest"}, headers=admin_headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["username"] == "guest"
        assert data["user"]["is_admin"] is False
        assert data["user"]["require_password_change"] is True

        response = await client.post(
            "/api/auth/login",
            json={"username": "guest", "password": data["generated_password"]},
        )
        assert response.status_code == 200

    async def test_create_duplicate(self, client: AsyncClient, admin_headers, test_user):
        """Имя пользователя занято"""
        response = await client.post(
            USERS_URL, json={"username": test_user.username}, headers=admin_headers
        )
        assert response.status_code == 409

    async def test_cannot_delete_last_admin(
        self, client: AsyncClient, admin_headers, admin_user
    ):
        """Последнего администратора удалить нельзя"""
        response = await client.delete(
            f"{USERS_URL}/{admin_user.id}", headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["details"]["code"] == "LAST_ADMIN"

    async def test_toggle_admin(
        self, client: AsyncClient, admin_headers, admin_user, test_user
    ):
        """Переключение прав администратора"""
        response = await client.put(
            f"{USERS_URL}/{test_user.id}/admin", headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["is_admin"] is True

        response = await client.put(
            f"{USERS_URL}/{admin_user.id}/admin",
            json={"is_admin": False},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["is_admin"] is False

    async def test_cannot_demote_last_admin(
        self, client: AsyncClient, admin_headers, admin_user
    ):
        """Последнего администратора нельзя понизить"""
        response = await client.put(
            f"{USERS_URL}/{admin_user.id}/admin",
            json={"is_admin": False},
            headers=admin_headers,
        )
        assert response.status_code == 400

    async def test_delete_user_removes_links(
        self, client: AsyncClient, admin_headers, test_user, db_session
    ):
        """Удаление пользователя удаляет его ссылки"""
        link = ShareLinkFactory(user_id=test_user.id)
        db_session.add(link)
        await db_session.commit()

        response = await client.delete(
            f"{USERS_URL}/{test_user.id}", headers=admin_headers
        )
        assert response.status_code == 204

        response = await client.get(f"/api/shares/public/{link.token}")
        assert response.status_code == 404


@pytest.mark.asyncio
class TestUserService:
    """Тесты сервиса пользователей"""

    async def test_create_and_get(self, db_session):
        service = UserService(db_session)

        user, password = await service.create_user(UserCreate(username="alice"))

        assert len(password) == 32
        assert (await service.get_user(user.id)).username == "alice"

        with pytest.raises(UserAlreadyExistsError):
            await service.create_user(UserCreate(username="alice"))

    async def test_delete_missing_user(self, db_session):
        import uuid

        with pytest.raises(UserNotFoundError):
            await UserService(db_session).delete_user(uuid.uuid4())

    async def test_delete_admin_when_another_exists(
        self, db_session, admin_user, async_user_factory
    ):
        second = await async_user_factory(username="second_admin", is_admin=True)
        service = UserService(db_session)

        await service.delete_user(admin_user.id)

        with pytest.raises(LastAdminError):
            await service.delete_user(second.id)


class TestHomeAssistantSettings:
    """Настройка подключения к хабу"""

    async def test_configure_home_assistant(
        self, client: AsyncClient, other_headers, hub
    ):
        """Сохранение проверенных учетных данных"""
        response = await client.post(
            "/api/settings/ha",
            json={"ha_url": "http://hub.test/", "ha_token": "good-token"},
            headers=other_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["has_ha_config"] is True
        assert data["ha_url"] == "http://hub.test"
        assert hub.requests[-1].url.path == "/api/states"

        response = await client.get("/api/entities/available", headers=other_headers)
        assert response.status_code == 200

    async def test_configure_with_bad_token(self, client: AsyncClient, other_headers):
        """Хаб отклоняет токен"""
        response = await client.post(
            "/api/settings/ha",
            json={"ha_url": "http://hub.test", "ha_token": "bad-token"},
            headers=other_headers,
        )

        assert response.status_code == 422
        assert response.json()["details"]["field"] == "ha_token"

        response = await client.get("/api/settings", headers=other_headers)
        assert response.json()["has_ha_config"] is False

    async def test_configure_with_invalid_url(self, client: AsyncClient, other_headers):
        """Некорректный адрес"""
        response = await client.post(
            "/api/settings/ha",
            json={"ha_url": "hub.test", "ha_token": "good-token"},
            headers=other_headers,
        )
        assert response.status_code == 422

    async def test_configure_uses_default_url(
        self, client: AsyncClient, other_headers, monkeypatch
    ):
        """Адрес по умолчанию из HOME_ASSISTANT_URL"""
        from hassh.core.config import settings

        monkeypatch.setattr(settings, "HOME_ASSISTANT_URL", "http://hub.test")

        response = await client.post(
            "/api/settings/ha", json={"ha_token": "good-token"}, headers=other_headers
        )

        assert response.status_code == 200
        assert response.json()["ha_url"] == "http://hub.test"

    async def test_configure_without_any_url(
        self, client: AsyncClient, other_headers, monkeypatch
    ):
        """Адрес не задан ни в запросе, ни в окружении"""
        from hassh.core.config import settings

        monkeypatch.setattr(settings, "HOME_ASSISTANT_URL", None)

        response = await client.post(
            "/api/settings/ha", json={"ha_token": "good-token"}, headers=other_headers
        )

        assert response.status_code == 422
        assert response.json()["details"]["field"] == "ha_url"
