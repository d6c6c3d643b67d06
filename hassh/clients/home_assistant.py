"""
REST клиент Home Assistant

Используются три вызова API хаба: состояние одной сущности,
состояния всех сущностей и вызов сервиса. Любой ответ не 2xx или
транспортная ошибка превращаются в HomeAssistantError.
"""

import asyncio
import logging
from typing import Any

import httpx
from fastapi import Request
from pydantic import ValidationError as PydanticValidationError

from hassh.core.config import settings
from hassh.exceptions import HomeAssistantError, HomeAssistantNotConfiguredError
from hassh.models.user import User
from hassh.schemas.entity import EntityState

logger = logging.getLogger(__name__)


class HomeAssistantClient:
    """Клиент одного хаба с bearer токеном пользователя"""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/api",
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=timeout if timeout is not None else settings.HA_REQUEST_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> "HomeAssistantClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self, method: str, path: str, json: Any | None = None
    ) -> Any:
        """Выполнить запрос к API хаба и вернуть декодированный JSON"""
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise HomeAssistantError(f"Хаб недоступен: {exc}") from exc

        if not response.is_success:
            raise HomeAssistantError(
                f"Хаб вернул {response.status_code} для {method} {path}",
                status_code=response.status_code,
            )

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as exc:
            raise HomeAssistantError(f"Некорректный JSON от хаба: {exc}") from exc

    @staticmethod
    def _parse_state(payload: Any) -> EntityState:
        try:
            return EntityState.model_validate(payload)
        except PydanticValidationError as exc:
            raise HomeAssistantError(f"Неожиданный формат состояния: {exc}") from exc

    async def check_api(self) -> bool:
        """Проверка доступности API хаба"""
        await self._request("GET", "/")
        return True

    async def get_state(self, entity_id: str) -> EntityState:
        """
        Получить состояние одной сущности

        Args:
            entity_id: Идентификатор сущности

        Returns:
            EntityState: Снимок состояния

        Raises:
            HomeAssistantError: Хаб недоступен или сущность не найдена
        """
        payload = await self._request("GET", f"/states/{entity_id}")
        return self._parse_state(payload)

    async def get_all_states(self) -> list[EntityState]:
        """Получить состояния всех сущностей хаба"""
        payload = await self._request("GET", "/states")
        if not isinstance(payload, list):
            raise HomeAssistantError("Ожидался список состояний")
        return [self._parse_state(item) for item in payload]

    async def get_states(self, entity_ids: list[str]) -> list[EntityState]:
        """
        Получить состояния нескольких сущностей параллельно

        Сущности, которые не удалось получить, пропускаются. Порядок
        результата совпадает с порядком запрошенных идентификаторов.
        """
        results = await asyncio.gather(
            *(self.get_state(entity_id) for entity_id in entity_ids),
            return_exceptions=True,
        )

        states: list[EntityState] = []
        for entity_id, result in zip(entity_ids, results, strict=True):
            if isinstance(result, HomeAssistantError):
                logger.warning(f"Не удалось получить {entity_id}: {result.message}")
                continue
            if isinstance(result, BaseException):
                raise result
            states.append(result)
        return states

    async def call_service(
        self, domain: str, service: str, data: dict[str, Any] | None = None
    ) -> list[EntityState]:
        """
        Вызвать сервис хаба

        Args:
            domain: Домен (light, switch...)
            service: Сервис (turn_on, toggle...)
            data: Тело запроса

        Returns:
            list[EntityState]: Состояния, измененные вызовом
        """
        payload = await self._request(
            "POST", f"/services/{domain}/{service}", json=data or {}
        )
        if not isinstance(payload, list):
            return []
        changed: list[EntityState] = []
        for item in payload:
            try:
                changed.append(EntityState.model_validate(item))
            except PydanticValidationError:
                logger.debug(f"Пропущено неожиданное состояние после {domain}.{service}")
        return changed


class HomeAssistantClientFactory:
    """Создает клиентов хаба с общими таймаутом и транспортом"""

    def __init__(
        self,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        default_url: str | None = None,
        default_token: str | None = None,
    ):
        self.timeout = timeout if timeout is not None else settings.HA_REQUEST_TIMEOUT
        self.transport = transport
        self.default_url = default_url
        self.default_token = default_token

    def create(self, base_url: str, token: str) -> HomeAssistantClient:
        return HomeAssistantClient(
            base_url, token, timeout=self.timeout, transport=self.transport
        )

    def for_user(self, user: User) -> HomeAssistantClient:
        """
        Клиент с учетными данными пользователя

        Raises:
            HomeAssistantNotConfiguredError: Учетные данные не заданы
        """
        if not user.has_ha_config:
            raise HomeAssistantNotConfiguredError()
        return self.create(user.ha_url, user.ha_token)

    def default(self) -> HomeAssistantClient | None:
        """Клиент с учетными данными из окружения (если заданы)"""
        if not self.default_url or not self.default_token:
            return None
        return self.create(self.default_url, self.default_token)


def get_ha_factory(request: Request) -> HomeAssistantClientFactory:
    """Зависимость FastAPI: фабрика клиентов из состояния приложения"""
    return request.app.state.ha_factory
