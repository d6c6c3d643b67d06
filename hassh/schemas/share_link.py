"""
Pydantic схемы для публичных ссылок
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hassh.exceptions import ValidationError
from hassh.models.base import as_utc
from hassh.models.share_link import AccessMode, ShareLinkType
from hassh.schemas.entity import EntityState
from hassh.validators import HomeAssistantValidator


def _clean_entity_ids(v: list[str]) -> list[str]:
    try:
        return HomeAssistantValidator.validate_entity_ids(v)
    except ValidationError as err:
        raise ValueError(err.message) from err


def check_link_policy(
    link_type: ShareLinkType, max_access: int | None, expires_at: datetime | None
) -> tuple[str, str] | None:
    """
    Проверка согласованности политики истечения ссылки

    Returns:
        Optional[tuple[str, str]]: Текст ошибки и поле, которого не хватает,
        или None если политика корректна
    """
    if link_type == ShareLinkType.COUNTER and not max_access:
        return "Для ссылки с ограничением обращений нужен max_access", "max_access"
    if link_type == ShareLinkType.TIME and expires_at is None:
        return "Для ссылки с ограничением по времени нужен expires_at", "expires_at"
    return None


class ShareLinkCreate(BaseModel):
    """Схема для создания публичной ссылки."""

    entity_ids: list[str] = Field(..., min_length=1, description="Сущности ссылки")
    link_type: ShareLinkType = Field(..., description="Политика истечения")
    access_mode: AccessMode = Field(
        default=AccessMode.READONLY, description="Режим доступа"
    )
    max_access: int | None = Field(
        None, ge=1, description="Максимальное количество обращений"
    )
    expires_at: datetime | None = Field(None, description="Время истечения ссылки")
    password: str | None = Field(
        None, min_length=1, max_length=255, description="Пароль для доступа"
    )

    @field_validator("entity_ids")
    @classmethod
    def validate_entity_ids(cls, v: list[str]) -> list[str]:
        """Валидация списка сущностей."""
        return _clean_entity_ids(v)

    @field_validator("expires_at")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @model_validator(mode="after")
    def validate_policy(self) -> "ShareLinkCreate":
        """Проверка параметров, нужных для выбранного типа ссылки."""
        error = check_link_policy(self.link_type, self.max_access, self.expires_at)
        if error:
            raise ValueError(error[0])
        return self


class ShareLinkUpdate(BaseModel):
    """
    Схема для обновления публичной ссылки.

    Передавать нужно только изменяемые поля. Явный password: null
    снимает пароль со ссылки. Активность ссылки не редактируется.
    """

    entity_ids: list[str] | None = Field(None, min_length=1)
    link_type: ShareLinkType | None = Field(None)
    access_mode: AccessMode | None = Field(None)
    max_access: int | None = Field(None, ge=1)
    expires_at: datetime | None = Field(None)
    password: str | None = Field(None, min_length=1, max_length=255)

    @field_validator("entity_ids")
    @classmethod
    def validate_entity_ids(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return _clean_entity_ids(v)

    @field_validator("expires_at")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class ShareLinkResponse(BaseModel):
    """Схема ответа с информацией о публичной ссылке."""

    id: UUID = Field(..., description="ID ссылки")
    token: str = Field(..., description="Токен доступа")
    entity_ids: list[str] = Field(..., description="Сущности ссылки")
    link_type: ShareLinkType = Field(..., description="Политика истечения")
    access_mode: AccessMode = Field(..., description="Режим доступа")
    access_count: int = Field(..., description="Текущее количество обращений")
    max_access: int | None = Field(None, description="Лимит обращений")
    expires_at: datetime | None = Field(None, description="Время истечения")
    is_active: bool = Field(..., description="Активность ссылки")
    is_expired: bool = Field(..., description="Истекла ли ссылка")
    is_exhausted: bool = Field(..., description="Исчерпан ли лимит обращений")
    is_accessible: bool = Field(..., description="Доступна ли ссылка")
    has_password: bool = Field(..., description="Требуется ли пароль")
    user_id: UUID = Field(..., description="ID владельца")
    public_url: str = Field(..., description="Публичный URL")
    created_at: datetime = Field(..., description="Время создания")
    updated_at: datetime = Field(..., description="Время обновления")

    model_config = ConfigDict(from_attributes=True)

    @field_validator("expires_at", "created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class ShareLinkPublic(BaseModel):
    """Сведения о ссылке, видимые по публичному токену."""

    token: str
    entity_ids: list[str]
    link_type: ShareLinkType
    access_mode: AccessMode
    access_count: int
    max_access: int | None = None
    expires_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("expires_at")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class ShareLinkAccess(BaseModel):
    """Схема для доступа к публичной ссылке."""

    password: str | None = Field(None, description="Пароль (если требуется)")


class ShareTriggerRequest(BaseModel):
    """Вызов сервиса для сущности по публичной ссылке."""

    service: str = Field(..., max_length=100, description="Сервис (turn_on, toggle...)")
    data: dict[str, Any] = Field(
        default_factory=dict, description="Дополнительные данные сервиса"
    )
    password: str | None = Field(None, description="Пароль (если требуется)")

    @field_validator("service")
    @classmethod
    def validate_service(cls, v: str) -> str:
        try:
            return HomeAssistantValidator.validate_service_name(v)
        except ValidationError as err:
            raise ValueError(err.message) from err


class ShareTriggerResponse(BaseModel):
    """Результат вызова сервиса."""

    success: bool = True
    entity_id: str
    service: str
    changed_states: list[EntityState] = Field(default_factory=list)


class SharedContentResponse(BaseModel):
    """Ответ с сущностями по публичной ссылке."""

    share_link: ShareLinkPublic = Field(..., description="Информация о ссылке")
    entities: list[EntityState] = Field(..., description="Состояния сущностей")
    access_mode: AccessMode = Field(..., description="Режим доступа")
    can_trigger: bool = Field(..., description="Можно ли вызывать сервисы")


class ShareLinkStats(BaseModel):
    """Статистика публичных ссылок."""

    total_links: int = Field(..., description="Всего ссылок")
    active_links: int = Field(..., description="Активных ссылок")
    inactive_links: int = Field(..., description="Неактивных ссылок")
    total_accesses: int = Field(..., description="Всего обращений")
    most_accessed: list[ShareLinkResponse] = Field(
        ..., description="Самые посещаемые"
    )
