"""
Схемы для сущностей Home Assistant
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from hassh.core.json_value import JSONValue
from hassh.exceptions import ValidationError
from hassh.models.base import as_utc
from hassh.validators import HomeAssistantValidator


class EntityState(BaseModel):
    """Снимок состояния сущности, полученный от хаба"""

    entity_id: str
    state: str = ""
    attributes: dict[str, Any] = Field(default_factory=dict)
    last_changed: datetime | None = None
    last_updated: datetime | None = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("attributes", mode="before")
    @classmethod
    def normalize_attributes(cls, v: Any) -> Any:
        """null от хаба превращается в пустой словарь"""
        if v is None:
            return {}
        if isinstance(v, JSONValue):
            return v.as_dict()
        return v

    @computed_field
    @property
    def friendly_name(self) -> str | None:
        """Отображаемое имя из атрибутов хаба"""
        return JSONValue(self.attributes).get_str("friendly_name")

    @property
    def domain(self) -> str:
        return self.entity_id.split(".", 1)[0]


class EntityCreate(BaseModel):
    """Добавление сущности в отслеживаемые"""

    entity_id: str = Field(..., max_length=255, description="ID сущности в хабе")

    @field_validator("entity_id")
    @classmethod
    def validate_entity_id(cls, v: str) -> str:
        try:
            return HomeAssistantValidator.validate_entity_id(v)
        except ValidationError as err:
            raise ValueError(err.message) from err


class Entity(BaseModel):
    """Схема отслеживаемой сущности для API"""

    id: UUID
    entity_id: str
    state: str
    attributes: dict[str, Any]
    last_changed: datetime | None = None
    last_updated: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("attributes", mode="before")
    @classmethod
    def unwrap_attributes(cls, v: Any) -> Any:
        """Конвертирует JSONValue в словарь"""
        if isinstance(v, JSONValue):
            return v.as_dict()
        return v

    @field_validator("last_changed", "last_updated", "created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @computed_field
    @property
    def friendly_name(self) -> str | None:
        return JSONValue(self.attributes).get_str("friendly_name")

    @computed_field
    @property
    def unit_of_measurement(self) -> str | None:
        return JSONValue(self.attributes).get_str("unit_of_measurement")


class RefreshResult(BaseModel):
    """Результат обновления отслеживаемых сущностей"""

    refreshed: int = Field(..., description="Обновлено сущностей")
    failed: int = Field(..., description="Не удалось получить")
