"""
Схемы для передачи сущностей другим пользователям
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hassh.exceptions import ValidationError
from hassh.models.base import as_utc
from hassh.models.share_link import AccessMode
from hassh.schemas.user import PublicUser
from hassh.validators import HomeAssistantValidator


class SharedEntityCreate(BaseModel):
    """Поделиться сущностью с пользователем"""

    entity_id: str = Field(..., max_length=255)
    shared_with_id: UUID
    access_mode: AccessMode = AccessMode.READONLY

    @field_validator("entity_id")
    @classmethod
    def validate_entity_id(cls, v: str) -> str:
        try:
            return HomeAssistantValidator.validate_entity_id(v)
        except ValidationError as err:
            raise ValueError(err.message) from err


class SharedEntity(BaseModel):
    """Схема переданной сущности"""

    id: UUID
    entity_id: str
    access_mode: AccessMode
    owner: PublicUser
    shared_with: PublicUser
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return as_utc(v)
