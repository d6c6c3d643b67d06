"""
Схемы для пользователей
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hassh.exceptions import ValidationError
from hassh.models.base import as_utc
from hassh.validators import BaseValidator


class User(BaseModel):
    """Схема пользователя для API"""

    id: UUID
    username: str
    is_admin: bool
    is_active: bool
    require_password_change: bool
    otp_enabled: bool
    has_ha_config: bool
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "last_login_at")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class PublicUser(BaseModel):
    """Публичная информация о пользователе (для выбора получателя)"""

    id: UUID
    username: str

    model_config = ConfigDict(from_attributes=True)


class UserCreate(BaseModel):
    """Создание пользователя администратором"""

    username: str = Field(..., min_length=3, max_length=50)
    is_admin: bool = False

    model_config = ConfigDict(
        json_schema_extra={"example": {"username": "guest", "is_admin": False}}
    )

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        try:
            return BaseValidator.validate_username(v)
        except ValidationError as err:
            raise ValueError(err.message) from err


class UserCreatedResponse(BaseModel):
    """Созданный пользователь и его сгенерированный пароль"""

    user: User
    generated_password: str
    message: str = "Пользователь создан. Передайте ему этот пароль."


class AdminStatusUpdate(BaseModel):
    """Изменение прав администратора"""

    is_admin: bool | None = Field(
        None, description="Новое значение; без него права переключаются"
    )
