"""
Схемы для аутентификации
"""

from pydantic import BaseModel, Field, field_validator

from hassh.core.constants import BEARER_TOKEN_TYPE
from hassh.exceptions import ValidationError
from hassh.schemas.user import User
from hassh.validators import BaseValidator


class Token(BaseModel):
    """JWT токен"""

    access_token: str
    refresh_token: str
    token_type: str = BEARER_TOKEN_TYPE
    expires_in: int


class LoginRequest(BaseModel):
    """Запрос на вход"""

    username: str
    password: str


class OTPLoginRequest(LoginRequest):
    """Вход со вторым фактором (TOTP или резервный код)"""

    code: str = Field(..., min_length=6, max_length=16)


class LoginResponse(BaseModel):
    """Ответ на вход"""

    access_token: str | None = None
    refresh_token: str | None = None
    token_type: str = BEARER_TOKEN_TYPE
    expires_in: int | None = None
    user: User | None = None
    otp_required: bool = False
    require_password_change: bool = False
    message: str | None = None


class RegisterRequest(BaseModel):
    """Запрос на регистрацию первого администратора"""

    username: str = Field(..., min_length=3, max_length=50)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        try:
            return BaseValidator.validate_username(v)
        except ValidationError as err:
            raise ValueError(err.message) from err


class RegisterResponse(Token):
    """Ответ на регистрацию: токены и сгенерированный пароль"""

    user: User
    generated_password: str
    require_password_change: bool = True
    message: str = "Смените пароль после входа"


class AdminExistsResponse(BaseModel):
    """Есть ли в системе администратор"""

    exists: bool


class RefreshTokenRequest(BaseModel):
    """Запрос на обновление токена"""

    refresh_token: str


class PasswordChange(BaseModel):
    """Изменение пароля"""

    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        try:
            return BaseValidator.validate_password(v, "new_password")
        except ValidationError as err:
            raise ValueError(err.message) from err


class MessageResponse(BaseModel):
    """Простой ответ с сообщением"""

    message: str
