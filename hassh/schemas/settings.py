"""
Схемы для настроек пользователя
"""

from pydantic import BaseModel, Field, field_validator

from hassh.exceptions import ValidationError
from hassh.validators import HomeAssistantValidator


class UserSettings(BaseModel):
    """Текущие настройки пользователя"""

    username: str
    is_admin: bool
    has_ha_config: bool
    ha_url: str | None = None
    require_password_change: bool
    otp_enabled: bool


class HAConfigRequest(BaseModel):
    """Учетные данные Home Assistant"""

    ha_url: str | None = Field(
        None, max_length=500, description="Адрес хаба; по умолчанию HOME_ASSISTANT_URL"
    )
    ha_token: str = Field(..., min_length=1, description="Long-lived access token")

    @field_validator("ha_url")
    @classmethod
    def validate_ha_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        try:
            return HomeAssistantValidator.validate_ha_url(v)
        except ValidationError as err:
            raise ValueError(err.message) from err


class OTPSetupResponse(BaseModel):
    """Новый TOTP секрет, ожидающий подтверждения"""

    secret: str
    url: str = Field(..., description="otpauth:// URI")
    qr_code: str = Field(..., description="QR-код как data URL")


class OTPEnableRequest(BaseModel):
    """Подтверждение включения 2FA"""

    password: str
    code: str = Field(..., min_length=6, max_length=8)


class OTPEnableResponse(BaseModel):
    """Одноразовые резервные коды, показываются один раз"""

    message: str = "Двухфакторная аутентификация включена"
    backup_codes: list[str]


class OTPDisableRequest(BaseModel):
    """Отключение 2FA"""

    password: str
