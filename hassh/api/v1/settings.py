"""
API роутеры для настроек пользователя
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hassh.auth.dependencies import get_current_active_user
from hassh.auth.service import AuthService
from hassh.clients.home_assistant import HomeAssistantClientFactory, get_ha_factory
from hassh.core.database import get_db
from hassh.models.user import User
from hassh.schemas.auth import MessageResponse, PasswordChange
from hassh.schemas.settings import (
    HAConfigRequest,
    OTPDisableRequest,
    OTPEnableRequest,
    OTPEnableResponse,
    OTPSetupResponse,
    UserSettings,
)
from hassh.services.user_service import UserService

router = APIRouter()


@router.get("", response_model=UserSettings)
async def get_settings(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> UserSettings:
    """Текущие настройки пользователя"""
    return await UserService(db).get_settings(current_user)


@router.post("/ha", response_model=UserSettings)
async def configure_home_assistant(
    config: HAConfigRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    ha_factory: HomeAssistantClientFactory = Depends(get_ha_factory),
) -> UserSettings:
    """Сохранить адрес и токен Home Assistant (с проверкой)"""
    service = UserService(db, ha_factory)
    user = await service.configure_home_assistant(current_user, config)
    return await service.get_settings(user)


@router.post("/password", response_model=MessageResponse)
async def change_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Изменение пароля"""
    await AuthService(db).change_password(current_user, password_data)
    return MessageResponse(message="Пароль успешно изменен")


@router.post("/otp/setup", response_model=OTPSetupResponse)
async def setup_otp(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> OTPSetupResponse:
    """Получить новый TOTP секрет и QR-код"""
    secret, url, qr_code = await AuthService(db).setup_otp(current_user)
    return OTPSetupResponse(secret=secret, url=url, qr_code=qr_code)


@router.post("/otp/enable", response_model=OTPEnableResponse)
async def enable_otp(
    otp_data: OTPEnableRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> OTPEnableResponse:
    """Включить 2FA и получить резервные коды"""
    backup_codes = await AuthService(db).enable_otp(current_user, otp_data)
    return OTPEnableResponse(backup_codes=backup_codes)


@router.post("/otp/disable", response_model=MessageResponse)
async def disable_otp(
    otp_data: OTPDisableRequest,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Отключить 2FA"""
    await AuthService(db).disable_otp(current_user, otp_data)
    return MessageResponse(message="Двухфакторная аутентификация отключена")
