"""
API роутеры для аутентификации
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from hassh.auth.dependencies import get_current_active_user
from hassh.auth.service import AuthService
from hassh.core.config import settings
from hassh.core.constants import BEARER_TOKEN_TYPE
from hassh.core.database import get_db
from hassh.models.user import User
from hassh.schemas.auth import (
    AdminExistsResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    OTPLoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    RegisterResponse,
    Token,
)
from hassh.schemas.user import User as UserSchema

router = APIRouter()


def _login_response(user: User, access_token: str, refresh_token: str) -> LoginResponse:
    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type=BEARER_TOKEN_TYPE,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserSchema.model_validate(user),
        require_password_change=user.require_password_change,
    )


@router.post(
    "/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED
)
async def register(
    user_data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> RegisterResponse:
    """
    Регистрация первого пользователя (становится администратором)
    """
    auth_service = AuthService(db)
    user, password, access_token, refresh_token = await auth_service.register(
        user_data
    )

    return RegisterResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type=BEARER_TOKEN_TYPE,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserSchema.model_validate(user),
        generated_password=password,
    )


@router.get("/admin-exists", response_model=AdminExistsResponse)
async def admin_exists(db: AsyncSession = Depends(get_db)) -> AdminExistsResponse:
    """Проверка наличия администратора (открыта ли регистрация)"""
    return AdminExistsResponse(exists=await AuthService(db).admin_exists())


@router.post("/login", response_model=LoginResponse)
async def login(
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Вход пользователя

    Если включена 2FA, токены не выдаются: нужно повторить вход
    через /login/otp с кодом.
    """
    auth_service = AuthService(db)
    user, access_token, refresh_token = await auth_service.login(login_data)

    if access_token is None or refresh_token is None:
        return LoginResponse(
            otp_required=True, message="Требуется код двухфакторной аутентификации"
        )

    return _login_response(user, access_token, refresh_token)


@router.post("/login/otp", response_model=LoginResponse)
async def login_with_otp(
    login_data: OTPLoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Вход с кодом 2FA или резервным кодом
    """
    auth_service = AuthService(db)
    user, access_token, refresh_token = await auth_service.login_with_otp(login_data)
    return _login_response(user, access_token, refresh_token)


@router.post("/refresh", response_model=Token)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db),
) -> Token:
    """
    Обновление access токена
    """
    auth_service = AuthService(db)
    access_token, new_refresh_token = await auth_service.refresh_token(refresh_data)

    return Token(
        access_token=access_token,
        refresh_token=new_refresh_token,
        token_type=BEARER_TOKEN_TYPE,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.get("/me", response_model=UserSchema)
async def get_current_user_info(
    current_user: User = Depends(get_current_active_user),
) -> UserSchema:
    """
    Получение информации о текущем пользователе
    """
    return UserSchema.model_validate(current_user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    """
    Выход пользователя

    Токены не хранятся на сервере, клиент просто удаляет их.
    """
    return MessageResponse(message="Успешный выход из системы")
