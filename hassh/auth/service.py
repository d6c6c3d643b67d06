"""
Сервис аутентификации
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hassh.auth.dependencies import get_user_by_id
from hassh.core.otp import (
    consume_backup_code,
    generate_backup_codes,
    generate_otp_secret,
    hash_backup_codes,
    render_qr_code,
    verify_otp,
)
from hassh.core.security import (
    create_access_token,
    create_refresh_token,
    generate_password,
    get_password_hash,
    verify_password,
    verify_refresh_token,
)
from hassh.exceptions import (
    AuthenticationError,
    BusinessLogicError,
    RegistrationClosedError,
    UserAlreadyExistsError,
)
from hassh.models.base import utc_now
from hassh.models.user import User
from hassh.schemas.auth import (
    LoginRequest,
    OTPLoginRequest,
    PasswordChange,
    RefreshTokenRequest,
    RegisterRequest,
)
from hassh.schemas.settings import OTPDisableRequest, OTPEnableRequest

logger = logging.getLogger(__name__)


class AuthService:
    """Сервис аутентификации"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def admin_exists(self) -> bool:
        """Есть ли в системе хотя бы один администратор"""
        result = await self.db.execute(
            select(func.count(User.id)).where(User.is_admin.is_(True))
        )
        return (result.scalar() or 0) > 0

    async def register(
        self, user_data: RegisterRequest
    ) -> tuple[User, str, str, str]:
        """
        Регистрация первого пользователя

        Пока администратора нет, первый зарегистрированный пользователь
        становится администратором. Пароль генерируется и должен быть
        сменен после входа.

        Returns:
            Tuple[User, str, str, str]: Пользователь, сгенерированный пароль,
            access_token, refresh_token

        Raises:
            RegistrationClosedError: Администратор уже существует
            UserAlreadyExistsError: Имя пользователя занято
        """
        if await self.admin_exists():
            raise RegistrationClosedError()

        if await self.get_user_by_username(user_data.username):
            raise UserAlreadyExistsError("username", user_data.username)

        password = generate_password()
        db_user = User(
            username=user_data.username,
            hashed_password=get_password_hash(password),
            is_admin=True,
            is_active=True,
            require_password_change=True,
        )

        self.db.add(db_user)
        await self.db.commit()
        await self.db.refresh(db_user)

        logger.info(f"Зарегистрирован первый администратор {db_user.username}")

        access_token, refresh_token = self._issue_tokens(db_user)
        return db_user, password, access_token, refresh_token

    async def login(self, login_data: LoginRequest) -> tuple[User, str | None, str | None]:
        """
        Вход пользователя

        Returns:
            Tuple[User, Optional[str], Optional[str]]: Пользователь и токены.
            Если включена 2FA, токены не выдаются (None) до проверки кода.

        Raises:
            AuthenticationError: Неверные учетные данные
        """
        user = await self._authenticate_or_raise(
            login_data.username, login_data.password
        )

        if user.otp_enabled:
            return user, None, None

        access_token, refresh_token = await self._complete_login(user)
        return user, access_token, refresh_token

    async def login_with_otp(self, login_data: OTPLoginRequest) -> tuple[User, str, str]:
        """
        Вход со вторым фактором: TOTP код или одноразовый резервный код

        Raises:
            AuthenticationError: Неверные учетные данные или код
            BusinessLogicError: 2FA не включена
        """
        user = await self._authenticate_or_raise(
            login_data.username, login_data.password
        )

        if not user.otp_enabled or not user.otp_secret:
            raise BusinessLogicError(
                "Двухфакторная аутентификация не включена", code="OTP_NOT_ENABLED"
            )

        if not verify_otp(user.otp_secret, login_data.code):
            remaining = consume_backup_code(
                list(user.otp_backup_codes or []), login_data.code
            )
            if remaining is None:
                raise AuthenticationError("Неверный код подтверждения")
            user.otp_backup_codes = remaining
            logger.info(
                f"Пользователь {user.username} вошел по резервному коду, "
                f"осталось {len(remaining)}"
            )

        access_token, refresh_token = await self._complete_login(user)
        return user, access_token, refresh_token

    async def refresh_token(self, refresh_data: RefreshTokenRequest) -> tuple[str, str]:
        """
        Обновление access токена

        Raises:
            AuthenticationError: Невалидный refresh токен
        """
        user_id = verify_refresh_token(refresh_data.refresh_token)
        if not user_id:
            raise AuthenticationError("Невалидный refresh токен")

        user = await self.get_user_by_id(user_id)
        if not user or not user.is_active:
            raise AuthenticationError("Пользователь не найден или неактивен")

        return self._issue_tokens(user)

    async def authenticate_user(self, username: str, password: str) -> User | None:
        """
        Аутентификация пользователя

        Returns:
            Optional[User]: Пользователь или None если неверные данные
        """
        user = await self.get_user_by_username(username)
        if not user:
            return None

        if not verify_password(password, user.hashed_password):
            return None

        return user

    async def change_password(self, user: User, password_data: PasswordChange) -> None:
        """
        Изменение пароля пользователя

        Raises:
            AuthenticationError: Неверный текущий пароль
        """
        if not verify_password(password_data.current_password, user.hashed_password):
            raise AuthenticationError("Неверный текущий пароль")

        user.hashed_password = get_password_hash(password_data.new_password)
        user.require_password_change = False
        await self.db.commit()

    async def setup_otp(self, user: User) -> tuple[str, str, str]:
        """
        Сгенерировать TOTP секрет, ожидающий подтверждения

        Секрет сохраняется, но 2FA не включается, пока пользователь
        не подтвердит его кодом.

        Returns:
            Tuple[str, str, str]: Секрет, otpauth URI, QR-код (data URL)
        """
        if user.otp_enabled:
            raise BusinessLogicError(
                "Двухфакторная аутентификация уже включена", code="OTP_ALREADY_ENABLED"
            )

        secret, uri = generate_otp_secret(user.username)
        user.otp_secret = secret
        await self.db.commit()

        return secret, uri, render_qr_code(uri)

    async def enable_otp(self, user: User, otp_data: OTPEnableRequest) -> list[str]:
        """
        Включить 2FA после проверки пароля и кода

        Returns:
            list[str]: Резервные коды в открытом виде (показываются один раз)
        """
        if not verify_password(otp_data.password, user.hashed_password):
            raise AuthenticationError("Неверный пароль")

        if user.otp_enabled:
            raise BusinessLogicError(
                "Двухфакторная аутентификация уже включена", code="OTP_ALREADY_ENABLED"
            )

        if not user.otp_secret:
            raise BusinessLogicError(
                "Сначала получите секрет через настройку 2FA", code="OTP_NOT_SETUP"
            )

        if not verify_otp(user.otp_secret, otp_data.code):
            raise BusinessLogicError("Неверный код подтверждения", code="OTP_INVALID")

        backup_codes = generate_backup_codes()
        user.otp_backup_codes = hash_backup_codes(backup_codes)
        user.otp_enabled = True
        await self.db.commit()

        logger.info(f"2FA включена для пользователя {user.username}")
        return backup_codes

    async def disable_otp(self, user: User, otp_data: OTPDisableRequest) -> None:
        """Отключить 2FA после проверки пароля"""
        if not verify_password(otp_data.password, user.hashed_password):
            raise AuthenticationError("Неверный пароль")

        user.otp_secret = None
        user.otp_enabled = False
        user.otp_backup_codes = []
        await self.db.commit()

        logger.info(f"2FA отключена для пользователя {user.username}")

    async def get_user_by_username(self, username: str) -> User | None:
        """Получение пользователя по username"""
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: str) -> User | None:
        """Получение пользователя по ID из токена"""
        return await get_user_by_id(self.db, user_id)

    async def _authenticate_or_raise(self, username: str, password: str) -> User:
        user = await self.authenticate_user(username, password)
        if not user:
            raise AuthenticationError("Неверное имя пользователя или пароль")

        if not user.is_active:
            raise AuthenticationError("Пользователь неактивен")

        return user

    async def _complete_login(self, user: User) -> tuple[str, str]:
        user.last_login_at = utc_now()
        await self.db.commit()
        return self._issue_tokens(user)

    @staticmethod
    def _issue_tokens(user: User) -> tuple[str, str]:
        return create_access_token(subject=user.id), create_refresh_token(
            subject=user.id
        )
