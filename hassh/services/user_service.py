"""
Сервис управления пользователями и их настройками
"""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hassh.clients.home_assistant import HomeAssistantClientFactory
from hassh.core.config import settings
from hassh.core.security import generate_password, get_password_hash
from hassh.exceptions import (
    HomeAssistantError,
    LastAdminError,
    UserAlreadyExistsError,
    UserNotFoundError,
    ValidationError,
)
from hassh.models.user import User
from hassh.schemas.settings import HAConfigRequest, UserSettings
from hassh.schemas.user import UserCreate

logger = logging.getLogger(__name__)


class UserService:
    """Сервис управления пользователями"""

    def __init__(
        self, db: AsyncSession, ha_factory: HomeAssistantClientFactory | None = None
    ):
        self.db = db
        self.ha_factory = ha_factory or HomeAssistantClientFactory()

    async def list_users(self) -> list[User]:
        """Все пользователи (для администратора)"""
        result = await self.db.execute(select(User).order_by(User.created_at, User.id))
        return list(result.scalars().all())

    async def get_user(self, user_id: UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise UserNotFoundError(str(user_id))
        return user

    async def create_user(self, user_data: UserCreate) -> tuple[User, str]:
        """
        Создание пользователя администратором

        Returns:
            Tuple[User, str]: Пользователь и сгенерированный пароль
        """
        existing = await self.db.execute(
            select(User).where(User.username == user_data.username)
        )
        if existing.scalar_one_or_none():
            raise UserAlreadyExistsError("username", user_data.username)

        password = generate_password()
        user = User(
            username=user_data.username,
            hashed_password=get_password_hash(password),
            is_admin=user_data.is_admin,
            is_active=True,
            require_password_change=True,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Администратор создал пользователя {user.username}")
        return user, password

    async def delete_user(self, user_id: UUID) -> None:
        """
        Удаление пользователя вместе с его сущностями и ссылками

        Raises:
            LastAdminError: Попытка удалить последнего администратора
        """
        user = await self.get_user(user_id)

        if user.is_admin and await self._admin_count() <= 1:
            raise LastAdminError("Нельзя удалить последнего администратора")

        await self.db.delete(user)
        await self.db.commit()
        logger.info(f"Пользователь {user.username} удален")

    async def set_admin(self, user_id: UUID, is_admin: bool | None = None) -> User:
        """
        Назначить или снять права администратора

        Без явного значения права переключаются.
        """
        user = await self.get_user(user_id)
        new_value = (not user.is_admin) if is_admin is None else is_admin

        if user.is_admin and not new_value and await self._admin_count() <= 1:
            raise LastAdminError("Нельзя снять права с последнего администратора")

        user.is_admin = new_value
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def get_settings(self, user: User) -> UserSettings:
        """Текущие настройки пользователя"""
        return UserSettings(
            username=user.username,
            is_admin=user.is_admin,
            has_ha_config=user.has_ha_config,
            ha_url=user.ha_url,
            require_password_change=user.require_password_change,
            otp_enabled=user.otp_enabled,
        )

    async def configure_home_assistant(
        self, user: User, config: HAConfigRequest
    ) -> User:
        """
        Сохранить учетные данные Home Assistant

        Перед сохранением данные проверяются запросом всех состояний хаба.

        Raises:
            ValidationError: Адрес или токен не подходят
        """
        ha_url = config.ha_url or settings.HOME_ASSISTANT_URL
        if not ha_url:
            raise ValidationError("Не указан адрес Home Assistant", "ha_url")

        try:
            async with self.ha_factory.create(ha_url, config.ha_token) as client:
                states = await client.get_all_states()
        except HomeAssistantError as exc:
            raise ValidationError(
                f"Неверный адрес или токен Home Assistant: {exc.message}", "ha_token"
            ) from exc

        user.ha_url = ha_url
        user.ha_token = config.ha_token
        await self.db.commit()

        logger.info(
            f"Пользователь {user.username} подключил Home Assistant "
            f"({len(states)} сущностей)"
        )
        return user

    async def _admin_count(self) -> int:
        result = await self.db.execute(
            select(func.count(User.id)).where(User.is_admin.is_(True))
        )
        return result.scalar() or 0
