"""
Сервис отслеживаемых сущностей
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hassh.clients.home_assistant import HomeAssistantClientFactory
from hassh.core.json_value import JSONValue
from hassh.exceptions import (
    EntityAlreadyTrackedError,
    EntityNotFoundError,
    HomeAssistantError,
)
from hassh.models.entity import Entity
from hassh.models.user import User
from hassh.schemas.entity import EntityState

logger = logging.getLogger(__name__)


class EntityService:
    """Сервис отслеживаемых сущностей пользователя"""

    def __init__(
        self, db: AsyncSession, ha_factory: HomeAssistantClientFactory | None = None
    ):
        self.db = db
        self.ha_factory = ha_factory or HomeAssistantClientFactory()

    async def list_entities(self, user_id: UUID) -> list[Entity]:
        """Отслеживаемые сущности пользователя"""
        result = await self.db.execute(
            select(Entity).where(Entity.user_id == user_id).order_by(Entity.entity_id)
        )
        return list(result.scalars().all())

    async def get_entity(self, entity_pk: UUID, user_id: UUID) -> Entity:
        result = await self.db.execute(
            select(Entity).where(Entity.id == entity_pk, Entity.user_id == user_id)
        )
        entity = result.scalar_one_or_none()
        if entity is None:
            raise EntityNotFoundError(str(entity_pk))
        return entity

    async def get_tracked(self, entity_id: str, user_id: UUID) -> Entity | None:
        """Отслеживаемая сущность по идентификатору хаба"""
        result = await self.db.execute(
            select(Entity).where(
                Entity.entity_id == entity_id, Entity.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    async def add_entity(self, user: User, entity_id: str) -> Entity:
        """
        Начать отслеживать сущность

        Текущее состояние запрашивается у хаба пользователя.

        Raises:
            HomeAssistantNotConfiguredError: Хаб не настроен
            EntityAlreadyTrackedError: Сущность уже отслеживается
            HomeAssistantError: Хаб недоступен или сущность не найдена
        """
        if await self.get_tracked(entity_id, user.id):
            raise EntityAlreadyTrackedError(entity_id)

        async with self.ha_factory.for_user(user) as client:
            state = await client.get_state(entity_id)

        entity = Entity(entity_id=entity_id, user_id=user.id)
        self._apply_state(entity, state)

        self.db.add(entity)
        await self.db.commit()
        await self.db.refresh(entity)
        return entity

    async def delete_entity(self, entity_pk: UUID, user_id: UUID) -> None:
        entity = await self.get_entity(entity_pk, user_id)
        await self.db.delete(entity)
        await self.db.commit()

    async def list_available(self, user: User) -> list[EntityState]:
        """Все сущности хаба пользователя (для выбора)"""
        async with self.ha_factory.for_user(user) as client:
            states = await client.get_all_states()
        return sorted(states, key=lambda state: state.entity_id)

    async def refresh_user_entities(self, user: User) -> tuple[int, int]:
        """
        Обновить состояния всех отслеживаемых сущностей пользователя

        Returns:
            Tuple[int, int]: (обновлено, не удалось получить)
        """
        entities = await self.list_entities(user.id)
        if not entities or not user.has_ha_config:
            return 0, 0

        async with self.ha_factory.for_user(user) as client:
            states = await client.get_states([e.entity_id for e in entities])

        by_id = {state.entity_id: state for state in states}
        refreshed = 0
        for entity in entities:
            state = by_id.get(entity.entity_id)
            if state is None:
                continue
            self._apply_state(entity, state)
            refreshed += 1

        await self.db.commit()
        return refreshed, len(entities) - refreshed

    async def refresh_all_entities(self) -> tuple[int, int]:
        """
        Обновить отслеживаемые сущности всех пользователей с настроенным хабом

        Ошибка одного пользователя не прерывает обновление остальных.
        """
        result = await self.db.execute(
            select(User.id, User.username).where(
                User.ha_url.is_not(None), User.ha_token.is_not(None)
            )
        )
        users = list(result.all())

        refreshed = failed = 0
        for user_id, username in users:
            try:
                user = await self.db.get(User, user_id)
                if user is None:
                    continue
                user_refreshed, user_failed = await self.refresh_user_entities(user)
            except (HomeAssistantError, SQLAlchemyError):
                logger.exception(f"Не удалось обновить сущности пользователя {username}")
                await self.db.rollback()
                continue
            refreshed += user_refreshed
            failed += user_failed

        return refreshed, failed

    @staticmethod
    def _apply_state(entity: Entity, state: EntityState) -> None:
        entity.state = state.state
        entity.attributes = JSONValue(state.attributes)
        entity.last_changed = state.last_changed
        entity.last_updated = state.last_updated
