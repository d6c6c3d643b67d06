"""
Сервис передачи отслеживаемых сущностей другим пользователям
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hassh.exceptions import (
    EntityNotFoundError,
    NotFoundError,
    UserNotFoundError,
    ValidationError,
)
from hassh.models.entity import Entity
from hassh.models.shared_entity import SharedEntity
from hassh.models.user import User
from hassh.schemas.shared_entity import SharedEntityCreate


class SharedEntityService:
    """Сервис передачи сущностей"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def share(
        self, owner_id: UUID, share_data: SharedEntityCreate
    ) -> tuple[SharedEntity, bool]:
        """
        Поделиться сущностью с пользователем

        Повторная передача той же сущности тому же пользователю
        обновляет режим доступа.

        Returns:
            Tuple[SharedEntity, bool]: Запись и признак того, что она создана
        """
        if share_data.shared_with_id == owner_id:
            raise ValidationError("Нельзя поделиться сущностью с собой", "shared_with_id")

        if await self.db.get(User, share_data.shared_with_id) is None:
            raise UserNotFoundError(str(share_data.shared_with_id))

        owned = await self.db.execute(
            select(Entity.id).where(
                Entity.entity_id == share_data.entity_id, Entity.user_id == owner_id
            )
        )
        if owned.scalar_one_or_none() is None:
            raise EntityNotFoundError(share_data.entity_id)

        existing = await self.db.execute(
            select(SharedEntity).where(
                SharedEntity.entity_id == share_data.entity_id,
                SharedEntity.owner_id == owner_id,
                SharedEntity.shared_with_id == share_data.shared_with_id,
            )
        )
        shared = existing.scalar_one_or_none()
        created = shared is None

        if created:
            shared = SharedEntity(
                entity_id=share_data.entity_id,
                owner_id=owner_id,
                shared_with_id=share_data.shared_with_id,
                access_mode=share_data.access_mode,
            )
            self.db.add(shared)
        else:
            shared.access_mode = share_data.access_mode

        await self.db.commit()
        return await self._load(shared.id), created

    async def shared_with_me(self, user_id: UUID) -> list[SharedEntity]:
        """Сущности, которыми поделились с пользователем"""
        return await self._list(SharedEntity.shared_with_id == user_id)

    async def my_shares(self, user_id: UUID) -> list[SharedEntity]:
        """Сущности, которыми поделился пользователь"""
        return await self._list(SharedEntity.owner_id == user_id)

    async def unshare(self, share_id: UUID, owner_id: UUID) -> None:
        """Отозвать доступ (только владелец)"""
        result = await self.db.execute(
            select(SharedEntity).where(
                SharedEntity.id == share_id, SharedEntity.owner_id == owner_id
            )
        )
        shared = result.scalar_one_or_none()
        if shared is None:
            raise NotFoundError("Переданная сущность", str(share_id))

        await self.db.delete(shared)
        await self.db.commit()

    async def _list(self, condition) -> list[SharedEntity]:
        result = await self.db.execute(
            select(SharedEntity)
            .options(
                selectinload(SharedEntity.owner),
                selectinload(SharedEntity.shared_with),
            )
            .where(condition)
            .order_by(SharedEntity.created_at.desc())
        )
        return list(result.scalars().all())

    async def _load(self, share_id: UUID) -> SharedEntity:
        result = await self.db.execute(
            select(SharedEntity)
            .options(
                selectinload(SharedEntity.owner),
                selectinload(SharedEntity.shared_with),
            )
            .where(SharedEntity.id == share_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()
