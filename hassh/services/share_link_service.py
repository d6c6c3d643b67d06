"""
Сервис для работы с публичными ссылками

Жизненный цикл ссылки: Active -> Inactive(exhausted | expired).
Неактивная ссылка больше никогда не становится активной.
"""

import logging
from typing import Any, NoReturn
from uuid import UUID

from sqlalchemy import desc, func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from hassh.clients.home_assistant import HomeAssistantClientFactory
from hassh.core.security import generate_link_token, get_password_hash
from hassh.exceptions import (
    ConflictError,
    EntityNotInShareError,
    HomeAssistantError,
    HomeAssistantNotConfiguredError,
    ShareLinkExhaustedError,
    ShareLinkExpiredError,
    ShareLinkInactiveError,
    ShareLinkNotFoundError,
    ShareLinkPasswordError,
    ShareLinkReadOnlyError,
    ValidationError,
)
from hassh.logging.access import share_access_logger
from hassh.models.share_link import ShareLink, ShareLinkType
from hassh.models.user import User
from hassh.schemas.entity import EntityState
from hassh.schemas.share_link import (
    ShareLinkCreate,
    ShareLinkResponse,
    ShareLinkStats,
    ShareLinkUpdate,
    check_link_policy,
)
from hassh.validators import HomeAssistantValidator

logger = logging.getLogger(__name__)

# Сколько раз перепроверять ссылку, если счетчик изменили конкурентно
MAX_ACCESS_ATTEMPTS = 5

_STATE_FIELDS = ["is_active", "access_count", "max_access", "expires_at", "link_type"]


class ShareLinkService:
    """Сервис для работы с публичными ссылками."""

    def __init__(
        self, db: AsyncSession, ha_factory: HomeAssistantClientFactory | None = None
    ):
        self.db = db
        self.ha_factory = ha_factory or HomeAssistantClientFactory()

    async def create_share_link(
        self, share_data: ShareLinkCreate, user_id: UUID
    ) -> ShareLink:
        """Создать новую публичную ссылку."""
        token = generate_link_token()
        while await self._token_exists(token):
            token = generate_link_token()

        link_type = share_data.link_type
        share_link = ShareLink(
            token=token,
            entity_ids=list(share_data.entity_ids),
            link_type=link_type,
            access_mode=share_data.access_mode,
            max_access=(
                share_data.max_access if link_type == ShareLinkType.COUNTER else None
            ),
            expires_at=(
                share_data.expires_at if link_type == ShareLinkType.TIME else None
            ),
            password_hash=(
                get_password_hash(share_data.password) if share_data.password else None
            ),
            access_count=0,
            is_active=True,
            user_id=user_id,
        )

        self.db.add(share_link)
        await self.db.commit()
        await self.db.refresh(share_link)

        share_access_logger.log_link_created(
            share_link.id, user_id, link_type.value, len(share_link.entity_ids)
        )
        return share_link

    async def get_share_link_by_token(self, token: str) -> ShareLink | None:
        """Получить ссылку по токену."""
        query = select(ShareLink).where(ShareLink.token == token)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_share_link(self, link_id: UUID, user_id: UUID) -> ShareLink:
        """Получить ссылку владельца по ID."""
        query = select(ShareLink).where(
            ShareLink.id == link_id, ShareLink.user_id == user_id
        )
        result = await self.db.execute(query)
        share_link = result.scalar_one_or_none()

        if not share_link:
            raise ShareLinkNotFoundError(str(link_id))

        return share_link

    async def get_user_share_links(
        self,
        user_id: UUID,
        link_type: ShareLinkType | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ShareLink]:
        """Получить ссылки, созданные пользователем (новые первыми)."""
        query = select(ShareLink).where(ShareLink.user_id == user_id)

        if link_type:
            query = query.where(ShareLink.link_type == link_type)

        query = (
            query.order_by(desc(ShareLink.created_at), desc(ShareLink.id))
            .limit(limit)
            .offset(offset)
        )

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_share_link(
        self, link_id: UUID, user_id: UUID, update_data: ShareLinkUpdate
    ) -> ShareLink:
        """
        Обновить публичную ссылку.

        Итоговая ссылка должна удовлетворять тем же правилам, что и при
        создании. Счетчик обращений и активность не меняются.
        """
        share_link = await self.get_share_link(link_id, user_id)
        changes = update_data.model_dump(exclude_unset=True)

        if "entity_ids" in changes and not changes["entity_ids"]:
            raise ValidationError("Нужно выбрать хотя бы одну сущность", "entity_ids")

        link_type = changes.get("link_type") or share_link.link_type
        max_access = changes.get("max_access", share_link.max_access)
        expires_at = changes.get("expires_at", share_link.expires_at)

        error = check_link_policy(link_type, max_access, expires_at)
        if error:
            message, field = error
            raise ValidationError(message, field)

        if changes.get("entity_ids"):
            share_link.entity_ids = list(changes["entity_ids"])
        if changes.get("access_mode"):
            share_link.access_mode = changes["access_mode"]
        share_link.link_type = link_type
        share_link.max_access = max_access if link_type == ShareLinkType.COUNTER else None
        share_link.expires_at = expires_at if link_type == ShareLinkType.TIME else None

        # Явный null снимает пароль
        if "password" in changes:
            password = changes["password"]
            share_link.password_hash = get_password_hash(password) if password else None

        await self.db.commit()
        await self.db.refresh(share_link)

        return share_link

    async def delete_share_link(self, link_id: UUID, user_id: UUID) -> None:
        """Удалить публичную ссылку."""
        share_link = await self.get_share_link(link_id, user_id)
        await self.db.delete(share_link)
        await self.db.commit()

    async def resolve(
        self, token: str, password: str | None = None
    ) -> tuple[ShareLink, list[EntityState]]:
        """
        Получить сущности по публичной ссылке.

        Проверки выполняются строго по порядку: наличие, активность,
        лимит обращений, срок действия, пароль. Затем счетчик атомарно
        увеличивается и только после этого запрашиваются состояния у хаба.

        Returns:
            tuple[ShareLink, list[EntityState]]: Ссылка и полученные состояния

        Raises:
            ShareLinkNotFoundError: Ссылка не найдена
            ShareLinkForbiddenError: Ссылка неактивна, исчерпана или истекла
            ShareLinkPasswordError: Неверный пароль
        """
        share_link = await self._get_public_link(token)

        for attempt in range(1, MAX_ACCESS_ATTEMPTS + 1):
            await self._check_access(share_link, password)

            if await self._increment_access_count(share_link):
                break

            # Другой запрос успел изменить ссылку: перечитываем и проверяем заново
            share_access_logger.log_race_retry(share_link.id, attempt)
            await self.db.refresh(share_link, attribute_names=_STATE_FIELDS)
        else:
            raise ConflictError("Ссылка изменяется конкурентно, повторите запрос")

        await self.db.commit()
        await self.db.refresh(share_link, attribute_names=_STATE_FIELDS)

        entities = await self._fetch_entities(share_link)
        share_access_logger.log_access_granted(
            share_link.id,
            share_link.access_count,
            len(entities),
            len(share_link.entity_ids),
        )
        return share_link, entities

    async def trigger(
        self,
        token: str,
        entity_id: str,
        service: str,
        data: dict[str, Any] | None = None,
        password: str | None = None,
    ) -> list[EntityState]:
        """
        Вызвать сервис для сущности по публичной ссылке.

        Вызов не расходует обращения, но проходит те же проверки
        активности, лимита, срока и пароля, что и чтение.

        Returns:
            list[EntityState]: Состояния, измененные вызовом
        """
        share_link = await self._get_public_link(token)
        await self._check_access(share_link, password)

        if not share_link.is_triggerable:
            self._deny(token, ShareLinkReadOnlyError())
        if not share_link.includes_entity(entity_id):
            self._deny(token, EntityNotInShareError())

        domain, _ = HomeAssistantValidator.split_entity_id(entity_id)
        service = HomeAssistantValidator.validate_service_name(service)
        payload = {**(data or {}), "entity_id": entity_id}

        owner = await self.db.get(User, share_link.user_id)
        try:
            async with self.ha_factory.for_user(owner) as client:
                changed = await client.call_service(domain, service, payload)
        except (HomeAssistantError, HomeAssistantNotConfiguredError):
            share_access_logger.log_trigger(share_link.id, entity_id, service, False)
            raise

        share_access_logger.log_trigger(share_link.id, entity_id, service, True)
        return changed

    async def get_share_stats(self, user_id: UUID) -> ShareLinkStats:
        """Получить статистику ссылок пользователя."""
        total_query = select(func.count(ShareLink.id)).where(
            ShareLink.user_id == user_id
        )
        total_result = await self.db.execute(total_query)
        total_links = total_result.scalar() or 0

        active_query = select(func.count(ShareLink.id)).where(
            ShareLink.user_id == user_id,
            ShareLink.is_active.is_(True),
        )
        active_result = await self.db.execute(active_query)
        active_links = active_result.scalar() or 0

        accesses_query = select(func.sum(ShareLink.access_count)).where(
            ShareLink.user_id == user_id
        )
        accesses_result = await self.db.execute(accesses_query)
        total_accesses = accesses_result.scalar() or 0

        popular_query = (
            select(ShareLink)
            .where(ShareLink.user_id == user_id)
            .order_by(desc(ShareLink.access_count), desc(ShareLink.created_at))
            .limit(5)
        )
        popular_result = await self.db.execute(popular_query)
        most_accessed = popular_result.scalars().all()

        return ShareLinkStats(
            total_links=total_links,
            active_links=active_links,
            inactive_links=total_links - active_links,
            total_accesses=total_accesses,
            most_accessed=[
                ShareLinkResponse.model_validate(link) for link in most_accessed
            ],
        )

    async def _get_public_link(self, token: str) -> ShareLink:
        share_link = await self.get_share_link_by_token(token)
        if not share_link:
            share_access_logger.log_access_denied(token, "not_found")
            raise ShareLinkNotFoundError()
        return share_link

    async def _check_access(self, share_link: ShareLink, password: str | None) -> None:
        """Проверки ссылки до любых побочных эффектов, кроме деактивации."""
        if not share_link.is_active:
            self._deny(share_link.token, ShareLinkInactiveError())

        if share_link.is_exhausted:
            await self._deactivate(share_link, ShareLinkExhaustedError.reason)
            self._deny(share_link.token, ShareLinkExhaustedError())

        if share_link.is_expired:
            await self._deactivate(share_link, ShareLinkExpiredError.reason)
            self._deny(share_link.token, ShareLinkExpiredError())

        if not share_link.check_password(password):
            self._deny(share_link.token, ShareLinkPasswordError())

    @staticmethod
    def _deny(token: str, error: Exception) -> NoReturn:
        reason = getattr(error, "details", {}).get("reason", "forbidden")
        share_access_logger.log_access_denied(token, reason)
        raise error

    async def _deactivate(self, share_link: ShareLink, reason: str) -> None:
        """Необратимо деактивировать ссылку и сохранить это сразу."""
        await self.db.execute(
            update(ShareLink)
            .where(ShareLink.id == share_link.id)
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        share_link.deactivate()
        share_access_logger.log_link_deactivated(share_link.id, reason)

    async def _increment_access_count(self, share_link: ShareLink) -> bool:
        """
        Атомарно увеличить счетчик обращений.

        Условие повторяет проверки активности и лимита, поэтому счетчик
        никогда не превышает max_access даже при параллельных запросах.

        Returns:
            bool: False если строка не обновилась (ссылку изменили конкурентно)
        """
        result = await self.db.execute(
            update(ShareLink)
            .where(
                ShareLink.id == share_link.id,
                ShareLink.is_active.is_(True),
                or_(
                    ShareLink.link_type != ShareLinkType.COUNTER,
                    ShareLink.access_count < ShareLink.max_access,
                ),
            )
            .values(access_count=ShareLink.access_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def _fetch_entities(self, share_link: ShareLink) -> list[EntityState]:
        """Состояния сущностей ссылки через учетные данные владельца."""
        owner = await self.db.get(User, share_link.user_id)
        if owner is None or not owner.has_ha_config:
            logger.warning(
                f"У владельца ссылки {share_link.id} не настроен Home Assistant"
            )
            return []

        async with self.ha_factory.for_user(owner) as client:
            return await client.get_states(list(share_link.entity_ids))

    async def _token_exists(self, token: str) -> bool:
        """Проверить, существует ли токен."""
        query = select(func.count(ShareLink.id)).where(ShareLink.token == token)
        result = await self.db.execute(query)
        return (result.scalar() or 0) > 0
