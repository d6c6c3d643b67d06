"""
API эндпоинты для публичных ссылок
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hassh.auth.dependencies import get_current_active_user
from hassh.clients.home_assistant import HomeAssistantClientFactory, get_ha_factory
from hassh.core.config import settings
from hassh.core.constants import SHARE_PASSWORD_HEADER
from hassh.core.database import get_db
from hassh.models.share_link import ShareLink, ShareLinkType
from hassh.models.user import User
from hassh.schemas.entity import EntityState
from hassh.schemas.share_link import (
    SharedContentResponse,
    ShareLinkAccess,
    ShareLinkCreate,
    ShareLinkPublic,
    ShareLinkResponse,
    ShareLinkStats,
    ShareLinkUpdate,
    ShareTriggerRequest,
    ShareTriggerResponse,
)
from hassh.services.share_link_service import ShareLinkService

router = APIRouter()


def _shared_content(
    share_link: ShareLink, entities: list[EntityState]
) -> SharedContentResponse:
    return SharedContentResponse(
        share_link=ShareLinkPublic.model_validate(share_link),
        entities=entities,
        access_mode=share_link.access_mode,
        can_trigger=share_link.is_triggerable,
    )


@router.post("", response_model=ShareLinkResponse, status_code=status.HTTP_201_CREATED)
async def create_share_link(
    share_data: ShareLinkCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> ShareLinkResponse:
    """Создать новую публичную ссылку."""
    service = ShareLinkService(db)
    share_link = await service.create_share_link(share_data, current_user.id)
    return ShareLinkResponse.model_validate(share_link)


@router.get("", response_model=list[ShareLinkResponse])
async def get_user_share_links(
    link_type: ShareLinkType | None = None,
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> list[ShareLinkResponse]:
    """Получить публичные ссылки пользователя."""
    service = ShareLinkService(db)
    share_links = await service.get_user_share_links(
        current_user.id, link_type, limit, offset
    )
    return [ShareLinkResponse.model_validate(link) for link in share_links]


@router.get("/stats", response_model=ShareLinkStats)
async def get_share_stats(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> ShareLinkStats:
    """Получить статистику публичных ссылок."""
    return await ShareLinkService(db).get_share_stats(current_user.id)


@router.get("/{link_id}", response_model=ShareLinkResponse)
async def get_share_link(
    link_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> ShareLinkResponse:
    """Получить информацию о публичной ссылке."""
    share_link = await ShareLinkService(db).get_share_link(link_id, current_user.id)
    return ShareLinkResponse.model_validate(share_link)


@router.put("/{link_id}", response_model=ShareLinkResponse)
async def update_share_link(
    link_id: UUID,
    update_data: ShareLinkUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> ShareLinkResponse:
    """Обновить публичную ссылку."""
    service = ShareLinkService(db)
    share_link = await service.update_share_link(link_id, current_user.id, update_data)
    return ShareLinkResponse.model_validate(share_link)


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_share_link(
    link_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Удалить публичную ссылку."""
    await ShareLinkService(db).delete_share_link(link_id, current_user.id)


@router.get("/public/{token}", response_model=SharedContentResponse)
async def get_public_content(
    token: str,
    password: str | None = None,
    share_password: str | None = Header(None, alias=SHARE_PASSWORD_HEADER),
    db: AsyncSession = Depends(get_db),
    ha_factory: HomeAssistantClientFactory = Depends(get_ha_factory),
) -> SharedContentResponse:
    """Получить сущности по токену (без аутентификации)."""
    service = ShareLinkService(db, ha_factory)
    share_link, entities = await service.resolve(token, share_password or password)
    return _shared_content(share_link, entities)


@router.post("/public/{token}/access", response_model=SharedContentResponse)
async def access_shared_content(
    token: str,
    access_data: ShareLinkAccess,
    db: AsyncSession = Depends(get_db),
    ha_factory: HomeAssistantClientFactory = Depends(get_ha_factory),
) -> SharedContentResponse:
    """Получить сущности по токену с паролем в теле запроса."""
    service = ShareLinkService(db, ha_factory)
    share_link, entities = await service.resolve(token, access_data.password)
    return _shared_content(share_link, entities)


@router.post(
    "/public/{token}/trigger/{entity_id}", response_model=ShareTriggerResponse
)
async def trigger_shared_entity(
    token: str,
    entity_id: str,
    trigger_data: ShareTriggerRequest,
    share_password: str | None = Header(None, alias=SHARE_PASSWORD_HEADER),
    db: AsyncSession = Depends(get_db),
    ha_factory: HomeAssistantClientFactory = Depends(get_ha_factory),
) -> ShareTriggerResponse:
    """Вызвать сервис для сущности по публичной ссылке."""
    service = ShareLinkService(db, ha_factory)
    changed = await service.trigger(
        token,
        entity_id,
        trigger_data.service,
        trigger_data.data,
        trigger_data.password or share_password,
    )
    return ShareTriggerResponse(
        entity_id=entity_id, service=trigger_data.service, changed_states=changed
    )
