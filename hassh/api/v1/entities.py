"""
API роутеры для отслеживаемых сущностей
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from hassh.auth.dependencies import get_current_active_user
from hassh.clients.home_assistant import HomeAssistantClientFactory, get_ha_factory
from hassh.core.database import get_db
from hassh.models.user import User
from hassh.schemas.entity import Entity, EntityCreate, EntityState, RefreshResult
from hassh.services.entity_service import EntityService

router = APIRouter()


@router.get("", response_model=list[Entity])
async def list_entities(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> list[Entity]:
    """Отслеживаемые сущности пользователя"""
    entities = await EntityService(db).list_entities(current_user.id)
    return [Entity.model_validate(entity) for entity in entities]


@router.post("", response_model=Entity, status_code=status.HTTP_201_CREATED)
async def add_entity(
    entity_data: EntityCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    ha_factory: HomeAssistantClientFactory = Depends(get_ha_factory),
) -> Entity:
    """Начать отслеживать сущность хаба"""
    service = EntityService(db, ha_factory)
    entity = await service.add_entity(current_user, entity_data.entity_id)
    return Entity.model_validate(entity)


@router.get("/available", response_model=list[EntityState])
async def list_available_entities(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    ha_factory: HomeAssistantClientFactory = Depends(get_ha_factory),
) -> list[EntityState]:
    """Все сущности хаба пользователя"""
    return await EntityService(db, ha_factory).list_available(current_user)


@router.post("/refresh", response_model=RefreshResult)
async def refresh_entities(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    ha_factory: HomeAssistantClientFactory = Depends(get_ha_factory),
) -> RefreshResult:
    """Обновить состояния отслеживаемых сущностей сейчас"""
    service = EntityService(db, ha_factory)
    refreshed, failed = await service.refresh_user_entities(current_user)
    return RefreshResult(refreshed=refreshed, failed=failed)


@router.delete("/{entity_pk}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entity(
    entity_pk: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Перестать отслеживать сущность"""
    await EntityService(db).delete_entity(entity_pk, current_user.id)
