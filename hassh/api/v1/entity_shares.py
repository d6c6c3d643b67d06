"""
API роутеры для передачи сущностей другим пользователям
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from hassh.auth.dependencies import get_current_active_user
from hassh.core.database import get_db
from hassh.models.user import User
from hassh.schemas.shared_entity import SharedEntity, SharedEntityCreate
from hassh.services.shared_entity_service import SharedEntityService

router = APIRouter()


@router.post("", response_model=SharedEntity, status_code=status.HTTP_201_CREATED)
async def share_entity(
    share_data: SharedEntityCreate,
    response: Response,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> SharedEntity:
    """Поделиться сущностью (повторный вызов меняет режим доступа)"""
    shared, created = await SharedEntityService(db).share(current_user.id, share_data)
    if not created:
        response.status_code = status.HTTP_200_OK
    return SharedEntity.model_validate(shared)


@router.get("/shared-with-me", response_model=list[SharedEntity])
async def shared_with_me(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> list[SharedEntity]:
    """Сущности, которыми поделились с текущим пользователем"""
    shares = await SharedEntityService(db).shared_with_me(current_user.id)
    return [SharedEntity.model_validate(share) for share in shares]


@router.get("/mine", response_model=list[SharedEntity])
async def my_shares(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> list[SharedEntity]:
    """Сущности, которыми поделился текущий пользователь"""
    shares = await SharedEntityService(db).my_shares(current_user.id)
    return [SharedEntity.model_validate(share) for share in shares]


@router.delete("/{share_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unshare_entity(
    share_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Отозвать доступ к сущности"""
    await SharedEntityService(db).unshare(share_id, current_user.id)
