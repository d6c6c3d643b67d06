"""
API роутеры для пользователей
"""

from uuid import UUID

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from hassh.auth.dependencies import get_current_active_user, get_current_admin_user
from hassh.core.database import get_db
from hassh.models.user import User
from hassh.schemas.user import AdminStatusUpdate, PublicUser, UserCreate, UserCreatedResponse
from hassh.schemas.user import User as UserSchema
from hassh.services.user_service import UserService

router = APIRouter()


@router.get("/directory", response_model=list[PublicUser])
async def users_directory(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> list[PublicUser]:
    """Список пользователей для выбора получателя"""
    users = await UserService(db).list_users()
    return [PublicUser.model_validate(user) for user in users]


@router.get("", response_model=list[UserSchema])
async def list_users(
    current_user: User = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> list[UserSchema]:
    """Все пользователи (только для администратора)"""
    users = await UserService(db).list_users()
    return [UserSchema.model_validate(user) for user in users]


@router.post("", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    current_user: User = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> UserCreatedResponse:
    """Создать пользователя со сгенерированным паролем"""
    user, password = await UserService(db).create_user(user_data)
    return UserCreatedResponse(
        user=UserSchema.model_validate(user), generated_password=password
    )


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: UUID,
    current_user: User = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Удалить пользователя вместе с его данными"""
    await UserService(db).delete_user(user_id)


@router.put("/{user_id}/admin", response_model=UserSchema)
async def set_admin_status(
    user_id: UUID,
    update_data: AdminStatusUpdate | None = Body(None),
    current_user: User = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
) -> UserSchema:
    """Назначить или снять права администратора"""
    is_admin = update_data.is_admin if update_data else None
    user = await UserService(db).set_admin(user_id, is_admin)
    return UserSchema.model_validate(user)
