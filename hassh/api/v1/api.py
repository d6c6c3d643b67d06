"""
Основной API роутер v1
"""

from fastapi import APIRouter

from hassh.api.v1 import (
    auth_router,
    entities_router,
    entity_shares_router,
    settings_router,
    share_links_router,
    users_router,
)

api_router = APIRouter()

# Аутентификация
api_router.include_router(
    auth_router,
    prefix="/auth",
    tags=["Аутентификация"],
)

# Настройки
api_router.include_router(
    settings_router,
    prefix="/settings",
    tags=["Настройки"],
)

# Отслеживаемые сущности
api_router.include_router(
    entities_router,
    prefix="/entities",
    tags=["Сущности"],
)

# Публичные ссылки
api_router.include_router(
    share_links_router,
    prefix="/shares",
    tags=["Публичные ссылки"],
)

# Передача сущностей пользователям
api_router.include_router(
    entity_shares_router,
    prefix="/entity-shares",
    tags=["Передача сущностей"],
)

# Пользователи
api_router.include_router(
    users_router,
    prefix="/users",
    tags=["Пользователи"],
)
