"""
Core модули приложения
"""

from .config import settings
from .database import Database, get_db
from .redis import close_redis, init_redis
from .security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
    verify_refresh_token,
    verify_token,
)

__all__ = [
    "settings",
    "Database",
    "get_db",
    "create_access_token",
    "verify_token",
    "verify_password",
    "get_password_hash",
    "create_refresh_token",
    "verify_refresh_token",
    "init_redis",
    "close_redis",
]
