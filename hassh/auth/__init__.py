"""
Аутентификация и авторизация
"""

from .dependencies import (
    get_current_active_user,
    get_current_admin_user,
    get_current_user,
)
from .service import AuthService

__all__ = [
    "AuthService",
    "get_current_user",
    "get_current_active_user",
    "get_current_admin_user",
]
