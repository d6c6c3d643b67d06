"""
API v1 модули
"""

from .auth import router as auth_router
from .entities import router as entities_router
from .entity_shares import router as entity_shares_router
from .settings import router as settings_router
from .share_links import router as share_links_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "settings_router",
    "entities_router",
    "share_links_router",
    "entity_shares_router",
    "users_router",
]
