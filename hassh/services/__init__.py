"""
Бизнес-логика приложения
"""

from .entity_service import EntityService
from .share_link_service import ShareLinkService
from .shared_entity_service import SharedEntityService
from .user_service import UserService

__all__ = ["EntityService", "ShareLinkService", "SharedEntityService", "UserService"]
