"""
SQLAlchemy модели данных
"""

from .base import Base, BaseModel
from .entity import Entity
from .share_link import AccessMode, ShareLink, ShareLinkType
from .shared_entity import SharedEntity
from .user import User

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "Entity",
    "ShareLink",
    "ShareLinkType",
    "AccessMode",
    "SharedEntity",
]
