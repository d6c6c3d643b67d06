"""
Pydantic схемы для API
"""

from .auth import LoginRequest, LoginResponse, Token
from .entity import Entity, EntityCreate, EntityState
from .share_link import (
    SharedContentResponse,
    ShareLinkCreate,
    ShareLinkResponse,
    ShareLinkUpdate,
)
from .shared_entity import SharedEntity, SharedEntityCreate
from .user import PublicUser, User, UserCreate

__all__ = [
    "Token",
    "LoginRequest",
    "LoginResponse",
    "User",
    "UserCreate",
    "PublicUser",
    "Entity",
    "EntityCreate",
    "EntityState",
    "ShareLinkCreate",
    "ShareLinkUpdate",
    "ShareLinkResponse",
    "SharedContentResponse",
    "SharedEntity",
    "SharedEntityCreate",
]
