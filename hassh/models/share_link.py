"""
Модель публичных ссылок на сущности Home Assistant
"""

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, DateTime, ForeignKey, String, Uuid
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hassh.core.constants import PUBLIC_SHARE_PATH
from hassh.core.security import verify_password
from hassh.models.base import BaseModel, as_utc

if TYPE_CHECKING:
    from hassh.models.user import User


class ShareLinkType(str, Enum):
    """Политика истечения ссылки"""

    PERMANENT = "permanent"  # Без ограничений
    COUNTER = "counter"  # Ограничено число обращений
    TIME = "time"  # Ограничено время действия


class AccessMode(str, Enum):
    """Режим доступа по ссылке"""

    READONLY = "readonly"  # Только просмотр состояния
    TRIGGERABLE = "triggerable"  # Просмотр и вызов сервисов


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class ShareLink(BaseModel):
    """Публичная ссылка для доступа к сущностям без аутентификации"""

    __tablename__ = "share_links"

    # Основные поля
    token: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, index=True
    )
    entity_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    link_type: Mapped[ShareLinkType] = mapped_column(
        SAEnum(
            ShareLinkType,
            name="sharelinktype",
            native_enum=False,
            values_callable=_enum_values,
            length=16,
        ),
        nullable=False,
    )

    # Настройки доступа
    access_mode: Mapped[AccessMode] = mapped_column(
        SAEnum(
            AccessMode,
            name="accessmode",
            native_enum=False,
            values_callable=_enum_values,
            length=16,
        ),
        nullable=False,
        default=AccessMode.READONLY,
    )
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Ограничения
    access_count: Mapped[int] = mapped_column(default=0, nullable=False)
    max_access: Mapped[int | None] = mapped_column(nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Статус
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Отношения
    user: Mapped["User"] = relationship("User", back_populates="share_links")

    @property
    def is_expired(self) -> bool:
        """Истекла ли ссылка по времени."""
        if self.link_type != ShareLinkType.TIME:
            return False
        expires_at = as_utc(self.expires_at)
        if expires_at is None:
            return False
        return datetime.now(UTC) > expires_at

    @property
    def is_exhausted(self) -> bool:
        """Исчерпан ли лимит обращений."""
        if self.link_type != ShareLinkType.COUNTER:
            return False
        if self.max_access is None:
            return False
        return self.access_count >= self.max_access

    @property
    def is_accessible(self) -> bool:
        """Проверить, доступна ли ссылка."""
        return self.is_active and not self.is_expired and not self.is_exhausted

    @property
    def is_triggerable(self) -> bool:
        return self.access_mode == AccessMode.TRIGGERABLE

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def check_password(self, password: str | None) -> bool:
        """Проверить пароль ссылки (если он задан)."""
        if not self.password_hash:
            return True
        if not password:
            return False
        return verify_password(password, self.password_hash)

    def includes_entity(self, entity_id: str) -> bool:
        """Входит ли сущность в ссылку."""
        return entity_id in self.entity_ids

    def deactivate(self) -> None:
        """Необратимо деактивировать ссылку."""
        self.is_active = False

    def get_public_url(self, base_url: str = "") -> str:
        """Получить публичную URL для ссылки."""
        return f"{base_url}{PUBLIC_SHARE_PATH}/{self.token}"

    @property
    def public_url(self) -> str:
        return self.get_public_url()

    def to_dict(self) -> dict[str, Any]:
        """Преобразовать в словарь."""
        expires_at = as_utc(self.expires_at)
        return {
            "id": str(self.id),
            "token": self.token,
            "entity_ids": list(self.entity_ids),
            "link_type": self.link_type,
            "access_mode": self.access_mode,
            "has_password": self.has_password,
            "expires_at": expires_at.isoformat() if expires_at else None,
            "max_access": self.max_access,
            "access_count": self.access_count,
            "is_active": self.is_active,
            "is_expired": self.is_expired,
            "is_exhausted": self.is_exhausted,
            "is_accessible": self.is_accessible,
            "user_id": str(self.user_id),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "public_url": self.public_url,
        }
