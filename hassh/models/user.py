"""
Модель пользователя
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hassh.models.base import BaseModel

if TYPE_CHECKING:
    from hassh.models.entity import Entity
    from hassh.models.share_link import ShareLink
    from hassh.models.shared_entity import SharedEntity


class User(BaseModel):
    """Модель пользователя"""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
        comment="Имя пользователя",
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Хешированный пароль",
    )

    is_admin: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Администратор",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Активен ли пользователь",
    )

    require_password_change: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Требуется смена сгенерированного пароля",
    )

    # Учетные данные Home Assistant
    ha_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        comment="URL Home Assistant",
    )

    ha_token: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Long-lived access token Home Assistant",
    )

    # Двухфакторная аутентификация
    otp_secret: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        comment="TOTP секрет",
    )

    otp_enabled: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Включена ли 2FA",
    )

    otp_backup_codes: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
        comment="Хеши резервных кодов",
    )

    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Последний вход в систему",
    )

    # Отношения
    entities: Mapped[list["Entity"]] = relationship(
        "Entity",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    share_links: Mapped[list["ShareLink"]] = relationship(
        "ShareLink",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    owned_entity_shares: Mapped[list["SharedEntity"]] = relationship(
        "SharedEntity",
        foreign_keys="SharedEntity.owner_id",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    received_entity_shares: Mapped[list["SharedEntity"]] = relationship(
        "SharedEntity",
        foreign_keys="SharedEntity.shared_with_id",
        back_populates="shared_with",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(username={self.username}, is_admin={self.is_admin})>"

    @property
    def has_ha_config(self) -> bool:
        """Настроен ли Home Assistant"""
        return bool(self.ha_url and self.ha_token)
