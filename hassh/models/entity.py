"""
Модель отслеживаемой сущности Home Assistant
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hassh.core.json_value import JSONValue, JSONValueType
from hassh.models.base import BaseModel, as_utc

if TYPE_CHECKING:
    from hassh.models.user import User


class Entity(BaseModel):
    """Сущность хаба, которую отслеживает пользователь"""

    __tablename__ = "entities"
    __table_args__ = (
        UniqueConstraint("user_id", "entity_id", name="uq_entities_user_entity"),
    )

    entity_id: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True, comment="ID сущности в хабе"
    )
    state: Mapped[str] = mapped_column(
        String(255), default="", nullable=False, comment="Состояние"
    )
    attributes: Mapped[JSONValue] = mapped_column(
        JSONValueType,
        default=lambda: JSONValue({}),
        nullable=False,
        comment="Атрибуты сущности",
    )
    last_changed: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_updated: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Отношения
    user: Mapped["User"] = relationship("User", back_populates="entities")

    @property
    def domain(self) -> str:
        """Домен сущности (light, switch, sensor...)"""
        return self.entity_id.split(".", 1)[0]

    def to_dict(self) -> dict[str, Any]:
        """Преобразовать в словарь."""
        last_changed = as_utc(self.last_changed)
        last_updated = as_utc(self.last_updated)
        return {
            "id": str(self.id),
            "entity_id": self.entity_id,
            "state": self.state,
            "attributes": self.attributes.as_dict(),
            "last_changed": last_changed.isoformat() if last_changed else None,
            "last_updated": last_updated.isoformat() if last_updated else None,
            "user_id": str(self.user_id),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
