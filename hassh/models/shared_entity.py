"""
Модель передачи отслеживаемой сущности другому пользователю
"""

import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hassh.models.base import BaseModel
from hassh.models.share_link import AccessMode

if TYPE_CHECKING:
    from hassh.models.user import User


class SharedEntity(BaseModel):
    """Сущность, которой владелец поделился с другим пользователем"""

    __tablename__ = "shared_entities"
    __table_args__ = (
        UniqueConstraint(
            "entity_id", "owner_id", "shared_with_id", name="uq_shared_entities_pair"
        ),
    )

    entity_id: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    shared_with_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    access_mode: Mapped[AccessMode] = mapped_column(
        SAEnum(
            AccessMode,
            name="accessmode",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
            length=16,
        ),
        nullable=False,
        default=AccessMode.READONLY,
    )

    # Отношения
    owner: Mapped["User"] = relationship(
        "User", foreign_keys=[owner_id], back_populates="owned_entity_shares"
    )
    shared_with: Mapped["User"] = relationship(
        "User", foreign_keys=[shared_with_id], back_populates="received_entity_shares"
    )

    def to_dict(self) -> dict[str, Any]:
        """Преобразовать в словарь."""
        return {
            "id": str(self.id),
            "entity_id": self.entity_id,
            "owner_id": str(self.owner_id),
            "shared_with_id": str(self.shared_with_id),
            "access_mode": self.access_mode,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
