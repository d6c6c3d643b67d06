"""
Базовая модель для всех SQLAlchemy моделей
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Текущее время в UTC"""
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Привести дату к UTC (SQLite возвращает naive datetime)"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Base(DeclarativeBase):
    """Базовый класс для всех моделей"""

    pass


class BaseModel(Base):
    """Базовая модель с общими полями"""

    __abstract__ = True

    __tablename__: str

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        comment="Дата создания",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
        comment="Дата обновления",
    )
