"""
Настройка базы данных и SQLAlchemy

Движок и фабрика сессий принадлежат объекту Database, который создается
в lifespan приложения и хранится в app.state. Модульного движка нет.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from hassh.models.base import Base


def _engine_options(url: str, echo: bool) -> dict[str, Any]:
    """Параметры движка в зависимости от диалекта"""
    options: dict[str, Any] = {"echo": echo, "future": True}
    if url.startswith("sqlite"):
        options["connect_args"] = {"timeout": 30}
    else:
        options["pool_pre_ping"] = True
        options["pool_recycle"] = 300
    return options


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Хранилище: асинхронный движок и фабрика сессий"""

    def __init__(
        self, url: str, *, echo: bool = False, engine: AsyncEngine | None = None
    ):
        self.url = url
        self.engine = engine or create_async_engine(url, **_engine_options(url, echo))
        if self.engine.dialect.name == "sqlite":
            event.listen(
                self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys
            )
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_all(self) -> None:
        """Создание всех таблиц"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Закрытие соединений с базой данных"""
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """
        Контекстный менеджер для сессии базы данных

        Yields:
            AsyncSession: Сессия базы данных
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise


async def get_db(request: Request) -> AsyncGenerator[AsyncSession]:
    """
    Получение асинхронной сессии базы данных для запроса

    - Автоматический commit при успехе
    - Rollback при ошибке
    - Гарантированное закрытие сессии

    Yields:
        AsyncSession: Сессия базы данных
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
