"""
Основной файл приложения FastAPI
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hassh.api.v1.api import api_router
from hassh.clients.home_assistant import HomeAssistantClientFactory
from hassh.core import Database, close_redis, init_redis
from hassh.core.config import settings
from hassh.exceptions import (
    BaseAPIException,
    HomeAssistantError,
    ShareLinkPasswordError,
    exception_to_http_exception,
)
from hassh.logging import setup_logging
from hassh.middleware import (
    ErrorHandlingMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from hassh.tasks.entity_refresher import EntityRefresher

logger = logging.getLogger("hassh.main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Управление жизненным циклом приложения"""
    logger.info(f"Запуск {settings.PROJECT_NAME} v{settings.VERSION}")

    # Ресурсы, заранее положенные в app.state (например, в тестах), не пересоздаются
    owns_database = getattr(app.state, "database", None) is None
    if owns_database:
        app.state.database = Database(settings.DATABASE_URL, echo=settings.DEBUG)
    database: Database = app.state.database
    await database.create_all()

    if getattr(app.state, "ha_factory", None) is None:
        app.state.ha_factory = HomeAssistantClientFactory(
            timeout=settings.HA_REQUEST_TIMEOUT,
            default_url=settings.HOME_ASSISTANT_URL,
            default_token=settings.HA_TOKEN,
        )

    app.state.redis = await init_redis(settings.REDIS_URL)

    refresher = EntityRefresher(
        database, app.state.ha_factory, interval=settings.REFRESH_INTERVAL
    )
    app.state.refresher = refresher
    refresher.start()

    logger.info("Приложение успешно запущено")

    yield

    logger.info("Остановка приложения...")
    await refresher.stop()
    await close_redis(app.state.redis)
    if owns_database:
        await database.dispose()
    logger.info("Приложение остановлено")


async def api_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    """Обработчик доменных исключений"""
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__}: {exc.message}")
    http_exc = exception_to_http_exception(exc)
    password_error = isinstance(exc, ShareLinkPasswordError)
    headers = (
        {"WWW-Authenticate": "Bearer"}
        if exc.status_code == 401 and not password_error
        else None
    )
    return JSONResponse(
        status_code=http_exc.status_code, content=http_exc.detail, headers=headers
    )


async def health_check(request: Request) -> dict[str, Any]:
    """
    Проверка здоровья приложения

    Если заданы HOME_ASSISTANT_URL и HA_TOKEN, дополнительно проверяется хаб.
    """
    hub_status = "not_configured"
    client = request.app.state.ha_factory.default()
    if client is not None:
        try:
            async with client:
                await client.check_api()
            hub_status = "ok"
        except HomeAssistantError as exc:
            logger.warning(f"Хаб недоступен при проверке здоровья: {exc.message}")
            hub_status = "unavailable"

    return {
        "status": "healthy",
        "project": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "home_assistant": hub_status,
        "timestamp": datetime.now(UTC).isoformat(),
    }


def create_app() -> FastAPI:
    """Создание FastAPI приложения"""
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Шлюз к Home Assistant с публичными ссылками на сущности",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=f"{settings.API_PREFIX}/redoc",
        lifespan=lifespan,
    )

    # Middleware: добавленный последним выполняется первым
    app.add_middleware(SecurityHeadersMiddleware)
    if settings.RATE_LIMIT_ENABLED:
        app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BaseAPIException, api_exception_handler)
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Сервис"])
    app.include_router(api_router, prefix=settings.API_PREFIX)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "hassh.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info" if not settings.DEBUG else "debug",
    )
