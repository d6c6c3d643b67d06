"""
Middleware для обработки ошибок, rate limiting и логирования запросов
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from hassh.core.config import settings
from hassh.exceptions import (
    BaseAPIException,
    RateLimitError,
    exception_to_http_exception,
    handle_database_error,
)

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """Получение IP адреса клиента"""
    # Проверяем заголовки от прокси
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


def _error_response(exc: BaseAPIException, **kwargs: Any) -> JSONResponse:
    http_exc = exception_to_http_exception(exc)
    return JSONResponse(
        status_code=http_exc.status_code, content=http_exc.detail, **kwargs
    )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware для обработки ошибок"""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Any]
    ) -> JSONResponse | Response:
        try:
            response = await call_next(request)
            return response
        except BaseAPIException as exc:
            logger.warning(
                f"API Exception: {exc.__class__.__name__}: {exc.message}",
                extra={"details": exc.details, "path": request.url.path},
            )
            return _error_response(exc)

        except StarletteHTTPException as exc:
            logger.warning(
                f"HTTP Exception: {exc.status_code} - {exc.detail}",
                extra={"path": request.url.path},
            )
            return JSONResponse(
                status_code=exc.status_code,
                content={"message": exc.detail, "details": {}, "type": "HTTPException"},
            )

        except SQLAlchemyError as exc:
            logger.error(
                f"Database error: {exc.__class__.__name__}: {exc}",
                extra={"path": request.url.path},
                exc_info=True,
            )
            return _error_response(handle_database_error(exc))

        except Exception as exc:
            logger.error(
                f"Unexpected error: {exc.__class__.__name__}: {exc}",
                extra={"path": request.url.path},
                exc_info=True,
            )

            # В режиме отладки показываем детальную информацию
            if settings.DEBUG:
                return JSONResponse(
                    status_code=500,
                    content={
                        "message": str(exc),
                        "details": {"type": exc.__class__.__name__},
                        "type": "InternalServerError",
                    },
                )
            return JSONResponse(
                status_code=500,
                content={
                    "message": "Внутренняя ошибка сервера",
                    "details": {},
                    "type": "InternalServerError",
                },
            )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware для rate limiting

    Счетчики хранятся в Redis (app.state.redis), а если он не подключен,
    в памяти процесса.
    """

    def __init__(self, app: ASGIApp, limits: dict[str, tuple[int, int]] | None = None):
        super().__init__(app)
        prefix = settings.API_PREFIX
        self.limits = limits or {
            # Эндпоинты: (запросов, окно в секундах)
            f"{prefix}/auth/login": (10, 300),  # 10 запросов за 5 минут
            f"{prefix}/auth/register": (3, 3600),  # 3 запроса за час
            f"{prefix}/shares/public": (60, 60),  # 60 запросов в минуту
            "default": (1000, 3600),  # 1000 запросов за час по умолчанию
        }
        self._memory_limits: dict[str, dict[str, int]] = {}

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Any]
    ) -> JSONResponse | Response:
        client_ip = get_client_ip(request)
        path = request.url.path
        bucket, limit, window = self._get_limit_for_path(path)
        redis_client: Redis | None = getattr(request.app.state, "redis", None)

        if redis_client is not None:
            count = await self._check_redis_limit(
                redis_client, client_ip, bucket, window
            )
        else:
            count = self._check_memory_limit(client_ip, bucket, window)

        if count > limit:
            logger.warning(f"Превышен лимит запросов для {client_ip} на {bucket}")
            return _error_response(
                RateLimitError(limit, window),
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": str(int(time.time()) + window),
                },
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - count))
        response.headers["X-RateLimit-Reset"] = str(int(time.time()) + window)

        return response

    def _get_limit_for_path(self, path: str) -> tuple[str, int, int]:
        """Получение лимитов и ключа счетчика для пути"""
        for pattern, (limit, window) in self.limits.items():
            if pattern != "default" and path.startswith(pattern):
                return pattern, limit, window

        limit, window = self.limits["default"]
        return "default", limit, window

    async def _check_redis_limit(
        self, redis_client: Redis, client_ip: str, bucket: str, window: int
    ) -> int:
        """Счетчик запросов через Redis"""
        key = f"rate_limit:{client_ip}:{bucket}"

        try:
            current = await redis_client.incr(key)
            if current == 1:
                await redis_client.expire(key, window)
            return int(current)
        except RedisError as exc:
            logger.error(f"Redis rate limit error: {exc}")
            # Если Redis недоступен, считаем в памяти
            return self._check_memory_limit(client_ip, bucket, window)

    def _check_memory_limit(self, client_ip: str, bucket: str, window: int) -> int:
        """Счетчик запросов в памяти"""
        key = f"{client_ip}:{bucket}"
        now = int(time.time())
        self._prune_memory_limits(now)

        entry = self._memory_limits.get(key)
        if entry is None or now > entry["reset_time"]:
            entry = {"count": 0, "reset_time": now + window}
            self._memory_limits[key] = entry

        entry["count"] += 1
        return entry["count"]

    def _prune_memory_limits(self, now: int) -> None:
        """Удаление счетчиков с истекшим окном"""
        expired = [
            key
            for key, entry in self._memory_limits.items()
            if now > entry["reset_time"]
        ]
        for key in expired:
            del self._memory_limits[key]


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware для добавления security заголовков"""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Any]
    ) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"

        # Токен публичной ссылки находится в пути и не должен кэшироваться
        if request.url.path.startswith(f"{settings.API_PREFIX}/shares/public"):
            response.headers["Cache-Control"] = "no-store"

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware для логирования запросов"""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Any]
    ) -> Response:
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "process_time": process_time,
                "client_ip": get_client_ip(request),
            },
        )

        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        return response
