"""
Подключение к Redis для rate limiting

Redis необязателен: без REDIS_URL лимиты считаются в памяти процесса.
"""

import logging

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


async def init_redis(url: str | None) -> Redis | None:
    """
    Создание Redis клиента и проверка соединения

    Args:
        url: URL Redis или None

    Returns:
        Optional[Redis]: Клиент, или None если Redis не настроен или недоступен
    """
    if not url:
        logger.info("REDIS_URL не задан, rate limiting работает в памяти")
        return None

    client: Redis = redis.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=10,
    )
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.warning(f"Redis недоступен, используем лимиты в памяти: {exc}")
        await client.aclose()
        return None

    logger.info("Redis подключен успешно")
    return client


async def close_redis(client: Redis | None) -> None:
    """Закрытие соединения с Redis"""
    if client is not None:
        await client.aclose()
