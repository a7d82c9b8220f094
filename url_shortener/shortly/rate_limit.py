import logging
from typing import Optional

import redis
import redis.exceptions

from shortly.config import settings

logger = logging.getLogger(__name__)

redis_client = redis.Redis(
    host=settings.REDIS_HOST,
    port=settings.REDIS_PORT,
    db=settings.REDIS_DB,
    decode_responses=True,
    socket_connect_timeout=1
)

RATE_LIMIT_PREFIX = "rate_limit:"

def get_rate_limit_key(client_ip: str) -> str:
    """Формирует ключ счетчика запросов для IP клиента"""
    return f"{RATE_LIMIT_PREFIX}{client_ip}"

def is_limited_path(path: str) -> bool:
    return path.startswith("/api/")

def check_rate_limit(client_ip: str, limit: int = None, window: int = None) -> Optional[bool]:
    """Учитывает запрос в фиксированном окне.

    True - запрос разрешен, False - лимит исчерпан,
    None - Redis недоступен и ограничение пропущено.
    """
    limit = limit or settings.RATE_LIMIT_REQUESTS
    window = window or settings.RATE_LIMIT_WINDOW
    key = get_rate_limit_key(client_ip)

    try:
        current = redis_client.get(key)
        if current and int(current) >= limit:
            return False

        pipe = redis_client.pipeline()
        pipe.incr(key, 1)
        if not current:
            pipe.expire(key, window)
        pipe.execute()
    except redis.exceptions.RedisError as e:
        logger.warning("Redis недоступен, ограничение частоты пропущено: %s", e)
        return None

    return True

def ping() -> bool:
    try:
        return bool(redis_client.ping())
    except redis.exceptions.RedisError:
        return False
