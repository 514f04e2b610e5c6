import json
from typing import Optional, Any

import redis
import structlog

from ..config import settings

logger = structlog.get_logger()


class Cache:
    """Redis-backed JSON cache.

    Entries expire after ``ttl`` seconds. Every key lives under ``namespace``
    so ``clear`` only drops this service's entries. Redis being down never
    fails a request: reads miss, writes report ``False``.
    """

    def __init__(self, client: redis.Redis, ttl: int = 60, namespace: str = "progress"):
        self.client = client
        self.ttl = ttl
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> Optional[Any]:
        try:
            value = self.client.get(self._key(key))
            if value:
                return json.loads(value)
        except redis.RedisError as e:
            logger.warning("cache_unavailable", op="get", key=key, error=str(e))
        return None

    def set(self, key: str, value: Any, ttl: int = None) -> bool:
        try:
            self.client.setex(self._key(key), ttl or self.ttl, json.dumps(value, ensure_ascii=False))
            return True
        except redis.RedisError as e:
            logger.warning("cache_unavailable", op="set", key=key, error=str(e))
            return False

    def delete(self, key: str) -> bool:
        try:
            self.client.delete(self._key(key))
            return True
        except redis.RedisError as e:
            logger.warning("cache_unavailable", op="delete", key=key, error=str(e))
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Удалить все ключи по паттерну"""
        try:
            keys = list(self.client.scan_iter(match=self._key(pattern)))
            if keys:
                return self.client.delete(*keys)
            return 0
        except redis.RedisError as e:
            logger.warning("cache_unavailable", op="delete_pattern", pattern=pattern, error=str(e))
            return 0

    def clear(self) -> int:
        return self.delete_pattern("*")


def create_cache(url: str = None, ttl: int = None) -> Cache:
    client = redis.from_url(
        url or settings.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True
    )
    return Cache(client, ttl=ttl or settings.CACHE_TTL)
