from __future__ import annotations

import logging

import redis
from redis import Redis

from idcard_portal.core.errors import StoreUnavailableError

logger = logging.getLogger("idcard_portal.storage.redis")


class RedisStore:
    """Store backed by plain Redis strings (no TTL: slots never expire)."""

    def __init__(self, client: Redis, prefix: str = ""):
        self._r = client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> str | None:
        try:
            v = self._r.get(self._key(key))
        except redis.RedisError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        if v is None:
            return None
        return v.decode("utf-8") if isinstance(v, bytes) else str(v)

    def set(self, key: str, value: str) -> None:
        try:
            self._r.set(self._key(key), str(value))
        except redis.RedisError as exc:
            logger.warning("Redis write failed for %s: %s", key, exc)
            raise StoreUnavailableError(str(exc)) from exc

    def delete(self, key: str) -> None:
        try:
            self._r.delete(self._key(key))
        except redis.RedisError as exc:
            logger.warning("Redis delete failed for %s: %s", key, exc)
            raise StoreUnavailableError(str(exc)) from exc
