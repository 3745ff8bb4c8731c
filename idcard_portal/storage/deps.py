from __future__ import annotations

import logging
from typing import Optional

from idcard_portal.core.config import settings
from idcard_portal.storage.base import MemoryStore, Store

logger = logging.getLogger("idcard_portal.storage")

_store: Optional[Store] = None


def _build_store() -> Store:
    backend = settings.store_backend()
    if backend == "memory":
        return MemoryStore()

    if backend == "redis":
        from idcard_portal.core.redis import get_redis
        from idcard_portal.storage.redis_store import RedisStore

        client = get_redis()
        if client is not None:
            return RedisStore(client)
        logger.warning("STORE_BACKEND=redis but Redis is not reachable; using the SQL store")

    from idcard_portal.db.session import SessionLocal
    from idcard_portal.storage.sql import SqlStore

    return SqlStore(SessionLocal)


def get_store() -> Store:
    """Process-wide local record store (FastAPI dependency)."""
    global _store
    if _store is None:
        _store = _build_store()
    return _store
