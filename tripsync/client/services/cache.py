"""
Caching service for map provider lookups.

Simple memory-based TTL cache. Place details rarely change within a
session, so repeated stop selections reuse the first answer.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional


class CacheService:

    def __init__(self, ttl_seconds: int = 300):
        self.ttl_seconds = ttl_seconds
        self._store: Dict[str, dict] = {}

    async def get(self, key: str) -> Optional[Any]:
        entry = self._store.get(key)
        if not entry:
            return None

        if datetime.now(timezone.utc) > entry["expires_at"]:
            del self._store[key]
            return None

        return entry["data"]

    async def set(self, key: str, data: Any, ttl_seconds: Optional[int] = None):
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self._store[key] = {
            "data": data,
            "expires_at": datetime.now(timezone.utc) + timedelta(seconds=ttl)
        }

    async def clear(self):
        self._store.clear()
