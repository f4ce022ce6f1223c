"""Warning Cache Implementations

In-memory (single process) and Redis (shared across instances) dedup
stores for premium billing warnings.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional
import redis.asyncio as redis
from src.app.services.clock import Clock, system_clock
from src.app.services.warning_cache import WarningCache

logger = logging.getLogger(__name__)


class InMemoryWarningCache(WarningCache):
    """
    Process-local cache with per-entry expiry

    Expiry is measured against the injected clock; expired entries are
    dropped lazily on every claim.
    """

    def __init__(self, clock: Clock = system_clock):
        self.clock = clock
        self._expires_at: Dict[str, datetime] = {}

    async def claim(self, key: str, ttl_seconds: int) -> bool:
        now = self.clock()
        self._purge(now)
        if key in self._expires_at:
            return False
        self._expires_at[key] = now + timedelta(seconds=ttl_seconds)
        return True

    async def release(self, key: str) -> None:
        self._expires_at.pop(key, None)

    def _purge(self, now: datetime) -> None:
        expired = [key for key, expires_at in self._expires_at.items() if expires_at <= now]
        for key in expired:
            del self._expires_at[key]

    def __len__(self) -> int:
        return len(self._expires_at)


class RedisWarningCache(WarningCache):
    """Redis-backed cache; claim is an atomic SET NX EX"""

    def __init__(self, redis_url: str, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self._client = client
        self._connected = client is not None

    async def connect(self) -> bool:
        """Connect to Redis."""
        try:
            self._client = redis.from_url(self.redis_url, decode_responses=True)
            await self._client.ping()
            self._connected = True
            logger.info("Redis warning cache connected")
            return True
        except Exception as e:
            logger.error(f"Failed to connect to Redis warning cache: {e}")
            self._connected = False
            return False

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._client:
            await self._client.aclose()
            self._connected = False
            logger.info("Redis warning cache disconnected")

    async def _ensure_connected(self) -> None:
        if not self._connected and not await self.connect():
            raise ConnectionError(f"Redis unavailable at {self.redis_url}")

    async def claim(self, key: str, ttl_seconds: int) -> bool:
        await self._ensure_connected()
        acquired = await self._client.set(key, "1", nx=True, ex=ttl_seconds)
        return bool(acquired)

    async def release(self, key: str) -> None:
        await self._ensure_connected()
        await self._client.delete(key)
