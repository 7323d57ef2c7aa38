# mailtrust/verifier/cache.py
import asyncio
import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from ..schemas import VerificationResult

LOG = logging.getLogger("mailtrust.cache")

DEFAULT_TTL_SECONDS = 15 * 60
DEFAULT_SWEEP_INTERVAL = 60


class VerificationCache:
    """
    In-process TTL cache for verification results.
    Expired entries are dropped lazily on get() and by a sweep task that the
    owner starts and stops with the application lifecycle.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._cache: Dict[str, dict] = {}
        self._ttl = ttl_seconds
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._sweeper: Optional[asyncio.Task] = None

    async def get(self, key: str) -> Optional[Any]:
        entry = self._cache.get(key)
        if not entry:
            return None
        if entry["expiry"] >= self._clock():
            return entry["value"]
        del self._cache[key]
        return None

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        self._cache[key] = {
            "value": value,
            "expiry": self._clock() + (self._ttl if ttl is None else ttl),
        }

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    async def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def sweep(self) -> int:
        """Drop expired entries; return how many were removed."""
        now = self._clock()
        expired = [k for k, entry in self._cache.items() if entry["expiry"] < now]
        for key in expired:
            del self._cache[key]
        return len(expired)

    @property
    def running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start(self) -> None:
        if self.running:
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop())

    async def stop(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            removed = self.sweep()
            if removed:
                LOG.debug("Cache sweep removed %d expired entries", removed)


class RedisVerificationCache:
    """
    Verification cache backed by Redis. Keys expire natively, so there is no
    sweep task; start()/stop() only manage the client connection.
    Redis failures are logged and behave as a miss.
    """

    def __init__(self, client, ttl_seconds: float = DEFAULT_TTL_SECONDS, prefix: str = "mailtrust:"):
        self._r = client
        self._ttl = ttl_seconds
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisVerificationCache":
        import redis.asyncio as redis

        return cls(redis.from_url(url, decode_responses=True), **kwargs)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Optional[VerificationResult]:
        try:
            raw = await self._r.get(self._key(key))
        except Exception as e:
            LOG.warning("Redis cache get failed for %s: %s", key, e)
            return None
        if raw is None:
            return None
        return VerificationResult.model_validate(json.loads(raw))

    async def set(self, key: str, value: VerificationResult, ttl: Optional[float] = None) -> None:
        seconds = int(self._ttl if ttl is None else ttl)
        try:
            await self._r.set(self._key(key), value.model_dump_json(by_alias=True), ex=max(1, seconds))
        except Exception as e:
            LOG.warning("Redis cache set failed for %s: %s", key, e)

    async def delete(self, key: str) -> None:
        try:
            await self._r.delete(self._key(key))
        except Exception as e:
            LOG.warning("Redis cache delete failed for %s: %s", key, e)

    async def clear(self) -> None:
        try:
            keys = [k async for k in self._r.scan_iter(match=f"{self._prefix}*")]
            if keys:
                await self._r.delete(*keys)
        except Exception as e:
            LOG.warning("Redis cache clear failed: %s", e)

    def start(self) -> None:
        pass

    async def stop(self) -> None:
        try:
            await self._r.aclose()
        except Exception as e:
            LOG.debug("Redis client close failed: %s", e)
