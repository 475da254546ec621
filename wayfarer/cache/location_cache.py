import threading
import time
from collections import OrderedDict
from typing import Dict, Optional, Protocol, Tuple

import redis

from wayfarer.config import settings
from wayfarer.obs.logger import log_event


class LocationCache(Protocol):
    """Normalized place name -> provider code (IATA or station code)."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, code: str) -> None:
        ...

    def get_cache_stats(self) -> Dict:
        ...


class InMemoryLocationCache:
    """Bounded LRU with optional TTL. Safe to share between threads and tasks."""

    def __init__(self, max_size: int = None, ttl_seconds: Optional[float] = None):
        self.max_size = max_size or settings.LOCATION_CACHE_MAX_SIZE
        self.ttl_seconds = ttl_seconds
        self._store: "OrderedDict[str, Tuple[str, float]]" = OrderedDict()
        self._lock = threading.Lock()
        self.cache_stats = {"hits": 0, "misses": 0, "evictions": 0}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self.cache_stats["misses"] += 1
                return None
            code, expires_at = entry
            if expires_at < time.monotonic():
                del self._store[key]
                self.cache_stats["misses"] += 1
                return None
            self._store.move_to_end(key)
            self.cache_stats["hits"] += 1
            return code

    def set(self, key: str, code: str) -> None:
        expires_at = time.monotonic() + self.ttl_seconds if self.ttl_seconds else float("inf")
        with self._lock:
            self._store[key] = (code, expires_at)
            self._store.move_to_end(key)
            while len(self._store) > self.max_size:
                self._store.popitem(last=False)
                self.cache_stats["evictions"] += 1

    def size(self) -> int:
        with self._lock:
            return len(self._store)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def get_cache_stats(self) -> Dict:
        total = self.cache_stats["hits"] + self.cache_stats["misses"]
        hit_rate = self.cache_stats["hits"] / total * 100 if total else 0
        return {
            "backend": "memory",
            **self.cache_stats,
            "size": self.size(),
            "hit_rate": f"{hit_rate:.1f}%",
        }


class RedisLocationCache:
    """Location codes shared across worker processes via Redis.

    Falls back to an in-process cache when Redis is unreachable, so a cache
    outage costs extra lookups but never fails a journey.
    """

    def __init__(self, namespace: str, redis_url: str = None, ttl_seconds: Optional[int] = None,
                 client: Optional[redis.Redis] = None):
        self.prefix = f"location:{namespace}:"
        self.ttl_seconds = ttl_seconds or settings.LOCATION_CACHE_TTL_SECONDS
        self._fallback = InMemoryLocationCache(ttl_seconds=self.ttl_seconds)
        self.client = client or redis.from_url(redis_url or settings.REDIS_URL, decode_responses=True)

        # Test connection
        try:
            self.client.ping()
        except redis.RedisError:
            self.client = None
            log_event("location_cache_fallback", level="WARNING", namespace=namespace,
                      detail="Redis not available, using in-memory cache")

    def get(self, key: str) -> Optional[str]:
        if self.client is None:
            return self._fallback.get(key)
        try:
            return self.client.get(f"{self.prefix}{key}")
        except redis.RedisError as e:
            log_event("location_cache_error", level="WARNING", op="get", error=str(e))
            return self._fallback.get(key)

    def set(self, key: str, code: str) -> None:
        self._fallback.set(key, code)
        if self.client is None:
            return
        try:
            if self.ttl_seconds:
                self.client.setex(f"{self.prefix}{key}", self.ttl_seconds, code)
            else:
                self.client.set(f"{self.prefix}{key}", code)
        except redis.RedisError as e:
            log_event("location_cache_error", level="WARNING", op="set", error=str(e))

    def get_cache_stats(self) -> Dict:
        # Hit counts live in Redis; only the in-process fallback is counted here
        return {
            **self._fallback.get_cache_stats(),
            "backend": "redis" if self.client is not None else "memory",
            "prefix": self.prefix,
        }


def create_location_cache(namespace: str) -> LocationCache:
    if settings.REDIS_URL:
        return RedisLocationCache(namespace)
    return InMemoryLocationCache(
        max_size=settings.LOCATION_CACHE_MAX_SIZE,
        ttl_seconds=settings.LOCATION_CACHE_TTL_SECONDS,
    )
