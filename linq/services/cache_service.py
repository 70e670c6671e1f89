"""
Redis Cache Service for carts and user cart lists.

Values are stored as JSON strings under plain keys. Unlike a best-effort
read-through cache, this store is the only home of in-progress carts, so
failures are raised to the caller instead of being swallowed:

- a missing key raises ``CacheKeyNotFound`` (an expected outcome)
- anything else raises ``CacheError``
"""

import logging
import json
from typing import Any, Optional, Callable

import redis
from redis.exceptions import RedisError, WatchError
from flask import Flask

from linq.blueprints.metrics import cart_write_conflicts_total, cart_write_retries_total
from linq.exceptions import CacheError, CacheKeyNotFound, CacheConflictError

logger = logging.getLogger(__name__)


class CacheService:
    """
    Redis-backed key/value store with JSON values.

    Keys are used verbatim (``cart:{saleId}``, ``usercarts:{userId}``).
    """

    def __init__(self, app: Optional[Flask] = None, client: Optional[redis.Redis] = None):
        """Initialize cache service."""
        self.client: Optional[redis.Redis] = client
        self._default_ttl: int = 0
        self._cas_retries: int = 5

        if app:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Initialize Redis client from Flask app config."""
        self._default_ttl = app.config.get('CART_TTL', 0)
        self._cas_retries = max(app.config.get('CACHE_CAS_RETRIES', 5), 1)

        if self.client is not None:
            return

        redis_url = app.config.get('REDIS_URL', 'redis://redis:6379/0')
        timeout = app.config.get('REDIS_SOCKET_TIMEOUT', 3)
        self.client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=timeout,
            socket_timeout=timeout,
            socket_keepalive=True,
            max_connections=50,
            retry_on_timeout=True,
            health_check_interval=30
        )
        if app.config.get('TESTING'):
            return
        try:
            self.client.ping()
            logger.info(f"[CACHE] ✓ Redis connected: {redis_url}")
        except RedisError as e:
            # The pool reconnects on demand; requests will surface the failure
            logger.warning(f"[CACHE] ⚠ Redis not reachable at startup: {e}")

    def is_available(self) -> bool:
        """Check if cache is available and healthy."""
        if not self.client:
            return False
        try:
            self.client.ping()
            return True
        except RedisError:
            return False

    def _serialize(self, key: str, value: Any) -> str:
        try:
            return json.dumps(value)
        except (TypeError, ValueError) as e:
            raise CacheError(f"cannot serialize value for {key}: {e}") from e

    def _deserialize(self, key: str, raw: str) -> Any:
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CacheError(f"corrupt value at {key}: {e}") from e

    def _write(self, target, key: str, serialized: str, ttl: Optional[int]) -> None:
        if ttl is None:
            ttl = self._default_ttl
        if ttl and ttl > 0:
            target.setex(key, ttl, serialized)
        else:
            target.set(key, serialized)

    def get(self, key: str) -> Any:
        """Get the decoded value at ``key``; raise CacheKeyNotFound when absent."""
        try:
            raw = self.client.get(key)
        except RedisError as e:
            logger.error(f"[CACHE] ✗ Get error on {key}: {e}")
            raise CacheError(f"cache read failed for {key}: {e}") from e
        if raw is None:
            raise CacheKeyNotFound(key)
        return self._deserialize(key, raw)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Set value, replacing whatever was stored at ``key``."""
        serialized = self._serialize(key, value)
        try:
            self._write(self.client, key, serialized, ttl)
        except RedisError as e:
            logger.error(f"[CACHE] ✗ Set error on {key}: {e}")
            raise CacheError(f"cache write failed for {key}: {e}") from e

    def delete(self, key: str) -> bool:
        """Delete key; return whether it existed."""
        try:
            return bool(self.client.delete(key))
        except RedisError as e:
            logger.error(f"[CACHE] ✗ Delete error on {key}: {e}")
            raise CacheError(f"cache delete failed for {key}: {e}") from e

    def update(self, key: str, mutate: Callable[[Callable[[], Any]], Any], ttl: Optional[int] = None) -> Any:
        """
        Read-modify-write ``key`` with optimistic locking (WATCH/MULTI/EXEC).

        ``mutate`` receives a ``read`` callable returning the current decoded
        value (or raising CacheKeyNotFound) and returns the value to store.
        If another client writes the key in between, the whole cycle is
        retried; after ``CACHE_CAS_RETRIES`` losses CacheConflictError is
        raised. Returns the stored value.
        """
        for attempt in range(1, self._cas_retries + 1):
            try:
                with self.client.pipeline() as pipe:
                    pipe.watch(key)
                    raw = pipe.get(key)

                    def read():
                        if raw is None:
                            raise CacheKeyNotFound(key)
                        return self._deserialize(key, raw)

                    value = mutate(read)
                    serialized = self._serialize(key, value)
                    pipe.multi()
                    self._write(pipe, key, serialized, ttl)
                    pipe.execute()
                    return value
            except WatchError:
                logger.info(f"[CACHE] Concurrent write on {key}, retry {attempt}/{self._cas_retries}")
                cart_write_retries_total.inc()
            except RedisError as e:
                logger.error(f"[CACHE] ✗ Update error on {key}: {e}")
                raise CacheError(f"cache update failed for {key}: {e}") from e

        cart_write_conflicts_total.inc()
        raise CacheConflictError(key, self._cas_retries)


_cache_service: Optional[CacheService] = None

def init_cache(app: Flask) -> None:
    """Initialize cache service singleton."""
    global _cache_service
    _cache_service = CacheService(app)
    if not hasattr(app, 'extensions'):
        app.extensions = {}
    app.extensions['cache'] = _cache_service

def get_cache() -> CacheService:
    """Get cache service instance."""
    if _cache_service is None:
        raise RuntimeError("Cache not initialized.")
    return _cache_service
