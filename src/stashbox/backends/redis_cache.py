"""Remote key-value backend over Redis.

Keys are namespaced as ``<namespace>:<escaped key>`` and expire through
Redis itself (``SET ... EX``), so there is no local eviction.
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import redis
from redis.exceptions import RedisError

from stashbox.backends.base import ErrorObserver, ExpiringCache
from stashbox.codecs import BaseCodec, ProcessMode, get_codec
from stashbox.errors import BackendConnectionError, ReadError, SetError
from stashbox.expiration import DEFAULT_REMOTE_TTL, TTL, coerce_ttl
from stashbox.keys import escape_remote_key
from stashbox.result import try_result

logger = logging.getLogger(__name__)

DEFAULT_REDIS_URL = "redis://localhost:6379/0"

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


@dataclass(frozen=True)
class RemoteItem:
    """Lookup result from the remote store."""

    is_hit: bool
    value: Optional[bytes] = None


class RedisItemPool:
    """Namespaced item operations over a Redis client.

    Redis failures surface as :class:`~stashbox.errors.StashboxError`
    subclasses so callers deal with a single error family.

    Args:
        client: ``redis.Redis``-like client
        namespace: Key prefix; empty means no prefix
    """

    def __init__(self, client: Any, namespace: str = ""):
        self.client = client
        self.namespace = namespace

    @classmethod
    def connect(
        cls,
        url: str,
        namespace: str = "",
        client: Any = None,
        **options: Any,
    ) -> "RedisItemPool":
        """Create a client from ``url`` (unless given) and ping it.

        Raises:
            BackendConnectionError: If the client cannot be created or reached
        """
        try:
            if client is None:
                client = redis.from_url(url, **options)
            client.ping()
        except (RedisError, ValueError) as e:
            raise BackendConnectionError(f"Can't connect to Redis at {url}: {e}") from e
        return cls(client, namespace)

    def name(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    def get_item(self, key: str) -> RemoteItem:
        try:
            raw = self.client.get(self.name(key))
        except RedisError as e:
            raise ReadError(f"Can't read key {key}: {e}") from e
        return RemoteItem(is_hit=raw is not None, value=raw)

    def save(self, key: str, payload: bytes, ttl: Optional[int] = None) -> None:
        try:
            self.client.set(self.name(key), payload, ex=ttl or None)
        except RedisError as e:
            raise SetError(f"Can't save key {key}: {e}") from e

    def delete_item(self, key: str) -> bool:
        try:
            return bool(self.client.delete(self.name(key)))
        except RedisError as e:
            raise SetError(f"Can't delete key {key}: {e}") from e

    def clear(self, batch_size: int = 500) -> int:
        """Delete every key under the namespace (never FLUSHDB)."""
        prefix = _GLOB_SPECIAL.sub(r"\\\1", self.namespace)
        match = f"{prefix}:*" if self.namespace else "*"
        removed = 0
        try:
            batch = []
            for name in self.client.scan_iter(match=match, count=batch_size):
                batch.append(name)
                if len(batch) >= batch_size:
                    removed += self.client.delete(*batch)
                    batch = []
            if batch:
                removed += self.client.delete(*batch)
        except RedisError as e:
            raise SetError(f"Can't clear namespace '{self.namespace}': {e}") from e
        return removed


class RedisCache(ExpiringCache):
    """Cache backed by a Redis server.

    Connects on construction and enables itself when the connection
    succeeds. A failed connection is recorded as
    :class:`~stashbox.errors.BackendConnectionError` and the cache stays
    disabled.

    Args:
        namespace: Key prefix (lowercased)
        url: Redis connection URL
        options: Extra keyword arguments for ``redis.from_url``
        default_ttl: Default time-to-live (seconds or timedelta, 15 minutes)
        codec: Value codec (defaults to JSON)
        client: Pre-built client, used instead of ``url``
        on_error: Observer called with each recorded exception
        clock: Callable returning the current UNIX time

    Examples:
        >>> cache = RedisCache("sessions", "redis://localhost:6379/0")
        >>> cache.is_connected()
        True
        >>> cache.set("user:{42}", {"name": "Ana"}).get("user:{42}")
        {'name': 'Ana'}
    """

    def __init__(
        self,
        namespace: str,
        url: str = DEFAULT_REDIS_URL,
        options: Optional[Dict[str, Any]] = None,
        default_ttl: TTL = DEFAULT_REMOTE_TTL,
        codec: Optional[BaseCodec] = None,
        client: Any = None,
        on_error: Optional[ErrorObserver] = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(default_ttl, on_error=on_error, clock=clock)
        self.namespace = namespace.lower()
        self.url = url
        self.codec = codec or get_codec(ProcessMode.JSON)
        self._pool: Optional[RedisItemPool] = None

        connected = try_result(
            RedisItemPool.connect, url, self.namespace, client=client, **(options or {})
        )
        self._pool = self._unwrap(connected)
        if self._pool is not None:
            logger.info(f"Connected RedisCache namespace '{self.namespace}' to {url}")
            self.enable()

    def is_connected(self) -> bool:
        return self._pool is not None

    def _activate(self) -> bool:
        if self._pool is None:
            self._record(BackendConnectionError(f"Not connected to Redis at {self.url}"))
            return False
        return True

    def _resolve_ttl(self, ttl: Optional[TTL]) -> int:
        return coerce_ttl(ttl) or self.default_ttl

    def get(self, key: str) -> Any:
        """Get a cached value, or None on miss, failure or when disabled."""
        if not self._enabled:
            return None
        key = escape_remote_key(key)

        item = self._unwrap(try_result(self._pool.get_item, key))
        if item is None or not item.is_hit:
            logger.debug(f"Cache miss: {key}")
            return None
        return self._unwrap(try_result(self.codec.decode, item.value))

    def set(self, key: str, value: Any, ttl: Optional[TTL] = None) -> "RedisCache":
        """Store a value with ``ttl`` (None or 0 uses :attr:`default_ttl`)."""
        if not self._enabled:
            return self
        key = escape_remote_key(key)

        seconds = self._unwrap(
            try_result(self._resolve_ttl, ttl, catch=(TypeError, ValueError))
        )
        if seconds is None:
            return self
        payload = self._unwrap(try_result(self.codec.encode, value))
        if payload is None:
            return self

        self._unwrap(try_result(self._pool.save, key, payload, seconds))
        return self

    def delete(self, key: str) -> "RedisCache":
        if not self._enabled:
            return self
        self._unwrap(try_result(self._pool.delete_item, escape_remote_key(key)))
        return self

    def clear(self) -> "RedisCache":
        """Delete every key in this cache's namespace."""
        if not self._enabled:
            return self
        self._unwrap(try_result(self._pool.clear))
        return self

    def stats(self) -> Dict[str, Any]:
        return {
            "backend": "redis",
            "enabled": self._enabled,
            "connected": self.is_connected(),
            "namespace": self.namespace,
            "url": self.url,
            "default_ttl": self.default_ttl,
            "errors": len(self._errors),
        }
