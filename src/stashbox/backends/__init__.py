"""Cache backends.

- :class:`JsonFileCache`: one JSON envelope file per key with stored expiry
- :class:`RawFileCache`: encoded value files aged by modification time
- :class:`RedisCache`: namespaced keys in a Redis server
"""

from stashbox.backends.base import BaseCache, CacheBackend, ConnectedBackend, ExpiringCache
from stashbox.backends.json_cache import JsonFileCache
from stashbox.backends.raw_cache import RawFileCache
from stashbox.backends.redis_cache import RedisCache, RedisItemPool, RemoteItem

__all__ = [
    "BaseCache",
    "CacheBackend",
    "ConnectedBackend",
    "ExpiringCache",
    "JsonFileCache",
    "RawFileCache",
    "RedisCache",
    "RedisItemPool",
    "RemoteItem",
]
