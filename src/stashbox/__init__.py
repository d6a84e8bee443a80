"""stashbox: pluggable key-value caches with per-entry TTL.

File backends persist one entry per key with atomic writes; a Redis
backend shares the same get/set/delete/clear contract. Cache operations
never raise: failures are recorded on the cache instance.
"""

__version__ = "0.1.0"

from stashbox.backends import (
    CacheBackend,
    ConnectedBackend,
    JsonFileCache,
    RawFileCache,
    RedisCache,
)
from stashbox.codecs import ProcessMode
from stashbox.config import CacheConfig, create_cache

__all__ = [
    "CacheBackend",
    "CacheConfig",
    "ConnectedBackend",
    "JsonFileCache",
    "ProcessMode",
    "RawFileCache",
    "RedisCache",
    "create_cache",
    "__version__",
]
