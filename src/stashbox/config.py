"""Cache configuration management."""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from stashbox.backends import JsonFileCache, RawFileCache, RedisCache
from stashbox.backends.base import BaseCache
from stashbox.backends.redis_cache import DEFAULT_REDIS_URL
from stashbox.codecs import ProcessMode
from stashbox.expiration import DEFAULT_FILE_TTL, DEFAULT_REMOTE_TTL

BACKENDS = ("json", "raw", "redis")

DEFAULT_CONFIG_PATH = Path.home() / ".stashbox" / "config.json"


@dataclass
class CacheConfig:
    """Configuration for a cache instance.

    Attributes:
        backend: Backend name ('json', 'raw' or 'redis')
        enabled: Whether the cache starts enabled
        cache_dir: Root directory for file backends
        default_ttl: Default time-to-live in seconds (None = backend default)
        process: Value-processing mode for the raw backend
        max_life: Maximum entry age in seconds for the raw backend (0 = no aging)
        use_lock: Hold a per-key file lock while writing
        lock_timeout: Seconds to wait for the write lock
        file_mode: Permission bits applied to committed entry files
        namespace: Key prefix for the redis backend
        redis_url: Connection URL for the redis backend
    """

    backend: str = "json"
    enabled: bool = False
    cache_dir: Path = Path.home() / ".stashbox" / "cache"
    default_ttl: Optional[int] = None
    process: str = "NONE"
    max_life: int = 0
    use_lock: bool = True
    lock_timeout: float = 30
    file_mode: int = 0o666
    namespace: str = "stashbox"
    redis_url: str = DEFAULT_REDIS_URL

    def __post_init__(self):
        """Normalize paths and validate the backend and process names."""
        self.cache_dir = Path(self.cache_dir).expanduser()
        self.backend = self.backend.lower()
        if self.backend not in BACKENDS:
            raise ValueError(
                f"Unknown backend: '{self.backend}'. Available backends: {', '.join(BACKENDS)}"
            )
        self.process = ProcessMode.parse(self.process).name

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "CacheConfig":
        """Load configuration from a JSON file.

        Args:
            config_path: Path to config file. If None, uses ~/.stashbox/config.json

        Returns:
            CacheConfig instance (defaults if the file does not exist)
        """
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH
        config_path = Path(config_path)

        if not config_path.exists():
            return cls()

        with open(config_path, "r") as f:
            data = json.load(f)

        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "enabled": self.enabled,
            "cache_dir": str(self.cache_dir),
            "default_ttl": self.default_ttl,
            "process": self.process,
            "max_life": self.max_life,
            "use_lock": self.use_lock,
            "lock_timeout": self.lock_timeout,
            "file_mode": self.file_mode,
            "namespace": self.namespace,
            "redis_url": self.redis_url,
        }

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save configuration to a JSON file."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_env(cls) -> "CacheConfig":
        """Create configuration from environment variables.

        Environment variables:
            STASHBOX_BACKEND: Backend name
            STASHBOX_ENABLED: Enable caching (true/false)
            STASHBOX_CACHE_DIR: Cache directory path
            STASHBOX_TTL: Default TTL in seconds
            STASHBOX_PROCESS: Raw backend process mode
            STASHBOX_MAX_LIFE: Raw backend max entry age in seconds
            STASHBOX_NAMESPACE: Redis key namespace
            STASHBOX_REDIS_URL: Redis connection URL

        Returns:
            CacheConfig instance
        """
        kwargs: Dict[str, Any] = {}

        if os.getenv("STASHBOX_BACKEND"):
            kwargs["backend"] = os.getenv("STASHBOX_BACKEND")

        if os.getenv("STASHBOX_ENABLED"):
            kwargs["enabled"] = os.getenv("STASHBOX_ENABLED", "").lower() == "true"

        if os.getenv("STASHBOX_CACHE_DIR"):
            kwargs["cache_dir"] = Path(os.getenv("STASHBOX_CACHE_DIR"))

        if os.getenv("STASHBOX_TTL"):
            kwargs["default_ttl"] = int(os.getenv("STASHBOX_TTL"))

        if os.getenv("STASHBOX_PROCESS"):
            kwargs["process"] = os.getenv("STASHBOX_PROCESS")

        if os.getenv("STASHBOX_MAX_LIFE"):
            kwargs["max_life"] = int(os.getenv("STASHBOX_MAX_LIFE"))

        if os.getenv("STASHBOX_NAMESPACE"):
            kwargs["namespace"] = os.getenv("STASHBOX_NAMESPACE")

        if os.getenv("STASHBOX_REDIS_URL"):
            kwargs["redis_url"] = os.getenv("STASHBOX_REDIS_URL")

        return cls(**kwargs)


# Global cache configuration instance
_global_config: Optional[CacheConfig] = None


def get_global_config() -> CacheConfig:
    """Get global cache configuration.

    Loads ~/.stashbox/config.json if present, otherwise reads the
    environment.
    """
    global _global_config
    if _global_config is None:
        if DEFAULT_CONFIG_PATH.exists():
            _global_config = CacheConfig.load()
        else:
            _global_config = CacheConfig.from_env()
    return _global_config


def set_global_config(config: Optional[CacheConfig]) -> None:
    """Set global cache configuration (None resets it)."""
    global _global_config
    _global_config = config


def create_cache(config: Optional[CacheConfig] = None, **kwargs: Any) -> BaseCache:
    """Build the backend described by a configuration.

    Args:
        config: Cache configuration (uses global if None)
        **kwargs: Extra backend arguments (e.g. ``on_error``, ``clock``)

    Returns:
        JsonFileCache, RawFileCache or RedisCache
    """
    config = config or get_global_config()

    if config.backend == "redis":
        cache = RedisCache(
            config.namespace,
            url=config.redis_url,
            default_ttl=config.default_ttl if config.default_ttl is not None else DEFAULT_REMOTE_TTL,
            **kwargs,
        )
        return cache if config.enabled else cache.disable()

    if config.backend == "raw":
        return RawFileCache(
            config.cache_dir,
            process=config.process,
            max_life=config.max_life,
            enabled=config.enabled,
            use_lock=config.use_lock,
            lock_timeout=config.lock_timeout,
            file_mode=config.file_mode,
            **kwargs,
        )

    return JsonFileCache(
        config.cache_dir,
        default_ttl=config.default_ttl if config.default_ttl is not None else DEFAULT_FILE_TTL,
        enabled=config.enabled,
        use_lock=config.use_lock,
        lock_timeout=config.lock_timeout,
        file_mode=config.file_mode,
        **kwargs,
    )
