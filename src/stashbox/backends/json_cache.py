"""File backend storing one JSON envelope per key."""

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from stashbox.backends.base import ErrorObserver, ExpiringCache
from stashbox.backends.files import FileStoreMixin
from stashbox.codecs import BaseCodec, JsonCodec
from stashbox.errors import ReadError
from stashbox.expiration import DEFAULT_FILE_TTL, TTL, compute_expiry
from stashbox.keys import clean_key
from stashbox.result import try_result
from stashbox.storage import (
    AtomicFileStore,
    CacheEntry,
    decode_envelope,
    encode_envelope,
)

logger = logging.getLogger(__name__)


class JsonFileCache(FileStoreMixin, ExpiringCache):
    """TTL cache persisting ``{"expire": ..., "value": ...}`` files.

    Each key maps to ``<root>/<clean key><extension>``. Writes are atomic
    (temp file + rename), reads evict expired or corrupt entries, and no
    operation raises: failures land in :attr:`errors`.

    Args:
        path: Cache root; created on :meth:`enable` if missing
        default_ttl: Default time-to-live (seconds or timedelta, 7 days)
        enabled: Enable immediately
        codec: Envelope codec (defaults to :class:`JsonCodec`). Pass a
            :class:`~stashbox.codecs.SerializeCodec` to store native
            Python objects instead.
        extension: Entry file suffix (defaults to the codec's extension)
        use_lock: Hold a per-key file lock while writing
        lock_timeout: Seconds to wait for the write lock
        file_mode: Permission bits for committed entries
        on_error: Observer called with each recorded exception
        clock: Callable returning the current UNIX time

    Examples:
        >>> cache = JsonFileCache("/tmp/stash", default_ttl=5).enable()
        >>> cache.set("user:42", {"name": "Ana"}).get("user:42")
        {'name': 'Ana'}
    """

    def __init__(
        self,
        path: Union[str, Path],
        default_ttl: TTL = DEFAULT_FILE_TTL,
        enabled: bool = False,
        codec: Optional[BaseCodec] = None,
        extension: Optional[str] = None,
        use_lock: bool = True,
        lock_timeout: float = 30,
        file_mode: int = 0o666,
        on_error: Optional[ErrorObserver] = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(default_ttl, on_error=on_error, clock=clock)
        self.source = path
        self.codec = codec or JsonCodec()
        self.extension = self.codec.extension if extension is None else extension
        self.use_lock = use_lock
        self.lock_timeout = lock_timeout
        self.file_mode = file_mode
        self._store: Optional[AtomicFileStore] = None

        if enabled:
            self.enable()

    def _activate(self) -> bool:
        return self._open_store(self.extension)

    def _load(self, key: str) -> Optional[CacheEntry]:
        """Read and validate an entry, evicting it if expired or corrupt."""
        payload = self._unwrap(self._store.read(key))
        if payload is None:
            logger.debug(f"Cache miss: {key}")
            return None

        if not payload:
            self._record(ReadError(f"Empty cache file: {self._store.path_for(key)}"))
            self._unwrap(self._store.remove(key))
            return None

        decoded = try_result(decode_envelope, self.codec, key, payload)
        if decoded.is_err():
            error = ReadError(f"Corrupt cache file {self._store.path_for(key)}: {decoded.error}")
            error.__cause__ = decoded.error
            self._record(error)
            self._unwrap(self._store.remove(key))
            return None

        entry = decoded.value
        if entry is None or entry.is_expired(self._now()):
            logger.debug(f"Evicting {'invalid' if entry is None else 'expired'} entry: {key}")
            self._unwrap(self._store.remove(key))
            return None

        logger.debug(f"Cache hit: {key}")
        return entry

    def get(self, key: str) -> Any:
        """Get a cached value, or None if absent, expired or disabled."""
        if not self._enabled:
            return None
        entry = self._load(clean_key(key))
        return entry.value if entry else None

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Get the full entry (value and expiry) for a key."""
        if not self._enabled:
            return None
        return self._load(clean_key(key))

    def set(self, key: str, value: Any, ttl: Optional[TTL] = None) -> "JsonFileCache":
        """Store a value.

        Args:
            key: Cache key
            value: Value representable by the codec
            ttl: Time-to-live override; None or 0 uses :attr:`default_ttl`

        Returns:
            self. On failure the previous entry is left untouched.
        """
        if not self._enabled:
            return self
        key = clean_key(key)

        expires_at = self._unwrap(
            try_result(
                compute_expiry,
                self._now(),
                ttl,
                self.default_ttl,
                catch=(TypeError, ValueError),
            )
        )
        if expires_at is None:
            return self

        payload = self._unwrap(try_result(encode_envelope, self.codec, expires_at, value))
        if payload is None:
            return self

        self._unwrap(self._store.write(key, payload))
        return self

    def delete(self, key: str) -> "JsonFileCache":
        if not self._enabled:
            return self
        self._unwrap(self._store.remove(clean_key(key)))
        return self

    def clear(self) -> "JsonFileCache":
        """Delete every file directly under the cache root."""
        if not self._enabled:
            return self
        self._unwrap(self._store.clear())
        return self

    def stats(self) -> Dict[str, Any]:
        """Summary of the cache directory."""
        return {
            "backend": "json",
            **self._directory_stats(),
            "default_ttl": self.default_ttl,
        }
