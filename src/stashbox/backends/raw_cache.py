"""File backend storing encoded values verbatim, aged by modification time."""

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Pattern, Union

from stashbox.backends.base import BaseCache, ErrorObserver
from stashbox.backends.files import FileStoreMixin
from stashbox.codecs import BaseCodec, PassthroughCodec, ProcessMode, get_codec
from stashbox.expiration import TTL, coerce_ttl, is_stale
from stashbox.keys import clean_raw_key
from stashbox.result import try_result
from stashbox.storage import AtomicFileStore, EntryMemo

logger = logging.getLogger(__name__)


class RawFileCache(FileStoreMixin, BaseCache):
    """Cache whose files hold the codec output only, with no stored expiry.

    Entry age is the file's modification time: an entry is stale once
    ``now > mtime + max_life``. Stale entries are evicted lazily by
    :meth:`get` or in bulk by :meth:`expire`.

    Values already read or written are kept in a per-instance
    :class:`~stashbox.storage.EntryMemo`, so repeated reads of a key do not
    touch the disk. Writes by other processes become visible after
    :meth:`drop`, :meth:`delete` or :meth:`clear`.

    Args:
        path: Cache root; created on :meth:`enable` if missing
        process: Value-processing mode (NONE, JSON_ARRAY, JSON_OBJECT, SERIALIZE)
        max_life: Maximum entry age in seconds; 0 disables aging
        enabled: Enable immediately
        codec: Explicit codec, overriding ``process``
        encoding: In NONE mode, decode payloads to ``str`` with this encoding
        memoize: Keep the per-instance read memo
        use_lock: Hold a per-key file lock while writing
        lock_timeout: Seconds to wait for the write lock
        file_mode: Permission bits for committed entries
        on_error: Observer called with each recorded exception
        clock: Callable returning the current UNIX time

    Examples:
        >>> cache = RawFileCache("/tmp/raw", process="JSON", max_life=60).enable()
        >>> cache.set("report-2024", [1, 2, 3]).get("report-2024")
        [1, 2, 3]
    """

    def __init__(
        self,
        path: Union[str, Path],
        process: Union[str, ProcessMode] = ProcessMode.NONE,
        max_life: TTL = 0,
        enabled: bool = False,
        codec: Optional[BaseCodec] = None,
        encoding: Optional[str] = None,
        memoize: bool = True,
        use_lock: bool = True,
        lock_timeout: float = 30,
        file_mode: int = 0o666,
        on_error: Optional[ErrorObserver] = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(on_error=on_error, clock=clock)
        self.source = path
        self.encoding = encoding
        self.memoize = memoize
        self.use_lock = use_lock
        self.lock_timeout = lock_timeout
        self.file_mode = file_mode
        self.max_life = 0
        self.process = ProcessMode.NONE
        self.codec: BaseCodec = PassthroughCodec(encoding)
        self._memo = EntryMemo()
        self._store: Optional[AtomicFileStore] = None
        self._last_modified: Optional[float] = None

        self.set_max_life(max_life)
        if codec is not None:
            self.codec = codec
            self.process = codec.mode
        else:
            self.set_process(process)

        if enabled:
            self.enable()

    @property
    def last_modified(self) -> Optional[float]:
        """Modification time seen by the last get/set, None after a miss."""
        return self._last_modified

    def _activate(self) -> bool:
        return self._open_store("")

    def set_state(self, state: bool) -> "RawFileCache":
        self._last_modified = None
        return super().set_state(state)

    def set_max_life(self, seconds: TTL = 0) -> "RawFileCache":
        """Set the maximum entry age (chainable); 0 disables aging."""
        try:
            self.max_life = coerce_ttl(seconds) or 0
        except (TypeError, ValueError) as e:
            self._record(e)
        return self

    def set_process(self, process: Union[str, ProcessMode]) -> "RawFileCache":
        """Select the value-processing mode (chainable).

        Unknown modes are recorded and the current mode is kept.
        """
        try:
            mode = ProcessMode.parse(process)
        except ValueError as e:
            self._record(e)
            return self
        if mode is ProcessMode.NONE:
            self.codec = PassthroughCodec(self.encoding)
        else:
            self.codec = get_codec(mode)
        self.process = mode
        self._memo.clear()
        return self

    def get(self, key: str, max_life: Optional[TTL] = None) -> Any:
        """Get a cached value.

        Args:
            key: Cache key
            max_life: Age limit for this call; None uses :attr:`max_life`,
                0 disables the age check

        Returns:
            Decoded value, or None if absent, stale or disabled
        """
        self._last_modified = None
        if not self._enabled:
            return None
        key = clean_raw_key(key)

        memo = self._memo.get(key)
        if memo is not None:
            mtime, payload = memo.mtime, memo.payload
        else:
            payload = self._unwrap(self._store.read(key))
            mtime = self._store.mtime(key) if payload is not None else None
            if payload is None or mtime is None:
                logger.debug(f"Cache miss: {key}")
                return None
            if self.memoize:
                self._memo.put(key, mtime, payload)

        if max_life is None:
            life = self.max_life
        else:
            try:
                life = coerce_ttl(max_life)
            except (TypeError, ValueError) as e:
                self._record(e)
                return None

        if is_stale(mtime, life, self._now()):
            logger.debug(f"Evicting stale entry: {key}")
            self._memo.invalidate(key)
            self._unwrap(self._store.remove(key))
            return None

        self._last_modified = mtime
        return self._unwrap(try_result(self.codec.decode, payload))

    def set(self, key: str, value: Any, ttl: Optional[TTL] = None) -> "RawFileCache":
        """Store a value.

        ``ttl`` is accepted for interface compatibility and ignored: entry
        age is governed by :attr:`max_life`.
        """
        self._last_modified = None
        if not self._enabled:
            return self
        key = clean_raw_key(key)

        payload = self._unwrap(try_result(self.codec.encode, value))
        if payload is None:
            return self

        if self._unwrap(self._store.write(key, payload)) is None:
            return self

        mtime = self._store.mtime(key)
        if mtime is None:
            mtime = self._now()
        self._last_modified = mtime
        if self.memoize:
            self._memo.put(key, mtime, payload)
        else:
            self._memo.invalidate(key)
        return self

    def delete(self, key: str) -> "RawFileCache":
        """Delete the entry file and its memo."""
        self._last_modified = None
        if not self._enabled:
            return self
        key = clean_raw_key(key)
        self._memo.invalidate(key)
        self._unwrap(self._store.remove(key))
        return self

    def drop(self, key: str) -> "RawFileCache":
        """Forget the memo for a key without touching its file."""
        self._last_modified = None
        if not self._enabled:
            return self
        self._memo.invalidate(clean_raw_key(key))
        return self

    def clear(self, pattern: Union[None, str, Pattern[str]] = None) -> "RawFileCache":
        """Delete entry files, optionally only those whose name matches ``pattern``."""
        self._last_modified = None
        if not self._enabled:
            return self
        paths = list(self._store.iter_files(pattern))
        for path in paths:
            self._memo.invalidate(path.name)
        self._unwrap(self._store.unlink_files(paths))
        return self

    def expire(self, pattern: Union[None, str, Pattern[str]] = None) -> "RawFileCache":
        """Delete every entry older than :attr:`max_life`.

        Uses file modification times only; a no-op when ``max_life`` is 0.
        """
        self._last_modified = None
        if not self._enabled or not self.max_life:
            return self
        now = self._now()
        stale = []
        for path in self._store.iter_files(pattern):
            try:
                mtime = path.stat().st_mtime
            except FileNotFoundError:
                continue
            if is_stale(mtime, self.max_life, now):
                self._memo.invalidate(path.name)
                stale.append(path)
        if stale:
            logger.debug(f"Expiring {len(stale)} entries in {self.path}")
        self._unwrap(self._store.unlink_files(stale))
        return self

    def stats(self) -> Dict[str, Any]:
        return {
            "backend": "raw",
            **self._directory_stats(),
            "process": self.process.name,
            "max_life": self.max_life,
            "memoized": len(self._memo),
        }
