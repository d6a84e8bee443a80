"""Atomic file store: one file per key under a flat cache root.

Writes go to a uniquely named temp file in the root and are renamed onto the
target path, so readers only ever see a complete old or new entry. Every
public method returns a :class:`~stashbox.result.Result` instead of raising.
"""

import contextlib
import errno
import itertools
import logging
import os
import re
import uuid
from pathlib import Path
from typing import ContextManager, Iterator, List, Optional, Pattern, Tuple, Union

from filelock import FileLock, Timeout

from stashbox.errors import DirectoryError, LockTimeoutError, ReadError, WriteError
from stashbox.result import Err, Ok, Result

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".tmp"
LOCK_DIR_NAME = ".locks"

_temp_counter = itertools.count()


def ensure_root(path: Union[str, Path], mode: int = 0o777) -> Result[Path]:
    """Create a cache root if missing and resolve it to an absolute path.

    Args:
        path: Configured root directory
        mode: Permission bits for newly created directories

    Returns:
        Ok(resolved path) or Err(DirectoryError)
    """
    if not str(path):
        return Err(DirectoryError("Cache directory is not set"))

    root = Path(path).expanduser()
    try:
        root.mkdir(mode=mode, parents=True, exist_ok=True)
    except FileExistsError:
        return Err(DirectoryError(f"Cache path exists and is not a directory: {root}"))
    except OSError as e:
        return Err(DirectoryError(f"Can't create cache directory {root}: {e}"))

    try:
        resolved = root.resolve(strict=True)
    except OSError as e:
        return Err(DirectoryError(f"Can't resolve cache directory {root}: {e}"))

    if not resolved.is_dir():
        return Err(DirectoryError(f"Cache path is not a directory: {resolved}"))
    return Ok(resolved)


def is_temp_file(name: str) -> bool:
    """Check whether a file name belongs to an in-flight (or orphaned) write.

    Sanitized keys never contain ``.``, so the suffix is unambiguous.
    """
    return name.endswith(TEMP_SUFFIX)


def compile_pattern(pattern: Union[None, str, Pattern[str]]) -> Optional[Pattern[str]]:
    if pattern is None or isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern, re.IGNORECASE)


class AtomicFileStore:
    """Crash-consistent persistence of one payload per key.

    Files live directly under ``root`` as ``<key><extension>``. A per-key
    :class:`filelock.FileLock` in ``root/.locks`` is held while the temp file
    is written and renamed into place.

    Attributes:
        root: Resolved cache directory
        extension: File suffix for entries (e.g. ``.json``); may be empty
        use_lock: Whether to take the per-key write lock
        lock_timeout: Seconds to wait for the write lock
        file_mode: Permission bits applied to committed entries

    Examples:
        >>> store = AtomicFileStore(Path("/tmp/cache"), extension=".json")
        >>> store.write("user_42", b'{"expire":1,"value":null}')
        Ok(value=PosixPath('/tmp/cache/user_42.json'))
        >>> store.read("user_42").unwrap()
        b'{"expire":1,"value":null}'
    """

    def __init__(
        self,
        root: Path,
        extension: str = "",
        use_lock: bool = True,
        lock_timeout: float = 30,
        file_mode: int = 0o666,
    ):
        self.root = Path(root)
        self.extension = extension
        self.use_lock = use_lock
        self.lock_timeout = lock_timeout
        self.file_mode = file_mode
        self.lock_dir = self.root / LOCK_DIR_NAME

    def path_for(self, key: str) -> Path:
        """Target path of a sanitized key."""
        return self.root / f"{key}{self.extension}"

    def _temp_path(self, target: Path) -> Path:
        # pid + counter keeps names unique within a host, the random part
        # across hosts sharing the directory
        suffix = f".{os.getpid()}.{next(_temp_counter)}.{uuid.uuid4().hex[:12]}"
        return target.with_name(target.name + suffix + TEMP_SUFFIX)

    def _lock(self, key: str) -> ContextManager:
        if not self.use_lock:
            return contextlib.nullcontext()
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        return FileLock(str(self.lock_dir / f"{key}.lock"), timeout=self.lock_timeout)

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to clean up temp file {path}: {e}")

    def write(self, key: str, payload: bytes) -> Result[Path]:
        """Atomically replace the entry for ``key`` with ``payload``.

        Returns:
            Ok(target path), or Err(WriteError) with the previous entry intact
        """
        if not key:
            return Err(WriteError("Cannot write an entry with an empty key"))
        target = self.path_for(key)
        temp_path = self._temp_path(target)

        try:
            with self._lock(key):
                try:
                    with open(temp_path, "wb") as f:
                        f.write(payload)
                        f.flush()
                        os.fsync(f.fileno())
                except OSError as e:
                    self._discard(temp_path)
                    if e.errno == errno.ENOSPC:
                        return Err(WriteError(f"Disk full while writing {temp_path}"))
                    return Err(WriteError(f"Can't write data in file {temp_path}: {e}"))

                try:
                    os.replace(temp_path, target)
                except OSError as e:
                    self._discard(temp_path)
                    return Err(WriteError(f"Can't commit {temp_path} to {target}: {e}"))
        except Timeout:
            return Err(
                LockTimeoutError(
                    f"Timeout acquiring write lock for {key} "
                    f"after {self.lock_timeout} seconds"
                )
            )
        except OSError as e:
            # Lock directory or lock file could not be created
            return Err(WriteError(f"Can't acquire write lock for {key}: {e}"))

        try:
            os.chmod(target, self.file_mode)
        except OSError as e:
            logger.warning(f"Could not set permissions on {target}: {e}")

        return Ok(target)

    def read(self, key: str) -> Result[Optional[bytes]]:
        """Read the raw bytes of an entry.

        Returns:
            Ok(bytes), Ok(None) if absent, or Err(ReadError)
        """
        if not key:
            return Err(ReadError("Cannot read an entry with an empty key"))
        path = self.path_for(key)
        if not path.is_file():
            return Ok(None)
        try:
            return Ok(path.read_bytes())
        except FileNotFoundError:
            # Removed between the existence check and the read
            return Ok(None)
        except OSError as e:
            return Err(ReadError(f"Can't read cache file {path}: {e}"))

    def mtime(self, key: str) -> Optional[float]:
        """Modification time of an entry, or None if absent."""
        if not key:
            return None
        try:
            return self.path_for(key).stat().st_mtime
        except OSError:
            return None

    def remove(self, key: str) -> Result[bool]:
        """Delete an entry; absent entries are not an error.

        Returns:
            Ok(True) if a file was removed, Ok(False) if none existed
        """
        if not key:
            return Err(WriteError("Cannot delete an entry with an empty key"))
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return Ok(False)
        except OSError as e:
            return Err(WriteError(f"Can't delete cache file {path}: {e}"))
        return Ok(True)

    def iter_files(self, pattern: Union[None, str, Pattern[str]] = None) -> Iterator[Path]:
        """Yield regular files directly under the root, hidden ones included.

        Args:
            pattern: Optional regex searched against each file's stem
        """
        regex = compile_pattern(pattern)
        try:
            entries = list(os.scandir(self.root))
        except FileNotFoundError:
            return
        for entry in entries:
            if not entry.is_file():
                continue
            path = Path(entry.path)
            if regex is not None and not regex.search(path.stem):
                continue
            yield path

    def scan(self) -> List[Tuple[str, Path, os.stat_result]]:
        """List committed entries as ``(key, path, stat)``, skipping temp files."""
        entries = []
        for path in self.iter_files():
            name = path.name
            if is_temp_file(name):
                continue
            if self.extension:
                if not name.endswith(self.extension):
                    continue
                name = name[: -len(self.extension)]
            try:
                entries.append((name, path, path.stat()))
            except FileNotFoundError:
                continue
        return sorted(entries, key=lambda item: item[0])

    def unlink_files(self, paths: List[Path]) -> Result[int]:
        """Delete the given files, continuing past failures.

        Returns:
            Ok(number removed), or Err(WriteError) naming the first failure
        """
        removed = 0
        failure: Optional[str] = None
        for path in paths:
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                failure = failure or f"Can't delete cache file {path}: {e}"
        if failure:
            return Err(WriteError(failure))
        return Ok(removed)

    def clear(self, pattern: Union[None, str, Pattern[str]] = None) -> Result[int]:
        """Delete every regular file under the root (no recursion)."""
        return self.unlink_files(list(self.iter_files(pattern)))
