"""Shared plumbing for backends persisting to an AtomicFileStore."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from stashbox.storage import AtomicFileStore, ensure_root

logger = logging.getLogger(__name__)


class FileStoreMixin:
    """Lazy cache-root activation and directory listing.

    Expects ``source``, ``use_lock``, ``lock_timeout`` and ``file_mode``
    attributes, plus ``_unwrap`` and ``_enabled`` from
    :class:`~stashbox.backends.base.BaseCache`.
    """

    _store: Optional[AtomicFileStore] = None

    @property
    def path(self) -> Optional[Path]:
        """Resolved cache root, or None until the cache has been enabled."""
        return self._store.root if self._store else None

    def _open_store(self, extension: str) -> bool:
        root = self._unwrap(ensure_root(self.source))
        if root is None:
            return False
        self._store = AtomicFileStore(
            root,
            extension=extension,
            use_lock=self.use_lock,
            lock_timeout=self.lock_timeout,
            file_mode=self.file_mode,
        )
        logger.info(f"Enabled {self.__class__.__name__} at {root}")
        return True

    def keys(self) -> List[str]:
        """Sanitized keys of stored entries, without reading them."""
        if not self._enabled:
            return []
        return [key for key, _, _ in self._store.scan()]

    def entries(self) -> List[Dict[str, Any]]:
        """File-level details of stored entries, without reading them."""
        if not self._enabled:
            return []
        return [
            {
                "key": key,
                "path": str(path),
                "size_bytes": stat.st_size,
                "modified": datetime.fromtimestamp(stat.st_mtime, timezone.utc).isoformat(),
            }
            for key, path, stat in self._store.scan()
        ]

    def _directory_stats(self) -> Dict[str, Any]:
        entries = self._store.scan() if self._enabled else []
        return {
            "enabled": self._enabled,
            "path": str(self.path) if self.path else None,
            "entries": len(entries),
            "total_size_bytes": sum(stat.st_size for _, _, stat in entries),
            "errors": len(self._errors),
        }
