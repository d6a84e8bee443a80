"""Store-scoped memo of entries already read or written."""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class MemoEntry:
    """Last known state of an entry file."""

    mtime: float
    payload: bytes


class EntryMemo:
    """Mapping of sanitized key to the last known entry state.

    Owned by a single cache instance. The owner invalidates keys it sets,
    deletes or clears; writes from other processes are not observed until
    the key is dropped.
    """

    def __init__(self):
        self._entries: Dict[str, MemoEntry] = {}

    def get(self, key: str) -> Optional[MemoEntry]:
        return self._entries.get(key)

    def put(self, key: str, mtime: float, payload: bytes) -> None:
        self._entries[key] = MemoEntry(mtime=mtime, payload=payload)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
