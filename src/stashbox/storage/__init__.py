"""Atomic file persistence for cache entries.

This module provides the flat, one-file-per-key store used by the file
backends, the entry envelope, and the per-store read memo.
"""

from stashbox.storage.atomic import AtomicFileStore, ensure_root, is_temp_file
from stashbox.storage.entry import CacheEntry, decode_envelope, encode_envelope
from stashbox.storage.memo import EntryMemo, MemoEntry

__all__ = [
    "AtomicFileStore",
    "CacheEntry",
    "EntryMemo",
    "MemoEntry",
    "decode_envelope",
    "encode_envelope",
    "ensure_root",
    "is_temp_file",
]
