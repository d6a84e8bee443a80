"""Exception hierarchy for stashbox.

Cache facades never let these escape to callers: they are recorded on the
store and exposed through ``errors`` / ``is_error()``. Codecs and the atomic
file store raise or return them directly.
"""


class StashboxError(Exception):
    """Base exception for cache-related errors."""

    pass


class DirectoryError(StashboxError):
    """Raised when the cache root cannot be created or resolved."""

    pass


class WriteError(StashboxError):
    """Raised when an entry cannot be written to its temp file."""

    pass


class LockTimeoutError(WriteError):
    """Raised when the per-key write lock cannot be acquired in time."""

    pass


class ReadError(StashboxError):
    """Raised when an existing entry cannot be read or decoded."""

    pass


class EncodeError(StashboxError):
    """Raised when a value cannot be encoded by a codec."""

    pass


class DecodeError(StashboxError):
    """Raised when stored bytes cannot be decoded by a codec."""

    pass


class BackendConnectionError(StashboxError):
    """Raised when the remote key-value store cannot be reached."""

    pass


class SetError(StashboxError):
    """Raised when the remote key-value store rejects a write."""

    pass
