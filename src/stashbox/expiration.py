"""Expiration policy for cache entries.

Two independent policies exist:

- Stored expiry (JSON file and remote backends): each entry carries an
  absolute ``expires_at`` timestamp computed at write time.
- Modification-time age (raw file backend): an entry is stale once
  ``now > mtime + max_life``.

The two are deliberately not unified; they evict at different times.
"""

from datetime import timedelta
from typing import Optional, Union

TTL = Union[int, float, timedelta]

#: Seven days, the default for file backends
DEFAULT_FILE_TTL = 7 * 24 * 3600

#: Fifteen minutes, the default for the remote backend
DEFAULT_REMOTE_TTL = 15 * 60


def coerce_ttl(ttl: Optional[TTL]) -> Optional[int]:
    """Convert a TTL to whole seconds.

    Args:
        ttl: Seconds as int/float, a timedelta, or None

    Returns:
        Seconds, or None if ``ttl`` is None

    Raises:
        ValueError: If ``ttl`` is negative or not finite
        TypeError: If ``ttl`` has an unsupported type

    Examples:
        >>> coerce_ttl(timedelta(minutes=2))
        120
        >>> coerce_ttl(None) is None
        True
    """
    if ttl is None:
        return None
    if isinstance(ttl, timedelta):
        seconds = int(ttl.total_seconds())
    elif isinstance(ttl, (int, float)) and not isinstance(ttl, bool):
        try:
            seconds = int(ttl)
        except (OverflowError, ValueError) as e:
            raise ValueError(f"TTL must be finite: {ttl}") from e
    else:
        raise TypeError(f"TTL must be seconds or a timedelta, got {type(ttl).__name__}")
    if seconds < 0:
        raise ValueError(f"TTL cannot be negative: {ttl}")
    try:
        float(seconds)
    except OverflowError as e:
        raise ValueError(f"TTL is too large: {ttl}") from e
    return seconds


def compute_expiry(now: float, ttl: Optional[TTL], default_ttl: TTL) -> int:
    """Compute the absolute expiry timestamp of a new entry.

    A ``ttl`` that is None or zero falls back to ``default_ttl``.

    Examples:
        >>> compute_expiry(1000, 60, 3600)
        1060
        >>> compute_expiry(1000, 0, 3600)
        4600
    """
    seconds = coerce_ttl(ttl) or coerce_ttl(default_ttl) or 0
    return int(now + seconds)


def is_expired(expires_at: float, now: float) -> bool:
    """Check a stored expiry timestamp; valid while ``now <= expires_at``."""
    return now > expires_at


def is_stale(mtime: float, max_life: Optional[int], now: float) -> bool:
    """Check an entry's age by modification time.

    A ``max_life`` of None or 0 means entries never go stale.

    Examples:
        >>> is_stale(1000, 60, 1061)
        True
        >>> is_stale(1000, 0, 10 ** 9)
        False
    """
    if not max_life:
        return False
    return now > mtime + max_life
