"""Key sanitizers for the file and remote backends."""

import re
from typing import Dict

_UNSAFE_RUN = re.compile(r"[^a-z0-9]+", re.IGNORECASE)
_UNSAFE_RAW_RUN = re.compile(r"[^a-z0-9_-]+", re.IGNORECASE)

# Characters the remote store rejects in keys, mapped to their decimal codes
REMOTE_RESERVED_CHARS: Dict[str, str] = {
    "{": "#123",
    "}": "#125",
    "(": "#40",
    ")": "#41",
    "/": "#47",
    "\\": "#92",
    "@": "#64",
    ":": "#58",
}


def clean_key(key: str) -> str:
    """Convert an arbitrary cache key to a single safe path segment.

    Every run of characters outside ``[A-Za-z0-9]`` collapses to one
    underscore. Keys that differ only in those characters map to the same
    entry; ``"a/b"`` and ``"a-b"`` are both stored as ``"a_b"``.

    Args:
        key: Caller-supplied key

    Returns:
        Sanitized key

    Examples:
        >>> clean_key("user:42")
        'user_42'
        >>> clean_key("../../etc/passwd")
        '_etc_passwd'
    """
    return _UNSAFE_RUN.sub("_", str(key))


def clean_raw_key(key: str) -> str:
    """Sanitize a key for the raw file backend.

    Same as :func:`clean_key` except that ``_`` and ``-`` are kept.

    Examples:
        >>> clean_raw_key("report-2024/03")
        'report-2024_03'
    """
    return _UNSAFE_RAW_RUN.sub("_", str(key))


def escape_remote_key(key: str) -> str:
    """Replace characters reserved by the remote protocol with decimal codes.

    The mapping is not decoded locally.

    Examples:
        >>> escape_remote_key("user:{42}")
        'user#58#12342#125'
    """
    key = str(key)
    for char, code in REMOTE_RESERVED_CHARS.items():
        key = key.replace(char, code)
    return key
