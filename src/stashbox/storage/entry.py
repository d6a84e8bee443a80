"""Entry envelope: an expiry timestamp stored together with the value."""

from dataclasses import dataclass
from types import SimpleNamespace
from typing import Any, Optional

from stashbox.codecs.base import BaseCodec
from stashbox.expiration import is_expired


@dataclass(frozen=True)
class CacheEntry:
    """A decoded cache entry.

    Attributes:
        key: Sanitized key
        value: Decoded value
        expires_at: Absolute UNIX timestamp; valid while ``now <= expires_at``
    """

    key: str
    value: Any
    expires_at: int

    def is_expired(self, now: float) -> bool:
        return is_expired(self.expires_at, now)


def encode_envelope(codec: BaseCodec, expires_at: int, value: Any) -> bytes:
    """Encode ``{"expire": expires_at, "value": value}``.

    Raises:
        EncodeError: If the codec cannot encode the value
    """
    return codec.encode({"expire": int(expires_at), "value": value})


def decode_envelope(codec: BaseCodec, key: str, payload: bytes) -> Optional[CacheEntry]:
    """Decode an envelope written by :func:`encode_envelope`.

    Returns:
        The entry, or None if the payload decodes but is not a valid envelope

    Raises:
        DecodeError: If the codec cannot decode the payload at all
    """
    data = codec.decode(payload)
    if isinstance(data, SimpleNamespace):
        data = vars(data)
    if not isinstance(data, dict):
        return None
    expire = data.get("expire")
    if isinstance(expire, bool) or not isinstance(expire, (int, float)):
        return None
    return CacheEntry(key=key, value=data.get("value"), expires_at=int(expire))
