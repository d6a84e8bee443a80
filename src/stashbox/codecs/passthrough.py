"""Passthrough codec: the payload is the caller's bytes or string verbatim."""

from typing import Any, Optional

from stashbox.codecs.base import BaseCodec, ProcessMode
from stashbox.errors import DecodeError, EncodeError


class PassthroughCodec(BaseCodec):
    """Store bytes or text without transformation.

    ``None`` and empty strings are stored as an empty payload.

    Args:
        encoding: If set, strings are encoded with it and payloads are
            decoded back to ``str``. If ``None``, payloads are returned as
            ``bytes`` and strings are encoded as UTF-8.
    """

    mode = ProcessMode.NONE
    extension = ""

    def __init__(self, encoding: Optional[str] = None):
        self.encoding = encoding

    def encode(self, value: Any) -> bytes:
        if value is None:
            return b""
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        if isinstance(value, str):
            try:
                return value.encode(self.encoding or "utf-8")
            except UnicodeEncodeError as e:
                raise EncodeError(f"Cannot encode text payload: {e}") from e
        raise EncodeError(
            f"Passthrough codec only accepts bytes or str, got {type(value).__name__}"
        )

    def decode(self, payload: Any) -> Any:
        # Clients created with decode_responses=True hand back text
        if isinstance(payload, str):
            return payload if self.encoding is not None else self.encode(payload)
        if not isinstance(payload, (bytes, bytearray, memoryview)):
            raise DecodeError(
                f"Passthrough codec cannot decode {type(payload).__name__} payloads"
            )
        if self.encoding is None:
            return bytes(payload)
        try:
            return bytes(payload).decode(self.encoding)
        except UnicodeDecodeError as e:
            raise DecodeError(f"Payload is not valid {self.encoding}: {e}") from e
