"""Native Python object codec backed by joblib."""

import io
import pickle
from typing import Any

import joblib

from stashbox.codecs.base import BaseCodec, ProcessMode
from stashbox.errors import DecodeError, EncodeError


class SerializeCodec(BaseCodec):
    """Serialize arbitrary picklable Python objects with joblib.

    Args:
        compress: joblib compression level (0 disables compression)

    Note:
        Only decode payloads written by a trusted process; unpickling can
        execute arbitrary code.
    """

    mode = ProcessMode.SERIALIZE
    extension = ".joblib"

    def __init__(self, compress: int = 0):
        self.compress = compress

    def encode(self, value: Any) -> bytes:
        buffer = io.BytesIO()
        try:
            joblib.dump(value, buffer, compress=self.compress)
        except (pickle.PicklingError, TypeError, AttributeError) as e:
            raise EncodeError(f"Value cannot be serialized: {e}") from e
        return buffer.getvalue()

    def decode(self, payload: bytes) -> Any:
        if not payload:
            return None
        try:
            return joblib.load(io.BytesIO(payload))
        except Exception as e:
            raise DecodeError(f"Payload cannot be deserialized: {e}") from e
