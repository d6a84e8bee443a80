"""JSON codecs backed by orjson."""

from types import SimpleNamespace
from typing import Any

import orjson

from stashbox.codecs.base import BaseCodec, ProcessMode
from stashbox.errors import DecodeError, EncodeError


class JsonCodec(BaseCodec):
    """Structured codec for JSON-representable values.

    Handles numbers, strings, booleans, ``None``, lists and string-keyed
    dicts. Tuples are written as arrays and read back as lists. An empty
    payload decodes to ``None``.

    Examples:
        >>> codec = JsonCodec()
        >>> codec.encode({"name": "Ana"})
        b'{"name":"Ana"}'
        >>> codec.decode(b'[1,2,3]')
        [1, 2, 3]
    """

    mode = ProcessMode.JSON_ARRAY
    extension = ".json"

    def encode(self, value: Any) -> bytes:
        try:
            return orjson.dumps(value)
        except TypeError as e:
            raise EncodeError(f"Value is not JSON-serializable: {e}") from e

    def decode(self, payload: bytes) -> Any:
        if not payload:
            return None
        try:
            return orjson.loads(payload)
        except orjson.JSONDecodeError as e:
            raise DecodeError(f"Payload is not valid JSON: {e}") from e


def _namespace_default(obj: Any) -> Any:
    if isinstance(obj, SimpleNamespace):
        return vars(obj)
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def _to_namespace(data: Any) -> Any:
    if isinstance(data, dict):
        return SimpleNamespace(**{k: _to_namespace(v) for k, v in data.items()})
    if isinstance(data, list):
        return [_to_namespace(v) for v in data]
    return data


class JsonObjectCodec(JsonCodec):
    """JSON codec that decodes objects to attribute-access namespaces.

    ``SimpleNamespace`` values are accepted on encode alongside plain dicts.

    Examples:
        >>> obj = JsonObjectCodec().decode(b'{"user": {"id": 42}}')
        >>> obj.user.id
        42
    """

    mode = ProcessMode.JSON_OBJECT

    def encode(self, value: Any) -> bytes:
        try:
            return orjson.dumps(value, default=_namespace_default)
        except TypeError as e:
            raise EncodeError(f"Value is not JSON-serializable: {e}") from e

    def decode(self, payload: bytes) -> Any:
        return _to_namespace(super().decode(payload))
