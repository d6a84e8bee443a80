"""Base codec interface.

A codec converts a Python value to the bytes stored for a cache entry and
back. Backends pick a codec by :class:`ProcessMode` or accept an instance
directly.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class ProcessMode(str, Enum):
    """Value-processing mode applied before persisting a value.

    ``JSON`` is an alias of ``JSON_ARRAY``.
    """

    NONE = "NONE"
    JSON_ARRAY = "JSON_ARRAY"
    JSON_OBJECT = "JSON_OBJECT"
    SERIALIZE = "SERIALIZE"
    JSON = "JSON_ARRAY"

    @classmethod
    def parse(cls, value: Any) -> "ProcessMode":
        """Resolve a mode from an instance, member name or value.

        Raises:
            ValueError: If ``value`` names no known mode

        Examples:
            >>> ProcessMode.parse("json")
            <ProcessMode.JSON_ARRAY: 'JSON_ARRAY'>
        """
        if isinstance(value, cls):
            return value
        name = str(value).strip().upper()
        try:
            return cls[name]
        except KeyError:
            raise ValueError(
                f"Unknown process mode: '{value}'. "
                f"Available modes: {', '.join(cls.__members__)}"
            ) from None


class BaseCodec(ABC):
    """Abstract base class for value codecs.

    Subclasses must round-trip every value they accept:
    ``decode(encode(v)) == v``. Unsupported values raise
    :class:`~stashbox.errors.EncodeError` and malformed bytes raise
    :class:`~stashbox.errors.DecodeError`.

    Examples:
        Minimal codec:
        >>> class UpperCodec(BaseCodec):
        ...     mode = ProcessMode.NONE
        ...     extension = ".txt"
        ...
        ...     def encode(self, value):
        ...         return value.upper().encode()
        ...
        ...     def decode(self, payload):
        ...         return payload.decode()
    """

    #: Mode this codec implements
    mode: ProcessMode

    #: File extension used by file backends storing this codec's output
    extension: str = ""

    @abstractmethod
    def encode(self, value: Any) -> bytes:
        """Encode a value to bytes.

        Raises:
            EncodeError: If the value cannot be represented
        """
        pass

    @abstractmethod
    def decode(self, payload: bytes) -> Any:
        """Decode bytes produced by :meth:`encode`.

        Raises:
            DecodeError: If the payload is malformed
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(mode={self.mode.name})"
