"""Codec registry keyed by process mode."""

from typing import Any, Dict, List

from stashbox.codecs.base import BaseCodec, ProcessMode


class CodecRegistry:
    """Registry of codec instances by :class:`ProcessMode`.

    Examples:
        >>> registry = CodecRegistry()
        >>> registry.register(JsonCodec())
        >>> registry.get("JSON")
        JsonCodec(mode=JSON_ARRAY)
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._codecs: Dict[ProcessMode, BaseCodec] = {}

    def register(self, codec: BaseCodec, replace: bool = False) -> None:
        """Register a codec for its mode.

        Args:
            codec: Codec instance
            replace: Overwrite an existing registration

        Raises:
            ValueError: If the mode is already registered and ``replace`` is False
        """
        if codec.mode in self._codecs and not replace:
            raise ValueError(
                f"Codec already registered for mode: {codec.mode.name}. "
                f"Cannot register {codec.__class__.__name__}."
            )
        self._codecs[codec.mode] = codec

    def get(self, mode: Any) -> BaseCodec:
        """Get the codec for a mode.

        Args:
            mode: ProcessMode or its name

        Raises:
            KeyError: If no codec is registered for the mode
        """
        mode = ProcessMode.parse(mode)
        if mode not in self._codecs:
            available = ", ".join(sorted(m.name for m in self._codecs))
            raise KeyError(
                f"No codec registered for mode: '{mode.name}'. "
                f"Available modes: {available}"
            )
        return self._codecs[mode]

    def list_modes(self) -> List[ProcessMode]:
        return list(self._codecs.keys())

    def is_registered(self, mode: Any) -> bool:
        return ProcessMode.parse(mode) in self._codecs


_registry = CodecRegistry()


def get_registry() -> CodecRegistry:
    """Return the default codec registry."""
    return _registry


def register_codec(codec: BaseCodec, replace: bool = False) -> None:
    """Register a codec in the default registry."""
    _registry.register(codec, replace=replace)


def get_codec(mode: Any) -> BaseCodec:
    """Get a codec from the default registry.

    Examples:
        >>> get_codec(ProcessMode.SERIALIZE)
        SerializeCodec(mode=SERIALIZE)
    """
    return _registry.get(mode)
