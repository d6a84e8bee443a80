"""Value codecs.

Codecs convert cached values to bytes and back. The default registry maps
each :class:`ProcessMode` to a codec instance:

- ``NONE``: :class:`PassthroughCodec`
- ``JSON_ARRAY`` (alias ``JSON``): :class:`JsonCodec`
- ``JSON_OBJECT``: :class:`JsonObjectCodec`
- ``SERIALIZE``: :class:`SerializeCodec`
"""

from stashbox.codecs.base import BaseCodec, ProcessMode
from stashbox.codecs.json_codec import JsonCodec, JsonObjectCodec
from stashbox.codecs.passthrough import PassthroughCodec
from stashbox.codecs.registry import (
    CodecRegistry,
    get_codec,
    get_registry,
    register_codec,
)
from stashbox.codecs.serialize import SerializeCodec

register_codec(PassthroughCodec())
register_codec(JsonCodec())
register_codec(JsonObjectCodec())
register_codec(SerializeCodec())

__all__ = [
    "BaseCodec",
    "ProcessMode",
    "CodecRegistry",
    "PassthroughCodec",
    "JsonCodec",
    "JsonObjectCodec",
    "SerializeCodec",
    "get_codec",
    "get_registry",
    "register_codec",
]
