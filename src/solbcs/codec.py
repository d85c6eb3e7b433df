from __future__ import annotations

from typing import Any

from solbcs.encoding.bcs import BcsDecoder, BcsEncoder
from solbcs.encoding.compiler import compile_codec
from solbcs.errors import BcsDecodeError, UnresolvedReferenceError
from solbcs.schema import Registry
from solbcs.solidity.lowering import lower_registry
from solbcs.solidity.shapes import ShapeTable


class BcsCodec:
    """Encode and decode Python values with the format of the generated code.

    Values are addressed by shape key, the same key that names the generated
    Solidity functions (``Foo``, ``opt_uint32``, ``seq_bytes``, ...).
    """

    def __init__(self, table: ShapeTable) -> None:
        self._table = table
        self._compiled = compile_codec(table)

    @classmethod
    def from_registry(cls, registry: Registry) -> 'BcsCodec':
        return cls(lower_registry(registry))

    @property
    def table(self) -> ShapeTable:
        return self._table

    @property
    def source(self) -> str:
        """Python source of the compiled functions."""
        return self._compiled.source

    def type(self, key: str) -> type:
        """The dataclass or enum standing for the generated type ``key``."""
        try:
            return self._compiled.types[key]
        except KeyError:
            raise UnresolvedReferenceError(key) from None

    def encode(self, key: str, value: Any) -> bytes:
        try:
            encode = self._compiled.encoders[key]
        except KeyError:
            raise UnresolvedReferenceError(key) from None
        encoder = BcsEncoder()
        encode(encoder, value)
        return encoder.save()

    def decode_at(self, key: str, offset: int, data: bytes) -> tuple[int, Any]:
        """Decode one value at ``offset``; return the new offset and the value."""
        try:
            decode = self._compiled.decoders[key]
        except KeyError:
            raise UnresolvedReferenceError(key) from None
        decoder = BcsDecoder(data, offset)
        value = decode(decoder)
        return decoder.position, value

    def decode(self, key: str, data: bytes) -> Any:
        """Decode a value that must span the whole of ``data``."""
        position, value = self.decode_at(key, 0, data)
        if position != len(data):
            raise BcsDecodeError(
                f'incomplete deserialization: {len(data) - position} trailing bytes after {key}'
            )
        return value
