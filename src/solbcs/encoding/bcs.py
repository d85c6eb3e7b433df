"""Primitive encoders and decoders of the canonical binary format.

Fixed-width integers are little-endian, lengths are unsigned LEB128 varints
and strings are prefixed by their number of characters.
"""
from __future__ import annotations

import struct
from typing import Any

from solbcs.errors import BcsDecodeError, BcsEncodeError
from solbcs.io.raw_reader import BytesReader
from solbcs.io.raw_writer import BytesWriter

_INT_FORMAT = {
    'int8': struct.Struct('<b'),
    'uint8': struct.Struct('<B'),
    'int16': struct.Struct('<h'),
    'uint16': struct.Struct('<H'),
    'int32': struct.Struct('<i'),
    'uint32': struct.Struct('<I'),
    'int64': struct.Struct('<q'),
    'uint64': struct.Struct('<Q'),
}
_MAX_LEN_SHIFT = 63


def _is_continuation(byte: int) -> bool:
    return byte & 0xC0 == 0x80


def _utf8_width(lead: int) -> int:
    """Number of bytes of the character starting with ``lead``."""
    if lead < 0x80:
        return 1
    if lead < 0xE0:
        return 2
    if lead < 0xF0:
        return 3
    return 4


def count_characters(data: bytes) -> int:
    """Count the characters of UTF-8 ``data`` (bytes that start a character)."""
    return sum(1 for b in data if not _is_continuation(b))


def _to_uint8(value: Any) -> int:
    """Normalize ``value`` to an unsigned 8-bit integer."""
    if isinstance(value, int):
        if not 0 <= value < 256:
            raise BcsEncodeError(f'Char value {value} does not fit in one byte')
        return value
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 1:
            raise BcsEncodeError('Byte values must contain exactly one byte')
        return value[0]
    if isinstance(value, str):
        if len(value) != 1 or ord(value) > 0xFF:
            raise BcsEncodeError('Char values must contain exactly one single-byte character')
        return ord(value)
    raise BcsEncodeError(f'Cannot convert value of type {type(value)!r} to a char')


def encode_len(value: int) -> bytes:
    """Encode ``value`` as an unsigned LEB128 varint."""
    if value < 0:
        raise BcsEncodeError(f'Lengths cannot be negative: {value}')
    result = bytearray()
    while value >= 0x80:
        result.append((value & 0x7F) | 0x80)
        value >>= 7
    result.append(value)
    return bytes(result)


def decode_len(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode a varint at ``offset``; return ``(value, bytes consumed)``."""
    reader = BytesReader(data, offset)
    value = BcsDecoder._read_len(reader)
    return value, reader.position - offset


class BcsEncoder:
    """Accumulates the serialization of a value."""

    __slots__ = ('_payload',)

    def __init__(self) -> None:
        self._payload = BytesWriter()

    def save(self) -> bytes:
        return self._payload.as_bytes()

    def _integer(self, key: str, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise BcsEncodeError(f'Expected an integer for {key}, got {value!r}')
        try:
            self._payload.write(_INT_FORMAT[key].pack(value))
        except struct.error as e:
            raise BcsEncodeError(f'{value} is out of range for {key}') from e

    def _integer128(self, value: int, signed: bool) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise BcsEncodeError(f'Expected an integer, got {value!r}')
        try:
            self._payload.write(value.to_bytes(16, 'little', signed=signed))
        except OverflowError as e:
            raise BcsEncodeError(f'{value} is out of range for a 128-bit integer') from e

    # Primitive encoders ------------------------------------------------

    def empty_struct(self, value: Any = None) -> None:
        return

    def bool(self, value: bool) -> None:
        if not isinstance(value, bool):
            raise BcsEncodeError(f'Expected a bool, got {value!r}')
        self._payload.write_byte(1 if value else 0)

    def int8(self, value: int) -> None:
        self._integer('int8', value)

    def uint8(self, value: int) -> None:
        self._integer('uint8', value)

    def int16(self, value: int) -> None:
        self._integer('int16', value)

    def uint16(self, value: int) -> None:
        self._integer('uint16', value)

    def int32(self, value: int) -> None:
        self._integer('int32', value)

    def uint32(self, value: int) -> None:
        self._integer('uint32', value)

    def int64(self, value: int) -> None:
        self._integer('int64', value)

    def uint64(self, value: int) -> None:
        self._integer('uint64', value)

    def int128(self, value: int) -> None:
        self._integer128(value, signed=True)

    def uint128(self, value: int) -> None:
        self._integer128(value, signed=False)

    def bytes1(self, value: str | bytes | int) -> None:
        self._payload.write_byte(_to_uint8(value))

    def string(self, value: str) -> None:
        if not isinstance(value, str):
            raise BcsEncodeError(f'Expected a str, got {value!r}')
        encoded = value.encode()
        self._payload.write(encode_len(count_characters(encoded)))
        self._payload.write(encoded)

    def bytes(self, value: bytes) -> None:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise BcsEncodeError(f'Expected bytes, got {value!r}')
        self._payload.write(encode_len(len(value)))
        self._payload.write(value)

    # Length prefix -----------------------------------------------------

    def len(self, value: int) -> None:
        self._payload.write(encode_len(value))


class BcsDecoder:
    """Reads values from a buffer, starting at an offset."""

    __slots__ = ('_data',)

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self._data = BytesReader(data, offset)

    @property
    def position(self) -> int:
        return self._data.position

    def at_end(self) -> bool:
        return self._data.remaining() == 0

    @staticmethod
    def _read_len(reader: BytesReader) -> int:
        value = 0
        shift = 0
        while True:
            if shift > _MAX_LEN_SHIFT:
                raise BcsDecodeError('Length prefix overflows 64 bits')
            byte = reader.read_byte()
            if shift == _MAX_LEN_SHIFT and byte > 1:
                raise BcsDecodeError('Length prefix overflows 64 bits')
            value |= (byte & 0x7F) << shift
            if byte < 0x80:
                if byte == 0 and shift > 0:
                    raise BcsDecodeError('Non-canonical length prefix')
                return value
            shift += 7

    def _integer(self, key: str) -> int:
        fmt = _INT_FORMAT[key]
        return fmt.unpack(self._data.read(fmt.size))[0]

    # Primitive decoders ------------------------------------------------

    def empty_struct(self) -> None:
        return None

    def bool(self) -> bool:
        value = self._data.read_byte()
        if value > 1:
            raise BcsDecodeError(f'Invalid bool value {value} at offset {self.position - 1}')
        return value == 1

    def int8(self) -> int:
        return self._integer('int8')

    def uint8(self) -> int:
        return self._integer('uint8')

    def int16(self) -> int:
        return self._integer('int16')

    def uint16(self) -> int:
        return self._integer('uint16')

    def int32(self) -> int:
        return self._integer('int32')

    def uint32(self) -> int:
        return self._integer('uint32')

    def int64(self) -> int:
        return self._integer('int64')

    def uint64(self) -> int:
        return self._integer('uint64')

    def int128(self) -> int:
        return int.from_bytes(self._data.read(16), 'little', signed=True)

    def uint128(self) -> int:
        return int.from_bytes(self._data.read(16), 'little', signed=False)

    def bytes1(self) -> str:
        return chr(self._data.read_byte())

    def string(self) -> str:
        # The prefix counts characters, so walk the lead bytes to find the span
        count = self.len()
        data = self._data
        end = data.position
        for _ in range(count):
            if end >= len(data):
                raise BcsDecodeError(f'String of {count} characters runs past the end of the input')
            end += _utf8_width(data.view[end])
        raw = data.read(end - data.position)
        try:
            return raw.decode()
        except UnicodeDecodeError as e:
            raise BcsDecodeError(f'Invalid UTF-8 string: {e}') from e

    def bytes(self) -> bytes:
        length = self.len()
        return self._data.read(length)

    # Length prefix -----------------------------------------------------

    def len(self) -> int:
        return self._read_len(self._data)
