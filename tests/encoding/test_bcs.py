import pytest

from solbcs.encoding.bcs import (
    BcsDecoder,
    BcsEncoder,
    count_characters,
    decode_len,
    encode_len
)
from solbcs.errors import BcsDecodeError, BcsEncodeError


def test_encode_decode_all_primitive_types() -> None:
    data_values = [
        ('bool', [True, False]),
        ('int8', [-128, 127]),
        ('uint8', [0, 255]),
        ('int16', [-12_345, 12_345]),
        ('uint16', [0, 54_321]),
        ('int32', [-12_345_678, 12_345_678]),
        ('uint32', [0, 12_345_678]),
        ('int64', [-12_345_678_901, 12_345_678_901]),
        ('uint64', [0, 2**64 - 1]),
        ('int128', [-(2**127), 2**127 - 1]),
        ('uint128', [0, 2**128 - 1]),
        ('bytes1', ['a', '\xff']),
        ('string', ['', 'hello world', 'Hello, 你好世界 €']),
        ('bytes', [b'', b'\x00\x01\x02']),
    ]

    encoder = BcsEncoder()
    for type_name, values in data_values:
        for v in values:
            getattr(encoder, type_name)(v)
    data = encoder.save()

    decoder = BcsDecoder(data)
    for type_name, values in data_values:
        for v in values:
            assert getattr(decoder, type_name)() == v
    assert decoder.at_end()


@pytest.mark.parametrize('type_name, value, expected', [
    ('uint16', 360, b'\x68\x01'),
    ('int16', -2, b'\xfe\xff'),
    ('uint32', 1, b'\x01\x00\x00\x00'),
    ('uint64', 1, b'\x01' + b'\x00' * 7),
    ('int128', -1, b'\xff' * 16),
    ('bool', True, b'\x01'),
    ('bytes1', 'A', b'A'),
    ('string', 'abc', b'\x03abc'),
    ('bytes', b'\xde\xad', b'\x02\xde\xad'),
])
def test_wire_format(type_name: str, value, expected: bytes) -> None:
    encoder = BcsEncoder()
    getattr(encoder, type_name)(value)
    assert encoder.save() == expected


@pytest.mark.parametrize('value, expected', [
    (0, b'\x00'),
    (1, b'\x01'),
    (127, b'\x7f'),
    (128, b'\x80\x01'),
    (300, b'\xac\x02'),
    (16_384, b'\x80\x80\x01'),
])
def test_length_prefix(value: int, expected: bytes) -> None:
    assert encode_len(value) == expected
    assert decode_len(expected) == (value, len(expected))


def test_decode_len_at_offset() -> None:
    assert decode_len(b'\xff\xff\xac\x02', 2) == (300, 2)


@pytest.mark.parametrize('data', [
    b'\x80\x00',
    b'\x80' * 9 + b'\x02',
    b'\x80',
    b'\xff' * 10 + b'\x01',
])
def test_invalid_length_prefix(data: bytes) -> None:
    with pytest.raises(BcsDecodeError):
        decode_len(data)


def test_string_prefix_counts_characters() -> None:
    # One 3-byte character, so the prefix is 1
    encoder = BcsEncoder()
    encoder.string('€')
    encoder.uint8(7)
    data = encoder.save()
    assert data == b'\x01\xe2\x82\xac\x07'

    decoder = BcsDecoder(data)
    assert decoder.string() == '€'
    assert decoder.uint8() == 7


@pytest.mark.parametrize('text, count', [
    ('', 0),
    ('abc', 3),
    ('é', 1),
    ('日本', 2),
    ('a😀b', 3),
])
def test_count_characters(text: str, count: int) -> None:
    assert count_characters(text.encode()) == count


def test_decoder_starts_at_offset() -> None:
    decoder = BcsDecoder(b'\x00\x00\x68\x01', 2)
    assert decoder.uint16() == 360
    assert decoder.position == 4


@pytest.mark.parametrize('type_name, data', [
    ('bool', b'\x02'),
    ('bool', b''),
    ('uint32', b'\x01\x02\x03'),
    ('uint128', b'\x00' * 15),
    ('string', b'\x02a'),
    ('string', b'\x01\xe2\x82'),
    ('bytes', b'\x03ab'),
])
def test_decode_errors(type_name: str, data: bytes) -> None:
    with pytest.raises(BcsDecodeError):
        getattr(BcsDecoder(data), type_name)()


def test_offset_outside_input() -> None:
    with pytest.raises(BcsDecodeError):
        BcsDecoder(b'\x00', 2)


@pytest.mark.parametrize('type_name, value', [
    ('uint8', 256),
    ('int8', -129),
    ('uint64', -1),
    ('uint128', 2**128),
    ('uint32', True),
    ('uint32', 1.5),
    ('bool', 1),
    ('bytes1', 'ab'),
    ('bytes1', '€'),
    ('string', b'abc'),
    ('bytes', 'abc'),
])
def test_encode_errors(type_name: str, value) -> None:
    with pytest.raises(BcsEncodeError):
        getattr(BcsEncoder(), type_name)(value)


def test_largest_length_prefix() -> None:
    assert decode_len(b'\xff' * 9 + b'\x01') == (2**64 - 1, 10)
    assert encode_len(2**64 - 1) == b'\xff' * 9 + b'\x01'
