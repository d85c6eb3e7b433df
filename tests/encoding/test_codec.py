from enum import IntEnum

import pytest

from solbcs import BcsCodec
from solbcs.errors import BcsDecodeError, BcsEncodeError, UnresolvedReferenceError
from solbcs.schema.serde_yaml import load_registry

REGISTRY = """
Amount:
  NEWTYPESTRUCT: U16
Bytes:
  NEWTYPESTRUCT:
    SEQ: U8
Choice:
  ENUM:
    0:
      ChoiceA: UNIT
    1:
      ChoiceB: UNIT
Message:
  ENUM:
    0:
      Empty: UNIT
    1:
      Name:
        NEWTYPE: STR
    2:
      Point:
        STRUCT:
          - x: I32
          - y: I32
Foo:
  STRUCT:
    - a: BOOL
    - b: STR
Envelope:
  STRUCT:
    - from: U8
    - note:
        OPTION: STR
    - tags:
        MAP:
          KEY: STR
          VALUE: U64
    - pair:
        TUPLE:
          - U8
          - BOOL
    - digest:
        TUPLEARRAY:
          CONTENT: U8
          SIZE: 3
    - choice:
        TYPENAME: Choice
    - message:
        TYPENAME: Message
"""


@pytest.fixture
def codec() -> BcsCodec:
    return BcsCodec.from_registry(load_registry(REGISTRY))


def test_integer_is_little_endian(codec: BcsCodec) -> None:
    assert codec.encode('uint16', 360) == b'\x68\x01'
    assert codec.encode('Amount', codec.type('Amount')(value=360)) == b'\x68\x01'


def test_sequence_has_length_prefix(codec: BcsCodec) -> None:
    assert codec.encode('seq_uint8', [42, 5]) == b'\x02\x2a\x05'
    assert codec.decode('seq_uint8', b'\x02\x2a\x05') == [42, 5]
    assert codec.decode_at('seq_uint8', 0, b'\x02\x2a\x05') == (3, [42, 5])


def test_simple_enum_is_one_byte(codec: BcsCodec) -> None:
    choice = codec.type('Choice')
    assert issubclass(choice, IntEnum)
    assert codec.encode('Choice', choice.ChoiceB) == b'\x01'
    assert codec.decode('Choice', b'\x01') is choice.ChoiceB
    with pytest.raises(BcsDecodeError):
        codec.decode('Choice', b'\x02')
    with pytest.raises(BcsEncodeError):
        codec.encode('Choice', 7)


def test_tagged_enum_has_eight_byte_choice(codec: BcsCodec) -> None:
    message = codec.type('Message')
    data = codec.encode('Message', message(choice=1, name='joe'))
    assert data == b'\x01' + b'\x00' * 7 + b'\x03joe'
    assert codec.decode('Message', data) == message(choice=1, name='joe')

    assert codec.encode('Message', message(choice=0)) == b'\x00' * 8
    assert codec.decode('Message', b'\x00' * 8) == message(choice=0)


def test_tagged_enum_struct_payload(codec: BcsCodec) -> None:
    message = codec.type('Message')
    point = codec.type('Message_Point')
    value = message(choice=2, point=point(x=-1, y=2))
    data = codec.encode('Message', value)
    assert data == b'\x02' + b'\x00' * 7 + b'\xff\xff\xff\xff' + b'\x02\x00\x00\x00'
    assert codec.decode('Message', data) == value


def test_tagged_enum_rejects_unknown_choice(codec: BcsCodec) -> None:
    with pytest.raises(BcsDecodeError):
        codec.decode('Message', b'\x03' + b'\x00' * 7)
    with pytest.raises(BcsEncodeError):
        codec.encode('Message', codec.type('Message')(choice=3))


def test_struct_fields_in_order(codec: BcsCodec) -> None:
    foo = codec.type('Foo')
    assert codec.encode('Foo', foo(a=False, b='abc')) == b'\x00\x03abc'
    assert codec.decode('Foo', b'\x00\x03abc') == foo(a=False, b='abc')


def test_option(codec: BcsCodec) -> None:
    assert codec.encode('opt_string', None) == b'\x00'
    assert codec.encode('opt_string', 'hi') == b'\x01\x02hi'
    assert codec.decode('opt_string', b'\x00') is None
    assert codec.decode('opt_string', b'\x01\x02hi') == 'hi'


def test_fixed_array(codec: BcsCodec) -> None:
    digest = codec.type('tuplearray3_uint8')
    assert codec.encode('tuplearray3_uint8', digest(values=[1, 2, 3])) == b'\x01\x02\x03'
    assert codec.decode('tuplearray3_uint8', b'\x01\x02\x03') == digest(values=[1, 2, 3])
    with pytest.raises(BcsEncodeError):
        codec.encode('tuplearray3_uint8', digest(values=[1, 2]))


def test_nested_round_trip(codec: BcsCodec) -> None:
    envelope = codec.type('Envelope')
    pair = codec.type('key_values_string_uint64')
    value = envelope(
        from_=9,
        note='€5',
        tags=[pair(key='a', value=1), pair(key='b', value=2**40)],
        pair=codec.type('tuple_uint8_bool')(entry0=255, entry1=True),
        digest=codec.type('tuplearray3_uint8')(values=[7, 8, 9]),
        choice=codec.type('Choice').ChoiceA,
        message=codec.type('Message')(choice=1, name='joe'),
    )
    data = codec.encode('Envelope', value)
    assert data[:2] == b'\x09\x01'
    # The note prefix counts two characters over four bytes
    assert data[2:7] == b'\x02\xe2\x82\xac5'
    assert codec.decode('Envelope', data) == value


def test_decode_at_returns_new_offset(codec: BcsCodec) -> None:
    data = b'\xff\x02\x2a\x05\xff'
    assert codec.decode_at('seq_uint8', 1, data) == (4, [42, 5])


def test_decode_rejects_trailing_bytes(codec: BcsCodec) -> None:
    with pytest.raises(BcsDecodeError, match='incomplete deserialization'):
        codec.decode('uint16', b'\x68\x01\x00')


def test_decode_rejects_truncated_input(codec: BcsCodec) -> None:
    with pytest.raises(BcsDecodeError):
        codec.decode('Foo', b'\x00\x05abc')


def test_unknown_key(codec: BcsCodec) -> None:
    with pytest.raises(UnresolvedReferenceError):
        codec.encode('Nope', 1)
    with pytest.raises(UnresolvedReferenceError):
        codec.decode('Nope', b'')
    with pytest.raises(UnresolvedReferenceError):
        codec.type('uint8')


def test_encoding_is_deterministic(codec: BcsCodec) -> None:
    foo = codec.type('Foo')
    assert codec.encode('Foo', foo(a=True, b='x')) == codec.encode('Foo', foo(a=True, b='x'))


def test_compiled_source_uses_generated_names(codec: BcsCodec) -> None:
    assert 'def encode_Foo(encoder, value):' in codec.source
    assert 'def decode_at_opt_string(decoder):' in codec.source


NESTED_OPTIONS = """
Nested:
  STRUCT:
    - maybe:
        OPTION:
          OPTION: U8
    - unit:
        OPTION: UNIT
"""


@pytest.mark.parametrize('key, data', [
    ('opt_opt_uint8', b'\x00'),
    ('opt_opt_uint8', b'\x01\x00'),
    ('opt_opt_uint8', b'\x01\x01\x07'),
    ('opt_empty_struct', b'\x00'),
    ('opt_empty_struct', b'\x01'),
])
def test_option_of_nullable_value_keeps_flag(key: str, data: bytes) -> None:
    codec = BcsCodec.from_registry(load_registry(NESTED_OPTIONS))
    value = codec.decode(key, data)
    assert value.has_value == (data[0] == 1)
    assert codec.encode(key, value) == data


def test_option_of_nullable_value_encodes_some_none() -> None:
    codec = BcsCodec.from_registry(load_registry(NESTED_OPTIONS))
    maybe = codec.type('opt_opt_uint8')
    unit = codec.type('opt_empty_struct')
    assert codec.encode('opt_opt_uint8', maybe(has_value=True, value=None)) == b'\x01\x00'
    assert codec.encode('opt_opt_uint8', maybe(has_value=True, value=7)) == b'\x01\x01\x07'
    assert codec.encode('opt_empty_struct', unit(has_value=True)) == b'\x01'
    assert codec.decode('opt_opt_uint8', b'\x01\x00') == maybe(has_value=True, value=None)
