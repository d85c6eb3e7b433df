"""Render a table of shapes as Solidity source."""
from __future__ import annotations

from solbcs.config import CodeGeneratorConfig
from solbcs.solidity.keywords import safe_variable
from solbcs.solidity.primitives import PrimitiveKind
from solbcs.solidity.shapes import (
    FixedArrayOf,
    OptionOf,
    Primitive,
    SequenceOf,
    Shape,
    ShapeTable,
    SimpleEnum,
    Struct,
    TaggedEnum
)

_TAB = '    '
# Parameter and local names used by every generated decoder
_DECODER_NAMES = {'pos', 'new_pos', 'input', 'choice', 'result'}


def _local(name: str, table: ShapeTable) -> str:
    # Type names are also constructors, so a local must not shadow them
    if name in _DECODER_NAMES or name in table:
        return name + '_'
    return name


def _indent(lines: list[str], depth: int = 1) -> list[str]:
    return [_TAB * depth + line if line else line for line in lines]


def _encode_header(key: str, code_name: str, location: str) -> str:
    return f'function encode_{key}({code_name}{location} input) internal pure returns (bytes memory) {{'


def _decode_header(key: str, code_name: str, location: str) -> str:
    return (
        f'function decode_at_{key}(uint256 pos, bytes memory input) '
        f'internal pure returns (uint256, {code_name}{location}) {{'
    )


def _generic_decode(key: str, code_name: str, location: str) -> list[str]:
    return [
        f'function decode_{key}(bytes memory input) internal pure returns ({code_name}{location}) {{',
        f'{_TAB}uint256 new_pos;',
        f'{_TAB}{code_name}{location} value;',
        f'{_TAB}(new_pos, value) = decode_at_{key}(0, input);',
        f'{_TAB}require(new_pos == input.length, "incomplete deserialization");',
        f'{_TAB}return value;',
        '}',
    ]


def render_preamble(config: CodeGeneratorConfig) -> list[str]:
    """License, pragma and the varint length codec shared by all shapes."""
    return [
        f'/// SPDX-License-Identifier: {config.license}',
        f'pragma solidity {config.solidity_version};',
        '',
        'function encode_len(uint256 x) pure returns (bytes memory) {',
        f'{_TAB}bytes memory result;',
        f'{_TAB}while (x >= 128) {{',
        f'{_TAB * 2}result = abi.encodePacked(result, bytes1(uint8(x & 0x7f) | 0x80));',
        f'{_TAB * 2}x >>= 7;',
        f'{_TAB}}}',
        f'{_TAB}return abi.encodePacked(result, bytes1(uint8(x)));',
        '}',
        '',
        'function decode_at_len(uint256 pos, bytes memory input) pure returns (uint256, uint256) {',
        f'{_TAB}uint256 result = 0;',
        f'{_TAB}uint256 shift = 0;',
        f'{_TAB}while (true) {{',
        f'{_TAB * 2}require(pos < input.length, "input too short");',
        f'{_TAB * 2}require(shift < 64, "length overflow");',
        f'{_TAB * 2}uint8 next_byte = uint8(input[pos]);',
        f'{_TAB * 2}require(shift < 63 || next_byte < 2, "length overflow");',
        f'{_TAB * 2}pos += 1;',
        f'{_TAB * 2}result |= uint256(next_byte & 0x7f) << shift;',
        f'{_TAB * 2}if (next_byte < 128) {{',
        f'{_TAB * 3}require(next_byte != 0 || shift == 0, "non-canonical length");',
        f'{_TAB * 3}break;',
        f'{_TAB * 2}}}',
        f'{_TAB * 2}shift += 7;',
        f'{_TAB}}}',
        f'{_TAB}return (pos, result);',
        '}',
    ]


# Primitives ----------------------------------------------------------------

def _render_integer(kind: PrimitiveKind) -> list[str]:
    key, ukey, width = kind.key, kind.unsigned_key, kind.width
    return [
        _encode_header(key, key, ''),
        f'{_TAB}bytes memory result = new bytes({width});',
        f'{_TAB}{ukey} value = {ukey}(input);',
        f'{_TAB}for (uint256 i = 0; i < {width}; i++) {{',
        f'{_TAB * 2}result[i] = bytes1(uint8(value & 0xff));',
        f'{_TAB * 2}value >>= 8;',
        f'{_TAB}}}',
        f'{_TAB}return result;',
        '}',
        _decode_header(key, key, ''),
        f'{_TAB}require(pos + {width} <= input.length, "input too short");',
        f'{_TAB}{ukey} value = 0;',
        f'{_TAB}for (uint256 i = 0; i < {width}; i++) {{',
        f'{_TAB * 2}value |= {ukey}(uint8(input[pos + i])) << (8 * i);',
        f'{_TAB}}}',
        f'{_TAB}return (pos + {width}, {key}(value));',
        '}',
    ]


def _render_primitive(kind: PrimitiveKind) -> list[str]:
    if kind.is_integer:
        return _render_integer(kind)

    if kind is PrimitiveKind.UNIT:
        return [
            'struct empty_struct {',
            f'{_TAB}int8 val;',
            '}',
            _encode_header('empty_struct', 'empty_struct', ' memory'),
            f'{_TAB}bytes memory result;',
            f'{_TAB}return result;',
            '}',
            _decode_header('empty_struct', 'empty_struct', ' memory'),
            f'{_TAB}return (pos, empty_struct(0));',
            '}',
        ]

    if kind is PrimitiveKind.BOOL:
        return [
            _encode_header('bool', 'bool', ''),
            f'{_TAB}return abi.encodePacked(input);',
            '}',
            _decode_header('bool', 'bool', ''),
            f'{_TAB}require(pos < input.length, "input too short");',
            f'{_TAB}uint8 value = uint8(input[pos]);',
            f'{_TAB}require(value < 2, "invalid bool");',
            f'{_TAB}return (pos + 1, value == 1);',
            '}',
        ]

    if kind is PrimitiveKind.CHAR:
        return [
            _encode_header('bytes1', 'bytes1', ''),
            f'{_TAB}return abi.encodePacked(input);',
            '}',
            _decode_header('bytes1', 'bytes1', ''),
            f'{_TAB}require(pos < input.length, "input too short");',
            f'{_TAB}return (pos + 1, input[pos]);',
            '}',
        ]

    if kind is PrimitiveKind.STR:
        # The length prefix counts characters: every byte that is not a
        # UTF-8 continuation byte (10xxxxxx) starts a new character, and its
        # high bits give the width of that character.
        return [
            _encode_header('string', 'string', ' memory'),
            f'{_TAB}bytes memory input_bytes = bytes(input);',
            f'{_TAB}uint256 number_char = 0;',
            f'{_TAB}for (uint256 i = 0; i < input_bytes.length; i++) {{',
            f'{_TAB * 2}if ((uint8(input_bytes[i]) & 0xc0) != 0x80) {{',
            f'{_TAB * 3}number_char += 1;',
            f'{_TAB * 2}}}',
            f'{_TAB}}}',
            f'{_TAB}return abi.encodePacked(encode_len(number_char), input_bytes);',
            '}',
            _decode_header('string', 'string', ' memory'),
            f'{_TAB}uint256 new_pos;',
            f'{_TAB}uint256 len;',
            f'{_TAB}(new_pos, len) = decode_at_len(pos, input);',
            f'{_TAB}uint256 end = new_pos;',
            f'{_TAB}for (uint256 i = 0; i < len; i++) {{',
            f'{_TAB * 2}require(end < input.length, "input too short");',
            f'{_TAB * 2}uint8 lead = uint8(input[end]);',
            f'{_TAB * 2}if (lead < 0x80) {{',
            f'{_TAB * 3}end += 1;',
            f'{_TAB * 2}}} else if (lead < 0xe0) {{',
            f'{_TAB * 3}end += 2;',
            f'{_TAB * 2}}} else if (lead < 0xf0) {{',
            f'{_TAB * 3}end += 3;',
            f'{_TAB * 2}}} else {{',
            f'{_TAB * 3}end += 4;',
            f'{_TAB * 2}}}',
            f'{_TAB}}}',
            f'{_TAB}require(end <= input.length, "input too short");',
            f'{_TAB}bytes memory result = new bytes(end - new_pos);',
            f'{_TAB}for (uint256 i = 0; i < end - new_pos; i++) {{',
            f'{_TAB * 2}result[i] = input[new_pos + i];',
            f'{_TAB}}}',
            f'{_TAB}return (end, string(result));',
            '}',
        ]

    if kind is PrimitiveKind.BYTES:
        return [
            _encode_header('bytes', 'bytes', ' memory'),
            f'{_TAB}return abi.encodePacked(encode_len(input.length), input);',
            '}',
            _decode_header('bytes', 'bytes', ' memory'),
            f'{_TAB}uint256 new_pos;',
            f'{_TAB}uint256 len;',
            f'{_TAB}(new_pos, len) = decode_at_len(pos, input);',
            f'{_TAB}require(new_pos + len <= input.length, "input too short");',
            f'{_TAB}bytes memory result = new bytes(len);',
            f'{_TAB}for (uint256 i = 0; i < len; i++) {{',
            f'{_TAB * 2}result[i] = input[new_pos + i];',
            f'{_TAB}}}',
            f'{_TAB}return (new_pos + len, result);',
            '}',
        ]

    raise ValueError(f'Unknown primitive: {kind}')  # pragma: no cover


# Synthesized and container shapes ------------------------------------------

def _render_option(shape: OptionOf, table: ShapeTable) -> list[str]:
    key = shape.key
    inner = shape.value
    location = table.data_location(inner)
    return [
        f'struct {key} {{',
        f'{_TAB}bool has_value;',
        f'{_TAB}{inner.code_name} value;',
        '}',
        _encode_header(key, key, ' memory'),
        f'{_TAB}bytes memory result = encode_bool(input.has_value);',
        f'{_TAB}if (input.has_value) {{',
        f'{_TAB * 2}result = abi.encodePacked(result, encode_{inner.key}(input.value));',
        f'{_TAB}}}',
        f'{_TAB}return result;',
        '}',
        _decode_header(key, key, ' memory'),
        f'{_TAB}uint256 new_pos;',
        f'{_TAB}bool has_value;',
        f'{_TAB}(new_pos, has_value) = decode_at_bool(pos, input);',
        f'{_TAB}{inner.code_name}{location} value;',
        f'{_TAB}if (has_value) {{',
        f'{_TAB * 2}(new_pos, value) = decode_at_{inner.key}(new_pos, input);',
        f'{_TAB}}}',
        f'{_TAB}return (new_pos, {key}(has_value, value));',
        '}',
    ]


def _render_sequence(shape: SequenceOf, table: ShapeTable) -> list[str]:
    key, code_name = shape.key, shape.code_name
    inner = shape.element
    location = table.data_location(inner)
    return [
        _encode_header(key, code_name, ' memory'),
        f'{_TAB}uint256 len = input.length;',
        f'{_TAB}bytes memory result = encode_len(len);',
        f'{_TAB}for (uint256 i = 0; i < len; i++) {{',
        f'{_TAB * 2}result = abi.encodePacked(result, encode_{inner.key}(input[i]));',
        f'{_TAB}}}',
        f'{_TAB}return result;',
        '}',
        _decode_header(key, code_name, ' memory'),
        f'{_TAB}uint256 new_pos;',
        f'{_TAB}uint256 len;',
        f'{_TAB}(new_pos, len) = decode_at_len(pos, input);',
        f'{_TAB}{code_name} memory result = new {code_name}(len);',
        f'{_TAB}{inner.code_name}{location} value;',
        f'{_TAB}for (uint256 i = 0; i < len; i++) {{',
        f'{_TAB * 2}(new_pos, value) = decode_at_{inner.key}(new_pos, input);',
        f'{_TAB * 2}result[i] = value;',
        f'{_TAB}}}',
        f'{_TAB}return (new_pos, result);',
        '}',
    ]


def _render_fixed_array(shape: FixedArrayOf, table: ShapeTable) -> list[str]:
    key, size = shape.key, shape.size
    inner = shape.element
    location = table.data_location(inner)
    return [
        f'struct {key} {{',
        f'{_TAB}{inner.code_name}[] values;',
        '}',
        _encode_header(key, key, ' memory'),
        f'{_TAB}require(input.values.length == {size}, "wrong array length");',
        f'{_TAB}bytes memory result;',
        f'{_TAB}for (uint256 i = 0; i < {size}; i++) {{',
        f'{_TAB * 2}result = abi.encodePacked(result, encode_{inner.key}(input.values[i]));',
        f'{_TAB}}}',
        f'{_TAB}return result;',
        '}',
        _decode_header(key, key, ' memory'),
        f'{_TAB}uint256 new_pos = pos;',
        f'{_TAB}{inner.code_name}[] memory values = new {inner.code_name}[]({size});',
        f'{_TAB}{inner.code_name}{location} value;',
        f'{_TAB}for (uint256 i = 0; i < {size}; i++) {{',
        f'{_TAB * 2}(new_pos, value) = decode_at_{inner.key}(new_pos, input);',
        f'{_TAB * 2}values[i] = value;',
        f'{_TAB}}}',
        f'{_TAB}return (new_pos, {key}(values));',
        '}',
    ]


def _render_struct(shape: Struct, table: ShapeTable) -> list[str]:
    key = shape.key
    lines = [f'struct {key} {{']
    lines.extend(f'{_TAB}{f.shape.code_name} {f.name};' for f in shape.fields)
    lines.append('}')

    first, *rest = shape.fields
    lines.append(_encode_header(key, key, ' memory'))
    lines.append(f'{_TAB}bytes memory result = encode_{first.shape.key}(input.{first.name});')
    for f in rest:
        lines.append(f'{_TAB}result = abi.encodePacked(result, encode_{f.shape.key}(input.{f.name}));')
    lines.append(f'{_TAB}return result;')
    lines.append('}')

    lines.append(_decode_header(key, key, ' memory'))
    lines.append(f'{_TAB}uint256 new_pos = pos;')
    for f in shape.fields:
        local = _local(f.name, table)
        lines.append(f'{_TAB}{f.shape.code_name}{table.data_location(f.shape)} {local};')
        lines.append(f'{_TAB}(new_pos, {local}) = decode_at_{f.shape.key}(new_pos, input);')
    args = ', '.join(_local(f.name, table) for f in shape.fields)
    lines.append(f'{_TAB}return (new_pos, {key}({args}));')
    lines.append('}')
    return lines


def _render_simple_enum(shape: SimpleEnum) -> list[str]:
    key = shape.key
    names = ', '.join(safe_variable(v) for v in shape.variants)
    return [
        f'enum {key} {{ {names} }}',
        _encode_header(key, key, ''),
        f'{_TAB}return abi.encodePacked(input);',
        '}',
        _decode_header(key, key, ''),
        f'{_TAB}require(pos < input.length, "input too short");',
        f'{_TAB}return (pos + 1, {key}(uint8(input[pos])));',
        '}',
    ]


def _render_tagged_enum(shape: TaggedEnum, table: ShapeTable) -> list[str]:
    key = shape.key
    count = len(shape.variants)
    payloads = [(idx, v) for idx, v in enumerate(shape.variants) if v.payload is not None]

    lines = [f'struct {key} {{', f'{_TAB}uint64 choice;']
    lines.extend(f'{_TAB}{v.payload.code_name} {v.field};' for _, v in payloads)
    lines.append('}')

    lines.append(_encode_header(key, key, ' memory'))
    lines.append(f'{_TAB}require(input.choice < {count}, "invalid enum choice");')
    lines.append(f'{_TAB}bytes memory result = encode_uint64(input.choice);')
    for idx, v in payloads:
        lines.append(f'{_TAB}if (input.choice == {idx}) {{')
        lines.append(f'{_TAB * 2}return abi.encodePacked(result, encode_{v.payload.key}(input.{v.field}));')
        lines.append(f'{_TAB}}}')
    lines.append(f'{_TAB}return result;')
    lines.append('}')

    lines.append(_decode_header(key, key, ' memory'))
    lines.append(f'{_TAB}uint256 new_pos;')
    lines.append(f'{_TAB}uint64 choice;')
    lines.append(f'{_TAB}(new_pos, choice) = decode_at_uint64(pos, input);')
    lines.append(f'{_TAB}require(choice < {count}, "invalid enum choice");')
    for idx, v in payloads:
        local = _local(v.field, table)
        lines.append(f'{_TAB}{v.payload.code_name}{table.data_location(v.payload)} {local};')
        lines.append(f'{_TAB}if (choice == {idx}) {{')
        lines.append(f'{_TAB * 2}(new_pos, {local}) = decode_at_{v.payload.key}(new_pos, input);')
        lines.append(f'{_TAB}}}')
    args = ', '.join(['choice'] + [_local(v.field, table) for _, v in payloads])
    lines.append(f'{_TAB}return (new_pos, {key}({args}));')
    lines.append('}')
    return lines


def render_shape(shape: Shape, table: ShapeTable) -> list[str]:
    """Type declaration plus encode/decode functions of one shape."""
    if isinstance(shape, Primitive):
        lines = _render_primitive(shape.kind)
    elif isinstance(shape, OptionOf):
        lines = _render_option(shape, table)
    elif isinstance(shape, SequenceOf):
        lines = _render_sequence(shape, table)
    elif isinstance(shape, FixedArrayOf):
        lines = _render_fixed_array(shape, table)
    elif isinstance(shape, Struct):
        lines = _render_struct(shape, table)
    elif isinstance(shape, SimpleEnum):
        lines = _render_simple_enum(shape)
    elif isinstance(shape, TaggedEnum):
        lines = _render_tagged_enum(shape, table)
    else:
        raise TypeError(f'Cannot render shape: {shape!r}')
    lines.extend(_generic_decode(shape.key, shape.code_name, table.data_location(shape)))
    return lines


def render(table: ShapeTable, config: CodeGeneratorConfig) -> str:
    """Render the complete Solidity source for ``table``."""
    lines = render_preamble(config)
    lines.append('')
    lines.append(f'library {config.module_name} {{')
    for shape in table:
        lines.append('')
        lines.extend(_indent(render_shape(shape, table)))
    lines.append('')
    lines.append(f'}} // end of library {config.module_name}')
    return '\n'.join(lines) + '\n'
