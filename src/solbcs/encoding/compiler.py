"""Compile a table of shapes into Python encoders and decoders.

The generated functions follow exactly the wire rules of the Solidity code
emitted for the same table, so they can produce and check test vectors for it.
"""
from __future__ import annotations

import keyword
import logging
import re
from dataclasses import dataclass, field, make_dataclass
from enum import IntEnum
from typing import Any, Callable

from solbcs.errors import BcsDecodeError, BcsEncodeError
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

logger = logging.getLogger(__name__)

_TAB = '    '


def _sanitize(name: str) -> str:
    return re.sub(r'[^0-9a-zA-Z_]', '_', name)


def python_name(name: str) -> str:
    """Attribute name of a generated field."""
    return name + '_' if keyword.iskeyword(name) else name


def _enum_ordinal(enum_type: type[IntEnum], value: Any) -> int:
    try:
        return int(enum_type(value))
    except ValueError:
        raise BcsEncodeError(f'{value!r} is not a valid {enum_type.__name__}') from None


def _enum_member(enum_type: type[IntEnum], value: int) -> IntEnum:
    try:
        return enum_type(value)
    except ValueError:
        raise BcsDecodeError(f'{value} is not a valid {enum_type.__name__}') from None


@dataclass
class CompiledCodec:
    encoders: dict[str, Callable[[Any, Any], None]]
    decoders: dict[str, Callable[[Any], Any]]
    types: dict[str, type]
    source: str = field(repr=False, default='')


def _boxed_option(shape: Shape) -> bool:
    """Whether an option needs an explicit flag because its inner value can be None."""
    if not isinstance(shape, OptionOf):
        return False
    inner = shape.value
    return isinstance(inner, OptionOf) or (isinstance(inner, Primitive) and inner.kind is PrimitiveKind.UNIT)


def create_types(table: ShapeTable) -> dict[str, type]:
    """Create the Python classes standing for generated Solidity types."""
    types: dict[str, type] = {}
    for shape in table:
        namespace = {'__shape_key__': shape.key}
        if isinstance(shape, Struct):
            field_specs = [(python_name(f.name), Any) for f in shape.fields]
            types[shape.key] = make_dataclass(_sanitize(shape.key), field_specs, namespace=namespace, kw_only=True)
        elif _boxed_option(shape):
            field_specs = [('has_value', bool), ('value', Any, field(default=None))]
            types[shape.key] = make_dataclass(_sanitize(shape.key), field_specs, namespace=namespace, kw_only=True)
        elif isinstance(shape, FixedArrayOf):
            types[shape.key] = make_dataclass(_sanitize(shape.key), [('values', list)], namespace=namespace, kw_only=True)
        elif isinstance(shape, TaggedEnum):
            field_specs = [('choice', int)]
            for v in shape.variants:
                if v.field is not None:
                    field_specs.append((python_name(v.field), Any, field(default=None)))
            types[shape.key] = make_dataclass(_sanitize(shape.key), field_specs, namespace=namespace, kw_only=True)
        elif isinstance(shape, SimpleEnum):
            types[shape.key] = IntEnum(_sanitize(shape.key), [(name, idx) for idx, name in enumerate(shape.variants)])
    return types


def _build_encoder(shape: Shape) -> str:
    key = shape.key
    lines = [f'def encode_{_sanitize(key)}(encoder, value):']

    if isinstance(shape, Primitive):
        lines.append(f'{_TAB}encoder.{key}(value)')

    elif _boxed_option(shape):
        inner = _sanitize(shape.value.key)
        lines.append(f'{_TAB}encoder.bool(value.has_value)')
        lines.append(f'{_TAB}if value.has_value:')
        lines.append(f'{_TAB * 2}encode_{inner}(encoder, value.value)')

    elif isinstance(shape, OptionOf):
        inner = _sanitize(shape.value.key)
        lines.append(f'{_TAB}if value is None:')
        lines.append(f'{_TAB * 2}encoder.bool(False)')
        lines.append(f'{_TAB}else:')
        lines.append(f'{_TAB * 2}encoder.bool(True)')
        lines.append(f'{_TAB * 2}encode_{inner}(encoder, value)')

    elif isinstance(shape, SequenceOf):
        inner = _sanitize(shape.element.key)
        lines.append(f'{_TAB}encoder.len(len(value))')
        lines.append(f'{_TAB}for item in value:')
        lines.append(f'{_TAB * 2}encode_{inner}(encoder, item)')

    elif isinstance(shape, FixedArrayOf):
        inner = _sanitize(shape.element.key)
        size = shape.size
        lines.append(f'{_TAB}values = value.values')
        lines.append(f'{_TAB}if len(values) != {size}:')
        lines.append(
            f'{_TAB * 2}raise BcsEncodeError(f"Fixed array size mismatch: expected {size} elements, got {{len(values)}}")'
        )
        lines.append(f'{_TAB}for item in values:')
        lines.append(f'{_TAB * 2}encode_{inner}(encoder, item)')

    elif isinstance(shape, Struct):
        for f in shape.fields:
            lines.append(f'{_TAB}encode_{_sanitize(f.shape.key)}(encoder, value.{python_name(f.name)})')

    elif isinstance(shape, SimpleEnum):
        lines.append(f'{_TAB}encoder.uint8(_enum_ordinal(_types[{key!r}], value))')

    elif isinstance(shape, TaggedEnum):
        count = len(shape.variants)
        lines.append(f'{_TAB}choice = value.choice')
        lines.append(f'{_TAB}if not 0 <= choice < {count}:')
        lines.append(f'{_TAB * 2}raise BcsEncodeError(f"Invalid variant index {{choice}} for {key}")')
        lines.append(f'{_TAB}encoder.uint64(choice)')
        for idx, v in enumerate(shape.variants):
            if v.payload is None:
                continue
            lines.append(f'{_TAB}if choice == {idx}:')
            lines.append(f'{_TAB * 2}encode_{_sanitize(v.payload.key)}(encoder, value.{python_name(v.field)})')

    else:
        raise TypeError(f'Cannot compile shape: {shape!r}')

    return '\n'.join(lines)


def _build_decoder(shape: Shape) -> str:
    key = shape.key
    lines = [f'def decode_at_{_sanitize(key)}(decoder):']

    if isinstance(shape, Primitive):
        lines.append(f'{_TAB}return decoder.{key}()')

    elif _boxed_option(shape):
        lines.append(f'{_TAB}if decoder.bool():')
        lines.append(
            f'{_TAB * 2}return _types[{key!r}](has_value=True, value=decode_at_{_sanitize(shape.value.key)}(decoder))'
        )
        lines.append(f'{_TAB}return _types[{key!r}](has_value=False)')

    elif isinstance(shape, OptionOf):
        # The inner decoder must not run when the value is absent
        lines.append(f'{_TAB}if decoder.bool():')
        lines.append(f'{_TAB * 2}return decode_at_{_sanitize(shape.value.key)}(decoder)')
        lines.append(f'{_TAB}return None')

    elif isinstance(shape, SequenceOf):
        lines.append(f'{_TAB}length = decoder.len()')
        lines.append(f'{_TAB}return [decode_at_{_sanitize(shape.element.key)}(decoder) for _ in range(length)]')

    elif isinstance(shape, FixedArrayOf):
        lines.append(
            f'{_TAB}values = [decode_at_{_sanitize(shape.element.key)}(decoder) for _ in range({shape.size})]'
        )
        lines.append(f'{_TAB}return _types[{key!r}](values=values)')

    elif isinstance(shape, Struct):
        lines.append(f'{_TAB}_fields = {{}}')
        for f in shape.fields:
            lines.append(f'{_TAB}_fields[{python_name(f.name)!r}] = decode_at_{_sanitize(f.shape.key)}(decoder)')
        lines.append(f'{_TAB}return _types[{key!r}](**_fields)')

    elif isinstance(shape, SimpleEnum):
        lines.append(f'{_TAB}return _enum_member(_types[{key!r}], decoder.uint8())')

    elif isinstance(shape, TaggedEnum):
        count = len(shape.variants)
        lines.append(f'{_TAB}choice = decoder.uint64()')
        lines.append(f'{_TAB}if choice >= {count}:')
        lines.append(f'{_TAB * 2}raise BcsDecodeError(f"Invalid variant index {{choice}} for {key}")')
        lines.append(f'{_TAB}_fields = {{"choice": choice}}')
        for idx, v in enumerate(shape.variants):
            if v.payload is None:
                continue
            lines.append(f'{_TAB}if choice == {idx}:')
            lines.append(
                f'{_TAB * 2}_fields[{python_name(v.field)!r}] = decode_at_{_sanitize(v.payload.key)}(decoder)'
            )
        lines.append(f'{_TAB}return _types[{key!r}](**_fields)')

    else:
        raise TypeError(f'Cannot compile shape: {shape!r}')

    return '\n'.join(lines)


def compile_codec(table: ShapeTable) -> CompiledCodec:
    """Compile encoders and decoders for every shape of ``table``."""
    types = create_types(table)

    function_defs: list[str] = []
    for shape in table:
        function_defs.append(_build_encoder(shape))
        function_defs.append(_build_decoder(shape))
    code = '\n\n'.join(function_defs) + '\n'

    namespace: dict[str, object] = {
        '_types': types,
        '_enum_member': _enum_member,
        '_enum_ordinal': _enum_ordinal,
        'BcsDecodeError': BcsDecodeError,
        'BcsEncodeError': BcsEncodeError,
    }
    exec(code, namespace)
    logger.debug(f'Compiled codec for {len(table)} shapes')

    encoders = {key: namespace[f'encode_{_sanitize(key)}'] for key in table.keys()}
    decoders = {key: namespace[f'decode_at_{_sanitize(key)}'] for key in table.keys()}
    return CompiledCodec(encoders, decoders, types, code)  # type: ignore[arg-type]


__all__ = ['CompiledCodec', 'compile_codec', 'create_types', 'python_name']
