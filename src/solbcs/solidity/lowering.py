"""Lower registry formats into deduplicated Solidity shapes."""
from __future__ import annotations

import logging
import re

import solbcs.schema as sch
from solbcs.errors import CyclicDependencyError, UnsupportedConstructError
from solbcs.solidity.keywords import safe_variable
from solbcs.solidity.primitives import PrimitiveKind
from solbcs.solidity.shapes import (
    Field,
    FixedArrayOf,
    OptionOf,
    Primitive,
    SequenceOf,
    Shape,
    ShapeTable,
    SimpleEnum,
    Struct,
    TaggedEnum,
    TypeReference,
    Variant
)

logger = logging.getLogger(__name__)

_CAMEL_WORD = re.compile(r'(.)([A-Z][a-z]+)')
_CAMEL_TAIL = re.compile(r'([a-z0-9])([A-Z])')


def to_snake_case(name: str) -> str:
    name = _CAMEL_WORD.sub(r'\1_\2', name)
    return _CAMEL_TAIL.sub(r'\1_\2', name).lower()


def _primitive(table: ShapeTable, kind: PrimitiveKind) -> Shape:
    return table.insert(Primitive(kind))


def _entries(formats: tuple[sch.Format, ...]) -> list[sch.Named[sch.Format]]:
    return [sch.Named(f'entry{idx}', f) for idx, f in enumerate(formats)]


def lower_format(table: ShapeTable, format: sch.Format) -> Shape:
    """Lower one format, registering every shape it needs."""
    if isinstance(format, sch.Variable):
        raise UnsupportedConstructError('Variable formats are not supported in Solidity')

    if isinstance(format, sch.Primitive):
        return _primitive(table, PrimitiveKind.from_format(format.type))

    if isinstance(format, sch.TypeName):
        return TypeReference(format.name)

    if isinstance(format, sch.Option):
        _primitive(table, PrimitiveKind.BOOL)
        shape: Shape = OptionOf(lower_format(table, format.type))

    elif isinstance(format, sch.Seq):
        _primitive(table, PrimitiveKind.U64)
        shape = SequenceOf(lower_format(table, format.type))

    elif isinstance(format, sch.Map):
        _primitive(table, PrimitiveKind.U64)
        key = lower_format(table, format.key)
        value = lower_format(table, format.value)
        pair_name = f'key_values_{key.key}_{value.key}'
        if pair_name not in table:
            logger.warning(f'Map entries {pair_name} are emitted without key order validation')
        pair = table.insert(Struct(pair_name, (Field('key', key), Field('value', value))))
        shape = SequenceOf(pair)

    elif isinstance(format, sch.Tuple):
        if not format.types:
            raise UnsupportedConstructError('Empty tuples are not supported in Solidity')
        elements = [lower_format(table, f) for f in format.types]
        name = 'tuple_' + '_'.join(e.key for e in elements)
        shape = Struct(name, tuple(Field(f'entry{idx}', e) for idx, e in enumerate(elements)))

    elif isinstance(format, sch.TupleArray):
        shape = FixedArrayOf(lower_format(table, format.content), format.size)

    else:
        raise UnsupportedConstructError(f'Unknown format: {format!r}')

    return table.insert(shape)


def _lower_struct(table: ShapeTable, name: str, fields: list[sch.Named[sch.Format]]) -> Shape:
    lowered = tuple(Field(safe_variable(f.name), lower_format(table, f.value)) for f in fields)
    names = [f.name for f in lowered]
    if len(set(names)) != len(names):
        raise UnsupportedConstructError(f'{name} has colliding field names: {names}')
    return table.insert(Struct(name, lowered))


def _lower_enum(table: ShapeTable, name: str, variants: dict[int, sch.Named[sch.VariantFormat]]) -> Shape:
    if not variants:
        raise UnsupportedConstructError(f'The enum {name} should be non-trivial in Solidity')
    ordered = [variants[idx] for idx in sorted(variants)]

    if all(isinstance(v.value, sch.UnitVariant) for v in ordered):
        return table.insert(SimpleEnum(name, tuple(v.name for v in ordered)))

    lowered: list[Variant] = []
    for named in ordered:
        variant = named.value
        payload_name = f'{name}_{named.name}'
        if isinstance(variant, sch.UnitVariant):
            lowered.append(Variant(named.name, None, None))
            continue
        if isinstance(variant, sch.NewTypeVariant):
            payload = lower_format(table, variant.type)
        elif isinstance(variant, sch.TupleVariant):
            if not variant.types:
                raise UnsupportedConstructError(f'The variant {payload_name} should be non-trivial in Solidity')
            payload = _lower_struct(table, payload_name, _entries(variant.types))
        elif isinstance(variant, sch.StructVariant):
            if not variant.fields:
                raise UnsupportedConstructError(f'The variant {payload_name} should be non-trivial in Solidity')
            payload = _lower_struct(table, payload_name, list(variant.fields))
        else:
            raise UnsupportedConstructError(f'Variable variants are not supported in Solidity ({payload_name})')
        lowered.append(Variant(named.name, safe_variable(to_snake_case(named.name)), payload))

    fields = ['choice'] + [v.field for v in lowered if v.field is not None]
    if len(set(fields)) != len(fields):
        raise UnsupportedConstructError(f'{name} has colliding variant field names: {fields}')

    _primitive(table, PrimitiveKind.U64)
    return table.insert(TaggedEnum(name, tuple(lowered)))


def lower_container(table: ShapeTable, name: str, container: sch.ContainerFormat) -> Shape:
    """Lower one registry entry."""
    logger.debug(f'Lowering container {name}')
    if isinstance(container, sch.UnitStruct):
        raise UnsupportedConstructError(f'UnitStruct {name} is not supported in Solidity')
    if isinstance(container, sch.NewTypeStruct):
        return _lower_struct(table, name, [sch.Named('value', container.type)])
    if isinstance(container, sch.TupleStruct):
        if not container.types:
            raise UnsupportedConstructError(f'The TupleStruct {name} should be non-trivial in Solidity')
        return _lower_struct(table, name, _entries(container.types))
    if isinstance(container, sch.Struct):
        if not container.fields:
            raise UnsupportedConstructError(f'The struct {name} should be non-trivial in Solidity')
        return _lower_struct(table, name, list(container.fields))
    if isinstance(container, sch.Enum):
        return _lower_enum(table, name, container.variants)
    raise UnsupportedConstructError(f'Unknown container format for {name}: {container!r}')


def lower_registry(registry: sch.Registry) -> ShapeTable:
    """Lower a whole registry and check that the result can be emitted."""
    table = ShapeTable()
    for name, container in registry.items():
        lower_container(table, name, container)
    if table.has_circular_dependency():
        raise CyclicDependencyError('Solidity does not allow for circular dependencies')
    logger.info(f'Lowered {len(registry)} containers into {len(table)} shapes')
    return table
