"""Read registries serialized in the serde-reflection YAML layout.

A registry document maps container names to container formats::

    Foo:
      STRUCT:
        - bar:
            TYPENAME: Bar
        - flags:
            SEQ: BOOL
    Choice:
      ENUM:
        0:
          A: UNIT
        1:
          B:
            NEWTYPE: U32
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from solbcs.errors import RegistryFormatError
from solbcs.schema import (
    ContainerFormat,
    Enum,
    Format,
    Map,
    Named,
    NewTypeStruct,
    NewTypeVariant,
    Option,
    Primitive,
    Registry,
    Seq,
    Struct,
    StructVariant,
    Tuple,
    TupleArray,
    TupleStruct,
    TupleVariant,
    TypeName,
    UnitStruct,
    UnitVariant,
    Variable,
    VariableVariant,
    VariantFormat
)

logger = logging.getLogger(__name__)


def _single_entry(node: Any, what: str) -> tuple[str, Any]:
    if not isinstance(node, dict) or len(node) != 1:
        raise RegistryFormatError(f'Expected a single-key mapping for {what}, got {node!r}')
    ((tag, value),) = node.items()
    if not isinstance(tag, str):
        raise RegistryFormatError(f'Expected a string tag for {what}, got {tag!r}')
    return tag, value


def _parse_list(node: Any, what: str) -> list:
    if not isinstance(node, list):
        raise RegistryFormatError(f'Expected a list for {what}, got {node!r}')
    return node


def parse_format(node: Any) -> Format:
    """Parse one format node."""
    if isinstance(node, str):
        if not Primitive.is_primitive(node):
            raise RegistryFormatError(f'Unknown format: {node}')
        return Primitive(node)

    tag, value = _single_entry(node, 'format')
    if tag == 'TYPENAME':
        if not isinstance(value, str):
            raise RegistryFormatError(f'TYPENAME expects a string, got {value!r}')
        return TypeName(value)
    if tag == 'OPTION':
        return Option(parse_format(value))
    if tag == 'SEQ':
        return Seq(parse_format(value))
    if tag == 'MAP':
        if not isinstance(value, dict) or set(value) != {'KEY', 'VALUE'}:
            raise RegistryFormatError(f'MAP expects KEY and VALUE entries, got {value!r}')
        return Map(parse_format(value['KEY']), parse_format(value['VALUE']))
    if tag == 'TUPLE':
        return Tuple(tuple(parse_format(v) for v in _parse_list(value, 'TUPLE')))
    if tag == 'TUPLEARRAY':
        if not isinstance(value, dict) or set(value) != {'CONTENT', 'SIZE'}:
            raise RegistryFormatError(f'TUPLEARRAY expects CONTENT and SIZE entries, got {value!r}')
        size = value['SIZE']
        if not isinstance(size, int) or isinstance(size, bool) or size < 0:
            raise RegistryFormatError(f'TUPLEARRAY size must be a non-negative integer, got {size!r}')
        return TupleArray(parse_format(value['CONTENT']), size)
    if tag == 'VARIABLE':
        return Variable(str(value))
    raise RegistryFormatError(f'Unknown format tag: {tag}')


def _parse_named_formats(node: Any, what: str) -> tuple[Named[Format], ...]:
    fields = []
    for entry in _parse_list(node, what):
        name, value = _single_entry(entry, f'{what} field')
        fields.append(Named(name, parse_format(value)))
    return tuple(fields)


def parse_variant(node: Any) -> VariantFormat:
    """Parse the format of one enum variant."""
    if node == 'UNIT':
        return UnitVariant()
    tag, value = _single_entry(node, 'variant')
    if tag == 'NEWTYPE':
        return NewTypeVariant(parse_format(value))
    if tag == 'TUPLE':
        return TupleVariant(tuple(parse_format(v) for v in _parse_list(value, 'TUPLE variant')))
    if tag == 'STRUCT':
        return StructVariant(_parse_named_formats(value, 'STRUCT variant'))
    if tag == 'VARIABLE':
        return VariableVariant(str(value))
    raise RegistryFormatError(f'Unknown variant tag: {tag}')


def parse_container(node: Any) -> ContainerFormat:
    """Parse one container format node."""
    if node == 'UNITSTRUCT':
        return UnitStruct()
    tag, value = _single_entry(node, 'container')
    if tag == 'NEWTYPESTRUCT':
        return NewTypeStruct(parse_format(value))
    if tag == 'TUPLESTRUCT':
        return TupleStruct(tuple(parse_format(v) for v in _parse_list(value, 'TUPLESTRUCT')))
    if tag == 'STRUCT':
        return Struct(_parse_named_formats(value, 'STRUCT'))
    if tag == 'ENUM':
        if not isinstance(value, dict):
            raise RegistryFormatError(f'ENUM expects a mapping of variants, got {value!r}')
        variants: dict[int, Named[VariantFormat]] = {}
        for index, variant in value.items():
            if not isinstance(index, int) or isinstance(index, bool):
                raise RegistryFormatError(f'Variant index must be an integer, got {index!r}')
            name, variant_value = _single_entry(variant, 'variant')
            variants[index] = Named(name, parse_variant(variant_value))
        return Enum(dict(sorted(variants.items())))
    raise RegistryFormatError(f'Unknown container tag: {tag}')


def parse_registry(document: Any) -> Registry:
    """Build a registry from an already loaded YAML document."""
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise RegistryFormatError('Registry document must be a mapping of container names')

    registry: Registry = {}
    for name, container in document.items():
        if not isinstance(name, str):
            raise RegistryFormatError(f'Container name must be a string, got {name!r}')
        try:
            registry[name] = parse_container(container)
        except RegistryFormatError as e:
            raise RegistryFormatError(f'{name}: {e}') from e
    logger.debug(f'Parsed registry with {len(registry)} containers')
    return registry


def load_registry(source: str | Path) -> Registry:
    """Load a registry from a YAML file path or from YAML text."""
    if isinstance(source, Path):
        with open(source, 'r', encoding='utf-8') as f:
            text = f.read()
    else:
        text = source
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise RegistryFormatError(f'Invalid YAML: {e}') from e
    return parse_registry(document)
