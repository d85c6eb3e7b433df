"""Data model of a traced registry of containers and their formats."""
from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field
from typing import Generic, TypeVar

# Primitive format names as they appear in a serialized registry
PRIMITIVE_FORMATS = (
    'UNIT',
    'BOOL',
    'I8',
    'I16',
    'I32',
    'I64',
    'I128',
    'U8',
    'U16',
    'U32',
    'U64',
    'U128',
    'F32',
    'F64',
    'CHAR',
    'STR',
    'BYTES',
)

T = TypeVar('T')


@dataclass(frozen=True)
class Named(Generic[T]):
    name: str
    value: T


@dataclass(frozen=True)
class Format(ABC):
    ...


@dataclass(frozen=True)
class Primitive(Format):
    type: str

    def __post_init__(self) -> None:
        if self.type not in PRIMITIVE_FORMATS:
            raise ValueError(f'Unknown primitive format: {self.type}')

    @classmethod
    def is_primitive(cls, type: str) -> bool:
        return type in PRIMITIVE_FORMATS


@dataclass(frozen=True)
class Variable(Format):
    """Placeholder left behind by an incomplete trace."""
    name: str = ''


@dataclass(frozen=True)
class TypeName(Format):
    name: str


@dataclass(frozen=True)
class Option(Format):
    type: Format


@dataclass(frozen=True)
class Seq(Format):
    type: Format


@dataclass(frozen=True)
class Map(Format):
    key: Format
    value: Format


@dataclass(frozen=True)
class Tuple(Format):
    types: tuple[Format, ...]


@dataclass(frozen=True)
class TupleArray(Format):
    content: Format
    size: int


UNIT = Primitive('UNIT')
BOOL = Primitive('BOOL')
I8 = Primitive('I8')
I16 = Primitive('I16')
I32 = Primitive('I32')
I64 = Primitive('I64')
I128 = Primitive('I128')
U8 = Primitive('U8')
U16 = Primitive('U16')
U32 = Primitive('U32')
U64 = Primitive('U64')
U128 = Primitive('U128')
F32 = Primitive('F32')
F64 = Primitive('F64')
CHAR = Primitive('CHAR')
STR = Primitive('STR')
BYTES = Primitive('BYTES')


# Variants of an enum -------------------------------------------------------

@dataclass(frozen=True)
class VariantFormat(ABC):
    ...


@dataclass(frozen=True)
class UnitVariant(VariantFormat):
    ...


@dataclass(frozen=True)
class NewTypeVariant(VariantFormat):
    type: Format


@dataclass(frozen=True)
class TupleVariant(VariantFormat):
    types: tuple[Format, ...]


@dataclass(frozen=True)
class StructVariant(VariantFormat):
    fields: tuple[Named[Format], ...]


@dataclass(frozen=True)
class VariableVariant(VariantFormat):
    name: str = ''


# Containers ----------------------------------------------------------------

@dataclass(frozen=True)
class ContainerFormat(ABC):
    ...


@dataclass(frozen=True)
class UnitStruct(ContainerFormat):
    ...


@dataclass(frozen=True)
class NewTypeStruct(ContainerFormat):
    type: Format


@dataclass(frozen=True)
class TupleStruct(ContainerFormat):
    types: tuple[Format, ...]


@dataclass(frozen=True)
class Struct(ContainerFormat):
    fields: tuple[Named[Format], ...]


@dataclass(frozen=True)
class Enum(ContainerFormat):
    # Variant index -> named variant
    variants: dict[int, Named[VariantFormat]] = field(default_factory=dict, hash=False)


# Ordered mapping from container name to its format
Registry = dict[str, ContainerFormat]
