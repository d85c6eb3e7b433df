"""Solidity-level types produced by lowering a registry.

Every shape has a canonical ``key`` used both for deduplication and to name
the generated ``encode_<key>``/``decode_at_<key>``/``decode_<key>`` functions.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass

from solbcs.errors import UnresolvedReferenceError, UnsupportedConstructError
from solbcs.solidity.primitives import PrimitiveKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Shape(ABC):
    @property
    @abstractmethod
    def key(self) -> str:
        ...  # pragma: no cover

    @property
    def code_name(self) -> str:
        """The name of the type in Solidity source."""
        return self.key

    @abstractmethod
    def dependencies(self) -> list[str]:
        """Keys of the shapes whose decoders this shape's decoder calls."""
        ...  # pragma: no cover


@dataclass(frozen=True)
class Primitive(Shape):
    kind: PrimitiveKind

    @property
    def key(self) -> str:
        return self.kind.key

    def dependencies(self) -> list[str]:
        return []


@dataclass(frozen=True)
class TypeReference(Shape):
    name: str

    @property
    def key(self) -> str:
        return self.name

    def dependencies(self) -> list[str]:
        return [self.name]


@dataclass(frozen=True)
class SequenceOf(Shape):
    element: Shape

    @property
    def key(self) -> str:
        return f'seq_{self.element.key}'

    @property
    def code_name(self) -> str:
        return f'{self.element.code_name}[]'

    def dependencies(self) -> list[str]:
        return [self.element.key]


@dataclass(frozen=True)
class OptionOf(Shape):
    value: Shape

    @property
    def key(self) -> str:
        return f'opt_{self.value.key}'

    def dependencies(self) -> list[str]:
        return [PrimitiveKind.BOOL.key, self.value.key]


@dataclass(frozen=True)
class FixedArrayOf(Shape):
    element: Shape
    size: int

    @property
    def key(self) -> str:
        return f'tuplearray{self.size}_{self.element.key}'

    def dependencies(self) -> list[str]:
        return [self.element.key]


@dataclass(frozen=True)
class Field:
    name: str
    shape: Shape


@dataclass(frozen=True)
class Struct(Shape):
    name: str
    fields: tuple[Field, ...]

    @property
    def key(self) -> str:
        return self.name

    def dependencies(self) -> list[str]:
        return [f.shape.key for f in self.fields]


@dataclass(frozen=True)
class SimpleEnum(Shape):
    name: str
    variants: tuple[str, ...]

    @property
    def key(self) -> str:
        return self.name

    def dependencies(self) -> list[str]:
        return []


@dataclass(frozen=True)
class Variant:
    name: str
    # Field holding the payload in the generated struct, None for unit variants
    field: str | None
    payload: Shape | None


@dataclass(frozen=True)
class TaggedEnum(Shape):
    name: str
    variants: tuple[Variant, ...]

    @property
    def key(self) -> str:
        return self.name

    def dependencies(self) -> list[str]:
        deps = [PrimitiveKind.U64.key]
        deps.extend(v.payload.key for v in self.variants if v.payload is not None)
        return deps


class ShapeTable:
    """Deduplicated shapes of one generation run, in registration order."""

    def __init__(self) -> None:
        self._shapes: dict[str, Shape] = {}
        self._memory: dict[str, bool] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._shapes

    def __iter__(self) -> Iterator[Shape]:
        return iter(self._shapes.values())

    def __len__(self) -> int:
        return len(self._shapes)

    def keys(self) -> list[str]:
        return list(self._shapes)

    def insert(self, shape: Shape) -> Shape:
        """Register ``shape`` unless an equal shape is already registered.

        References are never registered: the shape they name is registered
        by its own container.
        """
        if isinstance(shape, TypeReference):
            return shape
        key = shape.key
        existing = self._shapes.get(key)
        if existing is None:
            logger.debug(f'Registering {type(shape).__name__} {key}')
            self._shapes[key] = shape
            return shape
        if existing != shape:
            raise UnsupportedConstructError(
                f'Two different types would be emitted under the name {key!r}'
            )
        return existing

    def get(self, key: str) -> Shape:
        try:
            return self._shapes[key]
        except KeyError:
            raise UnresolvedReferenceError(key) from None

    def resolve(self, shape: Shape) -> Shape:
        """Follow type references down to a registered shape."""
        while isinstance(shape, TypeReference):
            shape = self.get(shape.name)
        return shape

    def has_circular_dependency(self) -> bool:
        """Check whether any shape transitively depends on itself."""
        for start_key, start in self._shapes.items():
            # The start key stays out of visited so a path back to it is seen
            visited: set[str] = set()
            level = set(start.dependencies())
            while level:
                if start_key in level:
                    logger.debug(f'{start_key} depends on itself')
                    return True
                visited |= level
                next_level: set[str] = set()
                for key in level:
                    next_level.update(self.get(key).dependencies())
                level = next_level - visited
        return False

    def need_memory(self, shape: Shape) -> bool:
        """Whether decoded values of ``shape`` must be declared ``memory``."""
        if isinstance(shape, TypeReference):
            cached = self._memory.get(shape.name)
            if cached is None:
                cached = self.need_memory(self.get(shape.name))
                self._memory[shape.name] = cached
            return cached
        if isinstance(shape, Primitive):
            return shape.kind.need_memory
        if isinstance(shape, SimpleEnum):
            return False
        if isinstance(shape, (OptionOf, SequenceOf, FixedArrayOf, Struct, TaggedEnum)):
            return True
        raise TypeError(f'Unknown shape: {shape!r}')  # pragma: no cover

    def data_location(self, shape: Shape) -> str:
        return ' memory' if self.need_memory(shape) else ''
