"""Catalogue of the built-in Solidity shapes."""
from enum import Enum

from solbcs.errors import UnsupportedConstructError


class PrimitiveKind(Enum):
    # member = (key, fixed width in bytes or None, signed)
    UNIT = ('empty_struct', 0, False)
    BOOL = ('bool', 1, False)
    I8 = ('int8', 1, True)
    I16 = ('int16', 2, True)
    I32 = ('int32', 4, True)
    I64 = ('int64', 8, True)
    I128 = ('int128', 16, True)
    U8 = ('uint8', 1, False)
    U16 = ('uint16', 2, False)
    U32 = ('uint32', 4, False)
    U64 = ('uint64', 8, False)
    U128 = ('uint128', 16, False)
    CHAR = ('bytes1', 1, False)
    STR = ('string', None, False)
    BYTES = ('bytes', None, False)

    def __init__(self, key: str, width: int | None, signed: bool) -> None:
        self.key = key
        self.width = width
        self.signed = signed

    @property
    def is_integer(self) -> bool:
        return self.key.startswith(('int', 'uint'))

    @property
    def need_memory(self) -> bool:
        """Whether values of this primitive live in memory."""
        return self in (PrimitiveKind.UNIT, PrimitiveKind.STR, PrimitiveKind.BYTES)

    @property
    def unsigned_key(self) -> str:
        """Name of the unsigned type of the same width."""
        return 'u' + self.key if self.signed else self.key

    @classmethod
    def from_format(cls, name: str) -> 'PrimitiveKind':
        if name in ('F32', 'F64'):
            raise UnsupportedConstructError('Floating point is not supported in Solidity')
        try:
            return cls[name]
        except KeyError:
            raise UnsupportedConstructError(f'Unknown primitive format: {name}') from None
