import re
from dataclasses import dataclass, field
from enum import Enum

from solbcs.errors import ConfigurationConflictError

_IDENTIFIER = re.compile(r'^[A-Za-z_$][A-Za-z0-9_$]*$')


class Encoding(Enum):
    BCS = 'bcs'
    BINCODE = 'bincode'


@dataclass
class CodeGeneratorConfig:
    """Language-independent options of a code generation run."""

    module_name: str
    encodings: set[Encoding] = field(default_factory=lambda: {Encoding.BCS})
    c_style_enums: bool = False
    solidity_version: str = '^0.8.0'
    license: str = 'UNLICENSED'

    def validate(self) -> None:
        """Reject options the Solidity backend cannot express."""
        if not _IDENTIFIER.match(self.module_name):
            raise ConfigurationConflictError(
                f'Module name {self.module_name!r} is not a valid Solidity library name'
            )
        if self.c_style_enums:
            raise ConfigurationConflictError('Solidity does not support generating c-style enums')
        unsupported = {e for e in self.encodings if e is not Encoding.BCS}
        if unsupported:
            names = ', '.join(sorted(e.value for e in unsupported))
            raise ConfigurationConflictError(f'Solidity only supports the bcs encoding (requested: {names})')
