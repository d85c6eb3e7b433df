"""Generate Solidity (de)serialization code for a registry."""
from __future__ import annotations

import logging
from typing import TextIO

from solbcs.config import CodeGeneratorConfig
from solbcs.schema import Registry
from solbcs.solidity.emitter import render
from solbcs.solidity.lowering import lower_registry

logger = logging.getLogger(__name__)


class CodeGenerator:
    """Solidity code generator for a given configuration."""

    def __init__(self, config: CodeGeneratorConfig) -> None:
        config.validate()
        self._config = config

    @property
    def config(self) -> CodeGeneratorConfig:
        return self._config

    def generate(self, registry: Registry) -> str:
        """Return the Solidity source for ``registry``.

        Raises a :class:`~solbcs.errors.SolbcsError` subclass if the registry
        contains a construct that Solidity cannot express.
        """
        table = lower_registry(registry)
        source = render(table, self._config)
        logger.info(f'Generated library {self._config.module_name} with {len(table)} types')
        return source

    def output(self, out: TextIO, registry: Registry) -> None:
        """Write the generated source to ``out``.

        Nothing is written if generation fails.
        """
        out.write(self.generate(registry))


def generate_solidity(registry: Registry, module_name: str) -> str:
    return CodeGenerator(CodeGeneratorConfig(module_name)).generate(registry)


__all__ = ['CodeGenerator', 'generate_solidity']
