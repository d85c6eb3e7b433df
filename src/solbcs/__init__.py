from importlib.metadata import version

__version__ = version("solbcs")

from .codec import BcsCodec
from .config import CodeGeneratorConfig, Encoding
from .solidity import CodeGenerator, generate_solidity

__all__ = ['BcsCodec', 'CodeGenerator', 'CodeGeneratorConfig', 'Encoding', 'generate_solidity', '__version__']
