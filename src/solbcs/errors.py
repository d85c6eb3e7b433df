class SolbcsError(Exception):
    """Base exception for all solbcs errors."""


class UnsupportedConstructError(SolbcsError):
    """Exception raised when a format cannot be expressed in Solidity."""
    def __init__(self, message: str):
        super().__init__(message)


class CyclicDependencyError(SolbcsError):
    """Exception raised when the generated types depend on each other in a cycle."""
    def __init__(self, message: str):
        super().__init__(message)


class UnresolvedReferenceError(SolbcsError):
    """Exception raised when a type name has no matching entry."""
    def __init__(self, name: str):
        super().__init__(f'No entry found for type name {name!r}')
        self.name = name


class ConfigurationConflictError(SolbcsError):
    """Exception raised when a generation option cannot be honoured."""
    def __init__(self, message: str):
        super().__init__(message)


class RegistryFormatError(SolbcsError):
    """Exception raised for malformed registry documents."""
    def __init__(self, message: str):
        super().__init__(message)


class BcsEncodeError(SolbcsError):
    """Exception raised when a value cannot be serialized."""


class BcsDecodeError(SolbcsError):
    """Exception raised when bytes are not a valid serialization."""
