"""
Error Types

Every failure raised while resolving a provider is a subclass of
KubeDiagError. Errors carry the name of the operation that failed; the
underlying cause, when there is one, is chained with ``raise ... from``.
"""

from typing import Optional


class KubeDiagError(Exception):
    """Base class for provider resolution errors."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.operation = operation

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class ArgumentError(KubeDiagError):
    """Raised when a script argument has an incompatible shape."""


class DecodeError(KubeDiagError):
    """Raised when a cluster object cannot be converted to a node record."""


class ConfigurationError(KubeDiagError):
    """Raised when required target or connection parameters are missing."""


class ClientInitError(KubeDiagError):
    """Raised when the cluster search client cannot be constructed."""


class SearchError(KubeDiagError):
    """Raised when a cluster search fails."""


class MissingDefaultError(KubeDiagError):
    """Raised when no explicit and no inherited ssh_config is available."""
