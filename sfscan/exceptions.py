"""sfscan exception hierarchy."""

from __future__ import annotations


class SFScanError(Exception):
    """Base exception for all sfscan errors."""

    pass


class ConfigurationError(SFScanError):
    """Raised when configuration is invalid or missing."""

    pass


class ConnectionError(SFScanError):
    """Raised when connection to the remote database fails."""

    pass


class ConnectorError(SFScanError):
    """Raised when a connector operation fails."""

    pass


class ProtocolError(SFScanError):
    """Raised when the remote unload response does not have the expected shape."""

    pass


class SchemaError(SFScanError):
    """Raised when schema operations fail."""

    pass


class TypeMappingError(SFScanError):
    """Raised when type mapping fails."""

    pass


class ConversionError(SFScanError):
    """Raised when a staged record cannot be converted to a typed row."""

    pass


class StagingError(SFScanError):
    """Raised when staged files cannot be listed or read."""

    pass


class ValidationError(SFScanError):
    """Raised when validation fails."""

    pass
