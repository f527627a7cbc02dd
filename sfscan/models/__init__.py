"""sfscan data models.

This package contains pydantic models and value objects for schemas,
filter predicates, scan requests, and configuration.
"""

from sfscan.models.field import DataType, Field, Schema
from sfscan.models.filters import (
    PREDICATE_TYPES,
    And,
    EqualNullSafe,
    EqualTo,
    GreaterThan,
    GreaterThanOrEqual,
    In,
    IsNotNull,
    IsNull,
    LessThan,
    LessThanOrEqual,
    Not,
    NotEqualTo,
    Or,
    Predicate,
    StringContains,
    StringEndsWith,
    StringStartsWith,
)
from sfscan.models.scan import ExportResult, RelationOptions, ScanRequest
from sfscan.models.config import ScanConfig

__all__ = [
    # Schema
    "DataType",
    "Field",
    "Schema",
    # Predicates
    "PREDICATE_TYPES",
    "Predicate",
    "And",
    "EqualNullSafe",
    "EqualTo",
    "GreaterThan",
    "GreaterThanOrEqual",
    "In",
    "IsNotNull",
    "IsNull",
    "LessThan",
    "LessThanOrEqual",
    "Not",
    "NotEqualTo",
    "Or",
    "StringContains",
    "StringEndsWith",
    "StringStartsWith",
    # Scan
    "ExportResult",
    "RelationOptions",
    "ScanRequest",
    "ScanConfig",
]
