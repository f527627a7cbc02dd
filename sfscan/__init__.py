"""sfscan - Push-down scans of Snowflake tables through staged unloads."""

__version__ = "0.1.0"

# Re-export key models for convenience
from sfscan.models import (
    DataType,
    ExportResult,
    Field,
    RelationOptions,
    ScanConfig,
    ScanRequest,
    Schema,
)

# Re-export core classes for custom connectors and readers
from sfscan.core import Connector, StagedReader, TypeMapper

from sfscan.dataset import CountDataset, EmptyDataset, ScanDataset, StagedDataset
from sfscan.relation import SnowflakeRelation

__all__ = [
    # Version
    "__version__",
    # Models
    "DataType",
    "ExportResult",
    "Field",
    "RelationOptions",
    "ScanConfig",
    "ScanRequest",
    "Schema",
    # Core ABCs
    "Connector",
    "StagedReader",
    "TypeMapper",
    # Scanning
    "CountDataset",
    "EmptyDataset",
    "ScanDataset",
    "SnowflakeRelation",
    "StagedDataset",
]
