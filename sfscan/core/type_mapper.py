"""Base TypeMapper abstract class.

This module defines the TypeMapper interface for converting remote
database type names into sfscan's canonical type system.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import pyarrow as pa

from sfscan.models.field import DataType, Field


class TypeMapper(ABC):
    """Base class for converting remote types to canonical types.

    Each remote database provides its own TypeMapper implementation with
    system-specific type names.

    Examples:
        >>> mapper = SnowflakeTypeMapper()
        >>> mapper.from_source("NUMBER", precision=38, scale=0)
        <DataType.DECIMAL: 'decimal'>
        >>> mapper.from_source("TIMESTAMP_NTZ")
        <DataType.TIMESTAMP: 'timestamp'>
    """

    @abstractmethod
    def from_source(
        self,
        source_type: str,
        precision: Optional[int] = None,
        scale: Optional[int] = None,
    ) -> DataType:
        """Convert a remote type name to a canonical type.

        Args:
            source_type: Remote type name (e.g., "NUMBER", "VARCHAR(255)")
            precision: Numeric precision reported with the column, if any
            scale: Numeric scale reported with the column, if any

        Returns:
            Corresponding canonical type

        Raises:
            TypeMappingError: If type cannot be mapped
        """
        pass

    def normalize_source_type(self, source_type: str) -> str:
        """Normalize source type string for consistent mapping.

        Removes parameters and converts to lowercase.

        Examples:
            "VARCHAR(255)" -> "varchar"
            "NUMBER(10,2)" -> "number"
        """
        normalized = source_type.lower().strip()

        # Remove parameters like (255) or (10,2)
        if "(" in normalized:
            normalized = normalized.split("(")[0].strip()

        return normalized


def get_arrow_type(field: Field) -> pa.DataType:
    """Get the pyarrow type used to materialize a field's values.

    Semi-structured columns are kept as their JSON text.
    """
    dtype = field.dtype
    if dtype == DataType.DECIMAL:
        precision = field.precision or 38
        scale = field.scale or 0
        return pa.decimal128(precision, scale)

    type_map = {
        DataType.INT8: pa.int8(),
        DataType.INT16: pa.int16(),
        DataType.INT32: pa.int32(),
        DataType.INT64: pa.int64(),
        DataType.FLOAT32: pa.float32(),
        DataType.FLOAT64: pa.float64(),
        DataType.STRING: pa.string(),
        DataType.BOOL: pa.bool_(),
        DataType.DATE: pa.date32(),
        DataType.TIME: pa.time64("us"),
        DataType.TIMESTAMP: pa.timestamp("us"),
        DataType.TIMESTAMP_TZ: pa.timestamp("us", tz="UTC"),
        DataType.BINARY: pa.binary(),
        DataType.JSON: pa.string(),
        DataType.ARRAY: pa.string(),
        DataType.OBJECT: pa.string(),
    }
    return type_map[dtype]
