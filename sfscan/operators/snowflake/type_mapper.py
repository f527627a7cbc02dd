"""Snowflake type mapper implementation.

This module provides type conversion from Snowflake types, as reported
by the connector's result metadata or by DESCRIBE, to sfscan's
canonical type system.
"""

from __future__ import annotations

from typing import Optional

from sfscan.core.type_mapper import TypeMapper
from sfscan.exceptions import TypeMappingError
from sfscan.models.field import DataType

# Widest precision whose values always fit a signed 64-bit integer
MAX_INT64_PRECISION = 18


class SnowflakeTypeMapper(TypeMapper):
    """Type mapper for Snowflake.

    Fixed-point numbers with scale 0 and at most 18 digits of precision
    map to INT64; any other fixed-point number maps to DECIMAL. Every
    timestamp flavour with a zone (LTZ and TZ) maps to TIMESTAMP_TZ.

    Examples:
        >>> mapper = SnowflakeTypeMapper()
        >>> mapper.from_source("NUMBER", precision=10, scale=0)
        <DataType.INT64: 'int64'>
        >>> mapper.from_source("NUMBER", precision=10, scale=2)
        <DataType.DECIMAL: 'decimal'>
        >>> mapper.from_source("VARIANT")
        <DataType.JSON: 'json'>
    """

    # Fixed-point types; resolved using precision and scale
    FIXED_TYPES = frozenset({"number", "fixed", "decimal", "numeric"})

    # Snowflake type -> canonical type mappings
    SOURCE_TO_CANONICAL = {
        # Integer aliases (NUMBER(38,0) under the hood)
        "int": DataType.INT64,
        "integer": DataType.INT64,
        "bigint": DataType.INT64,
        "smallint": DataType.INT64,
        "tinyint": DataType.INT64,
        "byteint": DataType.INT64,
        # Floating point types (all are 64-bit in Snowflake)
        "float": DataType.FLOAT64,
        "float4": DataType.FLOAT64,
        "float8": DataType.FLOAT64,
        "real": DataType.FLOAT64,
        "double": DataType.FLOAT64,
        "double precision": DataType.FLOAT64,
        # String types
        "text": DataType.STRING,
        "varchar": DataType.STRING,
        "string": DataType.STRING,
        "char": DataType.STRING,
        "character": DataType.STRING,
        # Boolean
        "boolean": DataType.BOOL,
        # Date/Time types
        "date": DataType.DATE,
        "time": DataType.TIME,
        "datetime": DataType.TIMESTAMP,
        "timestamp": DataType.TIMESTAMP,
        "timestamp_ntz": DataType.TIMESTAMP,
        "timestamp_ltz": DataType.TIMESTAMP_TZ,
        "timestamp_tz": DataType.TIMESTAMP_TZ,
        # Binary types
        "binary": DataType.BINARY,
        "varbinary": DataType.BINARY,
        # Semi-structured types
        "variant": DataType.JSON,
        "object": DataType.OBJECT,
        "array": DataType.ARRAY,
    }

    def from_source(
        self,
        source_type: str,
        precision: Optional[int] = None,
        scale: Optional[int] = None,
    ) -> DataType:
        """Convert Snowflake type to canonical type.

        Args:
            source_type: Snowflake type name (e.g., "NUMBER(38,0)", "TEXT")
            precision: Precision reported with the column, if any
            scale: Scale reported with the column, if any

        Returns:
            Corresponding canonical type

        Raises:
            TypeMappingError: If type cannot be mapped
        """
        normalized = self.normalize_source_type(source_type)

        if normalized in self.FIXED_TYPES:
            if precision is None and scale is None:
                precision, scale = self._parse_parameters(source_type)
            return self._map_fixed(precision, scale)

        if normalized in self.SOURCE_TO_CANONICAL:
            return self.SOURCE_TO_CANONICAL[normalized]

        raise TypeMappingError(f"Unsupported Snowflake type: {source_type}")

    def _map_fixed(self, precision: Optional[int], scale: Optional[int]) -> DataType:
        if scale:
            return DataType.DECIMAL
        if precision is not None and precision > MAX_INT64_PRECISION:
            return DataType.DECIMAL
        return DataType.INT64

    def _parse_parameters(self, source_type: str) -> tuple[Optional[int], Optional[int]]:
        """Read precision and scale from a declared type like "NUMBER(10,2)"."""
        if "(" not in source_type or not source_type.rstrip().endswith(")"):
            return None, None

        inner = source_type[source_type.index("(") + 1 : source_type.rindex(")")]
        parts = [p.strip() for p in inner.split(",")]
        try:
            precision = int(parts[0])
            scale = int(parts[1]) if len(parts) > 1 else 0
        except ValueError as e:
            raise TypeMappingError(f"Invalid type parameters: {source_type}") from e
        return precision, scale
