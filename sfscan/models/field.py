"""Field and type system models for sfscan.

This module defines the Field and Schema models and the canonical type
system used to describe the columns of a remote table or subquery.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterator, Optional, Sequence, Union

from pydantic import BaseModel, Field as PydanticField, field_validator

from sfscan.exceptions import SchemaError


class DataType(str, Enum):
    """Canonical column types.

    Remote type names are mapped onto these by a TypeMapper, and the
    record converter parses staged values according to them.
    """

    # Numeric types
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DECIMAL = "decimal"

    # String
    STRING = "string"

    # Boolean
    BOOL = "bool"

    # Temporal
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    TIMESTAMP_TZ = "timestamp_tz"

    # Binary
    BINARY = "binary"

    # Semi-structured
    JSON = "json"
    ARRAY = "array"
    OBJECT = "object"

    @property
    def is_integer(self) -> bool:
        return self in (DataType.INT8, DataType.INT16, DataType.INT32, DataType.INT64)

    @property
    def is_numeric(self) -> bool:
        return self.is_integer or self in (DataType.FLOAT32, DataType.FLOAT64, DataType.DECIMAL)

    @property
    def is_temporal(self) -> bool:
        return self in (DataType.DATE, DataType.TIME, DataType.TIMESTAMP, DataType.TIMESTAMP_TZ)


class Field(BaseModel):
    """A single column of a resolved schema.

    Examples:
        >>> Field(name="ORDER_ID", dtype=DataType.INT64, nullable=False)
        >>> Field(name="AMOUNT", dtype="decimal", precision=12, scale=2)
    """

    name: str = PydanticField(
        ...,
        description="Column name as reported by the remote database",
    )

    dtype: DataType = PydanticField(
        ...,
        description="Canonical type (e.g., 'int64', 'timestamp', 'string')",
    )

    nullable: bool = PydanticField(
        True,
        description="Whether the column can contain null values",
    )

    precision: Optional[int] = PydanticField(
        None,
        description="Precision for DECIMAL types",
    )

    scale: Optional[int] = PydanticField(
        None,
        description="Scale for DECIMAL types",
    )

    model_config = {"extra": "forbid", "frozen": True}

    @field_validator("dtype", mode="before")
    @classmethod
    def validate_dtype(cls, v: Union[DataType, str]) -> DataType:
        """Validate dtype is a valid DataType."""
        if isinstance(v, str) and not isinstance(v, DataType):
            try:
                return DataType(v.lower())
            except ValueError:
                raise ValueError(
                    f"Invalid dtype: {v}. Must be one of: {', '.join(t.value for t in DataType)}"
                )
        return v


class Schema(BaseModel):
    """Ordered, immutable collection of fields.

    A schema is resolved once per table or subquery and stays stable for
    the lifetime of every scan built on it.
    """

    fields: tuple[Field, ...] = PydanticField(
        default_factory=tuple,
        description="Fields in column order",
    )

    model_config = {"extra": "forbid", "frozen": True}

    def __init__(self, fields: Sequence[Field] = (), **data):
        super().__init__(fields=tuple(fields), **data)

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[Field]:  # type: ignore[override]
        return iter(self.fields)

    def __getitem__(self, index: int) -> Field:
        return self.fields[index]

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> Optional[Field]:
        """Get a field by name, or None if the schema has no such column."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def prune(self, columns: Sequence[str]) -> Schema:
        """Project the schema onto ``columns``, in the order given.

        Raises:
            SchemaError: If a column is not part of the schema
        """
        by_name = {f.name: f for f in self.fields}
        missing = [c for c in columns if c not in by_name]
        if missing:
            raise SchemaError(
                f"Columns not found in schema: {', '.join(missing)}. "
                f"Available: {', '.join(self.names)}"
            )
        return Schema([by_name[c] for c in columns])
