"""Scan configuration file model."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field as PydanticField, field_validator

from sfscan.models.field import Field, Schema
from sfscan.models.scan import RelationOptions
from sfscan.unload.credentials import StorageCredentials


class ScanConfig(BaseModel):
    """Everything needed to scan one relation, as loaded from YAML.

    Examples:
        >>> config = ScanConfig(
        ...     connection={"account": "xy12345", "user": "LOADER", "password": "secret"},
        ...     relation={"table": "ORDERS", "temp_dir": "s3://bucket/tmp/"},
        ... )
    """

    connection: dict[str, Any] = PydanticField(
        ...,
        description="Snowflake connection settings (account, user, password, warehouse, ...)",
    )

    relation: RelationOptions = PydanticField(
        ...,
        description="Table or query and unload settings",
    )

    fields: Optional[list[Field]] = PydanticField(
        None,
        description="Columns of the relation; resolved from Snowflake when omitted",
    )

    credentials: Optional[StorageCredentials] = PydanticField(
        None,
        description="Staging credentials; read from the environment when omitted",
    )

    storage_options: dict[str, Any] = PydanticField(
        default_factory=dict,
        description="Options passed to s3fs when reading staged files",
    )

    model_config = {"extra": "forbid"}

    @field_validator("connection")
    @classmethod
    def validate_connection(cls, v: dict[str, Any]) -> dict[str, Any]:
        if not v:
            raise ValueError("Connection settings cannot be empty")
        return v

    @property
    def user_schema(self) -> Optional[Schema]:
        if self.fields is None:
            return None
        return Schema(self.fields)
