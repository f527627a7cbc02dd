"""Scan request, relation options and export result models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field as PydanticField, field_validator, model_validator

from sfscan.core.config import config
from sfscan.models.filters import Predicate


class ScanRequest(BaseModel):
    """A logical scan: the columns to return and the filters to honor.

    Examples:
        >>> ScanRequest(required_columns=["ID", "NAME"], filters=[GreaterThan("ID", 10)])
    """

    required_columns: tuple[str, ...] = PydanticField(
        default_factory=tuple,
        description="Columns to return, in output order. Empty means count only.",
    )

    filters: frozenset[Predicate] = PydanticField(
        default_factory=frozenset,
        description="Filter predicates; all must hold for a row to be returned",
    )

    model_config = {"extra": "forbid", "frozen": True, "arbitrary_types_allowed": True}

    @field_validator("filters", mode="before")
    @classmethod
    def validate_filters(cls, v):
        """Accept any iterable of predicates."""
        return frozenset(v)


class RelationOptions(BaseModel):
    """Configuration of a relation over a remote table or subquery.

    Exactly one of ``table`` and ``query`` must be set.
    """

    table: Optional[str] = PydanticField(
        None,
        description="Remote table reference (e.g., 'ANALYTICS.PUBLIC.ORDERS')",
    )

    query: Optional[str] = PydanticField(
        None,
        description="Remote SQL query used as a subquery instead of a table",
    )

    temp_dir: str = PydanticField(
        default_factory=lambda: config.temp_dir,
        description="Root staging location (e.g., 's3://bucket/tmp/'); one subdirectory per scan",
    )

    compress: bool = PydanticField(
        default_factory=lambda: config.compress,
        description="Gzip-compress staged files",
    )

    max_file_size: int = PydanticField(
        default_factory=lambda: config.max_file_size,
        description="Maximum size in bytes of each staged file",
        gt=0,
    )

    preactions: list[str] = PydanticField(
        default_factory=list,
        description="SQL statements run before the unload; '%s' is replaced by the table",
    )

    postactions: list[str] = PydanticField(
        default_factory=list,
        description="SQL statements run after the unload; '%s' is replaced by the table",
    )

    timezone: Optional[str] = PydanticField(
        None,
        description="Session time zone set before the unload",
    )

    storage_integration: Optional[str] = PydanticField(
        None,
        description="Snowflake storage integration used instead of inline credentials",
    )

    count_parallelism: int = PydanticField(
        default_factory=lambda: config.count_parallelism,
        description="Number of partitions produced by count-only scans",
        gt=0,
    )

    check_bucket_configuration: bool = PydanticField(
        True,
        description="Warn when the S3 staging bucket has no lifecycle rule expiring staged files",
    )

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def validate_source(self) -> RelationOptions:
        """Require exactly one of table or query."""
        if self.table and self.query:
            raise ValueError("Specify either 'table' or 'query', not both")
        if not self.table and not self.query:
            raise ValueError("Either 'table' or 'query' is required")
        return self


class ExportResult(BaseModel):
    """Result of an unload to the staging location.

    ``rows_unloaded == 0`` means no staged files exist and the scan is empty.
    """

    rows_unloaded: int = PydanticField(
        ...,
        description="Number of rows the remote database wrote to staging",
        ge=0,
    )

    staging_url: Optional[str] = PydanticField(
        None,
        description="Staging location the rows were written to",
    )

    started_at: datetime = PydanticField(
        ...,
        description="Unload start time",
    )

    completed_at: Optional[datetime] = PydanticField(
        None,
        description="Unload completion time",
    )

    duration_seconds: float = PydanticField(
        0.0,
        description="Duration of the unload in seconds",
        ge=0.0,
    )

    model_config = {"extra": "forbid"}

    @property
    def is_empty(self) -> bool:
        return self.rows_unloaded == 0
