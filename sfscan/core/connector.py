"""Base Connector abstract class.

This module defines the Connector interface for managing connections
to the remote SQL database, plus the result types it returns.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from sfscan.core.type_mapper import TypeMapper
from sfscan.models.field import Schema


@dataclass
class ColumnInfo:
    """Metadata about one column of a query result."""

    name: str
    type_name: str
    precision: Optional[int] = None
    scale: Optional[int] = None
    nullable: bool = True


@dataclass
class ResultSet:
    """Columns and rows returned by a query."""

    columns: list[ColumnInfo]
    rows: list[tuple] = field(default_factory=list)

    @property
    def column_count(self) -> int:
        return len(self.columns)


class Connector(ABC):
    """Base class for managing a connection to the remote database.

    A connector owns one session. Session statements (time zone, output
    formats) and the statements that depend on them must run through the
    same connector. Connectors are cheap to create; the relation creates
    one per operation and releases it when the operation ends.

    Examples:
        Using a connector as a context manager:
        >>> with SnowflakeConnector(config) as conn:
        ...     schema = conn.get_schema("PUBLIC.ORDERS")
        ...     result = conn.execute_query("SELECT count(*) FROM PUBLIC.ORDERS")
    """

    def __init__(self, config: dict[str, Any]):
        """Initialize connector with configuration.

        Args:
            config: Connection configuration dictionary
        """
        self.config = config
        self.connection: Optional[Any] = None

    @property
    @abstractmethod
    def type_mapper(self) -> TypeMapper:
        """Type mapper for the remote database's type names."""
        pass

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to the remote database.

        Calling connect() on a connected connector is a no-op.

        Raises:
            ConnectionError: If connection fails
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Close the connection.

        Should handle cases where connection is already closed gracefully.
        """
        pass

    @abstractmethod
    def execute_statement(self, statement: str) -> None:
        """Execute a statement without returning results.

        Raises:
            ConnectorError: If not connected or execution fails
        """
        pass

    @abstractmethod
    def execute_query(self, query: str) -> ResultSet:
        """Execute a query and return its columns and rows.

        Raises:
            ConnectorError: If not connected or execution fails
        """
        pass

    @abstractmethod
    def get_schema(self, ref: str) -> Schema:
        """Resolve the schema of a table or parenthesized subquery.

        Args:
            ref: Table name or "(SELECT ...)"

        Raises:
            SchemaError: If schema cannot be retrieved
        """
        pass

    def cancel(self) -> None:
        """Interrupt a pending query from another thread.

        The default implementation closes the connection, which makes any
        in-flight call fail.
        """
        self.disconnect()

    def __enter__(self) -> Connector:
        """Context manager entry: establish connection."""
        self.connect()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit: close connection."""
        self.disconnect()

    @property
    def is_connected(self) -> bool:
        """Check if connection is established."""
        return self.connection is not None
