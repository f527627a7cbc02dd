"""SQL-based connector base class using SQLAlchemy.

This module provides a base class for SQL database connectors
that use SQLAlchemy for connection management.
"""

from __future__ import annotations

import logging
import threading
from abc import abstractmethod
from typing import Any, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import NullPool

from sfscan.core.config import config as sfscan_config
from sfscan.core.connector import ColumnInfo, Connector, ResultSet
from sfscan.core.type_mapper import TypeMapper
from sfscan.exceptions import ConnectionError, ConnectorError, SchemaError, TypeMappingError
from sfscan.models.field import Field, Schema
from sfscan.utils.sql import sanitize_query_text

logger = logging.getLogger(__name__)


class SQLConnector(Connector):
    """Base class for SQL database connectors using SQLAlchemy.

    Provides common functionality for SQL-based data systems including:
    - SQLAlchemy engine management with one held connection (one session)
    - Connection lifecycle (connect, disconnect, cancel)
    - Schema resolution from result metadata of a zero-row query
    - Query execution with column metadata

    Subclasses must implement:
    - _build_connection_string(): Database-specific connection string
    - _get_type_mapper(): Return database-specific type mapper
    - _get_database_name(): Return database name for error messages

    Subclasses may override _describe_column() to read driver-specific
    cursor metadata.

    Examples:
        Subclass implementation:
        >>> class MyDBConnector(SQLConnector):
        ...     def _build_connection_string(self) -> str:
        ...         return f"mydb://{self.config['host']}/{self.config['database']}"
        ...
        ...     def _get_type_mapper(self) -> TypeMapper:
        ...         return MyDBTypeMapper()
        ...
        ...     def _get_database_name(self) -> str:
        ...         return "MyDB"
    """

    def __init__(self, config: dict[str, Any]):
        """Initialize SQL connector.

        Args:
            config: Connection configuration dictionary
        """
        super().__init__(config)
        self.engine: Optional[Engine] = None
        self.connection: Optional[Connection] = None
        self._type_mapper: TypeMapper = self._get_type_mapper()
        self._lock = threading.Lock()

    @abstractmethod
    def _build_connection_string(self) -> str:
        """Build database-specific connection string from config.

        Raises:
            ConnectionError: If required config is missing or invalid
        """
        pass

    @abstractmethod
    def _get_type_mapper(self) -> TypeMapper:
        """Get database-specific type mapper."""
        pass

    @abstractmethod
    def _get_database_name(self) -> str:
        """Get database name for error messages (e.g., "Snowflake")."""
        pass

    def _connect_args(self) -> dict[str, Any]:
        """Driver-specific keyword arguments for the DBAPI connect call."""
        return {}

    @property
    def type_mapper(self) -> TypeMapper:
        return self._type_mapper

    def connect(self) -> None:
        """Open the engine and the single connection this connector uses.

        Raises:
            ConnectionError: If connection fails
        """
        if self.is_connected:
            return
        try:
            connection_string = self._build_connection_string()
            self.engine = create_engine(
                connection_string,
                poolclass=NullPool,
                echo=self.config.get("echo", False),  # SQL logging
                connect_args=self._connect_args(),
            )
            self.connection = self.engine.connect()
        except ConnectionError:
            raise
        except Exception as e:
            self._dispose()
            db_name = self._get_database_name()
            raise ConnectionError(f"Failed to connect to {db_name}: {e}") from e
        logger.debug("Connected to %s", self._get_database_name())

    def disconnect(self) -> None:
        """Close the connection and dispose the engine.

        Safe to call even if already disconnected, and from another thread.
        """
        with self._lock:
            if self.connection is not None:
                try:
                    self.connection.close()
                except Exception as e:
                    logger.warning("Error closing %s connection: %s", self._get_database_name(), e)
            self._dispose()

    def _dispose(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self.connection = None

    def cancel(self) -> None:
        """Interrupt a pending query by invalidating the DBAPI connection."""
        connection = self.connection
        if connection is None:
            return
        logger.info("Cancelling pending %s query", self._get_database_name())
        try:
            connection.invalidate()
        finally:
            self.disconnect()

    def execute_statement(self, statement: str) -> None:
        """Execute a statement without returning results.

        Raises:
            ConnectorError: If not connected or statement execution fails
        """
        conn = self._require_connection()
        logger.debug(sanitize_query_text(statement))
        try:
            self._run(conn, statement)
            conn.commit()
        except Exception as e:
            raise ConnectorError(f"Failed to execute statement: {e}") from e

    def execute_query(self, query: str) -> ResultSet:
        """Execute a query and return column metadata and all rows.

        Raises:
            ConnectorError: If not connected or query execution fails
        """
        conn = self._require_connection()
        logger.debug(sanitize_query_text(query))
        try:
            result = self._run(conn, query)
            cursor = getattr(result, "cursor", None)
            description = cursor.description if cursor is not None else None
            columns = [self._describe_column(entry) for entry in description or []]
            rows = [tuple(row) for row in result] if result.returns_rows else []
            return ResultSet(columns=columns, rows=rows)
        except Exception as e:
            raise ConnectorError(f"Failed to execute query: {e}") from e

    def get_schema(self, ref: str) -> Schema:
        """Resolve the schema of a table or parenthesized subquery.

        Runs ``SELECT * FROM <ref> WHERE 1 = 0`` and maps the reported
        column types through the type mapper.

        Raises:
            SchemaError: If not connected or the columns cannot be resolved
        """
        if not self.is_connected:
            raise SchemaError("Not connected to database")

        try:
            result = self.execute_query(f"SELECT * FROM {ref} WHERE 1 = 0")
            fields = []
            for col in result.columns:
                dtype = self.type_mapper.from_source(col.type_name, col.precision, col.scale)
                fields.append(
                    Field(
                        name=col.name,
                        dtype=dtype,
                        nullable=col.nullable,
                        precision=col.precision if dtype.is_numeric else None,
                        scale=col.scale if dtype.is_numeric else None,
                    )
                )
            return Schema(fields)
        except TypeMappingError as e:
            raise SchemaError(f"Failed to get schema for {ref}: {e}") from e
        except ConnectorError as e:
            raise SchemaError(f"Failed to get schema for {ref}: {e}") from e

    def _describe_column(self, entry: Any) -> ColumnInfo:
        """Convert one DBAPI cursor.description entry to ColumnInfo.

        DBAPI entries are (name, type_code, display_size, internal_size,
        precision, scale, null_ok).
        """
        name, type_code = entry[0], entry[1]
        precision = entry[4] if len(entry) > 4 else None
        scale = entry[5] if len(entry) > 5 else None
        null_ok = entry[6] if len(entry) > 6 else None
        return ColumnInfo(
            name=name,
            type_name="" if type_code is None else str(type_code),
            precision=precision,
            scale=scale,
            nullable=True if null_ok is None else bool(null_ok),
        )

    def _run(self, conn: Connection, sql: str):
        # Statements are passed to the driver verbatim: no bind parameter
        # parsing, so literals may contain ":name" or "%" safely.
        return conn.execution_options(no_parameters=True).exec_driver_sql(sql)

    def _require_connection(self) -> Connection:
        if self.connection is None:
            raise ConnectorError("Not connected to database")
        return self.connection

    @property
    def connection_timeout(self) -> int:
        return int(self.config.get("connection_timeout", sfscan_config.connection_timeout))
