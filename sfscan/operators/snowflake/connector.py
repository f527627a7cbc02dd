"""Snowflake connector implementation using SQLAlchemy.

This module provides connection management for Snowflake through the
snowflake-sqlalchemy dialect.
"""

from __future__ import annotations

from typing import Any

from snowflake.connector.constants import FIELD_ID_TO_NAME
from snowflake.sqlalchemy import URL

from sfscan.core.connector import ColumnInfo
from sfscan.core.type_mapper import TypeMapper
from sfscan.exceptions import ConnectionError
from sfscan.operators.snowflake.type_mapper import SnowflakeTypeMapper
from sfscan.operators.sql.connector import SQLConnector


class SnowflakeConnector(SQLConnector):
    """Snowflake connector using SQLAlchemy.

    Holds one session for its whole lifetime, so session parameters set
    by the unload prologue apply to every later statement.

    Configuration keys:
        - account: Account identifier (required)
        - user: Username (required)
        - password: Password (required unless authenticator is set)
        - authenticator: Alternative authenticator (e.g., externalbrowser)
        - database: Default database
        - schema: Default schema
        - warehouse: Warehouse to run queries on
        - role: Role to assume
        - connection_string: Full connection string (alternative to individual params)
        - connection_timeout: Login timeout in seconds
        - echo: Enable SQL logging (default: False)

    Examples:
        >>> config = {
        ...     "account": "xy12345.eu-west-1",
        ...     "user": "LOADER",
        ...     "password": "secret",
        ...     "database": "ANALYTICS",
        ...     "schema": "PUBLIC",
        ...     "warehouse": "ETL_WH",
        ... }
        >>> with SnowflakeConnector(config) as conn:
        ...     schema = conn.get_schema("ORDERS")
    """

    URL_KEYS = ("account", "user", "password", "authenticator", "database", "schema", "warehouse", "role")

    def _build_connection_string(self) -> str:
        """Build Snowflake connection string from config.

        Raises:
            ConnectionError: If required config is missing
        """
        if "connection_string" in self.config:
            return self.config["connection_string"]

        required_keys = ["account", "user"]
        if "authenticator" not in self.config:
            required_keys.append("password")
        for key in required_keys:
            if not self.config.get(key):
                raise ConnectionError(f"Missing required config key: {key}")

        params = {key: self.config[key] for key in self.URL_KEYS if self.config.get(key)}
        return URL(**params)

    def _connect_args(self) -> dict[str, Any]:
        return {"login_timeout": self.connection_timeout}

    def _get_type_mapper(self) -> TypeMapper:
        return SnowflakeTypeMapper()

    def _get_database_name(self) -> str:
        return "Snowflake"

    def _describe_column(self, entry: Any) -> ColumnInfo:
        """Read Snowflake result metadata, whose type codes are numeric ids."""
        info = super()._describe_column(entry)
        type_code = entry[1]
        if isinstance(type_code, int):
            info.type_name = FIELD_ID_TO_NAME.get(type_code, str(type_code))
        return info
