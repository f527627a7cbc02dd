"""Snowflake operator for sfscan.

This package provides Snowflake connection management and type mapping.
"""

from sfscan.operators.snowflake.connector import SnowflakeConnector
from sfscan.operators.snowflake.type_mapper import SnowflakeTypeMapper

__all__ = [
    "SnowflakeConnector",
    "SnowflakeTypeMapper",
]
