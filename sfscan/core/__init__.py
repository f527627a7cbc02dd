"""sfscan core package.

This package contains the abstract base classes that define the
interfaces for remote connectors, type mappers, and staged readers.
"""

from sfscan.core.connector import ColumnInfo, Connector, ResultSet
from sfscan.core.reader import StagedReader
from sfscan.core.type_mapper import TypeMapper

__all__ = [
    "ColumnInfo",
    "Connector",
    "ResultSet",
    "StagedReader",
    "TypeMapper",
]
