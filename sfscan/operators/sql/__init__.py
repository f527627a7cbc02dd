"""Generic SQL operators for SQLAlchemy-based databases.

SQLConnector handles engine and session management, statement execution
with column metadata, and schema resolution. Database-specific
subclasses supply the connection string, the type mapper, and how to
read the driver's column metadata.
"""

from sfscan.operators.sql.connector import SQLConnector

__all__ = ["SQLConnector"]
