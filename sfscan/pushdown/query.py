"""SQL query building for scans.

Column references are always quoted and upper-cased (unless already
quoted) so that mixed-case and reserved-word names resolve the same way
the remote database folds unquoted identifiers.
"""

from __future__ import annotations

from typing import Optional, Sequence

from sfscan.exceptions import ConfigurationError


def is_quoted(name: str) -> bool:
    return len(name) >= 2 and name.startswith('"') and name.endswith('"')


def quote_identifier(name: str) -> str:
    """Render a column reference.

    Examples:
        >>> quote_identifier("Name")
        '"NAME"'
        >>> quote_identifier('"Name"')
        '"Name"'
    """
    if is_quoted(name):
        return name
    return '"' + name.upper().replace('"', '""') + '"'


def source_reference(table: Optional[str], query: Optional[str]) -> str:
    """Render the FROM target: a parenthesized subquery or a table name.

    Raises:
        ConfigurationError: If neither table nor query is given
    """
    if query:
        return f"({query})"
    if table:
        return table
    raise ConfigurationError("Either a table or a query is required")


def build_projection_query(source: str, columns: Sequence[str], where_clause: str = "") -> str:
    """Build the SELECT statement for a scan.

    Args:
        source: Table name or parenthesized subquery
        columns: Columns to select, in order (at least one)
        where_clause: "WHERE ..." or empty

    Raises:
        ValueError: If no columns are given; use build_count_query() instead

    Examples:
        >>> build_projection_query("T", ["id", "Name"])
        'SELECT "ID", "NAME" FROM T'
    """
    if not columns:
        raise ValueError("A projection needs at least one column; use build_count_query()")

    column_list = ", ".join(quote_identifier(c) for c in columns)
    return _join("SELECT", column_list, "FROM", source, where_clause)


def build_count_query(source: str, where_clause: str = "") -> str:
    """Build the count(*) statement used when a scan needs no columns.

    Examples:
        >>> build_count_query("T", 'WHERE "ID" > 10')
        'SELECT count(*) FROM T WHERE "ID" > 10'
    """
    return _join("SELECT count(*) FROM", source, where_clause)


def _join(*parts: str) -> str:
    return " ".join(part for part in parts if part)
