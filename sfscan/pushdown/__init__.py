"""Predicate and projection push-down."""

from sfscan.pushdown.filters import build_where_clause, translate, unhandled_filters
from sfscan.pushdown.query import (
    build_count_query,
    build_projection_query,
    quote_identifier,
    source_reference,
)

__all__ = [
    "build_count_query",
    "build_projection_query",
    "build_where_clause",
    "quote_identifier",
    "source_reference",
    "translate",
    "unhandled_filters",
]
