"""Filter push-down: translate predicates into remote SQL.

A predicate is only translated when the SQL fragment is exactly
equivalent to it. Anything else yields None, and the caller keeps the
predicate to apply locally after reading rows back. Returning None is
always safe.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional

from sfscan.models.field import DataType, Field, Schema
from sfscan.models.filters import (
    And,
    EqualNullSafe,
    EqualTo,
    GreaterThan,
    GreaterThanOrEqual,
    In,
    IsNotNull,
    IsNull,
    LessThan,
    LessThanOrEqual,
    Not,
    NotEqualTo,
    Or,
    Predicate,
    StringContains,
    StringEndsWith,
    StringStartsWith,
)
from sfscan.pushdown.query import quote_identifier
from sfscan.utils.sql import quote_string_literal

Translation = Callable[[Schema, Any], Optional[str]]

_COMPARISON_OPERATORS: dict[type, str] = {
    EqualTo: "=",
    NotEqualTo: "!=",
    GreaterThan: ">",
    GreaterThanOrEqual: ">=",
    LessThan: "<",
    LessThanOrEqual: "<=",
}

_STRING_FUNCTIONS: dict[type, str] = {
    StringStartsWith: "STARTSWITH",
    StringEndsWith: "ENDSWITH",
    StringContains: "CONTAINS",
}


def format_literal(value: Any, field: Field) -> Optional[str]:
    """Render ``value`` as a SQL literal for a column of ``field``'s type.

    Returns None when the value's Python type does not match the column
    type exactly, or when it has no exact SQL form.

    Examples:
        >>> format_literal("O'Brien", Field(name="N", dtype="string"))
        "'O''Brien'"
        >>> format_literal(date(2024, 1, 15), Field(name="D", dtype="date"))
        "'2024-01-15'::DATE"
    """
    if value is None or (isinstance(value, bool) and field.dtype != DataType.BOOL):
        return None

    dtype = field.dtype

    if dtype == DataType.STRING:
        return quote_string_literal(value) if isinstance(value, str) else None

    if dtype.is_integer:
        return str(value) if isinstance(value, int) else None

    if dtype in (DataType.FLOAT32, DataType.FLOAT64):
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float) and math.isfinite(value):
            return repr(value)
        return None

    if dtype == DataType.DECIMAL:
        if isinstance(value, int):
            return str(value)
        if isinstance(value, Decimal) and value.is_finite():
            return format(value, "f")
        return None

    if dtype == DataType.BOOL:
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        return None

    if dtype == DataType.DATE:
        if isinstance(value, date) and not isinstance(value, datetime):
            return f"'{value.isoformat()}'::DATE"
        return None

    if dtype == DataType.TIME:
        if isinstance(value, time) and value.tzinfo is None:
            return f"'{value.isoformat()}'::TIME"
        return None

    if dtype == DataType.TIMESTAMP:
        if isinstance(value, datetime) and value.tzinfo is None:
            return f"'{value.isoformat(sep=' ')}'::TIMESTAMP_NTZ"
        return None

    if dtype == DataType.TIMESTAMP_TZ:
        if isinstance(value, datetime) and value.tzinfo is not None:
            return f"'{value.isoformat(sep=' ')}'::TIMESTAMP_TZ"
        return None

    if dtype == DataType.BINARY:
        if isinstance(value, (bytes, bytearray)):
            return f"TO_BINARY('{bytes(value).hex()}', 'HEX')"
        return None

    # Semi-structured values have no exact literal comparison
    return None


def _column(schema: Schema, attribute: str) -> Optional[Field]:
    return schema.get_field(attribute)


def _translate_comparison(schema: Schema, predicate: Any) -> Optional[str]:
    field = _column(schema, predicate.attribute)
    if field is None:
        return None
    literal = format_literal(predicate.value, field)
    if literal is None:
        return None
    operator = _COMPARISON_OPERATORS[type(predicate)]
    return f"{quote_identifier(field.name)} {operator} {literal}"


def _translate_equal_null_safe(schema: Schema, predicate: EqualNullSafe) -> Optional[str]:
    field = _column(schema, predicate.attribute)
    if field is None:
        return None
    if predicate.value is None:
        return f"{quote_identifier(field.name)} IS NULL"
    literal = format_literal(predicate.value, field)
    if literal is None:
        return None
    return f"EQUAL_NULL({quote_identifier(field.name)}, {literal})"


def _translate_in(schema: Schema, predicate: In) -> Optional[str]:
    field = _column(schema, predicate.attribute)
    if field is None or not predicate.values:
        return None
    literals = [format_literal(v, field) for v in predicate.values]
    if any(literal is None for literal in literals):
        return None
    return f"{quote_identifier(field.name)} IN ({', '.join(literals)})"


def _translate_is_null(schema: Schema, predicate: IsNull) -> Optional[str]:
    field = _column(schema, predicate.attribute)
    if field is None:
        return None
    return f"{quote_identifier(field.name)} IS NULL"


def _translate_is_not_null(schema: Schema, predicate: IsNotNull) -> Optional[str]:
    field = _column(schema, predicate.attribute)
    if field is None:
        return None
    return f"{quote_identifier(field.name)} IS NOT NULL"


def _translate_and(schema: Schema, predicate: And) -> Optional[str]:
    left = translate(schema, predicate.left)
    right = translate(schema, predicate.right)
    if left is None or right is None:
        return None
    return f"({left} AND {right})"


def _translate_or(schema: Schema, predicate: Or) -> Optional[str]:
    left = translate(schema, predicate.left)
    right = translate(schema, predicate.right)
    if left is None or right is None:
        return None
    return f"({left} OR {right})"


def _translate_not(schema: Schema, predicate: Not) -> Optional[str]:
    child = translate(schema, predicate.child)
    if child is None:
        return None
    return f"NOT ({child})"


def _translate_string_match(schema: Schema, predicate: Any) -> Optional[str]:
    field = _column(schema, predicate.attribute)
    if field is None or field.dtype != DataType.STRING:
        return None
    if not isinstance(predicate.value, str):
        return None
    function = _STRING_FUNCTIONS[type(predicate)]
    return f"{function}({quote_identifier(field.name)}, {quote_string_literal(predicate.value)})"


# One entry per predicate kind; kinds missing here are never pushed down.
TRANSLATIONS: dict[type[Predicate], Translation] = {
    EqualTo: _translate_comparison,
    NotEqualTo: _translate_comparison,
    GreaterThan: _translate_comparison,
    GreaterThanOrEqual: _translate_comparison,
    LessThan: _translate_comparison,
    LessThanOrEqual: _translate_comparison,
    EqualNullSafe: _translate_equal_null_safe,
    In: _translate_in,
    IsNull: _translate_is_null,
    IsNotNull: _translate_is_not_null,
    And: _translate_and,
    Or: _translate_or,
    Not: _translate_not,
    StringStartsWith: _translate_string_match,
    StringEndsWith: _translate_string_match,
    StringContains: _translate_string_match,
}


def translate(schema: Schema, predicate: Predicate) -> Optional[str]:
    """Translate one predicate into a SQL boolean expression.

    Args:
        schema: Schema of the relation being scanned
        predicate: Predicate to translate

    Returns:
        SQL fragment, or None if the predicate cannot be expressed exactly
    """
    translation = TRANSLATIONS.get(type(predicate))
    if translation is None:
        return None
    return translation(schema, predicate)


def build_where_clause(schema: Schema, predicates: Iterable[Predicate]) -> str:
    """Build a WHERE clause from every translatable predicate.

    Fragments are sorted, so the clause does not depend on the order
    (or set iteration order) of ``predicates``.

    Returns:
        "WHERE f1 AND f2 ..." or "" if no predicate translates

    Examples:
        >>> build_where_clause(schema, [GreaterThan("ID", 10), IsNotNull("NAME")])
        'WHERE "ID" > 10 AND "NAME" IS NOT NULL'
    """
    fragments = sorted(
        fragment
        for fragment in (translate(schema, p) for p in predicates)
        if fragment is not None
    )
    if not fragments:
        return ""
    return "WHERE " + " AND ".join(fragments)


def unhandled_filters(schema: Schema, predicates: Iterable[Predicate]) -> list[Predicate]:
    """Predicates that will not be pushed down and must be applied locally."""
    return [p for p in predicates if translate(schema, p) is None]
