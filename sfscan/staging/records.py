"""Record conversion: staged delimited text back to typed rows.

Staged files are written with FIELD_OPTIONALLY_ENCLOSED_BY and NULL_IF=(),
so a null is an empty unenclosed field, an empty string is ``""``, and a
quote inside an enclosed field is doubled. Quoted fields may contain the
delimiter and line breaks.
"""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable, Iterator, Sequence

from sfscan.exceptions import ConversionError
from sfscan.models.field import DataType, Field, Schema
from sfscan.unload.format import DEFAULT_FORMAT, UnloadFormat

RowConverter = Callable[[Sequence[str]], tuple]


def split_record(record: str, fmt: UnloadFormat = DEFAULT_FORMAT) -> list[str]:
    """Split one logical record into raw field tokens.

    Tokens keep their enclosing quotes so that an empty string (``""``)
    can still be told apart from a null (empty token).

    Raises:
        ConversionError: If a quoted field is not terminated
    """
    delimiter = fmt.delimiter
    quote = fmt.quote_char

    tokens: list[str] = []
    start = 0
    in_quotes = False
    i = 0
    n = len(record)
    while i < n:
        ch = record[i]
        if in_quotes:
            if ch == quote:
                if i + 1 < n and record[i + 1] == quote:
                    i += 2
                    continue
                in_quotes = False
        elif ch == quote and i == start:
            in_quotes = True
        elif ch == delimiter:
            tokens.append(record[start:i])
            start = i + 1
        i += 1

    if in_quotes:
        raise ConversionError(f"Unterminated quoted field in record: {record[:80]!r}")

    tokens.append(record[start:])
    return tokens


def _has_open_quote(line: str, in_quotes: bool, fmt: UnloadFormat) -> bool:
    """Quote state at the end of ``line`` given the state at its start.

    A doubled quote toggles twice and cancels out.
    """
    for ch in line:
        if ch == fmt.quote_char:
            in_quotes = not in_quotes
    return in_quotes


def iter_records(lines: Iterable[str], fmt: UnloadFormat = DEFAULT_FORMAT) -> Iterator[str]:
    """Group physical lines into logical records.

    A record continues onto the next line while a quoted field is open.
    Line terminators between records are removed; those inside quoted
    fields are kept.
    """
    pending: list[str] = []
    in_quotes = False
    for line in lines:
        in_quotes = _has_open_quote(line, in_quotes, fmt)
        pending.append(line)
        if in_quotes:
            continue
        record = "".join(pending)
        pending = []
        yield record.rstrip("\r\n")

    if pending:
        # Unterminated quote at end of file; split_record reports it
        yield "".join(pending).rstrip("\r\n")


def unquote(token: str, fmt: UnloadFormat = DEFAULT_FORMAT) -> str:
    """Remove enclosing quotes and undouble embedded quotes."""
    quote = fmt.quote_char
    if len(token) >= 2 and token[0] == quote and token[-1] == quote:
        return token[1:-1].replace(quote + quote, quote)
    return token


def _parse_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _parse_decimal(raw: str) -> Decimal:
    try:
        return Decimal(raw)
    except InvalidOperation as e:
        raise ValueError(f"not a decimal: {raw!r}") from e


def _value_parsers(fmt: UnloadFormat) -> dict[DataType, Callable[[str], Any]]:
    return {
        DataType.INT8: int,
        DataType.INT16: int,
        DataType.INT32: int,
        DataType.INT64: int,
        DataType.FLOAT32: float,
        DataType.FLOAT64: float,
        DataType.DECIMAL: _parse_decimal,
        DataType.STRING: str,
        DataType.BOOL: _parse_bool,
        DataType.DATE: lambda raw: datetime.strptime(raw, fmt.date_pattern).date(),
        DataType.TIME: lambda raw: datetime.strptime(raw, fmt.time_pattern).time(),
        DataType.TIMESTAMP: lambda raw: datetime.strptime(raw, fmt.timestamp_pattern),
        DataType.TIMESTAMP_TZ: lambda raw: datetime.strptime(raw, fmt.timestamp_tz_pattern),
        DataType.BINARY: bytes.fromhex,
        DataType.JSON: json.loads,
        DataType.ARRAY: json.loads,
        DataType.OBJECT: json.loads,
    }


def _convert_token(field: Field, parser: Callable[[str], Any], token: str, fmt: UnloadFormat) -> Any:
    if token == fmt.null_marker:
        return None

    raw = unquote(token, fmt)
    try:
        return parser(raw)
    except (ValueError, TypeError) as e:
        raise ConversionError(
            f"Cannot convert value {raw!r} of column '{field.name}' to {field.dtype.value}: {e}"
        ) from e


def convert_value(field: Field, token: str, fmt: UnloadFormat = DEFAULT_FORMAT) -> Any:
    """Convert one raw token to a typed value for ``field``.

    Raises:
        ConversionError: If the token cannot be parsed as the field's type
    """
    return _convert_token(field, _value_parsers(fmt)[field.dtype], token, fmt)


def create_row_converter(schema: Schema, fmt: UnloadFormat = DEFAULT_FORMAT) -> RowConverter:
    """Build a converter from raw tokens to typed rows for ``schema``.

    The converter is stateless; one instance can be shared by every
    record of a partition.
    """
    fields = list(schema)
    parsers = _value_parsers(fmt)
    plan = [(f, parsers[f.dtype]) for f in fields]
    expected = len(fields)

    def convert(raw_fields: Sequence[str]) -> tuple:
        if len(raw_fields) != expected:
            raise ConversionError(
                f"Record has {len(raw_fields)} fields, schema has {expected}"
            )
        return tuple(
            _convert_token(field, parser, token, fmt)
            for (field, parser), token in zip(plan, raw_fields)
        )

    return convert


def convert_row(
    schema: Schema,
    raw_fields: Sequence[str],
    fmt: UnloadFormat = DEFAULT_FORMAT,
) -> tuple:
    """Convert one record's raw tokens into a typed row.

    Examples:
        >>> convert_row(schema, ['1', '"a|b"', ''])
        (1, 'a|b', None)
    """
    return create_row_converter(schema, fmt)(raw_fields)
