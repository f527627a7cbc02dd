"""Helpers for handling SQL text."""

from __future__ import annotations

import re

_SECRET_PATTERN = re.compile(
    r"(AWS_KEY_ID|AWS_SECRET_KEY|AWS_TOKEN|AZURE_SAS_TOKEN)\s*=\s*'[^']*'",
    re.IGNORECASE,
)


def sanitize_query_text(sql: str) -> str:
    """Redact credentials so a statement can be logged.

    Examples:
        >>> sanitize_query_text("CREDENTIALS=(AWS_KEY_ID='AKIA' AWS_SECRET_KEY='s')")
        "CREDENTIALS=(AWS_KEY_ID='***' AWS_SECRET_KEY='***')"
    """
    return _SECRET_PATTERN.sub(lambda m: f"{m.group(1)}='***'", sql)


def quote_string_literal(value: str) -> str:
    """Render a SQL string literal, escaping quotes and backslashes."""
    escaped = value.replace("\\", "\\\\").replace("'", "''")
    return f"'{escaped}'"
