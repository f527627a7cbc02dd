"""Unload statement generation.

Builds the ``COPY INTO '<uri>' FROM (<query>) ...`` statement that makes
the remote database write a query's result set to the staging location
as delimited text, and the session prologue that fixes how values are
rendered in those files.
"""

from __future__ import annotations

from typing import Optional

from sfscan.unload.credentials import StorageCredentials, split_url_credentials
from sfscan.unload.format import DEFAULT_FORMAT, UnloadFormat
from sfscan.utils.sql import quote_string_literal

_HADOOP_S3_SCHEMES = ("s3a://", "s3n://")


def fix_s3_url(url: str) -> str:
    """Normalize Hadoop-style S3 URLs and drop embedded credentials.

    Examples:
        >>> fix_s3_url("s3a://bucket/tmp/run/")
        's3://bucket/tmp/run/'
    """
    url, _ = split_url_credentials(url)
    for scheme in _HADOOP_S3_SCHEMES:
        if url.startswith(scheme):
            return "s3://" + url[len(scheme):]
    return url


def build_credentials_clause(
    credentials: Optional[StorageCredentials] = None,
    storage_integration: Optional[str] = None,
) -> str:
    """Render the access clause for the staging location.

    A storage integration takes precedence over inline credentials.
    Returns an empty string when neither is available.
    """
    if storage_integration:
        return f"STORAGE_INTEGRATION={storage_integration}"
    if credentials is None:
        return ""

    parts = [
        f"AWS_KEY_ID='{credentials.aws_key_id}'",
        f"AWS_SECRET_KEY='{credentials.aws_secret_key}'",
    ]
    if credentials.aws_token:
        parts.append(f"AWS_TOKEN='{credentials.aws_token}'")
    return f"CREDENTIALS=({' '.join(parts)})"


def build_unload_statement(
    query: str,
    staging_url: str,
    credentials: Optional[StorageCredentials] = None,
    storage_integration: Optional[str] = None,
    compress: bool = True,
    max_file_size: int = 10_000_000,
    unload_format: UnloadFormat = DEFAULT_FORMAT,
) -> str:
    """Build the unload statement for ``query``.

    The statement is deterministic in its arguments and has no side
    effects until executed.

    Args:
        query: SELECT statement whose result set is unloaded
        staging_url: Per-scan staging directory
        credentials: Inline storage credentials, if any
        storage_integration: Storage integration name, if any
        compress: Gzip-compress staged files
        max_file_size: Maximum bytes per staged file; makes the remote
            database split output into several objects
        unload_format: Delimited format shared with the record converter

    Returns:
        Unload statement text
    """
    parts = [
        f"COPY INTO '{fix_s3_url(staging_url)}'",
        f"FROM ({query})",
        build_credentials_clause(credentials, storage_integration),
        unload_format.file_format_clause(compress),
        f"MAX_FILE_SIZE={max_file_size}",
    ]
    return " ".join(part for part in parts if part)


def build_prologue(
    unload_format: UnloadFormat = DEFAULT_FORMAT,
    timezone: Optional[str] = None,
) -> str:
    """Build the ALTER SESSION statement run before every unload.

    Examples:
        >>> build_prologue(timezone="UTC")
        "ALTER SESSION SET TIMEZONE = 'UTC', DATE_OUTPUT_FORMAT = 'YYYY-MM-DD', ..."
    """
    settings = []
    if timezone:
        settings.append(f"TIMEZONE = {quote_string_literal(timezone)}")
    for name, value in unload_format.session_parameters().items():
        settings.append(f"{name} = {quote_string_literal(value)}")
    return "ALTER SESSION SET " + ", ".join(settings)
