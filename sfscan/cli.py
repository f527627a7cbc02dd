"""sfscan CLI - Command-line interface for push-down scans."""

import re
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Optional

import pyarrow.parquet as pq
import typer
from typing_extensions import Annotated

from sfscan import __version__
from sfscan.dataset import ScanDataset
from sfscan.exceptions import ConversionError, SFScanError, ValidationError
from sfscan.models.config import ScanConfig
from sfscan.models.field import DataType, Field, Schema
from sfscan.models.filters import (
    EqualTo,
    GreaterThan,
    GreaterThanOrEqual,
    IsNotNull,
    IsNull,
    LessThan,
    LessThanOrEqual,
    NotEqualTo,
    Predicate,
    StringContains,
    StringEndsWith,
    StringStartsWith,
)
from sfscan.operators.snowflake.connector import SnowflakeConnector
from sfscan.pushdown.filters import build_where_clause
from sfscan.pushdown.query import build_projection_query
from sfscan.relation import SnowflakeRelation
from sfscan.staging.reader import FileStagedReader
from sfscan.staging.records import convert_value
from sfscan.unload.credentials import load_credentials
from sfscan.unload.statement import build_unload_statement, fix_s3_url
from sfscan.utils.log_config import configure_logging
from sfscan.utils.run_id import create_per_query_temp_dir
from sfscan.utils.sql import sanitize_query_text
from sfscan.utils.yaml_parser import load_scan_config

app = typer.Typer(
    name="sfscan",
    help="sfscan - Push-down scans of Snowflake tables through staged unloads",
    add_completion=True,
)

# Longest operators first so ">=" is not read as ">"
COMPARISON_PATTERN = re.compile(r"^\s*([^\s!=<>^$~]+)\s*(!=|>=|<=|\^=|\$=|~=|=|>|<)\s*(.*?)\s*$")
NULL_CHECK_PATTERN = re.compile(r"^\s*(\S+)\s+is\s+(not\s+)?null\s*$", re.IGNORECASE)

OPERATORS = {
    "=": EqualTo,
    "!=": NotEqualTo,
    ">": GreaterThan,
    ">=": GreaterThanOrEqual,
    "<": LessThan,
    "<=": LessThanOrEqual,
    "^=": StringStartsWith,
    "$=": StringEndsWith,
    "~=": StringContains,
}


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"sfscan version {__version__}")
        raise typer.Exit()


def _parse_value(field: Field, raw: str) -> Any:
    """Type a filter value for ``field``; temporal values use ISO format."""
    if field.dtype == DataType.DATE:
        return date.fromisoformat(raw)
    if field.dtype == DataType.TIME:
        return time.fromisoformat(raw)
    if field.dtype in (DataType.TIMESTAMP, DataType.TIMESTAMP_TZ):
        return datetime.fromisoformat(raw)
    return convert_value(field, raw)


def parse_filter(expression: str, schema: Schema) -> Predicate:
    """Parse a filter expression such as ``AMOUNT>=100`` or ``NAME is null``.

    Raises:
        typer.BadParameter: If the expression or its value is invalid
    """
    match = NULL_CHECK_PATTERN.match(expression)
    if match:
        column, negated = match.group(1), match.group(2)
        if schema.get_field(column) is None:
            raise typer.BadParameter(f"Unknown column in filter: {column}")
        return IsNotNull(column) if negated else IsNull(column)

    match = COMPARISON_PATTERN.match(expression)
    if not match:
        raise typer.BadParameter(f"Cannot parse filter: {expression!r}")

    column, operator, raw = match.groups()
    field = schema.get_field(column)
    if field is None:
        raise typer.BadParameter(f"Unknown column in filter: {column}")

    try:
        value = _parse_value(field, raw)
    except (ConversionError, ValueError) as e:
        raise typer.BadParameter(f"Invalid value for {column}: {e}") from e
    if value is None:
        raise typer.BadParameter(f"Use '{column} is null' to match nulls")
    return OPERATORS[operator](column, value)


def _build_relation(scan_config: ScanConfig) -> SnowflakeRelation:
    return SnowflakeRelation(
        lambda: SnowflakeConnector(scan_config.connection),
        scan_config.relation,
        user_schema=scan_config.user_schema,
        reader=FileStagedReader(storage_options=scan_config.storage_options),
        credentials=scan_config.credentials,
        on_query=lambda sql: typer.secho(sql, fg=typer.colors.BRIGHT_BLACK, err=True),
    )


def _scan(relation: SnowflakeRelation, columns: list[str], filters: list[Predicate]) -> ScanDataset:
    """Scan with push-down, then apply the filters that were not pushed."""
    unhandled = relation.unhandled_filters(filters)
    if not unhandled:
        return relation.build_scan(columns, filters)

    referenced = sorted(set().union(*(p.references() for p in unhandled)))
    fetch = columns + [c for c in referenced if c not in columns]
    typer.echo(f"Applying {len(unhandled)} filter(s) locally", err=True)
    return relation.build_scan(fetch, filters).where(unhandled, columns=columns)


def _fail(e: Exception, verbose: bool = False) -> None:
    if isinstance(e, ValidationError):
        typer.secho(f"Validation error: {e}", fg=typer.colors.RED, err=True)
    elif isinstance(e, SFScanError):
        typer.secho(f"Scan error: {e}", fg=typer.colors.RED, err=True)
    else:
        typer.secho(f"Unexpected error: {e}", fg=typer.colors.RED, err=True)
        if verbose:
            import traceback
            traceback.print_exc()
    raise typer.Exit(code=1)


ConfigArgument = Annotated[
    Path,
    typer.Argument(
        help="Path to the YAML scan config",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
]
ColumnOption = Annotated[
    Optional[list[str]],
    typer.Option("--column", "-c", help="Column to return (repeatable; default: all)"),
]
FilterOption = Annotated[
    Optional[list[str]],
    typer.Option("--filter", "-f", help="Filter, e.g. 'AMOUNT>=100', 'NAME^=A', 'NOTE is null'"),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")]


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Override SFSCAN_LOG_LEVEL"),
    ] = None,
) -> None:
    """sfscan - Read Snowflake tables with filters and projections pushed down."""
    configure_logging(level=log_level)


@app.command()
def schema(config_path: ConfigArgument, verbose: VerboseOption = False) -> None:
    """Show the columns of the configured table or query."""
    try:
        relation = _build_relation(load_scan_config(config_path))
        for field in relation.schema:
            dtype = field.dtype.value
            if field.dtype == DataType.DECIMAL:
                dtype = f"{dtype}({field.precision},{field.scale})"
            nullable = "" if field.nullable else " not null"
            typer.echo(f"{field.name}\t{dtype}{nullable}")
    except Exception as e:
        _fail(e, verbose)


@app.command()
def scan(
    config_path: ConfigArgument,
    column: ColumnOption = None,
    where: FilterOption = None,
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-n", min=0, help="Print at most this many rows"),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write all rows to a Parquet file instead of printing"),
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """Scan rows, pushing the projection and filters down to Snowflake."""
    try:
        relation = _build_relation(load_scan_config(config_path))
        columns = list(column or relation.schema.names)
        filters = [parse_filter(f, relation.schema) for f in where or []]
        dataset = _scan(relation, columns, filters)

        if output is not None:
            table = dataset.to_arrow()
            pq.write_table(table, output)
            typer.secho(f"Wrote {table.num_rows:,} rows to {output}", fg=typer.colors.GREEN)
            return

        typer.echo("\t".join(dataset.schema.names))
        for index, record in enumerate(dataset):
            if limit is not None and index >= limit:
                break
            typer.echo("\t".join("" if v is None else str(v) for v in record))
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e, verbose)


@app.command()
def count(
    config_path: ConfigArgument,
    where: FilterOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Count rows matching the filters without staging when possible."""
    try:
        relation = _build_relation(load_scan_config(config_path))
        filters = [parse_filter(f, relation.schema) for f in where or []]
        typer.echo(f"{_scan(relation, [], filters).count():,}")
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e, verbose)


@app.command("unload-sql")
def unload_sql(
    config_path: ConfigArgument,
    column: ColumnOption = None,
    where: FilterOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Print the statements a scan would run, without running them."""
    try:
        scan_config = load_scan_config(config_path)
        relation = _build_relation(scan_config)
        options = scan_config.relation
        schema = relation.schema
        filters = [parse_filter(f, schema) for f in where or []]
        where_clause = build_where_clause(schema, filters)

        columns = list(column or schema.names)
        schema.prune(columns)
        query = build_projection_query(relation.source, columns, where_clause)
        statement = build_unload_statement(
            query,
            create_per_query_temp_dir(fix_s3_url(options.temp_dir)),
            credentials=scan_config.credentials or load_credentials(options.temp_dir),
            storage_integration=options.storage_integration,
            compress=options.compress,
            max_file_size=options.max_file_size,
        )
        typer.echo(sanitize_query_text(statement))

        for predicate in relation.unhandled_filters(filters):
            typer.echo(f"-- applied locally: {predicate}", err=True)
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e, verbose)


if __name__ == "__main__":
    app()
