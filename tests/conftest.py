"""Shared fixtures: an in-memory connector that stages files locally."""

import gzip
import logging
import re
from pathlib import Path
from typing import Optional

import pytest

from sfscan.core.connector import ColumnInfo, Connector, ResultSet
from sfscan.core.reader import StagedReader
from sfscan.exceptions import ConnectorError
from sfscan.models.field import Field, Schema
from sfscan.models.scan import RelationOptions
from sfscan.operators.snowflake.type_mapper import SnowflakeTypeMapper
from sfscan.relation import SnowflakeRelation

COPY_TARGET = re.compile(r"^COPY INTO '([^']+)'")


def confirmation(rows_unloaded: int) -> ResultSet:
    """An unload confirmation as Snowflake returns it."""
    return ResultSet(
        columns=[
            ColumnInfo("rows_unloaded", "FIXED", 38, 0),
            ColumnInfo("input_bytes", "FIXED", 38, 0),
            ColumnInfo("output_bytes", "FIXED", 38, 0),
        ],
        rows=[(rows_unloaded, 1024, 512)],
    )


class FakeConnector(Connector):
    """Connector that records statements and fakes Snowflake's answers.

    On an unload it writes ``staged_files`` into the target directory,
    which must be a local path.
    """

    def __init__(
        self,
        schema: Optional[Schema] = None,
        staged_files: Optional[dict[str, str]] = None,
        unload_result: Optional[ResultSet] = None,
        count: int = 0,
        fail_on: Optional[str] = None,
        schema_error: Optional[Exception] = None,
    ):
        super().__init__({})
        self.schema = schema or Schema()
        self.staged_files = staged_files or {}
        self.unload_result = unload_result
        self.count = count
        self.fail_on = fail_on
        self.schema_error = schema_error
        self.statements: list[str] = []
        self.schema_requests: list[str] = []
        self.connects = 0
        self.disconnects = 0
        self._type_mapper = SnowflakeTypeMapper()

    @property
    def type_mapper(self):
        return self._type_mapper

    def connect(self) -> None:
        if self.is_connected:
            return
        self.connects += 1
        self.connection = object()

    def disconnect(self) -> None:
        if self.connection is not None:
            self.disconnects += 1
        self.connection = None

    def _record(self, statement: str) -> None:
        if not self.is_connected:
            raise ConnectorError("Not connected to database")
        self.statements.append(statement)
        if self.fail_on and statement.startswith(self.fail_on):
            raise ConnectorError(f"Failed to execute: {statement}")

    def execute_statement(self, statement: str) -> None:
        self._record(statement)

    def execute_query(self, query: str) -> ResultSet:
        self._record(query)
        if query.startswith("SELECT count(*)"):
            return ResultSet(columns=[ColumnInfo("COUNT(*)", "FIXED", 18, 0)], rows=[(self.count,)])
        match = COPY_TARGET.match(query)
        if match:
            staged_rows = sum(content.count("\n") for content in self.staged_files.values())
            result = self.unload_result or confirmation(staged_rows)
            if self.staged_files and result.rows and result.rows[0] and result.rows[0][0]:
                self._stage(Path(match.group(1)))
            return result
        return ResultSet(columns=[])

    def get_schema(self, ref: str) -> Schema:
        if not self.is_connected:
            raise ConnectorError("Not connected to database")
        self.schema_requests.append(ref)
        if self.schema_error is not None:
            raise self.schema_error
        return self.schema

    def _stage(self, directory: Path) -> None:
        directory.mkdir(parents=True, exist_ok=True)
        for name, content in self.staged_files.items():
            path = directory / name
            if name.endswith(".gz"):
                with gzip.open(path, "wt", encoding="utf-8", newline="") as f:
                    f.write(content)
            else:
                _write(path, content)


def _write(path: Path, content: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


@pytest.fixture(autouse=True)
def no_aws_environment(monkeypatch):
    """Keep credentials from the environment out of generated statements."""
    for name in ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_SESSION_TOKEN"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_sfscan_logger():
    """Undo configure_logging(), which the CLI calls on every invocation."""
    logger = logging.getLogger("sfscan")
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def orders_schema():
    """Schema of a small orders table."""
    return Schema(
        [
            Field(name="ID", dtype="int64", nullable=False, precision=18, scale=0),
            Field(name="NAME", dtype="string"),
            Field(name="AMOUNT", dtype="decimal", precision=10, scale=2),
            Field(name="PAID", dtype="bool"),
            Field(name="ORDERED_AT", dtype="timestamp"),
        ]
    )


@pytest.fixture
def staged_orders():
    """Two staged partitions of the orders table, one of them gzipped."""
    return {
        "data_0_0_0.csv.gz": (
            '1|"Alice"|100.50|true|2024-01-15 10:30:00.000000\n'
            '2|"Bob | Jr."|250.75|TRUE|2024-01-16 11:00:00.500000\n'
        ),
        "data_0_1_0.csv": (
            '3|""|75.25|false|\n'
            '4||0.00||2024-01-18 00:00:00.000000\n'
        ),
    }


@pytest.fixture
def make_relation(tmp_path, orders_schema, staged_orders):
    """Build a relation over FakeConnectors.

    The relation gets two extra attributes for assertions: ``connectors``
    (every connector it created) and ``queries`` (what on_query received).
    """

    def factory(
        options: Optional[dict] = None,
        user_schema: Optional[Schema] = None,
        reader: Optional[StagedReader] = None,
        **connector_kwargs,
    ):
        connector_kwargs.setdefault("schema", orders_schema)
        connector_kwargs.setdefault("staged_files", staged_orders)
        connectors: list[FakeConnector] = []
        queries: list[str] = []

        def connector_factory():
            connector = FakeConnector(**connector_kwargs)
            connectors.append(connector)
            return connector

        relation_options = RelationOptions(
            **{"table": "ORDERS", "temp_dir": str(tmp_path / "staging"), **(options or {})}
        )
        relation = SnowflakeRelation(
            connector_factory,
            relation_options,
            user_schema=user_schema,
            reader=reader,
            on_query=queries.append,
        )
        relation.connectors = connectors
        relation.queries = queries
        return relation

    return factory
