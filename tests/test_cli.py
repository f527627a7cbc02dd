"""Tests for the sfscan command line."""

import math
from datetime import date
from decimal import Decimal

import pyarrow.parquet as pq
import pytest
import typer
from typer.testing import CliRunner

from conftest import FakeConnector
from sfscan import __version__, cli
from sfscan.models.field import Field, Schema
from sfscan.models.filters import (
    EqualTo,
    GreaterThanOrEqual,
    IsNotNull,
    IsNull,
    LessThan,
    StringStartsWith,
)

runner = CliRunner()

CONFIG = """
connection:
  account: xy12345
  user: LOADER
  password: secret
relation:
  table: ORDERS
  temp_dir: {temp_dir}
  compress: false
"""

FIELDS = """
fields:
  - {name: ID, dtype: int64}
  - {name: NAME, dtype: string}
credentials:
  aws_key_id: AKIA
  aws_secret_key: hunter2
"""


@pytest.fixture
def schema():
    return Schema(
        [
            Field(name="ID", dtype="int64", nullable=False),
            Field(name="NAME", dtype="string"),
            Field(name="SCORE", dtype="float64"),
            Field(name="AMOUNT", dtype="decimal", precision=10, scale=2),
            Field(name="DAY", dtype="date"),
        ]
    )


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "scan.yaml"
    path.write_text(CONFIG.format(temp_dir=tmp_path / "staging"))
    return path


@pytest.fixture
def fake_snowflake(monkeypatch, schema):
    """Replace the Snowflake connector; returns the settings it is created with."""
    settings = {"schema": schema, "staged_files": {}, "count": 0}
    monkeypatch.setattr(cli, "SnowflakeConnector", lambda config: FakeConnector(**settings))
    return settings


class TestParseFilter:
    """Test filter expressions."""

    def test_comparisons(self, schema):
        assert cli.parse_filter("AMOUNT>=100", schema) == GreaterThanOrEqual("AMOUNT", Decimal("100"))
        assert cli.parse_filter("ID = 5", schema) == EqualTo("ID", 5)
        assert cli.parse_filter("DAY=2024-01-15", schema) == EqualTo("DAY", date(2024, 1, 15))
        assert cli.parse_filter('NAME="a b"', schema) == EqualTo("NAME", "a b")
        assert cli.parse_filter("NAME^=Al", schema) == StringStartsWith("NAME", "Al")

    def test_non_finite_float(self, schema):
        predicate = cli.parse_filter("SCORE<inf", schema)
        assert predicate == LessThan("SCORE", math.inf)

    def test_null_checks(self, schema):
        assert cli.parse_filter("NAME is null", schema) == IsNull("NAME")
        assert cli.parse_filter("NAME IS NOT NULL", schema) == IsNotNull("NAME")

    @pytest.mark.parametrize("expression", ["ID", "MISSING=1", "ID=abc", "ID=", "DAY=yesterday"])
    def test_invalid(self, schema, expression):
        with pytest.raises(typer.BadParameter):
            cli.parse_filter(expression, schema)


class TestCommands:
    """Test CLI commands against a fake connector."""

    def test_version(self):
        result = runner.invoke(cli.app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_schema(self, config_path, fake_snowflake):
        result = runner.invoke(cli.app, ["schema", str(config_path)])
        assert result.exit_code == 0, result.output
        assert "ID\tint64 not null" in result.output
        assert "AMOUNT\tdecimal(10,2)" in result.output

    def test_scan(self, config_path, fake_snowflake):
        fake_snowflake["staged_files"] = {"part.csv": '1|"Alice"\n2|"Bob"\n'}
        result = runner.invoke(cli.app, ["scan", str(config_path), "-c", "ID", "-c", "NAME", "-f", "ID>0"])
        assert result.exit_code == 0, result.output
        assert "ID\tNAME" in result.output
        assert "1\tAlice" in result.output
        assert "2\tBob" in result.output

    def test_scan_with_limit(self, config_path, fake_snowflake):
        fake_snowflake["staged_files"] = {"part.csv": "1\n2\n3\n"}
        result = runner.invoke(cli.app, ["scan", str(config_path), "-c", "ID", "--limit", "1"])
        assert result.exit_code == 0, result.output
        assert "\n1\n" in result.output
        assert "\n2\n" not in result.output

    def test_scan_applies_unhandled_filters_locally(self, config_path, fake_snowflake):
        # The unload selects ID plus SCORE, which the local filter needs
        fake_snowflake["staged_files"] = {"part.csv": "1|1.5\n2|inf\n"}
        result = runner.invoke(cli.app, ["scan", str(config_path), "-c", "ID", "-f", "SCORE<inf"])
        assert result.exit_code == 0, result.output
        assert "Applying 1 filter(s) locally" in result.output
        assert "\n1\n" in result.output
        assert "\n2\n" not in result.output

    def test_scan_to_parquet(self, config_path, fake_snowflake, tmp_path):
        fake_snowflake["staged_files"] = {"part.csv": '1|"Alice"\n2|\n'}
        output = tmp_path / "out.parquet"
        result = runner.invoke(cli.app, ["scan", str(config_path), "-c", "ID", "-c", "NAME", "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert pq.read_table(output).to_pylist() == [
            {"ID": 1, "NAME": "Alice"},
            {"ID": 2, "NAME": None},
        ]

    def test_count(self, config_path, fake_snowflake):
        fake_snowflake["count"] = 1234
        result = runner.invoke(cli.app, ["count", str(config_path), "-f", "ID>=10"])
        assert result.exit_code == 0, result.output
        assert "1,234" in result.output
        assert 'SELECT count(*) FROM ORDERS WHERE "ID" >= 10' in result.output

    def test_unload_sql_is_a_dry_run(self, tmp_path, monkeypatch):
        def no_connection(config):
            raise AssertionError("unload-sql must not connect")

        monkeypatch.setattr(cli, "SnowflakeConnector", no_connection)
        path = tmp_path / "scan.yaml"
        path.write_text(CONFIG.format(temp_dir="s3://bucket/tmp/") + FIELDS)

        result = runner.invoke(cli.app, ["unload-sql", str(path), "-c", "NAME", "-f", "ID>1"])

        assert result.exit_code == 0, result.output
        assert "COPY INTO 's3://bucket/tmp/" in result.output
        assert 'FROM (SELECT "NAME" FROM ORDERS WHERE "ID" > 1)' in result.output
        assert "AWS_SECRET_KEY='***'" in result.output
        assert "hunter2" not in result.output

    def test_bad_filter(self, config_path, fake_snowflake):
        result = runner.invoke(cli.app, ["scan", str(config_path), "-f", "ID=abc"])
        assert result.exit_code == 2
        assert "Invalid value for ID" in result.output

    def test_unknown_column(self, config_path, fake_snowflake):
        result = runner.invoke(cli.app, ["scan", str(config_path), "-c", "NOPE"])
        assert result.exit_code == 1
        assert "Scan error" in result.output

    def test_invalid_config(self, tmp_path):
        path = tmp_path / "scan.yaml"
        path.write_text("relation: {table: T}\n")
        result = runner.invoke(cli.app, ["schema", str(path)])
        assert result.exit_code == 1
        assert "Validation error" in result.output
