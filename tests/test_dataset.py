"""Tests for lazy scan datasets."""

from datetime import datetime

import pyarrow as pa
import pytest

from sfscan.core.reader import StagedReader
from sfscan.dataset import CountDataset, EmptyDataset, FilteredDataset, StagedDataset
from sfscan.exceptions import ConversionError
from sfscan.models.field import Field, Schema
from sfscan.models.filters import GreaterThan, IsNull, StringContains
from sfscan.models.scan import ExportResult


class MemoryReader(StagedReader):
    """Reader over in-memory partitions that records what was read."""

    def __init__(self, partitions):
        self.contents = partitions
        self.listed = []
        self.read = []

    def list_partitions(self, path):
        self.listed.append(path)
        return sorted(self.contents)

    def read_lines(self, partition):
        self.read.append(partition)
        for line in self.contents[partition].splitlines(keepends=True):
            yield line


@pytest.fixture
def schema():
    return Schema(
        [
            Field(name="ID", dtype="int64"),
            Field(name="NAME", dtype="string"),
            Field(name="DOC", dtype="object"),
        ]
    )


@pytest.fixture
def reader():
    return MemoryReader(
        {
            "p0": '1|"Alice"|"{""k"": 1}"\n2||\n',
            "p1": '3|"Bob | Jr."|\n',
        }
    )


def staged(reader, schema):
    result = ExportResult(rows_unloaded=3, started_at=datetime.now())
    return StagedDataset(reader, "/staging/run/", schema, result, query='SELECT "ID" FROM T')


class TestStagedDataset:
    """Test reading and converting staged partitions."""

    def test_partitions_are_listed_once(self, reader, schema):
        dataset = staged(reader, schema)
        assert dataset.partitions() == ["p0", "p1"]
        assert dataset.partitions() == ["p0", "p1"]
        assert reader.listed == ["/staging/run/"]

    def test_rows(self, reader, schema):
        rows = list(staged(reader, schema))
        assert rows == [(1, "Alice", {"k": 1}), (2, None, None), (3, "Bob | Jr.", None)]

    def test_conversion_is_lazy(self, reader, schema):
        dataset = staged(reader, schema)
        iterator = dataset.iter_partition("p1")
        assert reader.read == []
        assert next(iterator) == (3, "Bob | Jr.", None)

    def test_records_and_count(self, reader, schema):
        dataset = staged(reader, schema)
        assert next(dataset.records()) == {"ID": 1, "NAME": "Alice", "DOC": {"k": 1}}
        assert dataset.count() == 3

    def test_collect_in_parallel(self, reader, schema):
        rows = staged(reader, schema).collect(max_workers=2)
        assert sorted(row[0] for row in rows) == [1, 2, 3]

    def test_bad_record_names_partition_and_record(self, schema):
        reader = MemoryReader({"p0": "1||\nx||\n"})
        with pytest.raises(ConversionError, match="p0, record 2"):
            list(staged(reader, schema))

    def test_to_arrow(self, reader, schema):
        table = staged(reader, schema).to_arrow()
        assert table.num_rows == 3
        assert table.schema.field("ID").type == pa.int64()
        assert table.column("DOC").to_pylist() == ['{"k": 1}', None, None]

    def test_query_is_exposed(self, reader, schema):
        assert staged(reader, schema).query == 'SELECT "ID" FROM T'


class TestEmptyDataset:
    """Test the result of a scan that unloaded nothing."""

    def test_has_no_rows(self, schema):
        dataset = EmptyDataset(schema)
        assert dataset.partitions() == []
        assert list(dataset) == []
        assert dataset.collect() == []
        assert dataset.to_arrow().num_rows == 0


class TestCountDataset:
    """Test the column-less result of a count-only scan."""

    def test_spreads_rows_over_partitions(self):
        dataset = CountDataset(10, parallelism=3)
        assert dataset.partitions() == ["0", "1", "2"]
        sizes = [len(list(dataset.iter_partition(p))) for p in dataset.partitions()]
        assert sizes == [4, 3, 3]
        assert dataset.count() == 10
        assert len(dataset.collect()) == 10
        assert all(row == () for row in dataset)

    def test_fewer_rows_than_parallelism(self):
        dataset = CountDataset(2, parallelism=200)
        assert len(dataset.partitions()) == 2

    def test_zero(self):
        dataset = CountDataset(0, parallelism=200)
        assert dataset.partitions() == []
        assert dataset.count() == 0


class TestFilteredDataset:
    """Test local post-filtering."""

    def test_where_filters_and_projects(self, reader, schema):
        dataset = staged(reader, schema).where([GreaterThan("ID", 1)], columns=["NAME"])
        assert isinstance(dataset, FilteredDataset)
        assert dataset.schema.names == ["NAME"]
        assert list(dataset) == [(None,), ("Bob | Jr.",)]

    def test_unknown_results_are_dropped(self, reader, schema):
        dataset = staged(reader, schema).where([StringContains("NAME", "o")])
        assert [row[0] for row in dataset] == [3]

    def test_count_after_filter(self, reader, schema):
        assert staged(reader, schema).where([IsNull("NAME")], columns=[]).count() == 1
