"""Lazy, partitioned scan results.

A dataset is a list of partitions, each of which can be read on its own
into typed rows. Rows are converted while they are consumed. Order within
a partition is the staged order; there is no order across partitions.
"""

from __future__ import annotations

import itertools
import json
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, Iterator, Optional, Sequence

import pyarrow as pa

from sfscan.core.config import config
from sfscan.core.reader import StagedReader
from sfscan.core.type_mapper import get_arrow_type
from sfscan.exceptions import ConversionError
from sfscan.models.field import DataType, Schema
from sfscan.models.filters import Predicate
from sfscan.models.scan import ExportResult
from sfscan.staging.records import create_row_converter, iter_records, split_record
from sfscan.unload.format import DEFAULT_FORMAT, UnloadFormat

logger = logging.getLogger(__name__)

_SEMI_STRUCTURED = (DataType.JSON, DataType.ARRAY, DataType.OBJECT)


class ScanDataset(ABC):
    """Base class for scan results.

    Attributes:
        schema: Schema of every row
        query: The SELECT statement pushed to the remote database, if any
        unload_statement: The unload statement that staged the rows, if any
    """

    def __init__(
        self,
        schema: Schema,
        query: Optional[str] = None,
        unload_statement: Optional[str] = None,
    ):
        self.schema = schema
        self.query = query
        self.unload_statement = unload_statement

    @abstractmethod
    def partitions(self) -> list[str]:
        """Partition keys of this dataset."""
        pass

    @abstractmethod
    def iter_partition(self, partition: str) -> Iterator[tuple]:
        """Lazily yield the typed rows of one partition."""
        pass

    def __iter__(self) -> Iterator[tuple]:
        return itertools.chain.from_iterable(self.iter_partition(p) for p in self.partitions())

    def records(self) -> Iterator[dict[str, Any]]:
        """Yield rows as dicts keyed by column name."""
        names = self.schema.names
        for row in self:
            yield dict(zip(names, row))

    def collect(self, max_workers: Optional[int] = None) -> list[tuple]:
        """Read every partition, concurrently, and return all rows.

        Args:
            max_workers: Worker threads (defaults to config.max_workers)
        """
        partitions = self.partitions()
        if not partitions:
            return []
        workers = min(max_workers or config.max_workers, len(partitions))
        if workers == 1:
            return list(self)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            chunks = executor.map(lambda p: list(self.iter_partition(p)), partitions)
            return [row for chunk in chunks for row in chunk]

    def count(self) -> int:
        return sum(1 for _ in self)

    def where(self, predicates: Iterable[Predicate], columns: Optional[Sequence[str]] = None) -> FilteredDataset:
        """Apply predicates locally, optionally projecting afterwards.

        Used for the predicates that were not pushed down. The predicates
        may reference columns that ``columns`` then drops.
        """
        return FilteredDataset(self, predicates, columns)

    def to_arrow(self) -> pa.Table:
        """Materialize the dataset as a pyarrow Table."""
        rows = self.collect()
        arrays = []
        for index, field in enumerate(self.schema):
            values = [row[index] for row in rows]
            if field.dtype in _SEMI_STRUCTURED:
                values = [None if v is None else json.dumps(v) for v in values]
            arrays.append(pa.array(values, type=get_arrow_type(field)))
        return pa.Table.from_arrays(arrays, names=self.schema.names)


class EmptyDataset(ScanDataset):
    """Result of a scan that matched no rows; nothing is read."""

    def partitions(self) -> list[str]:
        return []

    def iter_partition(self, partition: str) -> Iterator[tuple]:
        return iter(())


class CountDataset(ScanDataset):
    """``count`` column-less rows spread over ``parallelism`` partitions."""

    def __init__(self, count: int, parallelism: int, query: Optional[str] = None):
        super().__init__(Schema(), query)
        self.total = count
        self.parallelism = max(1, min(parallelism, count)) if count else 0

    def partitions(self) -> list[str]:
        return [str(i) for i in range(self.parallelism)]

    def _partition_size(self, index: int) -> int:
        base, extra = divmod(self.total, self.parallelism)
        return base + (1 if index < extra else 0)

    def iter_partition(self, partition: str) -> Iterator[tuple]:
        return itertools.repeat((), self._partition_size(int(partition)))

    def count(self) -> int:
        return self.total


class StagedDataset(ScanDataset):
    """Rows read from the staged files of one unload.

    A record that cannot be converted aborts its partition with a
    ConversionError naming the partition and record number.
    """

    def __init__(
        self,
        reader: StagedReader,
        staging_url: str,
        schema: Schema,
        export_result: ExportResult,
        query: Optional[str] = None,
        unload_statement: Optional[str] = None,
        unload_format: UnloadFormat = DEFAULT_FORMAT,
    ):
        super().__init__(schema, query, unload_statement)
        self.reader = reader
        self.staging_url = staging_url
        self.export_result = export_result
        self.unload_format = unload_format
        self._partitions: Optional[list[str]] = None

    def partitions(self) -> list[str]:
        if self._partitions is None:
            self._partitions = self.reader.list_partitions(self.staging_url)
            logger.debug(
                "Found %d staged partitions under %s", len(self._partitions), self.staging_url
            )
        return self._partitions

    def iter_partition(self, partition: str) -> Iterator[tuple]:
        convert = create_row_converter(self.schema, self.unload_format)
        lines = self.reader.read_lines(partition)
        for number, record in enumerate(iter_records(lines, self.unload_format), start=1):
            try:
                yield convert(split_record(record, self.unload_format))
            except ConversionError as e:
                raise ConversionError(f"{partition}, record {number}: {e}") from e


class FilteredDataset(ScanDataset):
    """A dataset with predicates applied locally to each row."""

    def __init__(
        self,
        parent: ScanDataset,
        predicates: Iterable[Predicate],
        columns: Optional[Sequence[str]] = None,
    ):
        schema = parent.schema.prune(columns) if columns is not None else parent.schema
        super().__init__(schema, parent.query, parent.unload_statement)
        self.parent = parent
        self.predicates = list(predicates)
        self._positions = [parent.schema.names.index(name) for name in schema.names]

    def partitions(self) -> list[str]:
        return self.parent.partitions()

    def iter_partition(self, partition: str) -> Iterator[tuple]:
        names = self.parent.schema.names
        for row in self.parent.iter_partition(partition):
            record = dict(zip(names, row))
            if all(p.evaluate(record) for p in self.predicates):
                yield tuple(row[i] for i in self._positions)
