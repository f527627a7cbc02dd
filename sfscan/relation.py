"""Snowflake relation: the entry point for push-down scans.

A relation wraps one remote table or subquery. Each scan translates the
filters it can, builds the SELECT, unloads the result set to a fresh
staging directory, and returns a lazy dataset over the staged files.
"""

from __future__ import annotations

import logging
from functools import cached_property
from typing import Callable, Iterable, Optional, Sequence

from sfscan.core.connector import Connector
from sfscan.core.reader import StagedReader
from sfscan.dataset import CountDataset, EmptyDataset, ScanDataset, StagedDataset
from sfscan.exceptions import ProtocolError, StagingError
from sfscan.models.field import Schema
from sfscan.models.filters import Predicate
from sfscan.models.scan import RelationOptions, ScanRequest
from sfscan.pushdown.filters import build_where_clause, unhandled_filters
from sfscan.pushdown.query import build_count_query, build_projection_query, source_reference
from sfscan.staging.reader import FileStagedReader
from sfscan.unload.credentials import StorageCredentials, load_credentials
from sfscan.unload.exporter import UnloadExporter
from sfscan.unload.format import DEFAULT_FORMAT, UnloadFormat
from sfscan.unload.statement import build_unload_statement, fix_s3_url
from sfscan.utils.run_id import create_per_query_temp_dir
from sfscan.utils.sql import sanitize_query_text

logger = logging.getLogger(__name__)

ConnectorFactory = Callable[[], Connector]


class SnowflakeRelation:
    """A remote table or subquery that can be scanned with push-down.

    Every operation opens its own connector from ``connector_factory``
    and releases it before returning.

    Examples:
        >>> options = RelationOptions(table="ORDERS", temp_dir="s3://bucket/tmp/")
        >>> relation = SnowflakeRelation(lambda: SnowflakeConnector(conn_config), options)
        >>> dataset = relation.build_scan(["ID", "AMOUNT"], [GreaterThan("AMOUNT", 100)])
        >>> for row in dataset:
        ...     print(row)
    """

    def __init__(
        self,
        connector_factory: ConnectorFactory,
        options: RelationOptions,
        user_schema: Optional[Schema] = None,
        reader: Optional[StagedReader] = None,
        credentials: Optional[StorageCredentials] = None,
        unload_format: UnloadFormat = DEFAULT_FORMAT,
        on_query: Optional[Callable[[str], None]] = None,
    ):
        """Initialize relation.

        Args:
            connector_factory: Returns a new, unconnected connector
            options: Table or query and unload settings
            user_schema: Schema to use instead of asking the remote database
            reader: Reader for staged files (defaults to FileStagedReader)
            credentials: Staging credentials; looked up from the staging
                URL and environment when omitted
            unload_format: Delimited format of staged files
            on_query: Called with every statement sent, credentials redacted
        """
        self.connector_factory = connector_factory
        self.options = options
        self.user_schema = user_schema
        self.reader = reader or FileStagedReader()
        self.credentials = credentials
        self.unload_format = unload_format
        self.on_query = on_query

    @property
    def source(self) -> str:
        """Table name, or the parenthesized subquery."""
        return source_reference(self.options.table, self.options.query)

    @cached_property
    def schema(self) -> Schema:
        """Schema of the relation; resolved remotely at most once.

        Raises:
            SchemaError: If the remote columns cannot be resolved
        """
        if self.user_schema is not None:
            return self.user_schema

        with self.connector_factory() as connector:
            schema = connector.get_schema(self.source)
        logger.debug("Resolved schema for %s: %s", self.source, ", ".join(schema.names))
        return schema

    def unhandled_filters(self, filters: Iterable[Predicate]) -> list[Predicate]:
        """Filters that will not be pushed down and must be applied locally."""
        return unhandled_filters(self.schema, filters)

    def scan(self, request: ScanRequest) -> ScanDataset:
        """Run the scan described by ``request``."""
        return self.build_scan(request.required_columns, request.filters)

    def build_scan(
        self,
        required_columns: Sequence[str],
        filters: Iterable[Predicate] = (),
    ) -> ScanDataset:
        """Push the projection and translatable filters down and unload.

        With no required columns only the row count is fetched and no
        staging takes place.

        Args:
            required_columns: Columns to return, in output order
            filters: Predicates; untranslatable ones are left to the caller

        Returns:
            Lazy dataset of typed rows

        Raises:
            SchemaError: If a required column is not in the schema
            ProtocolError: If the unload confirmation is malformed
        """
        filters = list(filters)
        schema = self.schema
        where_clause = build_where_clause(schema, filters)
        self._check_bucket_configuration()

        if not required_columns:
            return self._count(where_clause)

        result_schema = schema.prune(required_columns)
        query = build_projection_query(self.source, required_columns, where_clause)
        return self._unload(self.connector_factory(), query, result_schema)

    def build_scan_from_sql(self, sql: str, schema: Optional[Schema] = None) -> ScanDataset:
        """Unload a complete query built elsewhere.

        The query's schema is resolved on the same connection that runs
        the unload unless ``schema`` is given.
        """
        self._check_bucket_configuration()
        connector = self.connector_factory()
        with connector:
            if schema is None:
                schema = connector.get_schema(f"({sql})")
            return self._unload(connector, sql, schema)

    def _check_bucket_configuration(self) -> None:
        """Warn when staged files under temp_dir are never expired."""
        if not self.options.check_bucket_configuration:
            return

        temp_dir = fix_s3_url(self.options.temp_dir)
        try:
            has_rule = self.reader.has_expiration_rule(temp_dir)
        except StagingError as e:
            logger.warning("Could not check the staging bucket configuration: %s", e)
            return
        if has_rule is False:
            logger.warning(
                "No enabled lifecycle rule expires objects under %s; staged files will not be deleted",
                temp_dir,
            )

    def _count(self, where_clause: str) -> CountDataset:
        query = build_count_query(self.source, where_clause)
        self._log(query)

        with self.connector_factory() as connector:
            result = connector.execute_query(query)

        if len(result.rows) != 1 or not result.rows[0]:
            raise ProtocolError(f"Count query returned {len(result.rows)} rows, expected exactly 1")
        count = int(result.rows[0][0])
        logger.info("Counted %d rows in %s", count, self.source)
        return CountDataset(count, self.options.count_parallelism, query=query)

    def _unload(self, connector: Connector, query: str, schema: Schema) -> ScanDataset:
        options = self.options
        staging_url = create_per_query_temp_dir(fix_s3_url(options.temp_dir))
        credentials = self.credentials or load_credentials(options.temp_dir)

        statement = build_unload_statement(
            query,
            staging_url,
            credentials=credentials,
            storage_integration=options.storage_integration,
            compress=options.compress,
            max_file_size=options.max_file_size,
            unload_format=self.unload_format,
        )
        logger.info("Unloading %s", sanitize_query_text(query))

        exporter = UnloadExporter(
            preactions=options.preactions,
            postactions=options.postactions,
            table=self.source,
            timezone=options.timezone,
            unload_format=self.unload_format,
            on_query=self.on_query,
        )
        result = exporter.export(connector, statement, staging_url)

        if result.is_empty:
            return EmptyDataset(schema, query=query, unload_statement=sanitize_query_text(statement))

        return StagedDataset(
            self.reader,
            staging_url,
            schema,
            result,
            query=query,
            unload_statement=sanitize_query_text(statement),
            unload_format=self.unload_format,
        )

    def _log(self, statement: str) -> None:
        if self.on_query is not None:
            self.on_query(sanitize_query_text(statement))
