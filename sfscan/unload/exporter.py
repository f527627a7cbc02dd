"""Unload orchestration.

Runs the session prologue, pre-actions, the unload statement and
post-actions on one connector, checks the remote confirmation, and
releases the connector on every exit path.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from sfscan.core.connector import Connector, ResultSet
from sfscan.exceptions import ProtocolError, TypeMappingError
from sfscan.models.scan import ExportResult
from sfscan.unload.format import DEFAULT_FORMAT, UnloadFormat
from sfscan.unload.statement import build_prologue
from sfscan.utils.sql import sanitize_query_text

logger = logging.getLogger(__name__)

ROWS_UNLOADED_COLUMN = "rows_unloaded"
CONFIRMATION_COLUMN_COUNT = 3


class UnloadExporter:
    """Execute unload statements and verify the remote confirmation.

    The confirmation must have exactly three columns, the first named
    ``rows_unloaded`` with a numeric type, and exactly one row. Anything
    else means the remote unload contract changed and is a fatal
    ProtocolError. No retries are attempted.

    Examples:
        >>> exporter = UnloadExporter(preactions=["USE WAREHOUSE ETL"])
        >>> result = exporter.export(connector, unload_sql, staging_url)
        >>> if result.is_empty:
        ...     ...  # nothing was staged, do not read
    """

    def __init__(
        self,
        preactions: Optional[list[str]] = None,
        postactions: Optional[list[str]] = None,
        table: Optional[str] = None,
        timezone: Optional[str] = None,
        unload_format: UnloadFormat = DEFAULT_FORMAT,
        on_query: Optional[Callable[[str], None]] = None,
    ):
        """Initialize exporter.

        Args:
            preactions: Statements run after the prologue, before the unload
            postactions: Statements run after a successful unload
            table: Substituted for "%s" in pre/post actions
            timezone: Session time zone for the prologue
            unload_format: Format whose output settings the prologue applies
            on_query: Called with each statement (credentials redacted)
        """
        self.preactions = preactions or []
        self.postactions = postactions or []
        self.table = table
        self.timezone = timezone
        self.unload_format = unload_format
        self.on_query = on_query

    def export(
        self,
        connector: Connector,
        unload_statement: str,
        staging_url: Optional[str] = None,
    ) -> ExportResult:
        """Run the unload and report how many rows were staged.

        Args:
            connector: Connector to run on; disconnected when this returns
            unload_statement: Statement built by build_unload_statement()
            staging_url: Staging directory, recorded on the result

        Returns:
            ExportResult; rows_unloaded == 0 means nothing was staged

        Raises:
            ProtocolError: If the confirmation has an unexpected shape
            ConnectorError: If a statement fails
        """
        started_at = datetime.now()

        with connector:
            self._execute(connector, build_prologue(self.unload_format, self.timezone))
            for action in self.preactions:
                self._execute(connector, self._substitute(action))

            self._log(unload_statement)
            result = connector.execute_query(unload_statement)
            rows_unloaded = self._verify_confirmation(connector, result)

            for action in self.postactions:
                self._execute(connector, self._substitute(action))

        completed_at = datetime.now()
        logger.info("Unloaded %d rows to %s", rows_unloaded, staging_url or "staging")

        return ExportResult(
            rows_unloaded=rows_unloaded,
            staging_url=staging_url,
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=(completed_at - started_at).total_seconds(),
        )

    def _verify_confirmation(self, connector: Connector, result: ResultSet) -> int:
        """Check the confirmation shape and return the unloaded row count."""
        if result.column_count != CONFIRMATION_COLUMN_COUNT:
            raise ProtocolError(
                f"Unload confirmation has {result.column_count} columns, "
                f"expected {CONFIRMATION_COLUMN_COUNT}"
            )

        first = result.columns[0]
        if first.name != ROWS_UNLOADED_COLUMN:
            raise ProtocolError(
                f"Unload confirmation column 1 is '{first.name}', "
                f"expected '{ROWS_UNLOADED_COLUMN}'"
            )

        try:
            dtype = connector.type_mapper.from_source(first.type_name, first.precision, first.scale)
        except TypeMappingError as e:
            raise ProtocolError(
                f"Unload confirmation column '{ROWS_UNLOADED_COLUMN}' has unknown type "
                f"'{first.type_name}'"
            ) from e
        if not dtype.is_numeric:
            raise ProtocolError(
                f"Unload confirmation column '{ROWS_UNLOADED_COLUMN}' has type "
                f"'{first.type_name}', expected a number"
            )

        if len(result.rows) != 1:
            raise ProtocolError(
                f"Unload confirmation has {len(result.rows)} rows, expected exactly 1"
            )

        try:
            rows_unloaded = int(result.rows[0][0])
        except (TypeError, ValueError) as e:
            raise ProtocolError(
                f"Unload confirmation row count is not a number: {result.rows[0][0]!r}"
            ) from e
        if rows_unloaded < 0:
            raise ProtocolError(f"Unload confirmation row count is negative: {rows_unloaded}")
        return rows_unloaded

    def _substitute(self, action: str) -> str:
        if "%s" in action and self.table is not None:
            return action.replace("%s", self.table)
        return action

    def _execute(self, connector: Connector, statement: str) -> None:
        self._log(statement)
        connector.execute_statement(statement)

    def _log(self, statement: str) -> None:
        if self.on_query is not None:
            self.on_query(sanitize_query_text(statement))
