"""Staged file format shared by the unload statement and the record converter.

The remote database writes staged files according to the FILE_FORMAT
clause and the session output formats; the record converter parses them
back using the matching Python patterns. Both sides read from the same
UnloadFormat so they cannot drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UnloadFormat:
    """Delimited text format of staged files."""

    delimiter: str = "|"
    quote_char: str = '"'
    # With NULL_IF=() nulls are written as an empty, unenclosed field
    null_marker: str = ""

    # Session output formats (remote side)
    date_output_format: str = "YYYY-MM-DD"
    time_output_format: str = "HH24:MI:SS.FF6"
    timestamp_ntz_output_format: str = "YYYY-MM-DD HH24:MI:SS.FF6"
    timestamp_tz_output_format: str = "YYYY-MM-DD HH24:MI:SS.FF6 TZHTZM"
    binary_output_format: str = "HEX"

    # Matching strptime patterns (local side)
    date_pattern: str = "%Y-%m-%d"
    time_pattern: str = "%H:%M:%S.%f"
    timestamp_pattern: str = "%Y-%m-%d %H:%M:%S.%f"
    timestamp_tz_pattern: str = "%Y-%m-%d %H:%M:%S.%f %z"

    def file_format_clause(self, compress: bool) -> str:
        """Render the FILE_FORMAT clause of the unload statement."""
        compression = "gzip" if compress else "none"
        return (
            f"FILE_FORMAT=(TYPE=CSV COMPRESSION='{compression}' "
            f"FIELD_DELIMITER='{self.delimiter}' "
            f"FIELD_OPTIONALLY_ENCLOSED_BY='{self.quote_char}' "
            f"NULL_IF=())"
        )

    def session_parameters(self) -> dict[str, str]:
        """Session parameters that fix how values are rendered in staged files."""
        return {
            "DATE_OUTPUT_FORMAT": self.date_output_format,
            "TIME_OUTPUT_FORMAT": self.time_output_format,
            "TIMESTAMP_NTZ_OUTPUT_FORMAT": self.timestamp_ntz_output_format,
            "TIMESTAMP_LTZ_OUTPUT_FORMAT": self.timestamp_tz_output_format,
            "TIMESTAMP_TZ_OUTPUT_FORMAT": self.timestamp_tz_output_format,
            "BINARY_OUTPUT_FORMAT": self.binary_output_format,
        }


DEFAULT_FORMAT = UnloadFormat()
