"""Reading staged files and converting their records."""

from sfscan.staging.reader import FileStagedReader
from sfscan.staging.records import (
    convert_row,
    convert_value,
    create_row_converter,
    iter_records,
    split_record,
)

__all__ = [
    "FileStagedReader",
    "convert_row",
    "convert_value",
    "create_row_converter",
    "iter_records",
    "split_record",
]
