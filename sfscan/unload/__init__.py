"""Unload (bulk export) to the staging location."""

from sfscan.unload.credentials import StorageCredentials, load_credentials
from sfscan.unload.exporter import UnloadExporter
from sfscan.unload.format import DEFAULT_FORMAT, UnloadFormat
from sfscan.unload.statement import build_prologue, build_unload_statement, fix_s3_url

__all__ = [
    "DEFAULT_FORMAT",
    "StorageCredentials",
    "UnloadExporter",
    "UnloadFormat",
    "build_prologue",
    "build_unload_statement",
    "fix_s3_url",
    "load_credentials",
]
