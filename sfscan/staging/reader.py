"""Staged file reader for local directories and S3.

S3 locations are read through s3fs; everything else is treated as a
local directory. Each staged object is one partition.
"""

from __future__ import annotations

import gzip
import io
import logging
from pathlib import Path
from typing import IO, Any, Iterator, Optional

from sfscan.core.reader import StagedReader
from sfscan.exceptions import StagingError
from sfscan.unload.statement import fix_s3_url

logger = logging.getLogger(__name__)

_S3_SCHEMES = ("s3://", "s3a://", "s3n://")


class FileStagedReader(StagedReader):
    """Read staged objects from a local directory or an S3 prefix.

    Objects ending in ``.gz`` are decompressed. Zero-byte objects are
    skipped since the remote database may emit them as markers.

    Examples:
        >>> reader = FileStagedReader(storage_options={"anon": False})
        >>> partitions = reader.list_partitions("s3://bucket/tmp/20250101_120000_abcdef/")
    """

    def __init__(self, storage_options: Optional[dict[str, Any]] = None, encoding: str = "utf-8"):
        """Initialize reader.

        Args:
            storage_options: Keyword arguments for s3fs.S3FileSystem
            encoding: Text encoding of staged files
        """
        self.storage_options = storage_options or {}
        self.encoding = encoding
        self._fs = None

    @staticmethod
    def is_s3(path: str) -> bool:
        return path.startswith(_S3_SCHEMES)

    @property
    def fs(self):
        """Lazily created s3fs filesystem."""
        if self._fs is None:
            try:
                import s3fs
            except ImportError as e:
                raise StagingError(
                    "Reading staged files from S3 requires s3fs. Install with: pip install sfscan[s3]"
                ) from e
            self._fs = s3fs.S3FileSystem(**self.storage_options)
        return self._fs

    def list_partitions(self, path: str) -> list[str]:
        """List non-empty staged objects under ``path``."""
        try:
            if self.is_s3(path):
                return self._list_s3(fix_s3_url(path))
            return self._list_local(Path(path))
        except StagingError:
            raise
        except Exception as e:
            raise StagingError(f"Failed to list staged files under {path}: {e}") from e

    def _list_s3(self, url: str) -> list[str]:
        prefix = url[len("s3://"):]
        details = self.fs.find(prefix, detail=True)
        partitions = [
            f"s3://{key}"
            for key, info in details.items()
            if info.get("type") == "file" and info.get("size", 0) > 0
        ]
        return sorted(partitions)

    def _list_local(self, directory: Path) -> list[str]:
        if not directory.exists():
            raise StagingError(f"Staging directory does not exist: {directory}")
        return sorted(
            str(p) for p in directory.rglob("*") if p.is_file() and p.stat().st_size > 0
        )

    def read_lines(self, partition: str) -> Iterator[str]:
        """Lazily yield the lines of one staged object."""
        logger.debug("Reading staged partition %s", partition)
        try:
            with self._open_binary(partition) as raw:
                stream = gzip.GzipFile(fileobj=raw) if partition.endswith(".gz") else raw
                with io.TextIOWrapper(stream, encoding=self.encoding, newline="") as handle:
                    for line in handle:
                        yield line
        except StagingError:
            raise
        except (OSError, EOFError, UnicodeDecodeError) as e:
            raise StagingError(f"Failed to read staged file {partition}: {e}") from e

    def has_expiration_rule(self, path: str) -> Optional[bool]:
        """Check the S3 bucket lifecycle for an enabled rule covering ``path``.

        Local paths return None.

        Raises:
            StagingError: If the lifecycle configuration cannot be read
        """
        if not self.is_s3(path):
            return None

        bucket, _, key = fix_s3_url(path)[len("s3://"):].partition("/")
        fs = self.fs
        try:
            response = fs.call_s3("get_bucket_lifecycle_configuration", Bucket=bucket)
        except Exception as e:
            raise StagingError(f"Failed to read lifecycle configuration of bucket {bucket}: {e}") from e

        for rule in response.get("Rules", []):
            rule_filter = rule.get("Filter", {})
            prefix = rule_filter.get("Prefix", rule_filter.get("And", {}).get("Prefix", rule.get("Prefix", "")))
            if rule.get("Status") == "Enabled" and "Expiration" in rule and key.startswith(prefix):
                return True
        return False

    def _open_binary(self, partition: str) -> IO[bytes]:
        if self.is_s3(partition):
            return self.fs.open(fix_s3_url(partition), "rb")
        return open(partition, "rb")
