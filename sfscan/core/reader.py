"""Base StagedReader abstract class.

This module defines the interface for reading staged files back after an
unload. Each staged object is one partition; partitions are independent
and can be read concurrently.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, Optional


class StagedReader(ABC):
    """Base class for listing and reading staged files.

    Examples:
        >>> reader = FileStagedReader()
        >>> for partition in reader.list_partitions("s3://bucket/tmp/run/"):
        ...     for line in reader.read_lines(partition):
        ...         ...
    """

    @abstractmethod
    def list_partitions(self, path: str) -> list[str]:
        """List the staged objects under ``path``.

        Args:
            path: Staging directory the unload wrote to

        Returns:
            Partition keys (object paths), sorted

        Raises:
            StagingError: If the location cannot be listed
        """
        pass

    @abstractmethod
    def read_lines(self, partition: str) -> Iterator[str]:
        """Lazily read one staged object as text lines.

        Compressed objects are decompressed transparently. Lines keep
        their trailing newline.

        Raises:
            StagingError: If the object cannot be read
        """
        pass

    def has_expiration_rule(self, path: str) -> Optional[bool]:
        """Whether objects under ``path`` are expired by the storage itself.

        Staged files are never deleted by sfscan, so an object store
        should expire them. Readers that cannot tell return None.

        Raises:
            StagingError: If the storage configuration cannot be read
        """
        return None
