"""sfscan configuration management.

This module centralizes all configuration loading from environment variables
and provides sensible defaults. All modules should import configuration
values from here rather than reading environment variables directly.

Environment Variables:
    SFSCAN_TEMP_DIR: Root staging location for unloaded data
                     Default: .sfscan/staging (relative to cwd)

    SFSCAN_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
                      Default: INFO

    SFSCAN_LOG_FORMAT: Log output format (text, json)
                       Default: text

    SFSCAN_COMPRESS: Gzip-compress staged files
                     Default: true

    SFSCAN_MAX_FILE_SIZE: Maximum size in bytes of each staged file
                          Default: 10000000

    SFSCAN_COUNT_PARALLELISM: Partitions produced by count-only scans
                              Default: 200

    SFSCAN_MAX_WORKERS: Maximum worker threads for reading staged partitions
                        Default: 4

    SFSCAN_CONNECTION_TIMEOUT: Connection timeout in seconds
                               Default: 30
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _get_bool(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    value = os.environ.get(key, "").lower()
    if not value:
        return default
    return value in ("true", "1", "yes", "on")


def _get_int(key: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.environ.get(key, "")
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_str(key: str, default: str) -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default)


@dataclass
class SFScanConfig:
    """sfscan configuration container.

    All configuration values are loaded from environment variables
    with sensible defaults.

    Usage:
        from sfscan.core.config import config

        workers = config.max_workers
    """

    # Staging Configuration
    temp_dir: str = field(default_factory=lambda: _get_str("SFSCAN_TEMP_DIR", ".sfscan/staging"))
    compress: bool = field(default_factory=lambda: _get_bool("SFSCAN_COMPRESS", True))
    max_file_size: int = field(default_factory=lambda: _get_int("SFSCAN_MAX_FILE_SIZE", 10_000_000))

    # Logging Configuration
    log_level: str = field(default_factory=lambda: _get_str("SFSCAN_LOG_LEVEL", "INFO").upper())
    log_format: str = field(default_factory=lambda: _get_str("SFSCAN_LOG_FORMAT", "text"))

    # Execution Configuration
    count_parallelism: int = field(default_factory=lambda: _get_int("SFSCAN_COUNT_PARALLELISM", 200))
    max_workers: int = field(default_factory=lambda: _get_int("SFSCAN_MAX_WORKERS", 4))

    # Connection Configuration
    connection_timeout: int = field(default_factory=lambda: _get_int("SFSCAN_CONNECTION_TIMEOUT", 30))

    def __post_init__(self):
        """Validate configuration after initialization."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level not in valid_levels:
            raise ValueError(
                f"Invalid SFSCAN_LOG_LEVEL: {self.log_level}. "
                f"Must be one of: {valid_levels}"
            )

        valid_formats = {"text", "json"}
        if self.log_format not in valid_formats:
            raise ValueError(
                f"Invalid SFSCAN_LOG_FORMAT: {self.log_format}. "
                f"Must be one of: {valid_formats}"
            )

        if self.max_file_size < 1:
            raise ValueError(f"SFSCAN_MAX_FILE_SIZE must be >= 1, got {self.max_file_size}")

        if self.count_parallelism < 1:
            raise ValueError(
                f"SFSCAN_COUNT_PARALLELISM must be >= 1, got {self.count_parallelism}"
            )

        if self.max_workers < 1:
            raise ValueError(f"SFSCAN_MAX_WORKERS must be >= 1, got {self.max_workers}")

        if self.connection_timeout < 1:
            raise ValueError(
                f"SFSCAN_CONNECTION_TIMEOUT must be >= 1, got {self.connection_timeout}"
            )

    def as_dict(self) -> dict:
        """Export configuration as dictionary.

        Returns:
            Dictionary of all configuration values
        """
        return {
            "temp_dir": self.temp_dir,
            "compress": self.compress,
            "max_file_size": self.max_file_size,
            "log_level": self.log_level,
            "log_format": self.log_format,
            "count_parallelism": self.count_parallelism,
            "max_workers": self.max_workers,
            "connection_timeout": self.connection_timeout,
        }


def load_config() -> SFScanConfig:
    """Load configuration from environment.

    Call this to refresh config if environment has changed.

    Returns:
        New SFScanConfig instance
    """
    return SFScanConfig()


# Global configuration instance - loaded once at import time
config = load_config()
