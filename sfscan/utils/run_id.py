"""Run ID generation utilities for sfscan.

Every scan unloads into its own staging directory so concurrent scans of
the same table never collide.
"""

from __future__ import annotations

import secrets
from datetime import datetime


def generate_run_id() -> str:
    """Generate a sortable, unique run ID.

    Format: YYYYMMDD_HHMMSS_<random>
    Example: 20250604_143052_a1b2c3d4e5f6

    Returns:
        Unique run ID string
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    random_suffix = secrets.token_hex(6)
    return f"{timestamp}_{random_suffix}"


def create_per_query_temp_dir(root_temp_dir: str) -> str:
    """Get a fresh staging directory under ``root_temp_dir``.

    Directory structure:
        {root_temp_dir}/{run_id}/

    Returns:
        Staging directory URL, always ending with "/"
    """
    return f"{root_temp_dir.rstrip('/')}/{generate_run_id()}/"
