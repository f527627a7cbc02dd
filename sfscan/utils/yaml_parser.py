"""YAML parsing utilities for sfscan.

This module provides functions for loading scan configuration files
with environment variable substitution and validation.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from sfscan.exceptions import ValidationError
from sfscan.models.config import ScanConfig

# Matches ${VAR_NAME} or ${VAR_NAME:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def substitute_env_vars(data: Any) -> Any:
    """Recursively substitute environment variables in data structure.

    Supports ${VAR_NAME} and ${VAR_NAME:-default} syntax.

    Examples:
        >>> os.environ['SF_ACCOUNT'] = 'xy12345'
        >>> substitute_env_vars('${SF_ACCOUNT}.eu-west-1')
        'xy12345.eu-west-1'
        >>> substitute_env_vars('${MISSING:-default_value}')
        'default_value'

    Raises:
        ValidationError: If a variable is unset and has no default
    """
    if isinstance(data, dict):
        return {k: substitute_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [substitute_env_vars(item) for item in data]
    elif isinstance(data, str):

        def replace_var(match: re.Match) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.environ.get(var_name)
            if value:
                return value
            if default_value is None:
                raise ValidationError(
                    f"Environment variable '{var_name}' not found and no default provided"
                )
            return default_value

        return ENV_VAR_PATTERN.sub(replace_var, data)
    else:
        return data


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file into a dictionary with environment variable substitution.

    Raises:
        ValidationError: If file cannot be read or parsed, or required env vars are missing
    """
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ValidationError(f"File not found: {path}")
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ValidationError(f"Failed to load {path}: {e}") from e

    if data is None:
        raise ValidationError(f"Empty YAML file: {path}")
    if not isinstance(data, dict):
        raise ValidationError(f"Expected a mapping at the top of {path}")
    return substitute_env_vars(data)


def load_scan_config(path: Path) -> ScanConfig:
    """Load and validate a scan configuration from a YAML file.

    Raises:
        ValidationError: If the configuration is invalid
    """
    data = load_yaml(path)
    try:
        return ScanConfig(**data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid scan config in {path}: {e}") from e
