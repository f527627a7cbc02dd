"""Object storage credentials embedded in unload statements."""

from __future__ import annotations

import os
from typing import Optional
from urllib.parse import unquote, urlsplit, urlunsplit

from pydantic import BaseModel, Field as PydanticField


class StorageCredentials(BaseModel):
    """AWS credentials the remote database uses to write to staging."""

    aws_key_id: str = PydanticField(..., description="AWS access key id")
    aws_secret_key: str = PydanticField(..., description="AWS secret access key")
    aws_token: Optional[str] = PydanticField(
        None,
        description="Session token for temporary credentials",
    )

    model_config = {"extra": "forbid", "frozen": True}

    def __repr__(self) -> str:
        return f"StorageCredentials(aws_key_id={self.aws_key_id!r}, aws_secret_key='***')"


def split_url_credentials(url: str) -> tuple[str, Optional[StorageCredentials]]:
    """Separate credentials embedded in a staging URL.

    ``s3://KEY:SECRET@bucket/path`` becomes ``s3://bucket/path`` plus the
    credentials. URLs without user info are returned unchanged.
    """
    parts = urlsplit(url)
    if not parts.scheme or "@" not in parts.netloc:
        return url, None

    userinfo, _, host = parts.netloc.rpartition("@")
    key_id, sep, secret = userinfo.partition(":")
    if not sep:
        return url, None

    clean = urlunsplit((parts.scheme, host, parts.path, parts.query, parts.fragment))
    return clean, StorageCredentials(aws_key_id=unquote(key_id), aws_secret_key=unquote(secret))


def load_credentials(temp_dir: Optional[str] = None) -> Optional[StorageCredentials]:
    """Acquire staging credentials.

    Priority: user info in ``temp_dir`` > AWS_* environment variables.

    Returns:
        Credentials, or None when none are available (a storage
        integration or stage must then grant access).
    """
    if temp_dir:
        _, creds = split_url_credentials(temp_dir)
        if creds is not None:
            return creds

    key_id = os.environ.get("AWS_ACCESS_KEY_ID")
    secret = os.environ.get("AWS_SECRET_ACCESS_KEY")
    if key_id and secret:
        return StorageCredentials(
            aws_key_id=key_id,
            aws_secret_key=secret,
            aws_token=os.environ.get("AWS_SESSION_TOKEN") or None,
        )
    return None
