"""Audio storage backends.

Responsibilities:
- Persist synthesized and extracted audio under a stable key.
- Return a URL-like locator for the stored object.
- Retry transient S3 upload failures within a bounded linear budget.
"""

from __future__ import annotations

from collections.abc import Callable
import time
from pathlib import Path
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import StorageError
from ..retry import RetryPolicy, call_with_retries


class AudioStorage(Protocol):
    """Protocol for audio object stores."""

    def store(self, data: bytes, key: str, content_type: str) -> str:
        """Persist `data` under `key` and return its URL."""


class LocalAudioStorage:
    """Filesystem-backed audio store served under `/audio/`."""

    def __init__(self, root: Path, url_prefix: str = "/audio") -> None:
        """Initialize the store with a root audio directory."""

        self.root = root
        self.url_prefix = url_prefix.rstrip("/")

    def path_for(self, key: str) -> Path:
        """Return the filesystem path for a storage key."""

        return self.root / key

    def store(self, data: bytes, key: str, content_type: str) -> str:
        """Save audio bytes and return the local URL."""

        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to write audio `{key}`: {exc}") from exc
        return f"{self.url_prefix}/{key}"

    def exists(self, key: str) -> bool:
        """Return whether the given key has been stored."""

        return self.path_for(key).exists()


class S3AudioStorage:
    """Amazon S3 audio store with public-read objects."""

    def __init__(
        self,
        *,
        bucket: str,
        region: str = "us-east-1",
        client: Any | None = None,
        retry_policy: RetryPolicy | None = None,
        sleeper: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize bucket settings; `client` overrides boto3 construction."""

        if not bucket.strip():
            raise StorageError("S3 bucket name is required for S3 audio storage.")
        self.bucket = bucket.strip()
        self.region = region
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=3,
            backoff_base_seconds=2.0,
            backoff_max_seconds=6.0,
            backoff="linear",
        )
        self._sleeper = sleeper
        self._client = client or boto3.client("s3", region_name=region)

    def url_for(self, key: str) -> str:
        """Return the public URL of an object key."""

        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def store(self, data: bytes, key: str, content_type: str) -> str:
        """Upload audio bytes and return the public object URL."""

        def _attempt() -> None:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="public-read",
            )

        try:
            call_with_retries(
                _attempt,
                policy=self.retry_policy,
                should_retry=lambda exc: isinstance(exc, (ClientError, BotoCoreError)),
                sleeper=self._sleeper,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(
                f"Failed to upload `{key}` to S3 bucket `{self.bucket}` after "
                f"{self.retry_policy.max_attempts} attempts: {exc}"
            ) from exc
        return self.url_for(key)
