"""Direct S3 backend.

Implements the Backend protocol with boto3 calls against any
S3-compatible store (AWS S3, MinIO, R2, ...), without a broker.
Credentials come from the boto3 provider chain.
"""

import logging
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from artifact.config import S3Config, load_s3_config
from artifact.exceptions import (
    ArtifactAlreadyExistsError,
    ArtifactNotFoundError,
    PermissionDeniedError,
    TransferError,
    TransportError,
)
from artifact.transfer import (
    TransferStats,
    check_cancelled,
    enumerate_push,
    is_at_or_under,
    join_remote,
    local_io,
    plan_pull,
    write_atomically,
)

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})
DENIED_CODES = frozenset({"401", "403", "AccessDenied", "Forbidden"})

DOWNLOAD_CHUNK_SIZE = 1024 * 1024
LIST_PAGE_SIZE = 1000


def build_client(config: S3Config) -> Any:
    """Create a boto3 S3 client for config."""
    if config.region:
        session = boto3.session.Session(region_name=config.region)
    else:
        session = boto3.session.Session()

    client_config = None
    if config.force_path_style:
        client_config = BotoConfig(s3={"addressing_style": "path"})

    return session.client("s3", endpoint_url=config.endpoint or None, config=client_config)


def _error_code(error: ClientError) -> str:
    code = str(error.response.get("Error", {}).get("Code", ""))
    if code:
        return code
    return str(error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", ""))


def is_not_found(error: ClientError) -> bool:
    return _error_code(error) in NOT_FOUND_CODES


def translate_error(error: Exception, operation: str, path: str) -> TransferError:
    """Map a botocore failure onto the artifact error taxonomy."""
    if isinstance(error, ClientError):
        code = _error_code(error)
        if code in NOT_FOUND_CODES:
            return ArtifactNotFoundError(path)
        if code in DENIED_CODES:
            return PermissionDeniedError(operation, path, code)
    return TransportError(f"Failed to {operation} '{path}': {error}", path=path)


class S3Backend:
    """Backend that calls bucket/key operations directly."""

    def __init__(
        self,
        config: S3Config,
        client: Any = None,
        page_size: int = LIST_PAGE_SIZE,
    ) -> None:
        self.config = config
        self.page_size = page_size
        self._prefix = config.prefix.strip("/")
        self._client = client if client is not None else build_client(config)
        self._closed = False

        logger.debug(
            "S3Backend: Client initialized (bucket=%s, region=%s, endpoint=%s)",
            config.bucket,
            config.region,
            config.endpoint,
        )

    @classmethod
    def from_env(cls) -> "S3Backend":
        """Create a backend from environment and config file."""
        return cls(load_s3_config())

    # Key translation

    def prefixed_key(self, remote_path: str) -> str:
        """Return the store key for remote_path, with the configured prefix.

        Leading slashes are dropped whether or not a prefix is set.
        """
        remote_path = remote_path.lstrip("/")
        if not self._prefix:
            return remote_path
        return join_remote(self._prefix, remote_path)

    def unprefixed_key(self, key: str) -> str:
        """Inverse of prefixed_key for keys read back from the store."""
        if not self._prefix:
            return key
        if key == self._prefix:
            return ""
        head = self._prefix + "/"
        if key.startswith(head):
            return key[len(head):]
        return key

    # Backend protocol

    def push(
        self,
        local_path: Path | str,
        remote_path: str,
        force: bool = False,
        cancel: threading.Event | None = None,
    ) -> TransferStats:
        logger.debug("S3Backend: Pushing %s -> %s (force=%s)", local_path, remote_path, force)

        stats = TransferStats()
        for unit in enumerate_push(local_path, remote_path):
            check_cancelled(cancel, "push")
            stats.record(self.push_file(unit.local_path, unit.remote_path, force))
        return stats

    def push_file(self, local_path: Path, remote_path: str, force: bool = False) -> int:
        """Upload one file. Returns the byte count."""
        key = self.prefixed_key(remote_path)

        if not force and self._head(key, remote_path):
            raise ArtifactAlreadyExistsError(remote_path)

        with local_io("read", local_path):
            size = local_path.stat().st_size
            f = open(local_path, "rb")
        try:
            with f:
                self._client.put_object(Bucket=self.config.bucket, Key=key, Body=f)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "upload", remote_path) from e

        logger.debug("Uploaded: %s -> s3://%s/%s", local_path, self.config.bucket, key)
        return size

    def pull(
        self,
        remote_path: str,
        local_path: Path | str,
        force: bool = False,
        cancel: threading.Event | None = None,
    ) -> TransferStats:
        logger.debug("S3Backend: Pulling %s -> %s (force=%s)", remote_path, local_path, force)

        keys = list(self.list_keys(remote_path, cancel))
        if not keys:
            raise ArtifactNotFoundError(remote_path)

        stats = TransferStats()
        for unit in plan_pull(keys, remote_path, local_path, force):
            check_cancelled(cancel, "pull")
            stats.record(self.pull_file(unit.remote_path, unit.local_path))
        return stats

    def pull_file(self, remote_path: str, local_path: Path) -> int:
        """Download one object. Returns the byte count."""
        key = self.prefixed_key(remote_path)
        try:
            result = self._client.get_object(Bucket=self.config.bucket, Key=key)
            body = result["Body"]
            try:
                size = write_atomically(local_path, body.iter_chunks(DOWNLOAD_CHUNK_SIZE))
            finally:
                body.close()
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "download", remote_path) from e

        logger.debug("Downloaded: s3://%s/%s -> %s", self.config.bucket, key, local_path)
        return size

    def yank(self, remote_path: str, cancel: threading.Event | None = None) -> None:
        logger.debug("S3Backend: Yanking %s", remote_path)

        for remote_key in list(self.list_keys(remote_path, cancel)):
            check_cancelled(cancel, "yank")
            key = self.prefixed_key(remote_key)
            try:
                self._client.delete_object(Bucket=self.config.bucket, Key=key)
            except ClientError as e:
                if is_not_found(e):
                    continue
                raise translate_error(e, "delete", remote_key) from e
            except BotoCoreError as e:
                raise translate_error(e, "delete", remote_key) from e
            logger.debug("Deleted: s3://%s/%s", self.config.bucket, key)

    def exists(self, remote_path: str, cancel: threading.Event | None = None) -> bool:
        check_cancelled(cancel, "exists")
        key = self.prefixed_key(remote_path)
        if self._head(key, remote_path):
            return True

        # Not an object itself; may still be a directory of objects.
        check_cancelled(cancel, "exists")
        try:
            page = self._client.list_objects_v2(
                Bucket=self.config.bucket,
                Prefix=key.rstrip("/") + "/",
                MaxKeys=1,
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "check", remote_path) from e
        return bool(page.get("Contents"))

    def list_keys(
        self, remote_path: str, cancel: threading.Event | None = None
    ) -> Iterator[str]:
        """Yield remote keys at or under remote_path, page by page."""
        key = self.prefixed_key(remote_path)
        paginator = self._client.get_paginator("list_objects_v2")

        try:
            for page in paginator.paginate(
                Bucket=self.config.bucket,
                Prefix=key,
                PaginationConfig={"PageSize": self.page_size},
            ):
                check_cancelled(cancel, "list")
                for obj in page.get("Contents", []):
                    listed = obj["Key"]
                    if is_at_or_under(listed, key):
                        yield self.unprefixed_key(listed)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "list", remote_path) from e

    def close(self) -> None:
        if self._closed:
            return
        close = getattr(self._client, "close", None)
        if close is not None:
            close()
        self._closed = True

    def __enter__(self) -> "S3Backend":
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    def _head(self, key: str, remote_path: str) -> bool:
        try:
            self._client.head_object(Bucket=self.config.bucket, Key=key)
        except ClientError as e:
            if is_not_found(e):
                return False
            raise translate_error(e, "check", remote_path) from e
        except BotoCoreError as e:
            raise translate_error(e, "check", remote_path) from e
        return True
