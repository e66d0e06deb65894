"""Signed-URL broker backend.

Implements the Backend protocol by asking the broker for signed URLs
and following them. This is the default backend.
"""

import logging
import threading
from pathlib import Path

import httpx

from artifact.backends.hub_client import HubClient, RequestType, SignedURL
from artifact.config import HubConfig, load_hub_config
from artifact.exceptions import ArtifactNotFoundError, MalformedResponseError
from artifact.transfer import (
    TransferStats,
    TransferUnit,
    check_cancelled,
    enumerate_push,
    is_at_or_under,
    plan_pull,
)

logger = logging.getLogger(__name__)


def attach_urls(
    units: list[TransferUnit],
    signed_urls: list[SignedURL],
    force: bool,
) -> list[tuple[TransferUnit, list[SignedURL]]]:
    """Split a batched broker response evenly across transfer units.

    With force each unit gets one URL (write); without force each unit
    gets two (read-check, then write). Any other count invalidates the
    whole batch.
    """
    per_unit = 1 if force else 2
    expected = len(units) * per_unit
    if len(signed_urls) != expected:
        raise MalformedResponseError(
            f"Unexpected number of signed URLs: got {len(signed_urls)}, expected {expected}"
        )

    return [
        (unit, signed_urls[i * per_unit:(i + 1) * per_unit])
        for i, unit in enumerate(units)
    ]


class HubBackend:
    """Backend that reaches storage through broker-issued signed URLs."""

    def __init__(
        self,
        config: HubConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config
        self._client = HubClient(config, transport=transport)
        logger.debug("HubBackend: Client initialized for %s", config.organization_url)

    @classmethod
    def from_env(cls) -> "HubBackend":
        """Create a backend from environment and config file."""
        return cls(load_hub_config())

    def push(
        self,
        local_path: Path | str,
        remote_path: str,
        force: bool = False,
        cancel: threading.Event | None = None,
    ) -> TransferStats:
        logger.debug("HubBackend: Pushing %s -> %s (force=%s)", local_path, remote_path, force)

        units = list(enumerate_push(local_path, remote_path))
        if not units:
            return TransferStats()

        request_type = RequestType.PUSH_FORCE if force else RequestType.PUSH
        signed_urls = self._client.generate_signed_urls(
            [unit.remote_path for unit in units], request_type
        )
        batches = attach_urls(units, signed_urls, force)

        stats = TransferStats()
        for unit, urls in batches:
            check_cancelled(cancel, "push")
            *checks, write = urls
            for check in checks:
                self._client.check_absent(check, unit.remote_path)
            stats.record(self._client.upload(write, unit.local_path, unit.remote_path))

        return stats

    def pull(
        self,
        remote_path: str,
        local_path: Path | str,
        force: bool = False,
        cancel: threading.Event | None = None,
    ) -> TransferStats:
        logger.debug("HubBackend: Pulling %s -> %s (force=%s)", remote_path, local_path, force)

        signed_urls = self._matching_urls(remote_path, RequestType.PULL)
        if not signed_urls:
            raise ArtifactNotFoundError(remote_path)

        by_key = {url.object_key: url for url in signed_urls}
        units = plan_pull(by_key, remote_path, local_path, force)

        stats = TransferStats()
        for unit in units:
            check_cancelled(cancel, "pull")
            stats.record(self._client.download(by_key[unit.remote_path], unit.local_path))

        return stats

    def yank(self, remote_path: str, cancel: threading.Event | None = None) -> None:
        logger.debug("HubBackend: Yanking %s", remote_path)

        signed_urls = self._matching_urls(remote_path, RequestType.YANK)
        for signed_url in signed_urls:
            check_cancelled(cancel, "yank")
            self._client.delete(signed_url)

    def exists(self, remote_path: str, cancel: threading.Event | None = None) -> bool:
        check_cancelled(cancel, "exists")
        return len(self._matching_urls(remote_path, RequestType.PULL)) > 0

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HubBackend":
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    def _matching_urls(self, remote_path: str, request_type: RequestType) -> list[SignedURL]:
        """Request URLs for remote_path, keeping only keys at or under it.

        The broker expands paths by plain string prefix, so siblings such
        as 'report.txt.bak' for 'report.txt' come back too.
        """
        signed_urls = self._client.generate_signed_urls([remote_path], request_type)
        return [url for url in signed_urls if is_at_or_under(url.object_key, remote_path)]
