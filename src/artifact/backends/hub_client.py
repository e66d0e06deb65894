"""HTTP client for the signed-URL broker.

The broker hands out time-limited URLs for a named operation over a
list of remote keys. Each URL is then followed with the literal HTTP
method the broker specified.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from artifact.config import HubConfig
from artifact.exceptions import (
    ArtifactAlreadyExistsError,
    ArtifactNotFoundError,
    MalformedResponseError,
    PermissionDeniedError,
    TransportError,
)
from artifact.transfer import local_io, write_atomically

logger = logging.getLogger(__name__)

SIGNED_URLS_ENDPOINT = "/api/v1/artifacts/signed_urls"


class RequestType(str, Enum):
    """Operation a batch of signed URLs is requested for."""

    PUSH = "PUSH"
    PUSH_FORCE = "PUSHFORCE"
    PULL = "PULL"
    YANK = "YANK"


class SignedURL(BaseModel):
    """Access descriptor returned by the broker."""

    model_config = ConfigDict(frozen=True)

    method: str
    url: str
    key: str = ""

    @property
    def object_key(self) -> str:
        """Remote key this URL points at.

        Falls back to the URL path when the broker omits the key; the
        first path segment is the bucket.
        """
        if self.key:
            return self.key
        path = unquote(urlsplit(self.url).path).lstrip("/")
        _, _, key = path.partition("/")
        if not key:
            raise MalformedResponseError(f"Cannot determine object key from URL: {self.url}")
        return key


class HubClient:
    """Talks to the broker and follows the signed URLs it returns.

    Two httpx clients are kept: one authenticated against the broker,
    one plain client for the storage URLs, which carry their own
    signature and must not receive the broker token.
    """

    def __init__(
        self,
        config: HubConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        base_url = config.organization_url
        if "://" not in base_url:
            base_url = f"https://{base_url}"

        self._api = httpx.Client(
            base_url=base_url,
            headers={"Authorization": f"Token {config.artifact_token}"},
            timeout=config.timeout,
            transport=transport,
        )
        self._storage = httpx.Client(timeout=config.timeout, transport=transport)
        self._closed = False

    def generate_signed_urls(self, paths: list[str], request_type: RequestType) -> list[SignedURL]:
        """Request signed URLs for paths."""
        logger.debug("Requesting %s signed URLs for %d path(s)", request_type.value, len(paths))

        try:
            response = self._api.post(
                SIGNED_URLS_ENDPOINT,
                json={"paths": paths, "type": request_type.value},
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to generate signed URLs: {e}") from e

        path = paths[0] if len(paths) == 1 else f"{len(paths)} paths"
        _raise_for_status(response, "generate signed URLs", path)

        try:
            payload: dict[str, Any] = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Broker returned invalid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise MalformedResponseError("Broker response is not a JSON object")

        error = payload.get("error")
        if error:
            raise TransportError(f"Broker error: {error}", path=path)

        try:
            return [SignedURL.model_validate(item) for item in payload.get("urls") or []]
        except ValidationError as e:
            raise MalformedResponseError(f"Broker returned invalid URL descriptor: {e}") from e

    def check_absent(self, signed_url: SignedURL, remote_path: str) -> None:
        """Follow a read-check URL; a hit means the object already exists."""
        response = self._send(signed_url, "check", remote_path)
        if response.status_code == 404:
            return
        _raise_for_status(response, "check", remote_path)
        raise ArtifactAlreadyExistsError(remote_path)

    def upload(self, signed_url: SignedURL, local_path: Path, remote_path: str) -> int:
        """Upload local_path through a write URL. Returns the byte count."""
        with local_io("read", local_path):
            size = local_path.stat().st_size
            f = open(local_path, "rb")
        with f:
            response = self._send(signed_url, "upload", remote_path, content=f)
        _raise_for_status(response, "upload", remote_path)
        logger.debug("Uploaded: %s -> %s", local_path, remote_path)
        return size

    def download(self, signed_url: SignedURL, local_path: Path) -> int:
        """Download through a read URL into local_path. Returns the byte count."""
        remote_path = signed_url.object_key
        try:
            with self._storage.stream(signed_url.method, signed_url.url) as response:
                if response.status_code >= 400:
                    response.read()
                    _raise_for_status(response, "download", remote_path)
                size = write_atomically(local_path, response.iter_bytes())
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to download '{remote_path}': {e}", path=remote_path) from e
        logger.debug("Downloaded: %s -> %s", remote_path, local_path)
        return size

    def delete(self, signed_url: SignedURL) -> None:
        """Delete the object behind signed_url; already-gone is fine."""
        remote_path = signed_url.object_key
        delete_url = signed_url.model_copy(update={"method": "DELETE"})
        response = self._send(delete_url, "delete", remote_path)
        if response.status_code == 404:
            return
        _raise_for_status(response, "delete", remote_path)
        logger.debug("Deleted: %s", remote_path)

    def close(self) -> None:
        if self._closed:
            return
        self._api.close()
        self._storage.close()
        self._closed = True

    def _send(
        self,
        signed_url: SignedURL,
        operation: str,
        remote_path: str,
        content: Any = None,
    ) -> httpx.Response:
        try:
            return self._storage.request(signed_url.method, signed_url.url, content=content)
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to {operation} '{remote_path}': {e}", path=remote_path) from e


def _raise_for_status(response: httpx.Response, operation: str, path: str) -> None:
    """Map an HTTP error status onto the artifact error taxonomy."""
    status = response.status_code
    if status < 400:
        return
    if status in (401, 403):
        raise PermissionDeniedError(operation, path, f"HTTP {status}")
    if status == 404:
        raise ArtifactNotFoundError(path)
    raise TransportError(
        f"Failed to {operation} '{path}': HTTP {status} {response.text[:200]}",
        path=path,
    )
