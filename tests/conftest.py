"""Shared pytest fixtures for artifact tests.

Provides an in-memory signed-URL broker behind httpx.MockTransport and
a moto-backed S3 bucket, so both backends run without network access.
"""

import json
from pathlib import Path
from typing import Any
from urllib.parse import quote, unquote, urlsplit

import boto3
import httpx
import pytest
from botocore.exceptions import ClientError, ResponseStreamingError
from moto import mock_aws

from artifact.backends.hub import HubBackend
from artifact.backends.mocks import MemoryBackend
from artifact.backends.protocols import BackendKind
from artifact.backends.registry import BackendRegistry
from artifact.backends.s3 import S3Backend, build_client
from artifact.config import HubConfig, S3Config
from artifact.container import Container

CLEARED_ENV_VARS = [
    "ARTIFACT_BACKEND",
    "ARTIFACT_S3_BUCKET",
    "ARTIFACT_S3_REGION",
    "ARTIFACT_S3_ENDPOINT",
    "ARTIFACT_S3_FORCE_PATH_STYLE",
    "ARTIFACT_S3_PREFIX",
    "SEMAPHORE_ARTIFACT_TOKEN",
    "SEMAPHORE_ORGANIZATION_URL",
    "SEMAPHORE_TIMEOUT",
    "SEMAPHORE_PROJECT_ID",
    "SEMAPHORE_WORKFLOW_ID",
    "SEMAPHORE_JOB_ID",
]


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Clear artifact settings and point the config file at tmp_path.

    Returns:
        Path of the (not yet existing) config file
    """
    for name in CLEARED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    config_path = tmp_path / "artifact.yaml"
    monkeypatch.setenv("ARTIFACT_CONFIG", str(config_path))
    yield config_path
    Container.reset()


# Signed-URL broker


STORAGE_HOST = "https://storage.test"
BUCKET = "test-bucket"


class FakeHub:
    """Broker plus storage behind a single httpx.MockTransport.

    Broker requests are answered the way the real broker does: two URLs
    per path for PUSH, one for PUSHFORCE, one per object for PULL and
    YANK. Objects are matched by plain string prefix, so a request for
    'report.txt' also returns 'report.txt.bak'.
    """

    def __init__(self, token: str = "secret") -> None:
        self.token = token
        self.objects: dict[str, bytes] = {}
        self.requests: list[httpx.Request] = []
        self.broker_requests: list[dict[str, Any]] = []
        self.include_keys = False
        self.drop_urls = 0
        self.fail_put_for: set[str] = set()
        self.broker_body: bytes | None = None

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def storage_url(self, key: str) -> str:
        return f"{STORAGE_HOST}/{BUCKET}/{quote(key)}?signature=abc"

    def storage_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == "storage.test"]

    def _descriptor(self, method: str, key: str) -> dict[str, str]:
        descriptor = {"method": method, "url": self.storage_url(key)}
        if self.include_keys:
            descriptor["key"] = key
        return descriptor

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "storage.test":
            return self._storage(request)
        return self._broker(request)

    def _broker(self, request: httpx.Request) -> httpx.Response:
        if request.headers.get("Authorization") != f"Token {self.token}":
            return httpx.Response(401, json={"error": "unauthorized"})
        if self.broker_body is not None:
            return httpx.Response(200, content=self.broker_body)

        body = json.loads(request.content)
        self.broker_requests.append(body)
        paths, kind = body["paths"], body["type"]

        urls: list[dict[str, str]] = []
        if kind == "PUSH":
            for path in paths:
                urls.append(self._descriptor("HEAD", path))
                urls.append(self._descriptor("PUT", path))
        elif kind == "PUSHFORCE":
            urls = [self._descriptor("PUT", path) for path in paths]
        elif kind in ("PULL", "YANK"):
            for path in paths:
                for key in sorted(self.objects):
                    if key.startswith(path):
                        urls.append(self._descriptor("GET", key))

        if self.drop_urls:
            urls = urls[: -self.drop_urls]
        return httpx.Response(200, json={"urls": urls})

    def _storage(self, request: httpx.Request) -> httpx.Response:
        if "Authorization" in request.headers:
            return httpx.Response(400, text="unexpected Authorization header")

        path = unquote(urlsplit(str(request.url)).path).lstrip("/")
        key = path.partition("/")[2]

        if request.method == "HEAD":
            return httpx.Response(200 if key in self.objects else 404)
        if request.method == "PUT":
            if key in self.fail_put_for:
                return httpx.Response(500, text="storage unavailable")
            self.objects[key] = request.content
            return httpx.Response(200)
        if request.method == "GET":
            if key not in self.objects:
                return httpx.Response(404)
            return httpx.Response(200, content=self.objects[key])
        if request.method == "DELETE":
            if self.objects.pop(key, None) is None:
                return httpx.Response(404)
            return httpx.Response(204)
        return httpx.Response(405)


@pytest.fixture
def fake_hub() -> FakeHub:
    return FakeHub()


@pytest.fixture
def hub_backend(fake_hub: FakeHub) -> HubBackend:
    """HubBackend wired to the fake broker."""
    config = HubConfig(artifact_token="secret", organization_url="org.test")
    backend = HubBackend(config, transport=fake_hub.transport)
    yield backend
    backend.close()


# S3


REGION = "us-east-1"


def client_error(code: str, operation: str, status: int) -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": code},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class TruncatedBody:
    """Streaming body that drops the connection after the first byte."""

    def __init__(self, body: Any) -> None:
        self._body = body

    def iter_chunks(self, chunk_size: int = 1024):
        yield self._body.read(1)
        raise ResponseStreamingError(error="connection reset by peer")

    def close(self) -> None:
        self._body.close()


class S3Bucket:
    """A moto bucket plus fault injection on the backend's client.

    Faults are raised from botocore event hooks, so every request still
    goes through real parameter validation and response parsing. Reads
    for assertions use a separate client that has no hooks.
    """

    def __init__(self, client: Any, name: str = BUCKET) -> None:
        self.client = client
        self.name = name
        self.denied_keys: set[str] = set()
        self.failing_keys: set[str] = set()
        self.truncate_downloads: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        self.list_requests = 0
        self._last_get = ""
        self._inspect = boto3.client("s3", region_name=REGION)

        client.meta.events.register("before-parameter-build.s3", self._before_call)
        client.meta.events.register("after-call.s3.GetObject", self._after_get)

    def _before_call(self, params: dict[str, Any], model: Any, **kwargs: Any) -> None:
        if model.name == "ListObjectsV2":
            self.list_requests += 1
        key = params.get("Key")
        if key is None:
            return
        self.calls.append((model.name, key))
        if model.name == "GetObject":
            self._last_get = key
        if key in self.denied_keys:
            raise client_error("AccessDenied", model.name, 403)
        if key in self.failing_keys:
            raise client_error("InternalError", model.name, 500)

    def _after_get(self, parsed: dict[str, Any], **kwargs: Any) -> None:
        if self._last_get in self.truncate_downloads and "Body" in parsed:
            parsed["Body"] = TruncatedBody(parsed["Body"])

    def put(self, key: str, data: bytes) -> None:
        self._inspect.put_object(Bucket=self.name, Key=key, Body=data)

    def objects(self) -> dict[str, bytes]:
        """Every stored key and its content."""
        stored: dict[str, bytes] = {}
        paginator = self._inspect.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.name):
            for obj in page.get("Contents", []):
                result = self._inspect.get_object(Bucket=self.name, Key=obj["Key"])
                stored[obj["Key"]] = result["Body"].read()
        return stored


@pytest.fixture
def aws(monkeypatch: pytest.MonkeyPatch):
    """Fake credentials and an active moto mock."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    with mock_aws():
        yield


@pytest.fixture
def s3_config() -> S3Config:
    return S3Config(bucket=BUCKET, region=REGION)


@pytest.fixture
def bucket(aws, s3_config: S3Config) -> S3Bucket:
    """Empty bucket reached through a client built like production's."""
    client = build_client(s3_config)
    client.create_bucket(Bucket=BUCKET)
    return S3Bucket(client)


@pytest.fixture
def s3_backend(bucket: S3Bucket, s3_config: S3Config) -> S3Backend:
    """S3Backend wired to the moto bucket."""
    backend = S3Backend(s3_config, client=bucket.client)
    yield backend
    backend.close()


@pytest.fixture
def memory_backend() -> MemoryBackend:
    """Fixture that installs an in-memory backend via Container.

    Every registered kind builds the same instance, so state survives
    the per-command close in the CLI.

    Yields:
        MemoryBackend instance shared with the CLI commands
    """
    backend = MemoryBackend()
    registry = BackendRegistry()
    for kind in BackendKind:
        registry.register(kind, lambda: backend)
    Container.set_registry(registry)
    Container.set_backend(backend)
    yield backend
    Container.reset()


@pytest.fixture(params=["hub", "s3", "memory"])
def any_backend(request: pytest.FixtureRequest, fake_hub: FakeHub):
    """Each backend implementation in turn, for contract tests."""
    if request.param == "hub":
        backend = HubBackend(
            HubConfig(artifact_token="secret", organization_url="org.test"),
            transport=fake_hub.transport,
        )
    elif request.param == "s3":
        bucket = request.getfixturevalue("bucket")
        backend = S3Backend(request.getfixturevalue("s3_config"), client=bucket.client)
    else:
        backend = MemoryBackend()
    yield backend
    backend.close()
