"""Protocol for artifact storage backends.

Defines the contract every transport implements, enabling the CLI to
work with different storage providers (signed URLs, direct S3, ...)
and enabling dependency injection in tests.
"""

import threading
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

from artifact.transfer import TransferStats


class BackendKind(str, Enum):
    """Known backend implementations."""

    HUB = "hub"
    S3 = "s3"


@runtime_checkable
class Backend(Protocol):
    """Protocol for artifact storage operations.

    Implementations own their authentication and connection state.
    remote_path values are already scoped, e.g.
    ``artifacts/projects/<id>/report.txt``.
    """

    def push(
        self,
        local_path: Path | str,
        remote_path: str,
        force: bool = False,
        cancel: threading.Event | None = None,
    ) -> TransferStats:
        """Upload a local file or directory.

        Raises:
            ArtifactAlreadyExistsError: A target key exists and force is False
            LocalPathError: local_path does not exist or cannot be read
            PermissionDeniedError: Remote or local access was refused
        """
        ...

    def pull(
        self,
        remote_path: str,
        local_path: Path | str,
        force: bool = False,
        cancel: threading.Event | None = None,
    ) -> TransferStats:
        """Download every object at or under remote_path.

        Raises:
            ArtifactNotFoundError: Nothing matched remote_path
            ArtifactAlreadyExistsError: A destination exists and force is False
            LocalPathError: A destination cannot be written
        """
        ...

    def yank(self, remote_path: str, cancel: threading.Event | None = None) -> None:
        """Delete every object at or under remote_path.

        Succeeds when nothing matched.
        """
        ...

    def exists(self, remote_path: str, cancel: threading.Event | None = None) -> bool:
        """Check whether any object is at or under remote_path.

        Raises:
            TransferCancelledError: Cancel was set before a request
        """
        ...

    def close(self) -> None:
        """Release held resources. Safe to call more than once."""
        ...
