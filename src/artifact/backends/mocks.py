"""In-memory backend for testing.

Provides a Backend implementation that keeps objects in a dict, so
commands and callers can be tested without network or object store
side effects.
"""

import threading
from pathlib import Path
from typing import Any

from artifact.backends.protocols import Backend
from artifact.exceptions import ArtifactAlreadyExistsError, ArtifactNotFoundError
from artifact.transfer import (
    TransferStats,
    check_cancelled,
    enumerate_push,
    is_at_or_under,
    local_io,
    plan_pull,
    write_atomically,
)


class MemoryBackend:
    """Backend storing objects in memory.

    Records every call so tests can assert on what was requested.
    """

    def __init__(self, objects: dict[str, bytes] | None = None) -> None:
        self.objects: dict[str, bytes] = dict(objects or {})
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def push(
        self,
        local_path: Path | str,
        remote_path: str,
        force: bool = False,
        cancel: threading.Event | None = None,
    ) -> TransferStats:
        self.calls.append({"op": "push", "local": str(local_path), "remote": remote_path, "force": force})
        stats = TransferStats()
        for unit in enumerate_push(local_path, remote_path):
            check_cancelled(cancel, "push")
            if not force and unit.remote_path in self.objects:
                raise ArtifactAlreadyExistsError(unit.remote_path)
            with local_io("read", unit.local_path):
                data = unit.local_path.read_bytes()
            self.objects[unit.remote_path] = data
            stats.record(len(data))
        return stats

    def pull(
        self,
        remote_path: str,
        local_path: Path | str,
        force: bool = False,
        cancel: threading.Event | None = None,
    ) -> TransferStats:
        self.calls.append({"op": "pull", "remote": remote_path, "local": str(local_path), "force": force})
        keys = self._matching(remote_path)
        if not keys:
            raise ArtifactNotFoundError(remote_path)

        stats = TransferStats()
        for unit in plan_pull(keys, remote_path, local_path, force):
            check_cancelled(cancel, "pull")
            stats.record(write_atomically(unit.local_path, [self.objects[unit.remote_path]]))
        return stats

    def yank(self, remote_path: str, cancel: threading.Event | None = None) -> None:
        self.calls.append({"op": "yank", "remote": remote_path})
        for key in self._matching(remote_path):
            check_cancelled(cancel, "yank")
            del self.objects[key]

    def exists(self, remote_path: str, cancel: threading.Event | None = None) -> bool:
        check_cancelled(cancel, "exists")
        return bool(self._matching(remote_path))

    def close(self) -> None:
        self.closed = True

    def _matching(self, remote_path: str) -> list[str]:
        return sorted(key for key in self.objects if is_at_or_under(key, remote_path))


# Verify protocol compliance at import time
assert isinstance(MemoryBackend(), Backend)
