"""Transfer orchestration shared by all backends.

Expands push and pull targets into single-object transfer units,
checks pull destinations for conflicts, writes downloads atomically
and accumulates transfer statistics. Backends drive their own
object-level primitives over the units produced here.
"""

import logging
import os
import posixpath
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from artifact.exceptions import (
    ArtifactAlreadyExistsError,
    ErrorKind,
    LocalPathError,
    PermissionDeniedError,
    TransferCancelledError,
    TransferError,
)

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".part"


class TransferUnit(BaseModel):
    """A single (local path, remote key) pair.

    Frozen because a unit is consumed once per object operation and
    never changes after enumeration.
    """

    model_config = ConfigDict(frozen=True)

    local_path: Path
    remote_path: str


class TransferStats(BaseModel):
    """Files and bytes moved by one top-level push or pull."""

    file_count: int = 0
    total_size: int = 0

    def record(self, size: int) -> None:
        """Account for one successfully transferred object."""
        self.file_count += 1
        self.total_size += size


def local_io_error(error: OSError, operation: str, path: Path | str) -> TransferError:
    """Map a local filesystem failure onto the artifact error taxonomy."""
    reason = error.strerror or str(error)
    if isinstance(error, PermissionError):
        return PermissionDeniedError(operation, str(path), reason)
    if isinstance(error, FileNotFoundError):
        return LocalPathError(str(path))
    return LocalPathError(str(path), f"cannot be {operation}: {reason}", kind=ErrorKind.OTHER)


@contextmanager
def local_io(operation: str, path: Path | str) -> Iterator[None]:
    """Raise OSErrors from the wrapped block as typed transfer errors.

    operation reads as a past participle in messages ("read", "written").
    """
    try:
        yield
    except OSError as e:
        raise local_io_error(e, operation, path) from e


def check_cancelled(cancel: threading.Event | None, operation: str) -> None:
    """Raise TransferCancelledError if the cancel signal is set."""
    if cancel is not None and cancel.is_set():
        raise TransferCancelledError(operation)


def join_remote(base: str, relative: str) -> str:
    """Join a relative slash path onto a remote key."""
    relative = relative.replace(os.sep, "/").lstrip("/")
    if not base:
        return relative
    if not relative:
        return base
    return posixpath.join(base.rstrip("/"), relative)


def is_at_or_under(key: str, remote_path: str) -> bool:
    """Check whether key is remote_path itself or nested below it."""
    base = remote_path.rstrip("/")
    if not base:
        return True
    return key == base or key.startswith(base + "/")


def enumerate_push(local_path: Path | str, remote_path: str) -> Iterator[TransferUnit]:
    """Expand a push target into transfer units.

    A file yields one unit. A directory is walked depth-first in sorted
    order and yields one unit per regular file, keyed by its path
    relative to local_path. Directory entries are skipped.
    """
    root = Path(local_path)
    if not root.exists():
        raise LocalPathError(str(local_path))

    if not root.is_dir():
        yield TransferUnit(local_path=root, remote_path=remote_path)
        return

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            file_path = Path(dirpath) / name
            if not file_path.is_file():
                continue
            relative = file_path.relative_to(root).as_posix()
            yield TransferUnit(
                local_path=file_path,
                remote_path=join_remote(remote_path, relative),
            )


def pull_destination(local_root: Path | str, remote_path: str, key: str) -> Path:
    """Map a listed key onto the local filesystem.

    The part of key past remote_path is joined onto local_root; an
    exact match lands on local_root itself.
    """
    suffix = key[len(remote_path.rstrip("/")):].lstrip("/")
    root = Path(local_root)
    if not suffix:
        return root
    return root.joinpath(*suffix.split("/"))


def plan_pull(
    keys: Iterable[str],
    remote_path: str,
    local_root: Path | str,
    force: bool,
) -> list[TransferUnit]:
    """Build pull units for listed keys and check local conflicts.

    Every destination is checked before anything is written, so an
    unforced conflict leaves the local filesystem untouched.
    """
    units = [
        TransferUnit(
            local_path=pull_destination(local_root, remote_path, key),
            remote_path=key,
        )
        for key in keys
    ]

    if not force:
        for unit in units:
            if unit.local_path.exists():
                raise ArtifactAlreadyExistsError(str(unit.local_path), location="local")

    return units


def write_atomically(destination: Path, chunks: Iterable[bytes]) -> int:
    """Stream chunks into destination through a partial file.

    The data lands in ``<destination>.part`` and is renamed into place
    only after the last chunk; on any failure the partial file is
    removed. Returns the number of bytes written.

    Local filesystem failures are raised as typed transfer errors;
    errors from the chunk source propagate unchanged.
    """
    with local_io("written", destination):
        destination.parent.mkdir(parents=True, exist_ok=True)
    partial = destination.with_name(destination.name + PARTIAL_SUFFIX)

    written = 0
    try:
        with local_io("written", destination):
            f = open(partial, "wb")
        with f:
            for chunk in chunks:
                with local_io("written", destination):
                    f.write(chunk)
                written += len(chunk)
            with local_io("written", destination):
                f.flush()
        with local_io("written", destination):
            os.replace(partial, destination)
    except BaseException:
        partial.unlink(missing_ok=True)
        raise

    logger.debug("Wrote %d bytes to %s", written, destination)
    return written
