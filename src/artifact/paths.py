"""Resolve CLI arguments into local and remote artifact paths.

Remote keys are laid out as ``artifacts/<scope>/<id>/<path>`` where
scope is projects, workflows or jobs.
"""

import os
import posixpath
from enum import Enum

from pydantic import BaseModel, ConfigDict

from artifact.exceptions import InvalidArgumentError, MissingConfigError

ARTIFACTS_ROOT = "artifacts"


class ResourceType(str, Enum):
    """Ownership level of an artifact."""

    PROJECT = "project"
    WORKFLOW = "workflow"
    JOB = "job"

    @property
    def directory(self) -> str:
        return f"{self.value}s"

    @property
    def id_env_var(self) -> str:
        return f"SEMAPHORE_{self.value.upper()}_ID"


class Operation(str, Enum):
    PUSH = "push"
    PULL = "pull"
    YANK = "yank"


class ResolvedPath(BaseModel):
    """Source and destination of one CLI operation.

    For push the source is local and the destination remote; for pull
    it is the other way around. Yank only has a remote source.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    destination: str = ""


def _basename(path: str) -> str:
    return posixpath.basename(path.replace(os.sep, "/").rstrip("/"))


def _clean_relative(path: str) -> str:
    cleaned = posixpath.normpath(path.replace(os.sep, "/")).lstrip("/")
    if cleaned in ("", ".") or cleaned == ".." or cleaned.startswith("../"):
        raise InvalidArgumentError("path", f"'{path}' does not name an artifact")
    return cleaned


class PathResolver:
    """Maps user-supplied paths onto the remote key layout for one resource."""

    def __init__(self, resource_type: ResourceType, resource_id: str | None = None) -> None:
        resource_id = resource_id or os.environ.get(resource_type.id_env_var, "")
        if not resource_id:
            raise MissingConfigError(
                f"{resource_type.value.capitalize()} ID",
                f"set {resource_type.id_env_var} or pass --id",
            )
        self.resource_type = resource_type
        self.resource_id = resource_id

    @property
    def remote_root(self) -> str:
        return posixpath.join(ARTIFACTS_ROOT, self.resource_type.directory, self.resource_id)

    def remote_key(self, path: str) -> str:
        return posixpath.join(self.remote_root, _clean_relative(path))

    def resolve(
        self,
        operation: Operation,
        path: str,
        destination_override: str | None = None,
    ) -> ResolvedPath:
        """Resolve path for operation.

        Push stores path under its basename unless a destination is
        given; pull writes to the basename of the remote path unless a
        destination is given.
        """
        if operation == Operation.PUSH:
            remote_name = destination_override or _basename(path)
            return ResolvedPath(source=path, destination=self.remote_key(remote_name))

        if operation == Operation.PULL:
            local = destination_override or _basename(path)
            return ResolvedPath(source=self.remote_key(path), destination=local)

        return ResolvedPath(source=self.remote_key(path))
