"""Yank command implementation."""

from artifact.commands.common import exit_with_error, open_backend
from artifact.display import console, print_success
from artifact.exceptions import ArtifactError
from artifact.paths import Operation, PathResolver, ResourceType


def yank_command(
    resource_type: ResourceType,
    path: str,
    resource_id: str | None,
) -> None:
    """Delete a stored file or directory."""
    try:
        resolver = PathResolver(resource_type, resource_id)
        paths = resolver.resolve(Operation.YANK, path)
        with open_backend() as backend:
            backend.yank(paths.source)
    except ArtifactError as e:
        exit_with_error("yanking", e)

    print_success(f"Successfully yanked artifact for current {resource_type.value}.")
    console.print(f"* Remote path: '{paths.source}'.")
