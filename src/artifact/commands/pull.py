"""Pull command implementation."""

from artifact.commands.common import exit_with_error, open_backend
from artifact.display import console, print_success, print_transfer_summary
from artifact.exceptions import ArtifactError
from artifact.paths import Operation, PathResolver, ResourceType


def pull_command(
    resource_type: ResourceType,
    path: str,
    destination: str | None,
    force: bool,
    resource_id: str | None,
) -> None:
    """Download a file or directory pushed earlier."""
    try:
        resolver = PathResolver(resource_type, resource_id)
        paths = resolver.resolve(Operation.PULL, path, destination)
        with open_backend() as backend:
            stats = backend.pull(paths.source, paths.destination, force=force)
    except ArtifactError as e:
        exit_with_error("pulling", e)

    print_success(f"Successfully pulled artifact for current {resource_type.value}.")
    console.print(f"* Remote source: '{paths.source}'.")
    console.print(f"* Local destination: '{paths.destination}'.")
    print_transfer_summary("Pulled", stats)
