"""Push command implementation."""

from artifact.commands.common import exit_with_error, open_backend
from artifact.display import console, print_success, print_transfer_summary
from artifact.exceptions import ArtifactError
from artifact.paths import Operation, PathResolver, ResourceType


def push_command(
    resource_type: ResourceType,
    path: str,
    destination: str | None,
    force: bool,
    resource_id: str | None,
) -> None:
    """Upload a local file or directory for a project, workflow or job."""
    try:
        resolver = PathResolver(resource_type, resource_id)
        paths = resolver.resolve(Operation.PUSH, path, destination)
        with open_backend() as backend:
            stats = backend.push(paths.source, paths.destination, force=force)
    except ArtifactError as e:
        exit_with_error("pushing", e)

    print_success(f"Successfully pushed artifact for current {resource_type.value}.")
    console.print(f"* Local source: '{paths.source}'.")
    console.print(f"* Remote destination: '{paths.destination}'.")
    print_transfer_summary("Pushed", stats)
