"""Artifact CLI - Main entry point.

Three commands, each scoped to a project, workflow or job:
- push: Upload a file or directory
- pull: Download a file or directory pushed earlier
- yank: Delete a stored file or directory
"""

from typing import Annotated, Optional

import typer

from artifact import __version__
from artifact.commands import pull_command, push_command, yank_command
from artifact.container import Container
from artifact.display import configure_logging
from artifact.paths import ResourceType

app = typer.Typer(
    help="Artifact - Store files for projects, workflows and jobs.",
    no_args_is_help=True,
)

ScopeArgument = Annotated[
    ResourceType,
    typer.Argument(help="Resource the artifact belongs to: project, workflow or job"),
]
IdOption = Annotated[
    Optional[str],
    typer.Option(
        "--id",
        "-i",
        help="Explicit resource id (defaults to SEMAPHORE_<SCOPE>_ID)",
    ),
]
ForceOption = Annotated[
    bool, typer.Option("--force", "-f", help="Overwrite existing files")
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"artifact {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show debug logs")
    ] = False,
    backend: Annotated[
        Optional[str],
        typer.Option(
            "--backend",
            "-b",
            help="Storage backend: hub or s3 (overrides ARTIFACT_BACKEND)",
        ),
    ] = None,
) -> None:
    """Artifact - Store files for projects, workflows and jobs."""
    configure_logging(verbose)
    Container.select_backend(backend)


@app.command()
def push(
    scope: ScopeArgument,
    path: Annotated[str, typer.Argument(help="Local file or directory")],
    destination: Annotated[
        Optional[str],
        typer.Option("--destination", "-d", help="Store under a different name"),
    ] = None,
    force: ForceOption = False,
    resource_id: IdOption = None,
) -> None:
    """Upload a file or directory.

    Examples:
        artifact push job build/app.tar.gz
        artifact push project reports -d reports/nightly
        artifact push workflow coverage.xml --force
    """
    push_command(scope, path, destination, force, resource_id)


@app.command()
def pull(
    scope: ScopeArgument,
    path: Annotated[str, typer.Argument(help="Remote file or directory")],
    destination: Annotated[
        Optional[str],
        typer.Option("--destination", "-d", help="Local destination path"),
    ] = None,
    force: ForceOption = False,
    resource_id: IdOption = None,
) -> None:
    """Download a file or directory.

    Examples:
        artifact pull job app.tar.gz
        artifact pull project reports -d /tmp/reports --force
    """
    pull_command(scope, path, destination, force, resource_id)


@app.command()
def yank(
    scope: ScopeArgument,
    path: Annotated[str, typer.Argument(help="Remote file or directory")],
    resource_id: IdOption = None,
) -> None:
    """Delete a file or directory.

    Examples:
        artifact yank workflow coverage.xml
    """
    yank_command(scope, path, resource_id)


if __name__ == "__main__":
    app()
