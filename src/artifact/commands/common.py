"""Helpers shared by the push, pull and yank commands."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import NoReturn

from artifact.backends.protocols import Backend
from artifact.container import Container
from artifact.display import print_error, print_info
from artifact.exceptions import ArtifactError, ErrorKind


@contextmanager
def open_backend() -> Iterator[Backend]:
    """Yield the configured backend and close it afterwards."""
    backend = Container.backend()
    try:
        yield backend
    finally:
        Container.close()


def exit_with_error(action: str, error: ArtifactError) -> NoReturn:
    """Print a failed operation with a hint matching its kind, then exit 1."""
    print_error(f"Error {action} artifact: {error.message}")

    if error.kind == ErrorKind.NOT_FOUND:
        print_info("Please check if the artifact you are trying to use exists.")
    elif error.kind == ErrorKind.ALREADY_EXISTS:
        print_info("Use [cyan]--force[/] to overwrite it.")
    elif error.kind == ErrorKind.CONFIGURATION:
        print_info("Check ARTIFACT_BACKEND and the backend settings in your environment.")

    raise SystemExit(1)
