"""Artifact CLI commands.

Each command module contains the business logic for a CLI command.
The cli.py module handles typer decorators and argument parsing,
then delegates to these command functions.
"""

from artifact.commands.pull import pull_command
from artifact.commands.push import push_command
from artifact.commands.yank import yank_command

__all__ = [
    "pull_command",
    "push_command",
    "yank_command",
]
