"""Backend registry and selection.

Backends are registered explicitly, in order, as zero-argument
factories. Selection resolves a kind from an explicit override, then
the persisted config file, then the default.
"""

import os
from collections.abc import Callable
from typing import Any

from artifact.backends.hub import HubBackend
from artifact.backends.protocols import Backend, BackendKind
from artifact.backends.s3 import S3Backend
from artifact.config import load_config_file
from artifact.exceptions import BackendNotRegisteredError, InvalidConfigValueError

BACKEND_ENV_VAR = "ARTIFACT_BACKEND"
DEFAULT_BACKEND = BackendKind.HUB

BackendFactory = Callable[[], Backend]


def parse_backend_kind(value: str, source: str = BACKEND_ENV_VAR) -> BackendKind:
    """Parse a backend kind string.

    Raises:
        InvalidConfigValueError: value is not a known backend kind
    """
    try:
        return BackendKind(value.strip().lower())
    except ValueError:
        choices = ", ".join(kind.value for kind in BackendKind)
        raise InvalidConfigValueError(source, value, f"expected one of: {choices}") from None


def resolve_backend_kind(
    override: str | None = None,
    file_data: dict[str, Any] | None = None,
) -> BackendKind:
    """Determine which backend to use.

    Priority: explicit override > ARTIFACT_BACKEND > config file > default (hub)
    """
    if override:
        return parse_backend_kind(override, "--backend")

    env_value = os.environ.get(BACKEND_ENV_VAR)
    if env_value:
        return parse_backend_kind(env_value, BACKEND_ENV_VAR)

    if file_data is None:
        file_data = load_config_file()
    file_value = file_data.get("backend")
    if file_value:
        return parse_backend_kind(str(file_value), "backend (config file)")

    return DEFAULT_BACKEND


class BackendRegistry:
    """Ordered mapping of backend kinds to factories."""

    def __init__(self) -> None:
        self._factories: dict[BackendKind, BackendFactory] = {}

    def register(self, kind: BackendKind, factory: BackendFactory) -> None:
        """Register (or replace) the factory for kind."""
        self._factories[kind] = factory

    def kinds(self) -> list[BackendKind]:
        """Registered kinds in registration order."""
        return list(self._factories)

    def is_registered(self, kind: BackendKind) -> bool:
        return kind in self._factories

    def create(self, kind: BackendKind) -> Backend:
        """Instantiate the backend registered for kind.

        Raises:
            BackendNotRegisteredError: nothing registered for kind
        """
        factory = self._factories.get(kind)
        if factory is None:
            raise BackendNotRegisteredError(kind.value)
        return factory()


def default_registry() -> BackendRegistry:
    """Registry with the built-in backends, hub first."""
    registry = BackendRegistry()
    registry.register(BackendKind.HUB, HubBackend.from_env)
    registry.register(BackendKind.S3, S3Backend.from_env)
    return registry
