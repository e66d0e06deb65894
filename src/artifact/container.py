"""Composition root for backend dependency injection.

This is the single place where the configured backend kind is bound
to a concrete implementation.

Usage:
    # Default usage (production)
    backend = Container.backend()

    # Testing with an in-memory backend
    Container.set_backend(MemoryBackend())
    backend = Container.backend()

    # Reset to defaults
    Container.reset()
"""

from artifact.backends.protocols import Backend, BackendKind
from artifact.backends.registry import (
    BackendRegistry,
    default_registry,
    resolve_backend_kind,
)


class Container:
    """Service container for the storage backend.

    The registry is populated on first access and the backend is
    created lazily, so configuration is only read when a command
    actually needs storage.
    """

    _registry: BackendRegistry | None = None
    _backend: Backend | None = None
    _backend_override: str | None = None

    @classmethod
    def registry(cls) -> BackendRegistry:
        """Get the backend registry.

        Returns default_registry() unless overridden.
        """
        if cls._registry is None:
            cls._registry = default_registry()
        return cls._registry

    @classmethod
    def backend_kind(cls) -> BackendKind:
        """Resolve the backend kind from override, env and config file."""
        return resolve_backend_kind(cls._backend_override)

    @classmethod
    def backend(cls) -> Backend:
        """Get the storage backend, creating it on first access."""
        if cls._backend is None:
            cls._backend = cls.registry().create(cls.backend_kind())
        return cls._backend

    @classmethod
    def select_backend(cls, kind: str | None) -> None:
        """Set an explicit backend kind (e.g. from --backend).

        Drops any backend already created for a different selection.
        """
        if kind != cls._backend_override:
            cls.close()
        cls._backend_override = kind

    @classmethod
    def set_backend(cls, backend: Backend | None) -> None:
        """Override the backend instance.

        Pass None to reset to default on next access.
        """
        cls._backend = backend

    @classmethod
    def set_registry(cls, registry: BackendRegistry | None) -> None:
        """Override the registry.

        Pass None to reset to default on next access.
        """
        cls._registry = registry

    @classmethod
    def close(cls) -> None:
        """Close and forget the current backend, if any."""
        if cls._backend is not None:
            backend, cls._backend = cls._backend, None
            backend.close()

    @classmethod
    def reset(cls) -> None:
        """Reset all overrides to defaults.

        Call this in test teardown to ensure clean state.
        """
        cls._registry = None
        cls._backend = None
        cls._backend_override = None
