"""Storage backends for artifact transfers.

- Backend: Protocol every transport implements
- HubBackend: Signed URLs issued by the broker (default)
- S3Backend: Direct calls to an S3-compatible store
- BackendRegistry: Ordered factories keyed by BackendKind
"""

from artifact.backends.hub import HubBackend
from artifact.backends.protocols import Backend, BackendKind
from artifact.backends.registry import (
    BackendRegistry,
    default_registry,
    parse_backend_kind,
    resolve_backend_kind,
)
from artifact.backends.s3 import S3Backend

__all__ = [
    # Protocols
    "Backend",
    "BackendKind",
    # Implementations
    "HubBackend",
    "S3Backend",
    # Selection
    "BackendRegistry",
    "default_registry",
    "parse_backend_kind",
    "resolve_backend_kind",
]
