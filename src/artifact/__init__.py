"""Artifact - move build artifacts between the filesystem and object storage.

Two interchangeable backends: signed URLs issued by a broker (hub),
or direct access to an S3-compatible store (s3).
"""

from artifact.exceptions import (
    ArtifactAlreadyExistsError,
    ArtifactError,
    ArtifactNotFoundError,
    BackendNotRegisteredError,
    ConfigurationError,
    ErrorKind,
    InvalidArgumentError,
    InvalidConfigValueError,
    LocalPathError,
    MalformedResponseError,
    MissingConfigError,
    PermissionDeniedError,
    TransferCancelledError,
    TransferError,
    TransportError,
)

__version__ = "0.1.0"

__all__ = [
    # Base exception
    "ArtifactError",
    "ErrorKind",
    # Configuration
    "ConfigurationError",
    "MissingConfigError",
    "InvalidConfigValueError",
    "BackendNotRegisteredError",
    # Transfer
    "TransferError",
    "ArtifactNotFoundError",
    "ArtifactAlreadyExistsError",
    "PermissionDeniedError",
    "MalformedResponseError",
    "TransportError",
    "TransferCancelledError",
    "LocalPathError",
    # Validation
    "InvalidArgumentError",
]
