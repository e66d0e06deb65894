"""Artifact exception hierarchy.

Provides a unified exception hierarchy for the artifact CLI and backends.
This enables:
- User-friendly error messages in the CLI
- Programmatic error handling in library usage
- Discrimination by kind instead of by message text

Usage:
    from artifact.exceptions import ArtifactAlreadyExistsError, ArtifactNotFoundError

    try:
        backend.push(local_path, remote_path)
    except ArtifactAlreadyExistsError as e:
        print(f"Already there: {e.path}")
    except ArtifactError as e:
        print(f"{e.kind.value}: {e.message}")
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a surfaced error."""

    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    PERMISSION_DENIED = "permission_denied"
    MALFORMED_RESPONSE = "malformed_response"
    TRANSPORT = "transport"
    CANCELLED = "cancelled"
    CONFIGURATION = "configuration"
    OTHER = "other"


class ArtifactError(Exception):
    """Base exception for all artifact errors.

    All artifact-specific exceptions inherit from this class, allowing
    callers to catch all of them with a single except clause.
    """

    kind: ErrorKind = ErrorKind.OTHER

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# Configuration Errors


class ConfigurationError(ArtifactError):
    """Error in artifact configuration."""

    kind = ErrorKind.CONFIGURATION


class MissingConfigError(ConfigurationError):
    """A required configuration value is not set.

    Raised when a backend is selected but one of its required
    parameters (bucket, token, organization URL) is missing.
    """

    def __init__(self, setting: str, hint: str = "") -> None:
        self.setting = setting
        message = f"{setting} not configured"
        if hint:
            message += f": {hint}"
        super().__init__(message)


class InvalidConfigValueError(ConfigurationError):
    """A configuration value is present but not acceptable."""

    def __init__(self, setting: str, value: str, reason: str) -> None:
        self.setting = setting
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value '{value}' for {setting}: {reason}")


class BackendNotRegisteredError(ConfigurationError):
    """Backend kind has no registered factory.

    Distinct from InvalidConfigValueError: the kind itself is valid,
    but nothing was registered to build it.
    """

    def __init__(self, backend_kind: str) -> None:
        self.backend_kind = backend_kind
        super().__init__(f"No backend registered for kind '{backend_kind}'")


# Transfer Errors


class TransferError(ArtifactError):
    """Base class for errors raised by backend operations."""

    pass


class ArtifactNotFoundError(TransferError):
    """No remote object at or under the requested path."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Artifact not found: {path}")


class ArtifactAlreadyExistsError(TransferError):
    """Target already exists and force was not requested.

    ``location`` is "remote" for a push conflict and "local" for a
    pull whose destination file is already present.
    """

    kind = ErrorKind.ALREADY_EXISTS

    def __init__(self, path: str, location: str = "remote") -> None:
        self.path = path
        self.location = location
        if location == "local":
            message = f"'{path}' already exists locally; delete it first, or use --force flag"
        else:
            message = f"Artifact already exists: {path} (use --force to overwrite)"
        super().__init__(message)


class PermissionDeniedError(TransferError):
    """The backend lacks permission for an operation."""

    kind = ErrorKind.PERMISSION_DENIED

    def __init__(self, operation: str, path: str, reason: str = "") -> None:
        self.operation = operation
        self.path = path
        self.reason = reason
        message = f"Permission denied for {operation} on {path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class MalformedResponseError(TransferError):
    """The signed-URL broker violated the protocol."""

    kind = ErrorKind.MALFORMED_RESPONSE


class TransportError(TransferError):
    """Network or storage failure for a single object operation."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)


class TransferCancelledError(TransferError):
    """Operation was cancelled between object operations."""

    kind = ErrorKind.CANCELLED

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} cancelled")


class LocalPathError(TransferError):
    """Local path does not exist or cannot be read or written.

    A missing path is reported as not_found; any other local failure
    (a directory where a file is expected, a full disk) as other.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        path: str,
        reason: str = "does not exist locally",
        kind: ErrorKind = ErrorKind.NOT_FOUND,
    ) -> None:
        self.path = path
        self.reason = reason
        self.kind = kind
        super().__init__(f"Path '{path}' {reason}")


# Validation Errors


class InvalidArgumentError(ArtifactError):
    """Invalid command argument.

    Raised when a CLI argument or function parameter is invalid.
    """

    def __init__(self, argument: str, reason: str) -> None:
        self.argument = argument
        self.reason = reason
        super().__init__(f"Invalid argument '{argument}': {reason}")
