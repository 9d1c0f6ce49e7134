"""oasvault exceptions.

Every error carries a stable ``kind`` string and enough structured context
(api id, version, reference, lock path) to diagnose a failure without reading
logs. Use :meth:`OasVaultError.to_dict` to serialize an error for a caller.
"""

from pathlib import Path  # noqa: TC003  # evaluated at runtime in signatures
from typing import Any, ClassVar


class OasVaultError(Exception):
    """Base exception for oasvault errors."""

    kind: ClassVar[str] = "error"

    def context(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Return the structured context attached to this error."""
        return {}

    def to_dict(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Serialize the error as ``{kind, message, **context}``.

        Context entries whose value is None are omitted.
        """
        data: dict[str, Any] = {"kind": self.kind, "message": str(self)}  # pyright: ignore[reportExplicitAny]
        for key, value in self.context().items():
            if value is None:
                continue
            data[key] = str(value) if hasattr(value, "__fspath__") else value
        return data

    def __str__(self) -> str:
        # KeyError subclasses would otherwise repr() the message
        return self.args[0] if self.args else ""


# =============================================================================
# Lookup and State Errors
# =============================================================================


class NotFoundError(OasVaultError, KeyError):
    """Raised when an API, version, component or reference cannot be found.

    Attributes:
        entity_type: What was looked up ("api", "version", "document", ...).
        entity_id: Identifier of the missing entity.
        api_id: API the lookup was scoped to, if any.
        version: Version the lookup was scoped to, if any.
    """

    kind: ClassVar[str] = "not_found"

    def __init__(
        self,
        message: str,
        *,
        entity_type: str,
        entity_id: str | None = None,
        api_id: str | None = None,
        version: str | None = None,
    ) -> None:
        """Initialize with error message and lookup context."""
        super().__init__(message)
        self.entity_type: str = entity_type
        self.entity_id: str | None = entity_id
        self.api_id: str | None = api_id
        self.version: str | None = version

    def context(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        return {
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "api_id": self.api_id,
            "version": self.version,
        }


class ConflictError(OasVaultError, ValueError):
    """Raised when an operation conflicts with the current state.

    Examples are a duplicate version tag, deleting the current or last
    remaining version, or renaming onto an existing component.

    Attributes:
        entity_type: Type of the conflicting entity.
        entity_id: Identifier of the conflicting entity.
        api_id: API the operation targeted.
        version: Version the operation targeted.
    """

    kind: ClassVar[str] = "conflict"

    def __init__(
        self,
        message: str,
        *,
        entity_type: str,
        entity_id: str | None = None,
        api_id: str | None = None,
        version: str | None = None,
    ) -> None:
        """Initialize with error message and conflict context."""
        super().__init__(message)
        self.entity_type: str = entity_type
        self.entity_id: str | None = entity_id
        self.api_id: str | None = api_id
        self.version: str | None = version

    def context(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        return {
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "api_id": self.api_id,
            "version": self.version,
        }


class ValidationError(OasVaultError, ValueError):
    """Raised when an identifier, tag or reference string is malformed.

    Attributes:
        field: Name of the offending field.
        value: The rejected value.
        rule: Human-readable description of the rule that was violated.
    """

    kind: ClassVar[str] = "validation"

    def __init__(
        self,
        message: str,
        *,
        field: str,
        value: Any = None,  # pyright: ignore[reportAny,reportExplicitAny]
        rule: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.field: str = field
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.rule: str | None = rule

    def context(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        return {"field": self.field, "value": self.value, "rule": self.rule}


# =============================================================================
# Storage Errors
# =============================================================================


class LockTimeoutError(OasVaultError, TimeoutError):
    """Raised when a write lock cannot be acquired within its bound.

    This is a transient failure; callers may retry.

    Attributes:
        path: The locked resource path.
        timeout: The wait bound in seconds.
        attempts: Number of acquisition attempts made.
    """

    kind: ClassVar[str] = "lock_timeout"

    def __init__(
        self,
        message: str,
        *,
        path: Path,
        timeout: float,
        attempts: int,
    ) -> None:
        """Initialize with error message and lock context."""
        super().__init__(message)
        self.path: Path = path
        self.timeout: float = timeout
        self.attempts: int = attempts

    def context(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        return {"path": self.path, "timeout": self.timeout, "attempts": self.attempts}


class StorageError(OasVaultError):
    """Raised when an underlying read, write, list or delete fails.

    Attributes:
        path: Path to the file that caused the error.
        operation: The operation that failed ("read", "write", "append",
            "delete", "list").
        cause: The underlying exception that caused this error.
    """

    kind: ClassVar[str] = "storage"

    def __init__(
        self,
        message: str,
        *,
        path: Path,
        operation: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and I/O context."""
        super().__init__(message)
        self.path: Path = path
        self.operation: str = operation
        self.cause: Exception | None = cause

    def context(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        return {"path": self.path, "operation": self.operation}


class StorageParseError(StorageError):
    """Raised when stored content cannot be decoded as JSON or YAML.

    Attributes:
        content_type: The content type that failed to parse.
        line: Line number where the parse error occurred, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path,
        content_type: str,
        line: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and parse context."""
        super().__init__(message, path=path, operation="read", cause=cause)
        self.content_type: str = content_type
        self.line: int | None = line

    def context(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        return {
            "path": self.path,
            "operation": self.operation,
            "content_type": self.content_type,
            "line": self.line,
        }


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(OasVaultError):
    """Base exception for configuration errors."""

    kind: ClassVar[str] = "config"


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded, parsed or validated."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column

    def context(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        return {"path": self.path, "line": self.line, "column": self.column}
