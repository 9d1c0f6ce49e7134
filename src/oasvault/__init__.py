"""oasvault: version, diff and reference integrity for OpenAPI documents."""

from oasvault.context import ServiceContext, create_context
from oasvault.exceptions import (
    ConflictError,
    LockTimeoutError,
    NotFoundError,
    OasVaultError,
    StorageError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "ConflictError",
    "LockTimeoutError",
    "NotFoundError",
    "OasVaultError",
    "ServiceContext",
    "StorageError",
    "ValidationError",
    "__version__",
    "create_context",
]
