"""Utility helpers shared across oasvault."""

from ._logging import (
    create_file_logger,
    create_logger,
    create_null_logger,
    create_stderr_logger,
)

__all__ = [
    "create_file_logger",
    "create_logger",
    "create_null_logger",
    "create_stderr_logger",
]
