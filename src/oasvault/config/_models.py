"""Configuration models.

This module provides the frozen Pydantic models for oasvault settings. Each
section maps to a table in ``oasvault.toml``.
"""

from enum import StrEnum
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class LogLevel(StrEnum):
    """Log level threshold values."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class DocumentFormat(StrEnum):
    """Serialization format used when saving specification documents."""

    YAML = "yaml"
    JSON = "json"


class StorageConfig(BaseModel):
    """Document store settings.

    Attributes:
        root: Directory holding every API, version and audit file.
        default_format: Format for newly saved documents.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    root: Path = Field(default=Path("data"), description="Storage root directory.")
    default_format: DocumentFormat = Field(
        default=DocumentFormat.YAML,
        description="Format for newly saved specification documents.",
    )


class LockConfig(BaseModel):
    """Write lock settings.

    Attributes:
        timeout: Upper bound in seconds on waiting for a lock.
        retries: Number of retries after the first failed attempt.
        retry_interval: Initial delay between attempts in seconds.
        stale_after: Age in seconds after which a lock file is reclaimed.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    timeout: float = Field(default=5.0, gt=0, description="Lock wait bound (s).")
    retries: int = Field(default=5, ge=0, le=50, description="Retry count.")
    retry_interval: float = Field(
        default=0.1, gt=0, description="Initial delay between attempts (s)."
    )
    stale_after: float = Field(
        default=30.0, gt=0, description="Lock file age considered stale (s)."
    )


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = ""


class AuditConfig(BaseModel):
    """Audit trail settings."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    default_actor: str = Field(
        default="system",
        min_length=1,
        description="Actor recorded when a caller does not supply one.",
    )


class Config(BaseModel):
    """Top-level oasvault configuration."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    storage: StorageConfig = Field(default_factory=StorageConfig)
    lock: LockConfig = Field(default_factory=LockConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
