"""Configuration for oasvault."""

from ._loader import (
    CONFIG_FILE_NAME,
    ENV_PREFIX,
    deep_merge,
    load_config,
    parse_env_vars,
    read_toml_file,
)
from ._models import (
    AuditConfig,
    Config,
    DocumentFormat,
    LockConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    StorageConfig,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "ENV_PREFIX",
    "AuditConfig",
    "Config",
    "DocumentFormat",
    "LockConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "StorageConfig",
    "deep_merge",
    "load_config",
    "parse_env_vars",
    "read_toml_file",
]
