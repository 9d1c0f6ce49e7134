# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""TOML configuration file loading and merging."""

import json
import os
import re
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from oasvault.exceptions import ConfigLoadError

from ._models import Config

__all__ = [
    "CONFIG_FILE_NAME",
    "ENV_PREFIX",
    "deep_merge",
    "load_config",
    "parse_env_vars",
    "read_toml_file",
]

CONFIG_FILE_NAME = "oasvault.toml"

ENV_PREFIX = "OASVAULT_"

# Variables under the prefix that are not config keys
_RESERVED_ENV_KEYS = frozenset({"DEBUG", "LOG_LEVEL", "CONFIG"})

# tomllib appends "(at line N, column M)" to its messages
_TOML_LOCATION = re.compile(r"\(at line (\d+), column (\d+)\)$")


def _toml_error_location(e: tomllib.TOMLDecodeError) -> tuple[int | None, int | None]:
    if match := _TOML_LOCATION.search(str(e)):
        return int(match.group(1)), int(match.group(2))
    return None, None


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content as dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        line, column = _toml_error_location(e)
        raise ConfigLoadError(msg, path=path, line=line, column=column) from e


def deep_merge(
    base: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    override: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Deep merge two configuration dictionaries.

    Merges `override` into `base`, returning a new dictionary. Neither input
    is modified. Dictionaries merge recursively; everything else is replaced.

    Args:
        base: Base configuration (lower precedence).
        override: Override configuration (higher precedence).

    Returns:
        Merged configuration dictionary.
    """
    result: dict[str, Any] = dict(base)  # pyright: ignore[reportExplicitAny]
    for key, override_val in override.items():
        base_val = result.get(key)
        if isinstance(base_val, dict) and isinstance(override_val, dict):
            result[key] = deep_merge(base_val, override_val)
        else:
            result[key] = override_val
    return result


def _parse_env_value(value: str) -> Any:  # pyright: ignore[reportExplicitAny]
    """Parse an environment variable value with type inference.

    Booleans and numbers are recognized; JSON arrays and objects are decoded;
    anything else stays a string.
    """
    lowered = value.strip().lower()
    if lowered in {"true", "yes", "on"}:
        return True
    if lowered in {"false", "no", "off"}:
        return False

    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass

    if value.startswith(("[", "{")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


def parse_env_vars(
    prefix: str = ENV_PREFIX,
    environ: dict[str, str] | None = None,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Parse environment variables into a nested config dictionary.

    ``OASVAULT_LOCK__TIMEOUT=2.5`` becomes ``{"lock": {"timeout": 2.5}}``.

    Args:
        prefix: Environment variable prefix.
        environ: Mapping to read instead of ``os.environ``.

    Returns:
        Dictionary of parsed config values with nested structure.
    """
    source = os.environ if environ is None else environ
    result: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]

    for key, value in source.items():
        if not key.startswith(prefix):
            continue
        config_key = key[len(prefix) :]
        if not config_key or config_key in _RESERVED_ENV_KEYS:
            continue

        parts = config_key.lower().split("__")
        target = result
        for part in parts[:-1]:
            nested = target.setdefault(part, {})
            if not isinstance(nested, dict):
                break
            target = nested
        else:
            target[parts[-1]] = _parse_env_value(value)

    return result


def load_config(
    path: Path | None = None,
    *,
    include_env: bool = True,
    environ: dict[str, str] | None = None,
    overrides: dict[str, Any] | None = None,  # pyright: ignore[reportExplicitAny]
) -> Config:
    """Load configuration from defaults, a TOML file and the environment.

    Precedence, lowest to highest: model defaults, the TOML file, environment
    variables, explicit overrides.

    Args:
        path: Explicit TOML file. When None, ``$OASVAULT_CONFIG`` or
            ``./oasvault.toml`` is used if it exists.
        include_env: Whether to apply ``OASVAULT_*`` environment overrides.
        environ: Mapping to read instead of ``os.environ``.
        overrides: Highest-precedence values (e.g. CLI flags).

    Returns:
        The validated configuration.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigLoadError: If the file cannot be parsed or validation fails.
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]

    if path is None:
        candidate = Path(env.get(f"{ENV_PREFIX}CONFIG", CONFIG_FILE_NAME))
        if candidate.is_file():
            data = read_toml_file(candidate)
            path = candidate
    else:
        data = read_toml_file(path)

    if include_env:
        data = deep_merge(data, parse_env_vars(environ=dict(env)))
    if overrides:
        data = deep_merge(data, overrides)

    try:
        return Config.model_validate(data)
    except PydanticValidationError as e:
        msg = f"Invalid configuration: {e}"
        raise ConfigLoadError(msg, path=path) from e
