# pyright: reportExplicitAny=false
"""Exit codes, output formatters and argument helpers shared by CLI commands."""

import re
from datetime import UTC, datetime, timedelta
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Never

from oasvault.exceptions import (
    ConfigError,
    ConflictError,
    LockTimeoutError,
    NotFoundError,
    StorageError,
    ValidationError,
)

if TYPE_CHECKING:
    from rich.console import Console

type FormattableData = dict[str, Any]

__all__ = [
    "ExitCode",
    "FormattableData",
    "exit_code_for_exception",
    "exit_with_error",
    "exit_with_success",
    "format_json",
    "format_table",
    "format_yaml",
    "get_error_console",
    "parse_time_filter",
]


class ExitCode(IntEnum):
    """Process exit codes of the ``oasvault`` command."""

    SUCCESS = 0
    # Unknown API, version, document, component or reference
    NOT_FOUND = 1
    # Malformed input, conflicting state, broken references, breaking changes
    # under --fail-on-breaking
    VALIDATION_ERROR = 2
    CANCELLED = 3
    # Storage read/write/parse failures, lock timeouts, bad configuration
    IO_ERROR = 4
    INTERNAL_ERROR = 5


# First match wins: NotFoundError is also a KeyError, ConflictError a ValueError
_EXIT_CODES: tuple[tuple[Any, ExitCode], ...] = (
    (NotFoundError, ExitCode.NOT_FOUND),
    ((ValidationError, ConflictError), ExitCode.VALIDATION_ERROR),
    (KeyboardInterrupt, ExitCode.CANCELLED),
    ((StorageError, LockTimeoutError, ConfigError, OSError), ExitCode.IO_ERROR),
)


def exit_code_for_exception(exc: BaseException) -> ExitCode:
    """Map an exception to the exit code reported for it."""
    for types, code in _EXIT_CODES:
        if isinstance(exc, types):
            return code
    return ExitCode.INTERNAL_ERROR


def format_json(data: FormattableData, *, indent: bool = True) -> str:
    """Render data as JSON; datetimes become RFC 3339 strings."""
    import orjson

    return orjson.dumps(data, option=orjson.OPT_INDENT_2 if indent else 0).decode()


def format_yaml(data: FormattableData) -> str:
    """Render data as block-style YAML, keeping key order."""
    import yaml

    return yaml.safe_dump(
        data, default_flow_style=False, allow_unicode=True, sort_keys=False
    )


def format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Render rows as a Markdown table."""
    from pytablewriter import MarkdownTableWriter

    return MarkdownTableWriter(headers=headers, value_matrix=rows, margin=1).dumps()


def get_error_console() -> "Console":  # noqa: UP037
    """Get a Rich console writing to stderr."""
    from rich.console import Console

    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: "Console | None" = None,  # noqa: UP037
) -> Never:
    """Print ``Error: <message>`` and exit with ``code``.

    Raises:
        SystemExit: Always.
    """
    (console or get_error_console()).print(
        f"[red]Error:[/red] {message}", markup=True, highlight=False
    )
    raise SystemExit(code)


def exit_with_success() -> Never:
    """Exit with ``ExitCode.SUCCESS``.

    Raises:
        SystemExit: Always.
    """
    raise SystemExit(ExitCode.SUCCESS)


_RELATIVE = re.compile(r"([0-9]+)([dhm])")
_UNITS = {"d": "days", "h": "hours", "m": "minutes"}


def parse_time_filter(value: str | None) -> datetime | None:
    """Parse an audit ``--since``/``--until`` value.

    Accepts a relative age (``30m``, ``2h``, ``1d``) counted back from now, or
    an ISO 8601 date or datetime. Naive values are taken as UTC.

    Raises:
        ValidationError: If the value matches neither form.
    """
    if value is None:
        return None

    if match := _RELATIVE.fullmatch(value):
        amount, unit = match.groups()
        return datetime.now(UTC) - timedelta(**{_UNITS[unit]: int(amount)})

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        msg = (
            f"Invalid time format: {value!r}. "
            "Use relative (1d, 2h, 30m) or ISO 8601 (2024-12-01)"
        )
        raise ValidationError(msg, field="time", value=value) from e

    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
