"""oasvault CLI commands."""
# pyright: reportUnusedCallResult=false

from typing import TYPE_CHECKING

from ._audit import app as audit_app
from ._diff import diff
from ._refs import app as refs_app
from ._shared import (
    ExitCode,
    FormattableData,
    exit_code_for_exception,
    exit_with_error,
    exit_with_success,
    format_json,
    format_table,
    format_yaml,
    get_error_console,
    parse_time_filter,
)
from ._stats import stats
from ._versions import app as versions_app

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "ExitCode",
    "FormattableData",
    "audit_app",
    "diff",
    "exit_code_for_exception",
    "exit_with_error",
    "exit_with_success",
    "format_json",
    "format_table",
    "format_yaml",
    "get_error_console",
    "parse_time_filter",
    "refs_app",
    "register_commands",
    "stats",
    "versions_app",
]


def register_commands(app: "App") -> None:  # noqa: UP037
    """Register every command and command group on the root app."""
    app.command(versions_app)
    app.command(refs_app)
    app.command(audit_app)
    app.command(diff, name="diff")
    app.command(stats, name="stats")
