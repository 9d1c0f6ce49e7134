# pyright: reportUnusedCallResult=false
# ruff: noqa: D415
"""Stats command."""

from typing import Annotated

from cyclopts import Parameter

from oasvault.cli._context import CLIContext, OutputFormat

from ._output import render, stats_table
from ._shared import exit_with_success

__all__ = ["stats"]


def stats(
    *,
    format_: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TABLE,
) -> None:
    """Show aggregate statistics across every API's current version

    Args:
        format_: Output format.
    """
    result = CLIContext.get_current().services.versions.collect_stats()
    print(render(result.to_dict(), format_, lambda: stats_table(result)))
    exit_with_success()
