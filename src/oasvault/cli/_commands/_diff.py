# pyright: reportUnusedCallResult=false, reportAny=false
# ruff: noqa: D415
"""Diff command."""

from typing import Annotated

from cyclopts import Parameter

from oasvault.cli._context import CLIContext, OutputFormat
from oasvault.document import parse_api_id, parse_version_tag

from ._output import diff_table, render
from ._shared import ExitCode, exit_with_success

__all__ = ["diff"]


def diff(
    api_id: str,
    from_tag: str,
    to_tag: str,
    /,
    *,
    fail_on_breaking: Annotated[
        bool,
        Parameter(
            name=["--fail-on-breaking"],
            help="Exit with code 2 when any change is breaking",
        ),
    ] = False,
    format_: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TABLE,
) -> None:
    """Compare two versions of an API and classify the changes

    Args:
        api_id: The API identifier.
        from_tag: Base version.
        to_tag: Target version.
        fail_on_breaking: Exit with code 2 when any change is breaking.
        format_: Output format.
    """
    api = parse_api_id(api_id)
    result = CLIContext.get_current().services.versions.compare(
        api, parse_version_tag(from_tag), parse_version_tag(to_tag)
    )
    print(render(result.to_dict(), format_, lambda: diff_table(result)))

    if fail_on_breaking and result.has_breaking_changes:
        raise SystemExit(ExitCode.VALIDATION_ERROR)
    exit_with_success()
