# pyright: reportUnusedCallResult=false, reportUnusedFunction=false, reportAny=false
# ruff: noqa: D415, PLR0913
"""Audit commands: show."""

from typing import Annotated

from cyclopts import App, Parameter

from oasvault.cli._context import CLIContext, OutputFormat
from oasvault.document import parse_api_id, parse_version_tag

from ._output import audit_table, render
from ._shared import exit_with_success, parse_time_filter

app = App(name="audit", help="Query the audit trail", help_on_error=True)

__all__ = ["app"]


@app.command(name="show")
def show(
    api_id: str,
    /,
    *,
    tag: Annotated[
        str | None,
        Parameter(name=["--tag", "-t"], help="Only records for this version"),
    ] = None,
    since: Annotated[
        str | None,
        Parameter(
            name=["--since"],
            help="Show entries from this time (e.g., 1d, 2h, 30m, or ISO 8601)",
        ),
    ] = None,
    until: Annotated[
        str | None,
        Parameter(
            name=["--until"],
            help="Show entries until this time (e.g., 1d, 2h, 30m, or ISO 8601)",
        ),
    ] = None,
    event: Annotated[
        str | None,
        Parameter(
            name=["--event", "-e"], help="Filter by event type (substring match)"
        ),
    ] = None,
    actor: Annotated[
        str | None,
        Parameter(name=["--by", "-a"], help="Filter by actor (exact match)"),
    ] = None,
    limit: Annotated[
        int,
        Parameter(name=["--limit", "-n"], help="Maximum number of entries to show"),
    ] = 50,
    format_: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TABLE,
) -> None:
    """Show an API's audit records, newest first

    Args:
        api_id: The API identifier.
        tag: Only records for this exact version.
        since: Show entries from this time (relative or ISO 8601).
        until: Show entries until this time (relative or ISO 8601).
        event: Filter by event type (substring match).
        actor: Filter by actor (exact match).
        limit: Maximum number of entries to return.
        format_: Output format.
    """
    records = CLIContext.get_current().services.audit.get(
        parse_api_id(api_id),
        version=parse_version_tag(tag) if tag is not None else None,
        event=event,
        actor=actor,
        since=parse_time_filter(since),
        until=parse_time_filter(until),
        limit=limit,
    )
    data = {"entries": [record.to_dict() for record in records]}
    print(render(data, format_, lambda: audit_table(records)))
    exit_with_success()
