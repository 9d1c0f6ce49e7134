# pyright: reportUnusedCallResult=false, reportUnusedFunction=false, reportAny=false
# ruff: noqa: D415, PLR0913
"""Reference commands: find, validate, rewrite, rename."""

from typing import Annotated

from cyclopts import App, Parameter

from oasvault.cli._context import CLIContext, OutputFormat
from oasvault.document import parse_api_id, parse_version_tag

from ._output import render, usages_table, validation_table
from ._shared import ExitCode, exit_with_success

app = App(name="refs", help="Find, validate and rewrite $ref pointers", help_on_error=True)

__all__ = ["app"]

_FORMAT = Parameter(name=["--format", "-f"], help="Output format")
_RATIONALE = Parameter(name=["--rationale", "-r"], help="Reason for the change")


@app.command(name="find")
def find(
    api_id: str,
    tag: str,
    component_type: str,
    component_name: str,
    /,
    *,
    format_: Annotated[OutputFormat, _FORMAT] = OutputFormat.TABLE,
) -> None:
    """Find every usage of a component

    Args:
        api_id: The API identifier.
        tag: Version tag.
        component_type: Component kind (schemas, parameters, responses, ...).
        component_name: Component name.
        format_: Output format.
    """
    usages = CLIContext.get_current().services.references.find(
        parse_api_id(api_id), parse_version_tag(tag), component_type, component_name
    )
    data = {
        "ref": f"#/components/{component_type}/{component_name}",
        "usages": [usage.location for usage in usages],
    }
    print(render(data, format_, lambda: usages_table(usages)))
    exit_with_success()


@app.command(name="validate")
def validate(
    api_id: str,
    tag: str,
    /,
    *,
    format_: Annotated[OutputFormat, _FORMAT] = OutputFormat.TABLE,
) -> None:
    """Check that every internal reference resolves

    Exits with code 2 when any reference is broken.

    Args:
        api_id: The API identifier.
        tag: Version tag.
        format_: Output format.
    """
    result = CLIContext.get_current().services.references.validate(
        parse_api_id(api_id), parse_version_tag(tag)
    )
    print(render(result.to_dict(), format_, lambda: validation_table(result)))
    if not result.valid:
        raise SystemExit(ExitCode.VALIDATION_ERROR)
    exit_with_success()


@app.command(name="rewrite")
def rewrite(
    api_id: str,
    tag: str,
    old_ref: str,
    new_ref: str,
    /,
    *,
    rationale: Annotated[str | None, _RATIONALE] = None,
    format_: Annotated[OutputFormat, _FORMAT] = OutputFormat.TABLE,
) -> None:
    """Replace every occurrence of one reference string with another

    Args:
        api_id: The API identifier.
        tag: Version tag.
        old_ref: Reference string to replace.
        new_ref: Replacement reference string.
        rationale: Reason recorded in the audit trail.
        format_: Output format.
    """
    ctx = CLIContext.get_current()
    result = ctx.services.references.update(
        parse_api_id(api_id),
        parse_version_tag(tag),
        old_ref,
        new_ref,
        actor=ctx.actor,
        rationale=rationale,
    )
    print(
        render(
            result.to_dict(),
            format_,
            lambda: f"Rewrote {result.count} reference(s) to {new_ref}",
        )
    )
    exit_with_success()


@app.command(name="rename")
def rename(
    api_id: str,
    tag: str,
    component_type: str,
    old_name: str,
    new_name: str,
    /,
    *,
    rationale: Annotated[str | None, _RATIONALE] = None,
    format_: Annotated[OutputFormat, _FORMAT] = OutputFormat.TABLE,
) -> None:
    """Rename a component and rewrite every reference to it

    Args:
        api_id: The API identifier.
        tag: Version tag.
        component_type: Component kind (schemas, parameters, responses, ...).
        old_name: Current component name.
        new_name: New component name.
        rationale: Reason recorded in the audit trail.
        format_: Output format.
    """
    ctx = CLIContext.get_current()
    result = ctx.services.references.rename_component(
        parse_api_id(api_id),
        parse_version_tag(tag),
        component_type,
        old_name,
        new_name,
        actor=ctx.actor,
        rationale=rationale,
    )
    print(
        render(
            result.to_dict(),
            format_,
            lambda: (
                f"Renamed {component_type}/{old_name} to {new_name}; "
                f"rewrote {result.count} reference(s)"
            ),
        )
    )
    exit_with_success()
