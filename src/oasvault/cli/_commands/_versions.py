# pyright: reportUnusedCallResult=false, reportUnusedFunction=false, reportAny=false
# ruff: noqa: D415, PLR0913, TC003
"""Version commands: list, show, create, set-current, set-stable, delete, apis."""

from pathlib import Path
from typing import Annotated, cast

from cyclopts import App, Parameter

from oasvault.cli._context import CLIContext, OutputFormat
from oasvault.document import (
    JsonObject,
    normalize_keys,
    parse_api_id,
    parse_version_tag,
)
from oasvault.exceptions import StorageParseError, ValidationError

from ._output import render, version_table, versions_table
from ._shared import exit_with_success, format_table

app = App(name="versions", help="Manage API versions", help_on_error=True)

__all__ = ["app"]

_FORMAT = Parameter(name=["--format", "-f"], help="Output format")


def _load_seed(path: Path) -> JsonObject:
    """Read a seed document (YAML or JSON) from a local file."""
    import yaml

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        msg = f"Failed to parse seed document {path}: {e}"
        raise StorageParseError(msg, path=path, content_type="yaml", cause=e) from e
    if not isinstance(data, dict):
        msg = f"Seed document {path} must be a mapping"
        raise ValidationError(msg, field="seed", value=str(path))
    return cast("JsonObject", normalize_keys(data))


@app.command(name="apis")
def apis(
    *,
    format_: Annotated[OutputFormat, _FORMAT] = OutputFormat.TABLE,
) -> None:
    """List every API"""
    registry = CLIContext.get_current().services.versions
    api_ids = registry.list_apis()
    print(
        render(
            {"apis": list(api_ids)},
            format_,
            lambda: format_table(["API"], [[api_id] for api_id in api_ids]),
        )
    )
    exit_with_success()


@app.command(name="list")
def list_(
    api_id: str,
    /,
    *,
    format_: Annotated[OutputFormat, _FORMAT] = OutputFormat.TABLE,
) -> None:
    """List an API's versions in creation order

    Args:
        api_id: The API identifier.
        format_: Output format.
    """
    api = parse_api_id(api_id)
    record = CLIContext.get_current().services.versions.get_api_metadata(api)
    data = {
        "api_id": record.api_id,
        "versions": list(record.versions),
        "current_version": record.current_version,
        "latest_stable": record.latest_stable,
    }
    print(render(data, format_, lambda: versions_table(record)))
    exit_with_success()


@app.command(name="show")
def show(
    api_id: str,
    tag: str | None = None,
    /,
    *,
    format_: Annotated[OutputFormat, _FORMAT] = OutputFormat.TABLE,
) -> None:
    """Show API metadata, or a version's metadata when a tag is given

    Args:
        api_id: The API identifier.
        tag: Version tag.
        format_: Output format.
    """
    api = parse_api_id(api_id)
    version = parse_version_tag(tag) if tag is not None else None
    registry = CLIContext.get_current().services.versions
    if version is None:
        api_record = registry.get_api_metadata(api)
        print(render(api_record.to_dict(), format_, lambda: versions_table(api_record)))
    else:
        record = registry.get_version_metadata(api, version)
        print(render(record.to_dict(), format_, lambda: version_table(record)))
    exit_with_success()


@app.command(name="create")
def create(
    api_id: str,
    tag: str,
    /,
    *,
    description: Annotated[
        str, Parameter(name=["--description", "-d"], help="Version description")
    ] = "",
    source: Annotated[
        str | None,
        Parameter(name=["--from"], help="Existing version to copy the document from"),
    ] = None,
    seed: Annotated[
        Path | None,
        Parameter(name=["--seed"], help="YAML/JSON file to start the document from"),
    ] = None,
    current: Annotated[
        bool, Parameter(name=["--current"], help="Make the new version current")
    ] = False,
    rationale: Annotated[
        str | None, Parameter(name=["--rationale", "-r"], help="Reason for the change")
    ] = None,
    format_: Annotated[OutputFormat, _FORMAT] = OutputFormat.TABLE,
) -> None:
    """Create a version

    Args:
        api_id: The API identifier.
        tag: New version tag (v1.2.3 or v20250101-120000).
        description: Version description.
        source: Existing version to copy the document from.
        seed: YAML/JSON file to start the document from.
        current: Make the new version current.
        rationale: Reason recorded in the audit trail.
        format_: Output format.
    """
    api, version = parse_api_id(api_id), parse_version_tag(tag)
    source_tag = parse_version_tag(source) if source is not None else None
    ctx = CLIContext.get_current()
    record = ctx.services.versions.create_version(
        api,
        version,
        description,
        source_tag=source_tag,
        seed=_load_seed(seed) if seed is not None else None,
        actor=ctx.actor,
        rationale=rationale,
        make_current=current,
    )
    print(render(record.to_dict(), format_, lambda: version_table(record)))
    exit_with_success()


@app.command(name="set-current")
def set_current(
    api_id: str,
    tag: str,
    /,
    *,
    rationale: Annotated[
        str | None, Parameter(name=["--rationale", "-r"], help="Reason for the change")
    ] = None,
) -> None:
    """Make a version the API's current version

    Args:
        api_id: The API identifier.
        tag: Version tag.
        rationale: Reason recorded in the audit trail.
    """
    api, version = parse_api_id(api_id), parse_version_tag(tag)
    ctx = CLIContext.get_current()
    ctx.services.versions.set_current_version(
        api,
        version,
        actor=ctx.actor,
        rationale=rationale,
    )
    print(f"Current version of {api} is now {version}")
    exit_with_success()


@app.command(name="set-stable")
def set_stable(
    api_id: str,
    tag: str,
    /,
    *,
    rationale: Annotated[
        str | None, Parameter(name=["--rationale", "-r"], help="Reason for the change")
    ] = None,
) -> None:
    """Mark a version as the API's latest stable version

    Args:
        api_id: The API identifier.
        tag: Version tag.
        rationale: Reason recorded in the audit trail.
    """
    api, version = parse_api_id(api_id), parse_version_tag(tag)
    ctx = CLIContext.get_current()
    ctx.services.versions.set_latest_stable(
        api,
        version,
        actor=ctx.actor,
        rationale=rationale,
    )
    print(f"Latest stable version of {api} is now {version}")
    exit_with_success()


@app.command(name="delete")
def delete(
    api_id: str,
    tag: str,
    /,
    *,
    rationale: Annotated[
        str | None, Parameter(name=["--rationale", "-r"], help="Reason for the change")
    ] = None,
) -> None:
    """Delete a non-current version

    Args:
        api_id: The API identifier.
        tag: Version tag.
        rationale: Reason recorded in the audit trail.
    """
    api, version = parse_api_id(api_id), parse_version_tag(tag)
    ctx = CLIContext.get_current()
    ctx.services.versions.delete_version(
        api,
        version,
        actor=ctx.actor,
        rationale=rationale,
    )
    print(f"Deleted {api} {version}")
    exit_with_success()
