# pyright: reportAny=false, reportExplicitAny=false
"""Output rendering for oasvault commands."""

from collections.abc import Callable
from typing import Any

from oasvault.audit import AuditRecord
from oasvault.cli._context import OutputFormat
from oasvault.diff import DiffResult
from oasvault.references import ReferenceUsage, ReferenceValidationResult
from oasvault.versions import AggregateStats, ApiRecord, VersionRecord

from ._shared import FormattableData, format_json, format_table, format_yaml

__all__ = [
    "audit_table",
    "diff_table",
    "render",
    "stats_table",
    "usages_table",
    "validation_table",
    "version_table",
    "versions_table",
]


def render(
    data: FormattableData, format_: OutputFormat, table: Callable[[], str]
) -> str:
    """Render command output in the requested format.

    Args:
        data: Structured result used for JSON and YAML output.
        format_: The output format.
        table: Builds the table rendering on demand.
    """
    match format_:
        case OutputFormat.JSON:
            return format_json(data)
        case OutputFormat.YAML:
            return format_yaml(data)
        case OutputFormat.TABLE:
            return table()


def versions_table(record: ApiRecord) -> str:
    rows: list[list[str]] = []
    for tag in record.versions:
        markers = []
        if tag == record.current_version:
            markers.append("current")
        if tag == record.latest_stable:
            markers.append("latest-stable")
        rows.append([tag, ", ".join(markers)])
    return format_table(["Version", "Status"], rows)


def version_table(record: VersionRecord) -> str:
    changes = record.changes
    rows = [
        ["version", record.version],
        ["created_at", record.created_at.isoformat()],
        ["created_by", record.created_by],
        ["parent_version", record.parent_version or "-"],
        ["source_version", record.source_version or "-"],
        ["description", record.description or "-"],
        ["endpoints", str(record.stats.endpoint_count)],
        ["schemas", str(record.stats.schema_count)],
        ["references_valid", str(record.validation.references_valid).lower()],
        ["endpoints_added", ", ".join(changes.endpoints_added) or "-"],
        ["endpoints_modified", ", ".join(changes.endpoints_modified) or "-"],
        ["endpoints_deleted", ", ".join(changes.endpoints_deleted) or "-"],
        ["schemas_added", ", ".join(changes.schemas_added) or "-"],
        ["schemas_modified", ", ".join(changes.schemas_modified) or "-"],
        ["schemas_deleted", ", ".join(changes.schemas_deleted) or "-"],
        ["breaking_changes", str(len(changes.breaking_changes))],
    ]
    return format_table(["Field", "Value"], rows)


def diff_table(result: DiffResult) -> str:
    if not result.changes:
        return "No changes."
    rows = [
        [
            change.severity.value,
            change.category.value,
            change.kind.value,
            change.target,
            change.description,
        ]
        for change in result.changes
    ]
    summary = result.summary
    table = format_table(["Severity", "Category", "Kind", "Target", "Description"], rows)
    return f"{table}\n{summary.breaking} breaking, {summary.non_breaking} non-breaking"


def usages_table(usages: list[ReferenceUsage]) -> str:
    if not usages:
        return "No usages."
    return format_table(["Location"], [[usage.location] for usage in usages])


def validation_table(result: ReferenceValidationResult) -> str:
    if result.valid:
        return f"All {result.checked} internal references resolve."
    rows = [
        [entry.ref, ", ".join(entry.locations)] for entry in result.broken
    ]
    return format_table(["Broken reference", "Locations"], rows)


def audit_table(records: list[AuditRecord]) -> str:
    if not records:
        return "No audit records."
    rows = [
        [
            record.timestamp.isoformat(timespec="seconds"),
            record.event,
            record.version or "-",
            record.actor,
            record.rationale or "",
        ]
        for record in records
    ]
    return format_table(["Timestamp", "Event", "Version", "Actor", "Rationale"], rows)


def stats_table(stats: AggregateStats) -> str:
    data: dict[str, Any] = stats.to_dict()
    rows = [
        [key, ", ".join(value) if isinstance(value, list) else str(value)]
        for key, value in data.items()
    ]
    return format_table(["Metric", "Value"], rows)
