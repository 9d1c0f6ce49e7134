# pyright: reportAny=false, reportExplicitAny=false
"""Diff result models.

This module defines the change entries produced by comparing two
specification documents, their aggregate counts, and the ChangesSummary
persisted on version records.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Self

__all__ = [
    "Change",
    "ChangeCategory",
    "ChangeKind",
    "ChangeSeverity",
    "ChangesSummary",
    "DiffResult",
    "DiffSummary",
]

# =============================================================================
# Enums
# =============================================================================


class ChangeCategory(StrEnum):
    """Level of the document a change applies to."""

    ENDPOINT = "endpoint"
    SCHEMA = "schema"
    SECURITY = "security"


class ChangeKind(StrEnum):
    """Whether the target was added, removed or modified."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


class ChangeSeverity(StrEnum):
    """Compatibility impact of a change on existing clients."""

    BREAKING = "breaking"
    NON_BREAKING = "non-breaking"


# =============================================================================
# Change Entries
# =============================================================================

_COUNT_PREFIX = {
    ChangeCategory.ENDPOINT: "endpoints",
    ChangeCategory.SCHEMA: "schemas",
    ChangeCategory.SECURITY: "security",
}


@dataclass(frozen=True, slots=True)
class Change:
    """One classified difference between two documents.

    Attributes:
        category: Document level (endpoint, schema or security).
        kind: Added, removed or modified.
        severity: Breaking or non-breaking.
        target: ``"METHOD /path"``, a schema name, a security scheme name, or
            ``"global"`` for the top-level security requirement.
        description: Human-readable description.
        location: JSON pointer to the affected node.
    """

    category: ChangeCategory
    kind: ChangeKind
    severity: ChangeSeverity
    target: str
    description: str
    location: str = ""

    @property
    def breaking(self) -> bool:
        """Whether the change is breaking."""
        return self.severity is ChangeSeverity.BREAKING

    def to_dict(self) -> dict[str, str]:
        return {
            "category": self.category.value,
            "kind": self.kind.value,
            "severity": self.severity.value,
            "target": self.target,
            "description": self.description,
            "location": self.location,
        }


@dataclass(frozen=True, slots=True)
class DiffSummary:
    """Change counts per category and kind, plus severity totals."""

    endpoints_added: int = 0
    endpoints_removed: int = 0
    endpoints_modified: int = 0
    schemas_added: int = 0
    schemas_removed: int = 0
    schemas_modified: int = 0
    security_added: int = 0
    security_removed: int = 0
    security_modified: int = 0
    breaking: int = 0
    non_breaking: int = 0

    @classmethod
    def from_changes(cls, changes: tuple[Change, ...] | list[Change]) -> Self:
        """Count changes. Modified targets are counted once each."""
        counts: Counter[str] = Counter()
        seen_modified: set[tuple[ChangeCategory, str]] = set()
        for change in changes:
            if change.kind is ChangeKind.MODIFIED:
                if (change.category, change.target) in seen_modified:
                    continue
                seen_modified.add((change.category, change.target))
            counts[f"{_COUNT_PREFIX[change.category]}_{change.kind.value}"] += 1

        breaking = sum(1 for change in changes if change.breaking)
        return cls(
            endpoints_added=counts["endpoints_added"],
            endpoints_removed=counts["endpoints_removed"],
            endpoints_modified=counts["endpoints_modified"],
            schemas_added=counts["schemas_added"],
            schemas_removed=counts["schemas_removed"],
            schemas_modified=counts["schemas_modified"],
            security_added=counts["security_added"],
            security_removed=counts["security_removed"],
            security_modified=counts["security_modified"],
            breaking=breaking,
            non_breaking=len(changes) - breaking,
        )

    @property
    def total(self) -> int:
        """Total number of change entries."""
        return self.breaking + self.non_breaking

    def to_dict(self) -> dict[str, int]:
        return {
            "endpoints_added": self.endpoints_added,
            "endpoints_removed": self.endpoints_removed,
            "endpoints_modified": self.endpoints_modified,
            "schemas_added": self.schemas_added,
            "schemas_removed": self.schemas_removed,
            "schemas_modified": self.schemas_modified,
            "security_added": self.security_added,
            "security_removed": self.security_removed,
            "security_modified": self.security_modified,
            "breaking": self.breaking,
            "non_breaking": self.non_breaking,
        }


# =============================================================================
# Summaries
# =============================================================================


@dataclass(frozen=True, slots=True)
class ChangesSummary:
    """Changes of a version relative to its parent, persisted at creation.

    Attributes:
        endpoints_added: Added endpoints as ``"METHOD /path"``.
        endpoints_modified: Modified endpoints as ``"METHOD /path"``.
        endpoints_deleted: Removed endpoints as ``"METHOD /path"``.
        schemas_added: Added schema names.
        schemas_modified: Modified schema names.
        schemas_deleted: Removed schema names.
        breaking_changes: Descriptions of every breaking change.
    """

    endpoints_added: tuple[str, ...] = ()
    endpoints_modified: tuple[str, ...] = ()
    endpoints_deleted: tuple[str, ...] = ()
    schemas_added: tuple[str, ...] = ()
    schemas_modified: tuple[str, ...] = ()
    schemas_deleted: tuple[str, ...] = ()
    breaking_changes: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        """Whether nothing changed."""
        return not any((
            self.endpoints_added,
            self.endpoints_modified,
            self.endpoints_deleted,
            self.schemas_added,
            self.schemas_modified,
            self.schemas_deleted,
            self.breaking_changes,
        ))

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "endpoints_added": list(self.endpoints_added),
            "endpoints_modified": list(self.endpoints_modified),
            "endpoints_deleted": list(self.endpoints_deleted),
            "schemas_added": list(self.schemas_added),
            "schemas_modified": list(self.schemas_modified),
            "schemas_deleted": list(self.schemas_deleted),
            "breaking_changes": list(self.breaking_changes),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Self:
        def strings(key: str) -> tuple[str, ...]:
            return tuple(str(item) for item in raw.get(key) or ())

        return cls(
            endpoints_added=strings("endpoints_added"),
            endpoints_modified=strings("endpoints_modified"),
            endpoints_deleted=strings("endpoints_deleted"),
            schemas_added=strings("schemas_added"),
            schemas_modified=strings("schemas_modified"),
            schemas_deleted=strings("schemas_deleted"),
            breaking_changes=strings("breaking_changes"),
        )


@dataclass(frozen=True, slots=True)
class DiffResult:
    """Result of comparing two documents.

    Attributes:
        changes: Every change in stable order (endpoints by path then method,
            then schemas by name, then security).
        summary: Aggregate counts.
        api_id: API the versions belong to, when diffing stored versions.
        from_version: Base version tag, when diffing stored versions.
        to_version: Target version tag, when diffing stored versions.
    """

    changes: tuple[Change, ...] = ()
    summary: DiffSummary = field(default_factory=DiffSummary)
    api_id: str | None = None
    from_version: str | None = None
    to_version: str | None = None

    @classmethod
    def from_changes(
        cls,
        changes: list[Change] | tuple[Change, ...],
        *,
        api_id: str | None = None,
        from_version: str | None = None,
        to_version: str | None = None,
    ) -> Self:
        """Build a result and its summary from ordered changes."""
        ordered = tuple(changes)
        return cls(
            changes=ordered,
            summary=DiffSummary.from_changes(ordered),
            api_id=api_id,
            from_version=from_version,
            to_version=to_version,
        )

    @property
    def breaking(self) -> tuple[Change, ...]:
        """Breaking changes, in stable order."""
        return tuple(change for change in self.changes if change.breaking)

    @property
    def non_breaking(self) -> tuple[Change, ...]:
        """Non-breaking changes, in stable order."""
        return tuple(change for change in self.changes if not change.breaking)

    @property
    def has_breaking_changes(self) -> bool:
        """Whether any change is breaking."""
        return self.summary.breaking > 0

    def _targets(self, category: ChangeCategory, kind: ChangeKind) -> tuple[str, ...]:
        return tuple(
            dict.fromkeys(
                change.target
                for change in self.changes
                if change.category is category and change.kind is kind
            )
        )

    def to_changes_summary(self) -> ChangesSummary:
        """Derive the persisted ChangesSummary."""
        return ChangesSummary(
            endpoints_added=self._targets(ChangeCategory.ENDPOINT, ChangeKind.ADDED),
            endpoints_modified=self._targets(
                ChangeCategory.ENDPOINT, ChangeKind.MODIFIED
            ),
            endpoints_deleted=self._targets(ChangeCategory.ENDPOINT, ChangeKind.REMOVED),
            schemas_added=self._targets(ChangeCategory.SCHEMA, ChangeKind.ADDED),
            schemas_modified=self._targets(ChangeCategory.SCHEMA, ChangeKind.MODIFIED),
            schemas_deleted=self._targets(ChangeCategory.SCHEMA, ChangeKind.REMOVED),
            breaking_changes=tuple(
                _describe(change) for change in self.changes if change.breaking
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "breaking": [change.to_dict() for change in self.breaking],
            "non_breaking": [change.to_dict() for change in self.non_breaking],
            "summary": self.summary.to_dict(),
        }
        if self.api_id is not None:
            data["api_id"] = self.api_id
        if self.from_version is not None:
            data["from_version"] = self.from_version
        if self.to_version is not None:
            data["to_version"] = self.to_version
        return data


def _describe(change: Change) -> str:
    """Render a change as ``"<target>: <description>"``."""
    return f"{change.target}: {change.description}"
