# pyright: reportAny=false, reportExplicitAny=false
"""Version registry models.

This module defines the persisted per-API and per-version records and the
aggregate statistics computed across every API.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Self

from oasvault.diff import ChangesSummary

__all__ = [
    "AggregateStats",
    "ApiRecord",
    "ValidationSnapshot",
    "VersionRecord",
    "VersionStats",
]


def _parse_timestamp(value: str | datetime) -> datetime:
    timestamp = datetime.fromisoformat(value) if isinstance(value, str) else value
    if timestamp.tzinfo is None:
        msg = f"Timestamp must include timezone information: {timestamp}"
        raise ValueError(msg)
    return timestamp


# =============================================================================
# Computed Version Data
# =============================================================================


@dataclass(frozen=True, slots=True)
class VersionStats:
    """Size statistics of a version's document, computed at creation.

    Attributes:
        endpoint_count: Number of (path, method) operations.
        schema_count: Number of ``components.schemas`` entries.
        file_size_bytes: Stored document size.
        security_schemes_count: Number of ``components.securitySchemes`` entries.
        tags_count: Number of top-level ``tags`` entries.
    """

    endpoint_count: int = 0
    schema_count: int = 0
    file_size_bytes: int = 0
    security_schemes_count: int = 0
    tags_count: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "endpoint_count": self.endpoint_count,
            "schema_count": self.schema_count,
            "file_size_bytes": self.file_size_bytes,
            "security_schemes_count": self.security_schemes_count,
            "tags_count": self.tags_count,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Self:
        return cls(
            endpoint_count=int(raw.get("endpoint_count", 0)),
            schema_count=int(raw.get("schema_count", 0)),
            file_size_bytes=int(raw.get("file_size_bytes", 0)),
            security_schemes_count=int(raw.get("security_schemes_count", 0)),
            tags_count=int(raw.get("tags_count", 0)),
        )


@dataclass(frozen=True, slots=True)
class ValidationSnapshot:
    """Reference-integrity result captured when a version was created.

    Attributes:
        references_valid: Whether every internal reference resolved.
        broken_reference_count: Number of distinct broken references.
        checked_at: When the check ran.
    """

    references_valid: bool
    broken_reference_count: int
    checked_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "references_valid": self.references_valid,
            "broken_reference_count": self.broken_reference_count,
            "checked_at": self.checked_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Self:
        return cls(
            references_valid=bool(raw["references_valid"]),
            broken_reference_count=int(raw.get("broken_reference_count", 0)),
            checked_at=_parse_timestamp(raw["checked_at"]),
        )


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True, slots=True)
class VersionRecord:
    """Metadata of one API version. Created once, never recomputed implicitly.

    Attributes:
        version: The version tag.
        created_at: Creation timestamp.
        created_by: Identity of the creator.
        parent_version: Version diffed against at creation (None only for the
            first version of an API).
        description: Free-text description.
        changes: Changes relative to the parent at creation time.
        validation: Reference-integrity snapshot at creation time.
        stats: Document statistics at creation time.
        source_version: Version the document was copied from, if any.
        tags: Free-form labels.
    """

    # Required
    version: str
    created_at: datetime
    created_by: str
    parent_version: str | None
    description: str
    changes: ChangesSummary
    validation: ValidationSnapshot
    stats: VersionStats
    # Optional
    source_version: str | None = None
    tags: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version,
            "created_at": self.created_at.isoformat(),
            "created_by": self.created_by,
            "parent_version": self.parent_version,
            "description": self.description,
            "changes": self.changes.to_dict(),
            "validation": self.validation.to_dict(),
            "stats": self.stats.to_dict(),
        }
        if self.source_version is not None:
            data["source_version"] = self.source_version
        if self.tags:
            data["tags"] = list(self.tags)
        return data

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Self:
        """Parse a stored version metadata file.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If a timestamp is not timezone-aware.
        """
        return cls(
            version=raw["version"],
            created_at=_parse_timestamp(raw["created_at"]),
            created_by=raw["created_by"],
            parent_version=raw.get("parent_version"),
            description=raw.get("description", ""),
            changes=ChangesSummary.from_dict(raw.get("changes") or {}),
            validation=ValidationSnapshot.from_dict(raw["validation"]),
            stats=VersionStats.from_dict(raw.get("stats") or {}),
            source_version=raw.get("source_version"),
            tags=tuple(raw.get("tags") or ()),
        )


@dataclass(frozen=True, slots=True)
class ApiRecord:
    """Metadata of one API.

    Invariant: ``versions`` is non-empty and contains both ``current_version``
    and ``latest_stable``.

    Attributes:
        api_id: The API identifier.
        name: Display name.
        created_at: Creation timestamp.
        current_version: The version served as current.
        versions: Every version tag in creation order.
        latest_stable: The version marked as latest stable.
        owner: Owning user or team.
        tags: Free-form labels.
        description: Free-text description.
    """

    # Required
    api_id: str
    name: str
    created_at: datetime
    current_version: str
    versions: tuple[str, ...]
    latest_stable: str
    # Optional
    owner: str = ""
    tags: tuple[str, ...] = ()
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "api_id": self.api_id,
            "name": self.name,
            "created_at": self.created_at.isoformat(),
            "current_version": self.current_version,
            "versions": list(self.versions),
            "latest_stable": self.latest_stable,
            "owner": self.owner,
        }
        if self.tags:
            data["tags"] = list(self.tags)
        if self.description:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Self:
        """Parse a stored API metadata file.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If the timestamp is not timezone-aware.
        """
        return cls(
            api_id=raw["api_id"],
            name=raw.get("name", raw["api_id"]),
            created_at=_parse_timestamp(raw["created_at"]),
            current_version=raw["current_version"],
            versions=tuple(raw["versions"]),
            latest_stable=raw.get("latest_stable", raw["current_version"]),
            owner=raw.get("owner", ""),
            tags=tuple(raw.get("tags") or ()),
            description=raw.get("description", ""),
        )


@dataclass(frozen=True, slots=True)
class AggregateStats:
    """Statistics across every API, taken from each API's current version.

    Attributes:
        api_count: Number of APIs included.
        version_count: Total versions across included APIs.
        endpoint_count: Total endpoints across current versions.
        schema_count: Total schemas across current versions.
        skipped: APIs whose metadata could not be loaded.
    """

    api_count: int = 0
    version_count: int = 0
    endpoint_count: int = 0
    schema_count: int = 0
    skipped: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "api_count": self.api_count,
            "version_count": self.version_count,
            "endpoint_count": self.endpoint_count,
            "schema_count": self.schema_count,
            "skipped": list(self.skipped),
        }
