"""Version registry: API and version records, lifecycle and statistics."""

from oasvault.diff import ChangesSummary

from ._models import (
    AggregateStats,
    ApiRecord,
    ValidationSnapshot,
    VersionRecord,
    VersionStats,
)
from ._registry import VersionRegistry, compute_stats, default_seed_document

__all__ = [
    "AggregateStats",
    "ApiRecord",
    "ChangesSummary",
    "ValidationSnapshot",
    "VersionRecord",
    "VersionRegistry",
    "VersionStats",
    "compute_stats",
    "default_seed_document",
]
