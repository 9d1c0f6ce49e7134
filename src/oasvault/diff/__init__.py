"""Diff engine and breaking-change classification."""

from ._compare import HTTP_METHODS, compare_documents, endpoint_keys
from ._engine import DiffEngine
from ._models import (
    Change,
    ChangeCategory,
    ChangeKind,
    ChangeSeverity,
    ChangesSummary,
    DiffResult,
    DiffSummary,
)

__all__ = [
    "HTTP_METHODS",
    "Change",
    "ChangeCategory",
    "ChangeKind",
    "ChangeSeverity",
    "ChangesSummary",
    "DiffEngine",
    "DiffResult",
    "DiffSummary",
    "compare_documents",
    "endpoint_keys",
]
