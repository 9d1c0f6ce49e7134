"""Reference index, validator/rewriter and stored-document reference service."""

from ._index import (
    COMPONENT_TYPES,
    COMPONENTS_PREFIX,
    ReferenceUsage,
    build_reference_index,
    component_ref,
    iter_references,
    split_component_ref,
)
from ._service import ReferenceService
from ._validator import (
    BrokenReference,
    ReferenceValidationResult,
    RewriteResult,
    find_usages,
    resolves,
    rewrite_references,
    validate_references,
)

__all__ = [
    "COMPONENTS_PREFIX",
    "COMPONENT_TYPES",
    "BrokenReference",
    "ReferenceService",
    "ReferenceUsage",
    "ReferenceValidationResult",
    "RewriteResult",
    "build_reference_index",
    "component_ref",
    "find_usages",
    "iter_references",
    "resolves",
    "rewrite_references",
    "split_component_ref",
    "validate_references",
]
