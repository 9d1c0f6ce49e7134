"""Specification documents: tree helpers, identifiers and load/save."""

from ._ids import (
    ApiId,
    VersionTag,
    is_semantic_tag,
    parse_api_id,
    parse_version_tag,
    timestamp_version_tag,
)
from ._manager import DocumentManager
from ._tree import (
    REF_KEY,
    JsonObject,
    JsonScalar,
    JsonValue,
    TreePath,
    deep_copy,
    escape_segment,
    format_pointer,
    get_at,
    normalize_keys,
    parse_pointer,
    unescape_segment,
    walk_refs,
)

__all__ = [
    "REF_KEY",
    "ApiId",
    "DocumentManager",
    "JsonObject",
    "JsonScalar",
    "JsonValue",
    "TreePath",
    "VersionTag",
    "deep_copy",
    "escape_segment",
    "format_pointer",
    "get_at",
    "is_semantic_tag",
    "normalize_keys",
    "parse_api_id",
    "parse_pointer",
    "parse_version_tag",
    "timestamp_version_tag",
    "unescape_segment",
    "walk_refs",
]
