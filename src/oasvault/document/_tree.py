"""JSON-value tree helpers for specification documents.

A specification document is an arbitrary tree of mappings, sequences and
scalars. The helpers here walk that tree by explicit recursive descent and
address nodes with RFC 6901 JSON pointers.
"""

from collections.abc import Iterator

from oasvault.exceptions import NotFoundError, ValidationError

__all__ = [
    "REF_KEY",
    "JsonObject",
    "JsonScalar",
    "JsonValue",
    "TreePath",
    "deep_copy",
    "escape_segment",
    "format_pointer",
    "get_at",
    "normalize_keys",
    "parse_pointer",
    "unescape_segment",
    "walk_refs",
]

type JsonScalar = str | int | float | bool | None
type JsonValue = JsonScalar | list[JsonValue] | dict[str, JsonValue]
type JsonObject = dict[str, JsonValue]
type TreePath = tuple[str | int, ...]

REF_KEY = "$ref"


# =============================================================================
# JSON Pointers
# =============================================================================


def escape_segment(segment: str | int) -> str:
    """Escape one pointer segment (``~`` becomes ``~0``, ``/`` becomes ``~1``)."""
    return str(segment).replace("~", "~0").replace("/", "~1")


def unescape_segment(segment: str) -> str:
    """Reverse :func:`escape_segment`."""
    return segment.replace("~1", "/").replace("~0", "~")


def format_pointer(path: TreePath) -> str:
    """Format a tree path as a JSON pointer (``""`` for the root)."""
    return "".join(f"/{escape_segment(segment)}" for segment in path)


def parse_pointer(pointer: str) -> tuple[str, ...]:
    """Split a JSON pointer into unescaped segments.

    Raises:
        ValidationError: If a non-empty pointer does not start with ``/``.
    """
    if pointer == "":
        return ()
    if not pointer.startswith("/"):
        msg = f"JSON pointer must start with '/': {pointer!r}"
        raise ValidationError(msg, field="pointer", value=pointer, rule="RFC 6901")
    return tuple(unescape_segment(segment) for segment in pointer[1:].split("/"))


def get_at(document: JsonValue, path: TreePath | tuple[str, ...]) -> JsonValue:
    """Return the node at ``path``.

    String segments index sequences when they are decimal integers, so paths
    parsed from pointers work as well as walk paths.

    Raises:
        NotFoundError: If any segment does not resolve.
    """
    node = document
    for segment in path:
        match node:
            case dict() if str(segment) in node:
                node = node[str(segment)]
            case list() if _sequence_index(segment, len(node)) is not None:
                node = node[int(segment)]
            case _:
                pointer = format_pointer(tuple(path))
                msg = f"No node at {pointer}"
                raise NotFoundError(msg, entity_type="pointer", entity_id=pointer)
    return node


def _sequence_index(segment: str | int, length: int) -> int | None:
    if isinstance(segment, str):
        if not segment.isdigit():
            return None
        segment = int(segment)
    return segment if 0 <= segment < length else None


# =============================================================================
# Traversal
# =============================================================================


def walk_refs(
    node: JsonValue,
    path: TreePath = (),
) -> Iterator[tuple[TreePath, JsonObject]]:
    """Yield every mapping that carries a string ``$ref``, in document order.

    Descends uniformly into mappings and sequences, including the siblings of
    a ``$ref`` key and combinators such as ``allOf``/``oneOf``/``anyOf``.

    Yields:
        ``(path, mapping)`` pairs where ``path`` addresses the mapping.
    """
    match node:
        case dict():
            if isinstance(node.get(REF_KEY), str):
                yield path, node
            for key, child in node.items():
                if key == REF_KEY:
                    continue
                yield from walk_refs(child, (*path, key))
        case list():
            for index, child in enumerate(node):
                yield from walk_refs(child, (*path, index))
        case _:
            return


def deep_copy(value: JsonValue) -> JsonValue:
    """Return a structural copy sharing no mutable containers with ``value``."""
    match value:
        case dict():
            return {key: deep_copy(child) for key, child in value.items()}
        case list():
            return [deep_copy(child) for child in value]
        case _:
            return value


def normalize_keys(value: object) -> JsonValue:
    """Coerce mapping keys to strings throughout a parsed tree.

    YAML parses unquoted keys such as response codes (``200:``) as integers;
    JSON semantics require string keys.
    """
    match value:
        case dict():
            return {str(key): normalize_keys(child) for key, child in value.items()}
        case list() | tuple():
            return [normalize_keys(child) for child in value]
        case str() | int() | float() | bool() | None:
            return value
        case _:
            # Dates and timestamps from YAML
            return str(value)
