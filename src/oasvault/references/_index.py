"""Reference index over a specification document.

Enumerates every ``$ref``-bearing node with the tree path to it and groups
usages by reference string in first-seen document order.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from oasvault.document import (
    REF_KEY,
    JsonValue,
    TreePath,
    format_pointer,
    unescape_segment,
    walk_refs,
)
from oasvault.exceptions import ValidationError

__all__ = [
    "COMPONENTS_PREFIX",
    "COMPONENT_TYPES",
    "ReferenceUsage",
    "build_reference_index",
    "component_ref",
    "iter_references",
    "split_component_ref",
]

COMPONENTS_PREFIX = "#/components/"

COMPONENT_TYPES = frozenset({
    "callbacks",
    "examples",
    "headers",
    "links",
    "parameters",
    "requestBodies",
    "responses",
    "schemas",
    "securitySchemes",
})


@dataclass(frozen=True, slots=True)
class ReferenceUsage:
    """One location where a reference string is used.

    Attributes:
        ref: The ``$ref`` value.
        path: Tree path to the mapping that holds the ``$ref`` key.
    """

    ref: str
    path: TreePath

    @property
    def location(self) -> str:
        """The usage location as a JSON pointer."""
        return format_pointer(self.path)

    def to_dict(self) -> dict[str, str]:
        """Serialize as ``{ref, location}``."""
        return {"ref": self.ref, "location": self.location}


def iter_references(document: JsonValue) -> Iterator[ReferenceUsage]:
    """Yield every reference usage in document order."""
    for path, node in walk_refs(document):
        ref = node[REF_KEY]
        if isinstance(ref, str):
            yield ReferenceUsage(ref=ref, path=path)


def build_reference_index(document: JsonValue) -> dict[str, list[ReferenceUsage]]:
    """Map each distinct reference string to its usages.

    Keys appear in first-seen order; usages within a key in document order.
    """
    index: dict[str, list[ReferenceUsage]] = {}
    for usage in iter_references(document):
        index.setdefault(usage.ref, []).append(usage)
    return index


def component_ref(component_type: str, component_name: str) -> str:
    """Build the canonical internal reference for a component.

    Args:
        component_type: Component kind, e.g. ``schemas``.
        component_name: Component name, e.g. ``Widget``.

    Returns:
        ``#/components/<component_type>/<component_name>``.

    Raises:
        ValidationError: If the type is unknown or the name is empty or
            contains ``/``.
    """
    if component_type not in COMPONENT_TYPES:
        msg = (
            f"Unknown component type {component_type!r}; expected one of "
            f"{', '.join(sorted(COMPONENT_TYPES))}"
        )
        raise ValidationError(
            msg, field="component_type", value=component_type, rule="known component type"
        )
    if not component_name or "/" in component_name:
        msg = f"Invalid component name: {component_name!r}"
        raise ValidationError(
            msg,
            field="component_name",
            value=component_name,
            rule="non-empty, no '/'",
        )
    return f"{COMPONENTS_PREFIX}{component_type}/{component_name}"


def split_component_ref(ref: str) -> tuple[str, str] | None:
    """Split an internal component reference into ``(kind, name)``.

    Pointer segments are unescaped. Returns None for references that do not
    start with ``#/components/`` (external or other-document-section
    references). Malformed internal references (missing kind or name) return
    ``(kind, "")`` so that callers treat them as unresolvable.
    """
    if not ref.startswith(COMPONENTS_PREFIX):
        return None
    segments = ref[len(COMPONENTS_PREFIX) :].split("/")
    kind = unescape_segment(segments[0])
    name = unescape_segment(segments[1]) if len(segments) > 1 else ""
    return kind, name
