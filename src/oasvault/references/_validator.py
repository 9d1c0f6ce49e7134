"""Reference validation, usage lookup and rewriting.

Pure in-memory operations over a parsed document. References are compared by
exact string equality; no normalization of escapes or trailing slashes.
"""

from dataclasses import dataclass
from typing import Any

from oasvault.document import REF_KEY, JsonObject, JsonValue, format_pointer, walk_refs
from oasvault.exceptions import ValidationError
from oasvault.references._index import (
    ReferenceUsage,
    build_reference_index,
    component_ref,
    iter_references,
    split_component_ref,
)

__all__ = [
    "BrokenReference",
    "ReferenceValidationResult",
    "RewriteResult",
    "find_usages",
    "resolves",
    "rewrite_references",
    "validate_references",
]


@dataclass(frozen=True, slots=True)
class BrokenReference:
    """An internal reference that does not resolve.

    Attributes:
        ref: The unresolvable reference string.
        locations: JSON pointers of every usage, in document order.
    """

    ref: str
    locations: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        return {"ref": self.ref, "locations": list(self.locations)}


@dataclass(frozen=True, slots=True)
class ReferenceValidationResult:
    """Outcome of validating every reference in a document.

    Attributes:
        valid: True when no internal reference is broken.
        broken: One entry per distinct broken reference, first-seen order.
        checked: Number of distinct internal references checked.
    """

    valid: bool
    broken: tuple[BrokenReference, ...] = ()
    checked: int = 0

    @property
    def broken_count(self) -> int:
        """Number of distinct broken references."""
        return len(self.broken)

    def to_dict(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        return {
            "valid": self.valid,
            "broken": [entry.to_dict() for entry in self.broken],
            "checked": self.checked,
        }


@dataclass(frozen=True, slots=True)
class RewriteResult:
    """Outcome of rewriting one reference string to another.

    Attributes:
        count: Number of ``$ref`` values rewritten.
        locations: JSON pointers of the rewritten usages, in document order.
    """

    count: int
    locations: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        return {"count": self.count, "locations": list(self.locations)}


def find_usages(
    document: JsonValue, component_type: str, component_name: str
) -> list[ReferenceUsage]:
    """Find every usage of ``#/components/<component_type>/<component_name>``.

    Args:
        document: The specification document.
        component_type: Component kind, e.g. ``schemas``.
        component_name: Component name.

    Returns:
        Usages in document order. Empty when the component is unused.

    Raises:
        ValidationError: If the component type or name is malformed.
    """
    target = component_ref(component_type, component_name)
    return [usage for usage in iter_references(document) if usage.ref == target]


def resolves(document: JsonValue, ref: str) -> bool:
    """Check whether an internal reference names an existing component.

    References outside ``#/components/`` are treated as resolvable.
    """
    parts = split_component_ref(ref)
    if parts is None:
        return True

    kind, name = parts
    components = document.get("components") if isinstance(document, dict) else None
    if not isinstance(components, dict):
        return False
    section = components.get(kind)
    return isinstance(section, dict) and bool(name) and name in section


def validate_references(document: JsonValue) -> ReferenceValidationResult:
    """Report internal references with no matching component definition.

    External references are never reported. Output has one entry per distinct
    broken reference listing every usage location.
    """
    broken: list[BrokenReference] = []
    checked = 0
    for ref, usages in build_reference_index(document).items():
        if split_component_ref(ref) is None:
            continue
        checked += 1
        if not resolves(document, ref):
            broken.append(
                BrokenReference(
                    ref=ref, locations=tuple(usage.location for usage in usages)
                )
            )

    return ReferenceValidationResult(
        valid=not broken, broken=tuple(broken), checked=checked
    )


def rewrite_references(document: JsonObject, old_ref: str, new_ref: str) -> RewriteResult:
    """Replace every ``$ref`` exactly equal to ``old_ref`` with ``new_ref`` in place.

    ``new_ref`` is not checked for resolvability; run
    :func:`validate_references` afterwards when that matters.

    Raises:
        ValidationError: If either reference string is empty.
    """
    for field_name, value in (("old_ref", old_ref), ("new_ref", new_ref)):
        if not value or not value.strip():
            msg = f"{field_name} cannot be empty"
            raise ValidationError(msg, field=field_name, value=value, rule="non-empty")

    locations: list[str] = []
    for path, node in walk_refs(document):
        if node[REF_KEY] == old_ref:
            node[REF_KEY] = new_ref
            locations.append(format_pointer(path))

    return RewriteResult(count=len(locations), locations=tuple(locations))
