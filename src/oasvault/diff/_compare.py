# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Structural comparison of two specification documents.

Compares endpoints, schemas and security declarations and classifies each
difference as breaking or non-breaking. Pure functions over in-memory
documents; neither input is mutated.

Rule table:

Endpoints
    - operation added: non-breaking
    - operation removed: breaking
    - required parameter removed: breaking; optional parameter removed:
      non-breaking
    - new required parameter: breaking; new optional parameter: non-breaking
    - parameter type or format changed: breaking
    - parameter made required: breaking; made optional: non-breaking
    - request body removed: breaking; required request body added: breaking;
      optional request body added: non-breaking; body made required: breaking
    - success (2xx) response removed: breaking; other response removed or any
      response added: non-breaking
    - success response media type removed: breaking
    - previously-required property removed from a success response schema:
      breaking
    - effective security tightened: breaking; otherwise changed: non-breaking
    - any other operation difference: non-breaking

Schemas
    - added: non-breaking
    - removed while still referenced: breaking; otherwise non-breaking
    - required property removed, enum value removed, type changed, property
      made required, new required property: breaking
    - optional property added or removed, enum value added, property made
      optional, any other difference: non-breaking

Security
    - scheme added: non-breaking
    - scheme removed while still required somewhere: breaking; otherwise
      non-breaking
    - scheme type/location changed: breaking; other scheme edits: non-breaking
    - global requirement changed: breaking if any endpoint relying on it now
      needs credentials it did not need before; otherwise non-breaking
"""

from collections.abc import Iterator
from typing import Any

from oasvault.diff._models import Change, ChangeCategory, ChangeKind, ChangeSeverity
from oasvault.document import REF_KEY, JsonObject, JsonValue, format_pointer
from oasvault.references import COMPONENTS_PREFIX, iter_references, split_component_ref

__all__ = ["HTTP_METHODS", "compare_documents", "endpoint_keys"]

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

# Fields whose change alters how a client presents credentials
_SCHEME_IDENTITY_FIELDS = ("type", "scheme", "in", "name")

_MAX_REF_HOPS = 8

type _Operations = dict[tuple[str, str], tuple[JsonObject, JsonObject]]
type _Requirement = dict[str, frozenset[str]]

BREAKING = ChangeSeverity.BREAKING
NON_BREAKING = ChangeSeverity.NON_BREAKING


# =============================================================================
# Helpers
# =============================================================================


def _mapping(value: JsonValue) -> JsonObject:
    return value if isinstance(value, dict) else {}


def _sequence(value: JsonValue) -> list[JsonValue]:
    return value if isinstance(value, list) else []


def _components(document: JsonObject, kind: str) -> JsonObject:
    return _mapping(_mapping(document.get("components")).get(kind))


def _resolve(document: JsonObject, node: JsonValue, kind: str) -> JsonValue:
    """Follow internal ``#/components/<kind>/<name>`` references to a definition.

    Returns the last node reached when a reference cannot be followed.
    """
    seen: set[str] = set()
    while isinstance(node, dict) and isinstance(node.get(REF_KEY), str):
        ref = node[REF_KEY]
        parts = split_component_ref(ref)
        if parts is None or parts[0] != kind or ref in seen or len(seen) >= _MAX_REF_HOPS:
            return node
        seen.add(ref)
        target = _components(document, kind).get(parts[1])
        if target is None:
            return node
        node = target
    return node


def _render(value: Any) -> str:  # pyright: ignore[reportExplicitAny]
    if value is None:
        return "none"
    return repr(value) if isinstance(value, str) else str(value)


def _type_label(schema: JsonObject) -> str:
    ref = schema.get(REF_KEY)
    return ref if isinstance(ref, str) else _render(schema.get("type"))


def endpoint_keys(document: JsonObject) -> list[tuple[str, str]]:
    """Return the ``(path, method)`` pairs of a document, sorted."""
    return sorted(_operations(document))


def _operations(document: JsonObject) -> _Operations:
    operations: _Operations = {}
    for path, item in _mapping(document.get("paths")).items():
        if not isinstance(item, dict):
            continue
        for key, operation in item.items():
            method = key.lower()
            if method in HTTP_METHODS and isinstance(operation, dict):
                operations[path, method] = (item, operation)
    return operations


def _target(path: str, method: str) -> str:
    return f"{method.upper()} {path}"


# =============================================================================
# Endpoint Comparison
# =============================================================================


class _EndpointDiff:
    """Collects changes for one operation present in both documents."""

    __slots__ = ("changes", "location", "new_doc", "old_doc", "target")

    def __init__(
        self, old_doc: JsonObject, new_doc: JsonObject, path: str, method: str
    ) -> None:
        self.old_doc = old_doc
        self.new_doc = new_doc
        self.target = _target(path, method)
        self.location = format_pointer(("paths", path, method))
        self.changes: list[Change] = []

    def add(self, severity: ChangeSeverity, description: str) -> None:
        self.changes.append(
            Change(
                category=ChangeCategory.ENDPOINT,
                kind=ChangeKind.MODIFIED,
                severity=severity,
                target=self.target,
                description=description,
                location=self.location,
            )
        )

    # -- parameters ----------------------------------------------------------

    def _parameters(
        self, document: JsonObject, item: JsonObject, operation: JsonObject
    ) -> dict[tuple[str, str], JsonObject]:
        """Merge path-level and operation-level parameters keyed by (in, name)."""
        merged: dict[tuple[str, str], JsonObject] = {}
        for raw in [*_sequence(item.get("parameters")), *_sequence(operation.get("parameters"))]:
            parameter = _resolve(document, raw, "parameters")
            if not isinstance(parameter, dict):
                continue
            name, location = parameter.get("name"), parameter.get("in")
            if isinstance(name, str) and isinstance(location, str):
                merged[location, name] = parameter
        return merged

    @staticmethod
    def _required(parameter: JsonObject) -> bool:
        return parameter.get("in") == "path" or parameter.get("required") is True

    def _type_of(self, document: JsonObject, parameter: JsonObject) -> tuple[Any, Any]:  # pyright: ignore[reportExplicitAny]
        schema = _mapping(_resolve(document, parameter.get("schema"), "schemas"))
        return (
            schema.get("type", parameter.get("type")),
            schema.get("format", parameter.get("format")),
        )

    def compare_parameters(
        self,
        old: tuple[JsonObject, JsonObject],
        new: tuple[JsonObject, JsonObject],
    ) -> None:
        old_params = self._parameters(self.old_doc, *old)
        new_params = self._parameters(self.new_doc, *new)

        for key in sorted(old_params.keys() | new_params.keys()):
            location, name = key
            label = f"parameter '{name}' ({location})"
            title = f"Parameter '{name}' ({location})"

            if key not in new_params:
                if self._required(old_params[key]):
                    self.add(BREAKING, f"Required {label} removed")
                else:
                    self.add(NON_BREAKING, f"Optional {label} removed")
                continue

            if key not in old_params:
                if self._required(new_params[key]):
                    self.add(BREAKING, f"New required {label}")
                else:
                    self.add(NON_BREAKING, f"New optional {label}")
                continue

            before, after = old_params[key], new_params[key]
            old_type = self._type_of(self.old_doc, before)
            new_type = self._type_of(self.new_doc, after)
            if old_type != new_type:
                self.add(
                    BREAKING,
                    f"Type of {label} changed from {_format_type(old_type)} "
                    f"to {_format_type(new_type)}",
                )

            was_required, is_required = self._required(before), self._required(after)
            if is_required and not was_required:
                self.add(BREAKING, f"{title} is now required")
            elif was_required and not is_required:
                self.add(NON_BREAKING, f"{title} is no longer required")

    # -- request body --------------------------------------------------------

    def compare_request_body(self, old_op: JsonObject, new_op: JsonObject) -> None:
        before = _resolve(self.old_doc, old_op.get("requestBody"), "requestBodies")
        after = _resolve(self.new_doc, new_op.get("requestBody"), "requestBodies")

        if before is not None and after is None:
            self.add(BREAKING, "Request body removed")
        elif before is None and after is not None:
            if _mapping(after).get("required") is True:
                self.add(BREAKING, "Required request body added")
            else:
                self.add(NON_BREAKING, "Optional request body added")
        elif before is not None and after is not None:
            was_required = _mapping(before).get("required") is True
            is_required = _mapping(after).get("required") is True
            if is_required and not was_required:
                self.add(BREAKING, "Request body is now required")
            elif was_required and not is_required:
                self.add(NON_BREAKING, "Request body is no longer required")

    # -- responses -----------------------------------------------------------

    def compare_responses(self, old_op: JsonObject, new_op: JsonObject) -> None:
        old_responses = _mapping(old_op.get("responses"))
        new_responses = _mapping(new_op.get("responses"))

        for code in sorted(old_responses.keys() | new_responses.keys()):
            success = code.startswith("2")
            if code not in new_responses:
                if success:
                    self.add(BREAKING, f"Success response {code} removed")
                else:
                    self.add(NON_BREAKING, f"Response {code} removed")
            elif code not in old_responses:
                self.add(NON_BREAKING, f"Response {code} added")
            elif success:
                self._compare_success_response(
                    code, old_responses[code], new_responses[code]
                )

    def _compare_success_response(
        self, code: str, old_raw: JsonValue, new_raw: JsonValue
    ) -> None:
        old_content = _mapping(_mapping(_resolve(self.old_doc, old_raw, "responses")).get("content"))
        new_content = _mapping(_mapping(_resolve(self.new_doc, new_raw, "responses")).get("content"))

        for media_type, old_media in old_content.items():
            if media_type not in new_content:
                self.add(BREAKING, f"Response {code} no longer returns {media_type}")
                continue

            old_schema = _mapping(old_media).get("schema")
            new_schema = _mapping(new_content[media_type]).get("schema")
            if _same_ref(old_schema, new_schema) or _same_object_ref(
                self.old_doc, old_schema, self.new_doc, new_schema
            ):
                # Left to the schema-level comparison
                continue

            old_required, new_properties = (
                _required_properties(self.old_doc, old_schema),
                _properties(self.new_doc, new_schema),
            )
            for name in old_required:
                if name not in new_properties:
                    self.add(
                        BREAKING,
                        f"Required property '{name}' removed from response "
                        f"{code} {media_type}",
                    )

    # -- security ------------------------------------------------------------

    def compare_security(self, old_op: JsonObject, new_op: JsonObject) -> None:
        if "security" not in old_op and "security" not in new_op:
            # Inherited from the global requirement; compared at document level
            return

        before = _requirements(old_op.get("security", self.old_doc.get("security")))
        after = _requirements(new_op.get("security", self.new_doc.get("security")))
        if _sorted_requirements(before) == _sorted_requirements(after):
            return
        if _tightened(before, after):
            self.add(BREAKING, "Security requirements tightened")
        else:
            self.add(NON_BREAKING, "Security requirements changed")


def _format_type(value: tuple[Any, Any]) -> str:  # pyright: ignore[reportExplicitAny]
    type_, format_ = value
    rendered = _render(type_)
    return f"{rendered} ({format_})" if format_ is not None else rendered


def _same_ref(old: JsonValue, new: JsonValue) -> bool:
    return (
        isinstance(old, dict)
        and isinstance(new, dict)
        and isinstance(old.get(REF_KEY), str)
        and old.get(REF_KEY) == new.get(REF_KEY)
    )


def _object_schema(document: JsonObject, schema: JsonValue) -> JsonObject:
    """Resolve a schema, descending into ``items`` for array schemas."""
    resolved = _mapping(_resolve(document, schema, "schemas"))
    if resolved.get("type") == "array" and "items" in resolved:
        return _mapping(_resolve(document, resolved["items"], "schemas"))
    return resolved


def _object_ref(document: JsonObject, schema: JsonValue) -> str | None:
    """Return the ``$ref`` of the node ``_object_schema`` resolves, if any."""
    node = schema
    resolved = _mapping(_resolve(document, schema, "schemas"))
    if resolved.get("type") == "array" and "items" in resolved:
        node = resolved["items"]
    ref = _mapping(node).get(REF_KEY)
    return ref if isinstance(ref, str) else None


def _same_object_ref(
    old_doc: JsonObject, old: JsonValue, new_doc: JsonObject, new: JsonValue
) -> bool:
    ref = _object_ref(old_doc, old)
    return ref is not None and ref == _object_ref(new_doc, new)


def _required_properties(document: JsonObject, schema: JsonValue) -> list[str]:
    required = _sequence(_object_schema(document, schema).get("required"))
    return [name for name in required if isinstance(name, str)]


def _properties(document: JsonObject, schema: JsonValue) -> JsonObject:
    return _mapping(_object_schema(document, schema).get("properties"))


def _compare_endpoints(old: JsonObject, new: JsonObject) -> Iterator[Change]:
    old_ops, new_ops = _operations(old), _operations(new)

    for path, method in sorted(old_ops.keys() | new_ops.keys()):
        target = _target(path, method)
        location = format_pointer(("paths", path, method))

        if (path, method) not in new_ops:
            yield Change(
                ChangeCategory.ENDPOINT,
                ChangeKind.REMOVED,
                BREAKING,
                target,
                "Endpoint removed",
                location,
            )
            continue

        if (path, method) not in old_ops:
            yield Change(
                ChangeCategory.ENDPOINT,
                ChangeKind.ADDED,
                NON_BREAKING,
                target,
                "Endpoint added",
                location,
            )
            continue

        old_item, old_op = old_ops[path, method]
        new_item, new_op = new_ops[path, method]
        diff = _EndpointDiff(old, new, path, method)
        diff.compare_parameters((old_item, old_op), (new_item, new_op))
        diff.compare_request_body(old_op, new_op)
        diff.compare_responses(old_op, new_op)
        diff.compare_security(old_op, new_op)
        if not diff.changes and old_op != new_op:
            diff.add(NON_BREAKING, "Operation definition changed")
        yield from diff.changes


# =============================================================================
# Schema Comparison
# =============================================================================


def _schema_change(
    name: str,
    kind: ChangeKind,
    severity: ChangeSeverity,
    description: str,
    *suffix: str,
) -> Change:
    return Change(
        ChangeCategory.SCHEMA,
        kind,
        severity,
        name,
        description,
        format_pointer(("components", "schemas", name, *suffix)),
    )


def _reference_count(document: JsonObject, ref: str) -> int:
    return sum(1 for usage in iter_references(document) if usage.ref == ref)


def _enum_changes(
    name: str,
    old_enum: list[JsonValue],
    new_enum: list[JsonValue],
    subject: str,
    *suffix: str,
) -> Iterator[Change]:
    for value in old_enum:
        if value not in new_enum:
            yield _schema_change(
                name,
                ChangeKind.MODIFIED,
                BREAKING,
                f"Enum value {_render(value)} removed from {subject}",
                *suffix,
            )
    for value in new_enum:
        if value not in old_enum:
            yield _schema_change(
                name,
                ChangeKind.MODIFIED,
                NON_BREAKING,
                f"Enum value {_render(value)} added to {subject}",
                *suffix,
            )


def _type_key(schema: JsonObject) -> tuple[Any, Any]:  # pyright: ignore[reportExplicitAny]
    return schema.get("type"), schema.get(REF_KEY)


def _compare_properties(
    name: str, old: JsonObject, new: JsonObject
) -> Iterator[Change]:
    """Compare the ``properties``/``required`` declarations of two schemas."""
    old_props = _mapping(old.get("properties"))
    new_props = _mapping(new.get("properties"))
    old_required = [p for p in _sequence(old.get("required")) if isinstance(p, str)]
    new_required = [p for p in _sequence(new.get("required")) if isinstance(p, str)]

    def change(severity: ChangeSeverity, description: str, prop: str) -> Change:
        return _schema_change(
            name, ChangeKind.MODIFIED, severity, description, "properties", prop
        )

    for prop in old_required:
        if prop not in new_props:
            yield change(BREAKING, f"Required property '{prop}' removed", prop)
        elif prop not in new_required:
            yield change(NON_BREAKING, f"Property '{prop}' is no longer required", prop)

    for prop in old_props:
        if prop not in old_required and prop not in new_props:
            yield change(NON_BREAKING, f"Optional property '{prop}' removed", prop)

    for prop, raw in new_props.items():
        if prop not in old_props:
            if prop in new_required:
                yield change(BREAKING, f"New required property '{prop}'", prop)
            else:
                yield change(NON_BREAKING, f"Optional property '{prop}' added", prop)
            continue

        before, after = _mapping(old_props[prop]), _mapping(raw)
        if prop in new_required and prop not in old_required:
            yield change(BREAKING, f"Property '{prop}' is now required", prop)
        if _type_key(before) != _type_key(after):
            yield change(
                BREAKING,
                f"Type of property '{prop}' changed from {_type_label(before)} "
                f"to {_type_label(after)}",
                prop,
            )
        yield from _enum_changes(
            name,
            _sequence(before.get("enum")),
            _sequence(after.get("enum")),
            f"property '{prop}'",
            "properties",
            prop,
        )


def _compare_schema(name: str, old: JsonObject, new: JsonObject) -> list[Change]:
    changes: list[Change] = []

    if old.get("type") != new.get("type"):
        changes.append(
            _schema_change(
                name,
                ChangeKind.MODIFIED,
                BREAKING,
                f"Type changed from {_type_label(old)} to {_type_label(new)}",
            )
        )

    changes.extend(
        _enum_changes(
            name, _sequence(old.get("enum")), _sequence(new.get("enum")), "schema"
        )
    )
    changes.extend(_compare_properties(name, old, new))

    if not changes and old != new:
        changes.append(
            _schema_change(
                name, ChangeKind.MODIFIED, NON_BREAKING, "Schema definition changed"
            )
        )
    return changes


def _compare_schemas(old: JsonObject, new: JsonObject) -> Iterator[Change]:
    old_schemas = _components(old, "schemas")
    new_schemas = _components(new, "schemas")

    for name in sorted(old_schemas.keys() | new_schemas.keys()):
        if name not in old_schemas:
            yield _schema_change(name, ChangeKind.ADDED, NON_BREAKING, "Schema added")
            continue

        if name not in new_schemas:
            uses = _reference_count(new, f"{COMPONENTS_PREFIX}schemas/{name}")
            if uses:
                yield _schema_change(
                    name,
                    ChangeKind.REMOVED,
                    BREAKING,
                    f"Schema removed but still referenced at {uses} location(s)",
                )
            else:
                yield _schema_change(
                    name,
                    ChangeKind.REMOVED,
                    NON_BREAKING,
                    "Schema removed (no remaining references)",
                )
            continue

        if old_schemas[name] != new_schemas[name]:
            yield from _compare_schema(
                name, _mapping(old_schemas[name]), _mapping(new_schemas[name])
            )


# =============================================================================
# Security Comparison
# =============================================================================


def _requirements(value: JsonValue) -> list[_Requirement]:
    """Normalize a security requirement array.

    An absent or empty array, or an empty alternative, means anonymous access.
    """
    alternatives = [
        {
            scheme: frozenset(s for s in _sequence(scopes) if isinstance(s, str))
            for scheme, scopes in alternative.items()
        }
        for alternative in _sequence(value)
        if isinstance(alternative, dict)
    ]
    return alternatives or [{}]


def _sorted_requirements(requirements: list[_Requirement]) -> list[list[tuple[str, list[str]]]]:
    return sorted(
        sorted((scheme, sorted(scopes)) for scheme, scopes in alternative.items())
        for alternative in requirements
    )


def _satisfied_by(candidate: _Requirement, held: _Requirement) -> bool:
    """Whether a client holding ``held`` credentials satisfies ``candidate``."""
    return all(
        scheme in held and scopes <= held[scheme] for scheme, scopes in candidate.items()
    )


def _tightened(before: list[_Requirement], after: list[_Requirement]) -> bool:
    """Whether some previously accepted alternative no longer satisfies any new one."""
    return any(not any(_satisfied_by(new, old) for new in after) for old in before)


def _referenced_schemes(document: JsonObject) -> set[str]:
    names: set[str] = set()
    for requirement in _requirements(document.get("security")):
        names.update(requirement)
    for _, operation in _operations(document).values():
        if "security" in operation:
            for requirement in _requirements(operation["security"]):
                names.update(requirement)
    return names


def _security_change(
    target: str, kind: ChangeKind, severity: ChangeSeverity, description: str, location: str
) -> Change:
    return Change(ChangeCategory.SECURITY, kind, severity, target, description, location)


def _compare_security(old: JsonObject, new: JsonObject) -> Iterator[Change]:
    old_schemes = _components(old, "securitySchemes")
    new_schemes = _components(new, "securitySchemes")
    still_required = _referenced_schemes(new)

    for name in sorted(old_schemes.keys() | new_schemes.keys()):
        location = format_pointer(("components", "securitySchemes", name))
        if name not in old_schemes:
            yield _security_change(
                name, ChangeKind.ADDED, NON_BREAKING, "Security scheme added", location
            )
        elif name not in new_schemes:
            if name in still_required:
                yield _security_change(
                    name,
                    ChangeKind.REMOVED,
                    BREAKING,
                    "Security scheme removed but still required",
                    location,
                )
            else:
                yield _security_change(
                    name,
                    ChangeKind.REMOVED,
                    NON_BREAKING,
                    "Security scheme removed",
                    location,
                )
        elif old_schemes[name] != new_schemes[name]:
            before = _mapping(_resolve(old, old_schemes[name], "securitySchemes"))
            after = _mapping(_resolve(new, new_schemes[name], "securitySchemes"))
            if any(before.get(f) != after.get(f) for f in _SCHEME_IDENTITY_FIELDS):
                yield _security_change(
                    name,
                    ChangeKind.MODIFIED,
                    BREAKING,
                    "Security scheme type or location changed",
                    location,
                )
            else:
                yield _security_change(
                    name,
                    ChangeKind.MODIFIED,
                    NON_BREAKING,
                    "Security scheme definition changed",
                    location,
                )

    before = _requirements(old.get("security"))
    after = _requirements(new.get("security"))
    if _sorted_requirements(before) == _sorted_requirements(after):
        return

    old_ops, new_ops = _operations(old), _operations(new)
    inheriting = [
        key
        for key in old_ops.keys() & new_ops.keys()
        if "security" not in old_ops[key][1] and "security" not in new_ops[key][1]
    ]
    location = format_pointer(("security",))
    if inheriting and _tightened(before, after):
        yield _security_change(
            "global",
            ChangeKind.MODIFIED,
            BREAKING,
            f"Global security requirements tightened for {len(inheriting)} endpoint(s)",
            location,
        )
    else:
        yield _security_change(
            "global",
            ChangeKind.MODIFIED,
            NON_BREAKING,
            "Global security requirements changed",
            location,
        )


# =============================================================================
# Entry Point
# =============================================================================


def compare_documents(old: JsonObject, new: JsonObject) -> list[Change]:
    """Compare two documents and classify every difference.

    Args:
        old: The base document.
        new: The target document.

    Returns:
        Changes in stable order: endpoints by (path, method), then schemas
        by name, then security schemes by name, then the global requirement.
        Comparing a document with itself yields no changes.
    """
    return [
        *_compare_endpoints(old, new),
        *_compare_schemas(old, new),
        *_compare_security(old, new),
    ]
