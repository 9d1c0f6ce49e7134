"""Identifier types and validating factories.

``ApiId`` and ``VersionTag`` are nominal string types. Services accept only
values produced by :func:`parse_api_id` and :func:`parse_version_tag`, which
reject malformed input with :class:`~oasvault.exceptions.ValidationError`.
"""

import re
from datetime import UTC, datetime
from typing import NewType

from oasvault.exceptions import ValidationError

__all__ = [
    "ApiId",
    "VersionTag",
    "is_semantic_tag",
    "parse_api_id",
    "parse_version_tag",
    "timestamp_version_tag",
]

ApiId = NewType("ApiId", str)
VersionTag = NewType("VersionTag", str)

# =============================================================================
# Patterns
# =============================================================================

_API_ID_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_SEMANTIC_TAG_PATTERN = re.compile(
    r"^v(0|[1-9][0-9]*)\.(0|[1-9][0-9]*)\.(0|[1-9][0-9]*)$"
)
_TIMESTAMP_TAG_PATTERN = re.compile(r"^v[0-9]{8}-[0-9]{6}$")

_MAX_API_ID_LENGTH = 64


def parse_api_id(value: str) -> ApiId:
    """Validate an API identifier.

    Args:
        value: Candidate identifier, e.g. ``"sample-api"``.

    Returns:
        The value as an ``ApiId``.

    Raises:
        ValidationError: If the value is empty, too long, or not lowercase
            alphanumeric words joined by single hyphens.
    """
    if not value:
        msg = "API id cannot be empty"
        raise ValidationError(msg, field="api_id", value=value, rule="non-empty")

    if len(value) > _MAX_API_ID_LENGTH:
        msg = f"API id exceeds {_MAX_API_ID_LENGTH} characters: {value!r}"
        raise ValidationError(
            msg, field="api_id", value=value, rule=f"max {_MAX_API_ID_LENGTH} chars"
        )

    if not _API_ID_PATTERN.fullmatch(value):
        msg = (
            f"Invalid API id {value!r}: use lowercase letters, digits and "
            "single hyphens between them"
        )
        raise ValidationError(
            msg, field="api_id", value=value, rule="lowercase alphanumeric and hyphens"
        )

    return ApiId(value)


def parse_version_tag(value: str) -> VersionTag:
    """Validate a version tag.

    Accepts the semantic form ``v<major>.<minor>.<patch>`` and the timestamp
    form ``v<YYYYMMDD>-<HHMMSS>``.

    Raises:
        ValidationError: If the value matches neither form.
    """
    if _SEMANTIC_TAG_PATTERN.fullmatch(value) or _TIMESTAMP_TAG_PATTERN.fullmatch(value):
        return VersionTag(value)

    msg = (
        f"Invalid version tag {value!r}: expected v<major>.<minor>.<patch> "
        "or v<YYYYMMDD>-<HHMMSS>"
    )
    raise ValidationError(
        msg, field="version", value=value, rule="semantic or timestamp tag"
    )


def is_semantic_tag(tag: VersionTag) -> bool:
    """Check whether a tag uses the ``v<major>.<minor>.<patch>`` form."""
    return _SEMANTIC_TAG_PATTERN.fullmatch(tag) is not None


def timestamp_version_tag(now: datetime | None = None) -> VersionTag:
    """Build a timestamp-form tag (``v20250101-120000``) for the given UTC time."""
    moment = now or datetime.now(UTC)
    return VersionTag(moment.strftime("v%Y%m%d-%H%M%S"))
