# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Specification document load/save over the document store.

Each version's document lives at ``<api>/<tag>/spec.yaml`` or
``<api>/<tag>/spec.json``. Only one of the two exists at a time; loading
prefers YAML.
"""

from pathlib import Path
from typing import Final, cast

import orjson
import yaml
from structlog.typing import FilteringBoundLogger

from oasvault.config import DocumentFormat
from oasvault.document._ids import ApiId, VersionTag
from oasvault.document._tree import JsonObject, normalize_keys
from oasvault.exceptions import NotFoundError, StorageError, StorageParseError
from oasvault.storage import FileSystemStore
from oasvault.utils import create_null_logger

__all__ = ["DocumentManager"]

_DOCUMENT_STEM = "spec"

# Lookup order when loading
_LOAD_ORDER = (DocumentFormat.YAML, DocumentFormat.JSON)


class DocumentManager:
    """Loads and saves specification documents for API versions.

    Attributes:
        _store: Byte store holding the documents.
        _default_format: Format used when saving a document with no prior file.
        _logger: Logger for document events.
    """

    __slots__: Final = ("_default_format", "_logger", "_store")

    _store: FileSystemStore
    _default_format: DocumentFormat
    _logger: FilteringBoundLogger

    def __init__(
        self,
        store: FileSystemStore,
        *,
        default_format: DocumentFormat = DocumentFormat.YAML,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the document manager.

        Args:
            store: Byte store holding the documents.
            default_format: Format for documents saved without an existing file.
            logger: Logger for document events. Defaults to a null logger.
        """
        self._store = store
        self._default_format = default_format
        self._logger = logger or create_null_logger()

    @property
    def store(self) -> FileSystemStore:
        """The underlying byte store."""
        return self._store

    @staticmethod
    def document_key(api_id: ApiId, tag: VersionTag, fmt: DocumentFormat) -> str:
        """Return the store key of a version's document in the given format."""
        return f"{api_id}/{tag}/{_DOCUMENT_STEM}.{fmt.value}"

    def lock_path(self, api_id: ApiId, tag: VersionTag) -> Path:
        """Return the path whose write lock guards a version's document.

        Independent of the stored format so that a format switch is covered by
        the same lock.
        """
        return self._store.path_for(f"{api_id}/{tag}/{_DOCUMENT_STEM}")

    def stored_format(self, api_id: ApiId, tag: VersionTag) -> DocumentFormat | None:
        """Return the format a version's document is stored in, or None."""
        for fmt in _LOAD_ORDER:
            if self._store.exists(self.document_key(api_id, tag, fmt)):
                return fmt
        return None

    def document_exists(self, api_id: ApiId, tag: VersionTag) -> bool:
        """Check whether a document is stored for the version."""
        return self.stored_format(api_id, tag) is not None

    def load_document(
        self, api_id: ApiId, tag: VersionTag
    ) -> tuple[JsonObject, DocumentFormat]:
        """Load and parse a version's document.

        Args:
            api_id: The API identifier.
            tag: The version tag.

        Returns:
            Tuple of (document, source format).

        Raises:
            NotFoundError: If no document is stored for the version.
            StorageParseError: If the stored content is not a YAML/JSON mapping.
            StorageError: If the read fails.
        """
        fmt = self.stored_format(api_id, tag)
        if fmt is None:
            msg = f"No document stored for {api_id} {tag}"
            raise NotFoundError(
                msg, entity_type="document", api_id=api_id, version=tag
            )

        key = self.document_key(api_id, tag, fmt)
        content = self._store.read(key)
        document = _parse(content, fmt, self._store.path_for(key))
        self._logger.debug("document_loaded", api_id=api_id, version=tag, format=fmt)
        return document, fmt

    def save_document(
        self,
        api_id: ApiId,
        tag: VersionTag,
        document: JsonObject,
        fmt: DocumentFormat | None = None,
    ) -> DocumentFormat:
        """Atomically save a version's document.

        Callers mutating an existing document must hold the write lock for
        :meth:`lock_path` across the load-modify-save cycle.

        Args:
            api_id: The API identifier.
            tag: The version tag.
            document: The document to persist.
            fmt: Target format. Defaults to the currently stored format, else
                the configured default.

        Returns:
            The format the document was written in.

        Raises:
            StorageError: If serialization or the write fails.
        """
        previous = self.stored_format(api_id, tag)
        target = fmt or previous or self._default_format

        key = self.document_key(api_id, tag, target)
        self._store.write(key, _serialize(document, target, self._store.path_for(key)))

        if previous is not None and previous != target:
            self._store.delete(self.document_key(api_id, tag, previous))

        self._logger.debug("document_saved", api_id=api_id, version=tag, format=target)
        return target

    def delete_document(self, api_id: ApiId, tag: VersionTag) -> None:
        """Delete a version's document.

        Raises:
            NotFoundError: If no document is stored for the version.
        """
        fmt = self.stored_format(api_id, tag)
        if fmt is None:
            msg = f"No document stored for {api_id} {tag}"
            raise NotFoundError(
                msg, entity_type="document", api_id=api_id, version=tag
            )
        self._store.delete(self.document_key(api_id, tag, fmt))

    def document_size(self, api_id: ApiId, tag: VersionTag) -> int:
        """Return the stored size of a version's document in bytes (0 if absent)."""
        fmt = self.stored_format(api_id, tag)
        if fmt is None:
            return 0
        path = self._store.path_for(self.document_key(api_id, tag, fmt))
        try:
            return path.stat().st_size
        except OSError as e:
            msg = f"Failed to stat {path}: {e}"
            raise StorageError(msg, path=path, operation="read", cause=e) from e


def _parse(content: bytes, fmt: DocumentFormat, path: Path) -> JsonObject:
    """Decode document bytes into a mapping with string keys."""
    match fmt:
        case DocumentFormat.JSON:
            try:
                data = orjson.loads(content)
            except orjson.JSONDecodeError as e:
                msg = f"Invalid JSON document: {e}"
                raise StorageParseError(
                    msg, path=path, content_type="json", line=e.lineno, cause=e
                ) from e
        case DocumentFormat.YAML:
            try:
                data = yaml.safe_load(content)
            except yaml.YAMLError as e:
                mark = getattr(e, "problem_mark", None)
                line = mark.line + 1 if mark is not None else None
                msg = f"Invalid YAML document: {e}"
                raise StorageParseError(
                    msg, path=path, content_type="yaml", line=line, cause=e
                ) from e

    if not isinstance(data, dict):
        msg = f"Expected a mapping at the document root, got {type(data).__name__}"
        raise StorageParseError(msg, path=path, content_type=fmt.value)

    return cast("JsonObject", normalize_keys(data))


def _serialize(document: JsonObject, fmt: DocumentFormat, path: Path) -> bytes:
    """Encode a document, preserving key order."""
    match fmt:
        case DocumentFormat.JSON:
            try:
                return orjson.dumps(document, option=orjson.OPT_INDENT_2)
            except TypeError as e:
                msg = f"Failed to serialize JSON document: {e}"
                raise StorageError(msg, path=path, operation="write", cause=e) from e
        case DocumentFormat.YAML:
            try:
                text = yaml.safe_dump(
                    document, sort_keys=False, allow_unicode=True, default_flow_style=False
                )
            except yaml.YAMLError as e:
                msg = f"Failed to serialize YAML document: {e}"
                raise StorageError(msg, path=path, operation="write", cause=e) from e
            return text.encode("utf-8")
