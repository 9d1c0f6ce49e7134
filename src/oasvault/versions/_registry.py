# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
# pyright: reportExplicitAny=false
"""Version registry for API and version lifecycle operations.

This module provides the VersionRegistry class, which tracks per API the
ordered version list, the current and latest-stable pointers, and one
metadata record per version. Every mutation of an API's record is serialized
by a write lock on ``<api>/metadata.json`` and appends one audit record.
"""

from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Final, cast

from structlog.typing import FilteringBoundLogger

from oasvault.audit import AuditTrail
from oasvault.config import DocumentFormat
from oasvault.diff import ChangesSummary, DiffEngine, DiffResult, endpoint_keys
from oasvault.document import (
    ApiId,
    DocumentManager,
    JsonObject,
    VersionTag,
    deep_copy,
    is_semantic_tag,
    parse_api_id,
)
from oasvault.exceptions import (
    ConflictError,
    NotFoundError,
    OasVaultError,
    StorageParseError,
    ValidationError,
)
from oasvault.references import validate_references
from oasvault.storage import LockManager, read_json, write_json_atomic
from oasvault.utils import create_null_logger
from oasvault.versions._models import (
    AggregateStats,
    ApiRecord,
    ValidationSnapshot,
    VersionRecord,
    VersionStats,
)

__all__ = ["VersionRegistry", "compute_stats", "default_seed_document"]

_METADATA_FILE = "metadata.json"


def default_seed_document(api_id: ApiId, tag: VersionTag) -> JsonObject:
    """Build the minimal document used when a version has no source or seed."""
    info_version = tag[1:] if is_semantic_tag(tag) else tag
    return {
        "openapi": "3.0.3",
        "info": {"title": f"{api_id} API", "version": info_version},
        "paths": {},
    }


def compute_stats(document: JsonObject, file_size_bytes: int = 0) -> VersionStats:
    """Compute document statistics."""
    components = document.get("components")
    components = components if isinstance(components, dict) else {}

    def count(value: Any) -> int:
        return len(value) if isinstance(value, dict | list) else 0

    return VersionStats(
        endpoint_count=len(endpoint_keys(document)),
        schema_count=count(components.get("schemas")),
        file_size_bytes=file_size_bytes,
        security_schemes_count=count(components.get("securitySchemes")),
        tags_count=count(document.get("tags")),
    )


class VersionRegistry:
    """Registry for API versions and their metadata.

    Storage layout under the store root::

        <api>/metadata.json          ApiRecord
        <api>/<tag>/metadata.json    VersionRecord
        <api>/<tag>/spec.yaml|json   document

    Attributes:
        _documents: Document load/save collaborator.
        _locks: Scoped write locks.
        _audit: Audit sink.
        _diff: Diff engine used to populate ChangesSummary at creation.
        _logger: Logger for registry events.
    """

    __slots__: Final = ("_audit", "_diff", "_documents", "_locks", "_logger")

    _documents: DocumentManager
    _locks: LockManager
    _audit: AuditTrail
    _diff: DiffEngine
    _logger: FilteringBoundLogger

    def __init__(
        self,
        documents: DocumentManager,
        locks: LockManager,
        audit: AuditTrail,
        *,
        diff: DiffEngine | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            documents: Document load/save collaborator.
            locks: Scoped write locks.
            audit: Audit sink.
            diff: Diff engine. Defaults to one over ``documents``.
            logger: Logger for registry events. Defaults to a null logger.
        """
        self._documents = documents
        self._locks = locks
        self._audit = audit
        self._logger = logger or create_null_logger()
        self._diff = diff or DiffEngine(documents, logger=self._logger)

    # -------------------------------------------------------------------------
    # Paths and persistence
    # -------------------------------------------------------------------------

    def _api_metadata_path(self, api_id: ApiId) -> Path:
        return self._documents.store.path_for(f"{api_id}/{_METADATA_FILE}")

    def _version_metadata_path(self, api_id: ApiId, tag: VersionTag) -> Path:
        return self._documents.store.path_for(f"{api_id}/{tag}/{_METADATA_FILE}")

    def _read_api(self, api_id: ApiId) -> ApiRecord | None:
        path = self._api_metadata_path(api_id)
        if not path.exists():
            return None
        raw = read_json(path)
        try:
            return ApiRecord.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            msg = f"Malformed API metadata: {e}"
            raise StorageParseError(msg, path=path, content_type="json", cause=e) from e

    def _write_api(self, record: ApiRecord) -> None:
        write_json_atomic(self._api_metadata_path(ApiId(record.api_id)), record.to_dict())

    def _require_api(self, api_id: ApiId) -> ApiRecord:
        record = self._read_api(api_id)
        if record is None:
            msg = f"API not found: {api_id}"
            raise NotFoundError(msg, entity_type="api", entity_id=api_id, api_id=api_id)
        return record

    @staticmethod
    def _require_member(record: ApiRecord, tag: VersionTag) -> None:
        if tag not in record.versions:
            msg = f"Version {tag} not found for API {record.api_id}"
            raise NotFoundError(
                msg,
                entity_type="version",
                entity_id=tag,
                api_id=record.api_id,
                version=tag,
            )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_api_metadata(self, api_id: ApiId) -> ApiRecord:
        """Get an API's record.

        Raises:
            NotFoundError: If the API has no record.
            StorageError: If the record cannot be read or parsed.
        """
        return self._require_api(api_id)

    def list_versions(self, api_id: ApiId) -> list[VersionTag]:
        """List an API's version tags in creation order.

        Raises:
            NotFoundError: If the API has no record.
        """
        return [VersionTag(tag) for tag in self._require_api(api_id).versions]

    def get_version_metadata(self, api_id: ApiId, tag: VersionTag) -> VersionRecord:
        """Get a version's record.

        Raises:
            NotFoundError: If the API or the version does not exist.
            StorageError: If the record cannot be read or parsed.
        """
        self._require_member(self._require_api(api_id), tag)

        path = self._version_metadata_path(api_id, tag)
        if not path.exists():
            msg = f"Metadata for version {tag} of {api_id} is missing"
            raise NotFoundError(
                msg, entity_type="version", entity_id=tag, api_id=api_id, version=tag
            )
        raw = read_json(path)
        try:
            return VersionRecord.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            msg = f"Malformed version metadata: {e}"
            raise StorageParseError(msg, path=path, content_type="json", cause=e) from e

    def list_apis(self) -> list[ApiId]:
        """List every API with a record, sorted by id."""
        apis: list[ApiId] = []
        for name in self._documents.store.list_children():
            try:
                api_id = parse_api_id(name)
            except ValidationError:
                continue
            if self._api_metadata_path(api_id).exists():
                apis.append(api_id)
        return apis

    def compare(
        self, api_id: ApiId, from_tag: VersionTag, to_tag: VersionTag
    ) -> DiffResult:
        """Diff two registered versions of an API. The result is not persisted.

        Raises:
            NotFoundError: If the API or either version does not exist.
        """
        record = self._require_api(api_id)
        self._require_member(record, from_tag)
        self._require_member(record, to_tag)
        return self._diff.calculate_diff(api_id, from_tag, to_tag)

    def collect_stats(self) -> AggregateStats:
        """Aggregate statistics across every API's current version.

        An API whose metadata fails to load is logged and skipped; the rest
        are still counted.
        """
        api_count = version_count = endpoint_count = schema_count = 0
        skipped: list[str] = []

        for api_id in self.list_apis():
            try:
                record = self._require_api(api_id)
                current = self.get_version_metadata(
                    api_id, VersionTag(record.current_version)
                )
            except OasVaultError as e:
                self._logger.warning(
                    "stats_api_skipped", api_id=api_id, error=str(e), kind=e.kind
                )
                skipped.append(api_id)
                continue

            api_count += 1
            version_count += len(record.versions)
            endpoint_count += current.stats.endpoint_count
            schema_count += current.stats.schema_count

        return AggregateStats(
            api_count=api_count,
            version_count=version_count,
            endpoint_count=endpoint_count,
            schema_count=schema_count,
            skipped=tuple(skipped),
        )

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create_version(  # noqa: PLR0913
        self,
        api_id: ApiId,
        new_tag: VersionTag,
        description: str = "",
        *,
        source_tag: VersionTag | None = None,
        seed: JsonObject | None = None,
        actor: str | None = None,
        rationale: str | None = None,
        make_current: bool = False,
        name: str | None = None,
        owner: str | None = None,
        tags: tuple[str, ...] = (),
    ) -> VersionRecord:
        """Create a version and register it on the API.

        The document is a deep copy of ``source_tag``'s document when given,
        else of ``seed``, else a minimal default. The parent is ``source_tag``
        when given, else the API's current version (None for the first
        version). The ChangesSummary is computed against the parent now.

        Args:
            api_id: The API identifier. The API is created on its first version.
            new_tag: Tag for the new version.
            description: Free-text description.
            source_tag: Existing version to copy the document from.
            seed: Document to start from when no source is given.
            actor: Creator identity. Defaults to the audit default actor.
            rationale: Optional reason for the audit record.
            make_current: Also make the new version current. The first
                version of an API always becomes current.
            name: Display name for a new API (ignored afterwards).
            owner: Owner for a new API (ignored afterwards).
            tags: Labels for the version record.

        Returns:
            The created version record.

        Raises:
            ConflictError: If ``new_tag`` already exists for the API.
            NotFoundError: If ``source_tag`` is not a version of the API.
            LockTimeoutError: If the API lock cannot be acquired.
            StorageError: If persistence fails; nothing is registered then.
        """
        creator = actor or self._audit.default_actor
        log = self._logger.bind(api_id=api_id, version=new_tag)

        with self._locks.acquire(self._api_metadata_path(api_id)):
            record = self._read_api(api_id)
            if record is not None and new_tag in record.versions:
                msg = f"Version {new_tag} already exists for API {api_id}"
                raise ConflictError(
                    msg,
                    entity_type="version",
                    entity_id=new_tag,
                    api_id=api_id,
                    version=new_tag,
                )
            if self._documents.document_exists(api_id, new_tag):
                msg = f"A document for {api_id} {new_tag} already exists"
                raise ConflictError(
                    msg,
                    entity_type="document",
                    entity_id=new_tag,
                    api_id=api_id,
                    version=new_tag,
                )

            fmt: DocumentFormat | None = None
            parent_doc: JsonObject | None = None
            if source_tag is not None:
                if record is None:
                    msg = f"API not found: {api_id}"
                    raise NotFoundError(
                        msg, entity_type="api", entity_id=api_id, api_id=api_id
                    )
                self._require_member(record, source_tag)
                parent_doc, fmt = self._documents.load_document(api_id, source_tag)
                parent_tag: VersionTag | None = source_tag
            else:
                parent_tag = (
                    VersionTag(record.current_version) if record is not None else None
                )
                if parent_tag is not None:
                    parent_doc, _ = self._documents.load_document(api_id, parent_tag)

            if source_tag is not None and parent_doc is not None:
                document = cast("JsonObject", deep_copy(parent_doc))
            elif seed is not None:
                document = cast("JsonObject", deep_copy(seed))
            else:
                document = default_seed_document(api_id, new_tag)

            try:
                version_record = self._persist_new_version(
                    api_id,
                    new_tag,
                    document,
                    fmt,
                    parent_tag=parent_tag,
                    parent_doc=parent_doc,
                    source_tag=source_tag,
                    creator=creator,
                    description=description,
                    tags=tags,
                )

                now = version_record.created_at
                if record is None:
                    updated = ApiRecord(
                        api_id=api_id,
                        name=name or f"{api_id} API",
                        created_at=now,
                        current_version=new_tag,
                        versions=(new_tag,),
                        latest_stable=new_tag,
                        owner=owner or creator,
                    )
                else:
                    updated = replace(
                        record,
                        versions=(*record.versions, new_tag),
                        current_version=new_tag if make_current else record.current_version,
                    )
                self._write_api(updated)
            except Exception:
                self._documents.store.delete_prefix(f"{api_id}/{new_tag}")
                raise

            _ = self._audit.record_event(
                api_id,
                "version_created",
                version=new_tag,
                actor=creator,
                rationale=rationale,
                details={
                    "parent_version": parent_tag,
                    "source_version": source_tag,
                    "current": updated.current_version == new_tag,
                    "breaking_changes": len(version_record.changes.breaking_changes),
                },
            )

        log.info(
            "version_created",
            parent_version=parent_tag,
            current=updated.current_version == new_tag,
        )
        return version_record

    def _persist_new_version(  # noqa: PLR0913
        self,
        api_id: ApiId,
        tag: VersionTag,
        document: JsonObject,
        fmt: DocumentFormat | None,
        *,
        parent_tag: VersionTag | None,
        parent_doc: JsonObject | None,
        source_tag: VersionTag | None,
        creator: str,
        description: str,
        tags: tuple[str, ...],
    ) -> VersionRecord:
        """Save the document and version record, computing derived fields."""
        with self._locks.acquire(self._documents.lock_path(api_id, tag)):
            _ = self._documents.save_document(api_id, tag, document, fmt)

        if parent_tag is not None and parent_doc is not None:
            changes = self._diff.diff_documents(
                parent_doc, document, api_id=api_id, from_tag=parent_tag, to_tag=tag
            ).to_changes_summary()
        else:
            changes = ChangesSummary()

        now = datetime.now(UTC)
        references = validate_references(document)
        version_record = VersionRecord(
            version=tag,
            created_at=now,
            created_by=creator,
            parent_version=parent_tag,
            description=description,
            changes=changes,
            validation=ValidationSnapshot(
                references_valid=references.valid,
                broken_reference_count=references.broken_count,
                checked_at=now,
            ),
            stats=compute_stats(document, self._documents.document_size(api_id, tag)),
            source_version=source_tag,
            tags=tags,
        )
        write_json_atomic(self._version_metadata_path(api_id, tag), version_record.to_dict())
        return version_record

    def set_current_version(
        self,
        api_id: ApiId,
        tag: VersionTag,
        *,
        actor: str | None = None,
        rationale: str | None = None,
    ) -> ApiRecord:
        """Point the API's current version at an existing version.

        Idempotent: setting the already-current version succeeds.

        Raises:
            NotFoundError: If the API or the version does not exist.
            LockTimeoutError: If the API lock cannot be acquired.
        """
        with self._locks.acquire(self._api_metadata_path(api_id)):
            record = self._require_api(api_id)
            self._require_member(record, tag)

            previous = record.current_version
            updated = replace(record, current_version=tag)
            self._write_api(updated)
            _ = self._audit.record_event(
                api_id,
                "version_set_current",
                version=tag,
                actor=actor,
                rationale=rationale,
                details={"previous_version": previous},
            )

        self._logger.info(
            "version_set_current", api_id=api_id, version=tag, previous_version=previous
        )
        return updated

    def set_latest_stable(
        self,
        api_id: ApiId,
        tag: VersionTag,
        *,
        actor: str | None = None,
        rationale: str | None = None,
    ) -> ApiRecord:
        """Mark an existing version as the latest stable one.

        Raises:
            NotFoundError: If the API or the version does not exist.
            LockTimeoutError: If the API lock cannot be acquired.
        """
        with self._locks.acquire(self._api_metadata_path(api_id)):
            record = self._require_api(api_id)
            self._require_member(record, tag)

            previous = record.latest_stable
            updated = replace(record, latest_stable=tag)
            self._write_api(updated)
            _ = self._audit.record_event(
                api_id,
                "latest_stable_set",
                version=tag,
                actor=actor,
                rationale=rationale,
                details={"previous_version": previous},
            )

        self._logger.info("latest_stable_set", api_id=api_id, version=tag)
        return updated

    def delete_version(
        self,
        api_id: ApiId,
        tag: VersionTag,
        *,
        actor: str | None = None,
        rationale: str | None = None,
    ) -> ApiRecord:
        """Delete a non-current version and its document.

        If the deleted version was latest stable, the pointer falls back to
        the current version.

        Returns:
            The updated API record.

        Raises:
            NotFoundError: If the API or the version does not exist.
            ConflictError: If the version is current or the only one left.
            LockTimeoutError: If the API lock cannot be acquired.
        """
        with self._locks.acquire(self._api_metadata_path(api_id)):
            record = self._require_api(api_id)
            self._require_member(record, tag)

            if len(record.versions) == 1:
                msg = f"Cannot delete {tag}: it is the only version of {api_id}"
                raise ConflictError(
                    msg, entity_type="version", entity_id=tag, api_id=api_id, version=tag
                )
            if record.current_version == tag:
                msg = (
                    f"Cannot delete {tag}: it is the current version of {api_id}; "
                    "set another version current first"
                )
                raise ConflictError(
                    msg, entity_type="version", entity_id=tag, api_id=api_id, version=tag
                )

            updated = replace(
                record,
                versions=tuple(v for v in record.versions if v != tag),
                latest_stable=(
                    record.current_version
                    if record.latest_stable == tag
                    else record.latest_stable
                ),
            )
            self._write_api(updated)

            with self._locks.acquire(self._documents.lock_path(api_id, tag)):
                self._documents.store.delete_prefix(f"{api_id}/{tag}")

            _ = self._audit.record_event(
                api_id,
                "version_deleted",
                version=tag,
                actor=actor,
                rationale=rationale,
                details={"latest_stable": updated.latest_stable},
            )

        self._logger.info("version_deleted", api_id=api_id, version=tag)
        return updated
