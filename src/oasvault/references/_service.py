"""Reference operations against stored API versions."""

from typing import Final

from structlog.typing import FilteringBoundLogger

from oasvault.audit import AuditTrail
from oasvault.document import ApiId, DocumentManager, VersionTag
from oasvault.exceptions import ConflictError, NotFoundError
from oasvault.references._index import ReferenceUsage, component_ref
from oasvault.references._validator import (
    ReferenceValidationResult,
    RewriteResult,
    find_usages,
    rewrite_references,
    validate_references,
)
from oasvault.storage import LockManager
from oasvault.utils import create_null_logger

__all__ = ["ReferenceService"]


class ReferenceService:
    """Finds, validates and rewrites references in stored documents.

    Reads take no lock. Rewrites hold the document's write lock across the
    load-modify-save cycle and append one audit record before returning.

    Attributes:
        _documents: Document load/save collaborator.
        _locks: Scoped write locks.
        _audit: Audit sink.
        _logger: Logger for reference events.
    """

    __slots__: Final = ("_audit", "_documents", "_locks", "_logger")

    _documents: DocumentManager
    _locks: LockManager
    _audit: AuditTrail
    _logger: FilteringBoundLogger

    def __init__(
        self,
        documents: DocumentManager,
        locks: LockManager,
        audit: AuditTrail,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._documents = documents
        self._locks = locks
        self._audit = audit
        self._logger = logger or create_null_logger()

    def find(
        self,
        api_id: ApiId,
        tag: VersionTag,
        component_type: str,
        component_name: str,
    ) -> list[ReferenceUsage]:
        """Find usages of a component in a stored version.

        Raises:
            NotFoundError: If the version's document does not exist.
            ValidationError: If the component type or name is malformed.
        """
        document, _ = self._documents.load_document(api_id, tag)
        return find_usages(document, component_type, component_name)

    def validate(self, api_id: ApiId, tag: VersionTag) -> ReferenceValidationResult:
        """Validate every reference in a stored version.

        Raises:
            NotFoundError: If the version's document does not exist.
        """
        document, _ = self._documents.load_document(api_id, tag)
        result = validate_references(document)
        self._logger.info(
            "references_validated",
            api_id=api_id,
            version=tag,
            valid=result.valid,
            broken=result.broken_count,
        )
        return result

    def update(  # noqa: PLR0913
        self,
        api_id: ApiId,
        tag: VersionTag,
        old_ref: str,
        new_ref: str,
        *,
        actor: str | None = None,
        rationale: str | None = None,
    ) -> RewriteResult:
        """Rewrite a reference string throughout a stored version.

        Args:
            api_id: The API identifier.
            tag: The version tag.
            old_ref: Reference string to replace.
            new_ref: Replacement reference string.
            actor: Acting identity for the audit record.
            rationale: Optional reason for the audit record.

        Returns:
            The rewrite count and locations.

        Raises:
            NotFoundError: If the document does not exist or ``old_ref`` is
                not used anywhere in it.
            ValidationError: If either reference string is empty.
            LockTimeoutError: If the document lock cannot be acquired.
        """
        log = self._logger.bind(api_id=api_id, version=tag)

        with self._locks.acquire(self._documents.lock_path(api_id, tag)):
            document, fmt = self._documents.load_document(api_id, tag)
            result = rewrite_references(document, old_ref, new_ref)
            if result.count == 0:
                msg = f"Reference {old_ref!r} is not used in {api_id} {tag}"
                raise NotFoundError(
                    msg,
                    entity_type="reference",
                    entity_id=old_ref,
                    api_id=api_id,
                    version=tag,
                )

            _ = self._documents.save_document(api_id, tag, document, fmt)
            _ = self._audit.record_event(
                api_id,
                "references_updated",
                version=tag,
                actor=actor,
                rationale=rationale,
                details={
                    "old_ref": old_ref,
                    "new_ref": new_ref,
                    "count": result.count,
                    "locations": list(result.locations),
                },
            )

        log.info("references_updated", old_ref=old_ref, new_ref=new_ref, count=result.count)
        return result

    def rename_component(  # noqa: PLR0913
        self,
        api_id: ApiId,
        tag: VersionTag,
        component_type: str,
        old_name: str,
        new_name: str,
        *,
        actor: str | None = None,
        rationale: str | None = None,
    ) -> RewriteResult:
        """Rename a component and rewrite every reference to it.

        Updates the references, then moves the definition to the new name, in
        one locked load-modify-save cycle. The component keeps its position in
        ``components.<component_type>``.

        Returns:
            The reference rewrite count and locations (count may be zero).

        Raises:
            NotFoundError: If the document or the component does not exist.
            ConflictError: If a component named ``new_name`` already exists.
            ValidationError: If the component type or a name is malformed.
            LockTimeoutError: If the document lock cannot be acquired.
        """
        old_ref = component_ref(component_type, old_name)
        new_ref = component_ref(component_type, new_name)

        with self._locks.acquire(self._documents.lock_path(api_id, tag)):
            document, fmt = self._documents.load_document(api_id, tag)

            components = document.get("components")
            section = (
                components.get(component_type) if isinstance(components, dict) else None
            )
            if not isinstance(section, dict) or old_name not in section:
                msg = f"Component {old_ref} not found in {api_id} {tag}"
                raise NotFoundError(
                    msg,
                    entity_type="component",
                    entity_id=old_ref,
                    api_id=api_id,
                    version=tag,
                )
            if new_name in section:
                msg = f"Component {new_ref} already exists in {api_id} {tag}"
                raise ConflictError(
                    msg,
                    entity_type="component",
                    entity_id=new_ref,
                    api_id=api_id,
                    version=tag,
                )

            result = rewrite_references(document, old_ref, new_ref)
            renamed = {
                (new_name if name == old_name else name): value
                for name, value in section.items()
            }
            section.clear()
            section.update(renamed)

            _ = self._documents.save_document(api_id, tag, document, fmt)
            _ = self._audit.record_event(
                api_id,
                "component_renamed",
                version=tag,
                actor=actor,
                rationale=rationale,
                details={
                    "component_type": component_type,
                    "old_name": old_name,
                    "new_name": new_name,
                    "references_updated": result.count,
                },
            )

        self._logger.info(
            "component_renamed",
            api_id=api_id,
            version=tag,
            old_ref=old_ref,
            new_ref=new_ref,
            count=result.count,
        )
        return result
