"""Diff engine over stored API versions."""

from typing import Final

from structlog.typing import FilteringBoundLogger

from oasvault.diff._compare import compare_documents
from oasvault.diff._models import DiffResult
from oasvault.document import ApiId, DocumentManager, JsonObject, VersionTag
from oasvault.utils import create_null_logger

__all__ = ["DiffEngine"]


class DiffEngine:
    """Loads two versions of an API and compares their documents.

    Diffs are pure reads: no lock is taken and nothing is persisted.

    Attributes:
        _documents: Document load collaborator.
        _logger: Logger for diff events.
    """

    __slots__: Final = ("_documents", "_logger")

    _documents: DocumentManager
    _logger: FilteringBoundLogger

    def __init__(
        self,
        documents: DocumentManager,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._documents = documents
        self._logger = logger or create_null_logger()

    def calculate_diff(
        self, api_id: ApiId, from_tag: VersionTag, to_tag: VersionTag
    ) -> DiffResult:
        """Compare two stored versions of an API.

        Diffing a version against itself is legal and yields no changes.

        Args:
            api_id: The API identifier.
            from_tag: Base version.
            to_tag: Target version.

        Returns:
            The classified changes and their summary.

        Raises:
            NotFoundError: If either version's document does not exist. No
                partial result is returned.
            StorageError: If either document cannot be read or parsed.
        """
        old, _ = self._documents.load_document(api_id, from_tag)
        new = old if from_tag == to_tag else self._documents.load_document(api_id, to_tag)[0]
        return self.diff_documents(old, new, api_id=api_id, from_tag=from_tag, to_tag=to_tag)

    def diff_documents(
        self,
        old: JsonObject,
        new: JsonObject,
        *,
        api_id: ApiId | None = None,
        from_tag: VersionTag | None = None,
        to_tag: VersionTag | None = None,
    ) -> DiffResult:
        """Compare two in-memory documents."""
        result = DiffResult.from_changes(
            compare_documents(old, new),
            api_id=api_id,
            from_version=from_tag,
            to_version=to_tag,
        )
        self._logger.info(
            "diff_calculated",
            api_id=api_id,
            from_version=from_tag,
            to_version=to_tag,
            breaking=result.summary.breaking,
            non_breaking=result.summary.non_breaking,
        )
        return result
