# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
# pyright: reportExplicitAny=false
"""Audit trail for per-API mutation records.

Each API has an append-only ``<api>/audit.jsonl`` file. Every successful
mutation appends exactly one record before the mutating call returns.
"""

from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Final

from structlog.typing import FilteringBoundLogger

from oasvault.audit._models import AuditRecord
from oasvault.exceptions import ValidationError
from oasvault.storage import FileSystemStore, append_jsonl, read_jsonl
from oasvault.utils import create_null_logger

__all__ = ["AUDIT_FILE_NAME", "AuditTrail"]

AUDIT_FILE_NAME = "audit.jsonl"


class AuditTrail:
    """Append-only audit sink and query interface.

    Attributes:
        _store: Store whose root holds the per-API audit files.
        _default_actor: Actor recorded when a caller does not supply one.
        _logger: Logger for audit failures.
    """

    __slots__: Final = ("_default_actor", "_logger", "_store")

    _store: FileSystemStore
    _default_actor: str
    _logger: FilteringBoundLogger

    def __init__(
        self,
        store: FileSystemStore,
        *,
        default_actor: str = "system",
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the audit trail.

        Args:
            store: Store whose root holds the per-API audit files.
            default_actor: Actor recorded when none is given.
            logger: Logger for audit failures. Defaults to a null logger.
        """
        self._store = store
        self._default_actor = default_actor
        self._logger = logger or create_null_logger()

    @property
    def default_actor(self) -> str:
        """Actor recorded when a caller does not supply one."""
        return self._default_actor

    def audit_path(self, api_id: str) -> Path:
        """Return the path of an API's audit file."""
        return self._store.path_for(f"{api_id}/{AUDIT_FILE_NAME}")

    def append_event(self, record: AuditRecord) -> None:
        """Append a record to its API's audit file.

        A failed append is logged and re-raised so the triggering operation
        cannot report success without an audit record.

        Raises:
            StorageError: If the append fails.
        """
        try:
            append_jsonl(self.audit_path(record.api_id), record.to_dict())
        except Exception:
            self._logger.exception(
                "audit_append_failed",
                api_id=record.api_id,
                version=record.version,
                audit_event=record.event,
            )
            raise

    def record_event(  # noqa: PLR0913
        self,
        api_id: str,
        event: str,
        *,
        version: str | None = None,
        actor: str | None = None,
        rationale: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditRecord:
        """Build, append and return an audit record timestamped now.

        Args:
            api_id: The API the event applies to.
            event: Event name (e.g., "version_created", "references_updated").
            version: Version tag the event applies to, if any.
            actor: Acting identity. Defaults to the configured default actor.
            rationale: Optional reason given by the actor.
            details: Structured event details.

        Returns:
            The appended record.

        Raises:
            StorageError: If the append fails.
        """
        record = AuditRecord(
            api_id=api_id,
            timestamp=datetime.now(UTC),
            event=event,
            actor=actor or self._default_actor,
            version=version,
            rationale=rationale,
            details=dict(details or {}),
        )
        self.append_event(record)
        return record

    @staticmethod
    def _matches_filters(  # noqa: PLR0913
        record: AuditRecord,
        version: str | None,
        event: str | None,
        actor: str | None,
        since: datetime | None,
        until: datetime | None,
    ) -> bool:
        """Check if a record matches every specified filter.

        Args:
            record: The record to check.
            version: Only include records for this exact version.
            event: Only include records whose event contains this substring.
            actor: Only include records with this exact actor.
            since: Only include records at or after this timestamp.
            until: Only include records at or before this timestamp.
        """
        if version is not None and record.version != version:
            return False
        if event is not None and event not in record.event:
            return False
        if actor is not None and record.actor != actor:
            return False
        if since is not None and record.timestamp < since:
            return False
        return not (until is not None and record.timestamp > until)

    def get(  # noqa: PLR0913
        self,
        api_id: str,
        *,
        version: str | None = None,
        event: str | None = None,
        actor: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int = 50,
    ) -> list[AuditRecord]:
        """Query an API's audit records.

        Args:
            api_id: The API identifier.
            version: Only include records for this exact version.
            event: Only include records whose event contains this substring.
            actor: Only include records with this exact actor.
            since: Only include records at or after this timestamp.
            until: Only include records at or before this timestamp.
            limit: Maximum number of records to return. Must be >= 1.

        Returns:
            Matching records, newest first. Empty if the API has no audit file.

        Raises:
            ValidationError: If limit is less than 1.
            StorageError: If the audit file cannot be read or parsed.
        """
        if limit < 1:
            msg = f"limit must be >= 1, got {limit}"
            raise ValidationError(msg, field="limit", value=limit, rule=">= 1")

        records = [
            record
            for record in map(AuditRecord.from_dict, read_jsonl(self.audit_path(api_id)))
            if self._matches_filters(record, version, event, actor, since, until)
        ]

        # Newest first; equal timestamps keep reverse append order
        records.reverse()
        records.sort(key=lambda r: r.timestamp, reverse=True)
        return records[:limit]
