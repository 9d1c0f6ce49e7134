"""Explicitly constructed service context.

Every service is built once from a Config and handed the same store, lock
manager, audit trail and logger. Callers own the context; there is no
module-level instance.
"""

from dataclasses import dataclass, field
from pathlib import Path

from structlog.typing import FilteringBoundLogger

from oasvault.audit import AuditTrail
from oasvault.config import Config
from oasvault.diff import DiffEngine
from oasvault.document import DocumentManager
from oasvault.references import ReferenceService
from oasvault.storage import FileSystemStore, LockManager
from oasvault.utils import create_logger, create_null_logger
from oasvault.versions import VersionRegistry

__all__ = ["ServiceContext", "create_context"]


@dataclass(frozen=True, slots=True)
class ServiceContext:
    """The wired set of oasvault services.

    Attributes:
        config: Configuration the services were built from.
        store: Key/value store rooted at ``config.storage.root``.
        locks: Scoped write locks shared by every service.
        documents: Document load/save.
        audit: Audit trail.
        diff: Diff engine.
        references: Reference find/validate/rewrite over stored versions.
        versions: Version registry.
        logger: Logger bound for the whole context.
    """

    config: Config = field(repr=False)
    store: FileSystemStore
    locks: LockManager
    documents: DocumentManager
    audit: AuditTrail
    diff: DiffEngine
    references: ReferenceService
    versions: VersionRegistry
    logger: FilteringBoundLogger = field(repr=False)

    @property
    def root(self) -> Path:
        """Storage root directory."""
        return self.store.root


def create_context(
    config: Config | None = None,
    *,
    logger: FilteringBoundLogger | None = None,
    log: bool = False,
) -> ServiceContext:
    """Build every service from a configuration.

    Args:
        config: Configuration. Defaults to all-default settings.
        logger: Logger shared by the services. Takes precedence over ``log``.
        log: Build a logger from ``config.logging`` when no logger is given;
            otherwise services log to a null logger.

    Returns:
        The wired service context.
    """
    config = config or Config()
    if logger is None:
        logger = create_logger(config.logging) if log else create_null_logger()

    store = FileSystemStore(config.storage.root)
    locks = LockManager(config.lock, logger=logger)
    documents = DocumentManager(
        store, default_format=config.storage.default_format, logger=logger
    )
    audit = AuditTrail(store, default_actor=config.audit.default_actor, logger=logger)
    diff = DiffEngine(documents, logger=logger)

    return ServiceContext(
        config=config,
        store=store,
        locks=locks,
        documents=documents,
        audit=audit,
        diff=diff,
        references=ReferenceService(documents, locks, audit, logger=logger),
        versions=VersionRegistry(documents, locks, audit, diff=diff, logger=logger),
        logger=logger,
    )
