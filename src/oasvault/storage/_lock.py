"""Scoped write locks keyed by storage path.

A lock combines a per-path ``threading.RLock`` (exclusion between threads of
this process, re-entrant for the owning thread) with an exclusive lock file
created next to the protected path (exclusion between processes). Waiting is
bounded by both a retry count and a timeout; release always runs in
``finally``.
"""

import os
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Final

from structlog.typing import FilteringBoundLogger

from oasvault.config import LockConfig
from oasvault.exceptions import LockTimeoutError, StorageError
from oasvault.storage._backoff import RetrySchedule
from oasvault.utils import create_null_logger

__all__ = ["LockManager", "lock_file_path"]


def lock_file_path(path: Path) -> Path:
    """Return the lock file guarding ``path``.

    The lock file is a hidden sibling so that store listings skip it.
    """
    return path.with_name(f".{path.name}.lock")


class LockManager:
    """Hands out exclusive, re-entrant scoped locks keyed by path.

    Attributes:
        _config: Wait bounds and stale-lock threshold.
        _logger: Logger for lock lifecycle events.
        _schedule: Waits between lock file acquisition attempts.
        _guard: Protects the lock tables.
        _locks: Per-path thread locks.
        _depth: Per-path re-entry depth of the owning thread.
    """

    __slots__: Final = (
        "_config",
        "_depth",
        "_guard",
        "_locks",
        "_logger",
        "_schedule",
    )

    _config: LockConfig
    _logger: FilteringBoundLogger
    _schedule: RetrySchedule
    _guard: threading.Lock
    _locks: dict[Path, threading.RLock]
    _depth: dict[Path, int]

    def __init__(
        self,
        config: LockConfig | None = None,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the lock manager.

        Args:
            config: Lock settings. Defaults to ``LockConfig()``.
            logger: Logger for lock events. Defaults to a null logger.
        """
        self._config = config or LockConfig()
        self._logger = logger or create_null_logger()
        self._schedule = RetrySchedule(
            retries=self._config.retries,
            interval=self._config.retry_interval,
            max_interval=self._config.timeout,
        )
        self._guard = threading.Lock()
        self._locks = {}
        self._depth = {}

    @property
    def config(self) -> LockConfig:
        """The lock settings."""
        return self._config

    def _thread_lock(self, key: Path) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @staticmethod
    def _key(path: Path) -> Path:
        return Path(os.path.abspath(path))  # noqa: PTH100

    def _is_stale(self, lock_path: Path) -> bool:
        try:
            age = time.time() - lock_path.stat().st_mtime
        except FileNotFoundError:
            return False
        return age > self._config.stale_after

    def _try_create(self, lock_path: Path) -> bool:
        """Create the lock file exclusively. Returns False if it already exists."""
        try:
            lock_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        except OSError as e:
            msg = f"Failed to create lock file: {e}"
            raise StorageError(msg, path=lock_path, operation="lock", cause=e) from e

        try:
            _ = os.write(fd, f"{os.getpid()}\n".encode())
        finally:
            os.close(fd)
        return True

    def _claim(self, key: Path, lock_path: Path) -> bool:
        """Create the lock file, reclaiming it first when it is stale."""
        if self._try_create(lock_path):
            return True
        if not self._is_stale(lock_path):
            return False
        self._logger.warning("lock_stale_reclaimed", path=str(key))
        lock_path.unlink(missing_ok=True)
        return self._try_create(lock_path)

    def _acquire_file(self, key: Path, deadline: float, timeout: float) -> int:
        """Acquire the lock file for ``key``. Returns the number of attempts made."""
        lock_path = lock_file_path(key)
        attempts = 1
        if self._claim(key, lock_path):
            return attempts

        for wait in self._schedule.waits(deadline):
            time.sleep(wait)
            attempts += 1
            if self._claim(key, lock_path):
                return attempts

        self._logger.warning(
            "lock_timeout", path=str(key), timeout=timeout, attempts=attempts
        )
        msg = f"Could not acquire lock on {key} within {timeout}s"
        raise LockTimeoutError(msg, path=key, timeout=timeout, attempts=attempts)

    @contextmanager
    def acquire(self, path: Path, *, timeout: float | None = None) -> Iterator[Path]:
        """Hold the exclusive write lock for ``path`` for the duration of a block.

        Re-entrant: a thread already holding the lock may acquire it again
        without waiting. The lock is released on every exit path.

        Args:
            path: The storage path to protect.
            timeout: Wait bound in seconds. Defaults to the configured timeout.

        Yields:
            The absolute path that is locked.

        Raises:
            LockTimeoutError: If the lock cannot be acquired within the bound.
            StorageError: If the lock file cannot be created.
        """
        key = self._key(path)
        wait = self._config.timeout if timeout is None else timeout
        deadline = time.monotonic() + wait

        thread_lock = self._thread_lock(key)
        if not thread_lock.acquire(timeout=wait):
            self._logger.warning("lock_timeout", path=str(key), timeout=wait, attempts=1)
            msg = f"Could not acquire lock on {key} within {wait}s"
            raise LockTimeoutError(msg, path=key, timeout=wait, attempts=1)

        try:
            depth = self._depth.get(key, 0)
            if depth == 0:
                attempts = self._acquire_file(key, deadline, wait)
                self._logger.debug("lock_acquired", path=str(key), attempts=attempts)
            self._depth[key] = depth + 1

            try:
                yield key
            finally:
                self._depth[key] -= 1
                if self._depth[key] == 0:
                    del self._depth[key]
                    lock_file_path(key).unlink(missing_ok=True)
                    self._logger.debug("lock_released", path=str(key))
        finally:
            thread_lock.release()

    def is_locked(self, path: Path) -> bool:
        """Check whether a live (non-stale) lock file exists for ``path``."""
        lock_path = lock_file_path(self._key(path))
        return lock_path.exists() and not self._is_stale(lock_path)

    def force_unlock(self, path: Path) -> bool:
        """Remove the lock file for ``path`` regardless of its owner.

        Intended for administrative recovery after a crashed writer.

        Returns:
            True if a lock file was removed.
        """
        key = self._key(path)
        lock_path = lock_file_path(key)
        existed = lock_path.exists()
        lock_path.unlink(missing_ok=True)
        if existed:
            self._logger.warning("lock_forced_release", path=str(key))
        return existed
