"""Key/value byte store backed by the file system.

Keys are slash-separated relative paths (``sample-api/v1.0.0/spec.yaml``).
Writes are atomic; reads of a missing key raise ``NotFoundError``; every other
OS failure is wrapped in ``StorageError`` with the path and operation.
"""

import builtins
import shutil
from pathlib import Path, PurePosixPath
from typing import Final

from oasvault.exceptions import NotFoundError, StorageError, ValidationError
from oasvault.storage._io import atomic_write

__all__ = ["FileSystemStore"]


class FileSystemStore:
    """File-system implementation of the document byte store.

    Attributes:
        _root: Directory under which every key is stored.
    """

    __slots__: Final = ("_root",)

    _root: Path

    def __init__(self, root: Path | str) -> None:
        """Initialize the store.

        Args:
            root: Storage root directory. Created lazily on first write.
        """
        self._root = Path(root)

    @property
    def root(self) -> Path:
        """The storage root directory."""
        return self._root

    def validate_key(self, key: str) -> PurePosixPath:
        """Validate a storage key and return it as a relative path.

        Raises:
            ValidationError: If the key is empty, absolute, or escapes the root.
        """
        if not key or not key.strip():
            msg = "Storage key cannot be empty"
            raise ValidationError(msg, field="key", value=key)

        posix = PurePosixPath(key.replace("\\", "/"))
        if posix.is_absolute() or (posix.parts and ":" in posix.parts[0]):
            msg = f"Storage key must be relative: {key!r}"
            raise ValidationError(msg, field="key", value=key, rule="relative path")
        if ".." in posix.parts:
            msg = f"Storage key cannot contain '..': {key!r}"
            raise ValidationError(msg, field="key", value=key, rule="no traversal")
        return posix

    def path_for(self, key: str) -> Path:
        """Return the file-system path for a key."""
        return self._root.joinpath(*self.validate_key(key).parts)

    def read(self, key: str) -> bytes:
        """Read the bytes stored under a key.

        Raises:
            NotFoundError: If no value is stored under the key.
            StorageError: If the read fails.
        """
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            msg = f"No stored value for key: {key}"
            raise NotFoundError(msg, entity_type="key", entity_id=key) from e
        except OSError as e:
            msg = f"Failed to read {key}: {e}"
            raise StorageError(msg, path=path, operation="read", cause=e) from e

    def write(self, key: str, data: bytes) -> None:
        """Atomically store bytes under a key, replacing any previous value.

        Raises:
            StorageError: If the write fails.
        """
        atomic_write(self.path_for(key), data)

    def exists(self, key: str) -> bool:
        """Check whether a value is stored under a key."""
        return self.path_for(key).is_file()

    def delete(self, key: str) -> None:
        """Delete the value stored under a key.

        Raises:
            NotFoundError: If no value is stored under the key.
            StorageError: If the delete fails.
        """
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError as e:
            msg = f"No stored value for key: {key}"
            raise NotFoundError(msg, entity_type="key", entity_id=key) from e
        except OSError as e:
            msg = f"Failed to delete {key}: {e}"
            raise StorageError(msg, path=path, operation="delete", cause=e) from e

    def delete_prefix(self, prefix: str) -> None:
        """Delete every key under a directory prefix. Missing prefixes are a no-op.

        Raises:
            StorageError: If the removal fails.
        """
        path = self.path_for(prefix)
        if not path.exists():
            return
        try:
            shutil.rmtree(path)
        except OSError as e:
            msg = f"Failed to delete {prefix}: {e}"
            raise StorageError(msg, path=path, operation="delete", cause=e) from e

    def list(self, prefix: str = "") -> list[str]:
        """List keys under a prefix, sorted.

        Hidden entries (names starting with ``.``) such as temp and lock files
        are skipped.

        Raises:
            StorageError: If the directory cannot be listed.
        """
        base = self.path_for(prefix) if prefix else self._root
        if not base.is_dir():
            return []

        try:
            keys = [
                path.relative_to(self._root).as_posix()
                for path in base.rglob("*")
                if path.is_file()
                and not any(
                    part.startswith(".") for part in path.relative_to(self._root).parts
                )
            ]
        except OSError as e:
            msg = f"Failed to list {prefix or '/'}: {e}"
            raise StorageError(msg, path=base, operation="list", cause=e) from e
        return sorted(keys)

    def list_children(self, prefix: str = "") -> builtins.list[str]:
        """List the immediate non-hidden subdirectory names under a prefix, sorted."""
        base = self.path_for(prefix) if prefix else self._root
        if not base.is_dir():
            return []
        try:
            return sorted(
                child.name
                for child in base.iterdir()
                if child.is_dir() and not child.name.startswith(".")
            )
        except OSError as e:
            msg = f"Failed to list {prefix or '/'}: {e}"
            raise StorageError(msg, path=base, operation="list", cause=e) from e
