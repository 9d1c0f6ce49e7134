"""Document store: atomic file I/O, key/value byte store and scoped locks."""

from ._io import (
    append_jsonl,
    atomic_write,
    dumps_json,
    iter_jsonl,
    read_json,
    read_jsonl,
    write_json_atomic,
)
from ._lock import LockManager, lock_file_path
from ._store import FileSystemStore

__all__ = [
    "FileSystemStore",
    "LockManager",
    "append_jsonl",
    "atomic_write",
    "dumps_json",
    "iter_jsonl",
    "lock_file_path",
    "read_json",
    "read_jsonl",
    "write_json_atomic",
]
