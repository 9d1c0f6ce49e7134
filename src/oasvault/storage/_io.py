# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Atomic file writes and JSON/JSONL codecs for the document store.

Whole-file writes go to a temporary sibling which is flushed, synced and then
renamed over the destination, so readers see either the previous content or
the new content. Audit files are append-only JSON Lines.
"""

import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import orjson

from oasvault.exceptions import StorageError, StorageParseError

__all__ = [
    "append_jsonl",
    "atomic_write",
    "dumps_json",
    "iter_jsonl",
    "read_json",
    "read_jsonl",
    "write_json_atomic",
]

type JsonRecord = dict[str, Any]  # pyright: ignore[reportExplicitAny]


@contextmanager
def _storage_errors(path: Path, operation: str) -> Iterator[None]:
    """Re-raise ``OSError`` as ``StorageError`` carrying path and operation."""
    try:
        yield
    except OSError as e:
        msg = f"Failed to {operation} {path}: {e}"
        raise StorageError(msg, path=path, operation=operation, cause=e) from e


def atomic_write(path: Path, data: bytes) -> None:
    """Replace ``path`` with ``data`` in a single rename.

    Parent directories are created as needed. On failure the temporary file
    is removed and the destination is left untouched.

    Raises:
        StorageError: If any step of the write fails.
    """
    with _storage_errors(path, "write"):
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                _ = f.write(data)
                f.flush()
                os.fsync(f.fileno())
            _ = temp_path.replace(path)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise


def dumps_json(
    data: Any,  # pyright: ignore[reportExplicitAny]
    *,
    path: Path,
    indent: bool = True,
) -> bytes:
    """Serialize ``data`` with orjson.

    Args:
        data: JSON-compatible value. Datetimes serialize as RFC 3339.
        path: Destination path, used for error context only.
        indent: Pretty-print with two-space indentation.

    Raises:
        StorageError: If the value is not JSON-serializable.
    """
    try:
        return orjson.dumps(data, option=orjson.OPT_INDENT_2 if indent else 0)
    except TypeError as e:
        msg = f"Cannot serialize JSON for {path}: {e}"
        raise StorageError(msg, path=path, operation="write", cause=e) from e


def _loads_object(
    raw: bytes | str, path: Path, *, line: int | None = None
) -> JsonRecord:
    content_type = "json" if line is None else "jsonl"
    where = "" if line is None else f" on line {line}"
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        msg = f"Invalid JSON{where}: {e}"
        raise StorageParseError(
            msg, path=path, line=line, content_type=content_type, cause=e
        ) from e
    if not isinstance(data, dict):
        msg = f"Expected JSON object{where}, got {type(data).__name__}"
        raise StorageParseError(msg, path=path, line=line, content_type=content_type)
    return data


def read_json(path: Path) -> JsonRecord:
    """Read a file holding one JSON object.

    Raises:
        StorageError: If the file cannot be read (including when missing).
        StorageParseError: If the content is not a JSON object.
    """
    with _storage_errors(path, "read"):
        raw = path.read_bytes()
    return _loads_object(raw, path)


def write_json_atomic(path: Path, data: JsonRecord) -> None:
    """Atomically write ``data`` as indented JSON."""
    atomic_write(path, dumps_json(data, path=path))


def iter_jsonl(path: Path) -> Iterator[JsonRecord]:
    """Yield the objects of a JSON Lines file in file order.

    A missing file yields nothing. Blank lines are skipped.

    Raises:
        StorageError: If the file exists but cannot be read.
        StorageParseError: If a line is not a JSON object; ``line`` is 1-based.
    """
    if not path.exists():
        return
    with _storage_errors(path, "read"):
        lines = path.read_bytes().splitlines()
    for number, line in enumerate(lines, start=1):
        if line.strip():
            yield _loads_object(line, path, line=number)


def read_jsonl(path: Path) -> list[JsonRecord]:
    """Read every object of a JSON Lines file. See :func:`iter_jsonl`."""
    return list(iter_jsonl(path))


def append_jsonl(path: Path, entry: JsonRecord) -> None:
    """Append ``entry`` as one line, creating the file and parents as needed.

    Raises:
        StorageError: If serialization or the append fails.
    """
    line = dumps_json(entry, path=path, indent=False) + b"\n"
    with _storage_errors(path, "append"):
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("ab") as f:
            _ = f.write(line)
