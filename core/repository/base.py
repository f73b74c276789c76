"""Shared repository helpers, file primitives, and error hierarchy.

Updates:
  v0.3.0 - 2026-10-06 - Add exclusive lock helper for read-modify-write index updates.
  v0.2.0 - 2026-10-04 - Write JSON documents via temporary file and atomic rename.
  v0.1.0 - 2026-10-02 - Extract logger, helpers, and exceptions for the file store.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import tempfile
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if sys.platform == "win32":  # pragma: no cover - platform specific
    import msvcrt
else:
    import fcntl

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

logger = logging.getLogger("prompthub.repository")


class RepositoryError(Exception):
    """Base exception for repository failures."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when a requested record cannot be located."""


class RepositoryCorruptionError(RepositoryError):
    """Raised when a persisted document exists but cannot be decoded."""


def ensure_directory(path: Path) -> None:
    """Ensure *path* exists as a directory."""
    path.mkdir(parents=True, exist_ok=True)


def json_dumps(value: Any) -> str:
    """Serialize values to pretty-printed JSON text."""
    return json.dumps(value, ensure_ascii=False, indent=2)


def read_json(path: Path) -> Any:
    """Return the decoded JSON document at *path*.

    Raises:
        FileNotFoundError: when the document does not exist.
        RepositoryCorruptionError: when the document is not valid JSON.
        RepositoryError: for any other I/O failure.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exc:
        raise RepositoryError(f"Unable to read {path}") from exc
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise RepositoryCorruptionError(f"Invalid JSON document: {path}") from exc


def atomic_write_json(path: Path, payload: Any) -> None:
    """Persist *payload* to *path* so readers never observe a partial file.

    The document is written to a temporary file in the same directory,
    flushed to disk, then renamed over the destination.
    """
    data = json_dumps(payload)
    try:
        fd, temp_name = tempfile.mkstemp(
            suffix=".tmp",
            prefix=f".{path.stem}_",
            dir=path.parent,
        )
    except OSError as exc:
        raise RepositoryError(f"Unable to create temporary file for {path}") from exc
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_name, path)
    except OSError as exc:
        try:
            os.unlink(temp_name)
        except OSError:
            logger.debug("Temporary file %s already removed", temp_name)
        raise RepositoryError(f"Unable to write {path}") from exc


@contextmanager
def exclusive_lock(lock_path: Path) -> Iterator[None]:
    """Hold an exclusive advisory lock on *lock_path* for the block's duration."""
    try:
        handle = open(lock_path, "a+b")  # noqa: SIM115 - released in finally
    except OSError as exc:
        raise RepositoryError(f"Unable to open lock file {lock_path}") from exc
    try:
        if sys.platform == "win32":  # pragma: no cover - platform specific
            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_LOCK, 1)
            try:
                yield
            finally:
                handle.seek(0)
                msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
        else:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
    finally:
        handle.close()


__all__ = [
    "RepositoryCorruptionError",
    "RepositoryError",
    "RepositoryNotFoundError",
    "atomic_write_json",
    "ensure_directory",
    "exclusive_lock",
    "json_dumps",
    "logger",
    "read_json",
]
