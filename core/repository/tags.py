"""Tag inverted index persistence helpers.

Updates:
  v0.2.0 - 2026-10-07 - Rebuild the index from record metadata after corruption or lost writes.
  v0.1.0 - 2026-10-06 - Extract tag index read-modify-write helpers into mixin.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, cast

from .base import (
    RepositoryError,
    atomic_write_json as _atomic_write_json,
    exclusive_lock as _exclusive_lock,
    logger,
    read_json as _read_json,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from pathlib import Path

    from models.prompt_model import PromptRecord

TagIndex = dict[str, set[str]]


class TagIndexMixin:
    """Inverted ``tag -> ids`` mapping persisted as a single JSON document."""

    _tags_path: Path
    _lock_path: Path

    if TYPE_CHECKING:
        # Provided by RecordStoreMixin.
        def iter_records(self) -> Iterator[PromptRecord]: ...

    def load_tag_index(self) -> TagIndex:
        """Return the persisted index; a missing file is an empty index."""
        try:
            raw = _read_json(self._tags_path)
        except FileNotFoundError:
            return {}
        if not isinstance(raw, dict):
            raise RepositoryError(f"Tag index {self._tags_path} must contain a JSON object")
        index: TagIndex = {}
        for tag, ids in cast("Mapping[object, object]", raw).items():
            if isinstance(ids, str) or not isinstance(ids, Iterable):
                raise RepositoryError(f"Tag index entry {tag!r} must be a list of ids")
            index[str(tag)] = {str(item) for item in cast("Iterable[object]", ids)}
        return index

    def add_tags(self, prompt_id: str, tags: Iterable[str]) -> set[str]:
        """Add *tags* for *prompt_id* and return the id's full tag set.

        The read-modify-write happens under an exclusive file lock so
        concurrent writers adding to the same tag never lose each other's ids.
        """
        requested = [tag for tag in tags if tag]
        with _exclusive_lock(self._lock_path):
            index = self.load_tag_index()
            changed = False
            for tag in requested:
                members = index.setdefault(tag, set())
                if prompt_id not in members:
                    members.add(prompt_id)
                    changed = True
            if changed:
                self._write_tag_index(index)
        return {tag for tag, ids in index.items() if prompt_id in ids}

    def tags_for(self, prompt_id: str, *, index: TagIndex | None = None) -> set[str]:
        """Return the tags attached to *prompt_id*."""
        source = self.load_tag_index() if index is None else index
        return {tag for tag, ids in source.items() if prompt_id in ids}

    def ids_for_tag(self, tag: str) -> set[str]:
        """Return the ids carrying *tag*."""
        return set(self.load_tag_index().get(tag, set()))

    def rebuild_tag_index(self) -> TagIndex:
        """Recreate the index from the tags mirrored into each record's metadata."""
        with _exclusive_lock(self._lock_path):
            index: TagIndex = {}
            for record in self.iter_records():
                for tag in record.metadata.tags:
                    index.setdefault(tag, set()).add(record.id)
            self._write_tag_index(index)
        logger.info("Rebuilt tag index with %d tag(s)", len(index))
        return index

    @staticmethod
    def tags_by_id(index: TagIndex) -> dict[str, set[str]]:
        """Invert *index* into ``id -> tags`` for bulk joins."""
        inverted: dict[str, set[str]] = {}
        for tag, ids in index.items():
            for prompt_id in ids:
                inverted.setdefault(prompt_id, set()).add(tag)
        return inverted

    def _ensure_tag_index(self) -> None:
        with _exclusive_lock(self._lock_path):
            if not self._tags_path.exists():
                self._write_tag_index({})

    def _write_tag_index(self, index: TagIndex) -> None:
        payload = {tag: sorted(ids) for tag, ids in sorted(index.items()) if ids}
        _atomic_write_json(self._tags_path, payload)


__all__ = ["TagIndex", "TagIndexMixin"]
