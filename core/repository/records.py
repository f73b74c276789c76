"""Prompt record persistence, one JSON document per record.

Updates:
  v0.3.0 - 2026-10-09 - Persist typed metadata updates through atomic replace.
  v0.2.0 - 2026-10-05 - Join tags from the index when listing records.
  v0.1.0 - 2026-10-03 - Extract record CRUD helpers into mixin.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any, cast

from core.identity import new_id
from models.prompt_model import DEFAULT_BRANCH, PromptMetadata, PromptRecord

from .base import (
    RepositoryCorruptionError,
    RepositoryError,
    RepositoryNotFoundError,
    atomic_write_json as _atomic_write_json,
    ensure_directory as _ensure_directory,
    logger,
    read_json as _read_json,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping
    from datetime import datetime
    from pathlib import Path

    from .tags import TagIndex

_MAX_ID_ATTEMPTS = 8


class RecordStoreMixin:
    """Create, read, list, and metadata-update helpers for prompt records."""

    _root: Path
    _prompts_dir: Path
    _clock: Callable[[], datetime]

    if TYPE_CHECKING:
        # Provided by TagIndexMixin.
        def load_tag_index(self) -> TagIndex: ...

        def tags_for(self, prompt_id: str, *, index: TagIndex | None = None) -> set[str]: ...

        @staticmethod
        def tags_by_id(index: TagIndex) -> dict[str, set[str]]: ...

    def _record_path(self, prompt_id: str) -> Path:
        return self._prompts_dir / f"{prompt_id}.json"

    def exists(self, prompt_id: str) -> bool:
        """Return True when a record file exists for *prompt_id*."""
        return self._record_path(prompt_id).is_file()

    def create(
        self,
        text: str,
        *,
        response: str | None = None,
        model: str | None = None,
        metadata: PromptMetadata | None = None,
        parent_id: str | None = None,
        branch: str = DEFAULT_BRANCH,
    ) -> PromptRecord:
        """Persist a new record and return it.

        The record file is fully written before this returns. Tags are not
        touched here; callers update the tag index afterwards.

        Raises:
            RepositoryNotFoundError: when *parent_id* does not resolve.
            RepositoryError: when the record cannot be written.
        """
        if parent_id is not None and not self.exists(parent_id):
            raise RepositoryNotFoundError(f"Parent prompt {parent_id} not found")
        try:
            _ensure_directory(self._prompts_dir)
        except OSError as exc:
            raise RepositoryError(f"Unable to create {self._prompts_dir}") from exc
        record = PromptRecord(
            id=self._allocate_id(),
            text=text,
            created_at=self._clock(),
            response=response,
            model=model,
            parent_id=parent_id,
            branch=branch or DEFAULT_BRANCH,
            metadata=metadata or PromptMetadata(),
        )
        self._write_record(record)
        logger.debug("Stored prompt %s (parent=%s)", record.id, parent_id)
        return record

    def get(self, prompt_id: str) -> PromptRecord:
        """Return the record for *prompt_id* with its tags joined.

        Raises:
            RepositoryNotFoundError: when no record exists for *prompt_id*.
        """
        record = self._load_record(prompt_id)
        return record.with_tags(self.tags_for(prompt_id))

    def find(self, prompt_id: str) -> PromptRecord | None:
        """Return the record for *prompt_id* or ``None`` when it does not exist."""
        try:
            return self.get(prompt_id)
        except RepositoryNotFoundError:
            return None

    def iter_records(self) -> Iterator[PromptRecord]:
        """Yield stored records in file-name order without joining tags."""
        try:
            paths = sorted(self._prompts_dir.glob("*.json"))
        except OSError as exc:
            raise RepositoryError(f"Unable to scan {self._prompts_dir}") from exc
        for path in paths:
            try:
                yield self._decode_record(path, _read_json(path))
            except FileNotFoundError:
                continue

    def all_records(self) -> list[PromptRecord]:
        """Return every record in store order with tags joined from one index read."""
        by_id = self.tags_by_id(self.load_tag_index())
        return [record.with_tags(by_id.get(record.id, ())) for record in self.iter_records()]

    def count(self) -> int:
        """Return the number of stored records."""
        try:
            return sum(1 for _ in self._prompts_dir.glob("*.json"))
        except OSError as exc:
            raise RepositoryError(f"Unable to scan {self._prompts_dir}") from exc

    def list_records(
        self, limit: int | None = 10, *, tag: str | None = None
    ) -> list[PromptRecord]:
        """Return records newest first, optionally filtered by *tag*."""
        if limit is not None and limit <= 0:
            return []
        records = self.all_records()
        if tag is not None:
            records = [record for record in records if tag in record.tags]
        records.sort(key=lambda record: (record.created_at, record.id), reverse=True)
        return records if limit is None else records[:limit]

    def update_metadata(self, prompt_id: str, partial: Mapping[str, Any]) -> PromptRecord:
        """Merge *partial* into the record's metadata and persist the result.

        Raises:
            RepositoryNotFoundError: when no record exists for *prompt_id*.
            ValueError: when *partial* cannot be merged.
        """
        record = self._load_record(prompt_id)
        updated = replace(record, metadata=record.metadata.merge(partial))
        self._write_record(updated)
        return updated.with_tags(self.tags_for(prompt_id))

    def replace_metadata(self, prompt_id: str, metadata: PromptMetadata) -> PromptRecord:
        """Persist *metadata* wholesale for an existing record."""
        record = self._load_record(prompt_id)
        updated = replace(record, metadata=metadata)
        self._write_record(updated)
        return updated

    def _allocate_id(self) -> str:
        for _ in range(_MAX_ID_ATTEMPTS):
            candidate = new_id()
            if not self.exists(candidate):
                return candidate
            logger.warning("Identifier %s already in use; regenerating", candidate)
        raise RepositoryError("Unable to allocate an unused prompt identifier")

    def _load_record(self, prompt_id: str) -> PromptRecord:
        path = self._record_path(prompt_id)
        try:
            payload = _read_json(path)
        except FileNotFoundError as exc:
            raise RepositoryNotFoundError(f"Prompt {prompt_id} not found") from exc
        return self._decode_record(path, payload)

    @staticmethod
    def _decode_record(path: Path, payload: Any) -> PromptRecord:
        if not isinstance(payload, dict):
            raise RepositoryCorruptionError(f"Prompt file {path} must contain a JSON object")
        try:
            return PromptRecord.from_record(cast("Mapping[str, Any]", payload))
        except (KeyError, TypeError, ValueError) as exc:
            raise RepositoryCorruptionError(f"Prompt file {path} is malformed") from exc

    def _write_record(self, record: PromptRecord) -> None:
        _atomic_write_json(self._record_path(record.id), record.to_record())


__all__ = ["RecordStoreMixin"]
