"""Prompt Manager package façade and orchestration layer.

The façade validates caller input, delegates persistence to
:class:`core.repository.PromptRepository`, and translates repository errors
into the :mod:`core.exceptions` hierarchy. Lineage, search, diff, and workflow
APIs live in dedicated mixin modules.

Updates:
  v0.5.1 - 2026-10-19 - Return records without unindexed tags after index failures.
  v0.5.0 - 2026-10-14 - Add save, fork, and A/B test workflows via mixin module.
  v0.4.0 - 2026-10-12 - Expose diff helper through versioning mixin.
  v0.3.0 - 2026-10-09 - Validate metadata updates against typed merge rules.
  v0.2.0 - 2026-10-07 - Mirror tags into record metadata and support index rebuilds.
  v0.1.0 - 2026-10-03 - Explicit, context-managed store object replacing module-level state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from models.prompt_model import (
    DEFAULT_BRANCH,
    PromptMetadata,
    PromptRecord,
    is_valid_prompt_id,
    normalize_tags,
)

from ..exceptions import (
    PromptNotFoundError,
    PromptStorageError,
    PromptValidationError,
)
from ..repository import PromptRepository, RepositoryError, RepositoryNotFoundError
from .lineage import LineageIndex, PromptLineageMixin
from .search import SEARCH_FIELDS, PromptSearchMixin
from .versioning import PromptVersionMixin
from .workflows import PromptWorkflowMixin

if TYPE_CHECKING:  # pragma: no cover - typing only
    from collections.abc import Callable
    from datetime import datetime
    from pathlib import Path
    from types import TracebackType

    from ..execution import ModelExecutor

logger = logging.getLogger("prompthub.manager")


class PromptManager(
    PromptLineageMixin,
    PromptSearchMixin,
    PromptVersionMixin,
    PromptWorkflowMixin,
):
    """Manage prompt persistence, tags, lineage, and execution workflows."""

    def __init__(
        self,
        store_path: str | Path | None = None,
        *,
        repository: PromptRepository | None = None,
        executor: ModelExecutor | None = None,
        default_branch: str = DEFAULT_BRANCH,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialise the manager.

        Args:
            store_path: Directory holding the prompt store.
            repository: Optional preconfigured repository (for example, in tests).
            executor: Optional model executor used by save and A/B test workflows.
            default_branch: Branch label applied when callers omit one.
            clock: Optional timestamp source forwarded to a repository built here.
        """
        if repository is None:
            if store_path is None:
                raise ValueError("store_path must be provided when no repository is supplied")
            repository = PromptRepository(store_path, clock=clock)
        self._repository = repository
        self._executor = executor
        self._default_branch = default_branch or DEFAULT_BRANCH
        self._initialized = False
        self._closed = False

    # Lifecycle -------------------------------------------------------- #

    @property
    def repository(self) -> PromptRepository:
        """Expose the underlying repository for advanced workflows."""
        return self._repository

    @property
    def executor(self) -> ModelExecutor | None:
        """Return the configured model executor, if any."""
        return self._executor

    def set_executor(self, executor: ModelExecutor | None) -> None:
        """Replace the model executor used by execution workflows."""
        self._executor = executor

    def initialize(self) -> None:
        """Create the store layout; repeated calls are harmless."""
        try:
            self._repository.initialize()
        except RepositoryError as exc:
            raise PromptStorageError(
                f"Unable to initialise prompt store at {self._repository.root}"
            ) from exc
        self._initialized = True

    def close(self) -> None:
        """Release the executor reference; the store holds no open handles."""
        if self._closed:
            return
        self._executor = None
        self._closed = True
        logger.debug("Prompt manager closed")

    def __enter__(self) -> PromptManager:
        """Support use of PromptManager as a context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close the manager when leaving a context block."""
        self.close()

    # Records ---------------------------------------------------------- #

    def create_prompt(
        self,
        text: str,
        *,
        response: str | None = None,
        model: str | None = None,
        tags: Iterable[str] | None = None,
        metadata: PromptMetadata | Mapping[str, Any] | None = None,
        parent_id: str | None = None,
        branch: str | None = None,
    ) -> PromptRecord:
        """Persist a new prompt record and index its tags.

        The record is durable before the tag index is touched. When the index
        update fails the record is returned without tags, matching what
        :meth:`get_prompt` reports, and the failure is logged;
        :meth:`rebuild_tag_index` restores the tags from the metadata mirror.
        """
        if not isinstance(text, str) or not text.strip():
            raise PromptValidationError("Prompt text must be a non-empty string")
        if parent_id is not None:
            self._validate_id(parent_id)
        cleaned_tags = normalize_tags(tags)
        record_metadata = self._coerce_metadata(metadata)
        record_metadata.tags = list(cleaned_tags)
        self._ensure_initialized()
        try:
            record = self._repository.create(
                text,
                response=response,
                model=model,
                metadata=record_metadata,
                parent_id=parent_id,
                branch=branch or self._default_branch,
            )
        except RepositoryNotFoundError as exc:
            raise PromptNotFoundError(f"Parent prompt {parent_id} not found") from exc
        except RepositoryError as exc:
            raise PromptStorageError("Failed to persist prompt") from exc

        if not cleaned_tags:
            return record
        try:
            stored_tags = self._repository.add_tags(record.id, cleaned_tags)
        except RepositoryError:
            logger.error(
                "Prompt %s stored but tag index update failed; run reindex to repair",
                record.id,
                exc_info=True,
            )
            return record
        return record.with_tags(stored_tags)

    def get_prompt(self, prompt_id: str) -> PromptRecord:
        """Return the stored record with its tags joined from the index."""
        self._validate_id(prompt_id)
        try:
            return self._repository.get(prompt_id)
        except RepositoryNotFoundError as exc:
            raise PromptNotFoundError(f"Prompt {prompt_id} not found") from exc
        except RepositoryError as exc:
            raise PromptStorageError(f"Unable to load prompt {prompt_id}") from exc

    def find_prompt(self, prompt_id: str) -> PromptRecord | None:
        """Return the stored record or ``None`` when the id is unknown."""
        try:
            return self.get_prompt(prompt_id)
        except PromptNotFoundError:
            return None

    def list_prompts(self, limit: int | None = 10, *, tag: str | None = None) -> list[PromptRecord]:
        """Return prompts newest first, optionally restricted to *tag*."""
        try:
            return self._repository.list_records(limit, tag=tag)
        except RepositoryError as exc:
            raise PromptStorageError("Unable to list prompts") from exc

    def count_prompts(self) -> int:
        """Return the number of stored prompts."""
        try:
            return self._repository.count()
        except RepositoryError as exc:
            raise PromptStorageError("Unable to count prompts") from exc

    def update_metadata(self, prompt_id: str, partial: Mapping[str, Any]) -> PromptRecord:
        """Merge *partial* into the prompt's metadata and persist it."""
        self._validate_id(prompt_id)
        if not isinstance(partial, Mapping):
            raise PromptValidationError("Metadata update must be a mapping")
        try:
            return self._repository.update_metadata(prompt_id, partial)
        except RepositoryNotFoundError as exc:
            raise PromptNotFoundError(f"Prompt {prompt_id} not found") from exc
        except RepositoryError as exc:
            raise PromptStorageError(f"Failed to update metadata for {prompt_id}") from exc
        except (TypeError, ValueError) as exc:
            raise PromptValidationError(f"Invalid metadata update: {exc}") from exc

    # Tags ------------------------------------------------------------- #

    def add_tags(self, prompt_id: str, tags: Iterable[str]) -> PromptRecord:
        """Attach *tags* to an existing prompt and return the updated record."""
        self._validate_id(prompt_id)
        cleaned = normalize_tags(tags)
        if not cleaned:
            raise PromptValidationError("At least one non-empty tag is required")
        try:
            record = self._repository.get(prompt_id)
            stored_tags = self._repository.add_tags(prompt_id, cleaned)
            mirror = normalize_tags([*record.metadata.tags, *cleaned])
            if mirror != record.metadata.tags:
                metadata = PromptMetadata.from_record(record.metadata.to_record())
                metadata.tags = mirror
                self._repository.replace_metadata(prompt_id, metadata)
                record.metadata = metadata
        except RepositoryNotFoundError as exc:
            raise PromptNotFoundError(f"Prompt {prompt_id} not found") from exc
        except RepositoryError as exc:
            raise PromptStorageError(f"Failed to tag prompt {prompt_id}") from exc
        return record.with_tags(stored_tags)

    def tags_for(self, prompt_id: str) -> set[str]:
        """Return the tags indexed for *prompt_id*."""
        self._validate_id(prompt_id)
        try:
            return self._repository.tags_for(prompt_id)
        except RepositoryError as exc:
            raise PromptStorageError("Unable to read tag index") from exc

    def ids_for_tag(self, tag: str) -> set[str]:
        """Return ids carrying *tag*."""
        try:
            return self._repository.ids_for_tag(tag)
        except RepositoryError as exc:
            raise PromptStorageError("Unable to read tag index") from exc

    def rebuild_tag_index(self) -> dict[str, set[str]]:
        """Recreate the tag index from tags mirrored in record metadata."""
        self._ensure_initialized()
        try:
            return self._repository.rebuild_tag_index()
        except RepositoryError as exc:
            raise PromptStorageError("Unable to rebuild tag index") from exc

    # Internal helpers ------------------------------------------------- #

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            self.initialize()

    def _scan_records(self) -> list[PromptRecord]:
        """Return every record in store order with tags joined."""
        try:
            return self._repository.all_records()
        except RepositoryError as exc:
            raise PromptStorageError("Unable to scan prompt store") from exc

    @staticmethod
    def _validate_id(prompt_id: object) -> None:
        if not is_valid_prompt_id(prompt_id):
            raise PromptValidationError(f"Invalid prompt id: {prompt_id!r}")

    @staticmethod
    def _coerce_metadata(metadata: PromptMetadata | Mapping[str, Any] | None) -> PromptMetadata:
        if metadata is None:
            return PromptMetadata()
        if isinstance(metadata, PromptMetadata):
            return PromptMetadata.from_record(metadata.to_record())
        if not isinstance(metadata, Mapping):
            raise PromptValidationError("Metadata must be a mapping")
        try:
            return PromptMetadata.from_record(metadata)
        except (TypeError, ValueError) as exc:
            raise PromptValidationError(f"Invalid metadata: {exc}") from exc


__all__ = [
    "LineageIndex",
    "PromptManager",
    "SEARCH_FIELDS",
]
