"""File-backed repository for persistent prompt storage.

Updates:
  v0.3.0 - 2026-10-07 - Compose record store and tag index mixins over one store root.
  v0.2.0 - 2026-10-04 - Accept an injectable clock for deterministic timestamps.
  v0.1.0 - 2026-10-02 - Replace database storage with one JSON document per prompt.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from .base import (
    RepositoryCorruptionError,
    RepositoryError,
    RepositoryNotFoundError,
    ensure_directory as _ensure_directory,
    logger,
)
from .records import RecordStoreMixin
from .tags import TagIndex, TagIndexMixin

if TYPE_CHECKING:
    from collections.abc import Callable

PROMPTS_DIRNAME = "prompts"
TAG_INDEX_FILENAME = "tags.json"
TAG_LOCK_FILENAME = "tags.lock"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class PromptRepository(RecordStoreMixin, TagIndexMixin):
    """Compose repository mixins for directory-backed storage.

    Layout under *root*::

        prompts/<id>.json   one record per file
        tags.json           {tag: [ids]}
        tags.lock           advisory lock guarding tag index updates
    """

    def __init__(
        self,
        root: str | Path,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._root = Path(root)
        self._prompts_dir = self._root / PROMPTS_DIRNAME
        self._tags_path = self._root / TAG_INDEX_FILENAME
        self._lock_path = self._root / TAG_LOCK_FILENAME
        self._clock = clock or _utc_now

    @property
    def root(self) -> Path:
        """Return the store root directory."""
        return self._root

    def initialize(self) -> None:
        """Create the store layout when missing; safe to repeat concurrently."""
        try:
            _ensure_directory(self._root)
            _ensure_directory(self._prompts_dir)
        except OSError as exc:
            raise RepositoryError(f"Unable to create store at {self._root}") from exc
        self._ensure_tag_index()
        logger.debug("Prompt store ready at %s", self._root)


__all__ = [
    "PROMPTS_DIRNAME",
    "PromptRepository",
    "RepositoryCorruptionError",
    "RepositoryError",
    "RepositoryNotFoundError",
    "TAG_INDEX_FILENAME",
    "TAG_LOCK_FILENAME",
    "TagIndex",
]
