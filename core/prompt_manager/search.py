"""Substring search helpers for Prompt Manager.

Updates:
  v0.2.1 - 2026-10-19 - Declare manager-provided collaborators for type checking only.
  v0.2.0 - 2026-10-11 - Match tags by substring so partial tag names find records.
  v0.1.0 - 2026-10-08 - Replace vector search with case-insensitive field scans.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models.prompt_model import PromptRecord

logger = logging.getLogger("prompthub.search")

__all__ = ["SEARCH_FIELDS", "PromptSearchMixin", "record_matches"]

SEARCH_FIELDS = ("text", "response", "tags")


def record_matches(record: PromptRecord, query: str, field: str) -> bool:
    """Return True when *record*'s *field* contains *query*, ignoring case."""
    needle = query.casefold()
    if field == "text":
        return needle in record.text.casefold()
    if field == "response":
        return record.response is not None and needle in record.response.casefold()
    if field == "tags":
        return any(needle in tag.casefold() for tag in record.tags)
    return False


class PromptSearchMixin:
    """Linear scan search over stored prompts."""

    if TYPE_CHECKING:
        # Provided by PromptManager.
        def _scan_records(self) -> list[PromptRecord]: ...

    def search_prompts(self, query: str, field: str | None = "text") -> list[PromptRecord]:
        """Return prompts whose *field* contains *query*, in store order.

        Unknown fields match nothing.
        """
        if field is None or field not in SEARCH_FIELDS:
            logger.debug("Ignoring search on unsupported field %r", field)
            return []
        return [record for record in self._scan_records() if record_matches(record, query, field)]
