"""Lineage traversal and outdated-variant detection for Prompt Manager.

Updates:
  v0.2.1 - 2026-10-19 - Declare manager-provided collaborators for type checking only.
  v0.2.0 - 2026-10-10 - Add reusable LineageIndex snapshot and outdated detector.
  v0.1.0 - 2026-10-08 - Extract ancestor and descendant traversal into mixin.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from models.prompt_model import Lineage, LineageNode, OutdatedPrompt, PromptRecord

from ..exceptions import LineageCycleError, PromptNotFoundError

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from collections.abc import Iterable

__all__ = ["LineageIndex", "PromptLineageMixin"]

logger = logging.getLogger("prompthub.lineage")


def _creation_order(record: PromptRecord) -> tuple[object, str]:
    return (record.created_at, record.id)


@dataclass(slots=True)
class LineageIndex:
    """Snapshot of the store keyed for repeated lineage traversals."""

    records: dict[str, PromptRecord] = field(default_factory=dict)
    children: dict[str, list[PromptRecord]] = field(default_factory=dict)

    @classmethod
    def from_records(cls, records: Iterable[PromptRecord]) -> LineageIndex:
        """Build the index from a single scan of *records*."""
        index = cls()
        for record in records:
            index.records[record.id] = record
            if record.parent_id is not None:
                index.children.setdefault(record.parent_id, []).append(record)
        for siblings in index.children.values():
            siblings.sort(key=_creation_order)
        return index

    def __len__(self) -> int:
        return len(self.records)

    def get(self, prompt_id: str) -> PromptRecord | None:
        """Return the record for *prompt_id* when present in the snapshot."""
        return self.records.get(prompt_id)

    def children_of(self, prompt_id: str) -> list[PromptRecord]:
        """Return direct children ordered oldest first."""
        return list(self.children.get(prompt_id, ()))


class PromptLineageMixin:
    """Ancestor, descendant, and outdated-variant queries."""

    if TYPE_CHECKING:
        # Provided by PromptManager.
        def _scan_records(self) -> list[PromptRecord]: ...

        def _validate_id(self, prompt_id: object) -> None: ...

    # Public APIs ------------------------------------------------------ #

    def build_lineage_index(self) -> LineageIndex:
        """Return a reusable snapshot for repeated lineage queries."""
        return LineageIndex.from_records(self._scan_records())

    def ancestors(self, prompt_id: str, *, index: LineageIndex | None = None) -> list[PromptRecord]:
        """Return the parent chain of *prompt_id*, root first.

        A parent reference that does not resolve ends the chain with a warning.
        A walk longer than the store, or one that revisits a record, raises
        :class:`LineageCycleError`.
        """
        snapshot = self._resolve_index(index)
        record = self._require(snapshot, prompt_id)
        chain: list[PromptRecord] = []
        visited = {record.id}
        bound = len(snapshot)
        current = record.parent_id
        while current is not None:
            if current in visited or len(chain) >= bound:
                raise LineageCycleError(f"Lineage of prompt {prompt_id} loops at {current}")
            parent = snapshot.get(current)
            if parent is None:
                logger.warning(
                    "Prompt %s references missing parent %s; ancestry truncated",
                    chain[-1].id if chain else record.id,
                    current,
                )
                break
            visited.add(parent.id)
            chain.append(parent)
            current = parent.parent_id
        chain.reverse()
        return chain

    def descendants(
        self,
        prompt_id: str,
        *,
        index: LineageIndex | None = None,
    ) -> list[LineageNode]:
        """Return the trees of variants derived from *prompt_id*."""
        snapshot = self._resolve_index(index)
        self._require(snapshot, prompt_id)
        roots = [LineageNode(child) for child in snapshot.children_of(prompt_id)]
        visited = {prompt_id}
        stack = list(roots)
        while stack:
            node = stack.pop()
            if node.record.id in visited:
                raise LineageCycleError(
                    f"Descendants of prompt {prompt_id} revisit {node.record.id}"
                )
            visited.add(node.record.id)
            node.children = [LineageNode(child) for child in snapshot.children_of(node.record.id)]
            stack.extend(node.children)
        return roots

    def lineage(self, prompt_id: str) -> Lineage:
        """Return the record with its ancestors and descendant trees."""
        snapshot = self._resolve_index(None)
        record = self._require(snapshot, prompt_id)
        return Lineage(
            record=record,
            ancestors=self.ancestors(prompt_id, index=snapshot),
            descendants=self.descendants(prompt_id, index=snapshot),
        )

    def check_outdated(self, *, index: LineageIndex | None = None) -> list[OutdatedPrompt]:
        """Return variants whose parent carries a later creation timestamp.

        Records are immutable through this API, so the signal only appears
        after a parent file was overwritten out of band under the same id.
        """
        snapshot = self._resolve_index(index)
        outdated: list[OutdatedPrompt] = []
        for record in sorted(snapshot.records.values(), key=_creation_order):
            if record.parent_id is None:
                continue
            parent = snapshot.get(record.parent_id)
            if parent is None:
                logger.warning(
                    "Prompt %s references missing parent %s; skipping outdated check",
                    record.id,
                    record.parent_id,
                )
                continue
            if parent.created_at > record.created_at:
                outdated.append(
                    OutdatedPrompt(
                        record=record,
                        parent=parent,
                        reason=(
                            f"Parent prompt {parent.id} was updated after this variant "
                            "was created"
                        ),
                    )
                )
        return outdated

    # Internal helpers ------------------------------------------------- #

    def _resolve_index(self, index: LineageIndex | None) -> LineageIndex:
        return index if index is not None else self.build_lineage_index()

    def _require(self, snapshot: LineageIndex, prompt_id: str) -> PromptRecord:
        self._validate_id(prompt_id)
        record = snapshot.get(prompt_id)
        if record is None:
            raise PromptNotFoundError(f"Prompt {prompt_id} not found")
        return record
