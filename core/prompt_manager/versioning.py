"""Prompt diff helpers for Prompt Manager.

Updates:
  v0.2.1 - 2026-10-19 - Declare manager-provided collaborators for type checking only.
  v0.2.0 - 2026-10-12 - Compare record attributes alongside the body diff.
  v0.1.0 - 2026-10-12 - Extract unified diff rendering into mixin.
"""

from __future__ import annotations

import difflib
from typing import TYPE_CHECKING, Any

from models.prompt_model import PromptDiff

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from models.prompt_model import PromptRecord

__all__ = ["DIFF_FIELDS", "PromptVersionMixin"]

DIFF_FIELDS = ("model", "branch", "tags", "created_at")


class PromptVersionMixin:
    """Diff two stored prompts."""

    if TYPE_CHECKING:
        # Provided by PromptManager.
        def get_prompt(self, prompt_id: str) -> PromptRecord: ...

    def diff_prompts(self, base_id: str, target_id: str) -> PromptDiff:
        """Return a structured diff between two stored prompts."""
        base = self.get_prompt(base_id)
        target = self.get_prompt(target_id)

        changed_fields: dict[str, dict[str, Any]] = {}
        base_snapshot = base.to_dict()
        target_snapshot = target.to_dict()
        for key in DIFF_FIELDS:
            base_value = base_snapshot.get(key)
            target_value = target_snapshot.get(key)
            if base_value != target_value:
                changed_fields[key] = {"from": base_value, "to": target_value}

        body_diff = self._render_text_diff(
            base.text,
            target.text,
            label_a=f"{base.id}.txt",
            label_b=f"{target.id}.txt",
        )
        return PromptDiff(
            base=base,
            target=target,
            changed_fields=changed_fields,
            body_diff=body_diff,
        )

    @staticmethod
    def _render_text_diff(
        before: str,
        after: str,
        *,
        label_a: str = "before",
        label_b: str = "after",
    ) -> str:
        """Return a unified diff for the provided text blocks."""
        diff = difflib.unified_diff(
            before.splitlines(),
            after.splitlines(),
            fromfile=label_a,
            tofile=label_b,
            lineterm="",
        )
        return "\n".join(diff)
