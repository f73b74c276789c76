"""Lineage resolver and outdated detector tests.

Updates:
  v0.2.0 - 2026-10-10 - Assert the outdated detector boundary explicitly.
  v0.1.0 - 2026-10-08 - Cover ancestor chains, descendant trees, and cycle guards.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import pytest

from core.exceptions import LineageCycleError, PromptNotFoundError, PromptValidationError

if TYPE_CHECKING:
    from pathlib import Path

    from core.prompt_manager import PromptManager


def _write_raw_record(store_root: Path, prompt_id: str, **fields: Any) -> None:
    payload = {
        "id": prompt_id,
        "prompt": fields.pop("prompt", f"text of {prompt_id}"),
        "created_at": fields.pop("created_at", "2026-01-01T00:00:00+00:00"),
        "parent_id": fields.pop("parent_id", None),
        **fields,
    }
    path = store_root / "prompts" / f"{prompt_id}.json"
    path.write_text(json.dumps(payload), encoding="utf-8")


def test_ancestors_follow_parent_chain_root_first(manager: PromptManager) -> None:
    root = manager.create_prompt("root")
    middle = manager.create_prompt("middle", parent_id=root.id)
    leaf = manager.create_prompt("leaf", parent_id=middle.id)

    assert [record.id for record in manager.ancestors(leaf.id)] == [root.id, middle.id]
    assert manager.ancestors(root.id) == []


def test_ancestors_stop_at_dangling_parent(
    manager: PromptManager, store_root: Path, caplog: pytest.LogCaptureFixture
) -> None:
    manager.initialize()
    _write_raw_record(store_root, "orphan", parent_id="ghost")
    child = manager.create_prompt("child", parent_id="orphan")

    with caplog.at_level(logging.WARNING, logger="prompthub.lineage"):
        chain = manager.ancestors(child.id)

    assert [record.id for record in chain] == ["orphan"]
    assert "ghost" in caplog.text


def test_cycle_in_parent_links_raises(manager: PromptManager, store_root: Path) -> None:
    manager.initialize()
    _write_raw_record(store_root, "loop-a", parent_id="loop-b")
    _write_raw_record(store_root, "loop-b", parent_id="loop-a")

    with pytest.raises(LineageCycleError):
        manager.ancestors("loop-a")
    with pytest.raises(LineageCycleError):
        manager.descendants("loop-a")


def test_descendants_build_ordered_tree(manager: PromptManager) -> None:
    root = manager.create_prompt("root")
    first = manager.create_prompt("first", parent_id=root.id)
    second = manager.create_prompt("second", parent_id=root.id)
    grandchild = manager.create_prompt("grandchild", parent_id=first.id)

    tree = manager.descendants(root.id)

    assert [node.record.id for node in tree] == [first.id, second.id]
    assert [node.record.id for node in tree[0].children] == [grandchild.id]
    assert tree[1].children == []
    assert [record.id for record in tree[0].walk()] == [first.id, grandchild.id]


def test_lineage_reuses_one_snapshot(manager: PromptManager) -> None:
    root = manager.create_prompt("root")
    child = manager.create_prompt("child", parent_id=root.id)
    index = manager.build_lineage_index()

    lineage = manager.lineage(child.id)

    assert lineage.record.id == child.id
    assert [record.id for record in lineage.ancestors] == [root.id]
    assert lineage.descendants == []
    assert [node.record.id for node in manager.descendants(root.id, index=index)] == [child.id]


def test_lineage_unknown_and_invalid_ids(manager: PromptManager) -> None:
    with pytest.raises(PromptNotFoundError):
        manager.lineage("unknown")
    with pytest.raises(PromptValidationError):
        manager.lineage("../etc/passwd")


def test_check_outdated_boundary(manager: PromptManager, store_root: Path) -> None:
    parent = manager.create_prompt("parent")
    child = manager.create_prompt("child", parent_id=parent.id)

    assert manager.check_outdated() == []

    # A new unrelated record and a metadata update leave the child current.
    manager.create_prompt("parent, take two")
    manager.update_metadata(parent.id, {"executed": True})
    assert manager.check_outdated() == []

    # Overwriting the parent under the same id with a later timestamp flags it.
    later = datetime(2030, 1, 1, tzinfo=UTC)
    _write_raw_record(store_root, parent.id, prompt="parent v2", created_at=later.isoformat())

    outdated = manager.check_outdated()

    assert [entry.record.id for entry in outdated] == [child.id]
    assert outdated[0].parent.created_at == later
    assert outdated[0].reason == (
        f"Parent prompt {parent.id} was updated after this variant was created"
    )


def test_check_outdated_skips_dangling_parents(manager: PromptManager, store_root: Path) -> None:
    manager.initialize()
    _write_raw_record(store_root, "stray", parent_id="gone")

    assert manager.check_outdated() == []
