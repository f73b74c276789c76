"""Tag index tests covering idempotence, concurrency, and rebuilds.

Updates:
  v0.2.0 - 2026-10-07 - Cover index rebuilds from mirrored metadata tags.
  v0.1.0 - 2026-10-06 - Cover locked read-modify-write updates.
"""

from __future__ import annotations

import json
import threading
from typing import TYPE_CHECKING

import pytest

from core.repository import PromptRepository, RepositoryError
from models.prompt_model import PromptMetadata

if TYPE_CHECKING:
    from pathlib import Path


def test_add_tags_is_idempotent(repository: PromptRepository, store_root: Path) -> None:
    record = repository.create("p")

    once = repository.add_tags(record.id, ["a"])
    before = (store_root / "tags.json").read_text(encoding="utf-8")
    twice = repository.add_tags(record.id, ["a"])
    after = (store_root / "tags.json").read_text(encoding="utf-8")

    assert once == twice == {"a"}
    assert before == after


def test_tags_round_trip(repository: PromptRepository) -> None:
    record = repository.create("p")
    repository.add_tags(record.id, ["x", "y"])

    assert repository.tags_for(record.id) == {"x", "y"}
    assert record.id in repository.ids_for_tag("x")
    assert repository.ids_for_tag("unknown") == set()


def test_missing_index_file_is_treated_as_empty(
    repository: PromptRepository, store_root: Path
) -> None:
    record = repository.create("p")
    (store_root / "tags.json").unlink()

    assert repository.load_tag_index() == {}
    assert repository.get(record.id).tags == []


def test_non_object_index_raises_repository_error(
    repository: PromptRepository, store_root: Path
) -> None:
    (store_root / "tags.json").write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(RepositoryError):
        repository.load_tag_index()


def test_index_file_is_sorted_json_lists(repository: PromptRepository, store_root: Path) -> None:
    first = repository.create("a")
    second = repository.create("b")
    repository.add_tags(second.id, ["shared", "beta"])
    repository.add_tags(first.id, ["shared"])

    payload = json.loads((store_root / "tags.json").read_text(encoding="utf-8"))

    assert list(payload) == ["beta", "shared"]
    assert payload["shared"] == sorted([first.id, second.id])


def test_concurrent_add_tags_keeps_every_update(store_root: Path) -> None:
    seed = PromptRepository(store_root)
    seed.initialize()
    records = [seed.create(f"prompt {index}") for index in range(12)]
    errors: list[BaseException] = []

    def _worker(prompt_id: str, tag: str) -> None:
        # Separate instances mimic independent CLI processes sharing the store.
        repo = PromptRepository(store_root)
        try:
            repo.add_tags(prompt_id, ["shared", tag])
        except BaseException as exc:  # noqa: BLE001 - surfaced via assertion below
            errors.append(exc)

    threads = [
        threading.Thread(target=_worker, args=(record.id, f"tag-{index}"))
        for index, record in enumerate(records)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    index = seed.load_tag_index()
    assert errors == []
    assert index["shared"] == {record.id for record in records}
    for position, record in enumerate(records):
        assert index[f"tag-{position}"] == {record.id}


def test_rebuild_tag_index_restores_from_metadata(
    repository: PromptRepository, store_root: Path
) -> None:
    tagged = repository.create("p", metadata=PromptMetadata(tags=["docs", "qa"]))
    untagged = repository.create("q")
    (store_root / "tags.json").write_text("{corrupt", encoding="utf-8")

    rebuilt = repository.rebuild_tag_index()

    assert rebuilt == {"docs": {tagged.id}, "qa": {tagged.id}}
    assert repository.tags_for(tagged.id) == {"docs", "qa"}
    assert repository.tags_for(untagged.id) == set()
