"""Record store tests for the file-backed PromptRepository.

Updates:
  v0.2.0 - 2026-10-09 - Cover metadata merge persistence and corrupt record handling.
  v0.1.0 - 2026-10-03 - Cover atomic writes, listing order, and empty stores.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from core.repository import (
    PromptRepository,
    RepositoryCorruptionError,
    RepositoryError,
    RepositoryNotFoundError,
)
from models.prompt_model import PromptMetadata

if TYPE_CHECKING:
    from pathlib import Path

    from tests.conftest import FakeClock


def test_initialize_creates_layout_and_is_idempotent(store_root: Path) -> None:
    repo = PromptRepository(store_root)

    repo.initialize()
    (store_root / "tags.json").write_text('{"keep": ["x"]}', encoding="utf-8")
    repo.initialize()

    assert (store_root / "prompts").is_dir()
    assert json.loads((store_root / "tags.json").read_text(encoding="utf-8")) == {"keep": ["x"]}


def test_create_then_get_round_trips(repository: PromptRepository, clock: FakeClock) -> None:
    started = clock.now
    record = repository.create("Explain recursion", response="It calls itself", model="gpt-4")

    loaded = repository.get(record.id)

    assert loaded.text == "Explain recursion"
    assert loaded.response == "It calls itself"
    assert loaded.model == "gpt-4"
    assert loaded.created_at >= started
    assert loaded.branch == "main"


def test_create_writes_pretty_json_without_temporary_leftovers(
    repository: PromptRepository, store_root: Path
) -> None:
    record = repository.create("Hello")

    files = sorted(path.name for path in (store_root / "prompts").iterdir())
    payload = json.loads((store_root / "prompts" / f"{record.id}.json").read_text("utf-8"))

    assert files == [f"{record.id}.json"]
    assert payload["prompt"] == "Hello"
    assert payload["id"] == record.id


def test_create_with_unknown_parent_raises_not_found(repository: PromptRepository) -> None:
    with pytest.raises(RepositoryNotFoundError):
        repository.create("child", parent_id="missing")


def test_get_unknown_id_raises_not_found(repository: PromptRepository) -> None:
    with pytest.raises(RepositoryNotFoundError):
        repository.get("nope")
    assert repository.find("nope") is None


def test_list_returns_newest_first_with_limit(repository: PromptRepository) -> None:
    created = [repository.create(f"prompt {index}") for index in range(5)]

    listed = repository.list_records(2)

    assert [record.id for record in listed] == [created[4].id, created[3].id]
    assert repository.list_records(0) == []
    assert len(repository.list_records(None)) == 5


def test_list_applies_limit_after_tag_filter(repository: PromptRepository) -> None:
    tagged = []
    for index in range(4):
        record = repository.create(f"prompt {index}")
        if index % 2 == 0:
            repository.add_tags(record.id, ["even"])
            tagged.append(record)

    listed = repository.list_records(5, tag="even")

    assert [record.id for record in listed] == [tagged[1].id, tagged[0].id]
    assert all(record.tags == ["even"] for record in listed)


def test_list_on_missing_store_is_empty(tmp_path: Path) -> None:
    repo = PromptRepository(tmp_path / "never-initialised")

    assert repo.list_records() == []
    assert repo.count() == 0


def test_update_metadata_appends_and_persists(repository: PromptRepository) -> None:
    record = repository.create("p", metadata=PromptMetadata(executed=True))

    repository.update_metadata(record.id, {"test_results": [{"comparison_id": "c1"}]})
    updated = repository.update_metadata(record.id, {"test_results": [{"comparison_id": "c2"}]})
    reloaded = repository.get(record.id)

    assert [result.comparison_id for result in updated.metadata.test_results] == ["c1", "c2"]
    assert reloaded.metadata == updated.metadata
    assert reloaded.created_at == record.created_at
    assert reloaded.text == record.text


def test_update_metadata_unknown_id_raises_not_found(repository: PromptRepository) -> None:
    with pytest.raises(RepositoryNotFoundError):
        repository.update_metadata("ghost", {"executed": True})


def test_corrupt_record_file_raises_corruption_error(
    repository: PromptRepository, store_root: Path
) -> None:
    (store_root / "prompts" / "broken.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(RepositoryCorruptionError):
        repository.get("broken")
    with pytest.raises(RepositoryError):
        repository.list_records()


def test_failed_write_leaves_no_partial_record(
    repository: PromptRepository, store_root: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _fail_replace(*_: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("core.repository.base.os.replace", _fail_replace)

    with pytest.raises(RepositoryError):
        repository.create("never stored")
    assert list((store_root / "prompts").iterdir()) == []


def test_allocate_id_regenerates_on_collision(
    repository: PromptRepository, monkeypatch: pytest.MonkeyPatch
) -> None:
    existing = repository.create("first")
    candidates = iter([existing.id, "fresh-id"])
    monkeypatch.setattr("core.repository.records.new_id", lambda: next(candidates))

    record = repository.create("second")

    assert record.id == "fresh-id"
    assert repository.get(existing.id).text == "first"
