"""Tests for CLI presentation helpers.

Updates: v0.2.0 - 2026-10-19 - Render deep fork chains without recursion.
Updates: v0.1.0 - 2026-10-16 - Cover tables, lineage trees, coloured diffs, and option parsing.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from cli.settings_summary import build_settings_summary
from cli.utils import (
    colourise_diff,
    format_metric,
    mask_secret,
    parse_key_value_options,
    render_lineage_tree,
    render_table,
    truncate,
    write_csv_rows,
)
from config import load_settings
from models.prompt_model import Lineage, LineageNode, PromptRecord

if TYPE_CHECKING:
    from pathlib import Path

    from core.prompt_manager import PromptManager


def _record(prompt_id: str, text: str, parent_id: str | None = None) -> PromptRecord:
    return PromptRecord(
        id=prompt_id,
        text=text,
        created_at=datetime(2026, 1, 1, tzinfo=UTC),
        parent_id=parent_id,
    )


def test_truncate_collapses_whitespace() -> None:
    assert truncate("a\n  b\tc") == "a b c"
    assert truncate("x" * 60, width=10) == "xxxxxxx..."
    assert truncate(None) == ""


def test_render_table_aligns_columns() -> None:
    table = render_table(("ID", "Name"), [("1", "alpha"), ("22", None)])

    assert table.splitlines() == ["ID  Name", "--  -----", "1   alpha", "22"]


def test_render_lineage_tree_marks_selected_record() -> None:
    root = _record("root", "Root prompt")
    selected = _record("mid", "Middle prompt", parent_id="root")
    first = LineageNode(_record("c1", "First child", parent_id="mid"))
    first.children.append(LineageNode(_record("g1", "Grandchild", parent_id="c1")))
    second = LineageNode(_record("c2", "Second child", parent_id="mid"))

    rendered = render_lineage_tree(
        Lineage(record=selected, ancestors=[root], descendants=[first, second])
    ).splitlines()

    assert rendered[0] == "Ancestors:"
    assert rendered[1].startswith('└─ root "Root prompt"')
    assert rendered[2].startswith('  └─ mid "Middle prompt"')
    assert rendered[2].endswith("<- selected")
    assert rendered[4] == "Descendants:"
    assert rendered[5].startswith('    ├─ c1 "First child"')
    assert rendered[6].startswith('    │  └─ g1 "Grandchild"')
    assert rendered[7].startswith('    └─ c2 "Second child"')


def test_render_lineage_tree_for_root_without_variants() -> None:
    lineage = Lineage(record=_record("solo", "Alone"), ancestors=[], descendants=[])

    rendered = render_lineage_tree(lineage)

    assert rendered.splitlines()[:2] == ["Ancestors:", "  (none)"]
    assert "Descendants:" not in rendered


def test_colourise_diff_leaves_headers_plain() -> None:
    coloured = colourise_diff("--- a.txt\n+++ b.txt\n@@ -1 +1 @@\n-old\n+new\n same")

    lines = coloured.splitlines()
    assert lines[0] == "--- a.txt"
    assert lines[1] == "+++ b.txt"
    assert lines[3] == "\033[31m-old\033[0m"
    assert lines[4] == "\033[32m+new\033[0m"
    assert lines[5] == " same"


def test_parse_key_value_options() -> None:
    assert parse_key_value_options(["bucket=prompts", " region = eu "]) == {
        "bucket": "prompts",
        "region": "eu",
    }
    with pytest.raises(ValueError):
        parse_key_value_options(["=value"])


def test_write_csv_rows_requires_rows(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        write_csv_rows(tmp_path / "empty.csv", [])


def test_metric_and_secret_formatting() -> None:
    assert format_metric(None) == "n/a"
    assert format_metric(12.5, suffix=" ms") == "12.50 ms"
    assert mask_secret("abc") == "set (****)"
    assert mask_secret(None) == "not set"


def test_settings_summary_reports_remote_and_masks_key() -> None:
    settings = load_settings(
        litellm_api_key="sk-abcdefgh1234",
        remote={"type": "rest", "options": {"url": "https://example.com"}},
    )

    summary = build_settings_summary(settings)

    assert "Remote: rest (url=https://example.com)" in summary
    assert "LiteLLM API key: set (sk-a...1234)" in summary


def test_render_lineage_tree_handles_long_fork_chains(manager: PromptManager) -> None:
    root = manager.create_prompt("v0")
    parent_id = root.id
    for step in range(1, 1201):
        parent_id = manager.create_prompt(f"v{step}", parent_id=parent_id).id

    lines = render_lineage_tree(manager.lineage(root.id)).splitlines()

    assert lines[4] == "Descendants:"
    assert lines[5].startswith('  └─ ')
    assert '"v1"' in lines[5]
    assert len(lines) == 5 + 1200
    assert lines[-1].lstrip().startswith(f'└─ {parent_id} "v1200"')
