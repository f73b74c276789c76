"""Shared CLI utility functions for PromptHub commands.

Updates:
  v0.2.1 - 2026-10-19 - Render lineage trees with an explicit stack.
  v0.2.0 - 2026-10-16 - Add table, lineage tree, and coloured diff renderers.
  v0.1.0 - 2026-10-12 - Extract stdout logging, masking, path helpers, and CSV export.
"""

from __future__ import annotations

import csv
import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from collections.abc import Iterable, Mapping, Sequence
    from logging import Logger

    from models.prompt_model import Lineage, LineageNode, PromptRecord
else:  # pragma: no cover - runtime placeholders for type-only imports
    Mapping = Sequence = Logger = Any

_ANSI_RESET = "\033[0m"
_ANSI_RED = "\033[31m"
_ANSI_GREEN = "\033[32m"
_ANSI_CYAN = "\033[36m"


def print_and_log(logger: Logger, level: int, message: str) -> None:
    """Log *message* at *level* and mirror it to stdout."""
    logger.log(level, message)
    print(message)


def mask_secret(value: str | None) -> str:
    """Return an obfuscated representation of secret configuration values."""
    if not value:
        return "not set"
    secret = value.strip()
    if len(secret) <= 6:
        return "set (****)"
    prefix = secret[:4]
    suffix = secret[-4:]
    return f"set ({prefix}...{suffix})"


def describe_path(path_value: object, *, expect_directory: bool) -> str:
    """Return a human-friendly description of *path_value* suitability."""
    if path_value is None:
        return "not set"
    resolved = Path(str(path_value)).expanduser()
    if resolved.exists():
        if expect_directory and not resolved.is_dir():
            return f"{resolved} (exists but is not a directory)"
        if not expect_directory and resolved.is_dir():
            return f"{resolved} (exists but is a directory)"
        return f"{resolved} (exists)"
    return f"{resolved} (missing)"


def write_csv_rows(path: Path, rows: Sequence[Mapping[str, object]]) -> Path:
    """Persist *rows* to CSV at *path* and return the resolved destination."""
    if not rows:
        raise ValueError("No rows available for export")
    headers: list[str] = []
    seen_keys: set[str] = set()
    for row in rows:
        for key in row.keys():
            if key in seen_keys:
                continue
            seen_keys.add(key)
            headers.append(str(key))

    resolved = path.expanduser()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    with resolved.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=headers)
        writer.writeheader()
        for row in rows:
            writer.writerow({key: row.get(key) for key in headers})
    return resolved


def format_metric(value: float | None, *, suffix: str = "") -> str:
    """Return display-friendly metric text with optional *suffix*."""
    if value is None:
        return "n/a"
    formatted = f"{value:.2f}" if abs(value) < 1000 else f"{value:.0f}"
    return f"{formatted}{suffix}" if suffix else formatted


def truncate(text: str | None, width: int = 50) -> str:
    """Collapse whitespace and shorten *text* to *width* characters."""
    if not text:
        return ""
    single_line = " ".join(text.split())
    if len(single_line) <= width:
        return single_line
    return single_line[: max(width - 3, 0)] + "..."


def format_timestamp(value: datetime | None) -> str:
    """Return *value* in local time without microseconds."""
    if value is None:
        return ""
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def render_table(headers: Sequence[str], rows: Iterable[Sequence[object]]) -> str:
    """Return a plain-text table with left-aligned columns."""
    text_rows = [["" if cell is None else str(cell) for cell in row] for row in rows]
    widths = [len(header) for header in headers]
    for row in text_rows:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], len(cell))

    def _line(cells: Sequence[str]) -> str:
        return "  ".join(cell.ljust(widths[index]) for index, cell in enumerate(cells)).rstrip()

    separator = "  ".join("-" * width for width in widths)
    return "\n".join([_line(list(headers)), separator, *(_line(row) for row in text_rows)])


def render_records_table(records: Sequence[PromptRecord]) -> str:
    """Return the standard prompt listing table."""
    return render_table(
        ("ID", "Prompt", "Model", "Tags", "Created At"),
        (
            (
                record.id,
                truncate(record.text),
                record.model or "",
                ", ".join(record.tags),
                format_timestamp(record.created_at),
            )
            for record in records
        ),
    )


def records_to_json(records: Iterable[PromptRecord]) -> str:
    """Serialise records (with joined tags) to pretty-printed JSON."""
    return json.dumps([record.to_dict() for record in records], indent=2, ensure_ascii=False)


def _node_label(record: PromptRecord) -> str:
    return f'{record.id} "{truncate(record.text)}" {format_timestamp(record.created_at)}'


def _render_children(nodes: Sequence[LineageNode], prefix: str, lines: list[str]) -> None:
    stack: list[tuple[LineageNode, str, bool]] = [
        (node, prefix, index == len(nodes) - 1) for index, node in enumerate(nodes)
    ]
    stack.reverse()
    while stack:
        node, node_prefix, is_last = stack.pop()
        marker = "└─ " if is_last else "├─ "
        lines.append(f"{node_prefix}{marker}{_node_label(node.record)}")
        child_prefix = node_prefix + ("   " if is_last else "│  ")
        last = len(node.children) - 1
        stack.extend(
            (child, child_prefix, index == last)
            for index, child in reversed(list(enumerate(node.children)))
        )


def render_lineage_tree(lineage: Lineage) -> str:
    """Return a box-drawing rendering of ancestors, the record, and its variants."""
    lines = ["Ancestors:"]
    if not lineage.ancestors:
        lines.append("  (none)")
    for depth, ancestor in enumerate(lineage.ancestors):
        lines.append(f"{'  ' * depth}└─ {_node_label(ancestor)}")
    depth = len(lineage.ancestors)
    lines.append(f"{'  ' * depth}└─ {_node_label(lineage.record)}  <- selected")
    if lineage.descendants:
        lines.append("")
        lines.append("Descendants:")
        _render_children(lineage.descendants, "  " * (depth + 1), lines)
    return "\n".join(lines)


def colourise_diff(diff_text: str) -> str:
    """Wrap unified diff lines in ANSI colours."""
    coloured: list[str] = []
    for line in diff_text.splitlines():
        if line.startswith(("+++", "---")):
            coloured.append(line)
        elif line.startswith("+"):
            coloured.append(f"{_ANSI_GREEN}{line}{_ANSI_RESET}")
        elif line.startswith("-"):
            coloured.append(f"{_ANSI_RED}{line}{_ANSI_RESET}")
        elif line.startswith("@@"):
            coloured.append(f"{_ANSI_CYAN}{line}{_ANSI_RESET}")
        else:
            coloured.append(line)
    return "\n".join(coloured)


def parse_key_value_options(options: Iterable[str]) -> dict[str, str]:
    """Parse ``KEY=VALUE`` strings into a mapping."""
    parsed: dict[str, str] = {}
    for option in options:
        key, separator, value = option.partition("=")
        if not separator or not key.strip():
            raise ValueError(f"Expected KEY=VALUE, got {option!r}")
        parsed[key.strip()] = value.strip()
    return parsed
