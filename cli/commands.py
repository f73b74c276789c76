"""CLI command handlers for PromptHub.

Updates:
  v0.3.1 - 2026-10-19 - Show the stored response and metadata when restoring to stdout.
  v0.3.0 - 2026-10-16 - Add A/B test CSV export, tag, reindex, and remote commands.
  v0.2.0 - 2026-10-14 - Map store errors onto distinct exit codes.
  v0.1.0 - 2026-10-12 - Initial save, fork, list, search, diff, restore, and lineage handlers.
"""

from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from config import SettingsError, persist_settings_to_config, resolve_config_path, set_remote
from core import (
    LineageCycleError,
    PromptExecutionError,
    PromptExecutionUnavailable,
    PromptHubError,
    PromptNotFoundError,
    PromptStorageError,
    PromptValidationError,
)
from models.prompt_model import PromptSource

from .utils import (
    colourise_diff,
    format_metric,
    format_timestamp,
    parse_key_value_options,
    print_and_log,
    records_to_json,
    render_lineage_tree,
    render_records_table,
    render_table,
    truncate,
    write_csv_rows,
)

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from core.prompt_manager import PromptManager
else:  # pragma: no cover - runtime placeholders for type-only imports
    PromptManager = object

CommandHandler = Callable[[PromptManager | None, argparse.Namespace, logging.Logger], int]

EXIT_OK = 0
EXIT_SETTINGS = 2
EXIT_INIT = 3
EXIT_NOT_FOUND = 4
EXIT_INVALID = 5
EXIT_STORAGE = 6


@dataclass(frozen=True)
class CommandSpec:
    """Metadata for dispatching CLI command handlers."""

    handler: CommandHandler
    requires_manager: bool = True
    requires_executor: bool = False


def exit_code_for(exc: Exception) -> int:
    """Return the process exit status for a failed command."""
    if isinstance(exc, PromptNotFoundError):
        return EXIT_NOT_FOUND
    if isinstance(
        exc,
        (PromptValidationError, PromptExecutionError, PromptExecutionUnavailable, SettingsError),
    ):
        return EXIT_INVALID
    # Storage failures and lineage cycles.
    return EXIT_STORAGE


def _report_failure(logger: logging.Logger, action: str, exc: Exception) -> int:
    message = f"Failed to {action}: {exc}"
    if isinstance(exc, PromptExecutionUnavailable):
        message += " (use --no-execute to store the prompt without running it)"
    if isinstance(exc, LineageCycleError):
        message += " (the prompt store may be corrupted)"
    print_and_log(logger, logging.ERROR, message)
    return exit_code_for(exc)


def _require_manager(manager: PromptManager | None) -> PromptManager:
    if manager is None:
        raise PromptStorageError("Prompt store is not available.")
    return manager


def _read_prompt_text(args: argparse.Namespace) -> str | None:
    """Return prompt text from ``--prompt`` or ``--file``."""
    file_path: Path | None = getattr(args, "file", None)
    if file_path is not None:
        try:
            return file_path.expanduser().read_text(encoding="utf-8")
        except OSError as exc:
            raise PromptValidationError(f"Unable to read {file_path}: {exc}") from exc
    return getattr(args, "prompt", None)


def run_init(
    manager: PromptManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    try:
        store = _require_manager(manager)
        store.initialize()
        config_path = resolve_config_path(store.repository.root)
        if not config_path.exists():
            persist_settings_to_config({}, config_path)
    except (PromptHubError, SettingsError) as exc:
        print_and_log(logger, logging.ERROR, f"Failed to initialise prompt store: {exc}")
        return EXIT_INIT
    print_and_log(logger, logging.INFO, f"Initialised prompt store at {store.repository.root}")
    print("Next: prompthub save -p \"...\" | prompthub list | prompthub search QUERY")
    return EXIT_OK


def _print_saved(record_id: str, response: str | None, logger: logging.Logger) -> None:
    print_and_log(logger, logging.INFO, f"Saved prompt {record_id}")
    if response:
        print("\nResponse:")
        print(response)


def run_save(
    manager: PromptManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    try:
        store = _require_manager(manager)
        text = _read_prompt_text(args) or ""
        from_file = getattr(args, "file", None) is not None
        record = store.save_prompt(
            text,
            model=args.model,
            tags=args.tags,
            execute=args.execute,
            source=PromptSource.FILE if from_file else PromptSource.CLI,
            parent_id=args.parent,
            branch=args.branch,
        )
    except PromptHubError as exc:
        return _report_failure(logger, "save prompt", exc)
    _print_saved(record.id, record.response, logger)
    return EXIT_OK


def run_fork(
    manager: PromptManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    try:
        store = _require_manager(manager)
        record = store.fork_prompt(
            args.parent,
            text=_read_prompt_text(args),
            model=args.model,
            tags=args.tags,
            execute=args.execute,
            branch=args.branch,
        )
    except PromptHubError as exc:
        return _report_failure(logger, "fork prompt", exc)
    print_and_log(logger, logging.INFO, f"Created variant {record.id} of {args.parent}")
    if record.response:
        print("\nResponse:")
        print(record.response)
    return EXIT_OK


def run_list(
    manager: PromptManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    try:
        records = _require_manager(manager).list_prompts(args.limit, tag=args.tag)
    except PromptHubError as exc:
        return _report_failure(logger, "list prompts", exc)
    if args.format == "json":
        print(records_to_json(records))
        return EXIT_OK
    if not records:
        print("No prompts found")
        return EXIT_OK
    print(render_records_table(records))
    return EXIT_OK


def run_search(
    manager: PromptManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    field = "text" if args.field == "prompt" else args.field
    try:
        records = _require_manager(manager).search_prompts(args.query, field)
    except PromptHubError as exc:
        return _report_failure(logger, "search prompts", exc)
    if args.format == "json":
        print(records_to_json(records))
        return EXIT_OK
    if not records:
        print(f"No prompts matched {args.query!r} in {field}")
        return EXIT_OK
    print(f"Found {len(records)} matching prompt(s):")
    print(render_records_table(records))
    return EXIT_OK


def run_diff(
    manager: PromptManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    try:
        diff = _require_manager(manager).diff_prompts(args.base, args.target)
    except PromptHubError as exc:
        return _report_failure(logger, "compare prompts", exc)
    body = diff.body_diff or "(prompt text is identical)"
    print(colourise_diff(body) if args.color else body)
    print("\nMetadata comparison:")
    rows = [
        (
            "created_at",
            format_timestamp(diff.base.created_at),
            format_timestamp(diff.target.created_at),
        ),
        ("model", diff.base.model or "", diff.target.model or ""),
        ("branch", diff.base.branch, diff.target.branch),
        ("tags", ", ".join(diff.base.tags) or "none", ", ".join(diff.target.tags) or "none"),
    ]
    marked = [(f"{name}*" if name in diff.changed_fields else name, a, b) for name, a, b in rows]
    print(render_table(("Field", diff.base.id, diff.target.id), marked))
    return EXIT_OK


def run_restore(
    manager: PromptManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    try:
        record = _require_manager(manager).get_prompt(args.prompt_id)
    except PromptHubError as exc:
        return _report_failure(logger, "restore prompt", exc)
    if args.output is None:
        print("Prompt:")
        print(record.text)
        if record.response:
            print("\nOriginal Response:")
            print(record.response)
        print("\nMetadata:")
        print(json.dumps(record.metadata.to_record(), indent=2, ensure_ascii=False))
        return EXIT_OK
    destination = Path(args.output).expanduser()
    try:
        destination.write_text(record.text, encoding="utf-8")
    except OSError as exc:
        print_and_log(logger, logging.ERROR, f"Failed to write {destination}: {exc}")
        return EXIT_STORAGE
    print_and_log(logger, logging.INFO, f"Restored prompt {record.id} to {destination}")
    return EXIT_OK


def run_lineage(
    manager: PromptManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    try:
        lineage = _require_manager(manager).lineage(args.prompt_id)
    except PromptHubError as exc:
        return _report_failure(logger, "show lineage", exc)
    print(render_lineage_tree(lineage))
    return EXIT_OK


def run_check_outdated(
    manager: PromptManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del args
    try:
        outdated = _require_manager(manager).check_outdated()
    except PromptHubError as exc:
        return _report_failure(logger, "check for outdated prompts", exc)
    if not outdated:
        print("All prompts are up to date.")
        return EXIT_OK
    plural = "" if len(outdated) == 1 else "s"
    print(f"Found {len(outdated)} outdated prompt{plural}:")
    for entry in outdated:
        print(f"\n* {entry.record.id} (child of {entry.parent.id})")
        print(f"  Parent updated: {format_timestamp(entry.parent.created_at)}")
        print(f"  Variant created: {format_timestamp(entry.record.created_at)}")
        print(f"  Reason: {entry.reason}")
        print(f'  Parent prompt: "{truncate(entry.parent.text, 100)}"')
        print(f'  Variant prompt: "{truncate(entry.record.text, 100)}"')
    print("\nTo refresh a variant, fork the parent again: prompthub fork <parent-id> -p \"...\"")
    return EXIT_OK


def run_ab_test(
    manager: PromptManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    try:
        store = _require_manager(manager)
        report = store.run_ab_test(
            args.first,
            args.second,
            model=args.model,
            samples=args.samples,
        )
        sides = (report.left, report.right)
        texts = {side.record_id: store.get_prompt(side.record_id).text for side in sides}
    except PromptHubError as exc:
        return _report_failure(logger, "run A/B test", exc)

    print(f"A/B test {report.comparison_id} ({report.model or 'default model'}):")
    print(
        render_table(
            ("Prompt", "Avg Tokens", "Avg Latency"),
            [
                (
                    side.record_id,
                    format_metric(side.avg_tokens),
                    format_metric(side.avg_latency, suffix=" ms"),
                )
                for side in sides
            ],
        )
    )
    if args.output is not None:
        rows = [
            {
                "prompt_id": side.record_id,
                "prompt": texts[side.record_id],
                "avg_tokens": side.avg_tokens,
                "avg_latency": side.avg_latency,
                "sample_responses": " | ".join(side.responses),
            }
            for side in sides
        ]
        try:
            destination = write_csv_rows(Path(args.output), rows)
        except OSError as exc:
            print_and_log(logger, logging.ERROR, f"Failed to export results: {exc}")
            return EXIT_STORAGE
        print_and_log(logger, logging.INFO, f"Results exported to {destination}")
    return EXIT_OK


def run_tag(
    manager: PromptManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    try:
        record = _require_manager(manager).add_tags(args.prompt_id, args.tags)
    except PromptHubError as exc:
        return _report_failure(logger, "tag prompt", exc)
    print_and_log(logger, logging.INFO, f"Prompt {record.id} tags: {', '.join(record.tags)}")
    return EXIT_OK


def run_reindex(
    manager: PromptManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del args
    try:
        index = _require_manager(manager).rebuild_tag_index()
    except PromptHubError as exc:
        return _report_failure(logger, "rebuild tag index", exc)
    print_and_log(logger, logging.INFO, f"Tag index rebuilt with {len(index)} tag(s)")
    return EXIT_OK


def run_remote(
    manager: PromptManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del manager
    try:
        options = parse_key_value_options(args.options)
    except ValueError as exc:
        print_and_log(logger, logging.ERROR, f"Failed to configure remote: {exc}")
        return EXIT_INVALID
    try:
        remote = set_remote(args.type, options, resolve_config_path(args.store))
    except SettingsError as exc:
        return _report_failure(logger, "configure remote", exc)
    print_and_log(
        logger,
        logging.INFO,
        f"Remote set to {remote['type']}; synchronisation is not implemented yet.",
    )
    return EXIT_OK


COMMAND_SPECS: dict[str | None, CommandSpec] = {
    "init": CommandSpec(run_init),
    "save": CommandSpec(run_save),
    "fork": CommandSpec(run_fork),
    "list": CommandSpec(run_list),
    "search": CommandSpec(run_search),
    "diff": CommandSpec(run_diff),
    "restore": CommandSpec(run_restore),
    "lineage": CommandSpec(run_lineage),
    "check-outdated": CommandSpec(run_check_outdated),
    "test": CommandSpec(run_ab_test, requires_executor=True),
    "tag": CommandSpec(run_tag),
    "reindex": CommandSpec(run_reindex),
    "remote": CommandSpec(run_remote, requires_manager=False),
}

__all__ = [
    "COMMAND_SPECS",
    "EXIT_INIT",
    "EXIT_INVALID",
    "EXIT_NOT_FOUND",
    "EXIT_OK",
    "EXIT_SETTINGS",
    "EXIT_STORAGE",
    "CommandSpec",
    "exit_code_for",
]
