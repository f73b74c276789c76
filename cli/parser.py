"""Argument parser for the PromptHub CLI.

Updates:
  v0.2.0 - 2026-10-16 - Add test, tag, reindex, and remote subcommands.
  v0.1.0 - 2026-10-12 - Initial subcommands for saving, forking, and inspecting prompts.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path


def _add_save_options(parser: argparse.ArgumentParser) -> None:
    """Attach options shared by ``save`` and ``fork``."""
    parser.add_argument("-m", "--model", default=None, help="Model used to execute the prompt.")
    parser.add_argument(
        "-t",
        "--tags",
        nargs="+",
        default=None,
        help="Tags to attach to the saved prompt.",
    )
    parser.add_argument(
        "--no-execute",
        dest="execute",
        action="store_false",
        help="Store the prompt without running it against a model.",
    )
    parser.add_argument("--branch", default=None, help="Branch label for the saved prompt.")


def build_parser() -> argparse.ArgumentParser:
    """Return the configured argument parser."""
    parser = argparse.ArgumentParser(
        prog="prompthub",
        description="Local version control for prompts.",
    )
    parser.add_argument(
        "--logging-config",
        type=Path,
        default=None,
        help="Path to logging configuration file (INI format)",
    )
    parser.add_argument(
        "--store",
        type=Path,
        default=None,
        help="Prompt store directory (default: .prompthub).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--print-settings",
        action="store_true",
        help="Print resolved settings and exit",
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init", help="Initialise the prompt store in the current directory.")

    save_parser = subparsers.add_parser("save", help="Save a new prompt, executing it by default.")
    source_group = save_parser.add_mutually_exclusive_group(required=True)
    source_group.add_argument("-p", "--prompt", default=None, help="Prompt text.")
    source_group.add_argument(
        "-f", "--file", type=Path, default=None, help="Read the prompt text from a file."
    )
    save_parser.add_argument("--parent", default=None, help="Parent prompt id.")
    _add_save_options(save_parser)

    fork_parser = subparsers.add_parser("fork", help="Create a variant of an existing prompt.")
    fork_parser.add_argument("parent", help="Id of the prompt to fork.")
    fork_source = fork_parser.add_mutually_exclusive_group()
    fork_source.add_argument(
        "-p", "--prompt", default=None, help="Variant text (defaults to the parent's text)."
    )
    fork_source.add_argument(
        "-f", "--file", type=Path, default=None, help="Read the variant text from a file."
    )
    _add_save_options(fork_parser)

    list_parser = subparsers.add_parser("list", help="List saved prompts, newest first.")
    list_parser.add_argument(
        "-n",
        "--limit",
        type=int,
        default=10,
        help="Number of prompts to show (default: 10).",
    )
    list_parser.add_argument("-t", "--tag", default=None, help="Only show prompts with this tag.")
    list_parser.add_argument(
        "--format",
        choices=("table", "json"),
        default="table",
        help="Output format (default: table).",
    )

    search_parser = subparsers.add_parser("search", help="Search prompts by substring.")
    search_parser.add_argument("query", help="Case-insensitive text to look for.")
    search_parser.add_argument(
        "--in",
        dest="field",
        choices=("text", "prompt", "response", "tags"),
        default="text",
        help="Field to search (default: text).",
    )
    search_parser.add_argument(
        "--format",
        choices=("table", "json"),
        default="table",
        help="Output format (default: table).",
    )

    diff_parser = subparsers.add_parser("diff", help="Show a unified diff between two prompts.")
    diff_parser.add_argument("base", help="Base prompt id.")
    diff_parser.add_argument("target", help="Target prompt id.")
    diff_parser.add_argument(
        "--no-color",
        dest="color",
        action="store_false",
        help="Disable ANSI colours in the diff output.",
    )

    restore_parser = subparsers.add_parser("restore", help="Print or export a stored prompt.")
    restore_parser.add_argument("prompt_id", help="Prompt id to restore.")
    restore_parser.add_argument(
        "-o", "--output", type=Path, default=None, help="Write the prompt text to this file."
    )

    lineage_parser = subparsers.add_parser("lineage", help="Show ancestors and variants.")
    lineage_parser.add_argument("prompt_id", help="Prompt id to inspect.")

    subparsers.add_parser(
        "check-outdated",
        help="List variants whose parent changed after they were created.",
    )

    test_parser = subparsers.add_parser("test", help="A/B test two prompts against a model.")
    test_parser.add_argument("first", help="First prompt id.")
    test_parser.add_argument("second", help="Second prompt id.")
    test_parser.add_argument("-m", "--model", default=None, help="Model used for both prompts.")
    test_parser.add_argument(
        "-s",
        "--samples",
        type=int,
        default=1,
        help="Executions per prompt (default: 1).",
    )
    test_parser.add_argument(
        "-o", "--output", type=Path, default=None, help="Export the comparison to CSV."
    )

    tag_parser = subparsers.add_parser("tag", help="Attach tags to an existing prompt.")
    tag_parser.add_argument("prompt_id", help="Prompt id to tag.")
    tag_parser.add_argument("tags", nargs="+", help="Tags to attach.")

    subparsers.add_parser("reindex", help="Rebuild the tag index from stored prompts.")

    remote_parser = subparsers.add_parser(
        "remote",
        help="Record a remote target (s3, github, rest). Nothing is synchronised.",
    )
    remote_parser.add_argument("type", help="Remote type: s3, github, or rest.")
    remote_parser.add_argument(
        "-o",
        "--option",
        dest="options",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Remote option; repeat for several.",
    )

    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed CLI arguments."""
    return build_parser().parse_args(argv)
