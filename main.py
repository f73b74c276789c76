"""Application entry point for PromptHub.

Updates:
  v0.3.0 - 2026-10-16 - Route the remote command without building a prompt manager.
  v0.2.0 - 2026-10-14 - Honour --store overrides and verbose logging.
  v0.1.0 - 2026-10-12 - Wire settings, prompt manager, and CLI command dispatch.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from cli.commands import (
    COMMAND_SPECS,
    EXIT_INIT,
    EXIT_INVALID,
    EXIT_OK,
    EXIT_SETTINGS,
)
from cli.parser import build_parser, parse_args
from cli.runtime import configure_litellm_logging, setup_logging
from cli.settings_summary import print_settings_summary
from config import SettingsError, load_settings
from core import PromptHubError, build_prompt_manager

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from config import PromptHubSettings
    from core.prompt_manager import PromptManager


def _initialise_manager(
    settings: PromptHubSettings,
    logger: logging.Logger,
) -> PromptManager | None:
    try:
        return build_prompt_manager(settings)
    except (PromptHubError, OSError, ValueError) as exc:
        logger.error("Failed to initialise prompt store: %s", exc)
        return None


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint that wires settings, the prompt store, and CLI commands."""
    args = parse_args(argv)
    setup_logging(args.logging_config, verbose=args.verbose)

    logger = logging.getLogger("prompthub.main")
    overrides = {"store_path": args.store} if args.store is not None else {}
    try:
        settings = load_settings(**overrides)
    except (SettingsError, ValueError) as exc:
        logger.error("Failed to load settings: %s", exc)
        return EXIT_SETTINGS

    configure_litellm_logging(settings.litellm_logging_enabled)
    if args.print_settings:
        print_settings_summary(settings)
        return EXIT_OK

    command = getattr(args, "command", None)
    spec = COMMAND_SPECS.get(command)
    if spec is None:
        build_parser().print_help()
        return EXIT_OK

    manager = None
    if spec.requires_manager:
        manager = _initialise_manager(settings, logger)
        if manager is None:
            return EXIT_INIT
        if spec.requires_executor and manager.executor is None:
            logger.error(
                "Command %r needs model execution; set PROMPTHUB_LITELLM_API_KEY "
                "or OPENAI_API_KEY.",
                command,
            )
            manager.close()
            return EXIT_INVALID

    try:
        return spec.handler(manager, args, logger)
    finally:
        if manager is not None:
            manager.close()


if __name__ == "__main__":
    raise SystemExit(main())
