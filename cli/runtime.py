"""Runtime boot helpers for the PromptHub CLI.

Updates:
  v0.1.1 - 2026-10-14 - Add LiteLLM logging toggle helper and verbose level override.
  v0.1.0 - 2026-10-12 - Extract logging configuration helpers.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path

DEFAULT_LOGGING_CONFIG = Path(".prompthub/logging.conf")


def setup_logging(logging_conf_path: Path | None, *, verbose: bool = False) -> None:
    """Configure logging using *logging_conf_path* when available."""
    path = logging_conf_path or DEFAULT_LOGGING_CONFIG
    configured = False
    if path.exists():
        try:
            logging.config.fileConfig(path, disable_existing_loggers=False)
            configured = True
        except (OSError, KeyError, ValueError) as exc:  # pragma: no cover - configuration fallback
            print(f"Ignoring invalid logging configuration {path}: {exc}")
    if not configured:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def configure_litellm_logging(enabled: bool) -> None:
    """Enable or disable upstream LiteLLM library logs."""
    litellm_loggers = (
        logging.getLogger("litellm"),
        logging.getLogger("LiteLLM"),
        logging.getLogger("LiteLLM Router"),
    )
    for litellm_logger in litellm_loggers:
        litellm_logger.propagate = True
        if enabled:
            litellm_logger.disabled = False
            litellm_logger.setLevel(logging.NOTSET)
        else:
            litellm_logger.disabled = True
            litellm_logger.setLevel(logging.CRITICAL)
