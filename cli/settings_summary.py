"""Printable summaries for PromptHub configuration.

Updates:
  v0.1.1 - 2026-10-15 - Include the configured remote target.
  v0.1.0 - 2026-10-12 - Extract CLI settings summary rendering.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .utils import describe_path, mask_secret

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from config import PromptHubSettings


def build_settings_summary(settings: PromptHubSettings) -> list[str]:
    """Return summary lines for *settings* with secrets masked."""
    remote = settings.remote
    remote_line = "not configured"
    if remote is not None:
        options = ", ".join(f"{key}={value}" for key, value in sorted(remote.options.items()))
        remote_line = f"{remote.type} ({options})" if options else remote.type

    return [
        "PromptHub configuration summary",
        "-------------------------------",
        f"Store directory: {describe_path(settings.store_path, expect_directory=True)}",
        f"Config file: {describe_path(settings.config_path, expect_directory=False)}",
        f"Default branch: {settings.default_branch}",
        f"Remote: {remote_line}",
        "",
        "LiteLLM configuration",
        "---------------------",
        f"Default model: {settings.default_model}",
        f"Max tokens: {settings.max_tokens}",
        f"Temperature: {settings.temperature}",
        f"LiteLLM API key: {mask_secret(settings.litellm_api_key)}",
        f"LiteLLM API base: {settings.litellm_api_base or 'not set'}",
        f"LiteLLM API version: {settings.litellm_api_version or 'not set'}",
        f"Dropped parameters: {', '.join(settings.litellm_drop_params or []) or 'none'}",
        f"LiteLLM logging: {'enabled' if settings.litellm_logging_enabled else 'disabled'}",
    ]


def print_settings_summary(settings: PromptHubSettings) -> None:
    """Emit a readable summary of core configuration."""
    print("\n".join(build_settings_summary(settings)))


__all__ = ["build_settings_summary", "print_settings_summary"]
