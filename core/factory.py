"""Factories for constructing PromptManager instances from validated settings.

Updates:
  v0.2.0 - 2026-10-14 - Wire ModelExecutor only when LiteLLM credentials are configured.
  v0.1.0 - 2026-10-11 - Build explicit PromptManager instances instead of a shared store.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .execution import ModelExecutor
from .prompt_manager import PromptManager
from .repository import PromptRepository

if TYPE_CHECKING:  # pragma: no cover - typing only
    from collections.abc import Callable
    from datetime import datetime

    from config import PromptHubSettings

factory_logger = logging.getLogger("prompthub.factory")


def build_model_executor(settings: PromptHubSettings) -> ModelExecutor | None:
    """Return a LiteLLM executor, or ``None`` when credentials are missing."""
    if not settings.llm_configured:
        factory_logger.debug(
            "LiteLLM API key not configured (PROMPTHUB_LITELLM_API_KEY or OPENAI_API_KEY); "
            "prompt execution is offline."
        )
        return None
    return ModelExecutor(
        model=settings.default_model,
        api_key=settings.litellm_api_key,
        api_base=settings.litellm_api_base,
        api_version=settings.litellm_api_version,
        timeout_seconds=settings.litellm_timeout_seconds,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        drop_params=settings.litellm_drop_params,
    )


def build_prompt_manager(
    settings: PromptHubSettings,
    *,
    repository: PromptRepository | None = None,
    executor: ModelExecutor | None = None,
    clock: Callable[[], datetime] | None = None,
) -> PromptManager:
    """Return a PromptManager configured from validated settings."""
    repository_instance = repository or PromptRepository(settings.store_path, clock=clock)
    resolved_executor = executor or build_model_executor(settings)
    return PromptManager(
        repository=repository_instance,
        executor=resolved_executor,
        default_branch=settings.default_branch,
    )


__all__ = ["build_model_executor", "build_prompt_manager"]
