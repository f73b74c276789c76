"""LiteLLM-backed prompt execution helpers.

Updates:
  v0.2.0 - 2026-10-13 - Retry without parameters the provider rejects and honour drop lists.
  v0.1.0 - 2026-10-11 - Introduce ModelExecutor for running prompt text via LiteLLM.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, cast

from .litellm_adapter import (
    apply_configured_drop_params,
    call_completion_with_fallback,
    get_completion,
)

logger = logging.getLogger("prompthub.execution")


class ExecutionError(Exception):
    """Raised when LiteLLM prompt execution fails."""


@dataclass(slots=True)
class ExecutionResult:
    """Container for a single model response."""
    model: str
    request_text: str
    response_text: str
    duration_ms: int
    usage: Mapping[str, Any]
    raw_response: Mapping[str, Any]

    @property
    def total_tokens(self) -> int | None:
        """Return total token usage reported by the provider, if any."""
        value = self.usage.get("total_tokens")
        if value is None:
            prompt_tokens = self.usage.get("prompt_tokens")
            completion_tokens = self.usage.get("completion_tokens")
            if prompt_tokens is None and completion_tokens is None:
                return None
            return int(prompt_tokens or 0) + int(completion_tokens or 0)
        return int(value)


@dataclass(slots=True)
class ModelExecutor:
    """Send prompt text to a chat-completion model via LiteLLM."""
    model: str
    api_key: str | None = None
    api_base: str | None = None
    api_version: str | None = None
    timeout_seconds: float | None = None
    max_tokens: int = 2000
    temperature: float = 0.2
    drop_params: Sequence[str] | None = None

    def execute(self, text: str, *, model: str | None = None) -> ExecutionResult:
        """Run *text* as a single user message and return the response."""
        if not text.strip():
            raise ExecutionError("Cannot execute an empty prompt.")
        try:
            completion, LiteLLMException = get_completion()
        except RuntimeError as exc:
            raise ExecutionError(str(exc)) from exc

        target_model = model or self.model
        request: dict[str, Any] = {
            "model": target_model,
            "messages": [{"role": "user", "content": text}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self.timeout_seconds is not None:
            request["timeout"] = self.timeout_seconds
        if self.api_key:
            request["api_key"] = self.api_key
        if self.api_base:
            request["api_base"] = self.api_base
        if self.api_version:
            request["api_version"] = self.api_version
        dropped_params = apply_configured_drop_params(request, self.drop_params)
        if dropped_params:
            logger.debug("Dropping LiteLLM parameters %s before execution", list(dropped_params))

        logger.debug("Executing prompt via LiteLLM", extra={"model": target_model})
        started = time.perf_counter()
        try:
            response = call_completion_with_fallback(
                request,
                completion,
                LiteLLMException,
                pre_dropped=dropped_params,
            )
        except LiteLLMException as exc:
            raise ExecutionError(f"LiteLLM execution failed: {exc}") from exc
        except Exception as exc:  # pragma: no cover - defensive
            raise ExecutionError("Unexpected error while calling LiteLLM") from exc
        duration_ms = int((time.perf_counter() - started) * 1000)

        payload = _serialise_response(response)
        response_text = _extract_completion_text(payload).strip()
        usage_value = payload.get("usage")
        usage: dict[str, Any] = {}
        if isinstance(usage_value, Mapping):
            usage_mapping = cast("Mapping[str, Any]", usage_value)
            usage = {str(key): value for key, value in usage_mapping.items()}

        logger.debug(
            "Prompt executed",
            extra={
                "model": target_model,
                "duration_ms": duration_ms,
                "tokens_total": usage.get("total_tokens"),
            },
        )
        return ExecutionResult(
            model=target_model,
            request_text=text,
            response_text=response_text,
            duration_ms=duration_ms,
            usage=usage,
            raw_response=payload,
        )


def _serialise_response(response: Any) -> dict[str, Any]:
    """Convert LiteLLM response objects into plain dictionaries."""
    if isinstance(response, Mapping):
        mapping = cast("Mapping[str, Any]", response)
        return {str(key): value for key, value in mapping.items()}
    model_dump = getattr(response, "model_dump", None)
    if callable(model_dump):
        dumped = model_dump()
        if isinstance(dumped, Mapping):
            return {str(key): value for key, value in cast("Mapping[str, Any]", dumped).items()}
    raise ExecutionError("LiteLLM returned an unexpected payload")


def _extract_completion_text(payload: Mapping[str, Any]) -> str:
    """Extract assistant content from a LiteLLM completion payload."""
    choices_value = payload.get("choices")
    if not isinstance(choices_value, Sequence) or not choices_value:
        raise ExecutionError("LiteLLM returned an unexpected payload")
    first = cast("Sequence[Any]", choices_value)[0]
    if not isinstance(first, Mapping):
        raise ExecutionError("LiteLLM returned an unexpected payload")
    first_mapping = cast("Mapping[str, Any]", first)
    message_value = first_mapping.get("message")
    if isinstance(message_value, Mapping):
        content = cast("Mapping[str, Any]", message_value).get("content")
        if content is not None:
            return str(content)
    text = first_mapping.get("text")
    if text is not None:
        return str(text)
    raise ExecutionError("LiteLLM response is missing assistant content.")


__all__ = ["ExecutionError", "ExecutionResult", "ModelExecutor"]
