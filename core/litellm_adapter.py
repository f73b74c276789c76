"""Shared LiteLLM adapter for PromptHub model execution.

Updates:
  v0.2.0 - 2026-10-13 - Strip configured drop parameters before retrying rejected requests.
  v0.1.0 - 2026-10-11 - Import LiteLLM lazily so store-only commands start without it.
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

logger = logging.getLogger("prompthub.litellm")

DEFAULT_DROP_CANDIDATES = frozenset({"max_tokens", "temperature", "timeout"})


class LiteLLMNotInstalledError(RuntimeError):
    """Raised when LiteLLM cannot be imported in the current environment."""


_completion: Callable[..., object] | None = None
_LiteLLMException: type[Exception] = Exception


def _ensure_loaded() -> None:
    """Import the LiteLLM completion API on first use."""

    global _completion, _LiteLLMException
    if _completion is not None:
        return
    try:  # pragma: no cover - runtime import path
        litellm = importlib.import_module("litellm")
    except ImportError as exc:
        raise LiteLLMNotInstalledError(
            "Prompt execution requires 'litellm'. Install it with `pip install litellm`."
        ) from exc

    completion = getattr(litellm, "completion", None)
    if completion is None:
        raise RuntimeError("litellm completion API is unavailable in the installed version.")

    exceptions_module = importlib.import_module("litellm.exceptions")
    # Older releases expose a single base class; newer ones derive from OpenAIError.
    exception_type = getattr(exceptions_module, "LiteLLMException", None) or getattr(
        exceptions_module, "OpenAIError", Exception
    )

    _completion = completion
    _LiteLLMException = exception_type


def get_completion() -> tuple[Callable[..., object], type[Exception]]:
    """Return the LiteLLM completion callable and exception type."""

    _ensure_loaded()
    assert _completion is not None  # pragma: no cover - defensive
    return _completion, _LiteLLMException


def call_completion_with_fallback(
    request: dict[str, object],
    completion: Callable[..., object],
    lite_llm_exception: type[Exception],
    *,
    drop_candidates: Iterable[str] | None = None,
    pre_dropped: Iterable[str] | None = None,
) -> object:
    """Invoke *completion* and retry once without parameters the model rejected."""

    try:
        return completion(**request)
    except lite_llm_exception as exc:
        unsupported = _detect_unsupported_parameters(str(exc), request.keys(), drop_candidates)
        if not unsupported:
            raise
        already_dropped = {str(item).strip() for item in pre_dropped or () if str(item).strip()}
        trimmed_request = {key: value for key, value in request.items() if key not in unsupported}
        logger.info(
            "Model rejected parameters %s; retrying request without them.",
            ", ".join(sorted(already_dropped | unsupported)),
        )
        return completion(**trimmed_request)


def apply_configured_drop_params(
    request: dict[str, object],
    drop_params: Sequence[str] | None,
) -> tuple[str, ...]:
    """Remove configured parameters from *request* and return the ones dropped."""

    if not drop_params:
        return ()
    dropped: list[str] = []
    for raw_key in drop_params:
        key = str(raw_key).strip()
        if key and key in request and key not in dropped:
            request.pop(key)
            dropped.append(key)
    return tuple(dropped)


def _detect_unsupported_parameters(
    message: str,
    parameters: Iterable[str],
    drop_candidates: Iterable[str] | None = None,
) -> set[str]:
    lowered = message.lower()
    indicators = ("not support", "unsupported", "not allowed", "unexpected", "unknown")
    if not any(token in lowered for token in indicators):
        return set()

    candidates = set(drop_candidates or DEFAULT_DROP_CANDIDATES)
    unsupported: set[str] = set()
    for key in parameters:
        if key not in candidates:
            continue
        key_forms = (key, key.replace("_", " "), key.replace("_", "-"))
        if any(form in lowered for form in key_forms):
            unsupported.add(key)
    return unsupported


__all__ = [
    "DEFAULT_DROP_CANDIDATES",
    "LiteLLMNotInstalledError",
    "apply_configured_drop_params",
    "call_completion_with_fallback",
    "get_completion",
]
