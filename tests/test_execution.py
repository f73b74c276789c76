"""Tests for ModelExecutor and the LiteLLM adapter helpers.

Updates:
  v0.2.0 - 2026-10-13 - Cover rejected-parameter retries and configured drop lists.
  v0.1.0 - 2026-10-11 - Cover request payloads and response parsing.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import TYPE_CHECKING, Any

import pytest

from core.execution import (
    ExecutionError,
    ModelExecutor,
    _extract_completion_text,
    _serialise_response,
)
from core.litellm_adapter import (
    apply_configured_drop_params,
    call_completion_with_fallback,
)

if TYPE_CHECKING:
    from collections.abc import Callable


class _ProviderError(Exception):
    """Stand-in for LiteLLM's exception base class."""


def _patch_completion(
    monkeypatch: pytest.MonkeyPatch,
    completion: Callable[..., Any],
) -> None:
    def fake_get_completion() -> tuple[Callable[..., Any], type[Exception]]:
        return completion, _ProviderError

    monkeypatch.setattr("core.execution.get_completion", fake_get_completion)


def test_execute_builds_request_and_parses_response(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, Any] = {}

    def fake_completion(**request: Any) -> dict[str, Any]:
        captured.update(request)
        return {
            "choices": [{"message": {"content": "  Hello there  "}}],
            "usage": {"prompt_tokens": 4, "completion_tokens": 6},
        }

    _patch_completion(monkeypatch, fake_completion)
    executor = ModelExecutor(
        model="gpt-4",
        api_key="secret",
        api_base="https://api.example.com",
        timeout_seconds=15,
        max_tokens=256,
        temperature=0.5,
    )

    result = executor.execute("Say hello", model="gpt-4o-mini")

    assert captured["model"] == "gpt-4o-mini"
    assert captured["messages"] == [{"role": "user", "content": "Say hello"}]
    assert captured["max_tokens"] == 256
    assert captured["temperature"] == 0.5
    assert captured["timeout"] == 15
    assert captured["api_key"] == "secret"
    assert captured["api_base"] == "https://api.example.com"
    assert "api_version" not in captured
    assert result.response_text == "Hello there"
    assert result.model == "gpt-4o-mini"
    assert result.total_tokens == 10
    assert result.duration_ms >= 0


def test_execute_drops_configured_parameters(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, Any] = {}

    def fake_completion(**request: Any) -> dict[str, Any]:
        captured.update(request)
        return {"choices": [{"text": "done"}], "usage": {"total_tokens": 3}}

    _patch_completion(monkeypatch, fake_completion)
    executor = ModelExecutor(model="o1", drop_params=("temperature",))

    result = executor.execute("Think")

    assert "temperature" not in captured
    assert result.response_text == "done"
    assert result.total_tokens == 3


def test_execute_retries_without_rejected_parameter(monkeypatch: pytest.MonkeyPatch) -> None:
    requests: list[dict[str, Any]] = []

    def fake_completion(**request: Any) -> dict[str, Any]:
        requests.append(dict(request))
        if "temperature" in request:
            raise _ProviderError("This model does not support temperature")
        return {"choices": [{"message": {"content": "ok"}}]}

    _patch_completion(monkeypatch, fake_completion)

    result = ModelExecutor(model="o1").execute("Hi")

    assert len(requests) == 2
    assert "temperature" not in requests[1]
    assert result.response_text == "ok"
    assert result.total_tokens is None


def test_execute_wraps_provider_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_completion(**_: Any) -> dict[str, Any]:
        raise _ProviderError("rate limited")

    _patch_completion(monkeypatch, fake_completion)

    with pytest.raises(ExecutionError) as excinfo:
        ModelExecutor(model="gpt-4").execute("Hi")

    assert "rate limited" in str(excinfo.value)


def test_execute_reports_missing_litellm(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_get_completion() -> tuple[Callable[..., Any], type[Exception]]:
        raise RuntimeError("Prompt execution requires 'litellm'.")

    monkeypatch.setattr("core.execution.get_completion", fake_get_completion)

    with pytest.raises(ExecutionError):
        ModelExecutor(model="gpt-4").execute("Hi")


def test_execute_rejects_empty_text() -> None:
    with pytest.raises(ExecutionError):
        ModelExecutor(model="gpt-4").execute("   ")


def test_serialise_response_uses_model_dump() -> None:
    response = SimpleNamespace(model_dump=lambda: {"choices": []})

    assert _serialise_response(response) == {"choices": []}
    with pytest.raises(ExecutionError):
        _serialise_response(object())


def test_extract_completion_text_requires_choices() -> None:
    with pytest.raises(ExecutionError):
        _extract_completion_text({"choices": []})
    with pytest.raises(ExecutionError):
        _extract_completion_text({"choices": [{"message": {}}]})


def test_fallback_reraises_unrelated_errors() -> None:
    def completion(**_: Any) -> object:
        raise _ProviderError("invalid api key")

    with pytest.raises(_ProviderError):
        call_completion_with_fallback(
            {"model": "m", "temperature": 0.1}, completion, _ProviderError
        )


def test_apply_configured_drop_params_only_removes_present_keys() -> None:
    request: dict[str, object] = {"model": "m", "temperature": 0.2}

    dropped = apply_configured_drop_params(request, [" temperature ", "max_tokens", ""])

    assert dropped == ("temperature",)
    assert request == {"model": "m"}
