"""Pytest configuration for shared test fixtures and environment hooks.

Updates:
  v0.2.0 - 2026-10-14 - Add fake executor fixture for save and A/B test workflows.
  v0.1.0 - 2026-10-03 - Provide deterministic clock and temporary prompt store fixtures.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from core.execution import ExecutionError, ExecutionResult
from core.prompt_manager import PromptManager
from core.repository import PromptRepository

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

_ENV_KEYS = (
    "PROMPTHUB_CONFIG_JSON",
    "PROMPTHUB_STORE_PATH",
    "PROMPTHUB_ENV_FILE",
    "PROMPTHUB_LITELLM_API_KEY",
    "PROMPTHUB_DEFAULT_MODEL",
    "PROMPTHUB_REMOTE_TYPE",
    "OPENAI_API_KEY",
    "LITELLM_API_KEY",
)


class FakeClock:
    """Monotonic clock advancing by *step* on every call."""

    def __init__(self, start: datetime | None = None, step: timedelta | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        self.step = step or timedelta(seconds=1)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + self.step
        return current


@dataclass
class FakeExecutor:
    """Stand-in for ModelExecutor returning canned responses."""

    model: str = "fake-model"
    tokens: int = 12
    duration_ms: int = 40
    fail: bool = False
    calls: list[tuple[str, str | None]] = field(default_factory=list)

    def execute(self, text: str, *, model: str | None = None) -> ExecutionResult:
        self.calls.append((text, model))
        if self.fail:
            raise ExecutionError("provider unavailable")
        return ExecutionResult(
            model=model or self.model,
            request_text=text,
            response_text=f"echo: {text}",
            duration_ms=self.duration_ms,
            usage={"total_tokens": self.tokens},
            raw_response={},
        )


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep host configuration out of tests and run each test in its own directory."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("PROMPTHUB_ENV_FILE", "")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    return tmp_path / ".prompthub"


@pytest.fixture
def repository(store_root: Path, clock: FakeClock) -> PromptRepository:
    repo = PromptRepository(store_root, clock=clock)
    repo.initialize()
    return repo


@pytest.fixture
def manager(repository: PromptRepository) -> Iterator[PromptManager]:
    with PromptManager(repository=repository) as instance:
        yield instance


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()
