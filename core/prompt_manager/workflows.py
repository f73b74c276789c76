"""Save, fork, and A/B test workflows for Prompt Manager.

Updates:
  v0.2.1 - 2026-10-19 - Declare manager-provided collaborators for type checking only.
  v0.2.0 - 2026-10-14 - Add A/B test workflow appending comparison results to both prompts.
  v0.1.0 - 2026-10-13 - Extract save and fork workflows with optional model execution.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from models.prompt_model import (
    ABTestReport,
    ABTestSide,
    PromptSource,
    TestResult,
    TestResultMetrics,
)

from ..exceptions import (
    PromptExecutionError,
    PromptExecutionUnavailable,
    PromptValidationError,
)
from ..execution import ExecutionError
from ..identity import new_id

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from models.prompt_model import PromptMetadata, PromptRecord

    from ..execution import ExecutionResult, ModelExecutor

__all__ = ["FORK_TAG", "PromptWorkflowMixin"]

logger = logging.getLogger("prompthub.workflows")

FORK_TAG = "variant"


class PromptWorkflowMixin:
    """Workflows combining model execution with record creation."""

    _executor: ModelExecutor | None

    if TYPE_CHECKING:
        # Provided by PromptManager.
        def create_prompt(
            self,
            text: str,
            *,
            response: str | None = None,
            model: str | None = None,
            tags: Iterable[str] | None = None,
            metadata: PromptMetadata | Mapping[str, Any] | None = None,
            parent_id: str | None = None,
            branch: str | None = None,
        ) -> PromptRecord: ...

        def get_prompt(self, prompt_id: str) -> PromptRecord: ...

        def update_metadata(self, prompt_id: str, partial: Mapping[str, Any]) -> PromptRecord: ...

    # Public APIs ------------------------------------------------------ #

    def save_prompt(
        self,
        text: str,
        *,
        model: str | None = None,
        tags: Iterable[str] | None = None,
        execute: bool = True,
        source: PromptSource | str = PromptSource.CLI,
        parent_id: str | None = None,
        branch: str | None = None,
    ) -> PromptRecord:
        """Optionally execute *text* and store it with the response and metrics."""
        if not text or not text.strip():
            raise PromptValidationError("Prompt text must be a non-empty string")
        source_value = source.value if isinstance(source, PromptSource) else str(source)
        metadata: dict[str, Any] = {"executed": execute, "source": source_value}
        response: str | None = None
        model_label = model
        if execute:
            result = self._execute(text, model=model)
            response = result.response_text
            model_label = result.model
            metadata["metrics"] = {
                "tokens": result.total_tokens,
                "latency": result.duration_ms,
            }
        return self.create_prompt(
            text,
            response=response,
            model=model_label,
            tags=tags,
            metadata=metadata,
            parent_id=parent_id,
            branch=branch,
        )

    def fork_prompt(
        self,
        parent_id: str,
        *,
        text: str | None = None,
        model: str | None = None,
        tags: Iterable[str] | None = None,
        execute: bool = True,
        branch: str | None = None,
    ) -> PromptRecord:
        """Create a variant of *parent_id*, reusing its text when none is given."""
        parent = self.get_prompt(parent_id)
        fork_tags = [FORK_TAG, *(tags or ())]
        return self.save_prompt(
            text if text and text.strip() else parent.text,
            model=model or parent.model,
            tags=fork_tags,
            execute=execute,
            source=PromptSource.FORK,
            parent_id=parent.id,
            branch=branch or parent.branch,
        )

    def run_ab_test(
        self,
        first_id: str,
        second_id: str,
        *,
        model: str | None = None,
        samples: int = 1,
    ) -> ABTestReport:
        """Execute two prompts *samples* times each and record the comparison."""
        if samples < 1:
            raise PromptValidationError("samples must be a positive integer")
        first = self.get_prompt(first_id)
        second = self.get_prompt(second_id)

        left = self._run_side(first, model=model, samples=samples)
        right = self._run_side(second, model=model, samples=samples)
        comparison_id = new_id()
        timestamp = datetime.now(UTC)
        for side in (left, right):
            result = TestResult(
                comparison_id=comparison_id,
                timestamp=timestamp,
                metrics=TestResultMetrics(tokens=side.avg_tokens, latency=side.avg_latency),
            )
            self.update_metadata(side.record_id, {"test_results": [result.to_record()]})
        resolved_model = model or (self._executor.model if self._executor else "")
        logger.info(
            "A/B test %s: %s avg %.1f tokens, %s avg %.1f tokens",
            comparison_id,
            left.record_id,
            left.avg_tokens,
            right.record_id,
            right.avg_tokens,
        )
        return ABTestReport(
            comparison_id=comparison_id,
            timestamp=timestamp,
            model=resolved_model,
            left=left,
            right=right,
        )

    # Internal helpers ------------------------------------------------- #

    def _run_side(self, record: PromptRecord, *, model: str | None, samples: int) -> ABTestSide:
        tokens: list[int] = []
        latencies: list[int] = []
        responses: list[str] = []
        for _ in range(samples):
            result = self._execute(record.text, model=model)
            tokens.append(result.total_tokens or 0)
            latencies.append(result.duration_ms)
            responses.append(result.response_text)
        return ABTestSide(
            record_id=record.id,
            avg_tokens=sum(tokens) / samples,
            avg_latency=sum(latencies) / samples,
            responses=responses,
        )

    def _execute(self, text: str, *, model: str | None) -> ExecutionResult:
        executor = self._executor
        if executor is None:
            raise PromptExecutionUnavailable(
                "Prompt execution is not configured. Provide LiteLLM credentials."
            )
        try:
            return executor.execute(text, model=model)
        except ExecutionError as exc:
            raise PromptExecutionError(str(exc)) from exc
