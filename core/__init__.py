"""Core service layer for PromptHub.

Updates:
  v0.2.0 - 2026-10-14 - Export execution helpers and the settings-driven factory.
  v0.1.0 - 2026-10-03 - Surface PromptRepository and the initial PromptManager API.
"""

from .exceptions import (
    LineageCycleError,
    PromptExecutionError,
    PromptExecutionUnavailable,
    PromptHubError,
    PromptNotFoundError,
    PromptStorageError,
    PromptValidationError,
)
from .execution import ExecutionError, ExecutionResult, ModelExecutor
from .factory import build_model_executor, build_prompt_manager
from .identity import new_id
from .prompt_manager import LineageIndex, PromptManager
from .repository import PromptRepository, RepositoryError, RepositoryNotFoundError

__all__ = [
    "ExecutionError",
    "ExecutionResult",
    "LineageCycleError",
    "LineageIndex",
    "ModelExecutor",
    "PromptExecutionError",
    "PromptExecutionUnavailable",
    "PromptHubError",
    "PromptManager",
    "PromptNotFoundError",
    "PromptRepository",
    "PromptStorageError",
    "PromptValidationError",
    "RepositoryError",
    "RepositoryNotFoundError",
    "build_model_executor",
    "build_prompt_manager",
    "new_id",
]
