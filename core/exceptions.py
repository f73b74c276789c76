"""Common exception classes for core package.

This module centralises the error taxonomy shared by the record store, the
tag index and the lineage resolver so callers can decide how to react: retry
on :class:`PromptStorageError`, prompt the user on
:class:`PromptValidationError` / :class:`PromptNotFoundError`, or abort with a
corruption warning on :class:`LineageCycleError`.

All exceptions ultimately inherit from :class:`PromptHubError`, allowing
callers to catch a single base class for any store-related failure while
still distinguishing individual error categories when needed.

Updates:
  v0.3.0 - 2026-10-12 - Add execution errors for save and A/B test workflows.
  v0.2.0 - 2026-10-08 - Add LineageCycleError for corrupted parent chains.
  v0.1.0 - 2026-10-02 - Created module with validation, not-found, and storage errors.
"""

from __future__ import annotations


class PromptHubError(Exception):
    """Base exception for PromptHub failures."""


class PromptValidationError(PromptHubError):
    """Raised when caller input is rejected (empty text, malformed id, bad metadata)."""


class PromptNotFoundError(PromptHubError):
    """Raised when a prompt or referenced parent cannot be located in the store."""


class PromptStorageError(PromptHubError):
    """Raised when interactions with the on-disk store fail."""


class LineageCycleError(PromptHubError):
    """Raised when a lineage walk loops, which indicates store corruption."""


class PromptExecutionUnavailable(PromptHubError):
    """Raised when prompt execution is requested without an executor configured."""


class PromptExecutionError(PromptHubError):
    """Raised when executing a prompt via an LLM fails."""


__all__ = [
    "LineageCycleError",
    "PromptExecutionError",
    "PromptExecutionUnavailable",
    "PromptHubError",
    "PromptNotFoundError",
    "PromptStorageError",
    "PromptValidationError",
]
