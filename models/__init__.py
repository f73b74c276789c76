"""Data models for PromptHub.

Updates: v0.2.0 - 2026-10-12 - Export lineage, outdated, diff, and A/B test shapes.
Updates: v0.1.0 - 2026-10-02 - Export PromptRecord dataclass.
"""

from .prompt_model import (
    DEFAULT_BRANCH,
    ABTestReport,
    ABTestSide,
    CIInfo,
    CIStatus,
    Lineage,
    LineageNode,
    OutdatedPrompt,
    PromptDiff,
    PromptMetadata,
    PromptMetrics,
    PromptRecord,
    PromptSource,
    TestResult,
    TestResultMetrics,
)

__all__ = [
    "ABTestReport",
    "ABTestSide",
    "CIInfo",
    "CIStatus",
    "DEFAULT_BRANCH",
    "Lineage",
    "LineageNode",
    "OutdatedPrompt",
    "PromptDiff",
    "PromptMetadata",
    "PromptMetrics",
    "PromptRecord",
    "PromptSource",
    "TestResult",
    "TestResultMetrics",
]
