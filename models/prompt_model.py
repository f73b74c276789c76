"""Prompt record data model definitions.

Updates: v0.4.1 - 2026-10-19 - Reject malformed metrics, ci, test_results, and executed values.
Updates: v0.4.0 - 2026-10-12 - Add lineage, outdated, diff, and A/B test result shapes.
Updates: v0.3.0 - 2026-10-09 - Replace open metadata map with typed PromptMetadata and merge rules.
Updates: v0.2.0 - 2026-10-05 - Mirror creation tags into metadata so the tag index can be rebuilt.
Updates: v0.1.0 - 2026-10-02 - Initial PromptRecord schema with serialization helpers.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any, cast

DEFAULT_BRANCH = "main"

PROMPT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")

_METADATA_KEYS = frozenset({"executed", "source", "metrics", "test_results", "ci", "tags"})


def _utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


def _ensure_datetime(value: Any) -> datetime:
    """Parse incoming datetime values (isoformat strings or datetime)."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if value is None:
        return _utc_now()
    text = str(value).strip()
    # Older record files use a trailing ``Z``.
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def normalize_tags(tags: Iterable[Any] | str | None) -> list[str]:
    """Return trimmed, de-duplicated tags preserving first-seen order."""
    if tags is None:
        return []
    items: Iterable[Any] = [tags] if isinstance(tags, str) else tags
    cleaned: list[str] = []
    for raw in items:
        text = str(raw).strip()
        if text and text not in cleaned:
            cleaned.append(text)
    return cleaned


def is_valid_prompt_id(value: object) -> bool:
    """Return True when *value* is usable as a record identifier."""
    return isinstance(value, str) and bool(PROMPT_ID_PATTERN.match(value))


class PromptSource(str, Enum):
    """Enumerate where a prompt body came from."""
    CLI = "cli"
    FILE = "file"
    API = "api"
    FORK = "fork"


class CIStatus(str, Enum):
    """Enumerate CI pipeline outcomes attached to prompts."""
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(slots=True)
class PromptMetrics:
    """Performance metrics captured when a prompt was executed."""
    tokens: float | None = None
    latency: float | None = None
    cost: float | None = None

    def merged(self, other: PromptMetrics) -> PromptMetrics:
        """Return a copy where non-null values from *other* win."""
        return PromptMetrics(
            tokens=other.tokens if other.tokens is not None else self.tokens,
            latency=other.latency if other.latency is not None else self.latency,
            cost=other.cost if other.cost is not None else self.cost,
        )

    def to_record(self) -> dict[str, Any]:
        record = {"tokens": self.tokens, "latency": self.latency, "cost": self.cost}
        return {key: value for key, value in record.items() if value is not None}

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> PromptMetrics:
        return cls(
            tokens=_optional_float(data.get("tokens")),
            latency=_optional_float(data.get("latency")),
            cost=_optional_float(data.get("cost")),
        )


@dataclass(slots=True)
class TestResultMetrics:
    """Metrics recorded for one side of an A/B comparison."""
    __test__ = False

    accuracy: float | None = None
    latency: float | None = None
    tokens: float | None = None

    def to_record(self) -> dict[str, Any]:
        record = {"accuracy": self.accuracy, "latency": self.latency, "tokens": self.tokens}
        return {key: value for key, value in record.items() if value is not None}

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> TestResultMetrics:
        return cls(
            accuracy=_optional_float(data.get("accuracy")),
            latency=_optional_float(data.get("latency")),
            tokens=_optional_float(data.get("tokens")),
        )


@dataclass(slots=True)
class TestResult:
    """A single A/B test outcome appended to a prompt's metadata."""
    __test__ = False

    comparison_id: str
    timestamp: datetime = field(default_factory=_utc_now)
    metrics: TestResultMetrics = field(default_factory=TestResultMetrics)

    def to_record(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "comparison_id": self.comparison_id,
            "metrics": self.metrics.to_record(),
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> TestResult:
        metrics_value = data.get("metrics")
        metrics = (
            TestResultMetrics.from_record(cast("Mapping[str, Any]", metrics_value))
            if isinstance(metrics_value, Mapping)
            else TestResultMetrics()
        )
        return cls(
            comparison_id=str(data.get("comparison_id") or ""),
            timestamp=_ensure_datetime(data.get("timestamp")),
            metrics=metrics,
        )


@dataclass(slots=True)
class CIInfo:
    """CI/CD pipeline details attached to a prompt."""
    pipeline: str | None = None
    run_id: str | None = None
    status: CIStatus | None = None

    def to_record(self) -> dict[str, Any]:
        record = {
            "pipeline": self.pipeline,
            "run_id": self.run_id,
            "status": self.status.value if self.status is not None else None,
        }
        return {key: value for key, value in record.items() if value is not None}

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> CIInfo:
        status_value = data.get("status")
        return cls(
            pipeline=str(data["pipeline"]) if data.get("pipeline") is not None else None,
            run_id=str(data["run_id"]) if data.get("run_id") is not None else None,
            status=CIStatus(str(status_value)) if status_value else None,
        )


@dataclass(slots=True)
class PromptMetadata:
    """Mutable auxiliary attributes of a prompt record.

    Known sub-fields are typed; anything else lands in ``extra``. See
    :meth:`merge` for the per-field update rule.
    """
    executed: bool | None = None
    source: str | None = None
    metrics: PromptMetrics | None = None
    test_results: list[TestResult] = field(default_factory=list)
    ci: CIInfo | None = None
    tags: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def merge(self, partial: Mapping[str, Any]) -> PromptMetadata:
        """Return a new metadata object with *partial* applied.

        ``executed``, ``source`` and ``ci`` are replaced, ``metrics`` is merged
        key by key, ``test_results`` entries are appended and unknown keys are
        shallow-merged into ``extra``. ``tags`` cannot be changed here.

        Raises:
            ValueError: when *partial* carries ``tags`` or malformed values.
        """
        if "tags" in partial:
            raise ValueError("Tags are managed through the tag index, not metadata updates")
        incoming = PromptMetadata.from_record(partial)
        updated = replace(
            self,
            test_results=list(self.test_results),
            tags=list(self.tags),
            extra=dict(self.extra),
        )
        if "executed" in partial:
            updated.executed = incoming.executed
        if "source" in partial:
            updated.source = incoming.source
        if "ci" in partial:
            updated.ci = incoming.ci
        if incoming.metrics is not None:
            base = updated.metrics or PromptMetrics()
            updated.metrics = base.merged(incoming.metrics)
        updated.test_results.extend(incoming.test_results)
        updated.extra.update(incoming.extra)
        return updated

    def to_record(self) -> dict[str, Any]:
        """Return a JSON-serialisable mapping; empty fields are omitted."""
        record: dict[str, Any] = dict(self.extra)
        if self.executed is not None:
            record["executed"] = self.executed
        if self.source is not None:
            record["source"] = self.source
        if self.metrics is not None:
            record["metrics"] = self.metrics.to_record()
        if self.test_results:
            record["test_results"] = [result.to_record() for result in self.test_results]
        if self.ci is not None:
            record["ci"] = self.ci.to_record()
        if self.tags:
            record["tags"] = list(self.tags)
        return record

    @classmethod
    def from_record(cls, data: Mapping[str, Any] | None) -> PromptMetadata:
        """Hydrate metadata from a stored or caller-supplied mapping."""
        if not data:
            return cls()
        metrics_value = data.get("metrics")
        if metrics_value is not None and not isinstance(metrics_value, Mapping):
            raise ValueError("metrics must be an object")
        ci_value = data.get("ci")
        if ci_value is not None and not isinstance(ci_value, Mapping):
            raise ValueError("ci must be an object")
        results_value = data.get("test_results")
        test_results: list[TestResult] = []
        if isinstance(results_value, Mapping):
            test_results.append(TestResult.from_record(cast("Mapping[str, Any]", results_value)))
        elif isinstance(results_value, Iterable) and not isinstance(results_value, str):
            for entry in results_value:
                if not isinstance(entry, Mapping):
                    raise ValueError("test_results entries must be objects")
                test_results.append(TestResult.from_record(cast("Mapping[str, Any]", entry)))
        elif results_value is not None:
            raise ValueError("test_results must be an object or a list of objects")
        executed_value = data.get("executed")
        if executed_value is not None and not isinstance(executed_value, bool):
            raise ValueError("executed must be a boolean")
        source_value = data.get("source")
        return cls(
            executed=executed_value,
            source=str(source_value) if source_value is not None else None,
            metrics=(
                PromptMetrics.from_record(cast("Mapping[str, Any]", metrics_value))
                if metrics_value is not None
                else None
            ),
            test_results=test_results,
            ci=(
                CIInfo.from_record(cast("Mapping[str, Any]", ci_value))
                if ci_value is not None
                else None
            ),
            tags=normalize_tags(data.get("tags")),
            extra={
                str(key): value for key, value in data.items() if key not in _METADATA_KEYS
            },
        )


@dataclass(slots=True)
class PromptRecord:
    """Immutable stored prompt with optional parent linkage.

    ``tags`` is joined from the tag index at read time and is never written
    into the record file itself.
    """
    id: str
    text: str
    created_at: datetime = field(default_factory=_utc_now)
    response: str | None = None
    model: str | None = None
    parent_id: str | None = None
    branch: str = DEFAULT_BRANCH
    metadata: PromptMetadata = field(default_factory=PromptMetadata)
    tags: list[str] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        """Return True when the record has no parent."""
        return self.parent_id is None

    def with_tags(self, tags: Iterable[str]) -> PromptRecord:
        """Return a copy carrying the sorted *tags*."""
        return replace(self, tags=sorted(set(tags)))

    def to_record(self) -> dict[str, Any]:
        """Return the on-disk representation (tags excluded)."""
        return {
            "id": self.id,
            "prompt": self.text,
            "response": self.response,
            "model": self.model,
            "created_at": self.created_at.isoformat(),
            "parent_id": self.parent_id,
            "branch": self.branch,
            "metadata": self.metadata.to_record(),
        }

    def to_dict(self) -> dict[str, Any]:
        """Return a presentation mapping including the joined tags."""
        payload = self.to_record()
        payload["tags"] = list(self.tags)
        return payload

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> PromptRecord:
        """Create a PromptRecord from a stored mapping."""
        metadata_value = data.get("metadata")
        text_value = data.get("prompt", data.get("text"))
        if text_value is None:
            raise ValueError("Prompt record is missing its text")
        parent_value = data.get("parent_id")
        return cls(
            id=str(data["id"]),
            text=str(text_value),
            created_at=_ensure_datetime(data.get("created_at")),
            response=data.get("response"),
            model=data.get("model"),
            parent_id=str(parent_value) if parent_value else None,
            branch=str(data.get("branch") or DEFAULT_BRANCH),
            metadata=PromptMetadata.from_record(
                cast("Mapping[str, Any]", metadata_value)
                if isinstance(metadata_value, Mapping)
                else None
            ),
            tags=normalize_tags(data.get("tags")),
        )


@dataclass(slots=True)
class LineageNode:
    """A record and the subtree of variants derived from it."""
    record: PromptRecord
    children: list[LineageNode] = field(default_factory=list)

    def walk(self) -> Iterable[PromptRecord]:
        """Yield this node's record and every descendant depth-first."""
        stack: list[LineageNode] = [self]
        while stack:
            node = stack.pop()
            yield node.record
            stack.extend(reversed(node.children))


@dataclass(slots=True)
class Lineage:
    """Ancestor chain (root first) and descendant trees of a record."""
    record: PromptRecord
    ancestors: list[PromptRecord]
    descendants: list[LineageNode]


@dataclass(slots=True, frozen=True)
class OutdatedPrompt:
    """A variant whose parent appears to have changed after it was created."""
    record: PromptRecord
    parent: PromptRecord
    reason: str


@dataclass(slots=True)
class PromptDiff:
    """Diff payload surfaced when comparing two prompt records."""
    base: PromptRecord
    target: PromptRecord
    changed_fields: dict[str, dict[str, Any]]
    body_diff: str


@dataclass(slots=True)
class ABTestSide:
    """Aggregated execution metrics for one prompt in an A/B test."""
    record_id: str
    avg_tokens: float
    avg_latency: float
    responses: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ABTestReport:
    """Outcome of running two prompts against the same model."""
    comparison_id: str
    timestamp: datetime
    model: str
    left: ABTestSide
    right: ABTestSide


__all__ = [
    "ABTestReport",
    "ABTestSide",
    "CIInfo",
    "CIStatus",
    "DEFAULT_BRANCH",
    "Lineage",
    "LineageNode",
    "OutdatedPrompt",
    "PROMPT_ID_PATTERN",
    "PromptDiff",
    "PromptMetadata",
    "PromptMetrics",
    "PromptRecord",
    "PromptSource",
    "TestResult",
    "TestResultMetrics",
    "is_valid_prompt_id",
    "normalize_tags",
]
