"""Routing data model: descriptors, requests, matches, plans and results."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class Pattern(StrEnum):
    """Execution patterns a plan can take."""

    SINGLE = "single"
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    HIERARCHICAL = "hierarchical"
    HANDOFF = "handoff"


class ResultStatus(StrEnum):
    """Terminal states of one handler invocation."""

    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"


class OverallStatus(StrEnum):
    """Outcome of a whole request."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


def _normalise(values: Iterable[str] | None) -> frozenset[str]:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    return frozenset(v.strip().lower() for v in values if v and v.strip())


@dataclass(frozen=True)
class HandlerDescriptor:
    """Immutable description of a registered specialist."""

    name: str
    triggers: frozenset[str] = frozenset()
    domains: frozenset[str] = frozenset()
    capabilities: tuple[str, ...] = ()
    depends_on: frozenset[str] = frozenset()
    requires_aggregation: bool = False
    hand_off_to: str | None = None
    timeout: float | None = None  # seconds, overrides the dispatcher default

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Handler name cannot be empty")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "triggers", _normalise(self.triggers))
        object.__setattr__(self, "domains", _normalise(self.domains))
        object.__setattr__(self, "depends_on", _normalise(self.depends_on))
        capabilities = self.capabilities
        if isinstance(capabilities, str):
            capabilities = (capabilities,)
        object.__setattr__(self, "capabilities", tuple(capabilities))


@dataclass(frozen=True)
class Request:
    """An incoming task description with optional domain hints."""

    text: str
    domain_hints: frozenset[str] = frozenset()
    request_id: str = field(default_factory=lambda: f"req-{uuid.uuid4().hex[:8]}")

    def __post_init__(self) -> None:
        if not self.text or not self.text.strip():
            raise ValueError("Request text cannot be empty")
        object.__setattr__(self, "domain_hints", _normalise(self.domain_hints))


@dataclass(frozen=True)
class Match:
    """A handler selected by the classifier."""

    handler: str
    score: float
    matched_triggers: frozenset[str] = frozenset()


@dataclass(frozen=True)
class ExecutionPlan:
    """Ordered stages of handler names; members of a stage run concurrently."""

    pattern: Pattern
    stages: tuple[tuple[str, ...], ...]
    aggregation_step: bool = False
    handoff: tuple[str, str] | None = None  # (source, target)
    skipped: tuple[str, ...] = ()

    @property
    def handlers(self) -> list[str]:
        return [name for stage in self.stages for name in stage]

    def position(self, name: str) -> tuple[int, int]:
        """Return (stage index, index within stage) for a handler."""
        for stage_idx, stage in enumerate(self.stages):
            if name in stage:
                return stage_idx, stage.index(name)
        return len(self.stages), 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern": self.pattern.value,
            "stages": [list(stage) for stage in self.stages],
            "aggregation_step": self.aggregation_step,
            "handoff": list(self.handoff) if self.handoff else None,
            "skipped": list(self.skipped),
        }


@dataclass
class HandlerResult:
    """Result of invoking one handler."""

    handler: str
    status: ResultStatus
    payload: Any = None
    error: str | None = None
    stage: int = 0
    started_at: float = 0.0
    finished_at: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    @property
    def duration(self) -> float:
        return max(0.0, self.finished_at - self.started_at)

    def to_dict(self) -> dict[str, Any]:
        return {
            "handler": self.handler,
            "status": self.status.value,
            "payload": self.payload,
            "error": self.error,
            "stage": self.stage,
            "duration_seconds": round(self.duration, 4),
        }


@dataclass(frozen=True)
class TaskContext:
    """What a handler sees when invoked."""

    request: Request
    handler: str
    stage: int
    matched_triggers: frozenset[str] = frozenset()
    upstream: dict[str, HandlerResult] = field(default_factory=dict)
    handoff: HandlerResult | None = None

    @property
    def text(self) -> str:
        return self.request.text


@dataclass
class AggregatedResponse:
    """Terminal artifact returned to the caller."""

    status: OverallStatus
    results: list[HandlerResult]
    summary: str
    pattern: Pattern | None = None
    issues: list[str] = field(default_factory=list)
    cancelled: bool = False
    request_id: str | None = None
    skipped: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "request_id": self.request_id,
            "status": self.status.value,
            "pattern": self.pattern.value if self.pattern else None,
            "cancelled": self.cancelled,
            "summary": self.summary,
            "issues": list(self.issues),
            "results": [r.to_dict() for r in self.results],
            "skipped": list(self.skipped),
        }
