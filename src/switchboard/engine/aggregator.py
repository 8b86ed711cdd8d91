"""Aggregator - Merges handler results into one response."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from switchboard.errors import AggregationError
from switchboard.models import (
    AggregatedResponse,
    ExecutionPlan,
    HandlerResult,
    OverallStatus,
    ResultStatus,
)


def overall_status(results: Sequence[HandlerResult]) -> OverallStatus:
    """Success iff all succeeded, failure iff none did, partial otherwise."""
    successful = sum(1 for r in results if r.ok)
    if successful == len(results):
        return OverallStatus.SUCCESS
    if successful > 0:
        return OverallStatus.PARTIAL
    return OverallStatus.FAILURE


def _render_payload(payload: Any) -> str:
    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload
    return repr(payload)


def _oversight_section(
    results: Sequence[HandlerResult], plan: ExecutionPlan, issues: Sequence[str]
) -> str:
    lines = ["## Oversight"]
    for stage_idx, stage in enumerate(plan.stages):
        stage_results = [r for r in results if r.stage == stage_idx]
        ok = sum(1 for r in stage_results if r.ok)
        lines.append(f"- Stage {stage_idx + 1} ({', '.join(stage)}): {ok}/{len(stage)} succeeded")
    if issues:
        lines.append("- Issues:")
        lines.extend(f"  - {issue}" for issue in issues)
    else:
        lines.append("- No issues")
    return "\n".join(lines)


def aggregate(
    results: Sequence[HandlerResult],
    plan: ExecutionPlan | None = None,
    cancelled: bool = False,
    request_id: str | None = None,
) -> AggregatedResponse:
    """
    Combine handler results into an AggregatedResponse.

    Payloads are concatenated under their handler's name in stage order. No
    assumption is made about payload structure.

    Args:
        results: Results across all stages
        plan: Plan the results came from; restores plan order and adds the
            oversight step for hierarchical plans
        cancelled: The run was cancelled before finishing
        request_id: Originating request, for correlation

    Raises:
        AggregationError: if there are no results
    """
    if not results:
        raise AggregationError("No handler results to aggregate")

    ordered = list(results)
    if plan is not None:
        ordered.sort(key=lambda r: (r.stage, plan.position(r.handler)[1]))

    status = overall_status(ordered)
    if cancelled and status == OverallStatus.SUCCESS:
        status = OverallStatus.PARTIAL

    issues = [
        f"{r.handler}: {r.status.value}" + (f" ({r.error})" if r.error else "")
        for r in ordered
        if r.status != ResultStatus.SUCCESS
    ]
    skipped = list(plan.skipped) if plan is not None else []
    if skipped:
        reason = "not run"
        if plan is not None and plan.handoff:
            reason = f"handed off from {plan.handoff[0]} to {plan.handoff[1]}"
        issues.extend(f"{name}: skipped ({reason})" for name in skipped)

    sections = []
    for r in ordered:
        body = _render_payload(r.payload) if r.ok else f"[{r.status.value}] {r.error or ''}".rstrip()
        sections.append(f"## {r.handler}\n{body}".rstrip())

    if plan is not None and plan.aggregation_step:
        sections.append(_oversight_section(ordered, plan, issues))

    return AggregatedResponse(
        status=status,
        results=ordered,
        summary="\n\n".join(sections),
        pattern=plan.pattern if plan else None,
        issues=issues,
        cancelled=cancelled,
        request_id=request_id,
        skipped=skipped,
    )
