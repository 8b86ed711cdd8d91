"""Briefing handlers - Render a structured task brief for a specialist."""

from __future__ import annotations

from collections.abc import Iterable

from switchboard.models import HandlerDescriptor, HandlerResult, TaskContext

# Upstream payloads are truncated to keep briefs readable
MAX_UPSTREAM_CHARS = 2_000


def generate_brief(
    task: str,
    capabilities: Iterable[str] = (),
    triggers: Iterable[str] = (),
    context: str = "",
) -> str:
    """
    Generate a brief for a specialist.

    Args:
        task: The request text
        capabilities: What the specialist is expected to cover
        triggers: Keywords that routed the task here
        context: Output from earlier stages

    Returns:
        Formatted markdown brief
    """
    parts = [f"### Task\n{task}"]

    matched = sorted(triggers)
    if matched:
        parts.append(f"\n### Routed on\n{', '.join(matched)}")

    checklist = list(capabilities)
    if checklist:
        parts.append("\n### Checklist\n" + "\n".join(f"- [ ] {c}" for c in checklist))

    if context:
        parts.append(f"\n### Context\n{context}")

    return "\n".join(parts)


def _format_upstream(results: Iterable[HandlerResult]) -> str:
    blocks = []
    for r in results:
        if not r.ok:
            blocks.append(f"{r.handler}: {r.status.value}")
            continue
        text = str(r.payload) if r.payload is not None else ""
        if len(text) > MAX_UPSTREAM_CHARS:
            text = text[:MAX_UPSTREAM_CHARS] + "..."
        blocks.append(f"From {r.handler}:\n{text}")
    return "\n\n".join(blocks)


class BriefingHandler:
    """Handler that answers with a brief built from its descriptor."""

    def __init__(self, descriptor: HandlerDescriptor) -> None:
        self.descriptor = descriptor

    async def __call__(self, ctx: TaskContext) -> str:
        if ctx.handoff is not None:
            context = _format_upstream([ctx.handoff])
        else:
            context = _format_upstream(ctx.upstream.values())
        return generate_brief(
            ctx.text,
            capabilities=self.descriptor.capabilities,
            triggers=ctx.matched_triggers,
            context=context,
        )
