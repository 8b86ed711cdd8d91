"""Built-in specialist handlers."""

from __future__ import annotations

from collections.abc import Iterable

from switchboard.handlers.briefing import BriefingHandler, generate_brief
from switchboard.handlers.catalog import DEFAULT_HANDLERS
from switchboard.models import HandlerDescriptor


def briefing_handlers(descriptors: Iterable[HandlerDescriptor]) -> dict[str, BriefingHandler]:
    """Bind a BriefingHandler to every descriptor."""
    return {d.name: BriefingHandler(d) for d in descriptors}


__all__ = [
    "DEFAULT_HANDLERS",
    "BriefingHandler",
    "briefing_handlers",
    "generate_brief",
]
