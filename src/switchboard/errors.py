"""Structural routing errors.

These abort a request before any handler runs. Per-handler failures and
timeouts are never raised; they are captured in ``HandlerResult.status``.
"""

from __future__ import annotations

from collections.abc import Iterable


class SwitchboardError(Exception):
    """Base class for all structural routing errors."""


class DuplicateHandler(SwitchboardError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Handler already registered: {name!r}")
        self.name = name


class UnknownHandler(SwitchboardError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown handler: {name!r}")
        self.name = name


class NoMatch(SwitchboardError):
    """No registered handler matched the request."""

    def __init__(self, text: str) -> None:
        preview = text if len(text) <= 60 else text[:57] + "..."
        super().__init__(f"No handler matched request: {preview!r}")
        self.text = text


class CyclicDependency(SwitchboardError):
    def __init__(self, handlers: Iterable[str]) -> None:
        self.handlers = tuple(handlers)
        super().__init__(f"Cyclic dependency between handlers: {', '.join(self.handlers)}")


class AggregationError(SwitchboardError):
    """Nothing to aggregate."""


class ConfigError(SwitchboardError):
    """Invalid handler configuration."""
