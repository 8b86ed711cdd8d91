"""Delegation Router - classify → plan → dispatch → aggregate."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from switchboard.config import Settings, load_handler_config
from switchboard.engine.aggregator import aggregate
from switchboard.engine.classifier import classify
from switchboard.engine.dispatcher import Dispatcher, HandlerFn
from switchboard.engine.planner import ExecutionPlanner
from switchboard.engine.registry import HandlerRegistry, RegistrySnapshot
from switchboard.handlers import DEFAULT_HANDLERS, briefing_handlers
from switchboard.models import AggregatedResponse, ExecutionPlan, Match, Request
from switchboard.storage.ledger import RoutingLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoutingDecision:
    """Everything decided before any handler runs."""

    snapshot: RegistrySnapshot
    matches: list[Match]
    plan: ExecutionPlan

    def to_dict(self) -> dict[str, Any]:
        return {
            "matches": [
                {
                    "handler": m.handler,
                    "score": m.score,
                    "matched_triggers": sorted(m.matched_triggers),
                }
                for m in self.matches
            ],
            "plan": self.plan.to_dict(),
        }


class DelegationRouter:
    """
    Routes free-form requests to specialist handlers.

    Workflow:
    1. Snapshot the registry
    2. Classify the request (NoMatch aborts)
    3. Plan execution (CyclicDependency / UnknownHandler abort)
    4. Dispatch stage by stage
    5. Aggregate into one response (and record it if a ledger is attached)
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        handlers: Mapping[str, HandlerFn] | None = None,
        settings: Settings | None = None,
        ledger: RoutingLedger | None = None,
    ) -> None:
        self.registry = registry
        self.settings = settings or Settings.from_env()
        self.planner = ExecutionPlanner()
        self.dispatcher = Dispatcher(handlers, default_timeout=self.settings.default_timeout)
        self.ledger = ledger

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, ledger: RoutingLedger | None = None
    ) -> DelegationRouter:
        """Build a router from handlers.toml, or the built-in catalog when absent."""
        settings = settings or Settings.from_env()
        if settings.handlers_file.exists():
            entries = load_handler_config(settings.handlers_file)
        else:
            entries = DEFAULT_HANDLERS
        registry = HandlerRegistry.from_config(entries)
        handlers = briefing_handlers(registry.all())
        return cls(registry, handlers, settings=settings, ledger=ledger)

    def classify(self, request: Request) -> list[Match]:
        return classify(request, self.registry.snapshot(), self.settings.hint_weight)

    def decide(self, request: Request) -> RoutingDecision:
        """Classify and plan without running anything."""
        snapshot = self.registry.snapshot()
        matches = classify(request, snapshot, self.settings.hint_weight)
        plan = self.planner.plan(matches, snapshot)
        return RoutingDecision(snapshot=snapshot, matches=matches, plan=plan)

    async def route(
        self, request: Request, cancel: asyncio.Event | None = None
    ) -> AggregatedResponse:
        """
        Route a request end to end.

        Args:
            request: Incoming request
            cancel: Optional event the caller sets to cancel the run

        Returns:
            AggregatedResponse, possibly partial
        """
        decision = self.decide(request)
        logger.info(
            "Routing %s: pattern=%s stages=%s",
            request.request_id,
            decision.plan.pattern.value,
            [list(s) for s in decision.plan.stages],
        )

        outcome = await self.dispatcher.dispatch(
            decision.plan,
            request,
            decision.snapshot,
            matches=decision.matches,
            cancel=cancel,
        )
        response = aggregate(
            outcome.results,
            plan=decision.plan,
            cancelled=outcome.cancelled,
            request_id=request.request_id,
        )
        logger.info("Request %s finished: %s", request.request_id, response.status.value)

        if self.ledger is not None:
            await self.ledger.record(request, response)
        return response
