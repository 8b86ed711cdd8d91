"""Routing engine: registry, classifier, planner, dispatcher, aggregator."""

from switchboard.engine.aggregator import aggregate, overall_status
from switchboard.engine.classifier import DOMAIN_HINT_WEIGHT, classify, score_handler
from switchboard.engine.dispatcher import DispatchOutcome, Dispatcher, HandlerFn
from switchboard.engine.planner import ExecutionPlanner, plan
from switchboard.engine.registry import (
    HandlerRegistry,
    RegistrySnapshot,
    descriptor_from_config,
)
from switchboard.engine.router import DelegationRouter, RoutingDecision

__all__ = [
    "DOMAIN_HINT_WEIGHT",
    "DelegationRouter",
    "DispatchOutcome",
    "Dispatcher",
    "ExecutionPlanner",
    "HandlerFn",
    "HandlerRegistry",
    "RegistrySnapshot",
    "RoutingDecision",
    "aggregate",
    "classify",
    "descriptor_from_config",
    "overall_status",
    "plan",
    "score_handler",
]
