"""Tests for request classification."""

from __future__ import annotations

import pytest

from switchboard.engine.classifier import classify, score_handler
from switchboard.engine.registry import HandlerRegistry
from switchboard.errors import NoMatch
from switchboard.models import HandlerDescriptor, Request


class TestClassifier:
    def test_scenario_tie_broken_by_registration(self, infra_registry: HandlerRegistry) -> None:
        request = Request("deploy infrastructure with terraform for our AKS cluster")
        matches = classify(request, infra_registry.snapshot())

        assert [(m.handler, m.score) for m in matches] == [("A", 1), ("B", 1)]
        assert matches[0].matched_triggers == frozenset({"terraform"})
        assert matches[1].matched_triggers == frozenset({"aks"})

    def test_higher_score_first(self, infra_registry: HandlerRegistry) -> None:
        request = Request("terraform an AKS kubernetes cluster")
        matches = classify(request, infra_registry.snapshot())
        assert [m.handler for m in matches] == ["B", "A"]
        assert matches[0].score == 2

    def test_case_insensitive_substring(self) -> None:
        d = HandlerDescriptor(name="docs", triggers=frozenset({"readme"}))
        match = score_handler(Request("Update the README.md file"), d)
        assert match.score == 1

    def test_domain_hint_bonus(self, infra_registry: HandlerRegistry) -> None:
        request = Request("terraform the aks cluster", domain_hints=frozenset({"K8S"}))
        matches = classify(request, infra_registry.snapshot())
        assert matches[0].handler == "B"
        assert matches[0].score == 1 + 2.0

    def test_hint_only_match(self, infra_registry: HandlerRegistry) -> None:
        request = Request("please help", domain_hints=frozenset({"infra"}))
        matches = classify(request, infra_registry.snapshot(), hint_weight=0.5)
        assert [(m.handler, m.score) for m in matches] == [("A", 0.5)]

    def test_no_match(self, infra_registry: HandlerRegistry) -> None:
        with pytest.raises(NoMatch):
            classify(Request("write a haiku about spring"), infra_registry.snapshot())

    def test_deterministic(self, infra_registry: HandlerRegistry) -> None:
        request = Request("terraform + aks + kubernetes")
        snapshot = infra_registry.snapshot()
        assert classify(request, snapshot) == classify(request, snapshot)

    def test_empty_request_rejected(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            Request("   ")
