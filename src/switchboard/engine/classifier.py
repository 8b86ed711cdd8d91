"""
Classifier — Keyword/Domain Scoring of Requests Against Handlers

Scoring formula:
    score = matched_triggers + hint_weight * matched_domain_hints

Triggers match as case-insensitive substrings of the request text. Matches
are ordered by score (descending), ties broken by registration order.
"""

from __future__ import annotations

from switchboard.engine.registry import RegistrySnapshot
from switchboard.errors import NoMatch
from switchboard.models import HandlerDescriptor, Match, Request

# Bonus per explicit domain hint that names one of the handler's domains
DOMAIN_HINT_WEIGHT = 2.0


def score_handler(
    request: Request,
    descriptor: HandlerDescriptor,
    hint_weight: float = DOMAIN_HINT_WEIGHT,
) -> Match:
    """Score a single descriptor against a request."""
    text = request.text.lower()
    matched = frozenset(t for t in descriptor.triggers if t in text)
    hinted = request.domain_hints & descriptor.domains
    score = len(matched) + hint_weight * len(hinted)
    return Match(handler=descriptor.name, score=score, matched_triggers=matched)


def classify(
    request: Request,
    snapshot: RegistrySnapshot,
    hint_weight: float = DOMAIN_HINT_WEIGHT,
) -> list[Match]:
    """
    Map a request to the handlers that should process it.

    Args:
        request: Incoming request
        snapshot: Registry snapshot to classify against
        hint_weight: Bonus per matching domain hint

    Returns:
        Matches with score > 0, best first

    Raises:
        NoMatch: when no handler scores above zero
    """
    scored = []
    for rank, descriptor in enumerate(snapshot.all()):
        match = score_handler(request, descriptor, hint_weight)
        if match.score > 0:
            scored.append((rank, match))

    if not scored:
        raise NoMatch(request.text)

    scored.sort(key=lambda item: (-item[1].score, item[0]))
    return [match for _, match in scored]
