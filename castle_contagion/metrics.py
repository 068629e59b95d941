"""Prometheus metrics for the Castle Contagion rules engine.

This module centralises counters and histograms so that the action gate,
match progression and the soak harness can record lightweight telemetry
without each caller managing its own metric instances. The chain
resolver and turn director stay pure and never touch these.
"""

from __future__ import annotations

from typing import Final, Sequence

from prometheus_client import Counter, Histogram

from .models import RuleEvent
from .rules.chain import cells_visited


RULE_EVENTS: Final[Counter] = Counter(
    "castle_contagion_rule_events_total",
    "Total rule events emitted by chain resolution, labeled by event_type.",
    labelnames=("event_type",),
)

ACTION_ATTEMPTS: Final[Counter] = Counter(
    "castle_contagion_action_attempts_total",
    (
        "Total gated action attempts, labeled by outcome "
        "(resolved, blocked_max_actions, blocked_max_castles)."
    ),
    labelnames=("outcome",),
)

CHAIN_LENGTH: Final[Histogram] = Histogram(
    "castle_contagion_chain_length_cells",
    "Number of cells visited by a single resolved action.",
    # A chain on an 8x8 board with a high threshold can visit hundreds of
    # cells; typical chains touch one to three.
    buckets=(1, 2, 3, 5, 8, 16, 32, 64, 128, 256),
)

MATCHES_COMPLETED: Final[Counter] = Counter(
    "castle_contagion_matches_completed_total",
    "Total completed matches, labeled by reason (score, timeout).",
    labelnames=("reason",),
)

INVARIANT_VIOLATIONS: Final[Counter] = Counter(
    "castle_contagion_invariant_violations_total",
    "Total snapshot invariant violations observed, labeled by invariant_id.",
    labelnames=("invariant_id",),
)

OPPORTUNITY_TRANSITIONS: Final[Counter] = Counter(
    "castle_contagion_opportunity_transitions_total",
    (
        "Total turn-director opportunity transitions, labeled by transition "
        "(spawned, expired, claimed, claim_rejected, cleared)."
    ),
    labelnames=("transition",),
)


def observe_rule_events(events: Sequence[RuleEvent]) -> None:
    """Count each event by type and record the chain length."""
    for event in events:
        RULE_EVENTS.labels(event_type=event.type).inc()
    visits = cells_visited(events)
    if visits:
        CHAIN_LENGTH.observe(visits)
