"""Turn director: time-gated bonus opportunities.

A match has a single opportunity slot that cycles through three states::

    IDLE ──advance (spawn due, empty cells)──▶ ACTIVE_UNCLAIMED
    ACTIVE_UNCLAIMED ──advance (now >= expires)──▶ IDLE
    ACTIVE_UNCLAIMED ──try_claim (now < expires)──▶ ACTIVE_CLAIMED
    any ──clear_opportunity_after_resolution──▶ IDLE

Every transition is a pure function of its arguments. Time arrives as an
explicit ``now_ms`` and randomness as a zero-argument callable returning
a float in [0, 1) (``random.Random(seed).random`` works), so a recorded
sequence of calls replays exactly.

A claimed opportunity is never expired by :func:`advance_turn_director`;
the caller resolves the claimed action through the rules engine and then
calls :func:`clear_opportunity_after_resolution`. Concurrent claims must
be serialized by the caller; the first successful claim wins.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from .errors import ConfigError
from .models import CursorOpportunity, Millis, TurnDirectorConfig, TurnDirectorState

logger = logging.getLogger(__name__)

RandomFn = Callable[[], float]

# Defaults for TurnDirectorConfig when the embedding application does not
# supply its own.
DEFAULT_MIN_SPAWN_DELAY_MS = int(os.getenv("CASTLE_CONTAGION_MIN_SPAWN_DELAY_MS", "3000"))
DEFAULT_MAX_SPAWN_DELAY_MS = int(os.getenv("CASTLE_CONTAGION_MAX_SPAWN_DELAY_MS", "8000"))
DEFAULT_CURSOR_LIFETIME_MS = int(os.getenv("CASTLE_CONTAGION_CURSOR_LIFETIME_MS", "4000"))


class OpportunityStatus(str, Enum):
    IDLE = "idle"
    ACTIVE_UNCLAIMED = "active_unclaimed"
    ACTIVE_CLAIMED = "active_claimed"


@dataclass
class ClaimResult:
    """Outcome of a claim attempt. ``state`` is unchanged on failure."""
    state: TurnDirectorState
    success: bool


_IDLE_OPPORTUNITY = CursorOpportunity()


def default_turn_director_config() -> TurnDirectorConfig:
    return TurnDirectorConfig(
        min_spawn_delay_ms=DEFAULT_MIN_SPAWN_DELAY_MS,
        max_spawn_delay_ms=DEFAULT_MAX_SPAWN_DELAY_MS,
        cursor_lifetime_ms=DEFAULT_CURSOR_LIFETIME_MS,
    )


def opportunity_status(state: TurnDirectorState) -> OpportunityStatus:
    opp = state.opportunity
    if not opp.is_active:
        return OpportunityStatus.IDLE
    if opp.claimed_by is None:
        return OpportunityStatus.ACTIVE_UNCLAIMED
    return OpportunityStatus.ACTIVE_CLAIMED


def random_delay(min_ms: int, max_ms: int, random: RandomFn) -> int:
    """Draw a delay uniformly from ``[min_ms, max_ms]``.

    Raises:
        ConfigError: if ``max_ms < min_ms``.
    """
    if max_ms < min_ms:
        raise ConfigError(
            "maxMs must be greater than or equal to minMs",
            context={"min_ms": min_ms, "max_ms": max_ms},
        )
    return min_ms + math.floor(random() * (max_ms - min_ms + 1))


def _schedule_next_spawn(
    now_ms: Millis, config: TurnDirectorConfig, random: RandomFn
) -> Millis:
    return now_ms + random_delay(
        config.min_spawn_delay_ms, config.max_spawn_delay_ms, random
    )


def create_turn_director_state(
    now_ms: Millis, config: TurnDirectorConfig, random: RandomFn
) -> TurnDirectorState:
    """Idle director with the first spawn scheduled from ``now_ms``."""
    return TurnDirectorState(
        next_spawn_at_ms=_schedule_next_spawn(now_ms, config, random),
        opportunity=_IDLE_OPPORTUNITY,
    )


def advance_turn_director(
    state: TurnDirectorState,
    now_ms: Millis,
    empty_cells: Sequence[int],
    config: TurnDirectorConfig,
    random: RandomFn,
) -> TurnDirectorState:
    """Apply at most one clock-driven transition.

    An unclaimed opportunity past its expiry goes idle and the next spawn
    is rescheduled from ``now_ms``. Otherwise an idle director whose spawn
    time has come places a new opportunity on one of ``empty_cells``; with
    no candidates it stays idle and retries on the next tick.
    """
    status = opportunity_status(state)
    opp = state.opportunity

    if (
        status is OpportunityStatus.ACTIVE_UNCLAIMED
        and opp.expires_at_ms is not None
        and now_ms >= opp.expires_at_ms
    ):
        next_spawn = _schedule_next_spawn(now_ms, config, random)
        logger.debug(
            f"Opportunity at cell {opp.cell_index} expired at {now_ms}; "
            f"next spawn at {next_spawn}"
        )
        return TurnDirectorState(
            next_spawn_at_ms=next_spawn, opportunity=_IDLE_OPPORTUNITY
        )

    if (
        status is OpportunityStatus.IDLE
        and now_ms >= state.next_spawn_at_ms
        and len(empty_cells) > 0
    ):
        picked = empty_cells[math.floor(random() * len(empty_cells))]
        logger.debug(f"Opportunity spawned at cell {picked} at {now_ms}")
        return state.model_copy(
            update={
                "opportunity": CursorOpportunity(
                    is_active=True,
                    cell_index=picked,
                    spawned_at_ms=now_ms,
                    expires_at_ms=now_ms + config.cursor_lifetime_ms,
                    claimed_by=None,
                    claimed_at_ms=None,
                )
            }
        )

    return state


def try_claim_opportunity(
    state: TurnDirectorState, actor_id: str, now_ms: Millis
) -> ClaimResult:
    """Claim the active opportunity for ``actor_id`` if it is still open.

    Fails without changing state when the director is idle, the
    opportunity is already claimed, or ``now_ms`` has reached its expiry.
    """
    opp = state.opportunity
    if opportunity_status(state) is not OpportunityStatus.ACTIVE_UNCLAIMED:
        return ClaimResult(state=state, success=False)
    if opp.cell_index is None:
        return ClaimResult(state=state, success=False)
    if opp.expires_at_ms is not None and now_ms >= opp.expires_at_ms:
        return ClaimResult(state=state, success=False)

    logger.debug(f"Opportunity at cell {opp.cell_index} claimed by {actor_id} at {now_ms}")
    claimed = state.model_copy(
        update={
            "opportunity": opp.model_copy(
                update={"claimed_by": actor_id, "claimed_at_ms": now_ms}
            )
        }
    )
    return ClaimResult(state=claimed, success=True)


def clear_opportunity_after_resolution(
    state: TurnDirectorState,
    now_ms: Millis,
    config: TurnDirectorConfig,
    random: RandomFn,
) -> TurnDirectorState:
    """Return to idle and reschedule, whatever the current state."""
    return TurnDirectorState(
        next_spawn_at_ms=_schedule_next_spawn(now_ms, config, random),
        opportunity=_IDLE_OPPORTUNITY,
    )
