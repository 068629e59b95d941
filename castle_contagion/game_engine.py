"""Match-level glue around the Castle Contagion rules.

``GameEngine`` owns the two collaborators that wrap chain resolution:

1. **Action gate** (:meth:`GameEngine.attempt_action`): enforces the
   per-player ``max_actions`` / ``max_castles`` ceilings, delegates to
   :func:`castle_contagion.rules.chain.resolve_action`, and counts the
   attempt in ``actions_started``.
2. **Match progression** (:meth:`GameEngine.process_action_and_match_end`):
   runs a gated action to completion and only then evaluates the
   win-by-score and win-by-timeout conditions. A chain in flight when time
   expires always finishes first.

Metrics are recorded here rather than in the pure rules layer.

Set ``CASTLE_CONTAGION_STRICT_INVARIANTS=1`` to rescan every resolved
snapshot and raise :class:`InvalidStateError` on ownership/count drift;
otherwise drift is logged and counted.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

from .board_manager import BoardManager
from .errors import InvalidStateError, UnknownActorError, ValidationError
from .metrics import (
    ACTION_ATTEMPTS,
    INVARIANT_VIOLATIONS,
    MATCHES_COMPLETED,
    observe_rule_events,
)
from .models import Direction, GameConfig, MatchState, PlayerState, RuleEvent
from .rules.chain import resolve_action
from .rules.invariants import find_invariant_violations

logger = logging.getLogger(__name__)

STRICT_INVARIANTS = os.environ.get(
    "CASTLE_CONTAGION_STRICT_INVARIANTS",
    "0",
) in {"1", "true", "yes", "on"}


class BlockReason(str, Enum):
    """Why the action gate refused to resolve an action."""
    MAX_ACTIONS = "maxActions"
    MAX_CASTLES = "maxCastles"


class MatchEndReason(str, Enum):
    SCORE = "score"
    TIMEOUT = "timeout"


@dataclass
class ActionAttemptResult:
    """Result of a gated action.

    Attributes:
        state: Next snapshot; the untouched input snapshot when blocked.
        events: Rule events of the resolution; empty when blocked.
        blocked: Block reason, or ``None`` if the action was resolved.
    """
    state: MatchState
    events: List[RuleEvent] = field(default_factory=list)
    blocked: Optional[BlockReason] = None


@dataclass
class MatchProgress:
    state: MatchState
    result: ActionAttemptResult
    is_complete: bool
    winner_id: Optional[str] = None
    end_reason: Optional[MatchEndReason] = None


class GameEngine:
    """Action gate and match progression for Castle Contagion."""

    @staticmethod
    def create_match(
        size: int,
        players: Iterable[PlayerState],
        config: GameConfig,
    ) -> MatchState:
        """Build the initial snapshot on an empty ``size``×``size`` board.

        Raises:
            ValidationError: bad board size or duplicate player ids.
        """
        board = BoardManager.create_board(size)
        by_id: dict[str, PlayerState] = {}
        for player in players:
            if player.id in by_id:
                raise ValidationError(
                    "Duplicate player id", context={"player_id": player.id}
                )
            by_id[player.id] = player.model_copy()
        return MatchState(board=board, players=by_id, config=config)

    @staticmethod
    def attempt_action(
        state: MatchState,
        actor_id: str,
        start_cell: int,
        direction: Optional[Direction] = None,
    ) -> ActionAttemptResult:
        """Resolve an action unless the actor has hit a configured ceiling.

        Raises:
            UnknownActorError: ``actor_id`` is not part of the match.
            ValidationError: ``start_cell`` is not a board index.
        """
        actor = state.players.get(actor_id)
        if actor is None:
            raise UnknownActorError(f"Unknown actor '{actor_id}'", actor_id=actor_id)

        cells = state.board.size * state.board.size
        if not 0 <= start_cell < cells:
            raise ValidationError(
                "Start cell outside the board",
                context={"start_cell": start_cell, "cells": cells},
            )

        config = state.config
        if config.max_actions is not None and actor.actions_started >= config.max_actions:
            ACTION_ATTEMPTS.labels(outcome="blocked_max_actions").inc()
            logger.debug(f"Action by {actor_id} blocked: maxActions={config.max_actions}")
            return ActionAttemptResult(
                state=state, events=[], blocked=BlockReason.MAX_ACTIONS
            )

        if config.max_castles is not None and actor.castles_owned >= config.max_castles:
            ACTION_ATTEMPTS.labels(outcome="blocked_max_castles").inc()
            logger.debug(f"Action by {actor_id} blocked: maxCastles={config.max_castles}")
            return ActionAttemptResult(
                state=state, events=[], blocked=BlockReason.MAX_CASTLES
            )

        resolved = resolve_action(state, actor_id, start_cell, direction)
        resolved.state.players[actor_id].actions_started += 1

        ACTION_ATTEMPTS.labels(outcome="resolved").inc()
        observe_rule_events(resolved.events)
        GameEngine._check_invariants(resolved.state)

        return ActionAttemptResult(
            state=resolved.state, events=resolved.events, blocked=None
        )

    @staticmethod
    def _check_invariants(state: MatchState) -> None:
        violations = find_invariant_violations(state)
        if not violations:
            return
        for violation in violations:
            INVARIANT_VIOLATIONS.labels(invariant_id=violation.invariant_id).inc()
        if STRICT_INVARIANTS:
            raise InvalidStateError(
                "Match state invariants violated after action",
                context={"violations": ", ".join(v.invariant_id for v in violations)},
            )
        for violation in violations:
            logger.warning(
                f"Invariant {violation.invariant_id} violated: "
                f"{violation.message} {violation.details}"
            )

    @staticmethod
    def determine_winner_by_score(
        state: MatchState, winning_score: Optional[int] = None
    ) -> Optional[str]:
        """First player, in seating order, whose score reached ``winning_score``."""
        if winning_score is None:
            return None
        for player in state.players.values():
            if player.score >= winning_score:
                return player.id
        return None

    @staticmethod
    def determine_winner_by_timeout(state: MatchState) -> Optional[str]:
        """Highest score wins; a tie at the top means no winner."""
        players = list(state.players.values())
        if not players:
            return None

        ranked = sorted(players, key=lambda p: p.score, reverse=True)
        if len(ranked) > 1 and ranked[0].score == ranked[1].score:
            return None
        return ranked[0].id

    @staticmethod
    def process_action_and_match_end(
        state: MatchState,
        actor_id: str,
        start_cell: int,
        direction: Optional[Direction] = None,
        *,
        winning_score: Optional[int] = None,
        time_expired: bool = False,
    ) -> MatchProgress:
        """Run one gated action, then check whether the match is over.

        The action always resolves fully before win conditions are
        evaluated, even when ``time_expired`` is already set. A score win
        takes precedence over the timeout ranking.
        """
        result = GameEngine.attempt_action(state, actor_id, start_cell, direction)
        next_state = result.state

        winner = GameEngine.determine_winner_by_score(next_state, winning_score)
        if winner is not None:
            return GameEngine._complete(
                next_state, result, winner, MatchEndReason.SCORE
            )

        if time_expired:
            return GameEngine._complete(
                next_state,
                result,
                GameEngine.determine_winner_by_timeout(next_state),
                MatchEndReason.TIMEOUT,
            )

        return MatchProgress(
            state=next_state, result=result, is_complete=False, winner_id=None
        )

    @staticmethod
    def _complete(
        state: MatchState,
        result: ActionAttemptResult,
        winner_id: Optional[str],
        reason: MatchEndReason,
    ) -> MatchProgress:
        MATCHES_COMPLETED.labels(reason=reason.value).inc()
        logger.info(f"Match complete: reason={reason.value} winner={winner_id}")
        return MatchProgress(
            state=state,
            result=result,
            is_complete=True,
            winner_id=winner_id,
            end_reason=reason,
        )
