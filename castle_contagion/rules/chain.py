"""Chain resolution: the state transition behind every castle action.

A single action starts on one cell and walks the board along an optional
direction, applying capture / contagion / destroy semantics until the
first terminal event. The input snapshot is never mutated; a clone of
the board cells and player records is resolved and returned together
with the ordered event trail.

Termination: every non-terminal step raises the actor's contagion level
on an enemy castle by one, and reaching ``capture_contagion`` on any cell
ends the chain. A chain therefore visits at most
``size² × capture_contagion`` cells even with wrap-around enabled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..board_manager import BoardManager
from ..errors import InvalidStateError, UnknownActorError
from ..models import (
    CaptureContagionEvent,
    CaptureEmptyEvent,
    ChainEndedEvent,
    DestroyOwnCastleEvent,
    Direction,
    IncrementContagionEvent,
    MatchState,
    RuleEvent,
)
from .scoring import (
    capture_castle_points,
    contagion_gain_points,
    contagion_loss_points,
    count_adjacent_owned_castles,
)

logger = logging.getLogger(__name__)


@dataclass
class ResolveResult:
    """New snapshot plus the events that produced it, in order."""
    state: MatchState
    events: List[RuleEvent] = field(default_factory=list)


def clone_state(state: MatchState) -> MatchState:
    """Copy board cells (with their contagion maps) and player records.

    Config is shared with the source snapshot; nothing in the engine
    writes to it.
    """
    new_cells = [
        cell.model_copy(update={"contagion": dict(cell.contagion)})
        for cell in state.board.cells
    ]
    new_board = state.board.model_copy(update={"cells": new_cells})
    new_players = {pid: p.model_copy() for pid, p in state.players.items()}
    return state.model_copy(update={"board": new_board, "players": new_players})


def max_chain_steps(state: MatchState) -> int:
    """Upper bound on cells visited by a single resolution."""
    return state.board.size * state.board.size * state.config.capture_contagion


# Each visited cell emits exactly one of these; capture_contagion and
# chain_ended follow an increment on the same cell.
_CELL_VISIT_EVENTS = frozenset(
    {"capture_empty", "increment_contagion", "destroy_own_castle"}
)


def cells_visited(events: Sequence[RuleEvent]) -> int:
    """Number of cells a resolution touched, recovered from its trail."""
    return sum(1 for event in events if event.type in _CELL_VISIT_EVENTS)


def resolve_action(
    state: MatchState,
    actor_id: str,
    start_cell: int,
    direction: Optional[Direction] = None,
) -> ResolveResult:
    """Resolve one action for ``actor_id`` starting at ``start_cell``.

    Args:
        state: Snapshot to resolve against. Read only.
        actor_id: Acting player; must be a key of ``state.players``.
        start_cell: Board index the chain starts on. Callers validate the
            range upstream.
        direction: Chain direction, or ``None`` for a single-cell action.

    Returns:
        A :class:`ResolveResult` whose trail ends with exactly one terminal
        event.

    Raises:
        UnknownActorError: ``actor_id`` is not part of the match.
        InvalidStateError: a visited castle is owned by a player missing
            from the snapshot.
    """
    if actor_id not in state.players:
        raise UnknownActorError(f"Unknown actor '{actor_id}'", actor_id=actor_id)
    if direction is not None:
        direction = Direction(direction)

    nxt = clone_state(state)
    board = nxt.board
    config = nxt.config
    actor = nxt.players[actor_id]
    events: List[RuleEvent] = []

    index = start_cell
    visited = 0

    while True:
        visited += 1
        castle = board.cells[index]

        if castle.owner is None:
            # contagion already on the cell stays with it
            castle.owner = actor_id
            actor.castles_owned += 1

            adjacency = count_adjacent_owned_castles(nxt, index, actor_id)
            gained = capture_castle_points(adjacency)
            actor.score += gained

            events.append(
                CaptureEmptyEvent(index=index, actor_id=actor_id, points_delta=gained)
            )
            break

        if castle.owner == actor_id:
            castle.owner = None
            actor.castles_owned = max(0, actor.castles_owned - 1)

            events.append(
                DestroyOwnCastleEvent(index=index, actor_id=actor_id, points_delta=0)
            )
            break

        prior_owner_id = castle.owner
        prior_owner = nxt.players.get(prior_owner_id)
        if prior_owner is None:
            raise InvalidStateError(
                "Castle owned by a player outside the match",
                context={"index": index, "owner": prior_owner_id},
            )

        next_level = castle.contagion.get(actor_id, 0) + 1
        castle.contagion[actor_id] = next_level

        contagion_points = contagion_gain_points(next_level, config.scoring_mode)
        actor.score += contagion_points

        events.append(
            IncrementContagionEvent(
                index=index, actor_id=actor_id, points_delta=contagion_points
            )
        )

        if next_level >= config.capture_contagion:
            # Loss reads the previous owner's own entry on this cell, not
            # the attacker's level.
            previous_level = castle.contagion.get(prior_owner_id, 0)
            prior_owner.score -= contagion_loss_points(previous_level)
            prior_owner.castles_owned = max(0, prior_owner.castles_owned - 1)

            adjacency = count_adjacent_owned_castles(nxt, index, actor_id)
            capture_points = capture_castle_points(adjacency)
            actor.score += capture_points
            actor.castles_owned += 1

            castle.owner = actor_id
            castle.contagion = {actor_id: next_level}

            events.append(
                CaptureContagionEvent(
                    index=index, actor_id=actor_id, points_delta=capture_points
                )
            )
            break

        if direction is None:
            events.append(ChainEndedEvent(index=index, actor_id=actor_id))
            break

        next_index = BoardManager.next_index_in_direction(
            board.size, index, direction, config.wrap_around
        )
        if next_index is None:
            events.append(ChainEndedEvent(index=index, actor_id=actor_id))
            break

        index = next_index

    logger.debug(
        f"Resolved action actor={actor_id} start={start_cell} "
        f"direction={direction.value if direction else None} "
        f"cells_visited={visited} terminal={events[-1].type}"
    )
    return ResolveResult(state=nxt, events=events)
