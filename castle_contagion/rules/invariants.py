"""Structural invariants of a match snapshot.

The engine maintains ``castles_owned`` incrementally; these checks do the
full rescan the engine deliberately avoids, so they belong in tests,
soaks and the strict-invariant mode of :class:`GameEngine`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from ..board_manager import BoardManager
from ..errors import InvalidStateError
from ..models import MatchState

CASTLES_OWNED_MISMATCH = "castles_owned_mismatch"
ORPHAN_OWNER = "orphan_owner"
NEGATIVE_COUNTER = "negative_counter"
BOARD_SHAPE = "board_shape"


@dataclass(frozen=True)
class InvariantViolation:
    invariant_id: str
    message: str
    details: Dict[str, Any]


def find_invariant_violations(state: MatchState) -> List[InvariantViolation]:
    """Return every violated invariant, empty when the snapshot is sound."""
    violations: List[InvariantViolation] = []
    board = state.board

    expected_cells = board.size * board.size
    if len(board.cells) != expected_cells:
        violations.append(
            InvariantViolation(
                BOARD_SHAPE,
                "board cell count does not match size²",
                {"size": board.size, "cells": len(board.cells)},
            )
        )

    counts = BoardManager.owned_cell_counts(board)

    for owner_id in sorted(set(counts) - set(state.players)):
        violations.append(
            InvariantViolation(
                ORPHAN_OWNER,
                "castle owned by a player outside the match",
                {"owner": owner_id, "castles": counts[owner_id]},
            )
        )

    for player_id, player in state.players.items():
        actual = counts.get(player_id, 0)
        if player.castles_owned != actual:
            violations.append(
                InvariantViolation(
                    CASTLES_OWNED_MISMATCH,
                    "castles_owned disagrees with board ownership",
                    {
                        "player": player_id,
                        "castles_owned": player.castles_owned,
                        "board": actual,
                    },
                )
            )
        if player.castles_owned < 0 or player.actions_started < 0:
            violations.append(
                InvariantViolation(
                    NEGATIVE_COUNTER,
                    "negative player counter",
                    {
                        "player": player_id,
                        "castles_owned": player.castles_owned,
                        "actions_started": player.actions_started,
                    },
                )
            )

    for index, cell in enumerate(board.cells):
        for player_id, level in cell.contagion.items():
            if level < 0:
                violations.append(
                    InvariantViolation(
                        NEGATIVE_COUNTER,
                        "negative contagion level",
                        {"index": index, "player": player_id, "level": level},
                    )
                )

    return violations


def assert_invariants(state: MatchState) -> None:
    """Raise :class:`InvalidStateError` if any invariant is violated."""
    violations = find_invariant_violations(state)
    if violations:
        raise InvalidStateError(
            "Match state invariants violated",
            context={
                "violations": ", ".join(v.invariant_id for v in violations),
                "first": violations[0].message,
            },
        )
