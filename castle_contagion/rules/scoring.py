"""Point formulas for castle captures and contagion changes."""

from __future__ import annotations

from ..board_manager import BoardManager
from ..models import MatchState, ScoringMode

# Capture bonus by number of orthogonally adjacent castles the actor owns.
BASIC_CAPTURE_POINTS: dict[int, int] = {
    0: 1,
    1: 2,
    2: 4,
    3: 7,
    4: 10,
}
MAX_CAPTURE_POINTS = 10


def count_adjacent_owned_castles(
    state: MatchState, cell_index: int, player_id: str
) -> int:
    """Count orthogonal neighbours of ``cell_index`` owned by ``player_id``."""
    neighbors = BoardManager.orthogonal_neighbor_indices(
        state.board.size, cell_index, state.config.wrap_around
    )
    return sum(1 for idx in neighbors if state.board.cells[idx].owner == player_id)


def capture_castle_points(adjacency_owned: int) -> int:
    return BASIC_CAPTURE_POINTS.get(adjacency_owned, MAX_CAPTURE_POINTS)


def contagion_gain_points(level_reached: int, scoring_mode: ScoringMode) -> int:
    """Points for raising contagion to ``level_reached``.

    Only ``basic`` scoring pays for contagion itself; ``onlyCastles``
    pays for captures alone.
    """
    if ScoringMode(scoring_mode) == ScoringMode.BASIC:
        return level_reached
    return 0


def contagion_loss_points(level_at_capture: int) -> int:
    """Penalty for the owner losing a castle: the owner's own stored level."""
    return level_at_capture
