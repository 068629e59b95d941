"""
Shared pytest fixtures for castle_contagion tests.

Factory fixtures are function-scoped so every test gets fresh, mutable
snapshots it can arrange freely before handing them to the engine.
"""

from pathlib import Path
import sys
from typing import Callable, Dict, Iterable, Optional

import pytest

# Ensure the repository root is on sys.path so `import castle_contagion`
# and `import scripts` work when pytest is run from any directory.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from castle_contagion.board_manager import BoardManager  # noqa: E402
from castle_contagion.models import (  # noqa: E402
    GameConfig,
    MatchState,
    PlayerState,
    ScoringMode,
)


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def player_factory() -> Callable[..., PlayerState]:
    """Factory for creating PlayerState instances with customizable defaults."""

    def _create_player(
        player_id: str = "p1",
        score: int = 0,
        castles_owned: int = 0,
        actions_started: int = 0,
        color: str = "red",
    ) -> PlayerState:
        return PlayerState(
            id=player_id,
            name=player_id.upper(),
            color=color,
            isCpu=False,
            score=score,
            castlesOwned=castles_owned,
            actionsStarted=actions_started,
        )

    return _create_player


@pytest.fixture
def match_factory(player_factory) -> Callable[..., MatchState]:
    """Factory for an all-empty match, 4x4 with wrap-around by default."""

    def _create_match(
        size: int = 4,
        capture_contagion: int = 3,
        scoring_mode: ScoringMode = ScoringMode.BASIC,
        wrap_around: bool = True,
        max_castles: Optional[int] = None,
        max_actions: Optional[int] = None,
        player_ids: Iterable[str] = ("p1", "p2"),
    ) -> MatchState:
        colors = ["red", "blue", "green", "yellow"]
        players: Dict[str, PlayerState] = {
            pid: player_factory(pid, color=colors[i % len(colors)])
            for i, pid in enumerate(player_ids)
        }
        return MatchState(
            board=BoardManager.create_board(size),
            players=players,
            config=GameConfig(
                captureContagion=capture_contagion,
                scoringMode=scoring_mode,
                wrapAround=wrap_around,
                maxCastles=max_castles,
                maxActions=max_actions,
            ),
        )

    return _create_match


@pytest.fixture
def fixed_random() -> Callable[[float], Callable[[], float]]:
    """Factory for a random source that always returns ``value``."""

    def _fixed(value: float) -> Callable[[], float]:
        return lambda: value

    return _fixed


@pytest.fixture
def own_cells() -> Callable[..., None]:
    """Give a player cells on the board and keep ``castles_owned`` in sync."""

    def _own(state: MatchState, player_id: str, *indices: int) -> None:
        for index in indices:
            state.board.cells[index].owner = player_id
        state.players[player_id].castles_owned += len(indices)

    return _own
