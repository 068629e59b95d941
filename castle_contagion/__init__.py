"""Castle Contagion rules engine.

Chain resolution over a square grid of castles, the action gate and
match progression around it, and the turn director that spawns
time-limited bonus opportunities.

Usage:
    from castle_contagion import GameEngine, GameConfig, PlayerState

    state = GameEngine.create_match(
        4,
        [PlayerState(id="p1"), PlayerState(id="p2")],
        GameConfig(captureContagion=3, wrapAround=True),
    )
    result = GameEngine.attempt_action(state, "p1", 0)
"""

from castle_contagion.board_manager import BoardManager, Coord
from castle_contagion.errors import (
    CastleContagionError,
    ConfigError,
    InvalidStateError,
    UnknownActorError,
    ValidationError,
)
from castle_contagion.game_engine import (
    ActionAttemptResult,
    BlockReason,
    GameEngine,
    MatchEndReason,
    MatchProgress,
)
from castle_contagion.models import (
    BoardState,
    CastleState,
    CursorOpportunity,
    Direction,
    GameConfig,
    MatchState,
    PlayerState,
    RuleEvent,
    RuleEventType,
    ScoringMode,
    TurnDirectorConfig,
    TurnDirectorState,
)
from castle_contagion.rules.chain import ResolveResult, resolve_action
from castle_contagion.turn_director import (
    ClaimResult,
    OpportunityStatus,
    advance_turn_director,
    clear_opportunity_after_resolution,
    create_turn_director_state,
    try_claim_opportunity,
)

__version__ = "0.1.0"

__all__ = [
    "ActionAttemptResult",
    "BlockReason",
    "BoardManager",
    "BoardState",
    "CastleContagionError",
    "CastleState",
    "ClaimResult",
    "ConfigError",
    "Coord",
    "CursorOpportunity",
    "Direction",
    "GameConfig",
    "GameEngine",
    "InvalidStateError",
    "MatchEndReason",
    "MatchProgress",
    "MatchState",
    "OpportunityStatus",
    "PlayerState",
    "ResolveResult",
    "RuleEvent",
    "RuleEventType",
    "ScoringMode",
    "TurnDirectorConfig",
    "TurnDirectorState",
    "UnknownActorError",
    "ValidationError",
    "advance_turn_director",
    "clear_opportunity_after_resolution",
    "create_turn_director_state",
    "resolve_action",
    "try_claim_opportunity",
]
