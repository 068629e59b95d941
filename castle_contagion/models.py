"""
Pydantic Models for Castle Contagion Match State
Snapshots, rule events and turn-director state shared by every module.
"""

from pydantic import BaseModel, Field
from typing import Annotated, Dict, List, Literal, Optional, Union
from enum import Enum

# Caller-supplied clock values; fractional milliseconds are kept as given.
Millis = Union[int, float]


class Direction(str, Enum):
    """Chain direction enumeration"""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class ScoringMode(str, Enum):
    """Scoring mode enumeration"""
    BASIC = "basic"
    ONLY_CASTLES = "onlyCastles"


class CastleState(BaseModel):
    """One grid cell.

    ``contagion`` maps attacking player ids to their level on this cell;
    a missing key means level 0.
    """
    owner: Optional[str] = None
    contagion: Dict[str, int] = Field(default_factory=dict)


class BoardState(BaseModel):
    """Square board, cells stored row-major"""
    size: int = Field(ge=4, le=8)
    cells: List[CastleState] = Field(default_factory=list)


class PlayerState(BaseModel):
    """Player state"""
    id: str
    name: str = ""
    color: str = ""
    is_cpu: bool = Field(False, alias="isCpu")
    score: int = 0
    castles_owned: int = Field(0, ge=0, alias="castlesOwned")
    actions_started: int = Field(0, ge=0, alias="actionsStarted")

    class Config:
        populate_by_name = True


class GameConfig(BaseModel):
    """Per-match rule configuration.

    ``max_castles`` and ``max_actions`` are per-player ceilings enforced by
    the action gate, not by chain resolution.
    """
    capture_contagion: int = Field(3, ge=1, alias="captureContagion")
    scoring_mode: ScoringMode = Field(ScoringMode.BASIC, alias="scoringMode")
    wrap_around: bool = Field(False, alias="wrapAround")
    max_castles: Optional[int] = Field(None, ge=0, alias="maxCastles")
    max_actions: Optional[int] = Field(None, ge=0, alias="maxActions")

    class Config:
        populate_by_name = True


class MatchState(BaseModel):
    """Complete match snapshot"""
    board: BoardState
    players: Dict[str, PlayerState]
    config: GameConfig


# ═══════════════════════════════════════════════════════════════════════════
# RULE EVENTS
# ═══════════════════════════════════════════════════════════════════════════


class RuleEventType(str, Enum):
    """Rule event tags, in the order they can appear within a chain"""
    CAPTURE_EMPTY = "capture_empty"
    INCREMENT_CONTAGION = "increment_contagion"
    CAPTURE_CONTAGION = "capture_contagion"
    DESTROY_OWN_CASTLE = "destroy_own_castle"
    CHAIN_ENDED = "chain_ended"

    @property
    def is_terminal(self) -> bool:
        return self is not RuleEventType.INCREMENT_CONTAGION


class _RuleEventBase(BaseModel):
    index: int
    actor_id: str = Field(alias="actorId")

    class Config:
        populate_by_name = True
        frozen = True


class _ScoredRuleEvent(_RuleEventBase):
    points_delta: int = Field(alias="pointsDelta")


class CaptureEmptyEvent(_ScoredRuleEvent):
    """Empty castle claimed by the actor"""
    type: Literal["capture_empty"] = "capture_empty"


class IncrementContagionEvent(_ScoredRuleEvent):
    """Actor's contagion on an enemy castle went up by one"""
    type: Literal["increment_contagion"] = "increment_contagion"


class CaptureContagionEvent(_ScoredRuleEvent):
    """Enemy castle flipped at the contagion threshold.

    ``points_delta`` is the capture bonus only; the contagion gain for the
    same step is reported by the preceding ``increment_contagion`` event.
    """
    type: Literal["capture_contagion"] = "capture_contagion"


class DestroyOwnCastleEvent(_ScoredRuleEvent):
    """Actor emptied one of their own castles"""
    type: Literal["destroy_own_castle"] = "destroy_own_castle"


class ChainEndedEvent(_RuleEventBase):
    """Chain stopped on an enemy castle without capturing it"""
    type: Literal["chain_ended"] = "chain_ended"


RuleEvent = Annotated[
    Union[
        CaptureEmptyEvent,
        IncrementContagionEvent,
        CaptureContagionEvent,
        DestroyOwnCastleEvent,
        ChainEndedEvent,
    ],
    Field(discriminator="type"),
]


# ═══════════════════════════════════════════════════════════════════════════
# TURN DIRECTOR
# ═══════════════════════════════════════════════════════════════════════════


class CursorOpportunity(BaseModel):
    """The single bonus-opportunity slot of a match"""
    is_active: bool = Field(False, alias="isActive")
    cell_index: Optional[int] = Field(None, alias="cellIndex")
    spawned_at_ms: Optional[Millis] = Field(None, alias="spawnedAtMs")
    expires_at_ms: Optional[Millis] = Field(None, alias="expiresAtMs")
    claimed_by: Optional[str] = Field(None, alias="claimedBy")
    claimed_at_ms: Optional[Millis] = Field(None, alias="claimedAtMs")

    class Config:
        populate_by_name = True
        frozen = True


class TurnDirectorState(BaseModel):
    """Turn director state"""
    next_spawn_at_ms: Millis = Field(alias="nextSpawnAtMs")
    opportunity: CursorOpportunity = Field(default_factory=CursorOpportunity)

    class Config:
        populate_by_name = True
        frozen = True


class TurnDirectorConfig(BaseModel):
    """Spawn scheduling and opportunity lifetime, in milliseconds.

    ``max_spawn_delay_ms < min_spawn_delay_ms`` is accepted here and
    rejected when a delay is actually drawn.
    """
    min_spawn_delay_ms: int = Field(ge=0, alias="minSpawnDelayMs")
    max_spawn_delay_ms: int = Field(ge=0, alias="maxSpawnDelayMs")
    cursor_lifetime_ms: int = Field(0, ge=0, alias="cursorLifetimeMs")

    class Config:
        populate_by_name = True
        frozen = True
