"""Rules layer for Castle Contagion.

- chain: chain resolution (capture / contagion / destroy walk)
- scoring: point formulas used by chain resolution
- invariants: full-rescan consistency checks for snapshots
"""

from castle_contagion.rules.chain import (
    ResolveResult,
    cells_visited,
    clone_state,
    max_chain_steps,
    resolve_action,
)
from castle_contagion.rules.invariants import (
    InvariantViolation,
    assert_invariants,
    find_invariant_violations,
)
from castle_contagion.rules.scoring import (
    capture_castle_points,
    contagion_gain_points,
    contagion_loss_points,
    count_adjacent_owned_castles,
)

__all__ = [
    "InvariantViolation",
    "ResolveResult",
    "assert_invariants",
    "capture_castle_points",
    "cells_visited",
    "clone_state",
    "contagion_gain_points",
    "contagion_loss_points",
    "count_adjacent_owned_castles",
    "find_invariant_violations",
    "max_chain_steps",
    "resolve_action",
]
