#!/usr/bin/env python
"""Seeded invariant soak for the Castle Contagion rules engine.

Plays many short random matches through ``GameEngine.attempt_action`` with
a live turn director and checks, after every action:

  - ownership/count invariants (``find_invariant_violations``),
  - exactly one terminal event, last in the trail,
  - the chain visited at most ``size² × capture_contagion`` cells.

Each match draws its board size, capture threshold, scoring mode and
wrap-around flag from the seeded RNG, so a failing seed reproduces
exactly.

Usage (from the repository root):

  # 200 matches, 60 actions each
  python scripts/run_contagion_soak.py --num-matches 200 --seed 7

  # Write an aggregate summary
  python scripts/run_contagion_soak.py --summary-json /tmp/soak.json
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from castle_contagion.board_manager import (  # noqa: E402
    MAX_BOARD_SIZE,
    MIN_BOARD_SIZE,
    BoardManager,
)
from castle_contagion.game_engine import GameEngine  # noqa: E402
from castle_contagion.metrics import OPPORTUNITY_TRANSITIONS  # noqa: E402
from castle_contagion.models import (  # noqa: E402
    Direction,
    GameConfig,
    MatchState,
    PlayerState,
    RuleEventType,
    ScoringMode,
    TurnDirectorConfig,
)
from castle_contagion.rules.chain import cells_visited, max_chain_steps  # noqa: E402
from castle_contagion.rules.invariants import find_invariant_violations  # noqa: E402
from castle_contagion.turn_director import (  # noqa: E402
    OpportunityStatus,
    advance_turn_director,
    clear_opportunity_after_resolution,
    create_turn_director_state,
    opportunity_status,
    try_claim_opportunity,
)

logger = logging.getLogger("run_contagion_soak")

_DIRECTIONS: List[Optional[Direction]] = [None, *Direction]


def _random_match(rng: random.Random, num_players: int, max_threshold: int) -> MatchState:
    config = GameConfig(
        capture_contagion=rng.randint(1, max_threshold),
        scoring_mode=rng.choice(list(ScoringMode)),
        wrap_around=rng.random() < 0.5,
    )
    players = [
        PlayerState(id=f"p{i + 1}", name=f"P{i + 1}", is_cpu=True)
        for i in range(num_players)
    ]
    size = rng.randint(MIN_BOARD_SIZE, MAX_BOARD_SIZE)
    return GameEngine.create_match(size, players, config)


def _check_action(
    before: MatchState, after: MatchState, events: List[Any]
) -> List[str]:
    problems: List[str] = []
    if events:
        terminal = [e for e in events if RuleEventType(e.type).is_terminal]
        if len(terminal) != 1 or not RuleEventType(events[-1].type).is_terminal:
            problems.append(f"terminal events malformed: {[e.type for e in events]}")
        if cells_visited(events) > max_chain_steps(before):
            problems.append(
                f"chain visited {cells_visited(events)} cells, "
                f"bound {max_chain_steps(before)}"
            )
    for violation in find_invariant_violations(after):
        problems.append(f"{violation.invariant_id}: {violation.message} {violation.details}")
    return problems


def run_soak(
    num_matches: int,
    actions_per_match: int,
    num_players: int,
    max_capture_contagion: int,
    seed: int,
    director_config: TurnDirectorConfig,
    max_tick_ms: int = 500,
    claim_probability: float = 0.5,
) -> Dict[str, Any]:
    """Play ``num_matches`` random matches and return aggregate counts.

    The summary's ``failures`` list is empty when every check passed.
    """
    rng = random.Random(seed)
    events_by_type: Counter[str] = Counter()
    transitions: Counter[str] = Counter()
    blocked = 0
    failures: List[Dict[str, Any]] = []

    for match_no in range(num_matches):
        state = _random_match(rng, num_players, max_capture_contagion)
        player_ids = list(state.players)
        now_ms = 0
        director = create_turn_director_state(now_ms, director_config, rng.random)

        for action_no in range(actions_per_match):
            now_ms += rng.randint(1, max_tick_ms)

            before_status = opportunity_status(director)
            director = advance_turn_director(
                director,
                now_ms,
                BoardManager.empty_cell_indices(state.board),
                director_config,
                rng.random,
            )
            after_status = opportunity_status(director)
            if before_status is not after_status:
                transition = (
                    "spawned" if after_status is OpportunityStatus.ACTIVE_UNCLAIMED else "expired"
                )
                transitions[transition] += 1
                OPPORTUNITY_TRANSITIONS.labels(transition=transition).inc()

            actor_id = rng.choice(player_ids)
            direction = rng.choice(_DIRECTIONS)
            start_cell = rng.randrange(state.board.size * state.board.size)
            claimed = False

            if (
                after_status is OpportunityStatus.ACTIVE_UNCLAIMED
                and rng.random() < claim_probability
            ):
                claim = try_claim_opportunity(director, actor_id, now_ms)
                transition = "claimed" if claim.success else "claim_rejected"
                transitions[transition] += 1
                OPPORTUNITY_TRANSITIONS.labels(transition=transition).inc()
                if claim.success:
                    director = claim.state
                    start_cell = director.opportunity.cell_index
                    claimed = True

            result = GameEngine.attempt_action(state, actor_id, start_cell, direction)
            if result.blocked is not None:
                blocked += 1
            for event in result.events:
                events_by_type[event.type] += 1

            problems = _check_action(state, result.state, result.events)
            if problems:
                failures.append(
                    {
                        "match": match_no,
                        "action": action_no,
                        "actor": actor_id,
                        "start_cell": start_cell,
                        "direction": direction.value if direction else None,
                        "problems": problems,
                    }
                )
                logger.error(f"match {match_no} action {action_no}: {problems}")

            state = result.state

            if claimed:
                director = clear_opportunity_after_resolution(
                    director, now_ms, director_config, rng.random
                )
                transitions["cleared"] += 1
                OPPORTUNITY_TRANSITIONS.labels(transition="cleared").inc()

        logger.debug(
            f"match {match_no} done: scores="
            f"{ {pid: p.score for pid, p in state.players.items()} }"
        )

    return {
        "seed": seed,
        "matches": num_matches,
        "actions_per_match": actions_per_match,
        "blocked_actions": blocked,
        "events_by_type": dict(events_by_type),
        "opportunity_transitions": dict(transitions),
        "failures": failures,
    }


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run a seeded random-play invariant soak over the Castle Contagion rules engine."
    )
    parser.add_argument("--num-matches", type=int, default=50, help="Matches to play (default: 50).")
    parser.add_argument(
        "--actions-per-match",
        type=int,
        default=60,
        help="Actions attempted per match (default: 60).",
    )
    parser.add_argument("--num-players", type=int, default=2, help="Players per match (default: 2).")
    parser.add_argument(
        "--max-capture-contagion",
        type=int,
        default=4,
        help="Upper bound for the per-match capture threshold (default: 4).",
    )
    parser.add_argument("--seed", type=int, default=42, help="RNG seed (default: 42).")
    parser.add_argument("--min-spawn-delay-ms", type=int, default=200)
    parser.add_argument("--max-spawn-delay-ms", type=int, default=1500)
    parser.add_argument("--cursor-lifetime-ms", type=int, default=800)
    parser.add_argument(
        "--summary-json",
        type=str,
        default=None,
        help="Optional path for an aggregate JSON summary.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG logging.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    director_config = TurnDirectorConfig(
        min_spawn_delay_ms=args.min_spawn_delay_ms,
        max_spawn_delay_ms=args.max_spawn_delay_ms,
        cursor_lifetime_ms=args.cursor_lifetime_ms,
    )

    summary = run_soak(
        num_matches=args.num_matches,
        actions_per_match=args.actions_per_match,
        num_players=args.num_players,
        max_capture_contagion=args.max_capture_contagion,
        seed=args.seed,
        director_config=director_config,
    )

    if args.summary_json:
        out = Path(args.summary_json)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(summary, indent=2, sort_keys=True))
        logger.info(f"Wrote summary to {out}")

    if summary["failures"]:
        logger.error(f"Soak failed: {len(summary['failures'])} problem action(s)")
        return 1

    logger.info(
        f"Soak OK: {args.num_matches} matches, events={summary['events_by_type']}"
    )
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
