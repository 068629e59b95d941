"""Smoke tests for scripts/run_contagion_soak.py."""

import json

from castle_contagion.models import TurnDirectorConfig
from scripts.run_contagion_soak import main, run_soak


def test_run_soak_small_seeded_batch_has_no_failures():
    summary = run_soak(
        num_matches=4,
        actions_per_match=40,
        num_players=3,
        max_capture_contagion=3,
        seed=7,
        director_config=TurnDirectorConfig(
            min_spawn_delay_ms=50, max_spawn_delay_ms=300, cursor_lifetime_ms=200
        ),
    )

    assert summary["failures"] == []
    assert summary["matches"] == 4
    assert sum(summary["events_by_type"].values()) > 0


def test_run_soak_is_reproducible():
    kwargs = dict(
        num_matches=2,
        actions_per_match=25,
        num_players=2,
        max_capture_contagion=2,
        seed=3,
        director_config=TurnDirectorConfig(
            min_spawn_delay_ms=0, max_spawn_delay_ms=100, cursor_lifetime_ms=50
        ),
    )
    assert run_soak(**kwargs) == run_soak(**kwargs)


def test_main_writes_summary(tmp_path):
    out = tmp_path / "soak" / "summary.json"

    rc = main(
        [
            "--num-matches", "2",
            "--actions-per-match", "20",
            "--seed", "11",
            "--summary-json", str(out),
        ]
    )

    assert rc == 0
    summary = json.loads(out.read_text())
    assert summary["seed"] == 11
    assert summary["failures"] == []
