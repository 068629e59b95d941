"""Tests for castle_contagion/rules/scoring.py."""

import pytest

from castle_contagion.models import ScoringMode
from castle_contagion.rules.scoring import (
    capture_castle_points,
    contagion_gain_points,
    contagion_loss_points,
    count_adjacent_owned_castles,
)


@pytest.mark.parametrize(
    "adjacency, points",
    [(0, 1), (1, 2), (2, 4), (3, 7), (4, 10), (5, 10), (9, 10)],
)
def test_capture_castle_points_table(adjacency, points):
    assert capture_castle_points(adjacency) == points


def test_contagion_gain_basic_pays_level():
    assert contagion_gain_points(1, ScoringMode.BASIC) == 1
    assert contagion_gain_points(3, ScoringMode.BASIC) == 3


def test_contagion_gain_only_castles_pays_nothing():
    assert contagion_gain_points(3, ScoringMode.ONLY_CASTLES) == 0


def test_contagion_gain_accepts_mode_values():
    assert contagion_gain_points(2, "basic") == 2
    assert contagion_gain_points(2, "onlyCastles") == 0


def test_contagion_loss_is_identity():
    for level in (0, 1, 4):
        assert contagion_loss_points(level) == level


class TestCountAdjacentOwnedCastles:
    def test_counts_only_actor_cells(self, match_factory):
        state = match_factory(wrap_around=False)
        state.board.cells[1].owner = "p1"
        state.board.cells[4].owner = "p2"
        assert count_adjacent_owned_castles(state, 0, "p1") == 1
        assert count_adjacent_owned_castles(state, 0, "p2") == 1

    def test_wrap_around_adds_opposite_edges(self, match_factory):
        state = match_factory(wrap_around=True)
        state.board.cells[3].owner = "p1"
        state.board.cells[12].owner = "p1"
        assert count_adjacent_owned_castles(state, 0, "p1") == 2

        state.config.wrap_around = False
        assert count_adjacent_owned_castles(state, 0, "p1") == 0
