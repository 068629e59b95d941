"""Tests for castle_contagion/turn_director.py - bonus opportunity lifecycle."""

import random

import pytest

from castle_contagion.errors import ConfigError, ValidationError
from castle_contagion.models import TurnDirectorConfig
from castle_contagion.turn_director import (
    OpportunityStatus,
    advance_turn_director,
    clear_opportunity_after_resolution,
    create_turn_director_state,
    default_turn_director_config,
    opportunity_status,
    random_delay,
    try_claim_opportunity,
)


@pytest.fixture
def config():
    return TurnDirectorConfig(
        min_spawn_delay_ms=10,
        max_spawn_delay_ms=10,
        cursor_lifetime_ms=50,
    )


@pytest.fixture
def spawned(config, fixed_random):
    """Director with an unclaimed opportunity on cell 3, expiring at 60."""
    state = create_turn_director_state(0, config, fixed_random(0))
    return advance_turn_director(state, 10, [3, 5], config, fixed_random(0))


class TestRandomDelay:
    def test_draws_within_inclusive_range(self):
        assert random_delay(10, 20, lambda: 0.0) == 10
        assert random_delay(10, 20, lambda: 0.5) == 15
        assert random_delay(10, 20, lambda: 0.999) == 20

    def test_equal_bounds(self):
        assert random_delay(7, 7, lambda: 0.99) == 7

    def test_rejects_inverted_range(self):
        with pytest.raises(ConfigError) as exc_info:
            random_delay(20, 10, lambda: 0.5)
        assert exc_info.value.context == {"min_ms": 20, "max_ms": 10}

    def test_config_error_is_validation_error(self):
        with pytest.raises(ValidationError):
            random_delay(2, 1, lambda: 0.0)


class TestCreate:
    def test_starts_idle_with_first_spawn_scheduled(self, config, fixed_random):
        state = create_turn_director_state(100, config, fixed_random(0.3))
        assert state.next_spawn_at_ms == 110
        assert state.opportunity.is_active is False
        assert state.opportunity.cell_index is None
        assert opportunity_status(state) is OpportunityStatus.IDLE

    def test_inverted_config_raises_when_scheduling(self, fixed_random):
        bad = TurnDirectorConfig(min_spawn_delay_ms=50, max_spawn_delay_ms=10)
        with pytest.raises(ConfigError):
            create_turn_director_state(0, bad, fixed_random(0))

    def test_default_config_is_consistent(self):
        cfg = default_turn_director_config()
        assert cfg.min_spawn_delay_ms <= cfg.max_spawn_delay_ms
        assert cfg.cursor_lifetime_ms >= 0


class TestAdvance:
    def test_spawns_when_due(self, spawned):
        opp = spawned.opportunity
        assert opportunity_status(spawned) is OpportunityStatus.ACTIVE_UNCLAIMED
        assert opp.cell_index == 3
        assert opp.spawned_at_ms == 10
        assert opp.expires_at_ms == 60
        assert opp.claimed_by is None
        assert opp.claimed_at_ms is None

    def test_picks_candidate_by_random_draw(self, config, fixed_random):
        state = create_turn_director_state(0, config, fixed_random(0))
        state = advance_turn_director(state, 10, [3, 5, 9], config, fixed_random(0.99))
        assert state.opportunity.cell_index == 9

    def test_does_not_spawn_before_due(self, config, fixed_random):
        state = create_turn_director_state(0, config, fixed_random(0))
        after = advance_turn_director(state, 9, [3], config, fixed_random(0))
        assert after is state

    def test_does_not_spawn_without_empty_cells(self, config, fixed_random):
        state = create_turn_director_state(0, config, fixed_random(0))
        after = advance_turn_director(state, 500, [], config, fixed_random(0))
        assert after is state
        # a later tick with candidates still spawns
        after = advance_turn_director(after, 501, [2], config, fixed_random(0))
        assert after.opportunity.cell_index == 2
        assert after.opportunity.spawned_at_ms == 501

    def test_active_unexpired_opportunity_is_left_alone(self, spawned, config, fixed_random):
        assert advance_turn_director(spawned, 59, [5], config, fixed_random(0)) is spawned

    def test_unclaimed_opportunity_expires_and_reschedules(self, spawned, config, fixed_random):
        after = advance_turn_director(spawned, 60, [5], config, fixed_random(0))
        assert opportunity_status(after) is OpportunityStatus.IDLE
        assert after.opportunity.cell_index is None
        assert after.next_spawn_at_ms == 70

    def test_expiry_and_respawn_take_separate_ticks(self, fixed_random):
        config = TurnDirectorConfig(
            min_spawn_delay_ms=0, max_spawn_delay_ms=0, cursor_lifetime_ms=5
        )
        state = create_turn_director_state(0, config, fixed_random(0))
        state = advance_turn_director(state, 0, [1], config, fixed_random(0))
        assert state.opportunity.expires_at_ms == 5

        expired = advance_turn_director(state, 5, [1], config, fixed_random(0))
        assert opportunity_status(expired) is OpportunityStatus.IDLE
        assert expired.next_spawn_at_ms == 5

        respawned = advance_turn_director(expired, 5, [1], config, fixed_random(0))
        assert opportunity_status(respawned) is OpportunityStatus.ACTIVE_UNCLAIMED
        assert respawned.opportunity.spawned_at_ms == 5


class TestClaim:
    def test_claim_before_expiry_succeeds(self, spawned):
        result = try_claim_opportunity(spawned, "p1", 55)
        assert result.success is True
        assert result.state.opportunity.claimed_by == "p1"
        assert result.state.opportunity.claimed_at_ms == 55
        assert result.state.opportunity.cell_index == 3
        assert opportunity_status(result.state) is OpportunityStatus.ACTIVE_CLAIMED
        # input snapshot is untouched
        assert spawned.opportunity.claimed_by is None

    def test_claimed_opportunity_survives_past_expiry(self, spawned, config, fixed_random):
        claimed = try_claim_opportunity(spawned, "p1", 55).state
        after = advance_turn_director(claimed, 70, [5], config, fixed_random(0))
        assert after is claimed
        assert after.opportunity.claimed_by == "p1"

    def test_claim_at_or_after_expiry_fails(self, spawned):
        for now_ms in (60, 65):
            result = try_claim_opportunity(spawned, "p1", now_ms)
            assert result.success is False
            assert result.state is spawned

    def test_second_claim_fails(self, spawned):
        first = try_claim_opportunity(spawned, "p1", 20)
        second = try_claim_opportunity(first.state, "p2", 21)
        assert second.success is False
        assert second.state is first.state
        assert second.state.opportunity.claimed_by == "p1"

    def test_claim_while_idle_fails(self, config, fixed_random):
        state = create_turn_director_state(0, config, fixed_random(0))
        result = try_claim_opportunity(state, "p1", 5)
        assert result.success is False
        assert result.state is state


class TestClearAfterResolution:
    def test_resets_claimed_opportunity(self, spawned, config, fixed_random):
        claimed = try_claim_opportunity(spawned, "p1", 55).state
        cleared = clear_opportunity_after_resolution(claimed, 80, config, fixed_random(0))
        assert opportunity_status(cleared) is OpportunityStatus.IDLE
        assert cleared.opportunity.claimed_by is None
        assert cleared.next_spawn_at_ms == 90

    def test_resets_from_any_state(self, config, fixed_random):
        idle = create_turn_director_state(0, config, fixed_random(0))
        cleared = clear_opportunity_after_resolution(idle, 40, config, fixed_random(0))
        assert cleared.next_spawn_at_ms == 50
        assert opportunity_status(cleared) is OpportunityStatus.IDLE


class TestDeterminism:
    def _run(self, seed):
        rng = random.Random(seed)
        config = TurnDirectorConfig(
            min_spawn_delay_ms=5, max_spawn_delay_ms=40, cursor_lifetime_ms=20
        )
        state = create_turn_director_state(0, config, rng.random)
        trail = []
        for now_ms in range(0, 400, 7):
            state = advance_turn_director(state, now_ms, [1, 4, 9, 11], config, rng.random)
            if opportunity_status(state) is OpportunityStatus.ACTIVE_UNCLAIMED and now_ms % 3 == 0:
                claim = try_claim_opportunity(state, "p1", now_ms)
                if claim.success:
                    state = clear_opportunity_after_resolution(
                        claim.state, now_ms, config, rng.random
                    )
            trail.append(state.model_dump())
        return trail

    def test_same_seed_replays_identically(self):
        assert self._run(11) == self._run(11)


class TestFractionalClock:
    """Sub-millisecond clocks such as ``time.monotonic() * 1000``."""

    def test_lifecycle_keeps_fractional_timestamps(self, config, fixed_random):
        state = create_turn_director_state(0.25, config, fixed_random(0))
        assert state.next_spawn_at_ms == 10.25

        state = advance_turn_director(state, 10.5, [3], config, fixed_random(0))
        assert state.opportunity.spawned_at_ms == 10.5
        assert state.opportunity.expires_at_ms == 60.5

        assert try_claim_opportunity(state, "p2", 60.5).success is False
        claim = try_claim_opportunity(state, "p1", 60.25)
        assert claim.success is True
        assert claim.state.opportunity.claimed_at_ms == 60.25

        cleared = clear_opportunity_after_resolution(
            claim.state, 70.75, config, fixed_random(0)
        )
        assert opportunity_status(cleared) is OpportunityStatus.IDLE
        assert cleared.next_spawn_at_ms == 80.75

    def test_fractional_expiry_reschedules(self, config, fixed_random):
        state = create_turn_director_state(0, config, fixed_random(0))
        state = advance_turn_director(state, 10.5, [3], config, fixed_random(0))

        expired = advance_turn_director(state, 60.5, [3], config, fixed_random(0))

        assert opportunity_status(expired) is OpportunityStatus.IDLE
        assert expired.next_spawn_at_ms == 70.5


def test_opportunity_status_values_are_strings():
    assert OpportunityStatus.IDLE == "idle"
    assert OpportunityStatus("active_claimed") is OpportunityStatus.ACTIVE_CLAIMED
