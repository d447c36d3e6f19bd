"""
Tests for the frame step function and the game state machine.
"""

import dataclasses

import pytest

from precise_stacker.stacker_core.config_loader import CanvasConfig, load_config
from precise_stacker.stacker_core.blocks import Block
from precise_stacker.stacker_core.game import step
from precise_stacker.stacker_core.game_state import (
    CurrentBlock,
    GamePhase,
    new_game,
    waiting_state,
)


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def state(config):
    return new_game(config)


def with_current(state, x=None, direction=None, phase=None):
    """Copy of state with the current block moved / redirected."""
    current = state.current
    if x is not None:
        current = dataclasses.replace(current, block=current.block.moved(x=x))
    if direction is not None:
        current = dataclasses.replace(current, direction=direction)
    state = dataclasses.replace(state, current=current)
    if phase is not None:
        state = dataclasses.replace(state, phase=phase)
    return state


def drop_at(state, config, x):
    """Tap with the current block at `x` and run frames until it resolves."""
    state = step(with_current(state, x=x), config, activate=True)
    while state.phase is GamePhase.DROPPING:
        state = step(state, config)
    return state


def perfect_drops(state, config, count):
    for _ in range(count):
        state = drop_at(state, config, state.top.x)
    return state


class TestNewGame:
    """Test the initial state of a run."""

    def test_new_game_is_swinging(self, state):
        assert state.phase is GamePhase.SWINGING
        assert state.score == 0
        assert len(state.stack) == 1

    def test_first_block_spawn(self, state, config):
        """First block starts at the left wall, a gap above the base, base-wide."""
        base = state.top
        current = state.current.block
        assert current.x == 0
        assert current.width == base.width
        assert current.y == base.y - config.blocks.height - config.blocks.spawn_gap
        assert state.current.direction == 1

    def test_high_score_carried(self, config):
        assert new_game(config, high_score=12).high_score == 12

    def test_waiting_state_ignores_frames(self, config):
        """WAITING only leaves on reset; stepping does nothing."""
        waiting = waiting_state(config)
        assert step(waiting, config, activate=True) is waiting

    @pytest.mark.parametrize("changed", [
        lambda c: dataclasses.replace(c, canvas=CanvasConfig(width=100, height=600)),
        lambda c: dataclasses.replace(c, speed=dataclasses.replace(c.speed, drop=9.0)),
        lambda c: dataclasses.replace(c, camera=dataclasses.replace(c.camera, start_threshold_blocks=2)),
    ])
    def test_mismatched_config_rejected(self, state, config, changed):
        """A state only steps under the gameplay settings it was built with."""
        with pytest.raises(ValueError):
            step(state, changed(config))
        with pytest.raises(ValueError):
            step(waiting_state(config), changed(config))

    def test_cosmetic_config_change_allowed(self, state, config):
        """Colors do not change how a run plays, so they may differ."""
        recolored = dataclasses.replace(
            config, blocks=dataclasses.replace(config.blocks, base_color=(1, 2, 3))
        )
        after = step(state, recolored)
        assert after.current.block.x == pytest.approx(config.speed.swing_start)


class TestSwing:
    """Test horizontal swing motion."""

    def test_moves_by_speed(self, state, config):
        after = step(state, config)
        assert after.current.block.x == pytest.approx(config.speed.swing_start)
        assert after.current.block.y == state.current.block.y

    def test_bounce_right_wall(self, state, config):
        """Crossing the right wall reverses direction and clamps."""
        max_x = config.canvas.width - state.current.block.width
        after = step(with_current(state, x=max_x - 1, direction=1), config)
        assert after.current.direction == -1
        assert after.current.block.x == max_x

        after = step(after, config)
        assert after.current.block.x == pytest.approx(max_x - config.speed.swing_start)

    def test_bounce_left_wall(self, state, config):
        after = step(with_current(state, x=1, direction=-1), config)
        assert after.current.direction == 1
        assert after.current.block.x == 0

    def test_stays_in_bounds(self, state, config):
        """The swinging block never leaves the canvas."""
        max_x = config.canvas.width - state.current.block.width
        for _ in range(500):
            state = step(state, config)
            assert 0 <= state.current.block.x <= max_x

    def test_dt_scales_motion(self, state, config):
        """A frame of two reference frames moves twice as far."""
        after = step(state, config, dt=2.0 / config.speed.reference_fps)
        assert after.current.block.x == pytest.approx(2 * config.speed.swing_start)

    def test_step_does_not_mutate(self, state, config):
        before = state
        step(state, config, activate=True)
        assert state == before
        assert state.phase is GamePhase.SWINGING


class TestDrop:
    """Test drop motion and the swinging -> dropping transition."""

    def test_tap_starts_drop(self, state, config):
        after = step(state, config, activate=True)
        assert after.phase is GamePhase.DROPPING
        assert after.current.block.x == state.current.block.x
        assert after.current.block.y == pytest.approx(state.current.block.y + config.speed.drop)

    def test_input_ignored_while_dropping(self, state, config):
        """Taps during a drop change nothing but the normal fall."""
        dropping = step(state, config, activate=True)
        tapped = step(dropping, config, activate=True)
        untapped = step(dropping, config)
        assert tapped == untapped

    def test_snaps_to_target(self, config):
        """A block passing the target lands exactly on the stack."""
        state = new_game(config)
        landed = drop_at(state, config, 40)
        placed = landed.stack[-1]
        assert placed.y == state.top.y - config.blocks.height

    def test_drop_frame_count(self, state, config):
        """Drop distance / speed frames, counting the tap frame."""
        distance = config.blocks.spawn_gap
        frames = 0
        current = step(with_current(state, x=40), config, activate=True)
        frames += 1
        while current.phase is GamePhase.DROPPING:
            current = step(current, config)
            frames += 1
        assert frames == int(distance / config.speed.drop)


class TestLanding:
    """Test landing scenarios."""

    def test_full_overlap_scenario(self, state, config):
        """Base 320 at x=40, dropped at x=40 -> new block width 320, score 1."""
        after = drop_at(state, config, 40)
        assert after.phase is GamePhase.SWINGING
        assert after.score == 1
        assert len(after.stack) == 2
        assert after.stack[-1].x == 40
        assert after.stack[-1].width == 320

    def test_partial_overlap_scenario(self, state, config):
        """Dropped at x=300 (to 620) on 40..360 -> new block width 60."""
        after = drop_at(state, config, 300)
        assert after.score == 1
        assert after.stack[-1].x == 300
        assert after.stack[-1].width == pytest.approx(60)

    def test_next_block_matches_trimmed_width(self, state, config):
        after = drop_at(state, config, 300)
        assert after.current.block.width == pytest.approx(60)
        assert after.current.block.x == 0
        assert after.current.direction == 1

    def test_miss_left_scenario(self, config):
        """Dropped -50..-10 against stack 0..100 -> game over."""
        base = Block(x=0, y=580, width=100, height=20, color=(136, 136, 136))
        dropped = Block(x=-50, y=510, width=40, height=20, color=(1, 2, 3))
        state = dataclasses.replace(
            new_game(config),
            stack=(base,),
            current=CurrentBlock(dropped, 1),
            phase=GamePhase.DROPPING
        )
        while state.phase is GamePhase.DROPPING:
            state = step(state, config)
        assert state.phase is GamePhase.GAME_OVER
        assert state.score == 0
        assert len(state.stack) == 1

    def test_zero_overlap_is_miss(self, state, config):
        """Dropping exactly at the right edge of the base ends the game."""
        after = drop_at(state, config, 360)
        assert after.phase is GamePhase.GAME_OVER

    def test_game_over_is_terminal(self, state, config):
        over = drop_at(state, config, 360)
        assert step(over, config, activate=True) is over

    def test_colors_cycle(self, state, config):
        after = perfect_drops(state, config, 2)
        colors = [b.color for b in after.stack[1:]] + [after.current.block.color]
        assert len(set(colors)) == 3


class TestDifficulty:
    """Test score and swing speed scaling."""

    def test_score_increments_by_one(self, state, config):
        for expected in range(1, 8):
            state = drop_at(state, config, state.top.x)
            assert state.score == expected

    @pytest.mark.parametrize("landings", [1, 5, 12])
    def test_swing_speed_linear(self, state, config, landings):
        """Swing speed after N landings is start + N * increment."""
        state = perfect_drops(state, config, landings)
        expected = config.speed.swing_start + landings * config.speed.swing_increase
        assert state.swing_speed == pytest.approx(expected)

    def test_high_score_tracks_score(self, config):
        state = perfect_drops(new_game(config, high_score=2), config, 4)
        assert state.high_score == 4

    def test_widths_non_increasing(self, state, config):
        """Stack widths never grow, whatever the drop offsets."""
        offsets = [7, -11, 3, 0, -2, 5, 1]
        for offset in offsets:
            x = max(0.0, state.top.x + offset)
            state = drop_at(state, config, x)
            if state.is_over:
                break
        widths = state.stack_widths
        assert all(b <= a for a, b in zip(widths, widths[1:]))
