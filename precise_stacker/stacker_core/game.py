"""
Core Game
=========

Frame step function and the controller that owns the game state,
the high score slot and the score / game over notifications.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional

from precise_stacker.stacker_core.config_loader import GameConfig, get_config
from precise_stacker.stacker_core.blocks import hue_to_rgb, next_hue
from precise_stacker.stacker_core.frame import DrawRect, build_frame
from precise_stacker.stacker_core.game_state import (
    CurrentBlock,
    GamePhase,
    GameState,
    new_game,
    waiting_state,
)
from precise_stacker.stacker_core.high_score import HighScoreStore
from precise_stacker.stacker_core.rules import GameRules

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=8)
def _rules_for(config: GameConfig) -> GameRules:
    return GameRules(config)


def step(
    state: GameState,
    config: GameConfig,
    activate: bool = False,
    dt: Optional[float] = None
) -> GameState:
    """
    Advance the game by one frame.

    Args:
        state: Current state (never modified).
        config: Game configuration.
        activate: True if a tap arrived since the previous frame.
        dt: Frame duration in seconds. None means exactly one reference frame.

    Returns:
        The next state. WAITING and GAME_OVER states are returned unchanged.

    Raises:
        ValueError: If `state` was built with different gameplay settings.
    """
    if state.config_key != config.gameplay_key():
        raise ValueError("Game state was created with a different game configuration")

    if state.phase in (GamePhase.WAITING, GamePhase.GAME_OVER):
        return state

    rules = _rules_for(config)
    frames = 1.0 if dt is None else dt * config.speed.reference_fps
    state = replace(state, frame=state.frame + 1)

    if state.phase is GamePhase.SWINGING:
        if not activate:
            block, direction = rules.swing.advance(
                state.current.block,
                state.current.direction,
                state.swing_speed,
                frames
            )
            return replace(state, current=CurrentBlock(block, direction))
        logger.debug("Frame %d: drop at x=%.2f", state.frame, state.current.block.x)
        state = replace(state, phase=GamePhase.DROPPING)

    block, reached = rules.drop.advance(state.current.block, state.top, frames)
    state = replace(state, current=replace(state.current, block=block))
    if not reached:
        return state
    return _land(state, config, rules)


def _land(state: GameState, config: GameConfig, rules: GameRules) -> GameState:
    """Resolve a block that reached the top of the stack."""
    landing = rules.land(state.current.block, state.top)

    if landing.missed:
        logger.debug(
            "Frame %d: missed (overlap %.2f), final score %d",
            state.frame, landing.overlap.width, state.score
        )
        return replace(state, phase=GamePhase.GAME_OVER)

    placed = landing.placed
    stack = state.stack + (placed,)
    score = state.score + 1

    camera_y = rules.camera.follow(state.camera_y, placed, len(stack))
    if camera_y != state.camera_y:
        logger.debug("Camera follows to %.2f", camera_y)

    hue = next_hue(state.hue, config.palette)
    spawned = rules.spawn.spawn(placed, camera_y, hue_to_rgb(hue, config.palette))

    logger.debug(
        "Frame %d: landed width %.2f at x=%.2f, score %d",
        state.frame, placed.width, placed.x, score
    )
    return replace(
        state,
        phase=GamePhase.SWINGING,
        stack=stack,
        current=CurrentBlock(spawned, 1),
        score=score,
        high_score=max(state.high_score, score),
        swing_speed=config.swing_speed_for(score),
        camera_y=camera_y,
        hue=hue,
    )


@dataclass
class StepResult:
    """Result of a single controller tick."""
    state: GameState
    delta_score: int
    landed: bool
    game_over: bool        # True only on the frame the run ended


class CoreGame:
    """
    Main game controller.

    Owns:
    - The current GameState (replaced, never mutated)
    - The high score slot
    - Score changed / game over notifications

    One tick = one frame.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        high_score_store: Optional[HighScoreStore] = None,
        on_score_changed: Optional[Callable[[int, int], None]] = None,
        on_game_over: Optional[Callable[[int], None]] = None
    ):
        """
        Initialize game.

        Args:
            config: Game configuration. Uses default if None.
            high_score_store: Persistence slot. High score starts at 0 and
                is kept in memory only if None.
            on_score_changed: Called with (score, high_score) on reset and
                after every landing.
            on_game_over: Called with the final score when a run ends.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._store = high_score_store
        self._on_score_changed = on_score_changed
        self._on_game_over = on_game_over

        high_score = self._store.load() if self._store is not None else 0
        self._state = waiting_state(config, high_score)

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config

    @property
    def state(self) -> GameState:
        """Current game state."""
        return self._state

    @property
    def phase(self) -> GamePhase:
        return self._state.phase

    @property
    def score(self) -> int:
        """Current score."""
        return self._state.score

    @property
    def high_score(self) -> int:
        return self._state.high_score

    @property
    def is_over(self) -> bool:
        """True if the run has ended."""
        return self._state.is_over

    def reset(self) -> GameState:
        """
        Start a new run (also used as restart after game over).

        Returns:
            Initial SWINGING state.
        """
        self._state = new_game(self._config, self._state.high_score)
        logger.debug("Game reset, high score %d", self._state.high_score)
        self._notify_score()
        return self._state

    def tick(self, activate: bool = False, dt: Optional[float] = None) -> StepResult:
        """
        Advance one frame.

        Args:
            activate: True if a tap arrived since the previous frame.
            dt: Frame duration in seconds, None for one reference frame.

        Returns:
            StepResult with the new state and what happened this frame.
        """
        before = self._state
        after = step(before, self._config, activate=activate, dt=dt)
        self._state = after

        delta_score = after.score - before.score
        game_over = after.is_over and not before.is_over

        if delta_score:
            if after.high_score > before.high_score and self._store is not None:
                self._store.save(after.high_score)
            self._notify_score()

        if game_over and self._on_game_over is not None:
            self._on_game_over(after.score)

        return StepResult(
            state=after,
            delta_score=delta_score,
            landed=delta_score > 0,
            game_over=game_over
        )

    def _notify_score(self) -> None:
        if self._on_score_changed is not None:
            self._on_score_changed(self._state.score, self._state.high_score)

    def get_frame(self) -> List[DrawRect]:
        """Rectangles to draw for the current state."""
        return build_frame(self._state, self._config)

    def get_info(self) -> Dict[str, Any]:
        """Get additional info dict for Gymnasium."""
        return {
            "score": self._state.score,
            "high_score": self._state.high_score,
            "phase": self._state.phase.value,
            "frames": self._state.frame,
            "stack_size": len(self._state.stack),
            "swing_speed": self._state.swing_speed,
            "camera_offset": self._state.camera_offset,
            "terminated_reason": "miss" if self._state.is_over else "",
        }

    def get_render_data(self) -> Dict[str, Any]:
        """
        Get data needed for rendering.

        Returns:
            Dict with the render frame, score display values and canvas info.
        """
        return {
            "canvas_width": self._config.canvas.width,
            "canvas_height": self._config.canvas.height,
            "rects": self.get_frame(),
            "score": self._state.score,
            "high_score": self._state.high_score,
            "phase": self._state.phase.value,
            "game_over": self._state.is_over,
            "camera_offset": self._state.camera_offset,
        }
