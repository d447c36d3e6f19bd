"""
Game State
==========

Immutable game state value. A reset builds a fresh instance, a frame
step returns a new one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from precise_stacker.stacker_core.config_loader import GameConfig
from precise_stacker.stacker_core.blocks import Block, hue_to_rgb, make_base_block, next_hue
from precise_stacker.stacker_core.rules import SpawnRules


class GamePhase(Enum):
    WAITING = "waiting"
    SWINGING = "swinging"
    DROPPING = "dropping"
    GAME_OVER = "gameOver"


# Stable integer codes for observations
PHASE_CODES = {
    GamePhase.WAITING: 0,
    GamePhase.SWINGING: 1,
    GamePhase.DROPPING: 2,
    GamePhase.GAME_OVER: 3,
}


@dataclass(frozen=True)
class CurrentBlock:
    """The in-flight block and its swing direction (+1 right, -1 left)."""
    block: Block
    direction: int = 1


@dataclass(frozen=True)
class GameState:
    """Complete state of one run."""
    phase: GamePhase
    stack: Tuple[Block, ...]
    current: Optional[CurrentBlock]
    score: int
    high_score: int
    swing_speed: float
    camera_y: float       # World Y at the top of the screen
    hue: int              # Hue of the most recently spawned block
    config_key: Tuple[float, ...]   # GameConfig.gameplay_key() the run was built with
    frame: int = 0

    @property
    def top(self) -> Block:
        """The block at the top of the stack."""
        return self.stack[-1]

    @property
    def camera_offset(self) -> float:
        """How far the camera has scrolled up; never decreases within a run."""
        return -self.camera_y

    @property
    def is_over(self) -> bool:
        return self.phase is GamePhase.GAME_OVER

    @property
    def stack_widths(self) -> Tuple[float, ...]:
        return tuple(b.width for b in self.stack)


def waiting_state(config: GameConfig, high_score: int = 0) -> GameState:
    """State before the first reset: base block only, nothing in flight."""
    return GameState(
        phase=GamePhase.WAITING,
        stack=(make_base_block(config),),
        current=None,
        score=0,
        high_score=high_score,
        swing_speed=config.speed.swing_start,
        camera_y=0.0,
        hue=config.palette.hue_start,
        config_key=config.gameplay_key(),
    )


def new_game(config: GameConfig, high_score: int = 0) -> GameState:
    """
    Build a fresh run: base block, first swinging block, score zero.

    Args:
        config: Game configuration.
        high_score: High score carried over from earlier runs.

    Returns:
        State in the SWINGING phase.
    """
    base = make_base_block(config)
    hue = next_hue(config.palette.hue_start, config.palette)
    first = SpawnRules(config).spawn(base, 0.0, hue_to_rgb(hue, config.palette))
    return GameState(
        phase=GamePhase.SWINGING,
        stack=(base,),
        current=CurrentBlock(first, 1),
        score=0,
        high_score=high_score,
        swing_speed=config.speed.swing_start,
        camera_y=0.0,
        hue=hue,
        config_key=config.gameplay_key(),
    )
