"""
State Snapshot
==============

Packs game state into fixed-size numpy arrays for Gymnasium observations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional
import numpy as np

from precise_stacker.stacker_core.config_loader import GameConfig, get_config
from precise_stacker.stacker_core.game_state import PHASE_CODES, GameState


@dataclass
class GameSnapshot:
    """
    Game state snapshot.

    Stack arrays hold the most recent `max_blocks` blocks, top of the stack
    first, padded and masked when the stack is shorter.
    """
    # Core state
    phase: int
    score: int
    high_score: int
    stack_size: int
    swing_speed: float
    camera_offset: float

    # Current block (screen coordinates)
    current_x: float
    current_y: float
    current_width: float
    current_direction: int

    # Top of stack (screen coordinates)
    top_x: float
    top_y: float
    top_width: float

    # Canvas info (for normalization)
    canvas_width: float
    canvas_height: float

    # Stack arrays (fixed size, padded)
    stack_x: np.ndarray          # (MAX_BLOCKS,) float32
    stack_width: np.ndarray      # (MAX_BLOCKS,) float32
    stack_mask: np.ndarray       # (MAX_BLOCKS,) bool

    # Optional image
    board_rgb: Optional[np.ndarray] = None

    def to_obs_dict(self) -> Dict[str, np.ndarray]:
        """Convert to Gymnasium observation dictionary."""
        obs = {
            "phase": np.array(self.phase, dtype=np.int64),
            "score": np.array(self.score, dtype=np.int64),
            "high_score": np.array(self.high_score, dtype=np.int64),
            "stack_size": np.array(self.stack_size, dtype=np.int32),
            "swing_speed": np.array(self.swing_speed, dtype=np.float32),
            "camera_offset": np.array(self.camera_offset, dtype=np.float32),

            "current_x": np.array(self.current_x, dtype=np.float32),
            "current_y": np.array(self.current_y, dtype=np.float32),
            "current_width": np.array(self.current_width, dtype=np.float32),
            "current_direction": np.array(self.current_direction, dtype=np.int32),

            "top_x": np.array(self.top_x, dtype=np.float32),
            "top_y": np.array(self.top_y, dtype=np.float32),
            "top_width": np.array(self.top_width, dtype=np.float32),

            "canvas_width": np.array(self.canvas_width, dtype=np.float32),
            "canvas_height": np.array(self.canvas_height, dtype=np.float32),

            "stack_x": self.stack_x,
            "stack_width": self.stack_width,
            "stack_mask": self.stack_mask,
        }

        if self.board_rgb is not None:
            obs["board_rgb"] = self.board_rgb

        return obs


class SnapshotBuilder:
    """Builds game state snapshots with pre-allocated arrays."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._max_blocks = config.observation.max_blocks

        self._stack_x = np.zeros(self._max_blocks, dtype=np.float32)
        self._stack_width = np.zeros(self._max_blocks, dtype=np.float32)
        self._stack_mask = np.zeros(self._max_blocks, dtype=bool)

    @property
    def max_blocks(self) -> int:
        return self._max_blocks

    def build(
        self,
        state: GameState,
        board_rgb: Optional[np.ndarray] = None
    ) -> GameSnapshot:
        """
        Build a snapshot from a game state.

        Args:
            state: The state to pack.
            board_rgb: Optional rendered image.

        Returns:
            GameSnapshot with copies of the internal arrays.
        """
        self._stack_x.fill(0.0)
        self._stack_width.fill(0.0)
        self._stack_mask.fill(False)

        recent = state.stack[::-1][:self._max_blocks]
        for i, block in enumerate(recent):
            self._stack_x[i] = block.x
            self._stack_width[i] = block.width
            self._stack_mask[i] = True

        top = state.top
        if state.current is not None:
            current = state.current.block
            current_x = current.x
            current_y = current.y - state.camera_y
            current_width = current.width
            direction = state.current.direction
        else:
            current_x, current_y, current_width, direction = 0.0, 0.0, 0.0, 0

        return GameSnapshot(
            phase=PHASE_CODES[state.phase],
            score=state.score,
            high_score=state.high_score,
            stack_size=len(state.stack),
            swing_speed=state.swing_speed,
            camera_offset=state.camera_offset,
            current_x=current_x,
            current_y=current_y,
            current_width=current_width,
            current_direction=direction,
            top_x=top.x,
            top_y=top.y - state.camera_y,
            top_width=top.width,
            canvas_width=float(self._config.canvas.width),
            canvas_height=float(self._config.canvas.height),
            stack_x=self._stack_x.copy(),
            stack_width=self._stack_width.copy(),
            stack_mask=self._stack_mask.copy(),
            board_rgb=board_rgb
        )
