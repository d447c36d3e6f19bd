"""
Game Rules
==========

Handles swing motion, drop motion, landing resolution, spawn placement
and camera follow. Every rule is a pure function of its inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from precise_stacker.stacker_core.config_loader import GameConfig, get_config
from precise_stacker.stacker_core.blocks import (
    Block,
    Color,
    Overlap,
    horizontal_overlap,
    trim_to_overlap,
)


@dataclass
class LandingResult:
    """Result of resolving a landed block against the top of the stack."""
    overlap: Overlap
    placed: Optional[Block]

    @property
    def missed(self) -> bool:
        return self.placed is None

    @staticmethod
    def resolve(dropped: Block, top: Block) -> "LandingResult":
        return LandingResult(
            overlap=horizontal_overlap(dropped, top),
            placed=trim_to_overlap(dropped, top)
        )


class SwingRules:
    """
    Horizontal oscillation of the current block.

    The block bounces between the left wall (x = 0) and the right wall
    (x + width = canvas width).
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()
        self._canvas_width = config.canvas.width

    def advance(
        self,
        block: Block,
        direction: int,
        speed: float,
        frames: float = 1.0
    ) -> Tuple[Block, int]:
        """
        Move a swinging block for the given number of frames.

        Args:
            block: The swinging block.
            direction: +1 for right, -1 for left.
            speed: Pixels per frame.
            frames: Elapsed frames (fractional when driven by real time).

        Returns:
            (moved block, new direction) tuple.
        """
        x = block.x + direction * speed * frames
        max_x = self._canvas_width - block.width
        if x < 0 or x > max_x:
            direction = -direction
            x = max(0.0, min(x, max_x))
        return block.moved(x=x), direction


class DropRules:
    """Constant-speed vertical drop onto the stack."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()
        self._drop_speed = config.speed.drop

    @staticmethod
    def target_y(block: Block, top: Block) -> float:
        """World Y at which `block` rests on `top`."""
        return top.y - block.height

    def advance(self, block: Block, top: Block, frames: float = 1.0) -> Tuple[Block, bool]:
        """
        Move a dropping block down.

        Returns:
            (moved block, reached) tuple. A block reaching or passing the
            target is snapped exactly onto it.
        """
        target = self.target_y(block, top)
        y = block.y + self._drop_speed * frames
        if y >= target:
            return block.moved(y=target), True
        return block.moved(y=y), False


class SpawnRules:
    """
    Placement of a fresh block above the stack.

    The block appears `spawn_gap` pixels above the slot it will land in,
    but never closer than `min_spawn_y_offset` to the top of the screen.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()
        self._block_height = config.blocks.height
        self._spawn_gap = config.blocks.spawn_gap
        self._min_offset = config.blocks.min_spawn_y_offset

    def spawn_y(self, top: Block, camera_y: float) -> float:
        """World Y for a fresh block given the stack top and camera."""
        y = top.y - self._block_height - self._spawn_gap
        if y - camera_y < self._min_offset:
            y = camera_y + self._min_offset
        return y

    def spawn(self, top: Block, camera_y: float, color: Color) -> Block:
        """Create the next swinging block at the left wall."""
        return Block(
            x=0.0,
            y=self.spawn_y(top, camera_y),
            width=top.width,
            height=self._block_height,
            color=color
        )


class CameraRules:
    """
    Camera follow.

    `camera_y` is the world Y at the top of the screen. Once the stack is
    taller than `start_threshold_blocks` and a newly placed block would be
    drawn above the threshold line, the camera moves up so the block sits
    exactly on that line. The camera never moves down.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()
        self._threshold_y = config.camera_threshold_y
        self._start_blocks = config.camera.start_threshold_blocks

    @property
    def threshold_y(self) -> float:
        """Screen Y of the follow line."""
        return self._threshold_y

    def follow(self, camera_y: float, placed: Block, stack_size: int) -> float:
        """
        Compute the camera position after a block was placed.

        Args:
            camera_y: Current camera position.
            placed: The block that was just added to the stack.
            stack_size: Stack size including the placed block.

        Returns:
            New camera position.
        """
        screen_y = placed.y - camera_y
        if screen_y < self._threshold_y and stack_size > self._start_blocks:
            return placed.y - self._threshold_y
        return camera_y


class GameRules:
    """
    Combined interface for all game rules.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self.swing = SwingRules(config)
        self.drop = DropRules(config)
        self.spawn = SpawnRules(config)
        self.camera = CameraRules(config)

    @staticmethod
    def land(dropped: Block, top: Block) -> LandingResult:
        """Resolve a landing (see LandingResult.resolve)."""
        return LandingResult.resolve(dropped, top)
