"""
Render Frame
============

Turns a game state into the list of screen rectangles a renderer draws.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from precise_stacker.stacker_core.config_loader import GameConfig
from precise_stacker.stacker_core.blocks import Block, Color
from precise_stacker.stacker_core.game_state import GamePhase, GameState


@dataclass(frozen=True)
class DrawRect:
    """A filled, bordered rectangle in screen coordinates."""
    x: float
    y: float
    width: float
    height: float
    color: Color
    border_color: Color
    border_width: int


def _to_screen(block: Block, camera_y: float, config: GameConfig) -> DrawRect:
    return DrawRect(
        x=block.x,
        y=block.y - camera_y,
        width=block.width,
        height=block.height,
        color=block.color,
        border_color=config.blocks.border_color,
        border_width=config.blocks.border_width,
    )


def is_visible(rect: DrawRect, config: GameConfig) -> bool:
    """True if any part of the rectangle falls inside the viewport vertically."""
    return rect.y < config.canvas.height and rect.y + rect.height > 0


def build_frame(state: GameState, config: GameConfig) -> List[DrawRect]:
    """
    Build the render frame for a state.

    Stacked blocks come first (top of the stack first), culled to the
    viewport. The current block is appended while swinging or dropping.
    """
    rects: List[DrawRect] = []
    for block in reversed(state.stack):
        rect = _to_screen(block, state.camera_y, config)
        if is_visible(rect, config):
            rects.append(rect)

    if state.current is not None and state.phase in (GamePhase.SWINGING, GamePhase.DROPPING):
        rects.append(_to_screen(state.current.block, state.camera_y, config))

    return rects
