"""
Blocks
======

Block records, overlap arithmetic and the block color cycle.
"""

from __future__ import annotations

import colorsys
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from precise_stacker.stacker_core.config_loader import GameConfig, PaletteConfig

Color = Tuple[int, int, int]


@dataclass(frozen=True)
class Block:
    """A rectangle in world coordinates (Y grows downward)."""
    x: float
    y: float
    width: float
    height: float
    color: Color

    @property
    def right(self) -> float:
        """X coordinate of the right edge."""
        return self.x + self.width

    def moved(self, x: Optional[float] = None, y: Optional[float] = None) -> "Block":
        """Copy of this block at a new position."""
        return replace(
            self,
            x=self.x if x is None else x,
            y=self.y if y is None else y
        )


@dataclass(frozen=True)
class Overlap:
    """Horizontal intersection of two blocks."""
    start: float
    end: float

    @property
    def width(self) -> float:
        return self.end - self.start

    @property
    def is_miss(self) -> bool:
        """Zero or negative overlap counts as a miss."""
        return self.width <= 0


def horizontal_overlap(dropped: Block, below: Block) -> Overlap:
    """
    Compute the horizontal overlap interval of two blocks.

    Args:
        dropped: The block that just landed.
        below: The block it landed on.

    Returns:
        Overlap with start = max of left edges and end = min of right edges.
        The width is negative when the blocks are apart.
    """
    return Overlap(
        start=max(dropped.x, below.x),
        end=min(dropped.right, below.right)
    )


def trim_to_overlap(dropped: Block, below: Block) -> Optional[Block]:
    """
    Trim a dropped block to its overlap with the block below.

    Returns:
        The placed block resting one block height above `below`,
        or None when the drop missed.
    """
    overlap = horizontal_overlap(dropped, below)
    if overlap.is_miss:
        return None
    return Block(
        x=overlap.start,
        y=below.y - dropped.height,
        width=overlap.width,
        height=dropped.height,
        color=dropped.color
    )


def next_hue(hue: int, palette: PaletteConfig) -> int:
    """Advance the hue cycle by one step."""
    return (hue + palette.hue_increment) % 360


def hue_to_rgb(hue: int, palette: PaletteConfig) -> Color:
    """Convert a hue in degrees to an RGB tuple using the palette's saturation and lightness."""
    r, g, b = colorsys.hls_to_rgb(hue / 360.0, palette.lightness, palette.saturation)
    return (int(round(r * 255)), int(round(g * 255)), int(round(b * 255)))


def make_base_block(config: GameConfig) -> Block:
    """The fixed block at the bottom of every stack, centered horizontally."""
    width = config.base_width
    return Block(
        x=(config.canvas.width - width) / 2,
        y=config.canvas.height - config.blocks.height,
        width=width,
        height=config.blocks.height,
        color=config.blocks.base_color
    )
