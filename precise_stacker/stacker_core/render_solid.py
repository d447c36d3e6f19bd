"""
Solid Renderer
==============

Fast numpy-based renderer that draws the render frame as solid rectangles.
Used for image observations and headless rendering; it draws no text.
"""

from __future__ import annotations

from typing import Dict, Any, Optional, Tuple
import numpy as np

from precise_stacker.stacker_core.config_loader import GameConfig, get_config
from precise_stacker.stacker_core.frame import DrawRect


class SolidRenderer:
    """
    Renders the game canvas as solid-color rectangles.

    The canvas is scaled uniformly to fit the output image and centered;
    the margin is filled with the border color.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize renderer.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config

        # Canvas background (dark blue-gray) and letterbox margin
        self._bg_color = np.array([34, 40, 49], dtype=np.uint8)
        self._margin_color = np.array([20, 20, 25], dtype=np.uint8)

        # Game over tint
        self._game_over_tint = np.array([120, 30, 30], dtype=np.uint8)

    def _layout(self, render_data: Dict[str, Any], width: int, height: int) -> Tuple[float, float, float]:
        """Return (scale, offset_x, offset_y) mapping canvas to image pixels."""
        canvas_w = render_data["canvas_width"]
        canvas_h = render_data["canvas_height"]
        scale = min(width / canvas_w, height / canvas_h)
        offset_x = (width - canvas_w * scale) / 2
        offset_y = (height - canvas_h * scale) / 2
        return scale, offset_x, offset_y

    def render(
        self,
        render_data: Dict[str, Any],
        width: int,
        height: int
    ) -> np.ndarray:
        """
        Render the game state to an RGB array.

        Args:
            render_data: Data from CoreGame.get_render_data().
            width: Output image width.
            height: Output image height.

        Returns:
            (height, width, 3) uint8 array.
        """
        img = np.zeros((height, width, 3), dtype=np.uint8)
        img[:] = self._margin_color

        scale, offset_x, offset_y = self._layout(render_data, width, height)

        # Canvas area
        x0 = int(round(offset_x))
        y0 = int(round(offset_y))
        x1 = int(round(offset_x + render_data["canvas_width"] * scale))
        y1 = int(round(offset_y + render_data["canvas_height"] * scale))
        img[y0:y1, x0:x1] = self._bg_color

        for rect in render_data["rects"]:
            self._draw_rect(img, rect, scale, offset_x, offset_y, (x0, y0, x1, y1))

        if render_data.get("game_over", False):
            # Blend a red tint over the canvas
            region = img[y0:y1, x0:x1].astype(np.uint16)
            region = (region + self._game_over_tint.astype(np.uint16)) // 2
            img[y0:y1, x0:x1] = region.astype(np.uint8)

        return img

    def _draw_rect(
        self,
        img: np.ndarray,
        rect: DrawRect,
        scale: float,
        offset_x: float,
        offset_y: float,
        clip: Tuple[int, int, int, int]
    ) -> None:
        """Draw a filled rectangle with its border, clipped to the canvas area."""
        cx0, cy0, cx1, cy1 = clip

        left = int(round(offset_x + rect.x * scale))
        top = int(round(offset_y + rect.y * scale))
        right = int(round(offset_x + (rect.x + rect.width) * scale))
        bottom = int(round(offset_y + (rect.y + rect.height) * scale))

        left, right = max(cx0, left), min(cx1, right)
        top, bottom = max(cy0, top), min(cy1, bottom)
        if left >= right or top >= bottom:
            return

        img[top:bottom, left:right] = np.array(rect.border_color, dtype=np.uint8)

        border = max(1, int(round(rect.border_width * scale))) if rect.border_width > 0 else 0
        inner_left, inner_right = left + border, right - border
        inner_top, inner_bottom = top + border, bottom - border
        if inner_left < inner_right and inner_top < inner_bottom:
            img[inner_top:inner_bottom, inner_left:inner_right] = np.array(rect.color, dtype=np.uint8)

    def render_to_screen(self, render_data: Dict[str, Any]) -> None:
        """
        Render to screen (no-op for solid renderer).

        Use PygameRenderer for screen display.
        """
        pass

    def close(self) -> None:
        """Clean up resources (no-op for solid renderer)."""
        pass
