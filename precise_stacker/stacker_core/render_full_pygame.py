"""
Full Pygame Renderer
====================

Window renderer for human play: stacked blocks, score header and the
game over overlay with a restart button. Also renders headless to RGB
arrays.
"""

from __future__ import annotations

from typing import Dict, Any, Optional, Tuple

import numpy as np
import pygame

from precise_stacker.stacker_core.config_loader import GameConfig, get_config
from precise_stacker.stacker_core.frame import DrawRect


class PygameRenderer:
    """
    Full-featured renderer using pygame.

    Supports:
    - Bordered block rendering scaled to the window
    - Score and high score header
    - Game over overlay with final score and restart button
    - RGB array output for agents
    """

    UI_HEIGHT = 64

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize renderer.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config

        if not pygame.get_init():
            pygame.init()

        # Display surface (created on demand)
        self._screen: Optional[pygame.Surface] = None
        self._screen_size: Optional[Tuple[int, int]] = None

        # Fonts
        pygame.font.init()
        self._font = pygame.font.Font(None, 28)
        self._font_large = pygame.font.Font(None, 48)
        self._font_small = pygame.font.Font(None, 22)

        # Colors
        self._bg_color = (20, 24, 30)
        self._canvas_color = (34, 40, 49)
        self._canvas_border = (70, 80, 95)
        self._text_color = (238, 238, 238)
        self._text_dim = (160, 170, 185)
        self._box_fill = (45, 52, 64)
        self._button_color = (0, 173, 181)
        self._button_text = (20, 24, 30)

        # Restart button of the last drawn game over overlay (screen coordinates)
        self._restart_button: Optional[pygame.Rect] = None

    @property
    def restart_button(self) -> Optional[pygame.Rect]:
        """Restart button rectangle, or None when no overlay is shown."""
        return self._restart_button

    def open_window(self, window_width: int = 400, window_height: int = 664) -> pygame.Surface:
        """
        Open (or resize) the game window.

        Raises:
            RuntimeError: If no display surface can be created.
        """
        if self._screen is None or self._screen_size != (window_width, window_height):
            try:
                self._screen = pygame.display.set_mode((window_width, window_height))
            except pygame.error as e:
                raise RuntimeError(f"Could not initialize the game graphics: {e}") from e
            self._screen_size = (window_width, window_height)
            pygame.display.set_caption("Precise Stacker")
        return self._screen

    def render(
        self,
        render_data: Dict[str, Any],
        width: int,
        height: int
    ) -> np.ndarray:
        """
        Render to RGB array (for agent observation).

        Args:
            render_data: Data from CoreGame.get_render_data().
            width: Output image width.
            height: Output image height.

        Returns:
            (height, width, 3) uint8 array.
        """
        surface = pygame.Surface((width, height))
        self._render_to_surface(surface, render_data)
        array = pygame.surfarray.array3d(surface)
        return np.transpose(array, (1, 0, 2))

    def render_to_screen(
        self,
        render_data: Dict[str, Any],
        window_width: Optional[int] = None,
        window_height: Optional[int] = None
    ) -> None:
        """
        Render to the pygame window and flip.

        Args:
            render_data: Data from CoreGame.get_render_data().
            window_width: Window width, canvas width if None.
            window_height: Window height, canvas height plus header if None.
        """
        if window_width is None:
            window_width = render_data["canvas_width"]
        if window_height is None:
            window_height = render_data["canvas_height"] + self.UI_HEIGHT

        screen = self.open_window(window_width, window_height)
        self._render_to_surface(screen, render_data)
        pygame.display.flip()

    def _render_to_surface(
        self,
        surface: pygame.Surface,
        render_data: Dict[str, Any]
    ) -> None:
        """Render game state to a pygame surface."""
        width, height = surface.get_size()

        canvas_w = render_data["canvas_width"]
        canvas_h = render_data["canvas_height"]

        game_area_height = height - self.UI_HEIGHT
        scale = min(width / canvas_w, game_area_height / canvas_h)
        offset_x = (width - canvas_w * scale) / 2
        offset_y = self.UI_HEIGHT + (game_area_height - canvas_h * scale) / 2

        surface.fill(self._bg_color)
        self._draw_ui(surface, render_data, width)

        canvas_rect = pygame.Rect(
            int(offset_x), int(offset_y),
            int(canvas_w * scale), int(canvas_h * scale)
        )
        pygame.draw.rect(surface, self._canvas_color, canvas_rect)

        # Blocks outside the canvas must not bleed into the header
        previous_clip = surface.get_clip()
        surface.set_clip(canvas_rect)
        for rect in render_data["rects"]:
            self._draw_block(surface, rect, scale, offset_x, offset_y)
        surface.set_clip(previous_clip)

        pygame.draw.rect(surface, self._canvas_border, canvas_rect, 1)

        if render_data.get("game_over", False):
            self._draw_game_over(surface, render_data["score"], canvas_rect)
        else:
            self._restart_button = None

    def _draw_block(
        self,
        surface: pygame.Surface,
        rect: DrawRect,
        scale: float,
        offset_x: float,
        offset_y: float
    ) -> None:
        """Draw one filled block with its border."""
        screen_rect = pygame.Rect(
            int(round(offset_x + rect.x * scale)),
            int(round(offset_y + rect.y * scale)),
            max(1, int(round(rect.width * scale))),
            max(1, int(round(rect.height * scale)))
        )
        pygame.draw.rect(surface, rect.color, screen_rect)
        if rect.border_width > 0:
            pygame.draw.rect(
                surface, rect.border_color, screen_rect,
                max(1, int(round(rect.border_width * scale)))
            )

    def _draw_ui(
        self,
        surface: pygame.Surface,
        render_data: Dict[str, Any],
        width: int
    ) -> None:
        """Draw the score header."""
        score_surface = self._font_large.render(
            f"Score: {render_data['score']}", True, self._text_color
        )
        surface.blit(score_surface, (16, 14))

        high_surface = self._font.render(
            f"High Score: {render_data['high_score']}", True, self._text_dim
        )
        surface.blit(high_surface, (width - high_surface.get_width() - 16, 24))

    def _draw_game_over(
        self,
        surface: pygame.Surface,
        score: int,
        canvas_rect: pygame.Rect
    ) -> None:
        """Draw game over overlay with final score and restart button."""
        overlay = pygame.Surface(canvas_rect.size, pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 150))
        surface.blit(overlay, canvas_rect.topleft)

        box_w = min(300, canvas_rect.width - 20)
        box_h = 190
        box = pygame.Rect(0, 0, box_w, box_h)
        box.center = canvas_rect.center
        pygame.draw.rect(surface, self._box_fill, box, border_radius=12)
        pygame.draw.rect(surface, self._canvas_border, box, 2, border_radius=12)

        title = self._font_large.render("Game Over!", True, self._text_color)
        surface.blit(title, (box.centerx - title.get_width() // 2, box.y + 20))

        score_text = self._font.render(f"Your Score: {score}", True, self._text_color)
        surface.blit(score_text, (box.centerx - score_text.get_width() // 2, box.y + 72))

        button = pygame.Rect(0, 0, 140, 40)
        button.center = (box.centerx, box.y + 140)
        pygame.draw.rect(surface, self._button_color, button, border_radius=8)
        label = self._font.render("Restart", True, self._button_text)
        surface.blit(label, (button.centerx - label.get_width() // 2,
                             button.centery - label.get_height() // 2))
        self._restart_button = button

    def close(self) -> None:
        """Clean up pygame resources."""
        self._restart_button = None
        if self._screen is not None:
            self._screen = None
