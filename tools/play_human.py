"""
Human Play Mode
================

Play Precise Stacker interactively in a pygame window.

Controls:
    - Click / Tap / Space: Drop the swinging block
    - Restart button or R: Restart after game over
    - ESC: Quit

Usage:
    python -m tools.play_human [--fps FPS] [--high-score-file PATH] [--verbose]
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

import pygame

from precise_stacker.stacker_core.config_loader import load_config, GameConfig
from precise_stacker.stacker_core.game import CoreGame
from precise_stacker.stacker_core.high_score import HighScoreStore
from precise_stacker.stacker_core.render_full_pygame import PygameRenderer
from precise_stacker.stacker_core.scheduler import FrameScheduler, InputLatch


class HumanPlayer:
    """
    Human-playable stacker with a frame-locked loop.

    Every redraw runs exactly one game frame, so the game plays at the same
    speed as the reference frame rate it was tuned for.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        high_score_store: Optional[HighScoreStore] = None,
        target_fps: Optional[int] = None
    ):
        if config is None:
            config = load_config()

        self._config = config
        self._target_fps = target_fps or config.speed.reference_fps

        pygame.init()
        self._renderer = PygameRenderer(config)
        # Raises RuntimeError when no display is available
        self._renderer.open_window(
            config.canvas.width,
            config.canvas.height + PygameRenderer.UI_HEIGHT
        )
        self._clock = pygame.time.Clock()

        if high_score_store is None:
            high_score_store = HighScoreStore.from_config(config)

        self._game = CoreGame(
            config=config,
            high_score_store=high_score_store,
            on_score_changed=self._on_score_changed,
            on_game_over=self._on_game_over
        )
        self._input = InputLatch()
        self._scheduler = FrameScheduler(
            self._game,
            self._input,
            frame_callback=self._renderer.render_to_screen
        )

        self._running = True

    def run(self) -> int:
        """Run the game loop. Returns final score."""
        print("=== Precise Stacker ===")
        print("Click, tap or Space to drop the block")
        print("Restart button or R after game over, ESC to quit")
        print()

        self._scheduler.start()

        while self._running:
            self._handle_events()
            if not self._running:
                break

            # After game over the step is a no-op and the overlay stays up
            self._scheduler.tick()
            self._clock.tick(self._target_fps)

        pygame.quit()
        return self._game.score

    def _handle_events(self) -> None:
        """Process pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self._running = False
                elif event.key == pygame.K_r and self._game.is_over:
                    self._restart()
                elif event.key == pygame.K_SPACE:
                    self._input.press()

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                button = self._renderer.restart_button
                if self._game.is_over:
                    if button is not None and button.collidepoint(event.pos):
                        self._restart()
                else:
                    self._input.press()

            elif event.type == pygame.FINGERDOWN and not self._game.is_over:
                self._input.press()

    def _restart(self) -> None:
        """Restart the game."""
        self._input.consume()
        self._scheduler.start()
        print("\n=== Game Restarted ===\n")

    @staticmethod
    def _on_score_changed(score: int, high_score: int) -> None:
        if score > 0:
            print(f"  Score: {score}  (High Score: {high_score})")

    @staticmethod
    def _on_game_over(final_score: int) -> None:
        print(f"\nGAME OVER - Your Score: {final_score}")


def main():
    parser = argparse.ArgumentParser(description="Play Precise Stacker interactively")
    parser.add_argument("--config", type=str, default=None, help="Path to game_config.yaml")
    parser.add_argument("--fps", type=int, default=None, help="Target FPS (default: reference_fps)")
    parser.add_argument("--high-score-file", type=str, default=None,
                        help="High score JSON file (default: from config)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s"
    )

    try:
        config = load_config(args.config)
        store = None
        if args.high_score_file:
            store = HighScoreStore(args.high_score_file, config.storage.high_score_key)
        player = HumanPlayer(config=config, high_score_store=store, target_fps=args.fps)
        score = player.run()
        print(f"\nFinal Score: {score}")
        return 0
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
