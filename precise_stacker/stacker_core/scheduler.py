"""
Frame Scheduler
===============

Drives a CoreGame one frame at a time from an input source.

Input arrives asynchronously (mouse, touch, keyboard, agents) and is latched
as an edge trigger that the next frame consumes. The scheduler owns no
timing of its own: a display loop calls `tick()` once per redraw, tests
call `run()` to play a whole game headlessly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Protocol

from precise_stacker.stacker_core.game import CoreGame, StepResult


class InputSource(Protocol):
    def consume(self) -> bool:
        """Return True (once) if an activate event arrived since the last call."""
        ...


class InputLatch:
    """
    Edge-triggered tap latch.

    Any number of presses between two frames collapse into a single
    activate event for the next frame.
    """

    def __init__(self):
        self._pressed = False

    def press(self) -> None:
        self._pressed = True

    def consume(self) -> bool:
        pressed = self._pressed
        self._pressed = False
        return pressed


class ScriptedInput:
    """Presses on fixed frame numbers (1-based, counted per consume call)."""

    def __init__(self, frames: Iterable[int]):
        self._frames = set(int(f) for f in frames)
        self._frame = 0

    def consume(self) -> bool:
        self._frame += 1
        return self._frame in self._frames

    def rewind(self) -> None:
        self._frame = 0


@dataclass
class RunResult:
    """Outcome of a headless run."""
    frames: int
    score: int
    game_over: bool


class FrameScheduler:
    """
    Cooperative frame loop around a CoreGame.

    Example:
        game = CoreGame()
        latch = InputLatch()
        scheduler = FrameScheduler(game, latch, frame_callback=renderer.draw)
        scheduler.start()
        while running:
            ...               # latch.press() on clicks
            scheduler.tick()
    """

    def __init__(
        self,
        game: CoreGame,
        input_source: InputSource,
        frame_callback: Optional[Callable[[Dict[str, Any]], None]] = None
    ):
        self._game = game
        self._input = input_source
        self._frame_callback = frame_callback

    @property
    def game(self) -> CoreGame:
        return self._game

    def start(self) -> None:
        """Reset the game and draw the first frame."""
        self._game.reset()
        self._emit_frame()

    def tick(self, dt: Optional[float] = None) -> StepResult:
        """
        Run one frame: consume pending input, step, emit the render frame.

        Args:
            dt: Frame duration in seconds, None for one reference frame.
        """
        activate = self._input.consume()
        result = self._game.tick(activate=activate, dt=dt)
        self._emit_frame()
        return result

    def run(self, max_frames: int, dt: Optional[float] = None) -> RunResult:
        """
        Tick until the game ends or `max_frames` frames have run.

        The game must already be started.
        """
        frames = 0
        while frames < max_frames and not self._game.is_over:
            self.tick(dt)
            frames += 1
        return RunResult(frames=frames, score=self._game.score, game_over=self._game.is_over)

    def _emit_frame(self) -> None:
        if self._frame_callback is not None:
            self._frame_callback(self._game.get_render_data())
