"""
Gymnasium Environment Wrapper
=============================

Provides a standard Gymnasium interface to the stacking game.
One step is one frame. Reward is always 0.0 - agents compute their own from info.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Union
import numpy as np

import gymnasium as gym
from gymnasium import spaces

from precise_stacker.stacker_core.config_loader import GameConfig, load_config
from precise_stacker.stacker_core.game import CoreGame
from precise_stacker.stacker_core.game_state import PHASE_CODES
from precise_stacker.stacker_core.state_snapshot import GameSnapshot, SnapshotBuilder

WAIT = 0
TAP = 1


class StackerEnv(gym.Env):
    """
    Block stacking game as a Gymnasium environment.

    Action Space:
        Discrete(2): 0 = wait, 1 = tap (drop the swinging block).

    Observation Space:
        Dict containing structured game state and optional RGB image.

    Reward:
        Always 0.0. Agents must compute their own reward from the info dict.

    Info:
        Contains score, delta_score, high_score, frames, landed, terminated_reason.
    """

    metadata = {
        "render_modes": ["human", "rgb_array"],
        "render_fps": 60,
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        render_mode: Optional[str] = None,
        image_obs: Optional[bool] = None,
        image_width: Optional[int] = None,
        image_height: Optional[int] = None,
        max_frames: Optional[int] = None,
        debug: bool = False,
    ):
        """
        Initialize stacker environment.

        Args:
            config_path: Path to game_config.yaml. Uses default if None.
            render_mode: "human" for window, "rgb_array" for numpy, None for headless.
            image_obs: If True, include board_rgb in observations. Config default if None.
            image_width: Override observation image width.
            image_height: Override observation image height.
            max_frames: Override the truncation frame cap.
            debug: If True, prints landings and game over.
        """
        super().__init__()

        self._config = load_config(config_path)

        self.render_mode = render_mode
        self._image_obs = (
            self._config.observation.image_enabled if image_obs is None else image_obs
        )
        self._debug = debug

        self._img_width = image_width or self._config.observation.image_width
        self._img_height = image_height or self._config.observation.image_height
        self._max_frames = max_frames or self._config.caps.max_frames

        # The environment never persists high scores
        self._game = CoreGame(config=self._config)
        self._snapshot_builder = SnapshotBuilder(self._config)

        # Initialize renderers (lazy)
        self._renderer = None
        self._window_renderer = None

        self.action_space = spaces.Discrete(2)
        self.observation_space = self._build_observation_space()

        if self._debug:
            print(f"[DEBUG] StackerEnv initialized")
            print(f"[DEBUG]   Canvas: {self._config.canvas.width}x{self._config.canvas.height}")
            print(f"[DEBUG]   Max frames: {self._max_frames}")

    def _build_observation_space(self) -> spaces.Dict:
        """Build the observation space definition."""
        max_blocks = self._config.observation.max_blocks
        canvas = self._config.canvas
        big = np.finfo(np.float32).max

        obs_dict = {
            # Core state
            "phase": spaces.Discrete(len(PHASE_CODES)),
            "score": spaces.Box(low=0, high=np.iinfo(np.int64).max, shape=(), dtype=np.int64),
            "high_score": spaces.Box(low=0, high=np.iinfo(np.int64).max, shape=(), dtype=np.int64),
            "stack_size": spaces.Box(low=0, high=np.iinfo(np.int32).max, shape=(), dtype=np.int32),
            "swing_speed": spaces.Box(low=0, high=big, shape=(), dtype=np.float32),
            "camera_offset": spaces.Box(low=0, high=big, shape=(), dtype=np.float32),

            # Current block
            "current_x": spaces.Box(low=-big, high=big, shape=(), dtype=np.float32),
            "current_y": spaces.Box(low=-big, high=big, shape=(), dtype=np.float32),
            "current_width": spaces.Box(low=0, high=canvas.width, shape=(), dtype=np.float32),
            "current_direction": spaces.Box(low=-1, high=1, shape=(), dtype=np.int32),

            # Top of stack
            "top_x": spaces.Box(low=-big, high=big, shape=(), dtype=np.float32),
            "top_y": spaces.Box(low=-big, high=big, shape=(), dtype=np.float32),
            "top_width": spaces.Box(low=0, high=canvas.width, shape=(), dtype=np.float32),

            # Canvas info
            "canvas_width": spaces.Box(low=0, high=10000, shape=(), dtype=np.float32),
            "canvas_height": spaces.Box(low=0, high=10000, shape=(), dtype=np.float32),

            # Stack arrays
            "stack_x": spaces.Box(low=-big, high=big, shape=(max_blocks,), dtype=np.float32),
            "stack_width": spaces.Box(low=0, high=canvas.width, shape=(max_blocks,), dtype=np.float32),
            "stack_mask": spaces.MultiBinary(max_blocks),
        }

        if self._image_obs:
            obs_dict["board_rgb"] = spaces.Box(
                low=0,
                high=255,
                shape=(self._img_height, self._img_width, 3),
                dtype=np.uint8
            )

        return spaces.Dict(obs_dict)

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset the environment.

        Args:
            seed: Accepted for API compatibility; the game itself has no randomness.
            options: Additional options (unused).

        Returns:
            (observation, info) tuple.
        """
        super().reset(seed=seed)

        self._game.reset()

        obs = self._build_obs()
        info = self._game.get_info()
        info["delta_score"] = 0
        info["landed"] = False

        return obs, info

    def step(
        self,
        action: Union[int, np.ndarray]
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Execute one frame.

        Args:
            action: 1 to tap, 0 to wait.

        Returns:
            (observation, reward, terminated, truncated, info) tuple.
            Reward is always 0.0.
        """
        if isinstance(action, np.ndarray):
            action = int(action.item() if action.ndim == 0 else action[0])

        result = self._game.tick(activate=int(action) == TAP)

        obs = self._build_obs()
        reward = 0.0

        terminated = result.state.is_over
        truncated = not terminated and result.state.frame >= self._max_frames

        info = self._game.get_info()
        info["delta_score"] = result.delta_score
        info["landed"] = result.landed
        if truncated:
            info["terminated_reason"] = "frame_cap"

        if self._debug:
            if result.landed:
                print(f"[DEBUG] Frame {result.state.frame}: landed, score={result.state.score}, "
                      f"width={result.state.top.width:.1f}")
            if terminated:
                print(f"[DEBUG] TERMINATED: {info['terminated_reason']}")

        return obs, reward, terminated, truncated, info

    def _build_obs(self) -> Dict[str, np.ndarray]:
        """Convert the current game state to an observation dict."""
        board_rgb = self._render_to_array() if self._image_obs else None
        snapshot: GameSnapshot = self._snapshot_builder.build(self._game.state, board_rgb)
        return snapshot.to_obs_dict()

    def _render_to_array(self) -> np.ndarray:
        """Render canvas to RGB array."""
        if self._renderer is None:
            from precise_stacker.stacker_core.render_solid import SolidRenderer
            self._renderer = SolidRenderer(self._config)

        return self._renderer.render(
            self._game.get_render_data(),
            self._img_width,
            self._img_height
        )

    def render(self) -> Optional[np.ndarray]:
        """
        Render the current game state.

        Returns:
            RGB array if render_mode is "rgb_array", None otherwise.
        """
        if self.render_mode == "rgb_array":
            return self._render_to_array()

        if self.render_mode == "human":
            if self._window_renderer is None:
                from precise_stacker.stacker_core.render_full_pygame import PygameRenderer
                self._window_renderer = PygameRenderer(self._config)
            self._window_renderer.render_to_screen(self._game.get_render_data())
            return None

        return None

    def close(self) -> None:
        """Clean up resources."""
        for renderer in (self._renderer, self._window_renderer):
            if renderer is not None:
                renderer.close()
        self._renderer = None
        self._window_renderer = None

    @property
    def game(self) -> CoreGame:
        """Access to underlying game (for debugging/tools)."""
        return self._game

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config
