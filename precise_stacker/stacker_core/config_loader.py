"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Optional

import yaml


@dataclass(frozen=True)
class CanvasConfig:
    """Viewport geometry in pixels."""
    width: int
    height: int


@dataclass(frozen=True)
class BlockConfig:
    """Block geometry, base block and spawn placement."""
    height: int
    base_width_ratio: float       # Base block width as a fraction of canvas width
    base_color: Tuple[int, int, int]
    border_color: Tuple[int, int, int]
    border_width: int
    spawn_gap: float              # Gap between stack top and a fresh block
    min_spawn_y_offset: float     # Minimum screen Y for a fresh block


@dataclass(frozen=True)
class SpeedConfig:
    """Swing and drop speeds (pixels per reference frame)."""
    swing_start: float
    swing_increase: float
    drop: float
    reference_fps: int


@dataclass(frozen=True)
class CameraConfig:
    """Camera follow parameters."""
    follow_threshold_ratio: float
    start_threshold_blocks: int


@dataclass(frozen=True)
class PaletteConfig:
    """HSL hue cycle used for block colors."""
    hue_start: int
    hue_increment: int
    saturation: float
    lightness: float


@dataclass(frozen=True)
class StorageConfig:
    """High score persistence slot."""
    high_score_path: str
    high_score_key: str


@dataclass(frozen=True)
class ObservationConfig:
    """Observation space parameters."""
    max_blocks: int
    image_enabled: bool
    image_width: int
    image_height: int


@dataclass(frozen=True)
class CapsConfig:
    """Episode limits."""
    max_frames: int


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    canvas: CanvasConfig
    blocks: BlockConfig
    speed: SpeedConfig
    camera: CameraConfig
    palette: PaletteConfig
    storage: StorageConfig
    observation: ObservationConfig
    caps: CapsConfig

    @property
    def base_width(self) -> float:
        """Width of the base block."""
        return self.canvas.width * self.blocks.base_width_ratio

    @property
    def camera_threshold_y(self) -> float:
        """Screen Y of the camera follow line."""
        return self.canvas.height * (1 - self.camera.follow_threshold_ratio)

    def swing_speed_for(self, score: int) -> float:
        """Swing speed after `score` successful landings."""
        return self.speed.swing_start + score * self.speed.swing_increase

    def gameplay_key(self) -> Tuple[float, ...]:
        """
        Every setting that changes how a run plays out.

        Colors, storage, observation and caps are left out.
        """
        return (
            self.canvas.width,
            self.canvas.height,
            self.blocks.height,
            self.blocks.base_width_ratio,
            self.blocks.spawn_gap,
            self.blocks.min_spawn_y_offset,
            self.speed.swing_start,
            self.speed.swing_increase,
            self.speed.drop,
            self.speed.reference_fps,
            self.camera.follow_threshold_ratio,
            self.camera.start_threshold_blocks,
        )


def _parse_color(color_data: List) -> Tuple[int, int, int]:
    """Parse RGB color from YAML."""
    if len(color_data) != 3:
        raise ValueError(f"Color must have 3 values [R, G, B], got {color_data}")
    return (int(color_data[0]), int(color_data[1]), int(color_data[2]))


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    if config.canvas.width <= 0 or config.canvas.height <= 0:
        raise ValueError(
            f"Canvas size must be positive, got {config.canvas.width}x{config.canvas.height}"
        )

    if config.blocks.height <= 0:
        raise ValueError(f"Block height must be positive, got {config.blocks.height}")

    if not 0 < config.blocks.base_width_ratio <= 1:
        raise ValueError(
            f"base_width_ratio must be in (0, 1], got {config.blocks.base_width_ratio}"
        )

    if config.speed.swing_start <= 0 or config.speed.drop <= 0:
        raise ValueError("swing_start and drop speeds must be positive")

    if config.speed.swing_increase < 0:
        raise ValueError(f"swing_increase must not be negative, got {config.speed.swing_increase}")

    if config.speed.reference_fps <= 0:
        raise ValueError(f"reference_fps must be positive, got {config.speed.reference_fps}")

    if not 0 < config.camera.follow_threshold_ratio < 1:
        raise ValueError(
            f"follow_threshold_ratio must be in (0, 1), got {config.camera.follow_threshold_ratio}"
        )

    for name in ("base_color", "border_color"):
        color = getattr(config.blocks, name)
        if any(not 0 <= c <= 255 for c in color):
            raise ValueError(f"{name} components must be in [0, 255], got {color}")

    if config.observation.max_blocks < 1:
        raise ValueError(f"observation.max_blocks must be >= 1, got {config.observation.max_blocks}")


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    canvas_data = raw["canvas"]
    canvas = CanvasConfig(
        width=int(canvas_data["width"]),
        height=int(canvas_data["height"])
    )

    blocks_data = raw["blocks"]
    blocks = BlockConfig(
        height=int(blocks_data["height"]),
        base_width_ratio=float(blocks_data["base_width_ratio"]),
        base_color=_parse_color(blocks_data["base_color"]),
        border_color=_parse_color(blocks_data.get("border_color", [51, 51, 51])),
        border_width=int(blocks_data.get("border_width", 1)),
        spawn_gap=float(blocks_data["spawn_gap"]),
        min_spawn_y_offset=float(blocks_data["min_spawn_y_offset"])
    )

    speed_data = raw["speed"]
    speed = SpeedConfig(
        swing_start=float(speed_data["swing_start"]),
        swing_increase=float(speed_data["swing_increase"]),
        drop=float(speed_data["drop"]),
        reference_fps=int(speed_data.get("reference_fps", 60))
    )

    camera_data = raw["camera"]
    camera = CameraConfig(
        follow_threshold_ratio=float(camera_data["follow_threshold_ratio"]),
        start_threshold_blocks=int(camera_data["start_threshold_blocks"])
    )

    palette_data = raw.get("palette", {})
    palette = PaletteConfig(
        hue_start=int(palette_data.get("hue_start", 180)),
        hue_increment=int(palette_data.get("hue_increment", 15)),
        saturation=float(palette_data.get("saturation", 0.70)),
        lightness=float(palette_data.get("lightness", 0.60))
    )

    storage_data = raw.get("storage", {})
    storage = StorageConfig(
        high_score_path=str(storage_data.get(
            "high_score_path", "~/.precise_stacker/high_score.json"
        )),
        high_score_key=str(storage_data.get("high_score_key", "preciseStackerHighScore"))
    )

    obs_data = raw.get("observation", {})
    observation = ObservationConfig(
        max_blocks=int(obs_data.get("max_blocks", 32)),
        image_enabled=bool(obs_data.get("image_enabled", False)),
        image_width=int(obs_data.get("image_width", 200)),
        image_height=int(obs_data.get("image_height", 300))
    )

    caps_data = raw.get("caps", {})
    caps = CapsConfig(
        max_frames=int(caps_data.get("max_frames", 36000))
    )

    config = GameConfig(
        canvas=canvas,
        blocks=blocks,
        speed=speed,
        camera=camera,
        palette=palette,
        storage=storage,
        observation=observation,
        caps=caps
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
