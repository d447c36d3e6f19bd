"""
Replay Recorder
===============

Records which frames an agent tapped on, so a run can be replayed.

The game has no randomness: the tap frames alone reproduce a run exactly.
A replay file also keeps every landing (frame, score, placed width) and a
hash of the gameplay settings it was recorded under.

Usage:
    env = StackerEnv()
    recorder = ReplayRecorder(env, agent_name="baseline")
    obs, info = recorder.reset()
    while not done:
        obs, reward, terminated, truncated, info = recorder.step(agent(obs))
        done = terminated or truncated
    recorder.save("baseline.json")

    score = replay_recording(load_replay("baseline.json"))
"""

from __future__ import annotations

import hashlib
import json
import math
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import numpy as np
import gymnasium as gym

from precise_stacker.stacker_core.config_loader import GameConfig, load_config
from precise_stacker.stacker_core.game import CoreGame
from precise_stacker.stacker_core.scheduler import FrameScheduler, ScriptedInput

PathLike = Union[str, Path]


def generate_replay_filename(agent_name: str = "replay", directory: Optional[PathLike] = None) -> Path:
    """`<agent_name>_<YYYYmmdd_HHMMSS>.json`, optionally inside `directory`."""
    name = f"{agent_name}_{datetime.now():%Y%m%d_%H%M%S}.json"
    return Path(directory) / name if directory else Path(name)


def compute_config_hash(config: Optional[GameConfig] = None) -> str:
    """
    Short fingerprint of every setting that changes how taps play out.

    A replay stays valid when only colors, storage or observation
    settings change.
    """
    if config is None:
        config = load_config()
    gameplay = list(config.gameplay_key())
    return hashlib.md5(json.dumps(gameplay).encode()).hexdigest()[:8]


class ReplayRecorder:
    """
    StackerEnv wrapper that logs taps and landings.

    Frame numbers are 1-based and count env steps since the last reset,
    matching `ScriptedInput`.
    """

    def __init__(self, env: gym.Env, agent_name: str = "unknown"):
        self.env = env
        self.agent_name = agent_name
        self._config_hash = compute_config_hash(getattr(env, "config", None))
        self._clear()

    def _clear(self) -> None:
        self._frame = 0
        self._taps: List[int] = []
        self._landings: List[Dict[str, Any]] = []
        self._end_reason = ""

    def reset(self, *, seed: Optional[int] = None, options: Optional[Dict] = None):
        """Reset the env and start a fresh recording."""
        self._clear()
        return self.env.reset(seed=seed, options=options)

    def step(self, action: Union[int, np.ndarray]):
        """Step the env, noting a tap and any landing on this frame."""
        tapped = int(np.asarray(action).reshape(-1)[0]) == 1
        result = self.env.step(action)
        _, _, terminated, truncated, info = result

        self._frame += 1
        if tapped:
            self._taps.append(self._frame)
        if info.get("landed"):
            self._landings.append({
                "frame": self._frame,
                "score": int(info["score"]),
                "width": float(self.env.game.state.top.width),
            })
        if terminated or truncated:
            self._end_reason = info.get("terminated_reason", "")
        return result

    @property
    def final_score(self) -> int:
        return self._landings[-1]["score"] if self._landings else 0

    def get_replay_data(self) -> Dict[str, Any]:
        """Everything a replay file holds."""
        return {
            "agent": self.agent_name,
            "config_hash": self._config_hash,
            "taps": list(self._taps),
            "landings": [dict(landing) for landing in self._landings],
            "scores": [landing["score"] for landing in self._landings],
            "final_score": self.final_score,
            "total_frames": self._frame,
            "termination_reason": self._end_reason,
        }

    def save(
        self,
        path: Optional[PathLike] = None,
        overwrite: bool = True,
        directory: Optional[PathLike] = None
    ) -> Path:
        """
        Write the replay as JSON.

        Args:
            path: Target file. A timestamped name is generated if None.
            overwrite: If False, refuse to replace an existing file.
            directory: Where a generated name goes.

        Returns:
            The file written.
        """
        path = Path(path) if path is not None else generate_replay_filename(self.agent_name, directory)
        if path.exists() and not overwrite:
            raise FileExistsError(f"Replay file already exists: {path}")

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.get_replay_data(), f, indent=2)

        print(f"Replay saved: {path} ({len(self._taps)} taps, "
              f"{self._frame} frames, score {self.final_score})")
        return path

    def close(self) -> None:
        self.env.close()


def record_episode(
    env: gym.Env,
    agent_fn: Callable[[Dict[str, Any]], int],
    save_path: Optional[PathLike] = None,
    agent_name: str = "unknown"
) -> Dict[str, Any]:
    """Play one episode with `agent_fn`, optionally save it, and return the replay data."""
    recorder = ReplayRecorder(env, agent_name=agent_name)
    obs, _ = recorder.reset()
    while True:
        obs, _, terminated, truncated, _ = recorder.step(agent_fn(obs))
        if terminated or truncated:
            break

    if save_path:
        recorder.save(save_path)
    return recorder.get_replay_data()


def load_replay(path: PathLike) -> Dict[str, Any]:
    """Read a file written by `ReplayRecorder.save()`."""
    with open(path, "r") as f:
        return json.load(f)


def replay_taps(
    taps: Iterable[int],
    config: Optional[GameConfig] = None,
    max_frames: Optional[int] = None
) -> int:
    """
    Re-simulate a recording headlessly.

    Args:
        taps: Frame numbers (1-based) on which a tap happened.
        config: Game configuration. Uses default if None.
        max_frames: Stop after this many frames. Defaults to the last tap
            plus enough frames for the final drop to land, which overshoots
            a recording cut off mid-drop; `replay_recording` replays a saved
            file for exactly its recorded length.

    Returns:
        Final score.
    """
    if config is None:
        config = load_config()

    taps = sorted(taps)
    if max_frames is None:
        fall_frames = math.ceil(config.canvas.height / config.speed.drop) + 1
        max_frames = (taps[-1] if taps else 0) + fall_frames

    scheduler = FrameScheduler(CoreGame(config=config), ScriptedInput(taps))
    scheduler.start()
    return scheduler.run(max_frames).score


def replay_recording(replay: Dict[str, Any], config: Optional[GameConfig] = None) -> int:
    """
    Re-simulate replay data for exactly the frames it was recorded over.

    Raises:
        ValueError: If the replay was recorded under different gameplay settings.
    """
    if config is None:
        config = load_config()
    if replay["config_hash"] != compute_config_hash(config):
        raise ValueError(
            f"Replay recorded with config {replay['config_hash']}, "
            f"current config is {compute_config_hash(config)}"
        )
    return replay_taps(replay["taps"], config, max_frames=replay["total_frames"])
