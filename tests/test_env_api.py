"""
Tests for Gymnasium environment API, replays and the evaluation harness.
"""

import sys
from pathlib import Path

import pytest
import numpy as np

from precise_stacker.stacker_core.config_loader import load_config
from precise_stacker.stacker_core.env_gym import StackerEnv, TAP, WAIT
from precise_stacker.stacker_core.replay_recorder import (
    ReplayRecorder,
    compute_config_hash,
    generate_replay_filename,
    load_replay,
    record_episode,
    replay_recording,
    replay_taps,
)
from precise_stacker.evaluation.run_eval import evaluate_agent, load_agent, main

BASELINE_DIR = Path(__file__).resolve().parents[1] / "contestants" / "baseline_timing"


def wall_tapper(obs):
    """
    Drop alternately at the right and left wall.

    From the 320 px base this places widths 280, 200 and 80; the fourth
    block misses, for a final score of 3.
    """
    if int(obs["phase"]) != 1:
        return WAIT
    max_x = float(obs["canvas_width"]) - float(obs["current_width"])
    x = float(obs["current_x"])
    if int(obs["stack_size"]) % 2 == 1:
        return TAP if x >= max_x else WAIT
    return TAP if x <= 0 else WAIT


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def env():
    env = StackerEnv()
    yield env
    env.close()


class TestStackerEnv:
    """Test single environment API."""

    def test_reset_returns_obs_and_info(self, env):
        """Reset should return (observation, info) tuple."""
        result = env.reset(seed=42)

        assert isinstance(result, tuple)
        assert len(result) == 2

        obs, info = result
        assert isinstance(obs, dict)
        assert info["score"] == 0
        assert info["delta_score"] == 0
        assert info["landed"] is False

    def test_observation_in_space(self, env):
        obs, _ = env.reset(seed=42)
        assert env.observation_space.contains(obs)

        for _ in range(30):
            obs, _, _, _, _ = env.step(TAP)
            assert env.observation_space.contains(obs)

    def test_step_returns_five_values(self, env):
        """Step should return (obs, reward, terminated, truncated, info)."""
        env.reset(seed=42)

        result = env.step(WAIT)

        assert isinstance(result, tuple)
        assert len(result) == 5

        obs, reward, terminated, truncated, info = result
        assert isinstance(obs, dict)
        assert isinstance(reward, float)
        assert terminated is False
        assert truncated is False
        assert info["frames"] == 1

    def test_reward_is_always_zero(self, env):
        """Environment reward should always be 0.0."""
        env.reset(seed=42)

        for _ in range(200):
            _, reward, terminated, truncated, _ = env.step(TAP)
            assert reward == 0.0

            if terminated or truncated:
                env.reset()

    def test_numpy_action(self, env):
        env.reset(seed=42)
        obs, _, _, _, _ = env.step(np.array(1))
        assert int(obs["phase"]) == 2

    def test_terminates_on_miss(self, env):
        obs, _ = env.reset(seed=0)
        done = False
        while not done:
            obs, _, terminated, truncated, info = env.step(wall_tapper(obs))
            done = terminated or truncated

        assert terminated
        assert not truncated
        assert info["score"] == 3
        assert info["terminated_reason"] == "miss"
        assert int(obs["phase"]) == 3

    def test_truncates_at_frame_cap(self):
        env = StackerEnv(max_frames=50)
        env.reset(seed=0)
        truncated = False
        for _ in range(50):
            _, _, terminated, truncated, info = env.step(WAIT)
            assert not terminated
        assert truncated
        assert info["terminated_reason"] == "frame_cap"
        env.close()

    def test_reset_after_game_over(self, env):
        obs, _ = env.reset()
        done = False
        while not done:
            obs, _, terminated, truncated, info = env.step(wall_tapper(obs))
            done = terminated or truncated

        obs, info = env.reset()
        assert info["score"] == 0
        assert info["high_score"] == 3
        assert int(obs["stack_size"]) == 1

    def test_landing_info(self, env):
        env.reset()
        landed = []
        for _ in range(12):
            _, _, _, _, info = env.step(TAP)
            landed.append(info["landed"])
        # Tap on frame 1, land on frame 10
        assert landed.index(True) == 9

    def test_rgb_array_render(self, config):
        env = StackerEnv(render_mode="rgb_array")
        env.reset()
        frame = env.render()
        assert frame.shape == (config.observation.image_height, config.observation.image_width, 3)
        assert frame.dtype == np.uint8
        env.close()

    def test_image_obs(self):
        env = StackerEnv(image_obs=True, image_width=80, image_height=120)
        obs, _ = env.reset()
        assert obs["board_rgb"].shape == (120, 80, 3)
        assert env.observation_space.contains(obs)
        env.close()


class TestReplay:
    """Test recording and replaying episodes."""

    def test_record_episode(self, env):
        data = record_episode(env, wall_tapper, agent_name="wall")
        assert data["agent"] == "wall"
        assert data["final_score"] == 3
        assert data["scores"] == [1, 2, 3]
        assert len(data["taps"]) == 4
        assert data["termination_reason"] == "miss"
        assert data["config_hash"] == compute_config_hash(env.config)

    def test_replay_reproduces_score(self, env):
        data = record_episode(env, wall_tapper)
        assert replay_taps(data["taps"]) == data["final_score"]
        assert replay_recording(data) == data["final_score"]

    def test_replay_stops_where_recording_stopped(self):
        """A run cut off mid-drop replays to the recorded score, not past it."""
        env = StackerEnv(max_frames=5)
        taps = iter([TAP])
        data = record_episode(env, lambda obs: next(taps, WAIT))
        env.close()
        assert data["taps"] == [1]
        assert data["total_frames"] == 5
        assert data["final_score"] == 0

        assert replay_recording(data) == 0
        assert replay_taps(data["taps"]) == 1

    def test_replay_rejects_other_config(self, env):
        data = record_episode(env, wall_tapper)
        data["config_hash"] = "00000000"
        with pytest.raises(ValueError):
            replay_recording(data)

    def test_save_and_load(self, env, tmp_path):
        recorder = ReplayRecorder(env, agent_name="wall")
        obs, _ = recorder.reset()
        done = False
        while not done:
            obs, _, terminated, truncated, _ = recorder.step(wall_tapper(obs))
            done = terminated or truncated

        path = recorder.save(tmp_path / "wall.json")
        loaded = load_replay(path)
        assert loaded == recorder.get_replay_data()

        with pytest.raises(FileExistsError):
            recorder.save(path, overwrite=False)

    def test_generated_filename(self, tmp_path):
        path = generate_replay_filename("baseline", tmp_path)
        assert path.parent == tmp_path
        assert path.name.startswith("baseline_")
        assert path.suffix == ".json"


class TestEvaluation:
    """Test the evaluation harness with the baseline agent."""

    def test_load_baseline_agent(self):
        agent = load_agent(str(BASELINE_DIR))
        assert hasattr(agent, "act")

    def test_missing_agent(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_agent(str(tmp_path / "nobody"))

    def test_baseline_stacks(self):
        """A noiseless aligned-tap agent keeps stacking until the frame cap."""
        agent = load_agent(str(BASELINE_DIR))
        summary = evaluate_agent(agent, seeds=[0], max_frames=3000, verbose=False)
        result = summary.results[0]
        assert result.final_score >= 10
        assert result.frames <= 3000

    def test_noisy_baseline_is_seeded(self):
        agent = load_agent(str(BASELINE_DIR), aim_noise=6.0)
        first = evaluate_agent(agent, seeds=[1, 2], max_frames=2000, verbose=False)
        second = evaluate_agent(agent, seeds=[1, 2], max_frames=2000, verbose=False)
        assert [r.final_score for r in first.results] == [r.final_score for r in second.results]
        assert first.min_score >= 1

    def test_record_taps(self):
        agent = load_agent(str(BASELINE_DIR))
        summary = evaluate_agent(agent, seeds=[0], max_frames=500, record_taps=True, verbose=False)
        result = summary.results[0]
        assert result.taps
        assert replay_taps(result.taps, max_frames=result.frames) == result.final_score

    def test_no_seeds_rejected(self):
        agent = load_agent(str(BASELINE_DIR))
        with pytest.raises(ValueError):
            evaluate_agent(agent, seeds=[], verbose=False)

    @pytest.mark.parametrize("episodes", ["0", "-3"])
    def test_cli_rejects_non_positive_episodes(self, monkeypatch, episodes):
        """The CLI exits with a usage error instead of summarizing nothing."""
        monkeypatch.setattr(sys, "argv", [
            "run_eval", "--agent", str(BASELINE_DIR), "--episodes", episodes, "--quiet"
        ])
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 2
