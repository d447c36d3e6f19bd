"""
Evaluation Harness
==================

Plays an autoplay agent for several episodes and reports score statistics.
The game itself is deterministic; seeds only feed the agent's own noise.

Usage:
    python -m precise_stacker.evaluation.run_eval --agent contestants/baseline_timing
"""

from __future__ import annotations

import argparse
import importlib.util
import json
import sys
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
import numpy as np

from precise_stacker.stacker_core.env_gym import StackerEnv, TAP

DEFAULT_SEEDS = list(range(10))


@dataclass
class EvalResult:
    """One episode."""
    seed: int
    final_score: int
    frames: int
    termination_reason: str
    elapsed_time: float
    taps: Optional[List[int]] = None


@dataclass
class EvalSummary:
    """Score statistics over all episodes."""
    mean_score: float
    std_score: float
    min_score: int
    max_score: int
    median_score: float
    total_time: float
    results: List[EvalResult] = field(default_factory=list)

    @classmethod
    def from_results(cls, results: List[EvalResult], total_time: float) -> "EvalSummary":
        scores = np.array([r.final_score for r in results])
        return cls(
            mean_score=float(scores.mean()),
            std_score=float(scores.std()),
            min_score=int(scores.min()),
            max_score=int(scores.max()),
            median_score=float(np.median(scores)),
            total_time=total_time,
            results=results
        )

    def print_report(self) -> None:
        rows = [
            ("Episodes", len(self.results)),
            ("Mean score", f"{self.mean_score:.2f}"),
            ("Std deviation", f"{self.std_score:.2f}"),
            ("Min / max", f"{self.min_score} / {self.max_score}"),
            ("Median score", f"{self.median_score:.2f}"),
            ("Total time", f"{self.total_time:.2f}s"),
        ]
        print("-" * 40)
        for label, value in rows:
            print(f"{label:<16}{value}")
        print("-" * 40)


def load_agent(agent_path: str, **agent_kwargs: Any) -> Any:
    """
    Import an agent from a contestant directory or a single .py file.

    The module must define a `StackerAgent` class (built with
    `agent_kwargs`) or a module-level `act(obs)` function.
    """
    path = Path(agent_path)
    agent_file = path / "agent.py" if path.is_dir() else path
    if not agent_file.exists():
        raise FileNotFoundError(f"Agent file not found: {agent_file}")

    module_spec = importlib.util.spec_from_file_location("contestant_agent", agent_file)
    if module_spec is None or module_spec.loader is None:
        raise ImportError(f"Cannot import agent from {agent_file}")
    module = importlib.util.module_from_spec(module_spec)
    sys.modules[module_spec.name] = module
    module_spec.loader.exec_module(module)

    agent_cls = getattr(module, "StackerAgent", None)
    if agent_cls is not None:
        agent = agent_cls(**agent_kwargs)
        if not callable(getattr(agent, "act", None)):
            raise AttributeError("StackerAgent must define act(obs)")
        return agent

    act = getattr(module, "act", None)
    if act is None:
        raise AttributeError(f"{agent_file} defines neither StackerAgent nor act(obs)")
    return act


def _policy(agent: Any) -> Callable[[Dict[str, Any]], int]:
    return agent.act if hasattr(agent, "act") else agent


def evaluate_single_episode(
    agent: Any,
    seed: int,
    record_taps: bool = False,
    max_frames: Optional[int] = None,
    verbose: bool = False
) -> EvalResult:
    """
    Play one episode to game over or the frame cap.

    Args:
        agent: Agent instance or act function (obs) -> 0/1.
        seed: Passed to the agent's reset(), if it has one.
        record_taps: Keep the frame numbers of every tap.
        max_frames: Override the environment's frame cap.
        verbose: Print the episode result.
    """
    policy = _policy(agent)
    if hasattr(agent, "reset"):
        agent.reset(seed=seed)

    env = StackerEnv(max_frames=max_frames)
    taps: Optional[List[int]] = [] if record_taps else None
    started = time.time()
    try:
        obs, info = env.reset(seed=seed)
        terminated = truncated = False
        while not (terminated or truncated):
            action = policy(obs)
            obs, _, terminated, truncated, info = env.step(action)
            if taps is not None and action == TAP:
                taps.append(info["frames"])
    finally:
        env.close()

    result = EvalResult(
        seed=seed,
        final_score=info["score"],
        frames=info["frames"],
        termination_reason=info["terminated_reason"],
        elapsed_time=time.time() - started,
        taps=taps
    )
    if verbose:
        print(f"  seed {seed:>3}: score {result.final_score:>4}  "
              f"frames {result.frames:>6}  ({result.termination_reason})")
    return result


def evaluate_agent(
    agent: Any,
    seeds: Optional[List[int]] = None,
    record_taps: bool = False,
    max_frames: Optional[int] = None,
    verbose: bool = True
) -> EvalSummary:
    """
    Play one episode per seed and summarize the scores.

    Args:
        agent: Agent instance or act function (obs) -> 0/1.
        seeds: Agent seeds. DEFAULT_SEEDS if None.
        record_taps: Keep tap frames in each EvalResult.
        max_frames: Override the environment's frame cap.
        verbose: Print per-episode lines and the final report.

    Raises:
        ValueError: If `seeds` is empty.
    """
    seeds = DEFAULT_SEEDS if seeds is None else seeds
    if not seeds:
        raise ValueError("At least one seed is required")
    if verbose:
        print(f"Evaluating on {len(seeds)} seeds")

    started = time.time()
    results = [
        evaluate_single_episode(agent, seed, record_taps, max_frames, verbose)
        for seed in seeds
    ]
    summary = EvalSummary.from_results(results, time.time() - started)

    if verbose:
        summary.print_report()
    return summary


def save_results(summary: EvalSummary, agent_name: str, output_path: str) -> None:
    """Write the summary and every episode result as JSON."""
    data = {"agent": agent_name, "timestamp": time.strftime("%Y-%m-%d %H:%M:%S")}
    data.update(asdict(summary))
    with open(output_path, "w") as f:
        json.dump(data, f, indent=2)
    print(f"Results written to {output_path}")


def main():
    parser = argparse.ArgumentParser(description="Evaluate a stacker agent")
    parser.add_argument("--agent", type=str, required=True,
                        help="Contestant directory or agent .py file")
    parser.add_argument("--episodes", type=int, default=len(DEFAULT_SEEDS),
                        help="Number of episodes (agent seeds 0..N-1)")
    parser.add_argument("--aim-noise", type=float, default=None,
                        help="Aim noise in pixels for agents that accept it")
    parser.add_argument("--max-frames", type=int, default=None,
                        help="Frame cap per episode (config default if omitted)")
    parser.add_argument("--output", type=str, default=None,
                        help="Write results JSON here")
    parser.add_argument("--record", action="store_true",
                        help="Keep tap frames for replay")
    parser.add_argument("--quiet", action="store_true",
                        help="Only print errors")
    args = parser.parse_args()
    if args.episodes < 1:
        parser.error("--episodes must be at least 1")

    agent_kwargs = {}
    if args.aim_noise is not None:
        agent_kwargs["aim_noise"] = args.aim_noise

    try:
        agent = load_agent(args.agent, **agent_kwargs)
    except (ImportError, AttributeError, FileNotFoundError, TypeError) as e:
        print(f"Could not load agent {args.agent}: {e}")
        return 1

    summary = evaluate_agent(
        agent,
        seeds=list(range(args.episodes)),
        record_taps=args.record,
        max_frames=args.max_frames,
        verbose=not args.quiet
    )
    if args.output:
        save_results(summary, Path(args.agent).stem, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
