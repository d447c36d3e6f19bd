"""
Baseline Timing Agent - Taps when the block lines up with the stack.

This is a simple heuristic agent that watches the swinging block's X
position and taps on the frame it is closest to the top block.

This serves as:
1. A working example of how to read observations and return actions
2. A baseline benchmark to compare against
3. A verification that the environment API works correctly

Strategy:
- Only act while the block is swinging (phase 1)
- Aim at the top block's X, optionally offset by seeded noise
- Tap when the block is within half a frame's travel of the aim point
"""

import numpy as np
from typing import Any, Dict, Optional

SWINGING = 1


class StackerAgent:
    """
    Baseline agent that taps when the swinging block is aligned.

    Aim noise (in pixels) is drawn once per block so the agent loses a
    little width on every landing, like a human would.
    """

    def __init__(self, aim_noise: float = 0.0, debug: bool = False):
        """
        Initialize the agent.

        Args:
            aim_noise: Maximum aim error in pixels (uniform, per block).
            debug: If True, print decisions to stdout.
        """
        self.aim_noise = aim_noise
        self.debug = debug
        self._rng = np.random.default_rng()
        self._aim_for_stack_size = -1
        self._aim_offset = 0.0

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Reset agent state for a new episode.

        Args:
            seed: Optional random seed for reproducibility.
        """
        if seed is not None:
            self._rng = np.random.default_rng(seed)
        self._aim_for_stack_size = -1
        self._aim_offset = 0.0

    def act(self, observation: Dict[str, Any], debug: bool = False) -> int:
        """
        Decide whether to tap this frame.

        Args:
            observation: Dict of numpy arrays from the environment.
            debug: If True, print debug info for this step.

        Returns:
            1 to tap, 0 to wait.
        """
        if int(observation["phase"]) != SWINGING:
            return 0

        stack_size = int(observation["stack_size"])
        if stack_size != self._aim_for_stack_size:
            # New block in flight: pick a fresh aim error
            self._aim_for_stack_size = stack_size
            if self.aim_noise > 0:
                self._aim_offset = float(self._rng.uniform(-self.aim_noise, self.aim_noise))
            else:
                self._aim_offset = 0.0

        # The block never leaves [0, canvas_width - width]
        max_x = float(observation["canvas_width"]) - float(observation["current_width"])
        target = float(np.clip(float(observation["top_x"]) + self._aim_offset, 0.0, max_x))
        current = float(observation["current_x"])
        tolerance = float(observation["swing_speed"]) / 2.0

        tap = abs(current - target) <= tolerance

        if tap and (debug or self.debug):
            print(f"[Timing Agent] Stack={stack_size}, "
                  f"x={current:.1f}, target={target:.1f}, "
                  f"error={current - target:+.2f}")

        return 1 if tap else 0


# Convenience function to create agent (used by evaluation harness)
def create_agent(**kwargs) -> StackerAgent:
    """Factory function to create an agent instance."""
    return StackerAgent(**kwargs)
