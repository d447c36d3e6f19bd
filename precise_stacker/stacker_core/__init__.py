"""
Stacker Core - The heart of the game.

This module provides the frame-stepped game simulation, the scheduler that
drives it, the Gymnasium environment wrapper and all supporting systems
(rules, rendering, high score storage, replays).

Main exports:
- step: Pure frame transition, (state, config, activate, dt) -> state
- CoreGame: Controller owning the state, notifications and high score
- FrameScheduler: Drives a CoreGame from an input source
- StackerEnv: Gymnasium environment for agents
- GameConfig: Configuration loaded from game_config.yaml
"""

from precise_stacker.stacker_core.config_loader import GameConfig, load_config
from precise_stacker.stacker_core.blocks import Block, horizontal_overlap, trim_to_overlap
from precise_stacker.stacker_core.game_state import GamePhase, GameState, new_game
from precise_stacker.stacker_core.game import CoreGame, StepResult, step
from precise_stacker.stacker_core.frame import DrawRect, build_frame
from precise_stacker.stacker_core.high_score import HighScoreStore
from precise_stacker.stacker_core.scheduler import FrameScheduler, InputLatch, ScriptedInput
from precise_stacker.stacker_core.env_gym import StackerEnv
from precise_stacker.stacker_core.replay_recorder import (
    ReplayRecorder,
    record_episode,
    replay_recording,
    replay_taps,
    generate_replay_filename,
)

__all__ = [
    "GameConfig",
    "load_config",
    "Block",
    "horizontal_overlap",
    "trim_to_overlap",
    "GamePhase",
    "GameState",
    "new_game",
    "CoreGame",
    "StepResult",
    "step",
    "DrawRect",
    "build_frame",
    "HighScoreStore",
    "FrameScheduler",
    "InputLatch",
    "ScriptedInput",
    "StackerEnv",
    "ReplayRecorder",
    "record_episode",
    "replay_recording",
    "replay_taps",
    "generate_replay_filename",
]
