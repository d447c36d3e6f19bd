"""
Precise Stacker
===============

A timing game: a block swings above a growing stack and the player taps
to drop it. Each drop is trimmed to its overlap with the block below; a
miss ends the run.

- stacker_core: game state, frame step, rules, renderers, Gymnasium env
- evaluation: harness for scoring autoplay agents

All tunable parameters are in game_config.yaml.
"""
