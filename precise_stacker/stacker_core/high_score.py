"""
High Score Store
================

Persists a single integer high score in a small JSON file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Union

from precise_stacker.stacker_core.config_loader import GameConfig, get_config

logger = logging.getLogger(__name__)


class HighScoreStore:
    """
    One-slot persistence for the high score.

    Storage problems never interrupt a game: a missing or unreadable file
    reads as 0 and a failed write is logged and reported by `save()`.
    """

    def __init__(self, path: Union[str, Path], key: str = "preciseStackerHighScore"):
        self._path = Path(path).expanduser()
        self._key = key

    @classmethod
    def from_config(cls, config: Optional[GameConfig] = None) -> "HighScoreStore":
        """Build a store from the `storage` section of the config."""
        if config is None:
            config = get_config()
        return cls(config.storage.high_score_path, config.storage.high_score_key)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> int:
        """Read the stored high score, 0 if none is available."""
        if not self._path.exists():
            return 0
        try:
            with open(self._path, "r") as f:
                data = json.load(f)
            return max(0, int(data.get(self._key, 0)))
        except (OSError, ValueError, TypeError, AttributeError, OverflowError) as e:
            logger.warning("Could not read high score from %s: %s", self._path, e)
            return 0

    def save(self, value: int) -> bool:
        """
        Store a new high score.

        Returns:
            True if the value was written.
        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w") as f:
                json.dump({self._key: int(value)}, f)
        except OSError as e:
            logger.warning("Could not save high score to %s: %s", self._path, e)
            return False
        logger.debug("High score %d saved to %s", value, self._path)
        return True
