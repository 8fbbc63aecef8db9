"""
Game Rules
==========

Level progression: ball counts, target scores and the pass/fail decision
made once every ball has left the maze.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from exit_vector.maze_core.config_loader import GameConfig, get_config


class GameState(Enum):
    """Where the level flow currently stands."""
    MENU = "menu"
    PLAYING = "playing"
    PAUSED = "paused"
    LEVEL_COMPLETE = "level_complete"
    LEVEL_FAILED = "level_failed"
    GAME_COMPLETE = "game_complete"


@dataclass
class LevelResult:
    """Result of a level completion check."""
    complete: bool
    passed: bool
    game_complete: bool
    score: int
    target_score: int

    @property
    def state(self) -> GameState:
        """State the game moves to after this result."""
        if not self.complete:
            return GameState.PLAYING
        if not self.passed:
            return GameState.LEVEL_FAILED
        if self.game_complete:
            return GameState.GAME_COMPLETE
        return GameState.LEVEL_COMPLETE

    @staticmethod
    def in_progress(score: int, target_score: int) -> "LevelResult":
        return LevelResult(False, False, False, score, target_score)


class LevelRules:
    """
    Handles level scaling and completion.

    - Ball count per level
    - Target score per level
    - Pass when the level score reaches the target
    - Game complete when the last level is passed (never in endless mode)
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize level rules.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._level_config = config.level

    @property
    def max_level(self) -> Optional[int]:
        """Final level, or None when endless."""
        return self._level_config.max_level

    def ball_count(self, level: int) -> int:
        return self._level_config.ball_count(level)

    def target_score(self, level: int) -> int:
        return self._level_config.target_score_for(level)

    def is_last_level(self, level: int) -> bool:
        return self.max_level is not None and level >= self.max_level

    def check_level(
        self,
        level: int,
        score: int,
        all_balls_exited: bool
    ) -> LevelResult:
        """
        Check whether the level has finished and how.

        Args:
            level: Current level number.
            score: Level score so far.
            all_balls_exited: True once no ball is simulated any more.

        Returns:
            LevelResult for the current state.
        """
        target = self.target_score(level)
        if not all_balls_exited:
            return LevelResult.in_progress(score, target)

        passed = score >= target
        return LevelResult(
            complete=True,
            passed=passed,
            game_complete=passed and self.is_last_level(level),
            score=score,
            target_score=target
        )
