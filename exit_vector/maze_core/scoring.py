"""
Scoring System
==============

Awards exit scores based on which zone a ball leaves the maze through.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from exit_vector.maze_core.config_loader import GameConfig, get_config
from exit_vector.maze_core.maze import ExitZone


@dataclass
class ScoreEvent:
    """Record of a scoring event."""
    points: int
    zone_index: int              # -1 when the ball missed every zone
    label: str

    @property
    def missed(self) -> bool:
        return self.zone_index < 0

    def __repr__(self) -> str:
        if self.missed:
            return f"ScoreEvent(missed={self.points})"
        return f"ScoreEvent(zone_{self.zone_index}={self.points})"


class ScoreTracker:
    """
    Tracks the running level score.

    Points are added the moment a ball crosses the bottom edge, never
    deferred to when it stops being simulated.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize score tracker.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._score: int = 0
        self._exits: int = 0

    @property
    def score(self) -> int:
        """Current total score."""
        return self._score

    @property
    def exits(self) -> int:
        """Number of balls scored so far."""
        return self._exits

    @property
    def missed_score(self) -> int:
        """Points for leaving outside every zone."""
        return self._config.exit.missed_score

    def get_exit_score(self, zone: Optional[ExitZone]) -> int:
        """Points a ball would earn for leaving through zone (None = missed)."""
        if zone is None:
            return self.missed_score
        return zone.score

    def apply_exit(self, zone: Optional[ExitZone], zone_index: int = -1) -> ScoreEvent:
        """
        Apply the score for one exiting ball.

        Args:
            zone: Zone containing the ball, or None if it missed them all.
            zone_index: Left-to-right index of zone.

        Returns:
            ScoreEvent describing the points awarded.
        """
        points = self.get_exit_score(zone)
        if zone is None:
            event = ScoreEvent(points=points, zone_index=-1, label=str(points))
        else:
            event = ScoreEvent(points=points, zone_index=zone_index, label=zone.label)

        self._score += points
        self._exits += 1
        return event

    def reset(self) -> None:
        """Reset score to zero."""
        self._score = 0
        self._exits = 0
