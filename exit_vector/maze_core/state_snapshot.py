"""
State Snapshot
==============

Packs game state into fixed-size numpy arrays for Gymnasium observations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple, TYPE_CHECKING
import numpy as np

from exit_vector.maze_core.config_loader import GameConfig, get_config
from exit_vector.maze_core.maze import CellType

if TYPE_CHECKING:
    from exit_vector.maze_core.maze import MazeGenerator
    from exit_vector.maze_core.physics_engine import PhysicsEngine


@dataclass
class GameSnapshot:
    """
    Complete game state snapshot.

    Ball arrays are fixed-size with a mask; the grid is padded with WALL
    up to the largest maze the configuration can produce.
    """
    # Core state
    level: int
    score: int
    total_score: int
    target_score: int
    frame: int
    active_balls: int
    gravity_x: float
    gravity_y: float

    # Maze info (for normalization)
    maze_width: float
    maze_height: float
    cell_size: float
    cols: int
    rows: int

    # Maze layout
    grid: np.ndarray              # (MAX_ROWS, MAX_COLS) int8
    exit_scores: np.ndarray       # (ZONES,) int32
    exit_columns: np.ndarray      # (ZONES,) int32

    # Ball arrays (fixed size, padded)
    ball_x: np.ndarray            # (MAX_BALLS,) float32
    ball_y: np.ndarray            # (MAX_BALLS,) float32
    ball_vx: np.ndarray           # (MAX_BALLS,) float32
    ball_vy: np.ndarray           # (MAX_BALLS,) float32
    ball_radius: np.ndarray       # (MAX_BALLS,) float32
    ball_active: np.ndarray       # (MAX_BALLS,) bool
    ball_exited: np.ndarray       # (MAX_BALLS,) bool
    ball_score: np.ndarray        # (MAX_BALLS,) int32
    ball_mask: np.ndarray         # (MAX_BALLS,) bool

    def to_obs_dict(self) -> Dict[str, np.ndarray]:
        """Convert to Gymnasium observation dictionary."""
        return {
            # Core state
            "level": np.array(self.level, dtype=np.int32),
            "score": np.array(self.score, dtype=np.int64),
            "total_score": np.array(self.total_score, dtype=np.int64),
            "target_score": np.array(self.target_score, dtype=np.int64),
            "frame": np.array(self.frame, dtype=np.int32),
            "active_balls": np.array(self.active_balls, dtype=np.int32),
            "gravity": np.array([self.gravity_x, self.gravity_y], dtype=np.float32),

            # Maze info
            "maze_width": np.array(self.maze_width, dtype=np.float32),
            "maze_height": np.array(self.maze_height, dtype=np.float32),
            "cell_size": np.array(self.cell_size, dtype=np.float32),
            "cols": np.array(self.cols, dtype=np.int32),
            "rows": np.array(self.rows, dtype=np.int32),
            "grid": self.grid,
            "exit_scores": self.exit_scores,
            "exit_columns": self.exit_columns,

            # Ball arrays
            "ball_x": self.ball_x,
            "ball_y": self.ball_y,
            "ball_vx": self.ball_vx,
            "ball_vy": self.ball_vy,
            "ball_radius": self.ball_radius,
            "ball_active": self.ball_active,
            "ball_exited": self.ball_exited,
            "ball_score": self.ball_score,
            "ball_mask": self.ball_mask,
        }


class SnapshotBuilder:
    """Builds game state snapshots with pre-allocated arrays."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._max_balls = config.observation.max_balls
        self._zone_count = config.exit.zone_count
        self._grid_shape = self.grid_shape_for(config)

        # Pre-allocate arrays
        self._ball_x = np.zeros(self._max_balls, dtype=np.float32)
        self._ball_y = np.zeros(self._max_balls, dtype=np.float32)
        self._ball_vx = np.zeros(self._max_balls, dtype=np.float32)
        self._ball_vy = np.zeros(self._max_balls, dtype=np.float32)
        self._ball_radius = np.zeros(self._max_balls, dtype=np.float32)
        self._ball_active = np.zeros(self._max_balls, dtype=bool)
        self._ball_exited = np.zeros(self._max_balls, dtype=bool)
        self._ball_score = np.zeros(self._max_balls, dtype=np.int32)
        self._ball_mask = np.zeros(self._max_balls, dtype=bool)

    @staticmethod
    def grid_shape_for(config: GameConfig) -> Tuple[int, int]:
        """(rows, cols) of the padded observation grid."""
        maze = config.maze
        return (max(maze.max_rows, maze.min_grid), max(maze.max_cols, maze.min_grid))

    @property
    def grid_shape(self) -> Tuple[int, int]:
        return self._grid_shape

    @property
    def max_balls(self) -> int:
        return self._max_balls

    def _clear_arrays(self) -> None:
        self._ball_x.fill(0)
        self._ball_y.fill(0)
        self._ball_vx.fill(0)
        self._ball_vy.fill(0)
        self._ball_radius.fill(0)
        self._ball_active.fill(False)
        self._ball_exited.fill(False)
        self._ball_score.fill(0)
        self._ball_mask.fill(False)

    def _padded_grid(self, grid: np.ndarray) -> np.ndarray:
        padded = np.full(self._grid_shape, CellType.WALL, dtype=np.int8)
        rows = min(grid.shape[0], self._grid_shape[0])
        cols = min(grid.shape[1], self._grid_shape[1])
        padded[:rows, :cols] = grid[:rows, :cols]
        return padded

    def build(
        self,
        maze: "MazeGenerator",
        physics: "PhysicsEngine",
        level: int,
        total_score: int,
        target_score: int,
        frame: int
    ) -> GameSnapshot:
        """
        Build a snapshot of the current level.

        Args:
            maze: Generator holding the current maze.
            physics: Engine holding the current balls.
            level: Current level number.
            total_score: Score summed over finished levels.
            target_score: Score needed to pass this level.
            frame: Frames simulated on this level.

        Returns:
            GameSnapshot with copies of all arrays.
        """
        self._clear_arrays()

        balls = physics.get_balls()[:self._max_balls]
        for i, ball in enumerate(balls):
            self._ball_x[i] = ball.x
            self._ball_y[i] = ball.y
            self._ball_vx[i] = ball.vx
            self._ball_vy[i] = ball.vy
            self._ball_radius[i] = ball.radius
            self._ball_active[i] = ball.active
            self._ball_exited[i] = ball.exited
            self._ball_score[i] = ball.score
            self._ball_mask[i] = True

        zones = maze.get_exit_zones()
        exit_scores = np.zeros(self._zone_count, dtype=np.int32)
        exit_columns = np.zeros(self._zone_count, dtype=np.int32)
        for i, zone in enumerate(zones[:self._zone_count]):
            exit_scores[i] = zone.score
            exit_columns[i] = zone.column

        dims = maze.get_dimensions()
        gx, gy = physics.gravity

        return GameSnapshot(
            level=level,
            score=physics.get_score(),
            total_score=total_score,
            target_score=target_score,
            frame=frame,
            active_balls=physics.get_active_ball_count(),
            gravity_x=gx,
            gravity_y=gy,
            maze_width=dims.width,
            maze_height=dims.height,
            cell_size=dims.cell_size,
            cols=dims.cols,
            rows=dims.rows,
            grid=self._padded_grid(maze.get_grid()),
            exit_scores=exit_scores,
            exit_columns=exit_columns,
            ball_x=self._ball_x.copy(),
            ball_y=self._ball_y.copy(),
            ball_vx=self._ball_vx.copy(),
            ball_vy=self._ball_vy.copy(),
            ball_radius=self._ball_radius.copy(),
            ball_active=self._ball_active.copy(),
            ball_exited=self._ball_exited.copy(),
            ball_score=self._ball_score.copy(),
            ball_mask=self._ball_mask.copy()
        )
