"""
Core Game
=========

Level orchestrator combining maze generation, physics, scoring and rules.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from exit_vector.maze_core.config_loader import GameConfig, get_config
from exit_vector.maze_core.maze import MazeDimensions, MazeGenerator
from exit_vector.maze_core.physics_engine import PhysicsEngine, PhysicsEvent
from exit_vector.maze_core.rng import time_seed
from exit_vector.maze_core.rules import GameState, LevelResult, LevelRules
from exit_vector.maze_core.state_snapshot import GameSnapshot, SnapshotBuilder

# Default screen, portrait phone-sized
DEFAULT_SCREEN_WIDTH = 480.0
DEFAULT_SCREEN_HEIGHT = 860.0


@dataclass
class TickResult:
    """Result of a single simulated frame."""
    events: List[PhysicsEvent]
    delta_score: int
    level_result: LevelResult
    frame: int

    @property
    def level_complete(self) -> bool:
        return self.level_result.complete


class CoreGame:
    """
    Main game simulation class.

    Orchestrates:
    - Maze generation per level
    - Physics engine
    - Level rules (targets, pass/fail)
    - State snapshots

    One tick = one physics frame. The host supplies the gravity vector
    from whatever input it reads.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        screen_width: float = DEFAULT_SCREEN_WIDTH,
        screen_height: float = DEFAULT_SCREEN_HEIGHT,
        seed: Optional[int] = None,
        debug: bool = False
    ):
        """
        Initialize game.

        Args:
            config: Game configuration. Uses default if None.
            screen_width: Screen width the mazes are sized for.
            screen_height: Screen height the mazes are sized for.
            seed: Seed for the sequence of level mazes. Clock-derived if None.
            debug: If True, prints level flow to stdout.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._screen_width = screen_width
        self._screen_height = screen_height
        self._debug = debug

        # Initialize subsystems
        self._maze = MazeGenerator(config)
        self._physics = PhysicsEngine(config)
        self._rules = LevelRules(config)
        self._snapshot_builder = SnapshotBuilder(config)

        # Level seeds are drawn from one generator so a game seed
        # reproduces every maze, restarts included
        self._level_seeds = random.Random(seed if seed is not None else time_seed())

        # Game state
        self._level: int = 1
        self._total_score: int = 0
        self._frame: int = 0
        self._level_seed: Optional[int] = None
        self._state: GameState = GameState.MENU
        self._last_result: LevelResult = LevelResult.in_progress(0, 0)

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config

    @property
    def maze(self) -> MazeGenerator:
        """Maze of the current level."""
        return self._maze

    @property
    def physics(self) -> PhysicsEngine:
        """Physics engine instance."""
        return self._physics

    @property
    def rules(self) -> LevelRules:
        return self._rules

    @property
    def level(self) -> int:
        return self._level

    @property
    def score(self) -> int:
        """Score of the current level."""
        return self._physics.get_score()

    @property
    def total_score(self) -> int:
        """Score summed over every finished level."""
        return self._total_score

    @property
    def target_score(self) -> int:
        return self._rules.target_score(self._level)

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def frame(self) -> int:
        """Frames simulated on the current level."""
        return self._frame

    @property
    def level_seed(self) -> Optional[int]:
        """Seed the current maze was carved with."""
        return self._level_seed

    @property
    def last_result(self) -> LevelResult:
        return self._last_result

    @property
    def is_level_over(self) -> bool:
        """True once the current level has been decided."""
        return self._state in (
            GameState.LEVEL_COMPLETE,
            GameState.LEVEL_FAILED,
            GameState.GAME_COMPLETE,
        )

    def set_screen_size(self, width: float, height: float) -> None:
        """Screen size used from the next level start on."""
        self._screen_width = width
        self._screen_height = height

    def start_game(self, seed: Optional[int] = None) -> GameSnapshot:
        """
        Start over from level 1.

        Args:
            seed: New game seed. Keeps the current sequence if None.

        Returns:
            Snapshot of the first level.
        """
        if seed is not None:
            self._level_seeds = random.Random(seed)

        self._level = 1
        self._total_score = 0
        return self.start_level()

    def start_level(
        self,
        level: Optional[int] = None,
        seed: Optional[int] = None
    ) -> GameSnapshot:
        """
        Build the maze for a level and spawn its balls.

        Args:
            level: Level to start. Current level if None.
            seed: Maze seed. Drawn from the game seed sequence if None.

        Returns:
            Initial snapshot of the level.
        """
        if level is not None:
            self._level = level
        if seed is None:
            seed = self._level_seeds.randrange(2 ** 31)
        self._level_seed = seed

        dims = self._maze.init(
            self._level, self._screen_width, self._screen_height, seed=seed
        )
        spawns = self._maze.get_spawn_positions(self._rules.ball_count(self._level))

        self._physics.init(
            spawns,
            self._maze.get_wall_rects(),
            self._maze.get_exit_zones(),
            dims.width,
            dims.height,
            dims.ball_radius
        )

        self._frame = 0
        self._state = GameState.PLAYING
        self._last_result = LevelResult.in_progress(0, self.target_score)

        if self._debug:
            self._print_level_start(dims)

        return self.snapshot()

    def _print_level_start(self, dims: MazeDimensions) -> None:
        print(f"[DEBUG] Level {self._level} (seed {self._level_seed})")
        print(f"[DEBUG]   Grid: {dims.cols}x{dims.rows}, cell {dims.cell_size}px, "
              f"ball radius {dims.ball_radius}px")
        print(f"[DEBUG]   Exit columns: {self._maze.exit_columns}")
        print(f"[DEBUG]   Balls: {len(self._physics.get_balls())}, "
              f"target: {self.target_score}")

    def tick(self, gravity: Tuple[float, float] = (0.0, 0.0)) -> TickResult:
        """
        Advance the level by one frame.

        Args:
            gravity: External gravity vector (e.g. from tilt input).

        Returns:
            TickResult with the frame's events and level status.
        """
        if self._state != GameState.PLAYING:
            return TickResult(
                events=[],
                delta_score=0,
                level_result=self._last_result,
                frame=self._frame
            )

        score_before = self._physics.get_score()

        self._physics.set_gravity(gravity[0], gravity[1])
        events = self._physics.update()
        self._frame += 1

        result = self._rules.check_level(
            self._level,
            self._physics.get_score(),
            self._physics.all_balls_exited()
        )
        self._last_result = result
        if result.complete:
            self._finish_level(result)

        return TickResult(
            events=events,
            delta_score=self._physics.get_score() - score_before,
            level_result=result,
            frame=self._frame
        )

    def _finish_level(self, result: LevelResult) -> None:
        self._total_score += result.score
        self._state = result.state

        if self._debug:
            outcome = "passed" if result.passed else "failed"
            print(f"[DEBUG] Level {self._level} {outcome}: "
                  f"{result.score}/{result.target_score} after {self._frame} frames")

    def next_level(self) -> GameSnapshot:
        """Advance to the following level."""
        self._level += 1
        return self.start_level()

    def restart_level(self) -> GameSnapshot:
        """Replay the current level on a fresh maze."""
        return self.start_level()

    def set_paused(self, paused: bool) -> None:
        """Pause or resume a level in progress."""
        if paused and self._state == GameState.PLAYING:
            self._state = GameState.PAUSED
        elif not paused and self._state == GameState.PAUSED:
            self._state = GameState.PLAYING
        else:
            return
        self._physics.set_paused(paused)

    def snapshot(self) -> GameSnapshot:
        """Build current game state snapshot."""
        return self._snapshot_builder.build(
            maze=self._maze,
            physics=self._physics,
            level=self._level,
            total_score=self._total_score,
            target_score=self.target_score,
            frame=self._frame
        )

    def get_info(self) -> Dict[str, Any]:
        """Get additional info dict for Gymnasium."""
        return {
            "level": self._level,
            "score": self._physics.get_score(),
            "total_score": self._total_score,
            "target_score": self.target_score,
            "frame": self._frame,
            "active_balls": self._physics.get_active_ball_count(),
            "state": self._state.value,
            "level_seed": self._level_seed,
        }

    def get_render_data(self) -> Dict[str, Any]:
        """
        Get data needed for rendering.

        Returns:
            Dict with maze layout, exit zones, balls and HUD values.
        """
        dims = self._maze.get_dimensions()

        balls_data = []
        for ball in self._physics.get_balls():
            balls_data.append({
                "uid": ball.uid,
                "x": ball.x,
                "y": ball.y,
                "radius": ball.radius,
                "active": ball.active,
                "exited": ball.exited,
                "score": ball.score,
                "color": self._config.ball_color(ball.color_index),
                "trail": list(ball.trail),
            })

        zones_data = [
            {
                "x": zone.x,
                "y": zone.y,
                "width": zone.width,
                "height": zone.height,
                "score": zone.score,
                "label": zone.label,
                "color": zone.color,
            }
            for zone in self._maze.get_exit_zones()
        ]

        return {
            "maze_width": dims.width,
            "maze_height": dims.height,
            "cell_size": dims.cell_size,
            "margin_left": dims.margin_left,
            "margin_top": dims.margin_top,
            "grid": self._maze.get_grid(),
            "exit_zones": zones_data,
            "balls": balls_data,
            "score": self._physics.get_score(),
            "total_score": self._total_score,
            "level": self._level,
            "target_score": self.target_score,
            "state": self._state.value,
        }
