"""
Gymnasium Environment Wrapper
=============================

Provides a standard Gymnasium interface to one maze level. The action is
the tilt: a 2D vector in [-1, 1] mapped onto the gravity vector.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Union
import numpy as np

import gymnasium as gym
from gymnasium import spaces

from exit_vector.maze_core.config_loader import GameConfig, load_config
from exit_vector.maze_core.game import (
    CoreGame,
    DEFAULT_SCREEN_HEIGHT,
    DEFAULT_SCREEN_WIDTH,
)
from exit_vector.maze_core.physics_engine import BallExitEvent, WallHitEvent
from exit_vector.maze_core.state_snapshot import SnapshotBuilder


class MazeEnv(gym.Env):
    """
    Exit Vector maze level as a Gymnasium environment.

    Action Space:
        Box(low=-1.0, high=1.0, shape=(2,), dtype=float32)
        Tilt vector; scaled by control.tilt_sensitivity into gravity.

    Observation Space:
        Dict with the padded maze grid, exit scores and per-ball arrays.

    Reward:
        Points scored during the step.

    Episode:
        One level. Terminated once every ball has left the maze,
        truncated after caps.max_frames_per_level frames.
    """

    metadata = {
        "render_modes": [],
        "render_fps": 60,
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        level: int = 1,
        screen_width: float = DEFAULT_SCREEN_WIDTH,
        screen_height: float = DEFAULT_SCREEN_HEIGHT,
        frame_skip: Optional[int] = None,
        debug: bool = False,
    ):
        """
        Initialize maze environment.

        Args:
            config_path: Path to game_config.yaml. Uses default if None.
            level: Level whose maze each episode plays.
            screen_width: Screen width the maze is sized for.
            screen_height: Screen height the maze is sized for.
            frame_skip: Physics frames per step. Config default if None.
            debug: If True, enables verbose debug output.
        """
        super().__init__()

        self._config = load_config(config_path)
        self._level = level
        self._debug = debug
        self._frame_skip = frame_skip or self._config.observation.frame_skip
        self._max_frames = self._config.caps.max_frames_per_level

        self._game = CoreGame(
            config=self._config,
            screen_width=screen_width,
            screen_height=screen_height,
            debug=debug
        )

        self.action_space = spaces.Box(
            low=-1.0,
            high=1.0,
            shape=(2,),
            dtype=np.float32
        )

        self.observation_space = self._build_observation_space()

        if self._debug:
            print(f"[DEBUG] MazeEnv initialized")
            print(f"[DEBUG]   Level: {self._level}, frame skip: {self._frame_skip}")
            print(f"[DEBUG]   Screen: {screen_width}x{screen_height}")

    def _build_observation_space(self) -> spaces.Dict:
        """Build the observation space definition."""
        max_balls = self._config.observation.max_balls
        zones = self._config.exit.zone_count
        grid_rows, grid_cols = SnapshotBuilder.grid_shape_for(self._config)
        score_cap = np.iinfo(np.int64).max

        return spaces.Dict({
            # Core state
            "level": spaces.Box(low=1, high=np.iinfo(np.int32).max, shape=(), dtype=np.int32),
            "score": spaces.Box(low=0, high=score_cap, shape=(), dtype=np.int64),
            "total_score": spaces.Box(low=0, high=score_cap, shape=(), dtype=np.int64),
            "target_score": spaces.Box(low=0, high=score_cap, shape=(), dtype=np.int64),
            "frame": spaces.Box(low=0, high=np.iinfo(np.int32).max, shape=(), dtype=np.int32),
            "active_balls": spaces.Box(low=0, high=max_balls, shape=(), dtype=np.int32),
            "gravity": spaces.Box(low=-np.inf, high=np.inf, shape=(2,), dtype=np.float32),

            # Maze info
            "maze_width": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float32),
            "maze_height": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float32),
            "cell_size": spaces.Box(low=0, high=np.inf, shape=(), dtype=np.float32),
            "cols": spaces.Box(low=0, high=grid_cols, shape=(), dtype=np.int32),
            "rows": spaces.Box(low=0, high=grid_rows, shape=(), dtype=np.int32),
            "grid": spaces.Box(low=0, high=3, shape=(grid_rows, grid_cols), dtype=np.int8),
            "exit_scores": spaces.Box(low=0, high=np.iinfo(np.int32).max, shape=(zones,), dtype=np.int32),
            "exit_columns": spaces.Box(low=0, high=grid_cols, shape=(zones,), dtype=np.int32),

            # Ball arrays
            "ball_x": spaces.Box(low=-np.inf, high=np.inf, shape=(max_balls,), dtype=np.float32),
            "ball_y": spaces.Box(low=-np.inf, high=np.inf, shape=(max_balls,), dtype=np.float32),
            "ball_vx": spaces.Box(low=-np.inf, high=np.inf, shape=(max_balls,), dtype=np.float32),
            "ball_vy": spaces.Box(low=-np.inf, high=np.inf, shape=(max_balls,), dtype=np.float32),
            "ball_radius": spaces.Box(low=0, high=np.inf, shape=(max_balls,), dtype=np.float32),
            "ball_active": spaces.MultiBinary(max_balls),
            "ball_exited": spaces.MultiBinary(max_balls),
            "ball_score": spaces.Box(low=0, high=np.iinfo(np.int32).max, shape=(max_balls,), dtype=np.int32),
            "ball_mask": spaces.MultiBinary(max_balls),
        })

    def action_to_gravity(self, action: Union[np.ndarray, Tuple[float, float]]) -> Tuple[float, float]:
        """Clamp an action to [-1, 1] and scale it into a gravity vector."""
        tilt = np.clip(np.asarray(action, dtype=np.float64).reshape(2), -1.0, 1.0)
        sensitivity = self._config.control.tilt_sensitivity
        return float(tilt[0] * sensitivity), float(tilt[1] * sensitivity)

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset the environment.

        Args:
            seed: Maze seed. A fresh one from the env's RNG if None.
            options: May hold "level" to play a different level.

        Returns:
            (observation, info) tuple.
        """
        super().reset(seed=seed)

        if options and "level" in options:
            self._level = int(options["level"])

        if seed is None:
            seed = int(self.np_random.integers(0, 2 ** 31))

        snapshot = self._game.start_level(level=self._level, seed=seed)

        info = self._game.get_info()
        info["delta_score"] = 0
        info["wall_hits"] = 0
        return snapshot.to_obs_dict(), info

    def step(
        self,
        action: Union[np.ndarray, Tuple[float, float]]
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Execute one step (frame_skip physics frames with the same tilt).

        Args:
            action: Tilt vector in [-1, 1]^2.

        Returns:
            (observation, reward, terminated, truncated, info) tuple.
        """
        gravity = self.action_to_gravity(action)

        delta_score = 0
        wall_hits = 0
        exits = 0
        terminated = False
        for _ in range(self._frame_skip):
            result = self._game.tick(gravity)
            delta_score += result.delta_score
            for event in result.events:
                if isinstance(event, WallHitEvent):
                    wall_hits += 1
                elif isinstance(event, BallExitEvent):
                    exits += 1
            if result.level_complete:
                terminated = True
                break

        truncated = not terminated and self._game.frame >= self._max_frames

        obs = self._game.snapshot().to_obs_dict()
        reward = float(delta_score)

        info = self._game.get_info()
        info["delta_score"] = delta_score
        info["wall_hits"] = wall_hits
        info["exits"] = exits

        if self._debug and (terminated or truncated or delta_score):
            print(f"[DEBUG] Step: gravity=({gravity[0]:.3f}, {gravity[1]:.3f}), "
                  f"delta_score={delta_score}, frame={self._game.frame}")
            if terminated:
                print(f"[DEBUG] TERMINATED: {info['state']}")
            elif truncated:
                print(f"[DEBUG] TRUNCATED at frame {self._game.frame}")

        return obs, reward, terminated, truncated, info

    def render(self) -> None:
        """Rendering is left to external renderers (see CoreGame.get_render_data)."""
        return None

    def close(self) -> None:
        """Clean up resources."""
        return None

    @property
    def game(self) -> CoreGame:
        """Access to underlying game (for debugging/tools)."""
        return self._game

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config
