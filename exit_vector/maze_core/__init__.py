"""
Maze Core - The simulation behind the game.

This module provides maze generation, the frame-stepped physics engine,
scoring, level orchestration and a Gymnasium environment wrapper.

Main exports:
- MazeGenerator: Builds the grid, wall rectangles and exit zones
- PhysicsEngine: Advances balls and reports per-frame events
- CoreGame: Level orchestration (used by hosts and the env)
- MazeEnv: Gymnasium environment playing one level per episode
- GameConfig: Configuration loaded from game_config.yaml
"""

from exit_vector.maze_core.config_loader import GameConfig, load_config
from exit_vector.maze_core.maze import CellType, ExitZone, MazeDimensions, MazeGenerator
from exit_vector.maze_core.physics_engine import (
    Ball,
    BallExitEvent,
    ExitScoredEvent,
    PhysicsEngine,
    WallHitEvent,
)
from exit_vector.maze_core.scoring import ScoreEvent, ScoreTracker
from exit_vector.maze_core.rules import GameState, LevelResult, LevelRules
from exit_vector.maze_core.game import CoreGame, TickResult
from exit_vector.maze_core.env_gym import MazeEnv

__all__ = [
    "GameConfig",
    "load_config",
    "CellType",
    "ExitZone",
    "MazeDimensions",
    "MazeGenerator",
    "Ball",
    "BallExitEvent",
    "ExitScoredEvent",
    "PhysicsEngine",
    "WallHitEvent",
    "ScoreEvent",
    "ScoreTracker",
    "GameState",
    "LevelResult",
    "LevelRules",
    "CoreGame",
    "TickResult",
    "MazeEnv",
]
