"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import yaml


# Smallest grid the carving accepts
MIN_GRID_SIZE = 5


@dataclass(frozen=True)
class PhysicsConfig:
    """Ball physics parameters (tuned for a fixed nominal frame step)."""
    base_gravity: float          # Constant downward acceleration per frame
    gravity_multiplier: float    # Scale applied to the external gravity vector
    friction: float              # Multiplicative damping per frame
    ball_radius: float           # Default ball radius in pixels
    max_velocity: float
    bounce_factor: float         # Fraction of velocity kept after a bounce
    velocity_threshold: float
    wall_hit_speed_scale: float  # Speed at which wall-hit intensity saturates
    exit_delay_ticks: int        # Frames an exited ball stays active


@dataclass(frozen=True)
class LevelConfig:
    """Level progression and difficulty scaling."""
    max_level: Optional[int]     # None = endless
    ball_count_low: int
    ball_count_high: int
    ball_count_threshold: int
    target_score: int
    base_maze_height: int
    height_per_level: int
    base_wall_density: float
    density_per_level: float
    max_wall_density: float

    def ball_count(self, level: int) -> int:
        """Number of balls spawned on a level."""
        if level <= self.ball_count_threshold:
            return self.ball_count_low
        return self.ball_count_high

    def target_score_for(self, level: int) -> int:
        """Score required to pass a level (constant across levels)."""
        return self.target_score

    def wall_density(self, level: int) -> float:
        """Wall density for a level, capped at max_wall_density."""
        return min(
            self.base_wall_density + (level - 1) * self.density_per_level,
            self.max_wall_density
        )

    def maze_height(self, level: int) -> int:
        """Nominal maze height in rows for a level."""
        return self.base_maze_height + (level - 1) * self.height_per_level


@dataclass(frozen=True)
class ExitConfig:
    """Scored exit zones along the bottom of the maze."""
    zone_height: float
    zone_count: int
    positions: Tuple[float, ...]            # Relative column of each carved exit
    scores: Tuple[int, ...]                 # Left-to-right zone scores
    colors: Tuple[Tuple[int, int, int], ...]
    missed_score: int                       # Awarded when no zone contains the ball


@dataclass(frozen=True)
class MazeConfig:
    """Procedural generation and layout parameters."""
    base_cols: int
    base_rows: int
    max_cols: int
    max_rows: int
    cols_level_step: int
    rows_level_step: int
    min_cell_size: int
    min_grid: int
    ball_radius_ratio: float
    min_ball_radius: int
    margins_landscape: Tuple[int, int, int, int]  # left, right, top, bottom
    margins_portrait: Tuple[int, int, int, int]


@dataclass(frozen=True)
class VisualConfig:
    """Values the physics keeps for renderers."""
    trail_length: int
    ball_colors: Tuple[Tuple[int, int, int], ...]


@dataclass(frozen=True)
class ControlConfig:
    """Mapping from normalized input to the gravity vector."""
    tilt_sensitivity: float


@dataclass(frozen=True)
class CapsConfig:
    """Game limits."""
    max_frames_per_level: int


@dataclass(frozen=True)
class ObservationConfig:
    """Observation space parameters."""
    max_balls: int
    frame_skip: int


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    physics: PhysicsConfig
    level: LevelConfig
    exit: ExitConfig
    maze: MazeConfig
    visual: VisualConfig
    control: ControlConfig
    caps: CapsConfig
    observation: ObservationConfig

    @property
    def is_endless(self) -> bool:
        """True if there is no final level."""
        return self.level.max_level is None

    def ball_color(self, index: int) -> Tuple[int, int, int]:
        """RGB color for a ball index (cycles through the palette)."""
        colors = self.visual.ball_colors
        return colors[index % len(colors)]


def _parse_color(color_data: List) -> Tuple[int, int, int]:
    """Parse RGB color from YAML."""
    if len(color_data) != 3:
        raise ValueError(f"Color must have 3 values [R, G, B], got {color_data}")
    return (int(color_data[0]), int(color_data[1]), int(color_data[2]))


def _parse_margins(margin_data: List) -> Tuple[int, int, int, int]:
    """Parse a [left, right, top, bottom] margin set."""
    if len(margin_data) != 4:
        raise ValueError(f"Margins must have 4 values [left, right, top, bottom], got {margin_data}")
    return tuple(int(m) for m in margin_data)


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    exit_cfg = config.exit

    # Every zone needs a score, a carve position and a color
    for name, values in (("scores", exit_cfg.scores),
                         ("positions", exit_cfg.positions),
                         ("colors", exit_cfg.colors)):
        if len(values) != exit_cfg.zone_count:
            raise ValueError(
                f"exit.{name} length ({len(values)}) must match "
                f"zone_count ({exit_cfg.zone_count})"
            )

    for pos in exit_cfg.positions:
        if not 0.0 <= pos < 1.0:
            raise ValueError(f"Exit positions must be in [0, 1), got {pos}")

    # Carving only reaches the far boundary on odd grids
    maze = config.maze
    for name in ("base_cols", "base_rows", "max_cols", "max_rows", "min_grid"):
        value = getattr(maze, name)
        if value % 2 == 0:
            raise ValueError(f"maze.{name} must be odd, got {value}")

    if maze.min_grid < MIN_GRID_SIZE:
        raise ValueError(
            f"maze.min_grid must be at least {MIN_GRID_SIZE}, got {maze.min_grid}"
        )

    if maze.min_cell_size <= 0:
        raise ValueError(f"maze.min_cell_size must be positive, got {maze.min_cell_size}")

    physics = config.physics
    if not 0.0 <= physics.bounce_factor <= 1.0:
        raise ValueError(f"bounce_factor must be in [0, 1], got {physics.bounce_factor}")

    if not 0.0 < physics.friction <= 1.0:
        raise ValueError(f"friction must be in (0, 1], got {physics.friction}")

    if physics.max_velocity <= 0:
        raise ValueError(f"max_velocity must be positive, got {physics.max_velocity}")

    if physics.exit_delay_ticks < 0:
        raise ValueError(f"exit_delay_ticks must be >= 0, got {physics.exit_delay_ticks}")

    # Observation arrays must hold every ball a level can spawn
    most_balls = max(config.level.ball_count_low, config.level.ball_count_high)
    if config.observation.max_balls < most_balls:
        raise ValueError(
            f"observation.max_balls ({config.observation.max_balls}) must be at "
            f"least the largest ball count ({most_balls})"
        )

    if config.observation.frame_skip < 1:
        raise ValueError(f"frame_skip must be >= 1, got {config.observation.frame_skip}")


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    physics_data = raw["physics"]
    physics = PhysicsConfig(
        base_gravity=float(physics_data["base_gravity"]),
        gravity_multiplier=float(physics_data["gravity_multiplier"]),
        friction=float(physics_data["friction"]),
        ball_radius=float(physics_data["ball_radius"]),
        max_velocity=float(physics_data["max_velocity"]),
        bounce_factor=float(physics_data["bounce_factor"]),
        velocity_threshold=float(physics_data["velocity_threshold"]),
        wall_hit_speed_scale=float(physics_data.get("wall_hit_speed_scale", 10.0)),
        exit_delay_ticks=int(physics_data.get("exit_delay_ticks", 18))
    )

    level_data = raw["level"]
    max_level = level_data.get("max_level")
    level = LevelConfig(
        max_level=int(max_level) if max_level is not None else None,
        ball_count_low=int(level_data["ball_count_low"]),
        ball_count_high=int(level_data["ball_count_high"]),
        ball_count_threshold=int(level_data["ball_count_threshold"]),
        target_score=int(level_data["target_score"]),
        base_maze_height=int(level_data.get("base_maze_height", 10)),
        height_per_level=int(level_data.get("height_per_level", 2)),
        base_wall_density=float(level_data.get("base_wall_density", 0.15)),
        density_per_level=float(level_data.get("density_per_level", 0.03)),
        max_wall_density=float(level_data.get("max_wall_density", 0.5))
    )

    exit_data = raw["exit"]
    exit_cfg = ExitConfig(
        zone_height=float(exit_data["zone_height"]),
        zone_count=int(exit_data["zone_count"]),
        positions=tuple(float(p) for p in exit_data["positions"]),
        scores=tuple(int(s) for s in exit_data["scores"]),
        colors=tuple(_parse_color(c) for c in exit_data["colors"]),
        missed_score=int(exit_data.get("missed_score", 50))
    )

    maze_data = raw["maze"]
    maze = MazeConfig(
        base_cols=int(maze_data["base_cols"]),
        base_rows=int(maze_data["base_rows"]),
        max_cols=int(maze_data["max_cols"]),
        max_rows=int(maze_data["max_rows"]),
        cols_level_step=int(maze_data.get("cols_level_step", 3)),
        rows_level_step=int(maze_data.get("rows_level_step", 4)),
        min_cell_size=int(maze_data["min_cell_size"]),
        min_grid=int(maze_data.get("min_grid", 9)),
        ball_radius_ratio=float(maze_data.get("ball_radius_ratio", 0.35)),
        min_ball_radius=int(maze_data.get("min_ball_radius", 5)),
        margins_landscape=_parse_margins(maze_data["margins_landscape"]),
        margins_portrait=_parse_margins(maze_data["margins_portrait"])
    )

    visual_data = raw.get("visual", {})
    visual = VisualConfig(
        trail_length=int(visual_data.get("trail_length", 6)),
        ball_colors=tuple(
            _parse_color(c) for c in visual_data.get("ball_colors", [[231, 76, 60]])
        )
    )

    control_data = raw.get("control", {})
    control = ControlConfig(
        tilt_sensitivity=float(control_data.get("tilt_sensitivity", 0.25))
    )

    caps_data = raw.get("caps", {})
    caps = CapsConfig(
        max_frames_per_level=int(caps_data.get("max_frames_per_level", 3600))
    )

    obs_data = raw.get("observation", {})
    observation = ObservationConfig(
        max_balls=int(obs_data.get("max_balls", 8)),
        frame_skip=int(obs_data.get("frame_skip", 1))
    )

    config = GameConfig(
        physics=physics,
        level=level,
        exit=exit_cfg,
        maze=maze,
        visual=visual,
        control=control,
        caps=caps,
        observation=observation
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
