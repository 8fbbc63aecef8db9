"""
Tests for configuration loading and validation.
"""

from pathlib import Path

import pytest
import yaml

import exit_vector
from exit_vector.maze_core.config_loader import (
    MIN_GRID_SIZE,
    get_config,
    load_config,
    reload_config,
)
from exit_vector.maze_core.maze import generate_grid
from exit_vector.maze_core.rng import MazeRandom


DEFAULT_CONFIG_PATH = Path(exit_vector.__file__).parent / "game_config.yaml"


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def raw_config():
    with open(DEFAULT_CONFIG_PATH, "r") as f:
        return yaml.safe_load(f)


@pytest.fixture
def write_config(tmp_path):
    """Dump a raw dict to a temporary YAML file and return its path."""
    def _write(raw):
        path = tmp_path / "game_config.yaml"
        with open(path, "w") as f:
            yaml.safe_dump(raw, f)
        return str(path)
    return _write


class TestDefaults:
    """Test the shipped configuration."""

    def test_physics_values(self, config):
        physics = config.physics
        assert physics.base_gravity == 0.12
        assert physics.gravity_multiplier == 0.8
        assert physics.friction == 0.97
        assert physics.max_velocity == 12
        assert physics.bounce_factor == 0.3
        assert physics.velocity_threshold == 0.01
        assert physics.exit_delay_ticks == 18

    def test_exit_values(self, config):
        assert config.exit.zone_count == 5
        assert config.exit.scores == (500, 100, 1000, 0, 250)
        assert config.exit.positions == (0.1, 0.3, 0.5, 0.7, 0.9)
        assert config.exit.missed_score == 50
        assert len(config.exit.colors) == 5

    def test_maze_values(self, config):
        maze = config.maze
        assert (maze.base_cols, maze.base_rows) == (11, 13)
        assert (maze.max_cols, maze.max_rows) == (21, 25)
        assert maze.min_cell_size == 16
        assert maze.margins_portrait == (20, 20, 100, 100)
        assert maze.margins_landscape == (120, 20, 20, 100)

    def test_endless_by_default(self, config):
        assert config.level.max_level is None
        assert config.is_endless

    def test_config_is_frozen(self, config):
        with pytest.raises(Exception):
            config.physics.friction = 0.5

    def test_ball_color_cycles(self, config):
        colors = config.visual.ball_colors
        assert config.ball_color(0) == colors[0]
        assert config.ball_color(len(colors)) == colors[0]


class TestLevelScaling:
    """Test per-level helpers."""

    def test_ball_count(self, config):
        assert config.level.ball_count(1) == 1
        assert config.level.ball_count(5) == 1
        assert config.level.ball_count(6) == 1

    def test_target_score_constant(self, config):
        assert config.level.target_score_for(1) == 1000
        assert config.level.target_score_for(50) == 1000

    def test_wall_density(self, config):
        assert config.level.wall_density(1) == pytest.approx(0.15)
        assert config.level.wall_density(3) == pytest.approx(0.21)
        assert config.level.wall_density(100) == 0.5

    def test_maze_height(self, config):
        assert config.level.maze_height(1) == 10
        assert config.level.maze_height(3) == 14


class TestLoading:
    """Test file handling, defaults and validation."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_explicit_path_matches_default(self, config):
        assert load_config(str(DEFAULT_CONFIG_PATH)) == config

    def test_optional_sections_default(self, raw_config, write_config):
        for section in ("visual", "control", "caps", "observation"):
            del raw_config[section]
        config = load_config(write_config(raw_config))

        assert config.visual.trail_length == 6
        assert config.control.tilt_sensitivity == 0.25
        assert config.caps.max_frames_per_level == 3600
        assert config.observation.max_balls == 8

    def test_finite_max_level(self, raw_config, write_config):
        raw_config["level"]["max_level"] = 10
        config = load_config(write_config(raw_config))
        assert config.level.max_level == 10
        assert not config.is_endless

    @pytest.mark.parametrize("section,key,value", [
        ("maze", "base_cols", 12),
        ("maze", "max_rows", 24),
        ("maze", "min_grid", 3),
        ("maze", "min_cell_size", 0),
        ("physics", "bounce_factor", 1.5),
        ("physics", "friction", 0.0),
        ("physics", "max_velocity", -1),
        ("physics", "exit_delay_ticks", -1),
        ("observation", "max_balls", 0),
        ("observation", "frame_skip", 0),
    ])
    def test_invalid_values(self, raw_config, write_config, section, key, value):
        raw_config[section][key] = value
        with pytest.raises(ValueError):
            load_config(write_config(raw_config))

    def test_min_grid_matches_carving_minimum(self, raw_config, write_config):
        """Config accepts exactly the smallest grid the carver accepts."""
        raw_config["maze"]["min_grid"] = MIN_GRID_SIZE
        config = load_config(write_config(raw_config))
        assert generate_grid(config.maze.min_grid, config.maze.min_grid, MazeRandom(1)).shape == (
            MIN_GRID_SIZE, MIN_GRID_SIZE)

        raw_config["maze"]["min_grid"] = MIN_GRID_SIZE - 2
        with pytest.raises(ValueError):
            load_config(write_config(raw_config))
        with pytest.raises(ValueError):
            generate_grid(MIN_GRID_SIZE - 2, MIN_GRID_SIZE, MazeRandom(1))

    def test_exit_score_count_must_match(self, raw_config, write_config):
        raw_config["exit"]["scores"] = [500, 100, 1000, 0]
        with pytest.raises(ValueError):
            load_config(write_config(raw_config))

    def test_exit_position_range(self, raw_config, write_config):
        raw_config["exit"]["positions"] = [0.1, 0.3, 0.5, 0.7, 1.0]
        with pytest.raises(ValueError):
            load_config(write_config(raw_config))

    def test_bad_color(self, raw_config, write_config):
        raw_config["exit"]["colors"][0] = [1, 2]
        with pytest.raises(ValueError):
            load_config(write_config(raw_config))

    def test_bad_margins(self, raw_config, write_config):
        raw_config["maze"]["margins_portrait"] = [20, 20, 100]
        with pytest.raises(ValueError):
            load_config(write_config(raw_config))


class TestCache:
    """Test the module-level cache."""

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_reload_replaces_cache(self, raw_config, write_config):
        try:
            raw_config["level"]["target_score"] = 750
            reloaded = reload_config(write_config(raw_config))
            assert reloaded.level.target_score == 750
            assert get_config() is reloaded
        finally:
            reload_config()
        assert get_config().level.target_score == 1000
