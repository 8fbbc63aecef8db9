"""
Tests for maze generation, layout and derived geometry.
"""

from collections import deque

import numpy as np
import pytest

from exit_vector.maze_core.config_loader import load_config
from exit_vector.maze_core.maze import (
    CellType,
    MazeGenerator,
    build_exit_zones,
    build_wall_rects,
    carve_entry_and_exits,
    compute_layout,
    generate_grid,
    start_column,
)
from exit_vector.maze_core.rng import MazeRandom


GRID_SIZES = [(9, 9), (11, 13), (13, 15), (21, 25), (17, 9)]
SEEDS = [0, 1, 42, 1234, 987654321]


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def generator(config):
    gen = MazeGenerator(config)
    gen.init(1, 480, 860, seed=42)
    return gen


def _open_cells(grid):
    return {(int(r), int(c)) for r, c in np.argwhere(grid != CellType.WALL)}


def _reachable(grid, start):
    """Cells reachable from start through non-wall cells (4-neighbour)."""
    rows, cols = grid.shape
    seen = {start}
    queue = deque([start])
    while queue:
        r, c = queue.popleft()
        for dr, dc in ((1, 0), (-1, 0), (0, 1), (0, -1)):
            nr, nc = r + dr, c + dc
            if (0 <= nr < rows and 0 <= nc < cols and (nr, nc) not in seen
                    and grid[nr, nc] != CellType.WALL):
                seen.add((nr, nc))
                queue.append((nr, nc))
    return seen


def _edge_count(grid):
    """Number of adjacent open-cell pairs."""
    open_mask = grid != CellType.WALL
    horizontal = np.sum(open_mask[:, :-1] & open_mask[:, 1:])
    vertical = np.sum(open_mask[:-1, :] & open_mask[1:, :])
    return int(horizontal + vertical)


class TestCarving:
    """Test the recursive backtracking carve."""

    @pytest.mark.parametrize("cols,rows", GRID_SIZES)
    @pytest.mark.parametrize("seed", SEEDS)
    def test_carved_maze_is_perfect(self, cols, rows, seed):
        """Every path cell is connected and there are no cycles."""
        grid = generate_grid(cols, rows, MazeRandom(seed))
        open_cells = _open_cells(grid)

        start = (1, start_column(cols))
        assert _reachable(grid, start) == open_cells
        assert _edge_count(grid) == len(open_cells) - 1

    @pytest.mark.parametrize("cols,rows", GRID_SIZES)
    def test_every_room_is_carved(self, cols, rows):
        """All odd-coordinate cells end up as path."""
        grid = generate_grid(cols, rows, MazeRandom(7))
        rooms = grid[1:rows - 1:2, 1:cols - 1:2]
        assert np.all(rooms == CellType.PATH)

    def test_border_is_untouched(self):
        """Carving never opens the outer border."""
        grid = generate_grid(11, 13, MazeRandom(3))
        assert np.all(grid[0, :] == CellType.WALL)
        assert np.all(grid[-1, :] == CellType.WALL)
        assert np.all(grid[:, 0] == CellType.WALL)
        assert np.all(grid[:, -1] == CellType.WALL)

    def test_same_seed_same_grid(self):
        """Same seed should produce the same maze."""
        grid1 = generate_grid(21, 25, MazeRandom(42))
        grid2 = generate_grid(21, 25, MazeRandom(42))
        assert np.array_equal(grid1, grid2)

    def test_different_seeds_differ(self):
        """Different seeds should produce different mazes."""
        grids = [generate_grid(21, 25, MazeRandom(seed)) for seed in SEEDS]
        assert any(not np.array_equal(grids[0], g) for g in grids[1:])

    @pytest.mark.parametrize("cols,rows", [(10, 11), (11, 12), (3, 9), (9, 3)])
    def test_rejects_bad_dimensions(self, cols, rows):
        """Even or tiny grids are refused."""
        with pytest.raises(ValueError):
            generate_grid(cols, rows, MazeRandom(1))

    def test_start_column_is_odd(self):
        """Carving starts on a room column near the centre."""
        assert start_column(11) == 5
        assert start_column(13) == 7
        assert start_column(9) == 5
        assert start_column(21) == 11


class TestEntryAndExits:
    """Test entry and exit carving."""

    @pytest.mark.parametrize("cols,rows", GRID_SIZES)
    @pytest.mark.parametrize("seed", SEEDS)
    def test_everything_reachable_from_entry(self, config, cols, rows, seed):
        """Path, entry and exit cells are all reachable from the entry."""
        grid = generate_grid(cols, rows, MazeRandom(seed))
        entry_col, exit_columns = carve_entry_and_exits(grid, config.exit.positions)

        assert _reachable(grid, (0, entry_col)) == _open_cells(grid)
        assert len(exit_columns) == 5

    def test_border_invariant(self, generator):
        """Border is wall except the entry (top) and exits (bottom)."""
        grid = generator.get_grid()
        entry_col = generator.entry_column

        top = [c for c in range(grid.shape[1]) if grid[0, c] != CellType.WALL]
        assert top == [entry_col]
        assert grid[0, entry_col] == CellType.ENTRY

        bottom = {c for c in range(grid.shape[1]) if grid[-1, c] != CellType.WALL}
        assert bottom == set(generator.exit_columns)
        assert all(grid[-1, c] == CellType.EXIT for c in bottom)

        assert np.all(grid[:, 0] == CellType.WALL)
        assert np.all(grid[:, -1] == CellType.WALL)

    def test_exits_open_onto_path(self, generator):
        """The cell above every exit is path."""
        grid = generator.get_grid()
        rows = grid.shape[0]
        for col in generator.exit_columns:
            assert grid[rows - 2, col] == CellType.PATH

    def test_nearest_path_tie_prefers_left(self):
        """Equidistant path cells resolve to the first one scanned."""
        grid = np.full((9, 9), CellType.WALL, dtype=np.int8)
        grid[7, 1] = CellType.PATH
        grid[7, 3] = CellType.PATH
        _, exit_columns = carve_entry_and_exits(grid, [0.25])
        assert exit_columns == [1]

    def test_no_path_row_falls_back_and_carves_up(self):
        """Without any path above, exits still connect and the top stays closed."""
        grid = np.full((9, 9), CellType.WALL, dtype=np.int8)
        entry_col, exit_columns = carve_entry_and_exits(grid, [0.1, 0.3, 0.5, 0.7, 0.9])

        assert exit_columns == [1, 2, 4, 6, 7]
        for col in exit_columns:
            assert grid[8, col] == CellType.EXIT
            assert np.all(grid[1:8, col] == CellType.PATH)

        top_open = [c for c in range(9) if grid[0, c] != CellType.WALL]
        assert top_open == [entry_col]


class TestLayout:
    """Test screen-dependent sizing."""

    def test_portrait_level_one(self, config):
        layout = compute_layout(1, 480, 860, config)
        assert (layout.cols, layout.rows) == (11, 13)
        assert layout.cell_size == 40
        assert not layout.is_landscape
        assert (layout.margin_left, layout.margin_top) == (20, 100)

    def test_landscape_margins(self, config):
        layout = compute_layout(1, 1280, 720, config)
        assert layout.is_landscape
        assert (layout.margin_left, layout.margin_top) == (120, 20)
        # Available height 720 - 20 - 100 - 45 = 555 over 13 rows
        assert layout.cell_size == 42

    def test_grid_grows_with_level_and_caps(self, config):
        assert compute_layout(3, 2000, 3000, config).cols == 13
        assert compute_layout(4, 2000, 3000, config).rows == 15
        layout = compute_layout(30, 2000, 3000, config)
        assert (layout.cols, layout.rows) == (21, 25)

    def test_small_screen_pins_cell_size(self, config):
        """Cells never shrink below the minimum; the grid shrinks instead."""
        layout = compute_layout(1, 320, 400, config)
        assert layout.cell_size == config.maze.min_cell_size
        assert layout.cols % 2 == 1 and layout.rows % 2 == 1
        assert layout.cols * layout.cell_size <= 320 - 40
        # Width fits 17 columns at 16px but the level 1 target is 11
        assert (layout.cols, layout.rows) == (11, 9)

    @pytest.mark.parametrize("level", [1, 12, 40])
    def test_wide_short_screen_never_exceeds_target(self, config, level):
        layout = compute_layout(level, 1920, 300, config)
        target = compute_layout(level, 2000, 3000, config)

        assert layout.cell_size == config.maze.min_cell_size
        assert layout.cols <= config.maze.max_cols
        assert layout.cols <= target.cols
        assert layout.rows == config.maze.min_grid

    def test_tiny_screen_keeps_minimum_grid(self, config):
        layout = compute_layout(1, 100, 100, config)
        assert layout.cell_size == config.maze.min_cell_size
        assert (layout.cols, layout.rows) == (9, 9)

    @pytest.mark.parametrize("width,height", [(480, 860), (1280, 720), (375, 667), (1024, 1366)])
    @pytest.mark.parametrize("level", [1, 5, 12, 40])
    def test_dimensions_always_odd(self, config, width, height, level):
        layout = compute_layout(level, width, height, config)
        assert layout.cols % 2 == 1
        assert layout.rows % 2 == 1
        assert layout.cols >= config.maze.min_grid
        assert layout.rows >= config.maze.min_grid


class TestDerivedGeometry:
    """Test exit zones, wall rectangles and queries."""

    def test_exit_zones_tile_the_width(self, generator):
        zones = generator.get_exit_zones()
        width = generator.width

        assert len(zones) == 5
        assert zones[0].x == 0
        for left, right in zip(zones, zones[1:]):
            assert left.x + left.width == pytest.approx(right.x)
        assert zones[-1].x + zones[-1].width == pytest.approx(width)

        widths = [z.width for z in zones]
        assert widths == pytest.approx([width / 5] * 5)

    def test_exit_zone_scores_fixed_by_position(self, config):
        """Scores follow position, not where exits were carved."""
        zones = build_exit_zones(500, 400, 11, [9, 7, 5, 3, 1], config.exit)
        assert [z.score for z in zones] == [500, 100, 1000, 0, 250]
        assert [z.label for z in zones] == ["500", "100", "1000", "0", "250"]
        assert [z.column for z in zones] == [9, 7, 5, 3, 1]
        assert all(z.y == 400 for z in zones)
        assert all(z.height == config.exit.zone_height for z in zones)

    def test_missing_exit_columns_get_default(self, config):
        zones = build_exit_zones(500, 400, 11, [], config.exit)
        assert [z.column for z in zones] == [1, 3, 5, 7, 9]

    def test_wall_rect_per_wall_cell(self, generator):
        grid = generator.get_grid()
        rects = generator.get_wall_rects()
        cell = generator.get_dimensions().cell_size

        assert len(rects) == int(np.sum(grid == CellType.WALL))
        for rect in rects:
            assert rect.width == cell and rect.height == cell
            row, col = int(rect.y // cell), int(rect.x // cell)
            assert grid[row, col] == CellType.WALL

    def test_wall_rects_row_major(self):
        grid = np.array([[0, 1, 0], [1, 0, 1]], dtype=np.int8)
        rects = build_wall_rects(grid, 10)
        assert [(r.x, r.y) for r in rects] == [(0.0, 0.0), (20.0, 0.0), (10.0, 10.0)]

    def test_dimensions(self, generator):
        dims = generator.get_dimensions()
        assert (dims.cols, dims.rows, dims.cell_size) == (11, 13, 40)
        assert dims.width == 440 and dims.height == 520
        assert dims.ball_radius == 14
        assert (dims.margin_left, dims.margin_top) == (20, 100)

    @pytest.mark.parametrize("cell_size,expected", [(40, 14), (16, 5), (50, 17)])
    def test_ball_radius_fits_corridors(self, config, cell_size, expected):
        gen = MazeGenerator(config)
        gen.generate(11, 13, cell_size, seed=1)
        assert gen.ball_radius == expected
        assert 2 * gen.ball_radius < cell_size

    def test_ball_radius_floor_below_min_cell(self, config):
        gen = MazeGenerator(config)
        gen.generate(11, 13, 10, seed=1)
        assert gen.ball_radius == config.maze.min_ball_radius

    def test_is_wall(self, generator):
        cell = generator.get_dimensions().cell_size
        entry_x, entry_y = generator.entry_position

        assert generator.is_wall(1, 1)
        assert not generator.is_wall(entry_x, entry_y)
        assert not generator.is_wall(entry_x, cell / 2)  # entry cell
        assert generator.is_wall(-1, entry_y)
        assert generator.is_wall(entry_x, generator.height + 1)
        assert generator.is_wall(generator.width + 5, 5)

    def test_exit_zone_for_x_prefers_left_on_boundary(self, generator):
        zones = generator.get_exit_zones()
        assert generator.get_exit_zone_for_x(zones[1].x) is zones[0]
        assert generator.get_exit_zone_for_x(zones[2].x + 1) is zones[2]
        assert generator.get_exit_zone_for_x(-5) is None

    def test_grid_is_read_only(self, generator):
        grid = generator.get_grid()
        with pytest.raises(ValueError):
            grid[0, 0] = CellType.PATH


class TestSpawnPositions:
    """Test ball spawn placement."""

    def test_single_ball_spawns_at_entry(self, generator):
        positions = generator.get_spawn_positions(1)
        assert positions == [generator.entry_position]
        assert generator.entry_position == (220.0, 60.0)

    def test_multiple_balls_are_fanned_out(self, generator):
        positions = generator.get_spawn_positions(3)
        xs = [p[0] for p in positions]
        ys = [p[1] for p in positions]
        entry_x, entry_y = generator.entry_position

        assert len(set(xs)) == 3
        assert sum(xs) / 3 == pytest.approx(entry_x)
        assert ys[0] == entry_y
        assert ys == sorted(ys)

    def test_spawns_are_in_open_cells(self, generator):
        for x, y in generator.get_spawn_positions(4):
            assert not generator.is_wall(x, y)


class TestGeneratorDeterminism:
    """Test MazeGenerator seeding."""

    def test_same_seed_same_level(self, config):
        gen1 = MazeGenerator(config)
        gen2 = MazeGenerator(config)
        gen1.init(5, 480, 860, seed=99)
        gen2.init(5, 480, 860, seed=99)

        assert np.array_equal(gen1.get_grid(), gen2.get_grid())
        assert gen1.get_wall_rects() == gen2.get_wall_rects()
        assert gen1.get_exit_zones() == gen2.get_exit_zones()

    def test_seed_recorded(self, config):
        gen = MazeGenerator(config)
        gen.init(1, 480, 860, seed=1234)
        assert gen.seed == 1234

    def test_unseeded_uses_clock(self, config):
        gen = MazeGenerator(config)
        gen.init(1, 480, 860)
        assert gen.seed is not None

    def test_ascii_rendering(self, generator):
        text = generator.to_ascii().split("\n")
        assert len(text) == 13
        assert all(len(line) == 11 for line in text)
        assert text[0].count("E") == 1
        assert text[-1].count("X") == len(set(generator.exit_columns))


class TestMazeRandom:
    """Test the seeded random source."""

    def test_same_seed_same_sequence(self):
        rng1 = MazeRandom(42)
        rng2 = MazeRandom(42)
        assert [rng1.next_float() for _ in range(5)] == [rng2.next_float() for _ in range(5)]
        assert [rng1.next_int(0, 10) for _ in range(5)] == [rng2.next_int(0, 10) for _ in range(5)]

    def test_next_int_range(self):
        rng = MazeRandom(1)
        values = [rng.next_int(3, 7) for _ in range(200)]
        assert min(values) >= 3 and max(values) < 7

    def test_shuffled_leaves_input(self):
        items = [1, 2, 3, 4, 5]
        result = MazeRandom(7).shuffled(items)
        assert items == [1, 2, 3, 4, 5]
        assert sorted(result) == items

    def test_reset_restarts_sequence(self):
        rng = MazeRandom(9)
        first = [rng.next_float() for _ in range(3)]
        rng.reset()
        assert [rng.next_float() for _ in range(3)] == first

        rng.reset(10)
        fresh = MazeRandom(10)
        assert rng.seed == 10
        assert [rng.next_float() for _ in range(3)] == [fresh.next_float() for _ in range(3)]
