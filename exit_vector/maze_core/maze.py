"""
Maze Generator
==============

Labyrinth generation by recursive backtracking, with a single entry at the
top and five scored exits carved through the bottom border.

The grid is a numpy int8 array indexed [row, col]. Odd coordinates are
"rooms"; even coordinates between two rooms are the walls that carving
knocks through.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from exit_vector.maze_core.config_loader import (
    MIN_GRID_SIZE,
    ExitConfig,
    GameConfig,
    get_config,
)
from exit_vector.maze_core.geometry import Rect, WallRect
from exit_vector.maze_core.rng import MazeRandom


class CellType(IntEnum):
    """Cell tags stored in the maze grid."""
    WALL = 0
    PATH = 1
    ENTRY = 2
    EXIT = 3


# (dx, dy): up, right, down, left
DIRECTIONS: Tuple[Tuple[int, int], ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))


@dataclass(frozen=True)
class ExitZone:
    """Scored band under the maze's bottom edge."""
    x: float
    y: float
    width: float
    height: float
    score: int
    label: str
    column: int                    # Grid column carved for this zone's index
    color: Tuple[int, int, int]

    @property
    def right(self) -> float:
        return self.x + self.width

    def contains_x(self, x: float) -> bool:
        """Inclusive on both edges; callers scan left to right."""
        return self.x <= x <= self.x + self.width


@dataclass(frozen=True)
class MazeDimensions:
    """Pixel and grid sizes handed to renderers and the physics engine."""
    width: float
    height: float
    cell_size: int
    cols: int
    rows: int
    ball_radius: int
    margin_left: int
    margin_top: int


@dataclass(frozen=True)
class MazeLayout:
    """Grid size and cell size chosen for a screen."""
    cols: int
    rows: int
    cell_size: int
    margin_left: int
    margin_top: int
    is_landscape: bool


def compute_layout(
    level: int,
    canvas_width: float,
    canvas_height: float,
    config: Optional[GameConfig] = None
) -> MazeLayout:
    """
    Pick grid dimensions and cell size for a level on a given screen.

    The grid grows with the level up to the configured caps. If the cells
    would drop below the minimum playable size, the cell size is pinned
    to that minimum and the grid shrinks instead: never past the level's
    target size and never below min_grid.

    Args:
        level: Level number (1-based).
        canvas_width: Screen width in pixels.
        canvas_height: Screen height in pixels.
        config: Game configuration. Uses default if None.

    Returns:
        MazeLayout with odd cols/rows.
    """
    if config is None:
        config = get_config()

    maze = config.maze
    is_landscape = canvas_width > canvas_height
    if is_landscape:
        margin_left, margin_right, margin_top, margin_bottom = maze.margins_landscape
    else:
        margin_left, margin_right, margin_top, margin_bottom = maze.margins_portrait

    available_width = canvas_width - margin_left - margin_right
    available_height = (canvas_height - margin_top - margin_bottom
                        - config.exit.zone_height)

    cols = min(maze.max_cols, maze.base_cols + (level // maze.cols_level_step) * 2)
    rows = min(maze.max_rows, maze.base_rows + (level // maze.rows_level_step) * 2)
    if cols % 2 == 0:
        cols += 1
    if rows % 2 == 0:
        rows += 1

    cell_size = int(math.floor(min(available_width / cols, available_height / rows)))

    if cell_size < maze.min_cell_size:
        cell_size = maze.min_cell_size
        cols = min(cols, int(available_width // cell_size))
        rows = min(rows, int(available_height // cell_size))
        if cols % 2 == 0:
            cols -= 1
        if rows % 2 == 0:
            rows -= 1
        cols = max(maze.min_grid, cols)
        rows = max(maze.min_grid, rows)

    return MazeLayout(
        cols=cols,
        rows=rows,
        cell_size=cell_size,
        margin_left=margin_left,
        margin_top=margin_top,
        is_landscape=is_landscape
    )


def start_column(cols: int) -> int:
    """Top-center room column (odd) where carving starts and the entry sits."""
    col = cols // 2
    if col % 2 == 0:
        col += 1
    return col


def generate_grid(cols: int, rows: int, rng: MazeRandom) -> np.ndarray:
    """
    Carve a perfect maze by randomized depth-first backtracking.

    Uses an explicit stack that visits cells in exactly the order the
    recursive formulation would, so deep grids cannot hit the recursion
    limit.

    Args:
        cols: Grid width in cells (odd, >= MIN_GRID_SIZE).
        rows: Grid height in cells (odd, >= MIN_GRID_SIZE).
        rng: Random source driving direction order.

    Returns:
        (rows, cols) int8 array of WALL / PATH cells.

    Raises:
        ValueError: If a dimension is even or too small.
    """
    for name, value in (("cols", cols), ("rows", rows)):
        if value % 2 == 0:
            raise ValueError(f"{name} must be odd, got {value}")
        if value < MIN_GRID_SIZE:
            raise ValueError(f"{name} must be at least {MIN_GRID_SIZE}, got {value}")

    grid = np.full((rows, cols), CellType.WALL, dtype=np.int8)

    start_x = start_column(cols)
    start_y = 1
    grid[start_y, start_x] = CellType.PATH

    stack: List[Tuple[int, int, Iterator[Tuple[int, int]]]] = [
        (start_x, start_y, iter(rng.shuffled(DIRECTIONS)))
    ]
    while stack:
        x, y, directions = stack[-1]
        for dx, dy in directions:
            nx = x + dx * 2
            ny = y + dy * 2
            if (0 < nx < cols - 1 and 0 < ny < rows - 1
                    and grid[ny, nx] == CellType.WALL):
                grid[y + dy, x + dx] = CellType.PATH
                grid[ny, nx] = CellType.PATH
                stack.append((nx, ny, iter(rng.shuffled(DIRECTIONS))))
                break
        else:
            stack.pop()

    return grid


def _nearest_path_column(row: np.ndarray, target: int) -> Optional[int]:
    """Interior column of PATH closest to target; first found wins ties."""
    best_col = None
    best_dist = None
    for x in range(1, len(row) - 1):
        if row[x] == CellType.PATH:
            dist = abs(x - target)
            if best_dist is None or dist < best_dist:
                best_dist = dist
                best_col = x
    return best_col


def carve_entry_and_exits(
    grid: np.ndarray,
    positions: Sequence[float]
) -> Tuple[int, List[int]]:
    """
    Open the entry in the top border and the exits in the bottom border.

    Each exit goes under the PATH cell of the second-to-last row nearest
    to its relative position. Should that row hold no PATH at all, the
    target column itself is used and a corridor is carved upward until it
    meets PATH (stopping at row 1, so the top border stays closed).

    Args:
        grid: Carved grid, modified in place.
        positions: Relative horizontal positions of the exits, in [0, 1).

    Returns:
        (entry_column, exit_columns) with one exit column per position.
    """
    rows, cols = grid.shape

    entry_col = start_column(cols)
    grid[0, entry_col] = CellType.ENTRY
    grid[1, entry_col] = CellType.PATH

    exit_columns: List[int] = []
    for pos in positions:
        target = int(math.floor(pos * cols))
        col = _nearest_path_column(grid[rows - 2], target)
        if col is None:
            col = max(1, min(target, cols - 2))
        grid[rows - 1, col] = CellType.EXIT
        exit_columns.append(col)

    for col in exit_columns:
        if grid[rows - 2, col] == CellType.WALL:
            for y in range(rows - 2, 0, -1):
                if grid[y, col] == CellType.PATH:
                    break
                grid[y, col] = CellType.PATH

    return entry_col, exit_columns


def build_exit_zones(
    width: float,
    height: float,
    cols: int,
    exit_columns: Sequence[int],
    exit_config: ExitConfig
) -> List[ExitZone]:
    """
    Split the bottom edge into equal scored bands.

    Scores follow the configured left-to-right order regardless of where
    the exits were actually carved.
    """
    count = exit_config.zone_count
    zone_width = width / count

    zones = []
    for i in range(count):
        if i < len(exit_columns):
            column = exit_columns[i]
        else:
            column = int((i + 0.5) * cols / count)
        score = exit_config.scores[i]
        zones.append(ExitZone(
            x=i * zone_width,
            y=height,
            width=zone_width,
            height=exit_config.zone_height,
            score=score,
            label=str(score),
            column=column,
            color=exit_config.colors[i]
        ))
    return zones


def build_wall_rects(grid: np.ndarray, cell_size: float) -> List[WallRect]:
    """One cell-sized rectangle per WALL cell, in row-major order."""
    return [
        Rect(
            x=float(col * cell_size),
            y=float(row * cell_size),
            width=float(cell_size),
            height=float(cell_size)
        )
        for row, col in np.argwhere(grid == CellType.WALL)
    ]


class MazeGenerator:
    """
    Builds a playable maze and its collision/scoring geometry.

    One instance per maze; init() rebuilds everything for a new level.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize generator.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._grid: np.ndarray = np.zeros((0, 0), dtype=np.int8)
        self._cols: int = 0
        self._rows: int = 0
        self._cell_size: int = 0
        self._level: int = 1
        self._seed: Optional[int] = None
        self._margin_left: int = 20
        self._margin_top: int = 20
        self._entry_col: int = 0
        self._exit_columns: List[int] = []
        self._exit_zones: List[ExitZone] = []
        self._wall_rects: List[WallRect] = []

    def init(
        self,
        level: int,
        canvas_width: float,
        canvas_height: float,
        seed: Optional[int] = None
    ) -> MazeDimensions:
        """
        Build the maze for a level sized to the screen.

        Args:
            level: Level number (1-based).
            canvas_width: Screen width in pixels.
            canvas_height: Screen height in pixels.
            seed: Carving seed. Clock-derived if None.

        Returns:
            Dimensions of the new maze.
        """
        layout = compute_layout(level, canvas_width, canvas_height, self._config)
        return self.generate(
            cols=layout.cols,
            rows=layout.rows,
            cell_size=layout.cell_size,
            seed=seed,
            level=level,
            margin_left=layout.margin_left,
            margin_top=layout.margin_top
        )

    def generate(
        self,
        cols: int,
        rows: int,
        cell_size: int,
        seed: Optional[int] = None,
        level: int = 1,
        margin_left: int = 20,
        margin_top: int = 20
    ) -> MazeDimensions:
        """
        Build a maze with an explicit grid and cell size.

        Args:
            cols: Grid width (odd).
            rows: Grid height (odd).
            cell_size: Cell edge in pixels.
            seed: Carving seed. Clock-derived if None.
            level: Level number recorded with the maze.
            margin_left: Screen offset of the maze, for renderers.
            margin_top: Screen offset of the maze, for renderers.

        Returns:
            Dimensions of the new maze.
        """
        rng = MazeRandom(seed)

        self._level = level
        self._seed = rng.seed
        self._cols = cols
        self._rows = rows
        self._cell_size = cell_size
        self._margin_left = margin_left
        self._margin_top = margin_top

        grid = generate_grid(cols, rows, rng)
        self._entry_col, self._exit_columns = carve_entry_and_exits(
            grid, self._config.exit.positions
        )
        self._grid = grid

        self._exit_zones = build_exit_zones(
            self.width, self.height, cols, self._exit_columns, self._config.exit
        )
        self._wall_rects = build_wall_rects(grid, cell_size)

        return self.get_dimensions()

    @property
    def width(self) -> float:
        """Maze width in pixels."""
        return self._cols * self._cell_size

    @property
    def height(self) -> float:
        """Maze height in pixels."""
        return self._rows * self._cell_size

    @property
    def level(self) -> int:
        return self._level

    @property
    def seed(self) -> Optional[int]:
        """Seed the current maze was carved with."""
        return self._seed

    @property
    def ball_radius(self) -> int:
        """Ball radius that fits single-cell corridors."""
        maze = self._config.maze
        return max(maze.min_ball_radius,
                   int(math.floor(self._cell_size * maze.ball_radius_ratio)))

    @property
    def entry_column(self) -> int:
        return self._entry_col

    @property
    def entry_position(self) -> Tuple[float, float]:
        """Pixel centre of the first room below the entry."""
        return ((self._entry_col + 0.5) * self._cell_size, self._cell_size * 1.5)

    @property
    def exit_columns(self) -> List[int]:
        """Grid columns of the carved exits, in position order."""
        return list(self._exit_columns)

    def get_dimensions(self) -> MazeDimensions:
        """Pixel and grid sizes of the current maze."""
        return MazeDimensions(
            width=self.width,
            height=self.height,
            cell_size=self._cell_size,
            cols=self._cols,
            rows=self._rows,
            ball_radius=self.ball_radius,
            margin_left=self._margin_left,
            margin_top=self._margin_top
        )

    def get_grid(self) -> np.ndarray:
        """Read-only view of the grid."""
        view = self._grid.view()
        view.flags.writeable = False
        return view

    def get_wall_rects(self) -> List[WallRect]:
        return list(self._wall_rects)

    def get_exit_zones(self) -> List[ExitZone]:
        return list(self._exit_zones)

    def get_exit_zone_for_x(self, x: float) -> Optional[ExitZone]:
        """First zone (left to right) whose span contains x."""
        for zone in self._exit_zones:
            if zone.contains_x(x):
                return zone
        return None

    def get_spawn_positions(self, ball_count: int) -> List[Tuple[float, float]]:
        """
        Spawn points clustered on the entry column.

        Balls are fanned out horizontally and stepped down slightly so
        that several never start exactly on top of each other.
        """
        default_radius = self._config.physics.ball_radius
        spacing = default_radius * 2.2
        entry_x, entry_y = self.entry_position

        positions = []
        for i in range(ball_count):
            offset = (i - (ball_count - 1) / 2) * spacing
            positions.append((
                entry_x + offset * 0.3,
                entry_y + i * (default_radius * 0.5)
            ))
        return positions

    def is_wall(self, x: float, y: float) -> bool:
        """True if the pixel lies in a WALL cell; outside the grid counts as wall."""
        if self._cell_size <= 0:
            return True
        col = int(math.floor(x / self._cell_size))
        row = int(math.floor(y / self._cell_size))
        if col < 0 or col >= self._cols or row < 0 or row >= self._rows:
            return True
        return bool(self._grid[row, col] == CellType.WALL)

    def to_ascii(self) -> str:
        """Text rendering of the grid: '#' wall, ' ' path, 'E' entry, 'X' exit."""
        symbols = {
            CellType.WALL: "#",
            CellType.PATH: " ",
            CellType.ENTRY: "E",
            CellType.EXIT: "X",
        }
        return "\n".join(
            "".join(symbols[CellType(int(cell))] for cell in row)
            for row in self._grid
        )
