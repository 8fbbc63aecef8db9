"""
Maze Viewer - Terminal Inspection
=================================

Prints a generated maze, its exit zones and, optionally, a headless run
of the level with the ball drawn on the grid.

Usage:
    python -m tools.view_maze [--level L] [--seed S] [--width W] [--height H]
    python -m tools.view_maze --simulate --tilt 0.2 0.0 --every 60
"""

from __future__ import annotations

import argparse
import math
import sys
from typing import List

from exit_vector.maze_core.config_loader import load_config
from exit_vector.maze_core.game import CoreGame
from exit_vector.maze_core.physics_engine import ExitScoredEvent, WallHitEvent


def render_with_balls(game: CoreGame) -> str:
    """ASCII maze with every active ball drawn as 'o'."""
    lines: List[List[str]] = [list(row) for row in game.maze.to_ascii().split("\n")]
    cell_size = game.maze.get_dimensions().cell_size

    for ball in game.physics.get_balls():
        if not ball.active:
            continue
        row = int(math.floor(ball.y / cell_size))
        col = int(math.floor(ball.x / cell_size))
        if 0 <= row < len(lines) and 0 <= col < len(lines[row]):
            lines[row][col] = "o"

    return "\n".join("".join(line) for line in lines)


def describe_level(game: CoreGame) -> None:
    """Print the grid and exit zone table for the current level."""
    dims = game.maze.get_dimensions()
    print(f"Level {game.level}  seed={game.level_seed}")
    print(f"Grid {dims.cols}x{dims.rows}  cell={dims.cell_size}px  "
          f"ball radius={dims.ball_radius}px  maze={dims.width}x{dims.height}px")
    print()
    print(game.maze.to_ascii())
    print()
    print(f"{'Zone':<6} {'x':>8} {'width':>8} {'score':>6} {'column':>7}")
    for i, zone in enumerate(game.maze.get_exit_zones()):
        print(f"{i:<6} {zone.x:>8.1f} {zone.width:>8.1f} {zone.score:>6} {zone.column:>7}")


def simulate(game: CoreGame, tilt: List[float], every: int, max_frames: int) -> None:
    """Run the level headless, printing the grid every `every` frames."""
    sensitivity = game.config.control.tilt_sensitivity
    gravity = (tilt[0] * sensitivity, tilt[1] * sensitivity)
    wall_hits = 0

    while game.frame < max_frames:
        result = game.tick(gravity)
        for event in result.events:
            if isinstance(event, ExitScoredEvent):
                print(f"Frame {result.frame}: ball {event.ball_uid} exited at "
                      f"x={event.x:.1f} for {event.score.points} points")
            elif isinstance(event, WallHitEvent):
                wall_hits += 1

        if every > 0 and game.frame % every == 0:
            print(f"--- frame {game.frame} ---")
            print(render_with_balls(game))

        if result.level_complete:
            break

    print()
    print(f"Frames: {game.frame}  wall hits: {wall_hits}  "
          f"score: {game.score}/{game.target_score}  state: {game.state.value}")


def main():
    parser = argparse.ArgumentParser(description="Print an Exit Vector maze")
    parser.add_argument("--level", type=int, default=1, help="Level to generate")
    parser.add_argument("--seed", type=int, default=None, help="Maze seed (clock if omitted)")
    parser.add_argument("--width", type=float, default=480, help="Screen width in pixels")
    parser.add_argument("--height", type=float, default=860, help="Screen height in pixels")
    parser.add_argument("--config", type=str, default=None, help="Path to game_config.yaml")
    parser.add_argument("--simulate", action="store_true", help="Play the level headless")
    parser.add_argument("--tilt", type=float, nargs=2, default=[0.0, 0.0],
                        help="Constant tilt in [-1, 1] while simulating")
    parser.add_argument("--every", type=int, default=0,
                        help="Print the grid every N frames while simulating")

    args = parser.parse_args()

    config = load_config(args.config)
    game = CoreGame(config=config, screen_width=args.width, screen_height=args.height)
    game.start_level(level=args.level, seed=args.seed)

    describe_level(game)

    if args.simulate:
        print()
        simulate(game, args.tilt, args.every, config.caps.max_frames_per_level)

    return 0


if __name__ == "__main__":
    sys.exit(main())
