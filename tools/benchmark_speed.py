"""
Performance Benchmark
=====================

Measures physics frame throughput and maze generation speed.

Usage:
    python -m tools.benchmark_speed [--frames F] [--levels L ...]
"""

from __future__ import annotations

import argparse
import sys
import time
import numpy as np

from exit_vector.maze_core.config_loader import load_config
from exit_vector.maze_core.env_gym import MazeEnv
from exit_vector.maze_core.game import CoreGame
from exit_vector.maze_core.maze import MazeGenerator


def benchmark_maze_generation(
    level: int = 1,
    num_mazes: int = 200,
    seed: int = 42
) -> dict:
    """
    Benchmark maze generation for one level.

    Args:
        level: Level whose layout is generated.
        num_mazes: Number of mazes to carve.
        seed: First seed; each maze uses seed + i.

    Returns:
        Dict with timing results.
    """
    generator = MazeGenerator(load_config())

    start = time.perf_counter()
    for i in range(num_mazes):
        generator.init(level, 480, 860, seed=seed + i)
    elapsed = time.perf_counter() - start

    dims = generator.get_dimensions()
    return {
        "mode": f"maze L{level} {dims.cols}x{dims.rows}",
        "count": num_mazes,
        "elapsed_seconds": elapsed,
        "per_second": num_mazes / elapsed,
        "ms_each": (elapsed * 1000) / num_mazes
    }


def benchmark_core_game(
    level: int = 1,
    num_frames: int = 2000,
    seed: int = 42
) -> dict:
    """
    Benchmark raw CoreGame ticks (no Gymnasium overhead).

    Args:
        level: Level to play.
        num_frames: Number of frames to simulate.
        seed: Random seed for mazes and tilt input.

    Returns:
        Dict with timing results.
    """
    game = CoreGame(config=load_config(), seed=seed)
    rng = np.random.default_rng(seed)

    game.start_level(level=level)
    start = time.perf_counter()

    for _ in range(num_frames):
        gravity = tuple(rng.uniform(-0.25, 0.25, size=2))
        result = game.tick(gravity)
        if result.level_complete:
            game.restart_level()

    elapsed = time.perf_counter() - start

    return {
        "mode": f"core_game L{level}",
        "count": num_frames,
        "elapsed_seconds": elapsed,
        "per_second": num_frames / elapsed,
        "ms_each": (elapsed * 1000) / num_frames
    }


def benchmark_env(
    level: int = 1,
    num_steps: int = 2000,
    seed: int = 42
) -> dict:
    """
    Benchmark MazeEnv steps.

    Args:
        level: Level each episode plays.
        num_steps: Number of env steps.
        seed: Random seed.

    Returns:
        Dict with timing results.
    """
    env = MazeEnv(level=level)
    env.action_space.seed(seed)

    env.reset(seed=seed)
    start = time.perf_counter()

    for _ in range(num_steps):
        _, _, terminated, truncated, _ = env.step(env.action_space.sample())
        if terminated or truncated:
            env.reset()

    elapsed = time.perf_counter() - start
    env.close()

    return {
        "mode": f"env L{level}",
        "count": num_steps,
        "elapsed_seconds": elapsed,
        "per_second": num_steps / elapsed,
        "ms_each": (elapsed * 1000) / num_steps
    }


def run_all_benchmarks(levels: list, frames: int = 2000) -> list:
    """Run comprehensive benchmarks."""
    results = []

    print("=" * 60)
    print("EXIT VECTOR PERFORMANCE BENCHMARK")
    print("=" * 60)
    print()

    for level in levels:
        print(f"Benchmarking maze generation (level {level})...")
        result = benchmark_maze_generation(level=level)
        results.append(result)
        print(f"  Mazes/sec: {result['per_second']:.1f}")
        print()

        print(f"Benchmarking CoreGame (level {level})...")
        result = benchmark_core_game(level=level, num_frames=frames)
        results.append(result)
        print(f"  Frames/sec: {result['per_second']:.1f}")
        print()

        print(f"Benchmarking MazeEnv (level {level})...")
        result = benchmark_env(level=level, num_steps=frames)
        results.append(result)
        print(f"  Steps/sec: {result['per_second']:.1f}")
        print()

    print("=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print()
    print(f"{'Mode':<28} {'Count':>8} {'Per sec':>12} {'ms each':>10}")
    print("-" * 62)

    for r in results:
        print(f"{r['mode']:<28} {r['count']:>8} {r['per_second']:>12.1f} {r['ms_each']:>10.3f}")

    return results


def main():
    parser = argparse.ArgumentParser(description="Benchmark Exit Vector simulation performance")
    parser.add_argument("--frames", type=int, default=2000, help="Frames per benchmark")
    parser.add_argument("--levels", type=int, nargs="+", default=[1, 6, 12],
                        help="Levels to benchmark")
    parser.add_argument("--quick", action="store_true", help="Quick benchmark (fewer frames)")

    args = parser.parse_args()

    frames = 300 if args.quick else args.frames

    run_all_benchmarks(levels=args.levels, frames=frames)

    return 0


if __name__ == "__main__":
    sys.exit(main())
