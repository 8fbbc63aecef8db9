"""
RNG - Seeded Maze Randomness
============================

Provides deterministic randomness for maze carving. The generator itself
never reads the clock: callers pass a seed, and only the orchestration
layer falls back to a wall-clock derived one.
"""

from __future__ import annotations

import random
import time
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def time_seed() -> int:
    """Seed derived from the wall clock (milliseconds)."""
    return int(time.time() * 1000)


class MazeRandom:
    """
    Seeded random source for maze generation.

    Same seed always produces the same carving order.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize the random source.

        Args:
            seed: Random seed for reproducibility. Clock-derived if None.
        """
        if seed is None:
            seed = time_seed()
        self._seed = seed
        self._rng = random.Random(seed)

    @property
    def seed(self) -> int:
        """Seed this source was created with."""
        return self._seed

    def next_float(self) -> float:
        """Random float in [0, 1)."""
        return self._rng.random()

    def next_int(self, low: int, high: int) -> int:
        """Random integer in [low, high)."""
        return self._rng.randrange(low, high)

    def shuffled(self, items: Sequence[T]) -> List[T]:
        """Return a shuffled copy; the input is left untouched."""
        result = list(items)
        self._rng.shuffle(result)
        return result

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Restart the sequence.

        Args:
            seed: New random seed. Keeps current if None.
        """
        if seed is not None:
            self._seed = seed
        self._rng = random.Random(self._seed)
