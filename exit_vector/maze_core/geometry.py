"""
Geometry Helpers
================

Axis-aligned rectangles and circle-vs-rectangle queries in pixel space.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(value, high))


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle (y grows downward)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, px: float, py: float) -> bool:
        """True if the point lies inside or on the edge."""
        return self.x <= px <= self.right and self.y <= py <= self.bottom

    def closest_point(self, px: float, py: float) -> Tuple[float, float]:
        """Point on (or in) the rectangle nearest to (px, py)."""
        return clamp(px, self.x, self.right), clamp(py, self.y, self.bottom)

    def distance_to(self, px: float, py: float) -> float:
        """Distance from a point to the rectangle (0 if inside)."""
        cx, cy = self.closest_point(px, py)
        return math.hypot(px - cx, py - cy)


# Wall rectangles are plain Rects; the alias names their role
WallRect = Rect
