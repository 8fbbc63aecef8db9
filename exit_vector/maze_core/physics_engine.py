"""
Physics Engine
==============

Frame-stepped ball simulation: constant fall plus tilt gravity, friction,
circle-vs-rectangle wall collisions, maze boundaries and exit scoring.

All constants are tuned for one fixed nominal step per frame; update() is
not scaled by elapsed time.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Sequence, Tuple, Union

from exit_vector.maze_core.config_loader import GameConfig, get_config
from exit_vector.maze_core.geometry import WallRect
from exit_vector.maze_core.maze import ExitZone
from exit_vector.maze_core.scoring import ScoreEvent, ScoreTracker


@dataclass
class Ball:
    """
    A simulated ball.

    Once exited, the ball stays active for a short countdown so it is
    still drawn inside its exit zone before it disappears.
    """
    uid: int
    x: float
    y: float
    radius: float
    color_index: int = 0
    vx: float = 0.0
    vy: float = 0.0
    active: bool = True
    exited: bool = False
    score: int = 0
    exit_zone_index: int = -1
    exit_ticks_remaining: int = 0
    trail: Deque[Tuple[float, float]] = field(default_factory=deque)

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y

    @property
    def velocity(self) -> Tuple[float, float]:
        return self.vx, self.vy

    @property
    def speed(self) -> float:
        """Linear speed magnitude."""
        return math.sqrt(self.vx * self.vx + self.vy * self.vy)

    def reset(self, x: float, y: float) -> None:
        """Put the ball back at rest at (x, y)."""
        self.x = x
        self.y = y
        self.vx = 0.0
        self.vy = 0.0
        self.active = True
        self.exited = False
        self.score = 0
        self.exit_zone_index = -1
        self.exit_ticks_remaining = 0
        self.trail.clear()


@dataclass(frozen=True)
class WallHitEvent:
    """A ball touched a wall this frame (for audio/haptics)."""
    ball_uid: int
    intensity: float             # 0..1, from post-collision speed


@dataclass(frozen=True)
class ExitScoredEvent:
    """A ball crossed the bottom edge and was scored."""
    ball_uid: int
    x: float
    y: float
    score: ScoreEvent


@dataclass(frozen=True)
class BallExitEvent:
    """An exited ball finished its countdown and stopped being simulated."""
    ball_uid: int
    x: float
    y: float
    points: int


PhysicsEvent = Union[WallHitEvent, ExitScoredEvent, BallExitEvent]


class PhysicsEngine:
    """
    Owns the balls of one level and advances them frame by frame.

    Handles:
    - Base gravity plus the external tilt vector
    - Friction, speed cap and jitter suppression
    - Wall and boundary collisions
    - Exit detection and scoring
    - Trails for renderers

    update() returns the events produced during the frame instead of
    calling back into the host.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize physics engine.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._scorer = ScoreTracker(config)

        self._balls: List[Ball] = []
        self._gravity: Tuple[float, float] = (0.0, 0.0)
        self._paused: bool = False
        self._walls: Tuple[WallRect, ...] = ()
        self._exit_zones: Tuple[ExitZone, ...] = ()
        self._maze_width: float = 0.0
        self._maze_height: float = 0.0
        self._ball_radius: float = config.physics.ball_radius
        self._tick: int = 0

    def init(
        self,
        spawn_positions: Sequence[Tuple[float, float]],
        walls: Sequence[WallRect],
        exit_zones: Sequence[ExitZone],
        maze_width: float,
        maze_height: float,
        ball_radius: Optional[float] = None
    ) -> None:
        """
        Reset all state for a new level.

        Any ball from a previous level, including one still counting down
        after its exit, is discarded.

        Args:
            spawn_positions: One (x, y) per ball.
            walls: Wall rectangles from the maze.
            exit_zones: Scored zones from the maze.
            maze_width: Maze width in pixels.
            maze_height: Maze height in pixels (crossing it scores).
            ball_radius: Radius for every ball. Config default if None.
        """
        self._scorer.reset()
        self._gravity = (0.0, 0.0)
        self._paused = False
        self._walls = tuple(walls)
        self._exit_zones = tuple(exit_zones)
        self._maze_width = float(maze_width)
        self._maze_height = float(maze_height)
        self._ball_radius = ball_radius or self._config.physics.ball_radius
        self._tick = 0

        trail_length = self._config.visual.trail_length
        self._balls = [
            Ball(
                uid=index,
                x=float(x),
                y=float(y),
                radius=self._ball_radius,
                color_index=index,
                trail=deque(maxlen=trail_length)
            )
            for index, (x, y) in enumerate(spawn_positions)
        ]

    def set_gravity(self, x: float, y: float) -> None:
        """Set the external gravity vector (called once per frame by input)."""
        self._gravity = (float(x), float(y))

    @property
    def gravity(self) -> Tuple[float, float]:
        return self._gravity

    @property
    def tick(self) -> int:
        """Number of unpaused frames simulated since init()."""
        return self._tick

    @property
    def maze_width(self) -> float:
        return self._maze_width

    @property
    def maze_height(self) -> float:
        return self._maze_height

    @property
    def ball_radius(self) -> float:
        return self._ball_radius

    @property
    def walls(self) -> Tuple[WallRect, ...]:
        return self._walls

    @property
    def exit_zones(self) -> Tuple[ExitZone, ...]:
        return self._exit_zones

    def update(self) -> List[PhysicsEvent]:
        """
        Advance every active ball by one frame.

        Returns:
            Events produced this frame, in occurrence order. Empty when paused.
        """
        if self._paused:
            return []

        events: List[PhysicsEvent] = []
        for ball in self._balls:
            if not ball.active:
                continue

            if ball.exited:
                ball.exit_ticks_remaining -= 1
                if ball.exit_ticks_remaining <= 0:
                    self._deactivate(ball, events)
                    continue

            self._step_ball(ball, events)

        self._tick += 1
        return events

    def _step_ball(self, ball: Ball, events: List[PhysicsEvent]) -> None:
        """Integrate one ball and resolve its contacts."""
        physics = self._config.physics

        prev_x = ball.x
        prev_y = ball.y

        # Input adds to the constant fall, it never replaces it
        gx, gy = self._gravity
        ball.vy += physics.base_gravity
        ball.vx += gx * physics.gravity_multiplier
        ball.vy += gy * physics.gravity_multiplier

        ball.vx *= physics.friction
        ball.vy *= physics.friction

        speed = ball.speed
        if speed > physics.max_velocity:
            scale = physics.max_velocity / speed
            ball.vx *= scale
            ball.vy *= scale

        if abs(ball.vx) < physics.velocity_threshold:
            ball.vx = 0.0
        if abs(ball.vy) < physics.velocity_threshold:
            ball.vy = 0.0

        ball.x += ball.vx
        ball.y += ball.vy

        self._handle_wall_collisions(ball, prev_x, prev_y, events)
        self._handle_boundaries(ball)
        self._check_exit_zones(ball, events)

        ball.trail.appendleft((ball.x, ball.y))

    def _handle_wall_collisions(
        self,
        ball: Ball,
        prev_x: float,
        prev_y: float,
        events: List[PhysicsEvent]
    ) -> None:
        """Push the ball out of every overlapping wall and bounce it."""
        bounce = self._config.physics.bounce_factor
        hit_scale = self._config.physics.wall_hit_speed_scale

        for wall in self._walls:
            closest_x, closest_y = wall.closest_point(ball.x, ball.y)
            dist_x = ball.x - closest_x
            dist_y = ball.y - closest_y
            distance = math.sqrt(dist_x * dist_x + dist_y * dist_y)

            if distance >= ball.radius:
                continue

            if distance > 0:
                nx = dist_x / distance
                ny = dist_y / distance
                overlap = ball.radius - distance
                ball.x += nx * overlap
                ball.y += ny * overlap

                # Reflect and damp the normal component in one go
                dot = ball.vx * nx + ball.vy * ny
                ball.vx -= 2 * dot * nx * (1 - bounce)
                ball.vy -= 2 * dot * ny * (1 - bounce)
            else:
                # Centre is inside the wall: no usable normal
                ball.x = prev_x
                ball.y = prev_y
                ball.vx *= -bounce
                ball.vy *= -bounce

            events.append(WallHitEvent(
                ball_uid=ball.uid,
                intensity=min(ball.speed / hit_scale, 1.0)
            ))

    def _handle_boundaries(self, ball: Ball) -> None:
        """Keep the ball inside the left, right and top edges."""
        bounce = self._config.physics.bounce_factor

        if ball.x - ball.radius < 0:
            ball.x = ball.radius
            ball.vx = abs(ball.vx) * bounce

        if ball.x + ball.radius > self._maze_width:
            ball.x = self._maze_width - ball.radius
            ball.vx = -abs(ball.vx) * bounce

        if ball.y - ball.radius < 0:
            ball.y = ball.radius
            ball.vy = abs(ball.vy) * bounce

        # No bottom edge: crossing it is the exit

    def _check_exit_zones(self, ball: Ball, events: List[PhysicsEvent]) -> None:
        """Score a ball the first frame it is below the maze."""
        if ball.exited or ball.y <= self._maze_height:
            return

        ball.exited = True

        zone_index = self.find_zone_index(ball.x)
        zone = self._exit_zones[zone_index] if zone_index >= 0 else None
        score_event = self._scorer.apply_exit(zone, zone_index)

        ball.score = score_event.points
        ball.exit_zone_index = zone_index
        ball.exit_ticks_remaining = self._config.physics.exit_delay_ticks

        events.append(ExitScoredEvent(
            ball_uid=ball.uid,
            x=ball.x,
            y=ball.y,
            score=score_event
        ))

        if ball.exit_ticks_remaining <= 0:
            self._deactivate(ball, events)

    def _deactivate(self, ball: Ball, events: List[PhysicsEvent]) -> None:
        ball.active = False
        ball.exit_ticks_remaining = 0
        events.append(BallExitEvent(
            ball_uid=ball.uid,
            x=ball.x,
            y=ball.y,
            points=ball.score
        ))

    def find_zone_index(self, x: float) -> int:
        """
        Index of the first zone (left to right) whose span contains x.

        A ball exactly on a shared edge belongs to the left zone.

        Returns:
            Zone index, or -1 if x is outside every zone.
        """
        for index, zone in enumerate(self._exit_zones):
            if zone.contains_x(x):
                return index
        return -1

    def all_balls_exited(self) -> bool:
        """True when every ball has stopped being simulated."""
        return all(not ball.active for ball in self._balls)

    def get_active_ball_count(self) -> int:
        return sum(1 for ball in self._balls if ball.active)

    def get_balls(self) -> Tuple[Ball, ...]:
        """The balls of the current level."""
        return tuple(self._balls)

    def get_ball(self, uid: int) -> Optional[Ball]:
        """Get a ball by UID."""
        for ball in self._balls:
            if ball.uid == uid:
                return ball
        return None

    def get_score(self) -> int:
        """Total score of the current level."""
        return self._scorer.score

    def set_paused(self, paused: bool) -> None:
        """Freeze or resume the simulation; state is left untouched."""
        self._paused = bool(paused)

    def is_paused(self) -> bool:
        return self._paused

    def get_debug_info(self) -> Dict[str, Any]:
        """Summary for debug overlays."""
        gx, gy = self._gravity
        return {
            "total_balls": len(self._balls),
            "active_balls": self.get_active_ball_count(),
            "score": self._scorer.score,
            "paused": self._paused,
            "tick": self._tick,
            "gravity": f"{gx:.2f}, {gy:.2f}",
        }

    def reset(self) -> None:
        """Drop all balls and level geometry."""
        self._balls = []
        self._scorer.reset()
        self._paused = False
        self._walls = ()
        self._exit_zones = ()
        self._maze_width = 0.0
        self._maze_height = 0.0
        self._tick = 0
