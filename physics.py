"""
Spinning Hexagon Physics Engine
Balls under gravity inside a rotating regular hexagon: wall impulses with
rigid-rotation wall velocity, pairwise impulses with iterative separation.

Coordinates are screen pixels with y growing downward, so gravity is +y.
"""

import json
import math
import os
from dataclasses import dataclass, field, fields, replace
from typing import List, Optional, Tuple

import numpy as np

# ──────────────────────────────────────────────
# Constants (pixels, seconds, radians)
# ──────────────────────────────────────────────
WIDTH: int = 600
HEIGHT: int = 600
HEX_RADIUS: float = 200.0      # hexagon circumradius
BALL_RADIUS: float = 10.0
GRAVITY: float = 9.8 * 100     # px/s^2
FRICTION: float = 0.02         # horizontal damping per second
COR: float = 0.7               # coefficient of restitution (walls and balls)
ANGULAR_SPEED: float = 1.5     # rad/s
COLLISION_ITERATIONS: int = 5  # ball-ball passes per step
FRAME_DT: float = 1.0 / 60.0

# Numerical thresholds
SEGMENT_EPS: float = 1e-8

DEFAULT_CONFIG_FILE = "hexagon_config.json"

# (attr, min, max) bounds for file overrides
CONFIG_PARAMS = [
    ("width",                 100,    4000),
    ("height",                100,    4000),
    ("hex_radius",            20.0,   2000.0),
    ("ball_radius",           1.0,    200.0),
    ("gravity",               0.0,    5000.0),
    ("friction",              0.0,    10.0),
    ("restitution",           0.0,    1.0),
    ("angular_speed",        -20.0,   20.0),
    ("collision_iterations",  0,      50),
    ("frame_dt",              1e-4,   0.1),
]


@dataclass(frozen=True)
class SimConfig:
    """Immutable simulation settings, fixed for the life of a controller."""
    width: int = WIDTH
    height: int = HEIGHT
    hex_radius: float = HEX_RADIUS
    ball_radius: float = BALL_RADIUS
    gravity: float = GRAVITY
    friction: float = FRICTION
    restitution: float = COR
    angular_speed: float = ANGULAR_SPEED
    collision_iterations: int = COLLISION_ITERATIONS
    frame_dt: float = FRAME_DT

    @property
    def center(self) -> Tuple[float, float]:
        return (self.width / 2, self.height / 2)

    @classmethod
    def from_dict(cls, data: dict) -> "SimConfig":
        """Build a config from overrides, clamping each value to CONFIG_PARAMS.

        Unknown keys and non-numeric values are reported and skipped.
        """
        bounds = {attr: (mn, mx) for attr, mn, mx in CONFIG_PARAMS}
        kinds = {f.name: f.type for f in fields(cls)}
        values = {}
        for key, raw in data.items():
            if key not in bounds:
                print(f"[CFG] unknown key '{key}' skipped")
                continue
            try:
                val = float(raw)
            except (TypeError, ValueError):
                print(f"[CFG] bad value for '{key}': {raw!r}")
                continue
            mn, mx = bounds[key]
            val = max(mn, min(mx, val))
            values[key] = int(round(val)) if kinds[key] in (int, "int") else val
        return replace(cls(), **values)


def load_config(path: str = DEFAULT_CONFIG_FILE) -> SimConfig:
    """Read JSON overrides from `path`; defaults when missing or unreadable."""
    if not os.path.exists(path):
        return SimConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"[CFG] could not read {path}: {exc}")
        return SimConfig()
    if not isinstance(data, dict):
        print(f"[CFG] {path}: expected a JSON object, using defaults")
        return SimConfig()
    config = SimConfig.from_dict(data)
    print(f"[CFG] loaded {path}: {sorted(data.keys())}")
    return config


# ──────────────────────────────────────────────
# Geometry
# ──────────────────────────────────────────────
def hexagon_vertices(center, radius: float, rotation: float) -> np.ndarray:
    """Vertices of a regular hexagon, vertex i at angle i*60deg + rotation."""
    angles = np.arange(6) * (math.pi / 3) + rotation
    c = np.asarray(center, dtype=float)
    return c + radius * np.column_stack((np.cos(angles), np.sin(angles)))


def closest_point_on_segment(a, b, p) -> np.ndarray:
    """Project p onto segment ab, clamped to the endpoints."""
    a = np.asarray(a, dtype=float)
    ab = np.asarray(b, dtype=float) - a
    ap = np.asarray(p, dtype=float) - a
    t = float(np.dot(ap, ab)) / (float(np.dot(ab, ab)) + SEGMENT_EPS)
    t = max(0.0, min(1.0, t))
    return a + t * ab


@dataclass
class Ball:
    """Circular body. Position/velocity are 2D numpy arrays."""
    name: str
    position: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0]))
    velocity: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0]))
    color: Tuple[int, int, int] = (255, 255, 255)
    radius: float = BALL_RADIUS

    def __post_init__(self):
        self.position = np.array(self.position, dtype=float)
        self.velocity = np.array(self.velocity, dtype=float)

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))


@dataclass
class Hexagon:
    """The rotating container. Vertices are derived on every call."""
    center: np.ndarray
    circumradius: float = HEX_RADIUS
    angular_speed: float = ANGULAR_SPEED
    rotation: float = 0.0

    def __post_init__(self):
        self.center = np.array(self.center, dtype=float)

    def advance(self, dt: float) -> None:
        self.rotation += self.angular_speed * dt

    def vertices(self) -> np.ndarray:
        return hexagon_vertices(self.center, self.circumradius, self.rotation)

    def wall_velocity(self, point) -> np.ndarray:
        """Velocity of the spinning wall material at `point`."""
        rx, ry = np.asarray(point, dtype=float) - self.center
        w = self.angular_speed
        return np.array([-w * ry, w * rx])


class PhysicsEngine:
    """Fixed-step engine for balls inside a spinning hexagon."""

    def __init__(self, config: Optional[SimConfig] = None):
        self.config = config or SimConfig()
        self.hexagon = Hexagon(center=self.config.center,
                               circumradius=self.config.hex_radius,
                               angular_speed=self.config.angular_speed)
        self.events: list = []

    # ──────────────────────────────────────────
    # Ball-Wall Collision
    # ──────────────────────────────────────────
    def resolve_boundary_collision(self, ball: Ball,
                                   vertices: Optional[np.ndarray] = None) -> Optional[int]:
        """
        Resolve contact between a ball and the first touching hexagon edge.

        Edges are tested in vertex order and only the first one in contact is
        handled, so a ball wedged in a corner is corrected against one edge
        per step.

        Returns:
            Index of the contacted edge, or None when the ball touches no wall.
        """
        if vertices is None:
            vertices = self.hexagon.vertices()
        R = self.config.ball_radius
        e = self.config.restitution
        center = self.hexagon.center

        for i in range(6):
            a = vertices[i]
            b = vertices[(i + 1) % 6]
            p = closest_point_on_segment(a, b, ball.position)
            distance = float(np.linalg.norm(ball.position - p))
            if distance >= R:
                continue

            # Normal from the edge midpoint toward the centre (inward)
            normal = center - (a + b) / 2
            normal = normal / np.linalg.norm(normal)

            v_wall = self.hexagon.wall_velocity(p)
            rel_vel = ball.velocity - v_wall
            dot = float(np.dot(rel_vel, normal))

            if dot < 0:
                rel_vel = rel_vel + (-(1.0 + e) * dot) * normal
                ball.velocity = rel_vel + v_wall
                self.events.append({"type": "wall", "ball": ball.name,
                                    "edge": i, "speed": -dot})

            ball.position = ball.position + normal * (R - distance)
            return i
        return None

    # ──────────────────────────────────────────
    # Ball-Ball Collision
    # ──────────────────────────────────────────
    def resolve_ball_collisions(self, balls: List[Ball]) -> int:
        """
        One relaxation pass over all pairs, equal unit masses.

        Approaching pairs get a restitution impulse; every overlapping pair is
        pushed apart by half the overlap each. Pairs with coincident centres
        have no defined normal and are skipped.

        Returns:
            Number of overlapping pairs handled.
        """
        min_dist = 2 * self.config.ball_radius
        e = self.config.restitution
        handled = 0
        n = len(balls)
        for i in range(n):
            ba = balls[i]
            for j in range(i + 1, n):
                bb = balls[j]
                delta = bb.position - ba.position
                distance = float(np.linalg.norm(delta))
                if distance >= min_dist or distance == 0:
                    continue

                normal = delta / distance
                overlap = min_dist - distance
                # Velocity of b relative to a along a->b; negative when closing
                dot = float(np.dot(bb.velocity - ba.velocity, normal))

                if dot < 0:
                    impulse = -(1.0 + e) * dot / 2
                    ba.velocity = ba.velocity - impulse * normal
                    bb.velocity = bb.velocity + impulse * normal
                    self.events.append({"type": "ball_ball", "ball1": ba.name,
                                        "ball2": bb.name, "speed": -dot})

                ba.position = ba.position - normal * (overlap / 2)
                bb.position = bb.position + normal * (overlap / 2)
                handled += 1
        return handled

    # ──────────────────────────────────────────
    # Main Update Loop
    # ──────────────────────────────────────────
    def update(self, balls: List[Ball], dt: float) -> None:
        """Advance the hexagon and all balls by one fixed step of dt seconds."""
        self.events.clear()
        cfg = self.config

        self.hexagon.advance(dt)
        vertices = self.hexagon.vertices()

        damping = 1.0 - cfg.friction * dt
        for ball in balls:
            # Semi-implicit Euler: velocity first, then position
            ball.velocity[0] *= damping
            ball.velocity[1] += cfg.gravity * dt
            ball.position = ball.position + ball.velocity * dt
            self.resolve_boundary_collision(ball, vertices)

        for _ in range(cfg.collision_iterations):
            self.resolve_ball_collisions(balls)

    def simulate(self, balls: List[Ball], dt: float = FRAME_DT,
                 duration: float = 5.0) -> float:
        """
        Run fixed steps for `duration` seconds of simulated time.

        Returns:
            Elapsed time in seconds.
        """
        steps = int(round(duration / dt))
        for _ in range(steps):
            self.update(balls, dt)
        return steps * dt
