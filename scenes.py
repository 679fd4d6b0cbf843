"""
Scene presets: headless ball layouts inside the hexagon.

Each preset builds balls + an engine, optionally runs it for `duration`
seconds, and returns a result dict the controller and the tests consume.
"""

import math

import numpy as np
from physics import Ball, PhysicsEngine, SimConfig, FRAME_DT

SCENE_COLORS = [
    (230, 80, 80),
    (80, 200, 120),
    (90, 140, 240),
    (240, 200, 70),
    (200, 100, 220),
    (80, 210, 220),
]


def _make_balls(positions, config: SimConfig):
    return [
        Ball(f"ball{i + 1}", position=pos,
             color=SCENE_COLORS[i % len(SCENE_COLORS)],
             radius=config.ball_radius)
        for i, pos in enumerate(positions)
    ]


def _run(engine: PhysicsEngine, balls, run: bool, duration: float) -> float:
    if not run:
        return 0.0
    return engine.simulate(balls, dt=engine.config.frame_dt, duration=duration)


class Scene:
    """Every preset returns {"balls", "engine", "elapsed", ...}."""

    @staticmethod
    def single_drop(run=True, config: SimConfig = None, duration: float = 10.0) -> dict:
        """One ball released at rest from the hexagon centre."""
        config = config or SimConfig()
        engine = PhysicsEngine(config)
        balls = _make_balls([config.center], config)
        elapsed = _run(engine, balls, run, duration)
        return {"ball": balls[0], "balls": balls, "engine": engine, "elapsed": elapsed}

    @staticmethod
    def column(run=True, config: SimConfig = None, count: int = 6,
               duration: float = 5.0) -> dict:
        """A vertical stack of touching balls above the centre."""
        config = config or SimConfig()
        engine = PhysicsEngine(config)
        cx, cy = config.center
        step = 2 * config.ball_radius
        positions = [(cx, cy - i * step) for i in range(count)]
        balls = _make_balls(positions, config)
        elapsed = _run(engine, balls, run, duration)
        return {"balls": balls, "engine": engine, "elapsed": elapsed}

    @staticmethod
    def ring(run=True, config: SimConfig = None, count: int = 12,
             duration: float = 5.0) -> dict:
        """Balls evenly spaced on a circle at half the hexagon apothem."""
        config = config or SimConfig()
        engine = PhysicsEngine(config)
        cx, cy = config.center
        apothem = config.hex_radius * math.cos(math.pi / 6)
        r = apothem / 2
        positions = [
            (cx + r * math.cos(2 * math.pi * k / count),
             cy + r * math.sin(2 * math.pi * k / count))
            for k in range(count)
        ]
        balls = _make_balls(positions, config)
        elapsed = _run(engine, balls, run, duration)
        return {"balls": balls, "engine": engine, "elapsed": elapsed,
                "ring_radius": r}


SCENES = {
    "single_drop": Scene.single_drop,
    "column":      Scene.column,
    "ring":        Scene.ring,
}

# Keys 1-3 in both shells
SCENE_KEYS = {
    "1": "single_drop",
    "2": "column",
    "3": "ring",
}


def max_center_distance(balls, center) -> float:
    """Largest distance of any ball centre from `center` (0 when empty)."""
    if not balls:
        return 0.0
    c = np.asarray(center, dtype=float)
    return max(float(np.linalg.norm(b.position - c)) for b in balls)
