"""
HexagonController — Layer 2 (Simulation State)

Owns the ball collection and the physics engine (which owns the hexagon).
Communicates with Layer 3 (main.py / Ursina window, server.py / WebSocket) via:
  - submit(cmd)         : input commands, applied at the start of the next step
  - pending_events      : rendering commands (spawn_ball, remove_ball, clear_balls)
  - physics_events      : collision events of the last step (click sounds)

Layer 3 calls:
  ctrl.step(dt)               — apply queued commands, advance physics
  ctrl.tick_fps(wall_dt)      — frame counter for the FPS label
  ctrl.bodies() / ctrl.boundary_vertices()  — read-only render state
"""

import json
import math
import random
from typing import Optional

import numpy as np

from physics import PhysicsEngine, Ball, SimConfig
from scenes import SCENES


DEFAULT_INFO_MSG = (
    "Click: add ball  [Add Ball] centre  [R] Remove last  [1-3] Scene  [X] Exit"
)


def _parse_color(raw) -> Optional[tuple]:
    """RGB triple clamped to 0-255, or None when `raw` is not three numbers."""
    if isinstance(raw, (str, bytes, dict)):
        return None
    try:
        channels = [float(c) for c in raw]
    except (TypeError, ValueError):
        return None
    if len(channels) != 3 or not all(math.isfinite(c) for c in channels):
        return None
    return tuple(max(0, min(255, int(c))) for c in channels)


class HexagonController:
    """Layer 2: ball collection + command queue + physics orchestration."""

    COMMAND_TYPES = ("add", "add_center", "remove", "clear", "scene")

    def __init__(self, config: Optional[SimConfig] = None, seed: Optional[int] = None):
        self.config = config or SimConfig()
        self.engine = PhysicsEngine(self.config)
        self._balls: list[Ball] = []
        self._next_id = 1
        self._rng = random.Random(seed)

        # Input commands, drained by step()
        self._commands: list[dict] = []

        # FPS (wall clock, fed by L3)
        self.fps = 0
        self._fps_frames = 0
        self._fps_elapsed = 0.0

        # Status / info messages (L3 reads these to update text entities)
        self.status_msg = ""
        self.info_msg   = DEFAULT_INFO_MSG

        # Event queues
        self.pending_events: list[dict] = []   # L3 rendering commands
        self.physics_events: list[dict] = []   # collision sounds

    # ──────────────────────────────────────────────────────────────────────────
    # Main loop
    # ──────────────────────────────────────────────────────────────────────────

    def step(self, dt: float) -> None:
        """Apply queued input, then advance physics by dt. Called every frame by L3."""
        self.process_commands()
        self.engine.update(self._balls, dt)
        self.physics_events = list(self.engine.events)

    def tick_fps(self, wall_dt: float) -> None:
        """Count a rendered frame; publish the count once per wall-clock second."""
        self._fps_frames += 1
        self._fps_elapsed += wall_dt
        if self._fps_elapsed >= 1.0:
            self.fps = self._fps_frames
            self._fps_frames = 0
            self._fps_elapsed -= 1.0

    # ──────────────────────────────────────────────────────────────────────────
    # Read views
    # ──────────────────────────────────────────────────────────────────────────

    def bodies(self) -> tuple:
        """Balls in insertion order."""
        return tuple(self._balls)

    def boundary_vertices(self) -> np.ndarray:
        return self.engine.hexagon.vertices()

    @property
    def rotation(self) -> float:
        return self.engine.hexagon.rotation

    # ──────────────────────────────────────────────────────────────────────────
    # Ball management
    # ──────────────────────────────────────────────────────────────────────────

    def random_color(self) -> tuple:
        return (self._rng.randrange(256), self._rng.randrange(256), self._rng.randrange(256))

    def add_body(self, position, color=None) -> Ball:
        """Append a ball at rest at `position`."""
        if color is None:
            color = self.random_color()
        b = Ball(f"ball{self._next_id}", position=position, color=tuple(color),
                 radius=self.config.ball_radius)
        self._next_id += 1
        self._balls.append(b)
        self.pending_events.append({"type": "spawn_ball", "ball": b})
        return b

    def remove_last_body(self) -> Optional[Ball]:
        """Remove the most recently added ball; no-op when there are none."""
        if not self._balls:
            return None
        b = self._balls.pop()
        self.pending_events.append({"type": "remove_ball", "name": b.name})
        return b

    def clear_balls(self) -> None:
        self._balls.clear()
        self.pending_events.append({"type": "clear_balls"})

    def load_scene(self, name: str) -> bool:
        """Replace all balls with a preset layout; the hexagon keeps spinning."""
        scene_fn = SCENES.get(name)
        if scene_fn is None:
            self.status_msg = f"Unknown scene '{name}'."
            print(f"[SCENE] unknown scene '{name}'")
            return False
        self.clear_balls()
        result = scene_fn(run=False, config=self.config)
        for b in result["balls"]:
            self.add_body(b.position, b.color)
        self.status_msg = f"Scene: {name} ({len(result['balls'])} balls)"
        print(f"[SCENE] {name}: {len(result['balls'])} balls")
        return True

    # ──────────────────────────────────────────────────────────────────────────
    # Command queue
    # ──────────────────────────────────────────────────────────────────────────

    def submit(self, command: dict) -> None:
        """Queue an input command; it takes effect at the start of the next step."""
        self._commands.append(command)

    def process_commands(self) -> None:
        commands, self._commands = self._commands, []
        for cmd in commands:
            self._dispatch(cmd)

    def _dispatch(self, cmd: dict) -> None:
        kind = cmd.get("type")
        if kind == "add":
            pos = cmd.get("pos")
            try:
                x, y = float(pos[0]), float(pos[1])
            except (TypeError, ValueError, IndexError, KeyError):
                x = y = math.nan
            if not (math.isfinite(x) and math.isfinite(y)):
                self.status_msg = f"add: bad position {pos!r}"
                print(f"[CMD] {self.status_msg}")
                return
            color = cmd.get("color")
            if color is not None:
                color = _parse_color(color)
                if color is None:
                    self.status_msg = f"add: bad color {cmd.get('color')!r}"
                    print(f"[CMD] {self.status_msg}")
                    return
            self.add_body((x, y), color)
        elif kind == "add_center":
            self.add_body(self.config.center)
        elif kind == "remove":
            self.remove_last_body()
        elif kind == "clear":
            self.clear_balls()
        elif kind == "scene":
            self.load_scene(str(cmd.get("name", "")))
        else:
            self.status_msg = f"Unknown command '{kind}'."
            print(f"[CMD] {self.status_msg}")

    def execute_command(self, text: str) -> bool:
        """Parse a JSON command string and queue it. Returns False when rejected."""
        if not text:
            print("[CMD] execute_command: empty text")
            return False
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            print(f"[CMD] JSON parse error: {exc}")
            self.status_msg = f"JSON error: {exc}"
            return False
        if not isinstance(data, dict):
            self.status_msg = "Command must be a JSON object."
            return False
        kind = str(data.get("type", "")).lower().strip()
        if kind not in self.COMMAND_TYPES:
            self.status_msg = f"Unknown command '{kind}'. Use {'/'.join(self.COMMAND_TYPES)}."
            print(f"[CMD] {self.status_msg}")
            return False
        data["type"] = kind
        self.submit(data)
        return True

    def get_state_json(self) -> str:
        """Return current ball state as compact single-line JSON."""
        balls = {}
        for b in self._balls:
            balls[b.name] = {
                "pos": [round(float(b.position[0]), 3), round(float(b.position[1]), 3)],
                "vel": [round(float(b.velocity[0]), 3), round(float(b.velocity[1]), 3)],
            }
        return json.dumps({"rotation": round(self.rotation, 4), "balls": balls},
                          separators=(',', ':'))
