"""
Bouncing Balls in Spinning Hexagon -- Desktop window (3-Tier Architecture)
Layer 3: Ursina rendering / input handling.
Layer 2: controller.py (HexagonController)
Layer 1: physics.py (PhysicsEngine)

Click to add a ball, [Add Ball] adds one at the centre, R removes the last
ball, 1-3 load scenes, X exits.
"""

import os
import tempfile
import wave
from pathlib import Path

import numpy as np
from ursina import (
    Ursina, Entity, Text, Button, Audio, Mesh, Color,
    camera, color, window, mouse, application, destroy, Vec3,
    time as ursina_time,
)

from controller import HexagonController
from physics import load_config
from scenes import SCENE_KEYS

# ── Layer 2: controller instance ──────────────────────────────────────────────
ctrl = HexagonController(load_config())
CFG = ctrl.config
CX, CY = CFG.center

# ──────────────────────────────────────────
# Synthesized Sound Effects (numpy + wave)
# ──────────────────────────────────────────

_sound_dir = tempfile.mkdtemp(prefix="hexballs_snd_")


def _synth_wav(filename, samples):
    """Write mono 16-bit 44100Hz WAV and return Path object."""
    path = os.path.join(_sound_dir, filename)
    data = np.clip(samples, -1.0, 1.0)
    data_int = (data * 32767).astype(np.int16)
    with wave.open(path, "w") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(44100)
        wf.writeframes(data_int.tobytes())
    return Path(path)


def _synth_click():
    sr = 44100; dur = 0.06
    t = np.linspace(0, dur, int(sr * dur), endpoint=False)
    env = np.exp(-t * 70)
    sig = env * np.sin(2 * np.pi * 900 * t + 4 * np.sin(2 * np.pi * 220 * t))
    return _synth_wav("click.wav", sig * 0.6)


def _synth_thud():
    sr = 44100; dur = 0.08
    t = np.linspace(0, dur, int(sr * dur), endpoint=False)
    env = np.exp(-t * 45)
    sig = env * np.sin(2 * np.pi * 320 * t)
    return _synth_wav("thud.wav", sig * 0.5)


# ──────────────────────────────────────────
# Coordinate mapping
# ──────────────────────────────────────────
# The orthographic camera shows CFG.height world units vertically, centred on
# the arena centre, so one world unit is one simulation pixel with y flipped.

def _to_world(x, y) -> Vec3:
    return Vec3(x - CX, CY - y, 0)


def _mouse_to_sim():
    return (CX + mouse.x * CFG.height, CY - mouse.y * CFG.height)


def _to_color(rgb) -> Color:
    return Color(rgb[0] / 255, rgb[1] / 255, rgb[2] / 255, 1)


# ──────────────────────────────────────────
# Ursina App
# ──────────────────────────────────────────

app = Ursina(borderless=False, title="Bouncing Balls in Spinning Hexagon",
             size=(CFG.width, CFG.height))
window.color = color.black
camera.orthographic = True
camera.fov = CFG.height

HEX_COLOR = color.blue

hex_entity = Entity(color=HEX_COLOR)
ball_entities: dict[str, Entity] = {}

# ── Sound effects ─────────────────────────────────────────────────────────────
click_path = _synth_click()
thud_path  = _synth_thud()
snd_click = None
snd_thud  = None
_sounds_loaded = False

# ── UI ────────────────────────────────────────────────────────────────────────
fps_text = Text(
    text="FPS: 0",
    position=(window.aspect_ratio / 2 - 0.17, 0.48),
    scale=1.0,
    color=color.white,
)

info_text = Text(
    text=ctrl.info_msg,
    position=(-window.aspect_ratio / 2 + 0.02, -0.44),
    scale=0.7,
    color=color.light_gray,
)

status_text = Text(
    text="",
    position=(-window.aspect_ratio / 2 + 0.02, -0.47),
    scale=0.7,
    color=color.light_gray,
)


def _on_add_ball():
    ctrl.submit({"type": "add_center"})


add_button = Button(
    text="Add Ball",
    scale=(0.14, 0.05),
    position=(-window.aspect_ratio / 2 + 0.09, 0.45),
    on_click=_on_add_ball,
)


def _load_sounds():
    global snd_click, snd_thud, _sounds_loaded
    if _sounds_loaded:
        return
    try:
        snd_click = Audio(click_path, autoplay=False)
        snd_thud  = Audio(thud_path,  autoplay=False)
        _sounds_loaded = True
    except Exception:
        pass


def _play_collision_sounds(events):
    # One sound per kind per frame is enough at 60 Hz
    loudest = {}
    for evt in events:
        loudest[evt["type"]] = max(loudest.get(evt["type"], 0.0), evt["speed"])
    for kind, speed in loudest.items():
        vol = min(1.0, speed / 600.0)
        if vol < 0.05:
            continue
        snd = snd_click if kind == "ball_ball" else snd_thud
        if snd:
            snd.volume = vol
            snd.play()


# ──────────────────────────────────────────
# Controller event handling
# ──────────────────────────────────────────

def _spawn_ball_entity(ball):
    ent = Entity(
        model="circle",
        color=_to_color(ball.color),
        scale=ball.radius * 2,
        position=_to_world(*ball.position),
    )
    ball_entities[ball.name] = ent
    return ent


def _handle_controller_event(ev):
    if ev["type"] == "spawn_ball":
        _spawn_ball_entity(ev["ball"])
    elif ev["type"] == "remove_ball":
        ent = ball_entities.pop(ev["name"], None)
        if ent is not None:
            destroy(ent)
    elif ev["type"] == "clear_balls":
        for ent in ball_entities.values():
            destroy(ent)
        ball_entities.clear()


def _update_hexagon():
    verts = [_to_world(x, y) for x, y in ctrl.boundary_vertices()]
    verts.append(verts[0])
    hex_entity.model = Mesh(vertices=verts, mode="line", thickness=2)


# ──────────────────────────────────────────
# Input handler
# ──────────────────────────────────────────

def input(key):
    if key == "left mouse down":
        # The button handles its own clicks
        if mouse.hovered_entity is add_button:
            return
        ctrl.submit({"type": "add", "pos": list(_mouse_to_sim())})
    elif key == "r":
        ctrl.submit({"type": "remove"})
    elif key == "x":
        application.quit()
    elif key in SCENE_KEYS:
        ctrl.submit({"type": "scene", "name": SCENE_KEYS[key]})


# ──────────────────────────────────────────
# Update loop
# ──────────────────────────────────────────

def update():
    _load_sounds()
    ctrl.tick_fps(ursina_time.dt)

    # ── Physics step → controller (fixed dt) ──────────────────────────────────
    ctrl.step(CFG.frame_dt)

    # ── Process pending events (L2 → L3 rendering commands) ──────────────────
    for ev in ctrl.pending_events:
        _handle_controller_event(ev)
    ctrl.pending_events.clear()

    _play_collision_sounds(ctrl.physics_events)

    # ── Sync entities ─────────────────────────────────────────────────────────
    _update_hexagon()
    for b in ctrl.bodies():
        ent = ball_entities.get(b.name)
        if ent is not None:
            ent.position = _to_world(*b.position)

    fps_text.text = f"FPS: {ctrl.fps}"
    if ctrl.status_msg and status_text.text != ctrl.status_msg:
        status_text.text = ctrl.status_msg


# ──────────────────────────────────────────
# Run
# ──────────────────────────────────────────

if __name__ == "__main__":
    app.run()
