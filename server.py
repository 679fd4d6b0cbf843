"""
Spinning Hexagon Web Server — Layer 3 (FastAPI + WebSocket)

Serves the canvas frontend and runs the fixed-step physics loop,
streaming ball and hexagon state to browser clients over WebSocket.
"""

import asyncio
import json
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from controller import HexagonController
from physics import load_config
from scenes import SCENE_KEYS

STATIC_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "static")

# ── Controller ──────────────────────────────────────────────────────────────

ctrl = HexagonController(load_config())


# ── Lifespan (startup/shutdown) ─────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(game_loop())
    yield
    task.cancel()


app = FastAPI(lifespan=lifespan)

clients: list[WebSocket] = []

# ── Async game loop ─────────────────────────────────────────────────────────

FRAME_DT = ctrl.config.frame_dt


async def game_loop():
    """Main loop: one fixed physics step per frame at ~1/FRAME_DT fps."""
    last_time = time.perf_counter()

    while True:
        now = time.perf_counter()
        ctrl.tick_fps(now - last_time)
        last_time = now

        ctrl.step(FRAME_DT)

        if clients:
            frame_msg = _build_frame_message()
            dead: list[WebSocket] = []
            for ws in clients:
                try:
                    await ws.send_text(frame_msg)
                except Exception:
                    dead.append(ws)
            for ws in dead:
                if ws in clients:
                    clients.remove(ws)
        else:
            ctrl.pending_events.clear()

        elapsed = time.perf_counter() - now
        sleep_time = FRAME_DT - elapsed
        if sleep_time > 0:
            await asyncio.sleep(sleep_time)
        else:
            await asyncio.sleep(0)


def _ball_data(b) -> dict:
    return {
        "name": b.name,
        "pos": [round(float(b.position[0]), 3), round(float(b.position[1]), 3)],
        "color": list(b.color),
    }


def _build_frame_message() -> str:
    """Serialize current state into a JSON frame message."""
    events = []
    for ev in ctrl.pending_events:
        if ev.get("type") == "spawn_ball" and "ball" in ev:
            events.append({"type": "spawn_ball", "ball": _ball_data(ev["ball"])})
        else:
            events.append(ev)
    ctrl.pending_events.clear()

    frame = {
        "type": "frame",
        "balls": [_ball_data(b) for b in ctrl.bodies()],
        "hexagon": [[round(float(x), 3), round(float(y), 3)]
                    for x, y in ctrl.boundary_vertices()],
        "fps": ctrl.fps,
        "events": events,
        "hits": len(ctrl.physics_events),
        "status": ctrl.status_msg,
        "info": ctrl.info_msg,
    }
    return json.dumps(frame, separators=(',', ':'))


# ── Input handlers ──────────────────────────────────────────────────────────

def _handle_key_down(key: str) -> None:
    """Handle a key press event from the client."""
    if key == "r":
        ctrl.submit({"type": "remove"})
    elif key in SCENE_KEYS:
        ctrl.submit({"type": "scene", "name": SCENE_KEYS[key]})


def _parse_client_message(data: str):
    """Decode a client message; None unless it is a JSON object."""
    try:
        msg = json.loads(data)
    except json.JSONDecodeError:
        return None
    return msg if isinstance(msg, dict) else None


# ── WebSocket endpoint ──────────────────────────────────────────────────────

@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    clients.append(ws)

    cfg = ctrl.config
    await ws.send_text(json.dumps({
        "type": "init",
        "width": cfg.width,
        "height": cfg.height,
        "hex_radius": cfg.hex_radius,
        "ball_radius": cfg.ball_radius,
        "frame_dt": cfg.frame_dt,
    }))

    try:
        while True:
            msg = _parse_client_message(await ws.receive_text())
            if msg is None:
                continue

            cmd = msg.get("cmd", "")
            if cmd == "key_down":
                _handle_key_down(msg.get("key", ""))
            elif cmd == "click":
                ctrl.submit({"type": "add", "pos": [msg.get("x"), msg.get("y")]})
            elif cmd == "add_ball":
                ctrl.submit({"type": "add_center"})
            elif cmd == "execute":
                ctrl.execute_command(msg.get("text", ""))
            elif cmd == "get_state":
                await ws.send_text(json.dumps({
                    "type": "state_json",
                    "data": ctrl.get_state_json(),
                }))
    except WebSocketDisconnect:
        pass
    finally:
        if ws in clients:
            clients.remove(ws)


# ── Static files + root route ───────────────────────────────────────────────

app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


@app.get("/")
async def root():
    return FileResponse(os.path.join(STATIC_DIR, "index.html"))


# ── Run with uvicorn ────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", host="0.0.0.0", port=8000, reload=False)
