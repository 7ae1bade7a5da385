from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from dataclasses import asdict, dataclass
from pathlib import Path
from time import perf_counter
from typing import Dict, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pygame.math import Vector2

from ..sim.core.config import SimulationConfig
from ..sim.core.world import World

logger = logging.getLogger(__name__)

_SNAPSHOT_QUEUE_LIMIT = 256


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1):
        self.config = config
        self.world = World(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.tick = 0
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque(maxlen=_SNAPSHOT_QUEUE_LIMIT)
        # Every world mutation goes through this lock so it never overlaps a frame.
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._broadcast_task: asyncio.Task | None = None
        self._last_frame: float | None = None

    async def start(self) -> None:
        if self._broadcast_task is None:
            self._broadcast_task = asyncio.create_task(self._loop())
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def reset(self) -> None:
        async with self._lock:
            self.world.reset()
            self.tick = 0
            self._last_frame = None
        async with self._queue_lock:
            self._snapshot_queue.clear()
        for client in self._client_last_sent:
            self._client_last_sent[client] = -1
        await self._broadcast_snapshot()

    async def advance(self) -> None:
        async with self._lock:
            now = perf_counter()
            frame_seconds = None if self._last_frame is None else now - self._last_frame
            self._last_frame = now
            self.world.step(self.tick, frame_seconds=frame_seconds)
            self.tick += 1

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step / self.speed_multiplier)
            if not self.running:
                self._last_frame = None
                continue
            await self.advance()
            if self.tick % self.broadcast_interval == 0:
                await self._broadcast_snapshot()

    async def set_fish_count(self, count: int) -> int:
        async with self._lock:
            self.world.update_parameters(fish_count=count)
            return self.world.config.population.fish_count

    async def update_parameters(self, values: Dict[str, float]) -> Dict[str, float]:
        async with self._lock:
            return self.world.update_parameters(**values)

    async def resize(self, width: float, height: float) -> Dict[str, float]:
        async with self._lock:
            bounds = self.world.resize(width, height)
        return {"min_x": bounds.a.x, "min_y": bounds.a.y, "max_x": bounds.b.x, "max_y": bounds.b.y}

    async def click(self, x: float, y: float) -> Dict[str, float] | None:
        async with self._lock:
            obstacle = self.world.click(x, y)
        if obstacle is None:
            return None
        return {"id": obstacle.id, "x": obstacle.position.x, "y": obstacle.position.y}

    async def add_obstacle(self, x: float, y: float) -> Dict[str, float]:
        async with self._lock:
            obstacle = self.world.add_obstacle(Vector2(x, y))
        return {"id": obstacle.id, "x": obstacle.position.x, "y": obstacle.position.y}

    async def clear_obstacles(self) -> None:
        async with self._lock:
            self.world.clear_obstacles()

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].tick <= tick:
                self._snapshot_queue.popleft()

    async def handle_message(self, message: str) -> None:
        """Apply one client message. Anything malformed is ignored."""
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            return
        if not isinstance(payload, dict):
            return
        kind = payload.get("type")
        if kind == "ack":
            tick = payload.get("tick")
            if isinstance(tick, int):
                await self.acknowledge(tick)
        elif kind == "click":
            try:
                x = float(payload.get("x", 0.0))
                y = float(payload.get("y", 0.0))
            except (TypeError, ValueError):
                logger.debug("Ignoring click with bad coordinates: %r", payload)
                return
            await self.click(x, y)

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.world.snapshot(self.tick)
        payload = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "metrics": asdict(snapshot.metrics),
                "fish": snapshot.fish,
                "obstacles": snapshot.obstacles,
                "bounds": asdict(snapshot.bounds),
                "metadata": asdict(snapshot.metadata),
            },
        }
        return QueuedSnapshot(tick=snapshot.tick, payload=json.dumps(payload))

    async def _send_pending_snapshots(self, client: WebSocket) -> None:
        last_sent = self._client_last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._snapshot_queue if item.tick > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.tick
        self._client_last_sent[client] = last_sent

    async def _broadcast_snapshot(self) -> None:
        queued = self._serialize_snapshot()
        async with self._queue_lock:
            self._snapshot_queue.append(queued)
        stale: Set[WebSocket] = set()
        for client in list(self.clients):
            try:
                await self._send_pending_snapshots(client)
            except (WebSocketDisconnect, RuntimeError):
                # Starlette raises RuntimeError when sending on a closed socket.
                stale.add(client)
        for client in stale:
            logger.debug("Dropping disconnected client")
            self.clients.discard(client)
            self._client_last_sent.pop(client, None)


app = FastAPI(title="Shoal Flocking Simulation")
controller = SimulationController(SimulationConfig())
static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=static_dir), name="static")


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/")
async def index() -> FileResponse:
    return FileResponse(static_dir / "index.html")


@app.get("/api/status")
async def status() -> JSONResponse:
    snapshot = controller.world.snapshot(controller.tick)
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "fish": len(controller.world.fish),
            "obstacles": len(controller.world.obstacles),
            "metrics": asdict(snapshot.metrics),
        }
    )


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    controller.running = True
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    controller.running = False
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    controller.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.get("/api/params")
async def get_params() -> JSONResponse:
    return JSONResponse(controller.world.parameters())


@app.post("/api/params")
async def set_params(payload: dict) -> JSONResponse:
    try:
        values = {str(name): float(value) for name, value in payload.items()}
        return JSONResponse(await controller.update_parameters(values))
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/api/population")
async def set_population(payload: dict) -> JSONResponse:
    try:
        requested = int(payload.get("count", controller.config.population.fish_count))
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    count = await controller.set_fish_count(requested)
    return JSONResponse({"fish_count": count})


@app.post("/api/viewport")
async def set_viewport(payload: dict) -> JSONResponse:
    try:
        width, height = float(payload["width"]), float(payload["height"])
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    bounds = await controller.resize(width, height)
    return JSONResponse(bounds)


@app.post("/api/pointer")
async def pointer_click(payload: dict) -> JSONResponse:
    try:
        x, y = float(payload["x"]), float(payload["y"])
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    obstacle = await controller.click(x, y)
    return JSONResponse({"placed": obstacle is not None, "obstacle": obstacle})


@app.delete("/api/obstacles")
async def delete_obstacles() -> JSONResponse:
    await controller.clear_obstacles()
    return JSONResponse({"obstacles": 0})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    controller._client_last_sent[websocket] = -1
    try:
        await controller._send_pending_snapshots(websocket)
        while True:
            message = await websocket.receive_text()
            await controller.handle_message(message)
    except WebSocketDisconnect:
        pass
    finally:
        controller.clients.discard(websocket)
        controller._client_last_sent.pop(websocket, None)


__all__ = ["app", "controller"]
