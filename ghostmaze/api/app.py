from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict

from fastapi import FastAPI, Header, HTTPException, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware

from ghostmaze.api.models import CommandRequest, CommandResponse, GameStateResponse
from ghostmaze.common.config import settings
from ghostmaze.common.types import Command, CommandType
from ghostmaze.engine.engine import GameEngine, clamp_dt

app = FastAPI(title="ghostmaze")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger(__name__)

SPECTATOR_SEND_TIMEOUT = 1.0

engine: GameEngine | None = None
engine_lock = asyncio.Lock()

spectator_clients: set[WebSocket] = set()
spectator_clients_lock = asyncio.Lock()


@dataclass
class SpectatorBroadcaster:
    queue: asyncio.Queue[Dict[str, object]]
    task: asyncio.Task


broadcaster: SpectatorBroadcaster | None = None
tick_task: asyncio.Task | None = None


def _get_engine() -> GameEngine:
    assert engine is not None
    return engine


def _check_api_key(provided: str | None) -> None:
    if settings.api_key and provided != settings.api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


@app.on_event("startup")
async def _startup() -> None:
    global engine, broadcaster, tick_task
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    engine = GameEngine(seed=settings.random_seed)
    queue: asyncio.Queue[Dict[str, object]] = asyncio.Queue(maxsize=1)
    broadcaster = SpectatorBroadcaster(queue=queue, task=asyncio.create_task(_broadcast(queue)))
    if settings.enable_tick_loop:
        tick_task = asyncio.create_task(tick_loop())
    else:
        tick_task = None
        logger.warning("Tick loop disabled via GHOSTMAZE_ENABLE_TICK_LOOP")


@app.on_event("shutdown")
async def _shutdown() -> None:
    if tick_task is not None:
        tick_task.cancel()
    if broadcaster is not None:
        broadcaster.task.cancel()


async def tick_loop(clock: Callable[[], float] = time.monotonic) -> None:
    """Advance the round at the configured cadence and offer each frame to spectators."""
    game_engine = _get_engine()
    last = clock()
    while True:
        await asyncio.sleep(settings.tick_seconds)
        now = clock()
        dt_ms = clamp_dt((now - last) * 1000)
        last = now
        async with engine_lock:
            game_engine.update(dt_ms)
            frame = game_engine.render_view()
        if broadcaster is not None:
            _offer_frame(broadcaster.queue, frame)


def _offer_frame(queue: asyncio.Queue[Dict[str, object]], frame: Dict[str, object]) -> None:
    """Replace any frame the broadcaster has not picked up yet with ``frame``."""
    if queue.full():
        try:
            queue.get_nowait()
        except asyncio.QueueEmpty:
            pass
    queue.put_nowait(frame)


async def _send_frame(ws: WebSocket, frame: Dict[str, object]) -> bool:
    try:
        await asyncio.wait_for(ws.send_json(frame), timeout=SPECTATOR_SEND_TIMEOUT)
    except Exception:
        logger.exception("Dropping spectator after failed frame send")
        return False
    return True


async def _broadcast(queue: asyncio.Queue[Dict[str, object]]) -> None:
    while True:
        try:
            frame = await queue.get()
        except asyncio.CancelledError:
            break
        async with spectator_clients_lock:
            clients = list(spectator_clients)
        if not clients:
            continue
        results = await asyncio.gather(
            *(_send_frame(ws, frame) for ws in clients),
            return_exceptions=True,
        )
        stale = [ws for ws, ok in zip(clients, results) if ok is not True]
        if stale:
            async with spectator_clients_lock:
                for ws in stale:
                    spectator_clients.discard(ws)


@app.get("/state", response_model=GameStateResponse)
async def game_state(x_api_key: str | None = Header(default=None)) -> GameStateResponse:
    _check_api_key(x_api_key)
    game_engine = _get_engine()
    async with engine_lock:
        data = game_engine.render_view()
    return GameStateResponse(**data)


@app.post("/cmd", response_model=CommandResponse)
async def game_cmd(
    req: CommandRequest, x_api_key: str | None = Header(default=None)
) -> CommandResponse:
    _check_api_key(x_api_key)
    try:
        cmd = Command(cmd=CommandType(req.cmd.upper()), arg=req.arg)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid command")
    game_engine = _get_engine()
    async with engine_lock:
        ok = game_engine.apply_command(cmd)
        rnd = game_engine.state.round
        return CommandResponse(ok=ok, status=rnd.status.value, message=rnd.message)


@app.post("/restart", response_model=CommandResponse)
async def game_restart(x_api_key: str | None = Header(default=None)) -> CommandResponse:
    _check_api_key(x_api_key)
    game_engine = _get_engine()
    async with engine_lock:
        game_engine.restart()
        rnd = game_engine.state.round
        return CommandResponse(ok=True, status=rnd.status.value, message=rnd.message)


@app.websocket("/spectate/ws")
async def spectate_ws(ws: WebSocket, key: str | None = None) -> None:
    _check_api_key(key)
    await ws.accept()
    async with engine_lock:
        initial = _get_engine().render_view()
    await ws.send_json(initial)
    async with spectator_clients_lock:
        spectator_clients.add(ws)
    try:
        while True:
            try:
                await ws.receive_text()
            except WebSocketDisconnect:
                break
            except Exception:
                logger.exception("Spectator websocket receive failed")
                break
    finally:
        async with spectator_clients_lock:
            spectator_clients.discard(ws)
