import asyncio
import itertools

import pytest
from fastapi.testclient import TestClient

import ghostmaze.api.app as app_module
from ghostmaze.common.config import Settings


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(
        app_module, "settings", Settings(enable_tick_loop=False, random_seed=1, api_key=None)
    )
    with TestClient(app_module.app) as test_client:
        yield test_client


def test_state_endpoint_returns_snapshot(client):
    resp = client.get("/state")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "running"
    assert data["width"] == 13
    assert data["player"] == [0, 5]
    assert data["timer"] == "01:00"
    assert data["edges"]


def test_cmd_rejects_unknown_command(client):
    resp = client.post("/cmd", json={"cmd": "JUMP"})
    assert resp.status_code == 400


def test_cmd_move_and_door(client):
    resp = client.post("/cmd", json={"cmd": "move", "arg": "9"})
    assert resp.status_code == 200
    assert resp.json()["ok"] is False

    resp = client.post("/cmd", json={"cmd": "door"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "running"
    assert body["message"] in {"Door opened", "No door found"}


def test_restart_endpoint(client):
    app_module.engine.state.player.pos = (3, 3)
    resp = client.post("/restart")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True
    assert client.get("/state").json()["player"] == [0, 5]


def test_api_key_required_when_configured(monkeypatch, client):
    monkeypatch.setattr(
        app_module, "settings", Settings(enable_tick_loop=False, api_key="secret")
    )
    assert client.get("/state").status_code == 401
    assert client.get("/state", headers={"X-API-Key": "secret"}).status_code == 200


def test_spectator_ws_sends_initial_snapshot(client):
    with client.websocket_connect("/spectate/ws") as ws:
        data = ws.receive_json()
    assert data["status"] == "running"
    assert len(data["grid"]) == 11


def test_cmd_move_rejects_non_ascii_digit(client):
    resp = client.post("/cmd", json={"cmd": "move", "arg": "²"})
    assert resp.status_code == 200
    assert resp.json()["ok"] is False
    assert client.get("/state").json()["player"] == [0, 5]


def test_offer_frame_keeps_only_newest():
    queue = asyncio.Queue(maxsize=1)
    app_module._offer_frame(queue, {"tick": 1})
    app_module._offer_frame(queue, {"tick": 2})
    assert queue.qsize() == 1
    assert queue.get_nowait() == {"tick": 2}


class _RecordingEngine:
    def __init__(self):
        self.dts = []

    def update(self, dt_ms):
        self.dts.append(dt_ms)

    def render_view(self):
        return {"tick": len(self.dts)}


def test_tick_loop_clamps_dt_and_offers_frames(monkeypatch):
    recorder = _RecordingEngine()
    monkeypatch.setattr(app_module, "engine", recorder)
    monkeypatch.setattr(app_module, "settings", Settings(tick_seconds=0.0))
    # A 10 s stall first, then steady 20 ms frames.
    readings = itertools.chain([0.0, 10.0], (10.0 + 0.02 * i for i in itertools.count(1)))

    async def run_loop():
        queue = asyncio.Queue(maxsize=1)
        monkeypatch.setattr(
            app_module, "broadcaster", app_module.SpectatorBroadcaster(queue=queue, task=None)
        )
        task = asyncio.create_task(app_module.tick_loop(clock=lambda: next(readings)))
        frame = await asyncio.wait_for(queue.get(), timeout=1.0)
        task.cancel()
        return frame

    frame = asyncio.run(run_loop())
    assert recorder.dts[0] == 100
    assert all(abs(dt - 20) < 1e-6 for dt in recorder.dts[1:])
    assert frame["tick"] >= 1


@pytest.fixture
def live_client(monkeypatch):
    monkeypatch.setattr(
        app_module,
        "settings",
        Settings(enable_tick_loop=True, tick_seconds=0.01, random_seed=1, api_key=None),
    )
    with TestClient(app_module.app) as test_client:
        yield test_client


def test_spectator_receives_frames_as_round_ticks(live_client):
    with live_client.websocket_connect("/spectate/ws") as ws:
        first = ws.receive_json()
        later = first
        for _ in range(5):
            later = ws.receive_json()
            if later["tick"] > first["tick"]:
                break
    assert later["tick"] > first["tick"]
