from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel, Field


class CommandRequest(BaseModel):
    cmd: str
    arg: Optional[str] = None


class CommandResponse(BaseModel):
    ok: bool
    status: str
    message: str


class EdgeView(BaseModel):
    a: Tuple[int, int]
    b: Tuple[int, int]
    open: bool
    is_door: bool
    door_open: bool


class GameStateResponse(BaseModel):
    width: int
    height: int
    tick: int
    status: str
    message: str
    countdown_ms: float
    timer: str
    darken: float
    player: Tuple[int, int]
    last_move_dir: int
    home: Tuple[int, int]
    ghosts: List[Tuple[int, int]] = Field(default_factory=list)
    edges: List[EdgeView] = Field(default_factory=list)
    grid: List[str] = Field(default_factory=list)
