from __future__ import annotations

from dataclasses import dataclass, field

from ghostmaze.common.constants import ROUND_SECONDS
from ghostmaze.common.types import RoundStatus, Tile
from ghostmaze.engine.geometry import Direction, HexGrid


@dataclass
class PlayerState:
    pos: Tile
    last_move_dir: int = Direction.E


@dataclass
class GhostState:
    pos: Tile
    cooldown_ms: float = 0.0


@dataclass
class RoundState:
    countdown_ms: float = ROUND_SECONDS * 1000
    status: RoundStatus = RoundStatus.RUNNING
    darken: float = 0.0  # seconds since the countdown ran out
    message: str = ""
    tick: int = 0

    @property
    def running(self) -> bool:
        return self.status == RoundStatus.RUNNING

    @property
    def ended(self) -> bool:
        return self.status != RoundStatus.RUNNING


@dataclass
class GameState:
    grid: HexGrid
    player: PlayerState
    home: Tile
    ghosts: list[GhostState] = field(default_factory=list)
    round: RoundState = field(default_factory=RoundState)
