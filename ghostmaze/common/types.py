from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

Tile = Tuple[int, int]
EdgeKey = Tuple[Tile, Tile]


class RoundStatus(str, Enum):
    RUNNING = "running"
    WON = "won"
    LOST = "lost"


class CommandType(str, Enum):
    MOVE = "MOVE"
    DOOR = "DOOR"
    RESTART = "RESTART"


@dataclass(frozen=True)
class Command:
    cmd: CommandType
    arg: str | None = None
