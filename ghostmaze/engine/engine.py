from __future__ import annotations

import logging
import math
import random

from ghostmaze.common.constants import (
    GHOST_COUNT,
    GHOST_INITIAL_COOLDOWN_MS,
    GHOST_MIN_SPAWN_DISTANCE,
    GHOST_MOVE_JITTER_MS,
    GHOST_MOVE_MIN_MS,
    GHOST_SPAWN_MAX_ATTEMPTS,
    GRID_HEIGHT,
    GRID_WIDTH,
    MAX_FRAME_MS,
    MAZE_SEED,
    MSG_CAUGHT,
    MSG_DOOR_OPENED,
    MSG_NO_DOOR,
    MSG_TIMEOUT,
    MSG_WON,
    ROUND_SECONDS,
    TIMEOUT_GRACE_SECONDS,
)
from ghostmaze.common.types import Command, CommandType, RoundStatus, Tile
from ghostmaze.engine.geometry import DIRECTIONS, Direction, HexGrid, manhattan, offset
from ghostmaze.engine.maze import generate_maze, start_tile
from ghostmaze.engine.state import GameState, GhostState, PlayerState, RoundState

logger = logging.getLogger(__name__)


def clamp_dt(dt_ms: float, max_ms: float = MAX_FRAME_MS) -> float:
    """Bound a frame delta so a stalled host cannot skip ahead in one step."""
    return max(0.0, min(max_ms, dt_ms))


def format_time(ms: float) -> str:
    total = math.ceil(ms / 1000)
    return f"{total // 60:02d}:{total % 60:02d}"


class GameEngine:
    """Owns one round of the maze chase and advances it tick by tick.

    The maze comes from ``maze_seed`` and is identical every round; ``seed``
    only drives ghost placement and movement (``None`` means unseeded).
    """

    def __init__(
        self,
        seed: int | None = None,
        width: int = GRID_WIDTH,
        height: int = GRID_HEIGHT,
        ghost_count: int = GHOST_COUNT,
        maze_seed: int = MAZE_SEED,
        round_seconds: float = ROUND_SECONDS,
    ) -> None:
        self.rng = random.Random(seed)
        self.width = width
        self.height = height
        self.ghost_count = ghost_count
        self.maze_seed = maze_seed
        self.round_seconds = round_seconds
        self.state = self._new_round()

    @property
    def status(self) -> RoundStatus:
        return self.state.round.status

    def restart(self) -> None:
        """Throw away the round and start a fresh one on the same maze."""
        self.state = self._new_round()

    def update(self, dt_ms: float) -> None:
        """Advance the round by ``dt_ms`` milliseconds."""
        rnd = self.state.round
        if not rnd.running:
            return
        rnd.tick += 1
        self._advance_countdown(rnd, dt_ms)
        if rnd.ended:
            return
        self._move_ghosts(dt_ms)
        self._resolve_collisions()
        if rnd.running and self.state.player.pos == self.state.home:
            self._end_round(RoundStatus.WON, MSG_WON)

    def move(self, direction: int) -> bool:
        if self.state.round.ended:
            return False
        player = self.state.player
        target = self.state.grid.step(player.pos, direction)
        if target is None:
            return False
        player.pos = target
        player.last_move_dir = direction
        self.state.round.message = ""
        return True

    def open_adjacent_door(self) -> bool:
        """Open one closed door next to the player, trying the last move direction first."""
        rnd = self.state.round
        if rnd.ended:
            return False
        grid = self.state.grid
        player = self.state.player
        seen: set[int] = set()
        for direction in [player.last_move_dir, *range(len(DIRECTIONS))]:
            if direction in seen:
                continue
            seen.add(direction)
            target = offset(player.pos, direction)
            if not grid.in_bounds(target):
                continue
            edge = grid.get_edge(player.pos, target)
            if edge and edge.open and edge.is_door and not edge.door_open:
                edge.door_open = True
                rnd.message = MSG_DOOR_OPENED
                return True
        rnd.message = MSG_NO_DOOR
        return False

    def apply_command(self, cmd: Command) -> bool:
        """Dispatch an input-adapter command; returns whether it took effect."""
        if cmd.cmd == CommandType.RESTART:
            self.restart()
            return True
        if cmd.cmd == CommandType.DOOR:
            return self.open_adjacent_door()
        if cmd.cmd == CommandType.MOVE:
            direction = _parse_direction(cmd.arg)
            if direction is None:
                return False
            return self.move(direction)
        return False

    def render_view(self) -> dict:
        """Plain-data snapshot of the round for renderers."""
        state = self.state
        rnd = state.round
        return {
            "width": state.grid.width,
            "height": state.grid.height,
            "tick": rnd.tick,
            "status": rnd.status.value,
            "message": rnd.message,
            "countdown_ms": rnd.countdown_ms,
            "timer": format_time(rnd.countdown_ms),
            "darken": rnd.darken,
            "player": list(state.player.pos),
            "last_move_dir": int(state.player.last_move_dir),
            "home": list(state.home),
            "ghosts": [list(g.pos) for g in state.ghosts],
            "edges": [
                {
                    "a": list(a),
                    "b": list(b),
                    "open": edge.open,
                    "is_door": edge.is_door,
                    "door_open": edge.door_open,
                }
                for a, b, edge in state.grid.iter_edges()
            ],
            "grid": render_text_grid(state),
        }

    # Internal helpers

    def _new_round(self) -> GameState:
        grid = HexGrid(self.width, self.height)
        generate_maze(grid, self.maze_seed)
        player = PlayerState(pos=start_tile(grid))
        home = (self.width - 1, self.height // 2)
        ghosts = [
            GhostState(
                pos=self._spawn_ghost_tile(player.pos, home),
                cooldown_ms=self.rng.random() * GHOST_INITIAL_COOLDOWN_MS,
            )
            for _ in range(self.ghost_count)
        ]
        logger.info(
            "Round started: player=%s home=%s ghosts=%s",
            player.pos,
            home,
            [g.pos for g in ghosts],
        )
        return GameState(
            grid=grid,
            player=player,
            home=home,
            ghosts=ghosts,
            round=RoundState(countdown_ms=self.round_seconds * 1000),
        )

    def _spawn_ghost_tile(
        self,
        player_pos: Tile,
        home: Tile,
        max_attempts: int = GHOST_SPAWN_MAX_ATTEMPTS,
    ) -> Tile:
        """Rejection-sample a ghost tile; keeps the last sample if attempts run out."""
        tile = player_pos
        for _ in range(max(1, max_attempts)):
            tile = (self.rng.randrange(self.width), self.rng.randrange(self.height))
            if manhattan(tile, player_pos) >= GHOST_MIN_SPAWN_DISTANCE and tile != home:
                return tile
        logger.warning("Ghost spawn attempts exhausted, using %s", tile)
        return tile

    def _advance_countdown(self, rnd: RoundState, dt_ms: float) -> None:
        overflow_ms = dt_ms - rnd.countdown_ms
        rnd.countdown_ms = max(0.0, rnd.countdown_ms - dt_ms)
        if rnd.countdown_ms > 0:
            return
        # Only time past zero counts toward the lights-out grace window.
        if overflow_ms > 0:
            rnd.darken += overflow_ms / 1000
        if rnd.darken > TIMEOUT_GRACE_SECONDS:
            self._end_round(RoundStatus.LOST, MSG_TIMEOUT)

    def _move_ghosts(self, dt_ms: float) -> None:
        grid = self.state.grid
        for ghost in self.state.ghosts:
            ghost.cooldown_ms -= dt_ms
            if ghost.cooldown_ms > 0:
                continue
            ghost.cooldown_ms = GHOST_MOVE_MIN_MS + self.rng.random() * GHOST_MOVE_JITTER_MS
            directions = list(range(len(DIRECTIONS)))
            self.rng.shuffle(directions)
            for direction in directions:
                target = grid.step(ghost.pos, direction)
                if target is not None:
                    ghost.pos = target
                    break

    def _resolve_collisions(self) -> None:
        player_pos = self.state.player.pos
        if any(g.pos == player_pos for g in self.state.ghosts):
            self._end_round(RoundStatus.LOST, MSG_CAUGHT)

    def _end_round(self, status: RoundStatus, message: str) -> None:
        rnd = self.state.round
        rnd.status = status
        rnd.message = message
        logger.info("Round ended at tick %s: %s (%s)", rnd.tick, status.value, message)


def _parse_direction(arg: str | None) -> int | None:
    if arg is None:
        return None
    arg = arg.strip()
    if arg.isdecimal():
        value = int(arg)
        return value if 0 <= value < len(DIRECTIONS) else None
    try:
        return int(Direction[arg.upper()])
    except KeyError:
        return None


def render_text_grid(state: GameState) -> list[str]:
    """Row-per-line text view, each row shifted to show the axial skew."""
    ghosts = {g.pos for g in state.ghosts}
    rows: list[str] = []
    for r in range(state.grid.height):
        cells: list[str] = []
        for q in range(state.grid.width):
            tile = (q, r)
            if tile == state.player.pos:
                cells.append("X" if tile in ghosts else "P")
            elif tile in ghosts:
                cells.append("G")
            elif tile == state.home:
                cells.append("H")
            else:
                cells.append(".")
        rows.append(" " * r + " ".join(cells))
    return rows
