from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List

from ghostmaze.common.constants import BRAID_PROBABILITY, DOOR_FRACTION, MAZE_SEED
from ghostmaze.common.types import EdgeKey, Tile
from ghostmaze.engine.geometry import HexGrid, edge_key
from ghostmaze.engine.prng import Mulberry32, seeded_shuffle

logger = logging.getLogger(__name__)


@dataclass
class MazeStats:
    carved: int = 0
    braided: int = 0
    candidates: int = 0
    doors: int = 0


def start_tile(grid: HexGrid) -> Tile:
    return (0, grid.height // 2)


def generate_maze(grid: HexGrid, seed: int = MAZE_SEED) -> MazeStats:
    """Carve, braid and place doors on ``grid`` from a single seeded stream.

    The three phases draw from the same stream in a fixed order, so the result
    depends only on the grid size and ``seed``.
    """
    rng = Mulberry32(seed)
    stats = MazeStats()
    stats.carved = carve_passages(grid, rng, start_tile(grid))
    stats.braided = braid_passages(grid, rng)
    stats.candidates, stats.doors = place_doors(grid, rng)
    logger.debug(
        "Generated %sx%s maze seed=%s carved=%s braided=%s doors=%s/%s",
        grid.width,
        grid.height,
        seed,
        stats.carved,
        stats.braided,
        stats.doors,
        stats.candidates,
    )
    return stats


def carve_passages(grid: HexGrid, rng: Mulberry32, start: Tile) -> int:
    """Randomized depth-first backtracker; leaves a spanning tree of open edges."""
    visited: set[Tile] = {start}
    stack: List[Tile] = [start]
    carved = 0
    while stack:
        cur = stack[-1]
        options = [n for n in grid.neighbors(cur) if n.tile not in visited]
        if not options:
            stack.pop()
            continue
        seeded_shuffle(options, rng)
        nxt = options[0].tile
        grid.set_edge_open(cur, nxt, True)
        visited.add(nxt)
        stack.append(nxt)
        carved += 1
    return carved


def braid_passages(
    grid: HexGrid, rng: Mulberry32, probability: float = BRAID_PROBABILITY
) -> int:
    """Open extra edges between cells that have no edge record yet.

    One draw per qualifying (cell, neighbor) pair in row-major scan order.
    """
    opened = 0
    for tile in grid.tiles():
        for n in grid.neighbors(tile):
            if grid.get_edge(tile, n.tile) is not None:
                continue
            if rng.next() < probability:
                grid.set_edge_open(tile, n.tile, True)
                opened += 1
    return opened


def door_candidates(grid: HexGrid) -> List[EdgeKey]:
    """Open edges in row-major scan order, each edge listed once."""
    seen: set[EdgeKey] = set()
    candidates: List[EdgeKey] = []
    for tile in grid.tiles():
        for n in grid.neighbors(tile):
            key = edge_key(tile, n.tile)
            if key in seen:
                continue
            edge = grid.edges.get(key)
            if edge is None or not edge.open:
                continue
            seen.add(key)
            candidates.append(key)
    return candidates


def place_doors(
    grid: HexGrid, rng: Mulberry32, fraction: float = DOOR_FRACTION
) -> tuple[int, int]:
    """Turn a shuffled fraction of open edges into closed doors.

    Returns ``(candidate_count, door_count)``.
    """
    candidates = seeded_shuffle(door_candidates(grid), rng)
    door_count = math.floor(len(candidates) * fraction)
    for key in candidates[:door_count]:
        edge = grid.edges[key]
        edge.is_door = True
        edge.door_open = False
    return len(candidates), door_count
