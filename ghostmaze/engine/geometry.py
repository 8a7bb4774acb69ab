from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterator, List, NamedTuple, Tuple

from ghostmaze.common.types import EdgeKey, Tile


class Direction(IntEnum):
    E = 0
    NE = 1
    N = 2
    W = 3
    SW = 4
    S = 5


# Axial offsets, indexed by Direction. Order is part of the input contract.
DIRECTIONS: Tuple[Tile, ...] = (
    (1, 0),
    (1, -1),
    (0, -1),
    (-1, 0),
    (-1, 1),
    (0, 1),
)


class Neighbor(NamedTuple):
    q: int
    r: int
    direction: int

    @property
    def tile(self) -> Tile:
        return (self.q, self.r)


@dataclass
class EdgeState:
    """Passage between two adjacent cells.

    ``door_open`` only matters when ``is_door`` is set.
    """

    open: bool = False
    is_door: bool = False
    door_open: bool = False

    @property
    def passable(self) -> bool:
        return self.open and (not self.is_door or self.door_open)


def edge_key(a: Tile, b: Tile) -> EdgeKey:
    """Order-independent key for the edge between ``a`` and ``b``."""
    return (a, b) if a <= b else (b, a)


def offset(tile: Tile, direction: int) -> Tile:
    dq, dr = DIRECTIONS[direction]
    return (tile[0] + dq, tile[1] + dr)


def is_adjacent(a: Tile, b: Tile) -> bool:
    return (b[0] - a[0], b[1] - a[1]) in DIRECTIONS


def manhattan(a: Tile, b: Tile) -> int:
    """Axial Manhattan distance, |dq| + |dr| (not hex distance)."""
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


class HexGrid:
    """Fixed rectangle of axial cells plus the edge map between them."""

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive: {width}x{height}")
        self.width = width
        self.height = height
        self.edges: Dict[EdgeKey, EdgeState] = {}

    def in_bounds(self, tile: Tile) -> bool:
        q, r = tile
        return 0 <= q < self.width and 0 <= r < self.height

    def tiles(self) -> List[Tile]:
        """All cells in row-major order (r outer, q inner)."""
        return [(q, r) for r in range(self.height) for q in range(self.width)]

    def neighbors(self, tile: Tile) -> List[Neighbor]:
        q, r = tile
        result: List[Neighbor] = []
        for direction, (dq, dr) in enumerate(DIRECTIONS):
            nq, nr = q + dq, r + dr
            if self.in_bounds((nq, nr)):
                result.append(Neighbor(nq, nr, direction))
        return result

    def set_edge_open(self, a: Tile, b: Tile, is_open: bool) -> EdgeState:
        if not (self.in_bounds(a) and self.in_bounds(b)):
            raise ValueError(f"Edge {a}-{b} leaves the grid")
        if not is_adjacent(a, b):
            raise ValueError(f"Edge {a}-{b} requires adjacent cells")
        key = edge_key(a, b)
        edge = self.edges.get(key)
        if edge is None:
            edge = EdgeState()
            self.edges[key] = edge
        edge.open = is_open
        return edge

    def get_edge(self, a: Tile, b: Tile) -> EdgeState | None:
        return self.edges.get(edge_key(a, b))

    def is_passable(self, a: Tile, b: Tile) -> bool:
        edge = self.get_edge(a, b)
        return edge is not None and edge.passable

    def step(self, tile: Tile, direction: int) -> Tile | None:
        """Return the cell reached by moving ``direction`` from ``tile``, if allowed."""
        if not 0 <= direction < len(DIRECTIONS):
            return None
        target = offset(tile, direction)
        if not self.in_bounds(target):
            return None
        if not self.is_passable(tile, target):
            return None
        return target

    def iter_edges(self) -> Iterator[Tuple[Tile, Tile, EdgeState]]:
        for key in sorted(self.edges):
            a, b = key
            yield a, b, self.edges[key]


def reachable_component(grid: HexGrid, start: Tile, ignore_doors: bool = True) -> set[Tile]:
    """Flood fill over open edges; doors count as open unless ``ignore_doors`` is False."""
    visited: set[Tile] = set()
    stack = [start]
    while stack:
        cur = stack.pop()
        if cur in visited:
            continue
        visited.add(cur)
        for n in grid.neighbors(cur):
            if n.tile in visited:
                continue
            edge = grid.get_edge(cur, n.tile)
            if edge is None or not edge.open:
                continue
            if not ignore_doors and not edge.passable:
                continue
            stack.append(n.tile)
    return visited


def is_fully_connected(grid: HexGrid, start: Tile, ignore_doors: bool = True) -> bool:
    return len(reachable_component(grid, start, ignore_doors)) == grid.width * grid.height
