import math

import pytest

from ghostmaze.common.constants import DOOR_FRACTION, GRID_HEIGHT, GRID_WIDTH, MAZE_SEED
from ghostmaze.engine.geometry import HexGrid, is_adjacent, is_fully_connected, reachable_component
from ghostmaze.engine.maze import (
    braid_passages,
    carve_passages,
    door_candidates,
    generate_maze,
    place_doors,
    start_tile,
)
from ghostmaze.engine.prng import Mulberry32


def _edge_map(grid: HexGrid) -> dict:
    return {key: (e.open, e.is_door, e.door_open) for key, e in grid.edges.items()}


def test_same_seed_same_maze():
    first = HexGrid(GRID_WIDTH, GRID_HEIGHT)
    second = HexGrid(GRID_WIDTH, GRID_HEIGHT)
    generate_maze(first, MAZE_SEED)
    generate_maze(second, MAZE_SEED)
    assert _edge_map(first) == _edge_map(second)


def test_different_seed_different_maze():
    first = HexGrid(GRID_WIDTH, GRID_HEIGHT)
    second = HexGrid(GRID_WIDTH, GRID_HEIGHT)
    generate_maze(first, 1)
    generate_maze(second, 2)
    assert _edge_map(first) != _edge_map(second)


@pytest.mark.parametrize("seed", range(20))
@pytest.mark.parametrize("size", [(1, 1), (2, 3), (5, 5), (13, 11)])
def test_carving_alone_connects_every_cell(seed, size):
    grid = HexGrid(*size)
    start = start_tile(grid)
    carved = carve_passages(grid, Mulberry32(seed), start)
    assert carved == grid.width * grid.height - 1
    assert len(grid.edges) == carved
    assert all(e.open and not e.is_door for e in grid.edges.values())
    assert is_fully_connected(grid, start)


def test_small_grid_start_reaches_far_column():
    grid = HexGrid(5, 5)
    carve_passages(grid, Mulberry32(42), (0, 2))
    reachable = reachable_component(grid, (0, 2))
    assert any(q == 4 for q, _ in reachable)


def test_braiding_only_adds_open_edges():
    grid = HexGrid(GRID_WIDTH, GRID_HEIGHT)
    rng = Mulberry32(MAZE_SEED)
    carve_passages(grid, rng, start_tile(grid))
    tree = set(grid.edges)
    opened = braid_passages(grid, rng)
    assert tree <= set(grid.edges)
    assert len(grid.edges) == len(tree) + opened
    assert all(e.open for e in grid.edges.values())


def test_braiding_probability_bounds():
    grid = HexGrid(6, 6)
    rng = Mulberry32(3)
    carve_passages(grid, rng, start_tile(grid))
    assert braid_passages(grid, rng, probability=0.0) == 0

    full = HexGrid(6, 6)
    rng = Mulberry32(3)
    carve_passages(full, rng, start_tile(full))
    braid_passages(full, rng, probability=1.0)
    total_pairs = sum(len(full.neighbors(t)) for t in full.tiles()) // 2
    assert len(full.edges) == total_pairs


def test_door_candidates_list_each_open_edge_once():
    grid = HexGrid(7, 7)
    generate_maze(grid, seed=11)
    candidates = door_candidates(grid)
    assert len(candidates) == len(set(candidates))
    assert set(candidates) == {k for k, e in grid.edges.items() if e.open}


def test_door_count_is_floor_of_fraction_of_unique_open_edges():
    grid = HexGrid(GRID_WIDTH, GRID_HEIGHT)
    stats = generate_maze(grid, MAZE_SEED)
    open_edges = [e for e in grid.edges.values() if e.open]
    doors = [e for e in grid.edges.values() if e.is_door]
    assert stats.candidates == len(open_edges)
    assert stats.doors == len(doors) == math.floor(DOOR_FRACTION * len(open_edges))
    assert doors
    assert all(not e.door_open and e.open for e in doors)


def test_place_doors_fraction_zero_places_nothing():
    grid = HexGrid(4, 4)
    rng = Mulberry32(8)
    carve_passages(grid, rng, start_tile(grid))
    candidates, doors = place_doors(grid, rng, fraction=0.0)
    assert candidates == len(grid.edges)
    assert doors == 0


def test_generated_edges_are_adjacent_and_in_bounds():
    grid = HexGrid(GRID_WIDTH, GRID_HEIGHT)
    generate_maze(grid, MAZE_SEED)
    for a, b in grid.edges:
        assert grid.in_bounds(a) and grid.in_bounds(b)
        assert is_adjacent(a, b)


def test_full_maze_stays_connected_ignoring_doors():
    grid = HexGrid(GRID_WIDTH, GRID_HEIGHT)
    generate_maze(grid, MAZE_SEED)
    assert is_fully_connected(grid, start_tile(grid))
