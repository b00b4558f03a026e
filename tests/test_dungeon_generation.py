import random

import pytest

from delve.dungeon import DungeonConfig, FLOOR, WALL, Generator, generate, generate_level
from delve.dungeon.connectivity import is_connected, unreachable_rooms
from delve.dungeon.rooms import Rect, Room, carve_room
from delve.dungeon.tunnels import braid, connect_in_order


@pytest.mark.parametrize("seed", [1, 7, 42, 1234])
def test_rooms_carved_and_border_intact(seed):
    level = generate_level(30, 20, seed=seed)
    assert level.rooms, "expected at least one room"
    for room in level.rooms:
        for x, y in room.cells():
            assert level.tile(x, y) == FLOOR
    for x in range(level.width):
        assert level.grid[0][x] == WALL
        assert level.grid[level.height - 1][x] == WALL
    for y in range(level.height):
        assert level.grid[y][0] == WALL
        assert level.grid[y][level.width - 1] == WALL


@pytest.mark.parametrize("seed", [3, 11, 99, 2024, 31337])
def test_every_room_reachable(seed):
    level = generate_level(48, 24, seed=seed)
    assert unreachable_rooms(level.grid, level.rooms) == []
    assert is_connected(level.grid)


def test_same_seed_same_layout():
    a = generate_level(30, 20, seed=42)
    b = generate_level(30, 20, seed=42)
    assert a.grid == b.grid
    assert [r.to_dict() for r in a.rooms] == [r.to_dict() for r in b.rooms]
    assert a.seed == b.seed == 42


def test_generate_accepts_explicit_rng():
    first = generate(30, 20, rng=random.Random(5))
    second = generate(30, 20, rng=random.Random(5))
    assert first.grid == second.grid
    assert len(first.rooms) == len(second.rooms)


def test_missing_seed_is_assigned_and_reported():
    level = generate_level(30, 20)
    assert isinstance(level.seed, int)
    assert level.metrics["seed"] == level.seed


def test_bsp_leaves_stay_inside_border():
    config = DungeonConfig(width=40, height=30, seed=8)
    leaves = Generator(config).bsp_partition()
    assert leaves
    for leaf in leaves:
        assert leaf.x >= 1 and leaf.y >= 1
        assert leaf.x + leaf.w <= config.width - 1
        assert leaf.y + leaf.h <= config.height - 1


def test_tiny_map_gets_fallback_room():
    # 6x6 leaves a 4x4 interior: too small for a room with its one-tile margin
    level = generate_level(6, 6, seed=1)
    assert len(level.rooms) == 1
    assert level.rooms[0].to_dict() == {"x": 1, "y": 1, "w": 4, "h": 4}
    assert level.metrics["fallback_room"] is True
    assert level.tile(2, 2) == FLOOR


def test_metrics_keys_and_disable_flag():
    level = generate_level(30, 20, seed=4)
    for key in ("seed", "leaves", "rooms", "links", "braids", "fallback_room", "floor_tiles", "generation_ms"):
        assert key in level.metrics
    assert level.metrics["rooms"] == len(level.rooms)
    assert level.metrics["links"] == len(level.rooms) - 1
    assert level.metrics["floor_tiles"] == len(list(level.floor_tiles()))

    assert level.metrics["connected"] is True
    assert level.metrics["unreachable_rooms"] == 0

    quiet = generate_level(30, 20, seed=4, config=DungeonConfig(enable_metrics=False))
    assert quiet.metrics == {}


def test_zero_braid_factor_adds_no_links():
    level = generate_level(30, 20, seed=9, config=DungeonConfig(braid_factor=0.0))
    assert level.metrics["braids"] == 0


def test_connect_in_order_links_a_chain():
    grid = [[WALL] * 20 for _ in range(10)]
    rooms = [Room(1, 1, 3, 3), Room(14, 5, 3, 3)]
    for room in rooms:
        carve_room(grid, room)
    assert unreachable_rooms(grid, rooms) == [1]
    assert connect_in_order(grid, rooms, random.Random(0)) == 1
    assert unreachable_rooms(grid, rooms) == []


def test_braid_skips_single_room():
    grid = [[WALL] * 10 for _ in range(10)]
    assert braid(grid, [Room(1, 1, 3, 3)], DungeonConfig(), random.Random(0)) == 0


def test_carve_room_never_opens_border():
    grid = [[WALL] * 6 for _ in range(6)]
    carve_room(grid, Room(0, 0, 6, 6))
    assert all(t == WALL for t in grid[0])
    assert grid[1][1] == FLOOR


def test_rect_is_plain_tuple():
    r = Rect(1, 2, 3, 4)
    assert (r.x, r.y, r.w, r.h) == (1, 2, 3, 4)
