"""Corridor carving between rooms.

Corridors are plain L shapes between room centers. Rooms are linked in
generation order (a chain, which already connects everything) and a few extra
random links add loops so there is usually more than one way around.
"""

import random
from typing import List

from .config import DungeonConfig
from .rooms import Room
from .tiles import FLOOR


def carve_h_tunnel(grid, x1: int, x2: int, y: int):
    height = len(grid)
    width = len(grid[0])
    if y < 1 or y >= height - 1:
        return
    for x in range(min(x1, x2), max(x1, x2) + 1):
        if 0 < x < width - 1:
            grid[y][x] = FLOOR


def carve_v_tunnel(grid, y1: int, y2: int, x: int):
    height = len(grid)
    width = len(grid[0])
    if x < 1 or x >= width - 1:
        return
    for y in range(min(y1, y2), max(y1, y2) + 1):
        if 0 < y < height - 1:
            grid[y][x] = FLOOR


def connect_rooms(grid, a: Room, b: Room, rng=None):
    """Carve an L corridor from a's center to b's center; bend order is a coin flip."""
    rng = rng or random
    ax, ay = a.center
    bx, by = b.center
    if rng.random() < 0.5:
        carve_h_tunnel(grid, ax, bx, ay)
        carve_v_tunnel(grid, ay, by, bx)
    else:
        carve_v_tunnel(grid, ay, by, ax)
        carve_h_tunnel(grid, ax, bx, by)


def connect_in_order(grid, rooms: List[Room], rng=None) -> int:
    for i in range(len(rooms) - 1):
        connect_rooms(grid, rooms[i], rooms[i + 1], rng)
    return max(0, len(rooms) - 1)


def braid(grid, rooms: List[Room], config: DungeonConfig, rng=None) -> int:
    """Add extra random links to create loops. Returns the number carved."""
    rng = rng or random
    if len(rooms) < 2:
        return 0
    extra = int(len(rooms) * config.braid_factor)
    carved = 0
    for _ in range(extra):
        r1 = rng.choice(rooms)
        r2 = rng.choice(rooms)
        if r1 is r2:
            continue
        connect_rooms(grid, r1, r2, rng)
        carved += 1
    return carved


__all__ = ["carve_h_tunnel", "carve_v_tunnel", "connect_rooms", "connect_in_order", "braid"]
