"""Connectivity checks over the floor graph.

`Generator.run` records `connected` and `unreachable_rooms` in the level
metrics from these.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable, Set, Tuple

from .tiles import FLOOR

Coord2D = Tuple[int, int]

NEIGHBORS_4 = [(-1, 0), (1, 0), (0, -1), (0, 1)]


def flood_floor(grid, start: Coord2D) -> Set[Coord2D]:
    """Return every floor tile 4-connected to `start` (empty if start is a wall)."""
    height = len(grid)
    width = len(grid[0]) if height else 0
    sx, sy = start
    if not (0 <= sx < width and 0 <= sy < height) or grid[sy][sx] != FLOOR:
        return set()
    visited = {start}
    q = deque([start])
    while q:
        cx, cy = q.popleft()
        for dx, dy in NEIGHBORS_4:
            nx, ny = cx + dx, cy + dy
            if 0 <= nx < width and 0 <= ny < height and (nx, ny) not in visited:
                if grid[ny][nx] == FLOOR:
                    visited.add((nx, ny))
                    q.append((nx, ny))
    return visited


def floor_cells(grid) -> Iterable[Coord2D]:
    for y, row in enumerate(grid):
        for x, t in enumerate(row):
            if t == FLOOR:
                yield x, y


def is_connected(grid) -> bool:
    cells = list(floor_cells(grid))
    if not cells:
        return True
    return len(flood_floor(grid, cells[0])) == len(cells)


def unreachable_rooms(grid, rooms) -> list:
    if not rooms:
        return []
    reach = flood_floor(grid, rooms[0].center)
    return [idx for idx, room in enumerate(rooms) if room.center not in reach]


__all__ = ["flood_floor", "is_connected", "unreachable_rooms"]
