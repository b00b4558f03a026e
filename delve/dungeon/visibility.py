"""Field of view with persistent explored memory.

Rays are cast from the viewer to every offset inside a rough circle
(``rx*rx + ry*ry <= r*r + 2``) and walked with integer Bresenham stepping.
Every stepped tile becomes visible and explored; a wall tile is included and
ends its ray, so wall faces show but nothing behind them does. Adjacent rays
can disagree about a corner; that asymmetry is accepted.
"""

from __future__ import annotations

from typing import Iterator, Set, Tuple

from delve.logging_utils import get_logger

from .level import LevelMap

Coord2D = Tuple[int, int]

DEFAULT_RADIUS = 3
RADIUS_FUDGE = 2

_log = get_logger("delve.visibility")


def bresenham(x0: int, y0: int, x1: int, y1: int) -> Iterator[Coord2D]:
    """Yield the tiles of the integer line from (x0,y0) to (x1,y1), both ends included."""
    dx = abs(x1 - x0)
    dy = abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx - dy
    while True:
        yield x0, y0
        if x0 == x1 and y0 == y1:
            return
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x0 += sx
        if e2 < dx:
            err += dx
            y0 += sy


def compute_visibility(level: LevelMap, origin: Coord2D, radius: int = DEFAULT_RADIUS) -> Set[Coord2D]:
    if level.fully_revealed:
        return {(x, y) for y in range(level.height) for x in range(level.width)}
    ox, oy = origin
    visible: Set[Coord2D] = set()
    limit = radius * radius + RADIUS_FUDGE
    for ry in range(-radius, radius + 1):
        for rx in range(-radius, radius + 1):
            if rx * rx + ry * ry > limit:
                continue
            for x, y in bresenham(ox, oy, ox + rx, oy + ry):
                if not level.in_bounds(x, y):
                    break
                visible.add((x, y))
                level.set_explored(x, y)
                if level.is_wall(x, y):
                    break
    return visible


def reveal_all(level: LevelMap) -> int:
    """Switch the level to fully revealed and mark every floor tile explored.

    Returns the number of tiles newly marked. Calling it again is a no-op.
    """
    if level.fully_revealed:
        return 0
    level.fully_revealed = True
    marked = 0
    for x, y in level.floor_tiles():
        if not level.explored[y][x]:
            level.explored[y][x] = True
            marked += 1
    _log.debug(event="reveal_all", marked=marked)
    return marked


__all__ = ["bresenham", "compute_visibility", "reveal_all", "DEFAULT_RADIUS"]
