import random
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple

from .config import DungeonConfig
from .tiles import FLOOR


class Rect(NamedTuple):
    x: int
    y: int
    w: int
    h: int


@dataclass
class Room:
    x: int
    y: int
    w: int
    h: int

    def cells(self):
        for iy in range(self.y, self.y + self.h):
            for ix in range(self.x, self.x + self.w):
                yield ix, iy

    @property
    def center(self) -> Tuple[int, int]:
        return (self.x + self.w // 2, self.y + self.h // 2)

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.x + self.w and self.y <= y < self.y + self.h

    def random_cell(self, rng=None) -> Tuple[int, int]:
        rng = rng or random
        return (self.x + rng.randrange(self.w), self.y + rng.randrange(self.h))

    def to_dict(self):
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


def place_rooms(grid, leaves: List[Rect], config: DungeonConfig, rng=None) -> List[Room]:
    """Carve at most one room per BSP leaf.

    Each room keeps a one-tile margin inside its leaf so neighbouring rooms
    never merge. Leaves too small for a `min_room` square are skipped.
    """
    if rng is None:
        rng = random
    rooms: List[Room] = []
    for leaf in leaves:
        room = _room_for_leaf(leaf, config, rng)
        if room is None:
            continue
        carve_room(grid, room)
        rooms.append(room)
    return rooms


def _room_for_leaf(leaf: Rect, config: DungeonConfig, rng) -> Optional[Room]:
    avail_w = leaf.w - 2
    avail_h = leaf.h - 2
    if avail_w < config.min_room or avail_h < config.min_room:
        return None
    rw = rng.randint(config.min_room, avail_w)
    rh = rng.randint(config.min_room, avail_h)
    rx = leaf.x + 1 + rng.randint(0, leaf.w - rw - 2)
    ry = leaf.y + 1 + rng.randint(0, leaf.h - rh - 2)
    return Room(rx, ry, rw, rh)


def carve_room(grid, room: Room):
    height = len(grid)
    width = len(grid[0]) if height else 0
    for ix, iy in room.cells():
        # Never open the outer border
        if 0 < ix < width - 1 and 0 < iy < height - 1:
            grid[iy][ix] = FLOOR
