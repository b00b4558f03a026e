# Tile constants centralized for modular imports
from enum import IntEnum


class Tile(IntEnum):
    FLOOR = 0
    WALL = 1


FLOOR = Tile.FLOOR
WALL = Tile.WALL

__all__ = ["Tile", "FLOOR", "WALL"]
