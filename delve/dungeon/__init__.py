"""Public dungeon package interface."""

from .config import DungeonConfig
from .generator import GeneratedLevel, Generator, generate, generate_level
from .level import LevelMap
from .rooms import Room
from .tiles import FLOOR, WALL, Tile
from .visibility import compute_visibility, reveal_all

__all__ = [
    "DungeonConfig",
    "GeneratedLevel",
    "Generator",
    "generate",
    "generate_level",
    "LevelMap",
    "Room",
    "Tile",
    "FLOOR",
    "WALL",
    "compute_visibility",
    "reveal_all",
]
