"""Level map: tile grid, rooms, explored memory and the live entity list.

A `LevelMap` is built once per descent and thrown away on the next; nothing
on it carries over between levels. The grid is indexed ``grid[y][x]`` and any
out-of-bounds read is treated as a wall.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Tuple

from delve.models.entities import Entity, EntityKind, Item, Monster

from .rooms import Room
from .tiles import FLOOR, WALL, Tile


class LevelMap:
    def __init__(
        self,
        width: int,
        height: int,
        grid: List[List[Tile]],
        rooms: Optional[List[Room]] = None,
        explored: Optional[List[List[bool]]] = None,
        metrics: Optional[Dict[str, Any]] = None,
        seed: Optional[int] = None,
    ):
        self.width = width
        self.height = height
        self.grid = grid
        self.rooms: List[Room] = list(rooms or [])
        self.explored = explored or [[False] * width for _ in range(height)]
        self.entities: List[Entity] = []
        self.fully_revealed = False
        self.metrics = metrics or {}
        self.seed = seed

    # -- tiles ---------------------------------------------------------
    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def tile(self, x: int, y: int) -> Tile:
        if not self.in_bounds(x, y):
            return WALL
        return self.grid[y][x]

    def is_wall(self, x: int, y: int) -> bool:
        return self.tile(x, y) == WALL

    def floor_tiles(self) -> Iterator[Tuple[int, int]]:
        for y in range(self.height):
            row = self.grid[y]
            for x in range(self.width):
                if row[x] == FLOOR:
                    yield x, y

    # -- explored memory -----------------------------------------------
    def set_explored(self, x: int, y: int):
        if self.in_bounds(x, y):
            self.explored[y][x] = True

    def is_explored(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and self.explored[y][x]

    # -- rooms ---------------------------------------------------------
    def room_index_at(self, x: int, y: int) -> Optional[int]:
        for idx, room in enumerate(self.rooms):
            if room.contains(x, y):
                return idx
        return None

    # -- entities ------------------------------------------------------
    def entity_at(self, x: int, y: int, exclude: Optional[Entity] = None) -> Optional[Entity]:
        for ent in self.entities:
            if ent is exclude:
                continue
            if ent.x == x and ent.y == y:
                return ent
        return None

    def add_entity(self, entity: Entity) -> Entity:
        occupant = self.entity_at(entity.x, entity.y)
        assert occupant is None, f"tile ({entity.x},{entity.y}) already holds {occupant!r}"
        self.entities.append(entity)
        return entity

    def remove_entity(self, entity: Entity):
        self.entities = [e for e in self.entities if e is not entity]

    def get_entity(self, entity_id: str) -> Optional[Entity]:
        for ent in self.entities:
            if ent.id == entity_id:
                return ent
        return None

    def monsters(self, alive_only: bool = True) -> List[Monster]:
        return [
            e for e in self.entities if e.kind == EntityKind.MONSTER and (not alive_only or e.is_alive)
        ]

    def items(self) -> List[Item]:
        return [e for e in self.entities if e.kind == EntityKind.ITEM]

    def find_exit(self) -> Optional[Item]:
        for item in self.items():
            if item.item_type == "exit":
                return item
        return None

    # -- rendering helpers ---------------------------------------------
    def to_char_rows(self, visible=None, player=None) -> List[str]:
        """ASCII snapshot; unexplored tiles render blank when `visible` is given."""
        overlay = {(e.x, e.y): e.symbol for e in self.entities}
        if player is not None:
            overlay[(player.x, player.y)] = player.symbol
        rows = []
        for y in range(self.height):
            chars = []
            for x in range(self.width):
                if visible is not None and (x, y) not in visible and not self.explored[y][x]:
                    chars.append(" ")
                    continue
                if (x, y) in overlay and (visible is None or (x, y) in visible):
                    chars.append(overlay[(x, y)])
                else:
                    chars.append("#" if self.grid[y][x] == WALL else ".")
            rows.append("".join(chars))
        return rows


__all__ = ["LevelMap"]
