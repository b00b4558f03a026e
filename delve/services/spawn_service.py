"""Level population: player start, stairs, monsters and treasure.

Room 0 is the safe start room (no monsters); the stairs sit at the center of
the last room. Every other room gets 1-3 monsters rolled from the catalog's
cumulative `SPAWN_TABLE`, scaled by depth, and one treasure chest. Placement
retries a bounded number of random cells and gives up quietly when a room is
too crowded; a level with no rooms gets no entities at all.
"""

from __future__ import annotations

import random
from typing import Optional, Tuple

from delve.logging_utils import get_logger
from delve.models.catalog import SPAWN_TABLE, pick_from_table
from delve.models.entities import Item, Monster

_log = get_logger("delve.spawn")


def choose_monster_type(rng=None) -> str:
    rng = rng or random
    return pick_from_table(SPAWN_TABLE, rng.random())


def _free(level, x: int, y: int, player_pos: Tuple[int, int]) -> bool:
    return not level.is_wall(x, y) and level.entity_at(x, y) is None and (x, y) != player_pos


def _exit_position(level, player_pos) -> Optional[Tuple[int, int]]:
    pos = level.rooms[-1].center
    if pos != player_pos:
        return pos
    # Single-room level: put the stairs on any other free floor tile
    room = level.rooms[-1]
    for cell in room.cells():
        if cell != player_pos and not level.is_wall(*cell):
            return cell
    for cell in level.floor_tiles():
        if cell != player_pos:
            return cell
    return None


def populate_level(level, depth: int, rules, rng=None) -> Tuple[int, int]:
    """Place stairs, monsters and treasure; return the player start position."""
    rng = rng or random
    if not level.rooms:
        _log.warn(event="populate_skipped", reason="no_rooms", depth=depth)
        return (1, 1)
    player_pos = level.rooms[0].center
    exit_pos = _exit_position(level, player_pos)
    if exit_pos is not None:
        level.add_entity(Item(exit_pos[0], exit_pos[1], "exit"))

    monsters = treasures = 0
    for room in level.rooms[1:]:
        count = rng.randint(rules.monsters_per_room_min, rules.monsters_per_room_max)
        for _ in range(count):
            kind = choose_monster_type(rng)
            for _attempt in range(rules.spawn_attempts):
                x, y = room.random_cell(rng)
                if _free(level, x, y, player_pos):
                    level.add_entity(Monster(x, y, kind, depth))
                    monsters += 1
                    break
        x, y = room.random_cell(rng)
        if _free(level, x, y, player_pos):
            level.add_entity(Item(x, y, "treasure"))
            treasures += 1
    _log.debug(event="populated", depth=depth, rooms=len(level.rooms), monsters=monsters, treasures=treasures)
    return player_pos


__all__ = ["choose_monster_type", "populate_level"]
