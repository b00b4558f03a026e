"""Autoplay bot.

The bot plays through the same public operations a human uses
(`Game.submit_player_move`, `Game.use_item`, `Game.upgrade_equipment`); it
only reads the visible set and entity positions. One `tick` performs at most
one action:

1. paralyzed -> null move so the timers advance;
2. low life -> potion, low stamina -> food;
3. unused clarity potion on an unrevealed map -> drink it;
4. enough gold -> one affordable equipment upgrade;
5. target in priority order (same-room monster, same-room treasure, nearest
   visible monster, treasure, other item, visible stairs) and step toward it;
6. otherwise explore: nearest unvisited room, then the nearest unexplored
   floor tile, then the stairs wherever they are.

Paths are unweighted 8-directional BFS over non-wall tiles; entities do not
block a path, the move resolution deals with them one step at a time.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple, Union

from delve.logging_utils import get_logger
from delve.models.entities import EntityKind, EquipmentSlot

from .events import TurnResult, UseResult
from .loot_service import upgrade_cost

_log = get_logger("delve.autoplay")

Coord2D = Tuple[int, int]

NEIGHBORS_8 = [(1, 0), (-1, 0), (0, 1), (0, -1), (1, 1), (-1, -1), (1, -1), (-1, 1)]


def find_path(level, start: Coord2D, goal: Coord2D) -> Optional[List[Coord2D]]:
    """Shortest 8-directional path from start to goal (both included), or None."""
    if start == goal:
        return [start]
    parents: Dict[Coord2D, Optional[Coord2D]] = {start: None}
    q = deque([start])
    while q:
        cur = q.popleft()
        if cur == goal:
            path = []
            node: Optional[Coord2D] = cur
            while node is not None:
                path.append(node)
                node = parents[node]
            path.reverse()
            return path
        cx, cy = cur
        for dx, dy in NEIGHBORS_8:
            nxt = (cx + dx, cy + dy)
            if nxt in parents or not level.in_bounds(*nxt) or level.is_wall(*nxt):
                continue
            parents[nxt] = cur
            q.append(nxt)
    return None


def _dist(a, bx: int, by: int) -> float:
    return math.hypot(a.x - bx, a.y - by)


@dataclass
class BotAction:
    kind: str  # wait | use | upgrade | step | explore | idle
    detail: Optional[str] = None
    result: Union[TurnResult, UseResult, None] = None


class AutoplayBot:
    def __init__(self, rules=None):
        self.rules = rules
        self.visited_rooms: Set[int] = set()
        self._depth: Optional[int] = None

    def _sync_depth(self, game):
        if self._depth != game.depth:
            self.visited_rooms = set()
            self._depth = game.depth

    def tick(self, game) -> BotAction:
        rules = self.rules or game.rules
        player = game.player
        self._sync_depth(game)
        if not player.is_alive:
            return BotAction("idle", "dead")

        if player.is_paralyzed:
            return BotAction("wait", "paralyzed", game.submit_player_move(0, 0))

        if player.life < player.max_life * rules.bot_heal_fraction:
            potion = player.find_item("potion")
            if potion:
                return BotAction("use", "potion", game.use_item(potion.id))
        if player.stamina < rules.bot_food_stamina:
            food = player.find_item("food")
            if food:
                return BotAction("use", "food", game.use_item(food.id))

        clarity = player.find_item("clarity")
        if clarity and not game.map.fully_revealed:
            return BotAction("use", "clarity", game.use_item(clarity.id))

        if player.gold >= rules.bot_upgrade_gold:
            for slot in EquipmentSlot:
                item = player.equipment.get(slot)
                if item is not None and player.gold >= upgrade_cost(item.value):
                    return BotAction("upgrade", slot.value, game.upgrade_equipment(slot))

        target = self.choose_target(game)
        if target is not None:
            _log.debug(event="bot_target", kind=target.kind.value, x=target.x, y=target.y)
            result = self._step_towards(game, target.x, target.y)
            return BotAction("step", getattr(target, "name", None), result)
        return self.explore(game)

    # -- targeting ------------------------------------------------------
    def choose_target(self, game):
        player = game.player
        level = game.map
        visible = [e for e in level.entities if (e.x, e.y) in game.visible]
        monsters = [e for e in visible if e.kind == EntityKind.MONSTER and e.is_alive]
        items = [e for e in visible if e.kind == EntityKind.ITEM]
        treasures = [e for e in items if e.item_type == "treasure"]
        others = [e for e in items if e.item_type not in ("treasure", "exit")]
        exits = [e for e in items if e.item_type == "exit"]

        room_idx = level.room_index_at(player.x, player.y)
        if room_idx is not None:
            same_room_monsters = [m for m in monsters if level.room_index_at(m.x, m.y) == room_idx]
            same_room_treasures = [t for t in treasures if level.room_index_at(t.x, t.y) == room_idx]
        else:
            same_room_monsters, same_room_treasures = [], []

        for group in (same_room_monsters, same_room_treasures, monsters, treasures, others):
            if group:
                return min(group, key=lambda e: _dist(player, e.x, e.y))
        return exits[0] if exits else None

    # -- movement ---------------------------------------------------------
    def _step_along(self, game, path) -> Optional[TurnResult]:
        if not path or len(path) < 2:
            return None
        nx, ny = path[1]
        return game.submit_player_move(nx - game.player.x, ny - game.player.y)

    def _step_towards(self, game, tx: int, ty: int) -> Optional[TurnResult]:
        player = game.player
        if (player.x, player.y) == (tx, ty):
            return None
        path = find_path(game.map, (player.x, player.y), (tx, ty))
        if path is None:
            _log.debug(event="bot_no_path", tx=tx, ty=ty)
        return self._step_along(game, path)

    def exploration_path(self, game) -> Optional[List[Coord2D]]:
        player = game.player
        level = game.map
        start = (player.x, player.y)
        unvisited = [(idx, room.center) for idx, room in enumerate(level.rooms) if idx not in self.visited_rooms]
        if unvisited:
            _, center = min(unvisited, key=lambda r: _dist(player, r[1][0], r[1][1]))
            return find_path(level, start, center)
        radius_limit = (self.rules or game.rules).bot_search_radius
        for radius in range(1, radius_limit):
            for dy in range(-radius, radius + 1):
                for dx in range(-radius, radius + 1):
                    nx, ny = player.x + dx, player.y + dy
                    if not level.in_bounds(nx, ny) or level.is_explored(nx, ny) or level.is_wall(nx, ny):
                        continue
                    path = find_path(level, start, (nx, ny))
                    if path:
                        return path
        stairs = level.find_exit()
        if stairs is not None:
            return find_path(level, start, (stairs.x, stairs.y))
        return None

    def explore(self, game) -> BotAction:
        player = game.player
        room_idx = game.map.room_index_at(player.x, player.y)
        if room_idx is not None:
            self.visited_rooms.add(room_idx)
        path = self.exploration_path(game)
        if path and len(path) > 1:
            return BotAction("explore", None, self._step_along(game, path))
        stairs = game.map.find_exit()
        if stairs is not None:
            result = self._step_towards(game, stairs.x, stairs.y)
            if result is not None:
                return BotAction("explore", "stairs", result)
        return BotAction("idle", "stuck")


__all__ = ["find_path", "AutoplayBot", "BotAction"]
