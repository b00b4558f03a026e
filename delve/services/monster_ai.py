"""Monster AI: chase-or-idle with a leash.

Each living monster gets one decision per monster phase:

1. Slow monsters bump a counter and only act on even counts.
2. Beyond the aggro range (Manhattan) the monster idles.
3. A monster already fought this turn skips its move.
4. Candidate steps: the axis with the larger |delta| first (x on ties), then
   the other axis; one tile each, never diagonal.
5. A non-attack step that would leave the leash radius around the spawn
   origin is rejected. Stepping into the player is an attack and always
   allowed, and it is one-sided (no counter-attack).
6. Walls and any other entity (items included) block; the next candidate is
   tried, and with none left the monster stays put.

Returns a short action string, mostly for logging and tests.
"""

from __future__ import annotations

from typing import List, Tuple

from delve.logging_utils import get_logger

from .combat_service import monster_attack
from .events import TurnContext

_log = get_logger("delve.monster_ai")

Step = Tuple[int, int]


def _sign(v: int) -> int:
    return (v > 0) - (v < 0)


def candidate_steps(monster, target_x: int, target_y: int) -> List[Step]:
    dx = target_x - monster.x
    dy = target_y - monster.y
    steps: List[Step] = []
    if abs(dx) >= abs(dy):
        if dx:
            steps.append((_sign(dx), 0))
        if dy:
            steps.append((0, _sign(dy)))
    else:
        if dy:
            steps.append((0, _sign(dy)))
        if dx:
            steps.append((_sign(dx), 0))
    return steps


def within_leash(monster, x: int, y: int, leash: int) -> bool:
    return abs(x - monster.origin_x) + abs(y - monster.origin_y) <= leash


def take_monster_turn(game, monster, ctx: TurnContext) -> str:
    player = game.player
    rules = game.rules
    if not monster.is_alive or not player.is_alive:
        return "idle"
    if monster.info.slow:
        monster.slow_counter += 1
        if monster.slow_counter % 2 != 0:
            return "slow"
    dist = abs(player.x - monster.x) + abs(player.y - monster.y)
    if dist > rules.aggro_range:
        return "idle"
    if monster.id in ctx.engaged:
        return "engaged"
    for sx, sy in candidate_steps(monster, player.x, player.y):
        nx, ny = monster.x + sx, monster.y + sy
        is_attack = (nx, ny) == (player.x, player.y)
        if not is_attack and not within_leash(monster, nx, ny, rules.leash):
            continue
        if is_attack:
            monster_attack(game, monster, ctx)
            _log.debug(event="monster_attack", monster=monster.monster_type, x=monster.x, y=monster.y)
            return "attack"
        if game.map.is_wall(nx, ny) or game.map.entity_at(nx, ny, exclude=monster) is not None:
            continue
        monster.x, monster.y = nx, ny
        return "move"
    _log.debug(event="monster_stuck", monster=monster.monster_type, x=monster.x, y=monster.y)
    return "blocked"


def run_monster_phase(game, ctx: TurnContext) -> int:
    """Give every living monster its turn; stops early if the player dies."""
    acted = 0
    for monster in game.map.monsters():
        if not game.player.is_alive:
            break
        if take_monster_turn(game, monster, ctx) in ("attack", "move"):
            acted += 1
    return acted


__all__ = ["candidate_steps", "within_leash", "take_monster_turn", "run_monster_phase"]
