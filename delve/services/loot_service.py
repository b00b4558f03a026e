"""Loot rolling service.

Produces `Item` instances for monster drops and treasure chests. Every roll
walks the cumulative `LOOT_TABLE` from the catalog:

  * <0.10 equipment (random body slot, +1 power)
  * <0.50 gold (10-59)
  * <0.80 food
  * <0.95 health potion
  * else  clarity potion

Monster types with a `drop` override (the deamon always leaves a gem) skip
the table. Treasure chests yield one or two rolls.
"""

from __future__ import annotations

import random
from typing import List

from delve.models.catalog import LOOT_TABLE, pick_from_table
from delve.models.entities import EquipmentSlot, Item

GOLD_MIN = 10
GOLD_SPAN = 50
UPGRADE_BASE_COST = 100
UPGRADE_GROWTH = 1.5


def create_equipment_drop(rng=None) -> Item:
    rng = rng or random
    slot = rng.choice(list(EquipmentSlot))
    return Item.equipment(slot, value=1)


def create_gold_drop(rng=None) -> Item:
    rng = rng or random
    return Item(0, 0, "gold", value=GOLD_MIN + int(rng.random() * GOLD_SPAN))


def roll_loot(rng=None) -> Item:
    rng = rng or random
    key = pick_from_table(LOOT_TABLE, rng.random())
    if key == "equipment":
        return create_equipment_drop(rng)
    if key == "gold":
        return create_gold_drop(rng)
    return Item(0, 0, key)


def roll_monster_drop(monster, rng=None) -> Item:
    override = monster.info.drop
    if override:
        return Item(0, 0, override)
    return roll_loot(rng)


def roll_treasure(rng=None) -> List[Item]:
    rng = rng or random
    count = 2 if rng.random() > 0.5 else 1
    return [roll_loot(rng) for _ in range(count)]


def upgrade_cost(value: int) -> int:
    """Gold needed to raise an equipped item from `value` to `value + 1`."""
    return int(UPGRADE_BASE_COST * UPGRADE_GROWTH**value)


__all__ = [
    "create_equipment_drop",
    "create_gold_drop",
    "roll_loot",
    "roll_monster_drop",
    "roll_treasure",
    "upgrade_cost",
]
