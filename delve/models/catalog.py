"""Static type tables for monsters, items and character classes.

Every monster and item is built from a descriptor looked up here by its type
key; adding a new creature or consumable is a table edit, not a code change.
The spawn and loot rolls are cumulative-probability tables walked in order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class MonsterType:
    key: str
    symbol: str
    name: str
    life: int
    power: int
    slow: bool = False
    paralysis_chance: float = 0.0
    pox_chance: float = 0.0
    always_initiative: bool = False
    drop: Optional[str] = None  # item type key overriding the loot roll


@dataclass(frozen=True)
class ItemType:
    key: str
    symbol: str
    name: str
    value: int = 0


@dataclass(frozen=True)
class CharacterClass:
    key: str
    name: str
    life: int
    power: int
    stamina: int
    life_per_level: int
    power_per_level: int
    stamina_cost: float
    description: str = ""


MONSTER_TYPES: Dict[str, MonsterType] = {
    "skeleton": MonsterType("skeleton", "s", "Skeleton", 22, 10),
    "spider": MonsterType("spider", "S", "Giant Spider", 20, 3),
    "zombie": MonsterType("zombie", "z", "Zombie", 35, 5),
    "blob": MonsterType("blob", "b", "Blob", 40, 5, slow=True, paralysis_chance=0.25),
    "deamon": MonsterType("deamon", "D", "Deamon", 40, 15, drop="gem"),
    "rat": MonsterType("rat", "r", "Rat", 15, 5, pox_chance=0.20, always_initiative=True),
}

# Unknown type keys resolve to this placeholder rather than failing a load
UNKNOWN_MONSTER = MonsterType("unknown", "m", "Unknown", 10, 2)

# (upper bound, monster type) walked in order against a uniform roll
SPAWN_TABLE: List[Tuple[float, str]] = [
    (0.10, "deamon"),
    (0.25, "blob"),
    (0.45, "zombie"),
    (0.70, "skeleton"),
    (1.00, "rat"),
]

ITEM_TYPES: Dict[str, ItemType] = {
    "treasure": ItemType("treasure", "$", "Treasure"),
    "food": ItemType("food", "%", "Ration", 20),
    "gold": ItemType("gold", "*", "Gold"),
    "exit": ItemType("exit", ">", "Stairs down"),
    "potion": ItemType("potion", "!", "Health Potion", 30),
    "clarity": ItemType("clarity", "?", "Clarity Potion"),
    "gem": ItemType("gem", "+", "Invulnerability Gem", 30),
    "equipment": ItemType("equipment", "[", "Gear", 1),
}

UNKNOWN_ITEM = ItemType("unknown", "&", "Item")

LOOT_TABLE: List[Tuple[float, str]] = [
    (0.10, "equipment"),
    (0.50, "gold"),
    (0.80, "food"),
    (0.95, "potion"),
    (1.00, "clarity"),
]

EQUIPMENT_NAMES: Dict[str, str] = {
    "head": "Helmet",
    "chest": "Armor",
    "l_arm": "Gauntlet",
    "r_arm": "Gauntlet",
    "l_weapon": "Sword",
    "r_weapon": "Dagger",
    "pubis": "Loincloth",
    "l_leg": "Greave",
    "r_leg": "Greave",
    "l_shoe": "Boot",
    "r_shoe": "Boot",
}

CLASSES: Dict[str, CharacterClass] = {
    "warrior": CharacterClass(
        "warrior",
        "Warrior",
        life=100,
        power=10,
        stamina=100,
        life_per_level=20,
        power_per_level=3,
        stamina_cost=1,
        description="A battle-hardened fighter with high durability.",
    ),
    "thief": CharacterClass(
        "thief",
        "Thief",
        life=100,
        power=10,
        stamina=100,
        life_per_level=10,
        power_per_level=5,
        stamina_cost=0.7,
        description="A cunning rogue who moves swiftly but is less durable.",
    ),
}

DEFAULT_CLASS = "warrior"


def monster_type(key: str) -> MonsterType:
    return MONSTER_TYPES.get(key, UNKNOWN_MONSTER)


def item_type(key: str) -> ItemType:
    return ITEM_TYPES.get(key, UNKNOWN_ITEM)


def character_class(key: Optional[str]) -> CharacterClass:
    return CLASSES.get(key or DEFAULT_CLASS, CLASSES[DEFAULT_CLASS])


def pick_from_table(table: List[Tuple[float, str]], roll: float) -> str:
    for bound, key in table:
        if roll < bound:
            return key
    return table[-1][1]


__all__ = [
    "MonsterType",
    "ItemType",
    "CharacterClass",
    "MONSTER_TYPES",
    "ITEM_TYPES",
    "CLASSES",
    "SPAWN_TABLE",
    "LOOT_TABLE",
    "EQUIPMENT_NAMES",
    "monster_type",
    "item_type",
    "character_class",
    "pick_from_table",
]
