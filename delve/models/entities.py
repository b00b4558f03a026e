"""In-memory game entities.

`Entity` is the positioned base (player, monster or item on the level map);
`Actor` adds life and power. Monsters and items are built from the descriptor
tables in `catalog` so construction is a lookup rather than a chain of type
checks. Position truth lives on the entity itself; AI and the bot re-read
coordinates every turn instead of caching them.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Dict, List, Optional

from .catalog import EQUIPMENT_NAMES, character_class, item_type, monster_type
from .xp import FIRST_LEVEL_XP, next_level_threshold


class EntityKind(str, Enum):
    PLAYER = "player"
    MONSTER = "monster"
    ITEM = "item"


class EquipmentSlot(str, Enum):
    HEAD = "head"
    CHEST = "chest"
    L_ARM = "l_arm"
    R_ARM = "r_arm"
    L_WEAPON = "l_weapon"
    R_WEAPON = "r_weapon"
    PUBIS = "pubis"
    L_LEG = "l_leg"
    R_LEG = "r_leg"
    L_SHOE = "l_shoe"
    R_SHOE = "r_shoe"


def _new_id() -> str:
    return uuid.uuid4().hex


class Entity:
    def __init__(self, x: int, y: int, symbol: str, kind: EntityKind, id: Optional[str] = None):
        self.id = id or _new_id()
        self.x = x
        self.y = y
        self.symbol = symbol
        self.kind = kind

    @property
    def pos(self):
        return (self.x, self.y)

    def __repr__(self):  # pragma: no cover - debug helper
        return f"<{type(self).__name__} {self.symbol} @({self.x},{self.y}) id={self.id[:6]}>"


class Actor(Entity):
    def __init__(self, x, y, symbol, kind, name: str, life: int, power: int, id=None):
        super().__init__(x, y, symbol, kind, id)
        self.name = name
        self.max_life = life
        self.life = life
        self.base_power = power

    @property
    def power(self) -> int:
        return self.base_power

    @property
    def is_alive(self) -> bool:
        return self.life > 0

    def take_damage(self, amount: int) -> int:
        """Apply damage, flooring life at zero. Returns damage actually dealt."""
        before = self.life
        self.life = max(0, self.life - max(0, int(amount)))
        return before - self.life

    def heal(self, amount: int) -> int:
        before = self.life
        self.life = min(self.max_life, self.life + max(0, int(amount)))
        return self.life - before


class StatusEffects:
    """Player countdown counters.

    Each counter is active while above zero. `tick` decrements an active
    counter and returns True only on the 1 -> 0 transition so callers can emit
    a one-shot expiry notice; ticking an inactive counter is a no-op.
    """

    NAMES = ("invulnerable", "paralyzed", "poxed")

    def __init__(self, invulnerable: int = 0, paralyzed: int = 0, poxed: int = 0):
        self.invulnerable = max(0, int(invulnerable))
        self.paralyzed = max(0, int(paralyzed))
        self.poxed = max(0, int(poxed))

    def active(self, name: str) -> bool:
        return getattr(self, name) > 0

    def tick(self, name: str) -> bool:
        if name not in self.NAMES:
            raise ValueError(f"unknown status {name!r}")
        current = getattr(self, name)
        if current <= 0:
            return False
        setattr(self, name, current - 1)
        return current == 1

    def clear(self, name: str) -> bool:
        was_active = self.active(name)
        setattr(self, name, 0)
        return was_active

    def to_dict(self) -> Dict[str, int]:
        return {n: getattr(self, n) for n in self.NAMES}


class Item(Entity):
    def __init__(
        self,
        x: int,
        y: int,
        item_type_key: str,
        value: Optional[int] = None,
        quantity: int = 1,
        slot: Optional[EquipmentSlot] = None,
        name: Optional[str] = None,
        symbol: Optional[str] = None,
        id: Optional[str] = None,
    ):
        desc = item_type(item_type_key)
        super().__init__(x, y, symbol or desc.symbol, EntityKind.ITEM, id)
        self.item_type = item_type_key
        self.value = desc.value if value is None else int(value)
        self.quantity = int(quantity)
        self.slot = EquipmentSlot(slot) if slot else None
        if name is None:
            name = EQUIPMENT_NAMES.get(self.slot.value, desc.name) if self.slot else desc.name
        self.name = name

    @classmethod
    def equipment(cls, slot: EquipmentSlot, value: int = 1, x: int = 0, y: int = 0) -> "Item":
        return cls(x, y, "equipment", value=value, slot=slot)

    def single(self) -> "Item":
        """Copy of this item with quantity 1 and a fresh id (stack split)."""
        return Item(
            self.x, self.y, self.item_type, value=self.value, quantity=1, slot=self.slot, name=self.name, symbol=self.symbol
        )

    def stacks_with(self, other: "Item") -> bool:
        return self.item_type == other.item_type and self.name == other.name and self.slot == other.slot


class Monster(Actor):
    def __init__(self, x: int, y: int, monster_type_key: str, depth: int = 1, id: Optional[str] = None):
        desc = monster_type(monster_type_key)
        multiplier = 1 + (max(1, depth) - 1) * 0.15
        super().__init__(
            x,
            y,
            desc.symbol,
            EntityKind.MONSTER,
            desc.name,
            int(desc.life * multiplier),
            int(desc.power * multiplier),
            id,
        )
        self.monster_type = monster_type_key
        self.depth = depth
        # Leash anchor; fixed for the monster's lifetime
        self.origin_x = x
        self.origin_y = y
        self.slow_counter = 0

    @property
    def info(self):
        return monster_type(self.monster_type)


class Player(Actor):
    def __init__(self, x: int, y: int, class_key: str = "warrior", id: Optional[str] = None):
        cls = character_class(class_key)
        super().__init__(x, y, "@", EntityKind.PLAYER, cls.name, cls.life, cls.power, id)
        self.class_key = cls.key
        self.class_name = cls.name
        self.life_per_level = cls.life_per_level
        self.power_per_level = cls.power_per_level
        self.stamina_cost = cls.stamina_cost
        self.stamina: float = cls.stamina
        self.max_stamina: float = cls.stamina
        self.inventory: List[Item] = []
        self.equipment: Dict[EquipmentSlot, Optional[Item]] = {slot: None for slot in EquipmentSlot}
        self.xp = 0
        self.level = 1
        self.next_level_xp = FIRST_LEVEL_XP
        self.status = StatusEffects()

    # -- derived stats -------------------------------------------------
    def equipment_bonus(self) -> int:
        return sum(item.value for item in self.equipment.values() if item is not None)

    @property
    def power(self) -> int:
        total = self.base_power + self.equipment_bonus()
        if self.is_poxed:
            total = total // 2
        return total

    @property
    def is_invulnerable(self) -> bool:
        return self.status.active("invulnerable")

    @property
    def is_paralyzed(self) -> bool:
        return self.status.active("paralyzed")

    @property
    def is_poxed(self) -> bool:
        return self.status.active("poxed")

    @property
    def stamina_percent(self) -> int:
        if self.max_stamina <= 0:
            return 0
        return int(self.stamina / self.max_stamina * 100)

    # -- mutations -----------------------------------------------------
    def take_damage(self, amount: int) -> int:
        if self.is_invulnerable:
            return 0
        return super().take_damage(amount)

    def add_invulnerability(self, turns: int):
        self.status.invulnerable += max(0, int(turns))

    def add_paralysis(self, turns: int = 1):
        self.status.paralyzed += max(0, int(turns))

    def apply_pox(self, turns: int):
        # Re-infection restarts the countdown instead of stacking
        self.status.poxed = max(0, int(turns))

    def drain_stamina(self, units: float = 1):
        self.stamina = max(0.0, round(self.stamina - self.stamina_cost * units, 4))

    def eat(self, amount: float) -> float:
        before = self.stamina
        self.stamina = min(self.max_stamina, self.stamina + amount)
        return self.stamina - before

    def gain_xp(self, amount: int) -> int:
        """Add XP and apply every level-up it pays for. Returns levels gained."""
        self.xp += int(amount)
        gained = 0
        while self.xp >= self.next_level_xp:
            self.xp -= self.next_level_xp
            self.level += 1
            self.next_level_xp = next_level_threshold(self.next_level_xp)
            self.max_life += self.life_per_level
            self.life = self.max_life
            self.base_power += self.power_per_level
            gained += 1
        return gained

    def equip(self, item: Item):
        """Equip into an empty slot, or merge the bonus into the occupant.

        Returns (action, equipped_item) with action 'equipped' or 'upgraded'.
        """
        if item.item_type != "equipment" or item.slot is None:
            raise ValueError("only equipment with a slot can be equipped")
        current = self.equipment.get(item.slot)
        if current is not None:
            current.value += item.value
            return "upgraded", current
        item.quantity = 1
        self.equipment[item.slot] = item
        return "equipped", item

    # -- inventory -----------------------------------------------------
    def add_to_inventory(self, item: Item) -> Item:
        """Stack into an existing entry when possible; gold merges by value."""
        for existing in self.inventory:
            if existing.stacks_with(item):
                if item.item_type == "gold":
                    existing.value += item.value
                else:
                    existing.quantity += item.quantity
                return existing
        self.inventory.append(item)
        return item

    def find_item(self, item_type_key: str) -> Optional[Item]:
        for item in self.inventory:
            if item.item_type == item_type_key:
                return item
        return None

    def get_item(self, item_id: str) -> Optional[Item]:
        for item in self.inventory:
            if item.id == item_id:
                return item
        return None

    def consume_one(self, item: Item):
        item.quantity -= 1
        if item.quantity <= 0:
            self.inventory = [i for i in self.inventory if i is not item]

    @property
    def gold(self) -> int:
        stack = self.find_item("gold")
        return stack.value if stack else 0

    def spend_gold(self, amount: int) -> bool:
        stack = self.find_item("gold")
        if stack is None or stack.value < amount:
            return False
        stack.value -= amount
        if stack.value <= 0:
            self.inventory = [i for i in self.inventory if i is not stack]
        return True


__all__ = [
    "EntityKind",
    "EquipmentSlot",
    "Entity",
    "Actor",
    "StatusEffects",
    "Item",
    "Monster",
    "Player",
]
