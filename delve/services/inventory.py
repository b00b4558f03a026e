"""Inventory pickup, item use and equipment upgrades.

Pickup policy:
    * treasure chests are opened on the spot (1-2 loot rolls);
    * gems are used immediately, equipment is equipped immediately (merged into
      an occupied slot as a cumulative bonus), neither takes an inventory entry;
    * gold merges into a single stack by value, everything else by quantity.

`use_item` / `upgrade_equipment` run outside the move cycle: no monster turn,
no status tick, no stamina drain.
"""

from __future__ import annotations

from typing import Optional

from delve.dungeon.visibility import reveal_all
from delve.logging_utils import get_logger
from delve.models.entities import EquipmentSlot, Item

from .events import TurnContext, UseResult
from .loot_service import roll_treasure, upgrade_cost

_log = get_logger("delve.inventory")


def receive_item(game, item: Item, ctx: TurnContext):
    player = game.player
    if item.item_type == "gem":
        _use_gem(game, item, ctx)
    elif item.item_type == "equipment":
        _equip(game, item, ctx)
    else:
        player.add_to_inventory(item)


def collect_item(game, item: Item, ctx: TurnContext):
    """Pick up a map item the player is stepping onto."""
    game.map.remove_entity(item)
    if item.item_type == "treasure":
        for drop in roll_treasure(game.rng):
            if drop.item_type == "gold":
                ctx.log(f"You found {drop.value} gold!", "loot")
            else:
                ctx.log(f"You found a {drop.name}!", "loot")
            receive_item(game, drop, ctx)
        return
    ctx.log(f"You picked up {item.name}.", "loot")
    receive_item(game, item, ctx)


def _use_gem(game, item: Item, ctx: TurnContext):
    player = game.player
    ctx.log(f"You used the {item.name} and feel INVINCIBLE!", "good")
    player.add_invulnerability(item.value)
    if player.status.clear("poxed"):
        ctx.log("The gem's power purged the pox!", "good")


def _equip(game, item: Item, ctx: TurnContext):
    action, equipped = game.player.equip(item)
    if action == "upgraded":
        ctx.log(f"Upgraded {equipped.name} to +{equipped.value}!", "good")
    else:
        ctx.log(f"You equipped {equipped.name}.", "good")


def use_item(game, item_id: str) -> UseResult:
    player = game.player
    ctx = TurnContext()
    item = player.get_item(item_id)
    if item is None:
        ctx.log("You don't have that item.", "warning")
        return UseResult(False, ctx.events)
    kind = item.item_type
    if kind == "food":
        ctx.log(f"You ate a {item.name} and recovered {item.value} stamina.", "good")
        player.eat(item.value)
    elif kind == "potion":
        ctx.log(f"You drank a {item.name} and recovered {item.value} life.", "good")
        player.heal(item.value)
        if player.status.clear("poxed"):
            ctx.log("The potion cleansed the pox!", "good")
    elif kind == "clarity":
        ctx.log("You drank the Clarity Potion. The dungeon layout is revealed!", "good")
        reveal_all(game.map)
        cured = False
        if player.status.clear("poxed"):
            ctx.log("The pox has been cured!", "good")
            cured = True
        if player.status.clear("paralyzed"):
            ctx.log("You can move freely again!", "good")
            cured = True
        if not cured:
            ctx.log("It tastes like water...", "info")
        game.refresh_visibility()
    elif kind == "gem":
        _use_gem(game, item, ctx)
    elif kind == "equipment":
        if item.slot is None:
            ctx.log(f"The {item.name} does not fit anywhere.", "warning")
            return UseResult(False, ctx.events)
        # Equip a single copy; the inventory entry is consumed below
        _equip(game, item.single(), ctx)
    else:
        ctx.log(f"You can't use the {item.name}.", "info")
        return UseResult(False, ctx.events)
    player.consume_one(item)
    _log.debug(event="use_item", item=kind, remaining=item.quantity)
    return UseResult(True, ctx.events)


def upgrade_equipment(game, slot) -> UseResult:
    player = game.player
    ctx = TurnContext()
    try:
        slot = EquipmentSlot(slot)
    except ValueError:
        ctx.log(f"Unknown equipment slot {slot!r}.", "warning")
        return UseResult(False, ctx.events)
    item: Optional[Item] = player.equipment.get(slot)
    if item is None:
        ctx.log("Nothing is equipped there.", "info")
        return UseResult(False, ctx.events)
    cost = upgrade_cost(item.value)
    have = player.gold
    if not player.spend_gold(cost):
        ctx.log(f"Insufficient gold! Upgrading {item.name} needs {cost} gold (Have: {have}).", "warning")
        return UseResult(False, ctx.events)
    item.value += 1
    ctx.log(f"Upgraded {item.name} to +{item.value} for {cost} gold!", "good")
    _log.debug(event="upgrade", slot=slot.value, value=item.value, cost=cost)
    return UseResult(True, ctx.events)


__all__ = ["receive_item", "collect_item", "use_item", "upgrade_equipment"]
