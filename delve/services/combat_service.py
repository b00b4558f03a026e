"""Melee combat resolution.

Responsibilities:
    * Roll initiative for player-initiated combat and run the two-sided exchange.
    * Resolve single blows (player -> monster, monster -> player).
    * Apply monster on-hit effects to the player.
    * Handle monster death: XP, level-ups, the loot drop, removal from the map.

Design notes:
    - Each monster may be engaged once per turn; the set lives on the
      `TurnContext` passed in by the turn engine.
    - On-hit effects roll only when a monster's blow lands on the player, never
      on the player's own blows (a killing blow included).
    - Player death is reported back to the `Game`, which finalizes the run once.
"""

from __future__ import annotations

from delve.logging_utils import get_logger
from delve.models.xp import xp_for_kill

from .events import TurnContext
from .loot_service import roll_monster_drop
from .status_effects import apply_on_hit_effects

_log = get_logger("delve.combat")


def initiative_chance(player) -> int:
    return player.stamina_percent


def player_goes_first(player, monster, roll: int) -> bool:
    """Initiative decision for a given roll in [0, 100)."""
    if monster.info.always_initiative:
        return False
    return roll < initiative_chance(player)


def player_attack(game, monster, ctx: TurnContext) -> int:
    player = game.player
    if player.is_paralyzed:
        ctx.log("You swing weakly while paralyzed - no damage!", "warning")
        return 0
    damage = player.power
    dealt = monster.take_damage(damage)
    if dealt > 0:
        ctx.log(f"You hit the {monster.name} for {dealt} damage!", "combat")
    if not monster.is_alive:
        handle_monster_death(game, monster, ctx)
    return dealt


def monster_attack(game, monster, ctx: TurnContext) -> int:
    """One blow from `monster` to the player, with on-hit effects."""
    player = game.player
    if not player.is_alive:
        return 0
    if player.is_invulnerable:
        ctx.log(f"The {monster.name} attacks, but you are INVULNERABLE!", "combat")
        return 0
    dealt = player.take_damage(monster.power)
    ctx.log(f"The {monster.name} hits you for {dealt} damage!", "combat")
    apply_on_hit_effects(monster, player, ctx, game.rules, game.rng)
    if not player.is_alive:
        game.finalize_death(f"Killed by a {monster.name}", ctx)
    return dealt


def resolve_player_combat(game, monster, ctx: TurnContext) -> bool:
    """Player bumped into `monster`: roll initiative and trade blows.

    Returns False when the monster was already engaged this turn.
    """
    if not ctx.engage(monster.id):
        return False
    player = game.player
    chance = initiative_chance(player)
    roll = game.rng.randrange(100)
    first = player_goes_first(player, monster, roll)
    _log.debug(event="initiative", monster=monster.monster_type, roll=roll, chance=chance, player_first=first)
    if first:
        ctx.log(f"Initiative: You won! (Roll: {roll} < {chance}%)", "info")
        ctx.log("You strike first!", "info")
        player_attack(game, monster, ctx)
        if monster.is_alive and player.is_alive:
            monster_attack(game, monster, ctx)
    else:
        if monster.info.always_initiative:
            ctx.log(f"The {monster.name} always has the initiative!", "warning")
        else:
            ctx.log(f"Initiative: Monster won! (Roll: {roll} >= {chance}%)", "warning")
        ctx.log(f"The {monster.name} strikes first!", "warning")
        monster_attack(game, monster, ctx)
        if player.is_alive and monster.is_alive:
            player_attack(game, monster, ctx)
    return True


def handle_monster_death(game, monster, ctx: TurnContext):
    player = game.player
    ctx.log(f"The {monster.name} dies!", "good")
    gained = xp_for_kill(monster.power, monster.max_life)
    ctx.log(f"Gained {gained} XP.", "good")
    levels = player.gain_xp(gained)
    if levels:
        ctx.log(f"LEVEL UP! You are now level {player.level}!", "loot")
    drop = roll_monster_drop(monster, game.rng)
    ctx.log(f"The monster dropped a {drop.name}!", "loot")
    game.map.remove_entity(monster)
    game.receive_item(drop, ctx)
    _log.debug(event="monster_died", monster=monster.monster_type, xp=gained, drop=drop.item_type, levels=levels)


__all__ = [
    "initiative_chance",
    "player_goes_first",
    "player_attack",
    "monster_attack",
    "resolve_player_combat",
    "handle_monster_death",
]
