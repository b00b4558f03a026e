"""Player status effect bookkeeping.

Three countdown counters live on `Player.status`: invulnerable, paralyzed and
poxed. Only the player is ever afflicted; monsters carry the chances to
inflict them.

- invulnerable: damage to the player is ignored and stamina is not drained.
- paralyzed: the player cannot move or attack; a forced swing deals 0.
- poxed: effective power is halved (floored).

Ticking rules:
- A paralysis turn ticks all three counters after the monster phase.
- A successful move ticks invulnerable and poxed only, so paralysis
  inflicted during that turn is still whole at the start of the next one.
- An attack turn ticks nothing.
- A blocked move ticks nothing.
"""

from __future__ import annotations

from typing import Iterable, List

from delve.logging_utils import get_logger

from .events import TurnContext

_log = get_logger("delve.status")

ALL_STATUSES = ("invulnerable", "paralyzed", "poxed")
ACTION_TURN_STATUSES = ("invulnerable", "poxed")

EXPIRY_MESSAGES = {
    "invulnerable": ("Your invulnerability has faded.", "info"),
    "paralyzed": ("You can move again.", "info"),
    "poxed": ("The pox has run its course. You feel your strength return.", "good"),
}


def tick_statuses(player, ctx: TurnContext, names: Iterable[str] = ALL_STATUSES) -> List[str]:
    """Tick the named counters once; return the names that just expired."""
    expired = []
    for name in names:
        if player.status.tick(name):
            expired.append(name)
            message, severity = EXPIRY_MESSAGES[name]
            ctx.log(message, severity)
    if expired:
        _log.debug(event="status_expired", statuses=",".join(expired))
    return expired


def apply_on_hit_effects(monster, player, ctx: TurnContext, rules, rng) -> List[str]:
    """Roll the monster's on-hit effects against the player.

    Paralysis and pox are rolled independently, each with its own chance.
    Returns the names of the effects that landed.
    """
    info = monster.info
    landed = []
    if info.paralysis_chance > 0 and rng.random() < info.paralysis_chance:
        player.add_paralysis(rules.paralysis_turns)
        ctx.log(f"The {monster.name}'s slime paralyzes you!", "bad")
        landed.append("paralyzed")
    if info.pox_chance > 0 and rng.random() < info.pox_chance:
        if player.is_poxed:
            ctx.log(f"The {monster.name} re-infects you with POX!", "bad")
        else:
            ctx.log(f"The {monster.name} infects you with POX! Your power is halved!", "bad")
        player.apply_pox(rules.pox_turns)
        landed.append("poxed")
    if landed:
        _log.debug(event="on_hit", monster=monster.monster_type, effects=",".join(landed))
    return landed


__all__ = ["tick_statuses", "apply_on_hit_effects", "ALL_STATUSES", "ACTION_TURN_STATUSES"]
