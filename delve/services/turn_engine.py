"""Turn engine: one player action per call, fully resolved before returning.

`Game` owns the current level, the player, the depth counter and the run's
private random source. `submit_player_move` is the single entry point for
movement, used identically by the HTTP/socket input handlers and by the
autoplay bot. Each call creates a fresh `TurnContext` and walks:

    game-over check -> paralysis check -> move/attack resolution
    -> status tick -> stamina drain -> monster phase -> visibility

A blocked move (wall, out of bounds, step larger than one tile) consumes
nothing: no status tick, no stamina, no monster turns. Stepping on the stairs
generates the next level and skips the monster phase.
"""

from __future__ import annotations

import random
from typing import Optional, Set, Tuple

from delve.dungeon.config import DungeonConfig
from delve.dungeon.generator import generate_level
from delve.dungeon.visibility import compute_visibility
from delve.logging_utils import get_logger
from delve.models.entities import EntityKind, Player

from . import inventory
from .combat_service import resolve_player_combat
from .events import GameEvent, RunSummary, TurnContext, TurnOutcome, TurnResult, UseResult
from .monster_ai import run_monster_phase
from .rules import GameRules, load_rules
from .spawn_service import populate_level
from .status_effects import ACTION_TURN_STATUSES, ALL_STATUSES, tick_statuses

_log = get_logger("delve.turn")


class Game:
    def __init__(
        self,
        class_key: str = "warrior",
        rules: Optional[GameRules] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        start_level: bool = True,
        enable_metrics: bool = True,
    ):
        self.rules = rules or load_rules()
        self.seed = seed
        self.rng = rng or random.Random(seed)
        self.enable_metrics = enable_metrics
        self.depth = 1
        self.turn = 0
        self.player = Player(0, 0, class_key)
        self.map = None
        self.visible: Set[Tuple[int, int]] = set()
        self.summary: Optional[RunSummary] = None
        if start_level:
            self.new_level()

    # -- level lifecycle -----------------------------------------------
    def new_level(self):
        """Generate and populate a fresh level at the current depth."""
        config = DungeonConfig(
            width=self.rules.map_width,
            height=self.rules.map_height,
            braid_factor=self.rules.braid_factor,
            seed=self.rng.randrange(2**31),
            enable_metrics=self.enable_metrics,
        )
        level = generate_level(config.width, config.height, config=config)
        self.player.x, self.player.y = populate_level(level, self.depth, self.rules, self.rng)
        self.map = level
        self.refresh_visibility()
        _log.info(
            event="level_ready",
            depth=self.depth,
            seed=config.seed,
            rooms=len(level.rooms),
            monsters=len(level.monsters()),
        )

    def descend(self, ctx: TurnContext):
        self.depth += 1
        ctx.log(f"You descend to level {self.depth}...", "good")
        self.player.heal(self.rules.descent_heal)
        self.new_level()

    def refresh_visibility(self):
        self.visible = compute_visibility(self.map, (self.player.x, self.player.y), self.rules.fov_radius)
        return self.visible

    @property
    def is_over(self) -> bool:
        return not self.player.is_alive

    # -- run end -------------------------------------------------------
    def finalize_death(self, cause: str, ctx: TurnContext):
        if self.summary is not None:
            return self.summary
        ctx.log("You have died.", "combat")
        self.summary = RunSummary(
            score=max(0, self.depth - 1),
            depth=self.depth,
            cause=cause,
            class_name=self.player.class_name,
        )
        _log.info(event="player_died", depth=self.depth, cause=cause, turns=self.turn)
        return self.summary

    # -- helpers used by services --------------------------------------
    def receive_item(self, item, ctx: TurnContext):
        inventory.receive_item(self, item, ctx)

    def _process_stamina(self, ctx: TurnContext):
        player = self.player
        if player.is_invulnerable:
            return
        player.drain_stamina()
        if player.stamina <= 0:
            ctx.log("You are collapsing from FATIGUE!", "bad")
            player.take_damage(self.rules.fatigue_damage)
            if not player.is_alive:
                self.finalize_death("You died from exhaustion.", ctx)

    def _finish_action(self, ctx: TurnContext, moved: bool = True):
        """Stamina and the monster phase after a consumed action.

        Invulnerability and pox only count down on turns the player actually
        stepped; a fight leaves them untouched.
        """
        if moved:
            tick_statuses(self.player, ctx, ACTION_TURN_STATUSES)
        self._process_stamina(ctx)
        if self.player.is_alive:
            run_monster_phase(self, ctx)

    def _result(self, outcome: TurnOutcome, ctx: TurnContext) -> TurnResult:
        if outcome != TurnOutcome.BLOCKED:
            self.turn += 1
            # new_level() already computed the view for a fresh level
            if outcome != TurnOutcome.LEVEL_TRANSITION:
                self.refresh_visibility()
        if not self.player.is_alive and outcome not in (TurnOutcome.BLOCKED, TurnOutcome.GAME_OVER):
            outcome = TurnOutcome.PLAYER_DIED
        return TurnResult(outcome, ctx.events)

    # -- public operations ---------------------------------------------
    def submit_player_move(self, dx: int, dy: int) -> TurnResult:
        ctx = TurnContext()
        player = self.player
        if not player.is_alive:
            ctx.log("Your adventure is over.", "info")
            return TurnResult(TurnOutcome.GAME_OVER, ctx.events)

        if player.is_paralyzed:
            ctx.log("You are paralyzed and cannot move or attack this turn!", "warning")
            run_monster_phase(self, ctx)
            if player.is_alive:
                tick_statuses(player, ctx, ALL_STATUSES)
            return self._result(TurnOutcome.PARALYZED, ctx)

        if dx not in (-1, 0, 1) or dy not in (-1, 0, 1):
            ctx.log("You can't move that far.", "info")
            return self._result(TurnOutcome.BLOCKED, ctx)

        nx, ny = player.x + dx, player.y + dy
        if self.map.is_wall(nx, ny):
            ctx.log("Blocked by a wall.", "info")
            return self._result(TurnOutcome.BLOCKED, ctx)

        target = self.map.entity_at(nx, ny)
        if target is not None and target.kind == EntityKind.MONSTER:
            resolve_player_combat(self, target, ctx)
            if player.is_alive:
                self._finish_action(ctx, moved=False)
            return self._result(TurnOutcome.ATTACKED, ctx)

        if target is not None and target.kind == EntityKind.ITEM:
            if target.item_type == "exit":
                self.descend(ctx)
                return self._result(TurnOutcome.LEVEL_TRANSITION, ctx)
            inventory.collect_item(self, target, ctx)

        player.x, player.y = nx, ny
        self._finish_action(ctx)
        return self._result(TurnOutcome.MOVED, ctx)

    def use_item(self, item_id: str) -> UseResult:
        if not self.player.is_alive:
            return UseResult(False, [GameEvent("Your adventure is over.", "info")])
        return inventory.use_item(self, item_id)

    def upgrade_equipment(self, slot) -> UseResult:
        if not self.player.is_alive:
            return UseResult(False, [GameEvent("Your adventure is over.", "info")])
        return inventory.upgrade_equipment(self, slot)

    # -- presentation ----------------------------------------------------
    def visible_entities(self):
        return [e for e in self.map.entities if (e.x, e.y) in self.visible]

    def state(self) -> dict:
        """JSON-ready snapshot for the renderer (visible set + entity list)."""
        player = self.player
        level = self.map
        return {
            "depth": self.depth,
            "turn": self.turn,
            "width": level.width,
            "height": level.height,
            "fully_revealed": level.fully_revealed,
            "rows": level.to_char_rows(self.visible, player),
            "visible": sorted([list(p) for p in self.visible]),
            "entities": [
                {"id": e.id, "kind": e.kind.value, "symbol": e.symbol, "name": getattr(e, "name", None), "x": e.x, "y": e.y}
                for e in self.visible_entities()
            ],
            "player": {
                "x": player.x,
                "y": player.y,
                "class": player.class_key,
                "name": player.class_name,
                "life": player.life,
                "max_life": player.max_life,
                "power": player.power,
                "stamina": player.stamina,
                "max_stamina": player.max_stamina,
                "xp": player.xp,
                "level": player.level,
                "next_level_xp": player.next_level_xp,
                "gold": player.gold,
                "status": player.status.to_dict(),
                "inventory": [
                    {"id": i.id, "type": i.item_type, "name": i.name, "value": i.value, "quantity": i.quantity}
                    for i in player.inventory
                ],
                "equipment": {
                    slot.value: (None if item is None else {"name": item.name, "value": item.value})
                    for slot, item in player.equipment.items()
                },
            },
            "game_over": self.is_over,
            "summary": self.summary.to_dict() if self.summary else None,
        }


__all__ = ["Game"]
