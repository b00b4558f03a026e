"""Save games and the high score table.

`game_to_dict` / `game_from_dict` round-trip a run as plain JSON data: the
level (grid, rooms, explored memory, reveal flag, entities), the player and
the depth. Loading is forgiving about shape: older saves used camelCase keys,
called stamina ``hunger`` and stored raw ``power`` instead of ``basePower``;
missing fields fall back to fresh-character defaults. Data that cannot be
turned into a playable game raises `SaveCorrupted`, and `load_game` answers
that by discarding the row so the caller starts a new run.
"""

from __future__ import annotations

import json
import random
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from delve import db
from delve.dungeon.level import LevelMap
from delve.dungeon.rooms import Room
from delve.dungeon.tiles import Tile
from delve.logging_utils import get_logger
from delve.models.entities import EntityKind, EquipmentSlot, Item, Monster, Player
from delve.models.models import HighScore, SaveGame
from delve.models.xp import threshold_for_level

from .events import RunSummary
from .rules import GameRules, load_rules
from .turn_engine import Game

_log = get_logger("delve.persistence")

SAVE_VERSION = 2

_LEGACY_ITEM_TYPES = {"potion_clarity": "clarity"}


class SaveCorrupted(Exception):
    """Persisted state could not be turned back into a game."""


def _pick(data: Dict[str, Any], *keys, default=None):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


# -- encoding ---------------------------------------------------------------
def _item_to_dict(item: Item) -> Dict[str, Any]:
    return {
        "id": item.id,
        "kind": "item",
        "x": item.x,
        "y": item.y,
        "item_type": item.item_type,
        "name": item.name,
        "value": item.value,
        "quantity": item.quantity,
        "slot": item.slot.value if item.slot else None,
    }


def _monster_to_dict(monster: Monster) -> Dict[str, Any]:
    return {
        "id": monster.id,
        "kind": "monster",
        "x": monster.x,
        "y": monster.y,
        "monster_type": monster.monster_type,
        "depth": monster.depth,
        "life": monster.life,
        "max_life": monster.max_life,
        "base_power": monster.base_power,
        "origin_x": monster.origin_x,
        "origin_y": monster.origin_y,
        "slow_counter": monster.slow_counter,
    }


def game_to_dict(game: Game) -> Dict[str, Any]:
    level = game.map
    player = game.player
    entities = []
    for ent in level.entities:
        if ent.kind == EntityKind.MONSTER:
            entities.append(_monster_to_dict(ent))
        elif ent.kind == EntityKind.ITEM:
            entities.append(_item_to_dict(ent))
    return {
        "version": SAVE_VERSION,
        "depth": game.depth,
        "turn": game.turn,
        "map": {
            "width": level.width,
            "height": level.height,
            "grid": [[int(t) for t in row] for row in level.grid],
            "rooms": [room.to_dict() for room in level.rooms],
            "explored": [list(row) for row in level.explored],
            "fully_revealed": level.fully_revealed,
            "seed": level.seed,
            "entities": entities,
        },
        "player": {
            "id": player.id,
            "x": player.x,
            "y": player.y,
            "class_key": player.class_key,
            "life": player.life,
            "max_life": player.max_life,
            "base_power": player.base_power,
            "stamina": player.stamina,
            "max_stamina": player.max_stamina,
            "xp": player.xp,
            "level": player.level,
            "next_level_xp": player.next_level_xp,
            "status": player.status.to_dict(),
            "inventory": [_item_to_dict(i) for i in player.inventory],
            "equipment": {
                slot.value: (None if item is None else _item_to_dict(item)) for slot, item in player.equipment.items()
            },
        },
        "summary": game.summary.to_dict() if game.summary else None,
    }


# -- decoding ---------------------------------------------------------------
def _item_from_dict(data: Dict[str, Any]) -> Item:
    kind = _pick(data, "item_type", "itemType", default="unknown")
    kind = _LEGACY_ITEM_TYPES.get(kind, kind)
    slot = data.get("slot")
    if slot is not None:
        try:
            slot = EquipmentSlot(slot)
        except ValueError:
            slot = None
    name = data.get("name")
    if kind == "clarity":
        name = "Clarity Potion"
    return Item(
        int(data.get("x", 0)),
        int(data.get("y", 0)),
        kind,
        value=_pick(data, "value"),
        quantity=int(_pick(data, "quantity", default=1)),
        slot=slot,
        name=name,
        id=data.get("id"),
    )


def _monster_from_dict(data: Dict[str, Any]) -> Monster:
    x, y = int(data["x"]), int(data["y"])
    m = Monster(x, y, _pick(data, "monster_type", "monsterType", default="skeleton"), int(data.get("depth", 1)), id=data.get("id"))
    m.max_life = int(_pick(data, "max_life", "maxLife", default=m.max_life))
    m.life = int(_pick(data, "life", default=m.max_life))
    m.base_power = int(_pick(data, "base_power", "basePower", "power", default=m.base_power))
    # Saves without an origin leash the monster to where it stands now
    m.origin_x = int(_pick(data, "origin_x", "originX", default=x))
    m.origin_y = int(_pick(data, "origin_y", "originY", default=y))
    m.slow_counter = int(_pick(data, "slow_counter", "turnCounter", default=0))
    return m


def _entity_from_dict(data: Dict[str, Any]):
    kind = _pick(data, "kind", "type")
    if kind == "monster":
        return _monster_from_dict(data)
    if kind == "item":
        return _item_from_dict(data)
    return None


def _level_from_dict(data: Dict[str, Any]) -> LevelMap:
    if not isinstance(data, dict) or not data.get("grid"):
        raise SaveCorrupted("save has no map grid")
    grid = [[Tile(int(v)) for v in row] for row in data["grid"]]
    height = int(data.get("height", len(grid)))
    width = int(data.get("width", len(grid[0]) if grid else 0))
    if height != len(grid) or any(len(row) != width for row in grid):
        raise SaveCorrupted("map grid does not match its dimensions")
    rooms = [Room(int(r["x"]), int(r["y"]), int(r["w"]), int(r["h"])) for r in data.get("rooms") or []]
    explored = data.get("explored")
    if not explored or len(explored) != height or any(len(row) != width for row in explored):
        explored = None
    else:
        explored = [[bool(v) for v in row] for row in explored]
    level = LevelMap(width, height, grid, rooms, explored=explored, seed=data.get("seed"))
    level.fully_revealed = bool(_pick(data, "fully_revealed", "fullyRevealed", default=False))
    for raw in data.get("entities") or []:
        ent = _entity_from_dict(raw)
        if ent is None:
            continue
        if ent.kind == EntityKind.MONSTER and not ent.is_alive:
            continue
        if level.entity_at(ent.x, ent.y) is not None:
            _log.warn(event="save_entity_overlap", x=ent.x, y=ent.y)
            continue
        level.add_entity(ent)
    return level


def _player_from_dict(data: Dict[str, Any]) -> Player:
    if not isinstance(data, dict):
        raise SaveCorrupted("save has no player")
    p = Player(int(data["x"]), int(data["y"]), _pick(data, "class_key", "classKey", default="warrior"), id=data.get("id"))
    p.max_life = int(_pick(data, "max_life", "maxLife", default=p.max_life))
    p.life = int(_pick(data, "life", default=p.max_life))
    p.base_power = int(_pick(data, "base_power", "basePower", "power", default=p.base_power))
    p.max_stamina = float(_pick(data, "max_stamina", "maxStamina", default=p.max_stamina))
    p.stamina = float(_pick(data, "stamina", "hunger", default=p.max_stamina))
    p.xp = int(_pick(data, "xp", default=0))
    p.level = int(_pick(data, "level", default=1))
    p.next_level_xp = int(_pick(data, "next_level_xp", "nextLevelXp", default=threshold_for_level(p.level)))
    status = data.get("status") or {}
    p.status.invulnerable = max(0, int(_pick(status, "invulnerable", default=_pick(data, "invulnerableTurns", default=0))))
    p.status.paralyzed = max(0, int(_pick(status, "paralyzed", default=_pick(data, "paralyzedTurns", default=0))))
    p.status.poxed = max(0, int(_pick(status, "poxed", default=_pick(data, "poxedTurns", default=0))))
    p.inventory = [_item_from_dict(raw) for raw in data.get("inventory") or []]
    for key, raw in (data.get("equipment") or {}).items():
        try:
            slot = EquipmentSlot(key)
        except ValueError:
            continue
        if raw:
            item = _item_from_dict(raw)
            item.slot = slot
            p.equipment[slot] = item
    return p


def game_from_dict(data: Any, rules: Optional[GameRules] = None) -> Game:
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except ValueError as exc:
            raise SaveCorrupted(f"save is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SaveCorrupted("save is not an object")
    try:
        level = _level_from_dict(data.get("map"))
        player = _player_from_dict(data.get("player"))
        depth = max(1, int(data.get("depth") or 1))
        turn = int(data.get("turn") or 0)
        summary = RunSummary.from_dict(data.get("summary"))
    except (KeyError, TypeError, ValueError, AssertionError) as exc:
        raise SaveCorrupted(f"save has unusable fields: {exc}") from exc
    if level.is_wall(player.x, player.y):
        raise SaveCorrupted("player stands inside a wall")
    game = Game(player.class_key, rules=rules or load_rules(), rng=random.Random(), start_level=False)
    game.map = level
    game.player = player
    game.depth = depth
    game.turn = turn
    game.summary = summary
    game.refresh_visibility()
    return game


# -- database ---------------------------------------------------------------
def save_game(game: Game, save_id: Optional[str] = None) -> str:
    row = db.session.get(SaveGame, save_id) if save_id else None
    if row is None:
        row = SaveGame(id=save_id) if save_id else SaveGame()
        db.session.add(row)
    row.state_json = json.dumps(game_to_dict(game), separators=(",", ":"))
    row.depth = game.depth
    row.class_key = game.player.class_key
    db.session.commit()
    return row.id


def load_game(save_id: str, rules: Optional[GameRules] = None) -> Optional[Game]:
    """Return the saved game, or None when missing or unrecoverable."""
    row = db.session.get(SaveGame, save_id)
    if row is None or not row.state_json:
        return None
    try:
        return game_from_dict(row.state_json, rules=rules)
    except SaveCorrupted as exc:
        _log.warn(event="save_corrupted", save_id=save_id, error=str(exc))
        db.session.delete(row)
        db.session.commit()
        return None


def delete_save(save_id: str) -> bool:
    row = db.session.get(SaveGame, save_id)
    if row is None:
        return False
    db.session.delete(row)
    db.session.commit()
    return True


def set_pending_score(save_id: str, summary: Optional[RunSummary]):
    """Remember a qualifying run on its (otherwise cleared) save row."""
    row = db.session.get(SaveGame, save_id)
    if row is None:
        row = SaveGame(id=save_id)
        db.session.add(row)
    row.state_json = None
    row.pending_score_json = json.dumps(summary.to_dict()) if summary else None
    db.session.commit()


def pop_pending_score(save_id: str) -> Optional[RunSummary]:
    row = db.session.get(SaveGame, save_id)
    if row is None or not row.pending_score_json:
        return None
    try:
        summary = RunSummary.from_dict(json.loads(row.pending_score_json))
    except (ValueError, TypeError):
        summary = None
    db.session.delete(row)
    db.session.commit()
    return summary


# -- high scores ------------------------------------------------------------
def _table_size() -> int:
    return load_rules().score_table_size


def top_scores(limit: Optional[int] = None) -> List[HighScore]:
    limit = limit or _table_size()
    return HighScore.query.order_by(HighScore.score.desc(), HighScore.id.asc()).limit(limit).all()


def qualifies(score: int) -> bool:
    size = _table_size()
    board = top_scores(size)
    if len(board) < size:
        return True
    return score > board[-1].score


def record_score(name: str, summary: RunSummary) -> Optional[HighScore]:
    """Insert a named score and trim the table; None if it does not qualify."""
    if not qualifies(summary.score):
        return None
    row = HighScore(
        name=(name or "Anonymous").strip()[:40] or "Anonymous",
        score=summary.score,
        depth=summary.depth,
        cause=(summary.cause or "")[:200],
        class_name=summary.class_name,
    )
    db.session.add(row)
    db.session.commit()
    keep = {r.id for r in top_scores(_table_size())}
    try:
        for stale in HighScore.query.filter(~HighScore.id.in_(keep)).all():
            db.session.delete(stale)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    return row if row.id in keep else None


__all__ = [
    "SaveCorrupted",
    "game_to_dict",
    "game_from_dict",
    "save_game",
    "load_game",
    "delete_save",
    "set_pending_score",
    "pop_pending_score",
    "top_scores",
    "qualifies",
    "record_score",
]
