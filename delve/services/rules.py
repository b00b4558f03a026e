"""Gameplay tunables.

`GameRules` holds every balance knob the engine reads. Defaults reproduce the
classic game; an operator can override any subset by storing a JSON object
under the ``rules`` key of the `GameConfig` table (see ``run.py config-set``).
Unknown keys are ignored and values that cannot be coerced to the default's
type fall back to the default.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from delve.logging_utils import get_logger

_log = get_logger("delve.rules")

RULES_KEY = "rules"


@dataclass
class GameRules:
    map_width: int = 30
    map_height: int = 20
    fov_radius: int = 3
    aggro_range: int = 8
    leash: int = 8
    pox_turns: int = 5
    paralysis_turns: int = 1
    fatigue_damage: int = 1
    descent_heal: int = 10
    braid_factor: float = 0.5
    monsters_per_room_min: int = 1
    monsters_per_room_max: int = 3
    spawn_attempts: int = 20
    score_table_size: int = 10
    # Autoplay bot thresholds
    bot_heal_fraction: float = 0.5
    bot_food_stamina: float = 20.0
    bot_upgrade_gold: int = 100
    bot_search_radius: int = 25

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GameRules":
        rules = cls()
        if not isinstance(data, dict):
            return rules
        for f in fields(cls):
            if f.name not in data:
                continue
            default = getattr(rules, f.name)
            try:
                value = type(default)(data[f.name])
            except (TypeError, ValueError):
                _log.warn(event="rules_bad_value", key=f.name, value=data[f.name])
                continue
            setattr(rules, f.name, value)
        return rules


def _cfg() -> Dict[str, Any]:
    from delve.models import GameConfig

    try:
        raw = GameConfig.get(RULES_KEY)
    except (SQLAlchemyError, RuntimeError) as exc:
        # No app context or table yet: run with defaults
        _log.debug(event="rules_unavailable", error=type(exc).__name__)
        return {}
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        _log.warn(event="rules_invalid_json", key=RULES_KEY)
        return {}
    return parsed if isinstance(parsed, dict) else {}


def load_rules() -> GameRules:
    return GameRules.from_dict(_cfg())


__all__ = ["GameRules", "load_rules", "RULES_KEY"]
