"""Value types exchanged between the turn engine and its callers.

`GameEvent` is the player-facing log line (message + severity); the engine
never prints, it returns events inside `TurnResult` / `UseResult` and the
outer layer decides how to show them. `TurnContext` is the per-call scratch
space (engaged monsters, collected events) threaded through combat and the
monster AI so nothing turn-scoped lives on the `Game` object.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

SEVERITIES = ("info", "good", "warning", "bad", "combat", "loot")


class TurnOutcome(str, Enum):
    BLOCKED = "blocked"
    MOVED = "moved"
    ATTACKED = "attacked"
    PARALYZED = "paralyzed"
    LEVEL_TRANSITION = "level_transition"
    PLAYER_DIED = "player_died"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class GameEvent:
    message: str
    severity: str = "info"

    def __post_init__(self):
        if self.severity not in SEVERITIES:
            raise ValueError(f"unknown severity {self.severity!r}")

    def to_dict(self) -> Dict[str, str]:
        return {"message": self.message, "severity": self.severity}


@dataclass
class TurnContext:
    engaged: Set[str] = field(default_factory=set)
    events: List[GameEvent] = field(default_factory=list)

    def log(self, message: str, severity: str = "info"):
        self.events.append(GameEvent(message, severity))

    def engage(self, monster_id: str) -> bool:
        """Mark a monster as fought this turn; False if it already was."""
        if monster_id in self.engaged:
            return False
        self.engaged.add(monster_id)
        return True


@dataclass
class TurnResult:
    outcome: TurnOutcome
    events: List[GameEvent] = field(default_factory=list)

    @property
    def consumed(self) -> bool:
        return self.outcome not in (TurnOutcome.BLOCKED, TurnOutcome.GAME_OVER)

    def to_dict(self) -> Dict[str, Any]:
        return {"outcome": self.outcome.value, "events": [e.to_dict() for e in self.events]}


@dataclass
class UseResult:
    used: bool
    events: List[GameEvent] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"used": self.used, "events": [e.to_dict() for e in self.events]}


@dataclass(frozen=True)
class RunSummary:
    score: int
    depth: int
    cause: str
    class_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "depth": self.depth, "cause": self.cause, "class_name": self.class_name}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["RunSummary"]:
        if not data:
            return None
        if not isinstance(data, dict):
            raise TypeError(f"run summary must be an object, not {type(data).__name__}")
        return cls(
            score=int(data.get("score", 0)),
            depth=int(data.get("depth", 1)),
            cause=str(data.get("cause", "")),
            class_name=str(data.get("class_name", "")),
        )


__all__ = ["SEVERITIES", "TurnOutcome", "GameEvent", "TurnContext", "TurnResult", "UseResult", "RunSummary"]
