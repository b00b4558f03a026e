"""In-process registry of live games.

Each save id maps to a `GameSession` holding the `Game`, its bot and a
re-entrant lock. Every HTTP request and every autoplay tick takes the lock
for the whole operation, so a turn is never observed half-applied. Games are
loaded lazily from the database on first access and written back after every
mutating operation.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional

from delve.logging_utils import get_logger

from . import persistence
from .autoplay import AutoplayBot, BotAction
from .rules import load_rules
from .turn_engine import Game

_log = get_logger("delve.sessions")


class GameSession:
    def __init__(self, save_id: str, game: Game):
        self.save_id = save_id
        self.game = game
        self.bot = AutoplayBot()
        self.lock = threading.RLock()
        self.autoplay = False
        self.finished = False
        self.pending_score = False


_SESSIONS: Dict[str, GameSession] = {}
_REGISTRY_LOCK = threading.Lock()


def create_session(class_key: str = "warrior", seed: Optional[int] = None, enable_metrics: bool = True) -> GameSession:
    game = Game(class_key, rules=load_rules(), seed=seed, enable_metrics=enable_metrics)
    save_id = persistence.save_game(game)
    session = GameSession(save_id, game)
    with _REGISTRY_LOCK:
        _SESSIONS[save_id] = session
    _log.info(event="game_created", save_id=save_id, class_key=game.player.class_key, seed=seed)
    return session


def get_session(save_id: str) -> Optional[GameSession]:
    with _REGISTRY_LOCK:
        session = _SESSIONS.get(save_id)
        if session is not None:
            return session
    game = persistence.load_game(save_id)
    if game is None:
        return None
    with _REGISTRY_LOCK:
        # Another request may have loaded it meanwhile; keep the first
        session = _SESSIONS.setdefault(save_id, GameSession(save_id, game))
    return session


def drop_session(save_id: str):
    with _REGISTRY_LOCK:
        _SESSIONS.pop(save_id, None)


def clear_sessions():
    with _REGISTRY_LOCK:
        _SESSIONS.clear()


def persist(session: GameSession):
    """Write the game back, or settle the run once the player has died.

    Must be called with ``session.lock`` held.
    """
    game = session.game
    if session.finished:
        return
    if game.summary is None and game.player.is_alive:
        persistence.save_game(game, session.save_id)
        return
    session.finished = True
    session.autoplay = False
    summary = game.summary
    if summary is not None and persistence.qualifies(summary.score):
        persistence.set_pending_score(session.save_id, summary)
        session.pending_score = True
    else:
        persistence.delete_save(session.save_id)
    _log.info(event="run_finished", save_id=session.save_id, score=summary.score if summary else 0)


def autoplay_step(session: GameSession) -> BotAction:
    with session.lock:
        action = session.bot.tick(session.game)
        persist(session)
        return action


__all__ = [
    "GameSession",
    "create_session",
    "get_session",
    "drop_session",
    "clear_sessions",
    "persist",
    "autoplay_step",
]
