"""Structured trace lines for the game engine.

Engine internals (initiative rolls, monster decisions, bot targets, save
recovery) report here as one line per record, either ``key=value`` pairs or
compact JSON when ``DELVE_LOG_JSON`` is set. Player-facing text never goes
through this module; it travels as :class:`delve.services.events.GameEvent`.

    from delve.logging_utils import get_logger
    _log = get_logger("delve.combat")
    _log.debug(event="initiative", roll=40, chance=50)

``None`` values are dropped. Spaces in text values become underscores so a
line splits cleanly on whitespace. Error records go to stderr.
"""

from __future__ import annotations

import json
import os
import sys
import time
from functools import partialmethod

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}
CURRENT_LEVEL = LEVELS.get(os.getenv("DELVE_LOG_LEVEL", "info").lower(), LEVELS["info"])
JSON_MODE = os.getenv("DELVE_LOG_JSON", "").lower() in ("1", "true", "yes", "on")


def _render(record: dict) -> str:
    if JSON_MODE:
        return json.dumps(record, separators=(",", ":"), default=str)
    pairs = []
    for key, value in record.items():
        text = value if isinstance(value, (int, float)) else str(value).replace(" ", "_")
        pairs.append(f"{key}={text}")
    return " ".join(pairs)


class TraceLogger:
    def __init__(self, name: str):
        self.name = name

    def emit(self, level: str, **fields) -> None:
        if LEVELS[level] < CURRENT_LEVEL:
            return
        record = {"level": level, "ts": int(time.time())}
        record.update((k, v) for k, v in fields.items() if v is not None)
        record.setdefault("logger", self.name)
        stream = sys.stderr if level == "error" else sys.stdout
        print(_render(record), file=stream)

    debug = partialmethod(emit, "debug")
    info = partialmethod(emit, "info")
    warn = partialmethod(emit, "warn")
    error = partialmethod(emit, "error")


_loggers: dict = {}


def get_logger(name: str) -> TraceLogger:
    return _loggers.setdefault(name, TraceLogger(name))


log = get_logger("delve")
