"""
project: Delve
module: server.py
License: MIT

Runs the HTTP + Socket.IO server. Before serving it creates the tables,
seeds the editable ``rules`` config row and routes stdlib logging to the
console and to ``instance/app.log``.
"""

import json
import logging
import os
from logging.handlers import RotatingFileHandler

from delve import app, db, socketio
from delve.logging_utils import get_logger
from delve.models.models import GameConfig
from delve.services.rules import RULES_KEY, GameRules

_log = get_logger("delve.server")

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def start_server(host="0.0.0.0", port=5000, debug: bool = False):  # pragma: no cover (runtime only)
    with app.app_context():
        db.create_all()
        _seed_game_config()
    log_path = _configure_logging()
    _log.info(event="server_start", host=host, port=port, async_mode=socketio.async_mode, log_file=log_path)
    try:
        socketio.run(app, host=host, port=port, debug=debug)
    except KeyboardInterrupt:
        _log.info(event="server_stop", reason="keyboard_interrupt")


def _seed_game_config():
    if GameConfig.get(RULES_KEY) is None:
        GameConfig.set(RULES_KEY, json.dumps(GameRules().to_dict()))
        _log.info(event="seeded_config", key=RULES_KEY)


def _configure_logging(log_dir=None):
    """Point the root logger at a rotating file plus the console.

    Calling it again replaces the handlers instead of stacking them.
    Returns the log file path.
    """
    log_dir = log_dir or app.instance_path
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, "app.log")

    formatter = logging.Formatter(_LOG_FORMAT)
    handlers = [
        RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3),
        logging.StreamHandler(),
    ]
    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(logging.INFO)
    return log_path
