"""
project: Delve
module: __init__.py
License: MIT

Flask app, database and Socket.IO singletons.

Everything is configured from the environment (a ``.env`` file is honoured).
Without ``DATABASE_URL`` the saves and high scores live in a SQLite file
under the Flask instance folder; pytest runs get their own file.
"""

import os
import uuid
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy

load_dotenv()


def _default_database_url(instance_path):
    name = "delve_test.db" if os.getenv("PYTEST_CURRENT_TEST") else "delve.db"
    return "sqlite:///" + (Path(instance_path) / name).as_posix()


def _engine_options(url):
    if not url.startswith("sqlite"):
        return {}
    # autoplay writes from the socketio background task
    return {"connect_args": {"timeout": 10, "check_same_thread": False}}


app = Flask(__name__, instance_relative_config=True)
Path(app.instance_path).mkdir(parents=True, exist_ok=True)

_database_url = os.getenv("DATABASE_URL") or _default_database_url(app.instance_path)

app.config.from_mapping(
    SECRET_KEY=os.getenv("SECRET_KEY", "dev-secret-change-me"),
    SQLALCHEMY_DATABASE_URI=_database_url,
    SQLALCHEMY_TRACK_MODIFICATIONS=False,
    DELVE_AUTOPLAY_INTERVAL=float(os.getenv("DELVE_AUTOPLAY_INTERVAL", "0.3")),
    DELVE_ENABLE_GENERATION_METRICS=os.getenv("DELVE_ENABLE_GENERATION_METRICS", "1") == "1",
)

db = SQLAlchemy(app, session_options={"expire_on_commit": False}, engine_options=_engine_options(_database_url))

socketio = SocketIO(
    app,
    async_mode=os.getenv("SOCKETIO_ASYNC_MODE") or None,
    cors_allowed_origins=os.getenv("CORS_ALLOWED_ORIGINS", "*"),
    ping_interval=20,
    ping_timeout=10,
)

# Blueprints and socket handlers need app/db/socketio above
from delve.routes.game_api import bp_game  # noqa: E402
from delve.websockets import game as _ws_game  # noqa: F401,E402

app.register_blueprint(bp_game)


def create_app():
    """Return the shared app after making sure every table exists."""
    from delve.models import models as _models  # noqa: F401

    with app.app_context():
        db.create_all()
    return app


@app.errorhandler(500)
def internal_error(e):
    error_id = uuid.uuid4().hex[:8]
    app.logger.exception("unhandled error id=%s", error_id)
    return jsonify({"error": "internal error", "error_id": error_id}), 500
