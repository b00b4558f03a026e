"""
project: Delve
module: game_api.py
License: MIT

Game HTTP API: new game, state, moves, item use, upgrades, single autoplay
steps, level previews and the high score board.

The active save id travels in the Flask session (set by /api/game/new) and
may also be passed explicitly as ``save_id`` in the JSON body or query
string, which is what scripted clients and tests do.
"""

from flask import Blueprint, current_app, jsonify, request, session

from delve.dungeon import DungeonConfig, generate_level
from delve.models.catalog import CLASSES
from delve.services import persistence, sessions
from delve.services.rules import load_rules

bp_game = Blueprint("game", __name__)

_DIRECTIONS = {
    "n": (0, -1),
    "s": (0, 1),
    "e": (1, 0),
    "w": (-1, 0),
    "ne": (1, -1),
    "nw": (-1, -1),
    "se": (1, 1),
    "sw": (-1, 1),
    "wait": (0, 0),
}


def _payload():
    body = request.get_json(silent=True)
    # arrays, strings and numbers carry no fields
    return body if isinstance(body, dict) else {}


def _save_id(payload=None):
    payload = payload if payload is not None else _payload()
    return payload.get("save_id") or request.args.get("save_id") or session.get("save_id")


def _load_session(payload=None):
    """Return (session, error_response)."""
    save_id = _save_id(payload)
    if not save_id:
        return None, (jsonify({"error": "no active game"}), 404)
    gs = sessions.get_session(save_id)
    if gs is None:
        return None, (jsonify({"error": "game not found"}), 404)
    return gs, None


def _state_response(gs, **extra):
    body = {"save_id": gs.save_id, "state": gs.game.state(), "autoplay": gs.autoplay, "pending_score": gs.pending_score}
    body.update(extra)
    return jsonify(body)


@bp_game.route("/api/game/new", methods=["POST"])
def new_game():
    payload = _payload()
    class_key = payload.get("class", "warrior")
    if class_key not in CLASSES:
        return jsonify({"error": f"unknown class {class_key!r}", "classes": sorted(CLASSES)}), 400
    seed = payload.get("seed")
    if seed is not None and not isinstance(seed, int):
        return jsonify({"error": "seed must be an integer"}), 400
    gs = sessions.create_session(
        class_key, seed=seed, enable_metrics=current_app.config.get("DELVE_ENABLE_GENERATION_METRICS", True)
    )
    session["save_id"] = gs.save_id
    return _state_response(gs), 201


@bp_game.route("/api/game/state")
def game_state():
    gs, err = _load_session()
    if err:
        return err
    with gs.lock:
        return _state_response(gs)


@bp_game.route("/api/game/move", methods=["POST"])
def move():
    """Body JSON: {dx, dy} or {direction: n|s|e|w|ne|nw|se|sw|wait}."""
    payload = _payload()
    if "direction" in payload:
        delta = _DIRECTIONS.get(str(payload["direction"]).lower())
        if delta is None:
            return jsonify({"error": "bad direction"}), 400
        dx, dy = delta
    else:
        dx, dy = payload.get("dx"), payload.get("dy")
        if not isinstance(dx, int) or not isinstance(dy, int) or isinstance(dx, bool) or isinstance(dy, bool):
            return jsonify({"error": "dx and dy must be integers"}), 400
    gs, err = _load_session(payload)
    if err:
        return err
    with gs.lock:
        if gs.autoplay:
            return jsonify({"error": "autoplay active"}), 409
        result = gs.game.submit_player_move(dx, dy)
        sessions.persist(gs)
        return _state_response(gs, result=result.to_dict())


@bp_game.route("/api/game/use", methods=["POST"])
def use_item():
    payload = _payload()
    item_id = payload.get("item_id")
    if not isinstance(item_id, str) or not item_id:
        return jsonify({"error": "item_id required"}), 400
    gs, err = _load_session(payload)
    if err:
        return err
    with gs.lock:
        if gs.autoplay:
            return jsonify({"error": "autoplay active"}), 409
        result = gs.game.use_item(item_id)
        sessions.persist(gs)
        return _state_response(gs, result=result.to_dict())


@bp_game.route("/api/game/upgrade", methods=["POST"])
def upgrade():
    payload = _payload()
    slot = payload.get("slot")
    if not isinstance(slot, str) or not slot:
        return jsonify({"error": "slot required"}), 400
    gs, err = _load_session(payload)
    if err:
        return err
    with gs.lock:
        if gs.autoplay:
            return jsonify({"error": "autoplay active"}), 409
        result = gs.game.upgrade_equipment(slot)
        sessions.persist(gs)
        return _state_response(gs, result=result.to_dict())


@bp_game.route("/api/game/autoplay/step", methods=["POST"])
def autoplay_step():
    gs, err = _load_session()
    if err:
        return err
    action = sessions.autoplay_step(gs)
    with gs.lock:
        bot = {"kind": action.kind, "detail": action.detail}
        if action.result is not None:
            bot["result"] = action.result.to_dict()
        return _state_response(gs, bot=bot)


@bp_game.route("/api/level/preview")
def level_preview():
    """Generate a throwaway level: ?width=&height=&seed= (no entities)."""
    rules = load_rules()
    try:
        width = int(request.args.get("width", rules.map_width))
        height = int(request.args.get("height", rules.map_height))
        seed = request.args.get("seed")
        seed = int(seed) if seed is not None else None
    except ValueError:
        return jsonify({"error": "width, height and seed must be integers"}), 400
    if not (5 <= width <= 200 and 5 <= height <= 200):
        return jsonify({"error": "width and height must be between 5 and 200"}), 400
    config = DungeonConfig(
        braid_factor=rules.braid_factor,
        enable_metrics=current_app.config.get("DELVE_ENABLE_GENERATION_METRICS", True),
    )
    level = generate_level(width, height, seed=seed, config=config)
    return jsonify(
        {
            "width": level.width,
            "height": level.height,
            "seed": level.seed,
            "rows": level.to_char_rows(),
            "rooms": [r.to_dict() for r in level.rooms],
            "metrics": level.metrics,
        }
    )


@bp_game.route("/api/scores", methods=["GET"])
def list_scores():
    limit = request.args.get("limit", type=int)
    return jsonify({"scores": [row.to_dict() for row in persistence.top_scores(limit)]})


@bp_game.route("/api/scores", methods=["POST"])
def submit_score():
    """Body JSON: {name, save_id?}; names the pending score of a finished run."""
    payload = _payload()
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        return jsonify({"error": "name required"}), 400
    save_id = _save_id(payload)
    if not save_id:
        return jsonify({"error": "no finished game"}), 404
    summary = persistence.pop_pending_score(save_id)
    if summary is None:
        return jsonify({"error": "no pending score"}), 404
    sessions.drop_session(save_id)
    row = persistence.record_score(name, summary)
    if row is None:
        return jsonify({"recorded": False, "scores": [r.to_dict() for r in persistence.top_scores()]})
    return jsonify({"recorded": True, "entry": row.to_dict(), "scores": [r.to_dict() for r in persistence.top_scores()]})
