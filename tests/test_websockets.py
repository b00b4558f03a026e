import pytest

from delve import app, socketio
from delve.services import sessions
from delve.websockets.game import active_autoplay, autoplay_tick
from delve.websockets.validation import JOIN_GAME, START_AUTOPLAY, validate

pytestmark = pytest.mark.db_isolation


@pytest.fixture()
def ws_client():
    c = socketio.test_client(app, flask_test_client=app.test_client())
    # Flush any connection events to start each test with a clean queue
    c.get_received()
    yield c
    if c.is_connected():
        c.disconnect()


def _events(client, name):
    return [msg["args"][0] for msg in client.get_received() if msg["name"] == name]


def test_validate_accepts_and_normalizes():
    ok, data = validate({"save_id": "  abc  ", "interval": 0.5}, START_AUTOPLAY)
    assert ok
    assert data == {"save_id": "abc", "interval": 0.5}


@pytest.mark.parametrize(
    "payload,code",
    [
        ({}, "required"),
        ({"save_id": ""}, "empty"),
        ({"save_id": "x" * 33}, "max_len"),
        ({"save_id": 5}, "type"),
        ({"save_id": "abc", "interval": True}, "type"),
        ({"save_id": "abc", "interval": 0.01}, "min"),
        ({"save_id": "abc", "interval": 99}, "max"),
    ],
)
def test_validate_rejects(payload, code):
    ok, err = validate(payload, START_AUTOPLAY)
    assert not ok
    assert err["code"] == code


def test_validate_requires_object():
    ok, err = validate(["save_id"], JOIN_GAME)
    assert not ok and err["field"] == "__root__"


def test_autoplay_tick_only_runs_when_enabled():
    gs = sessions.create_session("warrior", seed=6)
    assert autoplay_tick(gs.save_id) is False
    assert gs.game.turn == 0
    gs.autoplay = True
    assert autoplay_tick(gs.save_id) is True
    assert autoplay_tick("missing") is False


def test_autoplay_tick_stops_on_death():
    gs = sessions.create_session("warrior", seed=6)
    gs.autoplay = True
    gs.game.player.life = 0
    assert autoplay_tick(gs.save_id) is False
    assert gs.autoplay is False
    assert gs.finished is True


def test_join_game_sends_state(ws_client):
    gs = sessions.create_session("thief", seed=2)
    ws_client.emit("join_game", {"save_id": gs.save_id})
    updates = _events(ws_client, "game_update")
    assert updates and updates[0]["save_id"] == gs.save_id
    assert updates[0]["state"]["player"]["class"] == "thief"


def test_join_unknown_game_is_error(ws_client):
    ws_client.emit("join_game", {"save_id": "nope"})
    errors = _events(ws_client, "error")
    assert errors and errors[0]["code"] == "not_found"


def test_invalid_payload_is_error(ws_client):
    ws_client.emit("start_autoplay", {"interval": 1})
    errors = _events(ws_client, "error")
    assert errors and errors[0]["field"] == "save_id"


def test_stop_autoplay_clears_flag(ws_client):
    gs = sessions.create_session("warrior", seed=4)
    gs.autoplay = True
    ws_client.emit("join_game", {"save_id": gs.save_id})
    ws_client.get_received()
    ws_client.emit("stop_autoplay", {"save_id": gs.save_id})
    statuses = _events(ws_client, "autoplay_status")
    assert statuses and statuses[0]["running"] is False
    assert gs.autoplay is False
    assert gs.save_id not in active_autoplay
