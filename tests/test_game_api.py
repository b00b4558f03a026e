import pytest

from delve import db
from delve.models.models import SaveGame
from delve.services import persistence, sessions
from delve.services.events import RunSummary

pytestmark = pytest.mark.db_isolation


def _new(client, **body):
    r = client.post("/api/game/new", json=body or {"class": "warrior", "seed": 3})
    assert r.status_code == 201
    return r.get_json()


def test_new_game_returns_state(client):
    data = _new(client, **{"class": "thief", "seed": 3})
    assert data["save_id"]
    assert data["autoplay"] is False
    assert data["pending_score"] is False
    state = data["state"]
    assert state["depth"] == 1
    assert state["player"]["class"] == "thief"
    assert state["game_over"] is False
    assert db.session.get(SaveGame, data["save_id"]) is not None


def test_new_game_validation(client):
    r = client.post("/api/game/new", json={"class": "bard"})
    assert r.status_code == 400
    assert "warrior" in r.get_json()["classes"]
    r = client.post("/api/game/new", json={"seed": "abc"})
    assert r.status_code == 400


def test_state_by_session_and_by_query(client):
    data = _new(client)
    r = client.get("/api/game/state")
    assert r.status_code == 200
    assert r.get_json()["save_id"] == data["save_id"]
    r = client.get(f"/api/game/state?save_id={data['save_id']}")
    assert r.status_code == 200


def test_state_without_game_is_404(client):
    assert client.get("/api/game/state").status_code == 404
    assert client.get("/api/game/state?save_id=missing").status_code == 404


def test_state_is_reloaded_from_database(client):
    data = _new(client)
    sessions.clear_sessions()
    r = client.get(f"/api/game/state?save_id={data['save_id']}")
    assert r.status_code == 200
    assert r.get_json()["state"]["rows"] == data["state"]["rows"]


def test_move_and_wait(client):
    data = _new(client)
    r = client.post("/api/game/move", json={"save_id": data["save_id"], "direction": "wait"})
    assert r.status_code == 200
    body = r.get_json()
    assert body["result"]["outcome"] == "moved"
    assert body["state"]["turn"] == 1
    # the move was written back
    assert persistence.load_game(data["save_id"]).turn == 1


def test_move_validation(client):
    data = _new(client)
    sid = data["save_id"]
    assert client.post("/api/game/move", json={"save_id": sid, "direction": "up"}).status_code == 400
    assert client.post("/api/game/move", json={"save_id": sid, "dx": "1", "dy": 0}).status_code == 400
    assert client.post("/api/game/move", json={"save_id": sid, "dx": True, "dy": 0}).status_code == 400
    r = client.post("/api/game/move", json={"save_id": sid, "dx": 3, "dy": 0})
    assert r.status_code == 200
    assert r.get_json()["result"]["outcome"] == "blocked"


def test_non_object_bodies_are_rejected_cleanly(client):
    _new(client)
    r = client.post("/api/game/move", json=[1, 0])
    assert r.status_code == 400
    assert r.get_json()["error"] == "dx and dy must be integers"
    assert client.post("/api/scores", json="Ann").status_code == 400
    assert client.post("/api/game/use", json=[]).status_code == 400


def test_manual_input_refused_during_autoplay(client):
    data = _new(client)
    sessions.get_session(data["save_id"]).autoplay = True
    r = client.post("/api/game/move", json={"save_id": data["save_id"], "dx": 0, "dy": 0})
    assert r.status_code == 409
    r = client.post("/api/game/use", json={"save_id": data["save_id"], "item_id": "x"})
    assert r.status_code == 409


def test_use_and_upgrade(client):
    data = _new(client)
    sid = data["save_id"]
    assert client.post("/api/game/use", json={"save_id": sid}).status_code == 400
    r = client.post("/api/game/use", json={"save_id": sid, "item_id": "nope"})
    assert r.status_code == 200
    assert r.get_json()["result"]["used"] is False
    assert client.post("/api/game/upgrade", json={"save_id": sid}).status_code == 400
    r = client.post("/api/game/upgrade", json={"save_id": sid, "slot": "head"})
    assert r.status_code == 200
    assert r.get_json()["result"]["used"] is False


def test_autoplay_single_step(client):
    data = _new(client)
    r = client.post("/api/game/autoplay/step", json={"save_id": data["save_id"]})
    assert r.status_code == 200
    body = r.get_json()
    assert "bot" in body
    assert body["bot"]["kind"] in ("wait", "use", "upgrade", "step", "explore", "idle")


def test_level_preview(client):
    r = client.get("/api/level/preview?width=20&height=12&seed=4")
    assert r.status_code == 200
    data = r.get_json()
    assert data["seed"] == 4
    assert len(data["rows"]) == 12
    assert all(len(row) == 20 for row in data["rows"])
    assert data["rooms"]
    again = client.get("/api/level/preview?width=20&height=12&seed=4").get_json()
    assert again["rows"] == data["rows"]


def test_level_preview_validation(client):
    assert client.get("/api/level/preview?width=2&height=12").status_code == 400
    assert client.get("/api/level/preview?width=abc").status_code == 400


def test_scores_listing_and_naming(client):
    assert client.get("/api/scores").get_json() == {"scores": []}
    assert client.post("/api/scores", json={"save_id": "x"}).status_code == 400
    assert client.post("/api/scores", json={"name": "Ann", "save_id": "x"}).status_code == 404

    persistence.set_pending_score("deadrun", RunSummary(3, 4, "Killed by a Zombie", "Warrior"))
    r = client.post("/api/scores", json={"name": "Ann", "save_id": "deadrun"})
    assert r.status_code == 200
    body = r.get_json()
    assert body["recorded"] is True
    assert body["entry"]["name"] == "Ann"
    assert body["entry"]["score"] == 3
    assert client.get("/api/scores").get_json()["scores"][0]["name"] == "Ann"
    assert client.post("/api/scores", json={"name": "Ann", "save_id": "deadrun"}).status_code == 404


def test_death_leaves_a_pending_score(client):
    data = _new(client)
    gs = sessions.get_session(data["save_id"])
    with gs.lock:
        gs.game.player.life = 0
        gs.game.summary = RunSummary(2, 3, "Killed by a Rat", "Warrior")
        sessions.persist(gs)
    assert gs.finished is True
    assert gs.pending_score is True
    row = db.session.get(SaveGame, data["save_id"])
    assert row.state_json is None
    assert row.pending_score_json
    r = client.get(f"/api/game/state?save_id={data['save_id']}")
    assert r.get_json()["pending_score"] is True
