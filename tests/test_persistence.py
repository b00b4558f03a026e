import json

import pytest

from delve import db
from delve.models.entities import EntityKind, EquipmentSlot, Item
from delve.models.models import HighScore, SaveGame
from delve.services import persistence
from delve.services.events import RunSummary
from delve.services.persistence import SaveCorrupted, game_from_dict, game_to_dict
from delve.services.rules import GameRules
from delve.services.turn_engine import Game


def _game(seed=5):
    return Game("warrior", rules=GameRules(), seed=seed)


def test_round_trip_keeps_the_run():
    game = _game()
    game.player.add_to_inventory(Item(0, 0, "food", quantity=2))
    game.player.equip(Item.equipment("chest", value=2))
    game.player.status.poxed = 3
    game.submit_player_move(0, 0)
    data = json.loads(json.dumps(game_to_dict(game)))
    restored = game_from_dict(data, rules=GameRules())
    assert restored.map.grid == game.map.grid
    assert (restored.player.x, restored.player.y) == (game.player.x, game.player.y)
    assert restored.depth == game.depth
    assert restored.turn == game.turn
    assert restored.player.find_item("food").quantity == 2
    assert restored.player.equipment[EquipmentSlot.CHEST].value == 2
    assert restored.player.equipment[EquipmentSlot.HEAD] is None
    assert restored.player.power == game.player.power
    assert restored.player.status.poxed == game.player.status.poxed
    assert len(restored.map.entities) == len(game.map.entities)
    assert restored.map.explored == game.map.explored


def test_legacy_save_fields_are_migrated():
    game = _game(8)
    data = game_to_dict(game)
    player = data["player"]
    del player["stamina"]
    player["hunger"] = 42
    player["power"] = player.pop("base_power") + 7
    player["maxLife"] = player.pop("max_life")
    player["inventory"] = [{"kind": "item", "itemType": "potion_clarity", "name": "Potion of Clarity", "quantity": 1}]
    taken = {(e["x"], e["y"]) for e in data["map"]["entities"]} | {(player["x"], player["y"])}
    grid = data["map"]["grid"]
    x, y = next(
        (x, y) for y, row in enumerate(grid) for x, t in enumerate(row) if t == 0 and (x, y) not in taken
    )
    # camelCase monster without a leash origin
    data["map"]["entities"].append({"kind": "monster", "id": "old-rat", "monsterType": "rat", "x": x, "y": y, "maxLife": 9})

    restored = game_from_dict(data, rules=GameRules())
    assert restored.player.stamina == 42
    assert restored.player.base_power == 17
    assert restored.player.max_life == 100
    clarity = restored.player.find_item("clarity")
    assert clarity is not None and clarity.name == "Clarity Potion"
    rat = restored.map.get_entity("old-rat")
    assert rat.monster_type == "rat"
    assert rat.max_life == rat.life == 9
    assert (rat.origin_x, rat.origin_y) == (x, y)


def test_missing_status_defaults_to_clear():
    data = game_to_dict(_game(9))
    data["player"].pop("status")
    restored = game_from_dict(data, rules=GameRules())
    assert restored.player.status.to_dict() == {"invulnerable": 0, "paralyzed": 0, "poxed": 0}


def test_missing_xp_threshold_follows_level():
    data = game_to_dict(_game())
    data["player"]["level"] = 3
    data["player"].pop("next_level_xp")
    restored = game_from_dict(data, rules=GameRules())
    assert restored.player.next_level_xp == 112


def test_player_inside_wall_is_corrupt():
    game = _game()
    data = game_to_dict(game)
    data["player"]["x"], data["player"]["y"] = 0, 0
    with pytest.raises(SaveCorrupted):
        game_from_dict(data, rules=GameRules())


@pytest.mark.parametrize("raw", ["not json", "[]", json.dumps({"map": {}, "player": {}})])
def test_garbage_is_corrupt(raw):
    with pytest.raises(SaveCorrupted):
        game_from_dict(raw, rules=GameRules())


@pytest.mark.parametrize(
    "field,value",
    [("depth", "deep"), ("turn", "later"), ("summary", [1, 2]), ("summary", "dead")],
)
def test_bad_run_fields_are_corrupt(field, value):
    data = game_to_dict(_game())
    data[field] = value
    with pytest.raises(SaveCorrupted):
        game_from_dict(data, rules=GameRules())


@pytest.mark.db_isolation
def test_row_with_bad_depth_is_discarded():
    data = game_to_dict(_game())
    data["depth"] = "deep"
    row = SaveGame(state_json=json.dumps(data))
    db.session.add(row)
    db.session.commit()
    save_id = row.id
    assert persistence.load_game(save_id) is None
    assert db.session.get(SaveGame, save_id) is None


@pytest.mark.db_isolation
def test_save_and_load_through_database():
    game = _game()
    save_id = persistence.save_game(game)
    assert db.session.get(SaveGame, save_id).depth == 1
    loaded = persistence.load_game(save_id)
    assert loaded is not None
    assert loaded.map.grid == game.map.grid
    game.depth = 2
    assert persistence.save_game(game, save_id) == save_id
    assert persistence.load_game(save_id).depth == 2


@pytest.mark.db_isolation
def test_corrupt_row_is_discarded():
    row = SaveGame(state_json="{broken")
    db.session.add(row)
    db.session.commit()
    save_id = row.id
    assert persistence.load_game(save_id) is None
    assert db.session.get(SaveGame, save_id) is None


@pytest.mark.db_isolation
def test_unknown_save_is_none():
    assert persistence.load_game("0" * 32) is None
    assert persistence.delete_save("0" * 32) is False


@pytest.mark.db_isolation
def test_pending_score_is_popped_once():
    summary = RunSummary(score=4, depth=5, cause="Killed by a Rat", class_name="Thief")
    persistence.set_pending_score("abc123", summary)
    assert persistence.pop_pending_score("abc123") == summary
    assert persistence.pop_pending_score("abc123") is None


@pytest.mark.db_isolation
def test_score_table_keeps_top_ten():
    for score in range(1, 11):
        persistence.record_score(f"p{score}", RunSummary(score, score + 1, "x", "Warrior"))
    assert HighScore.query.count() == 10
    assert persistence.qualifies(1) is False
    assert persistence.qualifies(2) is True
    assert persistence.record_score("late", RunSummary(0, 1, "x", "Warrior")) is None

    row = persistence.record_score("champ", RunSummary(12, 13, "deep", "Thief"))
    assert row is not None
    board = persistence.top_scores()
    assert len(board) == 10
    assert board[0].name == "champ"
    assert min(r.score for r in board) == 2
    assert board[0].to_dict()["class_name"] == "Thief"


@pytest.mark.db_isolation
def test_empty_board_always_qualifies():
    assert persistence.top_scores() == []
    assert persistence.qualifies(0) is True


def test_dead_monsters_are_not_restored():
    game = _game()
    data = game_to_dict(game)
    monsters = [e for e in data["map"]["entities"] if e["kind"] == "monster"]
    if not monsters:
        pytest.skip("seed produced no monsters")
    monsters[0]["life"] = 0
    restored = game_from_dict(data, rules=GameRules())
    assert len([e for e in restored.map.entities if e.kind == EntityKind.MONSTER]) == len(monsters) - 1
