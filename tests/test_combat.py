from delve.models.entities import Monster
from delve.models.xp import FIRST_LEVEL_XP, next_level_threshold, threshold_for_level, xp_for_kill
from delve.services.combat_service import (
    monster_attack,
    player_attack,
    player_goes_first,
    resolve_player_combat,
)
from delve.services.events import TurnContext, TurnOutcome
from tests.level_utils import StubRng, make_game, messages


def test_initiative_follows_stamina_percent():
    game = make_game()
    player = game.player
    player.stamina = 50
    spider = Monster(3, 2, "spider")
    assert player_goes_first(player, spider, 40) is True
    assert player_goes_first(player, spider, 60) is False
    assert player_goes_first(player, spider, 50) is False


def test_rats_always_win_initiative():
    game = make_game()
    rat = Monster(3, 2, "rat")
    assert game.player.stamina_percent == 100
    assert player_goes_first(game.player, rat, 0) is False


def test_spider_dies_in_two_exchanges_for_seven_xp():
    # randrange 0 -> player strikes first; random 0.6 -> food drop
    game = make_game(rng=StubRng(randoms=[0.6], ranges=[0]))
    spider = game.map.add_entity(Monster(3, 2, "spider"))
    assert (spider.max_life, spider.power) == (20, 3)

    first = game.submit_player_move(1, 0)
    assert first.outcome == TurnOutcome.ATTACKED
    assert spider.life == 10
    assert game.player.life == 97
    assert (game.player.x, game.player.y) == (2, 2)

    second = game.submit_player_move(1, 0)
    assert second.outcome == TurnOutcome.ATTACKED
    assert spider not in game.map.entities
    assert game.player.xp == 7
    assert game.player.life == 97
    assert game.player.find_item("food") is not None
    assert "Gained 7 XP." in messages(second.events)


def test_monster_first_when_roll_misses():
    game = make_game(rng=StubRng(ranges=[60]))
    game.player.stamina = 50
    skeleton = game.map.add_entity(Monster(3, 2, "skeleton"))
    ctx = TurnContext()
    assert resolve_player_combat(game, skeleton, ctx) is True
    log = messages(ctx.events)
    assert log[0] == "Initiative: Monster won! (Roll: 60 >= 50%)"
    assert "The Skeleton strikes first!" in log
    assert game.player.life == 90
    assert skeleton.life == 12


def test_monster_engaged_once_per_turn():
    game = make_game()
    spider = game.map.add_entity(Monster(3, 2, "spider"))
    ctx = TurnContext()
    assert resolve_player_combat(game, spider, ctx) is True
    assert resolve_player_combat(game, spider, ctx) is False


def test_paralyzed_swing_deals_nothing():
    game = make_game()
    game.player.status.paralyzed = 1
    spider = game.map.add_entity(Monster(3, 2, "spider"))
    ctx = TurnContext()
    assert player_attack(game, spider, ctx) == 0
    assert spider.life == spider.max_life
    assert messages(ctx.events) == ["You swing weakly while paralyzed - no damage!"]


def test_invulnerable_player_takes_no_damage_or_effects():
    game = make_game(rng=StubRng(randoms=[0.0]))
    game.player.add_invulnerability(3)
    rat = game.map.add_entity(Monster(3, 2, "rat"))
    ctx = TurnContext()
    assert monster_attack(game, rat, ctx) == 0
    assert game.player.life == 100
    assert not game.player.is_poxed
    assert "INVULNERABLE" in messages(ctx.events)[0]


def test_killing_blow_records_run_summary_once():
    game = make_game()
    game.depth = 3
    game.player.life = 5
    skeleton = game.map.add_entity(Monster(3, 2, "skeleton"))
    ctx = TurnContext()
    monster_attack(game, skeleton, ctx)
    assert not game.player.is_alive
    assert game.summary.score == 2
    assert game.summary.cause == "Killed by a Skeleton"
    game.finalize_death("something else", ctx)
    assert game.summary.cause == "Killed by a Skeleton"


def test_deamon_always_drops_a_gem_that_is_used_on_the_spot():
    game = make_game(rng=StubRng(ranges=[0]))
    deamon = game.map.add_entity(Monster(3, 2, "deamon"))
    deamon.life = 5
    ctx = TurnContext()
    resolve_player_combat(game, deamon, ctx)
    assert not deamon.is_alive
    assert game.player.is_invulnerable
    assert game.player.status.invulnerable == 30
    assert game.player.find_item("gem") is None


def test_xp_formula_and_thresholds():
    assert xp_for_kill(3, 20) == 7
    assert xp_for_kill(10, 22) == 14
    assert next_level_threshold(50) == 75
    assert threshold_for_level(1) == FIRST_LEVEL_XP == make_game().player.next_level_xp
    assert threshold_for_level(3) == 112


def test_gain_xp_applies_every_level_it_pays_for():
    game = make_game()
    player = game.player
    assert player.gain_xp(200) == 2
    assert player.level == 3
    assert player.xp == 75
    assert player.next_level_xp == 112
    assert player.max_life == 140
    assert player.life == player.max_life
    assert player.base_power == 16
