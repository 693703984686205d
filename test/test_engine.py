"""
GameEngine facade, session store, snapshots and queries.
"""

import pytest
from structlog.testing import capture_logs

from conftest import make_session, put_player

from snowhunt.engine.actions import (
    DIG,
    DUEL_FIGHT,
    DUEL_ROLL,
    DUEL_SELECT_WEAPON,
    END_TURN,
    MOVE_PLAYER,
    ROLL_DICE,
    move_player,
    roll_dice,
)
from snowhunt.engine.definitions import TERRAIN_TREE, WorldConfig
from snowhunt.engine.game_engine import ActionResult, GameEngine
from snowhunt.engine.queries import get_available_actions, get_scoreboard, validate_action
from snowhunt.engine.state import GameSession, STATUS_PLAYING, TURN_IDLE
from snowhunt.engine.storage import InMemorySessionStore
from snowhunt.engine.utils import validate_player_name
from snowhunt.logging_config import get_logger

GAME = "game-test"


def test_initialize_game_creates_playing_session(engine, store):
    game_id = engine.initialize_game(["Alice", "Bob"], seed=99)
    session = store.get(game_id)
    assert game_id.startswith("game-")
    assert session.status == STATUS_PLAYING
    assert session.turn_state == TURN_IDLE
    assert session.seed == 99
    assert [p.name for p in session.players] == ["Alice", "Bob"]
    assert len(session.treasures) == 4


def test_initialize_game_without_seed_draws_one(engine, store):
    session = store.get(engine.initialize_game(["Alice", "Bob"]))
    assert 0 <= session.seed < 1_000_000


def test_initialize_game_reproducible_boards(engine, store):
    a = store.get(engine.initialize_game(["Alice", "Bob"], seed=5))
    b = store.get(engine.initialize_game(["Carol", "Dave"], seed=5))
    assert a.game_id != b.game_id
    assert a.grid == b.grid
    assert [t.to_dict() for t in a.treasures] == [t.to_dict() for t in b.treasures]


@pytest.mark.parametrize("names", [[], ["Solo"], ["A", "B", "C", "D", "E"]])
def test_initialize_game_rejects_player_count(engine, store, names):
    with pytest.raises(ValueError, match="2-4 players"):
        engine.initialize_game(names)
    assert store.count() == 0


def test_initialize_game_rejects_bad_and_duplicate_names(engine):
    with pytest.raises(ValueError, match="letters, numbers"):
        engine.initialize_game(["Alice", "B@b"])
    with pytest.raises(ValueError, match="unique"):
        engine.initialize_game(["Alice", " Alice "])


def test_initialize_game_honours_world_config(engine, store):
    config = WorldConfig(grid_size=20, treasure_values=[50, 60], num_gifts=3, weapon_counts={"KNIFE": 1})
    session = store.get(engine.initialize_game(["Alice", "Bob"], seed=1, config=config))
    assert session.grid_size == 20
    assert [t.value for t in session.treasures] == [50, 60]
    assert len(session.gifts) <= 3
    assert session.players[1].start_position == (19, 0)


def test_validate_player_name():
    assert validate_player_name("Player 1") is None
    assert validate_player_name("   ") == "Player name cannot be empty"
    assert validate_player_name("x" * 21) is not None
    assert validate_player_name(7) == "Player name must be a string"


def test_failed_action_does_not_touch_store(hand_engine, store, session):
    before = session.to_dict()
    result = hand_engine.dig(GAME, "Alice")
    assert result == ActionResult.failure("Cannot dig in current state")
    assert store.get(GAME).to_dict() == before


def test_action_result_to_dict(hand_engine, roller):
    roller.push((2, 2))
    ok = hand_engine.roll_dice(GAME, "Alice").to_dict()
    assert ok["success"] is True
    assert ok["dice_value"] == 4
    assert ok["events"][0]["type"] == "dice_rolled"

    bad = hand_engine.roll_dice(GAME, "Bob").to_dict()
    assert bad == {"success": False, "error": "Not your turn", "events": []}


def test_apply_accepts_built_actions(hand_engine, roller, session):
    roller.push((1, 2))
    assert hand_engine.apply(GAME, roll_dice("Alice")).success
    assert hand_engine.apply(GAME, move_player("Alice", "RIGHT")).payload["moves_left"] == 2


def test_delete_game(hand_engine, store):
    assert hand_engine.delete_game(GAME) is True
    assert hand_engine.delete_game(GAME) is False
    assert hand_engine.get_state(GAME).error == "Game not found"


def test_default_engine_rolls_real_dice():
    engine = GameEngine(InMemorySessionStore())
    game_id = engine.initialize_game(["Alice", "Bob"], seed=3)
    result = engine.roll_dice(game_id, "Alice")
    d1, d2 = result.payload["dice"]
    assert 1 <= d1 <= 6 and 1 <= d2 <= 6
    assert result.payload["moves"] == d1 + d2


# ===== Store =====

def test_store_crud():
    store = InMemorySessionStore()
    session = make_session(game_id="g1")
    assert store.create(session) is True
    assert store.create(session) is False
    assert store.has("g1")
    assert store.get("missing") is None
    assert store.update(make_session(game_id="g2")) is False
    assert store.count() == 1
    assert store.delete("g1") is True
    assert store.list_sessions() == []


def test_stores_are_isolated():
    a, b = InMemorySessionStore(), InMemorySessionStore()
    a.create(make_session(game_id="g1"))
    assert not b.has("g1")


# ===== Snapshots =====

def test_session_json_round_trip(engine, store):
    session = store.get(engine.initialize_game(["Alice", "Bob", "Carol"], seed=11))
    session.players[0].weapons = ["KNIFE", "KNIFE"]
    session.players[0].clues = [1, 3]
    restored = GameSession.from_json(session.to_json())
    assert restored.to_dict() == session.to_dict()


def test_from_dict_tolerates_missing_keys():
    session = GameSession.from_dict({"game_id": "g", "players": [{"name": "Alice"}]})
    assert session.players[0].name == "Alice"
    assert session.players[0].coins == 0
    assert session.duel is None
    assert session.config == WorldConfig()


# ===== Queries =====

def test_available_actions_follow_turn_state(session):
    idle = get_available_actions(session)
    assert idle["actions"] == {"Alice": [ROLL_DICE, END_TURN], "Bob": []}

    session.turn_state = "MOVE"
    session.moves_remaining = 2
    session.grid[1][0] = TERRAIN_TREE
    moving = get_available_actions(session)
    assert moving["actions"]["Alice"] == [MOVE_PLAYER, DIG, END_TURN]
    assert moving["directions"] == ["RIGHT"]


def test_available_actions_during_duel(hand_engine, roller, session):
    put_player(session.get_player("Bob"), 1, 0)
    roller.push((4, 5))
    hand_engine.roll_dice(GAME, "Alice")
    hand_engine.move_player(GAME, "Alice", "RIGHT")

    actions = hand_engine.get_available_actions(GAME).payload
    assert actions["actions"]["Alice"] == [DUEL_SELECT_WEAPON, DUEL_ROLL, DUEL_FIGHT]
    assert actions["actions"]["Bob"] == [DUEL_SELECT_WEAPON, DUEL_ROLL]
    assert actions["duel"]["attacker"] == "Alice"


def test_validate_action_is_a_dry_run(session):
    assert validate_action(session, roll_dice("Bob")).error == "Not your turn"
    result = validate_action(session, roll_dice("Alice"))
    assert result.valid
    assert session.turn_state == TURN_IDLE


def test_scoreboard_orders_by_coins(session):
    session.get_player("Bob").coins = 50
    board = get_scoreboard(session)
    assert [row["name"] for row in board] == ["Bob", "Alice"]


# ===== Logging =====

def test_get_logger_emits_structured_events():
    with capture_logs() as logs:
        get_logger("snowhunt.test").info("game_initialized", game_id="g1")
        get_logger().warning("plain")
    assert logs == [
        {"event": "game_initialized", "game_id": "g1", "log_level": "info"},
        {"event": "plain", "log_level": "warning"},
    ]
