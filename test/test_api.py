"""
Tests for the FastAPI session bridge using TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import ScriptedRoller, make_session, put_player

from snowhunt.api.main import create_app
from snowhunt.engine.game_engine import GameEngine
from snowhunt.engine.storage import InMemorySessionStore

GAME = "game-test"


@pytest.fixture
def roller():
    return ScriptedRoller([])


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def client(store, roller):
    engine = GameEngine(store, roller_factory=lambda seed: roller)
    # one event loop for HTTP calls and sockets alike
    with TestClient(create_app(engine)) as test_client:
        yield test_client


@pytest.fixture
def session(store):
    """Hand-built two player game stored under GAME."""
    session = make_session()
    store.create(session)
    return session


def test_root(client):
    assert client.get("/").json()["message"] == "Snow Hunt API"


def test_create_game(client):
    response = client.post("/games", json={"player_names": ["Alice", "Bob"], "seed": 42})
    assert response.status_code == 200
    data = response.json()
    assert data["state"]["game_id"] == data["game_id"]
    assert data["state"]["status"] == "PLAYING"
    assert [p["name"] for p in data["state"]["players"]] == ["Alice", "Bob"]
    assert data["events"][0]["type"] == "game_started"
    assert data["events"][0]["payload"]["seed"] == 42


def test_create_game_with_config(client):
    response = client.post("/games", json={
        "player_names": ["Alice", "Bob"],
        "config": {"grid_size": 15, "treasure_values": [10, 20]},
    })
    assert response.status_code == 200
    state = response.json()["state"]
    assert len(state["grid"]) == 15
    assert [t["value"] for t in state["treasures"]] == [10, 20]


@pytest.mark.parametrize("body", [
    {"player_names": ["Alice"]},
    {"player_names": ["Alice", "Bob", "Carol", "Dave", "Eve"]},
    {"player_names": ["Alice", "Al!ce"]},
    {"player_names": ["Alice", "Bob"], "config": {"grid_size": 3}},
])
def test_create_game_rejected(client, body):
    assert client.post("/games", json=body).status_code == 400


def test_get_game_and_available_actions(client, session):
    state = client.get(f"/games/{GAME}")
    assert state.status_code == 200
    assert state.json()["turn_state"] == "IDLE"

    actions = client.get(f"/games/{GAME}/available-actions").json()
    assert actions["actions"]["Alice"] == ["roll_dice", "end_turn"]


def test_unknown_game_is_404(client):
    assert client.get("/games/nope").status_code == 404
    assert client.post("/games/nope/roll", json={"player_name": "Alice"}).status_code == 404
    assert client.delete("/games/nope").status_code == 404


def test_unknown_game_leaves_no_lock_behind(client):
    for game_id in ("nope-1", "nope-2"):
        client.post(f"/games/{game_id}/roll", json={"player_name": "Alice"})
        client.post(f"/games/{game_id}/duel/fight", json={"player_name": "Alice"})
    assert client.app.state.bridge._locks == {}


def test_roll_move_and_dig(client, roller, session):
    roller.push((2, 3))
    rolled = client.post(f"/games/{GAME}/roll", json={"player_name": "Alice"})
    assert rolled.status_code == 200
    assert rolled.json()["result"]["moves"] == 5
    assert rolled.json()["state"]["turn_state"] == "MOVE"

    moved = client.post(f"/games/{GAME}/move", json={"player_name": "Alice", "direction": "RIGHT"})
    assert moved.json()["result"]["position"] == {"x": 1, "y": 0}

    dug = client.post(f"/games/{GAME}/dig", json={"player_name": "Alice"})
    assert dug.status_code == 200
    assert dug.json()["result"]["outcome"] == "empty"
    assert dug.json()["state"]["moves_remaining"] == 0

    ended = client.post(f"/games/{GAME}/end-turn", json={"player_name": "Alice"})
    assert ended.json()["result"]["next_player"] == "Bob"


def test_rule_violation_is_400(client, session):
    response = client.post(f"/games/{GAME}/roll", json={"player_name": "Bob"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Not your turn"


def test_second_duel_roll_resolves(client, roller, session):
    bob = session.get_player("Bob")
    bob.coins = 80
    put_player(bob, 1, 0)
    roller.push((4, 5))
    client.post(f"/games/{GAME}/roll", json={"player_name": "Alice"})
    moved = client.post(f"/games/{GAME}/move", json={"player_name": "Alice", "direction": "RIGHT"})
    assert moved.json()["state"]["turn_state"] == "DUEL"

    selected = client.post(f"/games/{GAME}/duel/select-weapon", json={"player_name": "Bob", "weapon": None})
    assert selected.status_code == 200

    roller.push((6, 6), (1, 1))
    client.post(f"/games/{GAME}/duel/roll", json={"player_name": "Alice"})
    second = client.post(f"/games/{GAME}/duel/roll", json={"player_name": "Bob"})
    data = second.json()
    assert data["duel_resolution"]["winner"] == "Alice"
    assert data["duel_resolution"]["coin_transfer"] == 80
    assert data["state"]["duel"] is None
    assert "duel_resolved" in [e["type"] for e in data["events"]]


def test_duel_fight_endpoint(client, roller, session):
    put_player(session.get_player("Bob"), 1, 0)
    roller.push((4, 5))
    client.post(f"/games/{GAME}/roll", json={"player_name": "Alice"})
    client.post(f"/games/{GAME}/move", json={"player_name": "Alice", "direction": "RIGHT"})

    roller.push((1, 1), (6, 6))
    fought = client.post(f"/games/{GAME}/duel/fight", json={"player_name": "Alice"})
    assert fought.status_code == 200
    assert fought.json()["result"]["winner"] == "Bob"
    assert fought.json()["state"]["current_player_index"] == 1


def test_exhausted_fight_still_broadcasts_tied_rounds(client, roller, session, monkeypatch):
    monkeypatch.setattr("snowhunt.engine.duel.MAX_DUEL_ROUNDS", 1)
    put_player(session.get_player("Bob"), 1, 0)
    roller.push((4, 5))
    client.post(f"/games/{GAME}/roll", json={"player_name": "Alice"})
    client.post(f"/games/{GAME}/move", json={"player_name": "Alice", "direction": "RIGHT"})

    with client.websocket_connect(f"/ws/games/{GAME}?player_name=Bob") as bob_ws:
        bob_ws.receive_json()
        roller.push((3, 4), (2, 5))
        fought = client.post(f"/games/{GAME}/duel/fight", json={"player_name": "Alice"})
        assert fought.status_code == 400
        assert fought.json()["detail"] == "Too many tie attempts"

        seen = []
        message = bob_ws.receive_json()
        while message["type"] == "event":
            seen.append(message["event"]["type"])
            message = bob_ws.receive_json()
        assert seen[-1] == "duel_tied"
        assert message["type"] == "state_update"
        assert message["state"]["duel"]["phase"] == "SELECT_WEAPON"


def test_scoreboard_and_listing(client, session):
    session.get_player("Bob").coins = 10
    board = client.get(f"/games/{GAME}/scoreboard").json()
    assert board["scoreboard"][0]["name"] == "Bob"
    listing = client.get("/games").json()["games"]
    assert [g["game_id"] for g in listing] == [GAME]


def test_delete_game(client, session):
    assert client.delete(f"/games/{GAME}").status_code == 200
    assert client.get(f"/games/{GAME}").status_code == 404


# ===== WebSocket =====

def test_websocket_pushes_state_and_events(client, roller, session):
    with client.websocket_connect(f"/ws/games/{GAME}?player_name=Alice") as ws:
        first = ws.receive_json()
        assert first["type"] == "state_update"
        assert session.get_player("Alice").connected is True

        roller.push((3, 4))
        ws.send_json({"action": "roll_dice"})
        event = ws.receive_json()
        assert event == {
            "type": "event",
            "event": {"type": "dice_rolled", "payload": {"player": "Alice", "dice": [3, 4], "total": 7}},
        }
        update = ws.receive_json()
        assert update["type"] == "state_update"
        assert update["state"]["moves_remaining"] == 7
        reply = ws.receive_json()
        assert reply["type"] == "action_result"
        assert reply["result"]["moves"] == 7

        ws.send_json({"action": "move_player", "direction": "LEFT"})
        error = ws.receive_json()
        assert error == {"type": "error", "message": "Out of bounds", "code": "ACTION_ERROR"}

        ws.send_json({"action": "fly"})
        assert ws.receive_json()["message"] == "Unknown action"


def test_websocket_malformed_json_keeps_socket_open(client, session):
    with client.websocket_connect(f"/ws/games/{GAME}?player_name=Alice") as ws:
        ws.receive_json()
        ws.send_text("{not json")
        assert ws.receive_json() == {"type": "error", "message": "Message must be valid JSON", "code": "ACTION_ERROR"}

        ws.send_json({"action": "fly"})
        assert ws.receive_json()["message"] == "Unknown action"


def test_websocket_other_players_hear_moves(client, roller, session):
    with client.websocket_connect(f"/ws/games/{GAME}?player_name=Bob") as bob_ws:
        bob_ws.receive_json()
        with client.websocket_connect(f"/ws/games/{GAME}?player_name=Alice") as alice_ws:
            alice_ws.receive_json()
            assert bob_ws.receive_json() == {"type": "player_connected", "player": "Alice"}

            roller.push((1, 2))
            response = client.post(f"/games/{GAME}/roll", json={"player_name": "Alice"})
            assert response.status_code == 200
            assert bob_ws.receive_json()["event"]["type"] == "dice_rolled"
            assert bob_ws.receive_json()["type"] == "state_update"

            alice_ws.close()
            assert bob_ws.receive_json() == {"type": "player_disconnected", "player": "Alice"}
            assert session.get_player("Alice").connected is False


def test_websocket_unknown_player(client, session):
    with client.websocket_connect(f"/ws/games/{GAME}?player_name=Zed") as ws:
        message = ws.receive_json()
        assert message["type"] == "error"
        assert message["message"] == "Player not found in game"
