"""
Shared fixtures: scripted dice and small hand-built sessions.
"""

import pytest

from snowhunt.engine.definitions import WorldConfig, TERRAIN_SNOW
from snowhunt.engine.game_engine import GameEngine
from snowhunt.engine.state import GameSession, Player, STATUS_PLAYING, TURN_IDLE
from snowhunt.engine.storage import InMemorySessionStore
from snowhunt.engine.world import init_players


class ScriptedRoller:
    """Dice that return pre-set pairs in order. Runs out loudly."""

    def __init__(self, pairs):
        self.pairs = list(pairs)

    def roll_pair(self):
        if not self.pairs:
            raise AssertionError("ScriptedRoller ran out of dice")
        return self.pairs.pop(0)

    def push(self, *pairs):
        self.pairs.extend(pairs)


def make_session(names=("Alice", "Bob"), size=10, game_id="game-test") -> GameSession:
    """A playing session on an all-snow board with no items placed."""
    config = WorldConfig(grid_size=size)
    session = GameSession(game_id=game_id, seed=42, config=config)
    session.players = init_players(list(names), config)
    session.grid = [[TERRAIN_SNOW] * size for _ in range(size)]
    session.status = STATUS_PLAYING
    session.turn_state = TURN_IDLE
    return session


def put_player(player: Player, x: int, y: int) -> None:
    player.x, player.y = x, y


@pytest.fixture
def roller():
    return ScriptedRoller([])


@pytest.fixture
def session():
    return make_session()


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def engine(store, roller):
    """Engine whose dice come from the shared scripted roller."""
    return GameEngine(store, roller_factory=lambda seed: roller)


@pytest.fixture
def hand_engine(store, roller, session):
    """Engine holding the hand-built session under its game id."""
    engine = GameEngine(store, roller_factory=lambda seed: roller)
    store.create(session)
    return engine
