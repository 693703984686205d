"""
Game engine facade.
Request/response operations over stored sessions. Every operation returns an
ActionResult value; rule violations come back as failures, never as raised
errors. Only initialize_game raises, when the players cannot form a game.

Dig outcomes such as "no clue yet" are successful results with an "outcome"
field: the request was valid, the hole was just empty.
"""

from dataclasses import dataclass, field
from typing import Any, Callable

from snowhunt.engine import MIN_PLAYERS, MAX_PLAYERS
from snowhunt.engine.actions import (
    Action,
    ActionError,
    roll_dice,
    move_player,
    dig,
    end_turn,
    duel_select_weapon,
    duel_roll,
    duel_resolve,
    duel_fight,
)
from snowhunt.engine.definitions import WorldConfig
from snowhunt.engine.events import (
    GameEvent,
    game_started,
    DICE_ROLLED,
    DUEL_RESOLVED,
    GAME_OVER,
)
from snowhunt.engine.queries import get_available_actions
from snowhunt.engine.reducer import apply_action
from snowhunt.engine.rng import DiceRoller, SeededRandom, generate_seed
from snowhunt.engine.state import GameSession, STATUS_PLAYING, TURN_IDLE
from snowhunt.engine.storage import SessionStore
from snowhunt.engine.utils import generate_game_id, validate_player_name
from snowhunt.engine.world import init_players, generate_world
from snowhunt.logging_config import get_logger

logger = get_logger("engine")

# Events worth an INFO line of their own; the rest only show up at DEBUG
LOGGED_EVENTS = (DICE_ROLLED, DUEL_RESOLVED, GAME_OVER)


@dataclass
class ActionResult:
    """Outcome of an engine call: success with a payload, or failure with a message."""
    success: bool
    payload: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    events: list[GameEvent] = field(default_factory=list)

    @classmethod
    def ok(cls, payload: dict[str, Any], events: list[GameEvent] | None = None) -> "ActionResult":
        return cls(True, payload, None, list(events or []))

    @classmethod
    def failure(cls, error: str, events: list[GameEvent] | None = None) -> "ActionResult":
        return cls(False, {}, error, list(events or []))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.success:
            out.update(self.payload)
        else:
            out["error"] = self.error
        out["events"] = [e.to_dict() for e in self.events]
        return out


class GameEngine:
    """
    Orchestrates sessions held in a SessionStore.

    roller_factory builds the dice source for a session seed; world rolls never
    go through it. Tests pass a factory returning scripted dice.
    """

    def __init__(
        self,
        store: SessionStore,
        roller_factory: Callable[[int], DiceRoller] = DiceRoller,
        id_factory: Callable[[], str] = generate_game_id,
    ):
        self.store = store
        self.roller_factory = roller_factory
        self.id_factory = id_factory

    # ===== Game creation =====

    def initialize_game(
        self,
        player_names: list[str],
        seed: int | None = None,
        config: WorldConfig | None = None,
    ) -> str:
        """
        Create and store a new session; returns its game id.
        Raises ValueError for a player count outside 2-4 or unusable names.
        World parameters are expected to be validated by the caller.
        """
        if not player_names or not MIN_PLAYERS <= len(player_names) <= MAX_PLAYERS:
            raise ValueError(f"Game must have {MIN_PLAYERS}-{MAX_PLAYERS} players")
        names = []
        for name in player_names:
            error = validate_player_name(name)
            if error:
                raise ValueError(error)
            names.append(name.strip())
        if len(set(names)) != len(names):
            raise ValueError("Player names must be unique")

        config = config or WorldConfig()
        game_seed = seed if seed is not None else generate_seed()
        session = build_session(self.id_factory(), names, game_seed, config)
        if not self.store.create(session):
            raise ValueError(f"Game {session.game_id} already exists")

        logger.info("game_initialized", game_id=session.game_id, players=names, seed=game_seed)
        return session.game_id

    # ===== Actions =====

    def roll_dice(self, game_id: str, player_name: str) -> ActionResult:
        return self._apply(game_id, roll_dice(player_name))

    def move_player(self, game_id: str, player_name: str, direction: str) -> ActionResult:
        return self._apply(game_id, move_player(player_name, direction))

    def dig(self, game_id: str, player_name: str) -> ActionResult:
        return self._apply(game_id, dig(player_name))

    def end_turn(self, game_id: str, player_name: str) -> ActionResult:
        return self._apply(game_id, end_turn(player_name))

    def duel_select_weapon(self, game_id: str, player_name: str, weapon: str | None) -> ActionResult:
        return self._apply(game_id, duel_select_weapon(player_name, weapon))

    def duel_roll(self, game_id: str, player_name: str) -> ActionResult:
        return self._apply(game_id, duel_roll(player_name))

    def duel_resolve(self, game_id: str, player_name: str) -> ActionResult:
        return self._apply(game_id, duel_resolve(player_name))

    def duel_fight(self, game_id: str, player_name: str) -> ActionResult:
        return self._apply(game_id, duel_fight(player_name))

    def apply(self, game_id: str, action: Action) -> ActionResult:
        """Apply an already built action (used by the session bridge)."""
        return self._apply(game_id, action)

    # ===== Queries =====

    def get_session(self, game_id: str) -> GameSession | None:
        return self.store.get(game_id)

    def get_state(self, game_id: str) -> ActionResult:
        session = self.store.get(game_id)
        if session is None:
            return ActionResult.failure("Game not found")
        return ActionResult.ok(session.to_dict())

    def get_available_actions(self, game_id: str) -> ActionResult:
        session = self.store.get(game_id)
        if session is None:
            return ActionResult.failure("Game not found")
        return ActionResult.ok(get_available_actions(session))

    def delete_game(self, game_id: str) -> bool:
        deleted = self.store.delete(game_id)
        if deleted:
            logger.info("game_deleted", game_id=game_id)
        return deleted

    # ===== Internals =====

    def _apply(self, game_id: str, action: Action) -> ActionResult:
        session = self.store.get(game_id)
        if session is None:
            return ActionResult.failure("Game not found")
        try:
            result, events = apply_action(session, action, self.roller_factory(session.seed))
        except ActionError as e:
            logger.debug("action_rejected", game_id=game_id, action=action.type, player=action.player, error=str(e))
            if e.events:
                # Partly applied (auto-fight gave up after tied rounds): keep what happened
                self.store.update(session)
            return ActionResult.failure(str(e), e.events)
        self.store.update(session)
        logger.debug(
            "action_applied",
            game_id=game_id,
            action=action.type,
            player=action.player,
            events=[e.type for e in events],
        )
        for event in events:
            if event.type in LOGGED_EVENTS:
                logger.info(event.type, game_id=game_id, **event.payload)
        return ActionResult.ok(result, events)


def build_session(game_id: str, player_names: list[str], seed: int, config: WorldConfig) -> GameSession:
    """Generate a complete session: players first, then the seeded world."""
    session = GameSession(game_id=game_id, seed=seed, config=config)
    session.players = init_players(player_names, config)
    generate_world(session, SeededRandom(seed))
    session.status = STATUS_PLAYING
    session.turn_state = TURN_IDLE
    return session


def start_event(session: GameSession) -> GameEvent:
    return game_started(session.game_id, [p.name for p in session.players], session.seed)
