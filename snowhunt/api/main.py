"""
FastAPI session bridge for Snow Hunt.
Maps HTTP and WebSocket requests to GameEngine calls and pushes the full state
plus discrete events to every connected participant after each successful
mutation. The engine never pushes anything itself.
"""

import asyncio
import json
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from snowhunt.config import CORS_ORIGINS, ENVIRONMENT, HOST, PORT
from snowhunt.engine.actions import (
    Action,
    roll_dice,
    move_player,
    dig,
    end_turn,
    duel_select_weapon,
    duel_roll,
    duel_resolve,
    duel_fight,
    DUEL_ROLL,
)
from snowhunt.engine.definitions import WorldConfig, validate_world_config
from snowhunt.engine.game_engine import ActionResult, GameEngine, start_event
from snowhunt.engine.queries import get_game_summary, get_scoreboard
from snowhunt.engine.state import DUEL_RESOLVING
from snowhunt.engine.storage import InMemorySessionStore
from snowhunt.logging_config import configure_logging, get_logger

from .websocket_manager import ConnectionManager

logger = get_logger("api")

GAME_NOT_FOUND = "Game not found"


# ===== Pydantic Models =====

class WorldConfigModel(BaseModel):
    grid_size: int = 40
    treasure_values: list[int] = Field(default_factory=lambda: [100, 200, 500, 1000])
    num_gifts: int = 20
    gift_value: int = 10
    weapon_counts: dict[str, int] = Field(default_factory=lambda: {"KNIFE": 2, "SWORD": 2})
    min_item_distance: int = 5
    duel_stake: int = 100


class CreateGameRequest(BaseModel):
    player_names: list[str]
    seed: int | None = None
    config: WorldConfigModel | None = None


class PlayerRequest(BaseModel):
    player_name: str


class MoveRequest(BaseModel):
    player_name: str
    direction: str  # UP | DOWN | LEFT | RIGHT


class SelectWeaponRequest(BaseModel):
    player_name: str
    weapon: str | None = None  # KNIFE | SWORD | None for no weapon


# ===== Bridge =====

class SessionBridge:
    """
    Serializes actions per game and broadcasts the results.
    One asyncio.Lock per game id; the engine itself takes no locks.
    """

    def __init__(self, engine: GameEngine, connections: ConnectionManager):
        self.engine = engine
        self.connections = connections
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, game_id: str) -> asyncio.Lock | None:
        """The game's lock, or None for an unknown game (no lock is created for it)."""
        if self.engine.get_session(game_id) is None:
            return None
        lock = self._locks.get(game_id)
        if lock is None:
            lock = self._locks[game_id] = asyncio.Lock()
        return lock

    def forget(self, game_id: str) -> None:
        self._locks.pop(game_id, None)

    async def dispatch(self, game_id: str, action: Action) -> tuple[ActionResult, dict[str, Any] | None]:
        """
        Apply one action, then broadcast. When a duel roll completes both rolls
        the duel is resolved straight away.
        Returns (result, resolution) where resolution is the duel_resolve payload
        if an automatic resolution happened.
        """
        lock = self._lock_for(game_id)
        if lock is None:
            return ActionResult.failure(GAME_NOT_FOUND), None
        async with lock:
            result = self.engine.apply(game_id, action)
            if not result.success:
                # A failed auto-fight can still have spent weapons on tied rounds
                if result.events:
                    await self.broadcast(game_id, result.events)
                return result, None
            events = list(result.events)
            resolution = None
            if action.type == DUEL_ROLL and result.payload.get("phase") == DUEL_RESOLVING:
                resolved = self.engine.duel_resolve(game_id, action.player)
                if resolved.success:
                    resolution = resolved.payload
                    events.extend(resolved.events)
                    result.events = events
            await self.broadcast(game_id, events)
        return result, resolution

    async def broadcast(self, game_id: str, events: list) -> None:
        session = self.engine.get_session(game_id)
        if session is None:
            return
        for event in events:
            await self.connections.broadcast_to_game(game_id, {"type": "event", "event": event.to_dict()})
        await self.connections.broadcast_to_game(game_id, {"type": "state_update", "state": session.to_dict()})

    async def set_connected(self, game_id: str, player_name: str, connected: bool) -> None:
        lock = self._lock_for(game_id)
        if lock is None:
            return
        async with lock:
            session = self.engine.get_session(game_id)
            if session is None:
                return
            player = session.get_player(player_name)
            if player is not None:
                player.connected = connected
                self.engine.store.update(session)


def get_bridge(request: Request) -> SessionBridge:
    return request.app.state.bridge


def _raise_for_failure(result: ActionResult) -> None:
    if result.success:
        return
    status = 404 if result.error == GAME_NOT_FOUND else 400
    raise HTTPException(status_code=status, detail=result.error)


def _action_response(bridge: SessionBridge, game_id: str, result: ActionResult, resolution: dict | None) -> dict[str, Any]:
    _raise_for_failure(result)
    session = bridge.engine.get_session(game_id)
    out = {
        "result": result.payload,
        "state": session.to_dict() if session else None,
        "events": [e.to_dict() for e in result.events],
    }
    if resolution is not None:
        out["duel_resolution"] = resolution
    return out


# ===== HTTP routes =====

router = APIRouter()


@router.get("/")
def root():
    return {"message": "Snow Hunt API", "version": "1.0.0"}


@router.post("/games")
async def create_game(request: CreateGameRequest, bridge: SessionBridge = Depends(get_bridge)):
    """Create a game for 2-4 named players. Optional seed reproduces a board."""
    config = WorldConfig.from_dict(request.config.model_dump()) if request.config else WorldConfig()
    try:
        validate_world_config(config)
        game_id = bridge.engine.initialize_game(request.player_names, seed=request.seed, config=config)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    session = bridge.engine.get_session(game_id)
    return {
        "game_id": game_id,
        "state": session.to_dict(),
        "events": [start_event(session).to_dict()],
    }


@router.get("/games")
def list_games(bridge: SessionBridge = Depends(get_bridge)):
    return {"games": [get_game_summary(s) for s in bridge.engine.store.list_sessions()]}


@router.get("/games/{game_id}")
def get_game_state(game_id: str, bridge: SessionBridge = Depends(get_bridge)):
    """Full session snapshot."""
    result = bridge.engine.get_state(game_id)
    _raise_for_failure(result)
    return result.payload


@router.get("/games/{game_id}/available-actions")
def get_available_actions(game_id: str, bridge: SessionBridge = Depends(get_bridge)):
    result = bridge.engine.get_available_actions(game_id)
    _raise_for_failure(result)
    return result.payload


@router.get("/games/{game_id}/scoreboard")
def scoreboard(game_id: str, bridge: SessionBridge = Depends(get_bridge)):
    session = bridge.engine.get_session(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail=GAME_NOT_FOUND)
    return {"scoreboard": get_scoreboard(session), "winners": session.winners}


@router.delete("/games/{game_id}")
async def delete_game(game_id: str, bridge: SessionBridge = Depends(get_bridge)):
    if not bridge.engine.delete_game(game_id):
        raise HTTPException(status_code=404, detail=GAME_NOT_FOUND)
    bridge.forget(game_id)
    await bridge.connections.broadcast_to_game(game_id, {"type": "game_deleted", "game_id": game_id})
    return {"message": f"Game {game_id} deleted"}


@router.post("/games/{game_id}/roll")
async def do_roll(game_id: str, request: PlayerRequest, bridge: SessionBridge = Depends(get_bridge)):
    result, resolution = await bridge.dispatch(game_id, roll_dice(request.player_name))
    return _action_response(bridge, game_id, result, resolution)


@router.post("/games/{game_id}/move")
async def do_move(game_id: str, request: MoveRequest, bridge: SessionBridge = Depends(get_bridge)):
    result, resolution = await bridge.dispatch(game_id, move_player(request.player_name, request.direction))
    return _action_response(bridge, game_id, result, resolution)


@router.post("/games/{game_id}/dig")
async def do_dig(game_id: str, request: PlayerRequest, bridge: SessionBridge = Depends(get_bridge)):
    result, resolution = await bridge.dispatch(game_id, dig(request.player_name))
    return _action_response(bridge, game_id, result, resolution)


@router.post("/games/{game_id}/end-turn")
async def do_end_turn(game_id: str, request: PlayerRequest, bridge: SessionBridge = Depends(get_bridge)):
    result, resolution = await bridge.dispatch(game_id, end_turn(request.player_name))
    return _action_response(bridge, game_id, result, resolution)


@router.post("/games/{game_id}/duel/select-weapon")
async def do_duel_select_weapon(game_id: str, request: SelectWeaponRequest, bridge: SessionBridge = Depends(get_bridge)):
    result, resolution = await bridge.dispatch(game_id, duel_select_weapon(request.player_name, request.weapon))
    return _action_response(bridge, game_id, result, resolution)


@router.post("/games/{game_id}/duel/roll")
async def do_duel_roll(game_id: str, request: PlayerRequest, bridge: SessionBridge = Depends(get_bridge)):
    """Roll for the duel; the second roll resolves the duel immediately."""
    result, resolution = await bridge.dispatch(game_id, duel_roll(request.player_name))
    return _action_response(bridge, game_id, result, resolution)


@router.post("/games/{game_id}/duel/resolve")
async def do_duel_resolve(game_id: str, request: PlayerRequest, bridge: SessionBridge = Depends(get_bridge)):
    result, resolution = await bridge.dispatch(game_id, duel_resolve(request.player_name))
    return _action_response(bridge, game_id, result, resolution)


@router.post("/games/{game_id}/duel/fight")
async def do_duel_fight(game_id: str, request: PlayerRequest, bridge: SessionBridge = Depends(get_bridge)):
    """Attacker-only: fight the whole duel in one call."""
    result, resolution = await bridge.dispatch(game_id, duel_fight(request.player_name))
    return _action_response(bridge, game_id, result, resolution)


# ===== WebSocket =====

# Inbound message "action" -> builder(player_name, message)
WS_ACTIONS = {
    "roll_dice": lambda player, msg: roll_dice(player),
    "move_player": lambda player, msg: move_player(player, msg.get("direction")),
    "dig": lambda player, msg: dig(player),
    "end_turn": lambda player, msg: end_turn(player),
    "duel_select_weapon": lambda player, msg: duel_select_weapon(player, msg.get("weapon")),
    "duel_roll": lambda player, msg: duel_roll(player),
    "duel_resolve": lambda player, msg: duel_resolve(player),
    "duel_fight": lambda player, msg: duel_fight(player),
}


def _error_message(message: str) -> dict[str, Any]:
    return {"type": "error", "message": message, "code": "ACTION_ERROR"}


@router.websocket("/ws/games/{game_id}")
async def game_socket(websocket: WebSocket, game_id: str, player_name: str):
    """
    Live channel for one player. Binding is by player name, so reconnecting
    with the same name takes the seat back.
    """
    bridge: SessionBridge = websocket.app.state.bridge
    connections = bridge.connections

    session = bridge.engine.get_session(game_id)
    if session is None or session.get_player(player_name) is None:
        await websocket.accept()
        await websocket.send_json(_error_message(GAME_NOT_FOUND if session is None else "Player not found in game"))
        await websocket.close(code=4404)
        return

    await connections.connect(websocket, game_id, player_name)
    await bridge.set_connected(game_id, player_name, True)
    logger.info(
        "websocket_connected",
        game_id=game_id,
        player=player_name,
        connections=connections.get_connection_count(game_id),
    )
    await connections.send_personal_message({"type": "state_update", "state": session.to_dict()}, websocket)
    await connections.broadcast_to_game(
        game_id, {"type": "player_connected", "player": player_name}, exclude=websocket
    )

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                await connections.send_personal_message(_error_message("Message must be valid JSON"), websocket)
                continue
            if not isinstance(message, dict):
                await connections.send_personal_message(_error_message("Message must be an object"), websocket)
                continue
            builder = WS_ACTIONS.get(message.get("action"))
            if builder is None:
                await connections.send_personal_message(_error_message("Unknown action"), websocket)
                continue
            result, resolution = await bridge.dispatch(game_id, builder(player_name, message))
            if not result.success:
                await connections.send_personal_message(_error_message(result.error), websocket)
                continue
            reply = {"type": "action_result", "action": message["action"], "result": result.payload}
            if resolution is not None:
                reply["duel_resolution"] = resolution
            await connections.send_personal_message(reply, websocket)
    except WebSocketDisconnect:
        pass
    finally:
        await connections.disconnect(websocket)
        if not connections.is_player_connected(game_id, player_name):
            await bridge.set_connected(game_id, player_name, False)
            await connections.broadcast_to_game(game_id, {"type": "player_disconnected", "player": player_name})
        logger.info("websocket_disconnected", game_id=game_id, player=player_name)


# ===== App factory =====

def create_app(engine: GameEngine | None = None) -> FastAPI:
    """Build the API around an engine (a fresh in-memory one by default)."""
    app = FastAPI(
        title="Snow Hunt API",
        description="Session bridge for the Snow Hunt treasure-hunt board game",
        version="1.0.0",
    )
    app.state.bridge = SessionBridge(engine or GameEngine(InMemorySessionStore()), ConnectionManager())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request, call_next):
        """Log method and path of failing requests."""
        try:
            response = await call_next(request)
        except Exception:
            logger.error("request_failed", method=request.method, path=request.url.path)
            raise
        if response.status_code >= 500:
            logger.error("request_failed", method=request.method, path=request.url.path, status=response.status_code)
        return response

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request, exc):
        logger.exception("unhandled_error", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    app.include_router(router)
    return app


configure_logging(ENVIRONMENT)
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT)
