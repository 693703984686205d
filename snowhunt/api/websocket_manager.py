"""
WebSocket connection manager for live game updates.
Each connection is bound to one game and one player name.
"""
import asyncio
from typing import Dict, Optional, Set

from fastapi import WebSocket

from snowhunt.logging_config import get_logger

logger = get_logger("websocket")


class ConnectionManager:
    """Tracks open WebSockets per game and pushes messages to them."""

    def __init__(self):
        # game_id -> Set[WebSocket]
        self.active_connections: Dict[str, Set[WebSocket]] = {}
        # WebSocket -> (game_id, player_name)
        self.connection_info: Dict[WebSocket, tuple[str, str]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, game_id: str, player_name: str):
        """Accept a WebSocket and bind it to a player of a game."""
        await websocket.accept()

        async with self._lock:
            self.active_connections.setdefault(game_id, set()).add(websocket)
            self.connection_info[websocket] = (game_id, player_name)

    async def disconnect(self, websocket: WebSocket) -> Optional[tuple[str, str]]:
        """Forget a WebSocket. Returns its (game_id, player_name) binding if it had one."""
        async with self._lock:
            info = self.connection_info.pop(websocket, None)
            if info:
                game_id, _ = info
                connections = self.active_connections.get(game_id)
                if connections is not None:
                    connections.discard(websocket)
                    if not connections:
                        del self.active_connections[game_id]
            return info

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        """Send a message to a specific WebSocket."""
        try:
            await websocket.send_json(message)
        except Exception as e:
            logger.warning("send_failed", error=str(e))
            await self.disconnect(websocket)

    async def broadcast_to_game(self, game_id: str, message: dict, exclude: Optional[WebSocket] = None):
        """Broadcast a message to all connections in a game."""
        async with self._lock:
            connections = self.active_connections.get(game_id, set()).copy()

        disconnected = []
        for connection in connections:
            if connection is exclude:
                continue
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.warning("broadcast_failed", game_id=game_id, error=str(e))
                disconnected.append(connection)

        for conn in disconnected:
            await self.disconnect(conn)

    def is_player_connected(self, game_id: str, player_name: str) -> bool:
        return any(
            info == (game_id, player_name) for info in self.connection_info.values()
        )

    def get_connection_count(self, game_id: str) -> int:
        return len(self.active_connections.get(game_id, set()))
