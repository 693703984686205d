"""
Session storage.
A keyed registry of live game sessions. Pure create/read/update/delete; no
game rules. Callers get one store instance each, so tests and separate
servers never share sessions.
"""

from abc import ABC, abstractmethod

from snowhunt.engine.state import GameSession


class SessionStore(ABC):
    """Interface for keeping game sessions by game id."""

    @abstractmethod
    def create(self, session: GameSession) -> bool:
        """Add a new session. False if the id is already taken."""

    @abstractmethod
    def get(self, game_id: str) -> GameSession | None:
        """The stored session, or None."""

    @abstractmethod
    def update(self, session: GameSession) -> bool:
        """Replace the stored session with the same id. False if unknown."""

    @abstractmethod
    def delete(self, game_id: str) -> bool:
        """Remove a session. False if unknown."""

    @abstractmethod
    def list_sessions(self) -> list[GameSession]:
        ...

    def has(self, game_id: str) -> bool:
        return self.get(game_id) is not None

    def count(self) -> int:
        return len(self.list_sessions())


class InMemorySessionStore(SessionStore):
    """Sessions held in a dict for the lifetime of the process."""

    def __init__(self):
        self._sessions: dict[str, GameSession] = {}

    def create(self, session: GameSession) -> bool:
        if session.game_id in self._sessions:
            return False
        self._sessions[session.game_id] = session
        return True

    def get(self, game_id: str) -> GameSession | None:
        return self._sessions.get(game_id)

    def update(self, session: GameSession) -> bool:
        if session.game_id not in self._sessions:
            return False
        self._sessions[session.game_id] = session
        return True

    def delete(self, game_id: str) -> bool:
        return self._sessions.pop(game_id, None) is not None

    def list_sessions(self) -> list[GameSession]:
        return list(self._sessions.values())

    def has(self, game_id: str) -> bool:
        return game_id in self._sessions

    def count(self) -> int:
        return len(self._sessions)
