"""
Game session representation.
Sessions are mutated in place by the reducer; copy() gives an independent snapshot.
Includes JSON serialization for snapshots.
"""

import json
from dataclasses import dataclass, field
from copy import deepcopy
from typing import Any

from snowhunt.engine.definitions import WorldConfig

# Session status
STATUS_WAITING = "WAITING"
STATUS_PLAYING = "PLAYING"
STATUS_FINISHED = "FINISHED"

# Turn states
TURN_IDLE = "IDLE"
TURN_MOVE = "MOVE"
TURN_DUEL = "DUEL"

# Duel phases
DUEL_SELECT_WEAPON = "SELECT_WEAPON"
DUEL_ROLLING = "ROLLING"
DUEL_RESOLVING = "RESOLVING"


def _int(v: Any, default: int) -> int:
    try:
        return int(v) if v is not None else default
    except (TypeError, ValueError):
        return default


def _list(v: Any) -> list:
    return list(v) if isinstance(v, list) else []


@dataclass
class Player:
    """A participant on the board."""
    id: str  # e.g. "player-0"
    name: str
    color: str
    x: int
    y: int
    start_x: int  # fixed at creation; duel losers return here
    start_y: int
    coins: int = 0
    # Treasure indices learned from snowmen (ordered, no duplicates)
    clues: list[int] = field(default_factory=list)
    # Carried weapon kinds; may hold the same kind more than once
    weapons: list[str] = field(default_factory=list)
    # Maintained by the session bridge; no game meaning
    connected: bool = False

    @property
    def position(self) -> tuple[int, int]:
        return (self.x, self.y)

    @property
    def start_position(self) -> tuple[int, int]:
        return (self.start_x, self.start_y)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "x": self.x,
            "y": self.y,
            "start_pos": {"x": self.start_x, "y": self.start_y},
            "coins": self.coins,
            "clues": list(self.clues),
            "weapons": list(self.weapons),
            "connected": self.connected,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Player":
        if not isinstance(data, dict):
            data = {}
        start = data.get("start_pos")
        if not isinstance(start, dict):
            start = {}
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            color=str(data.get("color") or ""),
            x=_int(data.get("x"), 0),
            y=_int(data.get("y"), 0),
            start_x=_int(start.get("x"), 0),
            start_y=_int(start.get("y"), 0),
            coins=max(0, _int(data.get("coins"), 0)),
            clues=[int(c) for c in _list(data.get("clues"))],
            weapons=[str(w) for w in _list(data.get("weapons"))],
            connected=bool(data.get("connected", False)),
        )


@dataclass
class Treasure:
    x: int
    y: int
    value: int
    index: int
    found: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y, "value": self.value, "index": self.index, "found": self.found}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Treasure":
        if not isinstance(data, dict):
            data = {}
        return cls(
            x=_int(data.get("x"), 0),
            y=_int(data.get("y"), 0),
            value=_int(data.get("value"), 0),
            index=_int(data.get("index"), 0),
            found=bool(data.get("found", False)),
        )


@dataclass
class Snowman:
    """Gives the clue for one treasure."""
    x: int
    y: int
    treasure_index: int

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y, "treasure_index": self.treasure_index}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snowman":
        if not isinstance(data, dict):
            data = {}
        return cls(
            x=_int(data.get("x"), 0),
            y=_int(data.get("y"), 0),
            treasure_index=_int(data.get("treasure_index"), 0),
        )


@dataclass
class Gift:
    x: int
    y: int

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Gift":
        if not isinstance(data, dict):
            data = {}
        return cls(x=_int(data.get("x"), 0), y=_int(data.get("y"), 0))


@dataclass
class WeaponPickup:
    """A weapon lying on the board (not yet carried by anyone)."""
    x: int
    y: int
    kind: str

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y, "kind": self.kind}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WeaponPickup":
        if not isinstance(data, dict):
            data = {}
        return cls(
            x=_int(data.get("x"), 0),
            y=_int(data.get("y"), 0),
            kind=str(data.get("kind") or ""),
        )


@dataclass
class DuelState:
    """
    An ongoing duel between the mover (attacker) and the player already on the
    cell (defender). Weapons and rolls stay None until chosen / rolled.
    """
    attacker: str  # player name
    defender: str  # player name
    attacker_weapon: str | None = None
    defender_weapon: str | None = None
    attacker_roll: int | None = None
    defender_roll: int | None = None
    phase: str = DUEL_SELECT_WEAPON

    def participants(self) -> tuple[str, str]:
        return (self.attacker, self.defender)

    def side_of(self, player_name: str) -> str | None:
        """'attacker', 'defender', or None if not in this duel."""
        if player_name == self.attacker:
            return "attacker"
        if player_name == self.defender:
            return "defender"
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "attacker": self.attacker,
            "defender": self.defender,
            "attacker_weapon": self.attacker_weapon,
            "defender_weapon": self.defender_weapon,
            "attacker_roll": self.attacker_roll,
            "defender_roll": self.defender_roll,
            "phase": self.phase,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DuelState":
        if not isinstance(data, dict):
            data = {}

        def _opt_int(v: Any) -> int | None:
            return None if v is None else _int(v, 0)

        def _opt_str(v: Any) -> str | None:
            return None if v is None else str(v)

        return cls(
            attacker=str(data.get("attacker") or ""),
            defender=str(data.get("defender") or ""),
            attacker_weapon=_opt_str(data.get("attacker_weapon")),
            defender_weapon=_opt_str(data.get("defender_weapon")),
            attacker_roll=_opt_int(data.get("attacker_roll")),
            defender_roll=_opt_int(data.get("defender_roll")),
            phase=str(data.get("phase") or DUEL_SELECT_WEAPON),
        )


@dataclass
class GameSession:
    """Complete state of one game."""
    game_id: str
    seed: int
    status: str = STATUS_WAITING
    current_player_index: int = 0
    turn_state: str = TURN_IDLE
    dice_value: int = 0
    moves_remaining: int = 0
    has_extra_turn: bool = False
    players: list[Player] = field(default_factory=list)
    # grid[y][x] -> terrain kind (= movement cost)
    grid: list[list[int]] = field(default_factory=list)
    treasures: list[Treasure] = field(default_factory=list)
    snowmen: list[Snowman] = field(default_factory=list)
    gifts: list[Gift] = field(default_factory=list)
    weapons: list[WeaponPickup] = field(default_factory=list)
    duel: DuelState | None = None
    config: WorldConfig = field(default_factory=WorldConfig)
    # Names of the richest players once the last treasure is dug up
    winners: list[str] = field(default_factory=list)

    @property
    def grid_size(self) -> int:
        return len(self.grid)

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    def copy(self) -> "GameSession":
        """Return a deep copy of this session."""
        return deepcopy(self)

    def get_player(self, name: str) -> Player | None:
        for p in self.players:
            if p.name == name:
                return p
        return None

    def in_bounds(self, x: int, y: int) -> bool:
        size = self.grid_size
        return 0 <= x < size and 0 <= y < size

    def terrain_at(self, x: int, y: int) -> int:
        return self.grid[y][x]

    # ===== Serialization Methods =====

    def to_dict(self) -> dict[str, Any]:
        """Full snapshot for broadcasting and saving."""
        return {
            "game_id": self.game_id,
            "status": self.status,
            "seed": self.seed,
            "current_player_index": self.current_player_index,
            "turn_state": self.turn_state,
            "dice_value": self.dice_value,
            "moves_remaining": self.moves_remaining,
            "has_extra_turn": self.has_extra_turn,
            "players": [p.to_dict() for p in self.players],
            "grid": [list(row) for row in self.grid],
            "treasures": [t.to_dict() for t in self.treasures],
            "snowmen": [s.to_dict() for s in self.snowmen],
            "gifts": [g.to_dict() for g in self.gifts],
            "weapons": [w.to_dict() for w in self.weapons],
            "duel": self.duel.to_dict() if self.duel else None,
            "config": self.config.to_dict(),
            "winners": list(self.winners),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameSession":
        """Create a session from a dictionary (tolerates missing keys)."""
        if not isinstance(data, dict):
            data = {}
        grid = data.get("grid")
        if not isinstance(grid, list):
            grid = []
        return cls(
            game_id=str(data.get("game_id") or ""),
            seed=_int(data.get("seed"), 0),
            status=str(data.get("status") or STATUS_WAITING),
            current_player_index=_int(data.get("current_player_index"), 0),
            turn_state=str(data.get("turn_state") or TURN_IDLE),
            dice_value=_int(data.get("dice_value"), 0),
            moves_remaining=max(0, _int(data.get("moves_remaining"), 0)),
            has_extra_turn=bool(data.get("has_extra_turn", False)),
            players=[Player.from_dict(p) for p in _list(data.get("players")) if isinstance(p, dict)],
            grid=[[_int(c, 1) for c in row] for row in grid if isinstance(row, list)],
            treasures=[Treasure.from_dict(t) for t in _list(data.get("treasures")) if isinstance(t, dict)],
            snowmen=[Snowman.from_dict(s) for s in _list(data.get("snowmen")) if isinstance(s, dict)],
            gifts=[Gift.from_dict(g) for g in _list(data.get("gifts")) if isinstance(g, dict)],
            weapons=[WeaponPickup.from_dict(w) for w in _list(data.get("weapons")) if isinstance(w, dict)],
            duel=DuelState.from_dict(data["duel"]) if data.get("duel") else None,
            config=WorldConfig.from_dict(data.get("config")),
            winners=[str(w) for w in _list(data.get("winners"))],
        )

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> "GameSession":
        return cls.from_dict(json.loads(json_str))
