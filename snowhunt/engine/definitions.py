"""
Static definitions: terrain kinds, weapons, and the world configuration.
World parameters are inputs to game creation, not engine constants; the
defaults below reproduce the standard 40x40 board.
"""

from dataclasses import dataclass, field
from typing import Any

# Terrain kind doubles as the movement cost of entering the cell.
TERRAIN_SNOW = 1
TERRAIN_ICE = 2
TERRAIN_TREE = 3

# 70% snow, 20% ice, 10% tree
SNOW_THRESHOLD = 0.7
ICE_THRESHOLD = 0.9

PLAYER_COLORS = [
    "#ef4444",  # red
    "#3b82f6",  # blue
    "#22c55e",  # green
    "#eab308",  # yellow
]


@dataclass(frozen=True)
class WeaponDefinition:
    """A weapon kind a player can carry into a duel."""
    id: str
    name: str
    bonus: int  # added to the duel roll when selected
    emoji: str = ""


WEAPON_DEFS: dict[str, WeaponDefinition] = {
    "KNIFE": WeaponDefinition(id="KNIFE", name="Knife", bonus=2, emoji="🔪"),
    "SWORD": WeaponDefinition(id="SWORD", name="Sword", bonus=3, emoji="🗡️"),
}


def weapon_bonus(kind: str | None) -> int:
    """Duel bonus for a selected weapon kind (0 for none)."""
    if kind is None:
        return 0
    weapon = WEAPON_DEFS.get(kind)
    return weapon.bonus if weapon else 0


def classify_terrain(value: float) -> int:
    """Map a draw in [0, 1) to a terrain kind."""
    if value > ICE_THRESHOLD:
        return TERRAIN_TREE
    if value > SNOW_THRESHOLD:
        return TERRAIN_ICE
    return TERRAIN_SNOW


@dataclass
class WorldConfig:
    """Board size, item counts and values used to generate a world."""
    grid_size: int = 40
    # One treasure per value, in placement order (index = position in list)
    treasure_values: list[int] = field(default_factory=lambda: [100, 200, 500, 1000])
    num_gifts: int = 20
    gift_value: int = 10
    # weapon kind -> number of pickups placed, in this order
    weapon_counts: dict[str, int] = field(default_factory=lambda: {"KNIFE": 2, "SWORD": 2})
    min_item_distance: int = 5
    treasure_max_attempts: int = 1000
    item_max_attempts: int = 500
    # Maximum coins a duel loser hands over
    duel_stake: int = 100

    @property
    def num_treasures(self) -> int:
        return len(self.treasure_values)

    def start_positions(self) -> list[tuple[int, int]]:
        """Player start cells: the four corners, clockwise from top-left then bottom row."""
        last = self.grid_size - 1
        return [(0, 0), (last, 0), (0, last), (last, last)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "grid_size": self.grid_size,
            "treasure_values": list(self.treasure_values),
            "num_gifts": self.num_gifts,
            "gift_value": self.gift_value,
            "weapon_counts": dict(self.weapon_counts),
            "min_item_distance": self.min_item_distance,
            "treasure_max_attempts": self.treasure_max_attempts,
            "item_max_attempts": self.item_max_attempts,
            "duel_stake": self.duel_stake,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "WorldConfig":
        """Build from a (possibly partial) dict; missing keys keep defaults."""
        default = cls()
        if not isinstance(data, dict):
            return default

        def _int(key: str, d: int) -> int:
            v = data.get(key)
            try:
                return int(v) if v is not None else d
            except (TypeError, ValueError):
                return d

        values = data.get("treasure_values")
        if not isinstance(values, list):
            values = default.treasure_values
        counts = data.get("weapon_counts")
        if not isinstance(counts, dict):
            counts = default.weapon_counts
        return cls(
            grid_size=_int("grid_size", default.grid_size),
            treasure_values=[int(v) for v in values],
            num_gifts=_int("num_gifts", default.num_gifts),
            gift_value=_int("gift_value", default.gift_value),
            weapon_counts={str(k): int(v) for k, v in counts.items()},
            min_item_distance=_int("min_item_distance", default.min_item_distance),
            treasure_max_attempts=_int("treasure_max_attempts", default.treasure_max_attempts),
            item_max_attempts=_int("item_max_attempts", default.item_max_attempts),
            duel_stake=_int("duel_stake", default.duel_stake),
        )


MIN_GRID_SIZE = 10
MAX_GRID_SIZE = 200


def validate_world_config(config: WorldConfig) -> None:
    """
    Reject world parameters the generator cannot honour.
    Called by the caller (session bridge) before creating a game.
    Raises ValueError with a readable message.
    """
    if not MIN_GRID_SIZE <= config.grid_size <= MAX_GRID_SIZE:
        raise ValueError(f"grid_size must be between {MIN_GRID_SIZE} and {MAX_GRID_SIZE}")
    if not config.treasure_values:
        raise ValueError("At least one treasure is required")
    if any(v <= 0 for v in config.treasure_values):
        raise ValueError("Treasure values must be positive")
    if config.num_gifts < 0:
        raise ValueError("num_gifts cannot be negative")
    if config.gift_value < 0:
        raise ValueError("gift_value cannot be negative")
    for kind, count in config.weapon_counts.items():
        if kind not in WEAPON_DEFS:
            raise ValueError(f"Unknown weapon kind: {kind}")
        if count < 0:
            raise ValueError(f"Weapon count for {kind} cannot be negative")
    if config.min_item_distance < 0:
        raise ValueError("min_item_distance cannot be negative")
    if config.treasure_max_attempts < 1 or config.item_max_attempts < 1:
        raise ValueError("Placement attempts must be at least 1")
    if config.duel_stake < 0:
        raise ValueError("duel_stake cannot be negative")
    cells = config.grid_size * config.grid_size
    items = 2 * config.num_treasures + config.num_gifts + sum(config.weapon_counts.values())
    if items + 4 > cells:
        raise ValueError("Too many items for the grid")
