"""
Game events for broadcasting and logging.
Events describe what happened during action processing.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class GameEvent:
    """Base event class. All events have a type and payload."""
    type: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameEvent":
        return cls(type=data["type"], payload=data["payload"])


# ===== Event Type Constants =====

# Game lifecycle
GAME_STARTED = "game_started"
GAME_OVER = "game_over"

# Turn events
DICE_ROLLED = "dice_rolled"
EXTRA_TURN = "extra_turn"
TURN_ENDED = "turn_ended"

# Movement and tile events
PLAYER_MOVED = "player_moved"
GIFT_COLLECTED = "gift_collected"
WEAPON_COLLECTED = "weapon_collected"
CLUE_FOUND = "clue_found"

# Digging
DIG_RESULT = "dig_result"

# Duel events
DUEL_STARTED = "duel_started"
DUEL_WEAPON_SELECTED = "duel_weapon_selected"
DUEL_ROLLED = "duel_rolled"
DUEL_TIED = "duel_tied"
DUEL_RESOLVED = "duel_resolved"


# ===== Event Factory Functions =====

def game_started(game_id: str, players: list[str], seed: int) -> GameEvent:
    return GameEvent(GAME_STARTED, {
        "game_id": game_id,
        "players": players,
        "seed": seed,
    })


def game_over(winners: list[str], coins: dict[str, int]) -> GameEvent:
    """Emitted when the last treasure has been dug up."""
    return GameEvent(GAME_OVER, {
        "winners": winners,
        "coins": coins,
    })


def dice_rolled(player: str, dice: list[int], total: int) -> GameEvent:
    return GameEvent(DICE_ROLLED, {
        "player": player,
        "dice": dice,
        "total": total,
    })


def extra_turn(player: str, dice_value: int) -> GameEvent:
    return GameEvent(EXTRA_TURN, {
        "player": player,
        "dice_value": dice_value,
    })


def turn_ended(player: str, next_player: str, bonus_turn: bool) -> GameEvent:
    return GameEvent(TURN_ENDED, {
        "player": player,
        "next_player": next_player,
        "bonus_turn": bonus_turn,
    })


def player_moved(
    player: str,
    from_pos: tuple[int, int],
    to_pos: tuple[int, int],
    cost: int,
    moves_left: int,
) -> GameEvent:
    return GameEvent(PLAYER_MOVED, {
        "player": player,
        "from": {"x": from_pos[0], "y": from_pos[1]},
        "to": {"x": to_pos[0], "y": to_pos[1]},
        "cost": cost,
        "moves_left": moves_left,
    })


def gift_collected(player: str, value: int, x: int, y: int) -> GameEvent:
    return GameEvent(GIFT_COLLECTED, {
        "player": player,
        "value": value,
        "position": {"x": x, "y": y},
    })


def weapon_collected(player: str, kind: str, x: int, y: int) -> GameEvent:
    return GameEvent(WEAPON_COLLECTED, {
        "player": player,
        "weapon": kind,
        "position": {"x": x, "y": y},
    })


def clue_found(player: str, treasure_index: int) -> GameEvent:
    return GameEvent(CLUE_FOUND, {
        "player": player,
        "treasure_index": treasure_index,
    })


def dig_result(player: str, outcome: str, value: int, coins: int) -> GameEvent:
    return GameEvent(DIG_RESULT, {
        "player": player,
        "outcome": outcome,  # treasure_found | empty | already_found | no_clue
        "value": value,
        "coins": coins,
    })


def duel_started(attacker: str, defender: str, x: int, y: int) -> GameEvent:
    return GameEvent(DUEL_STARTED, {
        "attacker": attacker,
        "defender": defender,
        "position": {"x": x, "y": y},
    })


def duel_weapon_selected(player: str, weapon: str | None) -> GameEvent:
    return GameEvent(DUEL_WEAPON_SELECTED, {
        "player": player,
        "weapon": weapon,
    })


def duel_rolled(player: str, dice: list[int], roll: int, bonus: int, total: int) -> GameEvent:
    return GameEvent(DUEL_ROLLED, {
        "player": player,
        "dice": dice,
        "roll": roll,
        "bonus": bonus,
        "total": total,
    })


def duel_tied(attacker_total: int, defender_total: int, consumed: dict[str, str | None]) -> GameEvent:
    """consumed: player name -> weapon kind used up by the tied round (None if none)."""
    return GameEvent(DUEL_TIED, {
        "attacker_total": attacker_total,
        "defender_total": defender_total,
        "consumed_weapons": consumed,
    })


def duel_resolved(
    winner: str,
    loser: str,
    coin_transfer: int,
    attacker_total: int,
    defender_total: int,
) -> GameEvent:
    return GameEvent(DUEL_RESOLVED, {
        "winner": winner,
        "loser": loser,
        "coin_transfer": coin_transfer,
        "attacker_total": attacker_total,
        "defender_total": defender_total,
    })
