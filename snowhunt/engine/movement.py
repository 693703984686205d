"""
Movement on the grid and tile-event resolution.
"""

from snowhunt.engine.actions import ActionError
from snowhunt.engine.state import GameSession, Player, DuelState, TURN_DUEL, DUEL_SELECT_WEAPON
from snowhunt.engine.events import (
    GameEvent,
    gift_collected,
    weapon_collected,
    clue_found,
    duel_started,
)

# direction -> (dx, dy); y grows downwards
DIRECTIONS = {
    "UP": (0, -1),
    "DOWN": (0, 1),
    "LEFT": (-1, 0),
    "RIGHT": (1, 0),
}


def parse_direction(direction: str) -> tuple[int, int]:
    """Return (dx, dy) for a direction name (case-insensitive)."""
    if not isinstance(direction, str):
        raise ActionError("Invalid direction")
    delta = DIRECTIONS.get(direction.strip().upper())
    if delta is None:
        raise ActionError("Invalid direction")
    return delta


def target_cell(player: Player, direction: str) -> tuple[int, int]:
    dx, dy = parse_direction(direction)
    return player.x + dx, player.y + dy


def check_move(session: GameSession, player: Player, direction: str) -> tuple[int, int, int]:
    """
    Validate a one-cell step without changing anything.
    Returns (x, y, cost) of the target cell.
    """
    if session.moves_remaining <= 0:
        raise ActionError("No moves left")
    nx, ny = target_cell(player, direction)
    if not session.in_bounds(nx, ny):
        raise ActionError("Out of bounds")
    cost = session.terrain_at(nx, ny)
    if session.moves_remaining < cost:
        raise ActionError(
            f"Not enough moves: entering this cell costs {cost}, {session.moves_remaining} left"
        )
    return nx, ny, cost


def resolve_tile_events(session: GameSession, player: Player) -> list[GameEvent]:
    """
    Apply everything triggered by the player arriving on their current cell.
    Fixed order: gift, weapon, clue, duel.
    """
    events: list[GameEvent] = []
    x, y = player.x, player.y

    for i, gift in enumerate(session.gifts):
        if gift.x == x and gift.y == y:
            del session.gifts[i]
            value = session.config.gift_value
            player.coins += value
            events.append(gift_collected(player.name, value, x, y))
            break

    for i, weapon in enumerate(session.weapons):
        if weapon.x == x and weapon.y == y:
            del session.weapons[i]
            player.weapons.append(weapon.kind)
            events.append(weapon_collected(player.name, weapon.kind, x, y))
            break

    for snowman in session.snowmen:
        if snowman.x == x and snowman.y == y:
            # Visiting the same snowman twice gives nothing new
            if snowman.treasure_index not in player.clues:
                player.clues.append(snowman.treasure_index)
                events.append(clue_found(player.name, snowman.treasure_index))
            break

    for other in session.players:
        if other.id != player.id and other.x == x and other.y == y:
            session.duel = DuelState(
                attacker=player.name,
                defender=other.name,
                phase=DUEL_SELECT_WEAPON,
            )
            session.turn_state = TURN_DUEL
            events.append(duel_started(player.name, other.name, x, y))
            break

    return events
