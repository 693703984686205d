"""
Utility functions for the game engine.
"""

import re
import secrets
import time

from snowhunt.engine.state import GameSession, Player, TURN_IDLE
from snowhunt.engine.definitions import TERRAIN_SNOW, TERRAIN_ICE, TERRAIN_TREE
from snowhunt.engine.events import GameEvent, turn_ended

# Letters, digits and spaces, 1-20 characters after trimming
PLAYER_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9 ]{1,20}$")


def validate_player_name(name: object) -> str | None:
    """Return an error message for an unusable player name, or None if it is fine."""
    if not isinstance(name, str):
        return "Player name must be a string"
    trimmed = name.strip()
    if not trimmed:
        return "Player name cannot be empty"
    if len(trimmed) > 20:
        return "Player name must be between 1 and 20 characters"
    if not PLAYER_NAME_PATTERN.match(trimmed):
        return "Player name can only contain letters, numbers, and spaces"
    return None


def generate_game_id() -> str:
    """e.g. game-1718000000000-k3j9x2a1q"""
    return f"game-{int(time.time() * 1000)}-{secrets.token_hex(5)[:9]}"


def remove_weapon(player: Player, kind: str) -> bool:
    """Remove one carried weapon of this kind. False if the player had none."""
    try:
        player.weapons.remove(kind)
    except ValueError:
        return False
    return True


def advance_turn(session: GameSession) -> GameEvent:
    """
    End the current player's turn.
    A pending extra turn is spent instead: same player, back to IDLE.
    """
    player = session.current_player
    bonus = session.has_extra_turn
    if not bonus:
        session.current_player_index = (session.current_player_index + 1) % len(session.players)
    session.has_extra_turn = False
    session.turn_state = TURN_IDLE
    session.dice_value = 0
    session.moves_remaining = 0
    return turn_ended(player.name, session.current_player.name, bonus)


TERRAIN_GLYPHS = {TERRAIN_SNOW: ".", TERRAIN_ICE: "~", TERRAIN_TREE: "^"}


def render_board(session: GameSession) -> str:
    """
    Text view of the board.
    Players show as their index digit, then T treasure, S snowman, g gift, w weapon.
    """
    overlay: dict[tuple[int, int], str] = {}
    for w in session.weapons:
        overlay[(w.x, w.y)] = "w"
    for g in session.gifts:
        overlay[(g.x, g.y)] = "g"
    for s in session.snowmen:
        overlay[(s.x, s.y)] = "S"
    for t in session.treasures:
        overlay[(t.x, t.y)] = "T"
    for i, p in enumerate(session.players):
        overlay[(p.x, p.y)] = str(i)

    lines = []
    for y, row in enumerate(session.grid):
        lines.append("".join(overlay.get((x, y), TERRAIN_GLYPHS.get(cell, "?")) for x, cell in enumerate(row)))
    return "\n".join(lines)


def print_game_state(session: GameSession, show_board: bool = False) -> None:
    """Print a readable summary of the session."""
    print(f"\n=== {session.game_id} ({session.status}) ===")
    print(f"Turn: {session.current_player.name}  state={session.turn_state}  "
          f"dice={session.dice_value}  moves={session.moves_remaining}  "
          f"extra_turn={session.has_extra_turn}")
    for p in session.players:
        print(f"  {p.name:<20} pos=({p.x},{p.y}) coins={p.coins} "
              f"clues={p.clues} weapons={p.weapons}")
    remaining = [t.index for t in session.treasures]
    print(f"Treasures left: {remaining}  gifts: {len(session.gifts)}  weapons: {len(session.weapons)}")
    if session.duel:
        print(f"Duel: {session.duel.to_dict()}")
    if show_board:
        print(render_board(session))
