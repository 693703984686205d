"""
Query functions for UI integration.
These functions help clients understand what they may do without mutating
the session.
"""

from dataclasses import dataclass
from typing import Any

from snowhunt.engine.actions import (
    Action,
    ActionError,
    ROLL_DICE,
    MOVE_PLAYER,
    DIG,
    END_TURN,
    DUEL_SELECT_WEAPON,
    DUEL_ROLL,
    DUEL_RESOLVE,
    DUEL_FIGHT,
)
from snowhunt.engine.movement import DIRECTIONS, check_move
from snowhunt.engine.reducer import apply_action
from snowhunt.engine.rng import DiceRoller
from snowhunt.engine.state import (
    GameSession,
    STATUS_PLAYING,
    TURN_IDLE,
    TURN_MOVE,
    TURN_DUEL,
    DUEL_SELECT_WEAPON as PHASE_SELECT_WEAPON,
    DUEL_ROLLING,
    DUEL_RESOLVING,
)


@dataclass
class ValidationResult:
    """Result of action validation."""
    valid: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "error": self.error}


def validate_action(session: GameSession, action: Action) -> ValidationResult:
    """
    Validate an action without applying it.
    The action is tried on a copy of the session, so the original is untouched.
    """
    trial = session.copy()
    try:
        apply_action(trial, action, DiceRoller(session.seed))
    except ActionError as e:
        return ValidationResult(False, str(e))
    return ValidationResult(True)


def get_affordable_directions(session: GameSession) -> list[str]:
    """Directions the current player can step in with the remaining budget."""
    if session.turn_state != TURN_MOVE:
        return []
    player = session.current_player
    out = []
    for direction in DIRECTIONS:
        try:
            check_move(session, player, direction)
        except ActionError:
            continue
        out.append(direction)
    return out


def get_duel_actions(session: GameSession, player_name: str) -> list[str]:
    """Duel action types this participant can send right now."""
    duel = session.duel
    if duel is None:
        return []
    side = duel.side_of(player_name)
    if side is None:
        return []
    actions = []
    if duel.phase == PHASE_SELECT_WEAPON:
        actions.extend([DUEL_SELECT_WEAPON, DUEL_ROLL])
    elif duel.phase == DUEL_ROLLING:
        rolled = duel.attacker_roll if side == "attacker" else duel.defender_roll
        if rolled is None:
            actions.append(DUEL_ROLL)
    elif duel.phase == DUEL_RESOLVING:
        actions.append(DUEL_RESOLVE)
    if side == "attacker" and session.current_player.name == player_name:
        actions.append(DUEL_FIGHT)
    return actions


def get_available_actions(session: GameSession) -> dict[str, Any]:
    """Actions open to each player in the current state."""
    current = session.current_player
    out: dict[str, Any] = {
        "status": session.status,
        "current_player": current.name,
        "turn_state": session.turn_state,
        "moves_remaining": session.moves_remaining,
        "actions": {p.name: [] for p in session.players},
    }
    if session.status != STATUS_PLAYING:
        return out

    if session.turn_state == TURN_IDLE:
        out["actions"][current.name] = [ROLL_DICE, END_TURN]
    elif session.turn_state == TURN_MOVE:
        acts = [DIG, END_TURN]
        directions = get_affordable_directions(session)
        if directions:
            acts.insert(0, MOVE_PLAYER)
        out["actions"][current.name] = acts
        out["directions"] = directions
    elif session.turn_state == TURN_DUEL and session.duel is not None:
        for name in session.duel.participants():
            out["actions"][name] = get_duel_actions(session, name)
        out["duel"] = session.duel.to_dict()
    return out


def get_scoreboard(session: GameSession) -> list[dict[str, Any]]:
    """Players ordered by coins, richest first (ties keep seat order)."""
    rows = [
        {
            "name": p.name,
            "color": p.color,
            "coins": p.coins,
            "clues": len(p.clues),
            "weapons": len(p.weapons),
        }
        for p in session.players
    ]
    return sorted(rows, key=lambda r: -r["coins"])


def get_game_summary(session: GameSession) -> dict[str, Any]:
    """Short description of a session for listings."""
    return {
        "game_id": session.game_id,
        "status": session.status,
        "players": [p.name for p in session.players],
        "current_player": session.current_player.name if session.players else None,
        "turn_state": session.turn_state,
        "treasures_left": len(session.treasures),
        "winners": list(session.winners),
    }
