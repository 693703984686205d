"""
Main game reducer.
Applies actions to a session in place, enforcing turn and phase rules.
Returns (result, events): result is the action-specific payload, events
describe what happened. Rule violations raise ActionError.
"""

from typing import Any

from snowhunt.engine import EXTRA_TURN_SUMS
from snowhunt.engine import duel as duel_rules
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
    DUEL_ACTIONS,
)
from snowhunt.engine.movement import check_move, resolve_tile_events
from snowhunt.engine.rng import DiceRoller
from snowhunt.engine.state import (
    GameSession,
    STATUS_FINISHED,
    STATUS_PLAYING,
    TURN_IDLE,
    TURN_MOVE,
    TURN_DUEL,
)
from snowhunt.engine.utils import advance_turn
from snowhunt.engine.events import (
    GameEvent,
    dice_rolled,
    extra_turn,
    player_moved,
    dig_result,
    game_over,
)

# Dig outcomes. Only DIG_TREASURE_FOUND keeps the remaining moves.
DIG_TREASURE_FOUND = "treasure_found"
DIG_EMPTY = "empty"
DIG_ALREADY_FOUND = "already_found"
DIG_NO_CLUE = "no_clue"

DIG_MESSAGES = {
    DIG_TREASURE_FOUND: "You found a treasure!",
    DIG_EMPTY: "You dig a hole but only find snow.",
    DIG_ALREADY_FOUND: "This treasure has already been dug up!",
    DIG_NO_CLUE: "The ground here seems soft, but you're not sure what's underneath. "
                 "Find a Snowman to get a clue!",
}

# Which action types the current player may send in each turn state
TURN_ALLOWED_ACTIONS = {
    TURN_IDLE: [ROLL_DICE, END_TURN],
    TURN_MOVE: [MOVE_PLAYER, DIG, END_TURN],
    TURN_DUEL: list(DUEL_ACTIONS),
}

# Message when an action is sent in the wrong turn state
WRONG_STATE_MESSAGES = {
    ROLL_DICE: "Cannot roll dice in current state",
    MOVE_PLAYER: "Cannot move in current state",
    DIG: "Cannot dig in current state",
    END_TURN: "Cannot end turn during a duel",
}


def _validate_action_for_state(action: Action, session: GameSession) -> None:
    """
    Check game status, player, turn ownership and turn state.

    Duel actions are open to both duel participants (the defender acts outside
    their own turn); every other action needs the current player.
    """
    if session.status == STATUS_FINISHED:
        raise ActionError("Game is over")
    if session.status != STATUS_PLAYING:
        raise ActionError("Game has not started")

    if session.get_player(action.player) is None:
        raise ActionError("Player not found")

    if action.type in DUEL_ACTIONS:
        if session.duel is None:
            raise ActionError("No active duel")
        return

    if session.current_player.name != action.player:
        raise ActionError("Not your turn")

    allowed = TURN_ALLOWED_ACTIONS.get(session.turn_state, [])
    if action.type not in allowed:
        raise ActionError(WRONG_STATE_MESSAGES.get(action.type, f"Cannot {action.type} in current state"))


def apply_action(
    session: GameSession,
    action: Action,
    roller: DiceRoller,
) -> tuple[dict[str, Any], list[GameEvent]]:
    """
    Apply a single action to the session.

    Args:
        session: Session to mutate
        action: Action to apply
        roller: Dice source for turn and duel rolls

    Returns:
        Tuple of (result, events)
    """
    _validate_action_for_state(action, session)

    if action.type == ROLL_DICE:
        return _handle_roll_dice(session, action, roller)
    if action.type == MOVE_PLAYER:
        return _handle_move_player(session, action)
    if action.type == DIG:
        return _handle_dig(session, action)
    if action.type == END_TURN:
        return _handle_end_turn(session, action)
    if action.type == DUEL_SELECT_WEAPON:
        events = duel_rules.select_weapon(session, action.player, action.payload.get("weapon"))
        return {"weapon": action.payload.get("weapon")}, events
    if action.type == DUEL_ROLL:
        return duel_rules.roll(session, action.player, roller)
    if action.type == DUEL_RESOLVE:
        return duel_rules.resolve(session, action.player)
    if action.type == DUEL_FIGHT:
        return duel_rules.fight(session, action.player, roller)

    raise ActionError(f"Unknown action type: {action.type}")


def _handle_roll_dice(
    session: GameSession,
    action: Action,
    roller: DiceRoller,
) -> tuple[dict[str, Any], list[GameEvent]]:
    """Two dice; the sum is the movement budget. 6 or 12 earns an extra turn."""
    d1, d2 = roller.roll_pair()
    total = d1 + d2
    session.dice_value = total
    session.moves_remaining = total
    session.turn_state = TURN_MOVE
    session.has_extra_turn = total in EXTRA_TURN_SUMS

    events = [dice_rolled(action.player, [d1, d2], total)]
    if session.has_extra_turn:
        events.append(extra_turn(action.player, total))
    result = {
        "dice": [d1, d2],
        "dice_value": total,
        "moves": total,
        "has_extra_turn": session.has_extra_turn,
    }
    return result, events


def _handle_move_player(session: GameSession, action: Action) -> tuple[dict[str, Any], list[GameEvent]]:
    """
    Step one cell. The whole terrain cost must be affordable; a rejected step
    leaves position and budget untouched.
    """
    player = session.get_player(action.player)
    nx, ny, cost = check_move(session, player, action.payload.get("direction"))

    from_pos = player.position
    session.moves_remaining -= cost
    player.x, player.y = nx, ny

    events = [player_moved(player.name, from_pos, (nx, ny), cost, session.moves_remaining)]
    tile_events = resolve_tile_events(session, player)
    events.extend(tile_events)

    result = {
        "position": {"x": nx, "y": ny},
        "cost": cost,
        "moves_left": session.moves_remaining,
        "events": [e.to_dict() for e in tile_events],
    }
    return result, events


def _handle_dig(session: GameSession, action: Action) -> tuple[dict[str, Any], list[GameEvent]]:
    """
    Dig at the current cell.
    Only a find keeps the remaining moves; an empty hole, an already found
    treasure or a missing clue all end movement for this turn.
    """
    player = session.get_player(action.player)
    treasure = next((t for t in session.treasures if t.x == player.x and t.y == player.y), None)

    value = 0
    if treasure is None:
        outcome = DIG_EMPTY
    elif treasure.found:
        outcome = DIG_ALREADY_FOUND
    elif treasure.index not in player.clues:
        outcome = DIG_NO_CLUE
    else:
        outcome = DIG_TREASURE_FOUND
        treasure.found = True
        value = treasure.value
        player.coins += value
        session.treasures.remove(treasure)

    if outcome != DIG_TREASURE_FOUND:
        session.moves_remaining = 0

    events = [dig_result(player.name, outcome, value, player.coins)]
    if outcome == DIG_TREASURE_FOUND and not session.treasures:
        events.append(_finish_game(session))

    result = {
        "outcome": outcome,
        "found": outcome == DIG_TREASURE_FOUND,
        "treasure_value": value,
        "coins": player.coins,
        "moves_left": session.moves_remaining,
        "message": DIG_MESSAGES[outcome],
    }
    return result, events


def _finish_game(session: GameSession) -> GameEvent:
    """Last treasure is gone: richest player(s) win."""
    top = max(p.coins for p in session.players)
    session.winners = [p.name for p in session.players if p.coins == top]
    session.status = STATUS_FINISHED
    return game_over(session.winners, {p.name: p.coins for p in session.players})


def _handle_end_turn(session: GameSession, action: Action) -> tuple[dict[str, Any], list[GameEvent]]:
    event = advance_turn(session)
    result = {
        "next_player_index": session.current_player_index,
        "next_player": session.current_player.name,
        "extra_turn": event.payload["bonus_turn"],
    }
    return result, [event]
