"""
Duel resolution.
A duel starts when a mover lands on an occupied cell. It runs through phases:
SELECT_WEAPON -> ROLLING -> RESOLVING, and back to SELECT_WEAPON on a tie.

Rules:
- Total = two-dice roll + bonus of the selected weapon (0 if none).
- Both selected weapons are used up by every resolution, ties included.
- Loser goes back to their start cell and hands over min(stake, coins).
- Attacker wins: they keep moving if they have moves left.
- Defender wins: attacker's movement is zeroed and their turn ends.

fight() is the one-call form: it drives the same phases until a round is won.
"""

from typing import Any

from snowhunt.engine import MAX_DUEL_ROUNDS
from snowhunt.engine.actions import ActionError
from snowhunt.engine.definitions import WEAPON_DEFS, weapon_bonus
from snowhunt.engine.rng import DiceRoller
from snowhunt.engine.state import (
    GameSession,
    DuelState,
    Player,
    DUEL_SELECT_WEAPON,
    DUEL_ROLLING,
    DUEL_RESOLVING,
    TURN_IDLE,
    TURN_MOVE,
)
from snowhunt.engine.events import (
    GameEvent,
    duel_weapon_selected,
    duel_rolled,
    duel_tied,
    duel_resolved,
)
from snowhunt.engine.utils import advance_turn, remove_weapon


def _require_duel(session: GameSession) -> DuelState:
    if session.duel is None:
        raise ActionError("No active duel")
    return session.duel


def _require_side(duel: DuelState, player_name: str) -> str:
    side = duel.side_of(player_name)
    if side is None:
        raise ActionError("You are not in this duel")
    return side


def _combatants(session: GameSession, duel: DuelState) -> tuple[Player, Player]:
    attacker = session.get_player(duel.attacker)
    defender = session.get_player(duel.defender)
    if attacker is None or defender is None:
        raise ActionError("Players not found")
    return attacker, defender


def select_weapon(session: GameSession, player_name: str, weapon: str | None) -> list[GameEvent]:
    """
    Record a participant's weapon choice for this round. None means no weapon.
    The weapon stays in the inventory until the round is resolved.
    """
    duel = _require_duel(session)
    if duel.phase != DUEL_SELECT_WEAPON:
        raise ActionError("Cannot select weapon in current duel phase")
    side = _require_side(duel, player_name)

    if weapon is not None:
        if weapon not in WEAPON_DEFS:
            raise ActionError(f"Invalid weapon type: {weapon}")
        player = session.get_player(player_name)
        if player is None:
            raise ActionError("Player not found")
        if weapon not in player.weapons:
            raise ActionError(f"Player does not have weapon {weapon}")

    if side == "attacker":
        duel.attacker_weapon = weapon
    else:
        duel.defender_weapon = weapon
    return [duel_weapon_selected(player_name, weapon)]


def roll(session: GameSession, player_name: str, roller: DiceRoller) -> tuple[dict[str, Any], list[GameEvent]]:
    """
    Roll for one participant. The first roll closes weapon selection; once both
    have rolled the duel is ready to resolve.
    """
    duel = _require_duel(session)
    side = _require_side(duel, player_name)

    if duel.phase == DUEL_SELECT_WEAPON:
        duel.phase = DUEL_ROLLING
    if duel.phase != DUEL_ROLLING:
        raise ActionError("Cannot roll in current duel phase")

    already = duel.attacker_roll if side == "attacker" else duel.defender_roll
    if already is not None:
        raise ActionError("You have already rolled")

    d1, d2 = roller.roll_pair()
    value = d1 + d2
    weapon = duel.attacker_weapon if side == "attacker" else duel.defender_weapon
    bonus = weapon_bonus(weapon)
    total = value + bonus

    if side == "attacker":
        duel.attacker_roll = value
    else:
        duel.defender_roll = value

    if duel.attacker_roll is not None and duel.defender_roll is not None:
        duel.phase = DUEL_RESOLVING

    result = {
        "dice": [d1, d2],
        "roll": value,
        "bonus": bonus,
        "total": total,
        "weapon": weapon,
        "phase": duel.phase,
    }
    return result, [duel_rolled(player_name, [d1, d2], value, bonus, total)]


def resolve(session: GameSession, player_name: str) -> tuple[dict[str, Any], list[GameEvent]]:
    """Compare totals and apply the outcome. Either participant may call this."""
    duel = _require_duel(session)
    if duel.phase != DUEL_RESOLVING:
        raise ActionError("Duel is not ready to resolve")
    _require_side(duel, player_name)
    attacker, defender = _combatants(session, duel)

    attacker_weapon = duel.attacker_weapon
    defender_weapon = duel.defender_weapon
    attacker_total = duel.attacker_roll + weapon_bonus(attacker_weapon)
    defender_total = duel.defender_roll + weapon_bonus(defender_weapon)

    # Selected weapons are spent whatever the outcome
    if attacker_weapon:
        remove_weapon(attacker, attacker_weapon)
    if defender_weapon:
        remove_weapon(defender, defender_weapon)

    result: dict[str, Any] = {
        "attacker": attacker.name,
        "defender": defender.name,
        "attacker_roll": duel.attacker_roll,
        "defender_roll": duel.defender_roll,
        "attacker_total": attacker_total,
        "defender_total": defender_total,
        "attacker_weapon": attacker_weapon,
        "defender_weapon": defender_weapon,
    }

    if attacker_total == defender_total:
        duel.attacker_roll = None
        duel.defender_roll = None
        duel.attacker_weapon = None
        duel.defender_weapon = None
        duel.phase = DUEL_SELECT_WEAPON
        result.update({"is_tie": True, "winner": None, "loser": None, "coin_transfer": 0})
        consumed = {attacker.name: attacker_weapon, defender.name: defender_weapon}
        return result, [duel_tied(attacker_total, defender_total, consumed)]

    if attacker_total > defender_total:
        winner, loser = attacker, defender
    else:
        winner, loser = defender, attacker

    loser.x, loser.y = loser.start_x, loser.start_y
    transfer = min(session.config.duel_stake, loser.coins)
    loser.coins -= transfer
    winner.coins += transfer
    session.duel = None

    events = [duel_resolved(winner.name, loser.name, transfer, attacker_total, defender_total)]
    if winner is attacker:
        session.turn_state = TURN_MOVE if session.moves_remaining > 0 else TURN_IDLE
    else:
        # Losing as the attacker ends the attacker's turn outright
        session.moves_remaining = 0
        events.append(advance_turn(session))

    result.update({
        "is_tie": False,
        "winner": winner.name,
        "loser": loser.name,
        "coin_transfer": transfer,
    })
    return result, events


def _first_weapon(player: Player) -> str | None:
    return player.weapons[0] if player.weapons else None


def fight(session: GameSession, player_name: str, roller: DiceRoller) -> tuple[dict[str, Any], list[GameEvent]]:
    """
    Play the whole duel for the attacker in one call.
    Each round both sides take their first carried weapon (or none), roll, and
    resolve; ties repeat up to MAX_DUEL_ROUNDS rounds.
    """
    duel = _require_duel(session)
    if session.current_player.name != player_name:
        raise ActionError("Not your turn")
    if duel.attacker != player_name:
        raise ActionError("Only the attacker can initiate fight")
    attacker, defender = _combatants(session, duel)

    events: list[GameEvent] = []
    for round_number in range(1, MAX_DUEL_ROUNDS + 1):
        if duel.phase == DUEL_SELECT_WEAPON:
            events.extend(select_weapon(session, attacker.name, _first_weapon(attacker)))
            events.extend(select_weapon(session, defender.name, _first_weapon(defender)))
        if duel.attacker_roll is None:
            _, evts = roll(session, attacker.name, roller)
            events.extend(evts)
        if duel.defender_roll is None:
            _, evts = roll(session, defender.name, roller)
            events.extend(evts)
        result, evts = resolve(session, attacker.name)
        events.extend(evts)
        if not result["is_tie"]:
            result["rounds"] = round_number
            return result, events

    # The tied rounds stand: their weapons are spent and the duel waits for a new selection
    raise ActionError("Too many tie attempts", events=events)
