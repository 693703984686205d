"""
Action definitions for the game.
Actions are immutable instructions naming the acting player.
"""

from dataclasses import dataclass, field


class ActionError(ValueError):
    """
    An action broke a game rule (wrong turn, wrong phase, bad input...).
    events lists whatever already happened before the action gave up; it is
    empty for plain validation failures.
    """

    def __init__(self, message: str, events: list | None = None):
        super().__init__(message)
        self.events = list(events or [])


@dataclass(frozen=True)
class Action:
    """Base action class. All actions have a type, acting player, and payload."""
    type: str  # e.g. "roll_dice", "move_player", "dig", "end_turn", "duel_roll"
    player: str  # name of the player performing the action
    payload: dict = field(default_factory=dict)


ROLL_DICE = "roll_dice"
MOVE_PLAYER = "move_player"
DIG = "dig"
END_TURN = "end_turn"
DUEL_SELECT_WEAPON = "duel_select_weapon"
DUEL_ROLL = "duel_roll"
DUEL_RESOLVE = "duel_resolve"
DUEL_FIGHT = "duel_fight"

# Actions either duel participant may send, whoever's turn it is
DUEL_ACTIONS = (DUEL_SELECT_WEAPON, DUEL_ROLL, DUEL_RESOLVE, DUEL_FIGHT)


def roll_dice(player: str) -> Action:
    """Roll two dice to start the movement phase. Only in IDLE."""
    return Action(type=ROLL_DICE, player=player)


def move_player(player: str, direction: str) -> Action:
    """
    Step one cell in a direction: "UP", "DOWN", "LEFT" or "RIGHT".
    Costs the terrain value of the target cell.
    """
    return Action(type=MOVE_PLAYER, player=player, payload={"direction": direction})


def dig(player: str) -> Action:
    """Dig at the player's current cell. Anything but a find ends movement."""
    return Action(type=DIG, player=player)


def end_turn(player: str) -> Action:
    """End the turn; a pending extra turn keeps the same player."""
    return Action(type=END_TURN, player=player)


def duel_select_weapon(player: str, weapon: str | None) -> Action:
    """Choose a carried weapon for the duel, or None to fight bare-handed."""
    return Action(type=DUEL_SELECT_WEAPON, player=player, payload={"weapon": weapon})


def duel_roll(player: str) -> Action:
    """Roll two dice for the duel. Each side rolls once per round."""
    return Action(type=DUEL_ROLL, player=player)


def duel_resolve(player: str) -> Action:
    """Compare totals once both sides have rolled."""
    return Action(type=DUEL_RESOLVE, player=player)


def duel_fight(player: str) -> Action:
    """
    Attacker-only shortcut: auto-select weapons and play select/roll/resolve
    rounds until someone wins.
    """
    return Action(type=DUEL_FIGHT, player=player)
