"""
Snow Hunt Game Engine
Authoritative session engine: world generation, turns, tile events, duels.
No web framework, database, or UI.
"""

DICE_SIDES = 6

# Two-dice sums that grant a bonus turn.
EXTRA_TURN_SUMS = (6, 12)

MIN_PLAYERS = 2
MAX_PLAYERS = 4

# Auto-fight gives up after this many tied rounds.
MAX_DUEL_ROUNDS = 100
