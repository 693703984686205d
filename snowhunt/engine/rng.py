"""
Random number sources.

Two generators with different guarantees:
- SeededRandom: linear congruential stream. Same seed and same call order give
  the same values, bit for bit. World generation uses only this.
- DiceRoller: builds a fresh SeededRandom from the session seed plus the clock on
  every roll. Dice and duel rolls are therefore not reproducible.
"""

import random
import time
from typing import Callable

from snowhunt.engine import DICE_SIDES

LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280

MAX_SEED = 1_000_000


class SeededRandom:
    """Deterministic pseudo-random stream from an integer seed."""

    def __init__(self, seed: int):
        self.seed = int(seed)

    def next(self) -> float:
        """Next value in [0, 1)."""
        self.seed = (self.seed * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return self.seed / LCG_MODULUS

    def random_int(self, min_value: int, max_value: int) -> int:
        """Uniform integer in [min_value, max_value], both inclusive."""
        return int(self.next() * (max_value - min_value + 1)) + min_value

    def random_float(self, min_value: float, max_value: float) -> float:
        return self.next() * (max_value - min_value) + min_value


def generate_seed() -> int:
    """Fresh seed for a game created without one."""
    return random.randrange(MAX_SEED)


class DiceRoller:
    """
    Dice for turn and duel rolls.
    Every roll reseeds a new SeededRandom with seed + clock(), so consecutive
    rolls in the same session do not repeat even though the world seed is fixed.
    """

    def __init__(self, seed: int, clock: Callable[[], int] = time.time_ns, sides: int = DICE_SIDES):
        self.seed = int(seed)
        self.clock = clock
        self.sides = sides

    def _fresh(self) -> SeededRandom:
        return SeededRandom(self.seed + self.clock())

    def roll_die(self) -> int:
        return self._fresh().random_int(1, self.sides)

    def roll_pair(self) -> tuple[int, int]:
        rng = self._fresh()
        return rng.random_int(1, self.sides), rng.random_int(1, self.sides)
