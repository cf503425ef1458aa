"""
Dice source backed by an injected, seedable random generator.
"""

import random
from dataclasses import dataclass


@dataclass(frozen=True)
class DiceRoll:
    """Result of rolling two six-sided dice."""

    die1: int
    die2: int

    @property
    def total(self) -> int:
        return self.die1 + self.die2

    @property
    def is_doubles(self) -> bool:
        return self.die1 == self.die2

    def __str__(self) -> str:
        suffix = " (DOUBLES)" if self.is_doubles else ""
        return f"{self.die1} + {self.die2} = {self.total}{suffix}"


class Dice:
    """Two six-sided dice drawing from the game's RNG."""

    def __init__(self, rng: random.Random):
        self.rng = rng

    def roll(self) -> DiceRoll:
        return DiceRoll(self.rng.randint(1, 6), self.rng.randint(1, 6))
