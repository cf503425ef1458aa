"""
Game configuration settings.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class GameConfig:
    """Configuration for a Monopoly game."""

    starting_cash: int = 1500
    go_salary: int = 200
    jail_fine: int = 50
    max_jail_turns: int = 3
    mortgage_interest_percent: int = 10

    # Per-hotel repairs charge as a multiple of the card's per-house rate
    repairs_hotel_multiplier: int = 4

    decision_timeout_seconds: float = 30.0
    auction_round_cap: int = 20
    log_capacity: int = 100

    time_limit_turns: Optional[int] = None

    seed: Optional[int] = None

    # House-rule policies
    free_parking_jackpot: bool = True
    reshuffle_on_wrap: bool = False
    enforce_even_building: bool = False

    def __post_init__(self) -> None:
        if self.starting_cash < 0 or self.go_salary < 0 or self.jail_fine < 0:
            raise ValueError("starting_cash, go_salary and jail_fine must not be negative")
        if self.max_jail_turns < 1:
            raise ValueError("max_jail_turns must be at least 1")
        if self.decision_timeout_seconds <= 0:
            raise ValueError("decision_timeout_seconds must be positive")
        if self.auction_round_cap < 1:
            raise ValueError("auction_round_cap must be at least 1")
        if self.log_capacity < 1:
            raise ValueError("log_capacity must be at least 1")
