"""
Player state and management.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Set

if TYPE_CHECKING:
    from monopoly.decisions import DecisionProvider


class PlayerState:
    """Represents the complete state of a player in the game."""

    def __init__(
        self,
        player_id: int,
        name: str,
        starting_cash: int,
        color: Optional[str] = None,
        provider: Optional["DecisionProvider"] = None,
    ):
        self.player_id = player_id
        self.name = name
        self.color = color
        self.provider = provider
        self.cash = starting_cash
        self.position = 0
        self.in_jail = False
        self.jail_turns = 0
        self.get_out_of_jail_cards = 0
        self.is_bankrupt = False
        self.properties: Set[int] = set()

    def __repr__(self) -> str:
        return (
            f"PlayerState(id={self.player_id}, name='{self.name}', "
            f"cash={self.cash}, position={self.position}, bankrupt={self.is_bankrupt})"
        )


@dataclass
class PropertyState:
    """Tracks the mutable state of an ownable space."""

    owner_id: Optional[int] = None
    houses: int = 0
    has_hotel: bool = False
    is_mortgaged: bool = False

    def is_owned(self) -> bool:
        """Check if property is owned by any player."""
        return self.owner_id is not None

    def has_structures(self) -> bool:
        return self.houses > 0 or self.has_hotel

    def reset(self) -> None:
        """Return the property to the bank: unowned, undeveloped, unmortgaged."""
        self.owner_id = None
        self.houses = 0
        self.has_hotel = False
        self.is_mortgaged = False


class Player:
    """
    Configuration record for a seat at the table.
    ``provider`` answers this player's decisions; None means defaults are used.
    """

    def __init__(
        self,
        player_id: int,
        name: str,
        provider: Optional["DecisionProvider"] = None,
        color: Optional[str] = None,
    ):
        self.player_id = player_id
        self.name = name
        self.provider = provider
        self.color = color

    def __repr__(self) -> str:
        return f"Player(id={self.player_id}, name='{self.name}')"
