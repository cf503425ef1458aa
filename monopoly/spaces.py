"""
Board spaces.

Three kinds of space can be owned (coloured sites, railroads, utilities);
they share a price and a mortgage value and differ only in how rent is
computed. Every other space is resolved by the turn controller.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class SpaceType(Enum):
    """Types of spaces on the board."""

    GO = "go"
    PROPERTY = "property"
    RAILROAD = "railroad"
    UTILITY = "utility"
    TAX = "tax"
    CHANCE = "chance"
    COMMUNITY_CHEST = "community_chest"
    JAIL = "jail"
    GO_TO_JAIL = "go_to_jail"
    FREE_PARKING = "free_parking"


RAILROAD_RENTS: Tuple[int, ...] = (25, 50, 100, 200)
UTILITY_MULTIPLIERS = {1: 4, 2: 10}


@dataclass
class Space:
    """A square on the board."""

    name: str
    position: int
    space_type: SpaceType

    @property
    def is_ownable(self) -> bool:
        return isinstance(self, OwnableSpace)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', position={self.position})"


@dataclass(repr=False)
class OwnableSpace(Space):
    """A space with a deed: it can be bought, auctioned and mortgaged."""

    price: int = 0
    mortgage_value: int = 0


@dataclass(repr=False)
class PropertySpace(OwnableSpace):
    """
    A coloured site.

    ``rent`` holds six entries: base rent, rent with 1-4 houses, rent with a
    hotel. ``hotel_cost`` defaults to ``house_cost``.
    """

    color_group: str = ""
    rent: Tuple[int, ...] = ()
    house_cost: int = 0
    hotel_cost: int = 0

    def __init__(
        self,
        name: str,
        position: int,
        price: int,
        color_group: str,
        rent: Tuple[int, int, int, int, int, int],
        house_cost: int,
        mortgage_value: int,
        hotel_cost: Optional[int] = None,
    ):
        if len(rent) != 6:
            raise ValueError(f"{name}: rent schedule needs 6 entries, got {len(rent)}")
        super().__init__(name, position, SpaceType.PROPERTY, price, mortgage_value)
        self.color_group = color_group
        self.rent = tuple(rent)
        self.house_cost = house_cost
        self.hotel_cost = house_cost if hotel_cost is None else hotel_cost

    @property
    def rent_base(self) -> int:
        return self.rent[0]

    def get_rent(self, houses: int, has_hotel: bool, has_monopoly: bool) -> int:
        """
        Rent owed by a visitor.

        Args:
            houses: Houses on the site (0-4)
            has_hotel: Whether the site carries a hotel
            has_monopoly: Whether the owner holds the whole colour group

        Returns:
            Rent amount; an undeveloped site in a monopoly charges double.
        """
        if has_hotel:
            return self.rent[5]
        if houses:
            return self.rent[houses]
        return self.rent_base * (2 if has_monopoly else 1)


@dataclass(repr=False)
class RailroadSpace(OwnableSpace):
    """Rent doubles with each additional railroad held by the owner."""

    def __init__(self, name: str, position: int, price: int = 200, mortgage_value: int = 100):
        super().__init__(name, position, SpaceType.RAILROAD, price, mortgage_value)

    def get_rent(self, railroads_owned: int) -> int:
        count = max(1, min(railroads_owned, len(RAILROAD_RENTS)))
        return RAILROAD_RENTS[count - 1]


@dataclass(repr=False)
class UtilitySpace(OwnableSpace):
    """Rent is the visitor's dice total times 4, or times 10 with both utilities."""

    def __init__(self, name: str, position: int, price: int = 150, mortgage_value: int = 75):
        super().__init__(name, position, SpaceType.UTILITY, price, mortgage_value)

    def get_rent(self, dice_total: int, utilities_owned: int) -> int:
        multiplier = UTILITY_MULTIPLIERS[2 if utilities_owned >= 2 else 1]
        return dice_total * multiplier


@dataclass(repr=False)
class TaxSpace(Space):
    """Income Tax or Luxury Tax."""

    amount: int = 0

    def __init__(self, name: str, position: int, amount: int):
        super().__init__(name, position, SpaceType.TAX)
        self.amount = amount


class CardSpace(Space):
    """A space that draws from the deck matching its ``space_type``."""


class ChanceSpace(CardSpace):
    def __init__(self, position: int):
        super().__init__("Chance", position, SpaceType.CHANCE)


class CommunityChestSpace(CardSpace):
    def __init__(self, position: int):
        super().__init__("Community Chest", position, SpaceType.COMMUNITY_CHEST)


class GoSpace(Space):
    def __init__(self, position: int = 0):
        super().__init__("GO", position, SpaceType.GO)


class JailSpace(Space):
    """Jail, also Just Visiting."""

    def __init__(self, position: int = 10):
        super().__init__("Jail", position, SpaceType.JAIL)


class FreeParkingSpace(Space):
    def __init__(self, position: int = 20):
        super().__init__("Free Parking", position, SpaceType.FREE_PARKING)


class GoToJailSpace(Space):
    def __init__(self, position: int = 30):
        super().__init__("Go To Jail", position, SpaceType.GO_TO_JAIL)
