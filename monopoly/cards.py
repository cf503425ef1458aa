"""
Chance and Community Chest card system.

Decks are shuffled once when the game is created and then drawn cyclically:
the cursor wraps and cards are reused. Reshuffling on wrap is an opt-in policy.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from monopoly.spaces import SpaceType


class CardType(Enum):
    """Types of card effects."""

    MOVE_TO = "moveTo"
    MOVE_BY_SPACES = "moveBySpaces"
    PAY_BANK = "payBank"
    COLLECT_FROM_BANK = "collectFromBank"
    PAY_EACH_PLAYER = "payEachPlayer"
    COLLECT_FROM_EACH_PLAYER = "collectFromEachPlayer"
    GO_TO_JAIL = "goToJail"
    GRANT_JAIL_CARD = "grantJailCard"
    REPAIRS_ASSESSMENT = "repairsAssessment"


@dataclass(frozen=True)
class Card:
    """Represents a Chance or Community Chest card."""

    description: str
    card_type: CardType
    value: int = 0
    destination: Optional[int] = None
    nearest: Optional[SpaceType] = None  # RAILROAD or UTILITY for "advance to nearest"
    collect_go: bool = True  # Whether a relocation past GO pays the salary

    def __repr__(self) -> str:
        return f"Card('{self.description}')"


class Deck:
    """A finite deck drawn cyclically through a cursor."""

    def __init__(self, name: str, cards: List[Card], rng: random.Random, reshuffle_on_wrap: bool = False):
        if not cards:
            raise ValueError(f"{name} deck needs at least one card")
        self.name = name
        self.cards = list(cards)
        self.rng = rng
        self.reshuffle_on_wrap = reshuffle_on_wrap
        self.cursor = 0
        self.shuffle()

    def shuffle(self) -> None:
        """Shuffle the deck."""
        self.rng.shuffle(self.cards)

    def draw(self) -> Card:
        """Draw the card under the cursor and advance it, wrapping at the end."""
        card = self.cards[self.cursor]
        self.cursor = (self.cursor + 1) % len(self.cards)
        if self.cursor == 0 and self.reshuffle_on_wrap:
            self.shuffle()
        return card

    def __len__(self) -> int:
        return len(self.cards)


def chance_cards() -> List[Card]:
    """The standard Chance cards."""
    return [
        Card("Advance to Go (Collect $200)", CardType.MOVE_TO, destination=0),
        Card("Advance to Illinois Ave.", CardType.MOVE_TO, destination=24),
        Card("Advance to St. Charles Place", CardType.MOVE_TO, destination=11),
        Card("Advance token to nearest Utility", CardType.MOVE_TO, nearest=SpaceType.UTILITY),
        Card("Advance token to nearest Railroad", CardType.MOVE_TO, nearest=SpaceType.RAILROAD),
        Card("Advance token to nearest Railroad", CardType.MOVE_TO, nearest=SpaceType.RAILROAD),
        Card("Bank pays you dividend of $50", CardType.COLLECT_FROM_BANK, value=50),
        Card("Get Out of Jail Free", CardType.GRANT_JAIL_CARD),
        Card("Go Back 3 Spaces", CardType.MOVE_BY_SPACES, value=-3, collect_go=False),
        Card("Go to Jail", CardType.GO_TO_JAIL),
        Card(
            "Make general repairs on all your property: Pay $25 per house, $100 per hotel",
            CardType.REPAIRS_ASSESSMENT,
            value=25,
        ),
        Card("Pay poor tax of $15", CardType.PAY_BANK, value=15),
        Card("Take a trip to Reading Railroad", CardType.MOVE_TO, destination=5),
        Card("Take a walk on the Boardwalk", CardType.MOVE_TO, destination=39),
        Card("You have been elected Chairman of the Board. Pay each player $50", CardType.PAY_EACH_PLAYER, value=50),
        Card("Your building loan matures. Collect $150", CardType.COLLECT_FROM_BANK, value=150),
    ]


def community_chest_cards() -> List[Card]:
    """The standard Community Chest cards."""
    return [
        Card("Advance to Go (Collect $200)", CardType.MOVE_TO, destination=0),
        Card("Bank error in your favor. Collect $200", CardType.COLLECT_FROM_BANK, value=200),
        Card("Doctor's fees. Pay $50", CardType.PAY_BANK, value=50),
        Card("From sale of stock you get $50", CardType.COLLECT_FROM_BANK, value=50),
        Card("Get Out of Jail Free", CardType.GRANT_JAIL_CARD),
        Card("Go to Jail", CardType.GO_TO_JAIL),
        Card("Grand Opera Night. Collect $50 from every player", CardType.COLLECT_FROM_EACH_PLAYER, value=50),
        Card("Holiday Fund matures. Receive $100", CardType.COLLECT_FROM_BANK, value=100),
        Card("Income tax refund. Collect $20", CardType.COLLECT_FROM_BANK, value=20),
        Card("It is your birthday. Collect $10 from every player", CardType.COLLECT_FROM_EACH_PLAYER, value=10),
        Card("Life insurance matures. Collect $100", CardType.COLLECT_FROM_BANK, value=100),
        Card("Hospital fees. Pay $100", CardType.PAY_BANK, value=100),
        Card("School fees. Pay $150", CardType.PAY_BANK, value=150),
        Card("Receive $25 consultancy fee", CardType.COLLECT_FROM_BANK, value=25),
        Card(
            "You are assessed for street repairs: Pay $40 per house, $160 per hotel",
            CardType.REPAIRS_ASSESSMENT,
            value=40,
        ),
        Card("You have won second prize in a beauty contest. Collect $10", CardType.COLLECT_FROM_BANK, value=10),
        Card("You inherit $100", CardType.COLLECT_FROM_BANK, value=100),
    ]


def create_chance_deck(rng: random.Random, reshuffle_on_wrap: bool = False) -> Deck:
    """Create a standard Chance deck."""
    return Deck("chance", chance_cards(), rng, reshuffle_on_wrap)


def create_community_chest_deck(rng: random.Random, reshuffle_on_wrap: bool = False) -> Deck:
    """Create a standard Community Chest deck."""
    return Deck("community_chest", community_chest_cards(), rng, reshuffle_on_wrap)
