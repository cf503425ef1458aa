"""
Decision tokens exchanged with decision providers.

Providers see and answer plain string tokens (``roll``, ``bid_50``,
``build_12``); the engine works with parsed ``Action`` values.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from monopoly.exceptions import InvalidActionError

BID_INCREMENTS = (10, 25, 50, 100)


class ActionType(Enum):
    """Types of actions a player can choose at a decision point."""

    ROLL = "roll"
    PAY = "pay"
    USE_CARD = "useCard"
    BUY = "buy"
    AUCTION = "auction"
    PASS = "pass"
    SKIP = "skip"
    BID = "bid"
    BUILD = "build"


class DecisionKind(Enum):
    """The decision points where the engine suspends for a provider."""

    JAIL = "jail"
    BUY_OR_AUCTION = "buy_or_auction"
    AUCTION_BID = "auction_bid"
    BUILD = "build"


_PLAIN_TOKENS = {a.value.lower(): a for a in ActionType if a not in (ActionType.BID, ActionType.BUILD)}


@dataclass(frozen=True)
class Action:
    """
    A parsed decision token.

    ``amount`` is set for bids, ``position`` for build orders.
    """

    action_type: ActionType
    amount: Optional[int] = None
    position: Optional[int] = None

    @property
    def token(self) -> str:
        if self.action_type == ActionType.BID:
            return f"bid_{self.amount}"
        if self.action_type == ActionType.BUILD:
            return f"build_{self.position}"
        return self.action_type.value

    @classmethod
    def parse(cls, token: str) -> "Action":
        """
        Parse a token such as ``useCard``, ``bid_60`` or ``build_39``.

        Raises:
            InvalidActionError: If the token is not a recognised action.
        """
        if not isinstance(token, str) or not token.strip():
            raise InvalidActionError(f"Empty or non-string action token: {token!r}")

        text = token.strip()
        lowered = text.lower()

        if lowered in _PLAIN_TOKENS:
            return cls(_PLAIN_TOKENS[lowered])

        prefix, sep, arg = lowered.partition("_")
        if sep and prefix in (ActionType.BID.value, ActionType.BUILD.value):
            try:
                value = int(arg)
            except ValueError:
                raise InvalidActionError(f"Non-integer argument in action token: {token!r}") from None
            if value < 0:
                raise InvalidActionError(f"Negative argument in action token: {token!r}")
            if prefix == ActionType.BID.value:
                return cls(ActionType.BID, amount=value)
            return cls(ActionType.BUILD, position=value)

        raise InvalidActionError(f"Unknown action token: {token!r}")

    @classmethod
    def bid(cls, amount: int) -> "Action":
        return cls(ActionType.BID, amount=amount)

    @classmethod
    def build(cls, position: int) -> "Action":
        return cls(ActionType.BUILD, position=position)

    def __str__(self) -> str:
        return self.token


ROLL = Action(ActionType.ROLL)
PAY = Action(ActionType.PAY)
USE_CARD = Action(ActionType.USE_CARD)
BUY = Action(ActionType.BUY)
AUCTION = Action(ActionType.AUCTION)
PASS = Action(ActionType.PASS)
SKIP = Action(ActionType.SKIP)

# Conservative choice for each decision point when a provider cannot answer
DEFAULT_ACTIONS = {
    DecisionKind.JAIL: ROLL,
    DecisionKind.BUY_OR_AUCTION: AUCTION,
    DecisionKind.AUCTION_BID: PASS,
    DecisionKind.BUILD: SKIP,
}


def jail_options(cash: int, jail_cards: int, fine: int) -> List[Action]:
    """Options for a jailed player at the start of their turn."""
    options = [ROLL]
    if cash >= fine:
        options.append(PAY)
    if jail_cards > 0:
        options.append(USE_CARD)
    return options


def buy_options() -> List[Action]:
    return [BUY, AUCTION]


def auction_bid_options(current_bid: int, cash: int, price: int) -> List[Action]:
    """
    ``pass`` plus raises of 10/25/50/100 over the current bid, capped at
    the bidder's cash and at twice the list price.
    """
    ceiling = min(cash, price * 2)
    options = [PASS]
    for increment in BID_INCREMENTS:
        amount = current_bid + increment
        if amount <= ceiling:
            options.append(Action.bid(amount))
    return options


def build_options(positions: List[int]) -> List[Action]:
    return [SKIP] + [Action.build(pos) for pos in positions]


def tokens(actions: List[Action]) -> List[str]:
    return [a.token for a in actions]
