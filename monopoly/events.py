"""
Append-only, turn-tagged event log.
"""

import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Deque, Dict, List, Mapping, Optional, Union

SYSTEM_ACTOR = "system"


class EventType(Enum):
    """Types of game events."""

    GAME_START = "game_start"
    TURN_START = "turn_start"
    DICE_ROLL = "dice_roll"
    MOVE = "move"
    PASS_GO = "pass_go"
    LAND = "land"

    DECISION = "decision"

    PURCHASE = "purchase"
    AUCTION_START = "auction_start"
    AUCTION_BID = "auction_bid"
    AUCTION_PASS = "auction_pass"
    AUCTION_END = "auction_end"

    PAYMENT = "payment"
    CREDIT = "credit"
    TRANSFER = "transfer"
    RENT_PAYMENT = "rent_payment"
    TAX_PAYMENT = "tax_payment"
    FREE_PARKING = "free_parking"

    CARD_DRAW = "card_draw"

    BUILD_HOUSE = "build_house"
    BUILD_HOTEL = "build_hotel"
    SELL_BUILDING = "sell_building"

    MORTGAGE = "mortgage"
    UNMORTGAGE = "unmortgage"

    GO_TO_JAIL = "go_to_jail"
    JAIL_ATTEMPT = "jail_attempt"
    JAIL_RELEASE = "jail_release"

    BANKRUPTCY = "bankruptcy"
    GAME_END = "game_end"


@dataclass(frozen=True)
class GameEvent:
    """A logged event in the game. ``details`` is a read-only mapping."""

    turn: int
    event_type: EventType
    player_id: Optional[int] = None
    message: str = ""
    timestamp: float = field(default_factory=time.time)
    details: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    @property
    def actor(self) -> Union[int, str]:
        """The acting player id, or ``"system"``."""
        return self.player_id if self.player_id is not None else SYSTEM_ACTOR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "turn": self.turn,
            "actor": self.actor,
            "event_type": self.event_type.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "details": dict(self.details),
        }

    def __repr__(self) -> str:
        player_str = f"P{self.player_id}" if self.player_id is not None else "System"
        return f"[T{self.turn} {player_str}] {self.event_type.value}: {self.message}"


class EventLog:
    """Keeps the most recent ``capacity`` game events."""

    def __init__(self, capacity: int = 100):
        self.capacity = capacity
        self._events: Deque[GameEvent] = deque(maxlen=capacity)
        self.total_logged = 0

    def log(
        self,
        turn: int,
        event_type: EventType,
        player_id: Optional[int] = None,
        message: str = "",
        **details: Any,
    ) -> GameEvent:
        """Log a game event."""
        event = GameEvent(turn, event_type, player_id, message, details=details)
        self._events.append(event)
        self.total_logged += 1
        return event

    def get_events(self) -> List[GameEvent]:
        """Get all retained events, oldest first."""
        return list(self._events)

    def get_recent_events(self, count: int = 10) -> List[GameEvent]:
        """Get the most recent N events."""
        if count <= 0:
            return []
        return list(self._events)[-count:]

    def of_type(self, event_type: EventType) -> List[GameEvent]:
        return [e for e in self._events if e.event_type == event_type]

    def clear(self) -> None:
        """Clear the event log."""
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)
