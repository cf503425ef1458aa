"""
State of a single property auction.
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass
class AuctionState:
    """
    Bidding state for one property.

    Participants bid in table order; a pass removes the bidder and the
    pointer wraps over the remaining list.
    """

    position: int
    participants: List[int]
    current_bid: int = 0
    highest_bidder: Optional[int] = None
    bidder_index: int = 0
    decisions_taken: int = 0

    @property
    def current_bidder(self) -> Optional[int]:
        if not self.participants:
            return None
        return self.participants[self.bidder_index % len(self.participants)]

    def is_finished(self) -> bool:
        """True once nobody is left, or a lone participant already holds the high bid."""
        if not self.participants:
            return True
        return len(self.participants) == 1 and self.highest_bidder is not None

    def place_bid(self, player_id: int, amount: int, cash: int) -> bool:
        """
        Record a bid from the current bidder.
        Returns False if the bid does not beat the current bid or exceeds cash.
        """
        if player_id != self.current_bidder:
            return False
        if amount <= self.current_bid or amount > cash:
            return False
        self.current_bid = amount
        self.highest_bidder = player_id
        self.bidder_index = (self.bidder_index + 1) % len(self.participants)
        return True

    def pass_bid(self, player_id: int) -> None:
        """Remove a bidder; the pointer then addresses the next participant."""
        if player_id not in self.participants:
            return
        idx = self.participants.index(player_id)
        self.participants.remove(player_id)
        if idx < self.bidder_index:
            self.bidder_index -= 1
        if self.participants:
            self.bidder_index %= len(self.participants)
        else:
            self.bidder_index = 0
