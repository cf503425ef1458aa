"""
Auction system for properties.
"""

import logging
from typing import Optional

from monopoly.actions import ActionType, DecisionKind, auction_bid_options
from monopoly.auction_state import AuctionState
from monopoly.decisions import DecisionGateway
from monopoly.events import EventType
from monopoly.game import GameState
from monopoly.ledger import Ledger

logger = logging.getLogger(__name__)


class AuctionCoordinator:
    """
    Runs an auction for an unowned property.

    Every solvent player takes part, in table order starting from the first
    seat. Each bidder in turn either raises or passes; a pass (or an
    unacceptable bid) removes the bidder. The auction ends when one bidder
    holding the high bid remains, when everyone has passed, or after
    ``auction_round_cap`` rounds.
    """

    def __init__(self, state: GameState, ledger: Ledger, gateway: DecisionGateway):
        self.state = state
        self.ledger = ledger
        self.gateway = gateway

    async def run(self, position: int) -> Optional[int]:
        """
        Auction the property at ``position``.

        Returns:
            The winner's player id, or None if the property stays unowned.
        """
        space = self.state.board.get_ownable_space(position)
        if space is None or self.state.properties[position].is_owned():
            return None

        participants = [p.player_id for p in self.state.get_active_players()]
        auction = AuctionState(position=position, participants=participants)
        self.state.auction = auction
        max_decisions = self.state.config.auction_round_cap * max(1, len(participants))

        self.state.log(
            EventType.AUCTION_START,
            message=f"Auction started for {space.name}",
            property=space.name,
            position=position,
            players=list(participants),
        )

        try:
            while not auction.is_finished():
                if auction.decisions_taken >= max_decisions:
                    logger.warning("Auction for %s hit the round cap, force-ending", space.name)
                    break
                await self._take_bid(auction, space.name, space.price)
            return self._settle(auction, space.name)
        finally:
            self.state.auction = None

    async def _take_bid(self, auction: AuctionState, name: str, price: int) -> None:
        bidder_id = auction.current_bidder
        bidder = self.state.players[bidder_id]
        options = auction_bid_options(auction.current_bid, bidder.cash, price)
        auction.decisions_taken += 1

        decision = await self.gateway.decide(
            bidder_id,
            DecisionKind.AUCTION_BID,
            options,
            context={
                "property": name,
                "position": auction.position,
                "price": price,
                "current_bid": auction.current_bid,
                "highest_bidder": auction.highest_bidder,
            },
            description=f"Auction for {name} (list ${price}); current bid ${auction.current_bid}",
        )
        action = decision.action

        if action.action_type == ActionType.BID:
            if auction.place_bid(bidder_id, action.amount, bidder.cash):
                self.state.log(
                    EventType.AUCTION_BID,
                    player_id=bidder_id,
                    message=f"{bidder.name} bid ${action.amount} for {name}",
                    property=name,
                    amount=action.amount,
                )
                return
            logger.info("Rejected bid %s from player %s; treating as pass", action.amount, bidder_id)

        auction.pass_bid(bidder_id)
        self.state.log(
            EventType.AUCTION_PASS,
            player_id=bidder_id,
            message=f"{bidder.name} passed on {name}",
            property=name,
            remaining_bidders=list(auction.participants),
        )

    def _settle(self, auction: AuctionState, name: str) -> Optional[int]:
        winner = auction.highest_bidder
        if winner is not None and not self.ledger.award_property(winner, auction.position, auction.current_bid):
            # Winning bids never exceed the bidder's cash at bid time
            logger.error("Auction winner %s could not pay $%s", winner, auction.current_bid)
            winner = None

        self.state.log(
            EventType.AUCTION_END,
            player_id=winner,
            message=(
                f"{self.state.players[winner].name} won {name} for ${auction.current_bid}"
                if winner is not None
                else f"No bids for {name}; it stays with the bank"
            ),
            property=name,
            position=auction.position,
            winning_bid=auction.current_bid if winner is not None else 0,
            winner=winner,
            decisions=auction.decisions_taken,
        )
        return winner
