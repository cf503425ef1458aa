"""
The Ledger: the only code that changes cash, ownership, structures and
mortgage flags.

Every operation either applies completely or is rejected and returns False.
Applied mutations are appended to the event log.
"""

import logging
from typing import List, Optional

from monopoly.events import EventType
from monopoly.game import GameState
from monopoly.player import PlayerState, PropertyState
from monopoly.spaces import OwnableSpace, PropertySpace, RailroadSpace, UtilitySpace

logger = logging.getLogger(__name__)

# Dice total assumed for utility rent when no roll is known
DEFAULT_UTILITY_DICE = 7

# Hotel counts as a fifth house level for even-building comparisons
HOTEL_LEVEL = 5


class Ledger:
    """Money and property transactions against a ``GameState``."""

    def __init__(self, state: GameState):
        self.state = state
        self.board = state.board

    # ------------------------------------------------------------------
    # Money
    # ------------------------------------------------------------------

    def pay(self, player_id: int, amount: int, reason: str = "") -> bool:
        """
        Debit a player in favour of the bank.
        Returns False if the player cannot cover the full amount.
        """
        player = self.state.players[player_id]
        if amount < 0 or player.is_bankrupt or player.cash < amount:
            return False
        player.cash -= amount
        self.state.log(
            EventType.PAYMENT,
            player_id=player_id,
            message=f"{player.name} paid ${amount}" + (f" for {reason}" if reason else ""),
            amount=amount,
            reason=reason,
            new_balance=player.cash,
        )
        return True

    def credit(
        self,
        player_id: int,
        amount: int,
        reason: str = "",
        event_type: EventType = EventType.CREDIT,
    ) -> None:
        """Credit a player from the bank."""
        if amount < 0:
            raise ValueError(f"Cannot credit a negative amount: {amount}")
        player = self.state.players[player_id]
        player.cash += amount
        self.state.log(
            event_type,
            player_id=player_id,
            message=f"{player.name} received ${amount}" + (f" from {reason}" if reason else ""),
            amount=amount,
            reason=reason,
            new_balance=player.cash,
        )

    def transfer(
        self,
        from_id: int,
        to_id: int,
        amount: int,
        reason: str = "",
        event_type: EventType = EventType.TRANSFER,
    ) -> bool:
        """
        Move cash between two players.
        Both sides change or neither does.
        """
        payer = self.state.players[from_id]
        payee = self.state.players[to_id]
        if amount < 0 or payer.is_bankrupt or payee.is_bankrupt or payer.cash < amount:
            return False
        payer.cash -= amount
        payee.cash += amount
        self.state.log(
            event_type,
            player_id=from_id,
            message=f"{payer.name} paid ${amount} to {payee.name}" + (f" for {reason}" if reason else ""),
            to_player=to_id,
            amount=amount,
            reason=reason,
            payer_balance=payer.cash,
            payee_balance=payee.cash,
        )
        return True

    def pay_tax(self, player_id: int, amount: int, reason: str) -> bool:
        """
        Pay a tax or card fine. The money goes into the free-parking pot
        when the jackpot rule is on, otherwise to the bank.
        """
        player = self.state.players[player_id]
        if amount < 0 or player.is_bankrupt or player.cash < amount:
            return False
        player.cash -= amount
        to_pot = self.state.config.free_parking_jackpot
        if to_pot:
            self.state.free_parking_pot += amount
        self.state.log(
            EventType.TAX_PAYMENT,
            player_id=player_id,
            message=f"{player.name} paid ${amount} for {reason}",
            amount=amount,
            reason=reason,
            to_pot=to_pot,
            pot=self.state.free_parking_pot,
            new_balance=player.cash,
        )
        return True

    def collect_free_parking(self, player_id: int) -> int:
        """Pay out and empty the free-parking pot. Returns the amount paid."""
        amount = self.state.free_parking_pot
        if amount <= 0:
            return 0
        player = self.state.players[player_id]
        self.state.free_parking_pot = 0
        player.cash += amount
        self.state.log(
            EventType.FREE_PARKING,
            player_id=player_id,
            message=f"{player.name} collected ${amount} from Free Parking",
            amount=amount,
            new_balance=player.cash,
        )
        return amount

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    def _ownable(self, position: int) -> Optional[OwnableSpace]:
        return self.board.get_ownable_space(position)

    def purchase_property(self, player_id: int, position: int) -> bool:
        """Buy an unowned property at its list price."""
        space = self._ownable(position)
        if space is None:
            return False
        return self._assign(player_id, space, space.price, via_auction=False)

    def award_property(self, player_id: int, position: int, price: int) -> bool:
        """Assign an unowned property to an auction winner at the winning bid."""
        space = self._ownable(position)
        if space is None or price < 0:
            return False
        return self._assign(player_id, space, price, via_auction=True)

    def _assign(self, player_id: int, space: OwnableSpace, price: int, via_auction: bool) -> bool:
        player = self.state.players[player_id]
        prop = self.state.properties[space.position]
        if prop.is_owned() or player.is_bankrupt or player.cash < price:
            return False

        player.cash -= price
        player.properties.add(space.position)
        prop.owner_id = player_id

        verb = "won" if via_auction else "bought"
        self.state.log(
            EventType.PURCHASE,
            player_id=player_id,
            message=f"{player.name} {verb} {space.name} for ${price}",
            property=space.name,
            position=space.position,
            price=price,
            auction=via_auction,
            new_balance=player.cash,
        )
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_monopoly(self, player_id: int, color_group: str) -> bool:
        """Check if a player owns every property in a colour group."""
        positions = self.board.get_color_group(color_group)
        return bool(positions) and all(self.state.properties[pos].owner_id == player_id for pos in positions)

    def _group_mortgaged(self, color_group: str) -> bool:
        return any(self.state.properties[pos].is_mortgaged for pos in self.board.get_color_group(color_group))

    def _level(self, prop: PropertyState) -> int:
        return HOTEL_LEVEL if prop.has_hotel else prop.houses

    def _buildable_site(self, player_id: int, position: int) -> Optional[PropertySpace]:
        """The colour property if the player may develop it at all, else None."""
        space = self.board.get_property_space(position)
        if space is None:
            return None
        prop = self.state.properties[position]
        if prop.owner_id != player_id or prop.is_mortgaged:
            return None
        if not self.has_monopoly(player_id, space.color_group):
            return None
        if self._group_mortgaged(space.color_group):
            return None
        return space

    def can_build_house(self, player_id: int, position: int) -> bool:
        """
        Requirements:
        - Player owns the whole colour group, none of it mortgaged
        - Property has fewer than 4 houses and no hotel
        - Even-build rule, when enabled
        - Player can afford the house cost
        """
        space = self._buildable_site(player_id, position)
        if space is None:
            return False
        prop = self.state.properties[position]
        if prop.has_hotel or prop.houses >= 4:
            return False
        if self.state.config.enforce_even_building:
            group_min = min(self._level(self.state.properties[p]) for p in self.board.get_color_group(space.color_group))
            if prop.houses > group_min:
                return False
        return self.state.players[player_id].cash >= space.house_cost

    def can_build_hotel(self, player_id: int, position: int) -> bool:
        """A hotel replaces exactly four houses on a developable property."""
        space = self._buildable_site(player_id, position)
        if space is None:
            return False
        prop = self.state.properties[position]
        if prop.has_hotel or prop.houses != 4:
            return False
        if self.state.config.enforce_even_building:
            group = self.board.get_color_group(space.color_group)
            if any(self._level(self.state.properties[p]) < 4 for p in group):
                return False
        return self.state.players[player_id].cash >= space.hotel_cost

    def buildable_positions(self, player_id: int) -> List[int]:
        """Positions where the player can add a house or a hotel right now."""
        player = self.state.players[player_id]
        return [
            pos
            for pos in sorted(player.properties)
            if self.can_build_house(player_id, pos) or self.can_build_hotel(player_id, pos)
        ]

    def unmortgage_cost(self, position: int) -> int:
        """Mortgage value plus interest, rounded down."""
        space = self._ownable(position)
        if space is None:
            return 0
        return space.mortgage_value * (100 + self.state.config.mortgage_interest_percent) // 100

    def compute_rent(self, position: int, dice_total: Optional[int] = None) -> int:
        """
        Rent owed for landing on an owned property.

        Args:
            position: Board position
            dice_total: Dice total for utility rent; defaults to the last roll

        Returns:
            Rent amount, 0 when unowned or mortgaged
        """
        prop = self.state.properties.get(position)
        if prop is None or not prop.is_owned() or prop.is_mortgaged:
            return 0

        space = self.board.get_space(position)
        owner_id = prop.owner_id

        if isinstance(space, PropertySpace):
            has_monopoly = self.has_monopoly(owner_id, space.color_group)
            return space.get_rent(prop.houses, prop.has_hotel, has_monopoly)

        if isinstance(space, RailroadSpace):
            owned = self._count_owned(owner_id, self.board.get_all_railroads())
            return space.get_rent(owned)

        if isinstance(space, UtilitySpace):
            if dice_total is None:
                last = self.state.last_roll
                dice_total = last.total if last is not None else DEFAULT_UTILITY_DICE
            owned = self._count_owned(owner_id, self.board.get_all_utilities())
            return space.get_rent(dice_total, owned)

        return 0

    def _count_owned(self, owner_id: int, positions: List[int]) -> int:
        return sum(1 for pos in positions if self.state.properties[pos].owner_id == owner_id)

    def net_worth(self, player_id: int) -> int:
        """Cash plus property value (mortgage value if mortgaged) plus structures at cost."""
        player = self.state.players[player_id]
        total = player.cash
        for pos in player.properties:
            space = self._ownable(pos)
            prop = self.state.properties[pos]
            total += space.mortgage_value if prop.is_mortgaged else space.price
            if isinstance(space, PropertySpace):
                total += prop.houses * space.house_cost
                if prop.has_hotel:
                    total += 4 * space.house_cost + space.hotel_cost
        return total

    # ------------------------------------------------------------------
    # Structures
    # ------------------------------------------------------------------

    def build_house(self, player_id: int, position: int) -> bool:
        """Build one house. Returns False if any requirement fails."""
        if not self.can_build_house(player_id, position):
            return False
        space = self.board.get_property_space(position)
        player = self.state.players[player_id]
        prop = self.state.properties[position]

        player.cash -= space.house_cost
        prop.houses += 1

        self.state.log(
            EventType.BUILD_HOUSE,
            player_id=player_id,
            message=f"{player.name} built a house on {space.name} ({prop.houses} total)",
            property=space.name,
            position=position,
            cost=space.house_cost,
            houses=prop.houses,
            new_balance=player.cash,
        )
        return True

    def build_hotel(self, player_id: int, position: int) -> bool:
        """Upgrade four houses to a hotel."""
        if not self.can_build_hotel(player_id, position):
            return False
        space = self.board.get_property_space(position)
        player = self.state.players[player_id]
        prop = self.state.properties[position]

        player.cash -= space.hotel_cost
        prop.houses = 0
        prop.has_hotel = True

        self.state.log(
            EventType.BUILD_HOTEL,
            player_id=player_id,
            message=f"{player.name} built a hotel on {space.name}",
            property=space.name,
            position=position,
            cost=space.hotel_cost,
            new_balance=player.cash,
        )
        return True

    def build(self, player_id: int, position: int) -> bool:
        """Add the next structure on a property: a hotel over four houses, else a house."""
        prop = self.state.properties.get(position)
        if prop is not None and prop.houses == 4:
            return self.build_hotel(player_id, position)
        return self.build_house(player_id, position)

    def sell_house(self, player_id: int, position: int) -> bool:
        """
        Sell one structure back to the bank for half its cost.
        Selling a hotel leaves four houses.
        """
        space = self.board.get_property_space(position)
        if space is None:
            return False
        prop = self.state.properties[position]
        player = self.state.players[player_id]
        if prop.owner_id != player_id or not prop.has_structures():
            return False

        if self.state.config.enforce_even_building:
            group_max = max(self._level(self.state.properties[p]) for p in self.board.get_color_group(space.color_group))
            if self._level(prop) < group_max:
                return False

        if prop.has_hotel:
            refund = space.hotel_cost // 2
            prop.has_hotel = False
            prop.houses = 4
            what = "hotel"
        else:
            refund = space.house_cost // 2
            prop.houses -= 1
            what = "house"

        player.cash += refund
        self.state.log(
            EventType.SELL_BUILDING,
            player_id=player_id,
            message=f"{player.name} sold a {what} on {space.name} for ${refund}",
            property=space.name,
            position=position,
            building=what,
            refund=refund,
            houses=prop.houses,
            new_balance=player.cash,
        )
        return True

    # ------------------------------------------------------------------
    # Mortgages
    # ------------------------------------------------------------------

    def mortgage(self, player_id: int, position: int) -> bool:
        """Mortgage an undeveloped property for its mortgage value."""
        space = self._ownable(position)
        if space is None:
            return False
        prop = self.state.properties[position]
        if prop.owner_id != player_id or prop.is_mortgaged or prop.has_structures():
            return False

        player = self.state.players[player_id]
        prop.is_mortgaged = True
        player.cash += space.mortgage_value

        self.state.log(
            EventType.MORTGAGE,
            player_id=player_id,
            message=f"{player.name} mortgaged {space.name} for ${space.mortgage_value}",
            property=space.name,
            position=position,
            amount=space.mortgage_value,
            new_balance=player.cash,
        )
        return True

    def unmortgage(self, player_id: int, position: int) -> bool:
        """Lift a mortgage by paying the mortgage value plus interest."""
        space = self._ownable(position)
        if space is None:
            return False
        prop = self.state.properties[position]
        if prop.owner_id != player_id or not prop.is_mortgaged:
            return False

        player = self.state.players[player_id]
        cost = self.unmortgage_cost(position)
        if player.cash < cost:
            return False

        player.cash -= cost
        prop.is_mortgaged = False

        self.state.log(
            EventType.UNMORTGAGE,
            player_id=player_id,
            message=f"{player.name} unmortgaged {space.name} for ${cost}",
            property=space.name,
            position=position,
            cost=cost,
            new_balance=player.cash,
        )
        return True

    # ------------------------------------------------------------------
    # Bankruptcy
    # ------------------------------------------------------------------

    def settle_bankruptcy(self, player_id: int, creditor_id: Optional[int] = None) -> None:
        """
        Remove an insolvent player from the game.

        With a creditor, all remaining cash, properties (with their structures
        and mortgages) and jail cards pass to the creditor. Without one, the
        cash goes to the bank and every property returns unowned and clean.
        """
        player = self.state.players[player_id]
        if player.is_bankrupt:
            return

        positions = sorted(player.properties)
        cash = player.cash
        creditor: Optional[PlayerState] = None
        if creditor_id is not None and creditor_id != player_id:
            creditor = self.state.players[creditor_id]

        if creditor is not None:
            creditor.cash += cash
            creditor.get_out_of_jail_cards += player.get_out_of_jail_cards
            for pos in positions:
                self.state.properties[pos].owner_id = creditor.player_id
                creditor.properties.add(pos)
        else:
            for pos in positions:
                self.state.properties[pos].reset()

        player.cash = 0
        player.properties.clear()
        player.get_out_of_jail_cards = 0
        player.in_jail = False
        player.jail_turns = 0
        player.is_bankrupt = True

        to_whom = creditor.name if creditor is not None else "the bank"
        self.state.log(
            EventType.BANKRUPTCY,
            player_id=player_id,
            message=f"{player.name} went bankrupt to {to_whom}",
            creditor=creditor.player_id if creditor is not None else None,
            cash_transferred=cash if creditor is not None else 0,
            properties=positions,
        )
        logger.info("Player %s bankrupt (creditor=%s, properties=%s)", player_id, creditor_id, positions)
