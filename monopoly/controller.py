"""
Turn Controller: the asynchronous turn state machine.

Each phase handler performs one step of the current player's turn and
returns the next phase. Handlers suspend only at decision points (jail,
buy or auction, auction bids, building), each bounded by the gateway's
timeout.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from monopoly.actions import (
    ActionType,
    DecisionKind,
    build_options,
    buy_options,
    jail_options,
)
from monopoly.auction import AuctionCoordinator
from monopoly.board import BOARD_SIZE, JAIL_POSITION
from monopoly.cards import Card, CardType
from monopoly.decisions import DecisionGateway
from monopoly.dice import DiceRoll
from monopoly.events import EventType
from monopoly.exceptions import InvariantViolation
from monopoly.game import GameState, TurnPhase
from monopoly.ledger import Ledger
from monopoly.player import PlayerState
from monopoly.spaces import (
    CardSpace,
    FreeParkingSpace,
    GoToJailSpace,
    SpaceType,
    TaxSpace,
)

logger = logging.getLogger(__name__)

MAX_CONSECUTIVE_DOUBLES = 3


@dataclass
class TurnContext:
    """Per-roll-cycle scratch state for the current player."""

    roll: Optional[DiceRoll] = None
    extra_roll: bool = False
    card: Optional[Card] = None


Handler = Callable[[PlayerState, TurnContext], Awaitable[TurnPhase]]


class TurnController:
    """
    Drives a game one turn at a time.

    Example:
        controller = TurnController(create_game(GameConfig(seed=1), players))
        winner = await controller.run(max_turns=500)
    """

    def __init__(self, state: GameState, gateway: Optional[DecisionGateway] = None):
        self.state = state
        self.ledger = Ledger(state)
        self.gateway = gateway or DecisionGateway(state)
        self.auctions = AuctionCoordinator(state, self.ledger, self.gateway)
        self._handlers: Dict[TurnPhase, Handler] = {
            TurnPhase.JAIL_DECISION: self._jail_decision,
            TurnPhase.AWAITING_ROLL: self._awaiting_roll,
            TurnPhase.MOVING: self._moving,
            TurnPhase.RESOLVING_LANDING: self._resolve_landing,
            TurnPhase.PENDING_BUY_DECISION: self._buy_decision,
            TurnPhase.PENDING_AUCTION: self._auction,
            TurnPhase.PENDING_CARD_EFFECT: self._card_effect,
            TurnPhase.BUILD_PHASE: self._build_phase,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def play_turn(self) -> None:
        """
        Play the current player's whole turn, including extra roll cycles
        earned by doubles, then hand over to the next solvent player.
        """
        state = self.state
        if state.game_over:
            raise InvariantViolation("Cannot play a turn after the game is over")

        player = state.get_current_player()
        if player.is_bankrupt:
            raise InvariantViolation(f"Current player {player.player_id} is bankrupt")

        state.log(
            EventType.TURN_START,
            player_id=player.player_id,
            message=f"{player.name}'s turn ({'in jail' if player.in_jail else 'at ' + state.board.get_space(player.position).name})",
            cash=player.cash,
            position=player.position,
        )

        ctx = TurnContext()
        state.phase = TurnPhase.JAIL_DECISION if player.in_jail else TurnPhase.AWAITING_ROLL
        while state.phase not in (TurnPhase.TURN_END, TurnPhase.GAME_OVER):
            handler = self._handlers[state.phase]
            next_phase = await handler(player, ctx)
            if state.game_over:
                break
            state.phase = next_phase

        self._end_turn()

    async def run(self, max_turns: Optional[int] = None) -> Optional[int]:
        """
        Play turns until the game ends or ``max_turns`` turns have been played.

        Returns:
            The winner's player id, or None if the game is still undecided.
        """
        played = 0
        while not self.state.game_over:
            if max_turns is not None and played >= max_turns:
                break
            await self.play_turn()
            played += 1
        return self.state.winner

    # ------------------------------------------------------------------
    # Phase handlers
    # ------------------------------------------------------------------

    async def _jail_decision(self, player: PlayerState, ctx: TurnContext) -> TurnPhase:
        config = self.state.config
        options = jail_options(player.cash, player.get_out_of_jail_cards, config.jail_fine)
        decision = await self.gateway.decide(
            player.player_id,
            DecisionKind.JAIL,
            options,
            context={"jail_turns": player.jail_turns, "fine": config.jail_fine},
            description=f"{player.name} is in jail (attempt {player.jail_turns + 1} of {config.max_jail_turns})",
        )
        choice = decision.action.action_type

        if choice == ActionType.PAY and self.ledger.pay(player.player_id, config.jail_fine, "jail fine"):
            self._release(player, "fine")
            self._roll(player, ctx)
            return TurnPhase.MOVING

        if choice == ActionType.USE_CARD and player.get_out_of_jail_cards > 0:
            player.get_out_of_jail_cards -= 1
            self._release(player, "card")
            self._roll(player, ctx)
            return TurnPhase.MOVING

        roll = self._roll(player, ctx)
        self.state.log(
            EventType.JAIL_ATTEMPT,
            player_id=player.player_id,
            message=f"{player.name} rolled {roll} trying to leave jail",
            attempt=player.jail_turns + 1,
            doubles=roll.is_doubles,
        )
        if roll.is_doubles:
            self._release(player, "doubles")
            return TurnPhase.MOVING

        if player.jail_turns >= config.max_jail_turns - 1:
            if not self.ledger.pay(player.player_id, config.jail_fine, "jail fine"):
                self._bankrupt(player, None)
                return TurnPhase.TURN_END
            self._release(player, "forced fine")
            return TurnPhase.MOVING

        player.jail_turns += 1
        return TurnPhase.TURN_END

    async def _awaiting_roll(self, player: PlayerState, ctx: TurnContext) -> TurnPhase:
        roll = self._roll(player, ctx)
        if not roll.is_doubles:
            ctx.extra_roll = False
            return TurnPhase.MOVING

        self.state.doubles_count += 1
        if self.state.doubles_count >= MAX_CONSECUTIVE_DOUBLES:
            logger.info("Player %s rolled doubles %d times in a row", player.player_id, self.state.doubles_count)
            self._send_to_jail(player, ctx, "three doubles in a row")
            return TurnPhase.TURN_END

        ctx.extra_roll = True
        return TurnPhase.MOVING

    async def _moving(self, player: PlayerState, ctx: TurnContext) -> TurnPhase:
        self._advance(player, ctx.roll.total)
        return TurnPhase.RESOLVING_LANDING

    async def _resolve_landing(self, player: PlayerState, ctx: TurnContext) -> TurnPhase:
        position = player.position
        space = self.state.board.get_space(position)
        self.state.log(
            EventType.LAND,
            player_id=player.player_id,
            message=f"{player.name} landed on {space.name}",
            position=position,
            space=space.name,
        )

        if space.is_ownable:
            return self._resolve_ownable(player, position)

        if isinstance(space, CardSpace):
            card = self.state.get_deck(space.space_type).draw()
            ctx.card = card
            self.state.log(
                EventType.CARD_DRAW,
                player_id=player.player_id,
                message=f"{player.name} drew: {card.description}",
                deck=space.space_type.value,
                card=card.description,
                card_type=card.card_type.value,
            )
            return TurnPhase.PENDING_CARD_EFFECT

        if isinstance(space, TaxSpace):
            if not self.ledger.pay_tax(player.player_id, space.amount, space.name):
                self._bankrupt(player, None)
                return TurnPhase.TURN_END
            return TurnPhase.BUILD_PHASE

        if isinstance(space, GoToJailSpace):
            self._send_to_jail(player, ctx, space.name)
            return TurnPhase.BUILD_PHASE

        if isinstance(space, FreeParkingSpace) and self.state.config.free_parking_jackpot:
            self.ledger.collect_free_parking(player.player_id)

        return TurnPhase.BUILD_PHASE

    def _resolve_ownable(self, player: PlayerState, position: int) -> TurnPhase:
        space = self.state.board.get_ownable_space(position)
        prop = self.state.properties[position]

        if not prop.is_owned():
            if player.cash >= space.price:
                return TurnPhase.PENDING_BUY_DECISION
            return TurnPhase.PENDING_AUCTION

        if prop.owner_id == player.player_id:
            return TurnPhase.BUILD_PHASE

        rent = self.ledger.compute_rent(position)
        if rent > 0:
            paid = self.ledger.transfer(
                player.player_id,
                prop.owner_id,
                rent,
                reason=f"rent on {space.name}",
                event_type=EventType.RENT_PAYMENT,
            )
            if not paid:
                self._bankrupt(player, prop.owner_id)
                return TurnPhase.TURN_END
        return TurnPhase.BUILD_PHASE

    async def _buy_decision(self, player: PlayerState, ctx: TurnContext) -> TurnPhase:
        position = player.position
        space = self.state.board.get_ownable_space(position)
        decision = await self.gateway.decide(
            player.player_id,
            DecisionKind.BUY_OR_AUCTION,
            buy_options(),
            context={"property": space.name, "position": position, "price": space.price},
            description=f"Buy {space.name} for ${space.price} (cash ${player.cash}) or send it to auction",
        )
        if decision.action.action_type == ActionType.BUY and self.ledger.purchase_property(player.player_id, position):
            return TurnPhase.BUILD_PHASE
        return TurnPhase.PENDING_AUCTION

    async def _auction(self, player: PlayerState, ctx: TurnContext) -> TurnPhase:
        await self.auctions.run(player.position)
        return TurnPhase.BUILD_PHASE

    async def _card_effect(self, player: PlayerState, ctx: TurnContext) -> TurnPhase:
        card = ctx.card
        ctx.card = None
        if card is None:
            raise InvariantViolation("Card effect phase without a drawn card")

        pid = player.player_id
        kind = card.card_type

        if kind == CardType.MOVE_TO:
            if card.nearest is not None:
                candidates = (
                    self.state.board.get_all_railroads()
                    if card.nearest == SpaceType.RAILROAD
                    else self.state.board.get_all_utilities()
                )
                destination = self.state.board.find_nearest(player.position, candidates)
            else:
                destination = card.destination
            self._move_to(player, destination, card.collect_go)
            return TurnPhase.RESOLVING_LANDING

        if kind == CardType.MOVE_BY_SPACES:
            self._advance(player, card.value, collect_go=card.collect_go)
            return TurnPhase.RESOLVING_LANDING

        if kind == CardType.PAY_BANK:
            if not self.ledger.pay_tax(pid, card.value, card.description):
                self._bankrupt(player, None)
                return TurnPhase.TURN_END

        elif kind == CardType.COLLECT_FROM_BANK:
            self.ledger.credit(pid, card.value, card.description)

        elif kind == CardType.PAY_EACH_PLAYER:
            others = [p for p in self.state.get_active_players() if p.player_id != pid]
            if player.cash < card.value * len(others):
                self._bankrupt(player, None)
                return TurnPhase.TURN_END
            for other in others:
                self.ledger.transfer(pid, other.player_id, card.value, reason=card.description)

        elif kind == CardType.COLLECT_FROM_EACH_PLAYER:
            for other in self.state.get_active_players():
                if other.player_id == pid:
                    continue
                if not self.ledger.transfer(other.player_id, pid, card.value, reason=card.description):
                    self._bankrupt(other, pid)
            if self.state.game_over:
                return TurnPhase.GAME_OVER

        elif kind == CardType.GO_TO_JAIL:
            self._send_to_jail(player, ctx, card.description)

        elif kind == CardType.GRANT_JAIL_CARD:
            player.get_out_of_jail_cards += 1

        elif kind == CardType.REPAIRS_ASSESSMENT:
            cost = self._repairs_cost(player, card.value)
            if cost > 0 and not self.ledger.pay_tax(pid, cost, card.description):
                self._bankrupt(player, None)
                return TurnPhase.TURN_END

        return TurnPhase.BUILD_PHASE

    async def _build_phase(self, player: PlayerState, ctx: TurnContext) -> TurnPhase:
        positions = self.ledger.buildable_positions(player.player_id)
        if positions:
            decision = await self.gateway.decide(
                player.player_id,
                DecisionKind.BUILD,
                build_options(positions),
                context={"buildable": positions},
                description=f"{player.name} may build on one of {positions}",
            )
            action = decision.action
            if action.action_type == ActionType.BUILD and not self.ledger.build(player.player_id, action.position):
                logger.info("Build on %s by player %s was rejected", action.position, player.player_id)

        if ctx.extra_roll and not player.in_jail and not player.is_bankrupt:
            ctx.roll = None
            ctx.extra_roll = False
            return TurnPhase.AWAITING_ROLL
        return TurnPhase.TURN_END

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _roll(self, player: PlayerState, ctx: TurnContext) -> DiceRoll:
        roll = self.state.dice.roll()
        self.state.last_roll = roll
        ctx.roll = roll
        self.state.log(
            EventType.DICE_ROLL,
            player_id=player.player_id,
            message=f"{player.name} rolled {roll}",
            die1=roll.die1,
            die2=roll.die2,
            total=roll.total,
            doubles=roll.is_doubles,
        )
        return roll

    def _advance(self, player: PlayerState, spaces: int, collect_go: bool = True) -> int:
        """Move a player by ``spaces`` (negative moves backwards, never paying Go)."""
        if player.is_bankrupt:
            raise InvariantViolation(f"Cannot move bankrupt player {player.player_id}")
        old_position = player.position
        new_position = (old_position + spaces) % BOARD_SIZE
        if collect_go and spaces > 0 and old_position + spaces >= BOARD_SIZE:
            self._collect_go_salary(player)
        player.position = new_position
        self.state.log(
            EventType.MOVE,
            player_id=player.player_id,
            message=f"{player.name} moved to {self.state.board.get_space(new_position).name}",
            **{"from": old_position, "to": new_position, "spaces": spaces},
        )
        return new_position

    def _collect_go_salary(self, player: PlayerState) -> None:
        self.ledger.credit(
            player.player_id, self.state.config.go_salary, "passing GO", event_type=EventType.PASS_GO
        )

    def _move_to(self, player: PlayerState, destination: int, collect_go: bool = True) -> None:
        """Relocate a player forward to ``destination``."""
        if player.is_bankrupt:
            raise InvariantViolation(f"Cannot move bankrupt player {player.player_id}")
        old_position = player.position
        if collect_go and destination < old_position:
            self._collect_go_salary(player)
        player.position = destination
        self.state.log(
            EventType.MOVE,
            player_id=player.player_id,
            message=f"{player.name} moved to {self.state.board.get_space(destination).name}",
            **{"from": old_position, "to": destination, "direct": True},
        )

    def _send_to_jail(self, player: PlayerState, ctx: TurnContext, reason: str) -> None:
        player.position = JAIL_POSITION
        player.in_jail = True
        player.jail_turns = 0
        self.state.doubles_count = 0
        ctx.extra_roll = False
        self.state.log(
            EventType.GO_TO_JAIL,
            player_id=player.player_id,
            message=f"{player.name} was sent to jail ({reason})",
            reason=reason,
        )

    def _release(self, player: PlayerState, method: str) -> None:
        player.in_jail = False
        player.jail_turns = 0
        self.state.log(
            EventType.JAIL_RELEASE,
            player_id=player.player_id,
            message=f"{player.name} left jail ({method})",
            method=method,
        )

    def _repairs_cost(self, player: PlayerState, per_house: int) -> int:
        per_hotel = per_house * self.state.config.repairs_hotel_multiplier
        total = 0
        for pos in player.properties:
            prop = self.state.properties[pos]
            total += per_hotel if prop.has_hotel else per_house * prop.houses
        return total

    def _bankrupt(self, player: PlayerState, creditor_id: Optional[int]) -> None:
        self.ledger.settle_bankruptcy(player.player_id, creditor_id)
        self.state.check_winner()

    def _end_turn(self) -> None:
        state = self.state
        state.doubles_count = 0
        if state.game_over:
            return

        state.phase = TurnPhase.TURN_END
        count = len(state.turn_order)
        index = state.current_player_index
        for _ in range(count):
            index = (index + 1) % count
            if not state.players[state.turn_order[index]].is_bankrupt:
                break
        state.current_player_index = index
        state.turn_number += 1

        limit = state.config.time_limit_turns
        if limit is not None and state.turn_number > limit:
            self._finish_on_time()
            return

        next_player = state.get_current_player()
        state.phase = TurnPhase.JAIL_DECISION if next_player.in_jail else TurnPhase.AWAITING_ROLL

    def _finish_on_time(self) -> None:
        """Decide the game by net worth when the turn limit runs out."""
        state = self.state
        active = state.get_active_players()
        best = max(active, key=lambda p: (self.ledger.net_worth(p.player_id), -state.turn_order.index(p.player_id)))
        state.winner = best.player_id
        state.finish(f"turn limit of {state.config.time_limit_turns} reached")
