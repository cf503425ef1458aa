"""
Game state aggregate.

``GameState`` is a plain container passed by reference to the Ledger, the
Auction Coordinator and the Turn Controller. Only the Turn Controller's
control flow mutates it.
"""

import logging
import random
from enum import Enum
from typing import Dict, List, Optional

from monopoly.auction_state import AuctionState
from monopoly.board import Board
from monopoly.cards import Deck, create_chance_deck, create_community_chest_deck
from monopoly.config import GameConfig
from monopoly.dice import Dice, DiceRoll
from monopoly.events import EventLog, EventType, GameEvent
from monopoly.player import Player, PlayerState, PropertyState
from monopoly.spaces import SpaceType

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2
MAX_PLAYERS = 8


class TurnPhase(Enum):
    """Pending-action marker for the current player's turn."""

    AWAITING_ROLL = "awaiting_roll"
    JAIL_DECISION = "jail_decision"
    MOVING = "moving"
    RESOLVING_LANDING = "resolving_landing"
    PENDING_BUY_DECISION = "pending_buy_decision"
    PENDING_AUCTION = "pending_auction"
    PENDING_CARD_EFFECT = "pending_card_effect"
    BUILD_PHASE = "build_phase"
    TURN_END = "turn_end"
    GAME_OVER = "game_over"


class GameState:
    """
    Represents the complete state of a Monopoly game.
    """

    def __init__(self, config: GameConfig, players: List[Player]):
        if not MIN_PLAYERS <= len(players) <= MAX_PLAYERS:
            raise ValueError(f"A game needs {MIN_PLAYERS}-{MAX_PLAYERS} players, got {len(players)}")
        ids = [p.player_id for p in players]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate player ids: {ids}")

        self.config = config
        self.board = Board()
        self.event_log = EventLog(config.log_capacity)

        # Single RNG drives dice and deck shuffles so a seed replays a game
        self.rng = random.Random(config.seed)
        self.dice = Dice(self.rng)

        # Table order is the order of the configuration list
        self.turn_order: List[int] = ids
        self.players: Dict[int, PlayerState] = {}
        for player in players:
            self.players[player.player_id] = PlayerState(
                player.player_id,
                player.name,
                config.starting_cash,
                color=player.color,
                provider=player.provider,
            )

        self.properties: Dict[int, PropertyState] = {
            pos: PropertyState() for pos in self.board.get_ownable_positions()
        }

        self.chance_deck: Deck = create_chance_deck(self.rng, config.reshuffle_on_wrap)
        self.community_chest_deck: Deck = create_community_chest_deck(self.rng, config.reshuffle_on_wrap)

        self.current_player_index = 0
        self.phase = TurnPhase.AWAITING_ROLL
        self.auction: Optional[AuctionState] = None
        self.free_parking_pot = 0
        self.turn_number = 1
        self.doubles_count = 0
        self.last_roll: Optional[DiceRoll] = None
        self.game_over = False
        self.winner: Optional[int] = None

        self.log(
            EventType.GAME_START,
            message=f"Game started with {len(players)} players",
            players=[p.name for p in players],
            starting_cash=config.starting_cash,
            seed=config.seed,
        )

    def log(
        self,
        event_type: EventType,
        player_id: Optional[int] = None,
        message: str = "",
        **details,
    ) -> GameEvent:
        """Append an event tagged with the current turn number."""
        logger.debug("T%d %s: %s", self.turn_number, event_type.value, message)
        return self.event_log.log(self.turn_number, event_type, player_id, message, **details)

    def get_current_player(self) -> PlayerState:
        """Get the current active player."""
        return self.players[self.turn_order[self.current_player_index]]

    def get_active_players(self) -> List[PlayerState]:
        """Get all non-bankrupt players in table order."""
        return [self.players[pid] for pid in self.turn_order if not self.players[pid].is_bankrupt]

    def get_deck(self, space_type: SpaceType) -> Deck:
        if space_type == SpaceType.CHANCE:
            return self.chance_deck
        if space_type == SpaceType.COMMUNITY_CHEST:
            return self.community_chest_deck
        raise ValueError(f"No deck for space type {space_type}")

    def total_money(self) -> int:
        """Cash held by all players plus the free-parking pot."""
        return sum(p.cash for p in self.players.values()) + self.free_parking_pot

    def check_winner(self) -> Optional[int]:
        """
        End the game if a single solvent player remains.

        Returns:
            The winner's id, or None while the game continues.
        """
        active = self.get_active_players()
        if len(active) <= 1 and not self.game_over:
            self.winner = active[0].player_id if active else None
            self.finish("last player standing")
        return self.winner

    def finish(self, reason: str) -> None:
        self.game_over = True
        self.phase = TurnPhase.GAME_OVER
        winner_name = self.players[self.winner].name if self.winner is not None else "nobody"
        self.log(
            EventType.GAME_END,
            player_id=self.winner,
            message=f"Game over ({reason}): {winner_name} wins",
            reason=reason,
            winner=self.winner,
        )
        logger.info("Game over after %d turns (%s), winner=%s", self.turn_number, reason, self.winner)


def create_game(config: GameConfig, players: List[Player]) -> GameState:
    """
    Create a new game.

    Args:
        config: Game configuration
        players: List of 2-8 players, in table order

    Returns:
        New game state
    """
    return GameState(config, players)
