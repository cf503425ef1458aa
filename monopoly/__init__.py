"""
Monopoly Rules Engine

A deterministic implementation of Monopoly rules whose decisions are
delegated to pluggable, possibly remote, decision providers.
"""

from .actions import Action, ActionType, DecisionKind
from .auction import AuctionCoordinator
from .board import Board
from .config import GameConfig
from .controller import TurnController
from .decisions import Decision, DecisionGateway, DecisionProvider, DecisionRequest, DecisionResponse
from .events import EventLog, EventType, GameEvent
from .exceptions import DecisionError, InvalidActionError, InvariantViolation, LLMError, MonopolyError
from .game import GameState, TurnPhase, create_game
from .ledger import Ledger
from .player import Player, PlayerState, PropertyState
from .snapshot import serialize_snapshot

__all__ = [
    "Action",
    "ActionType",
    "AuctionCoordinator",
    "Board",
    "Decision",
    "DecisionError",
    "DecisionGateway",
    "DecisionKind",
    "DecisionProvider",
    "DecisionRequest",
    "DecisionResponse",
    "EventLog",
    "EventType",
    "GameConfig",
    "GameEvent",
    "GameState",
    "InvalidActionError",
    "InvariantViolation",
    "LLMError",
    "Ledger",
    "MonopolyError",
    "Player",
    "PlayerState",
    "PropertyState",
    "TurnController",
    "TurnPhase",
    "create_game",
    "serialize_snapshot",
]
