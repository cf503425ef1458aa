"""Shared test fixtures for the Monopoly engine tests."""

import asyncio
import time
from collections import deque
from typing import Callable, Iterable, List, Optional, Tuple

import pytest

from monopoly.config import GameConfig
from monopoly.controller import TurnController
from monopoly.decisions import DecisionProvider, DecisionRequest, DecisionResponse
from monopoly.dice import Dice, DiceRoll
from monopoly.game import GameState, create_game
from monopoly.ledger import Ledger
from monopoly.player import Player


class ScriptedDice(Dice):
    """Dice that return predetermined rolls."""

    def __init__(self, rolls: Iterable[Tuple[int, int]]):
        super().__init__(rng=None)
        self._rolls = deque(rolls)

    def roll(self) -> DiceRoll:
        if not self._rolls:
            raise RuntimeError("No more scripted rolls available")
        return DiceRoll(*self._rolls.popleft())

    @property
    def remaining(self) -> int:
        return len(self._rolls)


class ScriptedProvider(DecisionProvider):
    """Provider which answers with predetermined action tokens.

    Entries may be tokens, DecisionResponse/dict replies, or callables taking
    the request. When the script runs out, ``default`` answers (or the call
    fails, which the gateway turns into a fallback).
    """

    def __init__(self, actions: Iterable = (), default=None):
        self._queue = deque(actions)
        self.default = default
        self.requests: List[DecisionRequest] = []

    async def decide(self, request: DecisionRequest):
        self.requests.append(request)
        if self._queue:
            action = self._queue.popleft()
        elif self.default is not None:
            action = self.default
        else:
            raise RuntimeError("No more scripted actions available")
        if callable(action):
            action = action(request)
        if isinstance(action, (DecisionResponse, dict)):
            return action
        return DecisionResponse(action=action, reasoning="scripted", confidence=0.9)


class SyncProvider(DecisionProvider):
    """Provider whose ``decide`` is a plain method returning a dict."""

    def __init__(self, token: str):
        self.token = token

    def decide(self, request: DecisionRequest):
        return {"action": self.token, "reasoning": "sync"}


class BlockingProvider(DecisionProvider):
    """Plain-method provider that blocks its thread before answering."""

    def __init__(self, delay: float, token: str = "buy"):
        self.delay = delay
        self.token = token

    def decide(self, request: DecisionRequest):
        time.sleep(self.delay)
        return {"action": self.token, "reasoning": "blocked"}


class SlowProvider(DecisionProvider):
    """Provider that never answers within any reasonable timeout."""

    def __init__(self, delay: float = 10.0, token: str = "buy"):
        self.delay = delay
        self.token = token
        self.cancelled = False

    async def decide(self, request: DecisionRequest):
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return DecisionResponse(action=self.token)


class FailingProvider(DecisionProvider):
    """Provider that always raises."""

    async def decide(self, request: DecisionRequest):
        raise RuntimeError("provider exploded")


def first_option(request: DecisionRequest) -> str:
    return request.options[0]


@pytest.fixture
def game_config():
    """Default game configuration with fixed seed for reproducibility."""
    return GameConfig(seed=42)


@pytest.fixture
def two_players():
    """Two test players without providers."""
    return [Player(0, "Alice"), Player(1, "Bob")]


@pytest.fixture
def four_players():
    """Four test players without providers."""
    return [
        Player(0, "Alice"),
        Player(1, "Bob"),
        Player(2, "Charlie"),
        Player(3, "Diana"),
    ]


@pytest.fixture
def basic_game(game_config, two_players) -> GameState:
    """Basic game with two players and fixed seed."""
    return create_game(game_config, two_players)


@pytest.fixture
def four_player_game(game_config, four_players) -> GameState:
    """Game with four players and fixed seed."""
    return create_game(game_config, four_players)


@pytest.fixture
def ledger(basic_game) -> Ledger:
    return Ledger(basic_game)


@pytest.fixture
def make_game() -> Callable[..., GameState]:
    """Factory for games whose players use the given providers.

    Example:
        game = make_game([ScriptedProvider(["buy"]), None], rolls=[(1, 2)])
    """

    def _factory(
        providers: List[Optional[DecisionProvider]],
        rolls: Optional[Iterable[Tuple[int, int]]] = None,
        **config_overrides,
    ) -> GameState:
        names = ["Alice", "Bob", "Charlie", "Diana", "Eve", "Frank", "Grace", "Hank"]
        players = [Player(i, names[i], provider=p) for i, p in enumerate(providers)]
        config = GameConfig(seed=config_overrides.pop("seed", 42), **config_overrides)
        game = create_game(config, players)
        if rolls is not None:
            game.dice = ScriptedDice(rolls)
        return game

    return _factory


@pytest.fixture
def make_controller(make_game) -> Callable[..., TurnController]:
    """Factory for a TurnController over a freshly made game."""

    def _factory(providers, rolls=None, **config_overrides) -> TurnController:
        return TurnController(make_game(providers, rolls, **config_overrides))

    return _factory


def give_properties(game: GameState, player_id: int, *positions: int) -> None:
    """Hand properties to a player for free (test setup only)."""
    player = game.players[player_id]
    for pos in positions:
        game.properties[pos].owner_id = player_id
        player.properties.add(pos)
