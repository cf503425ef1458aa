"""
Decision boundary between the rules engine and decision providers.

The engine never trusts a provider: every reply is bounded by a timeout,
validated against the legal options, and replaced by a conservative
default when it cannot be used.
"""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from monopoly.actions import DEFAULT_ACTIONS, Action, ActionType, DecisionKind, tokens
from monopoly.events import EventType
from monopoly.exceptions import DecisionError, InvalidActionError, InvariantViolation
from monopoly.game import GameState
from monopoly.snapshot import serialize_snapshot

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.1
FALLBACK_REASONING = "Fallback decision due to provider error"
CORRECTED_SUFFIX = " (action corrected to valid option)"


class DecisionResponse(BaseModel):
    """Reply from a decision provider."""

    model_config = ConfigDict(extra="ignore")

    action: str = Field(min_length=1)
    reasoning: str = ""
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)


@dataclass
class DecisionRequest:
    """Everything a provider gets to see for one decision."""

    kind: DecisionKind
    player_id: int
    options: List[str]
    snapshot: Dict[str, Any]
    context: Dict[str, Any] = field(default_factory=dict)
    description: str = ""


@dataclass
class Decision:
    """A validated decision the engine can apply."""

    action: Action
    reasoning: str = ""
    confidence: Optional[float] = None
    degraded: bool = False


class DecisionProvider(ABC):
    """
    Source of decisions for one player.

    ``decide`` may be a plain method or a coroutine. Coroutines are awaited
    under the decision timeout; plain methods run on a worker thread under
    the same timeout.
    """

    @abstractmethod
    def decide(
        self, request: DecisionRequest
    ) -> Union[DecisionResponse, Dict[str, Any], Awaitable[Union[DecisionResponse, Dict[str, Any]]]]:
        """
        Choose one of ``request.options``.

        Args:
            request: Decision kind, legal option tokens and a state snapshot.

        Returns:
            A DecisionResponse (or an equivalent dict).
        """


def default_action(kind: DecisionKind, options: List[Action]) -> Action:
    """The conservative choice for a decision point, if it is legal."""
    preferred = DEFAULT_ACTIONS[kind]
    return preferred if preferred in options else options[0]


def _is_legal(action: Action, options: List[Action]) -> bool:
    # Any bid is acceptable here; the auction enforces the amount
    if action.action_type == ActionType.BID:
        return any(o.action_type == ActionType.BID for o in options)
    return action in options


class DecisionGateway:
    """
    Asks a player's provider for a decision, one call at a time.

    Timeouts, provider exceptions and malformed replies resolve to the
    default action for the decision kind with confidence 0.1. A reply
    naming an action outside the options resolves to the first option and
    is marked degraded as well.
    """

    def __init__(self, state: GameState, timeout: Optional[float] = None):
        self.state = state
        self.timeout = timeout if timeout is not None else state.config.decision_timeout_seconds
        self._in_flight = False

    async def decide(
        self,
        player_id: int,
        kind: DecisionKind,
        options: List[Action],
        context: Optional[Dict[str, Any]] = None,
        description: str = "",
    ) -> Decision:
        if not options:
            raise InvariantViolation(f"No legal options for {kind.value} decision of player {player_id}")
        if self._in_flight:
            raise InvariantViolation("A decision is already outstanding")

        player = self.state.players[player_id]
        provider = player.provider

        if provider is None:
            decision = Decision(default_action(kind, options), "No decision provider", None)
        else:
            request = DecisionRequest(
                kind=kind,
                player_id=player_id,
                options=tokens(options),
                snapshot=serialize_snapshot(self.state),
                context=dict(context or {}),
                description=description,
            )
            self._in_flight = True
            try:
                decision = await self._ask(provider, request, options)
            finally:
                self._in_flight = False

        self.state.log(
            EventType.DECISION,
            player_id=player_id,
            message=f"{player.name} chose {decision.action.token}" + (" (fallback)" if decision.degraded else ""),
            kind=kind.value,
            action=decision.action.token,
            options=tokens(options),
            reasoning=decision.reasoning,
            confidence=decision.confidence,
            degraded=decision.degraded,
        )
        return decision

    async def _ask(self, provider: DecisionProvider, request: DecisionRequest, options: List[Action]) -> Decision:
        try:
            reply = await self._call(provider, request)
            response = self._coerce(reply)
        except asyncio.TimeoutError:
            logger.warning(
                "Decision timeout after %.1fs for player %s (%s)",
                self.timeout, request.player_id, request.kind.value,
            )
            return self._fallback(request.kind, options, f"timed out after {self.timeout}s")
        except (ValidationError, DecisionError) as e:
            logger.warning("Malformed decision from player %s: %s", request.player_id, e)
            return self._fallback(request.kind, options, "malformed response")
        except Exception as e:
            logger.warning("Decision provider error for player %s: %s", request.player_id, e)
            return self._fallback(request.kind, options, str(e))

        try:
            action = Action.parse(response.action)
        except InvalidActionError:
            action = None

        if action is None or not _is_legal(action, options):
            logger.warning(
                "Player %s chose %r outside %s; using %s",
                request.player_id, response.action, request.options, options[0].token,
            )
            return Decision(options[0], response.reasoning + CORRECTED_SUFFIX, response.confidence, degraded=True)

        logger.info("Player %s decided %s (%s)", request.player_id, action.token, request.kind.value)
        return Decision(action, response.reasoning, response.confidence)

    async def _call(self, provider: DecisionProvider, request: DecisionRequest) -> Any:
        if inspect.iscoroutinefunction(provider.decide):
            return await asyncio.wait_for(provider.decide(request), timeout=self.timeout)
        # Blocking providers run on a worker thread so the deadline still applies
        result = await asyncio.wait_for(asyncio.to_thread(provider.decide, request), timeout=self.timeout)
        if inspect.isawaitable(result):
            result = await asyncio.wait_for(result, timeout=self.timeout)
        return result

    def _coerce(self, reply: Any) -> DecisionResponse:
        if isinstance(reply, DecisionResponse):
            return reply
        if isinstance(reply, dict):
            return DecisionResponse.model_validate(reply)
        raise DecisionError(f"Unsupported reply type {type(reply).__name__}")

    def _fallback(self, kind: DecisionKind, options: List[Action], why: str) -> Decision:
        return Decision(
            default_action(kind, options),
            f"{FALLBACK_REASONING}: {why}",
            FALLBACK_CONFIDENCE,
            degraded=True,
        )
