"""Greedy agent that prefers buying properties and building."""

from typing import Optional

from monopoly.actions import Action, ActionType, DecisionKind
from monopoly.decisions import DecisionRequest, DecisionResponse

from agents.base import Agent


class GreedyAgent(Agent):
    """
    Deterministic heuristic player.

    Buys and builds whenever it keeps at least ``cash_reserve`` in hand,
    bids up to the list price within the same reserve, and leaves jail
    with a card if it holds one.
    """

    def __init__(self, player_id: int, name: str, cash_reserve: int = 200):
        """
        Initialize the greedy agent.

        Args:
            player_id: The player's id in the game.
            name: The player's display name.
            cash_reserve: Cash the agent tries to keep after any purchase.
        """
        super().__init__(player_id, name)
        self.cash_reserve = cash_reserve

    async def decide(self, request: DecisionRequest) -> DecisionResponse:
        cash = self.me(request).get("cash", 0)
        handler = {
            DecisionKind.JAIL: self._jail,
            DecisionKind.BUY_OR_AUCTION: self._buy,
            DecisionKind.AUCTION_BID: self._bid,
            DecisionKind.BUILD: self._build,
        }[request.kind]
        token, reasoning = handler(request, cash)
        return DecisionResponse(action=token, reasoning=reasoning, confidence=1.0)

    def _jail(self, request: DecisionRequest, cash: int):
        if "useCard" in request.options:
            return "useCard", "Using Get Out of Jail Free card"
        if "pay" in request.options and cash - request.context.get("fine", 50) >= self.cash_reserve * 2:
            return "pay", "Paying the fine to keep moving"
        return "roll", "Trying for doubles"

    def _buy(self, request: DecisionRequest, cash: int):
        price = request.context.get("price", 0)
        if cash - price >= self.cash_reserve:
            return "buy", f"Buying for ${price}, keeping ${cash - price}"
        return "auction", f"${price} would leave less than ${self.cash_reserve} in reserve"

    def _bid(self, request: DecisionRequest, cash: int):
        budget = min(request.context.get("price", 0), cash - self.cash_reserve)
        best: Optional[Action] = None
        for token in request.options:
            action = Action.parse(token)
            if action.action_type == ActionType.BID and action.amount <= budget:
                if best is None or action.amount < best.amount:
                    best = action
        if best is None:
            return "pass", f"Budget ${budget} exhausted"
        return best.token, f"Bidding ${best.amount} within budget ${budget}"

    def _build(self, request: DecisionRequest, cash: int):
        builds = [t for t in request.options if t.startswith("build_")]
        if builds and cash >= self.cash_reserve * 2:
            return builds[0], "Developing a monopoly"
        return "skip", "Holding cash"
