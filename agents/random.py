"""Random agent that makes random legal moves."""

import random
from typing import Optional

from monopoly.decisions import DecisionRequest, DecisionResponse

from agents.base import Agent


class RandomAgent(Agent):
    """
    Simple AI that picks uniformly among the legal options.

    Seeded per player so simulations replay exactly.
    """

    def __init__(self, player_id: int, name: str, seed: Optional[int] = None):
        """
        Initialize the random agent.

        Args:
            player_id: The player's id in the game.
            name: The player's display name.
            seed: RNG seed; defaults to the player id.
        """
        super().__init__(player_id, name)
        self.rng = random.Random(player_id if seed is None else seed)

    async def decide(self, request: DecisionRequest) -> DecisionResponse:
        token = self.rng.choice(request.options)
        return DecisionResponse(action=token, reasoning="random choice", confidence=1.0 / len(request.options))
