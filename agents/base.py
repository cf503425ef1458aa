"""Base class for all Monopoly agents."""

from abc import abstractmethod

from monopoly.decisions import DecisionProvider, DecisionRequest, DecisionResponse


class Agent(DecisionProvider):
    """
    Abstract base class for Monopoly agents.

    All agents must implement the `decide` coroutine to select one of
    the legal option tokens in a decision request.

    Attributes:
        player_id: The player's id in the game.
        name: The player's display name.
    """

    def __init__(self, player_id: int, name: str):
        """
        Initialize the agent.

        Args:
            player_id: The player's id in the game.
            name: The player's display name.
        """
        self.player_id = player_id
        self.name = name

    @abstractmethod
    async def decide(self, request: DecisionRequest) -> DecisionResponse:
        """
        Choose an action from the legal options.

        Args:
            request: Decision kind, legal option tokens, snapshot and context.

        Returns:
            The chosen action token with reasoning.
        """

    def me(self, request: DecisionRequest) -> dict:
        """This agent's entry in the request snapshot."""
        for player in request.snapshot.get("players", []):
            if player["player_id"] == self.player_id:
                return player
        return {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(player_id={self.player_id}, name='{self.name}')"
