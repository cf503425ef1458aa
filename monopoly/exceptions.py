"""
Custom exception hierarchy for the Monopoly engine and its agents.

Rule violations requested by a player (buying without cash, building without
a monopoly) are not exceptions: the Ledger reports them by returning False.
"""


class MonopolyError(Exception):
    """Base exception for all game-related errors."""


class InvalidActionError(MonopolyError):
    """Action token cannot be parsed or is not legal in the current state."""


class DecisionError(MonopolyError):
    """Decision provider returned a reply that does not match the contract."""


class LLMError(MonopolyError):
    """LLM agent communication failed."""


class InvariantViolation(MonopolyError):
    """Engine reached a state that correct operation never produces."""
