from agents.base import Agent
from agents.greedy import GreedyAgent
from agents.llm import LLMAgent
from agents.random import RandomAgent

__all__ = [
    "Agent",
    "RandomAgent",
    "GreedyAgent",
    "LLMAgent",
]
