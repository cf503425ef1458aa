"""
Environment-based configuration using pydantic-settings.

This module provides typed access to:
- LLM provider endpoints and sampling parameters (prefix ``LLM_``)
- Engine rules and house-rule policies (prefix ``MONOPOLY_``)
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from monopoly.config import GameConfig


class LLMProvider(str, Enum):
    """Supported LLM backends."""

    OPENROUTER = "openrouter"
    OLLAMA = "ollama"
    VLLM = "vllm"
    OPENAI = "openai"
    CUSTOM = "custom"


DEFAULT_BASE_URLS = {
    LLMProvider.OPENROUTER: "https://openrouter.ai/api/v1",
    LLMProvider.OLLAMA: "http://localhost:11434/v1",
    LLMProvider.VLLM: "http://localhost:8000/v1",
    LLMProvider.OPENAI: "https://api.openai.com/v1",
}


def _env_config(prefix: str) -> SettingsConfigDict:
    """Case-insensitive variables under ``prefix``, optionally from a local .env file."""
    return SettingsConfigDict(env_prefix=prefix, env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")


class LLMSettings(BaseSettings):
    """
    Configuration for LLM provider endpoints and models.

    Environment variables (prefix: LLM_):
        LLM_PROVIDER        - openrouter | ollama | vllm | openai | custom (default: openrouter)
        LLM_BASE_URL        - Base URL for OpenAI-compatible API
        LLM_MODEL           - Model name or identifier
        LLM_API_KEY         - Optional API key for authenticated providers
        LLM_TIMEOUT_SECONDS - Request timeout in seconds (default: 30)
        LLM_MAX_TOKENS      - Max response tokens (default: 1000)
        LLM_TEMPERATURE     - Sampling temperature (default: 0.7)
        LLM_MAX_ATTEMPTS    - Requests per decision, including retries (default: 2)
    """

    model_config = _env_config("LLM_")

    provider: LLMProvider = Field(
        default=LLMProvider.OPENROUTER,
        description="LLM backend to use.",
    )
    base_url: Optional[str] = Field(
        default=None,
        validate_default=True,
        description="Base URL for OpenAI-compatible API, e.g. https://openrouter.ai/api/v1.",
    )
    model: str = Field(
        default="openai/gpt-4o-mini",
        description="Model name or identifier.",
    )
    api_key: Optional[SecretStr] = Field(
        default=None,
        description="API key for providers that require authentication.",
    )
    timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP request timeout in seconds.")
    max_tokens: int = Field(default=1000, gt=0, description="Maximum number of tokens to generate.")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_attempts: int = Field(default=2, ge=1, description="Requests per decision, including retries.")

    @field_validator("base_url", mode="before")
    @classmethod
    def default_base_url(cls, value: Optional[str], info):
        """
        Provide defaults for base_url depending on the provider.
        ``custom`` must be configured explicitly.
        """
        if value:
            return value

        provider = info.data.get("provider", LLMProvider.OPENROUTER)
        if isinstance(provider, str):
            try:
                provider = LLMProvider(provider)
            except ValueError:
                provider = LLMProvider.OPENROUTER

        return DEFAULT_BASE_URLS.get(provider, value)


class EngineSettings(BaseSettings):
    """
    Engine rules loaded from the environment.

    Environment variables (prefix: MONOPOLY_), e.g.:
        MONOPOLY_SEED                     - RNG seed (default: random)
        MONOPOLY_DECISION_TIMEOUT_SECONDS - Per-decision deadline (default: 30)
        MONOPOLY_MAX_JAIL_TURNS           - Failed escape rolls before the fine is forced (default: 3)
        MONOPOLY_FREE_PARKING_JACKPOT     - Collect taxes into a Free Parking pot (default: true)
    """

    model_config = _env_config("MONOPOLY_")

    starting_cash: int = Field(default=1500, ge=0)
    go_salary: int = Field(default=200, ge=0)
    jail_fine: int = Field(default=50, ge=0)
    max_jail_turns: int = Field(default=3, ge=1)
    mortgage_interest_percent: int = Field(default=10, ge=0)
    repairs_hotel_multiplier: int = Field(default=4, ge=0)
    decision_timeout_seconds: float = Field(default=30.0, gt=0)
    auction_round_cap: int = Field(default=20, ge=1)
    log_capacity: int = Field(default=100, ge=1)
    time_limit_turns: Optional[int] = Field(default=None, ge=1)
    seed: Optional[int] = None

    free_parking_jackpot: bool = True
    reshuffle_on_wrap: bool = False
    enforce_even_building: bool = False

    def to_game_config(self, **overrides) -> GameConfig:
        """Build a GameConfig, letting explicit keyword overrides win."""
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return GameConfig(**values)


@lru_cache
def get_llm_settings() -> LLMSettings:
    """Return cached LLM settings instance."""
    return LLMSettings()


@lru_cache
def get_engine_settings() -> EngineSettings:
    """Return cached engine settings instance."""
    return EngineSettings()
