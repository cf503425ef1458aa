"""
Tests for environment-driven settings and game configuration.
"""

import pytest

from monopoly.config import GameConfig
from monopoly.settings import (
    EngineSettings,
    LLMProvider,
    LLMSettings,
    get_engine_settings,
    get_llm_settings,
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_llm_settings.cache_clear()
    get_engine_settings.cache_clear()
    yield
    get_llm_settings.cache_clear()
    get_engine_settings.cache_clear()


def test_llm_settings_from_environment(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "ollama")
    monkeypatch.setenv("LLM_MODEL", "llama3")
    monkeypatch.setenv("LLM_TEMPERATURE", "0.2")
    monkeypatch.setenv("LLM_API_KEY", "secret")

    settings = get_llm_settings()

    assert settings.provider == LLMProvider.OLLAMA
    assert settings.base_url == "http://localhost:11434/v1"
    assert settings.model == "llama3"
    assert settings.temperature == 0.2
    assert settings.api_key.get_secret_value() == "secret"
    assert "secret" not in repr(settings)


def test_llm_settings_are_cached():
    assert get_llm_settings() is get_llm_settings()


def test_llm_settings_validation():
    with pytest.raises(ValueError):
        LLMSettings(_env_file=None, temperature=3.0)
    with pytest.raises(ValueError):
        LLMSettings(_env_file=None, max_attempts=0)


def test_engine_settings_to_game_config(monkeypatch):
    monkeypatch.setenv("MONOPOLY_SEED", "7")
    monkeypatch.setenv("MONOPOLY_FREE_PARKING_JACKPOT", "false")
    monkeypatch.setenv("MONOPOLY_DECISION_TIMEOUT_SECONDS", "2.5")

    config = get_engine_settings().to_game_config()

    assert isinstance(config, GameConfig)
    assert config.seed == 7
    assert config.free_parking_jackpot is False
    assert config.decision_timeout_seconds == 2.5
    assert config.starting_cash == 1500


def test_explicit_overrides_win_and_none_is_ignored(monkeypatch):
    monkeypatch.setenv("MONOPOLY_SEED", "7")

    config = get_engine_settings().to_game_config(seed=11, decision_timeout_seconds=None)

    assert config.seed == 11
    assert config.decision_timeout_seconds == 30.0


def test_jail_mortgage_and_repairs_rules_from_env(monkeypatch):
    monkeypatch.setenv("MONOPOLY_MAX_JAIL_TURNS", "2")
    monkeypatch.setenv("MONOPOLY_MORTGAGE_INTEREST_PERCENT", "20")
    monkeypatch.setenv("MONOPOLY_REPAIRS_HOTEL_MULTIPLIER", "5")

    config = get_engine_settings().to_game_config()

    assert config.max_jail_turns == 2
    assert config.mortgage_interest_percent == 20
    assert config.repairs_hotel_multiplier == 5


def test_jail_mortgage_and_repairs_rules_default():
    config = EngineSettings(_env_file=None).to_game_config()

    assert config.max_jail_turns == 3
    assert config.mortgage_interest_percent == 10
    assert config.repairs_hotel_multiplier == 4


def test_engine_settings_rejects_zero_jail_turns():
    with pytest.raises(ValueError):
        EngineSettings(_env_file=None, max_jail_turns=0)


def test_engine_settings_validation():
    with pytest.raises(ValueError):
        EngineSettings(_env_file=None, auction_round_cap=0)


def test_game_config_defaults():
    config = GameConfig()
    assert config.starting_cash == 1500
    assert config.go_salary == 200
    assert config.jail_fine == 50
    assert config.max_jail_turns == 3
    assert config.log_capacity == 100
    assert config.decision_timeout_seconds == 30.0
    assert not config.reshuffle_on_wrap
    assert not config.enforce_even_building


@pytest.mark.parametrize(
    "field,value",
    [
        ("starting_cash", -1),
        ("decision_timeout_seconds", 0),
        ("auction_round_cap", 0),
        ("log_capacity", 0),
        ("max_jail_turns", 0),
    ],
)
def test_game_config_rejects_bad_values(field, value):
    with pytest.raises(ValueError):
        GameConfig(**{field: value})
