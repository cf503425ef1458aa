"""
Tests for the simulation CLI.
"""

import json

import pytest

from agents import GreedyAgent, RandomAgent
from monopoly.settings import get_engine_settings
from play_monopoly import build_players, parse_args, simulate_game


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_engine_settings.cache_clear()
    yield
    get_engine_settings.cache_clear()


def test_build_players():
    players = build_players(3, "random")
    assert [p.name for p in players] == ["Alice", "Bob", "Charlie"]
    assert all(isinstance(p.provider, RandomAgent) for p in players)
    assert isinstance(build_players(2, "greedy")[1].provider, GreedyAgent)


@pytest.mark.asyncio
async def test_simulate_game_ends_within_turn_limit(tmp_path):
    log_file = tmp_path / "events.jsonl"

    game = await simulate_game(
        num_players=3, agent_type="greedy", seed=5, verbose=False, max_turns=30, log_file=str(log_file)
    )

    assert game.game_over
    assert game.winner is not None
    assert game.turn_number <= 31

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == len(game.event_log)
    last = json.loads(lines[-1])
    assert last["event_type"] == "game_end"


@pytest.mark.asyncio
async def test_simulate_game_prints_summary(capsys):
    await simulate_game(num_players=2, agent_type="random", seed=3, verbose=True, max_turns=5)

    out = capsys.readouterr().out
    assert "Starting game with 2 players using random agents" in out
    assert "Standings by net worth:" in out


def test_parse_args_defaults_and_overrides():
    args = parse_args([])
    assert (args.players, args.agent, args.max_turns, args.log_level) == (4, "greedy", 1000, "WARNING")

    args = parse_args(["--players", "6", "--agent", "llm", "--seed", "9", "--timeout", "2.5", "--quiet"])
    assert args.players == 6
    assert args.agent == "llm"
    assert args.seed == 9
    assert args.timeout == 2.5
    assert args.quiet


def test_parse_args_rejects_bad_player_count():
    with pytest.raises(SystemExit):
        parse_args(["--players", "9"])
