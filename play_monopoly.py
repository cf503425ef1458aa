#!/usr/bin/env python3
"""
Command-line simulator.

Plays one game between greedy, random or LLM-backed players through the
turn controller, printing the table every ten turns and the standings at
the end.
"""

import argparse
import asyncio
import json
import logging
from typing import List, Optional

from agents import GreedyAgent, LLMAgent, RandomAgent
from monopoly.controller import TurnController
from monopoly.events import EventType
from monopoly.game import GameState, create_game
from monopoly.player import Player
from monopoly.settings import get_engine_settings

PLAYER_NAMES = ["Alice", "Bob", "Charlie", "Diana", "Eve", "Frank", "Grace", "Hank"]
RULE = "-" * 64


def print_game_state(game: GameState) -> None:
    """Print one line per seat: cash, deeds and where the player stands."""
    print(f"\n{RULE}\nTurn {game.turn_number} | pot ${game.free_parking_pot}\n{RULE}")
    for seat, player_id in enumerate(game.turn_order, start=1):
        player = game.players[player_id]
        if player.is_bankrupt:
            where = "out (bankrupt)"
        elif player.in_jail:
            where = f"jailed, {player.jail_turns} failed roll(s)"
        else:
            where = game.board.get_space(player.position).name
        print(f"{seat}. {player.name:<8} ${player.cash:>5}  deeds={len(player.properties):<2} {where}")


def print_game_summary(controller: TurnController) -> None:
    """Print the result and the net-worth standings."""
    game = controller.state
    print(f"\n{RULE}\n{'Game over' if game.game_over else 'Game stopped'} after {game.turn_number - 1} turns\n{RULE}")

    if game.winner is not None:
        winner = game.players[game.winner]
        print(f"Winner: {winner.name} (${winner.cash} cash, {len(winner.properties)} deeds)")

    ranked = sorted(
        game.turn_order,
        key=lambda pid: (not game.players[pid].is_bankrupt, controller.ledger.net_worth(pid)),
        reverse=True,
    )
    print("Standings by net worth:")
    for rank, player_id in enumerate(ranked, start=1):
        player = game.players[player_id]
        worth = "bankrupt" if player.is_bankrupt else f"${controller.ledger.net_worth(player_id)}"
        print(f"  {rank}. {player.name}: {worth}")

    degraded = sum(1 for e in game.event_log.of_type(EventType.DECISION) if e.details.get("degraded"))
    if degraded:
        print(f"Fallback decisions in retained log: {degraded}")


def build_players(num_players: int, agent_type: str) -> List[Player]:
    players = []
    for i in range(num_players):
        name = PLAYER_NAMES[i]
        if agent_type == "random":
            provider = RandomAgent(i, name)
        elif agent_type == "llm":
            provider = LLMAgent(i, name)
        else:
            provider = GreedyAgent(i, name)
        players.append(Player(i, name, provider=provider))
    return players


def write_event_log(game: GameState, path: str) -> None:
    """Write the retained events as JSON lines."""
    with open(path, "w", encoding="utf-8") as fh:
        for event in game.event_log.get_events():
            fh.write(json.dumps(event.to_dict(), default=str) + "\n")


async def simulate_game(
    num_players: int = 4,
    agent_type: str = "greedy",
    seed: Optional[int] = None,
    verbose: bool = True,
    max_turns: Optional[int] = None,
    timeout: Optional[float] = None,
    log_file: Optional[str] = None,
) -> GameState:
    """
    Simulate a game of Monopoly.

    Args:
        num_players: Number of players (2-8)
        agent_type: Type of AI ('random', 'greedy' or 'llm')
        seed: Random seed for reproducibility
        verbose: Whether to print detailed output
        max_turns: Turn limit; the richest player wins when it runs out
        timeout: Per-decision timeout in seconds
        log_file: Optional path for a JSONL dump of the retained events
    """
    config = get_engine_settings().to_game_config(
        seed=seed,
        time_limit_turns=max_turns,
        decision_timeout_seconds=timeout,
    )
    players = build_players(num_players, agent_type)
    game = create_game(config, players)
    controller = TurnController(game)

    if verbose:
        print(f"Starting game with {num_players} players using {agent_type} agents")
        print(f"Seed: {config.seed}")

    try:
        while not game.game_over:
            if verbose and game.turn_number % 10 == 1:
                print_game_state(game)
            await controller.play_turn()
    finally:
        for player in players:
            if isinstance(player.provider, LLMAgent):
                await player.provider.aclose()

    if verbose:
        print_game_summary(controller)
    if log_file:
        write_event_log(game, log_file)
        if verbose:
            print(f"\nEvents written to: {log_file}")

    return game


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate a Monopoly game between computer players")
    parser.add_argument("--players", type=int, default=4, choices=range(2, 9), metavar="{2..8}", help="seats at the table")
    parser.add_argument("--agent", default="greedy", choices=["greedy", "random", "llm"], help="decision provider for every seat")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed; same seed, same game")
    parser.add_argument("--max-turns", type=int, default=1000, help="turn limit, after which net worth decides")
    parser.add_argument("--timeout", type=float, default=None, help="seconds each decision may take")
    parser.add_argument("--log-file", default=None, help="write the retained events as JSON lines")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--quiet", action="store_true", help="only print warnings and errors")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(
        simulate_game(
            num_players=args.players,
            agent_type=args.agent,
            seed=args.seed,
            verbose=not args.quiet,
            max_turns=args.max_turns,
            timeout=args.timeout,
            log_file=args.log_file,
        )
    )


if __name__ == "__main__":
    main()
