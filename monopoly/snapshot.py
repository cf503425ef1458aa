"""
Public snapshot serialization of GameState.

Produces a JSON-ready view of the current game for decision providers and
the CLI without exposing hidden information (deck order).
"""

from __future__ import annotations

from typing import Any, Dict, List

from monopoly.game import GameState
from monopoly.spaces import PropertySpace, RailroadSpace, UtilitySpace


def _property_entry(game: GameState, pos: int) -> Dict[str, Any]:
    space = game.board.get_space(pos)
    prop = game.properties[pos]
    entry: Dict[str, Any] = {
        "position": pos,
        "name": space.name,
        "houses": prop.houses,
        "hotel": prop.has_hotel,
        "mortgaged": prop.is_mortgaged,
    }
    if isinstance(space, PropertySpace):
        entry["color_group"] = space.color_group
        entry["price"] = space.price
    elif isinstance(space, RailroadSpace):
        entry["type"] = "railroad"
        entry["price"] = space.price
    elif isinstance(space, UtilitySpace):
        entry["type"] = "utility"
        entry["price"] = space.price
    return entry


def serialize_snapshot(game: GameState) -> Dict[str, Any]:
    """Serialize a GameState into a public, stable JSON dict.

    The snapshot includes:
    - turn_number, phase and current_player_id
    - players with public info (cash, position, jail, properties with status)
    - free-parking pot and last dice roll
    - active auction (if any)
    - deck sizes only
    """
    players: List[Dict[str, Any]] = []
    for pid in game.turn_order:
        pstate = game.players[pid]
        monopolies = [
            color
            for color, positions in game.board.color_groups.items()
            if all(game.properties[pos].owner_id == pid for pos in positions)
        ]
        players.append(
            {
                "player_id": pid,
                "name": pstate.name,
                "cash": pstate.cash,
                "position": pstate.position,
                "space": game.board.get_space(pstate.position).name,
                "in_jail": pstate.in_jail,
                "jail_turns": pstate.jail_turns,
                "jail_cards": pstate.get_out_of_jail_cards,
                "is_bankrupt": pstate.is_bankrupt,
                "properties": [_property_entry(game, pos) for pos in sorted(pstate.properties)],
                "monopolies": monopolies,
            }
        )

    auction = None
    if game.auction is not None:
        a = game.auction
        auction = {
            "position": a.position,
            "property_name": game.board.get_space(a.position).name,
            "current_bid": a.current_bid,
            "highest_bidder": a.highest_bidder,
            "participants": list(a.participants),
        }

    last_roll = None
    if game.last_roll is not None:
        last_roll = {
            "die1": game.last_roll.die1,
            "die2": game.last_roll.die2,
            "total": game.last_roll.total,
            "doubles": game.last_roll.is_doubles,
        }

    snapshot: Dict[str, Any] = {
        "turn_number": game.turn_number,
        "phase": game.phase.value,
        "current_player_id": game.get_current_player().player_id,
        "players": players,
        "free_parking_pot": game.free_parking_pot,
        "last_roll": last_roll,
        "auction": auction,
        "decks": {
            "chance": {"size": len(game.chance_deck)},
            "community_chest": {"size": len(game.community_chest_deck)},
        },
        "game_over": game.game_over,
        "winner": game.winner,
    }

    return snapshot
