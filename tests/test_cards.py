"""
Tests for Chance and Community Chest cards.
"""

import random

import pytest

from monopoly.cards import (
    Card,
    CardType,
    Deck,
    chance_cards,
    community_chest_cards,
    create_chance_deck,
)
from monopoly.events import EventType
from monopoly.spaces import SpaceType

from conftest import ScriptedProvider, give_properties

# Rolling 3 + 4 from GO lands on the first Chance space
TO_CHANCE = [(3, 4)]


def stack(deck: Deck, card: Card) -> None:
    """Put ``card`` on top of the deck."""
    deck.cards.insert(deck.cursor, card)


def test_standard_decks():
    assert len(chance_cards()) == 16
    assert len(community_chest_cards()) == 17
    assert sum(1 for c in chance_cards() if c.card_type == CardType.GRANT_JAIL_CARD) == 1


def test_deck_draws_cyclically():
    deck = create_chance_deck(random.Random(3))
    first_pass = [deck.draw() for _ in range(len(deck))]
    assert deck.cursor == 0
    second_pass = [deck.draw() for _ in range(len(deck))]
    assert first_pass == second_pass


def test_deck_shuffle_is_seeded():
    a = create_chance_deck(random.Random(7))
    b = create_chance_deck(random.Random(7))
    assert a.cards == b.cards


def test_reshuffle_on_wrap_policy():
    deck = Deck("test", chance_cards(), random.Random(11), reshuffle_on_wrap=True)
    order = list(deck.cards)
    for _ in range(len(deck)):
        deck.draw()
    assert deck.cursor == 0
    assert sorted(c.description for c in deck.cards) == sorted(c.description for c in order)


def test_empty_deck_rejected():
    with pytest.raises(ValueError):
        Deck("empty", [], random.Random(1))


@pytest.mark.asyncio
async def test_advance_to_go_collects_salary(make_controller):
    controller = make_controller([None, None], rolls=TO_CHANCE)
    game = controller.state
    stack(game.chance_deck, Card("Advance to Go", CardType.MOVE_TO, destination=0))

    await controller.play_turn()

    assert game.players[0].position == 0
    assert game.players[0].cash == 1700


@pytest.mark.asyncio
async def test_move_to_card_resolves_destination(make_controller):
    controller = make_controller([ScriptedProvider(["buy"]), None], rolls=TO_CHANCE)
    game = controller.state
    stack(game.chance_deck, Card("Take a walk on the Boardwalk", CardType.MOVE_TO, destination=39))

    await controller.play_turn()

    assert game.players[0].position == 39
    assert game.properties[39].owner_id == 0
    assert game.players[0].cash == 1100


@pytest.mark.asyncio
async def test_move_to_nearest_railroad(make_controller):
    controller = make_controller([None, None], rolls=TO_CHANCE)
    game = controller.state
    stack(game.chance_deck, Card("Nearest Railroad", CardType.MOVE_TO, nearest=SpaceType.RAILROAD))

    await controller.play_turn()

    assert game.players[0].position == 15
    # No provider: default is auction, nobody bids
    assert not game.properties[15].is_owned()


@pytest.mark.asyncio
async def test_nearest_railroad_wraps_past_go(make_controller):
    controller = make_controller([None, None], rolls=TO_CHANCE)
    game = controller.state
    game.players[0].position = 29
    stack(game.chance_deck, Card("Nearest Railroad", CardType.MOVE_TO, nearest=SpaceType.RAILROAD))

    await controller.play_turn()

    assert game.players[0].position == 5
    assert game.players[0].cash == 1700
    assert len(game.event_log.of_type(EventType.PASS_GO)) == 1


@pytest.mark.asyncio
async def test_nearest_utility_charges_rent_with_last_roll(make_controller):
    controller = make_controller([None, None], rolls=TO_CHANCE)
    game = controller.state
    give_properties(game, 1, 12)
    stack(game.chance_deck, Card("Nearest Utility", CardType.MOVE_TO, nearest=SpaceType.UTILITY))

    await controller.play_turn()

    assert game.players[0].position == 12
    assert game.players[0].cash == 1500 - 28
    assert game.players[1].cash == 1500 + 28


@pytest.mark.asyncio
async def test_go_back_three_spaces_lands_on_tax(make_controller):
    controller = make_controller([None, None], rolls=TO_CHANCE)
    game = controller.state
    stack(game.chance_deck, Card("Go Back 3 Spaces", CardType.MOVE_BY_SPACES, value=-3, collect_go=False))

    await controller.play_turn()

    assert game.players[0].position == 4
    assert game.players[0].cash == 1300
    assert game.free_parking_pot == 200


@pytest.mark.asyncio
async def test_pay_bank_card_feeds_pot(make_controller):
    controller = make_controller([None, None], rolls=TO_CHANCE)
    game = controller.state
    stack(game.chance_deck, Card("Pay poor tax of $15", CardType.PAY_BANK, value=15))

    await controller.play_turn()

    assert game.players[0].cash == 1485
    assert game.free_parking_pot == 15


@pytest.mark.asyncio
async def test_collect_from_bank(make_controller):
    controller = make_controller([None, None], rolls=TO_CHANCE)
    game = controller.state
    stack(game.chance_deck, Card("Building loan matures", CardType.COLLECT_FROM_BANK, value=150))

    await controller.play_turn()

    assert game.players[0].cash == 1650


@pytest.mark.asyncio
async def test_pay_each_player(make_controller):
    controller = make_controller([None, None, None], rolls=TO_CHANCE)
    game = controller.state
    stack(game.chance_deck, Card("Chairman of the Board", CardType.PAY_EACH_PLAYER, value=50))

    await controller.play_turn()

    assert game.players[0].cash == 1400
    assert game.players[1].cash == 1550
    assert game.players[2].cash == 1550


@pytest.mark.asyncio
async def test_collect_from_each_bankrupts_short_payer_to_collector(make_controller):
    controller = make_controller([None, None, None], rolls=TO_CHANCE)
    game = controller.state
    game.players[1].cash = 5
    stack(game.chance_deck, Card("Birthday", CardType.COLLECT_FROM_EACH_PLAYER, value=10))

    await controller.play_turn()

    assert game.players[1].is_bankrupt
    assert game.players[0].cash == 1500 + 5 + 10
    assert game.players[2].cash == 1490
    assert not game.game_over


@pytest.mark.asyncio
async def test_go_to_jail_card(make_controller):
    controller = make_controller([None, None], rolls=TO_CHANCE)
    game = controller.state
    stack(game.chance_deck, Card("Go to Jail", CardType.GO_TO_JAIL))

    await controller.play_turn()

    assert game.players[0].position == 10
    assert game.players[0].in_jail
    assert game.players[0].cash == 1500


@pytest.mark.asyncio
async def test_grant_jail_card(make_controller):
    controller = make_controller([None, None], rolls=TO_CHANCE)
    game = controller.state
    stack(game.chance_deck, Card("Get Out of Jail Free", CardType.GRANT_JAIL_CARD))

    await controller.play_turn()

    assert game.players[0].get_out_of_jail_cards == 1


@pytest.mark.asyncio
async def test_repairs_assessment(make_controller):
    controller = make_controller([None, None], rolls=TO_CHANCE)
    game = controller.state
    give_properties(game, 0, 1, 3)
    game.properties[1].houses = 2
    game.properties[3].has_hotel = True
    stack(game.chance_deck, Card("General repairs", CardType.REPAIRS_ASSESSMENT, value=25))

    await controller.play_turn()

    # 2 houses at 25 plus 1 hotel at 100
    assert game.players[0].cash == 1350
    assert game.free_parking_pot == 150


@pytest.mark.asyncio
async def test_unaffordable_card_payment_bankrupts_to_bank(make_controller):
    controller = make_controller([None, None], rolls=TO_CHANCE)
    game = controller.state
    game.players[0].cash = 10
    give_properties(game, 0, 39)
    stack(game.chance_deck, Card("Pay poor tax of $15", CardType.PAY_BANK, value=15))

    await controller.play_turn()

    assert game.players[0].is_bankrupt
    assert not game.properties[39].is_owned()
    assert game.game_over
    assert game.winner == 1
