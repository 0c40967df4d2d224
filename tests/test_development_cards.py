"""Cartes de développement: paquet, achat, restrictions et effets."""

from __future__ import annotations

from collections import Counter

import pytest

from settlers.engine.dev_cards import (
    bank_can_supply_two,
    build_free_road,
    buy_development_card,
    can_buy_development_card,
    can_play_development_card,
    create_development_deck,
    play_knight,
    play_monopoly,
    play_road_building,
    play_year_of_plenty,
    validate_year_of_plenty,
    victory_point_cards,
)
from settlers.engine.rules import RESOURCE_TYPES
from settlers.engine.state import Phase, make_rng

from .helpers import (
    add_building,
    add_card,
    assert_resources_conserved,
    ed,
    give,
    make_state,
    vx,
)


def test_deck_composition():
    deck = create_development_deck(make_rng(3))
    counts = Counter(card.card_type for card in deck)

    assert counts == {
        "KNIGHT": 14,
        "VICTORY_POINT": 5,
        "ROAD_BUILDING": 2,
        "YEAR_OF_PLENTY": 2,
        "MONOPOLY": 2,
    }
    assert len({card.card_id for card in deck}) == 25


def test_deck_shuffle_depends_on_seed():
    first = [card.card_type for card in create_development_deck(make_rng(1))]
    again = [card.card_type for card in create_development_deck(make_rng(1))]
    other = [card.card_type for card in create_development_deck(make_rng(2))]

    assert first == again
    assert first != other


def test_buy_draws_top_card_and_tags_turn():
    state = make_state()
    state.turn = 4
    assert can_buy_development_card(state, "alice").reason == (
        "Not enough resources to buy a development card"
    )

    give(state, "alice", WOOL=1, GRAIN=1, ORE=1)
    top = state.development_deck[0].card_id
    new_state = buy_development_card(state, "alice")

    card = new_state.player("alice").development_cards[0]
    assert card.card_id == top
    assert card.turn_bought == 4
    assert len(new_state.development_deck) == len(state.development_deck) - 1
    assert new_state.player("alice").resource_count == 0
    assert_resources_conserved(new_state)


def test_empty_deck_cannot_be_bought():
    state = make_state()
    state.development_deck.clear()
    give(state, "alice", WOOL=1, GRAIN=1, ORE=1)

    assert can_buy_development_card(state, "alice").reason == "No development cards left"


def test_card_cannot_be_played_on_purchase_turn():
    state = make_state()
    state.turn = 5
    add_card(state, "alice", "KNIGHT", turn_bought=5)

    assert can_play_development_card(state, "alice", "KNIGHT").reason == (
        "Cannot play a development card on the turn it was bought"
    )

    state.turn = 6
    assert can_play_development_card(state, "alice", "KNIGHT")
    new_state = play_knight(state, "alice")
    assert new_state.player("alice").army_size == 1
    assert new_state.phase is Phase.ROBBER_MOVE
    assert new_state.player("alice").development_cards[0].is_played


def test_victory_point_cards_are_never_played():
    state = make_state()
    add_card(state, "alice", "VICTORY_POINT")

    assert not can_play_development_card(state, "alice", "VICTORY_POINT")
    assert victory_point_cards(state.player("alice")) == 1


def test_one_development_card_per_turn():
    state = make_state()
    add_card(state, "alice", "KNIGHT")
    add_card(state, "alice", "MONOPOLY")

    state = play_monopoly(state, "alice", "ORE")
    assert can_play_development_card(state, "alice", "KNIGHT").reason == (
        "Already played a development card this turn"
    )


def test_missing_card_reason():
    state = make_state()

    assert can_play_development_card(state, "alice", "MONOPOLY").reason == (
        "You do not have a playable MONOPOLY card"
    )


def test_monopoly_collects_from_every_opponent():
    state = make_state()
    add_card(state, "alice", "MONOPOLY")
    give(state, "bob", ORE=3, WOOL=1)
    give(state, "carol", ORE=2)

    new_state = play_monopoly(state, "alice", "ORE")

    assert new_state.player("alice").resources["ORE"] == 5
    assert new_state.player("bob").resources["ORE"] == 0
    assert new_state.player("bob").resources["WOOL"] == 1
    assert new_state.player("carol").resources["ORE"] == 0
    assert new_state.phase is Phase.MAIN
    assert_resources_conserved(new_state)


def test_monopoly_without_choice_waits_for_selection():
    state = make_state()
    add_card(state, "alice", "MONOPOLY")

    assert play_monopoly(state, "alice").phase is Phase.MONOPOLY


def test_year_of_plenty_same_type_twice():
    state = make_state()
    add_card(state, "alice", "YEAR_OF_PLENTY")

    new_state = play_year_of_plenty(state, "alice", ("GRAIN", "GRAIN"))

    assert new_state.player("alice").resources["GRAIN"] == 2
    assert new_state.bank["GRAIN"] == 17
    assert new_state.phase is Phase.MAIN
    assert_resources_conserved(new_state)


def test_year_of_plenty_respects_bank_stock():
    state = make_state()
    give(state, "bob", GRAIN=18)

    assert validate_year_of_plenty(state, ("GRAIN", "GRAIN")).reason == "The bank does not have two GRAIN"
    assert validate_year_of_plenty(state, ("GRAIN", "ORE"))
    assert validate_year_of_plenty(state, ("GRAIN",)).reason == "Choose exactly two resources"
    assert validate_year_of_plenty(state, ("GOLD", "ORE")).reason == "Unknown resource: GOLD"


def test_bank_can_supply_two():
    state = make_state()
    assert bank_can_supply_two(state)

    for resource in RESOURCE_TYPES:
        give(state, "bob", **{resource: 19})
    assert not bank_can_supply_two(state)


@pytest.mark.parametrize("roads_left, expected", [(15, 2), (1, 1)])
def test_road_building_grants_up_to_two_roads(roads_left, expected):
    state = make_state()
    add_building(state, "alice", vx(0, 0, "N"))
    add_card(state, "alice", "ROAD_BUILDING")
    state.player("alice").roads_remaining = roads_left

    new_state = play_road_building(state, "alice")

    assert new_state.road_building_remaining == expected
    assert new_state.phase is Phase.ROAD_BUILDING


def test_road_building_with_no_pieces_stays_in_main():
    state = make_state()
    add_card(state, "alice", "ROAD_BUILDING")
    state.player("alice").roads_remaining = 0

    new_state = play_road_building(state, "alice")

    assert new_state.road_building_remaining == 0
    assert new_state.phase is Phase.MAIN
    assert new_state.player("alice").has_played_dev_card


def test_free_roads_return_to_main():
    state = make_state()
    add_building(state, "alice", vx(0, 0, "N"))
    add_card(state, "alice", "ROAD_BUILDING")

    state = play_road_building(state, "alice")
    state = build_free_road(state, "alice", ed(0, 0, "NE"))
    assert state.phase is Phase.ROAD_BUILDING
    state = build_free_road(state, "alice", ed(0, 0, "E"))

    assert state.phase is Phase.MAIN
    assert state.road_building_remaining == 0
    assert state.player("alice").roads_remaining == 13
    assert state.player("alice").resource_count == 0
