"""Tests de production des ressources, règle de pénurie et défausse sur un 7."""

from __future__ import annotations

import numpy as np

from settlers.engine.board import Terrain
from settlers.engine.ledger import (
    ResourceLedger,
    compute_production,
    discard_resources,
    distribute_for_roll,
    players_who_must_discard,
    random_discard,
    validate_discard,
)

from .helpers import (
    add_building,
    assert_resources_conserved,
    give,
    hx,
    make_board,
    make_state,
    vx,
)

# Coins non adjacents de l'hexagone (1,0): haut, bas-droit, bas-gauche
TOP = vx(1, 0, "N")
LOWER_RIGHT = vx(1, 1, "N")
LOWER_LEFT = vx(0, 1, "N")
BOTTOM = vx(1, 0, "S")


def make_brick_state():
    board = make_board({hx(1, 0): (Terrain.HILLS, 5)})
    return make_state(board=board)


def test_full_distribution_when_bank_covers_demand():
    state = make_brick_state()
    add_building(state, "alice", TOP)
    add_building(state, "bob", LOWER_RIGHT, kind="city")

    new_state = distribute_for_roll(state, 5)

    assert new_state.player("alice").resources["BRICK"] == 1
    assert new_state.player("bob").resources["BRICK"] == 2
    assert new_state.bank["BRICK"] == 16
    assert new_state.player("bob").total_resources_collected == 2
    assert state.player("alice").resources["BRICK"] == 0
    assert_resources_conserved(new_state)


def test_shortage_with_several_recipients_gives_nothing():
    state = make_brick_state()
    add_building(state, "alice", TOP)
    add_building(state, "bob", LOWER_RIGHT)
    add_building(state, "carol", LOWER_LEFT)
    give(state, "carol", BRICK=17)
    assert state.bank["BRICK"] == 2

    new_state = distribute_for_roll(state, 5)

    assert new_state.player("alice").resources["BRICK"] == 0
    assert new_state.player("bob").resources["BRICK"] == 0
    assert new_state.player("carol").resources["BRICK"] == 17
    assert new_state.bank["BRICK"] == 2


def test_shortage_with_single_recipient_gives_what_remains():
    state = make_brick_state()
    add_building(state, "alice", TOP, kind="city")
    add_building(state, "alice", BOTTOM)
    give(state, "bob", BRICK=17)

    payouts = ResourceLedger().produce(state, 5)

    assert payouts == {"alice": {"BRICK": 2}}
    assert state.player("alice").resources["BRICK"] == 2
    assert state.bank["BRICK"] == 0
    assert_resources_conserved(state)


def test_shortage_applies_per_resource_type():
    board = make_board(
        {
            hx(1, 0): (Terrain.HILLS, 5),
            hx(1, 1): (Terrain.FOREST, 5),
        }
    )
    state = make_state(board=board)
    # LOWER_RIGHT = N(1,1) touche (1,0) et (1,1); LOWER_LEFT ne touche que (1,0)
    add_building(state, "alice", LOWER_RIGHT)
    add_building(state, "bob", LOWER_LEFT)
    give(state, "carol", BRICK=18)

    new_state = distribute_for_roll(state, 5)

    assert new_state.player("alice").resources == {
        "BRICK": 0, "LUMBER": 1, "WOOL": 0, "GRAIN": 0, "ORE": 0
    }
    assert new_state.player("bob").resources["BRICK"] == 0


def test_robber_blocks_production():
    state = make_brick_state()
    add_building(state, "alice", TOP)
    state.robber_hex = hx(1, 0)

    assert compute_production(state, 5) == {}


def test_players_over_limit_must_discard_half():
    state = make_state()
    give(state, "alice", BRICK=4, ORE=5)
    give(state, "bob", WOOL=7)

    assert players_who_must_discard(state) == {"alice": 4}


def test_discard_validation_and_application():
    state = make_state()
    give(state, "alice", BRICK=4, ORE=5)
    state.pending_discards = {"alice": 4}

    assert validate_discard(state, "bob", {"WOOL": 1}).reason == "You do not need to discard"
    assert validate_discard(state, "alice", {"ORE": 3}).reason == "Must discard exactly 4 cards"
    assert not validate_discard(state, "alice", {"GRAIN": 4})
    assert validate_discard(state, "alice", {"ORE": 2, "BRICK": 2})

    new_state = discard_resources(state, "alice", {"ORE": 2, "BRICK": 2})
    assert new_state.player("alice").resource_count == 5
    assert new_state.pending_discards == {}
    assert state.pending_discards == {"alice": 4}
    assert_resources_conserved(new_state)


def test_random_discard_picks_held_cards():
    state = make_state()
    give(state, "alice", BRICK=1, ORE=8)
    state.pending_discards = {"alice": 4}

    chosen = random_discard(state, "alice", np.random.default_rng(1))

    assert sum(chosen.values()) == 4
    assert chosen.get("BRICK", 0) <= 1
    assert validate_discard(state, "alice", chosen)
