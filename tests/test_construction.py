"""Tests de placement: routes, colonies, villes (règle de distance, connexité, coûts)."""

from __future__ import annotations

import pytest

from settlers.engine.building import (
    can_place_city,
    can_place_road,
    can_place_settlement,
    distance_rule_holds,
    place_road,
    place_settlement,
    upgrade_to_city,
    valid_road_spots,
    valid_settlement_spots,
)
from settlers.engine.errors import InvariantViolation

from .helpers import (
    add_building,
    add_road,
    assert_resources_conserved,
    ed,
    give,
    make_state,
    vx,
)


def _settlement_resources(state, player_id):
    give(state, player_id, BRICK=1, LUMBER=1, WOOL=1, GRAIN=1)


def test_settlement_requires_land_free_vertex_and_distance():
    state = make_state()
    add_building(state, "alice", vx(0, 0, "N"))

    assert can_place_settlement(state, "bob", vx(5, 5, "N"), setup=True).reason == "Vertex is not on land"
    assert can_place_settlement(state, "bob", vx(0, 0, "N"), setup=True).reason == "Vertex is already occupied"
    assert (
        can_place_settlement(state, "bob", vx(1, -1, "S"), setup=True).reason
        == "Too close to another building"
    )
    assert can_place_settlement(state, "bob", vx(0, 1, "N"), setup=True)


def test_settlement_outside_setup_needs_road_and_resources():
    state = make_state()
    add_building(state, "alice", vx(0, 0, "N"))
    target = vx(0, 1, "N")

    assert (
        can_place_settlement(state, "alice", target).reason
        == "Settlement must connect to your road network"
    )

    add_road(state, "alice", ed(0, 0, "NE"))
    add_road(state, "alice", ed(0, 0, "E"))
    assert (
        can_place_settlement(state, "alice", target).reason
        == "Not enough resources to build a settlement"
    )

    _settlement_resources(state, "alice")
    assert can_place_settlement(state, "alice", target)

    new_state = place_settlement(state, "alice", target)
    alice = new_state.player("alice")
    assert new_state.building_at(target).owner_id == "alice"
    assert alice.resource_count == 0
    assert alice.settlements_remaining == 3
    assert state.building_at(target) is None
    assert distance_rule_holds(new_state)
    assert_resources_conserved(new_state)


def test_no_settlement_pieces_left():
    state = make_state()
    state.player("alice").settlements_remaining = 0

    assert can_place_settlement(state, "alice", vx(0, 0, "N"), setup=True).reason == "No settlements remaining"


def test_road_connectivity_is_cut_by_opponent_building():
    state = make_state()
    add_building(state, "alice", vx(0, 0, "N"))
    add_road(state, "alice", ed(0, 0, "NE"))
    give(state, "alice", BRICK=2, LUMBER=2)

    # E(0,0) prolonge NE(0,0) par S(1,-1)
    assert can_place_road(state, "alice", ed(0, 0, "E"))

    add_building(state, "bob", vx(1, -1, "S"))
    assert can_place_road(state, "alice", ed(0, 0, "E")).reason == "Road must connect to your network"
    # Toujours possible depuis la colonie
    assert can_place_road(state, "alice", ed(0, -1, "E"))


def test_road_cost_pieces_and_occupancy():
    state = make_state()
    add_building(state, "alice", vx(0, 0, "N"))

    assert can_place_road(state, "alice", ed(0, 0, "NE")).reason == "Not enough resources to build a road"
    assert can_place_road(state, "alice", ed(0, 0, "NE"), free=True)

    give(state, "alice", BRICK=1, LUMBER=1)
    new_state = place_road(state, "alice", ed(0, 0, "NE"))
    assert new_state.player("alice").roads_remaining == 14
    assert new_state.player("alice").resource_count == 0
    assert can_place_road(new_state, "bob", ed(0, 0, "NE")).reason == "Edge is already occupied"

    with pytest.raises(InvariantViolation):
        place_road(new_state, "bob", ed(0, 0, "NE"), free=True)


def test_city_upgrade():
    state = make_state()
    vertex = vx(0, 0, "N")
    add_building(state, "alice", vertex)

    assert can_place_city(state, "bob", vertex).reason == "You do not have a settlement here"
    assert can_place_city(state, "alice", vertex).reason == "Not enough resources to build a city"

    give(state, "alice", GRAIN=2, ORE=3)
    new_state = upgrade_to_city(state, "alice", vertex)
    alice = new_state.player("alice")
    assert new_state.building_at(vertex).building_type == "city"
    assert alice.settlements_remaining == 5
    assert alice.cities_remaining == 3
    assert alice.resource_count == 0
    assert can_place_city(new_state, "alice", vertex).reason == "This building is already a city"


def test_valid_spots_enumeration():
    state = make_state()
    assert len(valid_settlement_spots(state, "alice", setup=True)) == 54

    add_building(state, "alice", vx(0, 0, "N"))
    give(state, "alice", BRICK=3, LUMBER=3)
    assert set(valid_road_spots(state, "alice")) == {
        ed(0, 0, "NE"),
        ed(0, -1, "E"),
        ed(0, -1, "SE"),
    }
    # Le sommet et ses trois voisins sont exclus
    assert len(valid_settlement_spots(state, "bob", setup=True)) == 50
