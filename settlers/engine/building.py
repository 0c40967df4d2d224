"""Placement des routes, colonies et villes.

Prédicats composés (terre, emplacement libre, règle de distance, connexité
hors setup) renvoyant un `ValidationResult`, puis mutations pures qui
déduisent le coût et les pièces restantes.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

import structlog

from settlers.engine.coords import (
    EdgeCoord,
    VertexCoord,
    adjacent_edges,
    edge_vertices,
    shared_vertex,
    vertex_edges,
    vertex_hexes,
    vertex_neighbors,
)
from settlers.engine.errors import ValidationResult, invariant
from settlers.engine.ledger import Ledger, ResourceLedger, Resources
from settlers.engine.rules import COSTS
from settlers.engine.state import Building, GameState, Road

logger = structlog.get_logger(__name__)


# -- Prédicats élémentaires --

def satisfies_distance_rule(state: GameState, vertex: VertexCoord) -> bool:
    """Aucun bâtiment à une arête de distance."""

    return all(state.building_at(neighbor) is None for neighbor in vertex_neighbors(vertex))


def has_road_to_vertex(state: GameState, player_id: str, vertex: VertexCoord) -> bool:
    for edge in vertex_edges(vertex):
        road = state.road_at(edge)
        if road is not None and road.owner_id == player_id:
            return True
    return False


def has_connection_to_edge(state: GameState, player_id: str, edge: EdgeCoord) -> bool:
    """Bâtiment du joueur à une extrémité, ou route du joueur non coupée par un adversaire."""

    for vertex in edge_vertices(edge):
        building = state.building_at(vertex)
        if building is not None and building.owner_id == player_id:
            return True

    for neighbor in adjacent_edges(edge):
        road = state.road_at(neighbor)
        if road is None or road.owner_id != player_id:
            continue
        junction = shared_vertex(edge, neighbor)
        blocker = state.building_at(junction) if junction is not None else None
        if blocker is None or blocker.owner_id == player_id:
            return True
    return False


def distance_rule_holds(state: GameState) -> bool:
    """Vérifie la règle de distance pour tous les bâtiments posés."""

    return all(satisfies_distance_rule(state, building.vertex) for building in state.buildings)


# -- Validation --

def can_place_settlement(
    state: GameState,
    player_id: str,
    vertex: VertexCoord,
    *,
    setup: bool = False,
    ledger: Ledger | None = None,
) -> ValidationResult:
    if not state.board.is_vertex_on_land(vertex):
        return ValidationResult.fail("Vertex is not on land")
    if state.building_at(vertex) is not None:
        return ValidationResult.fail("Vertex is already occupied")
    if not satisfies_distance_rule(state, vertex):
        return ValidationResult.fail("Too close to another building")
    player = state.player(player_id)
    if player.settlements_remaining <= 0:
        return ValidationResult.fail("No settlements remaining")
    if setup:
        return ValidationResult.ok()
    if not has_road_to_vertex(state, player_id, vertex):
        return ValidationResult.fail("Settlement must connect to your road network")
    if not (ledger or ResourceLedger()).can_afford(state, player_id, COSTS["settlement"]):
        return ValidationResult.fail("Not enough resources to build a settlement")
    return ValidationResult.ok()


def can_place_city(
    state: GameState,
    player_id: str,
    vertex: VertexCoord,
    *,
    ledger: Ledger | None = None,
) -> ValidationResult:
    building = state.building_at(vertex)
    if building is None or building.owner_id != player_id:
        return ValidationResult.fail("You do not have a settlement here")
    if building.building_type != "settlement":
        return ValidationResult.fail("This building is already a city")
    if state.player(player_id).cities_remaining <= 0:
        return ValidationResult.fail("No cities remaining")
    if not (ledger or ResourceLedger()).can_afford(state, player_id, COSTS["city"]):
        return ValidationResult.fail("Not enough resources to build a city")
    return ValidationResult.ok()


def can_place_road(
    state: GameState,
    player_id: str,
    edge: EdgeCoord,
    *,
    free: bool = False,
    ledger: Ledger | None = None,
) -> ValidationResult:
    if not state.board.is_edge_on_land(edge):
        return ValidationResult.fail("Edge is not on land")
    if state.road_at(edge) is not None:
        return ValidationResult.fail("Edge is already occupied")
    if state.player(player_id).roads_remaining <= 0:
        return ValidationResult.fail("No roads remaining")
    if not has_connection_to_edge(state, player_id, edge):
        return ValidationResult.fail("Road must connect to your network")
    if not free and not (ledger or ResourceLedger()).can_afford(state, player_id, COSTS["road"]):
        return ValidationResult.fail("Not enough resources to build a road")
    return ValidationResult.ok()


def can_place_setup_road(state: GameState, player_id: str, edge: EdgeCoord) -> ValidationResult:
    """Pendant le setup, la route touche la colonie qui vient d'être posée."""

    anchor = state.setup.last_settlement if state.setup is not None else None
    if anchor is None:
        return ValidationResult.fail("Place a settlement first")
    if anchor not in edge_vertices(edge):
        return ValidationResult.fail("Road must connect to the settlement just placed")
    if not state.board.is_edge_on_land(edge):
        return ValidationResult.fail("Edge is not on land")
    if state.road_at(edge) is not None:
        return ValidationResult.fail("Edge is already occupied")
    if state.player(player_id).roads_remaining <= 0:
        return ValidationResult.fail("No roads remaining")
    return ValidationResult.ok()


# -- Énumération --

def valid_settlement_spots(
    state: GameState,
    player_id: str,
    *,
    setup: bool = False,
) -> List[VertexCoord]:
    return [
        vertex
        for vertex in state.board.land_vertices()
        if can_place_settlement(state, player_id, vertex, setup=setup)
    ]


def valid_city_spots(state: GameState, player_id: str) -> List[VertexCoord]:
    return [
        building.vertex
        for building in state.buildings_of(player_id)
        if can_place_city(state, player_id, building.vertex)
    ]


def valid_road_spots(state: GameState, player_id: str, *, free: bool = False) -> List[EdgeCoord]:
    candidates: List[EdgeCoord] = []
    for building in state.buildings_of(player_id):
        candidates.extend(vertex_edges(building.vertex))
    for road in state.roads_of(player_id):
        candidates.extend(adjacent_edges(road.edge))

    spots: List[EdgeCoord] = []
    for edge in candidates:
        if edge in spots:
            continue
        if can_place_road(state, player_id, edge, free=free):
            spots.append(edge)
    return spots


def valid_setup_road_spots(state: GameState, player_id: str) -> List[EdgeCoord]:
    anchor = state.setup.last_settlement if state.setup is not None else None
    if anchor is None:
        return []
    return [
        edge for edge in vertex_edges(anchor) if can_place_setup_road(state, player_id, edge)
    ]


# -- Mutations pures --

def place_settlement(
    state: GameState,
    player_id: str,
    vertex: VertexCoord,
    *,
    free: bool = False,
    ledger: Ledger | None = None,
) -> GameState:
    invariant(state.building_at(vertex) is None, "Vertex already occupied", vertex=str(vertex))
    new_state = state.clone()
    player = new_state.player(player_id)
    if not free:
        (ledger or ResourceLedger()).debit(new_state, player_id, COSTS["settlement"])
    player.settlements_remaining -= 1
    new_state.buildings.append(
        Building(
            building_id=f"building-{len(new_state.buildings) + 1}",
            building_type="settlement",
            owner_id=player_id,
            vertex=vertex,
        )
    )
    logger.debug("settlement_placed", player_id=player_id, vertex=str(vertex), free=free)
    return new_state


def upgrade_to_city(
    state: GameState,
    player_id: str,
    vertex: VertexCoord,
    *,
    ledger: Ledger | None = None,
) -> GameState:
    """Remplace une colonie par une ville: rend une colonie, consomme une ville."""

    new_state = state.clone()
    for index, building in enumerate(new_state.buildings):
        if building.vertex == vertex:
            invariant(
                building.owner_id == player_id and building.building_type == "settlement",
                "City upgrade requires an owned settlement",
                vertex=str(vertex),
            )
            new_state.buildings[index] = Building(
                building_id=building.building_id,
                building_type="city",
                owner_id=player_id,
                vertex=vertex,
                has_wall=building.has_wall,
            )
            break
    else:
        invariant(False, "City upgrade requires an owned settlement", vertex=str(vertex))

    (ledger or ResourceLedger()).debit(new_state, player_id, COSTS["city"])
    player = new_state.player(player_id)
    player.settlements_remaining += 1
    player.cities_remaining -= 1
    logger.debug("city_built", player_id=player_id, vertex=str(vertex))
    return new_state


def place_road(
    state: GameState,
    player_id: str,
    edge: EdgeCoord,
    *,
    free: bool = False,
    ledger: Ledger | None = None,
) -> GameState:
    invariant(state.road_at(edge) is None, "Edge already occupied", edge=str(edge))
    new_state = state.clone()
    if not free:
        (ledger or ResourceLedger()).debit(new_state, player_id, COSTS["road"])
    new_state.player(player_id).roads_remaining -= 1
    new_state.roads.append(
        Road(road_id=f"road-{len(new_state.roads) + 1}", owner_id=player_id, edge=edge)
    )
    logger.debug("road_placed", player_id=player_id, edge=str(edge), free=free)
    return new_state


def starting_resources(state: GameState, vertex: VertexCoord) -> Resources:
    """Une carte par tuile productive adjacente (deux forêts = deux bois)."""

    grant: Dict[str, int] = {}
    for coord in vertex_hexes(vertex):
        tile = state.board.tile_at(coord)
        if tile is None or tile.resource is None:
            continue
        grant[tile.resource] = grant.get(tile.resource, 0) + 1
    return grant


def buildings_on(state: GameState, vertices: Sequence[VertexCoord]) -> List[Building]:
    found = []
    for vertex in vertices:
        building = state.building_at(vertex)
        if building is not None:
            found.append(building)
    return found


__all__ = [
    "buildings_on",
    "can_place_city",
    "can_place_road",
    "can_place_settlement",
    "can_place_setup_road",
    "distance_rule_holds",
    "has_connection_to_edge",
    "has_road_to_vertex",
    "place_road",
    "place_settlement",
    "satisfies_distance_rule",
    "starting_resources",
    "upgrade_to_city",
    "valid_city_spots",
    "valid_road_spots",
    "valid_settlement_spots",
    "valid_setup_road_spots",
]
