"""Construction d'états de test à la main (plateau fixe, joueurs sans ressources)."""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Sequence, Tuple

from settlers.engine.board import Board, Port, Terrain
from settlers.engine.coords import EdgeCoord, HexCoord, VertexCoord, hexes_in_radius
from settlers.engine.dev_cards import create_development_deck
from settlers.engine.ledger import total_resources
from settlers.engine.rules import BANK_STARTING_RESOURCES, Settings
from settlers.engine.state import Building, GameState, Phase, Player, Road, make_rng

PLAYER_IDS: Tuple[str, ...] = ("alice", "bob", "carol")


def hx(q: int, r: int) -> HexCoord:
    return HexCoord(q, r)


def vx(q: int, r: int, direction: str) -> VertexCoord:
    return VertexCoord(HexCoord(q, r), direction)


def ed(q: int, r: int, direction: str) -> EdgeCoord:
    return EdgeCoord(HexCoord(q, r), direction)


# Chemin simple de 6 arêtes sur le plateau de rayon 2:
# N(0,0) S(1,-1) N(0,1) S(0,0) N(-1,2) S(-1,1) N(-2,2)
ROAD_CHAIN: Tuple[EdgeCoord, ...] = (
    ed(0, 0, "NE"),
    ed(0, 0, "E"),
    ed(0, 0, "SE"),
    ed(-1, 1, "E"),
    ed(-1, 1, "SE"),
    ed(-2, 2, "NE"),
)


def make_board(
    overrides: Mapping[HexCoord, Tuple[Terrain, int | None]] | None = None,
    ports: Iterable[Port] = (),
) -> Board:
    """Plateau de rayon 2: pâturages sans jeton, désert (et voleur) au centre."""

    tiles: Dict[HexCoord, Tuple[Terrain, int | None]] = {
        coord: (Terrain.PASTURE, None) for coord in hexes_in_radius(2)
    }
    tiles[HexCoord(0, 0)] = (Terrain.DESERT, None)
    if overrides:
        tiles.update(overrides)
    return Board.from_tiles(tiles, ports)


def make_state(
    player_ids: Sequence[str] = PLAYER_IDS,
    *,
    board: Board | None = None,
    phase: Phase = Phase.MAIN,
    settings: Settings | None = None,
    seed: int = 7,
) -> GameState:
    """État de jeu post-setup: tour 1, premier joueur actif, dés lancés en `main`."""

    board = board or make_board()
    rng = make_rng(seed)
    state = GameState(
        board=board,
        settings=settings or Settings(player_count=len(player_ids), seed=seed),
        players=[Player(player_id=pid, color=f"color-{i}") for i, pid in enumerate(player_ids)],
        turn_order=list(player_ids),
        phase=phase,
        current_player_id=player_ids[0],
        turn=1,
        robber_hex=board.robber_hex,
        development_deck=create_development_deck(rng),
        dice_rolled_this_turn=phase is Phase.MAIN,
    )
    state.store_rng(rng)
    return state


def give(state: GameState, player_id: str, **resources: int) -> None:
    """Banque -> joueur, sans passer par le moteur (conservation préservée)."""

    player = state.player(player_id)
    for resource, amount in resources.items():
        state.bank[resource] -= amount
        player.resources[resource] += amount


def add_building(
    state: GameState,
    player_id: str,
    vertex: VertexCoord,
    kind: str = "settlement",
) -> None:
    state.buildings.append(
        Building(
            building_id=f"building-{len(state.buildings) + 1}",
            building_type=kind,
            owner_id=player_id,
            vertex=vertex,
        )
    )
    player = state.player(player_id)
    if kind == "city":
        player.cities_remaining -= 1
    else:
        player.settlements_remaining -= 1


def add_road(state: GameState, player_id: str, edge: EdgeCoord) -> None:
    state.roads.append(Road(road_id=f"road-{len(state.roads) + 1}", owner_id=player_id, edge=edge))
    state.player(player_id).roads_remaining -= 1


def add_roads(state: GameState, player_id: str, edges: Iterable[EdgeCoord]) -> None:
    for edge in edges:
        add_road(state, player_id, edge)


def add_card(state: GameState, player_id: str, card_type: str, turn_bought: int = 0) -> None:
    """Déplace une carte du paquet vers la main du joueur."""

    for index, card in enumerate(state.development_deck):
        if card.card_type == card_type:
            state.development_deck.pop(index)
            card.turn_bought = turn_bought
            state.player(player_id).development_cards.append(card)
            return
    raise LookupError(f"No {card_type} card left in the deck")


def assert_resources_conserved(state: GameState) -> None:
    assert total_resources(state) == BANK_STARTING_RESOURCES
