"""Plateau de jeu et génération aléatoire.

Cette implémentation expose:
- les tuiles (terrain, jeton numéroté, drapeau du voleur) en coordonnées axiales
- les ports posés sur les arêtes côtières (2 sommets desservis chacun)
- `generate_board`: terrains mélangés, jetons placés par mélanges successifs
  jusqu'à respecter la règle 6/8 (au plus `MAX_NUMBER_PLACEMENT_ATTEMPTS`)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Protocol, Sequence, Tuple

import numpy as np
import structlog

from settlers.engine.coords import (
    EdgeCoord,
    HexCoord,
    VertexCoord,
    edge_hexes,
    edge_vertices,
    hex_neighbors,
    hex_to_pixel,
    hexes_in_radius,
    unique_edges,
    unique_vertices,
    vertex_hexes,
    vertex_to_pixel,
)
from settlers.engine.errors import BoardGenerationError
from settlers.engine.rules import (
    EXPANDED_NUMBER_TOKENS,
    EXPANDED_PORT_TYPES,
    EXPANDED_TERRAIN_DISTRIBUTION,
    GENERIC_PORT,
    GENERIC_PORT_RATE,
    HOT_NUMBERS,
    MAX_NUMBER_PLACEMENT_ATTEMPTS,
    SPECIFIC_PORT_RATE,
    STANDARD_NUMBER_TOKENS,
    STANDARD_PORT_TYPES,
    STANDARD_TERRAIN_DISTRIBUTION,
)

logger = structlog.get_logger(__name__)


class Terrain(Enum):
    HILLS = "hills"
    FOREST = "forest"
    MOUNTAINS = "mountains"
    FIELDS = "fields"
    PASTURE = "pasture"
    DESERT = "desert"
    WATER = "water"
    FOG = "fog"


TERRAIN_RESOURCES: Dict[Terrain, str] = {
    Terrain.HILLS: "BRICK",
    Terrain.FOREST: "LUMBER",
    Terrain.MOUNTAINS: "ORE",
    Terrain.FIELDS: "GRAIN",
    Terrain.PASTURE: "WOOL",
}
NON_LAND_TERRAINS: frozenset[Terrain] = frozenset({Terrain.WATER, Terrain.FOG})


@dataclass(frozen=True)
class Tile:
    coord: HexCoord
    terrain: Terrain
    number: int | None = None
    has_robber: bool = False

    @property
    def resource(self) -> str | None:
        return TERRAIN_RESOURCES.get(self.terrain)

    @property
    def is_land(self) -> bool:
        return self.terrain not in NON_LAND_TERRAINS


@dataclass(frozen=True)
class Port:
    port_type: str
    vertices: Tuple[VertexCoord, VertexCoord]

    @property
    def rate(self) -> int:
        return GENERIC_PORT_RATE if self.port_type == GENERIC_PORT else SPECIFIC_PORT_RATE


class BoardQuery(Protocol):
    """Capacité de lecture du plateau utilisée par les règles."""

    def tile_at(self, coord: HexCoord) -> Tile | None: ...

    def is_vertex_on_land(self, vertex: VertexCoord) -> bool: ...

    def is_edge_on_land(self, edge: EdgeCoord) -> bool: ...

    def land_vertices(self) -> Tuple[VertexCoord, ...]: ...

    def land_edges(self) -> Tuple[EdgeCoord, ...]: ...

    def tiles_for_number(self, number: int) -> List[Tile]: ...

    def ports_at(self, vertex: VertexCoord) -> List[Port]: ...


@dataclass(frozen=True)
class Board:
    """Représentation immuable du plateau."""

    tiles: Tuple[Tile, ...]
    ports: Tuple[Port, ...] = ()
    _index: Dict[HexCoord, Tile] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", {tile.coord: tile for tile in self.tiles})

    @classmethod
    def from_tiles(
        cls,
        tiles: Mapping[HexCoord, Tuple[Terrain, int | None]],
        ports: Iterable[Port] = (),
    ) -> "Board":
        """Construit un plateau explicite; le voleur démarre sur le premier désert."""

        built: List[Tile] = []
        robber_placed = False
        for coord, (terrain, number) in tiles.items():
            on_desert = terrain is Terrain.DESERT and not robber_placed
            robber_placed = robber_placed or on_desert
            built.append(Tile(coord=coord, terrain=terrain, number=number, has_robber=on_desert))
        return cls(tiles=tuple(built), ports=tuple(ports))

    # -- API BoardQuery --
    def tile_at(self, coord: HexCoord) -> Tile | None:
        return self._index.get(coord)

    def is_land(self, coord: HexCoord) -> bool:
        tile = self._index.get(coord)
        return tile is not None and tile.is_land

    def is_vertex_on_land(self, vertex: VertexCoord) -> bool:
        return any(self.is_land(coord) for coord in vertex_hexes(vertex))

    def is_edge_on_land(self, edge: EdgeCoord) -> bool:
        return any(self.is_land(coord) for coord in edge_hexes(edge))

    def land_tiles(self) -> List[Tile]:
        return [tile for tile in self.tiles if tile.is_land]

    def land_vertices(self) -> Tuple[VertexCoord, ...]:
        return tuple(unique_vertices(tile.coord for tile in self.land_tiles()))

    def land_edges(self) -> Tuple[EdgeCoord, ...]:
        return tuple(unique_edges(tile.coord for tile in self.land_tiles()))

    def tiles_for_number(self, number: int) -> List[Tile]:
        return [tile for tile in self.tiles if tile.number == number]

    def ports_at(self, vertex: VertexCoord) -> List[Port]:
        return [port for port in self.ports if vertex in port.vertices]

    # -- Voleur --
    @property
    def robber_hex(self) -> HexCoord | None:
        for tile in self.tiles:
            if tile.has_robber:
                return tile.coord
        return None

    def with_robber(self, coord: HexCoord) -> "Board":
        """Retourne un plateau où seul `coord` porte le voleur."""

        tiles = tuple(
            replace(tile, has_robber=(tile.coord == coord)) for tile in self.tiles
        )
        return Board(tiles=tiles, ports=self.ports)

    def coastal_edges(self) -> List[EdgeCoord]:
        """Arêtes terrestres bordant au moins un hexagone hors terre."""

        return [
            edge
            for edge in self.land_edges()
            if not all(self.is_land(coord) for coord in edge_hexes(edge))
        ]


@dataclass(frozen=True)
class BoardGenerationResult:
    board: Board | None
    attempts: int
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.board is not None


# -- Génération --

def board_layout(ring_count: int, player_count: int) -> List[HexCoord]:
    """Hexagones terrestres: hexagone régulier, ou forme étendue à 5-6 joueurs."""

    if player_count <= 4:
        return hexes_in_radius(ring_count)
    radius = ring_count + 1
    # Retire la dernière colonne de chaque ligne: lignes 3-4-5-6-5-4-3 au rayon 3.
    return [coord for coord in hexes_in_radius(radius) if coord.q < min(radius, radius - coord.r)]


def has_six_eight_conflict(numbers: Mapping[HexCoord, int | None]) -> bool:
    """True si deux hexagones voisins portent tous deux un 6 ou un 8."""

    for coord, number in numbers.items():
        if number not in HOT_NUMBERS:
            continue
        for neighbor in hex_neighbors(coord):
            if numbers.get(neighbor) in HOT_NUMBERS:
                return True
    return False


def _round_robin(distribution: Mapping[str, int]) -> List[Terrain]:
    remaining = {name: count for name, count in distribution.items() if name != "desert"}
    order: List[Terrain] = []
    while any(remaining.values()):
        for name in list(remaining):
            if remaining[name] > 0:
                order.append(Terrain(name))
                remaining[name] -= 1
    return order


def _terrain_pool(distribution: Mapping[str, int], tile_count: int) -> List[Terrain]:
    full_size = sum(distribution.values())
    deserts = distribution.get("desert", 0) if tile_count >= full_size else 1
    producing = _round_robin(distribution)
    needed = tile_count - deserts
    pool = [producing[i % len(producing)] for i in range(needed)]
    return pool + [Terrain.DESERT] * deserts


def _number_pool(tokens: Sequence[int], needed: int) -> List[int]:
    return [tokens[i % len(tokens)] for i in range(needed)]


def _port_types(player_count: int, slots: int) -> List[str]:
    types = list(EXPANDED_PORT_TYPES if player_count > 4 else STANDARD_PORT_TYPES)
    while len(types) > slots:
        if GENERIC_PORT in types:
            types.remove(GENERIC_PORT)
        else:
            types.pop()
    return types


def _edge_angle(edge: EdgeCoord, center: Tuple[float, float]) -> float:
    (ax, ay), (bx, by) = (vertex_to_pixel(v) for v in edge_vertices(edge))
    mx, my = (ax + bx) / 2, (ay + by) / 2
    return math.atan2(my - center[1], mx - center[0])


def generate_ports(board: Board, player_count: int, rng: np.random.Generator) -> Tuple[Port, ...]:
    """Répartit les ports régulièrement le long de la côte, types mélangés."""

    coastal = board.coastal_edges()
    if not coastal:
        return ()
    land = [tile.coord for tile in board.land_tiles()]
    centers = [hex_to_pixel(coord) for coord in land]
    center = (
        sum(x for x, _ in centers) / len(centers),
        sum(y for _, y in centers) / len(centers),
    )
    coastal.sort(key=lambda edge: _edge_angle(edge, center))

    slots = len(coastal) // 3
    types = _port_types(player_count, slots)
    order = rng.permutation(len(types))
    step = len(coastal) / len(types)
    ports: List[Port] = []
    for slot, type_index in enumerate(order):
        edge = coastal[int(round(slot * step)) % len(coastal)]
        ports.append(Port(port_type=types[int(type_index)], vertices=edge_vertices(edge)))
    return tuple(ports)


def try_generate_board(
    ring_count: int = 2,
    player_count: int = 4,
    *,
    rng: np.random.Generator | None = None,
) -> BoardGenerationResult:
    """Génère un plateau; l'échec de la règle 6/8 est rapporté, pas levé."""

    rng = rng if rng is not None else np.random.default_rng()
    layout = board_layout(ring_count, player_count)
    expanded = player_count > 4
    distribution = EXPANDED_TERRAIN_DISTRIBUTION if expanded else STANDARD_TERRAIN_DISTRIBUTION
    tokens = EXPANDED_NUMBER_TOKENS if expanded else STANDARD_NUMBER_TOKENS

    pool = _terrain_pool(distribution, len(layout))
    terrains = [pool[int(i)] for i in rng.permutation(len(pool))]
    producing = [coord for coord, terrain in zip(layout, terrains) if terrain in TERRAIN_RESOURCES]
    numbers = _number_pool(tokens, len(producing))

    assignment: Dict[HexCoord, int] | None = None
    attempts = 0
    for attempts in range(1, MAX_NUMBER_PLACEMENT_ATTEMPTS + 1):
        shuffled = [numbers[int(i)] for i in rng.permutation(len(numbers))]
        candidate = dict(zip(producing, shuffled))
        if not has_six_eight_conflict(candidate):
            assignment = candidate
            break

    if assignment is None:
        logger.warning(
            "board_generation_failed",
            ring_count=ring_count,
            player_count=player_count,
            attempts=attempts,
        )
        return BoardGenerationResult(
            board=None,
            attempts=attempts,
            error=f"Could not place number tokens without adjacent 6/8 after {attempts} attempts",
        )

    layout_tiles = {
        coord: (terrain, assignment.get(coord)) for coord, terrain in zip(layout, terrains)
    }
    board = Board.from_tiles(layout_tiles)
    board = Board(tiles=board.tiles, ports=generate_ports(board, player_count, rng))
    logger.debug("board_generated", tiles=len(board.tiles), ports=len(board.ports), attempts=attempts)
    return BoardGenerationResult(board=board, attempts=attempts)


def generate_board(
    ring_count: int = 2,
    player_count: int = 4,
    *,
    rng: np.random.Generator | None = None,
) -> Board:
    """Comme `try_generate_board` mais lève `BoardGenerationError` en cas d'échec."""

    result = try_generate_board(ring_count, player_count, rng=rng)
    if result.board is None:
        raise BoardGenerationError(result.error or "Board generation failed", result.attempts)
    return result.board


__all__ = [
    "Board",
    "BoardGenerationResult",
    "BoardQuery",
    "NON_LAND_TERRAINS",
    "Port",
    "TERRAIN_RESOURCES",
    "Terrain",
    "Tile",
    "board_layout",
    "generate_board",
    "generate_ports",
    "has_six_eight_conflict",
    "try_generate_board",
]
