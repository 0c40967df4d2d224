"""Coordonnées axiales des hexagones, sommets et arêtes.

Géométrie pointy-top, axe y vers le bas. Chaque sommet est adressé par un
hexagone et un coin (`N` ou `S`), chaque arête par un hexagone et un côté
(`NE`, `E` ou `SE`). Avec ces conventions un sommet ou une arête possède une
seule représentation : l'égalité structurelle suffit comme identité.

    N(q, r)  = coin haut de l'hexagone (q, r)
    S(q, r)  = coin bas de l'hexagone (q, r)
    NE(q, r) = N(q, r) - S(q+1, r-1)
    E(q, r)  = S(q+1, r-1) - N(q, r+1)
    SE(q, r) = N(q, r+1) - S(q, r)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Tuple

VERTEX_DIRECTIONS: tuple[str, ...] = ("N", "S")
EDGE_DIRECTIONS: tuple[str, ...] = ("NE", "E", "SE")

# Ordre: E, NE, NW, W, SW, SE
HEX_DIRECTIONS: tuple[tuple[int, int], ...] = (
    (1, 0),
    (1, -1),
    (0, -1),
    (-1, 0),
    (-1, 1),
    (0, 1),
)

_SQRT3 = math.sqrt(3.0)


@dataclass(frozen=True, order=True)
class HexCoord:
    q: int
    r: int

    @property
    def s(self) -> int:
        return -self.q - self.r

    def __str__(self) -> str:
        return hex_key(self)


@dataclass(frozen=True, order=True)
class VertexCoord:
    hex: HexCoord
    direction: str

    def __post_init__(self) -> None:
        if self.direction not in VERTEX_DIRECTIONS:
            raise ValueError(f"Direction de sommet invalide: {self.direction!r}")

    def __str__(self) -> str:
        return vertex_key(self)


@dataclass(frozen=True, order=True)
class EdgeCoord:
    hex: HexCoord
    direction: str

    def __post_init__(self) -> None:
        if self.direction not in EDGE_DIRECTIONS:
            raise ValueError(f"Direction d'arête invalide: {self.direction!r}")

    def __str__(self) -> str:
        return edge_key(self)


def _vertex(q: int, r: int, direction: str) -> VertexCoord:
    return VertexCoord(HexCoord(q, r), direction)


def _edge(q: int, r: int, direction: str) -> EdgeCoord:
    return EdgeCoord(HexCoord(q, r), direction)


# -- Clés canoniques --

def hex_key(coord: HexCoord) -> str:
    return f"{coord.q},{coord.r}"


def vertex_key(vertex: VertexCoord) -> str:
    return f"{hex_key(vertex.hex)}:{vertex.direction}"


def edge_key(edge: EdgeCoord) -> str:
    return f"{hex_key(edge.hex)}:{edge.direction}"


def parse_hex_key(key: str) -> HexCoord:
    """Inverse de `hex_key` (lève ValueError si la clé est mal formée)."""

    try:
        q_text, r_text = key.split(",")
        return HexCoord(int(q_text), int(r_text))
    except ValueError as exc:
        raise ValueError(f"Clé d'hexagone invalide: {key!r}") from exc


def parse_vertex_key(key: str) -> VertexCoord:
    hex_part, _, direction = key.partition(":")
    if not direction:
        raise ValueError(f"Clé de sommet invalide: {key!r}")
    return VertexCoord(parse_hex_key(hex_part), direction)


def parse_edge_key(key: str) -> EdgeCoord:
    hex_part, _, direction = key.partition(":")
    if not direction:
        raise ValueError(f"Clé d'arête invalide: {key!r}")
    return EdgeCoord(parse_hex_key(hex_part), direction)


# -- Hexagones --

def hex_neighbors(coord: HexCoord) -> List[HexCoord]:
    return [HexCoord(coord.q + dq, coord.r + dr) for dq, dr in HEX_DIRECTIONS]


def hex_distance(a: HexCoord, b: HexCoord) -> int:
    dq = a.q - b.q
    dr = a.r - b.r
    return max(abs(dq), abs(dr), abs(dq + dr))


def hexes_in_radius(radius: int, center: HexCoord = HexCoord(0, 0)) -> List[HexCoord]:
    """Hexagones à distance <= radius, triés par ligne puis colonne."""

    result: List[HexCoord] = []
    for r in range(-radius, radius + 1):
        q_min = max(-radius, -r - radius)
        q_max = min(radius, -r + radius)
        for q in range(q_min, q_max + 1):
            result.append(HexCoord(center.q + q, center.r + r))
    return result


def hex_vertices(coord: HexCoord) -> List[VertexCoord]:
    """Les six coins, dans le sens horaire depuis le coin haut."""

    q, r = coord.q, coord.r
    return [
        _vertex(q, r, "N"),
        _vertex(q + 1, r - 1, "S"),
        _vertex(q, r + 1, "N"),
        _vertex(q, r, "S"),
        _vertex(q - 1, r + 1, "N"),
        _vertex(q, r - 1, "S"),
    ]


def hex_edges(coord: HexCoord) -> List[EdgeCoord]:
    """Les six côtés, dans le sens horaire depuis le côté nord-est."""

    q, r = coord.q, coord.r
    return [
        _edge(q, r, "NE"),
        _edge(q, r, "E"),
        _edge(q, r, "SE"),
        _edge(q - 1, r + 1, "NE"),
        _edge(q - 1, r, "E"),
        _edge(q, r - 1, "SE"),
    ]


# -- Sommets et arêtes --

def edge_vertices(edge: EdgeCoord) -> Tuple[VertexCoord, VertexCoord]:
    q, r = edge.hex.q, edge.hex.r
    if edge.direction == "NE":
        return _vertex(q, r, "N"), _vertex(q + 1, r - 1, "S")
    if edge.direction == "E":
        return _vertex(q + 1, r - 1, "S"), _vertex(q, r + 1, "N")
    return _vertex(q, r + 1, "N"), _vertex(q, r, "S")


def vertex_edges(vertex: VertexCoord) -> List[EdgeCoord]:
    q, r = vertex.hex.q, vertex.hex.r
    if vertex.direction == "N":
        return [_edge(q, r, "NE"), _edge(q, r - 1, "E"), _edge(q, r - 1, "SE")]
    return [_edge(q, r, "SE"), _edge(q - 1, r + 1, "NE"), _edge(q - 1, r + 1, "E")]


def vertex_neighbors(vertex: VertexCoord) -> List[VertexCoord]:
    """Sommets à une arête de distance."""

    q, r = vertex.hex.q, vertex.hex.r
    if vertex.direction == "N":
        return [_vertex(q + 1, r - 1, "S"), _vertex(q, r - 1, "S"), _vertex(q + 1, r - 2, "S")]
    return [_vertex(q, r + 1, "N"), _vertex(q - 1, r + 1, "N"), _vertex(q - 1, r + 2, "N")]


def vertex_hexes(vertex: VertexCoord) -> List[HexCoord]:
    q, r = vertex.hex.q, vertex.hex.r
    if vertex.direction == "N":
        return [HexCoord(q, r), HexCoord(q, r - 1), HexCoord(q + 1, r - 1)]
    return [HexCoord(q, r), HexCoord(q - 1, r + 1), HexCoord(q, r + 1)]


def edge_hexes(edge: EdgeCoord) -> List[HexCoord]:
    q, r = edge.hex.q, edge.hex.r
    if edge.direction == "NE":
        return [HexCoord(q, r), HexCoord(q + 1, r - 1)]
    if edge.direction == "E":
        return [HexCoord(q, r), HexCoord(q + 1, r)]
    return [HexCoord(q, r), HexCoord(q, r + 1)]


def adjacent_edges(edge: EdgeCoord) -> List[EdgeCoord]:
    """Arêtes partageant une extrémité avec `edge` (sans elle-même)."""

    result: List[EdgeCoord] = []
    for vertex in edge_vertices(edge):
        for other in vertex_edges(vertex):
            if other != edge and other not in result:
                result.append(other)
    return result


def shared_vertex(a: EdgeCoord, b: EdgeCoord) -> VertexCoord | None:
    ends_b = edge_vertices(b)
    for vertex in edge_vertices(a):
        if vertex in ends_b:
            return vertex
    return None


def unique_vertices(hexes: Iterable[HexCoord]) -> List[VertexCoord]:
    seen: set[VertexCoord] = set()
    result: List[VertexCoord] = []
    for coord in hexes:
        for vertex in hex_vertices(coord):
            if vertex not in seen:
                seen.add(vertex)
                result.append(vertex)
    return result


def unique_edges(hexes: Iterable[HexCoord]) -> List[EdgeCoord]:
    seen: set[EdgeCoord] = set()
    result: List[EdgeCoord] = []
    for coord in hexes:
        for edge in hex_edges(coord):
            if edge not in seen:
                seen.add(edge)
                result.append(edge)
    return result


# -- Pixels (rendu externe, ordonnancement des ports) --

def hex_to_pixel(coord: HexCoord, size: float = 1.0) -> Tuple[float, float]:
    x = size * _SQRT3 * (coord.q + coord.r / 2)
    y = size * 1.5 * coord.r
    return x, y


def vertex_to_pixel(vertex: VertexCoord, size: float = 1.0) -> Tuple[float, float]:
    cx, cy = hex_to_pixel(vertex.hex, size)
    offset = -size if vertex.direction == "N" else size
    return cx, cy + offset


__all__ = [
    "EDGE_DIRECTIONS",
    "EdgeCoord",
    "HEX_DIRECTIONS",
    "HexCoord",
    "VERTEX_DIRECTIONS",
    "VertexCoord",
    "adjacent_edges",
    "edge_hexes",
    "edge_key",
    "edge_vertices",
    "hex_distance",
    "hex_edges",
    "hex_key",
    "hex_neighbors",
    "hex_to_pixel",
    "hex_vertices",
    "hexes_in_radius",
    "parse_edge_key",
    "parse_hex_key",
    "parse_vertex_key",
    "shared_vertex",
    "unique_edges",
    "unique_vertices",
    "vertex_edges",
    "vertex_hexes",
    "vertex_key",
    "vertex_neighbors",
    "vertex_to_pixel",
]
