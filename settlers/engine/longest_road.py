"""Route la plus longue: recherche en profondeur sur le réseau d'un joueur.

Le réseau est une liste d'adjacence indexée par sommet, reconstruite à la
demande depuis la liste plate des routes. Un sommet occupé par un bâtiment
adverse coupe le chemin qui le traverse sans retirer les routes au-delà.
Complexité exponentielle dans le pire cas, acceptable à l'échelle du plateau.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Mapping, Set, Tuple

import structlog

from settlers.engine.coords import EdgeCoord, VertexCoord, edge_vertices
from settlers.engine.rules import LONGEST_ROAD_MINIMUM
from settlers.engine.state import GameState

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LongestRoad:
    length: int
    edges: Tuple[EdgeCoord, ...] = ()


def _other_end(edge: EdgeCoord, vertex: VertexCoord) -> VertexCoord:
    a, b = edge_vertices(edge)
    return b if a == vertex else a


def calculate_longest_road(state: GameState, player_id: str) -> LongestRoad:
    """Plus longue suite d'arêtes contiguës du joueur (chaque arête au plus une fois)."""

    owned = [road.edge for road in state.roads_of(player_id)]
    if not owned:
        return LongestRoad(length=0)

    adjacency: Dict[VertexCoord, List[EdgeCoord]] = defaultdict(list)
    for edge in owned:
        for vertex in edge_vertices(edge):
            adjacency[vertex].append(edge)
    blocked = {
        building.vertex for building in state.buildings if building.owner_id != player_id
    }

    best: List[EdgeCoord] = []

    def extend(vertex: VertexCoord, path: List[EdgeCoord], used: Set[EdgeCoord]) -> None:
        nonlocal best
        if len(path) > len(best):
            best = list(path)
        if vertex in blocked:
            return
        for edge in adjacency[vertex]:
            if edge in used:
                continue
            used.add(edge)
            path.append(edge)
            extend(_other_end(edge, vertex), path, used)
            path.pop()
            used.discard(edge)

    for edge in owned:
        for end in edge_vertices(edge):
            extend(end, [edge], {edge})

    return LongestRoad(length=len(best), edges=tuple(best))


def resolve_title(scores: Mapping[str, int], minimum: int) -> str | None:
    """Détenteur d'un titre (route la plus longue, armée la plus grande).

    Seul un maximum unique, au moins égal au minimum, donne le titre. En cas
    d'égalité au maximum personne ne le détient, le détenteur actuel compris.
    """

    if not scores:
        return None
    best = max(scores.values())
    if best < minimum:
        return None
    leaders = [player_id for player_id, score in scores.items() if score == best]
    if len(leaders) > 1:
        return None
    return leaders[0]


def update_longest_road(state: GameState) -> GameState:
    """Recalcule les longueurs en cache et le détenteur du titre."""

    new_state = state.clone()
    scores: Dict[str, int] = {}
    for player in new_state.players:
        length = calculate_longest_road(new_state, player.player_id).length
        player.longest_road_length = length
        scores[player.player_id] = length

    holder = resolve_title(scores, LONGEST_ROAD_MINIMUM)
    if holder != new_state.longest_road_holder:
        logger.info(
            "longest_road_changed",
            previous=new_state.longest_road_holder,
            holder=holder,
            length=scores.get(holder, 0) if holder else 0,
        )
    new_state.longest_road_holder = holder
    return new_state


__all__ = [
    "LongestRoad",
    "calculate_longest_road",
    "resolve_title",
    "update_longest_road",
]
