"""État du jeu: racine d'agrégat `GameState` et entités associées.

Chaque version de l'état est produite par `process_action`; les fonctions du
moteur travaillent sur une copie (`GameState.clone`) et ne modifient jamais
l'état reçu.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from settlers.engine.board import Board
from settlers.engine.coords import EdgeCoord, HexCoord, VertexCoord
from settlers.engine.errors import fail_invariant, invariant
from settlers.engine.rules import (
    BANK_STARTING_RESOURCES,
    CITIES_PER_PLAYER,
    RESOURCE_TYPES,
    ROADS_PER_PLAYER,
    SETTLEMENTS_PER_PLAYER,
    Settings,
)

RngState = Dict[str, Any]


class Phase(Enum):
    LOBBY = "lobby"
    SETUP_SETTLEMENT_1 = "setup-settlement-1"
    SETUP_ROAD_1 = "setup-road-1"
    SETUP_SETTLEMENT_2 = "setup-settlement-2"
    SETUP_ROAD_2 = "setup-road-2"
    ROLL = "roll"
    DISCARD = "discard"
    ROBBER_MOVE = "robber-move"
    ROBBER_STEAL = "robber-steal"
    MAIN = "main"
    ROAD_BUILDING = "road-building"
    YEAR_OF_PLENTY = "year-of-plenty"
    MONOPOLY = "monopoly"
    ENDED = "ended"

    @property
    def is_setup(self) -> bool:
        return self.value.startswith("setup-")


PHASE_TRANSITIONS: Dict[Phase, frozenset[Phase]] = {
    Phase.LOBBY: frozenset({Phase.SETUP_SETTLEMENT_1}),
    Phase.SETUP_SETTLEMENT_1: frozenset({Phase.SETUP_ROAD_1}),
    Phase.SETUP_ROAD_1: frozenset({Phase.SETUP_SETTLEMENT_1, Phase.SETUP_SETTLEMENT_2}),
    Phase.SETUP_SETTLEMENT_2: frozenset({Phase.SETUP_ROAD_2}),
    Phase.SETUP_ROAD_2: frozenset({Phase.SETUP_SETTLEMENT_2, Phase.ROLL}),
    Phase.ROLL: frozenset({Phase.MAIN, Phase.DISCARD, Phase.ROBBER_MOVE, Phase.ENDED}),
    Phase.DISCARD: frozenset({Phase.ROBBER_MOVE, Phase.ENDED}),
    Phase.ROBBER_MOVE: frozenset({Phase.ROBBER_STEAL, Phase.MAIN, Phase.ROLL, Phase.ENDED}),
    Phase.ROBBER_STEAL: frozenset({Phase.MAIN, Phase.ROLL, Phase.ENDED}),
    Phase.MAIN: frozenset(
        {
            Phase.MAIN,
            Phase.ROAD_BUILDING,
            Phase.YEAR_OF_PLENTY,
            Phase.MONOPOLY,
            Phase.ROBBER_MOVE,
            Phase.ROLL,
            Phase.ENDED,
        }
    ),
    Phase.ROAD_BUILDING: frozenset({Phase.ROAD_BUILDING, Phase.MAIN, Phase.ENDED}),
    Phase.YEAR_OF_PLENTY: frozenset({Phase.MAIN, Phase.ENDED}),
    Phase.MONOPOLY: frozenset({Phase.MAIN, Phase.ENDED}),
    Phase.ENDED: frozenset(),
}


def transition(state: "GameState", phase: Phase) -> None:
    """Change la phase d'un état de travail en respectant le graphe des phases."""

    invariant(
        phase in PHASE_TRANSITIONS[state.phase],
        "Illegal phase transition",
        source=state.phase.value,
        target=phase.value,
    )
    state.phase = phase


def empty_resources() -> Dict[str, int]:
    return {resource: 0 for resource in RESOURCE_TYPES}


@dataclass
class DevelopmentCard:
    card_id: str
    card_type: str
    turn_bought: int | None = None
    is_played: bool = False


@dataclass
class Player:
    """Représentation d'un joueur."""

    player_id: str
    color: str
    resources: Dict[str, int] = field(default_factory=empty_resources)
    development_cards: List[DevelopmentCard] = field(default_factory=list)
    roads_remaining: int = ROADS_PER_PLAYER
    settlements_remaining: int = SETTLEMENTS_PER_PLAYER
    cities_remaining: int = CITIES_PER_PLAYER
    army_size: int = 0
    longest_road_length: int = 0
    has_played_dev_card: bool = False
    # Statistiques
    total_resources_collected: int = 0
    total_trades_made: int = 0
    times_robbed: int = 0
    times_was_robbed: int = 0

    @property
    def resource_count(self) -> int:
        return sum(self.resources.values())


@dataclass(frozen=True)
class Building:
    building_id: str
    building_type: str  # "settlement" | "city"
    owner_id: str
    vertex: VertexCoord
    has_wall: bool = False


@dataclass(frozen=True)
class Road:
    road_id: str
    owner_id: str
    edge: EdgeCoord


@dataclass
class TradeOffer:
    """Offre d'échange joueur↔joueur (ciblée ou diffusée à tous)."""

    offer_id: str
    from_player_id: str
    to_player_id: str | None
    offering: Dict[str, int]
    requesting: Dict[str, int]
    declined_by: List[str] = field(default_factory=list)
    is_active: bool = True
    counter_to: str | None = None


@dataclass(frozen=True)
class LogEntry:
    version: int
    turn: int
    player_id: str
    action: str
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SetupProgress:
    """Avancement du placement initial (ordre en serpent)."""

    order: List[str]
    placement_index: int = 0
    last_settlement: VertexCoord | None = None


@dataclass
class GameState:
    """État du jeu (sémantique de valeur).

    Toutes les modifications doivent retourner un nouvel état.
    """

    board: Board
    settings: Settings
    players: List[Player]
    turn_order: List[str]
    phase: Phase
    current_player_id: str
    turn: int = 0
    version: int = 1
    last_updated: float = 0.0
    buildings: List[Building] = field(default_factory=list)
    roads: List[Road] = field(default_factory=list)
    robber_hex: HexCoord | None = None
    bank: Dict[str, int] = field(default_factory=lambda: dict(BANK_STARTING_RESOURCES))
    development_deck: List[DevelopmentCard] = field(default_factory=list)
    longest_road_holder: str | None = None
    largest_army_holder: str | None = None
    trade_offers: List[TradeOffer] = field(default_factory=list)
    next_offer_seq: int = 1
    setup: SetupProgress | None = None
    last_roll: Tuple[int, int] | None = None
    dice_history: List[int] = field(default_factory=list)
    dice_rolled_this_turn: bool = False
    pending_discards: Dict[str, int] = field(default_factory=dict)
    road_building_remaining: int = 0
    winner_id: str | None = None
    log: List[LogEntry] = field(default_factory=list)
    rng_state: Optional[RngState] = None

    def clone(self) -> "GameState":
        """Copie profonde; plateau, réglages et entrées du journal (immuables) sont partagés."""

        memo = {
            id(self.board): self.board,
            id(self.settings): self.settings,
            id(self.log): list(self.log),
        }
        return copy.deepcopy(self, memo)

    @property
    def is_game_over(self) -> bool:
        return self.phase is Phase.ENDED

    def dice_distribution(self) -> Dict[int, int]:
        """Nombre de lancers par total (2 à 12), depuis `dice_history`."""

        counts = {total: 0 for total in range(2, 13)}
        for total in self.dice_history:
            counts[total] += 1
        return counts

    # -- Joueurs --
    def has_player(self, player_id: str) -> bool:
        return any(player.player_id == player_id for player in self.players)

    def player(self, player_id: str) -> Player:
        for player in self.players:
            if player.player_id == player_id:
                return player
        fail_invariant("Player not found", player_id=player_id)

    def other_players(self, player_id: str) -> List[Player]:
        return [player for player in self.players if player.player_id != player_id]

    # -- Plateau --
    def building_at(self, vertex: VertexCoord) -> Building | None:
        for building in self.buildings:
            if building.vertex == vertex:
                return building
        return None

    def road_at(self, edge: EdgeCoord) -> Road | None:
        for road in self.roads:
            if road.edge == edge:
                return road
        return None

    def buildings_of(self, player_id: str) -> List[Building]:
        return [b for b in self.buildings if b.owner_id == player_id]

    def roads_of(self, player_id: str) -> List[Road]:
        return [r for r in self.roads if r.owner_id == player_id]

    # -- Aléatoire --
    def rng(self) -> np.random.Generator:
        """Retourne un générateur restauré depuis l'état courant."""

        invariant(self.rng_state is not None, "Game state has no random generator state")
        return rng_from_state(self.rng_state)  # type: ignore[arg-type]

    def store_rng(self, rng: np.random.Generator) -> None:
        self.rng_state = copy.deepcopy(rng.bit_generator.state)


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Générateur injectable; sans graine, initialisé depuis l'entropie du système."""

    return np.random.default_rng(seed)


def rng_from_state(state: RngState) -> np.random.Generator:
    bit_generator = getattr(np.random, state["bit_generator"])()
    bit_generator.state = state
    return np.random.Generator(bit_generator)


__all__ = [
    "Building",
    "DevelopmentCard",
    "PHASE_TRANSITIONS",
    "GameState",
    "LogEntry",
    "Phase",
    "Player",
    "Road",
    "RngState",
    "SetupProgress",
    "TradeOffer",
    "empty_resources",
    "make_rng",
    "rng_from_state",
    "transition",
]
