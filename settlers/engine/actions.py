"""Actions du jeu (union discriminée par `Action.type`).

Chaque action est soumise avec l'identifiant du joueur qui agit:
`process_action(state, action, player_id)`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, Tuple

from settlers.engine.coords import EdgeCoord, HexCoord, VertexCoord


@dataclass(frozen=True)
class Action:
    """Action de base."""

    type: ClassVar[str] = "ACTION"


# -- Setup --

@dataclass(frozen=True)
class PlaceSetupSettlement(Action):
    """Colonie gratuite pendant le placement initial."""

    type: ClassVar[str] = "PLACE_SETUP_SETTLEMENT"
    vertex: VertexCoord


@dataclass(frozen=True)
class PlaceSetupRoad(Action):
    """Route gratuite, adjacente à la colonie qui vient d'être posée."""

    type: ClassVar[str] = "PLACE_SETUP_ROAD"
    edge: EdgeCoord


# -- Dés, défausse, voleur --

@dataclass(frozen=True)
class RollDice(Action):
    """Lance les dés.

    Args:
        forced_value: Valeur forcée pour les tests (optionnel). Jamais lue
            depuis un payload réseau: les dés viennent du générateur de la partie.
    """

    type: ClassVar[str] = "ROLL_DICE"
    forced_value: Tuple[int, int] | None = field(default=None, metadata={"local_only": True})


@dataclass(frozen=True)
class DiscardResources(Action):
    """Défausse des ressources lors d'un 7.

    Args:
        resources: Quantités à défausser par ressource; `None` déclenche une
            défausse aléatoire (expiration du timer côté appelant).
    """

    type: ClassVar[str] = "DISCARD_RESOURCES"
    resources: Dict[str, int] | None = None


@dataclass(frozen=True)
class MoveRobber(Action):
    type: ClassVar[str] = "MOVE_ROBBER"
    hex: HexCoord


@dataclass(frozen=True)
class StealResource(Action):
    type: ClassVar[str] = "STEAL_RESOURCE"
    victim_id: str


@dataclass(frozen=True)
class SkipSteal(Action):
    type: ClassVar[str] = "SKIP_STEAL"


# -- Constructions --

@dataclass(frozen=True)
class BuildRoad(Action):
    """Route payante, ou gratuite en phase road-building."""

    type: ClassVar[str] = "BUILD_ROAD"
    edge: EdgeCoord


@dataclass(frozen=True)
class BuildSettlement(Action):
    type: ClassVar[str] = "BUILD_SETTLEMENT"
    vertex: VertexCoord


@dataclass(frozen=True)
class BuildCity(Action):
    """Améliore une colonie en ville."""

    type: ClassVar[str] = "BUILD_CITY"
    vertex: VertexCoord


# -- Cartes de développement --

@dataclass(frozen=True)
class BuyDevelopmentCard(Action):
    type: ClassVar[str] = "BUY_DEVELOPMENT_CARD"


@dataclass(frozen=True)
class PlayKnight(Action):
    type: ClassVar[str] = "PLAY_KNIGHT"


@dataclass(frozen=True)
class PlayRoadBuilding(Action):
    type: ClassVar[str] = "PLAY_ROAD_BUILDING"


@dataclass(frozen=True)
class CompleteRoadBuilding(Action):
    """Termine la phase road-building quand aucune route n'est plus posable."""

    type: ClassVar[str] = "COMPLETE_ROAD_BUILDING"


@dataclass(frozen=True)
class PlayYearOfPlenty(Action):
    """Deux ressources de la banque; sans choix, une sélection suit."""

    type: ClassVar[str] = "PLAY_YEAR_OF_PLENTY"
    resources: Tuple[str, str] | None = None


@dataclass(frozen=True)
class SelectYearOfPlenty(Action):
    type: ClassVar[str] = "SELECT_YEAR_OF_PLENTY"
    resources: Tuple[str, str]


@dataclass(frozen=True)
class PlayMonopoly(Action):
    type: ClassVar[str] = "PLAY_MONOPOLY"
    resource: str | None = None


@dataclass(frozen=True)
class SelectMonopoly(Action):
    type: ClassVar[str] = "SELECT_MONOPOLY"
    resource: str


# -- Commerce --

@dataclass(frozen=True)
class BankTrade(Action):
    """Échange avec la banque au meilleur taux du joueur (ports)."""

    type: ClassVar[str] = "BANK_TRADE"
    give: Dict[str, int] = field(default_factory=dict)
    receive: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ProposeTrade(Action):
    """Offre à un joueur précis (`to_player_id`) ou à tous (`None`)."""

    type: ClassVar[str] = "PROPOSE_TRADE"
    offering: Dict[str, int] = field(default_factory=dict)
    requesting: Dict[str, int] = field(default_factory=dict)
    to_player_id: str | None = None


@dataclass(frozen=True)
class AcceptTrade(Action):
    type: ClassVar[str] = "ACCEPT_TRADE"
    offer_id: str


@dataclass(frozen=True)
class DeclineTrade(Action):
    type: ClassVar[str] = "DECLINE_TRADE"
    offer_id: str


@dataclass(frozen=True)
class CounterTrade(Action):
    type: ClassVar[str] = "COUNTER_TRADE"
    offer_id: str
    offering: Dict[str, int] = field(default_factory=dict)
    requesting: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class CancelTrade(Action):
    type: ClassVar[str] = "CANCEL_TRADE"
    offer_id: str


@dataclass(frozen=True)
class EndTurn(Action):
    """Termine le tour du joueur actuel."""

    type: ClassVar[str] = "END_TURN"


ACTION_TYPES: Dict[str, type] = {
    cls.type: cls
    for cls in (
        PlaceSetupSettlement,
        PlaceSetupRoad,
        RollDice,
        DiscardResources,
        MoveRobber,
        StealResource,
        SkipSteal,
        BuildRoad,
        BuildSettlement,
        BuildCity,
        BuyDevelopmentCard,
        PlayKnight,
        PlayRoadBuilding,
        CompleteRoadBuilding,
        PlayYearOfPlenty,
        SelectYearOfPlenty,
        PlayMonopoly,
        SelectMonopoly,
        BankTrade,
        ProposeTrade,
        AcceptTrade,
        DeclineTrade,
        CounterTrade,
        CancelTrade,
        EndTurn,
    )
}


__all__ = [
    "ACTION_TYPES",
    "AcceptTrade",
    "Action",
    "BankTrade",
    "BuildCity",
    "BuildRoad",
    "BuildSettlement",
    "BuyDevelopmentCard",
    "CancelTrade",
    "CompleteRoadBuilding",
    "CounterTrade",
    "DeclineTrade",
    "DiscardResources",
    "EndTurn",
    "MoveRobber",
    "PlaceSetupRoad",
    "PlaceSetupSettlement",
    "PlayKnight",
    "PlayMonopoly",
    "PlayRoadBuilding",
    "PlayYearOfPlenty",
    "ProposeTrade",
    "RollDice",
    "SelectMonopoly",
    "SelectYearOfPlenty",
    "SkipSteal",
    "StealResource",
]
