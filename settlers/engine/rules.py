"""Règles, constantes et configuration d'une partie.

Ce module expose:
- les constantes de la variante de base (coûts, pièces, banque, paquet)
- les distributions de terrains et de jetons numérotés
- `Settings`, la configuration immuable fournie par le lobby
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping

from settlers.engine.errors import ValidationResult

RESOURCE_TYPES: tuple[str, ...] = ("BRICK", "LUMBER", "WOOL", "GRAIN", "ORE")

MIN_PLAYERS: int = 2
MAX_PLAYERS: int = 6

# Limites de pièces par joueur
ROADS_PER_PLAYER: int = 15
SETTLEMENTS_PER_PLAYER: int = 5
CITIES_PER_PLAYER: int = 4

BANK_STARTING_RESOURCES: Dict[str, int] = {resource: 19 for resource in RESOURCE_TYPES}

# Coûts de construction (contrat: mapping str -> dict[str, int])
COSTS: Dict[str, Dict[str, int]] = {
    "road": {"BRICK": 1, "LUMBER": 1},
    "settlement": {"BRICK": 1, "LUMBER": 1, "WOOL": 1, "GRAIN": 1},
    "city": {"GRAIN": 2, "ORE": 3},
    "development": {"WOOL": 1, "GRAIN": 1, "ORE": 1},
}

DEV_CARD_TYPES: tuple[str, ...] = (
    "KNIGHT",
    "VICTORY_POINT",
    "ROAD_BUILDING",
    "YEAR_OF_PLENTY",
    "MONOPOLY",
)
DEV_DECK_COMPOSITION: Dict[str, int] = {
    "KNIGHT": 14,
    "VICTORY_POINT": 5,
    "ROAD_BUILDING": 2,
    "YEAR_OF_PLENTY": 2,
    "MONOPOLY": 2,
}

# Titres
LONGEST_ROAD_MINIMUM: int = 5
LARGEST_ARMY_MINIMUM: int = 3
TITLE_VICTORY_POINTS: int = 2

# Commerce
DEFAULT_TRADE_RATE: int = 4
GENERIC_PORT_RATE: int = 3
SPECIFIC_PORT_RATE: int = 2
GENERIC_PORT: str = "GENERIC"

# Plateau
MAX_NUMBER_PLACEMENT_ATTEMPTS: int = 100
HOT_NUMBERS: frozenset[int] = frozenset({6, 8})

STANDARD_TERRAIN_DISTRIBUTION: Dict[str, int] = {
    "hills": 3,
    "forest": 4,
    "mountains": 3,
    "fields": 4,
    "pasture": 4,
    "desert": 1,
}
EXPANDED_TERRAIN_DISTRIBUTION: Dict[str, int] = {
    "hills": 5,
    "forest": 6,
    "mountains": 5,
    "fields": 6,
    "pasture": 6,
    "desert": 2,
}
STANDARD_NUMBER_TOKENS: tuple[int, ...] = (
    2, 3, 3, 4, 4, 5, 5, 6, 6, 8, 8, 9, 9, 10, 10, 11, 11, 12,
)
EXPANDED_NUMBER_TOKENS: tuple[int, ...] = (
    2, 2, 3, 3, 3, 4, 4, 4, 5, 5, 5, 6, 6, 6,
    8, 8, 8, 9, 9, 9, 10, 10, 10, 11, 11, 11, 12, 12,
)
STANDARD_PORT_TYPES: tuple[str, ...] = (
    GENERIC_PORT,
    GENERIC_PORT,
    GENERIC_PORT,
    GENERIC_PORT,
    "BRICK",
    "LUMBER",
    "WOOL",
    "GRAIN",
    "ORE",
)
EXPANDED_PORT_TYPES: tuple[str, ...] = STANDARD_PORT_TYPES + (GENERIC_PORT, "WOOL")

PLAYER_COLORS: tuple[str, ...] = ("red", "blue", "white", "orange", "green", "brown")


@dataclass(frozen=True)
class Settings:
    """Configuration immuable d'une partie (fournie par le lobby)."""

    victory_points: int = 10
    turn_timer: int = 90
    discard_limit: int = 7
    friendly_robber: bool = False
    player_count: int = 4
    ring_count: int = 2
    seed: int | None = None

    _ALIASES = {
        "victoryPoints": "victory_points",
        "turnTimer": "turn_timer",
        "discardLimit": "discard_limit",
        "friendlyRobber": "friendly_robber",
        "playerCount": "player_count",
        "ringCount": "ring_count",
        "mapSize": "ring_count",
        "randomSeed": "seed",
    }

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "Settings":
        """Construit des réglages depuis un dictionnaire (clés camelCase acceptées)."""

        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in payload.items():
            name = cls._ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Réglage inconnu: {key!r}")
            values[name] = value
        return cls(**values)

    def validate(self) -> ValidationResult:
        if not MIN_PLAYERS <= self.player_count <= MAX_PLAYERS:
            return ValidationResult.fail(
                f"Game requires {MIN_PLAYERS}-{MAX_PLAYERS} players"
            )
        if self.victory_points < 3:
            return ValidationResult.fail("Victory point target must be at least 3")
        if self.discard_limit < 0:
            return ValidationResult.fail("Discard limit cannot be negative")
        if self.ring_count < 1:
            return ValidationResult.fail("Map must have at least one ring")
        if self.turn_timer <= 0:
            return ValidationResult.fail("Turn timer must be positive")
        return ValidationResult.ok()


__all__ = [
    "BANK_STARTING_RESOURCES",
    "CITIES_PER_PLAYER",
    "COSTS",
    "DEFAULT_TRADE_RATE",
    "DEV_CARD_TYPES",
    "DEV_DECK_COMPOSITION",
    "EXPANDED_NUMBER_TOKENS",
    "EXPANDED_PORT_TYPES",
    "EXPANDED_TERRAIN_DISTRIBUTION",
    "GENERIC_PORT",
    "GENERIC_PORT_RATE",
    "HOT_NUMBERS",
    "LARGEST_ARMY_MINIMUM",
    "LONGEST_ROAD_MINIMUM",
    "MAX_NUMBER_PLACEMENT_ATTEMPTS",
    "MAX_PLAYERS",
    "MIN_PLAYERS",
    "PLAYER_COLORS",
    "RESOURCE_TYPES",
    "ROADS_PER_PLAYER",
    "SETTLEMENTS_PER_PLAYER",
    "SPECIFIC_PORT_RATE",
    "STANDARD_NUMBER_TOKENS",
    "STANDARD_PORT_TYPES",
    "STANDARD_TERRAIN_DISTRIBUTION",
    "Settings",
    "TITLE_VICTORY_POINTS",
]
