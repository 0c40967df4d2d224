"""Cartes de développement: paquet, achat, effets et armée la plus grande."""

from __future__ import annotations

from typing import List, Sequence

import numpy as np
import structlog

from settlers.engine.building import place_road
from settlers.engine.coords import EdgeCoord
from settlers.engine.errors import ValidationResult
from settlers.engine.ledger import Ledger, ResourceLedger
from settlers.engine.longest_road import resolve_title
from settlers.engine.rules import (
    COSTS,
    DEV_DECK_COMPOSITION,
    LARGEST_ARMY_MINIMUM,
    RESOURCE_TYPES,
)
from settlers.engine.state import DevelopmentCard, GameState, Phase, Player, transition

logger = structlog.get_logger(__name__)

PLAYABLE_CARD_TYPES: tuple[str, ...] = ("KNIGHT", "ROAD_BUILDING", "YEAR_OF_PLENTY", "MONOPOLY")


def create_development_deck(rng: np.random.Generator) -> List[DevelopmentCard]:
    """Paquet complet (25 cartes) mélangé avec le générateur fourni."""

    types = [card for card, count in DEV_DECK_COMPOSITION.items() for _ in range(count)]
    return [
        DevelopmentCard(card_id=f"dev-{position + 1}", card_type=types[int(index)])
        for position, index in enumerate(rng.permutation(len(types)))
    ]


# -- Achat --

def can_buy_development_card(
    state: GameState,
    player_id: str,
    ledger: Ledger | None = None,
) -> ValidationResult:
    if not state.development_deck:
        return ValidationResult.fail("No development cards left")
    if not (ledger or ResourceLedger()).can_afford(state, player_id, COSTS["development"]):
        return ValidationResult.fail("Not enough resources to buy a development card")
    return ValidationResult.ok()


def buy_development_card(
    state: GameState,
    player_id: str,
    ledger: Ledger | None = None,
) -> GameState:
    """Pioche la carte du dessus et la marque avec le tour d'achat."""

    new_state = state.clone()
    (ledger or ResourceLedger()).debit(new_state, player_id, COSTS["development"])
    card = new_state.development_deck.pop(0)
    card.turn_bought = new_state.turn
    new_state.player(player_id).development_cards.append(card)
    logger.debug("development_card_bought", player_id=player_id, remaining=len(new_state.development_deck))
    return new_state


# -- Jeu d'une carte --

def find_playable_card(player: Player, card_type: str, turn: int) -> DevelopmentCard | None:
    for card in player.development_cards:
        if card.card_type == card_type and not card.is_played and card.turn_bought != turn:
            return card
    return None


def can_play_development_card(
    state: GameState,
    player_id: str,
    card_type: str,
) -> ValidationResult:
    if card_type not in PLAYABLE_CARD_TYPES:
        return ValidationResult.fail(f"{card_type} cards cannot be played")
    player = state.player(player_id)
    if player.has_played_dev_card:
        return ValidationResult.fail("Already played a development card this turn")
    if find_playable_card(player, card_type, state.turn) is not None:
        return ValidationResult.ok()
    bought_now = any(
        card.card_type == card_type and not card.is_played and card.turn_bought == state.turn
        for card in player.development_cards
    )
    if bought_now:
        return ValidationResult.fail("Cannot play a development card on the turn it was bought")
    return ValidationResult.fail(f"You do not have a playable {card_type} card")


def _consume(state: GameState, player_id: str, card_type: str) -> Player:
    player = state.player(player_id)
    card = find_playable_card(player, card_type, state.turn)
    if card is None:
        raise ValueError(f"Aucune carte {card_type} jouable pour {player_id}")
    card.is_played = True
    player.has_played_dev_card = True
    return player


def play_knight(state: GameState, player_id: str) -> GameState:
    """Armée +1, puis déplacement du voleur."""

    new_state = state.clone()
    player = _consume(new_state, player_id, "KNIGHT")
    player.army_size += 1
    transition(new_state, Phase.ROBBER_MOVE)
    return update_largest_army(new_state)


def play_road_building(state: GameState, player_id: str) -> GameState:
    """Jusqu'à deux routes gratuites (moins si le joueur manque de pièces)."""

    new_state = state.clone()
    player = _consume(new_state, player_id, "ROAD_BUILDING")
    remaining = min(2, player.roads_remaining)
    new_state.road_building_remaining = remaining
    if remaining > 0:
        transition(new_state, Phase.ROAD_BUILDING)
    return new_state


def build_free_road(
    state: GameState,
    player_id: str,
    edge: EdgeCoord,
    ledger: Ledger | None = None,
) -> GameState:
    new_state = place_road(state, player_id, edge, free=True, ledger=ledger)
    new_state.road_building_remaining -= 1
    if new_state.road_building_remaining <= 0:
        return finish_road_building(new_state)
    return new_state


def finish_road_building(state: GameState) -> GameState:
    new_state = state.clone()
    new_state.road_building_remaining = 0
    transition(new_state, Phase.MAIN)
    return new_state


def validate_year_of_plenty(state: GameState, resources: Sequence[str]) -> ValidationResult:
    if len(resources) != 2:
        return ValidationResult.fail("Choose exactly two resources")
    for resource in resources:
        if resource not in RESOURCE_TYPES:
            return ValidationResult.fail(f"Unknown resource: {resource}")
    first, second = resources
    if first == second:
        if state.bank[first] < 2:
            return ValidationResult.fail(f"The bank does not have two {first}")
    elif state.bank[first] < 1 or state.bank[second] < 1:
        return ValidationResult.fail("The bank does not have those resources")
    return ValidationResult.ok()


def bank_can_supply_two(state: GameState) -> bool:
    stocked = [amount for amount in state.bank.values() if amount > 0]
    return len(stocked) >= 2 or any(amount >= 2 for amount in stocked)


def play_year_of_plenty(
    state: GameState,
    player_id: str,
    resources: Sequence[str] | None = None,
    ledger: Ledger | None = None,
) -> GameState:
    """Sans choix, passe en phase year-of-plenty; sinon résout immédiatement."""

    new_state = state.clone()
    _consume(new_state, player_id, "YEAR_OF_PLENTY")
    transition(new_state, Phase.YEAR_OF_PLENTY)
    if resources is None:
        return new_state
    return select_year_of_plenty(new_state, player_id, resources, ledger)


def select_year_of_plenty(
    state: GameState,
    player_id: str,
    resources: Sequence[str],
    ledger: Ledger | None = None,
) -> GameState:
    new_state = state.clone()
    grant: dict[str, int] = {}
    for resource in resources:
        grant[resource] = grant.get(resource, 0) + 1
    (ledger or ResourceLedger()).credit(new_state, player_id, grant)
    transition(new_state, Phase.MAIN)
    return new_state


def play_monopoly(
    state: GameState,
    player_id: str,
    resource: str | None = None,
    ledger: Ledger | None = None,
) -> GameState:
    new_state = state.clone()
    _consume(new_state, player_id, "MONOPOLY")
    transition(new_state, Phase.MONOPOLY)
    if resource is None:
        return new_state
    return select_monopoly(new_state, player_id, resource, ledger)


def select_monopoly(
    state: GameState,
    player_id: str,
    resource: str,
    ledger: Ledger | None = None,
) -> GameState:
    """Tous les adversaires cèdent l'intégralité de `resource` au joueur actif."""

    new_state = state.clone()
    ledger = ledger or ResourceLedger()
    collected = 0
    for other in new_state.other_players(player_id):
        amount = other.resources.get(resource, 0)
        if amount:
            ledger.transfer(new_state, other.player_id, player_id, {resource: amount})
            collected += amount
    logger.info("monopoly_resolved", player_id=player_id, resource=resource, collected=collected)
    transition(new_state, Phase.MAIN)
    return new_state


# -- Armée la plus grande --

def update_largest_army(state: GameState) -> GameState:
    new_state = state.clone()
    scores = {player.player_id: player.army_size for player in new_state.players}
    holder = resolve_title(scores, LARGEST_ARMY_MINIMUM)
    if holder != new_state.largest_army_holder:
        logger.info(
            "largest_army_changed",
            previous=new_state.largest_army_holder,
            holder=holder,
        )
    new_state.largest_army_holder = holder
    return new_state


def victory_point_cards(player: Player) -> int:
    return sum(1 for card in player.development_cards if card.card_type == "VICTORY_POINT")


__all__ = [
    "PLAYABLE_CARD_TYPES",
    "bank_can_supply_two",
    "build_free_road",
    "buy_development_card",
    "can_buy_development_card",
    "can_play_development_card",
    "create_development_deck",
    "find_playable_card",
    "finish_road_building",
    "play_knight",
    "play_monopoly",
    "play_road_building",
    "play_year_of_plenty",
    "select_monopoly",
    "select_year_of_plenty",
    "update_largest_army",
    "validate_year_of_plenty",
    "victory_point_cards",
]
