"""Commerce: taux de la banque (ports) et protocole d'offres entre joueurs.

Protocole joueur↔joueur:
- une offre est ciblée (`to_player_id`) ou diffusée à tous (`None`)
- la première acceptation valide conclut l'échange de façon atomique et
  désactive l'offre; toute acceptation ultérieure échoue
- une contre-offre est une nouvelle offre adressée au proposant initial
- une offre se désactive quand tous les destinataires l'ont refusée
"""

from __future__ import annotations

from typing import Dict, List, Mapping

import structlog

from settlers.engine.errors import ValidationResult, fail_invariant
from settlers.engine.ledger import Ledger, ResourceLedger, Resources, validate_resource_map
from settlers.engine.rules import (
    DEFAULT_TRADE_RATE,
    GENERIC_PORT,
    RESOURCE_TYPES,
)
from settlers.engine.state import GameState, TradeOffer

logger = structlog.get_logger(__name__)


def _clean(resources: Mapping[str, int]) -> Resources:
    return {resource: int(amount) for resource, amount in resources.items() if amount}


# -- Banque --

def bank_rates(state: GameState, player_id: str) -> Dict[str, int]:
    """Meilleur taux par ressource: 4:1, 3:1 (port générique), 2:1 (port dédié)."""

    rates = {resource: DEFAULT_TRADE_RATE for resource in RESOURCE_TYPES}
    for building in state.buildings_of(player_id):
        for port in state.board.ports_at(building.vertex):
            if port.port_type == GENERIC_PORT:
                for resource in RESOURCE_TYPES:
                    rates[resource] = min(rates[resource], port.rate)
            else:
                rates[port.port_type] = min(rates[port.port_type], port.rate)
    return rates


def validate_bank_trade(
    state: GameState,
    player_id: str,
    give: Mapping[str, int],
    receive: Mapping[str, int],
) -> ValidationResult:
    for resources in (give, receive):
        shape = validate_resource_map(resources)
        if not shape:
            return shape
    give = _clean(give)
    receive = _clean(receive)
    if len(give) != 1:
        return ValidationResult.fail("Bank trades must give exactly one resource type")
    if not receive:
        return ValidationResult.fail("Choose a resource to receive")
    (given, amount), = give.items()
    if given in receive:
        return ValidationResult.fail("Cannot receive the resource you are giving")
    rate = bank_rates(state, player_id)[given]
    if amount % rate != 0:
        return ValidationResult.fail(f"Must give a multiple of {rate} {given}")
    if sum(receive.values()) != amount // rate:
        return ValidationResult.fail(f"At {rate}:1 you receive {amount // rate} card(s)")
    if state.player(player_id).resources[given] < amount:
        return ValidationResult.fail("Not enough resources for this trade")
    if any(state.bank[resource] < wanted for resource, wanted in receive.items()):
        return ValidationResult.fail("The bank does not have enough resources")
    return ValidationResult.ok()


def bank_trade(
    state: GameState,
    player_id: str,
    give: Mapping[str, int],
    receive: Mapping[str, int],
    ledger: Ledger | None = None,
) -> GameState:
    new_state = state.clone()
    ledger = ledger or ResourceLedger()
    ledger.debit(new_state, player_id, _clean(give))
    ledger.credit(new_state, player_id, _clean(receive))
    new_state.player(player_id).total_trades_made += 1
    return new_state


# -- Offres entre joueurs --

def find_offer(state: GameState, offer_id: str) -> TradeOffer | None:
    for offer in state.trade_offers:
        if offer.offer_id == offer_id:
            return offer
    return None


def _require_offer(state: GameState, offer_id: str) -> TradeOffer:
    offer = find_offer(state, offer_id)
    if offer is None:
        fail_invariant("Trade offer not found", offer_id=offer_id)
    return offer


def eligible_recipients(state: GameState, offer: TradeOffer) -> List[str]:
    if offer.to_player_id is not None:
        return [offer.to_player_id]
    return [
        player.player_id
        for player in state.players
        if player.player_id != offer.from_player_id
    ]


def open_offers_for(state: GameState, player_id: str) -> List[TradeOffer]:
    """Offres actives auxquelles `player_id` peut encore répondre."""

    return [
        offer
        for offer in state.trade_offers
        if offer.is_active
        and player_id in eligible_recipients(state, offer)
        and player_id not in offer.declined_by
    ]


def validate_offer(
    state: GameState,
    player_id: str,
    offering: Mapping[str, int],
    requesting: Mapping[str, int],
    to_player_id: str | None = None,
) -> ValidationResult:
    for resources in (offering, requesting):
        shape = validate_resource_map(resources)
        if not shape:
            return shape
    offering = _clean(offering)
    requesting = _clean(requesting)
    if not offering or not requesting:
        return ValidationResult.fail("A trade must offer and request at least one card")
    if set(offering) & set(requesting):
        return ValidationResult.fail("Cannot offer and request the same resource")
    if to_player_id is not None:
        if to_player_id == player_id:
            return ValidationResult.fail("Cannot trade with yourself")
        if not state.has_player(to_player_id):
            return ValidationResult.fail("Unknown trade partner")
    held = state.player(player_id).resources
    if any(held[resource] < amount for resource, amount in offering.items()):
        return ValidationResult.fail("You do not have the offered resources")
    return ValidationResult.ok()


def propose_trade(
    state: GameState,
    player_id: str,
    offering: Mapping[str, int],
    requesting: Mapping[str, int],
    to_player_id: str | None = None,
    *,
    counter_to: str | None = None,
) -> GameState:
    new_state = state.clone()
    offer = TradeOffer(
        offer_id=f"offer-{new_state.next_offer_seq}",
        from_player_id=player_id,
        to_player_id=to_player_id,
        offering=_clean(offering),
        requesting=_clean(requesting),
        counter_to=counter_to,
    )
    new_state.next_offer_seq += 1
    new_state.trade_offers.append(offer)
    logger.debug("trade_offered", offer_id=offer.offer_id, player_id=player_id, to=to_player_id)
    return new_state


def _validate_response(state: GameState, player_id: str, offer_id: str) -> ValidationResult:
    offer = find_offer(state, offer_id)
    if offer is None:
        return ValidationResult.fail("Trade offer not found")
    if not offer.is_active:
        return ValidationResult.fail("Trade offer is no longer active")
    if offer.from_player_id == player_id:
        return ValidationResult.fail("Cannot respond to your own trade offer")
    if offer.to_player_id is not None and offer.to_player_id != player_id:
        return ValidationResult.fail("This trade offer is not for you")
    if player_id in offer.declined_by:
        return ValidationResult.fail("You have already declined this offer")
    return ValidationResult.ok()


def validate_accept(state: GameState, player_id: str, offer_id: str) -> ValidationResult:
    response = _validate_response(state, player_id, offer_id)
    if not response:
        return response
    offer = _require_offer(state, offer_id)
    proposer = state.player(offer.from_player_id).resources
    if any(proposer[resource] < amount for resource, amount in offer.offering.items()):
        return ValidationResult.fail("The proposer no longer has the offered resources")
    acceptor = state.player(player_id).resources
    if any(acceptor[resource] < amount for resource, amount in offer.requesting.items()):
        return ValidationResult.fail("You do not have the requested resources")
    return ValidationResult.ok()


def accept_trade(
    state: GameState,
    player_id: str,
    offer_id: str,
    ledger: Ledger | None = None,
) -> GameState:
    """Échange atomique; l'offre est désactivée dans le même nouvel état."""

    new_state = state.clone()
    ledger = ledger or ResourceLedger()
    offer = _require_offer(new_state, offer_id)
    ledger.transfer(new_state, offer.from_player_id, player_id, offer.offering)
    ledger.transfer(new_state, player_id, offer.from_player_id, offer.requesting)
    offer.is_active = False
    new_state.player(offer.from_player_id).total_trades_made += 1
    new_state.player(player_id).total_trades_made += 1
    logger.info("trade_completed", offer_id=offer_id, proposer=offer.from_player_id, acceptor=player_id)
    return new_state


def validate_decline(state: GameState, player_id: str, offer_id: str) -> ValidationResult:
    return _validate_response(state, player_id, offer_id)


def decline_trade(state: GameState, player_id: str, offer_id: str) -> GameState:
    new_state = state.clone()
    offer = _require_offer(new_state, offer_id)
    offer.declined_by.append(player_id)
    if all(recipient in offer.declined_by for recipient in eligible_recipients(new_state, offer)):
        offer.is_active = False
    return new_state


def validate_counter(
    state: GameState,
    player_id: str,
    offer_id: str,
    offering: Mapping[str, int],
    requesting: Mapping[str, int],
) -> ValidationResult:
    response = _validate_response(state, player_id, offer_id)
    if not response:
        return response
    offer = _require_offer(state, offer_id)
    return validate_offer(state, player_id, offering, requesting, offer.from_player_id)


def counter_trade(
    state: GameState,
    player_id: str,
    offer_id: str,
    offering: Mapping[str, int],
    requesting: Mapping[str, int],
) -> GameState:
    """Nouvelle offre adressée au proposant initial; l'offre d'origine est inchangée."""

    offer = _require_offer(state, offer_id)
    return propose_trade(
        state,
        player_id,
        offering,
        requesting,
        to_player_id=offer.from_player_id,
        counter_to=offer_id,
    )


def validate_cancel(state: GameState, player_id: str, offer_id: str) -> ValidationResult:
    offer = find_offer(state, offer_id)
    if offer is None:
        return ValidationResult.fail("Trade offer not found")
    if offer.from_player_id != player_id:
        return ValidationResult.fail("Only the proposer can cancel this offer")
    if not offer.is_active:
        return ValidationResult.fail("Trade offer is no longer active")
    return ValidationResult.ok()


def cancel_trade(state: GameState, player_id: str, offer_id: str) -> GameState:
    new_state = state.clone()
    offer = _require_offer(new_state, offer_id)
    offer.is_active = False
    return new_state


def clear_offers(state: GameState) -> GameState:
    new_state = state.clone()
    new_state.trade_offers = []
    return new_state


__all__ = [
    "accept_trade",
    "bank_rates",
    "bank_trade",
    "cancel_trade",
    "clear_offers",
    "counter_trade",
    "decline_trade",
    "eligible_recipients",
    "find_offer",
    "open_offers_for",
    "propose_trade",
    "validate_accept",
    "validate_bank_trade",
    "validate_cancel",
    "validate_counter",
    "validate_decline",
    "validate_offer",
]
