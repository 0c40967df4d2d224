"""Comptabilité des ressources: banque, joueurs, production et défausses.

La règle de pénurie s'applique ressource par ressource:
- demande totale <= stock: tout le monde est servi
- un seul bénéficiaire: il reçoit ce qui reste en banque
- plusieurs bénéficiaires et stock insuffisant: personne ne reçoit cette ressource
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Mapping, Protocol

import numpy as np
import structlog

from settlers.engine.coords import VertexCoord, hex_vertices
from settlers.engine.errors import ValidationResult, invariant
from settlers.engine.rules import RESOURCE_TYPES
from settlers.engine.state import Building, GameState

logger = structlog.get_logger(__name__)

Resources = Dict[str, int]


class Ledger(Protocol):
    """Capacité de transfert de ressources sur un état de travail."""

    def can_afford(self, state: GameState, player_id: str, cost: Mapping[str, int]) -> bool: ...

    def debit(self, state: GameState, player_id: str, cost: Mapping[str, int]) -> None: ...

    def credit(
        self,
        state: GameState,
        player_id: str,
        resources: Mapping[str, int],
        *,
        collected: bool = False,
    ) -> None: ...

    def transfer(
        self,
        state: GameState,
        from_player_id: str,
        to_player_id: str,
        resources: Mapping[str, int],
    ) -> None: ...

    def produce(self, state: GameState, dice_total: int) -> Dict[str, Resources]: ...


class ResourceLedger:
    """Implémentation par défaut de `Ledger`.

    Les méthodes modifient l'état reçu: elles sont destinées à un état de
    travail déjà copié. Un solde négatif est une violation d'invariant.
    """

    def can_afford(self, state: GameState, player_id: str, cost: Mapping[str, int]) -> bool:
        held = state.player(player_id).resources
        return all(held.get(resource, 0) >= amount for resource, amount in cost.items())

    def debit(self, state: GameState, player_id: str, cost: Mapping[str, int]) -> None:
        """Joueur -> banque."""

        player = state.player(player_id)
        for resource, amount in cost.items():
            invariant(
                player.resources.get(resource, 0) >= amount,
                "Player balance would become negative",
                player_id=player_id,
                resource=resource,
            )
        for resource, amount in cost.items():
            player.resources[resource] -= amount
            state.bank[resource] += amount

    def credit(
        self,
        state: GameState,
        player_id: str,
        resources: Mapping[str, int],
        *,
        collected: bool = False,
    ) -> None:
        """Banque -> joueur."""

        player = state.player(player_id)
        for resource, amount in resources.items():
            invariant(
                state.bank.get(resource, 0) >= amount,
                "Bank balance would become negative",
                player_id=player_id,
                resource=resource,
            )
        for resource, amount in resources.items():
            state.bank[resource] -= amount
            player.resources[resource] += amount
        if collected:
            player.total_resources_collected += sum(resources.values())

    def transfer(
        self,
        state: GameState,
        from_player_id: str,
        to_player_id: str,
        resources: Mapping[str, int],
    ) -> None:
        giver = state.player(from_player_id)
        receiver = state.player(to_player_id)
        for resource, amount in resources.items():
            invariant(
                giver.resources.get(resource, 0) >= amount,
                "Player balance would become negative",
                player_id=from_player_id,
                resource=resource,
            )
        for resource, amount in resources.items():
            giver.resources[resource] -= amount
            receiver.resources[resource] += amount

    def produce(self, state: GameState, dice_total: int) -> Dict[str, Resources]:
        """Applique la production d'un lancer et retourne les gains effectifs."""

        demand = compute_production(state, dice_total)
        payouts: Dict[str, Resources] = defaultdict(dict)

        for resource in RESOURCE_TYPES:
            recipients = {
                player_id: wanted[resource]
                for player_id, wanted in demand.items()
                if wanted.get(resource, 0) > 0
            }
            total = sum(recipients.values())
            if total == 0:
                continue
            available = state.bank[resource]
            if total <= available:
                for player_id, amount in recipients.items():
                    payouts[player_id][resource] = amount
            elif len(recipients) == 1:
                (player_id, amount), = recipients.items()
                if available > 0:
                    payouts[player_id][resource] = min(amount, available)
            else:
                logger.info(
                    "resource_shortage",
                    resource=resource,
                    demand=total,
                    bank=available,
                    recipients=sorted(recipients),
                )

        for player_id, gained in payouts.items():
            self.credit(state, player_id, gained, collected=True)
        return dict(payouts)


def _buildings_by_vertex(state: GameState) -> Dict[VertexCoord, Building]:
    return {building.vertex: building for building in state.buildings}


def compute_production(state: GameState, dice_total: int) -> Dict[str, Resources]:
    """Demande brute (avant pénurie) par joueur pour un total de dés."""

    demand: Dict[str, Resources] = defaultdict(lambda: defaultdict(int))
    by_vertex = _buildings_by_vertex(state)
    for tile in state.board.tiles_for_number(dice_total):
        if tile.coord == state.robber_hex or tile.resource is None:
            continue
        for vertex in hex_vertices(tile.coord):
            building = by_vertex.get(vertex)
            if building is None:
                continue
            amount = 2 if building.building_type == "city" else 1
            demand[building.owner_id][tile.resource] += amount
    return {player_id: dict(wanted) for player_id, wanted in demand.items()}


def distribute_for_roll(
    state: GameState,
    dice_total: int,
    ledger: Ledger | None = None,
) -> GameState:
    """Retourne un nouvel état après la production du lancer `dice_total`."""

    new_state = state.clone()
    (ledger or ResourceLedger()).produce(new_state, dice_total)
    return new_state


def total_resources(state: GameState) -> Resources:
    """Banque + mains de tous les joueurs, par ressource."""

    totals = dict(state.bank)
    for player in state.players:
        for resource, amount in player.resources.items():
            totals[resource] = totals.get(resource, 0) + amount
    return totals


def validate_resource_map(resources: Mapping[str, int]) -> ValidationResult:
    for resource, amount in resources.items():
        if resource not in RESOURCE_TYPES:
            return ValidationResult.fail(f"Unknown resource: {resource}")
        if not isinstance(amount, (int, np.integer)) or amount < 0:
            return ValidationResult.fail("Resource amounts must be non-negative integers")
    return ValidationResult.ok()


# -- Défausse sur un 7 --

def discard_amount(card_count: int) -> int:
    return card_count // 2


def players_who_must_discard(state: GameState) -> Dict[str, int]:
    """Joueurs au-delà de la limite de défausse et nombre de cartes dues."""

    limit = state.settings.discard_limit
    return {
        player.player_id: discard_amount(player.resource_count)
        for player in state.players
        if player.resource_count > limit
    }


def validate_discard(
    state: GameState,
    player_id: str,
    resources: Mapping[str, int],
) -> ValidationResult:
    if player_id not in state.pending_discards:
        return ValidationResult.fail("You do not need to discard")
    shape = validate_resource_map(resources)
    if not shape:
        return shape
    expected = state.pending_discards[player_id]
    if sum(resources.values()) != expected:
        return ValidationResult.fail(f"Must discard exactly {expected} cards")
    held = state.player(player_id).resources
    if any(held.get(resource, 0) < amount for resource, amount in resources.items()):
        return ValidationResult.fail("Cannot discard resources you do not have")
    return ValidationResult.ok()


def random_discard(state: GameState, player_id: str, rng: np.random.Generator) -> Resources:
    """Sélection uniforme de cartes individuelles (défausse forcée par le timer)."""

    count = state.pending_discards.get(player_id, 0)
    cards = [
        resource
        for resource, amount in state.player(player_id).resources.items()
        for _ in range(amount)
    ]
    chosen: Resources = {}
    for index in rng.choice(len(cards), size=count, replace=False):
        resource = cards[int(index)]
        chosen[resource] = chosen.get(resource, 0) + 1
    return chosen


def discard_resources(
    state: GameState,
    player_id: str,
    resources: Mapping[str, int],
    ledger: Ledger | None = None,
) -> GameState:
    """Défausse vers la banque et retire le joueur de la file d'attente."""

    new_state = state.clone()
    (ledger or ResourceLedger()).debit(new_state, player_id, resources)
    del new_state.pending_discards[player_id]
    return new_state


__all__ = [
    "Ledger",
    "ResourceLedger",
    "Resources",
    "compute_production",
    "discard_amount",
    "discard_resources",
    "distribute_for_roll",
    "players_who_must_discard",
    "random_discard",
    "total_resources",
    "validate_discard",
    "validate_resource_map",
]
