"""Machine à états du tour: point d'entrée unique `process_action`.

Pour chaque action:
1. la partie terminée rejette tout
2. le type doit appartenir aux types autorisés pour (phase, joueur)
3. le handler valide puis produit un nouvel état (ou un échec motivé)
4. titres recalculés, victoire vérifiée immédiatement, version estampillée
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from itertools import combinations_with_replacement
from typing import Callable, Dict, FrozenSet, List, Sequence

import numpy as np
import structlog

from settlers.engine.actions import (
    AcceptTrade,
    Action,
    BankTrade,
    BuildCity,
    BuildRoad,
    BuildSettlement,
    BuyDevelopmentCard,
    CancelTrade,
    CompleteRoadBuilding,
    CounterTrade,
    DeclineTrade,
    DiscardResources,
    EndTurn,
    MoveRobber,
    PlaceSetupRoad,
    PlaceSetupSettlement,
    PlayKnight,
    PlayMonopoly,
    PlayRoadBuilding,
    PlayYearOfPlenty,
    ProposeTrade,
    RollDice,
    SelectMonopoly,
    SelectYearOfPlenty,
    SkipSteal,
    StealResource,
)
from settlers.engine.board import generate_board
from settlers.engine.building import (
    can_place_city,
    can_place_road,
    can_place_settlement,
    can_place_setup_road,
    place_road,
    place_settlement,
    upgrade_to_city,
    valid_city_spots,
    valid_road_spots,
    valid_settlement_spots,
    valid_setup_road_spots,
)
from settlers.engine.dev_cards import (
    bank_can_supply_two,
    build_free_road,
    buy_development_card,
    can_buy_development_card,
    can_play_development_card,
    create_development_deck,
    finish_road_building,
    play_knight,
    play_monopoly,
    play_road_building,
    play_year_of_plenty,
    select_monopoly,
    select_year_of_plenty,
    validate_year_of_plenty,
    victory_point_cards,
)
from settlers.engine.errors import InvariantViolation, ValidationResult
from settlers.engine.ledger import (
    Ledger,
    ResourceLedger,
    discard_resources,
    players_who_must_discard,
    random_discard,
    validate_discard,
)
from settlers.engine.longest_road import update_longest_road
from settlers.engine.robber import (
    move_robber,
    steal_resource,
    steal_targets,
    valid_robber_placements,
    validate_robber_move,
    validate_steal,
)
from settlers.engine.rules import (
    MAX_PLAYERS,
    MIN_PLAYERS,
    PLAYER_COLORS,
    RESOURCE_TYPES,
    TITLE_VICTORY_POINTS,
    Settings,
)
from settlers.engine.serialize import action_to_payload
from settlers.engine.setup import (
    new_setup_progress,
    place_setup_road,
    place_setup_settlement,
)
from settlers.engine.state import (
    GameState,
    LogEntry,
    Phase,
    Player,
    make_rng,
    transition,
)
from settlers.engine.trade import (
    accept_trade,
    bank_rates,
    bank_trade,
    cancel_trade,
    clear_offers,
    counter_trade,
    decline_trade,
    open_offers_for,
    propose_trade,
    validate_accept,
    validate_bank_trade,
    validate_cancel,
    validate_counter,
    validate_decline,
    validate_offer,
)

logger = structlog.get_logger(__name__)

HandlerOutcome = GameState | ValidationResult

ROAD_AFFECTING_ACTIONS: FrozenSet[str] = frozenset(
    {
        PlaceSetupSettlement.type,
        PlaceSetupRoad.type,
        BuildSettlement.type,
        BuildRoad.type,
    }
)
TRADE_RESPONSE_ACTIONS: FrozenSet[str] = frozenset(
    {AcceptTrade.type, DeclineTrade.type, CounterTrade.type}
)


@dataclass(frozen=True)
class ActionResult:
    """Résultat de `process_action`: en cas d'échec, `new_state` est l'état reçu."""

    new_state: GameState
    success: bool
    error: str | None = None


# -- Initialisation --

def initialize_game(
    player_ids: Sequence[str],
    settings: Settings | None = None,
    *,
    colors: Sequence[str] | None = None,
    rng: np.random.Generator | None = None,
) -> GameState:
    """Crée une partie prête pour le placement initial.

    Args:
        player_ids: Identifiants des joueurs (2 à 6)
        settings: Réglages de la partie (défaut: `Settings()`)
        colors: Couleurs par joueur (défaut: `PLAYER_COLORS`)
        rng: Générateur injectable (défaut: graine de `settings.seed`)

    Raises:
        ValueError: Si le nombre de joueurs ou les réglages sont invalides
        BoardGenerationError: Si les jetons n'ont pas pu être placés
    """

    if not MIN_PLAYERS <= len(player_ids) <= MAX_PLAYERS:
        raise ValueError(f"Game requires {MIN_PLAYERS}-{MAX_PLAYERS} players")
    if len(set(player_ids)) != len(player_ids):
        raise ValueError("Player ids must be unique")
    settings = replace(settings or Settings(), player_count=len(player_ids))
    check = settings.validate()
    if not check:
        raise ValueError(check.reason)

    rng = rng if rng is not None else make_rng(settings.seed)
    board = generate_board(settings.ring_count, settings.player_count, rng=rng)
    deck = create_development_deck(rng)

    palette = list(colors) if colors is not None else list(PLAYER_COLORS)
    players = [
        Player(player_id=player_id, color=palette[index % len(palette)])
        for index, player_id in enumerate(player_ids)
    ]
    turn_order = [player_ids[int(index)] for index in rng.permutation(len(player_ids))]

    state = GameState(
        board=board,
        settings=settings,
        players=players,
        turn_order=turn_order,
        phase=Phase.SETUP_SETTLEMENT_1,
        current_player_id=turn_order[0],
        robber_hex=board.robber_hex,
        development_deck=deck,
        setup=new_setup_progress(turn_order),
    )
    state.store_rng(rng)
    logger.info("game_initialized", players=len(players), turn_order=turn_order, seed=settings.seed)
    return state


# -- Victoire --

def calculate_victory_points(
    state: GameState,
    player_id: str,
    include_hidden: bool = True,
) -> int:
    """Colonie 1, ville 2, chaque titre 2, cartes point de victoire si `include_hidden`."""

    points = 0
    for building in state.buildings_of(player_id):
        points += 2 if building.building_type == "city" else 1
    if state.longest_road_holder == player_id:
        points += TITLE_VICTORY_POINTS
    if state.largest_army_holder == player_id:
        points += TITLE_VICTORY_POINTS
    if include_hidden:
        points += victory_point_cards(state.player(player_id))
    return points


def check_victory(state: GameState) -> str | None:
    """Seul le joueur actif peut gagner, à tout moment de son tour."""

    if state.phase.is_setup or state.phase in (Phase.LOBBY, Phase.ENDED):
        return None
    player_id = state.current_player_id
    if calculate_victory_points(state, player_id) >= state.settings.victory_points:
        return player_id
    return None


# -- Machine à états --

class TurnPhaseStateMachine:
    """Applique les actions sur un état; les capacités (ledger, horloge) sont injectées."""

    def __init__(
        self,
        ledger: Ledger | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ledger = ledger or ResourceLedger()
        self.clock = clock
        self._handlers: Dict[str, Callable[..., HandlerOutcome]] = {
            PlaceSetupSettlement.type: self._place_setup_settlement,
            PlaceSetupRoad.type: self._place_setup_road,
            RollDice.type: self._roll_dice,
            DiscardResources.type: self._discard,
            MoveRobber.type: self._move_robber,
            StealResource.type: self._steal,
            SkipSteal.type: self._skip_steal,
            BuildRoad.type: self._build_road,
            BuildSettlement.type: self._build_settlement,
            BuildCity.type: self._build_city,
            BuyDevelopmentCard.type: self._buy_development_card,
            PlayKnight.type: self._play_knight,
            PlayRoadBuilding.type: self._play_road_building,
            CompleteRoadBuilding.type: self._complete_road_building,
            PlayYearOfPlenty.type: self._play_year_of_plenty,
            SelectYearOfPlenty.type: self._select_year_of_plenty,
            PlayMonopoly.type: self._play_monopoly,
            SelectMonopoly.type: self._select_monopoly,
            BankTrade.type: self._bank_trade,
            ProposeTrade.type: self._propose_trade,
            AcceptTrade.type: self._accept_trade,
            DeclineTrade.type: self._decline_trade,
            CounterTrade.type: self._counter_trade,
            CancelTrade.type: self._cancel_trade,
            EndTurn.type: self._end_turn,
        }

    # -- Entrée principale --
    def process_action(self, state: GameState, action: Action, player_id: str) -> ActionResult:
        """Valide et applique `action` pour `player_id`; ne modifie jamais `state`."""

        if state.is_game_over:
            return ActionResult(new_state=state, success=False, error="Game is over")
        if not state.has_player(player_id):
            return ActionResult(new_state=state, success=False, error="Unknown player")
        if action.type not in allowed_action_types(state, player_id):
            return ActionResult(
                new_state=state,
                success=False,
                error=f"Action {action.type} is not valid in the current phase ({state.phase.value})",
            )

        handler = self._handlers[action.type]
        try:
            outcome = handler(state, action, player_id)
            if isinstance(outcome, ValidationResult):
                logger.info(
                    "action_rejected",
                    action=action.type,
                    player_id=player_id,
                    reason=outcome.reason,
                )
                return ActionResult(new_state=state, success=False, error=outcome.reason)
            new_state = self._settle(state, outcome, action, player_id)
        except InvariantViolation:
            logger.error(
                "action_invariant_violation",
                action=action.type,
                player_id=player_id,
                version=state.version,
            )
            raise
        except Exception as exc:
            logger.exception("action_failed", action=action.type, player_id=player_id)
            return ActionResult(new_state=state, success=False, error=str(exc))
        return ActionResult(new_state=new_state, success=True)

    def _settle(
        self,
        previous: GameState,
        new_state: GameState,
        action: Action,
        player_id: str,
    ) -> GameState:
        """Titres, victoire puis estampille de version et entrée de journal."""

        if action.type in ROAD_AFFECTING_ACTIONS:
            new_state = update_longest_road(new_state)

        winner = check_victory(new_state)
        if winner is not None:
            new_state = new_state.clone()
            transition(new_state, Phase.ENDED)
            new_state.winner_id = winner
            new_state.trade_offers = []
            new_state.pending_discards = {}
            logger.info(
                "game_won",
                winner_id=winner,
                points=calculate_victory_points(new_state, winner),
                turn=new_state.turn,
            )
        return self._stamp(previous, new_state, action, player_id)

    def _stamp(
        self,
        previous: GameState,
        new_state: GameState,
        action: Action,
        player_id: str,
    ) -> GameState:
        if new_state is previous:
            new_state = previous.clone()
        new_state.version = previous.version + 1
        new_state.last_updated = self.clock()
        details = action_to_payload(action)
        details.pop("type")
        new_state.log.append(
            LogEntry(
                version=new_state.version,
                turn=new_state.turn,
                player_id=player_id,
                action=action.type,
                details=details,
            )
        )
        return new_state

    # -- Setup --
    def _place_setup_settlement(self, state: GameState, action: PlaceSetupSettlement, player_id: str) -> HandlerOutcome:
        check = can_place_settlement(state, player_id, action.vertex, setup=True)
        if not check:
            return check
        return place_setup_settlement(state, player_id, action.vertex, self.ledger)

    def _place_setup_road(self, state: GameState, action: PlaceSetupRoad, player_id: str) -> HandlerOutcome:
        check = can_place_setup_road(state, player_id, action.edge)
        if not check:
            return check
        return place_setup_road(state, player_id, action.edge)

    # -- Dés, défausse, voleur --
    def _roll_dice(self, state: GameState, action: RollDice, player_id: str) -> HandlerOutcome:
        new_state = state.clone()
        if action.forced_value is not None:
            if len(action.forced_value) != 2 or any(
                not 1 <= value <= 6 for value in action.forced_value
            ):
                return ValidationResult.fail("Dice values must be between 1 and 6")
            dice = (int(action.forced_value[0]), int(action.forced_value[1]))
        else:
            rng = new_state.rng()
            rolled = rng.integers(1, 7, size=2)
            dice = (int(rolled[0]), int(rolled[1]))
            new_state.store_rng(rng)

        total = dice[0] + dice[1]
        new_state.last_roll = dice
        new_state.dice_history.append(total)
        new_state.dice_rolled_this_turn = True
        logger.debug("dice_rolled", player_id=player_id, dice=dice, total=total)

        if total == 7:
            pending = players_who_must_discard(new_state)
            new_state.pending_discards = pending
            transition(new_state, Phase.DISCARD if pending else Phase.ROBBER_MOVE)
            return new_state

        self.ledger.produce(new_state, total)
        transition(new_state, Phase.MAIN)
        return new_state

    def _discard(self, state: GameState, action: DiscardResources, player_id: str) -> HandlerOutcome:
        resources = action.resources
        forced_rng = None
        if resources is None:
            rng = state.rng()
            resources = random_discard(state, player_id, rng)
            forced_rng = rng
            logger.info("forced_discard", player_id=player_id, resources=resources)
        check = validate_discard(state, player_id, resources)
        if not check:
            return check

        new_state = discard_resources(state, player_id, resources, self.ledger)
        if forced_rng is not None:
            new_state.store_rng(forced_rng)
        if not new_state.pending_discards:
            transition(new_state, Phase.ROBBER_MOVE)
        return new_state

    def _move_robber(self, state: GameState, action: MoveRobber, player_id: str) -> HandlerOutcome:
        check = validate_robber_move(state, player_id, action.hex)
        if not check:
            return check
        new_state = move_robber(state, action.hex)
        if steal_targets(new_state, action.hex, player_id):
            transition(new_state, Phase.ROBBER_STEAL)
            return new_state
        return _resume_after_robber(new_state)

    def _steal(self, state: GameState, action: StealResource, player_id: str) -> HandlerOutcome:
        check = validate_steal(state, player_id, action.victim_id)
        if not check:
            return check
        new_state = steal_resource(state, player_id, action.victim_id, self.ledger)
        return _resume_after_robber(new_state)

    def _skip_steal(self, state: GameState, action: Action, player_id: str) -> HandlerOutcome:
        return _resume_after_robber(state.clone())

    # -- Constructions --
    def _build_road(self, state: GameState, action: BuildRoad, player_id: str) -> HandlerOutcome:
        free = state.phase is Phase.ROAD_BUILDING
        check = can_place_road(state, player_id, action.edge, free=free, ledger=self.ledger)
        if not check:
            return check
        if free:
            return build_free_road(state, player_id, action.edge, self.ledger)
        return place_road(state, player_id, action.edge, ledger=self.ledger)

    def _build_settlement(self, state: GameState, action: BuildSettlement, player_id: str) -> HandlerOutcome:
        check = can_place_settlement(state, player_id, action.vertex, ledger=self.ledger)
        if not check:
            return check
        return place_settlement(state, player_id, action.vertex, ledger=self.ledger)

    def _build_city(self, state: GameState, action: BuildCity, player_id: str) -> HandlerOutcome:
        check = can_place_city(state, player_id, action.vertex, ledger=self.ledger)
        if not check:
            return check
        return upgrade_to_city(state, player_id, action.vertex, ledger=self.ledger)

    # -- Cartes de développement --
    def _buy_development_card(self, state: GameState, action: Action, player_id: str) -> HandlerOutcome:
        check = can_buy_development_card(state, player_id, self.ledger)
        if not check:
            return check
        return buy_development_card(state, player_id, self.ledger)

    def _play_knight(self, state: GameState, action: Action, player_id: str) -> HandlerOutcome:
        check = can_play_development_card(state, player_id, "KNIGHT")
        if not check:
            return check
        return play_knight(state, player_id)

    def _play_road_building(self, state: GameState, action: Action, player_id: str) -> HandlerOutcome:
        check = can_play_development_card(state, player_id, "ROAD_BUILDING")
        if not check:
            return check
        return play_road_building(state, player_id)

    def _complete_road_building(self, state: GameState, action: Action, player_id: str) -> HandlerOutcome:
        if valid_road_spots(state, player_id, free=True):
            return ValidationResult.fail("Free roads can still be placed")
        return finish_road_building(state)

    def _play_year_of_plenty(self, state: GameState, action: PlayYearOfPlenty, player_id: str) -> HandlerOutcome:
        check = can_play_development_card(state, player_id, "YEAR_OF_PLENTY")
        if not check:
            return check
        if action.resources is not None:
            choice = validate_year_of_plenty(state, action.resources)
            if not choice:
                return choice
        elif not bank_can_supply_two(state):
            return ValidationResult.fail("The bank cannot supply two resources")
        return play_year_of_plenty(state, player_id, action.resources, self.ledger)

    def _select_year_of_plenty(self, state: GameState, action: SelectYearOfPlenty, player_id: str) -> HandlerOutcome:
        check = validate_year_of_plenty(state, action.resources)
        if not check:
            return check
        return select_year_of_plenty(state, player_id, action.resources, self.ledger)

    def _play_monopoly(self, state: GameState, action: PlayMonopoly, player_id: str) -> HandlerOutcome:
        check = can_play_development_card(state, player_id, "MONOPOLY")
        if not check:
            return check
        if action.resource is not None and action.resource not in RESOURCE_TYPES:
            return ValidationResult.fail(f"Unknown resource: {action.resource}")
        return play_monopoly(state, player_id, action.resource, self.ledger)

    def _select_monopoly(self, state: GameState, action: SelectMonopoly, player_id: str) -> HandlerOutcome:
        if action.resource not in RESOURCE_TYPES:
            return ValidationResult.fail(f"Unknown resource: {action.resource}")
        return select_monopoly(state, player_id, action.resource, self.ledger)

    # -- Commerce --
    def _bank_trade(self, state: GameState, action: BankTrade, player_id: str) -> HandlerOutcome:
        check = validate_bank_trade(state, player_id, action.give, action.receive)
        if not check:
            return check
        return bank_trade(state, player_id, action.give, action.receive, self.ledger)

    def _propose_trade(self, state: GameState, action: ProposeTrade, player_id: str) -> HandlerOutcome:
        check = validate_offer(state, player_id, action.offering, action.requesting, action.to_player_id)
        if not check:
            return check
        return propose_trade(state, player_id, action.offering, action.requesting, action.to_player_id)

    def _accept_trade(self, state: GameState, action: AcceptTrade, player_id: str) -> HandlerOutcome:
        check = validate_accept(state, player_id, action.offer_id)
        if not check:
            return check
        return accept_trade(state, player_id, action.offer_id, self.ledger)

    def _decline_trade(self, state: GameState, action: DeclineTrade, player_id: str) -> HandlerOutcome:
        check = validate_decline(state, player_id, action.offer_id)
        if not check:
            return check
        return decline_trade(state, player_id, action.offer_id)

    def _counter_trade(self, state: GameState, action: CounterTrade, player_id: str) -> HandlerOutcome:
        check = validate_counter(state, player_id, action.offer_id, action.offering, action.requesting)
        if not check:
            return check
        return counter_trade(state, player_id, action.offer_id, action.offering, action.requesting)

    def _cancel_trade(self, state: GameState, action: CancelTrade, player_id: str) -> HandlerOutcome:
        check = validate_cancel(state, player_id, action.offer_id)
        if not check:
            return check
        return cancel_trade(state, player_id, action.offer_id)

    # -- Fin de tour --
    def _end_turn(self, state: GameState, action: Action, player_id: str) -> HandlerOutcome:
        new_state = clear_offers(state)
        index = new_state.turn_order.index(new_state.current_player_id)
        new_state.current_player_id = new_state.turn_order[(index + 1) % len(new_state.turn_order)]
        new_state.turn += 1
        new_state.last_roll = None
        new_state.dice_rolled_this_turn = False
        new_state.road_building_remaining = 0
        for player in new_state.players:
            player.has_played_dev_card = False
        transition(new_state, Phase.ROLL)
        logger.debug("turn_ended", previous=player_id, next=new_state.current_player_id, turn=new_state.turn)
        return new_state


def _resume_after_robber(state: GameState) -> GameState:
    """Retour en `main` si les dés ont été lancés, sinon en `roll` (chevalier joué avant)."""

    transition(state, Phase.MAIN if state.dice_rolled_this_turn else Phase.ROLL)
    return state


# -- Actions autorisées --

def allowed_action_types(state: GameState, player_id: str) -> FrozenSet[str]:
    """Types d'actions recevables pour (phase, joueur).

    Filtre grossier: les conditions fines (ressources, emplacements) sont
    vérifiées par les handlers, qui renvoient alors un motif précis.
    """

    phase = state.phase
    is_current = player_id == state.current_player_id
    allowed: set[str] = set()

    if phase in (Phase.LOBBY, Phase.ENDED):
        return frozenset()
    if phase in (Phase.SETUP_SETTLEMENT_1, Phase.SETUP_SETTLEMENT_2):
        return frozenset({PlaceSetupSettlement.type}) if is_current else frozenset()
    if phase in (Phase.SETUP_ROAD_1, Phase.SETUP_ROAD_2):
        return frozenset({PlaceSetupRoad.type}) if is_current else frozenset()
    if phase is Phase.DISCARD:
        if player_id in state.pending_discards:
            return frozenset({DiscardResources.type})
        return frozenset()

    if is_current:
        if phase is Phase.ROLL:
            allowed.add(RollDice.type)
            if not state.player(player_id).has_played_dev_card:
                allowed.add(PlayKnight.type)
        elif phase is Phase.ROBBER_MOVE:
            allowed.add(MoveRobber.type)
        elif phase is Phase.ROBBER_STEAL:
            allowed.update({StealResource.type, SkipSteal.type})
        elif phase is Phase.ROAD_BUILDING:
            allowed.update({BuildRoad.type, CompleteRoadBuilding.type})
        elif phase is Phase.YEAR_OF_PLENTY:
            allowed.add(SelectYearOfPlenty.type)
        elif phase is Phase.MONOPOLY:
            allowed.add(SelectMonopoly.type)
        elif phase is Phase.MAIN:
            allowed.update(
                {
                    BuildRoad.type,
                    BuildSettlement.type,
                    BuildCity.type,
                    BuyDevelopmentCard.type,
                    BankTrade.type,
                    ProposeTrade.type,
                    EndTurn.type,
                }
            )
            if not state.player(player_id).has_played_dev_card:
                allowed.update(
                    {
                        PlayKnight.type,
                        PlayRoadBuilding.type,
                        PlayYearOfPlenty.type,
                        PlayMonopoly.type,
                    }
                )

    if phase is Phase.MAIN:
        offers = state.trade_offers
        if any(offer.from_player_id != player_id for offer in offers):
            allowed.update(TRADE_RESPONSE_ACTIONS)
        if any(offer.from_player_id == player_id and offer.is_active for offer in offers):
            allowed.add(CancelTrade.type)

    return frozenset(allowed)


def _discard_splits(resources: Dict[str, int], total: int) -> List[Dict[str, int]]:
    """Toutes les répartitions de `total` cartes parmi la main du joueur."""

    held = [(resource, amount) for resource, amount in resources.items() if amount > 0]
    results: List[Dict[str, int]] = []

    def backtrack(index: int, remaining: int, current: Dict[str, int]) -> None:
        if remaining == 0:
            results.append(dict(current))
            return
        if index >= len(held):
            return
        resource, amount = held[index]
        for take in range(min(amount, remaining), -1, -1):
            if take:
                current[resource] = take
            backtrack(index + 1, remaining - take, current)
            current.pop(resource, None)

    backtrack(0, total, {})
    return results


def get_valid_actions(state: GameState, player_id: str) -> List[Action]:
    """Actions concrètes qu'une interface peut proposer à `player_id`."""

    allowed = allowed_action_types(state, player_id)
    if not allowed:
        return []
    player = state.player(player_id)
    actions: List[Action] = []

    if PlaceSetupSettlement.type in allowed:
        actions.extend(
            PlaceSetupSettlement(vertex=v) for v in valid_settlement_spots(state, player_id, setup=True)
        )
    if PlaceSetupRoad.type in allowed:
        actions.extend(PlaceSetupRoad(edge=e) for e in valid_setup_road_spots(state, player_id))
    if RollDice.type in allowed:
        actions.append(RollDice())
    if DiscardResources.type in allowed:
        actions.extend(
            DiscardResources(resources=split)
            for split in _discard_splits(player.resources, state.pending_discards[player_id])
        )
    if MoveRobber.type in allowed:
        actions.extend(MoveRobber(hex=coord) for coord in valid_robber_placements(state, player_id))
    if StealResource.type in allowed and state.robber_hex is not None:
        actions.extend(
            StealResource(victim_id=victim)
            for victim in steal_targets(state, state.robber_hex, player_id)
        )
        actions.append(SkipSteal())

    if BuildRoad.type in allowed:
        free = state.phase is Phase.ROAD_BUILDING
        spots = valid_road_spots(state, player_id, free=free)
        actions.extend(BuildRoad(edge=e) for e in spots)
        if free and not spots:
            actions.append(CompleteRoadBuilding())
    if BuildSettlement.type in allowed:
        actions.extend(BuildSettlement(vertex=v) for v in valid_settlement_spots(state, player_id))
    if BuildCity.type in allowed:
        actions.extend(BuildCity(vertex=v) for v in valid_city_spots(state, player_id))
    if BuyDevelopmentCard.type in allowed and can_buy_development_card(state, player_id):
        actions.append(BuyDevelopmentCard())

    if PlayKnight.type in allowed and can_play_development_card(state, player_id, "KNIGHT"):
        actions.append(PlayKnight())
    if PlayRoadBuilding.type in allowed and can_play_development_card(state, player_id, "ROAD_BUILDING"):
        actions.append(PlayRoadBuilding())
    if (
        PlayYearOfPlenty.type in allowed
        and can_play_development_card(state, player_id, "YEAR_OF_PLENTY")
        and bank_can_supply_two(state)
    ):
        actions.append(PlayYearOfPlenty())
    if PlayMonopoly.type in allowed and can_play_development_card(state, player_id, "MONOPOLY"):
        actions.append(PlayMonopoly())
    if SelectYearOfPlenty.type in allowed:
        for pair in combinations_with_replacement(RESOURCE_TYPES, 2):
            if validate_year_of_plenty(state, pair):
                actions.append(SelectYearOfPlenty(resources=pair))
    if SelectMonopoly.type in allowed:
        actions.extend(SelectMonopoly(resource=resource) for resource in RESOURCE_TYPES)

    if BankTrade.type in allowed:
        rates = bank_rates(state, player_id)
        for give in RESOURCE_TYPES:
            rate = rates[give]
            if player.resources[give] < rate:
                continue
            for receive in RESOURCE_TYPES:
                trade = BankTrade(give={give: rate}, receive={receive: 1})
                if validate_bank_trade(state, player_id, trade.give, trade.receive):
                    actions.append(trade)
    if ProposeTrade.type in allowed:
        has_open_offer = any(
            offer.from_player_id == player_id and offer.is_active for offer in state.trade_offers
        )
        if not has_open_offer:
            # Offres unitaires à tous, pour limiter l'explosion combinatoire
            for give in RESOURCE_TYPES:
                if player.resources[give] <= 0:
                    continue
                for receive in RESOURCE_TYPES:
                    if receive != give:
                        actions.append(ProposeTrade(offering={give: 1}, requesting={receive: 1}))

    if AcceptTrade.type in allowed:
        for offer in open_offers_for(state, player_id):
            if validate_accept(state, player_id, offer.offer_id):
                actions.append(AcceptTrade(offer_id=offer.offer_id))
            actions.append(DeclineTrade(offer_id=offer.offer_id))
    if CancelTrade.type in allowed:
        actions.extend(
            CancelTrade(offer_id=offer.offer_id)
            for offer in state.trade_offers
            if offer.from_player_id == player_id and offer.is_active
        )
    if EndTurn.type in allowed:
        actions.append(EndTurn())
    return actions


_DEFAULT_MACHINE = TurnPhaseStateMachine()


def process_action(state: GameState, action: Action, player_id: str) -> ActionResult:
    """Point d'entrée avec les capacités par défaut (ledger standard, horloge système)."""

    return _DEFAULT_MACHINE.process_action(state, action, player_id)


__all__ = [
    "ActionResult",
    "TurnPhaseStateMachine",
    "allowed_action_types",
    "calculate_victory_points",
    "check_victory",
    "get_valid_actions",
    "initialize_game",
    "process_action",
]
